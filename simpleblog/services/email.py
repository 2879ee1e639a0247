import html
import logging
import smtplib
import uuid
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from urllib.parse import urlencode

from simpleblog.core.config import settings
from simpleblog.core.logging import mask_email
from simpleblog.models.order import Order

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, body: str) -> bool:
    if not settings.MAIL_ENABLED:
        logger.info("Mail disabled, skipping '%s' to %s", subject, mask_email(to_email))
        return False

    try:
        msg = MIMEMultipart('alternative')
        msg['From'] = settings.MAIL_FROM
        msg['To'] = to_email
        msg['Subject'] = subject

        msg.attach(MIMEText(body, 'html'))

        if settings.MAIL_SSL:
            server = smtplib.SMTP_SSL(settings.MAIL_SERVER, settings.MAIL_PORT)
        else:
            server = smtplib.SMTP(settings.MAIL_SERVER, settings.MAIL_PORT)
            server.starttls()

        if settings.MAIL_PASSWORD:
            server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
        server.sendmail(settings.MAIL_FROM, to_email, msg.as_string())
        server.quit()
        logger.info("Email '%s' sent to %s", subject, mask_email(to_email))
        return True
    except (smtplib.SMTPException, OSError):
        logger.exception("Failed to send email '%s' to %s", subject, mask_email(to_email))
        return False


def format_order_items_for_email(order: Order) -> str:
    rows = ""
    for item in order.items:
        line_total = item.price * item.quantity
        rows += f"""
        <tr>
            <td style="padding: 6px 0;">{html.escape(item.product_name)}</td>
            <td style="padding: 6px 0; text-align: center;">{item.quantity}</td>
            <td style="padding: 6px 0; text-align: right;">{line_total:.2f}</td>
        </tr>"""
    return rows


def send_order_confirmation_email(order: Order) -> bool:
    body = f"""
    <h2>Thank you for your order, {html.escape(order.customer_name)}!</h2>
    <p>Order number: <strong>{order.id}</strong></p>
    <table role="presentation" width="100%" cellspacing="0" cellpadding="0">
        <tr><th align="left">Product</th><th>Qty</th><th align="right">Total</th></tr>
        {format_order_items_for_email(order)}
    </table>
    <p style="text-align: right;"><strong>Total: {order.total_amount:.2f}</strong></p>
    <p>Shipping to:<br>{html.escape(order.shipping_address)}<br>
    {html.escape(order.shipping_postal_code)} {html.escape(order.shipping_city)}</p>
    """
    return send_email(order.customer_email, f"Order confirmation #{order.id}", body)


def send_password_reset_email(to_email: str, user_id: uuid.UUID, token: str) -> bool:
    query = urlencode({"userId": str(user_id), "token": token})
    reset_link = f"{settings.FRONTEND_URL}/reset-password?{query}"
    body = f"""
    <h2>Password reset</h2>
    <p>Someone asked to reset the password for your account.</p>
    <p><a href="{reset_link}">Choose a new password</a></p>
    <p>The link expires in {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes.
    If you did not request this, you can ignore this message.</p>
    """
    return send_email(to_email, "Reset your password", body)
