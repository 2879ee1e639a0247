from datetime import datetime, timedelta


def test_summary_rounds_the_average(client, make_order, admin_headers):
    for total in ("100.00", "200.00", "50.00"):
        make_order(total)

    summary = client.get("/orders/analytics/summary", headers=admin_headers).json()
    assert summary == {"totalOrders": 3, "totalRevenue": 350.0, "averageOrderValue": 116.67}


def test_summary_without_orders(client, admin_headers):
    summary = client.get("/orders/analytics/summary", headers=admin_headers).json()
    assert summary == {"totalOrders": 0, "totalRevenue": 0.0, "averageOrderValue": 0.0}


def test_summary_respects_the_date_range(client, make_order, admin_headers):
    make_order("100.00", created_at=datetime(2025, 3, 1, 12))
    make_order("40.00", created_at=datetime(2025, 3, 10, 12))

    summary = client.get(
        "/orders/analytics/summary", params={"from": "2025-03-05", "to": "garbage"}, headers=admin_headers
    ).json()
    assert summary["totalOrders"] == 1
    assert summary["totalRevenue"] == 40.0


def test_sales_by_day_groups_and_orders_oldest_first(client, make_order, admin_headers):
    day1 = datetime(2025, 5, 1, 9)
    day2 = day1 + timedelta(days=1)
    make_order("10.00", created_at=day1)
    make_order("15.50", created_at=day1 + timedelta(hours=5))
    make_order("7.00", created_at=day2)

    rows = client.get("/orders/analytics/sales-by-day", headers=admin_headers).json()
    assert rows == [
        {"date": "2025-05-01", "ordersCount": 2, "revenue": 25.5},
        {"date": "2025-05-02", "ordersCount": 1, "revenue": 7.0},
    ]

    latest = client.get("/orders/analytics/sales-by-day", params={"limit": 1}, headers=admin_headers).json()
    assert [r["date"] for r in latest] == ["2025-05-02"]


def test_status_counts(client, make_order, admin_headers):
    make_order(status="New")
    make_order(status="New")
    make_order(status="Shipped")

    counts = client.get("/orders/analytics/status-counts", headers=admin_headers).json()
    assert counts == [{"status": "New", "count": 2}, {"status": "Shipped", "count": 1}]


def test_order_analytics_need_admin(client, user_headers):
    assert client.get("/orders/analytics/summary", headers=user_headers).status_code == 403


def _order(client, product, quantity):
    return client.post(
        "/orders",
        json={
            "customerName": "Jan",
            "customerEmail": "jan@example.com",
            "customerPhone": "600100200",
            "shippingAddress": "ul. Polna 1",
            "shippingCity": "Krakow",
            "shippingPostalCode": "30-001",
            "items": [{"productId": str(product.id), "quantity": quantity}],
        },
    )


def test_top_sold_counts_units(client, make_product, user_headers):
    shirt = make_product("Shirt")
    scarf = make_product("Scarf")
    _order(client, shirt, 1)
    _order(client, scarf, 4)
    _order(client, shirt, 2)

    top = client.get("/products/analytics/top-sold", headers=user_headers).json()
    assert [(t["productName"], t["count"]) for t in top] == [("Scarf", 4), ("Shirt", 3)]

    assert client.get("/products/analytics/top-sold").status_code == 401


def test_top_viewed(client, make_product, user_headers):
    shirt = make_product("Shirt")
    scarf = make_product("Scarf")
    for _ in range(3):
        client.post(f"/products/{scarf.id}/view")
    client.post(f"/products/{shirt.id}/view")

    top = client.get("/products/analytics/top-viewed", params={"limit": 1}, headers=user_headers).json()
    assert top == [{"productId": str(scarf.id), "productName": "Scarf", "count": 3}]
