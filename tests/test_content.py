from sqlmodel import select

from simpleblog.models.blog import AboutMe, SiteSettings


def test_about_is_404_until_written(client):
    assert client.get("/about").status_code == 404


def test_update_about(client, admin_headers, user_headers):
    assert client.put("/about", json={"content": "Hi"}, headers=user_headers).status_code == 403

    response = client.put("/about", json={"content": "Hi, I sew dresses."}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["updatedBy"] == "admin"
    assert client.get("/about").json()["content"] == "Hi, I sew dresses."


def test_about_content_is_required(client, admin_headers):
    response = client.put("/about", json={"content": "   "}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["errors"]["content"] == ["Content cannot be empty"]


def test_about_image_is_signed_but_stored_as_reference(client, session, admin_headers, storage):
    first = client.post("/about/image", files={"file": ("me.jpg", b"jpg", "image/jpeg")}, headers=admin_headers)
    assert first.status_code == 200
    ref = storage.uploads[0]
    assert first.json()["imageUrl"] == f"https://signed.example/{ref}?sig=test"

    about = session.exec(select(AboutMe)).one()
    assert about.image_url == ref

    # Reading twice never rewrites the stored reference
    client.get("/about")
    client.get("/about")
    session.refresh(about)
    assert about.image_url == ref

    second = client.post("/about/image", files={"file": ("me2.png", b"png", "image/png")}, headers=admin_headers)
    assert second.status_code == 200
    assert storage.deleted == [ref]


def test_about_image_rejects_wrong_type_before_storage(client, admin_headers, storage):
    response = client.post("/about/image", files={"file": ("me.svg", b"<svg/>", "image/svg+xml")}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["errors"]["file"] == ["Invalid file type. Allowed: JPEG, PNG, GIF, WebP"]
    assert storage.uploads == []


def test_empty_upload_is_rejected(client, admin_headers, storage):
    response = client.post("/about/image", files={"file": ("me.png", b"", "image/png")}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["errors"]["file"] == ["File is empty"]


def test_delete_about_image(client, admin_headers, storage):
    assert client.delete("/about/image", headers=admin_headers).status_code == 404

    client.post("/about/image", files={"file": ("me.jpg", b"jpg", "image/jpeg")}, headers=admin_headers)
    response = client.delete("/about/image", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["imageUrl"] is None
    assert storage.deleted == storage.uploads


def test_site_settings_defaults(client):
    body = client.get("/site-settings").json()
    assert body["theme"] == "light"
    assert body["logoUrl"] is None


def test_themes(client):
    assert "marjan" in client.get("/site-settings/themes").json()


def test_update_theme(client, session, admin_headers):
    response = client.put("/site-settings", json={"theme": "ocean", "contactText": "Call us"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["theme"] == "ocean"
    assert session.exec(select(SiteSettings)).one().contact_text == "Call us"


def test_unknown_theme_is_rejected(client, admin_headers):
    response = client.put("/site-settings", json={"theme": "neon"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["errors"]["theme"][0].startswith("Theme must be one of:")


def test_logo_size_limit(client, admin_headers, storage):
    response = client.post(
        "/site-settings/logo",
        files={"file": ("logo.png", b"0" * (5 * 1024 * 1024 + 1), "image/png")},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["errors"]["file"] == ["File size cannot exceed 5 MB"]
    assert storage.uploads == []


def test_logo_upload_and_delete(client, admin_headers, storage):
    assert client.delete("/site-settings/logo", headers=admin_headers).status_code == 404

    response = client.post("/site-settings/logo", files={"file": ("logo.png", b"png", "image/png")}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["logoUrl"] == f"https://signed.example/{storage.uploads[0]}?sig=test"

    response = client.delete("/site-settings/logo", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["logoUrl"] is None
