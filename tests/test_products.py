import uuid

from sqlmodel import select

from simpleblog.models.product import ProductView
from simpleblog.services.tag import TagService

NEW_PRODUCT = {
    "name": "Marjan Classic",
    "description": "Linen shirt",
    "price": 119.0,
    "category": "Koszule",
    "stock": 3,
    "colors": ["navy", "sand"],
}


def test_create_product_json(client, admin_headers):
    response = client.post("/products", json=NEW_PRODUCT, headers=admin_headers)
    assert response.status_code == 201
    body = response.json()
    assert body["price"] == 119.0
    assert body["colors"] == ["navy", "sand"]
    assert body["imageUrl"] is None


def test_create_product_validation(client, admin_headers):
    payload = {**NEW_PRODUCT, "price": 0, "stock": -1, "name": ""}
    response = client.post("/products", json=payload, headers=admin_headers)
    assert response.status_code == 400
    errors = response.json()["errors"]
    assert errors["price"] == ["Product price must be greater than zero"]
    assert errors["stock"] == ["Product stock cannot be negative"]
    assert errors["name"] == ["Product name cannot be empty"]


def test_create_product_requires_admin(client, user_headers):
    assert client.post("/products", json=NEW_PRODUCT, headers=user_headers).status_code == 403


def test_create_product_form_with_image(client, admin_headers, storage):
    response = client.post(
        "/products",
        data={"name": "Szal", "description": "Merino", "price": "89.50", "category": "Akcesoria", "stock": "4"},
        files={"image": ("szal.webp", b"webp-bytes", "image/webp")},
        headers=admin_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["price"] == 89.5
    assert body["stock"] == 4
    assert body["imageUrl"] == f"https://signed.example/{storage.uploads[0]}?sig=test"


def test_list_products_filters(client, session, make_product):
    dress = make_product("Letnia Rosa", category="Sukienki")
    make_product("Marjan Classic", category="Koszule", description="linen shirt")
    tag = TagService(session).create("Lato")
    dress.tags = [tag]
    session.add(dress)
    session.commit()

    by_category = client.get("/products", params={"category": "Koszule"}).json()
    assert [p["name"] for p in by_category["items"]] == ["Marjan Classic"]

    by_search = client.get("/products", params={"searchTerm": "LINEN"}).json()
    assert [p["name"] for p in by_search["items"]] == ["Marjan Classic"]

    by_tag = client.get("/products", params={"tagIds": str(tag.id)}).json()
    assert [p["name"] for p in by_tag["items"]] == ["Letnia Rosa"]
    assert by_tag["items"][0]["tags"][0]["slug"] == "lato"


def test_get_product_records_a_view(client, session, make_product):
    product = make_product()

    response = client.get(f"/products/{product.id}", headers={"X-Session-Id": "abc"})
    assert response.status_code == 200

    views = session.exec(select(ProductView)).all()
    assert len(views) == 1
    assert views[0].session_id == "abc"
    assert views[0].user_id is None


def test_view_remembers_the_signed_in_user(client, session, make_product, user_headers):
    product = make_product()

    response = client.post(f"/products/{product.id}/view", params={"sessionId": "s1"}, headers=user_headers)
    assert response.status_code == 202

    view = session.exec(select(ProductView)).one()
    assert view.user_id == "reader"
    assert view.session_id == "s1"


def test_missing_product(client):
    assert client.get(f"/products/{uuid.uuid4()}").status_code == 404
    assert client.post(f"/products/{uuid.uuid4()}/view").status_code == 404


def test_update_product_is_partial(client, make_product, admin_headers):
    product = make_product(price="10.00", stock=7)

    response = client.put(f"/products/{product.id}", json={"price": 12.5}, headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["price"] == 12.5
    assert body["stock"] == 7
    assert body["name"] == "Letnia Rosa"


def test_update_product_rejects_bad_price(client, make_product, admin_headers):
    product = make_product()
    response = client.put(f"/products/{product.id}", json={"price": -1}, headers=admin_headers)
    assert response.status_code == 400


def test_delete_product(client, make_product, admin_headers):
    product = make_product()
    assert client.delete(f"/products/{product.id}", headers=admin_headers).status_code == 204
    assert client.delete(f"/products/{product.id}", headers=admin_headers).status_code == 404


def test_replacing_product_image_deletes_the_old_one(client, make_product, admin_headers, storage):
    product = make_product(image_url="simpleblog/products/old.png")

    response = client.post(
        f"/products/{product.id}/images",
        files={"file": ("new.png", b"png-bytes", "image/png")},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert storage.deleted == ["simpleblog/products/old.png"]
    assert response.json()["imageUrl"] == f"https://signed.example/{storage.uploads[0]}?sig=test"


def test_oversized_product_image_is_rejected(client, make_product, admin_headers, storage):
    product = make_product()

    response = client.post(
        f"/products/{product.id}/images",
        files={"file": ("big.png", b"0" * (10 * 1024 * 1024 + 1), "image/png")},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["errors"]["file"] == ["File size cannot exceed 10 MB"]
    assert storage.uploads == []


def test_assign_product_tags(client, session, make_product, admin_headers):
    product = make_product()
    tag = TagService(session).create("Lato")

    response = client.put(f"/products/{product.id}/tags", json={"tagIds": [str(tag.id)]}, headers=admin_headers)
    assert response.status_code == 200
    assert [t["name"] for t in response.json()["tags"]] == ["Lato"]


def test_search_treats_wildcards_as_text(client, make_product):
    make_product("Plain shirt", description="Cotton")
    make_product("Promo 20%", description="Summer sale")

    percent = client.get("/products", params={"searchTerm": "%"}).json()
    assert [p["name"] for p in percent["items"]] == ["Promo 20%"]

    assert client.get("/products", params={"searchTerm": "_"}).json()["total"] == 0
    assert client.get("/products", params={"searchTerm": "Pla_n"}).json()["total"] == 0


def test_update_product_rejects_blank_text(client, make_product, admin_headers):
    product = make_product()

    response = client.put(
        f"/products/{product.id}", json={"name": "  ", "category": ""}, headers=admin_headers
    )
    assert response.status_code == 400
    errors = response.json()["errors"]
    assert "name" in errors
    assert "category" in errors

    assert client.get(f"/products/{product.id}").json()["name"] == "Letnia Rosa"
