import uuid

from simpleblog.models.blog import Post


def test_create_tag_slugs_the_name(client, admin_headers):
    response = client.post("/tags", json={"name": "Letnia Rosa", "color": "#ff8800"}, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["slug"] == "letnia-rosa"


def test_duplicate_tag_is_a_conflict(client, admin_headers):
    client.post("/tags", json={"name": "Letnia Rosa"}, headers=admin_headers)

    response = client.post("/tags", json={"name": "letnia rosa"}, headers=admin_headers)
    assert response.status_code == 409


def test_tags_are_listed_by_name(client, admin_headers):
    for name in ("Zima", "Akcesoria", "Lato"):
        client.post("/tags", json={"name": name}, headers=admin_headers)

    assert [t["name"] for t in client.get("/tags").json()] == ["Akcesoria", "Lato", "Zima"]


def test_tag_writes_are_admin_only(client, user_headers):
    assert client.post("/tags", json={"name": "News"}, headers=user_headers).status_code == 403


def test_rename_reslugs(client, admin_headers):
    tag = client.post("/tags", json={"name": "News"}, headers=admin_headers).json()

    response = client.put(f"/tags/{tag['id']}", json={"name": "Breaking News"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["slug"] == "breaking-news"
    assert client.get("/tags/by-slug/breaking-news").json()["id"] == tag["id"]
    assert client.get("/tags/by-slug/news").status_code == 404


def test_rename_into_existing_tag_is_a_conflict(client, admin_headers):
    client.post("/tags", json={"name": "News"}, headers=admin_headers)
    other = client.post("/tags", json={"name": "Other"}, headers=admin_headers).json()

    assert client.put(f"/tags/{other['id']}", json={"name": "NEWS"}, headers=admin_headers).status_code == 409


def test_posts_by_tag(client, session, admin_headers):
    tag = client.post("/tags", json={"name": "News"}, headers=admin_headers).json()
    post = Post(title="Tagged", content="Body")
    session.add(post)
    session.add(Post(title="Untagged", content="Body"))
    session.commit()
    client.put(f"/posts/{post.id}/tags", json={"tagIds": [tag["id"]]}, headers=admin_headers)

    body = client.get(f"/tags/{tag['id']}/posts").json()
    assert body["tag"]["slug"] == "news"
    assert [p["title"] for p in body["posts"]] == ["Tagged"]


def test_missing_tag(client, admin_headers):
    missing = uuid.uuid4()
    assert client.get(f"/tags/{missing}").status_code == 404
    assert client.get(f"/tags/{missing}/posts").status_code == 404
    assert client.delete(f"/tags/{missing}", headers=admin_headers).status_code == 404
    assert client.put(f"/tags/{missing}", json={"name": "x"}, headers=admin_headers).status_code == 404


def test_delete_tag(client, admin_headers):
    tag = client.post("/tags", json={"name": "News"}, headers=admin_headers).json()
    assert client.delete(f"/tags/{tag['id']}", headers=admin_headers).status_code == 204
    assert client.get("/tags").json() == []
