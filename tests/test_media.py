import io
import json

import pytest
from PIL import Image

from familyhub.config import settings
from familyhub.models.post import Post


def _png(size=(640, 480)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, "red").save(buf, format="PNG")
    return buf.getvalue()


def _stored_path(storage, url):
    return storage.root / url.split("/media/", 1)[1]


def _upload(client, headers, family_id=None, metadata=None, filename="photo.png", content=None, mime="image/png"):
    data = {}
    if family_id:
        data["familyId"] = family_id
    if metadata is not None:
        data["metadata"] = metadata

    return client.post(
        "/api/media/upload",
        files={"file": (filename, content if content is not None else _png(), mime)},
        data=data,
        headers=headers,
    )


# ==========================================================
# UPLOAD
# ==========================================================

def test_upload_image_stores_file_and_thumbnail(client, make_user, storage):
    user, headers = make_user()

    res = _upload(client, headers, metadata=json.dumps({"caption": "Beach"}))

    assert res.status_code == 201
    media = res.json()["media"]
    assert media["type"] == "image"
    assert media["mimeType"] == "image/png"
    assert media["uploadedBy"] == user["id"]
    assert media["metadata"] == {"caption": "Beach"}
    assert f"/media/{user['id']}/image/" in media["url"]
    assert media["url"].endswith("-photo.png")

    assert _stored_path(storage, media["url"]).exists()

    thumb = _stored_path(storage, media["thumbUrl"])
    with Image.open(thumb) as img:
        assert img.format == "JPEG"
        assert max(img.size) <= 300


def test_upload_document_has_no_thumbnail(client, make_user):
    _, headers = make_user()

    res = _upload(client, headers, filename="notes.pdf", content=b"%PDF-1.4 test", mime="application/pdf")

    assert res.status_code == 201
    assert res.json()["media"]["type"] == "document"
    assert res.json()["media"]["thumbUrl"] is None


def test_upload_rejections(client, make_user, monkeypatch, storage):
    _, headers = make_user()

    res = client.post("/api/media/upload", data={"metadata": "{}"}, headers=headers)
    assert res.status_code == 400
    assert res.json()["message"] == "No file uploaded"

    res = _upload(client, headers, filename="notes.txt", content=b"hello", mime="text/plain")
    assert res.status_code == 400

    res = _upload(client, headers, content=b"")
    assert res.status_code == 400
    assert res.json()["message"] == "Uploaded file is empty"

    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE", 10)
    res = _upload(client, headers)
    assert res.status_code == 400
    assert "too large" in res.json()["message"]

    # Nothing reached storage
    assert not storage.root.exists() or not any(storage.root.rglob("*"))
    assert client.get("/api/media", headers=headers).json()["count"] == 0


def test_upload_to_foreign_family(client, make_user, make_family):
    _, owner_headers = make_user()
    family = make_family(owner_headers)
    _, outsider_headers = make_user()

    res = _upload(client, outsider_headers, family_id=family["id"])

    assert res.status_code == 403


@pytest.mark.parametrize("filename, stored", [
    ("café.png", "-cafe.png"),
    ("my photo (1).png", "-my_photo_1_.png"),
    ("日本.png", "-png"),
])
def test_stored_filenames_are_ascii(client, make_user, filename, stored):
    _, headers = make_user()

    res = _upload(client, headers, filename=filename)

    assert res.status_code == 201
    media = res.json()["media"]
    assert media["url"].endswith(stored)
    assert media["url"].isascii()
    assert media["name"] == filename


def test_invalid_metadata_is_ignored(client, make_user):
    _, headers = make_user()

    res = _upload(client, headers, metadata="{not json")

    assert res.status_code == 201
    assert res.json()["media"]["metadata"] == {}


# ==========================================================
# FAMILY MEDIA
# ==========================================================

def test_family_upload_creates_post_and_lists_media(client, household):
    res = _upload(
        client,
        household["member_headers"],
        family_id=household["family"]["id"],
        metadata=json.dumps({"description": "Day at the lake", "tags": ["summer"]}),
    )
    assert res.status_code == 201
    media = res.json()["media"]
    post = res.json()["post"]

    assert post["content"] == "Day at the lake"
    assert post["mediaUrls"] == [media["url"]]
    assert post["tags"] == ["summer"]

    listing = client.get(
        f"/api/families/{household['family']['id']}/media",
        headers=household["admin_headers"],
    ).json()
    assert listing["count"] == 1
    assert listing["media"][0]["id"] == media["id"]

    videos = client.get(
        f"/api/families/{household['family']['id']}/media",
        params={"type": "video"},
        headers=household["admin_headers"],
    ).json()
    assert videos["count"] == 0


def test_family_media_requires_membership(client, household, make_user):
    _, outsider_headers = make_user()

    res = client.get(f"/api/families/{household['family']['id']}/media", headers=outsider_headers)

    assert res.status_code == 403


# ==========================================================
# MY MEDIA / URL / DELETE
# ==========================================================

def test_list_my_media(client, make_user):
    _, headers = make_user()
    _, other_headers = make_user()

    _upload(client, headers)
    _upload(client, headers, filename="notes.pdf", content=b"%PDF", mime="application/pdf")
    _upload(client, other_headers)

    body = client.get("/api/media", headers=headers).json()
    assert body["count"] == 2

    images = client.get("/api/media", params={"type": "image"}, headers=headers).json()
    assert images["count"] == 1


def test_media_url_uploader_only(client, make_user):
    _, headers = make_user()
    _, other_headers = make_user()
    media = _upload(client, headers).json()["media"]

    res = client.get(f"/api/media/{media['id']}/url", headers=headers)
    assert res.status_code == 200
    assert res.json()["url"] == media["url"]
    assert res.json()["expiresIn"] == settings.SIGNED_URL_EXPIRES

    assert client.get(f"/api/media/{media['id']}/url", headers=other_headers).status_code == 403


@pytest.mark.parametrize("media_id", ["not-a-uuid", "00000000-0000-0000-0000-000000000000"])
def test_unknown_media(client, make_user, media_id):
    _, headers = make_user()

    assert client.delete(f"/api/media/{media_id}", headers=headers).status_code == 404


def test_delete_media_strips_posts_and_blobs(client, household, storage, session_factory):
    res = _upload(client, household["member_headers"], family_id=household["family"]["id"])
    media = res.json()["media"]
    post_id = res.json()["post"]["id"]

    res = client.delete(f"/api/media/{media['id']}", headers=household["admin_headers"])
    assert res.status_code == 403

    res = client.delete(f"/api/media/{media['id']}", headers=household["member_headers"])
    assert res.status_code == 200

    assert not _stored_path(storage, media["url"]).exists()
    assert not _stored_path(storage, media["thumbUrl"]).exists()

    with session_factory() as db:
        post = db.query(Post).filter(Post.id == post_id).first()
        assert post.media_urls == []

    listing = client.get(
        f"/api/families/{household['family']['id']}/media",
        headers=household["admin_headers"],
    ).json()
    assert listing["count"] == 0


def test_delete_media_with_accented_filename(client, household, session_factory):
    res = _upload(client, household["member_headers"], family_id=household["family"]["id"], filename="café.png")
    media = res.json()["media"]
    post_id = res.json()["post"]["id"]

    res = client.delete(f"/api/media/{media['id']}", headers=household["member_headers"])
    assert res.status_code == 200

    with session_factory() as db:
        post = db.query(Post).filter(Post.id == post_id).first()
        assert media["url"] not in post.media_urls
