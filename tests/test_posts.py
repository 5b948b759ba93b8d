import uuid

from familyhub.models.comment import Comment
from familyhub.models.like import Like, LikeTarget
from familyhub.models.post import Post, PostEvent, PostFamily


def _create_post(client, household, headers=None, **overrides):
    body = {"content": "First steps!", "familyIds": [household["family"]["id"]], **overrides}
    res = client.post("/api/posts", json=body, headers=headers or household["member_headers"])
    assert res.status_code == 201, res.text
    return res.json()["post"]


# --------------------------------------------------
# CREATE / READ
# --------------------------------------------------

def test_create_post_with_event(client, household):
    event = client.post(
        f"/api/families/{household['family']['id']}/events",
        json={"title": "Zoo trip", "startDate": "2030-03-01T09:00:00", "endDate": "2030-03-01T17:00:00"},
        headers=household["admin_headers"],
    ).json()["event"]

    post = _create_post(client, household, eventIds=[event["id"]], type="memory", tags=["zoo"])

    assert post["type"] == "memory"
    assert [f["id"] for f in post["families"]] == [household["family"]["id"]]
    assert [e["id"] for e in post["events"]] == [event["id"]]
    assert post["author"]["firstName"] == "Bob"

    feed = client.get(f"/api/events/{event['id']}/posts", headers=household["admin_headers"]).json()
    assert feed["count"] == 1


def test_create_post_validation(client, household, make_user, make_family):
    res = client.post("/api/posts", json={"content": "", "familyIds": [household["family"]["id"]]},
                      headers=household["member_headers"])
    assert res.status_code == 400

    res = client.post("/api/posts", json={"content": "hi", "familyIds": []}, headers=household["member_headers"])
    assert res.status_code == 400

    _, other_headers = make_user()
    foreign = make_family(other_headers, name="Others")
    res = client.post(
        "/api/posts",
        json={"content": "hi", "familyIds": [household["family"]["id"], foreign["id"]]},
        headers=household["member_headers"],
    )
    assert res.status_code == 403

    res = client.post(
        "/api/posts",
        json={"content": "hi", "familyIds": [household["family"]["id"]], "eventIds": [str(uuid.uuid4())]},
        headers=household["member_headers"],
    )
    assert res.status_code == 404


def test_get_post_privacy_gate(client, household, make_user):
    post = _create_post(client, household)
    public = _create_post(client, household, content="Hello world", privacy="public")
    _, outsider_headers = make_user()

    assert client.get(f"/api/posts/{post['id']}", headers=outsider_headers).status_code == 403
    assert client.get(f"/api/posts/{public['id']}", headers=outsider_headers).status_code == 200

    res = client.get(f"/api/posts/{post['id']}", headers=household["admin_headers"])
    assert res.status_code == 200
    detail = res.json()["post"]
    assert detail["likesCount"] == 0
    assert detail["userLiked"] is False
    assert detail["comments"] == []


def test_update_post_creator_only(client, household):
    post = _create_post(client, household)

    res = client.put(f"/api/posts/{post['id']}", json={"content": "edited"}, headers=household["admin_headers"])
    assert res.status_code == 403

    res = client.put(
        f"/api/posts/{post['id']}",
        json={"content": "edited", "tags": ["baby"]},
        headers=household["member_headers"],
    )
    assert res.status_code == 200
    assert res.json()["post"]["content"] == "edited"
    assert res.json()["post"]["tags"] == ["baby"]


def _foreign_event(client, make_user, make_family):
    _, stranger_headers = make_user(first_name="Carl")
    family = make_family(stranger_headers, name="Joneses")
    event = client.post(
        f"/api/families/{family['id']}/events",
        json={"title": "Barbecue", "startDate": "2030-06-01T12:00:00", "endDate": "2030-06-01T16:00:00"},
        headers=stranger_headers,
    ).json()["event"]
    return family, event


def test_create_post_with_foreign_event(client, household, make_user, make_family, session_factory):
    _, event = _foreign_event(client, make_user, make_family)

    res = client.post(
        "/api/posts",
        json={"content": "Crashing the party", "familyIds": [household["family"]["id"]], "eventIds": [event["id"]]},
        headers=household["member_headers"],
    )

    assert res.status_code == 403
    with session_factory() as db:
        assert db.query(Post).count() == 0


def test_update_post_is_all_or_nothing(client, household, make_user, make_family, session_factory):
    second = make_family(household["member_headers"], name="Bobs")
    post = _create_post(client, household)
    _, event = _foreign_event(client, make_user, make_family)

    res = client.put(
        f"/api/posts/{post['id']}",
        json={"content": "changed", "familyIds": [second["id"]], "eventIds": [event["id"]]},
        headers=household["member_headers"],
    )
    assert res.status_code == 403

    with session_factory() as db:
        stored = db.query(Post).filter(Post.id == post["id"]).first()
        assert stored.content == "First steps!"
        links = db.query(PostFamily).filter(PostFamily.post_id == post["id"]).all()
        assert [link.family_id for link in links] == [household["family"]["id"]]
        assert db.query(PostEvent).filter(PostEvent.post_id == post["id"]).count() == 0


def test_family_feed_pagination_and_type(client, household, make_user):
    for i in range(3):
        _create_post(client, household, content=f"post {i}")
    _create_post(client, household, content="big news", type="announcement")

    url = f"/api/families/{household['family']['id']}/posts"

    page = client.get(url, params={"page": 1, "limit": 2}, headers=household["admin_headers"]).json()
    assert page["count"] == 4
    assert page["totalPages"] == 2
    assert page["currentPage"] == 1
    assert len(page["posts"]) == 2

    only = client.get(url, params={"type": "announcement"}, headers=household["admin_headers"]).json()
    assert [p["content"] for p in only["posts"]] == ["big news"]

    _, outsider_headers = make_user()
    assert client.get(url, headers=outsider_headers).status_code == 403


# --------------------------------------------------
# LIKES
# --------------------------------------------------

def test_like_toggle_and_reaction_change(client, household, session_factory):
    post = _create_post(client, household)
    url = f"/api/posts/{post['id']}/like"
    headers = household["admin_headers"]

    res = client.post(url, json={"reaction": "love"}, headers=headers)
    assert res.json()["isLiked"] is True
    assert res.json()["likesCount"] == 1

    res = client.post(url, json={"reaction": "laugh"}, headers=headers)
    assert res.json()["isLiked"] is True
    assert res.json()["reaction"] == "laugh"

    with session_factory() as db:
        likes = db.query(Like).filter(*Like.for_target(LikeTarget.post(post["id"]))).all()
        assert [like.reaction for like in likes] == ["laugh"]

    res = client.post(url, json={"reaction": "laugh"}, headers=headers)
    assert res.json()["isLiked"] is False
    assert res.json()["likesCount"] == 0

    with session_factory() as db:
        assert db.query(Like).filter(*Like.for_target(LikeTarget.post(post["id"]))).count() == 0


def test_like_defaults_to_like(client, household):
    post = _create_post(client, household)

    res = client.post(f"/api/posts/{post['id']}/like", headers=household["admin_headers"])

    assert res.status_code == 200
    assert res.json()["reaction"] == "like"

    detail = client.get(f"/api/posts/{post['id']}", headers=household["admin_headers"]).json()["post"]
    assert detail["likesCount"] == 1
    assert detail["userLiked"] is True
    assert detail["userReaction"] == "like"


# --------------------------------------------------
# COMMENTS
# --------------------------------------------------

def test_comments_and_replies(client, household):
    post = _create_post(client, household)
    url = f"/api/posts/{post['id']}/comments"

    top = client.post(url, json={"content": "So cute"}, headers=household["admin_headers"])
    assert top.status_code == 201
    top = top.json()["comment"]

    reply = client.post(url, json={"content": "Thanks!", "parentId": top["id"]}, headers=household["member_headers"])
    assert reply.status_code == 201
    assert reply.json()["comment"]["parentId"] == top["id"]

    listing = client.get(url, headers=household["member_headers"]).json()
    assert listing["count"] == 1
    assert listing["comments"][0]["id"] == top["id"]
    assert [r["content"] for r in listing["comments"][0]["replies"]] == ["Thanks!"]

    detail = client.get(f"/api/posts/{post['id']}", headers=household["member_headers"]).json()["post"]
    assert detail["comments"][0]["replies"][0]["author"]["firstName"] == "Bob"


def test_comment_validation(client, household):
    post = _create_post(client, household)
    other = _create_post(client, household, content="another")
    url = f"/api/posts/{post['id']}/comments"

    assert client.post(url, json={"content": ""}, headers=household["admin_headers"]).status_code == 400
    assert client.post(url, json={"content": "x" * 1001}, headers=household["admin_headers"]).status_code == 400

    foreign = client.post(
        f"/api/posts/{other['id']}/comments",
        json={"content": "elsewhere"},
        headers=household["admin_headers"],
    ).json()["comment"]

    res = client.post(url, json={"content": "reply", "parentId": foreign["id"]}, headers=household["admin_headers"])
    assert res.status_code == 400


# --------------------------------------------------
# DELETE
# --------------------------------------------------

def test_delete_post_cascades(client, household, session_factory):
    event = client.post(
        f"/api/families/{household['family']['id']}/events",
        json={"title": "Zoo trip", "startDate": "2030-03-01T09:00:00", "endDate": "2030-03-01T17:00:00"},
        headers=household["admin_headers"],
    ).json()["event"]
    post = _create_post(client, household, eventIds=[event["id"]])

    comment = client.post(
        f"/api/posts/{post['id']}/comments", json={"content": "Nice"}, headers=household["admin_headers"]
    ).json()["comment"]
    client.post(
        f"/api/posts/{post['id']}/comments",
        json={"content": "Agreed", "parentId": comment["id"]},
        headers=household["member_headers"],
    )
    client.post(f"/api/posts/{post['id']}/like", headers=household["admin_headers"])

    with session_factory() as db:
        target = LikeTarget("comment", comment["id"])
        db.add(Like(user_id=household["member"]["id"], target_type=target.kind, target_id=target.id))
        db.commit()

    # Family admin may delete a member's post
    res = client.delete(f"/api/posts/{post['id']}", headers=household["admin_headers"])
    assert res.status_code == 200

    with session_factory() as db:
        assert db.query(Post).filter(Post.id == post["id"]).count() == 0
        assert db.query(Comment).filter(Comment.post_id == post["id"]).count() == 0
        assert db.query(PostFamily).filter(PostFamily.post_id == post["id"]).count() == 0
        assert db.query(PostEvent).filter(PostEvent.post_id == post["id"]).count() == 0
        assert db.query(Like).count() == 0

    assert client.get(f"/api/posts/{post['id']}", headers=household["admin_headers"]).status_code == 404


def test_delete_post_forbidden_for_plain_member(client, household):
    post = _create_post(client, household, headers=household["admin_headers"])

    res = client.delete(f"/api/posts/{post['id']}", headers=household["member_headers"])

    assert res.status_code == 403
