"""HTTP tests for profiles, follow relations, search and account changes."""

import pytest

from social.services.session_service import validate_token

from conftest import TEST_SECRET


@pytest.fixture
def ana(client, register):
    register(client, "ana")
    return client


@pytest.fixture
def bob(make_client, register):
    bob_client = make_client()
    register(bob_client, "bob")
    return bob_client


def follow(client, user_at, value=True):
    return client.patch("/user/follow", json={"userAt": user_at, "follow": value})


def test_own_data(ana):
    response = ana.get("/user/data")
    assert response.status_code == 200
    assert response.get_json() == {
        "userName": "Ana",
        "userAt": "ana",
        "followingCount": 0,
        "followersCount": 0,
        "bio": "",
        "icon": "",
    }


def test_own_data_requires_session(client):
    response = client.get("/user/data")
    assert response.status_code == 403
    assert response.get_json() == {"error": "Unauthorized user"}


def test_follow_updates_both_sides(ana, bob, make_client):
    response = follow(ana, "bob")
    assert response.status_code == 200
    assert response.get_json() == {"message": "Ok"}

    assert ana.get("/user/data").get_json()["followingCount"] == 1
    assert bob.get("/user/data").get_json()["followersCount"] == 1

    profile = ana.get("/user/profile/bob").get_json()
    assert profile["followersCount"] == 1
    assert profile["isFollowing"] is True
    assert profile["isHimself"] is False

    assert [u["userAt"] for u in make_client().get("/user/following/ana").get_json()] == ["bob"]
    assert [u["userAt"] for u in make_client().get("/user/followers/bob").get_json()] == ["ana"]

    assert follow(ana, "bob", False).status_code == 200
    assert ana.get("/user/data").get_json()["followingCount"] == 0
    assert bob.get("/user/data").get_json()["followersCount"] == 0
    assert make_client().get("/user/followers/bob").get_json() == []


def test_follow_errors(ana, bob):
    response = follow(ana, "ana")
    assert response.status_code == 400
    assert response.get_json() == {"error": "You can't follow yourself"}

    response = follow(ana, "nobody")
    assert response.status_code == 400
    assert response.get_json() == {"error": "User doesn't exist"}

    assert follow(ana, "bob").status_code == 200
    assert follow(ana, "bob").status_code == 400
    assert bob.get("/user/data").get_json()["followersCount"] == 1

    assert follow(bob, "ana", False).status_code == 400

    response = ana.patch("/user/follow", json={"userAt": "bob", "follow": "yes"})
    assert response.status_code == 400


def test_follow_requires_session(client, bob):
    response = follow(client, "bob")
    assert response.status_code == 403


def test_profile_views(ana, bob, make_client):
    anonymous = make_client().get("/user/profile/@Ana")
    assert anonymous.status_code == 200
    body = anonymous.get_json()
    assert body["userAt"] == "ana"
    assert body["isFollowing"] is False
    assert body["isHimself"] is False

    assert ana.get("/user/profile/ana").get_json()["isHimself"] is True

    assert make_client().get("/user/profile/nobody").status_code == 404
    assert make_client().get("/user/profile/bad-handle").status_code == 404

    broken = make_client()
    broken.set_cookie("auth_key", "garbage")
    assert broken.get("/user/profile/ana").status_code == 403


def test_query(ana, bob, make_client):
    response = make_client().get("/user/query/AN")
    assert response.status_code == 200
    assert [u["userAt"] for u in response.get_json()] == ["ana"]

    assert make_client().get("/user/query/zzz").get_json() == []

    response = make_client().get("/user/query/%20")
    assert response.status_code == 400
    assert response.get_json() == {"error": "Empty query"}


def test_change_password(ana, make_client):
    response = ana.patch("/user/change/password", json={"currentPassword": "Wrong1234", "newPassword": "NewPass123"})
    assert response.status_code == 403

    response = ana.patch("/user/change/password", json={"currentPassword": "Password123", "newPassword": "Password123"})
    assert response.status_code == 400

    response = ana.patch("/user/change/password", json={"currentPassword": "Password123", "newPassword": "bad"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "password too short"}

    response = ana.patch("/user/change/password", json={"currentPassword": "Password123", "newPassword": "NewPass123"})
    assert response.status_code == 200

    other = make_client()
    assert other.post("/user/login", json={"email": "ana@example.com", "password": "Password123"}).status_code == 400
    assert other.post("/user/login", json={"email": "ana@example.com", "password": "NewPass123"}).status_code == 200


def test_change_email_reissues_session(ana, bob, make_client):
    response = ana.patch("/user/change/email", json={"email": "bob@example.com"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "Email already exists"}

    response = ana.patch("/user/change/email", json={"email": "ana@example.com"})
    assert response.status_code == 400

    response = ana.patch("/user/change/email", json={"email": "ana.new@example.com"})
    assert response.status_code == 200
    claim = validate_token(ana.get_cookie("auth_key").value, TEST_SECRET)
    assert claim.email == "ana.new@example.com"
    assert ana.get("/user/data").status_code == 200

    other = make_client()
    assert other.post("/user/login", json={"email": "ana.new@example.com", "password": "Password123"}).status_code == 200


def test_change_user_at_reissues_session(ana, bob, make_client):
    assert follow(bob, "ana").status_code == 200

    response = ana.patch("/user/change/user-at", json={"userAt": "bob"})
    assert response.status_code == 400
    assert response.get_json() == {"error": "UserAt already in use"}

    assert ana.patch("/user/change/user-at", json={"userAt": "ana"}).status_code == 400

    response = ana.patch("/user/change/user-at", json={"userAt": "ana_renamed"})
    assert response.status_code == 200
    assert ana.get("/user/data").get_json()["userAt"] == "ana_renamed"

    assert make_client().get("/user/profile/ana").status_code == 404
    profile = make_client().get("/user/profile/ana_renamed").get_json()
    assert profile["followersCount"] == 1
    assert bob.get("/user/profile/ana_renamed").get_json()["isFollowing"] is True


def test_change_profile(ana):
    icon = "data:image/png;base64,iVBORw0KGgo="
    response = ana.patch("/user/change/profile", json={"userName": "Anita", "bio": "hello there", "icon": icon})
    assert response.status_code == 200

    data = ana.get("/user/data").get_json()
    assert data["userName"] == "Anita"
    assert data["bio"] == "hello there"
    assert data["icon"] == icon

    response = ana.patch("/user/change/profile", json={"userName": "Anita", "bio": "x" * 161, "icon": ""})
    assert response.status_code == 400
    assert response.get_json() == {"error": "bio too long"}

    response = ana.patch("/user/change/profile", json={"userName": "An ita", "bio": "", "icon": ""})
    assert response.status_code == 400


def test_change_profile_requires_session(client):
    response = client.patch("/user/change/profile", json={"userName": "Anita", "bio": "", "icon": ""})
    assert response.status_code == 403
    assert response.get_json() == {"error": "forbidden"}
