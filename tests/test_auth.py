from jose import jwt

from familyhub.auth import create_access_token, hash_password, verify_password
from familyhub.config import settings


def test_password_round_trip():
    hashed = hash_password("secret123")

    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("secret124", hashed)


def test_verify_against_non_bcrypt_value():
    assert verify_password("secret123", "plain-text") is False


def test_token_carries_subject():
    token = create_access_token({"sub": "user-1"})

    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

    assert payload["sub"] == "user-1"
    assert "exp" in payload


def test_expired_token_is_rejected(client, make_user):
    user, _ = make_user()
    token = create_access_token({"sub": user["id"]}, expires_minutes=-1)

    res = client.get("/api/users/profile", headers={"Authorization": f"Bearer {token}"})

    assert res.status_code == 401
    assert res.json()["message"] == "Not authorized, token failed"


def test_token_without_subject_is_rejected(client):
    token = create_access_token({"role": "admin"})

    res = client.get("/api/users/profile", headers={"Authorization": f"Bearer {token}"})

    assert res.status_code == 401
