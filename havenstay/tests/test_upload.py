from datetime import timedelta
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError

from havenstay.config import settings
from havenstay.models.user import UserRole
from havenstay.services.auth_service import create_access_token
from havenstay.services.property_service import PropertyService

API = settings.API_PREFIX

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def _upload_path(public_path):
    return Path(settings.UPLOAD_DIR) / public_path[len("/uploads/"):]


def test_owner_uploads_property_photo(client, make_user, make_property, login_as):
    owner = make_user(UserRole.OWNER)
    prop = make_property(owner)
    login_as(owner)

    r = client.post(
        f"{API}/upload/property/{prop.id}",
        files={"photo": ("front.png", PNG_BYTES, "image/png")},
    )
    assert r.status_code == 201, r.text
    body = r.json()
    url = body["url"]
    assert url.startswith(f"/uploads/properties/{prop.id}/") and url.endswith(".png")
    assert body["photos"] == ["/uploads/properties/seed.jpg", url]
    assert _upload_path(url).read_bytes() == PNG_BYTES

    served = client.get(url)
    assert served.status_code == 200
    assert served.content == PNG_BYTES


def test_property_photo_requires_owning_owner(
    client, make_user, make_property, login_as
):
    prop = make_property(make_user(UserRole.OWNER))
    login_as(make_user(UserRole.OWNER))
    r = client.post(
        f"{API}/upload/property/{prop.id}",
        files={"photo": ("front.png", PNG_BYTES, "image/png")},
    )
    assert r.status_code == 403


def test_upload_rejects_non_images(client, make_user, login_as):
    login_as(make_user(UserRole.TRAVELER))
    r = client.post(
        f"{API}/upload/profile",
        files={"photo": ("notes.txt", b"hello", "text/plain")},
    )
    assert r.status_code == 400
    assert r.json() == {"error": "File must be an image"}


def test_upload_requires_photo_field(client, make_user, login_as):
    login_as(make_user(UserRole.TRAVELER))
    r = client.post(
        f"{API}/upload/profile",
        files={"image": ("me.png", PNG_BYTES, "image/png")},
    )
    assert r.status_code == 400


def test_profile_picture_replaces_previous(client, make_user, login_as):
    login_as(make_user(UserRole.TRAVELER))
    first = client.post(
        f"{API}/upload/profile", files={"photo": ("me.jpg", PNG_BYTES, "image/jpeg")}
    )
    assert first.status_code == 201, first.text
    first_path = first.json()["profile_picture"]
    assert _upload_path(first_path).exists()

    second = client.post(
        f"{API}/upload/profile", files={"photo": ("me2.jpg", PNG_BYTES, "image/jpeg")}
    )
    assert second.status_code == 201
    second_path = second.json()["profile_picture"]
    assert second_path != first_path
    assert not _upload_path(first_path).exists()

    me = client.get(f"{API}/auth/me").json()["user"]
    assert me["profile_picture"] == second_path


def test_profile_upload_refuses_unknown_role(client, make_user):
    user = make_user(UserRole.TRAVELER)
    token = create_access_token(user.email, user.id, "admin", timedelta(minutes=5))
    client.cookies.set(settings.SESSION_COOKIE_NAME, token)
    r = client.post(
        f"{API}/upload/profile", files={"photo": ("me.png", PNG_BYTES, "image/png")}
    )
    assert r.status_code == 403
    assert r.json() == {"error": "Insufficient permissions"}


def test_oversized_upload_is_rejected_and_not_kept(
    client, monkeypatch, tmp_path, make_user, login_as
):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 16)
    login_as(make_user(UserRole.TRAVELER))

    r = client.post(
        f"{API}/upload/profile", files={"photo": ("big.png", PNG_BYTES, "image/png")}
    )
    assert r.status_code == 413
    assert r.json() == {"error": "File too large"}
    assert [p for p in tmp_path.rglob("*") if p.is_file()] == []


def test_failed_photo_save_removes_file(
    client, monkeypatch, tmp_path, make_user, make_property, login_as
):
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))

    async def _fail(self, db, prop, photo_url):
        raise SQLAlchemyError("disk full")

    monkeypatch.setattr(PropertyService, "add_photo", _fail)
    owner = make_user(UserRole.OWNER)
    prop = make_property(owner)
    login_as(owner)

    r = client.post(
        f"{API}/upload/property/{prop.id}",
        files={"photo": ("front.png", PNG_BYTES, "image/png")},
    )
    assert r.status_code == 500
    assert r.json() == {"error": "Database error occurred"}
    assert [p for p in tmp_path.rglob("*") if p.is_file()] == []
