import pytest

from circulation.errors import Conflict, NotFound
from circulation.extensions import db
from circulation.models import BorrowStatus, User, UserRole
from circulation.services import user_store
from tests.conftest import add_request, ensure_book, ensure_user, login_session


def _member_fields(username="budi", **extra):
    fields = {"username": username, "password": "rahasia1", "full_name": "Budi Santoso"}
    fields.update(extra)
    return fields


def test_members_get_sequential_numbers(app):
    first = user_store.create_user(_member_fields("budi"))
    second = user_store.create_user(_member_fields("siti"))
    admin = user_store.create_user(_member_fields("root", role=UserRole.ADMIN))

    assert first.member_number == "MEMBER001"
    assert second.member_number == "MEMBER002"
    assert admin.member_number is None


def test_password_is_hashed(app):
    user = user_store.create_user(_member_fields())

    assert user.password_hash != "rahasia1"
    assert user.check_password("rahasia1")
    assert user_store.authenticate("budi", "rahasia1").id == user.id
    assert user_store.authenticate("budi", "wrong") is None
    assert user_store.authenticate("nobody", "rahasia1") is None


def test_duplicate_username_conflicts(app):
    user_store.create_user(_member_fields("budi"))

    with pytest.raises(Conflict):
        user_store.create_user(_member_fields("Budi"))


def test_update_user_fields_and_password(app):
    user = user_store.create_user(_member_fields())

    updated = user_store.update_user(user.id, {"full_name": "Budi S.", "email": None, "password": "baru1234"})

    assert updated.full_name == "Budi S."
    assert updated.check_password("baru1234")


def test_update_missing_user(app):
    with pytest.raises(NotFound):
        user_store.update_user(404, {"full_name": "x"})


def test_update_username_taken(app):
    user_store.create_user(_member_fields("budi"))
    other = user_store.create_user(_member_fields("siti"))

    with pytest.raises(Conflict):
        user_store.update_user(other.id, {"username": "budi"})


def test_delete_user(app):
    user = user_store.create_user(_member_fields())

    assert user_store.delete_user(user.id) is True
    assert db.session.get(User, user.id) is None
    assert user_store.delete_user(user.id) is False


def test_delete_user_with_active_request_is_blocked(app):
    ensure_user(1)
    add_request(1, ensure_book().id, status=BorrowStatus.APPROVED)

    with pytest.raises(Conflict) as exc:
        user_store.delete_user(1)

    assert "cannot delete user with active borrow requests" in exc.value.message.lower()


def test_list_members_excludes_admins(app):
    ensure_user(1)
    ensure_user(2, role="admin")

    assert [u.id for u in user_store.list_members()] == [1]
    assert len(user_store.list_users()) == 2


def test_admin_creates_user_over_http(client):
    login_session(client, user_id=9, role="admin")

    r = client.post("/users/", json={"username": "ani", "password": "rahasia1", "full_name": "Ani"})

    assert r.status_code == 201
    data = r.get_json()
    assert data["role"] == "member"
    assert data["member_number"] == "MEMBER001"
    assert "password" not in data and "password_hash" not in data


def test_create_user_validates_input(client):
    login_session(client, user_id=9, role="admin")

    assert client.post("/users/", json={"username": "ani"}).status_code == 400
    assert client.post("/users/", json={"username": "an", "password": "rahasia1", "full_name": "A"}).status_code == 400
    assert client.post("/users/", json={"username": "ani", "password": "123", "full_name": "A"}).status_code == 400


def test_member_cannot_manage_users(client):
    login_session(client, user_id=1)

    r = client.get("/users/")

    assert r.status_code == 403
    assert r.get_json()["error"] == "forbidden"


def test_admin_cannot_delete_self(client):
    login_session(client, user_id=9, role="admin")

    assert client.delete("/users/9").status_code == 400
