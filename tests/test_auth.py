from tests.conftest import ensure_user


def test_login_with_valid_credentials(client):
    ensure_user(1, password="rahasia1")

    r = client.post("/auth/login", json={"username": "user1", "password": "rahasia1"})

    assert r.status_code == 200
    data = r.get_json()
    assert data["user"]["id"] == 1
    assert data["user"]["role"] == "member"

    me = client.get("/auth/me").get_json()
    assert me["authenticated"] is True
    assert me["user"]["username"] == "user1"


def test_login_rejects_bad_password(client):
    ensure_user(1, password="rahasia1")

    r = client.post("/auth/login", json={"username": "user1", "password": "nope"})

    assert r.status_code == 401
    assert r.get_json()["error"] == "invalid_credentials"


def test_login_requires_fields(client):
    r = client.post("/auth/login", json={"username": "user1"})

    assert r.status_code == 400
    assert r.get_json()["error"] == "missing_fields"


def test_logout_clears_session(client):
    ensure_user(1, password="rahasia1")
    client.post("/auth/login", json={"username": "user1", "password": "rahasia1"})

    assert client.post("/auth/logout").status_code == 200
    assert client.get("/auth/me").get_json() == {"authenticated": False}
