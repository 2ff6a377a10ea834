from circulation.security import rate_limit
from tests.conftest import login_session


def test_enforcement_requires_login_for_private_endpoints(client):
    res = client.get("/books/", follow_redirects=False)
    assert res.status_code == 401


def test_enforcement_allows_public_endpoints_without_login(client):
    res = client.get("/health")
    assert res.status_code == 200


def test_enforcement_forbids_dashboard_for_member(client):
    login_session(client)
    res = client.get("/dashboard/stats")
    assert res.status_code == 403


def test_enforcement_allows_dashboard_for_admin(client):
    login_session(client, role="admin")
    res = client.get("/dashboard/stats")
    assert res.status_code == 200


def test_session_of_deleted_user_is_rejected(client):
    with client.session_transaction() as sess:
        sess["user_id"] = 777
        sess["role"] = "admin"

    res = client.get("/dashboard/stats")
    assert res.status_code == 401


def test_rate_limit_window():
    rate_limit.reset()

    assert all(rate_limit.hit("1.2.3.4:auth.login", limit=3, window_sec=60) for _ in range(3))
    assert rate_limit.hit("1.2.3.4:auth.login", limit=3, window_sec=60) is False
    assert rate_limit.hit("5.6.7.8:auth.login", limit=3, window_sec=60) is True

    rate_limit.reset()


def test_rate_limit_applies_outside_testing(app, client):
    rate_limit.reset()
    app.config["TESTING"] = False
    limit, _ = rate_limit.limit_for("auth.login")

    codes = [
        client.post("/auth/login", json={"username": "x", "password": "y"}).status_code
        for _ in range(limit + 1)
    ]

    app.config["TESTING"] = True
    rate_limit.reset()
    assert codes[:limit] == [401] * limit
    assert codes[-1] == 429
