from circulation.extensions import db
from circulation.models.admin_action import AdminAction
from tests.conftest import add_request, ensure_book, ensure_user, login_session


def test_reject_logs_context_and_details(client, app):
    ensure_user(1)
    book = ensure_book()
    req = add_request(1, book.id)
    login_session(client, user_id=10, role="admin")

    resp = client.patch(
        f"/borrow-requests/{req.id}/status",
        json={"status": "rejected", "notes": "not this week"},
        headers={"X-Forwarded-For": "10.0.0.7, 10.0.0.1"},
    )
    assert resp.status_code == 200

    with app.app_context():
        row = db.session.query(AdminAction).order_by(AdminAction.id.desc()).first()
        assert row is not None

        assert row.admin_id == 10
        assert row.action == AdminAction.Actions.BORROW_REJECT
        assert row.target_type == "borrow_request"
        assert row.target_id == req.id

        assert row.endpoint == "borrow_requests.set_status"
        assert row.method == "PATCH"
        assert row.path == f"/borrow-requests/{req.id}/status"
        assert row.ip_address == "10.0.0.7"

        assert row.details == {"book_id": book.id, "member_id": 1, "status": "rejected"}


def test_audit_listing_is_paginated(client):
    login_session(client, user_id=10, role="admin")
    for title in ("A", "B", "C"):
        client.post("/books/", json={
            "title": title,
            "category": "Novel",
            "author": "X",
            "publisher": "Y",
            "publication_year": 2000,
            "page_count": 100,
            "total_stock": 1,
            "shelf_location": "C-3",
        })

    res = client.get("/dashboard/audit?action=book.create&limit=2")
    data = res.get_json()

    assert res.status_code == 200
    assert data["pagination"]["total"] == 3
    assert len(data["data"]) == 2
    assert data["data"][0]["action"] == "book.create"
