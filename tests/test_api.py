from datetime import timedelta
from decimal import Decimal

from campus_library.models import Fine, Loan
from campus_library.services.auth import get_password_hash
from campus_library.utils.timezone import now_local


def test_root_and_health(client):
    assert client.get("/").json()["message"] == "Campus Library API"
    assert client.get("/api/health").json() == {"status": "healthy"}


def test_login_and_me(client, make_user):
    make_user(email="reader@campus.edu", password_hash=get_password_hash("secret123"))

    response = client.post("/api/v1/auth/login", json={"email": "Reader@campus.edu", "password": "secret123"})
    assert response.status_code == 200
    token = response.json()["accessToken"]

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["email"] == "reader@campus.edu"


def test_wrong_password(client, make_user):
    make_user(email="reader@campus.edu", password_hash=get_password_hash("secret123"))

    response = client.post("/api/v1/auth/login", json={"email": "reader@campus.edu", "password": "nope"})

    assert response.status_code == 401
    assert response.json() == {"error": True, "message": "Incorrect email or password"}


def test_missing_token(client):
    response = client.get("/api/v1/loans/my")
    assert response.status_code == 401
    assert response.json()["error"] is True


def test_reader_cannot_use_staff_endpoints(client, make_user, auth_headers):
    response = client.get("/api/v1/fines", headers=auth_headers(make_user()))
    assert response.status_code == 403


def test_validation_errors_are_400(client, make_user, auth_headers):
    librarian = make_user(role="LIBRARIAN")

    response = client.post("/api/v1/loans", json={"bookId": "abc"}, headers=auth_headers(librarian))

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation failed"
    assert any(message.startswith("bookId") for message in body["messages"])
    assert any(message.startswith("userId") for message in body["messages"])


def test_loan_lifecycle_over_http(client, make_user, make_book, auth_headers):
    librarian = make_user(role="LIBRARIAN")
    reader = make_user()
    book = make_book()

    created = client.post(
        "/api/v1/loans",
        json={"bookId": book.book_id, "userId": reader.user_id},
        headers=auth_headers(librarian),
    )
    assert created.status_code == 201
    loan_id = created.json()["id"]
    assert created.json()["status"] == "ACTIVE"

    renewal = client.post(f"/api/v1/loans/{loan_id}/renewal", headers=auth_headers(reader))
    assert renewal.status_code == 200
    assert set(renewal.json()) == {"message", "loan"}

    approved = client.post(f"/api/v1/loans/{loan_id}/renewal/approve", headers=auth_headers(librarian))
    assert approved.json()["loan"]["renewalCount"] == 1

    returned = client.post(f"/api/v1/loans/{loan_id}/return", headers=auth_headers(reader))
    assert returned.json()["status"] == "RETURN_PENDING"

    confirmed = client.post(f"/api/v1/loans/{loan_id}/confirm", headers=auth_headers(librarian))
    assert confirmed.json()["status"] == "RETURNED"


def test_unavailable_book_is_a_client_error(client, make_user, make_book, auth_headers):
    librarian = make_user(role="LIBRARIAN")
    book = make_book(copies=0)

    response = client.post(
        "/api/v1/loans",
        json={"bookId": book.book_id, "userId": make_user().user_id},
        headers=auth_headers(librarian),
    )

    assert response.status_code == 400
    assert response.json()["error"] is True


def test_unknown_loan_is_404(client, make_user, auth_headers):
    response = client.post("/api/v1/loans/999/confirm", headers=auth_headers(make_user(role="LIBRARIAN")))
    assert response.status_code == 404
    assert response.json() == {"error": True, "message": "Loan not found."}


def test_settings_custom_interval_needs_days(client, make_user, auth_headers):
    librarian = make_user(role="LIBRARIAN")

    rejected = client.patch("/api/v1/settings", json={"fineIntervalUnit": "CUSTOM"}, headers=auth_headers(librarian))
    assert rejected.status_code == 400

    accepted = client.patch(
        "/api/v1/settings",
        json={"fineIntervalUnit": "CUSTOM", "fineIntervalDays": 3},
        headers=auth_headers(librarian),
    )
    assert accepted.status_code == 200
    assert accepted.json()["fineIntervalDays"] == 3


def test_manual_fine_and_payment(client, make_user, auth_headers, notifier):
    librarian = make_user(role="LIBRARIAN")
    reader = make_user()

    short = client.post(
        "/api/v1/fines/manual",
        json={"userId": reader.user_id, "amount": 1000, "reason": "short"},
        headers=auth_headers(librarian),
    )
    assert short.status_code == 400

    created = client.post(
        "/api/v1/fines/manual",
        json={"userId": reader.user_id, "amount": 1000, "reason": "Lost the library card"},
        headers=auth_headers(librarian),
    )
    assert created.status_code == 201
    fine_id = created.json()["id"]

    unpaid = client.get("/api/v1/fines", params={"isPaid": "false"}, headers=auth_headers(librarian))
    assert [f["id"] for f in unpaid.json()] == [fine_id]

    paid = client.post(f"/api/v1/fines/{fine_id}/pay", headers=auth_headers(librarian))
    assert paid.status_code == 200
    assert paid.json()["data"]["isPaid"] is True

    again = client.post(f"/api/v1/fines/{fine_id}/pay", headers=auth_headers(librarian))
    assert again.status_code == 400
    assert notifier.rooms_for("new_notification") == [f"user_{reader.user_id}"]


def test_categories_endpoint_uses_cache(client, cache, make_category):
    make_category("Biology")

    first = client.get("/api/v1/categories")
    assert [c["name"] for c in first.json()] == ["Biology"]
    assert cache.exists("categories:all")


def test_feed_endpoint(client, make_user, make_channel_post, auth_headers):
    _, channel, _ = make_channel_post()
    reader = make_user()

    follow = client.post(f"/api/v1/channels/{channel.channel_id}/follow", headers=auth_headers(reader))
    assert follow.json()["isFollowed"] is True

    feed = client.get("/api/v1/feed", params={"page": 1, "limit": 5}, headers=auth_headers(reader))
    assert feed.status_code == 200
    assert feed.json()["meta"] == {"total": 1, "page": 1, "limit": 5, "totalPages": 1}


def test_reaction_endpoint(client, make_user, make_channel_post, auth_headers):
    _, _, post = make_channel_post()

    response = client.post(
        "/api/v1/reactions",
        json={"postId": post.post_id, "emoji": "👍"},
        headers=auth_headers(make_user()),
    )

    assert response.status_code == 200
    assert response.json()["reactions"] == [{"emoji": "👍", "count": 1}]


def test_custom_interval_applies_to_confirmed_returns(client, db_session, make_user, make_book, auth_headers):
    librarian = make_user(role="LIBRARIAN")
    reader = make_user()
    saved = client.patch(
        "/api/v1/settings",
        json={"fineAmountPerDay": 1000, "fineIntervalUnit": "CUSTOM", "fineIntervalDays": 5},
        headers=auth_headers(librarian),
    )
    assert saved.status_code == 200
    loan_id = client.post(
        "/api/v1/loans",
        json={"bookId": make_book().book_id, "userId": reader.user_id},
        headers=auth_headers(librarian),
    ).json()["id"]
    loan = db_session.get(Loan, int(loan_id))
    loan.due_date = now_local() - timedelta(days=11)
    db_session.commit()

    client.post(f"/api/v1/loans/{loan_id}/return", headers=auth_headers(reader))
    confirmed = client.post(f"/api/v1/loans/{loan_id}/confirm", headers=auth_headers(librarian))

    assert confirmed.status_code == 200
    assert db_session.query(Fine).one().amount == Decimal("3000")


def test_overdue_listing_and_sweep(client, db_session, notifier, make_user, make_book, auth_headers):
    librarian = make_user(role="LIBRARIAN")
    reader = make_user()
    loan_id = client.post(
        "/api/v1/loans",
        json={"bookId": make_book().book_id, "userId": reader.user_id},
        headers=auth_headers(librarian),
    ).json()["id"]
    loan = db_session.get(Loan, int(loan_id))
    loan.due_date = now_local() - timedelta(days=2)
    db_session.commit()

    listed = client.get("/api/v1/loans/overdue", headers=auth_headers(librarian))
    assert [item["id"] for item in listed.json()] == [loan_id]
    assert listed.json()[0]["status"] == "ACTIVE"

    swept = client.post("/api/v1/loans/overdue/sweep", headers=auth_headers(librarian))
    assert swept.status_code == 200
    assert [item["status"] for item in swept.json()["data"]] == ["OVERDUE"]
    assert notifier.rooms_for("new_notification") == [f"user_{reader.user_id}"]

    assert client.post("/api/v1/loans/overdue/sweep", headers=auth_headers(reader)).status_code == 403
