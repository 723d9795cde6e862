from decimal import Decimal

import pytest

from campus_library.models import Favorite, Notification
from campus_library.services import (
    book_service,
    dashboard_service,
    favorite_service,
    fine_service,
    loan_service,
    notification_service,
    suggestion_service,
)
from campus_library.utils.errors import BadRequestError, NotFoundError


def test_favorites_add_check_remove(db_session, make_user, make_book):
    user = make_user()
    book = make_book()

    favorite_service.add_favorite(db_session, user.user_id, book.book_id)
    assert favorite_service.is_favorite(db_session, user.user_id, book.book_id) is True
    with pytest.raises(BadRequestError):
        favorite_service.add_favorite(db_session, user.user_id, book.book_id)

    favorite_service.remove_favorite(db_session, user.user_id, book.book_id)
    assert favorite_service.list_user_favorites(db_session, user.user_id) == []
    with pytest.raises(NotFoundError):
        favorite_service.remove_favorite(db_session, user.user_id, book.book_id)


def test_favorite_unknown_book(db_session, make_user):
    with pytest.raises(NotFoundError):
        favorite_service.add_favorite(db_session, make_user().user_id, 404)


def test_notifications_are_private(db_session, make_user):
    owner = make_user()
    other = make_user()
    notification = notification_service.create_notification(db_session, owner.user_id, "Hello")
    db_session.commit()

    with pytest.raises(NotFoundError):
        notification_service.mark_as_read(db_session, notification.notification_id, other.user_id)
    with pytest.raises(NotFoundError):
        notification_service.delete_notification(db_session, notification.notification_id, other.user_id)

    assert notification_service.mark_as_read(db_session, notification.notification_id, owner.user_id).is_read is True


def test_mark_all_and_delete_read(db_session, make_user):
    user = make_user()
    for i in range(3):
        notification_service.create_notification(db_session, user.user_id, f"Message {i}")
    db_session.commit()

    assert notification_service.mark_all_as_read(db_session, user.user_id) == 3
    assert notification_service.mark_all_as_read(db_session, user.user_id) == 0
    assert notification_service.delete_read_notifications(db_session, user.user_id) == 3
    assert notification_service.list_user_notifications(db_session, user.user_id) == []


def test_new_book_notifies_readers_only(db_session, notifier, make_user):
    reader = make_user()
    librarian = make_user(role="LIBRARIAN")

    book = book_service.create_book(db_session, notifier, copies=2, title="Dune", author="Frank Herbert")

    assert book.total_copies == 2
    assert book.status == "AVAILABLE"
    assert db_session.query(Notification).filter(Notification.user_id == reader.user_id).count() == 1
    assert db_session.query(Notification).filter(Notification.user_id == librarian.user_id).count() == 0
    assert notifier.rooms_for("refetch_notifications") == [f"user_{reader.user_id}"]


def test_book_with_open_loan_cannot_be_deleted(db_session, notifier, make_user, make_book):
    book = make_book(copies=2)
    loan_service.create_loan(db_session, book.book_id, make_user().user_id)

    with pytest.raises(BadRequestError):
        book_service.delete_book(db_session, book.book_id)


def test_delete_available_book_drops_favorites(db_session, make_user, make_book):
    book = make_book()
    favorite_service.add_favorite(db_session, make_user().user_id, book.book_id)

    book_service.delete_book(db_session, book.book_id)

    assert db_session.query(Favorite).count() == 0
    with pytest.raises(NotFoundError):
        book_service.get_book(db_session, book.book_id)


def test_copy_status_changes_update_book(db_session, make_book):
    book = make_book(copies=1)
    copy = book_service.list_copies(db_session, book.book_id)[0]

    book_service.set_copy_status(db_session, copy.copy_id, "LOST")
    db_session.refresh(book)
    assert book.status == "BORROWED"

    book = book_service.add_copies(db_session, book.book_id, 2)
    assert book.total_copies == 3
    assert book.available_copies == 2


def test_suggestion_flow(db_session, notifier, make_user):
    librarian = make_user(role="LIBRARIAN")
    reader = make_user()

    suggestion = suggestion_service.create_suggestion(db_session, notifier, reader, "Sapiens", author="Harari")
    assert suggestion.status == "PENDING"
    assert notifier.rooms_for("refetch_notifications") == [f"user_{librarian.user_id}"]

    suggestion = suggestion_service.update_suggestion_status(db_session, notifier, suggestion.suggestion_id, "APPROVED")
    assert suggestion.status == "APPROVED"
    assert notifier.rooms_for("new_notification") == [f"user_{reader.user_id}"]
    assert [s.suggestion_id for s in suggestion_service.list_suggestions(db_session, "APPROVED")] == [suggestion.suggestion_id]


def test_dashboards(db_session, notifier, make_user, make_book):
    reader = make_user()
    make_book(copies=2)
    borrowed = make_book(title="Borrowed", copies=1)
    loan_service.create_loan(db_session, borrowed.book_id, reader.user_id)
    fine_service.create_manual_fine(db_session, notifier, reader.user_id, Decimal("2500"), "Lost the library card")

    stats = dashboard_service.get_librarian_stats(db_session)
    assert stats["totalBookTitles"] == 2
    assert stats["totalBookCopies"] == 3
    assert stats["borrowedCopies"] == 1
    assert stats["availableCopies"] == 2
    assert stats["totalUsers"] == 1
    assert stats["unpaidFinesTotal"] == 2500.0

    assert dashboard_service.get_user_stats(db_session, reader.user_id) == {"activeLoans": 1, "unpaidFines": 1}
