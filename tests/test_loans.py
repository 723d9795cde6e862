from datetime import timedelta
from decimal import Decimal

import pytest

from campus_library.models import BookCopy, Fine, Loan, Notification
from campus_library.services import loan_service
from campus_library.services.settings_service import update_settings
from campus_library.utils.errors import BadRequestError, ForbiddenError, NotFoundError
from campus_library.utils.timezone import now_local


def _make_overdue(db_session, loan, days):
    loan.due_date = now_local() - timedelta(days=days)
    db_session.commit()


def test_create_loan_borrows_first_available_copy(db_session, make_book, make_user):
    book = make_book(copies=2)
    user = make_user()

    loan = loan_service.create_loan(db_session, book.book_id, user.user_id)

    assert loan.status == "ACTIVE"
    assert loan.renewal_count == 0
    copy = db_session.get(BookCopy, loan.copy_id)
    assert copy.status == "BORROWED"
    db_session.refresh(book)
    assert book.available_copies == 1
    assert book.status == "AVAILABLE"


def test_create_loan_due_in_fourteen_days(db_session, make_book, make_user):
    book = make_book()
    user = make_user()

    loan = loan_service.create_loan(db_session, book.book_id, user.user_id)

    assert (loan.due_date - loan.borrowed_at).days == 14


def test_last_copy_marks_book_borrowed(db_session, make_book, make_user):
    book = make_book(copies=1)
    loan_service.create_loan(db_session, book.book_id, make_user().user_id)

    db_session.refresh(book)
    assert book.status == "BORROWED"
    with pytest.raises(BadRequestError):
        loan_service.create_loan(db_session, book.book_id, make_user().user_id)


def test_borrowing_limit(db_session, make_book, make_user):
    user = make_user()
    for i in range(3):
        loan_service.create_loan(db_session, make_book(title=f"Book {i}").book_id, user.user_id)

    extra = make_book(title="One too many")
    with pytest.raises(BadRequestError) as exc:
        loan_service.create_loan(db_session, extra.book_id, user.user_id)
    assert "up to 3" in exc.value.message

    db_session.refresh(extra)
    assert extra.available_copies == 1
    assert db_session.query(Loan).filter(Loan.user_id == user.user_id).count() == 3


def test_overdue_loan_blocks_new_borrowing(db_session, make_book, make_user):
    user = make_user()
    loan = loan_service.create_loan(db_session, make_book().book_id, user.user_id)
    _make_overdue(db_session, loan, 2)

    with pytest.raises(BadRequestError):
        loan_service.create_loan(db_session, make_book(title="Another").book_id, user.user_id)


def test_create_loan_unknown_book_or_user(db_session, make_book, make_user):
    with pytest.raises(NotFoundError):
        loan_service.create_loan(db_session, 404, make_user().user_id)
    with pytest.raises(NotFoundError):
        loan_service.create_loan(db_session, make_book().book_id, 404)


def test_initiate_return_notifies_librarians(db_session, notifier, make_book, make_user):
    librarian = make_user(role="LIBRARIAN")
    user = make_user()
    loan = loan_service.create_loan(db_session, make_book().book_id, user.user_id)

    loan = loan_service.initiate_return(db_session, notifier, loan.loan_id, user.user_id)

    assert loan.status == "RETURN_PENDING"
    assert db_session.get(BookCopy, loan.copy_id).status == "BORROWED"
    assert db_session.query(Notification).filter(Notification.user_id == librarian.user_id).count() == 1
    assert notifier.rooms_for("refetch_notifications") == [f"user_{librarian.user_id}"]


def test_initiate_return_only_by_borrower(db_session, notifier, make_book, make_user):
    loan = loan_service.create_loan(db_session, make_book().book_id, make_user().user_id)

    with pytest.raises(ForbiddenError):
        loan_service.initiate_return(db_session, notifier, loan.loan_id, make_user().user_id)


def test_confirm_return_on_time_frees_copy_without_fine(db_session, notifier, make_book, make_user):
    book = make_book()
    user = make_user()
    loan = loan_service.create_loan(db_session, book.book_id, user.user_id)
    loan_service.initiate_return(db_session, notifier, loan.loan_id, user.user_id)

    loan = loan_service.confirm_return(db_session, notifier, loan.loan_id)

    assert loan.status == "RETURNED"
    assert loan.returned_at is not None
    assert db_session.get(BookCopy, loan.copy_id).status == "AVAILABLE"
    db_session.refresh(book)
    assert book.status == "AVAILABLE"
    assert db_session.query(Fine).count() == 0
    assert notifier.rooms_for("new_notification") == []


def test_confirm_late_return_issues_fine(db_session, notifier, make_book, make_user):
    user = make_user()
    loan = loan_service.create_loan(db_session, make_book().book_id, user.user_id)
    _make_overdue(db_session, loan, 3)
    loan_service.initiate_return(db_session, notifier, loan.loan_id, user.user_id)

    loan_service.confirm_return(db_session, notifier, loan.loan_id)

    fine = db_session.query(Fine).one()
    assert fine.amount == Decimal("15000")
    assert fine.loan_id == loan.loan_id
    assert fine.is_paid is False
    notification = db_session.query(Notification).filter(Notification.user_id == user.user_id).one()
    assert notification.type == "FINE"
    assert notifier.rooms_for("new_notification") == [f"user_{user.user_id}"]


def test_confirm_late_return_weekly_interval(db_session, notifier, make_book, make_user):
    update_settings(db_session, fine_amount_per_day=Decimal("1000"), fine_interval_unit="WEEKLY")
    user = make_user()
    loan = loan_service.create_loan(db_session, make_book().book_id, user.user_id)
    _make_overdue(db_session, loan, 8)
    loan_service.initiate_return(db_session, notifier, loan.loan_id, user.user_id)

    loan_service.confirm_return(db_session, notifier, loan.loan_id)

    assert db_session.query(Fine).one().amount == Decimal("2000")


def test_confirm_late_return_with_fines_disabled(db_session, notifier, make_book, make_user):
    update_settings(db_session, enable_fines=False)
    user = make_user()
    loan = loan_service.create_loan(db_session, make_book().book_id, user.user_id)
    _make_overdue(db_session, loan, 5)
    loan_service.initiate_return(db_session, notifier, loan.loan_id, user.user_id)

    loan_service.confirm_return(db_session, notifier, loan.loan_id)

    assert db_session.query(Fine).count() == 0


def test_confirm_requires_pending_return(db_session, notifier, make_book, make_user):
    loan = loan_service.create_loan(db_session, make_book().book_id, make_user().user_id)

    with pytest.raises(BadRequestError):
        loan_service.confirm_return(db_session, notifier, loan.loan_id)


def test_renewal_approval_extends_due_date(db_session, notifier, make_book, make_user):
    user = make_user()
    loan = loan_service.create_loan(db_session, make_book().book_id, user.user_id)
    original_due = loan.due_date

    loan = loan_service.request_renewal(db_session, notifier, loan.loan_id, user.user_id)
    assert loan.renewal_requested is True
    with pytest.raises(BadRequestError):
        loan_service.request_renewal(db_session, notifier, loan.loan_id, user.user_id)

    loan = loan_service.approve_renewal(db_session, notifier, loan.loan_id)

    assert loan.renewal_requested is False
    assert loan.renewal_count == 1
    assert (loan.due_date - original_due).days == 14
    assert f"user_{user.user_id}" in notifier.rooms_for("new_notification")


def test_renewal_rejection_keeps_due_date(db_session, notifier, make_book, make_user):
    user = make_user()
    loan = loan_service.create_loan(db_session, make_book().book_id, user.user_id)
    original_due = loan.due_date
    loan_service.request_renewal(db_session, notifier, loan.loan_id, user.user_id)

    loan = loan_service.reject_renewal(db_session, notifier, loan.loan_id)

    assert loan.renewal_requested is False
    assert loan.renewal_count == 0
    assert loan.due_date == original_due
    with pytest.raises(BadRequestError):
        loan_service.approve_renewal(db_session, notifier, loan.loan_id)


def test_overdue_sweep_flags_and_notifies(db_session, notifier, make_book, make_user):
    late_reader = make_user()
    reminded_reader = make_user()
    relaxed_reader = make_user()
    late = loan_service.create_loan(db_session, make_book().book_id, late_reader.user_id)
    due_tomorrow = loan_service.create_loan(db_session, make_book(title="Tomorrow").book_id, reminded_reader.user_id)
    on_time = loan_service.create_loan(db_session, make_book(title="Fresh").book_id, relaxed_reader.user_id)
    _make_overdue(db_session, late, 1)
    due_tomorrow.due_date = now_local() + timedelta(days=1)
    db_session.commit()

    flagged = loan_service.mark_overdue_loans(db_session, notifier)

    assert [loan.loan_id for loan in flagged] == [late.loan_id]
    db_session.refresh(due_tomorrow)
    db_session.refresh(on_time)
    assert due_tomorrow.status == "ACTIVE"
    assert on_time.status == "ACTIVE"
    assert db_session.query(Notification).filter(Notification.user_id == late_reader.user_id).one().type == "FINE"
    assert db_session.query(Notification).filter(Notification.user_id == reminded_reader.user_id).one().type == "WARNING"
    assert db_session.query(Notification).filter(Notification.user_id == relaxed_reader.user_id).count() == 0
    assert sorted(notifier.rooms_for("new_notification")) == sorted(
        [f"user_{late_reader.user_id}", f"user_{reminded_reader.user_id}"]
    )
    assert db_session.query(Fine).count() == 0


def test_overdue_sweep_skips_loans_already_flagged(db_session, notifier, make_book, make_user):
    loan = loan_service.create_loan(db_session, make_book().book_id, make_user().user_id)
    _make_overdue(db_session, loan, 2)
    loan_service.mark_overdue_loans(db_session, notifier)
    notifier.events.clear()

    assert loan_service.mark_overdue_loans(db_session, notifier) == []
    assert notifier.events == []


def test_list_overdue_loans_is_read_only(db_session, make_book, make_user):
    late = loan_service.create_loan(db_session, make_book().book_id, make_user().user_id)
    loan_service.create_loan(db_session, make_book(title="Fresh").book_id, make_user().user_id)
    _make_overdue(db_session, late, 1)

    overdue = loan_service.list_overdue_loans(db_session)

    assert [loan.loan_id for loan in overdue] == [late.loan_id]
    db_session.refresh(late)
    assert late.status == "ACTIVE"


def test_approved_renewal_clears_overdue_status(db_session, notifier, make_book, make_user):
    user = make_user()
    loan = loan_service.create_loan(db_session, make_book().book_id, user.user_id)
    loan_service.request_renewal(db_session, notifier, loan.loan_id, user.user_id)
    _make_overdue(db_session, loan, 1)
    loan_service.mark_overdue_loans(db_session, notifier)

    loan = loan_service.approve_renewal(db_session, notifier, loan.loan_id)

    assert loan.status == "ACTIVE"
    assert loan.loan_id not in [late.loan_id for late in loan_service.list_overdue_loans(db_session)]
    another = loan_service.create_loan(db_session, make_book(title="Another").book_id, user.user_id)
    assert another.status == "ACTIVE"


def test_renewal_still_past_due_stays_overdue(db_session, notifier, make_book, make_user):
    user = make_user()
    loan = loan_service.create_loan(db_session, make_book().book_id, user.user_id)
    loan_service.request_renewal(db_session, notifier, loan.loan_id, user.user_id)
    _make_overdue(db_session, loan, 20)
    loan_service.mark_overdue_loans(db_session, notifier)

    loan = loan_service.approve_renewal(db_session, notifier, loan.loan_id)

    assert loan.status == "OVERDUE"
    assert loan.renewal_count == 1


def test_return_cancels_pending_renewal(db_session, notifier, make_book, make_user):
    user = make_user()
    loan = loan_service.create_loan(db_session, make_book().book_id, user.user_id)
    loan_service.request_renewal(db_session, notifier, loan.loan_id, user.user_id)
    _make_overdue(db_session, loan, 5)

    loan = loan_service.initiate_return(db_session, notifier, loan.loan_id, user.user_id)
    assert loan.renewal_requested is False
    with pytest.raises(BadRequestError):
        loan_service.approve_renewal(db_session, notifier, loan.loan_id)
    with pytest.raises(BadRequestError):
        loan_service.reject_renewal(db_session, notifier, loan.loan_id)

    loan_service.confirm_return(db_session, notifier, loan.loan_id)

    assert db_session.query(Fine).count() == 1
    assert db_session.query(Fine).one().amount == Decimal("25000")


def test_renewal_decision_rejected_on_pending_return(db_session, notifier, make_book, make_user):
    user = make_user()
    loan = loan_service.create_loan(db_session, make_book().book_id, user.user_id)
    loan_service.request_renewal(db_session, notifier, loan.loan_id, user.user_id)
    # Stale flag left on a loan that has already been handed in
    loan.status = "RETURN_PENDING"
    db_session.commit()
    original_due = loan.due_date

    with pytest.raises(BadRequestError):
        loan_service.approve_renewal(db_session, notifier, loan.loan_id)

    db_session.refresh(loan)
    assert loan.due_date == original_due
    assert loan.renewal_count == 0
