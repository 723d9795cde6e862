"""Bulk user import from a spreadsheet or the HR record source.

Both entry points feed the same upsert: users are matched by e-mail, new
accounts get a random password (only its hash is stored), existing accounts
only have their names refreshed.
"""
import logging
import secrets
import string
import zipfile
from typing import BinaryIO, Dict, Iterable, List, Optional
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.orm import Session
from campus_library.models.user import User
from campus_library.services.auth import get_password_hash
from campus_library.services.hr_client import HrClient, get_value
from campus_library.utils.constants import ROLE_USER
from campus_library.utils.errors import BadRequestError

logger = logging.getLogger(__name__)

PASSWORD_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*"
HEADER_ALIASES = {
    "email": "email",
    "mail": "email",
    "firstname": "first_name",
    "first_name": "first_name",
    "lastname": "last_name",
    "last_name": "last_name",
}


def random_password(length: int = 12) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def upsert_users(db: Session, records: Iterable[Dict[str, Optional[str]]]) -> Dict[str, int]:
    result = {"created": 0, "updated": 0, "skipped": 0, "total": 0}
    seen = set()

    for record in records:
        result["total"] += 1
        email = (record.get("email") or "").strip().lower()
        first_name = (record.get("first_name") or "").strip()
        last_name = (record.get("last_name") or "").strip()

        if not email or email in seen:
            result["skipped"] += 1
            continue
        seen.add(email)

        user = db.query(User).filter(User.email == email).first()
        if user is None:
            db.add(User(
                first_name=first_name or "Student",
                last_name=last_name or "User",
                email=email,
                password_hash=get_password_hash(random_password()),
                role=ROLE_USER,
                status='ACTIVE',
            ))
            result["created"] += 1
            continue

        changed = (first_name and user.first_name != first_name) or (last_name and user.last_name != last_name)
        if changed:
            user.first_name = first_name or user.first_name
            user.last_name = last_name or user.last_name
            result["updated"] += 1
        else:
            result["skipped"] += 1

    db.commit()
    logger.info(
        f"User import finished: {result['created']} created, {result['updated']} updated, "
        f"{result['skipped']} skipped of {result['total']}"
    )
    return result


def read_workbook_rows(file: BinaryIO) -> List[Dict[str, Optional[str]]]:
    """Rows of the first sheet keyed by normalised header (email, first_name, last_name)."""
    try:
        workbook = load_workbook(file, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        raise BadRequestError(f"Could not read the spreadsheet: {e}")

    try:
        rows = workbook.active.iter_rows(values_only=True)
        header = next(rows, None)
        if not header:
            raise BadRequestError("The spreadsheet is empty.")
        columns = {}
        for index, title in enumerate(header):
            key = HEADER_ALIASES.get(str(title or "").strip().lower().replace(" ", ""))
            if key:
                columns[key] = index
        if "email" not in columns:
            raise BadRequestError("The spreadsheet needs an 'email' column.")

        records = []
        for row in rows:
            if not any(cell is not None for cell in row):
                continue
            records.append({
                key: (str(row[index]).strip() if index < len(row) and row[index] is not None else None)
                for key, index in columns.items()
            })
        return records
    finally:
        workbook.close()


def import_users_from_workbook(db: Session, file: BinaryIO) -> Dict[str, int]:
    return upsert_users(db, read_workbook_rows(file))


def sync_users_from_hr(db: Session, client: HrClient) -> Dict[str, int]:
    records = [
        {
            "email": get_value(record, "mail", "email"),
            "first_name": get_value(record, "studentFirstName", "firstName"),
            "last_name": get_value(record, "studentLastName", "lastName"),
        }
        for record in client.fetch_all_records()
    ]
    return upsert_users(db, records)
