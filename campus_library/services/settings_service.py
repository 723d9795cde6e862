import logging
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Session
from campus_library.models.loan import LibrarySettings
from campus_library.utils.constants import DEFAULT_FINE_AMOUNT, FINE_INTERVAL_DAYS
from campus_library.utils.errors import BadRequestError

logger = logging.getLogger(__name__)


def get_settings(db: Session, commit: bool = True) -> LibrarySettings:
    """Return the settings row, creating it with defaults on first read.

    Pass commit=False when running inside a larger transaction.
    """
    library_settings = db.query(LibrarySettings).order_by(LibrarySettings.settings_id).first()
    if library_settings is None:
        library_settings = LibrarySettings(
            enable_fines=True,
            fine_amount_per_day=Decimal(DEFAULT_FINE_AMOUNT),
            fine_interval_unit='DAILY',
        )
        db.add(library_settings)
        if commit:
            db.commit()
            db.refresh(library_settings)
        else:
            db.flush()
        logger.info("Created default library settings")
    return library_settings


def update_settings(
    db: Session,
    enable_fines: Optional[bool] = None,
    fine_amount_per_day: Optional[Decimal] = None,
    fine_interval_unit: Optional[str] = None,
    fine_interval_days: Optional[int] = None,
) -> LibrarySettings:
    library_settings = get_settings(db)

    if fine_amount_per_day is not None and fine_amount_per_day <= 0:
        raise BadRequestError("Fine amount must be greater than 0.")

    unit = fine_interval_unit or library_settings.fine_interval_unit
    if unit == 'CUSTOM':
        days = fine_interval_days if fine_interval_days is not None else library_settings.fine_interval_days
        if not days or days <= 0:
            raise BadRequestError("fineIntervalDays must be a positive number for a CUSTOM interval.")
        library_settings.fine_interval_days = days
    elif fine_interval_unit is not None:
        library_settings.fine_interval_days = None

    library_settings.fine_interval_unit = unit
    if enable_fines is not None:
        library_settings.enable_fines = enable_fines
    if fine_amount_per_day is not None:
        library_settings.fine_amount_per_day = fine_amount_per_day

    db.commit()
    db.refresh(library_settings)
    logger.info(
        f"Library settings updated: fines={'on' if library_settings.enable_fines else 'off'}, "
        f"amount={library_settings.fine_amount_per_day}, unit={library_settings.fine_interval_unit}"
    )
    return library_settings


def interval_days(library_settings: LibrarySettings) -> int:
    if library_settings.fine_interval_unit == 'CUSTOM':
        return library_settings.fine_interval_days
    return FINE_INTERVAL_DAYS[library_settings.fine_interval_unit]
