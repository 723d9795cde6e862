from decimal import Decimal
from pydantic import Field, model_validator
from typing import Optional
from .base import CamelModel

class LoanCreate(CamelModel):
    book_id: int
    user_id: int

class ManualFineCreate(CamelModel):
    user_id: int
    book_id: Optional[int] = None
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    reason: str = Field(..., min_length=10, description="Why the fine is issued (at least 10 characters)")

class FineAmountUpdate(CamelModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)

class SettingsUpdate(CamelModel):
    enable_fines: Optional[bool] = None
    fine_amount_per_day: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    fine_interval_unit: Optional[str] = Field(None, pattern="^(DAILY|WEEKLY|MONTHLY|CUSTOM)$")
    fine_interval_days: Optional[int] = Field(None, gt=0)

    @model_validator(mode="after")
    def custom_interval_needs_days(self):
        if self.fine_interval_unit == "CUSTOM" and not self.fine_interval_days:
            raise ValueError("fineIntervalDays is required for a CUSTOM interval")
        return self
