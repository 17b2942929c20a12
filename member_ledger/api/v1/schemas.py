"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field, field_validator
import datetime as dt
from decimal import Decimal
from typing import Dict, List, Optional

from member_ledger.utils.date_utils import parse_record_date


def _iso_date(value: str) -> str:
    parsed = parse_record_date(value)
    if parsed is None:
        raise ValueError("date must be a valid YYYY-MM-DD calendar date")
    return parsed.isoformat()


# Members and records


class MemberCreate(BaseModel):
    """Request body for POST /v1/members"""

    name: str = Field(..., min_length=1, description="Member name")
    percentage_of_return: Decimal = Field(..., ge=0, description="Default monthly return rate in percent")
    referral_name: Optional[str] = Field(None, description="Name of the member who referred this one")
    referral_percent: Decimal = Field(Decimal("0"), ge=0, description="Referral commission rate in percent")
    unique_number: Optional[str] = None


class DepositCreate(BaseModel):
    """Request body for POST /v1/members/{member_id}/deposits"""

    amount: Decimal = Field(..., ge=0)
    deposit_date: str = Field(..., description="YYYY-MM-DD")
    percentage: Optional[Decimal] = Field(None, ge=0, description="Overrides the member rate for this deposit")
    notes: Optional[str] = None

    @field_validator("deposit_date")
    @classmethod
    def check_deposit_date(cls, value: str) -> str:
        return _iso_date(value)


class WithdrawalCreate(BaseModel):
    """Request body for POST /v1/members/{member_id}/withdrawals"""

    amount: Decimal = Field(..., ge=0)
    withdrawal_date: str = Field(..., description="YYYY-MM-DD")
    notes: Optional[str] = None

    @field_validator("withdrawal_date")
    @classmethod
    def check_withdrawal_date(cls, value: str) -> str:
        return _iso_date(value)


class DepositSchema(BaseModel):
    id: int
    amount: float
    deposit_date: str
    percentage: Optional[float] = None


class WithdrawalSchema(BaseModel):
    id: int
    amount: float
    withdrawal_date: str


class ReturnSchema(BaseModel):
    """Stored return for a member"""

    id: Optional[int] = None
    member_id: int
    return_amount: float
    return_date: dt.date
    interest_days: int
    notes: Optional[str] = None


class MemberResponse(BaseModel):
    """Response for POST /v1/members"""

    id: int
    name: str
    percentage_of_return: float
    referral_name: Optional[str] = None
    referral_percent: float
    unique_number: Optional[str] = None


class MemberDetailResponse(MemberResponse):
    """Response for GET /v1/members/{member_id}"""

    deposits: List[DepositSchema]
    withdrawals: List[WithdrawalSchema]
    returns: List[ReturnSchema]


# Returns


class MemberRequest(BaseModel):
    """Request body naming a single member"""

    member_id: int = Field(..., gt=0, description="Member identifier")


class WindowRequest(MemberRequest):
    """Member plus an optional explicit window (defaults to the current month)"""

    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None


class BatchRequest(BaseModel):
    """Request body for POST /v1/returns/current/batch"""

    member_ids: List[int] = Field(..., min_length=1)


class WithdrawalDetailSchema(BaseModel):
    """Withdrawal inside the anchor month"""

    date: dt.date
    amount: float
    day_of_withdrawal: int


class InterestResponse(BaseModel):
    """Response for POST /v1/returns/interest"""

    member_id: int
    interest: float
    principal: float
    percentage: float
    withdrawal_details: List[WithdrawalDetailSchema]
    skipped_records: int
    calculation_period: str = "30 days"
    start_date: str
    end_date: str


class DepositInterestSchema(BaseModel):
    deposit_id: Optional[int] = None
    amount: float
    adjusted_amount: float
    percentage: float
    interest: float


class CurrentReturnResponse(BaseModel):
    """Response for POST /v1/returns/current"""

    member_id: int
    current_return: float
    interest_days: int
    period_type: str
    period_info: str
    calculation_date: str
    deposit_breakdown: List[DepositInterestSchema] = []


class BatchCurrentReturnResponse(BaseModel):
    """Response for POST /v1/returns/current/batch"""

    current_returns: Dict[int, float]


class NextReturnResponse(BaseModel):
    """Response for POST /v1/returns/next"""

    member_id: int
    next_return_amount: float
    principal: float
    percentage: float
    period: str = "Next Month (1-30)"
    start_date: str
    end_date: str


class MonthlyRunResponse(BaseModel):
    """Response for POST /v1/returns/monthly"""

    message: str
    calculated: bool
    month: Optional[str] = None
    members_calculated: int = 0
    total_returns: float = 0.0
    calculation_date: str


# Referrals


class CommissionLineSchema(BaseModel):
    member_id: int
    member_name: str
    principal_amount: float
    referral_percent: float
    commission_amount: float
    is_direct: bool
    investment_date: Optional[dt.date] = None


class ReferralCommissionSchema(BaseModel):
    referrer_name: str
    total_commission: float
    referred_count: int
    breakdown: List[CommissionLineSchema]


class CommissionSheetResponse(BaseModel):
    """Response for GET /v1/referrals/commissions"""

    period: str
    start_date: str
    end_date: str
    referral_commissions: List[ReferralCommissionSchema]


class ReferralIncomeLineSchema(BaseModel):
    member_id: int
    member_name: str
    interest_earned: float
    referral_percent: float
    referral_income: float


class ReferralIncomeResponse(BaseModel):
    """Response for POST /v1/referrals/income and /v1/referrals/next"""

    referrer_id: int
    referrer_name: str
    total_referral_income: float
    referred_count: int
    breakdown: List[ReferralIncomeLineSchema]
    period: Optional[str] = None
    start_date: str
    end_date: str


# Master sheet


class LedgerEntrySchema(BaseModel):
    """Row of GET /v1/transactions"""

    id: Optional[int] = None
    type: str
    member_id: int
    member_name: str
    amount: float
    date: Optional[dt.date] = None
    percentage: Optional[float] = None
    interest_days: Optional[int] = None
    notes: Optional[str] = None
