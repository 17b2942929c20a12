"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Tuple, Union

# Dates arrive from the record store as ISO strings ("YYYY-MM-DD", possibly
# with a time suffix) or as already-parsed dates.
RecordDate = Union[str, date, None]


@dataclass(frozen=True)
class Deposit:
    """Money placed by a member; `rate` overrides the member default when set"""

    amount: Decimal
    date: RecordDate
    rate: Optional[Decimal] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class Withdrawal:
    """Money taken out by a member"""

    amount: Decimal
    date: RecordDate
    id: Optional[int] = None


@dataclass(frozen=True)
class BillingWindow:
    """One calendar month; `end` is the last instant of its final day"""

    start: datetime
    end: datetime
    month_key: Optional[str] = None


@dataclass(frozen=True)
class AdjustedDeposit:
    """Parsed deposit plus the principal left after FIFO withdrawal consumption"""

    date: date
    amount: Decimal
    rate: Decimal
    current_amount: Decimal
    id: Optional[int] = None

    @property
    def month_index(self) -> int:
        return self.date.year * 12 + self.date.month


@dataclass(frozen=True)
class WithdrawalDetail:
    """Withdrawal that falls inside the anchor month"""

    date: date
    amount: Decimal
    day_of_withdrawal: int


@dataclass(frozen=True)
class AccrualResult:
    """Output of the interest accrual engine"""

    interest: Decimal
    withdrawal_details: Tuple[WithdrawalDetail, ...] = ()
    skipped_records: int = 0


@dataclass(frozen=True)
class DepositInterest:
    """Interest earned by a single deposit on its FIFO-adjusted amount"""

    deposit_id: Optional[int]
    amount: Decimal
    adjusted_amount: Decimal
    rate: Decimal
    interest: Decimal


@dataclass
class ReturnRecord:
    """Interest paid out to a member for a cycle"""

    member_id: int
    return_amount: Decimal
    return_date: date
    interest_days: int = 30
    notes: Optional[str] = None
    id: Optional[int] = None


@dataclass
class Member:
    """Investor with their deposit, withdrawal and return history"""

    id: int
    name: str
    percentage_of_return: Decimal
    referral_name: Optional[str] = None
    referral_percent: Decimal = Decimal("0")
    unique_number: Optional[str] = None
    deposits: List[Deposit] = field(default_factory=list)
    withdrawals: List[Withdrawal] = field(default_factory=list)
    returns: List[ReturnRecord] = field(default_factory=list)


@dataclass
class CurrentReturn:
    """Current-month return projection for one member"""

    member_id: int
    current_return: Decimal
    interest_days: int
    period_type: str
    period_info: str
    deposit_breakdown: List[DepositInterest] = field(default_factory=list)
    skipped_records: int = 0


@dataclass
class MonthlyReturnRun:
    """Summary of one previous-month finalization run"""

    month_key: str
    returns: List[ReturnRecord]

    @property
    def members_calculated(self) -> int:
        return len(self.returns)

    @property
    def total_returns(self) -> Decimal:
        return sum((r.return_amount for r in self.returns), Decimal("0"))


@dataclass
class ReferralCommissionLine:
    """Commission a referrer earns from one referred member"""

    member_id: int
    member_name: str
    principal_amount: Decimal
    referral_percent: Decimal
    commission_amount: Decimal
    is_direct: bool
    investment_date: Optional[date] = None


@dataclass
class ReferralCommission:
    """Commissions grouped under a root referrer"""

    referrer_name: str
    total_commission: Decimal = Decimal("0")
    breakdown: List[ReferralCommissionLine] = field(default_factory=list)

    @property
    def referred_count(self) -> int:
        return len(self.breakdown)


@dataclass
class ReferralIncomeLine:
    """Share of a referred member's interest owed to their referrer"""

    member_id: int
    member_name: str
    interest_earned: Decimal
    referral_percent: Decimal
    referral_income: Decimal


@dataclass
class ReferralIncome:
    """Referral income for one referrer over a window"""

    referrer_id: int
    referrer_name: str
    total_referral_income: Decimal
    breakdown: List[ReferralIncomeLine] = field(default_factory=list)

    @property
    def referred_count(self) -> int:
        return len(self.breakdown)


@dataclass
class LedgerEntry:
    """One row of the master transaction sheet"""

    id: Optional[int]
    type: str  # "deposit", "withdrawal" or "return"
    member_id: int
    member_name: str
    amount: Decimal
    date: Optional[date]
    percentage: Optional[Decimal] = None
    interest_days: Optional[int] = None
    notes: Optional[str] = None
