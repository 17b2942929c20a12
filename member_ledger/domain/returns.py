"""Monthly return generation and current-month projections"""

from datetime import date
from decimal import Decimal
from typing import Iterable, List

from member_ledger.domain.billing import BILLING_ANCHOR_DAY, current_month_window
from member_ledger.domain.interest import ZERO, accrue_interest, as_decimal, deposit_breakdown, round_amount
from member_ledger.domain.models import (
    AccrualResult,
    BillingWindow,
    CurrentReturn,
    Member,
    MonthlyReturnRun,
    ReturnRecord,
)
from member_ledger.utils.date_utils import days_in_month, month_index, parse_record_date


def monthly_return_note(month_key: str) -> str:
    return f"Automatic return for {month_key} (1-30 day cycle)"


def accrue_for_member(member: Member, window: BillingWindow) -> AccrualResult:
    """Run the accrual engine over a member's full history"""
    return accrue_interest(
        member.deposits,
        member.withdrawals,
        member.percentage_of_return,
        window.start,
        window.end,
    )


def net_principal(member: Member) -> Decimal:
    """Total deposited minus total withdrawn, ignoring dates"""
    deposited = sum((as_decimal(d.amount) for d in member.deposits), ZERO)
    withdrawn = sum((as_decimal(w.amount) for w in member.withdrawals), ZERO)
    return deposited - withdrawn


def _in_month(value, year_month: int) -> bool:
    parsed = parse_record_date(value)
    return parsed is not None and month_index(parsed) == year_month


def project_current_return(member: Member, today: date) -> CurrentReturn:
    """
    Current-month return for a member as seen on `today`.

    - Deposits made this month: accrue the whole month window; new money
      starts earning the day after it arrived
    - On/after the anchor day with a stored return for this month: report it
    - Otherwise: accrue the full month (projected before the anchor day)
    """
    if not member.deposits:
        return CurrentReturn(
            member_id=member.id,
            current_return=ZERO,
            interest_days=0,
            period_type="no_deposits",
            period_info="No deposits found",
        )

    window = current_month_window(today)
    this_month = month_index(today)
    last_day = days_in_month(today.year, today.month)
    month_label = today.strftime("%B %Y")
    interest_days = last_day
    skipped = 0

    has_new_deposits = any(_in_month(d.date, this_month) for d in member.deposits)
    stored_returns = [r for r in member.returns if _in_month(r.return_date, this_month)]

    if has_new_deposits:
        result = accrue_for_member(member, window)
        amount, skipped = result.interest, result.skipped_records
        period_type = "current_month_with_new_deposits"
        period_info = f"1st to {last_day}th of {month_label} (includes new deposits)"
    elif today.day >= BILLING_ANCHOR_DAY and stored_returns:
        amount = sum((as_decimal(r.return_amount) for r in stored_returns), ZERO)
        interest_days = stored_returns[0].interest_days or 30
        period_type = "stored_return"
        period_info = f"Stored return for {month_label}"
    else:
        result = accrue_for_member(member, window)
        amount, skipped = result.interest, result.skipped_records
        if today.day >= BILLING_ANCHOR_DAY:
            period_type = "current_month_full"
            period_info = f"1st to {last_day}th of {month_label}"
        else:
            period_type = "current_month_projected"
            period_info = f"1st to {last_day}th of {month_label} (Projected)"

    breakdown = deposit_breakdown(
        member.deposits,
        member.withdrawals,
        member.percentage_of_return,
        window.start,
        window.end,
    )

    return CurrentReturn(
        member_id=member.id,
        current_return=round_amount(amount),
        interest_days=interest_days,
        period_type=period_type,
        period_info=period_info,
        deposit_breakdown=breakdown,
        skipped_records=skipped,
    )


def generate_monthly_returns(
    members: Iterable[Member], window: BillingWindow, today: date
) -> MonthlyReturnRun:
    """
    Build the returns owed for a finished month.

    One return per member with positive interest, dated on the anchor day
    of the month the run happens in.
    """
    month_key = window.month_key or f"{window.start.year}-{window.start.month:02d}"
    return_date = today.replace(day=BILLING_ANCHOR_DAY)

    returns: List[ReturnRecord] = []
    for member in members:
        if not member.deposits:
            continue

        result = accrue_for_member(member, window)
        if result.interest <= 0:
            continue

        returns.append(
            ReturnRecord(
                member_id=member.id,
                return_amount=result.interest,
                return_date=return_date,
                interest_days=30,
                notes=monthly_return_note(month_key),
            )
        )

    return MonthlyReturnRun(month_key=month_key, returns=returns)
