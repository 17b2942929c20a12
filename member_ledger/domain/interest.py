"""Interest accrual engine - core business logic for member returns"""

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Sequence, Tuple, Union

from member_ledger.domain.models import (
    AccrualResult,
    AdjustedDeposit,
    Deposit,
    DepositInterest,
    Withdrawal,
    WithdrawalDetail,
)
from member_ledger.utils.date_utils import month_index, parse_record_date

# Every billing cycle is billed as 30 days, whatever the calendar month length
CYCLE_DAYS = 30

ZERO = Decimal("0")
CENTS = Decimal("0.01")

Number = Union[Decimal, int, float, str]
WindowBound = Union[date, datetime, None]


def as_decimal(value: Number) -> Decimal:
    """Convert a stored amount or rate to Decimal without float noise"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_amount(value: Decimal) -> Decimal:
    """Round to 2 decimal places, halves away from zero"""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def simple_interest(principal: Number, rate_percent: Number, days: int) -> Decimal:
    """
    Interest for a single segment at constant principal and rate.

    interest = principal × rate × days / (100 × 30)
    """
    return as_decimal(principal) * as_decimal(rate_percent) * days / (100 * CYCLE_DAYS)


def parse_deposits(
    deposits: Iterable[Deposit], default_rate: Number
) -> Tuple[Tuple[AdjustedDeposit, ...], int]:
    """
    Normalize deposits into AdjustedDeposit records sorted oldest first.

    Returns the records and the number of deposits dropped for an
    unreadable date.
    """
    default = as_decimal(default_rate)
    parsed: List[AdjustedDeposit] = []
    skipped = 0

    for deposit in deposits:
        deposit_date = parse_record_date(deposit.date)
        if deposit_date is None:
            skipped += 1
            continue
        amount = as_decimal(deposit.amount)
        rate = as_decimal(deposit.rate) if deposit.rate is not None else default
        parsed.append(
            AdjustedDeposit(
                date=deposit_date,
                amount=amount,
                rate=rate,
                current_amount=amount,
                id=deposit.id,
            )
        )

    # Stable sort keeps same-day deposits in record order
    parsed.sort(key=lambda d: d.date)
    return tuple(parsed), skipped


def parse_withdrawals(
    withdrawals: Iterable[Withdrawal],
) -> Tuple[Tuple[WithdrawalDetail, ...], int]:
    """Normalize withdrawals sorted oldest first, with the skipped count"""
    parsed: List[WithdrawalDetail] = []
    skipped = 0

    for withdrawal in withdrawals:
        withdrawal_date = parse_record_date(withdrawal.date)
        if withdrawal_date is None:
            skipped += 1
            continue
        parsed.append(
            WithdrawalDetail(
                date=withdrawal_date,
                amount=as_decimal(withdrawal.amount),
                day_of_withdrawal=withdrawal_date.day,
            )
        )

    parsed.sort(key=lambda w: w.date)
    return tuple(parsed), skipped


def apply_fifo_withdrawal(
    deposits: Sequence[AdjustedDeposit], amount: Decimal
) -> Tuple[AdjustedDeposit, ...]:
    """
    Consume `amount` from deposits oldest first.

    Returns new records; each reduction is clamped to what the deposit has
    left, and anything beyond the total remaining principal is ignored.
    """
    remaining = amount
    adjusted: List[AdjustedDeposit] = []

    for deposit in deposits:
        if remaining > 0 and deposit.current_amount > 0:
            reduction = min(deposit.current_amount, remaining)
            remaining -= reduction
            deposit = replace(deposit, current_amount=deposit.current_amount - reduction)
        adjusted.append(deposit)

    return tuple(adjusted)


def consume_withdrawals_before(
    deposits: Tuple[AdjustedDeposit, ...],
    withdrawals: Sequence[WithdrawalDetail],
    anchor_month: int,
) -> Tuple[AdjustedDeposit, ...]:
    """Fold every withdrawal dated before the anchor month into the deposits"""
    for withdrawal in withdrawals:
        if month_index(withdrawal.date) >= anchor_month:
            break
        deposits = apply_fifo_withdrawal(deposits, withdrawal.amount)
    return deposits


def interest_start_day(deposits: Sequence[AdjustedDeposit], anchor_month: int) -> int:
    """
    Day of the cycle from which interest accrues.

    Accrual starts on day 1 unless the member's whole position was opened
    during the anchor month; then it starts the day after the first
    deposit of that month. A deposit made on day 1 opens the cycle itself.
    """
    in_month_days = [d.date.day for d in deposits if d.month_index == anchor_month]
    if not in_month_days:
        return 1

    carried_forward = any(
        d.month_index < anchor_month and d.current_amount > 0 for d in deposits
    )
    if carried_forward:
        return 1

    first_day = min(in_month_days)
    return first_day + 1 if first_day > 1 else 1


def accrue_segments(
    principal: Decimal,
    rate: Decimal,
    start_day: int,
    withdrawals_in_window: Sequence[WithdrawalDetail],
) -> Decimal:
    """Sum interest over the day segments separated by in-window withdrawals"""
    if not withdrawals_in_window:
        days = CYCLE_DAYS - start_day + 1
        return simple_interest(principal, rate, days) if days > 0 else ZERO

    total = ZERO
    current_principal = principal
    current_day = start_day

    for withdrawal in withdrawals_in_window:
        withdrawal_day = withdrawal.day_of_withdrawal
        if withdrawal_day > current_day and current_principal > 0:
            total += simple_interest(current_principal, rate, withdrawal_day - current_day)
            current_day = withdrawal_day
        current_principal = max(ZERO, current_principal - withdrawal.amount)

    if current_principal > 0 and current_day <= CYCLE_DAYS:
        total += simple_interest(current_principal, rate, CYCLE_DAYS - current_day + 1)

    return total


def accrue_interest(
    deposits: Sequence[Deposit],
    withdrawals: Sequence[Withdrawal],
    default_rate: Number,
    window_start: WindowBound,
    window_end: WindowBound,
) -> AccrualResult:
    """
    Interest a member earned in one billing window.

    Steps:
    1. Parse deposits/withdrawals, drop unreadable dates, sort oldest first
    2. Withdrawals before the anchor month consume deposits FIFO
    3. Opening principal and principal-weighted rate for the anchor month
    4. Accrue day segments split by withdrawals inside the anchor month

    The anchor month is the calendar month of `window_start`. Never raises
    for well-typed input; the result is rounded to 2 decimal places.
    """
    if not deposits or window_start is None or window_end is None:
        return AccrualResult(interest=ZERO)

    anchor_month = month_index(window_start)

    parsed_deposits, skipped_deposits = parse_deposits(deposits, default_rate)
    parsed_withdrawals, skipped_withdrawals = parse_withdrawals(withdrawals)
    skipped = skipped_deposits + skipped_withdrawals

    withdrawals_in_window = tuple(
        sorted(
            (w for w in parsed_withdrawals if month_index(w.date) == anchor_month),
            key=lambda w: w.day_of_withdrawal,
        )
    )

    adjusted = consume_withdrawals_before(parsed_deposits, parsed_withdrawals, anchor_month)
    opening = [d for d in adjusted if d.month_index <= anchor_month and d.current_amount > 0]

    principal = sum((d.current_amount for d in opening), ZERO)
    if principal <= 0:
        return AccrualResult(
            interest=ZERO,
            withdrawal_details=withdrawals_in_window,
            skipped_records=skipped,
        )

    weighted_rate = sum((d.rate * d.current_amount for d in opening), ZERO) / principal
    start_day = interest_start_day(adjusted, anchor_month)

    interest = accrue_segments(principal, weighted_rate, start_day, withdrawals_in_window)

    return AccrualResult(
        interest=round_amount(max(ZERO, interest)),
        withdrawal_details=withdrawals_in_window,
        skipped_records=skipped,
    )


def deposit_breakdown(
    deposits: Sequence[Deposit],
    withdrawals: Sequence[Withdrawal],
    default_rate: Number,
    window_start: WindowBound,
    window_end: WindowBound,
) -> List[DepositInterest]:
    """
    Interest per deposit for a breakdown view.

    The total of all withdrawals is taken from deposits oldest first, then
    each deposit accrues on its own remaining amount with no withdrawals.
    """
    parsed_deposits, _ = parse_deposits(deposits, default_rate)
    parsed_withdrawals, _ = parse_withdrawals(withdrawals)

    total_withdrawn = sum((w.amount for w in parsed_withdrawals), ZERO)
    adjusted = apply_fifo_withdrawal(parsed_deposits, total_withdrawn)

    breakdown = []
    for deposit in adjusted:
        result = accrue_interest(
            [Deposit(amount=deposit.current_amount, date=deposit.date, rate=deposit.rate)],
            [],
            deposit.rate,
            window_start,
            window_end,
        )
        breakdown.append(
            DepositInterest(
                deposit_id=deposit.id,
                amount=deposit.amount,
                adjusted_amount=deposit.current_amount,
                rate=deposit.rate,
                interest=result.interest,
            )
        )

    return breakdown
