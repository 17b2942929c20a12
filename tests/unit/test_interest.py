"""Unit tests for the interest accrual engine"""

from datetime import date, datetime
from decimal import Decimal

from member_ledger.domain.billing import month_window
from member_ledger.domain.interest import (
    AdjustedDeposit,
    accrue_interest,
    apply_fifo_withdrawal,
    consume_withdrawals_before,
    deposit_breakdown,
    parse_deposits,
    parse_withdrawals,
    round_amount,
    simple_interest,
)
from member_ledger.domain.models import Deposit, Withdrawal, WithdrawalDetail

JANUARY = month_window("2024-01")


def accrue(deposits, withdrawals=(), default_rate=Decimal("3"), window=JANUARY):
    return accrue_interest(list(deposits), list(withdrawals), default_rate, window.start, window.end)


def test_simple_interest_uses_thirty_day_divisor():
    """Test formula principal × rate × days / 3000"""
    assert simple_interest(Decimal("1500000"), Decimal("3"), 30) == Decimal("45000")
    assert simple_interest(Decimal("300000"), Decimal("2"), 1) == Decimal("200")


def test_full_month_without_withdrawals():
    """Test deposit on the 1st earns the whole 30-day cycle"""
    result = accrue([Deposit(amount=Decimal("1500000"), date="2024-01-01", rate=Decimal("3"))])

    assert result.interest == Decimal("45000.00")
    assert result.withdrawal_details == ()


def test_withdrawal_inside_window_splits_segments():
    """Test 9 days on full principal then 21 days on reduced principal"""
    result = accrue(
        [Deposit(amount=Decimal("1500000"), date="2024-01-01", rate=Decimal("3"))],
        [Withdrawal(amount=Decimal("500000"), date="2024-01-10")],
    )

    # (1,500,000 × 3 × 9)/3000 + (1,000,000 × 3 × 21)/3000 = 13,500 + 21,000
    assert result.interest == Decimal("34500.00")
    assert result.withdrawal_details == (
        WithdrawalDetail(date=date(2024, 1, 10), amount=Decimal("500000"), day_of_withdrawal=10),
    )


def test_new_member_accrues_from_day_after_deposit():
    """Test first deposit on the 5th accrues 25 days from the 6th"""
    window = month_window("2024-03")
    result = accrue(
        [Deposit(amount=Decimal("200000"), date="2024-03-05", rate=Decimal("4"))],
        window=window,
    )

    # 200,000 × 4 × 25 / 3000 = 6666.666...
    assert result.interest == Decimal("6666.67")


def test_missing_rate_falls_back_to_default():
    """Test deposit without its own rate uses the member default"""
    result = accrue(
        [Deposit(amount=Decimal("100000"), date="2023-12-01", rate=None)],
        default_rate=Decimal("2.5"),
    )

    assert result.interest == Decimal("2500.00")


def test_pre_window_withdrawal_empties_oldest_deposit():
    """Test fully consumed deposit contributes neither principal nor rate"""
    deposits = [
        Deposit(amount=Decimal("100000"), date="2023-10-01", rate=Decimal("2")),
        Deposit(amount=Decimal("50000"), date="2023-11-15", rate=Decimal("4")),
    ]
    withdrawals = [Withdrawal(amount=Decimal("100000"), date="2023-12-05")]

    result = accrue(deposits, withdrawals)

    # Only the 50,000 at 4% remains: 50,000 × 4 × 30 / 3000
    assert result.interest == Decimal("2000.00")


def test_withdrawals_exceeding_deposits_yield_zero():
    """Test no interest once earlier withdrawals wipe out the principal"""
    deposits = [Deposit(amount=Decimal("100000"), date="2023-10-01")]
    withdrawals = [Withdrawal(amount=Decimal("150000"), date="2023-11-01")]

    result = accrue(deposits, withdrawals)

    assert result.interest == Decimal("0")
    assert result.withdrawal_details == ()


def test_zero_principal_still_reports_in_window_withdrawals():
    """Test withdrawal details survive the zero-principal early return"""
    deposits = [Deposit(amount=Decimal("100000"), date="2023-10-01")]
    withdrawals = [
        Withdrawal(amount=Decimal("150000"), date="2023-11-01"),
        Withdrawal(amount=Decimal("1000"), date="2024-01-12"),
    ]

    result = accrue(deposits, withdrawals)

    assert result.interest == Decimal("0")
    assert len(result.withdrawal_details) == 1
    assert result.withdrawal_details[0].day_of_withdrawal == 12


def test_weighted_rate_across_carried_deposits():
    """Test principal-weighted rate equals summing each deposit separately"""
    deposits = [
        Deposit(amount=Decimal("100000"), date="2023-11-01", rate=Decimal("2")),
        Deposit(amount=Decimal("300000"), date="2023-12-01", rate=Decimal("4")),
    ]

    result = accrue(deposits)

    # Weighted rate 3.5 on 400,000: 2,000 + 12,000
    assert result.interest == Decimal("14000.00")


def test_in_month_deposit_with_carried_principal_starts_on_day_one():
    """Test carried-forward position keeps the cycle starting on day 1"""
    deposits = [
        Deposit(amount=Decimal("100000"), date="2023-12-01"),
        Deposit(amount=Decimal("50000"), date="2024-01-20"),
    ]

    result = accrue(deposits)

    assert result.interest == Decimal("4500.00")


def test_new_member_with_withdrawal_in_window():
    """Test start day and withdrawal segments combine"""
    deposits = [Deposit(amount=Decimal("100000"), date="2024-01-05")]
    withdrawals = [Withdrawal(amount=Decimal("40000"), date="2024-01-20")]

    result = accrue(deposits, withdrawals)

    # Days 6-19 on 100,000 (14 days) then days 20-30 on 60,000 (11 days)
    assert result.interest == Decimal("2060.00")


def test_withdrawal_before_start_day_only_reduces_principal():
    """Test withdrawal dated before accrual starts accrues no segment"""
    deposits = [Deposit(amount=Decimal("100000"), date="2024-01-15")]
    withdrawals = [Withdrawal(amount=Decimal("10000"), date="2024-01-10")]

    result = accrue(deposits, withdrawals)

    # 90,000 from day 16 to 30
    assert result.interest == Decimal("1350.00")


def test_in_window_withdrawal_larger_than_principal():
    """Test principal clamps at zero and stops accruing"""
    deposits = [Deposit(amount=Decimal("100000"), date="2023-12-01")]
    withdrawals = [Withdrawal(amount=Decimal("200000"), date="2024-01-16")]

    result = accrue(deposits, withdrawals)

    assert result.interest == Decimal("1500.00")


def test_deposits_after_window_are_ignored():
    """Test future deposits do not earn in an earlier window"""
    result = accrue([Deposit(amount=Decimal("100000"), date="2024-02-10")])

    assert result.interest == Decimal("0")


def test_short_month_still_bills_thirty_days():
    """Test February window uses the 30-day cycle"""
    result = accrue(
        [Deposit(amount=Decimal("90000"), date="2023-12-01", rate=Decimal("2"))],
        window=month_window("2024-02"),
    )

    assert result.interest == Decimal("1800.00")


def test_malformed_dates_are_skipped_and_counted():
    """Test unreadable records are excluded without failing the member"""
    deposits = [
        Deposit(amount=Decimal("100000"), date="not-a-date"),
        Deposit(amount=Decimal("100000"), date="2023-12-01"),
    ]
    withdrawals = [Withdrawal(amount=Decimal("50000"), date="2023-13-45")]

    result = accrue(deposits, withdrawals)

    assert result.interest == Decimal("3000.00")
    assert result.skipped_records == 2


def test_overlong_day_is_skipped_not_truncated():
    """Test a day with extra digits is rejected instead of read as a shorter date"""
    result = accrue([Deposit(amount=Decimal("300000"), date="2024-01-123")])

    assert result.interest == Decimal("0")
    assert result.skipped_records == 1


def test_time_suffix_is_ignored():
    """Test ISO timestamps are read as their calendar date"""
    result = accrue([Deposit(amount=Decimal("100000"), date="2023-12-01T18:45:00.000Z")])

    assert result.interest == Decimal("3000.00")
    assert result.skipped_records == 0


def test_no_deposits_or_window_returns_zero():
    """Test defined zero result for empty input and missing window"""
    deposit = Deposit(amount=Decimal("100000"), date="2023-12-01")

    assert accrue([]).interest == Decimal("0")
    assert accrue_interest([deposit], [], Decimal("3"), None, JANUARY.end).interest == Decimal("0")
    assert accrue_interest([deposit], [], Decimal("3"), JANUARY.start, None).interest == Decimal("0")


def test_float_amounts_are_accepted():
    """Test plain numbers from the record store work like Decimals"""
    result = accrue_interest(
        [Deposit(amount=1500000, date="2024-01-01", rate=3.0)],
        [Withdrawal(amount=500000.0, date="2024-01-10")],
        3,
        datetime(2024, 1, 1),
        datetime(2024, 1, 31, 23, 59, 59),
    )

    assert result.interest == Decimal("34500.00")


def test_accrual_is_repeatable():
    """Test identical inputs always give identical results"""
    deposits = [
        Deposit(amount=Decimal("100000"), date="2023-11-01", rate=Decimal("2")),
        Deposit(amount=Decimal("75000"), date="2024-01-07"),
    ]
    withdrawals = [
        Withdrawal(amount=Decimal("30000"), date="2023-12-03"),
        Withdrawal(amount=Decimal("10000"), date="2024-01-18"),
    ]

    first = accrue(deposits, withdrawals)
    second = accrue(deposits, withdrawals)

    assert first == second


def test_fifo_consumes_oldest_first_and_never_goes_negative():
    """Test FIFO reduction order and clamping"""
    deposits, _ = parse_deposits(
        [
            Deposit(amount=Decimal("300"), date="2023-03-01"),
            Deposit(amount=Decimal("100"), date="2023-01-01"),
            Deposit(amount=Decimal("200"), date="2023-02-01"),
        ],
        Decimal("3"),
    )

    partial = apply_fifo_withdrawal(deposits, Decimal("250"))
    assert [d.current_amount for d in partial] == [Decimal("0"), Decimal("50"), Decimal("300")]

    exhausted = apply_fifo_withdrawal(deposits, Decimal("1000"))
    assert all(d.current_amount == 0 for d in exhausted)

    # Original records are untouched
    assert [d.current_amount for d in deposits] == [Decimal("100"), Decimal("200"), Decimal("300")]


def test_consume_stops_at_anchor_month():
    """Test withdrawals in or after the anchor month are not folded in"""
    deposits = (
        AdjustedDeposit(
            date=date(2023, 12, 1),
            amount=Decimal("1000"),
            rate=Decimal("3"),
            current_amount=Decimal("1000"),
        ),
    )
    withdrawals, _ = parse_withdrawals(
        [
            Withdrawal(amount=Decimal("100"), date="2023-12-15"),
            Withdrawal(amount=Decimal("200"), date="2024-01-05"),
            Withdrawal(amount=Decimal("300"), date="2024-02-05"),
        ]
    )

    adjusted = consume_withdrawals_before(deposits, withdrawals, 2024 * 12 + 1)

    assert adjusted[0].current_amount == Decimal("900")


def test_single_segment_matches_split_segments():
    """Test splitting a constant-principal range does not change interest"""
    principal, rate = Decimal("123457"), Decimal("2.75")

    whole = simple_interest(principal, rate, 30)
    split = (
        simple_interest(principal, rate, 7)
        + simple_interest(principal, rate, 16)
        + simple_interest(principal, rate, 7)
    )

    assert round_amount(whole) == round_amount(split)


def test_deposit_breakdown_uses_fifo_adjusted_amounts():
    """Test per-deposit interest after applying all withdrawals oldest first"""
    deposits = [
        Deposit(id=1, amount=Decimal("100000"), date="2023-11-01", rate=Decimal("2")),
        Deposit(id=2, amount=Decimal("50000"), date="2024-01-10", rate=Decimal("4")),
    ]
    withdrawals = [Withdrawal(amount=Decimal("30000"), date="2023-12-05")]

    breakdown = deposit_breakdown(deposits, withdrawals, Decimal("3"), JANUARY.start, JANUARY.end)

    assert [b.deposit_id for b in breakdown] == [1, 2]
    assert breakdown[0].adjusted_amount == Decimal("70000")
    assert breakdown[0].interest == Decimal("1400.00")
    # Deposit on the 10th earns from the 11th: 20 days
    assert breakdown[1].adjusted_amount == Decimal("50000")
    assert breakdown[1].interest == Decimal("1333.33")


def test_carried_member_fixture(carried_member):
    """Test mixed-rate carried position with an earlier withdrawal"""
    result = accrue(carried_member.deposits, carried_member.withdrawals)

    # 80,000 at 3% + 50,000 at 4% for 30 days
    assert result.interest == Decimal("4400.00")
