"""Referral commissions and referral income derived from member returns"""

from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from member_ledger.domain.interest import ZERO, accrue_interest, as_decimal, round_amount
from member_ledger.domain.models import (
    BillingWindow,
    Deposit,
    Member,
    ReferralCommission,
    ReferralCommissionLine,
    ReferralIncome,
    ReferralIncomeLine,
)
from member_ledger.domain.returns import accrue_for_member
from member_ledger.utils.date_utils import parse_record_date


def normalize_name(name: Optional[str]) -> str:
    return (name or "").strip().lower()


def find_root_referrer(name: str, members_by_name: Dict[str, Member], max_depth: int = 25) -> str:
    """
    Follow referral_name links up to the member who was not referred.

    Stops on a cycle or after `max_depth` hops and returns the last name
    reached.
    """
    current = name
    visited = set()

    while len(visited) < max_depth:
        key = normalize_name(current)
        if key in visited:
            break
        visited.add(key)

        member = members_by_name.get(key)
        if member is None or not member.referral_name:
            break
        current = member.referral_name

    return current


def _principal_as_of(member: Member, window: BillingWindow) -> Decimal:
    """Deposits minus withdrawals dated up to the end of the window"""
    cutoff = window.end.date()
    principal = ZERO
    for deposit in member.deposits:
        deposit_date = parse_record_date(deposit.date)
        if deposit_date is not None and deposit_date <= cutoff:
            principal += as_decimal(deposit.amount)
    for withdrawal in member.withdrawals:
        withdrawal_date = parse_record_date(withdrawal.date)
        if withdrawal_date is not None and withdrawal_date <= cutoff:
            principal -= as_decimal(withdrawal.amount)
    return principal


def commission_for_member(member: Member, window: BillingWindow) -> Decimal:
    """
    Commission generated by a referred member in the window.

    Accrues the member's deposits (up to the window end) at the referral
    percentage instead of their own return rates.
    """
    cutoff = window.end.date()
    deposits = []
    for deposit in member.deposits:
        deposit_date = parse_record_date(deposit.date)
        if deposit_date is not None and deposit_date <= cutoff:
            deposits.append(Deposit(amount=deposit.amount, date=deposit_date, id=deposit.id))

    result = accrue_interest(
        deposits,
        member.withdrawals,
        member.referral_percent,
        window.start,
        window.end,
    )
    return result.interest


def referral_commissions(
    members: Iterable[Member], window: BillingWindow, max_depth: int = 25
) -> List[ReferralCommission]:
    """
    Commission sheet for a month, grouped by root referrer.

    Sorted by total commission, highest first.
    """
    members = list(members)
    members_by_name = {normalize_name(m.name): m for m in members if m.name}
    grouped: Dict[str, ReferralCommission] = {}

    for member in members:
        if not member.referral_name or member.referral_percent <= 0:
            continue

        commission = commission_for_member(member, window)
        if commission <= 0:
            continue

        root = find_root_referrer(member.referral_name, members_by_name, max_depth)
        key = normalize_name(root)
        group = grouped.setdefault(key, ReferralCommission(referrer_name=root))

        deposit_dates = [parse_record_date(d.date) for d in member.deposits]
        deposit_dates = [d for d in deposit_dates if d is not None and d <= window.end.date()]

        group.breakdown.append(
            ReferralCommissionLine(
                member_id=member.id,
                member_name=member.name,
                principal_amount=_principal_as_of(member, window),
                referral_percent=as_decimal(member.referral_percent),
                commission_amount=commission,
                is_direct=key == normalize_name(member.referral_name),
                investment_date=min(deposit_dates) if deposit_dates else None,
            )
        )
        group.total_commission += commission

    for group in grouped.values():
        group.total_commission = round_amount(group.total_commission)

    return sorted(grouped.values(), key=lambda g: g.total_commission, reverse=True)


def is_referred_by(member: Member, referrer: Member) -> bool:
    """Referral name matches the referrer's name or "name #number" tag"""
    if not member.referral_name:
        return False
    tag = f"{referrer.name} #{referrer.unique_number or referrer.id}"
    return normalize_name(member.referral_name) in {normalize_name(referrer.name), normalize_name(tag)}


def referral_income(
    referrer: Member, members: Iterable[Member], window: BillingWindow
) -> ReferralIncome:
    """Referrer's share of the interest earned by directly referred members"""
    total = ZERO
    breakdown: List[ReferralIncomeLine] = []

    for member in members:
        if member.id == referrer.id or not is_referred_by(member, referrer):
            continue

        interest = accrue_for_member(member, window).interest
        percent = as_decimal(member.referral_percent)
        income = interest * percent / 100
        total += income

        breakdown.append(
            ReferralIncomeLine(
                member_id=member.id,
                member_name=member.name,
                interest_earned=interest,
                referral_percent=percent,
                referral_income=round_amount(income),
            )
        )

    return ReferralIncome(
        referrer_id=referrer.id,
        referrer_name=referrer.name,
        total_referral_income=round_amount(total),
        breakdown=breakdown,
    )
