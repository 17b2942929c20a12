"""Master transaction sheet across all members"""

from datetime import date
from typing import Iterable, List, Optional

from member_ledger.domain.interest import as_decimal
from member_ledger.domain.models import BillingWindow, LedgerEntry, Member
from member_ledger.utils.date_utils import parse_record_date


def member_entries(member: Member) -> List[LedgerEntry]:
    """Deposits, withdrawals and returns of one member as sheet rows"""
    entries = [
        LedgerEntry(
            id=d.id,
            type="deposit",
            member_id=member.id,
            member_name=member.name,
            amount=as_decimal(d.amount),
            date=parse_record_date(d.date),
            percentage=d.rate,
        )
        for d in member.deposits
    ]
    entries.extend(
        LedgerEntry(
            id=w.id,
            type="withdrawal",
            member_id=member.id,
            member_name=member.name,
            amount=as_decimal(w.amount),
            date=parse_record_date(w.date),
        )
        for w in member.withdrawals
    )
    entries.extend(
        LedgerEntry(
            id=r.id,
            type="return",
            member_id=member.id,
            member_name=member.name,
            amount=as_decimal(r.return_amount),
            date=parse_record_date(r.return_date),
            interest_days=r.interest_days,
            notes=r.notes,
        )
        for r in member.returns
    )
    return entries


def build_master_sheet(
    members: Iterable[Member],
    member_id: Optional[int] = None,
    window: Optional[BillingWindow] = None,
) -> List[LedgerEntry]:
    """
    Merge every member's records into one list, newest first.

    With a window, rows without a readable date are left out.
    """
    entries: List[LedgerEntry] = []
    for member in members:
        if member_id is not None and member.id != member_id:
            continue
        entries.extend(member_entries(member))

    if window is not None:
        first, last = window.start.date(), window.end.date()
        entries = [e for e in entries if e.date is not None and first <= e.date <= last]

    return sorted(entries, key=lambda e: e.date or date.min, reverse=True)
