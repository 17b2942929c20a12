"""GET /v1/transactions - master sheet of deposits, withdrawals and returns"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from member_ledger.api.v1.schemas import LedgerEntrySchema
from member_ledger.api.dependencies import get_member_repository
from member_ledger.domain.billing import date_range_window, month_window
from member_ledger.domain.exceptions import InvalidWindowError
from member_ledger.domain.ledger import build_master_sheet
from member_ledger.infrastructure.database.repositories import MemberRepository

router = APIRouter()


@router.get("/transactions", response_model=list[LedgerEntrySchema])
def get_master_sheet(
    member_id: Optional[int] = Query(None),
    month: Optional[str] = Query(None, description="YYYY-MM"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    repo: MemberRepository = Depends(get_member_repository),
):
    """
    All money movements, newest first.

    `month` takes precedence over a start_date/end_date range.
    """
    try:
        if month:
            window = month_window(month)
        elif start_date and end_date:
            window = date_range_window(start_date, end_date)
        else:
            window = None
    except InvalidWindowError as e:
        raise HTTPException(status_code=400, detail=str(e))

    members = repo.get_members([member_id] if member_id is not None else None)

    return [
        LedgerEntrySchema(
            id=entry.id,
            type=entry.type,
            member_id=entry.member_id,
            member_name=entry.member_name,
            amount=float(entry.amount),
            date=entry.date,
            percentage=float(entry.percentage) if entry.percentage is not None else None,
            interest_days=entry.interest_days,
            notes=entry.notes,
        )
        for entry in build_master_sheet(members, member_id=member_id, window=window)
    ]
