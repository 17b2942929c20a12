"""/v1/returns - interest accrual, projections and monthly return generation"""

import time
import logging
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from member_ledger.api.v1.schemas import (
    BatchCurrentReturnResponse,
    BatchRequest,
    CurrentReturnResponse,
    DepositInterestSchema,
    InterestResponse,
    MemberRequest,
    MonthlyRunResponse,
    NextReturnResponse,
    ReturnSchema,
    WindowRequest,
    WithdrawalDetailSchema,
)
from member_ledger.api.dependencies import (
    get_member_repository,
    get_reference_date,
    get_request_id,
    get_return_repository,
)
from member_ledger.config import settings
from member_ledger.domain.billing import (
    current_month_window,
    date_range_window,
    is_billing_anchor_day,
    next_month_window,
    previous_month_window,
)
from member_ledger.domain.exceptions import (
    InvalidWindowError,
    MemberNotFoundError,
    ReturnsAlreadyCalculatedError,
)
from member_ledger.domain.models import Member
from member_ledger.domain.returns import (
    accrue_for_member,
    generate_monthly_returns,
    net_principal,
    project_current_return,
)
from member_ledger.infrastructure.database.session import get_db
from member_ledger.infrastructure.database.repositories import MemberRepository, ReturnRepository
from member_ledger.infrastructure.observability.logging import log_accrual, log_monthly_run
from member_ledger.infrastructure.observability.metrics import record_accrual, record_monthly_run

router = APIRouter()

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}


def load_member(repo: MemberRepository, member_id: int) -> Member:
    """Fetch a member or raise MemberNotFoundError"""
    member = repo.get_member(member_id)
    if member is None:
        raise MemberNotFoundError(f"Member {member_id} not found")
    return member


def calculation_stamp(today: date) -> str:
    """Wall-clock time of day on the reference date the request was computed for"""
    return datetime.combine(today, datetime.now().time()).isoformat()


@router.post("/returns/interest", response_model=InterestResponse)
def calculate_interest(
    request_body: WindowRequest,
    request: Request,
    today: date = Depends(get_reference_date),
    repo: MemberRepository = Depends(get_member_repository),
):
    """
    Accrue interest for one member over an explicit window.

    Without start_date/end_date the current calendar month is used.
    """
    request_id = get_request_id(request)

    try:
        member = load_member(repo, request_body.member_id)

        if request_body.start_date and request_body.end_date:
            window = date_range_window(request_body.start_date, request_body.end_date)
            window_kind = "custom"
        else:
            window = current_month_window(today)
            window_kind = "current"

        result = accrue_for_member(member, window)
        record_accrual(window_kind, result.skipped_records)
        log_accrual(request_id, member.id, window_kind, float(result.interest), result.skipped_records)

        return InterestResponse(
            member_id=member.id,
            interest=float(result.interest),
            principal=float(net_principal(member)),
            percentage=float(member.percentage_of_return),
            withdrawal_details=[
                WithdrawalDetailSchema(
                    date=w.date,
                    amount=float(w.amount),
                    day_of_withdrawal=w.day_of_withdrawal,
                )
                for w in result.withdrawal_details
            ],
            skipped_records=result.skipped_records,
            start_date=window.start.isoformat(),
            end_date=window.end.isoformat(),
        )

    except MemberNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except InvalidWindowError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/returns/current", response_model=CurrentReturnResponse)
def current_return(
    request_body: MemberRequest,
    request: Request,
    response: Response,
    today: date = Depends(get_reference_date),
    repo: MemberRepository = Depends(get_member_repository),
):
    """
    Current-month return for a member.

    Reports the stored return once the month's return has been written,
    otherwise projects it with the accrual engine. Includes a per-deposit
    breakdown on FIFO-adjusted amounts.
    """
    try:
        member = load_member(repo, request_body.member_id)
    except MemberNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    projection = project_current_return(member, today)
    record_accrual("current", projection.skipped_records)
    log_accrual(
        get_request_id(request),
        member.id,
        projection.period_type,
        float(projection.current_return),
        projection.skipped_records,
    )

    response.headers.update(NO_CACHE_HEADERS)
    return CurrentReturnResponse(
        member_id=member.id,
        current_return=float(projection.current_return),
        interest_days=projection.interest_days,
        period_type=projection.period_type,
        period_info=projection.period_info,
        calculation_date=calculation_stamp(today),
        deposit_breakdown=[
            DepositInterestSchema(
                deposit_id=d.deposit_id,
                amount=float(d.amount),
                adjusted_amount=float(d.adjusted_amount),
                percentage=float(d.rate),
                interest=float(d.interest),
            )
            for d in projection.deposit_breakdown
        ],
    )


@router.post("/returns/current/batch", response_model=BatchCurrentReturnResponse)
def batch_current_returns(
    request_body: BatchRequest,
    response: Response,
    today: date = Depends(get_reference_date),
    repo: MemberRepository = Depends(get_member_repository),
):
    """Current-month returns for several members; extra ids beyond the batch size are ignored"""
    member_ids = request_body.member_ids[: settings.batch_max_size]
    members = repo.get_members(member_ids)

    results = {}
    for member in members:
        projection = project_current_return(member, today)
        record_accrual("current", projection.skipped_records)
        results[member.id] = float(projection.current_return)

    response.headers.update(NO_CACHE_HEADERS)
    return BatchCurrentReturnResponse(current_returns=results)


@router.post("/returns/next", response_model=NextReturnResponse)
def next_return(
    request_body: MemberRequest,
    request: Request,
    today: date = Depends(get_reference_date),
    repo: MemberRepository = Depends(get_member_repository),
):
    """Forecast of next month's return on the member's current position"""
    try:
        member = load_member(repo, request_body.member_id)
    except MemberNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    window = next_month_window(today)
    result = accrue_for_member(member, window)
    record_accrual("next", result.skipped_records)
    log_accrual(get_request_id(request), member.id, "next", float(result.interest), result.skipped_records)

    return NextReturnResponse(
        member_id=member.id,
        next_return_amount=float(result.interest),
        principal=float(net_principal(member)),
        percentage=float(member.percentage_of_return),
        start_date=window.start.isoformat(),
        end_date=window.end.isoformat(),
    )


@router.post("/returns/monthly", response_model=MonthlyRunResponse)
def calculate_monthly_returns(
    request: Request,
    force: bool = Query(False, description="Run outside the anchor day or recalculate a finished month"),
    today: date = Depends(get_reference_date),
    db: Session = Depends(get_db),
    member_repo: MemberRepository = Depends(get_member_repository),
    return_repo: ReturnRepository = Depends(get_return_repository),
):
    """
    Finalize returns for the previous month.

    Flow:
    1. Only runs on the billing anchor day (2nd) unless forced
    2. Refuses a month that was already calculated unless forced; a forced
       rerun replaces the earlier automatic returns
    3. Accrue every member over the previous month window
    4. Persist a return per member with positive interest and mark the month
    """
    start_time = time.time()
    request_id = get_request_id(request)

    if not force and not is_billing_anchor_day(today):
        record_monthly_run("skipped_not_anchor_day")
        return MonthlyRunResponse(
            message="Automatic calculation runs on 2nd of each month. Use ?force=true to run manually.",
            calculated=False,
            calculation_date=calculation_stamp(today),
        )

    window = previous_month_window(today)

    try:
        if return_repo.is_month_calculated(window.month_key):
            if not force:
                raise ReturnsAlreadyCalculatedError(window.month_key)
            return_repo.delete_monthly_returns(window.month_key)

        run = generate_monthly_returns(member_repo.get_members(), window, today)
        return_repo.create_returns(run.returns)
        return_repo.mark_month_calculated(run.month_key)
        db.commit()

    except ReturnsAlreadyCalculatedError as e:
        db.rollback()
        record_monthly_run("already_calculated")
        logging.warning(str(e), extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=f"{e}. Use ?force=true to recalculate")

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Failed to calculate monthly returns")

    total_returns = float(run.total_returns)
    duration_ms = (time.time() - start_time) * 1000
    record_monthly_run("calculated", run.members_calculated, total_returns)
    log_monthly_run(request_id, run.month_key, run.members_calculated, total_returns, duration_ms)

    return MonthlyRunResponse(
        message=f"Successfully calculated returns for {run.month_key}",
        calculated=True,
        month=run.month_key,
        members_calculated=run.members_calculated,
        total_returns=total_returns,
        calculation_date=calculation_stamp(today),
    )


@router.get("/returns", response_model=list[ReturnSchema])
def list_returns(
    member_id: Optional[int] = Query(None, description="Only returns of this member"),
    repo: ReturnRepository = Depends(get_return_repository),
):
    """Stored returns, newest first"""
    return [
        ReturnSchema(
            id=r.id,
            member_id=r.member_id,
            return_amount=float(r.return_amount),
            return_date=r.return_date,
            interest_days=r.interest_days,
            notes=r.notes,
        )
        for r in repo.get_returns(member_id)
    ]
