"""/v1/referrals - referral commission sheet and referral income"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from member_ledger.api.v1.schemas import (
    CommissionLineSchema,
    CommissionSheetResponse,
    MemberRequest,
    ReferralCommissionSchema,
    ReferralIncomeLineSchema,
    ReferralIncomeResponse,
    WindowRequest,
)
from member_ledger.api.v1.returns import NO_CACHE_HEADERS, load_member
from member_ledger.api.dependencies import get_member_repository, get_reference_date
from member_ledger.config import settings
from member_ledger.domain.billing import (
    current_month_window,
    date_range_window,
    month_window,
    next_month_window,
)
from member_ledger.domain.exceptions import InvalidWindowError, MemberNotFoundError
from member_ledger.domain.models import BillingWindow, ReferralIncome
from member_ledger.domain.referrals import referral_commissions, referral_income
from member_ledger.infrastructure.database.repositories import MemberRepository

router = APIRouter()


def _income_response(
    income: ReferralIncome, window: BillingWindow, period: Optional[str] = None
) -> ReferralIncomeResponse:
    return ReferralIncomeResponse(
        referrer_id=income.referrer_id,
        referrer_name=income.referrer_name,
        total_referral_income=float(income.total_referral_income),
        referred_count=income.referred_count,
        breakdown=[
            ReferralIncomeLineSchema(
                member_id=line.member_id,
                member_name=line.member_name,
                interest_earned=float(line.interest_earned),
                referral_percent=float(line.referral_percent),
                referral_income=float(line.referral_income),
            )
            for line in income.breakdown
        ],
        period=period,
        start_date=window.start.isoformat(),
        end_date=window.end.isoformat(),
    )


@router.get("/referrals/commissions", response_model=CommissionSheetResponse)
def get_referral_commissions(
    response: Response,
    month: Optional[str] = Query(None, description="YYYY-MM, defaults to the current month"),
    today: date = Depends(get_reference_date),
    repo: MemberRepository = Depends(get_member_repository),
):
    """
    Commission sheet for a month.

    Each referred member's deposits accrue at their referral percentage;
    commissions roll up to the root of the referral chain.
    """
    try:
        window = month_window(month) if month else current_month_window(today)
    except InvalidWindowError as e:
        raise HTTPException(status_code=400, detail=str(e))

    sheet = referral_commissions(repo.get_members(), window, settings.referral_lookup_depth)

    response.headers.update(NO_CACHE_HEADERS)
    return CommissionSheetResponse(
        period=window.start.strftime("%B %Y"),
        start_date=window.start.isoformat(),
        end_date=window.end.isoformat(),
        referral_commissions=[
            ReferralCommissionSchema(
                referrer_name=group.referrer_name,
                total_commission=float(group.total_commission),
                referred_count=group.referred_count,
                breakdown=[
                    CommissionLineSchema(
                        member_id=line.member_id,
                        member_name=line.member_name,
                        principal_amount=float(line.principal_amount),
                        referral_percent=float(line.referral_percent),
                        commission_amount=float(line.commission_amount),
                        is_direct=line.is_direct,
                        investment_date=line.investment_date,
                    )
                    for line in group.breakdown
                ],
            )
            for group in sheet
        ],
    )


@router.post("/referrals/income", response_model=ReferralIncomeResponse)
def get_referral_income(
    request_body: WindowRequest,
    today: date = Depends(get_reference_date),
    repo: MemberRepository = Depends(get_member_repository),
):
    """Referral income over an explicit window (defaults to the current month)"""
    try:
        referrer = load_member(repo, request_body.member_id)
        if request_body.start_date and request_body.end_date:
            window = date_range_window(request_body.start_date, request_body.end_date)
        else:
            window = current_month_window(today)

    except MemberNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except InvalidWindowError as e:
        raise HTTPException(status_code=400, detail=str(e))

    income = referral_income(referrer, repo.get_members(), window)
    return _income_response(income, window)


@router.post("/referrals/next", response_model=ReferralIncomeResponse)
def get_next_referral_income(
    request_body: MemberRequest,
    today: date = Depends(get_reference_date),
    repo: MemberRepository = Depends(get_member_repository),
):
    """Referral income forecast for next month"""
    try:
        referrer = load_member(repo, request_body.member_id)
    except MemberNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    window = next_month_window(today)
    income = referral_income(referrer, repo.get_members(), window)
    return _income_response(income, window, period="Next Month (1-30)")
