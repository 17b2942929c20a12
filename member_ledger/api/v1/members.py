"""/v1/members - member, deposit and withdrawal records"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from member_ledger.api.v1.schemas import (
    DepositCreate,
    DepositSchema,
    MemberCreate,
    MemberDetailResponse,
    MemberResponse,
    ReturnSchema,
    WithdrawalCreate,
    WithdrawalSchema,
)
from member_ledger.api.dependencies import get_member_repository, get_request_id
from member_ledger.infrastructure.database.session import get_db
from member_ledger.infrastructure.database.repositories import MemberRepository

router = APIRouter()


@router.post("/members", response_model=MemberResponse, status_code=201)
def create_member(
    request_body: MemberCreate,
    db: Session = Depends(get_db),
    repo: MemberRepository = Depends(get_member_repository),
):
    """Enroll a member with their default return rate and referral terms"""
    row = repo.create_member(
        name=request_body.name.strip(),
        percentage_of_return=request_body.percentage_of_return,
        referral_name=request_body.referral_name,
        referral_percent=request_body.referral_percent,
        unique_number=request_body.unique_number,
    )
    db.commit()

    return MemberResponse(
        id=row.id,
        name=row.name,
        percentage_of_return=float(row.percentage_of_return),
        referral_name=row.referral_name,
        referral_percent=float(row.referral_percent),
        unique_number=row.unique_number,
    )


@router.get("/members/{member_id}", response_model=MemberDetailResponse)
def get_member(member_id: int, repo: MemberRepository = Depends(get_member_repository)):
    """
    Retrieve a member with full history.

    Returns:
        Member details with deposits, withdrawals and stored returns
    """
    member = repo.get_member(member_id)
    if member is None:
        raise HTTPException(status_code=404, detail="Member not found")

    return MemberDetailResponse(
        id=member.id,
        name=member.name,
        percentage_of_return=float(member.percentage_of_return),
        referral_name=member.referral_name,
        referral_percent=float(member.referral_percent),
        unique_number=member.unique_number,
        deposits=[
            DepositSchema(
                id=d.id,
                amount=float(d.amount),
                deposit_date=str(d.date),
                percentage=float(d.rate) if d.rate is not None else None,
            )
            for d in member.deposits
        ],
        withdrawals=[
            WithdrawalSchema(id=w.id, amount=float(w.amount), withdrawal_date=str(w.date))
            for w in member.withdrawals
        ],
        returns=[
            ReturnSchema(
                id=r.id,
                member_id=r.member_id,
                return_amount=float(r.return_amount),
                return_date=r.return_date,
                interest_days=r.interest_days,
                notes=r.notes,
            )
            for r in member.returns
        ],
    )


@router.post("/members/{member_id}/deposits", response_model=DepositSchema, status_code=201)
def add_deposit(
    member_id: int,
    request_body: DepositCreate,
    request: Request,
    db: Session = Depends(get_db),
    repo: MemberRepository = Depends(get_member_repository),
):
    """Record a deposit; `percentage` overrides the member rate for it alone"""
    if not repo.exists(member_id):
        raise HTTPException(status_code=404, detail="Member not found")

    row = repo.add_deposit(
        member_id=member_id,
        amount=request_body.amount,
        deposit_date=request_body.deposit_date,
        percentage=request_body.percentage,
        notes=request_body.notes,
    )
    db.commit()
    logging.info(
        "Deposit recorded",
        extra={"request_id": get_request_id(request), "member_id": member_id, "deposit_id": row.id},
    )

    return DepositSchema(
        id=row.id,
        amount=float(row.amount),
        deposit_date=row.deposit_date,
        percentage=float(row.percentage) if row.percentage is not None else None,
    )


@router.post("/members/{member_id}/withdrawals", response_model=WithdrawalSchema, status_code=201)
def add_withdrawal(
    member_id: int,
    request_body: WithdrawalCreate,
    request: Request,
    db: Session = Depends(get_db),
    repo: MemberRepository = Depends(get_member_repository),
):
    """Record a withdrawal"""
    if not repo.exists(member_id):
        raise HTTPException(status_code=404, detail="Member not found")

    row = repo.add_withdrawal(
        member_id=member_id,
        amount=request_body.amount,
        withdrawal_date=request_body.withdrawal_date,
        notes=request_body.notes,
    )
    db.commit()
    logging.info(
        "Withdrawal recorded",
        extra={"request_id": get_request_id(request), "member_id": member_id, "withdrawal_id": row.id},
    )

    return WithdrawalSchema(id=row.id, amount=float(row.amount), withdrawal_date=row.withdrawal_date)
