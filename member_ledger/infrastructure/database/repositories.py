"""Data access layer for members, deposits, withdrawals and returns"""

from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session, selectinload

from member_ledger.infrastructure.database.models import (
    CalculatedMonthRow,
    DepositRow,
    MemberRow,
    ReturnRow,
    WithdrawalRow,
)
from member_ledger.domain.models import Deposit, Member, ReturnRecord, Withdrawal
from member_ledger.domain.returns import monthly_return_note
from member_ledger.config import settings


def _to_domain(row: MemberRow) -> Member:
    """Convert a member row and its records into the domain dataclass"""
    return Member(
        id=row.id,
        name=row.name,
        percentage_of_return=(
            Decimal(row.percentage_of_return)
            if row.percentage_of_return is not None
            else settings.default_return_rate
        ),
        referral_name=row.referral_name,
        referral_percent=Decimal(row.referral_percent or 0),
        unique_number=row.unique_number,
        deposits=[
            Deposit(
                id=d.id,
                amount=Decimal(d.amount),
                date=d.deposit_date,
                rate=Decimal(d.percentage) if d.percentage is not None else None,
            )
            for d in row.deposits
        ],
        withdrawals=[
            Withdrawal(id=w.id, amount=Decimal(w.amount), date=w.withdrawal_date)
            for w in row.withdrawals
        ],
        returns=[_return_to_domain(r) for r in row.returns],
    )


def _return_to_domain(row: ReturnRow) -> ReturnRecord:
    return ReturnRecord(
        id=row.id,
        member_id=row.member_id,
        return_amount=Decimal(row.return_amount),
        return_date=row.return_date,
        interest_days=row.interest_days,
        notes=row.notes,
    )


class MemberRepository:
    """Repository for members and their deposit/withdrawal records"""

    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(MemberRow).options(
            selectinload(MemberRow.deposits),
            selectinload(MemberRow.withdrawals),
            selectinload(MemberRow.returns),
        )

    def create_member(
        self,
        name: str,
        percentage_of_return: Decimal,
        referral_name: Optional[str] = None,
        referral_percent: Decimal = Decimal("0"),
        unique_number: Optional[str] = None,
    ) -> MemberRow:
        """Persist a new member"""
        row = MemberRow(
            name=name,
            percentage_of_return=percentage_of_return,
            referral_name=referral_name,
            referral_percent=referral_percent,
            unique_number=unique_number,
        )
        self.db.add(row)
        self.db.flush()  # Get ID without committing
        return row

    def add_deposit(
        self,
        member_id: int,
        amount: Decimal,
        deposit_date: str,
        percentage: Optional[Decimal] = None,
        notes: Optional[str] = None,
    ) -> DepositRow:
        row = DepositRow(
            member_id=member_id,
            amount=amount,
            deposit_date=deposit_date,
            percentage=percentage,
            notes=notes,
        )
        self.db.add(row)
        self.db.flush()
        return row

    def add_withdrawal(
        self,
        member_id: int,
        amount: Decimal,
        withdrawal_date: str,
        notes: Optional[str] = None,
    ) -> WithdrawalRow:
        row = WithdrawalRow(
            member_id=member_id,
            amount=amount,
            withdrawal_date=withdrawal_date,
            notes=notes,
        )
        self.db.add(row)
        self.db.flush()
        return row

    def exists(self, member_id: int) -> bool:
        return self.db.query(MemberRow.id).filter(MemberRow.id == member_id).first() is not None

    def get_member(self, member_id: int) -> Optional[Member]:
        """Fetch a member with deposits, withdrawals and returns"""
        row = self._query().filter(MemberRow.id == member_id).first()
        return _to_domain(row) if row else None

    def get_members(self, member_ids: Optional[Iterable[int]] = None) -> List[Member]:
        """Fetch all members, or only the given ids, ordered by id"""
        query = self._query()
        if member_ids is not None:
            query = query.filter(MemberRow.id.in_(list(member_ids)))
        return [_to_domain(row) for row in query.order_by(MemberRow.id).all()]


class ReturnRepository:
    """Repository for returns and the monthly calculation markers"""

    def __init__(self, db: Session):
        self.db = db

    def create_returns(self, returns: Iterable[ReturnRecord]) -> List[ReturnRow]:
        """Persist generated returns"""
        rows = [
            ReturnRow(
                member_id=r.member_id,
                return_amount=r.return_amount,
                return_date=r.return_date,
                interest_days=r.interest_days,
                notes=r.notes,
            )
            for r in returns
        ]
        self.db.add_all(rows)
        self.db.flush()
        return rows

    def get_returns(self, member_id: Optional[int] = None) -> List[ReturnRecord]:
        """Stored returns, newest first"""
        query = self.db.query(ReturnRow)
        if member_id is not None:
            query = query.filter(ReturnRow.member_id == member_id)
        rows = query.order_by(ReturnRow.return_date.desc(), ReturnRow.id.desc()).all()
        return [_return_to_domain(row) for row in rows]

    def is_month_calculated(self, month_key: str) -> bool:
        return self.db.get(CalculatedMonthRow, month_key) is not None

    def mark_month_calculated(self, month_key: str) -> None:
        if not self.is_month_calculated(month_key):
            self.db.add(CalculatedMonthRow(month_key=month_key))
            self.db.flush()

    def delete_monthly_returns(self, month_key: str) -> int:
        """Remove automatic returns written by an earlier run for the same month"""
        return (
            self.db.query(ReturnRow)
            .filter(ReturnRow.notes == monthly_return_note(month_key))
            .delete(synchronize_session=False)
        )
