"""Dependency injection for FastAPI endpoints"""

from datetime import date
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from member_ledger.infrastructure.database.session import get_db
from member_ledger.infrastructure.database.repositories import MemberRepository, ReturnRepository


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_reference_date() -> date:
    """Date the billing windows are computed from; overridden in tests"""
    return date.today()


def get_member_repository(db: Session = Depends(get_db)) -> MemberRepository:
    """Provide member repository bound to the request session"""
    return MemberRepository(db)


def get_return_repository(db: Session = Depends(get_db)) -> ReturnRepository:
    """Provide return repository bound to the request session"""
    return ReturnRepository(db)
