"""SQLAlchemy ORM models for members and their money movements"""

from sqlalchemy import Column, String, Integer, Numeric, Date, DateTime, ForeignKey, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class MemberRow(Base):
    """Investor enrolled in the returns scheme"""

    __tablename__ = "members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False, index=True)
    unique_number = Column(Text, nullable=True)
    percentage_of_return = Column(Numeric(7, 4), nullable=False, default=0)
    referral_name = Column(Text, nullable=True)
    referral_percent = Column(Numeric(7, 4), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    deposits = relationship("DepositRow", back_populates="member", cascade="all, delete-orphan")
    withdrawals = relationship("WithdrawalRow", back_populates="member", cascade="all, delete-orphan")
    returns = relationship("ReturnRow", back_populates="member", cascade="all, delete-orphan")


class DepositRow(Base):
    """Money placed by a member; percentage overrides the member rate when set"""

    __tablename__ = "deposits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    # Stored as entered; the accrual engine skips values it cannot read
    deposit_date = Column(String(32), nullable=False)
    percentage = Column(Numeric(7, 4), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    member = relationship("MemberRow", back_populates="deposits")


class WithdrawalRow(Base):
    """Money taken out by a member"""

    __tablename__ = "withdrawals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    withdrawal_date = Column(String(32), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    member = relationship("MemberRow", back_populates="withdrawals")


class ReturnRow(Base):
    """Interest paid to a member for a billing cycle"""

    __tablename__ = "returns"

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    return_amount = Column(Numeric(14, 2), nullable=False)
    return_date = Column(Date, nullable=False)
    interest_days = Column(Integer, nullable=False, default=30)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    member = relationship("MemberRow", back_populates="returns")


class CalculatedMonthRow(Base):
    """Marker that monthly returns for a YYYY-MM key were generated"""

    __tablename__ = "calculated_months"

    month_key = Column(String(7), primary_key=True)
    calculated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
