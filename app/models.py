"""ORM tables for linked accounts and the batch's application attempts."""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _new_id() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    pass


class Account(Base):
    """A MeroShare login owned by one user."""

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    # Identity harvested from /ownDetail/
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    contact: Mapped[str] = mapped_column(String(50), nullable=False)
    demat: Mapped[str] = mapped_column(String(32), nullable=False)
    boid: Mapped[str] = mapped_column(String(32), nullable=False)

    # Credentials
    client_id: Mapped[int] = mapped_column(Integer, nullable=False)
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    crn_number: Mapped[str] = mapped_column(String(50), nullable=False)
    transaction_pin: Mapped[str] = mapped_column(String(20), nullable=False)

    # Bank record harvested from /bank/{bank_id}
    bank_id: Mapped[int] = mapped_column(Integer, nullable=False)
    account_number: Mapped[str] = mapped_column(String(50), nullable=False)
    customer_id: Mapped[int] = mapped_column(Integer, nullable=False)
    account_branch_id: Mapped[int] = mapped_column(Integer, nullable=False)
    account_type_id: Mapped[int] = mapped_column(Integer, nullable=False)

    preferred_kitta: Mapped[int] = mapped_column(Integer, nullable=False, default=10)

    dmat_expiry_date: Mapped[str] = mapped_column(String(20), nullable=False)  # BS, YYYY-MM-DD
    expired_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    password_expiry_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Soft-deleted rows release the username so the login can be linked again
    __table_args__ = (
        Index(
            "uq_accounts_username_live",
            "username",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )


class AppliedShare(Base):
    """One application attempt for an (account, issue) pair. Never updated."""

    __tablename__ = "applied_shares"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    account_id: Mapped[str] = mapped_column(ForeignKey("accounts.id"), nullable=False)
    company_share_id: Mapped[int] = mapped_column(Integer, nullable=False)
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    scrip: Mapped[str] = mapped_column(String(20), nullable=False)
    share_group_name: Mapped[str] = mapped_column(String(100), nullable=False)
    share_type_name: Mapped[str] = mapped_column(String(50), nullable=False)
    sub_group: Mapped[str] = mapped_column(String(100), nullable=False)
    applied_kitta: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="applied")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    error: Mapped[Optional["AppliedShareError"]] = relationship(back_populates="applied_share")

    __table_args__ = (
        Index("ix_applied_shares_account_issue", "account_id", "company_share_id"),
    )


class AppliedShareError(Base):
    __tablename__ = "applied_share_errors"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    account_id: Mapped[str] = mapped_column(ForeignKey("accounts.id"), nullable=False, index=True)
    applied_share_id: Mapped[str] = mapped_column(
        ForeignKey("applied_shares.id"), unique=True, nullable=False
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    seen: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    applied_share: Mapped[AppliedShare] = relationship(back_populates="error")
