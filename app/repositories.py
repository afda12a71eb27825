"""Account Store and Share Store.

Every call runs in its own short session and commits before returning, so a
write is visible to the next read in the same batch run.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.eligibility import AccountStatus
from app.errors import StoreError
from app.models import Account, AppliedShare, AppliedShareError


class _Repository:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise StoreError(str(exc)) from exc
        finally:
            session.close()


class AccountRepository(_Repository):
    def create(self, account: Account) -> str:
        with self._session() as session:
            session.add(account)
            session.flush()
            return account.id

    def get(self, account_id: str) -> Account | None:
        with self._session() as session:
            return session.scalar(
                select(Account).where(Account.id == account_id, Account.deleted_at.is_(None))
            )

    def get_for_user(self, account_id: str, user_id: str) -> Account | None:
        with self._session() as session:
            return session.scalar(
                select(Account).where(
                    Account.id == account_id,
                    Account.user_id == user_id,
                    Account.deleted_at.is_(None),
                )
            )

    def list_all(self) -> list[Account]:
        with self._session() as session:
            return list(session.scalars(select(Account).where(Account.deleted_at.is_(None))))

    def list_by_user(self, user_id: str) -> list[Account]:
        with self._session() as session:
            return list(
                session.scalars(
                    select(Account)
                    .where(Account.user_id == user_id, Account.deleted_at.is_(None))
                    .order_by(Account.created_at)
                )
            )

    def set_status(self, account_id: str, status: AccountStatus) -> None:
        with self._session() as session:
            session.execute(
                update(Account).where(Account.id == account_id).values(status=status.value)
            )

    def delete(self, account_id: str) -> bool:
        """Soft delete. Returns False when there was nothing to delete."""
        with self._session() as session:
            result = session.execute(
                update(Account)
                .where(Account.id == account_id, Account.deleted_at.is_(None))
                .values(deleted_at=datetime.now(timezone.utc))
            )
            return result.rowcount > 0


class ShareRepository(_Repository):
    def insert_applied_share(self, share: AppliedShare) -> str:
        with self._session() as session:
            session.add(share)
            session.flush()
            return share.id

    def insert_applied_share_error(self, error: AppliedShareError) -> str:
        with self._session() as session:
            session.add(error)
            session.flush()
            return error.id

    def find_by_account_and_issue(self, account_id: str, company_share_id: int) -> AppliedShare | None:
        with self._session() as session:
            return session.scalar(
                select(AppliedShare)
                .where(
                    AppliedShare.account_id == account_id,
                    AppliedShare.company_share_id == company_share_id,
                )
                .limit(1)
            )

    def list_by_user(self, user_id: str) -> list[AppliedShare]:
        with self._session() as session:
            return list(
                session.scalars(
                    select(AppliedShare)
                    .where(AppliedShare.user_id == user_id)
                    .order_by(AppliedShare.created_at.desc())
                )
            )

    def list_errors_by_user(self, user_id: str, account_id: str | None = None) -> list[AppliedShareError]:
        query = select(AppliedShareError).where(AppliedShareError.user_id == user_id)
        if account_id is not None:
            query = query.where(AppliedShareError.account_id == account_id)
        with self._session() as session:
            return list(session.scalars(query.order_by(AppliedShareError.created_at.desc())))

    def mark_errors_seen(self, user_id: str) -> int:
        with self._session() as session:
            result = session.execute(
                update(AppliedShareError)
                .where(AppliedShareError.user_id == user_id, AppliedShareError.seen.is_(False))
                .values(seen=True)
            )
            return result.rowcount
