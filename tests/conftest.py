"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable
from unittest.mock import Mock
from uuid import uuid4

import pytest

from app.client import MeroShareClient
from app.database import init_db, make_engine, make_session_factory
from app.models import Account
from app.repositories import AccountRepository, ShareRepository

NOW = datetime(2025, 10, 1, 6, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """Fixed 'now' for batch and eligibility tests (BS 2082-06-15)."""
    return NOW


@pytest.fixture
def session_factory():
    """In-memory SQLite with the schema created."""
    engine = make_engine("sqlite://")
    init_db(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def account_repo(session_factory) -> AccountRepository:
    return AccountRepository(session_factory)


@pytest.fixture
def share_repo(session_factory) -> ShareRepository:
    return ShareRepository(session_factory)


@pytest.fixture
def client() -> Mock:
    """MeroShare client stub; tests set return values per call."""
    return Mock(spec=MeroShareClient)


@pytest.fixture
def make_account(account_repo: AccountRepository) -> Callable[..., Account]:
    """Persist an active, eligible account; keyword overrides win."""

    def _make(**overrides: Any) -> Account:
        fields: dict[str, Any] = {
            "user_id": "user-001",
            "name": "Ram Bahadur",
            "email": "ram@example.com",
            "contact": "9800000000",
            "demat": "1301060000012345",
            "boid": "00012345",
            "client_id": 128,
            "username": f"user-{uuid4().hex[:8]}",
            "password": "secret",
            "crn_number": "CRN-0001",
            "transaction_pin": "1234",
            "bank_id": 44,
            "account_number": "0010012345",
            "customer_id": 987,
            "account_branch_id": 55,
            "account_type_id": 1,
            "preferred_kitta": 10,
            "dmat_expiry_date": "2085-01-01",
            "expired_date": NOW + timedelta(days=365),
            "password_expiry_date": NOW + timedelta(days=90),
            "status": "active",
        }
        fields.update(overrides)
        account = Account(**fields)
        account_repo.create(account)
        return account

    return _make


@pytest.fixture
def issue_payload() -> Callable[..., dict[str, Any]]:
    """Raw applicableIssue row as MeroShare returns it."""

    def _payload(**overrides: Any) -> dict[str, Any]:
        row: dict[str, Any] = {
            "companyShareId": 710,
            "subGroup": "For General Public",
            "scrip": "BCTL",
            "companyName": "Bandipur Cable Car and Tourism Ltd",
            "shareTypeName": "IPO",
            "shareGroupName": "Ordinary Shares",
            "statusName": "CREATE_APPROVE",
            "action": "",
            "issueOpenDate": "Aug 27, 2025 10:00:00 AM",
            "issueCloseDate": "Aug 31, 2025 5:00:00 PM",
        }
        row.update(overrides)
        return row

    return _payload
