from __future__ import annotations

from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait

import structlog

from app.client import MeroShareClient, meroshare_client
from app.date_converter import as_utc
from app.eligibility import AccountStatus
from app.errors import NoBankRecord
from app.models import Account
from app.repositories import AccountRepository
from app.schemas import BankDetail, CreateAccountRequest, OwnDetail

logger = structlog.get_logger(__name__)


class AccountLinker:
    """Logs into MeroShare with a candidate account and stores what it learns."""

    def __init__(self, accounts: AccountRepository, client: MeroShareClient | None = None) -> None:
        self.accounts = accounts
        self.client = client or meroshare_client

    def _fetch_metadata(self, token: str, bank_id: int) -> tuple[OwnDetail, list[BankDetail]]:
        # No cancellation: the slower call is left to finish on its own.
        executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="link-fetch")
        try:
            own_future = executor.submit(self.client.fetch_own_details, token)
            bank_future = executor.submit(self.client.fetch_bank_details, token, bank_id)
            done, _ = wait([own_future, bank_future], return_when=FIRST_EXCEPTION)
            for future in done:
                exc = future.exception()
                if exc is not None:
                    raise exc
            return own_future.result(), bank_future.result()
        finally:
            executor.shutdown(wait=False)

    def link(self, user_id: str, request: CreateAccountRequest) -> str:
        token = self.client.login(request.client_id, request.username, request.password)
        own, banks = self._fetch_metadata(token, request.bank_id)
        if not banks:
            raise NoBankRecord(f"No account found at bank {request.bank_id}")
        bank = banks[0]

        account = Account(
            user_id=user_id,
            name=own.name,
            email=own.email,
            contact=own.contact,
            demat=own.demat,
            boid=own.boid,
            client_id=request.client_id,
            username=request.username,
            password=request.password,
            crn_number=request.crn_number,
            transaction_pin=request.transaction_pin,
            bank_id=request.bank_id,
            account_number=bank.account_number,
            customer_id=bank.id,
            account_branch_id=bank.account_branch_id,
            account_type_id=bank.account_type_id,
            preferred_kitta=request.preferred_kitta,
            dmat_expiry_date=own.dmat_expiry_date,
            expired_date=as_utc(own.expired_date),
            password_expiry_date=as_utc(own.password_expiry_date),
            status=AccountStatus.ACTIVE.value,
        )
        account_id = self.accounts.create(account)
        logger.info("account.linked", account_id=account_id, user_id=user_id, boid=own.boid)
        return account_id
