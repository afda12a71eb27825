from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from app.batch import ApplicationBatch
from app.client import MeroShareClient, meroshare_client
from app.config import settings
from app.database import SessionLocal, engine, init_db
from app.errors import FetchFailed, MeroShareError, NoBankRecord, StoreError, Unauthenticated
from app.linking import AccountLinker
from app.logging import configure_logging
from app.repositories import AccountRepository, ShareRepository
from app.scheduler import start_scheduler, stop_scheduler
from app.schemas import (
    AccountCreatedResponse,
    AccountItem,
    AccountStatusUpdate,
    AppliedShareErrorItem,
    AppliedShareItem,
    BankOptionItem,
    CreateAccountRequest,
    CredentialsRequest,
    MessageResponse,
)

logger = structlog.get_logger(__name__)


def run_daily_batch() -> None:
    ApplicationBatch(AccountRepository(SessionLocal), ShareRepository(SessionLocal)).run()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    configure_logging(settings.log_level, settings.log_format)
    init_db(engine)
    if settings.scheduler_enabled:
        start_scheduler(run_daily_batch)
    logger.info("app.startup", env=settings.app_env)
    yield
    stop_scheduler()
    logger.info("app.shutdown")


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_account_repository() -> AccountRepository:
    return AccountRepository(SessionLocal)


def get_share_repository() -> ShareRepository:
    return ShareRepository(SessionLocal)


def get_client() -> MeroShareClient:
    return meroshare_client


def current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    # Token issuance lives in the auth gateway in front of this service.
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="User ID not found in request")
    return x_user_id.strip()


@app.get('/health')
def health() -> dict[str, str]:
    return {'status': 'ok', 'env': settings.app_env}


@app.post(f'{settings.api_prefix}/accounts', response_model=AccountCreatedResponse)
def create_account(
    request: CreateAccountRequest,
    user_id: str = Depends(current_user_id),
    accounts: AccountRepository = Depends(get_account_repository),
    client: MeroShareClient = Depends(get_client),
) -> AccountCreatedResponse:
    linker = AccountLinker(accounts, client)
    try:
        account_id = linker.link(user_id, request)
    except Unauthenticated as exc:
        raise HTTPException(status_code=401, detail="Failed to login account") from exc
    except (FetchFailed, NoBankRecord) as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except StoreError as exc:
        raise HTTPException(status_code=409, detail="Unable to save account; it may already be linked") from exc
    return AccountCreatedResponse(account_id=account_id)


@app.get(f'{settings.api_prefix}/accounts', response_model=list[AccountItem])
def list_accounts(
    user_id: str = Depends(current_user_id),
    accounts: AccountRepository = Depends(get_account_repository),
) -> list[AccountItem]:
    return [AccountItem.model_validate(account) for account in accounts.list_by_user(user_id)]


def _owned_account(account_id: str, user_id: str, accounts: AccountRepository):
    account = accounts.get_for_user(account_id, user_id)
    if account is None:
        raise HTTPException(status_code=404, detail="Account not found")
    return account


@app.get(f'{settings.api_prefix}/accounts/{{account_id}}', response_model=AccountItem)
def get_account(
    account_id: str,
    user_id: str = Depends(current_user_id),
    accounts: AccountRepository = Depends(get_account_repository),
) -> AccountItem:
    return AccountItem.model_validate(_owned_account(account_id, user_id, accounts))


@app.patch(f'{settings.api_prefix}/accounts/{{account_id}}/status', response_model=AccountItem)
def update_account_status(
    account_id: str,
    request: AccountStatusUpdate,
    user_id: str = Depends(current_user_id),
    accounts: AccountRepository = Depends(get_account_repository),
) -> AccountItem:
    _owned_account(account_id, user_id, accounts)
    accounts.set_status(account_id, request.status)
    logger.info("account.status_updated", account_id=account_id, status=request.status.value)
    return AccountItem.model_validate(accounts.get(account_id))


@app.delete(f'{settings.api_prefix}/accounts/{{account_id}}', response_model=MessageResponse)
def delete_account(
    account_id: str,
    user_id: str = Depends(current_user_id),
    accounts: AccountRepository = Depends(get_account_repository),
) -> MessageResponse:
    _owned_account(account_id, user_id, accounts)
    accounts.delete(account_id)
    return MessageResponse(message="Account deleted successfully")


@app.post(f'{settings.api_prefix}/banks', response_model=list[BankOptionItem])
def get_banks_for_account(
    request: CredentialsRequest,
    client: MeroShareClient = Depends(get_client),
) -> list[BankOptionItem]:
    try:
        token = client.login(request.client_id, request.username, request.password)
        banks = client.fetch_banks(token)
    except Unauthenticated as exc:
        raise HTTPException(status_code=401, detail="Failed to login account") from exc
    except MeroShareError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return [BankOptionItem(bank_id=bank.id, bank_name=bank.name) for bank in banks]


@app.get(f'{settings.api_prefix}/shares/applied', response_model=list[AppliedShareItem])
def list_applied_shares(
    user_id: str = Depends(current_user_id),
    shares: ShareRepository = Depends(get_share_repository),
) -> list[AppliedShareItem]:
    return [AppliedShareItem.model_validate(share) for share in shares.list_by_user(user_id)]


@app.get(f'{settings.api_prefix}/shares/errors', response_model=list[AppliedShareErrorItem])
def list_applied_share_errors(
    account_id: Optional[str] = None,
    user_id: str = Depends(current_user_id),
    shares: ShareRepository = Depends(get_share_repository),
) -> list[AppliedShareErrorItem]:
    return [
        AppliedShareErrorItem.model_validate(error)
        for error in shares.list_errors_by_user(user_id, account_id)
    ]


@app.post(f'{settings.api_prefix}/shares/errors/seen', response_model=MessageResponse)
def mark_share_errors_seen(
    user_id: str = Depends(current_user_id),
    shares: ShareRepository = Depends(get_share_repository),
) -> MessageResponse:
    count = shares.mark_errors_seen(user_id)
    return MessageResponse(message="Errors marked as seen", count=count)
