"""Daily IPO application run over every linked account."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone

import structlog

from app.client import MeroShareClient, SubmissionOutcome, meroshare_client
from app.eligibility import AccountStatus, classify
from app.errors import (
    ApplicationError,
    FetchFailed,
    InvalidCredentials,
    InvalidPin,
    StoreError,
    Unauthenticated,
)
from app.models import Account, AppliedShare, AppliedShareError
from app.repositories import AccountRepository, ShareRepository
from app.schemas import ApplicableIssue, ApplicationRequest

logger = structlog.get_logger(__name__)

ORDINARY_SHARES = "Ordinary Shares"


@dataclass
class BatchSummary:
    accounts_total: int = 0
    accounts_processed: int = 0
    accounts_skipped: int = 0
    accounts_marked: int = 0
    applied: int = 0
    failed: int = 0
    in_process: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


def is_applicable(issue: ApplicableIssue) -> bool:
    """Only ordinary shares with no pending action on MeroShare's side."""
    return not issue.action and issue.share_group_name == ORDINARY_SHARES


def build_application(account: Account, issue: ApplicableIssue) -> ApplicationRequest:
    return ApplicationRequest(
        demat=account.demat,
        boid=account.boid,
        account_number=account.account_number,
        customer_id=account.customer_id,
        account_branch_id=account.account_branch_id,
        account_type_id=account.account_type_id,
        applied_kitta=str(account.preferred_kitta),
        crn_number=account.crn_number,
        transaction_pin=account.transaction_pin,
        company_share_id=str(issue.company_share_id),
        bank_id=account.bank_id,
    )


class ApplicationBatch:
    """Applies for every open ordinary issue on behalf of every eligible account.

    Accounts are handled one at a time and independently. A failure on one
    account or issue is logged (and, for submissions, recorded as a failed
    AppliedShare) and the run moves on; nothing here aborts the whole batch.
    """

    def __init__(
        self,
        accounts: AccountRepository,
        shares: ShareRepository,
        client: MeroShareClient | None = None,
    ) -> None:
        self.accounts = accounts
        self.shares = shares
        self.client = client or meroshare_client

    def run(self, now: datetime | None = None) -> BatchSummary:
        now = now or datetime.now(timezone.utc)
        summary = BatchSummary()
        logger.info("batch.start", now=now.isoformat())

        try:
            accounts = self.accounts.list_all()
        except StoreError as exc:
            logger.error("batch.list_accounts_failed", error=str(exc))
            return summary
        summary.accounts_total = len(accounts)

        for account in accounts:
            try:
                self._process_account(account, now, summary)
            except StoreError as exc:
                logger.error("batch.account.store_error", account_id=account.id, error=str(exc))
                summary.accounts_skipped += 1
            except Exception:
                logger.exception("batch.account.error", account_id=account.id)
                summary.accounts_skipped += 1

        logger.info("batch.done", **summary.as_dict())
        return summary

    def _mark(self, account: Account, status: AccountStatus, summary: BatchSummary) -> None:
        self.accounts.set_status(account.id, status)
        summary.accounts_marked += 1
        logger.info("batch.account.status_changed", account_id=account.id, status=status.value)

    def _process_account(self, account: Account, now: datetime, summary: BatchSummary) -> None:
        verdict = classify(account, now)
        if not verdict.eligible:
            if verdict.status is not None:
                self._mark(account, verdict.status, summary)
            else:
                summary.accounts_skipped += 1
            return

        try:
            token = self.client.login(account.client_id, account.username, account.password)
        except InvalidCredentials:
            self._mark(account, AccountStatus.INVALID_CREDENTIALS, summary)
            return
        except Unauthenticated as exc:
            # Stays active and is retried on the next run
            logger.warning("batch.account.login_failed", account_id=account.id, error=str(exc))
            summary.accounts_skipped += 1
            return

        try:
            issues = self.client.fetch_applicable_issues(token)
        except (FetchFailed, ValueError) as exc:
            logger.error("batch.account.issues_failed", account_id=account.id, error=str(exc))
            summary.accounts_skipped += 1
            return

        summary.accounts_processed += 1
        for issue in issues:
            if not is_applicable(issue):
                continue
            try:
                self._apply_issue(account, issue, token, summary)
            except StoreError as exc:
                logger.error(
                    "batch.issue.store_error",
                    account_id=account.id,
                    company_share_id=issue.company_share_id,
                    error=str(exc),
                )

    def _apply_issue(
        self,
        account: Account,
        issue: ApplicableIssue,
        token: str,
        summary: BatchSummary,
    ) -> None:
        if self.shares.find_by_account_and_issue(account.id, issue.company_share_id) is not None:
            return

        log = logger.bind(account_id=account.id, company_share_id=issue.company_share_id, scrip=issue.scrip)
        try:
            result = self.client.apply(token, build_application(account, issue))
        except ApplicationError as exc:
            log.error("batch.issue.apply_failed", error=str(exc))
            # The failed row goes in first; it is what stops a resubmission.
            try:
                self._record_failure(account, issue, str(exc))
                summary.failed += 1
            finally:
                if isinstance(exc, InvalidPin):
                    self._mark(account, AccountStatus.INVALID_PIN, summary)
            return

        if result.outcome is SubmissionOutcome.IN_PROCESS:
            log.info("batch.issue.in_process")
            summary.in_process += 1
            return

        self.shares.insert_applied_share(self._applied_share(account, issue, "applied"))
        log.info("batch.issue.applied", kitta=account.preferred_kitta)
        summary.applied += 1

    def _applied_share(self, account: Account, issue: ApplicableIssue, status: str) -> AppliedShare:
        return AppliedShare(
            user_id=account.user_id,
            account_id=account.id,
            company_share_id=issue.company_share_id,
            company_name=issue.company_name,
            scrip=issue.scrip,
            share_group_name=issue.share_group_name,
            share_type_name=issue.share_type_name,
            sub_group=issue.sub_group,
            applied_kitta=account.preferred_kitta,
            status=status,
        )

    def _record_failure(self, account: Account, issue: ApplicableIssue, message: str) -> None:
        applied_share_id = self.shares.insert_applied_share(self._applied_share(account, issue, "failed"))
        self.shares.insert_applied_share_error(
            AppliedShareError(
                user_id=account.user_id,
                account_id=account.id,
                applied_share_id=applied_share_id,
                message=message,
            )
        )
