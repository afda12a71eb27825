from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from xml.etree import ElementTree

import requests
import structlog
import urllib3

from app.config import settings
from app.errors import (
    ConflictOther,
    FetchFailed,
    InvalidCredentials,
    InvalidPin,
    SubmissionFailed,
    Unauthenticated,
)
from app.schemas import (
    ApplicableIssue,
    ApplicableIssuesPage,
    ApplicationRequest,
    BankDetail,
    BankOption,
    OwnDetail,
)

logger = structlog.get_logger(__name__)

if not settings.verify_ssl:
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)


class SubmissionOutcome(str, Enum):
    APPLIED = "applied"
    IN_PROCESS = "in_process"


class ConflictOutcome(str, Enum):
    INVALID_PIN = "invalid_pin"
    IN_PROCESS = "in_process"


# Known 409 messages from MeroShare. Anything not listed here is a ConflictOther.
CONFLICT_MESSAGES: dict[str, ConflictOutcome] = {
    "You have entered wrong transaction PIN.": ConflictOutcome.INVALID_PIN,
    "Application in process. Please try again later.": ConflictOutcome.IN_PROCESS,
}

APPLICABLE_ISSUE_PAGE_SIZE = 10


@dataclass
class SubmissionResult:
    outcome: SubmissionOutcome
    status_code: int
    body: dict[str, Any] = field(default_factory=dict)


class MeroShareClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: int | None = None,
        verify: bool | None = None,
    ) -> None:
        self.base_url = (base_url or settings.meroshare_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.verify = settings.verify_ssl if verify is None else verify

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def login(self, client_id: int, username: str, password: str) -> str:
        try:
            r = requests.post(
                self._url("/auth/"),
                json={"clientId": str(client_id), "username": username, "password": password},
                verify=self.verify,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise Unauthenticated(f"Authentication failed: {exc}") from exc

        if r.status_code == 401:
            raise InvalidCredentials("invalid credentials")
        if r.status_code != 200:
            raise Unauthenticated(f"Authentication failed ({r.status_code})")

        token = r.headers.get("Authorization")
        if not token:
            raise Unauthenticated("Authentication token missing")
        return token

    def _get(self, path: str, token: str, what: str) -> requests.Response:
        try:
            r = requests.get(
                self._url(path),
                headers={"Authorization": token},
                verify=self.verify,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise FetchFailed(f"Unable to fetch {what}: {exc}") from exc
        if r.status_code != 200:
            raise FetchFailed(f"Unable to fetch {what} ({r.status_code})")
        return r

    def fetch_own_details(self, token: str) -> OwnDetail:
        r = self._get("/ownDetail/", token, "user details")
        try:
            return OwnDetail.model_validate(r.json())
        except ValueError as exc:
            raise FetchFailed(f"Unreadable user details: {exc}") from exc

    def fetch_bank_details(self, token: str, bank_id: int | str) -> list[BankDetail]:
        """Account records held at ``bank_id``. The list may be empty."""
        r = self._get(f"/bank/{bank_id}", token, "bank details")
        try:
            return [BankDetail.model_validate(item) for item in r.json() or []]
        except ValueError as exc:
            raise FetchFailed(f"Unreadable bank details: {exc}") from exc

    def fetch_banks(self, token: str) -> list[BankOption]:
        r = self._get("/bank/", token, "bank list")
        try:
            return [BankOption.model_validate(item) for item in r.json() or []]
        except ValueError as exc:
            raise FetchFailed(f"Unreadable bank list: {exc}") from exc

    def fetch_applicable_issues(self, token: str) -> list[ApplicableIssue]:
        payload = {
            "filterFieldParams": [
                {"key": "companyIssue.companyISIN.script", "alias": "Scrip"},
                {"key": "companyIssue.companyISIN.company.name", "alias": "Company Name"},
                {
                    "key": "companyIssue.assignedToClient.name",
                    "value": "",
                    "alias": "Issue Manager",
                },
            ],
            "page": 1,
            "size": APPLICABLE_ISSUE_PAGE_SIZE,
            "searchRoleViewConstants": "VIEW_APPLICABLE_SHARE",
            "filterDateParams": [
                {"key": "minIssueOpenDate", "condition": "", "alias": "", "value": ""},
                {"key": "maxIssueCloseDate", "condition": "", "alias": "", "value": ""},
            ],
        }
        try:
            r = requests.post(
                self._url("/companyShare/applicableIssue/"),
                json=payload,
                headers={"Authorization": token},
                verify=self.verify,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise FetchFailed(f"Unable to fetch open issues: {exc}") from exc
        # Status is not checked here; a non-JSON or malformed body fails in decoding.
        return ApplicableIssuesPage.model_validate(r.json()).issues

    def apply(self, token: str, application: ApplicationRequest) -> SubmissionResult:
        try:
            r = requests.post(
                self._url("/applicantForm/share/apply/"),
                json=application.model_dump(by_alias=True),
                headers={"Authorization": token},
                verify=self.verify,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise SubmissionFailed(None, f"failed to apply for share: {exc}") from exc

        if r.status_code == 200:
            try:
                body = r.json()
            except ValueError:
                body = {}
            return SubmissionResult(
                outcome=SubmissionOutcome.APPLIED,
                status_code=r.status_code,
                body=body if isinstance(body, dict) else {"response": body},
            )

        if r.status_code != 409:
            raise SubmissionFailed(r.status_code)

        message = self._conflict_message(r)
        if message is None:
            raise SubmissionFailed(r.status_code)

        outcome = CONFLICT_MESSAGES.get(message)
        if outcome is ConflictOutcome.INVALID_PIN:
            raise InvalidPin(message)
        if outcome is ConflictOutcome.IN_PROCESS:
            logger.info(
                "meroshare.apply.in_process",
                company_share_id=application.company_share_id,
            )
            return SubmissionResult(outcome=SubmissionOutcome.IN_PROCESS, status_code=r.status_code)
        raise ConflictOther(message)

    def _conflict_message(self, response: requests.Response) -> str | None:
        content_type = response.headers.get("Content-Type", "").lower()
        if "xml" in content_type:
            try:
                root = ElementTree.fromstring(response.content)
            except ElementTree.ParseError:
                return None
            text = root.findtext("message")
            if text is None and root.tag == "message":
                text = root.text
            return (text or "").strip()
        if "json" in content_type:
            try:
                body = response.json()
            except ValueError:
                return None
            if not isinstance(body, dict):
                return None
            return str(body.get("message") or "").strip()
        return None


meroshare_client = MeroShareClient()
