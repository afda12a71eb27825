"""Account status values and the pre-flight eligibility check run by the batch."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timezone
from enum import Enum
from typing import Optional, Protocol

import structlog

from app.date_converter import as_utc, parse_bs_date
from app.errors import DateConversionError

logger = structlog.get_logger(__name__)


class AccountStatus(str, Enum):
    ACTIVE = "active"
    MEROSHARE_EXPIRED = "meroshare_expired"
    PASSWORD_EXPIRED = "password_expired"
    DMAT_EXPIRED = "dmat_expired"
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_PIN = "invalid_pin"


class ExpiringAccount(Protocol):
    id: str
    status: str
    expired_date: datetime
    password_expiry_date: datetime
    dmat_expiry_date: str


@dataclass(frozen=True)
class Verdict:
    eligible: bool
    # Status the batch should persist; None on an ineligible verdict means skip untouched.
    status: Optional[AccountStatus] = None


ELIGIBLE = Verdict(eligible=True)
SKIP = Verdict(eligible=False)


def classify(account: ExpiringAccount, now: datetime) -> Verdict:
    """Decide whether the batch may apply on behalf of ``account``.

    Checks run in a fixed order and the first match wins: account already
    non-active, MeroShare account expiry, password expiry, DMAT expiry.
    """
    if account.status != AccountStatus.ACTIVE.value:
        return SKIP

    now = as_utc(now)
    if as_utc(account.expired_date) < now:
        return Verdict(eligible=False, status=AccountStatus.MEROSHARE_EXPIRED)
    if as_utc(account.password_expiry_date) < now:
        return Verdict(eligible=False, status=AccountStatus.PASSWORD_EXPIRED)

    try:
        dmat_expiry = parse_bs_date(account.dmat_expiry_date)
    except DateConversionError as exc:
        logger.error(
            "eligibility.dmat_conversion_failed",
            account_id=account.id,
            dmat_expiry_date=account.dmat_expiry_date,
            error=str(exc),
        )
        return SKIP
    # Expired from the start of the expiry day
    if datetime.combine(dmat_expiry, time.min, tzinfo=timezone.utc) < now:
        return Verdict(eligible=False, status=AccountStatus.DMAT_EXPIRED)

    return ELIGIBLE
