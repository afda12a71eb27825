"""Bikram Sambat (BS) to Gregorian (AD) date conversion.

MeroShare reports DMAT expiry as a BS date string such as ``2083-03-15``.
Conversion is table driven: every supported BS year stores the AD date of
its 1st Baisakh and the length of each of its twelve months.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from app.errors import (
    InvalidBSDateError,
    InvalidDayError,
    InvalidMonthError,
    OutOfRangeError,
)

BS_CALENDAR: dict[int, tuple[date, tuple[int, ...]]] = {
    2060: (date(2003, 4, 14), (31, 31, 32, 32, 31, 30, 30, 29, 30, 29, 30, 30)),
    2061: (date(2004, 4, 13), (31, 32, 31, 32, 31, 30, 30, 30, 29, 29, 30, 31)),
    2062: (date(2005, 4, 14), (30, 32, 31, 32, 31, 31, 29, 30, 29, 30, 29, 31)),
    2063: (date(2006, 4, 14), (31, 31, 32, 31, 31, 31, 30, 29, 30, 29, 30, 30)),
    2064: (date(2007, 4, 14), (31, 31, 32, 32, 31, 30, 30, 29, 30, 29, 30, 30)),
    2065: (date(2008, 4, 13), (31, 32, 31, 32, 31, 30, 30, 30, 29, 29, 30, 31)),
    2066: (date(2009, 4, 14), (31, 31, 31, 32, 31, 31, 29, 30, 30, 29, 29, 31)),
    2067: (date(2010, 4, 14), (31, 31, 32, 31, 31, 31, 30, 29, 30, 29, 30, 30)),
    2068: (date(2011, 4, 14), (31, 31, 32, 32, 31, 30, 30, 29, 30, 29, 30, 30)),
    2069: (date(2012, 4, 13), (31, 32, 31, 32, 31, 30, 30, 30, 29, 29, 30, 31)),
    2070: (date(2013, 4, 14), (31, 31, 31, 32, 31, 31, 29, 30, 30, 29, 30, 30)),
    2071: (date(2014, 4, 14), (31, 31, 32, 31, 31, 31, 30, 29, 30, 29, 30, 30)),
    2072: (date(2015, 4, 14), (31, 32, 31, 32, 31, 30, 30, 29, 30, 29, 30, 30)),
    2073: (date(2016, 4, 13), (31, 32, 31, 32, 31, 30, 30, 30, 29, 29, 30, 31)),
    2074: (date(2017, 4, 14), (31, 31, 31, 32, 31, 31, 30, 29, 30, 29, 30, 30)),
    2075: (date(2018, 4, 14), (31, 31, 32, 31, 31, 31, 30, 29, 30, 29, 30, 30)),
    2076: (date(2019, 4, 14), (31, 32, 31, 32, 31, 30, 30, 30, 29, 29, 30, 30)),
    2077: (date(2020, 4, 13), (31, 32, 31, 32, 31, 30, 30, 30, 29, 30, 29, 31)),
    2078: (date(2021, 4, 14), (31, 31, 31, 32, 31, 31, 30, 29, 30, 29, 30, 30)),
    2079: (date(2022, 4, 14), (31, 31, 32, 31, 31, 31, 30, 29, 30, 29, 30, 30)),
    2080: (date(2023, 4, 14), (31, 32, 31, 32, 31, 30, 30, 30, 29, 29, 30, 30)),
    2081: (date(2024, 4, 13), (31, 31, 32, 32, 31, 30, 30, 30, 29, 30, 30, 30)),
    2082: (date(2025, 4, 14), (30, 32, 31, 32, 31, 30, 30, 30, 29, 30, 30, 30)),
    2083: (date(2026, 4, 14), (31, 31, 32, 31, 31, 30, 30, 30, 29, 30, 30, 30)),
    2084: (date(2027, 4, 14), (31, 31, 32, 31, 31, 30, 30, 30, 29, 30, 30, 30)),
    2085: (date(2028, 4, 13), (31, 32, 31, 32, 30, 31, 30, 30, 29, 30, 30, 30)),
    2086: (date(2029, 4, 14), (30, 32, 31, 32, 31, 30, 30, 30, 29, 30, 30, 30)),
    2087: (date(2030, 4, 14), (31, 31, 32, 31, 31, 31, 30, 30, 29, 30, 30, 30)),
    2088: (date(2031, 4, 15), (30, 31, 32, 32, 30, 31, 30, 30, 29, 30, 30, 30)),
    2089: (date(2032, 4, 14), (30, 32, 31, 32, 31, 30, 30, 30, 29, 30, 30, 30)),
    2090: (date(2033, 4, 14), (30, 32, 31, 32, 31, 30, 30, 30, 29, 30, 30, 30)),
}


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; SQLite drops tzinfo on the way back."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def convert_bs_to_ad(year: int, month: int, day: int) -> date:
    """Convert a BS date to its AD equivalent.

    Raises OutOfRangeError, InvalidMonthError or InvalidDayError when the
    input cannot be placed in the table.
    """
    entry = BS_CALENDAR.get(year)
    if entry is None:
        raise OutOfRangeError(f"BS year {year} out of supported range")
    first_baisakh, days_in_month = entry
    if month < 1 or month > 12:
        raise InvalidMonthError(f"invalid BS month {month}")
    if day < 1 or day > days_in_month[month - 1]:
        raise InvalidDayError(f"invalid BS day {day} for {year}-{month:02d}")

    offset = sum(days_in_month[: month - 1]) + day - 1
    return first_baisakh + timedelta(days=offset)


def parse_bs_date(value: str) -> date:
    """Convert a stored ``YYYY-MM-DD`` BS string to an AD date."""
    parts = (value or "").strip().split("-")
    if len(parts) != 3:
        raise InvalidBSDateError(f"malformed BS date '{value}'")
    try:
        year, month, day = (int(part) for part in parts)
    except ValueError as exc:
        raise InvalidBSDateError(f"malformed BS date '{value}'") from exc
    return convert_bs_to_ad(year, month, day)
