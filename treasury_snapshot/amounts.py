"""
Amount Conversion - exact smallest-unit <-> decimal string conversion.

All arithmetic is done on Python integers; floats never touch a balance.
Timestamps are rendered in the same millisecond-precision UTC form used
across every artifact.
"""

import re
from datetime import datetime, timedelta, timezone
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any, Union

from treasury_snapshot.exceptions import FormatError


_RAW_INTEGER = re.compile(r"^-?\d+$")
_DECIMAL = re.compile(r"^(?P<sign>-?)(?P<whole>\d*)(?:\.(?P<frac>\d*))?$")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _check_precision(precision: Any) -> int:
    # bool is an int subclass; True would silently mean 1 decimal
    if isinstance(precision, bool) or not isinstance(precision, int):
        raise FormatError(
            message=f"Precision must be an integer, got {precision!r}",
            value=precision,
            field_name="precision",
        )
    if precision < 0:
        raise FormatError(
            message=f"Precision must be non-negative, got {precision}",
            value=precision,
            field_name="precision",
        )
    return precision


def _parse_raw(raw: Union[str, int]) -> int:
    if isinstance(raw, bool):
        raise FormatError(message="Raw amount must not be a boolean", value=raw, field_name="raw")
    if isinstance(raw, int):
        return raw
    if not isinstance(raw, str) or not _RAW_INTEGER.match(raw):
        raise FormatError(
            message=f"Raw amount is not an integer string: {raw!r}",
            value=raw,
            field_name="raw",
        )
    return int(raw)


def to_decimal_string(raw: Union[str, int], precision: int) -> str:
    """
    Render a smallest-unit integer as a human-readable decimal string.

    Trailing fractional zeros are dropped, and so is the decimal point
    when nothing remains after it:

        >>> to_decimal_string("1500000", 6)
        '1.5'
        >>> to_decimal_string("2000000", 6)
        '2'

    Raises:
        FormatError: raw is not an integer string, or precision is invalid
    """
    precision = _check_precision(precision)
    value = _parse_raw(raw)

    whole, frac = divmod(abs(value), 10 ** precision)
    text = str(whole)
    if frac:
        text += "." + str(frac).rjust(precision, "0").rstrip("0")

    return f"-{text}" if value < 0 else text


def to_integer(amount: str, precision: int) -> str:
    """
    Convert a decimal string back into its smallest-unit integer string.

    Raises:
        FormatError: malformed input, invalid precision, or more fractional
            digits than the precision can represent
    """
    precision = _check_precision(precision)
    match = _DECIMAL.match(amount) if isinstance(amount, str) else None
    if not match or not (match.group("whole") or match.group("frac")):
        raise FormatError(
            message=f"Not a decimal amount: {amount!r}",
            value=amount,
            field_name="amount",
        )

    whole = match.group("whole") or "0"
    frac = (match.group("frac") or "").rstrip("0")
    if len(frac) > precision:
        raise FormatError(
            message=f"{amount!r} has more than {precision} fractional digits",
            value=amount,
            field_name="amount",
        )

    value = int(whole + frac.ljust(precision, "0"))
    if match.group("sign") and value:
        value = -value
    return str(value)


def format_instant(moment: datetime) -> str:
    """Format a datetime as YYYY-MM-DDTHH:MM:SS.mmmZ (naive means UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return f"{moment:%Y-%m-%dT%H:%M:%S}.{moment.microsecond // 1000:03d}Z"


def iso_from_unix_seconds(value: Union[str, int, float]) -> str:
    """
    Convert Unix epoch seconds (number or numeric string) to an ISO-8601 instant.

        >>> iso_from_unix_seconds("1700000000")
        '2023-11-14T22:13:20.000Z'
    """
    if isinstance(value, bool) or value is None:
        raise FormatError(message=f"Invalid epoch timestamp: {value!r}", value=value, field_name="timeStamp")

    try:
        seconds = Decimal(str(value).strip())
        if not seconds.is_finite():
            raise InvalidOperation(str(value))
        millis = int((seconds * 1000).to_integral_value(rounding=ROUND_DOWN))
        moment = _EPOCH + timedelta(milliseconds=millis)
    except (InvalidOperation, OverflowError) as e:
        raise FormatError(
            message=f"Invalid epoch timestamp: {value!r}",
            value=value,
            field_name="timeStamp",
            original_error=e,
        )

    return format_instant(moment)
