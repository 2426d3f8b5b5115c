"""Date and duration functions (Sprig date family).

Formats use Go reference-time layouts ("2006-01-02 15:04:05"). Layouts are
tokenized once and cached; formatting renders each token from the datetime
directly (English names, independent of the process locale) while parsing
converts the layout into a strptime format.

Values accepted as dates: datetime, date, or Unix seconds (int/float).
Naive datetimes are taken as local time.

Python 3.13+. Zero external dependencies.
"""

import functools
import logging
import re
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta, tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from gotmplengine.runtime.function_bridge import FunctionRegistry

from .coerce import to_str

__all__ = [
    "format_go_duration",
    "go_layout_to_strptime",
    "go_strftime",
    "parse_go_duration",
    "register",
]

logger = logging.getLogger(__name__)

_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

# Tried in order at each layout position; longer spellings precede their prefixes.
_LAYOUT_TOKENS = (
    "January", "Jan", "Monday", "Mon", "MST",
    "2006", "002", "01", "02", "03", "04", "05", "06", "_2",
    "15", "1", "2", "3", "4", "5", "PM", "pm",
    "-07:00:00", "-070000", "-07:00", "-0700", "-07",
    "Z07:00:00", "Z070000", "Z07:00", "Z0700", "Z07",
)
_FRACTION = re.compile(r"[.,](0+|9+)(?!\d)")

_STRPTIME = {
    "January": "%B", "Jan": "%b", "Monday": "%A", "Mon": "%a", "MST": "%Z",
    "2006": "%Y", "06": "%y", "002": "%j", "01": "%m", "1": "%m",
    "02": "%d", "2": "%d", "_2": "%d", "15": "%H", "03": "%I", "3": "%I",
    "04": "%M", "4": "%M", "05": "%S", "5": "%S", "PM": "%p", "pm": "%p",
}

_DURATION_UNITS = {
    "ns": 1e-3,
    "us": 1.0,
    "µs": 1.0,
    "μs": 1.0,
    "ms": 1e3,
    "s": 1e6,
    "m": 60e6,
    "h": 3600e6,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")

_ZERO_TIME = datetime(1, 1, 1, tzinfo=UTC)

type _Piece = str | tuple[str, str]


# ============================================================================
# LAYOUTS
# ============================================================================


@functools.lru_cache(maxsize=128)
def _tokenize(layout: str) -> tuple[_Piece, ...]:
    """Split a Go layout into literal strings and (kind, token) pairs."""
    pieces: list[_Piece] = []
    literal: list[str] = []
    i = 0
    while i < len(layout):
        fraction = _FRACTION.match(layout, i)
        if fraction is not None:
            pieces.extend(["".join(literal), ("fraction", fraction.group(0))])
            literal.clear()
            i = fraction.end()
            continue
        for token in _LAYOUT_TOKENS:
            if layout.startswith(token, i):
                pieces.extend(["".join(literal), ("field", token)])
                literal.clear()
                i += len(token)
                break
        else:
            literal.append(layout[i])
            i += 1
    pieces.append("".join(literal))
    return tuple(p for p in pieces if p != "")


def _offset(moment: datetime, token: str) -> str:
    delta = moment.utcoffset() or timedelta()
    if token.startswith("Z") and not delta:
        return "Z"
    seconds = int(delta.total_seconds())
    sign = "-" if seconds < 0 else "+"
    hours, rest = divmod(abs(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    body = token.lstrip("Z-")
    match body:
        case "07":
            return f"{sign}{hours:02d}"
        case "0700":
            return f"{sign}{hours:02d}{minutes:02d}"
        case "07:00":
            return f"{sign}{hours:02d}:{minutes:02d}"
        case "070000":
            return f"{sign}{hours:02d}{minutes:02d}{secs:02d}"
        case _:
            return f"{sign}{hours:02d}:{minutes:02d}:{secs:02d}"


def _fraction(moment: datetime, token: str) -> str:
    digits = f"{moment.microsecond * 1000:09d}"[: len(token) - 1]
    if token[1] == "9":
        digits = digits.rstrip("0")
        return token[0] + digits if digits else ""
    return token[0] + digits


def _hour12(moment: datetime) -> int:
    return moment.hour % 12 or 12


_FIELDS: dict[str, Callable[[datetime], str]] = {
    "January": lambda t: _MONTHS[t.month - 1],
    "Jan": lambda t: _MONTHS[t.month - 1][:3],
    "Monday": lambda t: _DAYS[t.weekday()],
    "Mon": lambda t: _DAYS[t.weekday()][:3],
    "MST": lambda t: t.tzname() or _offset(t, "-0700"),
    "2006": lambda t: f"{t.year:04d}",
    "06": lambda t: f"{t.year % 100:02d}",
    "002": lambda t: f"{t.timetuple().tm_yday:03d}",
    "01": lambda t: f"{t.month:02d}",
    "1": lambda t: str(t.month),
    "02": lambda t: f"{t.day:02d}",
    "_2": lambda t: f"{t.day:2d}",
    "2": lambda t: str(t.day),
    "15": lambda t: f"{t.hour:02d}",
    "03": lambda t: f"{_hour12(t):02d}",
    "3": lambda t: str(_hour12(t)),
    "04": lambda t: f"{t.minute:02d}",
    "4": lambda t: str(t.minute),
    "05": lambda t: f"{t.second:02d}",
    "5": lambda t: str(t.second),
    "PM": lambda t: "PM" if t.hour >= 12 else "AM",
    "pm": lambda t: "pm" if t.hour >= 12 else "am",
}


def go_strftime(layout: str, moment: datetime) -> str:
    """Format a datetime with a Go reference-time layout.

    Example:
        >>> go_strftime("Jan _2 15:04:05.000", datetime(2024, 3, 5, 7, 8, 9, 120000))
        'Mar  5 07:08:09.120'
    """
    out: list[str] = []
    for piece in _tokenize(layout):
        match piece:
            case str():
                out.append(piece)
            case ("fraction", token):
                out.append(_fraction(moment, token))
            case ("field", token) if token in _FIELDS:
                out.append(_FIELDS[token](moment))
            case ("field", token):
                out.append(_offset(moment, token))
    return "".join(out)


def go_layout_to_strptime(layout: str) -> str:
    """Convert a Go layout into an equivalent strptime format.

    Example:
        >>> go_layout_to_strptime("2006-01-02T15:04:05Z07:00")
        '%Y-%m-%dT%H:%M:%S%z'
    """
    out: list[str] = []
    for piece in _tokenize(layout):
        match piece:
            case str():
                out.append(piece.replace("%", "%%"))
            case ("fraction", token):
                out.append(token[0] + "%f")
            case ("field", token):
                out.append(_STRPTIME.get(token, "%z"))
    return "".join(out)


# ============================================================================
# DURATIONS
# ============================================================================


def parse_go_duration(text: str) -> timedelta:
    """Parse a Go duration string such as "1h30m" or "-1.5s".

    Raises:
        ValueError: If the text is not a valid duration
    """
    body = text.strip()
    sign = 1
    if body and body[0] in "+-":
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    if body == "0":
        return timedelta()
    if not body:
        msg = f'time: invalid duration "{text}"'
        raise ValueError(msg)

    micros = 0.0
    position = 0
    for part in _DURATION_PART.finditer(body):
        if part.start() != position:
            break
        micros += float(part.group(1)) * _DURATION_UNITS[part.group(2)]
        position = part.end()
    if position != len(body):
        msg = f'time: invalid duration "{text}"'
        raise ValueError(msg)
    return timedelta(microseconds=sign * micros)


def format_go_duration(delta: timedelta) -> str:
    """Render a timedelta the way Go's Duration.String does.

    Example:
        >>> format_go_duration(timedelta(hours=1, seconds=90.5))
        '1h1m30.5s'
    """
    micros = delta // timedelta(microseconds=1)
    if micros == 0:
        return "0s"
    sign = "-" if micros < 0 else ""
    micros = abs(micros)
    if micros < 1_000_000:
        if micros < 1000:
            return f"{sign}{micros}µs"
        return f"{sign}{_trim_decimal(micros / 1000)}ms"

    hours, rest = divmod(micros, 3_600_000_000)
    minutes, rest = divmod(rest, 60_000_000)
    seconds = _trim_decimal(rest / 1_000_000)
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


def _trim_decimal(value: float) -> str:
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return text or "0"


# ============================================================================
# COERCION
# ============================================================================


def _local_zone() -> tzinfo:
    zone = datetime.now().astimezone().tzinfo
    assert zone is not None  # astimezone() always attaches a zone
    return zone


def _zone(name: Any) -> tzinfo:
    """Resolve a zone name; unknown zones fall back to UTC."""
    text = to_str(name)
    if text in {"", "UTC"}:
        return UTC
    if text == "Local":
        return _local_zone()
    try:
        return ZoneInfo(text)
    except (ZoneInfoNotFoundError, ValueError):
        logger.debug("Unknown time zone %r, using UTC", text)
        return UTC


def _to_datetime(value: Any) -> datetime:
    match value:
        case datetime():
            return value if value.tzinfo is not None else value.astimezone()
        case date():
            return datetime(value.year, value.month, value.day).astimezone()
        case bool():
            return datetime.now().astimezone()
        case int() | float():
            return datetime.fromtimestamp(value).astimezone()
        case _:
            return datetime.now().astimezone()


# ============================================================================
# TEMPLATE FUNCTIONS
# ============================================================================


def now() -> datetime:
    return datetime.now().astimezone()


def date_in_zone(layout: Any, value: Any, zone: Any) -> str:
    """Format a date in the named IANA zone.

    Example:
        >>> date_in_zone("2006-01-02 15:04", datetime(2024, 1, 2, 3, 4, tzinfo=UTC), "UTC")
        '2024-01-02 03:04'
    """
    return go_strftime(to_str(layout), _to_datetime(value).astimezone(_zone(zone)))


def date_(layout: Any, value: Any) -> str:
    return date_in_zone(layout, value, "Local")


def html_date(value: Any) -> str:
    return date_in_zone("2006-01-02", value, "Local")


def html_date_in_zone(value: Any, zone: Any) -> str:
    return date_in_zone("2006-01-02", value, zone)


def unix_epoch(value: Any) -> str:
    return str(int(_to_datetime(value).timestamp()))


def must_to_date(layout: Any, text: Any) -> datetime:
    """Parse text with a Go layout; zone-less results are local time."""
    parsed = datetime.strptime(to_str(text), go_layout_to_strptime(to_str(layout)))  # noqa: DTZ007
    if parsed.tzinfo is None:
        return parsed.astimezone()
    return parsed


def to_date(layout: Any, text: Any) -> datetime:
    """Lenient parse: unparseable text yields the zero time (0001-01-01 UTC)."""
    try:
        return must_to_date(layout, text)
    except ValueError as e:
        logger.debug("toDate failed: %s", e)
        return _ZERO_TIME


def must_date_modify(modifier: Any, value: Any) -> datetime:
    return _to_datetime(value) + parse_go_duration(to_str(modifier))


def date_modify(modifier: Any, value: Any) -> datetime:
    """Shift a date by a Go duration; an invalid duration leaves it unchanged."""
    try:
        return must_date_modify(modifier, value)
    except ValueError:
        return _to_datetime(value)


def _to_timedelta(value: Any) -> timedelta:
    match value:
        case timedelta():
            return value
        case datetime() | date():
            return now() - _to_datetime(value)
        case bool():
            return timedelta()
        case int() | float():
            return timedelta(microseconds=value / 1000)
        case _:
            try:
                return parse_go_duration(to_str(value))
            except ValueError:
                return timedelta()


_ROUNDING_UNITS = (
    (timedelta(days=365), "y"),
    (timedelta(days=30), "mo"),
    (timedelta(days=1), "d"),
    (timedelta(hours=1), "h"),
    (timedelta(minutes=1), "m"),
    (timedelta(seconds=1), "s"),
)


def duration_round(value: Any) -> str:
    """Round a duration to its largest unit.

    Strings are Go durations, numbers are nanoseconds and dates measure the
    time elapsed since then.

    Example:
        >>> duration_round("2h10m5s")
        '2h'
    """
    delta = _to_timedelta(value)
    sign = "-" if delta < timedelta() else ""
    delta = abs(delta)
    for unit, suffix in _ROUNDING_UNITS:
        if delta > unit:
            return f"{sign}{delta // unit}{suffix}"
    return "0s"


def duration(seconds: Any) -> str:
    """Go duration string for a number of seconds."""
    match seconds:
        case int() | float():
            return format_go_duration(timedelta(seconds=seconds))
        case _:
            try:
                return format_go_duration(timedelta(seconds=float(to_str(seconds))))
            except ValueError:
                return "0s"


def ago(value: Any) -> str:
    elapsed = now() - _to_datetime(value)
    return format_go_duration(timedelta(seconds=round(elapsed.total_seconds())))


def register(registry: FunctionRegistry) -> None:
    """Register the date functions."""
    for func in (
        now,
        date_in_zone,
        html_date,
        html_date_in_zone,
        unix_epoch,
        to_date,
        must_to_date,
        date_modify,
        must_date_modify,
        duration_round,
        duration,
        ago,
    ):
        registry.register(func)
    registry.register(date_)
    registry.register(date_in_zone, name="date_in_zone")
    registry.register(date_modify, name="date_modify")
