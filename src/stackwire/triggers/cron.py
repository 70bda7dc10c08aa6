"""
stackwire.triggers.cron — Cron expressions.

Six fields, in order:

    minute  hour  day-of-month  month  day-of-week  year
    0-59    0-23  1-31 or ?     1-12   1-7 or ?     1970-2199

Each field is `*`, a literal, a range `a-b`, a step `x/n` (x being
`*`, a literal or a range) or a comma list of those. Months accept
JAN-DEC and days of week SUN-SAT (SUN = 1). At most one of
day-of-month and day-of-week may be `?`.

    CronExpression.parse("0 0 * * ? *")
    CronExpression.parse("cron(59 23 * * ? *)")
    cron(minute="0", hour="0")
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from stackwire.errors import ConfigurationError


_MONTHS = {m: i for i, m in enumerate(
    ["JAN", "FEB", "MAR", "APR", "MAY", "JUN",
     "JUL", "AUG", "SEP", "OCT", "NOV", "DEC"], start=1)}
_WEEKDAYS = {d: i for i, d in enumerate(
    ["SUN", "MON", "TUE", "WED", "THU", "FRI", "SAT"], start=1)}


@dataclass(frozen=True)
class _Field:
    label: str
    low: int
    high: int
    names: dict[str, int] | None = None
    allow_any: bool = False   # '?'


_FIELDS = {
    "minute": _Field("minute", 0, 59),
    "hour": _Field("hour", 0, 23),
    "day_of_month": _Field("day-of-month", 1, 31, allow_any=True),
    "month": _Field("month", 1, 12, names=_MONTHS),
    "day_of_week": _Field("day-of-week", 1, 7, names=_WEEKDAYS, allow_any=True),
    "year": _Field("year", 1970, 2199),
}


@dataclass(frozen=True)
class CronExpression:
    """Validated cron expression. Invalid fields raise ConfigurationError."""

    minute: str = "*"
    hour: str = "*"
    day_of_month: str = "*"
    month: str = "*"
    day_of_week: str = "?"
    year: str = "*"

    def __post_init__(self):
        for f in fields(self):
            raw = getattr(self, f.name)
            if isinstance(raw, bool) or not isinstance(raw, (str, int)):
                raise ConfigurationError(
                    f"cron {_FIELDS[f.name].label} must be a string, got {raw!r}"
                )
            value = str(raw).strip().upper()
            _check_field(value, _FIELDS[f.name])
            object.__setattr__(self, f.name, value)

        if self.day_of_month == "?" and self.day_of_week == "?":
            raise ConfigurationError(
                "cron day-of-month and day-of-week cannot both be '?'"
            )

    @classmethod
    def parse(cls, expression: str) -> CronExpression:
        """Parse `m h dom mon dow year`, optionally wrapped in `cron(...)`."""
        if not isinstance(expression, str):
            raise ConfigurationError(f"cron expression must be a string, got {expression!r}")
        text = expression.strip()
        if text.startswith("cron(") and text.endswith(")"):
            text = text[len("cron("):-1]
        parts = text.split()
        if len(parts) != 6:
            raise ConfigurationError(
                f"cron expression needs 6 fields, got {len(parts)}: '{expression}'"
            )
        return cls(*parts)

    def __str__(self) -> str:
        return (f"cron({self.minute} {self.hour} {self.day_of_month} "
                f"{self.month} {self.day_of_week} {self.year})")


def cron(
    minute: str | int | None = None,
    hour: str | int | None = None,
    day: str | int | None = None,
    month: str | int | None = None,
    week_day: str | int | None = None,
    year: str | int | None = None,
) -> CronExpression:
    """Build a CronExpression from named fields.

    Unset fields default to `*`. Day-of-week defaults to `?`; when it
    is given and ``day`` is not, day-of-month becomes `?` instead.

    >>> str(cron(minute="0", hour="0"))
    'cron(0 0 * * ? *)'
    >>> str(cron(minute=0, hour=9, week_day="MON"))
    'cron(0 9 ? * MON *)'
    """
    if week_day is None:
        dom, dow = ("*" if day is None else day), "?"
    else:
        dom, dow = ("?" if day is None else day), week_day
    return CronExpression(
        minute="*" if minute is None else minute,
        hour="*" if hour is None else hour,
        day_of_month=dom,
        month="*" if month is None else month,
        day_of_week=dow,
        year="*" if year is None else year,
    )


def as_cron(value: Any) -> CronExpression:
    """Coerce a CronExpression, an expression string or a mapping of
    `cron()` keywords."""
    if isinstance(value, CronExpression):
        return value
    if isinstance(value, str):
        return CronExpression.parse(value)
    if isinstance(value, dict):
        try:
            return cron(**value)
        except TypeError as e:
            raise ConfigurationError(f"Invalid cron fields: {sorted(value)}") from e
    raise ConfigurationError(f"Unsupported cron expression: {value!r}")


def _check_field(value: str, spec: _Field) -> None:
    if not value:
        raise ConfigurationError(f"cron {spec.label} is empty")
    if value == "*":
        return
    if value == "?":
        if not spec.allow_any:
            raise ConfigurationError(f"cron {spec.label} does not accept '?'")
        return
    for item in value.split(","):
        _check_item(item, spec)


def _check_item(item: str, spec: _Field) -> None:
    if "/" in item:
        base, _, step = item.partition("/")
        step_value = _number(step, spec, as_step=True)
        if not 1 <= step_value <= spec.high:
            raise ConfigurationError(
                f"cron {spec.label} step out of range: '{item}'"
            )
        if base == "*":
            return
        item = base
    if "-" in item:
        start, _, end = item.partition("-")
        low, high = _literal(start, spec), _literal(end, spec)
        if low > high:
            raise ConfigurationError(f"cron {spec.label} range is inverted: '{item}'")
        return
    _literal(item, spec)


def _literal(token: str, spec: _Field) -> int:
    if spec.names and token in spec.names:
        return spec.names[token]
    value = _number(token, spec)
    if not spec.low <= value <= spec.high:
        raise ConfigurationError(
            f"cron {spec.label} out of range ({spec.low}-{spec.high}): '{token}'"
        )
    return value


def _number(token: str, spec: _Field, as_step: bool = False) -> int:
    if not (token.isascii() and token.isdigit()):
        what = "step" if as_step else "value"
        raise ConfigurationError(f"cron {spec.label} has an invalid {what}: '{token}'")
    return int(token)
