"""
Data model for per-user profile policies.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from ..errors import InvalidPolicyError
from ..paths import normalize_relative_path


DATE_FORMAT = "%Y-%m-%d"
DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

# On-disk field names. "cleanAllways" is spelled the way existing policy
# files spell it.
FIELD_CLEAN_AFTER_DAYS = "cleanAfterDays"
FIELD_SKIP_USER = "skipUser"
FIELD_CLEAN_ALWAYS = "cleanAllways"
FIELD_LAST_CLEAN = "lastClean"

KNOWN_FIELDS = (
    FIELD_CLEAN_AFTER_DAYS,
    FIELD_SKIP_USER,
    FIELD_CLEAN_ALWAYS,
    FIELD_LAST_CLEAN,
)


def parse_date(value: Any) -> date:
    """Parse a strict YYYY-MM-DD string into a date."""
    if not isinstance(value, str) or not DATE_PATTERN.fullmatch(value):
        raise InvalidPolicyError(f"{FIELD_LAST_CLEAN} must be a YYYY-MM-DD string, got {value!r}")
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise InvalidPolicyError(f"{FIELD_LAST_CLEAN} is not a valid date: {value!r}")


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


@dataclass
class UserProfilePolicy:
    """Scheduling and skip configuration for one managed user."""

    clean_after_days: int
    last_clean: date
    skip_user: bool = False
    clean_always: List[str] = field(default_factory=list)

    # Keys found in the record that this model does not interpret. Kept so
    # that a rewrite does not drop them.
    extra: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def default(
        cls,
        today: date,
        clean_after_days: int = 1,
        clean_always: Optional[List[str]] = None,
    ) -> 'UserProfilePolicy':
        """Create the policy written when a user's first snapshot is taken."""
        return cls(
            clean_after_days=clean_after_days,
            last_clean=today,
            skip_user=False,
            clean_always=[normalize_relative_path(p) for p in (clean_always or [])],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the on-disk JSON mapping."""
        data = dict(self.extra)
        data[FIELD_CLEAN_AFTER_DAYS] = self.clean_after_days
        data[FIELD_SKIP_USER] = self.skip_user
        data[FIELD_CLEAN_ALWAYS] = list(self.clean_always)
        data[FIELD_LAST_CLEAN] = format_date(self.last_clean)
        return data

    @classmethod
    def from_dict(cls, data: Any) -> 'UserProfilePolicy':
        """
        Build a policy from a decoded JSON record.

        Parsing is strict: required fields are never defaulted and values of
        the wrong type are rejected rather than coerced.

        Raises:
            InvalidPolicyError: On any structural problem.
        """
        if not isinstance(data, dict):
            raise InvalidPolicyError("Policy record must be a JSON object")

        if FIELD_CLEAN_AFTER_DAYS not in data:
            raise InvalidPolicyError(f"Missing required field {FIELD_CLEAN_AFTER_DAYS}")
        days = data[FIELD_CLEAN_AFTER_DAYS]
        # bool is an int subclass; true/false is not a day count
        if isinstance(days, bool) or not isinstance(days, int) or days < 0:
            raise InvalidPolicyError(
                f"{FIELD_CLEAN_AFTER_DAYS} must be a non-negative integer, got {days!r}"
            )

        if FIELD_LAST_CLEAN not in data:
            raise InvalidPolicyError(f"Missing required field {FIELD_LAST_CLEAN}")
        last_clean = parse_date(data[FIELD_LAST_CLEAN])

        skip_user = data.get(FIELD_SKIP_USER, False)
        if not isinstance(skip_user, bool):
            raise InvalidPolicyError(f"{FIELD_SKIP_USER} must be true or false, got {skip_user!r}")

        raw_paths = data.get(FIELD_CLEAN_ALWAYS, [])
        if not isinstance(raw_paths, list):
            raise InvalidPolicyError(f"{FIELD_CLEAN_ALWAYS} must be a list of paths")
        clean_always = [normalize_relative_path(p) for p in raw_paths]

        return cls(
            clean_after_days=days,
            last_clean=last_clean,
            skip_user=skip_user,
            clean_always=clean_always,
            extra={k: v for k, v in data.items() if k not in KNOWN_FIELDS},
        )
