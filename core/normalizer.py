# =============================================================================
# core/normalizer.py - Field normalization
# =============================================================================

import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from dateutil import parser as date_parser

from core.models import NormalizedUser, RawUserRecord


GROUP_SPLIT_PATTERN = re.compile(r';|\||,')
SECONDS_PER_DAY = 60 * 60 * 24

# Two defaults differing only in year expose strings that carry no year
PARSE_DEFAULT = datetime(2000, 1, 1)
ALTERNATE_PARSE_DEFAULT = datetime(2001, 1, 1)


@dataclass(frozen=True)
class NormalizationPolicy:
    """Thresholds applied while deriving typed attributes"""
    dormant_after_days: int = 90
    # Day count used for missing or unparseable dates, i.e. "maximally stale"
    missing_date_days: int = 9999


def parse_bool(value: Optional[str]) -> bool:
    """Only a case-insensitive 'true' is true"""
    return (value or '').lower() == 'true'


def split_groups(member_of: Optional[str]) -> List[str]:
    """Split a group membership field on ';', '|' or ','"""
    if not member_of:
        return []
    return [group.strip() for group in GROUP_SPLIT_PATTERN.split(member_of)]


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a date string, naive values are read as UTC.

    Values without a year ("15", "May", "10:30") are treated as unparseable,
    and missing parts are filled from fixed defaults, never from the clock.
    """
    if not value or not value.strip():
        return None
    try:
        parsed = date_parser.parse(value.strip(), default=PARSE_DEFAULT)
        alternate = date_parser.parse(value.strip(), default=ALTERNATE_PARSE_DEFAULT)
    except (ValueError, OverflowError):
        return None
    if parsed.year != alternate.year:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def days_since(value: Optional[str], now: datetime, missing_days: int = 9999) -> int:
    """Whole days elapsed since the date in ``value``, negative for future dates"""
    parsed = parse_date(value)
    if parsed is None:
        return missing_days
    return math.floor((now - parsed).total_seconds() / SECONDS_PER_DAY)


class FieldNormalizer:
    """Derives query-ready attributes from raw export records"""

    GROUPS_COLUMN = 'MemberOf'
    ENABLED_COLUMN = 'Enabled'
    LAST_LOGON_COLUMN = 'LastLogonDate'
    PASSWORD_EXPIRY_COLUMN = 'PasswordExpiryDate'
    MFA_COLUMN = 'MFAStatus'
    NEVER_EXPIRES_COLUMN = 'PasswordNeverExpires'
    DORMANT_FLAG_COLUMN = 'DormantAccountFlag'

    def __init__(self, policy: Optional[NormalizationPolicy] = None):
        self.policy = policy or NormalizationPolicy()
        self.logger = logging.getLogger(self.__class__.__name__)

    def normalize(self, raw: RawUserRecord, now: Optional[datetime] = None) -> NormalizedUser:
        """Build a NormalizedUser from one raw record. Never raises."""
        if now is None:
            now = datetime.now(timezone.utc)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        missing_days = self.policy.missing_date_days

        days_since_login = days_since(raw.get(self.LAST_LOGON_COLUMN), now, missing_days)
        if days_since_login == missing_days and raw.get(self.LAST_LOGON_COLUMN):
            self.logger.debug(f"Unparseable last logon date for {raw.get('SamAccountName', '')}: {raw.get(self.LAST_LOGON_COLUMN)!r}")
        if days_since_login < 0:
            days_since_login = 0

        dormant_flag = parse_bool(raw.get(self.DORMANT_FLAG_COLUMN))
        is_dormant = dormant_flag or days_since_login > self.policy.dormant_after_days

        password_never_expires = parse_bool(raw.get(self.NEVER_EXPIRES_COLUMN))
        days_since_expiry = days_since(raw.get(self.PASSWORD_EXPIRY_COLUMN), now, missing_days)
        password_expired = days_since_expiry > 0 and not password_never_expires

        return NormalizedUser(
            raw=raw,
            groups=tuple(split_groups(raw.get(self.GROUPS_COLUMN))),
            days_since_login=days_since_login,
            is_dormant=is_dormant,
            has_mfa=parse_bool(raw.get(self.MFA_COLUMN)),
            is_enabled=parse_bool(raw.get(self.ENABLED_COLUMN)),
            password_never_expires=password_never_expires,
            password_expired=password_expired,
        )
