# =============================================================================
# utils/config.py - Configuration management
# =============================================================================

import os
from typing import Optional, List
from dotenv import load_dotenv

from core.normalizer import NormalizationPolicy


class Config:
    """Configuration management"""

    # Integer settings and their defaults
    INT_DEFAULTS = {
        "ADHUNTX_DORMANT_DAYS": 90,
        "ADHUNTX_MISSING_DATE_DAYS": 9999,
        "ADHUNTX_CACHE_LIMIT": 100,
        "ADHUNTX_MAX_UPLOAD_MB": 16,
        "PORT": 5000,
    }

    def __init__(self, dotenv_path: Optional[str] = None):
        load_dotenv(dotenv_path)

    def _get_int(self, name: str) -> int:
        value = os.getenv(name)
        if value is None or not value.strip():
            return self.INT_DEFAULTS[name]
        try:
            return int(value)
        except ValueError:
            return self.INT_DEFAULTS[name]

    @property
    def dormant_days(self) -> int:
        return self._get_int("ADHUNTX_DORMANT_DAYS")

    @property
    def missing_date_days(self) -> int:
        return self._get_int("ADHUNTX_MISSING_DATE_DAYS")

    @property
    def cache_path(self) -> str:
        return os.getenv("ADHUNTX_CACHE_PATH", os.path.join("cache", "last_import.json"))

    @property
    def cache_limit(self) -> int:
        return self._get_int("ADHUNTX_CACHE_LIMIT")

    @property
    def max_upload_bytes(self) -> int:
        return self._get_int("ADHUNTX_MAX_UPLOAD_MB") * 1024 * 1024

    @property
    def secret_key(self) -> str:
        return os.getenv("FLASK_SECRET_KEY", "change-this-secret-key")

    @property
    def port(self) -> int:
        return self._get_int("PORT")

    @property
    def debug(self) -> bool:
        return os.getenv("FLASK_DEBUG", "False").lower() == "true"

    def normalization_policy(self) -> NormalizationPolicy:
        """Normalization thresholds from the environment"""
        return NormalizationPolicy(
            dormant_after_days=self.dormant_days,
            missing_date_days=self.missing_date_days,
        )

    def validate(self) -> bool:
        """Validate that all integer settings parse"""
        return not self.get_invalid_vars()

    def get_invalid_vars(self) -> List[str]:
        """Get list of set but non-integer configuration variables"""
        invalid = []
        for name in self.INT_DEFAULTS:
            value = os.getenv(name)
            if value is None or not value.strip():
                continue
            try:
                int(value)
            except ValueError:
                invalid.append(name)
        return invalid
