# =============================================================================
# utils/import_cache.py - Bounded cache of the last import
# =============================================================================

import json
import logging
import os
from typing import Any, Dict, List, Sequence

from core.models import ProcessedUser


class LastImportCache:
    """Keeps the first ``limit`` users of the most recent import on disk"""

    def __init__(self, path: str, limit: int = 100):
        self.path = path
        self.limit = limit
        self.logger = logging.getLogger(self.__class__.__name__)

    def save(self, users: Sequence[ProcessedUser]) -> int:
        """Replace the cached sample, returns the number of users stored"""
        sample = [user.to_dict() for user in users[:self.limit]]

        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        try:
            with open(self.path, 'w', encoding='utf-8') as file:
                json.dump(sample, file)
        except OSError as e:
            self.logger.error(f"Error writing import cache {self.path}: {e}")
            raise

        self.logger.info(f"Cached {len(sample)} of {len(users)} users to {self.path}")
        return len(sample)

    def load(self) -> List[Dict[str, Any]]:
        """Cached users, empty when nothing usable is stored"""
        if not os.path.exists(self.path):
            return []

        try:
            with open(self.path, 'r', encoding='utf-8') as file:
                data = json.load(file)
        except (OSError, ValueError) as e:
            self.logger.warning(f"Ignoring unreadable import cache {self.path}: {e}")
            return []

        if not isinstance(data, list):
            self.logger.warning(f"Ignoring import cache with unexpected content: {self.path}")
            return []
        return data

    def clear(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)
            self.logger.info(f"Cleared import cache {self.path}")
