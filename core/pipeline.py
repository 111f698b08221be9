# =============================================================================
# core/pipeline.py - Parse -> normalize -> score orchestration
# =============================================================================

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from core.errors import NoValidUsersError
from core.models import ProcessedUser, RawUserRecord
from core.normalizer import FieldNormalizer, NormalizationPolicy
from core.parser import DelimitedRecordParser
from core.risk_scorer import RiskScorer


class PipelineOrchestrator:
    """Single entry point turning export text into scored users"""

    ID_PREFIX = 'user-'

    def __init__(self,
                 parser: Optional[DelimitedRecordParser] = None,
                 normalizer: Optional[FieldNormalizer] = None,
                 scorer: Optional[RiskScorer] = None):
        self.parser = parser or DelimitedRecordParser()
        self.normalizer = normalizer or FieldNormalizer()
        self.scorer = scorer or RiskScorer()
        self.logger = logging.getLogger(self.__class__.__name__)

    @classmethod
    def from_policy(cls, policy: NormalizationPolicy) -> 'PipelineOrchestrator':
        return cls(normalizer=FieldNormalizer(policy))

    def run(self, text: str, now: Optional[datetime] = None) -> List[ProcessedUser]:
        """Process a full export. Every call starts over with ids from user-0.

        Raises:
            NoValidUsersError: if no record survives parsing
        """
        self.logger.info("Starting import pipeline")

        raw_users = self.parser.parse(text)
        if not raw_users:
            self.logger.error("No valid users found in CSV")
            raise NoValidUsersError()

        self.logger.info(f"Parsed {len(raw_users)} user records")
        return self.process(raw_users, now)

    def process(self, raw_users: Sequence[RawUserRecord],
                now: Optional[datetime] = None) -> List[ProcessedUser]:
        """Normalize and score already parsed records"""
        if now is None:
            now = datetime.now(timezone.utc)

        processed_users = []
        for index, raw in enumerate(raw_users):
            user = self.normalizer.normalize(raw, now)
            processed_users.append(ProcessedUser(
                id=f"{self.ID_PREFIX}{index}",
                user=user,
                risk=self.scorer.score(user),
            ))

        self.log_statistics(processed_users)
        return processed_users

    def log_statistics(self, processed_users: Sequence[ProcessedUser]) -> None:
        """Log risk tier summary"""
        level_counts = Counter(user.risk.risk_level.value for user in processed_users)
        self.logger.info(f"Risk summary: {dict(level_counts)}")
        self.logger.info(f"Processed {len(processed_users)} users")
