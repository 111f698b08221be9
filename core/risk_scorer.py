# =============================================================================
# core/risk_scorer.py - Weighted rule risk scoring
# =============================================================================

import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from core.models import NormalizedUser, RiskLevel, RiskProfile


HIGH_PRIVILEGE_GROUPS = (
    'Domain Admins',
    'Enterprise Admins',
    'Schema Admins',
    'Administrators',
    'Account Operators',
    'Backup Operators',
    'Server Operators',
    'Print Operators',
)

ESCALATION_KEYWORDS = ('owner', 'write')
ESCALATION_GROUP_COUNT = 15

PRIVILEGE_WEIGHT = 0.6
HYGIENE_WEIGHT = 0.4
MAX_SCORE = 100


@dataclass(frozen=True)
class ScoringContext:
    """Facts a rule condition can look at"""
    user: NormalizedUser
    high_privilege_count: int = 0
    escalation_path: bool = False

    @property
    def privileged(self) -> bool:
        return self.high_privilege_count > 0 or self.escalation_path


@dataclass(frozen=True)
class RiskRule:
    """Condition -> points -> issue text. Issue text may use {high_privilege_count}."""
    name: str
    points: int
    issue: str
    applies: Callable[[ScoringContext], bool]

    def describe(self, context: ScoringContext) -> str:
        return self.issue.format(high_privilege_count=context.high_privilege_count)


@dataclass(frozen=True)
class Recommendation:
    """Advice emitted when its condition holds for a scored user"""
    text: str
    applies: Callable[[NormalizedUser, int], bool]


PRIVILEGE_RULES: Tuple[RiskRule, ...] = (
    RiskRule(
        name='high_privilege_membership',
        points=40,
        issue='Member of {high_privilege_count} high-privilege group(s)',
        applies=lambda ctx: ctx.high_privilege_count > 0,
    ),
    RiskRule(
        name='escalation_path',
        points=30,
        issue='Potential Privilege Escalation Path (High group count or sensitive keywords)',
        applies=lambda ctx: ctx.escalation_path,
    ),
    RiskRule(
        name='dormant_privileged',
        points=30,
        issue='Dormant account with privileges',
        applies=lambda ctx: ctx.user.is_dormant and ctx.privileged,
    ),
)

HYGIENE_RULES: Tuple[RiskRule, ...] = (
    RiskRule('password_expired', 40, 'Password expired', lambda ctx: ctx.user.password_expired),
    RiskRule('password_never_expires', 40, 'Password set to never expire',
             lambda ctx: ctx.user.password_never_expires),
    RiskRule('dormant', 30, 'Account is dormant', lambda ctx: ctx.user.is_dormant),
    RiskRule('mfa_missing', 30, 'MFA not enabled', lambda ctx: not ctx.user.has_mfa),
)

RECOMMENDATION_RULES: Tuple[Recommendation, ...] = (
    Recommendation('Review group memberships', lambda user, privilege_score: privilege_score > 0),
    Recommendation('Enforce MFA', lambda user, privilege_score: not user.has_mfa),
    Recommendation('Disable Password Never Expires', lambda user, privilege_score: user.password_never_expires),
    Recommendation('Disable or remove dormant account', lambda user, privilege_score: user.is_dormant),
)

# Checked in order, first match wins
RISK_TIERS: Tuple[Tuple[int, RiskLevel], ...] = (
    (70, RiskLevel.CRITICAL),
    (50, RiskLevel.HIGH),
    (30, RiskLevel.MEDIUM),
)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def classify(total_score: int) -> RiskLevel:
    """Map a total score onto its risk tier"""
    for threshold, level in RISK_TIERS:
        if total_score >= threshold:
            return level
    return RiskLevel.LOW


def count_high_privilege_groups(groups: Sequence[str],
                                privileged_names: Sequence[str] = HIGH_PRIVILEGE_GROUPS) -> int:
    """Number of groups whose name contains a high-privilege group name"""
    lowered = [name.lower() for name in privileged_names]
    return sum(1 for group in groups if any(name in group.lower() for name in lowered))


def has_escalation_path(groups: Sequence[str]) -> bool:
    """Large memberships or owner/write style groups hint at escalation chains"""
    if len(groups) > ESCALATION_GROUP_COUNT:
        return True
    return any(keyword in group.lower() for group in groups for keyword in ESCALATION_KEYWORDS)


def evaluate_rules(rules: Sequence[RiskRule], context: ScoringContext) -> Tuple[int, List[str]]:
    """Sum the points of every triggered rule, capped at MAX_SCORE"""
    score = 0
    issues = []
    for rule in rules:
        if rule.applies(context):
            score += rule.points
            issues.append(rule.describe(context))
    return min(MAX_SCORE, score), issues


class RiskScorer:
    """Combines privilege and password hygiene sub-scores into a RiskProfile"""

    def __init__(self,
                 privilege_rules: Sequence[RiskRule] = PRIVILEGE_RULES,
                 hygiene_rules: Sequence[RiskRule] = HYGIENE_RULES,
                 recommendations: Sequence[Recommendation] = RECOMMENDATION_RULES,
                 high_privilege_groups: Sequence[str] = HIGH_PRIVILEGE_GROUPS):
        self.privilege_rules = tuple(privilege_rules)
        self.hygiene_rules = tuple(hygiene_rules)
        self.recommendations = tuple(recommendations)
        self.high_privilege_groups = tuple(high_privilege_groups)
        self.logger = logging.getLogger(self.__class__.__name__)

    def build_context(self, user: NormalizedUser) -> ScoringContext:
        return ScoringContext(
            user=user,
            high_privilege_count=count_high_privilege_groups(user.groups, self.high_privilege_groups),
            escalation_path=has_escalation_path(user.groups),
        )

    def score(self, user: NormalizedUser, context: Optional[ScoringContext] = None) -> RiskProfile:
        """Score one normalized user"""
        if context is None:
            context = self.build_context(user)

        privilege_score, privilege_issues = evaluate_rules(self.privilege_rules, context)
        hygiene_score, hygiene_issues = evaluate_rules(self.hygiene_rules, context)

        total_score = round_half_up(privilege_score * PRIVILEGE_WEIGHT + hygiene_score * HYGIENE_WEIGHT)
        risk_level = classify(total_score)

        recommendations = tuple(
            rec.text for rec in self.recommendations if rec.applies(user, privilege_score)
        )

        self.logger.debug(
            f"Scored {user.sam_account_name or user.user_name}: "
            f"privilege={privilege_score} hygiene={hygiene_score} total={total_score} ({risk_level.value})"
        )

        return RiskProfile(
            privilege_score=privilege_score,
            password_hygiene_score=hygiene_score,
            total_risk_score=total_score,
            risk_level=risk_level,
            issues=tuple(privilege_issues + hygiene_issues),
            recommendations=recommendations,
        )
