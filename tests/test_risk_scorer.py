"""Tests for core/risk_scorer.py"""

import itertools

import pytest

from core.models import NormalizedUser, RiskLevel
from core.risk_scorer import (
    HIGH_PRIVILEGE_GROUPS,
    HYGIENE_RULES,
    PRIVILEGE_RULES,
    RiskRule,
    RiskScorer,
    classify,
    count_high_privilege_groups,
    has_escalation_path,
    round_half_up,
)


def make_user(groups=(), is_dormant=False, has_mfa=True, password_never_expires=False,
              password_expired=False):
    return NormalizedUser(
        raw={"UserName": "Test User", "SamAccountName": "tuser"},
        groups=tuple(groups),
        days_since_login=5,
        is_dormant=is_dormant,
        has_mfa=has_mfa,
        is_enabled=True,
        password_never_expires=password_never_expires,
        password_expired=password_expired,
    )


@pytest.fixture
def scorer():
    return RiskScorer()


class TestClassify:
    @pytest.mark.parametrize("score,level", [
        (100, RiskLevel.CRITICAL),
        (70, RiskLevel.CRITICAL),
        (69, RiskLevel.HIGH),
        (50, RiskLevel.HIGH),
        (49, RiskLevel.MEDIUM),
        (30, RiskLevel.MEDIUM),
        (29, RiskLevel.LOW),
        (0, RiskLevel.LOW),
    ])
    def test_boundaries(self, score, level):
        assert classify(score) is level

    def test_tiers_are_monotonic(self):
        order = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.CRITICAL]
        ranks = [order.index(classify(score)) for score in range(101)]
        assert ranks == sorted(ranks)

    def test_round_half_up(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(2.4) == 2


class TestGroupHelpers:
    def test_count_high_privilege_case_insensitive(self):
        assert count_high_privilege_groups(["domain admins", "Users"]) == 1

    def test_count_every_listed_group(self):
        assert count_high_privilege_groups(list(HIGH_PRIVILEGE_GROUPS)) == len(HIGH_PRIVILEGE_GROUPS)

    def test_count_none(self):
        assert count_high_privilege_groups(["Users", "Marketing Team"]) == 0

    def test_escalation_by_group_count(self):
        assert has_escalation_path([f"G{i}" for i in range(15)]) is False
        assert has_escalation_path([f"G{i}" for i in range(16)]) is True

    def test_escalation_by_keyword(self):
        assert has_escalation_path(["SharePoint Owners"]) is True
        assert has_escalation_path(["GPO-WRITE"]) is True
        assert has_escalation_path(["Readers"]) is False


class TestPrivilegeScore:
    def test_no_privileges(self, scorer):
        profile = scorer.score(make_user(groups=["Users"]))
        assert profile.privilege_score == 0

    def test_high_privilege_group(self, scorer):
        profile = scorer.score(make_user(groups=["Domain Admins", "Backup Operators", "Users"]))
        assert profile.privilege_score == 40
        assert profile.issues[0] == "Member of 2 high-privilege group(s)"

    def test_escalation_path(self, scorer):
        profile = scorer.score(make_user(groups=["Owners"]))
        assert profile.privilege_score == 30
        assert profile.issues[0].startswith("Potential Privilege Escalation Path")

    def test_dormant_privileged_capped(self, scorer):
        profile = scorer.score(make_user(groups=["Domain Admins", "Owners"], is_dormant=True))
        assert profile.privilege_score == 100
        assert "Dormant account with privileges" in profile.issues

    def test_dormant_without_privileges(self, scorer):
        profile = scorer.score(make_user(groups=["Users"], is_dormant=True))
        assert profile.privilege_score == 0
        assert "Dormant account with privileges" not in profile.issues


class TestHygieneScore:
    def test_clean_account(self, scorer):
        profile = scorer.score(make_user())
        assert profile.password_hygiene_score == 0
        assert profile.issues == ()
        assert profile.recommendations == ()
        assert profile.risk_level is RiskLevel.LOW

    def test_each_rule(self, scorer):
        assert scorer.score(make_user(password_expired=True)).password_hygiene_score == 40
        assert scorer.score(make_user(password_never_expires=True)).password_hygiene_score == 40
        assert scorer.score(make_user(is_dormant=True)).password_hygiene_score == 30
        assert scorer.score(make_user(has_mfa=False)).password_hygiene_score == 30

    def test_capped_at_100(self, scorer):
        profile = scorer.score(make_user(password_expired=True, password_never_expires=True,
                                         is_dormant=True, has_mfa=False))
        assert profile.password_hygiene_score == 100


class TestRiskProfile:
    def test_dormant_no_mfa_never_expires(self, scorer):
        profile = scorer.score(make_user(groups=["Users"], is_dormant=True, has_mfa=False,
                                         password_never_expires=True))
        assert profile.privilege_score == 0
        assert profile.password_hygiene_score == 100
        assert profile.total_risk_score == 40
        assert profile.risk_level is RiskLevel.MEDIUM

    def test_issue_order_privilege_first(self, scorer):
        profile = scorer.score(make_user(groups=["Domain Admins"], has_mfa=False))
        assert profile.issues == ("Member of 1 high-privilege group(s)", "MFA not enabled")

    def test_recommendation_order(self, scorer):
        profile = scorer.score(make_user(groups=["Domain Admins"], is_dormant=True, has_mfa=False,
                                         password_never_expires=True))
        assert profile.recommendations == (
            "Review group memberships",
            "Enforce MFA",
            "Disable Password Never Expires",
            "Disable or remove dormant account",
        )

    def test_total_is_weighted(self, scorer):
        profile = scorer.score(make_user(groups=["Enterprise Admins"], is_dormant=True,
                                         has_mfa=False, password_expired=True))
        assert profile.privilege_score == 70
        assert profile.password_hygiene_score == 100
        assert profile.total_risk_score == 82
        assert profile.risk_level is RiskLevel.CRITICAL

    def test_score_bounds_for_all_flag_combinations(self, scorer):
        group_sets = [[], ["Users"], ["Domain Admins"], ["Owners"], [f"G{i}" for i in range(20)]]
        for groups, dormant, mfa, never, expired in itertools.product(
                group_sets, [True, False], [True, False], [True, False], [True, False]):
            profile = scorer.score(make_user(groups, dormant, mfa, never, expired))
            assert 0 <= profile.privilege_score <= 100
            assert 0 <= profile.password_hygiene_score <= 100
            assert 0 <= profile.total_risk_score <= 100
            assert profile.risk_level is classify(profile.total_risk_score)

    def test_custom_rule_table(self):
        rules = HYGIENE_RULES + (
            RiskRule("disabled", 10, "Account disabled", lambda ctx: not ctx.user.is_enabled),
        )
        scorer = RiskScorer(privilege_rules=PRIVILEGE_RULES, hygiene_rules=rules)
        user = NormalizedUser(raw={}, has_mfa=True, is_enabled=False)
        profile = scorer.score(user)
        assert profile.password_hygiene_score == 10
        assert profile.issues == ("Account disabled",)
