# =============================================================================
# core/reporting.py - Dashboard aggregations over processed users
# =============================================================================

from typing import Any, Callable, Dict, List, Sequence

from core.models import DashboardMetrics, ProcessedUser, RiskLevel
from core.risk_scorer import round_half_up


ALL_LEVELS = 'All'
# Sub-scores above this count as "high" in charts and the risk matrix
HIGH_SUBSCORE = 50

SORT_KEYS: Dict[str, Callable[[ProcessedUser], Any]] = {
    'totalRiskScore': lambda u: u.risk.total_risk_score,
    'privilegeScore': lambda u: u.risk.privilege_score,
    'passwordHygieneScore': lambda u: u.risk.password_hygiene_score,
    'UserName': lambda u: u.user.user_name.lower(),
    'SamAccountName': lambda u: u.user.sam_account_name.lower(),
    'Department': lambda u: u.user.department.lower(),
    'daysSinceLogin': lambda u: u.user.days_since_login,
}


def _percent(part: int, whole: int) -> int:
    if whole == 0:
        return 0
    return round_half_up(part / whole * 100)


def compute_metrics(users: Sequence[ProcessedUser]) -> DashboardMetrics:
    """Headline KPIs for the dashboard, all zero for an empty dataset"""
    total = len(users)
    if total == 0:
        return DashboardMetrics()

    return DashboardMetrics(
        total_users=total,
        critical_risk_count=sum(1 for u in users if u.risk.risk_level is RiskLevel.CRITICAL),
        high_risk_count=sum(1 for u in users if u.risk.risk_level is RiskLevel.HIGH),
        avg_risk_score=round_half_up(sum(u.risk.total_risk_score for u in users) / total),
        dormant_count=sum(1 for u in users if u.user.is_dormant),
        mfa_adoption_rate=_percent(sum(1 for u in users if u.user.has_mfa), total),
    )


def risk_distribution(users: Sequence[ProcessedUser]) -> Dict[str, int]:
    """User count per risk tier, every tier present"""
    counts = {level.value: 0 for level in RiskLevel}
    for user in users:
        counts[user.risk.risk_level.value] += 1
    return counts


def issue_summary(users: Sequence[ProcessedUser]) -> Dict[str, int]:
    """Counts behind the top issues chart"""
    return {
        'No MFA': sum(1 for u in users if not u.user.has_mfa),
        'Dormant': sum(1 for u in users if u.user.is_dormant),
        'Pwd No Exp': sum(1 for u in users if u.user.password_never_expires),
        'High Priv': sum(1 for u in users if u.risk.privilege_score > HIGH_SUBSCORE),
    }


def risk_matrix(users: Sequence[ProcessedUser]) -> List[Dict[str, Any]]:
    """Bucket users by privilege risk vs password hygiene risk"""
    matrix = [
        {'privilege': 'Low Priv', 'hygiene': 'Low Hyg', 'count': 0},
        {'privilege': 'Low Priv', 'hygiene': 'High Hyg', 'count': 0},
        {'privilege': 'High Priv', 'hygiene': 'Low Hyg', 'count': 0},
        {'privilege': 'High Priv', 'hygiene': 'High Hyg', 'count': 0},
    ]
    for user in users:
        high_priv = user.risk.privilege_score > HIGH_SUBSCORE
        bad_hygiene = user.risk.password_hygiene_score > HIGH_SUBSCORE
        matrix[2 * high_priv + bad_hygiene]['count'] += 1
    return matrix


def remediation_summary(users: Sequence[ProcessedUser]) -> Dict[str, int]:
    """Account counts for the priority remediation actions"""
    return {
        'privilegedDormantAccounts': sum(
            1 for u in users if u.user.is_dormant and u.risk.privilege_score > 0
        ),
        'usersWithoutMfa': sum(1 for u in users if not u.user.has_mfa),
        'passwordNeverExpiresAccounts': sum(1 for u in users if u.user.password_never_expires),
    }


def filter_users(users: Sequence[ProcessedUser], risk_level: str = ALL_LEVELS,
                 search: str = '') -> List[ProcessedUser]:
    """Drill-down filter by tier and free-text search. Returns a new list."""
    needle = (search or '').lower()
    level = risk_level or ALL_LEVELS

    def matches(user: ProcessedUser) -> bool:
        if level != ALL_LEVELS and user.risk.risk_level.value != level:
            return False
        if not needle:
            return True
        return (needle in user.user.user_name.lower()
                or needle in user.user.sam_account_name.lower()
                or needle in user.user.department.lower())

    return [user for user in users if matches(user)]


def sort_users(users: Sequence[ProcessedUser], key: str = 'totalRiskScore',
               descending: bool = True) -> List[ProcessedUser]:
    """Sorted copy of ``users``; unknown keys raise KeyError"""
    return sorted(users, key=SORT_KEYS[key], reverse=descending)
