# =============================================================================
# core/models.py - Unified data models
# =============================================================================

from dataclasses import dataclass
from typing import Dict, Any, Mapping, Tuple
from enum import Enum


# Column names recognized in a directory export, in template order
INPUT_COLUMNS = (
    'UserName', 'SamAccountName', 'Enabled', 'LastLogonDate',
    'MemberOf', 'Role', 'Department', 'PasswordLastSet',
    'PasswordExpiryDate', 'MFAStatus', 'PasswordNeverExpires',
    'DormantAccountFlag',
)

RawUserRecord = Mapping[str, str]


class RiskLevel(Enum):
    """Enumeration of risk tiers, most severe first"""
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


@dataclass(frozen=True)
class RiskProfile:
    """Risk scores and findings for one account"""
    privilege_score: int
    password_hygiene_score: int
    total_risk_score: int
    risk_level: RiskLevel
    issues: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'privilegeScore': self.privilege_score,
            'passwordHygieneScore': self.password_hygiene_score,
            'totalRiskScore': self.total_risk_score,
            'riskLevel': self.risk_level.value,
            'issues': list(self.issues),
            'recommendations': list(self.recommendations),
        }


@dataclass(frozen=True)
class NormalizedUser:
    """Raw export row plus the typed attributes derived from it"""
    raw: RawUserRecord
    groups: Tuple[str, ...] = ()
    days_since_login: int = 0
    is_dormant: bool = False
    has_mfa: bool = False
    is_enabled: bool = False
    password_never_expires: bool = False
    password_expired: bool = False

    def get(self, name: str) -> str:
        """Raw column value, empty string when the column is absent"""
        return self.raw.get(name, '') or ''

    @property
    def user_name(self) -> str:
        return self.get('UserName')

    @property
    def sam_account_name(self) -> str:
        return self.get('SamAccountName')

    @property
    def department(self) -> str:
        return self.get('Department')

    @property
    def role(self) -> str:
        return self.get('Role')

    @property
    def enabled(self) -> str:
        return self.get('Enabled')

    @property
    def last_logon_date(self) -> str:
        return self.get('LastLogonDate')


@dataclass(frozen=True)
class ProcessedUser:
    """Scored user record handed to every downstream consumer"""
    id: str
    user: NormalizedUser
    risk: RiskProfile

    def to_dict(self) -> Dict[str, Any]:
        """Flatten to the JSON shape served to dashboards"""
        data: Dict[str, Any] = dict(self.user.raw)
        data.update({
            'id': self.id,
            'groups': list(self.user.groups),
            'daysSinceLogin': self.user.days_since_login,
            'isDormant': self.user.is_dormant,
            'hasMFA': self.user.has_mfa,
            'passwordExpired': self.user.password_expired,
            'passwordNeverExpires': self.user.password_never_expires,
            'isEnabled': self.user.is_enabled,
            'risk': self.risk.to_dict(),
        })
        return data


@dataclass
class DashboardMetrics:
    """Headline figures for a processed dataset"""
    total_users: int = 0
    critical_risk_count: int = 0
    high_risk_count: int = 0
    avg_risk_score: int = 0
    dormant_count: int = 0
    mfa_adoption_rate: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalUsers': self.total_users,
            'criticalRiskCount': self.critical_risk_count,
            'highRiskCount': self.high_risk_count,
            'avgRiskScore': self.avg_risk_score,
            'dormantCount': self.dormant_count,
            'mfaAdoptionRate': self.mfa_adoption_rate,
        }
