"""
Contract security scoring module.

Handles security score calculation, risk level determination and
warning generation for contract analyses. All functions are pure and
order-independent over the issue sequence. SecurityAnalysis derives its
score, tier and warnings from these on construction.

File: evmsecure/shared/scoring.py
"""

import logging
from typing import TYPE_CHECKING, Iterable, List, Optional

from .constants import RiskLevel, Severity

if TYPE_CHECKING:
    from .schemas import SecurityIssue

logger = logging.getLogger(__name__)

MAX_SCORE = 100
MIN_SCORE = 0

UNVERIFIED_PENALTY = 40
PROXY_PENALTY = 10
FIRST_HIGH_PENALTY = 40
ADDITIONAL_HIGH_PENALTY = 30
MEDIUM_PENALTY = 15
LOW_PENALTY = 5

LOW_RISK_THRESHOLD = 80
MEDIUM_RISK_THRESHOLD = 50

UNVERIFIED_WARNING = 'Contract is not verified on Etherscan'


def calculate_security_score(
    is_verified: bool,
    has_proxy: bool,
    issues: Iterable['SecurityIssue']
) -> int:
    """
    Calculate contract security score.

    The first HIGH issue costs 40 points and every further HIGH issue 30,
    MEDIUM and LOW issues are linear.

    Args:
        is_verified: Whether explorer source is available
        has_proxy: Whether a proxy implementation slot is set
        issues: Detected security issues

    Returns:
        Security score clamped to 0-100 (higher is safer)
    """
    score = MAX_SCORE

    if not is_verified:
        score -= UNVERIFIED_PENALTY

    if has_proxy:
        score -= PROXY_PENALTY

    issues = list(issues)
    high_count = sum(1 for issue in issues if issue.severity == Severity.HIGH)
    medium_count = sum(1 for issue in issues if issue.severity == Severity.MEDIUM)
    low_count = sum(1 for issue in issues if issue.severity == Severity.LOW)

    if high_count > 0:
        score -= FIRST_HIGH_PENALTY
        if high_count > 1:
            score -= (high_count - 1) * ADDITIONAL_HIGH_PENALTY

    score -= medium_count * MEDIUM_PENALTY
    score -= low_count * LOW_PENALTY

    final_score = min(max(score, MIN_SCORE), MAX_SCORE)

    logger.debug(
        f"Security score {final_score} (verified={is_verified}, proxy={has_proxy}, "
        f"high={high_count}, medium={medium_count}, low={low_count})"
    )

    return final_score


def determine_risk_level(security_score: int) -> RiskLevel:
    """
    Determine risk level based on security score.

    Args:
        security_score: Security score (0-100)

    Returns:
        RiskLevel.LOW, MEDIUM or HIGH
    """
    if security_score >= LOW_RISK_THRESHOLD:
        return RiskLevel.LOW
    elif security_score >= MEDIUM_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    else:
        return RiskLevel.HIGH


def generate_warnings(
    is_verified: bool,
    has_proxy: bool,
    proxy_implementation: Optional[str],
    issues: Iterable['SecurityIssue']
) -> List[str]:
    """Generate ordered warning strings for an analysis."""
    warnings = []
    issue_count = len(list(issues))

    if not is_verified:
        warnings.append(UNVERIFIED_WARNING)
    if has_proxy:
        warnings.append(f"Contract is a proxy. Implementation at: {proxy_implementation}")
    if issue_count > 0:
        warnings.append(f"Found {issue_count} potential security issues")

    return warnings
