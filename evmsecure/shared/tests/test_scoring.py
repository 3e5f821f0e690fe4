"""
Scoring Tests

File: evmsecure/shared/tests/test_scoring.py

Tests security score calculation, risk tiering and warning generation.
"""

import inspect
import itertools

import pytest

from evmsecure.shared import schemas, scoring
from evmsecure.shared.scoring import (
    UNVERIFIED_WARNING,
    calculate_security_score,
    determine_risk_level,
    generate_warnings,
)
from evmsecure.shared.schemas import RiskLevel, SecurityIssue, Severity

# (is_verified, has_proxy, severities, expected_score, expected_level)
SCORING_CASES = [
    (True, False, [], 100, 'LOW'),
    (False, False, [], 60, 'MEDIUM'),
    (True, True, [], 90, 'LOW'),
    (True, False, ['HIGH'], 60, 'MEDIUM'),
    (True, False, ['HIGH', 'HIGH'], 30, 'HIGH'),
    (True, False, ['HIGH', 'HIGH', 'HIGH'], 0, 'HIGH'),
    (True, False, ['MEDIUM'], 85, 'LOW'),
    (True, False, ['LOW', 'LOW'], 90, 'LOW'),
    (False, True, ['HIGH'], 10, 'HIGH'),
    (False, True, ['HIGH', 'HIGH', 'MEDIUM'], 0, 'HIGH'),
    (True, False, ['MEDIUM', 'MEDIUM'], 70, 'MEDIUM'),
    (True, False, ['HIGH', 'MEDIUM', 'LOW'], 40, 'HIGH'),
]


def _issues(*severities):
    return [SecurityIssue(f'ISSUE_{i}', Severity(s), 'test') for i, s in enumerate(severities)]


class TestSecurityScore:
    """Test score calculation."""

    @pytest.mark.parametrize(
        'is_verified,has_proxy,severities,expected_score,expected_level',
        SCORING_CASES
    )
    def test_scenarios(self, is_verified, has_proxy, severities, expected_score, expected_level):
        score = calculate_security_score(is_verified, has_proxy, _issues(*severities))

        assert score == expected_score
        assert determine_risk_level(score) == RiskLevel(expected_level)

    def test_high_issue_progression(self):
        scores = [calculate_security_score(True, False, _issues(*['HIGH'] * n)) for n in range(4)]
        assert scores == [100, 60, 30, 0]

    def test_score_is_clamped(self):
        score = calculate_security_score(False, True, _issues(*['HIGH'] * 5, 'MEDIUM', 'LOW'))
        assert score == 0

    def test_order_independent(self):
        severities = ['HIGH', 'MEDIUM', 'LOW', 'HIGH']
        scores = {
            calculate_security_score(True, True, _issues(*ordering))
            for ordering in itertools.permutations(severities)
        }
        assert len(scores) == 1

    def test_accepts_any_iterable(self):
        assert calculate_security_score(True, False, iter(_issues('LOW'))) == 95


class TestRiskLevel:
    """Test tier thresholds."""

    @pytest.mark.parametrize('score,expected', [
        (100, RiskLevel.LOW),
        (80, RiskLevel.LOW),
        (79, RiskLevel.MEDIUM),
        (50, RiskLevel.MEDIUM),
        (49, RiskLevel.HIGH),
        (0, RiskLevel.HIGH),
    ])
    def test_thresholds(self, score, expected):
        assert determine_risk_level(score) == expected


class TestWarnings:
    """Test warning generation."""

    def test_no_warnings_for_clean_contract(self):
        assert generate_warnings(True, False, None, []) == []

    def test_warning_order(self):
        implementation = '0x2222222222222222222222222222222222222222'
        warnings = generate_warnings(False, True, implementation, _issues('HIGH', 'LOW'))

        assert warnings == [
            UNVERIFIED_WARNING,
            f'Contract is a proxy. Implementation at: {implementation}',
            'Found 2 potential security issues',
        ]


class TestLayering:
    """Test that the shared package scores analyses on its own."""

    def test_schemas_use_shared_scoring(self):
        assert schemas.calculate_security_score is scoring.calculate_security_score
        assert schemas.determine_risk_level is scoring.determine_risk_level
        assert schemas.generate_warnings is scoring.generate_warnings

    def test_shared_modules_do_not_import_risk(self):
        for module in (schemas, scoring):
            assert 'evmsecure.risk' not in inspect.getsource(module)
            assert '..risk' not in inspect.getsource(module)

    def test_enums_shared_between_modules(self):
        assert schemas.RiskLevel is scoring.RiskLevel
        assert schemas.Severity is scoring.Severity
