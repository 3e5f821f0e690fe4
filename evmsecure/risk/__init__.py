"""
Risk package: allowance aggregation, contract safety analysis, reporting
and request handlers. Scoring lives in evmsecure.shared.scoring and is
re-exported here.

File: evmsecure/risk/__init__.py
"""

from .allowances import AllowanceAggregator, BatchDelayPolicy, fixed_delay, no_delay
from .contract_safety import ContractRiskAnalyzer
from .detectors import (
    DEFAULT_DETECTORS,
    BaseDetector,
    DangerousReceiveDetector,
    DelegatecallDetector,
    ProxyDetector,
    SelfdestructDetector,
    scan_vulnerabilities,
)
from .handlers import ActionResponse, check_contract_safety, get_token_allowances
from .reporting import format_allowance_message, format_analysis_message
from ..shared.scoring import calculate_security_score, determine_risk_level, generate_warnings

__all__ = [
    'DEFAULT_DETECTORS',
    'ActionResponse',
    'AllowanceAggregator',
    'BaseDetector',
    'BatchDelayPolicy',
    'ContractRiskAnalyzer',
    'DangerousReceiveDetector',
    'DelegatecallDetector',
    'ProxyDetector',
    'SelfdestructDetector',
    'calculate_security_score',
    'check_contract_safety',
    'determine_risk_level',
    'fixed_delay',
    'format_allowance_message',
    'format_analysis_message',
    'generate_warnings',
    'get_token_allowances',
    'no_delay',
    'scan_vulnerabilities',
]
