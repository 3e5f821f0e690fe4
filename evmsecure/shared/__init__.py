"""
Shared components for the EVM security analysis core.

This package contains the constants, value objects, exceptions and
address helpers used by both the engine and the risk packages.

File: evmsecure/shared/__init__.py
"""

from .exceptions import (
    ConfigurationError,
    EVMSecureError,
    ExplorerAPIError,
    InvalidAddressError,
    NetworkError,
    NotAContractError,
)
from .schemas import (
    AllowanceResult,
    KnownSpenderRegistry,
    ProxyInfo,
    RiskLevel,
    SecurityAnalysis,
    SecurityIssue,
    Severity,
    SpenderInfo,
    TokenAllowance,
    TokenMetadata,
    VerificationInfo,
)

__all__ = [
    'AllowanceResult',
    'ConfigurationError',
    'EVMSecureError',
    'ExplorerAPIError',
    'InvalidAddressError',
    'KnownSpenderRegistry',
    'NetworkError',
    'NotAContractError',
    'ProxyInfo',
    'RiskLevel',
    'SecurityAnalysis',
    'SecurityIssue',
    'Severity',
    'SpenderInfo',
    'TokenAllowance',
    'TokenMetadata',
    'VerificationInfo',
]
