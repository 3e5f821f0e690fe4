"""
Shared schemas for allowance and contract security results.

This module defines the immutable value objects produced by the allowance
aggregator and the contract risk analyzer and consumed by the report
formatter and request handlers.

File: evmsecure/shared/schemas.py
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from .constants import (
    DEFAULT_TOKEN_DECIMALS,
    KNOWN_SPENDERS_DATA,
    RiskLevel,
    Severity,
    UNKNOWN_SPENDER_NAME,
    UNKNOWN_SPENDER_PROTOCOL,
    UNKNOWN_SPENDER_RISK,
    UNKNOWN_TOKEN_NAME,
    UNKNOWN_TOKEN_SYMBOL,
)
from .scoring import calculate_security_score, determine_risk_level, generate_warnings

logger = logging.getLogger(__name__)

# =============================================================================
# SPENDERS
# =============================================================================

@dataclass(frozen=True)
class SpenderInfo:
    """Classification of an allowance spender."""
    address: str
    name: str
    protocol: str
    risk: str

    @property
    def is_known(self) -> bool:
        return self.name != UNKNOWN_SPENDER_NAME

    def to_dict(self) -> Dict[str, Any]:
        return {
            'address': self.address,
            'name': self.name,
            'protocol': self.protocol,
            'risk': self.risk,
        }


def unknown_spender(address: str) -> SpenderInfo:
    """Sentinel classification for spenders missing from the registry."""
    return SpenderInfo(
        address=address,
        name=UNKNOWN_SPENDER_NAME,
        protocol=UNKNOWN_SPENDER_PROTOCOL,
        risk=UNKNOWN_SPENDER_RISK,
    )


class KnownSpenderRegistry(Mapping[str, SpenderInfo]):
    """
    Read-only spender table keyed by lowercase address.

    Built once at process start and passed to the components that need it.
    Lookups are case-insensitive; absent entries resolve to the
    "Unknown Protocol" sentinel instead of failing.
    """

    def __init__(self, entries: Mapping[str, Mapping[str, str]]):
        table = {}
        for address, info in entries.items():
            table[address.lower()] = SpenderInfo(
                address=address,
                name=info['name'],
                protocol=info['protocol'],
                risk=info.get('risk', UNKNOWN_SPENDER_RISK),
            )
        self._table = MappingProxyType(table)

    @classmethod
    def default(cls) -> 'KnownSpenderRegistry':
        return cls(KNOWN_SPENDERS_DATA)

    def __getitem__(self, address: str) -> SpenderInfo:
        return self._table[address.lower()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and address.lower() in self._table

    def classify(self, address: str) -> SpenderInfo:
        """Get spender info, falling back to the unknown sentinel."""
        info = self._table.get(address.lower())
        return info if info is not None else unknown_spender(address)

    def addresses(self) -> Tuple[str, ...]:
        """Registered spender addresses in their original casing."""
        return tuple(info.address for info in self._table.values())

# =============================================================================
# ALLOWANCES
# =============================================================================

@dataclass(frozen=True)
class TokenMetadata:
    """ERC-20 token metadata."""
    address: str
    symbol: str
    name: str
    decimals: int


def unknown_token(address: str) -> TokenMetadata:
    """Sentinel metadata used when a token does not answer metadata calls."""
    return TokenMetadata(
        address=address,
        symbol=UNKNOWN_TOKEN_SYMBOL,
        name=UNKNOWN_TOKEN_NAME,
        decimals=DEFAULT_TOKEN_DECIMALS,
    )


@dataclass(frozen=True)
class TokenAllowance:
    """A non-zero spending permission held by a spender over an owner's token."""
    token: str
    spender: str
    amount: str  # raw integer in the token's smallest unit
    symbol: str
    name: str
    decimals: int
    spender_info: SpenderInfo

    def __post_init__(self):
        """Validate allowance amount after initialization."""
        if not self.amount.isdigit() or int(self.amount) == 0:
            raise ValueError(f"Allowance amount must be a positive integer string: {self.amount!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'token': self.token,
            'spender': self.spender,
            'amount': self.amount,
            'symbol': self.symbol,
            'name': self.name,
            'decimals': self.decimals,
            'spender_info': self.spender_info.to_dict(),
        }


@dataclass(frozen=True)
class AllowanceResult:
    """All current allowances of one owner, in discovery order."""
    address: str
    allowances: Tuple[TokenAllowance, ...]
    timestamp: int  # milliseconds since epoch
    chain_id: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'address': self.address,
            'allowances': [allowance.to_dict() for allowance in self.allowances],
            'timestamp': self.timestamp,
            'chain_id': self.chain_id,
        }

# =============================================================================
# CONTRACT SECURITY
# =============================================================================

@dataclass(frozen=True)
class SecurityIssue:
    """Individual security finding."""
    type: str
    severity: Severity
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'severity': self.severity.value,
            'description': self.description,
        }


@dataclass(frozen=True)
class VerificationInfo:
    """Explorer source verification status."""
    is_verified: bool
    contract_name: Optional[str] = None
    source_code: Optional[str] = None


@dataclass(frozen=True)
class ProxyInfo:
    """Result of proxy storage slot probing."""
    is_proxy: bool
    implementation: Optional[str] = None
    slot_name: Optional[str] = None


@dataclass(frozen=True)
class SecurityAnalysis:
    """
    Contract security analysis.

    risk_level, security_score and warnings are derived from the other
    fields in __post_init__ and cannot be passed in.
    """
    address: str
    is_verified: bool
    has_proxy: bool
    contract_name: Optional[str] = None
    proxy_implementation: Optional[str] = None
    deployment_date: Optional[datetime] = None
    issues: Tuple[SecurityIssue, ...] = ()
    risk_level: RiskLevel = field(default=RiskLevel.UNKNOWN, init=False)
    security_score: int = field(default=0, init=False)
    warnings: Tuple[str, ...] = field(default=(), init=False)

    def __post_init__(self):
        """Recompute all derived fields together."""
        object.__setattr__(self, 'issues', tuple(self.issues))
        score = calculate_security_score(self.is_verified, self.has_proxy, self.issues)
        object.__setattr__(self, 'security_score', score)
        object.__setattr__(self, 'risk_level', determine_risk_level(score))
        object.__setattr__(self, 'warnings', tuple(generate_warnings(
            self.is_verified, self.has_proxy, self.proxy_implementation, self.issues
        )))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'address': self.address,
            'is_verified': self.is_verified,
            'contract_name': self.contract_name,
            'has_proxy': self.has_proxy,
            'proxy_implementation': self.proxy_implementation,
            'deployment_date': self.deployment_date.isoformat() if self.deployment_date else None,
            'issues': [issue.to_dict() for issue in self.issues],
            'risk_level': self.risk_level.value,
            'security_score': self.security_score,
            'warnings': list(self.warnings),
        }
