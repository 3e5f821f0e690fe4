"""
Contract Risk Detectors

Swappable heuristic checks used by the contract risk analyzer. Each
vulnerability detector inspects bytecode and verified source text and
reports at most one SecurityIssue; the proxy detector reads storage
slots through the chain data client.

The checks are pattern matches, not analysis: a bytecode marker and the
matching source text must both be present before an issue is raised.
Opcode markers are searched in the hex text of the bytecode.

File: evmsecure/risk/detectors.py
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from ..engine.chain_client import ChainDataClient
from ..shared.constants import OPCODE_DELEGATECALL, OPCODE_SELFDESTRUCT, PROXY_SLOTS, ZERO_WORD
from ..shared.schemas import ProxyInfo, SecurityIssue, Severity
from ..shared.web3_utils import word_to_address

logger = logging.getLogger(__name__)


class BaseDetector(ABC):
    """
    Base class for vulnerability pattern detectors.

    Subclasses set issue_type, severity and description and implement
    matches().
    """

    issue_type: str = 'UNKNOWN'
    severity: Severity = Severity.LOW
    description: str = ''

    @abstractmethod
    def matches(self, bytecode: bytes, source_code: Optional[str]) -> bool:
        """Check whether the pattern is present."""
        pass

    def detect(self, bytecode: bytes, source_code: Optional[str]) -> Optional[SecurityIssue]:
        """Run the check and build the issue if it matches."""
        if not self.matches(bytecode, source_code):
            return None
        logger.debug(f"{self.__class__.__name__} matched ({self.issue_type})")
        return SecurityIssue(
            type=self.issue_type,
            severity=self.severity,
            description=self.description
        )


class DelegatecallDetector(BaseDetector):
    """delegatecall opcode in bytecode and delegatecall in source."""

    issue_type = 'DELEGATECALL'
    severity = Severity.HIGH
    description = 'Contract uses delegatecall which can be dangerous if not properly secured'

    def matches(self, bytecode: bytes, source_code: Optional[str]) -> bool:
        return bool(source_code) and OPCODE_DELEGATECALL in bytecode.hex() and 'delegatecall' in source_code


class SelfdestructDetector(BaseDetector):
    """selfdestruct opcode in bytecode and selfdestruct in source."""

    issue_type = 'SELFDESTRUCT'
    severity = Severity.HIGH
    description = 'Contract contains selfdestruct capability'

    def matches(self, bytecode: bytes, source_code: Optional[str]) -> bool:
        return bool(source_code) and OPCODE_SELFDESTRUCT in bytecode.hex() and 'selfdestruct' in source_code


class DangerousReceiveDetector(BaseDetector):
    """Ownership assignment inside a payable receive() or fallback() body."""

    issue_type = 'DANGEROUS_RECEIVE'
    severity = Severity.HIGH
    description = (
        'Contract contains a receive/fallback function that can modify ownership - '
        'potential for ownership hijacking'
    )

    RECEIVE_BODY = re.compile(
        r'receive\s*\(\s*\)\s*external\s+payable\s*\{[^}]*owner\s*=[^}]*\}', re.DOTALL
    )
    FALLBACK_BODY = re.compile(
        r'fallback\s*\(\s*\)\s*external\s+payable\s*\{[^}]*owner\s*=[^}]*\}', re.DOTALL
    )

    def matches(self, bytecode: bytes, source_code: Optional[str]) -> bool:
        if not source_code:
            return False

        has_entry_point = 'receive()' in source_code or 'fallback()' in source_code
        has_ownership_change = 'owner =' in source_code or '_owner =' in source_code
        uses_msg_sender = 'msg.sender' in source_code

        if not (has_entry_point and has_ownership_change and uses_msg_sender):
            return False

        return bool(self.RECEIVE_BODY.search(source_code) or self.FALLBACK_BODY.search(source_code))


DEFAULT_DETECTORS: Tuple[BaseDetector, ...] = (
    DelegatecallDetector(),
    SelfdestructDetector(),
    DangerousReceiveDetector(),
)


def scan_vulnerabilities(
    bytecode: bytes,
    source_code: Optional[str],
    detectors: Sequence[BaseDetector] = DEFAULT_DETECTORS
) -> List[SecurityIssue]:
    """
    Run every detector and collect issues in detector order.

    Args:
        bytecode: Deployed bytecode
        source_code: Verified source, or None when unverified
        detectors: Detector strategies to apply

    Returns:
        List of detected SecurityIssue
    """
    issues = []
    for detector in detectors:
        issue = detector.detect(bytecode, source_code)
        if issue is not None:
            issues.append(issue)
    return issues


class ProxyDetector:
    """
    Check well-known proxy storage slots.

    Slots are read in priority order (EIP-1967, EIP-1822, admin) and the
    first non-zero word wins; later slots are not read once one matches.
    """

    def __init__(self, slots: Sequence[Tuple[str, str]] = PROXY_SLOTS):
        self.slots = tuple(slots)

    async def detect(self, client: ChainDataClient, address: str) -> ProxyInfo:
        """
        Check proxy status.

        Raises:
            NetworkError: If a storage read fails
        """
        for slot_name, slot in self.slots:
            word = await client.get_storage_at(address, slot)
            if word != ZERO_WORD:
                implementation = word_to_address(word)
                logger.debug(f"Proxy slot {slot_name} set on {address}: {implementation}")
                return ProxyInfo(is_proxy=True, implementation=implementation, slot_name=slot_name)

        return ProxyInfo(is_proxy=False)
