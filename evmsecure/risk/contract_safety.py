"""
Contract Risk Analyzer

Evaluates a deployed contract for known risk indicators: unverified
source, proxy delegation, delegatecall/selfdestruct exposure and
ownership changes in payable receive/fallback bodies. Produces a
SecurityAnalysis whose score, tier and warnings derive from the findings.

Verification, proxy and deployment reads run concurrently; the
vulnerability scan waits for the verified source.

File: evmsecure/risk/contract_safety.py
"""

import asyncio
import logging
import time
from typing import Optional, Sequence

from .base import BaseAnalyzer
from .detectors import DEFAULT_DETECTORS, BaseDetector, ProxyDetector, scan_vulnerabilities
from ..engine.chain_client import ChainDataClient
from ..shared.exceptions import NotAContractError
from ..shared.schemas import SecurityAnalysis
from ..shared.web3_utils import require_address

logger = logging.getLogger(__name__)


class ContractRiskAnalyzer(BaseAnalyzer):
    """
    Smart contract risk analyzer.

    Analyzes:
    - Explorer source verification
    - Proxy storage slots (EIP-1967, EIP-1822, transparent admin)
    - Vulnerability patterns over bytecode and verified source
    - Deployment date (best effort)
    """

    def __init__(
        self,
        client: ChainDataClient,
        detectors: Sequence[BaseDetector] = DEFAULT_DETECTORS,
        proxy_detector: Optional[ProxyDetector] = None
    ):
        """
        Initialize contract risk analyzer.

        Args:
            client: Chain data client for the analyzed network
            detectors: Vulnerability detector strategies
            proxy_detector: Proxy slot strategy (defaults to the standard slots)
        """
        super().__init__(client)
        self.detectors = tuple(detectors)
        self.proxy_detector = proxy_detector or ProxyDetector()

        logger.info(f"Contract risk analyzer initialized for chain {self.chain_id}")

    async def analyze(self, contract_address: str) -> SecurityAnalysis:
        """
        Perform contract security analysis.

        Args:
            contract_address: Contract address to analyze

        Returns:
            SecurityAnalysis with derived score, risk level and warnings

        Raises:
            InvalidAddressError: If the address is malformed
            NotAContractError: If no bytecode is deployed at the address
            NetworkError: If the code, verification or proxy read fails
        """
        address = require_address(contract_address)
        analysis_start = time.time()

        try:
            logger.debug(f"Starting contract security analysis for {address}")

            bytecode = await self.client.get_code(address)
            if not bytecode:
                raise NotAContractError(address)

            # Independent checks in parallel; deployment date is cosmetic
            verification_result, proxy_result, deployment_result = await asyncio.gather(
                self.client.get_verified_source(address),
                self.proxy_detector.detect(self.client, address),
                self.client.get_first_transaction(address),
                return_exceptions=True
            )

            verification = self._require_result(verification_result, 'Verification')
            proxy = self._require_result(proxy_result, 'Proxy')
            deployment_date = self._safe_extract_result(deployment_result, None, 'Deployment date')

            issues = scan_vulnerabilities(bytecode, verification.source_code, self.detectors)

            analysis = SecurityAnalysis(
                address=address,
                is_verified=verification.is_verified,
                contract_name=verification.contract_name,
                has_proxy=proxy.is_proxy,
                proxy_implementation=proxy.implementation,
                deployment_date=deployment_date,
                issues=tuple(issues)
            )

            analysis_time_ms = (time.time() - analysis_start) * 1000
            self._update_performance_stats(analysis_time_ms, success=True)

            logger.info(
                f"Contract analysis complete for {address}: score={analysis.security_score}, "
                f"risk={analysis.risk_level.value}, issues={len(issues)} ({analysis_time_ms:.1f}ms)"
            )

            return analysis

        except Exception:
            analysis_time_ms = (time.time() - analysis_start) * 1000
            self._update_performance_stats(analysis_time_ms, success=False)
            raise
