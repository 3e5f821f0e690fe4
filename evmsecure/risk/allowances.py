"""
Token Allowance Aggregator

Discovers which third parties can spend an owner's tokens. Candidate
tokens come from the owner's transfer history; spenders come from the
owner's historical Approval events (falling back to the known spender
allowlist when the log query fails); the current allowance of every
(token, spender) pair is then read on-chain and zero amounts discarded.

Tokens are processed in fixed-size batches. Work inside a batch runs
concurrently, batches run sequentially with a pause between them to
respect explorer rate limits.

File: evmsecure/risk/allowances.py
"""

import asyncio
import logging
import time
from typing import Callable, List, Optional

from .base import BaseAnalyzer
from ..engine.chain_client import ChainDataClient
from ..shared.constants import DEFAULT_BATCH_DELAY_SECONDS, DEFAULT_BATCH_SIZE
from ..shared.exceptions import NetworkError
from ..shared.schemas import (
    AllowanceResult,
    KnownSpenderRegistry,
    TokenAllowance,
    unknown_token,
)
from ..shared.web3_utils import require_address

logger = logging.getLogger(__name__)

# Seconds to pause after the batch with the given index
BatchDelayPolicy = Callable[[int], float]


def fixed_delay(seconds: float) -> BatchDelayPolicy:
    """Same pause after every batch."""
    def policy(batch_index: int) -> float:
        return seconds
    return policy


def no_delay(batch_index: int) -> float:
    """No pause between batches."""
    return 0.0


class AllowanceAggregator(BaseAnalyzer):
    """
    Aggregates current token allowances for an owner address.
    """

    def __init__(
        self,
        client: ChainDataClient,
        spenders: Optional[KnownSpenderRegistry] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: BatchDelayPolicy = fixed_delay(DEFAULT_BATCH_DELAY_SECONDS),
        max_tokens: Optional[int] = None,
        block_scan_range: int = 0
    ):
        """
        Initialize allowance aggregator.

        Args:
            client: Chain data client for the analyzed network
            spenders: Known spender table (defaults to the built-in table)
            batch_size: Tokens processed concurrently per batch
            batch_delay: Pause policy applied between batches
            max_tokens: Cap on candidate tokens inspected (None = no cap)
            block_scan_range: Approval log look-back in blocks (0 = full history)
        """
        super().__init__(client)
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive: {batch_size}")

        self.spenders = spenders if spenders is not None else KnownSpenderRegistry.default()
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.max_tokens = max_tokens
        self.block_scan_range = block_scan_range

    async def get_allowances(self, owner_address: str) -> AllowanceResult:
        """
        Get all non-zero allowances granted by an owner.

        Args:
            owner_address: Wallet address to inspect

        Returns:
            AllowanceResult in discovery order

        Raises:
            InvalidAddressError: If the owner address is malformed
            NetworkError: If the transfer history cannot be fetched
        """
        owner = require_address(owner_address)
        analysis_start = time.time()

        try:
            tokens = await self.client.get_token_transfer_history(owner)

            if self.max_tokens is not None and len(tokens) > self.max_tokens:
                logger.warning(
                    f"{owner} has {len(tokens)} candidate tokens, checking the first {self.max_tokens}"
                )
                tokens = tokens[:self.max_tokens]

            from_block = await self._resolve_from_block()

            allowances: List[TokenAllowance] = []
            batches = [tokens[i:i + self.batch_size] for i in range(0, len(tokens), self.batch_size)]

            for batch_index, batch in enumerate(batches):
                logger.debug(f"Processing batch {batch_index + 1}/{len(batches)} ({len(batch)} tokens)")

                batch_results = await asyncio.gather(
                    *(self._process_token(token, owner, from_block) for token in batch)
                )
                for token_allowances in batch_results:
                    allowances.extend(token_allowances)

                # Rate-limit backoff between batches
                if batch_index < len(batches) - 1:
                    delay = self.batch_delay(batch_index)
                    if delay > 0:
                        await asyncio.sleep(delay)

            result = AllowanceResult(
                address=owner,
                allowances=tuple(allowances),
                timestamp=int(time.time() * 1000),
                chain_id=self.chain_id
            )

            analysis_time_ms = (time.time() - analysis_start) * 1000
            self._update_performance_stats(analysis_time_ms, success=True)

            logger.info(
                f"Found {len(allowances)} allowances across {len(tokens)} tokens for {owner} "
                f"({analysis_time_ms:.1f}ms)"
            )

            return result

        except Exception:
            analysis_time_ms = (time.time() - analysis_start) * 1000
            self._update_performance_stats(analysis_time_ms, success=False)
            raise

    async def _resolve_from_block(self) -> int:
        """First block for Approval log queries."""
        if self.block_scan_range <= 0:
            return 0
        try:
            latest = await self.client.get_block_number()
        except NetworkError as e:
            logger.warning(f"Could not read latest block, scanning full history: {e}")
            return 0
        return max(0, latest - self.block_scan_range)

    async def _discover_spenders(self, token: str, owner: str, from_block: int) -> List[str]:
        """Spenders from Approval logs, or the known spender allowlist if logs are unavailable."""
        try:
            return await self.client.get_approval_spenders(token, owner, from_block)
        except NetworkError as e:
            self.performance_stats['degraded_fields'] += 1
            logger.warning(f"Approval log query failed for {token}, using known spender allowlist: {e}")
            return list(self.spenders.addresses())

    async def _process_token(self, token: str, owner: str, from_block: int) -> List[TokenAllowance]:
        """Resolve metadata and non-zero allowances for one token."""
        metadata_result, spenders = await asyncio.gather(
            self.client.get_token_metadata(token),
            self._discover_spenders(token, owner, from_block),
            return_exceptions=True
        )

        metadata = self._safe_extract_result(metadata_result, unknown_token(token), f"Metadata for {token}")
        spenders = self._require_result(spenders, f"Spender discovery for {token}")

        amounts = await asyncio.gather(
            *(self.client.get_allowance(token, owner, spender) for spender in spenders),
            return_exceptions=True
        )

        token_allowances = []
        for spender, amount_result in zip(spenders, amounts):
            amount = self._safe_extract_result(amount_result, 0, f"Allowance {token} -> {spender}")
            if amount <= 0:
                continue

            token_allowances.append(TokenAllowance(
                token=token,
                spender=spender,
                amount=str(amount),
                symbol=metadata.symbol,
                name=metadata.name,
                decimals=metadata.decimals,
                spender_info=self.spenders.classify(spender)
            ))

        return token_allowances
