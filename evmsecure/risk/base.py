"""
Base class for risk components.

Provides performance tracking and the graceful-degradation helper shared
by the allowance aggregator and the contract risk analyzer.

File: evmsecure/risk/base.py
"""

import logging
from typing import Any, Dict

from ..engine.chain_client import ChainDataClient

logger = logging.getLogger(__name__)


class BaseAnalyzer:
    """
    Base class for risk components bound to one chain data client.
    """

    def __init__(self, client: ChainDataClient):
        """
        Initialize base analyzer.

        Args:
            client: Chain data client for the analyzed network
        """
        self.client = client
        self.chain_id = client.network.chain_id
        self.analyzer_name = self.__class__.__name__
        self.performance_stats = {
            'total_analyses': 0,
            'successful_analyses': 0,
            'failed_analyses': 0,
            'average_analysis_time_ms': 0.0,
            'degraded_fields': 0,
        }

        logger.debug(f"{self.analyzer_name} initialized for chain {self.chain_id}")

    def get_performance_metrics(self) -> Dict[str, Any]:
        """Get analyzer performance metrics."""
        success_rate = 0.0
        if self.performance_stats['total_analyses'] > 0:
            success_rate = (
                self.performance_stats['successful_analyses'] /
                self.performance_stats['total_analyses']
            ) * 100

        return {
            'analyzer_name': self.analyzer_name,
            'chain_id': self.chain_id,
            'total_analyses': self.performance_stats['total_analyses'],
            'success_rate_percent': success_rate,
            'average_analysis_time_ms': self.performance_stats['average_analysis_time_ms'],
            'degraded_fields': self.performance_stats['degraded_fields'],
        }

    def _update_performance_stats(self, analysis_time_ms: float, success: bool) -> None:
        """Update performance tracking statistics."""
        self.performance_stats['total_analyses'] += 1

        if success:
            self.performance_stats['successful_analyses'] += 1
        else:
            self.performance_stats['failed_analyses'] += 1

        # Update rolling average analysis time
        total = self.performance_stats['total_analyses']
        current_avg = self.performance_stats['average_analysis_time_ms']

        new_avg = ((current_avg * (total - 1)) + analysis_time_ms) / total
        self.performance_stats['average_analysis_time_ms'] = new_avg

    def _safe_extract_result(self, result: Any, default: Any, field_name: str) -> Any:
        """Take a gathered result, substituting the fallback when the read failed."""
        if isinstance(result, Exception):
            self.performance_stats['degraded_fields'] += 1
            logger.warning(f"{field_name} unavailable, using fallback: {result}")
            return default
        return result if result is not None else default

    def _require_result(self, result: Any, field_name: str) -> Any:
        """Take a gathered safety-relevant result, re-raising when the read failed."""
        if isinstance(result, BaseException):
            logger.error(f"{field_name} check failed: {result}")
            raise result
        return result
