"""
Risk reporting and formatting module.

Renders allowance results and contract security analyses as plain text
with a fixed field order.

File: evmsecure/risk/reporting.py
"""

import logging
from typing import List, Union

from ..engine.utils import format_units
from ..shared.constants import DEFAULT_TOKEN_DECIMALS, UNLIMITED_APPROVAL_VALUES
from ..shared.schemas import AllowanceResult, RiskLevel, SecurityAnalysis

logger = logging.getLogger(__name__)

UNLIMITED = 'Unlimited'

_UNLIMITED_AMOUNTS = frozenset(UNLIMITED_APPROVAL_VALUES.values())


def is_unlimited_amount(amount: Union[int, str]) -> bool:
    """Check whether an amount is one of the max-uint approval sentinels."""
    return int(amount) in _UNLIMITED_AMOUNTS


def format_allowance_amount(amount: Union[int, str], decimals: int) -> str:
    """
    Format a raw allowance amount.

    Args:
        amount: Raw integer amount in the token's smallest unit
        decimals: Token decimals

    Returns:
        "Unlimited" for max-uint sentinels, otherwise the decimal amount
    """
    if is_unlimited_amount(amount):
        return UNLIMITED
    return format_units(amount, decimals)


def format_allowance_message(result: AllowanceResult) -> str:
    """
    Render an allowance result.

    Args:
        result: Allowance result to render

    Returns:
        Multi-line report
    """
    if not result.allowances:
        return f"No significant token allowances found for {result.address}"

    lines: List[str] = [
        f"Found {len(result.allowances)} token allowances for {result.address}:",
        "",
    ]

    for allowance in result.allowances:
        info = allowance.spender_info
        decimals = allowance.decimals if allowance.decimals is not None else DEFAULT_TOKEN_DECIMALS

        lines.append(f"{allowance.symbol or 'Token'} ({allowance.name or 'Unknown'}):")
        lines.append(f"- Spender: {info.name if info.is_known else allowance.spender}")
        lines.append(f"- Protocol: {info.protocol if info.is_known else 'Unknown'}")
        lines.append(f"- Amount: {format_allowance_amount(allowance.amount, decimals)}")
        if info.is_known:
            lines.append(f"- Risk Level: {info.risk}")
        lines.append("")

    return "\n".join(lines) + "\n"


def format_analysis_message(analysis: SecurityAnalysis) -> str:
    """
    Render a contract security analysis.

    Args:
        analysis: Analysis to render

    Returns:
        Multi-line report
    """
    risk_display = f"🚨 {analysis.risk_level.value}" if analysis.risk_level == RiskLevel.HIGH \
        else analysis.risk_level.value

    lines: List[str] = [
        f"Security Analysis for {analysis.contract_name or analysis.address}",
        "",
        f"Security Score: {analysis.security_score}/100",
        f"Risk Level: {risk_display}",
        "",
    ]

    if analysis.deployment_date:
        lines.append(f"Deployed: {analysis.deployment_date.strftime('%Y-%m-%d')}")

    lines.append(f"Verification: {'✅ Verified' if analysis.is_verified else '❌ Not Verified'}")

    if analysis.has_proxy:
        lines.append("Proxy Status: This is a proxy contract")
        lines.append(f"Implementation: {analysis.proxy_implementation}")

    if analysis.issues:
        lines.append("")
        lines.append("Potential Issues:")
        for issue in analysis.issues:
            lines.append(f"- [{issue.severity.value}] {issue.type}: {issue.description}")

    if analysis.warnings:
        lines.append("")
        lines.append("Warnings:")
        for warning in analysis.warnings:
            lines.append(f"- {warning}")

    return "\n".join(lines) + "\n"
