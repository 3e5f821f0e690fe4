"""
Reporting Tests

File: evmsecure/risk/tests/test_reporting.py

Tests text rendering of allowance results and contract analyses.
"""

from datetime import datetime, timezone

import pytest

from evmsecure.risk.reporting import (
    UNLIMITED,
    format_allowance_amount,
    format_allowance_message,
    format_analysis_message,
    is_unlimited_amount,
)
from evmsecure.shared.constants import UNLIMITED_APPROVAL_VALUES
from evmsecure.shared.schemas import (
    AllowanceResult,
    KnownSpenderRegistry,
    SecurityAnalysis,
    SecurityIssue,
    Severity,
    TokenAllowance,
)

from .test_data import ContractAddresses

REGISTRY = KnownSpenderRegistry.default()


def _allowance(spender: str, amount: int, symbol='USDC', name='USD Coin', decimals=6) -> TokenAllowance:
    return TokenAllowance(
        token=ContractAddresses.USDC.lower(),
        spender=spender,
        amount=str(amount),
        symbol=symbol,
        name=name,
        decimals=decimals,
        spender_info=REGISTRY.classify(spender)
    )


class TestAllowanceAmounts:
    """Test allowance amount formatting."""

    @pytest.mark.parametrize('name', sorted(UNLIMITED_APPROVAL_VALUES))
    def test_sentinels_render_unlimited(self, name):
        amount = UNLIMITED_APPROVAL_VALUES[name]

        assert is_unlimited_amount(amount)
        assert is_unlimited_amount(str(amount))
        assert format_allowance_amount(amount, 18) == UNLIMITED

    def test_near_sentinel_is_not_unlimited(self):
        assert not is_unlimited_amount(2**256 - 2)
        assert format_allowance_amount(2**64, 0) == f'{2**64}.0'

    def test_finite_amount(self):
        assert format_allowance_amount(1500000, 6) == '1.5'
        assert format_allowance_amount('1000000000000000000', 18) == '1.0'


class TestAllowanceMessage:
    """Test allowance result rendering."""

    def test_empty_result(self):
        result = AllowanceResult(address=ContractAddresses.OWNER, allowances=(), timestamp=1, chain_id=1)

        assert format_allowance_message(result) == (
            f'No significant token allowances found for {ContractAddresses.OWNER}'
        )

    def test_known_and_unknown_entries(self):
        result = AllowanceResult(
            address=ContractAddresses.OWNER,
            allowances=(
                _allowance(ContractAddresses.UNISWAP_V2_ROUTER, 2**256 - 1),
                _allowance(ContractAddresses.UNKNOWN_SPENDER, 2500000),
            ),
            timestamp=1,
            chain_id=1
        )

        message = format_allowance_message(result)

        assert message == (
            f'Found 2 token allowances for {ContractAddresses.OWNER}:\n'
            '\n'
            'USDC (USD Coin):\n'
            '- Spender: Uniswap V2 Router\n'
            '- Protocol: Uniswap\n'
            '- Amount: Unlimited\n'
            '- Risk Level: LOW\n'
            '\n'
            'USDC (USD Coin):\n'
            f'- Spender: {ContractAddresses.UNKNOWN_SPENDER}\n'
            '- Protocol: Unknown\n'
            '- Amount: 2.5\n'
            '\n'
        )


class TestAnalysisMessage:
    """Test contract analysis rendering."""

    def test_clean_contract(self):
        analysis = SecurityAnalysis(
            address=ContractAddresses.USDC,
            is_verified=True,
            has_proxy=False,
            contract_name='FiatToken',
            deployment_date=datetime(2018, 8, 3, 19, 28, tzinfo=timezone.utc)
        )

        message = format_analysis_message(analysis)

        assert message.startswith('Security Analysis for FiatToken\n')
        assert 'Security Score: 100/100' in message
        assert 'Risk Level: LOW' in message
        assert 'Deployed: 2018-08-03' in message
        assert 'Verification: ✅ Verified' in message
        assert 'Proxy Status' not in message
        assert 'Potential Issues' not in message
        assert 'Warnings' not in message

    def test_high_risk_proxy(self):
        analysis = SecurityAnalysis(
            address=ContractAddresses.USDC,
            is_verified=False,
            has_proxy=True,
            proxy_implementation=ContractAddresses.IMPLEMENTATION,
            issues=(SecurityIssue('SELFDESTRUCT', Severity.HIGH, 'Contract contains selfdestruct capability'),)
        )

        message = format_analysis_message(analysis)

        assert message.startswith(f'Security Analysis for {ContractAddresses.USDC}\n')
        assert 'Security Score: 10/100' in message
        assert 'Risk Level: 🚨 HIGH' in message
        assert 'Deployed' not in message
        assert 'Verification: ❌ Not Verified' in message
        assert 'Proxy Status: This is a proxy contract' in message
        assert f'Implementation: {ContractAddresses.IMPLEMENTATION}' in message
        assert '- [HIGH] SELFDESTRUCT: Contract contains selfdestruct capability' in message
        assert '- Contract is not verified on Etherscan' in message
        assert '- Found 1 potential security issues' in message

    def test_section_order(self):
        analysis = SecurityAnalysis(
            address=ContractAddresses.USDC,
            is_verified=False,
            has_proxy=True,
            proxy_implementation=ContractAddresses.IMPLEMENTATION,
            issues=(SecurityIssue('DELEGATECALL', Severity.HIGH, 'delegatecall'),)
        )

        message = format_analysis_message(analysis)
        positions = [
            message.index(marker)
            for marker in ('Security Score', 'Risk Level', 'Verification', 'Proxy Status', 'Potential Issues', 'Warnings')
        ]
        assert positions == sorted(positions)
