"""
CLI Tests

File: evmsecure/tests/test_cli.py

Tests argument parsing, dispatch and exit codes of the evmsecure command.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from evmsecure import cli
from evmsecure.engine.chain_client import ChainClientRegistry
from evmsecure.engine.config import SecureConfig
from evmsecure.risk.handlers import ActionResponse
from evmsecure.shared.exceptions import ConfigurationError

ADDRESS = '0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2'


@pytest.fixture
def config():
    return SecureConfig(
        rpc_url='http://localhost:8545',
        etherscan_api_key='TESTKEY',
        sepolia_rpc_url='http://localhost:8546'
    )


@pytest.fixture
def patched(config, monkeypatch):
    """Patch environment loading, logging setup and both handlers."""
    monkeypatch.delenv('LOG_LEVEL', raising=False)
    with patch.object(cli, 'load_dotenv'), \
            patch.object(cli, 'load_config', return_value=config) as mock_config, \
            patch.object(cli, 'setup_logging') as mock_logging, \
            patch.object(cli, 'check_contract_safety', new_callable=AsyncMock) as mock_contract, \
            patch.object(cli, 'get_token_allowances', new_callable=AsyncMock) as mock_allowances:
        yield {
            'config': mock_config,
            'logging': mock_logging,
            'contract': mock_contract,
            'allowances': mock_allowances,
        }


class TestParser:
    """Test argument parsing."""

    def test_defaults(self):
        args = cli.build_parser().parse_args(['contract', ADDRESS])

        assert args.command == 'contract'
        assert args.address == ADDRESS
        assert args.network == 'ethereum'
        assert not args.json
        assert args.log_level is None

    def test_unknown_network_rejected(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(['allowances', ADDRESS, '--network', 'polygon'])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


class TestMain:
    """Test dispatch and exit codes."""

    def test_contract_success(self, patched, capsys):
        patched['contract'].return_value = ActionResponse(success=True, text='Security Analysis for Token')

        exit_code = cli.main(['contract', ADDRESS])

        assert exit_code == 0
        assert 'Security Analysis for Token' in capsys.readouterr().out
        call = patched['contract'].await_args
        assert call.args[0] == ADDRESS
        assert call.kwargs['network'].name == 'ethereum'
        assert isinstance(call.kwargs['clients'], ChainClientRegistry)
        patched['allowances'].assert_not_called()

    def test_allowances_on_testnet(self, patched):
        patched['allowances'].return_value = ActionResponse(success=True, text='No significant token allowances')

        exit_code = cli.main(['allowances', ADDRESS, '--network', 'sepolia', '--log-level', 'DEBUG'])

        assert exit_code == 0
        network = patched['allowances'].await_args.kwargs['network']
        assert network.name == 'sepolia'
        assert network.chain_id == 11155111
        patched['logging'].assert_called_once_with('DEBUG')

    def test_unconfigured_network_exit_code(self, patched, capsys):
        patched['config'].return_value = SecureConfig(rpc_url='http://localhost:8545', etherscan_api_key='K')

        exit_code = cli.main(['contract', ADDRESS, '--network', 'sepolia'])

        assert exit_code == 1
        assert 'RPC URL not configured for sepolia' in capsys.readouterr().err
        patched['contract'].assert_not_called()

    def test_handled_failure_exit_code(self, patched, capsys):
        patched['contract'].return_value = ActionResponse(
            success=False, text='Please provide a valid Ethereum address.'
        )

        assert cli.main(['contract', '0x123']) == 1
        assert 'Please provide a valid Ethereum address.' in capsys.readouterr().out

    def test_json_output(self, patched, capsys):
        patched['contract'].return_value = ActionResponse(
            success=True, text='report', content={'address': ADDRESS}
        )

        cli.main(['contract', ADDRESS, '--json'])

        output = json.loads(capsys.readouterr().out)
        assert output['success'] is True
        assert output['content']['address'] == ADDRESS

    def test_configuration_error(self, patched, capsys):
        patched['config'].side_effect = ConfigurationError('RPC_URL: RPC URL is required')

        exit_code = cli.main(['contract', ADDRESS])

        assert exit_code == 1
        assert 'RPC_URL' in capsys.readouterr().err


class TestLoggingSetup:
    """Test that logging is configured before configuration is loaded."""

    def test_logging_configured_before_config_load(self, patched):
        order = []
        patched['logging'].side_effect = lambda level: order.append('logging')
        patched['config'].side_effect = lambda: order.append('config') or SecureConfig(
            rpc_url='http://localhost:8545', etherscan_api_key='K'
        )
        patched['contract'].return_value = ActionResponse(success=True, text='report')

        cli.main(['contract', ADDRESS])

        assert order == ['logging', 'config']

    def test_level_from_environment(self, patched, monkeypatch):
        monkeypatch.setenv('LOG_LEVEL', 'WARNING')
        patched['contract'].return_value = ActionResponse(success=True, text='report')

        cli.main(['contract', ADDRESS])

        patched['logging'].assert_called_once_with('WARNING')

    def test_default_level(self, patched):
        patched['contract'].return_value = ActionResponse(success=True, text='report')

        cli.main(['contract', ADDRESS])

        patched['logging'].assert_called_once_with('INFO')

    def test_logging_configured_when_config_invalid(self, patched):
        patched['config'].side_effect = ConfigurationError('RPC_URL: RPC URL is required')

        assert cli.main(['contract', ADDRESS]) == 1
        patched['logging'].assert_called_once_with('INFO')
