#!/usr/bin/env python3
"""
EVM Secure command-line interface.

Runs a single allowance or contract safety check and prints the report.

Usage:
    evmsecure allowances <address> [--network sepolia] [--json]
    evmsecure contract <address> [--network sepolia] [--json]

Options:
    --network    Network to query (ethereum or sepolia)
    --json       Print the structured result instead of the text report
    --log-level  Override LOG_LEVEL

File: evmsecure/cli.py
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .engine.chain_client import ChainClientRegistry
from .engine.config import SecureConfig, get_network, load_config
from .engine.utils import setup_logging
from .risk.handlers import ActionResponse, check_contract_safety, get_token_allowances
from .shared.constants import DEFAULT_NETWORK, TESTNET_NETWORK
from .shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog='evmsecure',
        description='On-chain risk analysis for token allowances and contract safety'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    for name, help_text in (
        ('allowances', 'List non-zero token allowances granted by a wallet'),
        ('contract', 'Analyze a deployed contract for risk indicators'),
    ):
        subparser = subparsers.add_parser(name, help=help_text)
        subparser.add_argument('address', help='Ethereum address')
        subparser.add_argument(
            '--network',
            choices=[DEFAULT_NETWORK, TESTNET_NETWORK],
            default=DEFAULT_NETWORK,
            help='Network to query (default: %(default)s)'
        )
        subparser.add_argument('--json', action='store_true', help='Print structured JSON output')
        subparser.add_argument('--log-level', default=None, help='Logging level (default: LOG_LEVEL or INFO)')

    return parser


async def run_command(args: argparse.Namespace, config: SecureConfig) -> ActionResponse:
    """Resolve the requested network and dispatch to the matching handler."""
    async with ChainClientRegistry.from_config(config) as clients:
        network = get_network(args.network, clients.networks)
        logger.debug(f"Running {args.command} check for {args.address} on {network.name}")
        if args.command == 'allowances':
            return await get_token_allowances(args.address, config, clients=clients, network=network)
        return await check_contract_safety(args.address, config, clients=clients, network=network)


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entry point.

    Logging is configured before the configuration is loaded so that
    validation and startup messages are emitted.

    Returns:
        0 on success, 1 when the check could not be completed
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    load_dotenv()
    setup_logging(args.log_level or os.environ.get('LOG_LEVEL', 'INFO'))

    try:
        config = load_config()
        response = asyncio.run(run_command(args, config))
    except ConfigurationError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps({
            'success': response.success,
            'text': response.text,
            'content': response.content,
        }, indent=2))
    else:
        print(response.text)

    return 0 if response.success else 1


if __name__ == '__main__':
    sys.exit(main())
