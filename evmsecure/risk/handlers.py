"""
Request handlers for allowance and contract safety checks.

Takes free text from an outer messaging layer, extracts the address,
selects the network, runs the analysis and returns a response whose text
distinguishes invalid input, missing contract and incomplete analysis.
Errors never escape as stack traces.

Chain data clients come from a ChainClientRegistry shared across requests.
When no registry is passed, one is built for the call and closed after it.

File: evmsecure/risk/handlers.py
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .allowances import AllowanceAggregator, BatchDelayPolicy, fixed_delay
from .contract_safety import ContractRiskAnalyzer
from .reporting import format_allowance_message, format_analysis_message
from ..engine.chain_client import ChainClientRegistry
from ..engine.config import NetworkConfig, SecureConfig, select_network
from ..shared.exceptions import (
    ConfigurationError,
    InvalidAddressError,
    NetworkError,
    NotAContractError,
)
from ..shared.schemas import KnownSpenderRegistry
from ..shared.web3_utils import extract_address, require_address

logger = logging.getLogger(__name__)

INVALID_ADDRESS_MESSAGE = "Please provide a valid Ethereum address."


@dataclass
class ActionResponse:
    """Response returned to the messaging layer."""
    success: bool
    text: str
    content: Dict[str, Any] = field(default_factory=dict)


def validate_message(text: str) -> bool:
    """Check whether a message contains an address-shaped token."""
    return extract_address(text) is not None


def _invalid_input(reason: str) -> ActionResponse:
    return ActionResponse(success=False, text=INVALID_ADDRESS_MESSAGE, content={'error': reason})


def _incomplete(reason: str, **content: Any) -> ActionResponse:
    return ActionResponse(
        success=False,
        text=f"Analysis could not complete: {reason}",
        content={'error': reason, **content}
    )


async def check_contract_safety(
    text: str,
    config: SecureConfig,
    clients: Optional[ChainClientRegistry] = None,
    network: Optional[NetworkConfig] = None
) -> ActionResponse:
    """
    Analyze the contract named in a message.

    Args:
        text: Message text containing the contract address
        config: Validated configuration
        clients: Shared client registry (a per-call registry when omitted)
        network: Target network (selected from the text when omitted)

    Returns:
        ActionResponse with the rendered report and structured analysis
    """
    address = extract_address(text)
    if address is None:
        return _invalid_input("No valid contract address found")

    owns_clients = clients is None
    if clients is None:
        clients = ChainClientRegistry.from_config(config)

    try:
        address = require_address(address)
        network = network or select_network(text, clients.networks)

        analyzer = ContractRiskAnalyzer(clients.get(network))
        analysis = await asyncio.wait_for(analyzer.analyze(address), timeout=config.analysis_timeout)

        logger.info(f"Successfully analyzed contract {address} on {network.name}")

        return ActionResponse(
            success=True,
            text=format_analysis_message(analysis),
            content={
                'analysis': analysis.to_dict(),
                'address': address,
                'network': network.name,
            }
        )

    except InvalidAddressError as e:
        logger.warning(f"Rejected contract safety request: {e}")
        return _invalid_input(str(e))
    except NotAContractError as e:
        logger.warning(f"Contract safety check on non-contract: {e}")
        return ActionResponse(success=False, text=str(e), content={'error': str(e), 'address': address})
    except asyncio.TimeoutError:
        logger.error(f"Contract analysis of {address} timed out after {config.analysis_timeout}s")
        return _incomplete(f"timed out after {config.analysis_timeout}s", address=address)
    except (NetworkError, ConfigurationError) as e:
        logger.error(f"Error in contract safety check: {e}")
        return _incomplete(str(e), address=address)
    except Exception as e:
        logger.error(f"Unexpected error in contract safety check: {e}", exc_info=True)
        return _incomplete("internal error", address=address)
    finally:
        if owns_clients:
            await clients.close()


async def get_token_allowances(
    text: str,
    config: SecureConfig,
    clients: Optional[ChainClientRegistry] = None,
    network: Optional[NetworkConfig] = None,
    spenders: Optional[KnownSpenderRegistry] = None,
    batch_delay: Optional[BatchDelayPolicy] = None
) -> ActionResponse:
    """
    List token allowances of the wallet named in a message.

    Args:
        text: Message text containing the wallet address
        config: Validated configuration
        clients: Shared client registry (a per-call registry when omitted)
        network: Target network (selected from the text when omitted)
        spenders: Known spender table (built-in table when omitted)
        batch_delay: Inter-batch pause policy (config value when omitted)

    Returns:
        ActionResponse with the rendered report and structured allowances
    """
    address = extract_address(text)
    if address is None:
        return _invalid_input("No valid Ethereum address found in message")

    owns_clients = clients is None
    if clients is None:
        clients = ChainClientRegistry.from_config(config)

    try:
        address = require_address(address)
        network = network or select_network(text, clients.networks)

        aggregator = AllowanceAggregator(
            clients.get(network),
            spenders=spenders,
            batch_size=config.batch_size,
            batch_delay=batch_delay or fixed_delay(config.batch_delay_seconds),
            max_tokens=config.max_allowance_check,
            block_scan_range=config.block_scan_range
        )
        result = await asyncio.wait_for(
            aggregator.get_allowances(address), timeout=config.analysis_timeout
        )

        logger.info(f"Successfully fetched token allowances for {address}")

        return ActionResponse(
            success=True,
            text=format_allowance_message(result),
            content={
                'allowances': result.to_dict(),
                'address': address,
                'chain_id': result.chain_id,
            }
        )

    except InvalidAddressError as e:
        logger.warning(f"Rejected token allowance request: {e}")
        return _invalid_input(str(e))
    except asyncio.TimeoutError:
        logger.error(f"Allowance check of {address} timed out after {config.analysis_timeout}s")
        return _incomplete(f"timed out after {config.analysis_timeout}s", address=address)
    except (NetworkError, ConfigurationError) as e:
        logger.error(f"Error in token allowance handler: {e}")
        return _incomplete(str(e), address=address)
    except Exception as e:
        logger.error(f"Unexpected error in token allowance handler: {e}", exc_info=True)
        return _incomplete("internal error", address=address)
    finally:
        if owns_clients:
            await clients.close()
