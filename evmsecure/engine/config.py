"""
Engine Configuration Management

Loads analysis configuration from environment variables (and an optional
.env file) into immutable values constructed once at process start and
passed to the components that need them.

File: evmsecure/engine/config.py
"""

import logging
import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv

from ..shared.constants import (
    ALCHEMY_RPC_TEMPLATES,
    DEFAULT_ANALYSIS_TIMEOUT_SECONDS,
    DEFAULT_BATCH_DELAY_SECONDS,
    DEFAULT_BATCH_SIZE,
    DEFAULT_MAX_ALLOWANCE_CHECK,
    DEFAULT_NETWORK,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    EXPLORER_BASE_URLS,
    SEPOLIA_CHAIN_ID,
    TESTNET_NETWORK,
    get_network_name,
)
from ..shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NetworkConfig:
    """Configuration for a single named network."""
    name: str
    chain_id: int
    rpc_url: Optional[str]
    explorer_base_url: str
    explorer_api_key: str
    is_testnet: bool = False

    @property
    def display_name(self) -> str:
        return get_network_name(self.chain_id)


@dataclass(frozen=True)
class SecureConfig:
    """Validated process-wide analysis configuration."""
    rpc_url: Optional[str]
    etherscan_api_key: str
    chain_id: int = 1
    rpc_api_key: Optional[str] = None
    sepolia_rpc_url: Optional[str] = None
    max_allowance_check: int = DEFAULT_MAX_ALLOWANCE_CHECK
    block_scan_range: int = 0
    batch_size: int = DEFAULT_BATCH_SIZE
    batch_delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    analysis_timeout: float = DEFAULT_ANALYSIS_TIMEOUT_SECONDS
    log_level: str = "INFO"


def _parse_int(errors: List[str], name: str, raw: Optional[str], default: int, minimum: int) -> int:
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw.strip(), 10)
    except ValueError:
        errors.append(f"{name}: must be an integer (got {raw!r})")
        return default
    if value < minimum:
        errors.append(f"{name}: must be >= {minimum} (got {value})")
    return value


def _parse_float(errors: List[str], name: str, raw: Optional[str], default: float, minimum: float) -> float:
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw.strip())
    except ValueError:
        errors.append(f"{name}: must be a number (got {raw!r})")
        return default
    if value < minimum:
        errors.append(f"{name}: must be >= {minimum} (got {value})")
    return value


def load_config(env: Optional[Mapping[str, str]] = None) -> SecureConfig:
    """
    Load and validate configuration.

    Args:
        env: Variable mapping to read instead of os.environ. When omitted,
            a .env file in the working directory is loaded first.

    Returns:
        Validated SecureConfig

    Raises:
        ConfigurationError: Listing every invalid or missing variable
    """
    if env is None:
        load_dotenv()
        env = os.environ

    def get(name: str) -> Optional[str]:
        value = env.get(name)
        return value.strip() if value and value.strip() else None

    errors: List[str] = []

    rpc_url = get("RPC_URL")
    rpc_api_key = get("RPC_API_KEY")
    etherscan_api_key = get("ETHERSCAN_API_KEY")

    if not rpc_url and not rpc_api_key:
        errors.append("RPC_URL: RPC URL is required")
    if not etherscan_api_key:
        errors.append("ETHERSCAN_API_KEY: Etherscan API key is required")

    chain_id = _parse_int(errors, "CHAIN_ID", env.get("CHAIN_ID"), 1, 1)
    max_allowance_check = _parse_int(
        errors, "MAX_ALLOWANCE_CHECK", env.get("MAX_ALLOWANCE_CHECK"), DEFAULT_MAX_ALLOWANCE_CHECK, 1
    )
    block_scan_range = _parse_int(errors, "BLOCK_SCAN_RANGE", env.get("BLOCK_SCAN_RANGE"), 0, 0)
    batch_size = _parse_int(errors, "BATCH_SIZE", env.get("BATCH_SIZE"), DEFAULT_BATCH_SIZE, 1)
    batch_delay_seconds = _parse_float(
        errors, "BATCH_DELAY_SECONDS", env.get("BATCH_DELAY_SECONDS"), DEFAULT_BATCH_DELAY_SECONDS, 0.0
    )
    request_timeout = _parse_float(
        errors, "REQUEST_TIMEOUT", env.get("REQUEST_TIMEOUT"), DEFAULT_REQUEST_TIMEOUT_SECONDS, 0.001
    )
    analysis_timeout = _parse_float(
        errors, "ANALYSIS_TIMEOUT", env.get("ANALYSIS_TIMEOUT"), DEFAULT_ANALYSIS_TIMEOUT_SECONDS, 0.001
    )
    log_level = (get("LOG_LEVEL") or "INFO").upper()
    if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        errors.append(f"LOG_LEVEL: unknown level {log_level!r}")

    if errors:
        error_messages = "\n".join(errors)
        logger.error(f"EVM Secure config error:\n{error_messages}")
        raise ConfigurationError(f"EVM Secure configuration validation failed:\n{error_messages}")

    config = SecureConfig(
        rpc_url=rpc_url,
        etherscan_api_key=etherscan_api_key,
        chain_id=chain_id,
        rpc_api_key=rpc_api_key,
        sepolia_rpc_url=get("SEPOLIA_RPC_URL"),
        max_allowance_check=max_allowance_check,
        block_scan_range=block_scan_range,
        batch_size=batch_size,
        batch_delay_seconds=batch_delay_seconds,
        request_timeout=request_timeout,
        analysis_timeout=analysis_timeout,
        log_level=log_level,
    )

    display_url = f"{rpc_url[:20]}..." if rpc_url else "(derived from RPC_API_KEY)"
    logger.info(
        f"EVM Secure config loaded: RPC_URL={display_url}, CHAIN_ID={chain_id} "
        f"({get_network_name(chain_id)}), MAX_ALLOWANCE_CHECK={max_allowance_check}, "
        f"BLOCK_SCAN_RANGE={block_scan_range}"
    )

    return config


def _alchemy_url(network: str, api_key: Optional[str]) -> Optional[str]:
    if not api_key:
        return None
    return ALCHEMY_RPC_TEMPLATES[network].format(api_key=api_key)


def build_networks(config: SecureConfig) -> Mapping[str, NetworkConfig]:
    """
    Build the fixed table of named networks.

    Args:
        config: Validated configuration

    Returns:
        Read-only mapping of network name -> NetworkConfig
    """
    networks: Dict[str, NetworkConfig] = {
        DEFAULT_NETWORK: NetworkConfig(
            name=DEFAULT_NETWORK,
            chain_id=config.chain_id,
            rpc_url=config.rpc_url or _alchemy_url(DEFAULT_NETWORK, config.rpc_api_key),
            explorer_base_url=EXPLORER_BASE_URLS[DEFAULT_NETWORK],
            explorer_api_key=config.etherscan_api_key,
        ),
        TESTNET_NETWORK: NetworkConfig(
            name=TESTNET_NETWORK,
            chain_id=SEPOLIA_CHAIN_ID,
            rpc_url=config.sepolia_rpc_url or _alchemy_url(TESTNET_NETWORK, config.rpc_api_key),
            explorer_base_url=EXPLORER_BASE_URLS[TESTNET_NETWORK],
            explorer_api_key=config.etherscan_api_key,
            is_testnet=True,
        ),
    }
    return MappingProxyType(networks)


def select_network(text: str, networks: Mapping[str, NetworkConfig]) -> NetworkConfig:
    """
    Pick a network from free text; mainnet unless the text names the testnet.

    Raises:
        ConfigurationError: If the selected network has no RPC URL
    """
    name = TESTNET_NETWORK if TESTNET_NETWORK in (text or "").lower() else DEFAULT_NETWORK
    network = networks[name]
    if not network.rpc_url:
        raise ConfigurationError(f"RPC URL not configured for {name}")
    return network


def get_network(name: str, networks: Mapping[str, NetworkConfig]) -> NetworkConfig:
    """
    Look up a network by exact name.

    Raises:
        ConfigurationError: If the name is unknown or has no RPC URL
    """
    network = networks.get(name.lower())
    if network is None:
        raise ConfigurationError(
            f"Unknown network {name!r}; expected one of: {', '.join(sorted(networks))}"
        )
    if not network.rpc_url:
        raise ConfigurationError(f"RPC URL not configured for {network.name}")
    return network
