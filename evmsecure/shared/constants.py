"""
Shared constants for the EVM security analysis core.

This module contains the static reference data used by the chain client,
the allowance aggregator and the contract risk analyzer: ABIs, proxy
storage slots, unlimited-approval sentinels and the known spender table.

File: evmsecure/shared/constants.py
"""

import logging
from enum import Enum
from typing import Dict, List, Tuple

logger = logging.getLogger(__name__)

# =============================================================================
# ADDRESS & WORD CONSTANTS
# =============================================================================

ADDRESS_PATTERN = r'0x[a-fA-F0-9]{40}'

ZERO_ADDRESS = '0x0000000000000000000000000000000000000000'
ZERO_WORD = b'\x00' * 32

# =============================================================================
# PROXY STORAGE SLOTS (checked in this order, first non-zero wins)
# =============================================================================

PROXY_SLOTS: Tuple[Tuple[str, str], ...] = (
    # EIP-1967 implementation slot
    ('eip1967', '0x360894a13ba1a3210667c828492db98dca3e2076cc3735a920a3ca505d382bbc'),
    # EIP-1822 UUPS proxiable slot
    ('eip1822', '0xc5f16f0fcc639fa48a6947836d9850f504798523bf8c9a3a87d5876cf622bcf7'),
    # OpenZeppelin transparent proxy admin slot
    ('admin', '0xb53127684a568b3173ae13b9f8a6016e243e63b6e8ee1178d6a717850b5d6103'),
)

# =============================================================================
# SEVERITY & RISK LEVELS
# =============================================================================

class Severity(str, Enum):
    """Security issue severity."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class RiskLevel(str, Enum):
    """Contract risk tier. UNKNOWN is only the pre-computation default."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    UNKNOWN = "UNKNOWN"

# =============================================================================
# OPCODES
# =============================================================================

# Matched as lowercase hex substrings of the bytecode, at any nibble offset
OPCODE_DELEGATECALL = 'f4'
OPCODE_SELFDESTRUCT = 'ff'

# =============================================================================
# UNLIMITED APPROVAL SENTINELS
# =============================================================================

UNLIMITED_APPROVAL_VALUES: Dict[str, int] = {
    'MAX_UINT256': 2**256 - 1,
    'MAX_UINT128': 2**128 - 1,
    'MAX_UINT96': 2**96 - 1,
    'MAX_UINT64': 2**64 - 1,
}

# =============================================================================
# ERC-20 ABI & EVENT TOPICS
# =============================================================================

# keccak256("Approval(address,address,uint256)")
APPROVAL_EVENT_TOPIC = '0x8c5be1e5ebec7d5bd14f71427d1e84f3dd0314c0f7b2291e5b200ac8c7c3b925'

ERC20_ABI: List[Dict] = [
    {
        "constant": True,
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"}
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function"
    },
    {
        "constant": True,
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "type": "function"
    },
    {
        "constant": True,
        "inputs": [],
        "name": "name",
        "outputs": [{"name": "", "type": "string"}],
        "type": "function"
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "type": "function"
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "owner", "type": "address"},
            {"indexed": True, "name": "spender", "type": "address"},
            {"indexed": False, "name": "value", "type": "uint256"}
        ],
        "name": "Approval",
        "type": "event"
    },
]

# =============================================================================
# SENTINELS FOR DEGRADED FIELDS
# =============================================================================

UNKNOWN_TOKEN_SYMBOL = 'UNKNOWN'
UNKNOWN_TOKEN_NAME = 'Unknown Token'
DEFAULT_TOKEN_DECIMALS = 18

UNKNOWN_SPENDER_NAME = 'Unknown Protocol'
UNKNOWN_SPENDER_PROTOCOL = 'Unknown'
UNKNOWN_SPENDER_RISK = 'Unknown'

# =============================================================================
# KNOWN SPENDERS
# =============================================================================

KNOWN_SPENDERS_DATA: Dict[str, Dict[str, str]] = {
    '0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D': {
        'name': 'Uniswap V2 Router',
        'protocol': 'Uniswap',
        'risk': 'LOW',
    },
    '0x68b3465833fb72A70ecDF485E0e4C7bD8665Fc45': {
        'name': 'Uniswap V3 Router',
        'protocol': 'Uniswap',
        'risk': 'LOW',
    },
}

# =============================================================================
# NETWORKS
# =============================================================================

CHAIN_NAMES: Dict[int, str] = {
    1: "Ethereum Mainnet",
    5: "Goerli Testnet",
    11155111: "Sepolia Testnet",
    137: "Polygon Mainnet",
    80001: "Polygon Mumbai",
    42161: "Arbitrum One",
    10: "Optimism",
    56: "BNB Smart Chain",
    43114: "Avalanche C-Chain",
}

EXPLORER_BASE_URLS: Dict[str, str] = {
    'ethereum': 'https://api.etherscan.io/api',
    'sepolia': 'https://api-sepolia.etherscan.io/api',
}

ALCHEMY_RPC_TEMPLATES: Dict[str, str] = {
    'ethereum': 'https://eth-mainnet.g.alchemy.com/v2/{api_key}',
    'sepolia': 'https://eth-sepolia.g.alchemy.com/v2/{api_key}',
}

DEFAULT_NETWORK = 'ethereum'
TESTNET_NETWORK = 'sepolia'
SEPOLIA_CHAIN_ID = 11155111

# =============================================================================
# AGGREGATION DEFAULTS
# =============================================================================

DEFAULT_BATCH_SIZE = 5
DEFAULT_BATCH_DELAY_SECONDS = 1.0
DEFAULT_MAX_ALLOWANCE_CHECK = 100
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30
DEFAULT_ANALYSIS_TIMEOUT_SECONDS = 120


def get_network_name(chain_id: int) -> str:
    """Get display name for a chain id."""
    return CHAIN_NAMES.get(chain_id, f"Unknown Network ({chain_id})")
