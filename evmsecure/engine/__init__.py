"""
Engine package: configuration, network table and chain data access.

File: evmsecure/engine/__init__.py
"""

from .chain_client import EMPTY_CODE, ChainClientRegistry, ChainDataClient
from .config import (
    NetworkConfig,
    SecureConfig,
    build_networks,
    get_network,
    load_config,
    select_network,
)

__all__ = [
    'EMPTY_CODE',
    'ChainClientRegistry',
    'ChainDataClient',
    'NetworkConfig',
    'SecureConfig',
    'build_networks',
    'get_network',
    'load_config',
    'select_network',
]
