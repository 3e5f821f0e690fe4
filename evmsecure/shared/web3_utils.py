"""
Shared Web3 Utilities - Address Validation and Web3 Construction

All modules should validate and normalise addresses through this module
so that every entry point rejects malformed input before any network
call is issued.

File: evmsecure/shared/web3_utils.py
"""

import logging
import re
from typing import Optional

from eth_typing import ChecksumAddress
from eth_utils import is_checksum_address, is_hex_address, to_checksum_address
from web3 import Web3
from web3.providers import HTTPProvider

from .constants import ADDRESS_PATTERN
from .exceptions import InvalidAddressError

logger = logging.getLogger(__name__)

_ADDRESS_RE = re.compile(ADDRESS_PATTERN)


def validate_ethereum_address(address: str) -> bool:
    """
    Validate an Ethereum address.

    Requires the 0x prefix and 40 hex digits. All-lowercase or
    all-uppercase hex is accepted as is; mixed case must match the EIP-55
    checksum.

    Args:
        address: Address string to validate

    Returns:
        bool: True if address is valid, False otherwise
    """
    if not isinstance(address, str) or not address.startswith('0x'):
        return False
    if not is_hex_address(address):
        return False

    body = address[2:]
    if body != body.lower() and body != body.upper():
        return is_checksum_address(address)
    return True


def require_address(address: str) -> ChecksumAddress:
    """
    Validate an address and return its checksum form.

    Raises:
        InvalidAddressError: If the address fails format validation
    """
    if not validate_ethereum_address(address):
        raise InvalidAddressError(address)
    return to_checksum_address(address)


def extract_address(text: str) -> Optional[str]:
    """
    Extract the first address-shaped token from free text.

    Args:
        text: Message text

    Returns:
        The matched address string or None
    """
    if not text:
        return None
    match = _ADDRESS_RE.search(text)
    return match.group(0) if match else None


def word_to_address(word: bytes) -> ChecksumAddress:
    """Interpret a 32-byte storage word as a right-aligned 20-byte address."""
    padded = bytes(word).rjust(32, b'\x00')
    return to_checksum_address('0x' + padded[-20:].hex())


def address_to_topic(address: str) -> str:
    """Left-pad an address into a 32-byte log topic."""
    return '0x' + '0' * 24 + address.lower()[2:]


def create_web3_instance(rpc_url: str, timeout: int = 30) -> Web3:
    """
    Create a Web3 instance over HTTP.

    Args:
        rpc_url: RPC URL for the provider
        timeout: Request timeout in seconds (default: 30)

    Returns:
        Web3 instance
    """
    provider = HTTPProvider(rpc_url, request_kwargs={'timeout': timeout})
    logger.debug(f"Created Web3 HTTP provider for {rpc_url[:20]}...")
    return Web3(provider)
