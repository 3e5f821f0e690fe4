"""
Exception hierarchy for the EVM security analysis core.

Safety-relevant reads fail loud with these errors; cosmetic reads fall
back to sentinel values instead and never raise.

File: evmsecure/shared/exceptions.py
"""


class EVMSecureError(Exception):
    """Base exception for all analysis errors."""
    pass


class InvalidAddressError(EVMSecureError):
    """Input is not a well-formed 20-byte address. Never retried."""

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Invalid Ethereum address: {address!r}")


class NotAContractError(EVMSecureError):
    """Address has no deployed bytecode."""

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"No contract found at {address}")


class NetworkError(EVMSecureError):
    """Transport or API failure on an RPC or explorer read."""
    pass


class ExplorerAPIError(NetworkError):
    """Block explorer answered with an error envelope (rate limit, bad key)."""

    def __init__(self, message: str, result: str = ""):
        self.result = result
        detail = f"{message}: {result}" if result else message
        super().__init__(f"Explorer API error - {detail}")


class ConfigurationError(EVMSecureError):
    """Configuration is missing or invalid."""
    pass
