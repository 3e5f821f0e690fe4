"""
Chain Data Client Implementation

Thin adapter over a JSON-RPC endpoint and a block-explorer HTTP API.
Fetches bytecode, storage slots, verified source, token metadata,
allowances, approval logs and transaction history for one network.

Reads that feed a safety determination raise NetworkError on transport
failure; get_first_transaction degrades to None instead.

File: evmsecure/engine/chain_client.py
"""

import asyncio
import functools
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

import aiohttp
from eth_typing import ChecksumAddress
from web3 import Web3

from .config import NetworkConfig, SecureConfig, build_networks
from ..shared.constants import APPROVAL_EVENT_TOPIC, ERC20_ABI, ZERO_WORD
from ..shared.exceptions import ExplorerAPIError, NetworkError
from ..shared.schemas import TokenMetadata, VerificationInfo
from ..shared.web3_utils import (
    address_to_topic,
    create_web3_instance,
    require_address,
    word_to_address,
)

logger = logging.getLogger(__name__)

EMPTY_CODE = b''


class ChainDataClient:
    """
    Read-only chain and explorer client for a single network.

    The Web3 instance and the aiohttp session are created once per client
    and reused across calls. Use as an async context manager so the
    session is closed:

        async with ChainDataClient(network) as client:
            code = await client.get_code(address)
    """

    def __init__(
        self,
        network: NetworkConfig,
        request_timeout: float = 30.0,
        web3: Optional[Web3] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize chain data client.

        Args:
            network: Network configuration (RPC URL, explorer URL and key)
            request_timeout: Upper bound in seconds for any single read
            web3: Pre-built Web3 instance (defaults to an HTTP provider)
            session: Shared aiohttp session (defaults to one owned by the client)
        """
        self.network = network
        self.request_timeout = request_timeout
        self.logger = logging.getLogger(f'evmsecure.engine.chain.{network.name.lower()}')

        if web3 is None:
            if not network.rpc_url:
                raise NetworkError(f"RPC URL not configured for {network.name}")
            web3 = create_web3_instance(network.rpc_url, timeout=int(max(request_timeout, 1)))
        self._w3 = web3

        self._session = session
        self._owns_session = session is None

        # Performance tracking
        self._total_requests = 0
        self._failed_requests = 0

        self.logger.info(f"Initialized ChainDataClient for {network.name} (chain {network.chain_id})")

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def initialize(self) -> None:
        """Create the HTTP session used for explorer requests."""
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.request_timeout, connect=10)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={'User-Agent': 'evmsecure/1.0', 'Accept': 'application/json'}
            )
            self._owns_session = True

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> 'ChainDataClient':
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def get_stats(self) -> Dict[str, Any]:
        """Get request counters for this client."""
        return {
            'network': self.network.name,
            'chain_id': self.network.chain_id,
            'total_requests': self._total_requests,
            'failed_requests': self._failed_requests,
        }

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    async def _call_rpc(self, description: str, operation: Callable, *args) -> Any:
        """Run a blocking web3 call in the executor, bounded by the request timeout."""
        self._total_requests += 1
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, functools.partial(operation, *args)),
                timeout=self.request_timeout
            )
        except asyncio.TimeoutError as e:
            self._failed_requests += 1
            raise NetworkError(f"{description} timed out after {self.request_timeout}s") from e
        except Exception as e:
            self._failed_requests += 1
            raise NetworkError(f"{description} failed: {e}") from e

    async def _explorer_get(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Query the block explorer and return its {status, message, result} envelope.

        A status other than "1" is returned as-is (no data) unless the
        explorer flags it as NOTOK, which raises ExplorerAPIError.
        """
        if self._session is None:
            await self.initialize()

        query = dict(params)
        query['apikey'] = self.network.explorer_api_key
        description = f"explorer {params.get('module')}.{params.get('action')}"

        self._total_requests += 1
        try:
            async with self._session.get(self.network.explorer_base_url, params=query) as response:
                response.raise_for_status()
                data = await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            self._failed_requests += 1
            raise NetworkError(f"{description} timed out after {self.request_timeout}s") from e
        except (aiohttp.ClientError, ValueError) as e:
            self._failed_requests += 1
            raise NetworkError(f"{description} failed: {e}") from e

        if not isinstance(data, dict):
            self._failed_requests += 1
            raise NetworkError(f"{description} returned an unexpected payload")

        status = str(data.get('status', ''))
        message = str(data.get('message', ''))
        if status != '1' and message.upper().startswith('NOTOK'):
            self._failed_requests += 1
            raise ExplorerAPIError(message, str(data.get('result', '')))

        return data

    # =========================================================================
    # RPC READS
    # =========================================================================

    async def get_code(self, address: str) -> bytes:
        """
        Get deployed bytecode.

        Returns:
            Bytecode, or EMPTY_CODE when the address is not a contract
        """
        checksum = require_address(address)
        code = await self._call_rpc('eth_getCode', self._w3.eth.get_code, checksum)
        return bytes(code) if code else EMPTY_CODE

    async def get_storage_at(self, address: str, slot: str) -> bytes:
        """
        Read one 32-byte storage word.

        An unset slot and a zero-initialised slot both return ZERO_WORD.
        """
        checksum = require_address(address)
        word = await self._call_rpc(
            'eth_getStorageAt', self._w3.eth.get_storage_at, checksum, int(slot, 16)
        )
        if not word:
            return ZERO_WORD
        return bytes(word).rjust(32, b'\x00')

    async def get_block_number(self) -> int:
        """Get latest block number."""
        return await self._call_rpc('eth_blockNumber', lambda: self._w3.eth.block_number)

    async def get_token_metadata(self, token_address: str) -> TokenMetadata:
        """
        Get ERC-20 symbol, name and decimals.

        Raises:
            NetworkError: If any of the three calls fails
        """
        checksum = require_address(token_address)
        contract = self._w3.eth.contract(address=checksum, abi=ERC20_ABI)

        symbol, name, decimals = await asyncio.gather(
            self._call_rpc(f'{checksum}.symbol()', contract.functions.symbol().call),
            self._call_rpc(f'{checksum}.name()', contract.functions.name().call),
            self._call_rpc(f'{checksum}.decimals()', contract.functions.decimals().call),
        )

        return TokenMetadata(
            address=token_address,
            symbol=symbol,
            name=name,
            decimals=int(decimals)
        )

    async def get_allowance(self, token_address: str, owner: str, spender: str) -> int:
        """Get current allowance of spender over owner's token balance."""
        token = require_address(token_address)
        contract = self._w3.eth.contract(address=token, abi=ERC20_ABI)
        call = contract.functions.allowance(require_address(owner), require_address(spender)).call
        return int(await self._call_rpc(f'{token}.allowance()', call))

    async def get_approval_spenders(
        self,
        token_address: str,
        owner: str,
        from_block: int = 0
    ) -> List[ChecksumAddress]:
        """
        Get spenders from historical Approval events emitted for owner.

        Args:
            token_address: Token contract emitting the events
            owner: Approving owner (indexed topic 1)
            from_block: First block to scan

        Returns:
            Spender addresses in log order, deduplicated
        """
        token = require_address(token_address)
        filter_params = {
            'address': token,
            'fromBlock': from_block,
            'toBlock': 'latest',
            'topics': [APPROVAL_EVENT_TOPIC, address_to_topic(require_address(owner))],
        }
        logs = await self._call_rpc(f'{token} Approval logs', self._w3.eth.get_logs, filter_params)

        spenders: List[ChecksumAddress] = []
        seen = set()
        for log in logs:
            topics = log['topics']
            if len(topics) < 3:
                continue
            spender = word_to_address(topics[2])
            if spender.lower() not in seen:
                seen.add(spender.lower())
                spenders.append(spender)

        return spenders

    # =========================================================================
    # EXPLORER READS
    # =========================================================================

    async def get_verified_source(self, address: str) -> VerificationInfo:
        """
        Get verified source from the explorer.

        An empty source string means not verified, even on status "1".
        """
        checksum = require_address(address)
        data = await self._explorer_get({
            'module': 'contract',
            'action': 'getsourcecode',
            'address': checksum,
        })

        result = data.get('result')
        if data.get('status') == '1' and isinstance(result, list) and result:
            entry = result[0] or {}
            source_code = entry.get('SourceCode') or ''
            contract_name = entry.get('ContractName') or None
            if source_code:
                return VerificationInfo(
                    is_verified=True,
                    contract_name=contract_name,
                    source_code=source_code
                )
            return VerificationInfo(is_verified=False, contract_name=contract_name)

        return VerificationInfo(is_verified=False)

    async def get_first_transaction(self, address: str) -> Optional[datetime]:
        """
        Get timestamp of the earliest transaction, used as deployment date.

        Returns:
            UTC datetime, or None on any fetch failure

        Raises:
            InvalidAddressError: If the address is malformed
        """
        checksum = require_address(address)
        try:
            data = await self._explorer_get({
                'module': 'account',
                'action': 'txlist',
                'address': checksum,
                'startblock': 0,
                'endblock': 99999999,
                'page': 1,
                'offset': 1,
                'sort': 'asc',
            })
            result = data.get('result')
            if data.get('status') == '1' and isinstance(result, list) and result:
                return datetime.fromtimestamp(int(result[0]['timeStamp']), tz=timezone.utc)
        except Exception as e:
            self.logger.warning(f"Error getting deployment info for {address}: {e}")
        return None

    async def get_token_transfer_history(self, address: str) -> List[str]:
        """
        Get token contracts the address has transferred, most recent first.

        Returns:
            Lowercased, deduplicated token addresses; empty when the
            explorer has no records
        """
        checksum = require_address(address)
        data = await self._explorer_get({
            'module': 'account',
            'action': 'tokentx',
            'address': checksum,
            'sort': 'desc',
        })

        result = data.get('result')
        if data.get('status') != '1' or not isinstance(result, list):
            return []

        tokens: List[str] = []
        seen = set()
        for tx in result:
            contract_address = (tx.get('contractAddress') or '').lower()
            if contract_address and contract_address not in seen:
                seen.add(contract_address)
                tokens.append(contract_address)

        self.logger.debug(f"Found {len(tokens)} tokens in transfer history of {checksum}")
        return tokens


# =============================================================================
# CLIENT REGISTRY
# =============================================================================

ClientFactory = Callable[[NetworkConfig, float], ChainDataClient]


def default_client_factory(network: NetworkConfig, request_timeout: float) -> ChainDataClient:
    """Build a chain data client for a network."""
    return ChainDataClient(network, request_timeout=request_timeout)


class ChainClientRegistry:
    """
    One ChainDataClient per named network, created on first use and reused
    by every later request until close().

        async with ChainClientRegistry.from_config(config) as clients:
            client = clients.get(network)
    """

    def __init__(
        self,
        networks: Mapping[str, NetworkConfig],
        request_timeout: float = 30.0,
        client_factory: Optional[ClientFactory] = None
    ):
        """
        Initialize client registry.

        Args:
            networks: Network table the clients are built for
            request_timeout: Per-read timeout passed to each client
            client_factory: Client constructor (defaults to ChainDataClient)
        """
        self.networks = networks
        self.request_timeout = request_timeout
        self._client_factory = client_factory or default_client_factory
        self._clients: Dict[str, ChainDataClient] = {}

    @classmethod
    def from_config(
        cls,
        config: SecureConfig,
        client_factory: Optional[ClientFactory] = None
    ) -> 'ChainClientRegistry':
        """Build a registry over the configured network table."""
        return cls(build_networks(config), config.request_timeout, client_factory)

    def get(self, network: NetworkConfig) -> ChainDataClient:
        """Get the client for a network, creating it on first use."""
        client = self._clients.get(network.name)
        if client is None:
            client = self._client_factory(network, self.request_timeout)
            self._clients[network.name] = client
            logger.debug(f"Created chain data client for {network.name}")
        return client

    async def close(self) -> None:
        """Close every client created so far."""
        for client in self._clients.values():
            await client.close()
        self._clients.clear()
        logger.debug("Closed all chain data clients")

    async def __aenter__(self) -> 'ChainClientRegistry':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
