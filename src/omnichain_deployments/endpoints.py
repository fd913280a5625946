"""Target network endpoints for omnichain-deployments library."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Dict, Optional, TypeVar

import aiohttp
from web3 import AsyncWeb3
from web3.exceptions import TimeExhausted, TransactionNotFound, Web3Exception

from .constants import DEFAULT_PRIORITY_FEE, RECEIPT_POLL_INTERVAL_SECONDS, RPC_TIMEOUT_SECONDS
from .exceptions import RpcUnavailableError
from .types import FeeData, TargetDescriptor

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Transport and node-side failures that mean "this endpoint did not answer usefully".
# asyncio.TimeoutError is only an alias of TimeoutError from Python 3.11 on.
RPC_ERRORS = (
    Web3Exception,
    aiohttp.ClientError,
    asyncio.TimeoutError,
    TimeoutError,
    OSError,
    ValueError,
)


class TargetEndpoint(ABC):
    """
    The JSON-RPC operations the deployment engine needs from a network.

    Implementations raise RpcUnavailableError for transport or node errors.
    """

    @abstractmethod
    async def get_network_id(self) -> int:
        """Return the chain id reported by the node."""

    @abstractmethod
    async def get_balance(self, address: str) -> int:
        """Return the balance of ``address`` in wei."""

    @abstractmethod
    async def get_fee_data(self) -> FeeData:
        """Return the network's current fee fields."""

    @abstractmethod
    async def estimate_gas(self, transaction: Dict[str, Any]) -> int:
        """Simulate ``transaction`` and return the gas it would use."""

    @abstractmethod
    async def get_transaction_count(self, address: str) -> int:
        """Return the next nonce for ``address`` (pending block)."""

    @abstractmethod
    async def send_raw_transaction(self, raw_transaction: bytes) -> str:
        """Broadcast a signed transaction and return its 0x-prefixed hash."""

    @abstractmethod
    async def wait_for_receipt(self, tx_hash: str, timeout: float) -> Optional[Dict[str, Any]]:
        """
        Wait until ``tx_hash`` is mined.

        Returns:
            Receipt dict with ``status``, ``blockNumber`` and ``contractAddress``,
            or None if the timeout expired first
        """


class Web3Endpoint(TargetEndpoint):
    """TargetEndpoint backed by web3.py's asynchronous HTTP provider."""

    def __init__(self, target: TargetDescriptor, request_timeout: float = RPC_TIMEOUT_SECONDS):
        self.target = target
        self.w3 = AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(
                target.endpoint_url, request_kwargs={"timeout": request_timeout}
            )
        )

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except RPC_ERRORS as e:
            raise RpcUnavailableError(
                f"RPC call {operation} failed on {self.target.name}: {e}"
            ) from e

    async def get_network_id(self) -> int:
        return int(await self._call("eth_chainId", self.w3.eth.chain_id))

    async def get_balance(self, address: str) -> int:
        return int(await self._call("eth_getBalance", self.w3.eth.get_balance(address)))

    async def get_fee_data(self) -> FeeData:
        gas_price = await self._call("eth_gasPrice", self.w3.eth.gas_price)
        block = await self._call("eth_getBlockByNumber", self.w3.eth.get_block("latest"))

        base_fee = block.get("baseFeePerGas")
        if base_fee is None:
            return FeeData(gas_price=int(gas_price))

        try:
            priority_fee = int(await self.w3.eth.max_priority_fee)
        except RPC_ERRORS:
            logger.debug("%s does not support eth_maxPriorityFeePerGas", self.target.name)
            priority_fee = DEFAULT_PRIORITY_FEE

        return FeeData(
            gas_price=int(gas_price),
            max_fee_per_gas=2 * int(base_fee) + priority_fee,
            max_priority_fee_per_gas=priority_fee,
        )

    async def estimate_gas(self, transaction: Dict[str, Any]) -> int:
        return int(await self._call("eth_estimateGas", self.w3.eth.estimate_gas(transaction)))

    async def get_transaction_count(self, address: str) -> int:
        return int(
            await self._call(
                "eth_getTransactionCount",
                self.w3.eth.get_transaction_count(address, "pending"),
            )
        )

    async def send_raw_transaction(self, raw_transaction: bytes) -> str:
        tx_hash = await self._call(
            "eth_sendRawTransaction", self.w3.eth.send_raw_transaction(raw_transaction)
        )
        return self.w3.to_hex(tx_hash)

    async def wait_for_receipt(self, tx_hash: str, timeout: float) -> Optional[Dict[str, Any]]:
        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=timeout, poll_latency=RECEIPT_POLL_INTERVAL_SECONDS
            )
        except (TimeExhausted, TransactionNotFound):
            return None
        except RPC_ERRORS as e:
            raise RpcUnavailableError(
                f"Receipt polling failed on {self.target.name}: {e}"
            ) from e
        return dict(receipt)
