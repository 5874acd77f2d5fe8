"""RPC client performing one metrics fetch against one network endpoint."""

import time
from typing import Any, Callable, Dict, List, Optional

from web3 import HTTPProvider, Web3

from rollup_tui.core.constants import DEFAULT_RPC_TIMEOUT, MAX_BACKFILL
from rollup_tui.core.errors import (
    RpcMalformedResponse,
    RpcTimeout,
    classify_rpc_error,
    sanitize_rpc_url,
)
from rollup_tui.core.models import BlockSample, Metric, NetworkConfig
from rollup_tui.core.utils import configure_logger

logger = configure_logger()


class DeadlineHTTPProvider(HTTPProvider):
    """HTTP provider whose requests share one deadline per fetch.

    Each request gets the per-call timeout or the time left before
    ``deadline``, whichever is shorter. Once the deadline has passed no
    request is sent at all.
    """

    def __init__(self, endpoint_uri: str, timeout: float) -> None:
        """Initialize the provider without web3-level retries."""
        super().__init__(
            endpoint_uri,
            request_kwargs={"timeout": timeout},
            exception_retry_configuration=None,
        )
        self.deadline: Optional[float] = None

    def get_request_kwargs(self) -> Dict[str, Any]:
        """Request kwargs with the timeout clamped to the remaining budget."""
        kwargs = dict(super().get_request_kwargs())
        if self.deadline is None:
            return kwargs
        remaining = self.deadline - time.monotonic()
        if remaining <= 0:
            raise RpcTimeout("call deadline exceeded")
        kwargs["timeout"] = min(kwargs.get("timeout", remaining), remaining)
        return kwargs


class RPCClient:
    """Fetches gas price, head block and recent blocks from one endpoint.

    Stateless per call: the only thing kept between calls is the web3
    connection. There are no retries here; failures are raised as
    ``RpcError`` subclasses and the poller decides what to do with them.
    """

    def __init__(
        self,
        network: NetworkConfig,
        timeout: float = DEFAULT_RPC_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the client and its HTTP provider."""
        self.network = network
        self.timeout = timeout
        self._clock = clock
        # No web3 retries, the poller owns retry and backoff
        self.provider = DeadlineHTTPProvider(network.endpoint, timeout)
        self.web3 = Web3(self.provider)

    @property
    def safe_endpoint(self) -> str:
        """Endpoint with any embedded API key masked."""
        return sanitize_rpc_url(self.network.endpoint)

    def fetch(self, after_block: Optional[int] = None) -> Metric:
        """Fetch one Metric.

        Args:
            after_block: Highest block already seen by the caller. Blocks
                between it and the new head are fetched too (at most
                ``MAX_BACKFILL``, or the last ``MAX_BACKFILL`` blocks when
                nothing was seen yet) while the call deadline allows.

        Raises:
            RpcError: classified failure of the head block or gas price call.
                ``RpcTimeout`` once the whole call exceeds ``timeout``.

        """
        started = time.monotonic()
        deadline = started + self.timeout
        self.provider.deadline = deadline
        try:
            try:
                latest = self.web3.eth.get_block("latest")
                gas_price = self.web3.eth.gas_price
            except Exception as e:
                raise classify_rpc_error(e) from e
            latency = time.monotonic() - started
            if latency >= self.timeout:
                raise RpcTimeout(f"no answer within {self.timeout:g}s")

            head = parse_block(latest)
            if isinstance(gas_price, bool) or not isinstance(gas_price, int) or gas_price < 0:
                raise RpcMalformedResponse(f"invalid gas price: {gas_price!r}")

            blocks = self._backfill(after_block, head.number, deadline=deadline)
        finally:
            self.provider.deadline = None
        blocks.append(head)

        return Metric(
            gas_price=int(gas_price),
            block_height=head.number,
            latency=latency,
            observed_at=self._clock(),
            blocks=tuple(blocks),
        )

    def _backfill(
        self, after_block: Optional[int], head: int, deadline: float
    ) -> List[BlockSample]:
        """Fetch the blocks strictly between ``after_block`` and ``head``."""
        first = head - MAX_BACKFILL
        if after_block is not None:
            first = max(after_block + 1, first)

        samples = []
        for number in range(max(first, 0), head):
            if time.monotonic() >= deadline:
                logger.debug(f"[{self.network.id}] Backfill deadline reached at block {number}")
                break
            try:
                samples.append(parse_block(self.web3.eth.get_block(number)))
            except RpcMalformedResponse as e:
                logger.debug(f"[{self.network.id}] Skipping malformed block {number}: {e}")
            except Exception as e:
                # Intermediate blocks are best effort
                logger.debug(f"[{self.network.id}] Failed to fetch block {number}: {e}")
        return samples


def _require_int(block: Any, key: str) -> int:
    value = block.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise RpcMalformedResponse(f"block field '{key}' missing or not an integer: {value!r}")
    return value


def parse_block(block: Any) -> BlockSample:
    """Extract a BlockSample from a web3 block, rejecting incomplete payloads."""
    if block is None or not hasattr(block, "get"):
        raise RpcMalformedResponse(f"unexpected block payload: {block!r}")

    transactions = block.get("transactions")
    if transactions is None or not hasattr(transactions, "__len__"):
        raise RpcMalformedResponse("block field 'transactions' missing")

    size = block.get("size")
    if isinstance(size, bool) or not isinstance(size, int):
        size = None

    return BlockSample(
        number=_require_int(block, "number"),
        timestamp=_require_int(block, "timestamp"),
        gas_used=_require_int(block, "gasUsed"),
        tx_count=len(transactions),
        size=size,
    )
