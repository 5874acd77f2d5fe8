"""Core models"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class NetworkConfig(BaseModel):
    """A configured rollup network. Immutable for the lifetime of the process."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1, validation_alias=AliasChoices("id", "name"))
    label: str = Field(default="", validate_default=True)
    endpoint: str = Field(validation_alias=AliasChoices("endpoint", "http", "rpc"))

    @field_validator("id")
    @classmethod
    def strip_id(cls, value: str) -> str:
        """Strip surrounding whitespace and reject blank ids."""
        value = value.strip()
        if not value:
            raise ValueError("Network id must not be blank")
        return value

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, value: str) -> str:
        """Validate the RPC URL scheme."""
        value = value.strip()
        if not (value.startswith("http://") or value.startswith("https://")):
            raise ValueError(f"Invalid endpoint URL: {value}")
        return value

    @field_validator("label")
    @classmethod
    def default_label(cls, value: str, info: ValidationInfo) -> str:
        """Fall back to the id when no display label is given."""
        value = value.strip()
        return value or info.data.get("id", "")


@dataclass(frozen=True)
class BlockSample:
    """The header fields of one block needed for throughput."""

    number: int
    timestamp: int
    gas_used: int
    tx_count: int
    size: Optional[int] = None


@dataclass(frozen=True)
class Metric:
    """Result of one successful metrics fetch."""

    gas_price: int
    block_height: int
    latency: float
    observed_at: float
    blocks: Tuple[BlockSample, ...] = ()

    @property
    def gas_price_gwei(self) -> float:
        """Gas price in gwei."""
        return self.gas_price / 1e9


@dataclass(frozen=True)
class Throughput:
    """Average activity over the sliding block window."""

    tps: float
    gps: float
    dps: float


class HealthStatus(str, Enum):
    """Reachability of a network derived from its consecutive failures."""

    HEALTHY = "Healthy"
    DEGRADED = "Degraded"
    UNREACHABLE = "Unreachable"


def health_for(consecutive_failures: int, threshold: int) -> HealthStatus:
    """Classify health from the consecutive failure count and threshold K."""
    if consecutive_failures <= 0:
        return HealthStatus.HEALTHY
    if consecutive_failures < threshold:
        return HealthStatus.DEGRADED
    return HealthStatus.UNREACHABLE


@dataclass(frozen=True)
class NetworkState:
    """Latest known state of one network.

    Instances are never mutated: every update builds a new record and swaps it
    into the store, so readers see either the previous or the next version.
    """

    metric: Optional[Metric] = None
    updated_at: Optional[float] = None
    consecutive_failures: int = 0
    health: HealthStatus = HealthStatus.HEALTHY
    throughput: Optional[Throughput] = None
    last_error: Optional[str] = None

    @property
    def has_data(self) -> bool:
        """Whether at least one fetch ever succeeded."""
        return self.metric is not None

    def age(self, now: float) -> Optional[float]:
        """Seconds since the last successful update, or None if never."""
        if self.updated_at is None:
            return None
        return max(0.0, now - self.updated_at)


@dataclass(frozen=True)
class SnapshotEntry:
    """One row of the snapshot."""

    network: NetworkConfig
    state: NetworkState


@dataclass(frozen=True)
class Snapshot:
    """Point-in-time view of every configured network, in registry order."""

    entries: Tuple[SnapshotEntry, ...]
    taken_at: float
    _index: dict = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self):
        """Index entries by network id."""
        self._index.update({entry.network.id: entry for entry in self.entries})

    def __iter__(self) -> Iterator[SnapshotEntry]:
        """Iterate entries in registry order."""
        return iter(self.entries)

    def __len__(self) -> int:
        """Number of networks."""
        return len(self.entries)

    def state(self, network_id: str) -> NetworkState:
        """State of one network in this snapshot."""
        return self._index[network_id].state
