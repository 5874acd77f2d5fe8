"""Network registry: the ordered, validated list of configured networks."""

import json
from pathlib import Path
from typing import Any, Iterator, List, Sequence, Union

import tomli
import yaml
from pydantic import BaseModel, ValidationError, field_validator

from rollup_tui.core.errors import ConfigError, sanitize_rpc_url
from rollup_tui.core.models import NetworkConfig
from rollup_tui.core.utils import configure_logger

logger = configure_logger()


class NetworkRegistry(BaseModel):
    """Loaded-once list of networks, in file order."""

    networks: List[NetworkConfig]

    @field_validator("networks")
    @classmethod
    def validate_networks(cls, value: List[NetworkConfig]) -> List[NetworkConfig]:
        """Reject an empty registry and duplicate ids."""
        if not value:
            raise ValueError("No networks configured")
        seen = set()
        for network in value:
            if network.id in seen:
                raise ValueError(f"Duplicate network id: {network.id}")
            seen.add(network.id)
        return value

    def __iter__(self) -> Iterator[NetworkConfig]:
        """Iterate networks in registry order."""
        return iter(self.networks)

    def __len__(self) -> int:
        """Number of configured networks."""
        return len(self.networks)

    @property
    def ids(self) -> List[str]:
        """Network ids in registry order."""
        return [network.id for network in self.networks]

    @classmethod
    def from_entries(cls, entries: Sequence[Union[NetworkConfig, dict]]) -> "NetworkRegistry":
        """Build and validate a registry, raising ConfigError on any problem."""
        try:
            registry = cls(networks=list(entries))
        except ValidationError as e:
            raise ConfigError(_format_validation_error(e)) from e

        for network in registry:
            if network.endpoint.startswith("http://"):
                logger.warning(
                    f"Using insecure RPC URL for {network.id}: "
                    f"{sanitize_rpc_url(network.endpoint)}. Please use HTTPS."
                )
        return registry

    @classmethod
    def load(cls, path: Union[str, Path]) -> "NetworkRegistry":
        """Load a registry from a JSON, YAML or TOML file."""
        path = Path(path)
        data = _read_file(path)

        # The JSON format is a bare list; YAML and TOML use a "networks" table
        if isinstance(data, dict):
            if "networks" not in data:
                raise ConfigError(f"{path}: expected a 'networks' list")
            data = data["networks"]
        if not isinstance(data, list):
            raise ConfigError(f"{path}: expected a list of networks")

        registry = cls.from_entries(data)
        logger.info(f"Loaded {len(registry)} networks from {path}")
        return registry


def _read_file(path: Path) -> Any:
    extension = path.suffix.lower()
    try:
        if extension == ".json":
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        elif extension in {".toml", ".tml"}:
            with path.open("rb") as f:
                return tomli.load(f)
        elif extension in {".yaml", ".yml"}:
            with path.open("r", encoding="utf-8") as f:
                return yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read networks file {path}: {e.strerror or e}") from e
    except (json.JSONDecodeError, tomli.TOMLDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot parse networks file {path}: {e}") from e
    raise ConfigError(f"Unsupported file extension: {extension}")


def _format_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        problems.append(f"{location}: {item['msg']}")
    return "Invalid network configuration: " + "; ".join(problems)
