"""Artifact registry contract - maps logical contract names to deployed handles."""

from abc import ABC, abstractmethod

from asdboot.core.models import ContractHandle


class ArtifactRegistry(ABC):
    """Interface for artifact registry adapters.

    Example:
        >>> registry = plugin_registry.get("asdboot.artifact_registries", "deployments")
        >>> registry.configure({"network": "localhost", "deployments_dir": "./deployments"})
        >>> oracle = registry.resolve("AaveOracle")
        >>> oracle.address
        '0xA50ba011c48153De246E5192C8f9258A2ba79Ca9'
    """

    @abstractmethod
    def resolve(self, name: str) -> ContractHandle:
        """Resolve a logical contract name.

        Raises:
            UnresolvedArtifactError: If the name is unknown
        """
        ...

    def configure(self, config: dict) -> None:
        """Configure the registry (paths, network, address overrides).

        Default implementation is a no-op.
        """
        pass
