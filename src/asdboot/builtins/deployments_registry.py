"""Deployments-directory artifact registry.

Resolves logical contract names from hardhat-deploy style records:

    deployments/<network>/<Name>.json   {"address": "0x...", "abi": [...]}

Contracts that were not deployed by this project (the existing protocol on a
fork) are listed as address overrides in asdboot.yaml; their ABI comes from
the compiled artifacts:

    addresses:
      LendingPool: "0x7d2768dE32b0b80b7a3454c06BdAc94A69DDc7A9"
      StakedAave: "0x4da27a545c0c5B758a6BA100e3a049001de870f5:InitializableAdminUpgradeabilityProxy"
"""

import json
import logging
from pathlib import Path

from asdboot.contracts.artifacts import ArtifactRegistry
from asdboot.core.errors import UnresolvedArtifactError
from asdboot.core.models import ContractHandle

logger = logging.getLogger(__name__)


class DeploymentsRegistry(ArtifactRegistry):
    """Artifact registry backed by the deployments and artifacts directories."""

    def __init__(self):
        self.network = "hardhat"
        self.deployments_dir = Path("./deployments")
        self.artifacts_dir = Path("./artifacts")
        self.addresses: dict[str, str] = {}
        self._cache: dict[str, ContractHandle] = {}

    def configure(self, config: dict) -> None:
        """Configure paths and overrides.

        Args:
            config: {"network", "deployments_dir", "artifacts_dir", "addresses"}
        """
        self.network = config.get("network", self.network)
        self.deployments_dir = Path(config.get("deployments_dir", self.deployments_dir))
        self.artifacts_dir = Path(config.get("artifacts_dir", self.artifacts_dir))
        self.addresses = dict(config.get("addresses", {}))
        self._cache = {}

    def resolve(self, name: str) -> ContractHandle:
        if name in self._cache:
            return self._cache[name]

        searched = []
        deployment_path = self.deployments_dir / self.network / f"{name}.json"
        searched.append(str(deployment_path))

        if deployment_path.exists():
            with open(deployment_path) as f:
                record = json.load(f)
            if "address" not in record:
                raise UnresolvedArtifactError(name, searched + ["(deployment record has no address)"])
            handle = ContractHandle(name=name, address=record["address"], abi=record.get("abi", []))

        elif name in self.addresses:
            address, _, abi_name = self.addresses[name].partition(":")
            searched.append(f"addresses[{name}]")
            abi = self._load_abi(abi_name or name, searched)
            if abi is None:
                raise UnresolvedArtifactError(name, searched)
            handle = ContractHandle(name=name, address=address, abi=abi)

        else:
            searched.append(f"addresses[{name}]")
            raise UnresolvedArtifactError(name, searched)

        logger.debug("Resolved %s -> %s", name, handle.address)
        self._cache[name] = handle
        return handle

    def _load_abi(self, artifact_name: str, searched: list[str]) -> list[dict] | None:
        """Find ``<artifacts>/**/<artifact_name>.json`` and return its ABI."""
        pattern = f"**/{artifact_name}.json"
        searched.append(str(self.artifacts_dir / pattern))
        if not self.artifacts_dir.exists():
            return None

        for path in sorted(self.artifacts_dir.glob(pattern)):
            with open(path) as f:
                artifact = json.load(f)
            if isinstance(artifact, dict) and "abi" in artifact:
                return artifact["abi"]
        return None
