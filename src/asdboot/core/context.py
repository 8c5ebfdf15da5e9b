"""Runtime context - threaded through the pipeline and passed to every step."""

from typing import Any, Optional
from datetime import datetime, timezone

from asdboot.config.schema import AsdConfig, NetworkConfig
from asdboot.contracts.artifacts import ArtifactRegistry
from asdboot.contracts.gateway import ChainGateway
from asdboot.core.models import ContractHandle, ReadRequest


class RunContext:
    """Context object passed to ``Pipeline.run`` and to each step.

    Carries the chain gateway, the artifact registry and the resolved
    configuration. Nothing in a run reads process-wide configuration; every
    setting travels through this object.
    """

    def __init__(
        self,
        gateway: ChainGateway,
        registry: ArtifactRegistry,
        network_name: str,
        network: NetworkConfig,
        signer: str,
        run_id: str,
        asd: Optional[AsdConfig] = None,
        confirmations: Optional[int] = None,
        tx_timeout: Optional[float] = None,
        max_workers: int = 1,
        variables: Optional[dict[str, Any]] = None,
        started_at: Optional[datetime] = None,
    ):
        self.gateway = gateway
        self.registry = registry
        self.network_name = network_name
        self.network = network
        self.signer = signer
        self.run_id = run_id
        self.asd = asd or AsdConfig()
        self.confirmations = confirmations if confirmations is not None else network.confirmations
        self.tx_timeout = tx_timeout if tx_timeout is not None else network.tx_timeout_seconds
        self.max_workers = max(1, max_workers)
        self.variables = variables or {}
        self.started_at = started_at or datetime.now(timezone.utc)

    def read(self, contract: ContractHandle, function: str, *args: Any) -> Any:
        """Shorthand for a read-only call through the gateway."""
        return self.gateway.call(ReadRequest(contract=contract, function=function, args=args))

    def get_var(self, key: str, default: Any = None) -> Any:
        """Get runtime variable (from --vars flag)."""
        return self.variables.get(key, default)
