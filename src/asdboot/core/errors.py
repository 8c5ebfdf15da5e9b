"""Exception hierarchy for asdboot.

Configuration errors detected before any step runs abort the invocation.
Everything raised while a step executes is converted into a step outcome by
the pipeline and never propagates out of ``Pipeline.run``.
"""


class AsdbootError(Exception):
    """Base exception for all asdboot errors."""
    pass


# =============================================================================
# Configuration
# =============================================================================


class ConfigurationError(AsdbootError):
    """Raised when configuration is missing or inconsistent."""
    pass


class UnknownNetworkError(ConfigurationError):
    """Raised when a network name cannot be resolved from configuration."""

    def __init__(self, network: str, available: list[str]):
        self.network = network
        self.available = available
        super().__init__(
            f"Network '{network}' not found in configuration. "
            f"Available networks: {available}"
        )


class MissingSignerError(ConfigurationError):
    """Raised when the signer selection cannot be mapped to an account."""

    def __init__(self, signer: str, reason: str):
        self.signer = signer
        super().__init__(f"Cannot resolve signer '{signer}': {reason}")


class NodeUnreachableError(ConfigurationError):
    """Raised when the network's JSON-RPC endpoint cannot be reached."""

    def __init__(self, url: str | None, cause: Exception):
        self.url = url
        super().__init__(f"Cannot reach node at {url}: {cause}")


class UnresolvedArtifactError(ConfigurationError):
    """Raised when the artifact registry has no entry for a logical contract name."""

    def __init__(self, name: str, searched: list[str] | None = None):
        self.name = name
        self.searched = searched or []
        message = f"Contract '{name}' could not be resolved"
        if self.searched:
            message += f" (searched: {', '.join(self.searched)})"
        super().__init__(message)


class PipelineNotFoundError(ConfigurationError):
    """Raised when a pipeline name is not registered."""

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = available
        super().__init__(f"Pipeline '{name}' not found. Available pipelines: {available}")


# =============================================================================
# Pipeline definition
# =============================================================================


class PipelineDefinitionError(AsdbootError):
    """Raised when a pipeline definition is invalid (duplicate names, dangling dependencies)."""
    pass


class CyclicDependencyError(PipelineDefinitionError):
    """Raised when step dependencies form a cycle."""

    def __init__(self, cycle: list[str]):
        self.cycle = cycle
        super().__init__(f"Cyclic step dependency: {' -> '.join(cycle)}")


# =============================================================================
# Chain
# =============================================================================


class ChainError(AsdbootError):
    """Base class for failures reported by the chain gateway."""
    pass


class TransactionFailure(ChainError):
    """Raised when a transaction is rejected or reverts.

    ``kind`` is one of ``revert``, ``out_of_gas``, ``nonce_conflict`` or
    ``rejected``.
    """

    def __init__(self, message: str, kind: str = "rejected", tx_hash: str | None = None):
        self.kind = kind
        self.tx_hash = tx_hash
        super().__init__(message)


class ConfirmationTimeout(ChainError):
    """Raised when a submitted transaction is not confirmed in time.

    The transaction may still be mined later; the step's probe decides on the
    next run whether it needs to be resubmitted.
    """

    def __init__(self, tx_hash: str, timeout: float):
        self.tx_hash = tx_hash
        self.timeout = timeout
        super().__init__(f"Transaction {tx_hash} not confirmed within {timeout:.0f}s")
