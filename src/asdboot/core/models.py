"""Core models - contract handles, transaction requests and step outcomes.

These are the values exchanged between the pipeline, the steps and the
gateway/registry plugins. Contract handles and requests are immutable for the
lifetime of one run.
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class StepStatus(str, Enum):
    """Lifecycle state of a step within one run."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def terminal(self) -> bool:
        return self in (StepStatus.COMPLETED, StepStatus.FAILED, StepStatus.SKIPPED)


class FailureReason(str, Enum):
    """Why a step did not complete."""

    UNRESOLVED_DEPENDENCY = "unresolved_dependency"
    TRANSACTION_FAILED = "transaction_failed"
    UNCONFIRMED = "unconfirmed"
    CONFIGURATION = "configuration"
    STEP_ERROR = "step_error"
    DEPENDENCY_NOT_SATISFIED = "dependency_not_satisfied"
    CANCELLED = "cancelled"


class ContractHandle(BaseModel):
    """A deployed contract: where it lives and how to talk to it."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Logical contract name (e.g., AaveOracle)")
    address: str = Field(..., description="Checksummed or lowercase 0x address")
    abi: list[dict[str, Any]] = Field(default_factory=list, description="Contract ABI entries")

    def at(self, address: str) -> "ContractHandle":
        """Return the same interface bound to another address."""
        return self.model_copy(update={"address": address})

    def has_function(self, function: str) -> bool:
        return any(
            entry.get("type") == "function" and entry.get("name") == function
            for entry in self.abi
        )


class TransactionRequest(BaseModel):
    """A state-changing call to submit through the chain gateway."""

    model_config = ConfigDict(frozen=True)

    contract: ContractHandle
    function: str
    args: tuple[Any, ...] = ()
    value: int = Field(0, description="Wei sent with the call")
    description: Optional[str] = Field(None, description="Human-readable summary for logs")

    def label(self) -> str:
        return self.description or f"{self.contract.name}.{self.function}"


class ReadRequest(BaseModel):
    """A read-only call (eth_call)."""

    model_config = ConfigDict(frozen=True)

    contract: ContractHandle
    function: str
    args: tuple[Any, ...] = ()
    block: Optional[int] = Field(None, description="Block to read at (default: latest)")


class TxReceipt(BaseModel):
    """Confirmed transaction receipt."""

    tx_hash: str
    block_number: int
    status: int = Field(..., description="1 = success, 0 = reverted")
    gas_used: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class StepOutcome(BaseModel):
    """Outcome of a single step in a run."""

    name: str
    status: StepStatus = StepStatus.PENDING
    reason: Optional[FailureReason] = None
    error: Optional[str] = None
    transactions: int = 0
    tx_hashes: list[str] = Field(default_factory=list)
    already_applied: bool = False
    duration_seconds: float = 0.0


class RunReport(BaseModel):
    """Results of a pipeline run."""

    run_id: str
    pipeline_name: str
    network: str
    signer: str
    started_at: str
    completed_at: Optional[str] = None
    steps: dict[str, StepOutcome] = Field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        """True iff every step completed (already-applied steps count as completed)."""
        return all(outcome.status == StepStatus.COMPLETED for outcome in self.steps.values())

    @property
    def status(self) -> str:
        return "success" if self.succeeded else "failed"

    @property
    def failed_steps(self) -> list[str]:
        return [name for name, outcome in self.steps.items() if outcome.status == StepStatus.FAILED]

    @property
    def skipped_steps(self) -> list[str]:
        return [name for name, outcome in self.steps.items() if outcome.status == StepStatus.SKIPPED]

    @property
    def transactions(self) -> int:
        return sum(outcome.transactions for outcome in self.steps.values())

    def statuses(self) -> dict[str, StepStatus]:
        return {name: outcome.status for name, outcome in self.steps.items()}

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        data["status"] = self.status
        return data
