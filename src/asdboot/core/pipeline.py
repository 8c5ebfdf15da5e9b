"""Pipeline - executes a DAG of steps against the chain.

For each step, in dependency order:
1. Skip it if any dependency did not complete
2. Resolve its contracts through the artifact registry
3. Run its idempotency probe; completed without transactions if already applied
4. Otherwise submit its transactions and wait for each confirmation

A failing step never aborts the run: independent steps keep going and the
outcome of every step ends up in the report.
"""

import graphlib
import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from datetime import datetime, timezone
from typing import Iterable

from asdboot.core.context import RunContext
from asdboot.core.dag import DAGDefinition, build_dag_structure
from asdboot.core.errors import (
    ConfigurationError,
    ConfirmationTimeout,
    TransactionFailure,
    UnresolvedArtifactError,
)
from asdboot.core.models import (
    ContractHandle,
    FailureReason,
    RunReport,
    StepOutcome,
    StepStatus,
)
from asdboot.observability.logging import get_logger
from asdboot.steps.base import Step

logger = logging.getLogger(__name__)


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class Pipeline:
    """An ordered, dependency-constrained set of steps.

    The definition is validated at construction: duplicate names, dangling
    dependencies and cycles raise before anything touches the chain.
    """

    def __init__(self, name: str, steps: Iterable[Step]):
        self.name = name
        self.steps: dict[str, Step] = {}
        declared = []
        for step in steps:
            declared.append((step.name, step.depends_on))
            self.steps.setdefault(step.name, step)

        self.dag: DAGDefinition = build_dag_structure(declared)

        self._outcomes: dict[str, StepOutcome] = {}
        self._lock = threading.Lock()
        self._cancelled = threading.Event()

    def execution_order(self) -> list[str]:
        return list(self.dag.execution_order)

    def execution_batches(self) -> list[list[str]]:
        return [list(batch) for batch in self.dag.execution_batches]

    def status_of(self, name: str) -> StepStatus:
        with self._lock:
            outcome = self._outcomes.get(name)
            return outcome.status if outcome else StepStatus.PENDING

    def cancel(self):
        """Stop scheduling new steps. Steps already running finish normally.

        Cancelling before ``run`` starts skips every step.
        """
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def run(self, context: RunContext) -> RunReport:
        """Execute all steps.

        Returns:
            RunReport with one outcome per step
        """
        with self._lock:
            self._outcomes = {name: StepOutcome(name=name) for name in self.dag.execution_order}

        report = RunReport(
            run_id=context.run_id,
            pipeline_name=self.name,
            network=context.network_name,
            signer=context.signer,
            started_at=_utcnow(),
        )

        structured = get_logger()
        structured.log_pipeline_start(self.name, context.run_id, context.network_name, context.signer)
        start_time = time.time()

        rank = {name: i for i, name in enumerate(self.dag.execution_order)}
        sorter = graphlib.TopologicalSorter(self.dag.parent_map)
        sorter.prepare()

        ready: list[str] = []
        in_flight: dict[Future, str] = {}

        with ThreadPoolExecutor(max_workers=context.max_workers, thread_name_prefix="asdboot-step") as pool:
            while sorter.is_active():
                ready.extend(sorter.get_ready())
                ready.sort(key=rank.__getitem__)

                while ready and len(in_flight) < context.max_workers:
                    name = ready.pop(0)
                    if self._cancelled.is_set():
                        self._skip(name, context, FailureReason.CANCELLED, "run cancelled before step started")
                        sorter.done(name)
                        continue

                    unmet = [
                        dep for dep in self.dag.parent_map[name]
                        if self.status_of(dep) != StepStatus.COMPLETED
                    ]
                    if unmet:
                        self._skip(
                            name,
                            context,
                            FailureReason.DEPENDENCY_NOT_SATISFIED,
                            f"dependencies not completed: {', '.join(unmet)}",
                        )
                        sorter.done(name)
                        continue

                    in_flight[pool.submit(self._execute_step, name, context)] = name

                if not in_flight:
                    continue

                try:
                    finished, _ = wait(list(in_flight), return_when=FIRST_COMPLETED)
                except KeyboardInterrupt:
                    logger.warning("Interrupted: waiting for %d in-flight step(s)", len(in_flight))
                    print("\n⚠ Interrupted - no new steps will start; waiting for in-flight transactions")
                    self.cancel()
                    continue

                for future in finished:
                    sorter.done(in_flight.pop(future))

        with self._lock:
            report.steps = {name: self._outcomes[name].model_copy() for name in self.dag.execution_order}
        report.completed_at = _utcnow()

        structured.log_pipeline_complete(self.name, context.run_id, time.time() - start_time, report.status)
        return report

    def _execute_step(self, name: str, context: RunContext) -> None:
        """Execute a single step and record its outcome. Never raises."""
        step = self.steps[name]
        structured = get_logger()
        structured.log_step_start(self.name, name, context.run_id)
        print(f"▶ {name}")

        start_time = time.time()
        try:
            handles = self._resolve_handles(step, context)

            if step.is_applied(handles, context):
                self._update(name, status=StepStatus.COMPLETED, already_applied=True)
                self._finish_completed(name, context, start_time)
                return

            self._update(name, status=StepStatus.RUNNING)
            transactions = step.apply(handles, context)
            for tx in transactions:
                self._submit(name, tx, context)

            self._update(name, status=StepStatus.COMPLETED)
            self._finish_completed(name, context, start_time)

        except UnresolvedArtifactError as e:
            self._fail(name, context, FailureReason.UNRESOLVED_DEPENDENCY, e, start_time)
        except ConfirmationTimeout as e:
            self._fail(name, context, FailureReason.UNCONFIRMED, e, start_time)
        except TransactionFailure as e:
            self._fail(name, context, FailureReason.TRANSACTION_FAILED, e, start_time)
        except ConfigurationError as e:
            self._fail(name, context, FailureReason.CONFIGURATION, e, start_time)
        except Exception as e:
            logger.exception("Step %s raised an unexpected error", name)
            self._fail(name, context, FailureReason.STEP_ERROR, e, start_time)

    def _resolve_handles(self, step: Step, context: RunContext) -> dict[str, ContractHandle]:
        return {contract: context.registry.resolve(contract) for contract in step.contracts}

    def _submit(self, name: str, tx, context: RunContext) -> None:
        structured = get_logger()

        tx_hash = context.gateway.submit(tx, context.signer)
        with self._lock:
            outcome = self._outcomes[name]
            outcome.transactions += 1
            outcome.tx_hashes.append(tx_hash)
        structured.log_transaction_submitted(name, context.run_id, tx_hash, tx.label())
        print(f"  → {tx.label()} ({tx_hash})")

        receipt = context.gateway.wait_for_confirmation(tx_hash, context.confirmations, context.tx_timeout)
        if not receipt.succeeded:
            raise TransactionFailure(
                f"{tx.label()} reverted in block {receipt.block_number}",
                kind="revert",
                tx_hash=tx_hash,
            )
        structured.log_transaction_confirmed(
            name, context.run_id, tx_hash, receipt.block_number, receipt.gas_used
        )

    def _update(self, name: str, **fields) -> None:
        with self._lock:
            outcome = self._outcomes[name]
            for key, value in fields.items():
                setattr(outcome, key, value)

    def _finish_completed(self, name: str, context: RunContext, start_time: float) -> None:
        duration = time.time() - start_time
        self._update(name, duration_seconds=duration)
        with self._lock:
            outcome = self._outcomes[name].model_copy()

        get_logger().log_step_complete(
            self.name, name, context.run_id, duration, outcome.transactions, outcome.already_applied
        )
        if outcome.already_applied:
            print(f"  ✓ {name} already applied")
        else:
            print(f"  ✓ {name} completed in {duration:.2f}s ({outcome.transactions} tx)")

    def _fail(
        self,
        name: str,
        context: RunContext,
        reason: FailureReason,
        error: Exception,
        start_time: float,
    ) -> None:
        duration = time.time() - start_time
        self._update(
            name,
            status=StepStatus.FAILED,
            reason=reason,
            error=str(error),
            duration_seconds=duration,
        )
        get_logger().log_step_failure(self.name, name, context.run_id, reason.value, str(error), duration)
        print(f"  ✗ {name} failed ({reason.value}): {error}")

    def _skip(self, name: str, context: RunContext, reason: FailureReason, message: str) -> None:
        self._update(name, status=StepStatus.SKIPPED, reason=reason, error=message)
        get_logger().log_step_skipped(self.name, name, context.run_id, reason.value)
        print(f"– {name} skipped: {message}")
