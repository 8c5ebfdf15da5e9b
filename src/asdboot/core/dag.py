"""DAG structure - validation and deterministic ordering of step dependencies.

Uses graphlib.TopologicalSorter for ordering and cycle detection. Steps that
become ready together are ordered by declaration, so the same definition
always yields the same order.
"""

import graphlib
from typing import Iterable

from pydantic import BaseModel, Field

from asdboot.core.errors import CyclicDependencyError, PipelineDefinitionError


class DAGDefinition(BaseModel):
    """DAG structure and execution order."""

    parent_map: dict[str, list[str]] = Field(..., description="step_name -> [parent_step_names]")
    execution_order: list[str] = Field(..., description="Topologically sorted step names")
    execution_batches: list[list[str]] = Field(
        ..., description="Steps grouped by depth; steps in one batch have no edges between them"
    )


def build_dag_structure(declared: Iterable[tuple[str, Iterable[str]]]) -> DAGDefinition:
    """Build the DAG structure from (step_name, depends_on) pairs in declaration order.

    Raises:
        PipelineDefinitionError: On duplicate names or dependencies outside the pipeline
        CyclicDependencyError: If the dependencies contain a cycle
    """
    parent_map: dict[str, list[str]] = {}
    for name, depends_on in declared:
        if name in parent_map:
            raise PipelineDefinitionError(f"Duplicate step name: '{name}'")
        parent_map[name] = list(depends_on)

    for name, parents in parent_map.items():
        unknown = [parent for parent in parents if parent not in parent_map]
        if unknown:
            raise PipelineDefinitionError(
                f"Step '{name}' depends on unknown step(s): {unknown}. "
                f"Available steps: {list(parent_map.keys())}"
            )

    declaration_index = {name: i for i, name in enumerate(parent_map)}

    sorter = graphlib.TopologicalSorter(parent_map)
    try:
        sorter.prepare()
    except graphlib.CycleError as e:
        raise CyclicDependencyError(list(e.args[1])) from e

    execution_batches = []
    while sorter.is_active():
        batch = sorted(sorter.get_ready(), key=declaration_index.__getitem__)
        execution_batches.append(batch)
        sorter.done(*batch)

    return DAGDefinition(
        parent_map=parent_map,
        execution_order=[name for batch in execution_batches for name in batch],
        execution_batches=execution_batches,
    )
