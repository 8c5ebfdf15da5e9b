"""Base step class - all bootstrap steps inherit from this."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Optional

from asdboot.core.models import ContractHandle, TransactionRequest


class Step(ABC):
    """Base class for all pipeline steps.

    A step is one logical configuration change. Each step:
    - Declares the logical contract names it needs (``contracts``)
    - Probes chain state to find out whether its effect is already in place
    - Returns the transactions that put the effect in place

    ``is_applied`` must only read. It returns True exactly when everything
    ``apply`` would do is already present on chain.
    """

    name: str = ""
    depends_on: tuple[str, ...] = ()
    contracts: tuple[str, ...] = ()

    @abstractmethod
    def is_applied(self, handles: dict[str, ContractHandle], context: Any) -> bool:
        """Return True if the step's effect is already on chain.

        Args:
            handles: Logical name -> resolved contract handle
            context: RunContext
        """
        ...

    @abstractmethod
    def apply(self, handles: dict[str, ContractHandle], context: Any) -> list[TransactionRequest]:
        """Return the transactions to submit, in order.

        Args:
            handles: Logical name -> resolved contract handle
            context: RunContext
        """
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class FunctionStep(Step):
    """Step built from plain callables.

    Example:
        >>> FunctionStep(
        ...     "set-oracle",
        ...     apply=lambda handles, ctx: [TransactionRequest(...)],
        ...     is_applied=lambda handles, ctx: False,
        ...     depends_on=["init-reserve"],
        ... )
    """

    def __init__(
        self,
        name: str,
        apply: Callable[[dict[str, ContractHandle], Any], Iterable[TransactionRequest]],
        is_applied: Optional[Callable[[dict[str, ContractHandle], Any], bool]] = None,
        depends_on: Iterable[str] = (),
        contracts: Iterable[str] = (),
    ):
        self.name = name
        self.depends_on = tuple(depends_on)
        self.contracts = tuple(contracts)
        self._apply = apply
        self._is_applied = is_applied

    def is_applied(self, handles: dict[str, ContractHandle], context: Any) -> bool:
        if self._is_applied is None:
            return False
        return bool(self._is_applied(handles, context))

    def apply(self, handles: dict[str, ContractHandle], context: Any) -> list[TransactionRequest]:
        return list(self._apply(handles, context))
