"""Test fixtures for asdboot.

Provides in-memory collaborators for testing without a node:
- InMemoryChain: Chain gateway with scripted reads, effects and failures
- MockArtifactRegistry: Artifact registry backed by a dict
- FakeLendingProtocol: The lending-protocol contracts the bootstrap steps talk to
"""

import threading
from typing import Any, Callable, Optional

from asdboot.config.schema import AsdConfig
from asdboot.contracts.artifacts import ArtifactRegistry
from asdboot.contracts.gateway import ChainGateway
from asdboot.core.errors import ConfirmationTimeout, TransactionFailure, UnresolvedArtifactError
from asdboot.core.models import (
    ZERO_ADDRESS,
    ContractHandle,
    ReadRequest,
    TransactionRequest,
    TxReceipt,
)
from asdboot.steps.chain_reads import (
    BORROWING_ENABLED_BIT,
    EIP1967_IMPLEMENTATION_SLOT,
    STABLE_BORROWING_ENABLED_BIT,
)

HARDHAT_ACCOUNT_0 = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


def make_address(n: int) -> str:
    """Deterministic fake address."""
    return "0x" + f"{n:040x}"


def address_word(address: str) -> bytes:
    """An address left-padded to a 32-byte storage word."""
    return bytes(12) + bytes.fromhex(address.removeprefix("0x"))


class InMemoryChain(ChainGateway):
    """Chain gateway that keeps contract behavior in Python callables.

    Reads are registered per (address, function); transactions run an effect
    callable when "mined". Individual calls can be scripted to be rejected,
    to revert, or to stay unconfirmed.
    """

    def __init__(
        self,
        chain_id: int = 31337,
        block_number: int = 14781441,
        accounts: Optional[list[str]] = None,
    ):
        self._chain_id = chain_id
        self._block = block_number
        self._accounts = accounts if accounts is not None else [HARDHAT_ACCOUNT_0]

        self.reads: dict[tuple[str, str], Any] = {}
        self.effects: dict[tuple[str, str], Callable] = {}
        self.storage: dict[tuple[str, int], bytes] = {}
        self.failures: dict[tuple[str, str], str] = {}
        self.reverts: set[tuple[str, str]] = set()
        self.unconfirmed: set[tuple[str, str]] = set()

        self.submitted: list[tuple[str, str, tuple, str]] = []
        self.impersonated: list[str] = []
        self.configured: Optional[dict] = None
        self.call_count = 0

        self._receipts: dict[str, TxReceipt] = {}
        self._pending: dict[str, tuple[Callable | None, tuple, str]] = {}
        self._lock = threading.Lock()

    # -- scripting -----------------------------------------------------------

    def set_read(self, address: str, function: str, value: Any) -> None:
        """Register a read result (a value or a callable taking the call args)."""
        self.reads[(address.lower(), function)] = value

    def on_transaction(self, address: str, function: str, effect: Callable) -> None:
        """Register the effect of a transaction: effect(*args, sender=...)."""
        self.effects[(address.lower(), function)] = effect

    def set_storage(self, address: str, slot: int, value: bytes) -> None:
        self.storage[(address.lower(), slot)] = value

    def fail(self, address: str, function: str, kind: str = "revert") -> None:
        """Make submission of this call raise TransactionFailure."""
        self.failures[(address.lower(), function)] = kind

    def revert(self, address: str, function: str) -> None:
        """Make this call get mined with status 0."""
        self.reverts.add((address.lower(), function))

    def leave_unconfirmed(self, address: str, function: str) -> None:
        """Make this call never confirm; its effect waits for mine_pending()."""
        self.unconfirmed.add((address.lower(), function))

    def heal(self) -> None:
        """Remove all scripted failures."""
        self.failures.clear()
        self.reverts.clear()
        self.unconfirmed.clear()

    def mine_pending(self) -> None:
        """Apply the effects of transactions that were left unconfirmed."""
        with self._lock:
            pending, self._pending = self._pending, {}
        for tx_hash, (effect, args, sender) in pending.items():
            if effect is not None:
                effect(*args, sender=sender)
            self._receipts[tx_hash] = TxReceipt(tx_hash=tx_hash, block_number=self._block, status=1)

    def submitted_functions(self) -> list[str]:
        return [function for _, function, _, _ in self.submitted]

    # -- ChainGateway --------------------------------------------------------

    def configure(self, config: dict) -> None:
        self.configured = config

    def prepare_signer(self, address: str) -> None:
        self.impersonated.append(address)

    def accounts(self) -> list[str]:
        return list(self._accounts)

    def chain_id(self) -> int:
        return self._chain_id

    def block_number(self) -> int:
        return self._block

    def submit(self, tx: TransactionRequest, sender: str) -> str:
        key = (tx.contract.address.lower(), tx.function)
        with self._lock:
            self.submitted.append((tx.contract.address, tx.function, tx.args, sender))
            if key in self.failures:
                raise TransactionFailure(f"{tx.label()} rejected", kind=self.failures[key])

            self._block += 1
            tx_hash = "0x" + f"{len(self.submitted):064x}"
            effect = self.effects.get(key)

            if key in self.unconfirmed:
                self._pending[tx_hash] = (effect, tx.args, sender)
                return tx_hash

            if key in self.reverts:
                self._receipts[tx_hash] = TxReceipt(tx_hash=tx_hash, block_number=self._block, status=0)
                return tx_hash

        if effect is not None:
            effect(*tx.args, sender=sender)
        self._receipts[tx_hash] = TxReceipt(tx_hash=tx_hash, block_number=self._block, status=1, gas_used=21000)
        return tx_hash

    def wait_for_confirmation(self, tx_hash: str, confirmations: int, timeout: float) -> TxReceipt:
        if tx_hash in self._pending:
            raise ConfirmationTimeout(tx_hash, timeout)
        return self._receipts[tx_hash]

    def call(self, request: ReadRequest) -> Any:
        self.call_count += 1
        key = (request.contract.address.lower(), request.function)
        if key not in self.reads:
            raise KeyError(f"No read registered for {request.contract.name}.{request.function} at {key[0]}")
        value = self.reads[key]
        return value(*request.args) if callable(value) else value

    def get_storage_at(self, address: str, slot: int) -> bytes:
        return self.storage.get((address.lower(), slot), bytes(32))


class MockArtifactRegistry(ArtifactRegistry):
    """Artifact registry backed by a dict of handles."""

    def __init__(self, handles: Optional[dict[str, ContractHandle]] = None):
        self.handles: dict[str, ContractHandle] = dict(handles or {})
        self.resolved: list[str] = []
        self.configured: Optional[dict] = None

    def add(self, name: str, address: str, abi: Optional[list[dict]] = None) -> ContractHandle:
        handle = ContractHandle(name=name, address=address, abi=abi or [])
        self.handles[name] = handle
        return handle

    def remove(self, name: str) -> None:
        self.handles.pop(name, None)

    def configure(self, config: dict) -> None:
        self.configured = config

    def resolve(self, name: str) -> ContractHandle:
        self.resolved.append(name)
        if name not in self.handles:
            raise UnresolvedArtifactError(name, ["mock registry"])
        return self.handles[name]


class FakeLendingProtocol:
    """The lending-protocol contracts touched by the ASD bootstrap, in memory.

    Registers every contract named in ``AsdConfig`` with the registry and
    wires their reads and transaction effects on the chain. The state starts
    as a fresh fork: no ASD reserve, no oracle source, old implementations.
    """

    def __init__(self, chain: InMemoryChain, registry: MockArtifactRegistry, asd: Optional[AsdConfig] = None):
        self.chain = chain
        self.registry = registry
        self.asd = asd or AsdConfig()

        names = [
            self.asd.lending_pool,
            self.asd.configurator,
            self.asd.addresses_provider,
            self.asd.aave_oracle,
            self.asd.stk_aave,
            self.asd.token,
            self.asd.a_token_impl,
            self.asd.stable_debt_token_impl,
            self.asd.variable_debt_token_impl,
            self.asd.interest_rate_strategy,
            self.asd.oracle_source,
            self.asd.pool_impl,
            self.asd.stk_aave_impl,
        ]
        self.addresses = {name: make_address(0x1000 + i) for i, name in enumerate(names)}
        for name, address in self.addresses.items():
            registry.add(name, address)

        self.a_token_proxy = make_address(0x2001)
        self.stable_debt_proxy = make_address(0x2002)
        self.variable_debt_proxy = make_address(0x2003)
        self.old_pool_impl = make_address(0x3001)
        self.old_stk_aave_impl = make_address(0x3002)

        self.reserve_configuration = 0
        self.reserve_a_token = ZERO_ADDRESS
        self.oracle_sources: dict[str, str] = {}
        self.entities: dict[str, tuple[str, int]] = {}
        self.a_token_debt_token = ZERO_ADDRESS
        self.debt_token_a_token = ZERO_ADDRESS

        chain.set_storage(self.pool, EIP1967_IMPLEMENTATION_SLOT, address_word(self.old_pool_impl))
        chain.set_storage(self.address(self.asd.stk_aave), EIP1967_IMPLEMENTATION_SLOT, address_word(self.old_stk_aave_impl))
        self._wire()

    def address(self, name: str) -> str:
        return self.addresses[name]

    @property
    def pool(self) -> str:
        return self.address(self.asd.lending_pool)

    @property
    def asset(self) -> str:
        return self.address(self.asd.token)

    def reserve_data(self, asset: str) -> tuple:
        initialized = asset.lower() == self.asset.lower() and self.reserve_a_token != ZERO_ADDRESS
        tokens = (
            (self.a_token_proxy, self.stable_debt_proxy, self.variable_debt_proxy)
            if initialized
            else (ZERO_ADDRESS, ZERO_ADDRESS, ZERO_ADDRESS)
        )
        configuration = self.reserve_configuration if initialized else 0
        return ((configuration,), 10**27, 10**27, 0, 0, 0, 0, *tokens, ZERO_ADDRESS, 0)

    def borrowing_enabled(self) -> bool:
        return bool((self.reserve_configuration >> BORROWING_ENABLED_BIT) & 1)

    def implementation(self, proxy: str) -> str:
        return "0x" + self.chain.get_storage_at(proxy, EIP1967_IMPLEMENTATION_SLOT)[-20:].hex()

    def _wire(self):
        chain = self.chain
        asd = self.asd
        configurator = self.address(asd.configurator)
        oracle = self.address(asd.aave_oracle)
        provider = self.address(asd.addresses_provider)
        token = self.address(asd.token)
        stk_aave = self.address(asd.stk_aave)

        chain.set_read(self.pool, "getReserveData", self.reserve_data)

        def batch_init_reserve(inputs, sender=None):
            for init_input in inputs:
                if init_input[5].lower() == self.asset.lower():
                    self.reserve_a_token = self.a_token_proxy
                    self.reserve_configuration |= 1 << 56  # active

        chain.on_transaction(configurator, "batchInitReserve", batch_init_reserve)

        def enable_borrowing(asset, stable_enabled, sender=None):
            self.reserve_configuration |= 1 << BORROWING_ENABLED_BIT
            if stable_enabled:
                self.reserve_configuration |= 1 << STABLE_BORROWING_ENABLED_BIT

        chain.on_transaction(configurator, "enableBorrowingOnReserve", enable_borrowing)

        chain.set_read(oracle, "getSourceOfAsset", lambda asset: self.oracle_sources.get(asset.lower(), ZERO_ADDRESS))

        def set_asset_sources(assets, sources, sender=None):
            for asset, source in zip(assets, sources):
                self.oracle_sources[asset.lower()] = source

        chain.on_transaction(oracle, "setAssetSources", set_asset_sources)

        chain.set_read(provider, "getLendingPool", self.pool)
        chain.on_transaction(
            provider,
            "setLendingPoolImpl",
            lambda impl, sender=None: chain.set_storage(self.pool, EIP1967_IMPLEMENTATION_SLOT, address_word(impl)),
        )

        chain.set_read(token, "isEntity", lambda entity: entity.lower() in self.entities)

        def add_entity(entity, label, mint_limit, sender=None):
            self.entities[entity.lower()] = (label, mint_limit)

        chain.on_transaction(token, "addEntity", add_entity)

        chain.set_read(self.a_token_proxy, "getVariableDebtToken", lambda: self.a_token_debt_token)
        chain.set_read(self.variable_debt_proxy, "getAToken", lambda: self.debt_token_a_token)

        def set_variable_debt_token(debt_token, sender=None):
            self.a_token_debt_token = debt_token

        def set_a_token(a_token, sender=None):
            self.debt_token_a_token = a_token

        chain.on_transaction(self.a_token_proxy, "setVariableDebtToken", set_variable_debt_token)
        chain.on_transaction(self.variable_debt_proxy, "setAToken", set_a_token)

        chain.on_transaction(
            stk_aave,
            "upgradeToAndCall",
            lambda impl, data, sender=None: chain.set_storage(stk_aave, EIP1967_IMPLEMENTATION_SLOT, address_word(impl)),
        )
