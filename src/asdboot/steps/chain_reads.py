"""Chain read helpers shared by the bootstrap steps."""

from typing import Any, NamedTuple

from asdboot.core.models import ZERO_ADDRESS, ContractHandle

# keccak256("eip1967.proxy.implementation") - 1
EIP1967_IMPLEMENTATION_SLOT = 0x360894A13BA1A3210667C828492DB98DCA3E2076CC3735A920A3CA505D382BBC

# ReserveConfiguration bit positions
BORROWING_ENABLED_BIT = 58
STABLE_BORROWING_ENABLED_BIT = 59


class ReserveData(NamedTuple):
    configuration: int
    a_token: str
    stable_debt_token: str
    variable_debt_token: str

    @property
    def initialized(self) -> bool:
        return not same_address(self.a_token, ZERO_ADDRESS)

    def flag(self, bit: int) -> bool:
        return bool((self.configuration >> bit) & 1)


def same_address(a: str | None, b: str | None) -> bool:
    if a is None or b is None:
        return False
    return a.lower() == b.lower()


def read_reserve(context: Any, pool: ContractHandle, asset: str) -> ReserveData:
    """Read ``LendingPool.getReserveData(asset)``.

    The configuration field is a one-member struct (``data``), decoded as a
    tuple by the gateway.
    """
    data = context.read(pool, "getReserveData", asset)
    configuration = data[0]
    if isinstance(configuration, (tuple, list)):
        configuration = configuration[0]
    return ReserveData(
        configuration=int(configuration),
        a_token=data[7],
        stable_debt_token=data[8],
        variable_debt_token=data[9],
    )


def proxy_implementation(context: Any, proxy_address: str) -> str:
    """Implementation address stored in a proxy's EIP-1967 slot."""
    raw = context.gateway.get_storage_at(proxy_address, EIP1967_IMPLEMENTATION_SLOT)
    return "0x" + bytes(raw)[-20:].hex()
