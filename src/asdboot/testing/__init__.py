"""Testing utilities for asdboot."""

from asdboot.testing.fixtures import (
    FakeLendingProtocol,
    InMemoryChain,
    MockArtifactRegistry,
    address_word,
    make_address,
)

__all__ = [
    "FakeLendingProtocol",
    "InMemoryChain",
    "MockArtifactRegistry",
    "address_word",
    "make_address",
]
