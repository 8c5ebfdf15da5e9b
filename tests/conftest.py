"""Shared fixtures: in-memory chain, registry and a fake lending protocol."""

import pytest

from asdboot.config.schema import ForkConfig, NetworkConfig
from asdboot.core.context import RunContext
from asdboot.observability.logging import disable_structured_logging
from asdboot.testing import FakeLendingProtocol, InMemoryChain, MockArtifactRegistry
from asdboot.testing.fixtures import HARDHAT_ACCOUNT_0


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep user-level config files and env overrides out of tests."""
    monkeypatch.delenv("ASDBOOT_CONFIG", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    yield
    disable_structured_logging()


@pytest.fixture
def chain():
    return InMemoryChain()


@pytest.fixture
def registry():
    return MockArtifactRegistry()


@pytest.fixture
def protocol(chain, registry):
    return FakeLendingProtocol(chain, registry)


@pytest.fixture
def network():
    return NetworkConfig(
        url="http://127.0.0.1:8545",
        chain_id=31337,
        forking=ForkConfig(url="https://eth-mainnet.example/v2/key", block_number=14781440),
    )


@pytest.fixture
def make_context(chain, registry, network):
    def factory(**overrides):
        params = dict(
            gateway=chain,
            registry=registry,
            network_name="hardhat",
            network=network,
            signer=HARDHAT_ACCOUNT_0,
            run_id="run_test",
        )
        params.update(overrides)
        return RunContext(**params)

    return factory
