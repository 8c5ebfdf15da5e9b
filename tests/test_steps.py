"""Tests for the ASD bootstrap steps and the named pipelines."""

import pytest

from asdboot.config.schema import AsdConfig
from asdboot.core.catalog import FULL_SETUP, PIPELINE_DESCRIPTIONS, PipelineBuilder
from asdboot.core.errors import ConfigurationError, PipelineNotFoundError
from asdboot.core.models import FailureReason, StepStatus
from asdboot.steps.add_entity import AddEntityStep
from asdboot.steps.chain_reads import (
    STABLE_BORROWING_ENABLED_BIT,
    proxy_implementation,
    read_reserve,
    same_address,
)
from asdboot.steps.initialize_reserve import InitializeReserveStep
from asdboot.testing import FakeLendingProtocol, InMemoryChain


def handles_for(step, registry):
    return {name: registry.resolve(name) for name in step.contracts}


class TestCatalog:
    def test_every_named_pipeline_builds(self):
        builder = PipelineBuilder()
        for name in PIPELINE_DESCRIPTIONS:
            pipeline = builder.build(name)
            assert name == FULL_SETUP or name in pipeline.steps

    def test_full_setup_contains_every_step(self):
        pipeline = PipelineBuilder().build(FULL_SETUP)
        assert set(pipeline.steps) == set(PIPELINE_DESCRIPTIONS) - {FULL_SETUP}
        assert pipeline.execution_order()[0] == "set-DRE"

    def test_named_pipeline_pulls_in_transitive_dependencies(self):
        pipeline = PipelineBuilder().build("enable-asd-borrowing")
        assert set(pipeline.steps) == {
            "set-DRE",
            "initialize-asd-reserve",
            "set-asd-oracle",
            "upgrade-pool",
            "enable-asd-borrowing",
        }
        assert pipeline.execution_order()[-1] == "enable-asd-borrowing"

    def test_verify_network_pipeline_is_alone(self):
        assert list(PipelineBuilder().build("set-DRE").steps) == ["set-DRE"]

    def test_unknown_pipeline(self):
        with pytest.raises(PipelineNotFoundError) as exc_info:
            PipelineBuilder().build("deploy-everything")
        assert FULL_SETUP in exc_info.value.available

    def test_enable_borrowing_waits_for_oracle_and_upgraded_pool(self):
        dag = PipelineBuilder().build(FULL_SETUP).dag
        assert set(dag.parent_map["enable-asd-borrowing"]) == {
            "initialize-asd-reserve",
            "set-asd-oracle",
            "upgrade-pool",
        }


class TestFullSetup:
    def test_fresh_fork_gets_fully_configured(self, protocol, chain, make_context):
        report = PipelineBuilder().build(FULL_SETUP).run(make_context())

        assert report.succeeded, report.to_dict()
        assert chain.submitted_functions() == [
            "batchInitReserve",
            "setAssetSources",
            "setLendingPoolImpl",
            "upgradeToAndCall",
            "enableBorrowingOnReserve",
            "addEntity",
            "setVariableDebtToken",
            "setAToken",
        ]
        asd = protocol.asd
        assert protocol.borrowing_enabled()
        assert protocol.oracle_sources[protocol.asset.lower()] == protocol.address(asd.oracle_source)
        assert protocol.entities[protocol.a_token_proxy.lower()] == (asd.entity_label, asd.entity_mint_limit)
        assert protocol.a_token_debt_token == protocol.variable_debt_proxy
        assert protocol.debt_token_a_token == protocol.a_token_proxy
        assert same_address(protocol.implementation(protocol.pool), protocol.address(asd.pool_impl))
        assert same_address(
            protocol.implementation(protocol.address(asd.stk_aave)),
            protocol.address(asd.stk_aave_impl),
        )
        assert report.steps["set-DRE"].transactions == 0

    def test_second_run_is_a_no_op(self, protocol, chain, make_context):
        PipelineBuilder().build(FULL_SETUP).run(make_context())
        submitted = list(chain.submitted)

        report = PipelineBuilder().build(FULL_SETUP).run(make_context())

        assert report.succeeded
        assert chain.submitted == submitted
        assert all(outcome.already_applied for outcome in report.steps.values())

    def test_concurrent_run_reaches_same_state(self, protocol, chain, make_context):
        report = PipelineBuilder().build(FULL_SETUP).run(make_context(max_workers=4))

        assert report.succeeded
        assert sorted(chain.submitted_functions()) == sorted(
            [
                "batchInitReserve",
                "setAssetSources",
                "setLendingPoolImpl",
                "enableBorrowingOnReserve",
                "addEntity",
                "setVariableDebtToken",
                "setAToken",
                "upgradeToAndCall",
            ]
        )

    def test_failed_reserve_init_skips_reserve_dependents(self, protocol, chain, make_context):
        chain.fail(protocol.address(protocol.asd.configurator), "batchInitReserve")

        report = PipelineBuilder().build(FULL_SETUP).run(make_context())

        statuses = report.statuses()
        assert statuses["initialize-asd-reserve"] == StepStatus.FAILED
        for name in ("enable-asd-borrowing", "add-asd-as-entity", "set-asd-addresses"):
            assert statuses[name] == StepStatus.SKIPPED
        for name in ("set-asd-oracle", "upgrade-pool", "upgrade-stkAave"):
            assert statuses[name] == StepStatus.COMPLETED

    def test_missing_artifact_fails_only_its_step(self, protocol, registry, make_context):
        registry.remove(protocol.asd.stk_aave_impl)

        report = PipelineBuilder().build(FULL_SETUP).run(make_context())

        assert report.failed_steps == ["upgrade-stkAave"]
        assert report.steps["upgrade-stkAave"].reason == FailureReason.UNRESOLVED_DEPENDENCY
        assert report.skipped_steps == []


class TestVerifyNetwork:
    def test_wrong_chain_id_blocks_everything(self, registry, network, make_context):
        chain = InMemoryChain(chain_id=1)
        FakeLendingProtocol(chain, registry)

        report = PipelineBuilder().build(FULL_SETUP).run(make_context(gateway=chain))

        assert report.steps["set-DRE"].status == StepStatus.FAILED
        assert report.steps["set-DRE"].reason == FailureReason.CONFIGURATION
        assert "chain id 31337" in report.steps["set-DRE"].error
        assert set(report.skipped_steps) == set(report.steps) - {"set-DRE"}
        assert chain.submitted == []

    def test_block_below_fork_pin(self, registry, make_context):
        chain = InMemoryChain(block_number=14781000)

        report = PipelineBuilder().build("set-DRE").run(make_context(gateway=chain))

        assert report.steps["set-DRE"].reason == FailureReason.CONFIGURATION
        assert "fork pin" in report.steps["set-DRE"].error

    def test_matching_node_completes_without_transactions(self, chain, make_context):
        report = PipelineBuilder().build("set-DRE").run(make_context())

        assert report.succeeded
        assert report.steps["set-DRE"].already_applied


class TestReserveSteps:
    def test_initialize_reserve_input(self, protocol, chain, registry, make_context):
        step = InitializeReserveStep(protocol.asd)

        transactions = step.apply(handles_for(step, registry), make_context())

        assert len(transactions) == 1
        (inputs,) = transactions[0].args
        init_input = inputs[0]
        assert init_input[0] == protocol.address(protocol.asd.a_token_impl)
        assert init_input[3] == protocol.asd.decimals
        assert init_input[5] == protocol.asset
        assert init_input[9] == protocol.asd.a_token_name
        assert transactions[0].function == "batchInitReserve"

    def test_stable_borrowing_flag_is_probed_when_enabled(self, chain, registry, make_context):
        asd = AsdConfig(stable_borrow_rate_enabled=True)
        protocol = FakeLendingProtocol(chain, registry, asd)

        report = PipelineBuilder(asd).build("enable-asd-borrowing").run(make_context())

        assert report.succeeded
        assert (protocol.reserve_configuration >> STABLE_BORROWING_ENABLED_BIT) & 1
        assert "enableBorrowingOnReserve" in chain.submitted_functions()

    def test_add_entity_requires_initialized_reserve(self, protocol, registry, make_context):
        step = AddEntityStep(protocol.asd)

        with pytest.raises(ConfigurationError, match="not initialized"):
            step.is_applied(handles_for(step, registry), make_context())

    def test_set_addresses_submits_only_missing_link(self, protocol, chain, make_context):
        PipelineBuilder().build("initialize-asd-reserve").run(make_context())
        protocol.a_token_debt_token = protocol.variable_debt_proxy
        before = len(chain.submitted)

        report = PipelineBuilder().build("set-asd-addresses").run(make_context())

        assert report.succeeded
        assert chain.submitted_functions()[before:] == ["setAToken"]
        assert report.steps["set-asd-addresses"].transactions == 1
        assert report.steps["initialize-asd-reserve"].already_applied

    def test_read_reserve_decodes_configuration_struct(self, protocol, registry, make_context):
        protocol.reserve_a_token = protocol.a_token_proxy
        protocol.reserve_configuration = 1 << 58

        reserve = read_reserve(make_context(), registry.resolve(protocol.asd.lending_pool), protocol.asset)

        assert reserve.initialized
        assert reserve.flag(58)
        assert reserve.variable_debt_token == protocol.variable_debt_proxy

    def test_proxy_implementation_reads_slot(self, protocol, make_context):
        assert proxy_implementation(make_context(), protocol.pool) == protocol.old_pool_impl
