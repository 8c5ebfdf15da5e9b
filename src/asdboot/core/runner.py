"""Runner - resolves configuration and drives a named pipeline to completion.

The runner:
1. Builds the requested pipeline (unknown name fails immediately)
2. Resolves the network (unknown network fails before touching the chain)
3. Instantiates and configures the chain gateway and artifact registry
4. Resolves the signer account
5. Runs the pipeline and returns its report
"""

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from asdboot.config.project import ProjectConfigLoader
from asdboot.config.schema import NetworkConfig, ProjectConfig
from asdboot.contracts.artifacts import ArtifactRegistry
from asdboot.contracts.gateway import ChainGateway
from asdboot.core.catalog import PipelineBuilder
from asdboot.core.context import RunContext
from asdboot.core.errors import MissingSignerError
from asdboot.core.models import RunReport
from asdboot.core.pipeline import Pipeline
from asdboot.core.registry import ARTIFACT_REGISTRIES, GATEWAYS, PluginRegistry

logger = logging.getLogger(__name__)

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


class Runner:
    """Executes named bootstrap pipelines.

    Gateway and registry instances can be injected (tests, embedding);
    otherwise they are loaded from the plugin registry by name.
    """

    def __init__(
        self,
        project_root: Path,
        runtime_vars: Optional[dict[str, str]] = None,
        gateway: Optional[ChainGateway] = None,
        registry: Optional[ArtifactRegistry] = None,
        gateway_plugin: str = "web3",
        registry_plugin: str = "deployments",
    ):
        self.project_root = Path(project_root)
        self.runtime_vars = runtime_vars or {}
        self.config_loader = ProjectConfigLoader(self.project_root, runtime_vars=self.runtime_vars)
        self.plugins = PluginRegistry()
        self._gateway = gateway
        self._registry = registry
        self.gateway_plugin = gateway_plugin
        self.registry_plugin = registry_plugin
        self._pipeline: Optional[Pipeline] = None

    @property
    def config(self) -> ProjectConfig:
        return self.config_loader.load()

    def build_pipeline(self, pipeline_name: str) -> Pipeline:
        return PipelineBuilder(self.config.asd).build(pipeline_name)

    def run(
        self,
        pipeline_name: str,
        network: Optional[str] = None,
        signer: str = "deployer",
        confirmations: Optional[int] = None,
        tx_timeout: Optional[float] = None,
        max_workers: Optional[int] = None,
    ) -> RunReport:
        """Run a named pipeline.

        Raises:
            ConfigurationError: For problems detected before any step runs
                (unknown pipeline/network, missing adapter, unreachable node,
                unresolvable signer)
        """
        config = self.config
        pipeline = self.build_pipeline(pipeline_name)
        network_name, network_config = self.config_loader.resolve_network(network)

        # Cancellable from here on, including adapter and signer setup
        self._pipeline = pipeline
        try:
            report = self._run(
                pipeline, config, network_name, network_config, signer, confirmations, tx_timeout, max_workers
            )
        finally:
            self._pipeline = None

        if report.succeeded:
            print("\n✅ Pipeline completed successfully\n")
        elif report.failed_steps:
            print(f"\n❌ Pipeline failed. Failed steps: {', '.join(report.failed_steps)}\n")
        else:
            print(f"\n⚠ Pipeline incomplete. Skipped steps: {', '.join(report.skipped_steps)}\n")

        return report

    def _run(
        self,
        pipeline: Pipeline,
        config: ProjectConfig,
        network_name: str,
        network_config: NetworkConfig,
        signer: str,
        confirmations: Optional[int],
        tx_timeout: Optional[float],
        max_workers: Optional[int],
    ) -> RunReport:
        gateway = self.make_gateway(network_config)
        registry = self.make_registry(config, network_name)
        signer_address = self.resolve_signer(signer, config, network_config, gateway)

        context = RunContext(
            gateway=gateway,
            registry=registry,
            network_name=network_name,
            network=network_config,
            signer=signer_address,
            run_id=f"run_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}",
            asd=config.asd,
            confirmations=confirmations,
            tx_timeout=tx_timeout,
            max_workers=max_workers or config.execution.max_workers,
            variables=self.runtime_vars,
        )

        print(f"\n🚀 Starting pipeline: {pipeline.name}")
        print(f"   Run ID: {context.run_id}")
        print(f"   Network: {network_name}")
        print(f"   Signer: {signer_address}\n")

        return pipeline.run(context)

    def cancel(self):
        """Stop scheduling new steps of the running pipeline."""
        if self._pipeline is not None:
            self._pipeline.cancel()

    def resolve_signer(
        self,
        signer: str,
        config: ProjectConfig,
        network: NetworkConfig,
        gateway: ChainGateway,
    ) -> str:
        """Map a signer selection to an address.

        Accepts a named account (``deployer``), an account index (``0``) or a
        literal address. Literal addresses are impersonated on forks that
        allow it.

        Raises:
            MissingSignerError: If the selection cannot be resolved
        """
        if not signer:
            raise MissingSignerError(signer, "no signer selected")

        selection: Any = config.named_accounts.get(signer, signer)
        if isinstance(selection, str) and selection.isdigit():
            selection = int(selection)

        if isinstance(selection, int):
            accounts = gateway.accounts()
            if selection >= len(accounts):
                raise MissingSignerError(
                    signer, f"account index {selection} not available (node has {len(accounts)} accounts)"
                )
            return accounts[selection]

        if not ADDRESS_PATTERN.match(selection):
            raise MissingSignerError(
                signer,
                f"not a named account ({sorted(config.named_accounts)}), account index or address",
            )

        if network.impersonate and network.is_fork:
            logger.info("Impersonating %s", selection)
            gateway.prepare_signer(selection)
        return selection

    def make_gateway(self, network: NetworkConfig) -> ChainGateway:
        gateway = self._gateway or self.plugins.get(GATEWAYS, self.gateway_plugin)
        gateway.configure(network.model_dump())
        return gateway

    def make_registry(self, config: ProjectConfig, network_name: str) -> ArtifactRegistry:
        registry = self._registry or self.plugins.get(ARTIFACT_REGISTRIES, self.registry_plugin)
        registry.configure(config.registry_config(network_name, self.project_root))
        return registry
