"""
End-to-end wiring of a local run: descriptor, environment, ports, images and orchestration.
"""
from typing import Optional

from ..AWS.secret_getters import SecretsManagerGetter, SsmSecretGetter
from ..AWS.sessions import SessionProvider, session_credentials
from ..AWS.task_definitions import (
    EcsTaskDescriptorProvider,
    FileTaskDescriptorProvider,
    TaskDescriptorProvider,
)
from ..MODELS.environment import Credentials
from ..MODELS.run_config import RunLocalConfig
from ..RUNNERS.container_runtime import DockerEngine
from .cancellation_watcher import CancellationWatcher
from .environment_manager import EnvironmentManager
from .image_resolver import resolve_images
from .log_aggregator import LogAggregator
from .network_manager import NetworkManager
from .secret_resolver import SecretResolver
from .service_orchestrator import ServiceOrchestrator


class LocalRunner:
    """
    Prepares everything a run needs, then hands over to the orchestrator.
    Configuration and secret errors surface before any container starts.
    """
    def __init__(self,
                 config: RunLocalConfig,
                 descriptors: TaskDescriptorProvider,
                 credentials: Credentials,
                 env_manager: EnvironmentManager,
                 orchestrator: ServiceOrchestrator,
                 network_manager: Optional[NetworkManager] = None,
                 preflight=None):
        """
        :param config: The validated run request.
        :param descriptors: Source of the workload's task descriptor.
        :param credentials: Credentials injected into every container.
        :param env_manager: Builds container environments.
        :param orchestrator: Runs and cleans up containers.
        :param network_manager: Resolves published ports.
        :param preflight: Called before any container starts; raises if the engine is unusable.
        """
        self.config = config
        self.descriptors = descriptors
        self.credentials = credentials
        self.env_manager = env_manager
        self.orchestrator = orchestrator
        self.network_manager = network_manager or NetworkManager()
        self.preflight = preflight

    @classmethod
    def from_config(cls, config: RunLocalConfig) -> "LocalRunner":
        """
        Builds a runner backed by AWS and the local docker engine.

        The environment session (assumed role, if any) reads the task
        definition and SSM parameters; Secrets Manager is read with the
        operator's own session in the same region.
        """
        sessions = SessionProvider(profile=config.profile, region=config.region)
        default = sessions.default()
        env_session = sessions.from_role(config.role_arn, config.region) if config.role_arn else default

        if config.task_definition_file:
            descriptors = FileTaskDescriptorProvider(config.task_definition_file)
        else:
            descriptors = EcsTaskDescriptorProvider(env_session)

        resolver = SecretResolver(
            ssm=SsmSecretGetter(env_session),
            secrets_manager=SecretsManagerGetter(sessions.default_with_region(env_session.region_name)),
        )
        logs = LogAggregator()
        runtime = DockerEngine(printer=logs)
        orchestrator = ServiceOrchestrator(
            identity=config.identity,
            runtime=runtime,
            log_aggregator=logs,
            watcher=CancellationWatcher(),
            poll_interval=config.poll_interval,
        )
        return cls(
            config=config,
            descriptors=descriptors,
            credentials=session_credentials(default),
            env_manager=EnvironmentManager(resolver),
            orchestrator=orchestrator,
            preflight=runtime.check_engine_running,
        )

    def execute(self):
        """
        Runs the workload locally.

        :raises RunLocalError: On any unrecovered failure.
        """
        identity = self.config.identity
        print(f"[runlocal] Reading task definition {identity.task_family}...")
        descriptor = self.descriptors.get(identity)

        environment = self.env_manager.build(
            descriptor, self.credentials, self.config.env_overrides)

        ports = self.network_manager.resolve_ports(descriptor, self.config.port_overrides)
        self.network_manager.warn_busy_ports(ports)

        images = resolve_images(descriptor, self.config.images)

        if self.preflight is not None:
            self.preflight()

        self.orchestrator.run(images, environment, ports)
