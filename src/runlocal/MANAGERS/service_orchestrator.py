# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Orchestration of one local run: pause container, application containers and cleanup.
"""
from enum import Enum
from typing import Dict, List, Optional

from tenacity import Retrying, retry_if_result, wait_fixed

from ..MODELS.environment import ContainerEnvironment, split_environment
from ..MODELS.run_config import PAUSE_CONTAINER_NAME, RunIdentity
from ..MODELS.run_specification import RunSpecification
from ..RUNNERS.container_runtime import ContainerRuntime
from ..RUNNERS.task_group import RunContext, TaskGroup
from ..errors import (
    CleanupError,
    ContainerCancelledError,
    ContainerRuntimeError,
    OrchestrationError,
)
from .cancellation_watcher import CancellationWatcher
from .log_aggregator import LogAggregator
from .network_manager import NetworkManager

PAUSE_CONTAINER_IMAGE = "public.ecr.aws/amazonlinux/amazonlinux:2023"
PAUSE_CONTAINER_COMMAND = ["sleep", "infinity"]


class OrchestratorState(str, Enum):
    """
    Lifecycle of a local run.
    """
    IDLE = "idle"
    PAUSE_STARTING = "pause-starting"
    PAUSE_RUNNING = "pause-running"
    APPS_STARTING = "apps-starting"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLING = "cancelling"
    CLEANING_UP = "cleaning-up"
    DONE = "done"


class ServiceOrchestrator:
    """
    Runs every container of a workload against a shared pause container.

    The pause container owns the network namespace and publishes all ports.
    Application containers start only once it is confirmed running. Whatever
    way the run ends, every container that was started is stopped and
    removed, the pause container last.
    """
    def __init__(self,
                 identity: RunIdentity,
                 runtime: ContainerRuntime,
                 log_aggregator: Optional[LogAggregator] = None,
                 watcher: Optional[CancellationWatcher] = None,
                 poll_interval: float = 1.0):
        """
        Initializes the orchestrator.

        :param identity: Names the run's containers.
        :param runtime: Container engine client.
        :param log_aggregator: Hands out log labels and colors per container.
        :param watcher: Source of operator interrupts.
        :param poll_interval: Seconds between pause container liveness checks.
        """
        self.identity = identity
        self.runtime = runtime
        self.log_aggregator = log_aggregator or LogAggregator()
        self.watcher = watcher or CancellationWatcher()
        self.poll_interval = poll_interval
        self.state = OrchestratorState.IDLE
        self._started: List[str] = []

    def run(self,
            images: Dict[str, str],
            environment: ContainerEnvironment,
            ports: Dict[str, str]):
        """
        Runs the workload until its containers exit, one fails, or the operator
        interrupts, then cleans up.

        :param images: container name -> image URI.
        :param environment: Resolved environment of every container.
        :param ports: {container_port: host_port} published by the pause container.
        :raises OrchestrationError: With the run failure and/or cleanup failures.
        """
        self._started = []
        run_ctx = RunContext()
        run_error: Optional[BaseException] = None

        # Handlers stay installed until cleanup returns
        with self.watcher.watch(run_ctx):
            try:
                self._run(run_ctx, images, environment, ports)
            except Exception as e:
                run_error = e

            if self.watcher.interrupted:
                self.state = OrchestratorState.CANCELLING
                # Failures after an interrupt are taken to be caused by it
                run_error = None
            else:
                self.state = OrchestratorState.COMPLETED

            cleanup_error = self.clean_up(self._started)
        self.state = OrchestratorState.DONE

        if run_error is not None or cleanup_error is not None:
            raise OrchestrationError(run_error, cleanup_error)

    def _run(self,
             run_ctx: RunContext,
             images: Dict[str, str],
             environment: ContainerEnvironment,
             ports: Dict[str, str]):
        group = TaskGroup(run_ctx, name="run")
        pause_spec = self.pause_spec(ports)

        self.state = OrchestratorState.PAUSE_STARTING
        self._started.append(PAUSE_CONTAINER_NAME)
        group.go(self._run_pause_container, pause_spec)
        group.go(self._run_app_containers, images, environment)
        group.wait()

    def pause_spec(self, ports: Dict[str, str]) -> RunSpecification:
        """
        Builds the pause container's run specification.

        :param ports: {container_port: host_port}
        """
        return RunSpecification(
            image=PAUSE_CONTAINER_IMAGE,
            container_name=self.identity.pause_container_name,
            command=list(PAUSE_CONTAINER_COMMAND),
            ports=NetworkManager.published_ports(ports),
            log_options=self.log_aggregator.log_options(PAUSE_CONTAINER_NAME),
        )

    def app_spec(self, name: str, image: str, environment: ContainerEnvironment) -> RunSpecification:
        """
        Builds an application container's run specification, joined to the
        pause container's network.
        """
        env_vars, secrets = split_environment(environment.get(name, {}))
        return RunSpecification(
            image=image,
            container_name=self.identity.container_name(name),
            network=self.identity.pause_container_name,
            env_vars=env_vars,
            secrets=secrets,
            log_options=self.log_aggregator.log_options(name),
        )

    def _run_pause_container(self, ctx: RunContext, spec: RunSpecification):
        try:
            self.runtime.run(ctx, spec)
        except ContainerCancelledError:
            if ctx.cancelled():
                return
            raise
        except ContainerRuntimeError as e:
            if ctx.cancelled():
                return
            raise ContainerRuntimeError(spec.container_name, f"run pause container: {e}") from e
        if not ctx.cancelled():
            raise ContainerRuntimeError(spec.container_name, "run pause container: exited unexpectedly")

    def _run_app_containers(self,
                            ctx: RunContext,
                            images: Dict[str, str],
                            environment: ContainerEnvironment):
        try:
            self.wait_for_pause(ctx)
            self.state = OrchestratorState.PAUSE_RUNNING

            self.state = OrchestratorState.APPS_STARTING
            apps = TaskGroup(ctx, name="container")
            for name in sorted(images):
                spec = self.app_spec(name, images[name], environment)
                self._started.append(name)
                apps.go(self._run_app_container, name, spec)
            self.state = OrchestratorState.RUNNING
            apps.wait()
        finally:
            # Also stops the pause container once every app has exited
            ctx.cancel()

    def _run_app_container(self, ctx: RunContext, name: str, spec: RunSpecification):
        print(f"[{name}] Starting container {spec.container_name}")
        self.runtime.run(ctx, spec)

    def wait_for_pause(self, ctx: RunContext):
        """
        Polls until the pause container reports running.

        :raises ContainerRuntimeError: If the check itself fails.
        :raises ContainerCancelledError: If `ctx` is cancelled first.
        """
        name = self.identity.pause_container_name
        retrying = Retrying(
            retry=retry_if_result(lambda running: not running),
            wait=wait_fixed(self.poll_interval),
            stop=lambda retry_state: ctx.cancelled(),
            sleep=ctx.wait,
            retry_error_callback=lambda retry_state: False,
        )
        try:
            running = retrying(self.runtime.is_running, name)
        except ContainerRuntimeError as e:
            raise ContainerRuntimeError(name, f"check if container is running: {e}") from e
        # A check can report running after the context was cancelled mid-poll
        if not running or ctx.cancelled():
            raise ContainerCancelledError(name)
        print(f"[{PAUSE_CONTAINER_NAME}] Container {name} is running.")

    def clean_up(self, names: List[str]) -> Optional[CleanupError]:
        """
        Stops and removes the given containers, application containers first
        and the pause container last. Independent of any run context.

        :param names: Logical names ("pause" or container names).
        :return: Aggregated failures, or None.
        """
        self.state = OrchestratorState.CLEANING_UP
        errors: List[BaseException] = []
        apps = [n for n in names if n != PAUSE_CONTAINER_NAME]
        for name in apps:
            errors += self._clean_up_container(self.identity.container_name(name))
        if PAUSE_CONTAINER_NAME in names:
            errors += self._clean_up_container(self.identity.pause_container_name)
        if errors:
            return CleanupError(errors)
        return None

    def _clean_up_container(self, container: str) -> List[BaseException]:
        """
        Stop then remove; remove is attempted even if stop failed.
        """
        errors: List[BaseException] = []
        print(f"[cleanup] Stopping {container}...")
        try:
            self.runtime.stop(container)
        except Exception as e:
            errors.append(ContainerRuntimeError(container, f"clean up {container!r}: stop: {e}"))
        print(f"[cleanup] Removing {container}...")
        try:
            self.runtime.rm(container)
        except Exception as e:
            errors.append(ContainerRuntimeError(container, f"clean up {container!r}: rm: {e}"))
        if errors:
            print(f"[cleanup] Failed to clean up {container}")
        else:
            print(f"[cleanup] Cleaned up {container}")
        return errors
