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
Container engine client driving the `docker` CLI through subprocesses.
"""
import os
import subprocess
from typing import Callable, List, Optional, Protocol

from ..MODELS.run_specification import RunLogOptions, RunSpecification
from ..errors import ContainerCancelledError, ContainerRunError, ContainerRuntimeError
from .task_group import RunContext


class ContainerRuntime(Protocol):
    """
    Operations the orchestrator needs from a container engine.
    """
    def run(self, ctx: RunContext, spec: RunSpecification) -> None: ...

    def is_running(self, name: str) -> bool: ...

    def stop(self, name: str) -> None: ...

    def rm(self, name: str) -> None: ...


LinePrinter = Callable[[RunLogOptions, str], None]


def _print_line(options: RunLogOptions, line: str):
    print(f"{options.line_prefix}{line}")


class DockerEngine:
    """
    Runs, inspects, stops and removes containers with the docker CLI.
    """
    def __init__(self,
                 docker_bin: str = "docker",
                 printer: Optional[LinePrinter] = None,
                 kill_timeout: int = 10):
        """
        Initializes the engine client.

        Args:
            docker_bin (str): Docker executable.
            printer (Optional[LinePrinter]): Receives every output line of a running container.
            kill_timeout (int): Seconds to wait for a killed docker client to exit.
        """
        self.docker_bin = docker_bin
        self.printer = printer or _print_line
        self.kill_timeout = kill_timeout

    def build_run_args(self, spec: RunSpecification) -> List[str]:
        """
        Builds the `docker run` arguments for a specification.
        Secrets are passed by name only; their values travel in the client's environment.

        Args:
            spec (RunSpecification): What to run.

        Returns:
            List[str]: Arguments, without the docker executable.
        """
        args = ["run"]
        for host_port, container_port in sorted(spec.ports.items()):
            args += ["--publish", f"{host_port}:{container_port}"]
        for name in sorted(spec.secrets):
            args += ["--env", name]
        for name, value in sorted(spec.env_vars.items()):
            args += ["--env", f"{name}={value}"]
        args += ["--name", spec.container_name]
        if spec.network:
            args += ["--network", f"container:{spec.network}"]
        args.append(spec.image)
        args += spec.command
        return args

    def run(self, ctx: RunContext, spec: RunSpecification):
        """
        Runs a container in the foreground until it exits or `ctx` is cancelled.

        Args:
            ctx (RunContext): Cancelling it kills the attached docker client.
            spec (RunSpecification): What to run.
        """
        env = os.environ.copy()
        env.update(spec.secrets)
        command = [self.docker_bin] + self.build_run_args(spec)

        try:
            process = subprocess.Popen(
                command,
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                text=True,
                # Avoid shell=True for security reasons (CWE-78)
                shell=False,
            )
        except OSError as e:
            raise ContainerRuntimeError(spec.container_name, f"run container {spec.container_name!r}: {e}") from e

        ctx.on_cancel(lambda: self._kill(process))

        for line in process.stdout:
            self.printer(spec.log_options, line.rstrip("\n"))
        process.stdout.close()

        try:
            exit_code = process.wait(timeout=self.kill_timeout if ctx.cancelled() else None)
        except subprocess.TimeoutExpired:
            process.kill()
            exit_code = process.wait()

        if ctx.cancelled():
            raise ContainerCancelledError(spec.container_name)
        if exit_code != 0:
            raise ContainerRunError(spec.container_name, exit_code)

    @staticmethod
    def _kill(process: subprocess.Popen):
        # The container keeps running; only the attached client goes away.
        if process.poll() is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass

    def is_running(self, name: str) -> bool:
        """
        Checks if a container with exactly this name is running.
        A container that does not exist yet is reported as not running.
        """
        output = self._docker(name, "ps", "--quiet", "--filter", f"name=^{name}$")
        return bool(output.strip())

    def stop(self, name: str):
        self._docker(name, "stop", name)

    def rm(self, name: str):
        self._docker(name, "rm", name)

    def check_engine_running(self):
        """
        Fails if the docker daemon cannot be reached.
        """
        try:
            self._docker("docker", "info", "--format", "{{.ServerVersion}}")
        except ContainerRuntimeError as e:
            raise ContainerRuntimeError("docker", f"check if docker engine is running: {e}") from e

    def _docker(self, container: str, *args: str) -> str:
        """
        Runs a short docker command and returns its stdout.
        """
        try:
            result = subprocess.run(
                [self.docker_bin, *args],
                capture_output=True,
                text=True,
                shell=False,
            )
        except OSError as e:
            raise ContainerRuntimeError(container, f"docker {args[0]}: {e}") from e
        if result.returncode != 0:
            detail = result.stderr.strip() or f"exit status {result.returncode}"
            raise ContainerRuntimeError(container, f"docker {args[0]}: {detail}")
        return result.stdout
