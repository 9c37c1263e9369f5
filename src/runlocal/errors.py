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
Exception types raised while preparing, running and cleaning up a local run.
"""
from typing import List, Optional


class RunLocalError(Exception):
    """Base class for every error surfaced by runlocal."""


class ConfigurationError(RunLocalError):
    """
    Invalid operator input or task definition.

    Raised before any container is started, so no cleanup is needed.
    """


class SecretResolutionError(RunLocalError):
    """
    A secret reference could not be resolved.
    """
    def __init__(self, reference: str, cause: Optional[BaseException] = None):
        self.reference = reference
        self.cause = cause
        message = f"get secret {reference!r}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class ContainerRuntimeError(RunLocalError):
    """
    A container engine call failed for a specific container.
    """
    def __init__(self, container: str, message: str):
        self.container = container
        super().__init__(message)


class ContainerRunError(ContainerRuntimeError):
    """The container process exited with a non-zero status."""
    def __init__(self, container: str, exit_code: int, detail: str = ""):
        self.exit_code = exit_code
        message = f"run container {container!r}: exit status {exit_code}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(container, message)


class ContainerCancelledError(ContainerRuntimeError):
    """The container process was terminated because its run context was cancelled."""
    def __init__(self, container: str):
        super().__init__(container, f"run container {container!r}: cancelled")


class CleanupError(RunLocalError):
    """
    Aggregated stop/remove failures.

    Messages are sorted so the same failures always render the same way.
    """
    def __init__(self, errors: List[BaseException]):
        self.errors = sorted(errors, key=str)
        super().__init__("\n".join(str(e) for e in self.errors))


class OrchestrationError(RunLocalError):
    """
    Terminal failure of a run: the run-phase error, the cleanup errors, or both.
    """
    def __init__(self,
                 run_error: Optional[BaseException] = None,
                 cleanup_error: Optional[CleanupError] = None):
        self.run_error = run_error
        self.cleanup_error = cleanup_error
        parts = []
        if run_error is not None:
            parts.append(str(run_error))
        if cleanup_error is not None:
            parts.append(str(cleanup_error))
        super().__init__("\n".join(parts))
