"""
Models for the operator's run request: identity, overrides and session options.
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

PAUSE_CONTAINER_NAME = "pause"


class PortOverride(BaseModel):
    """
    Operator supplied container port -> host port mapping.
    """
    model_config = ConfigDict(frozen=True)

    container_port: str
    host_port: str


class RunIdentity(BaseModel):
    """
    Application, environment and workload of a run.
    Used to name containers so concurrent local runs never collide.
    """
    model_config = ConfigDict(frozen=True)

    app: str
    env: str
    workload: str

    @property
    def suffix(self) -> str:
        return f"{self.app}-{self.env}-{self.workload}"

    @property
    def task_family(self) -> str:
        return f"{self.app}-{self.env}-{self.workload}"

    def container_name(self, role: str) -> str:
        """
        Returns the local container name for a role ("pause" or a container name).
        """
        return f"{role}-{self.suffix}"

    @property
    def pause_container_name(self) -> str:
        return self.container_name(PAUSE_CONTAINER_NAME)


class RunLocalConfig(BaseModel):
    """
    Complete, validated configuration for one `runlocal run` invocation.
    """
    identity: RunIdentity
    port_overrides: List[PortOverride] = []
    env_overrides: Dict[str, str] = {}
    images: Dict[str, str] = {}  # container name -> freshly built image URI
    task_definition_file: Optional[str] = None
    role_arn: Optional[str] = None
    region: Optional[str] = None
    profile: Optional[str] = None
    poll_interval: float = Field(default=1.0, gt=0)
