"""
Models describing how a single container is run by the container engine.
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class RunLogOptions(BaseModel):
    """
    How a container's output is labeled on the terminal.
    """
    model_config = ConfigDict(frozen=True)

    line_prefix: str = ""
    color: Optional[str] = None


class RunSpecification(BaseModel):
    """
    Everything needed to start one container.
    Built once, immediately before the container is started.
    """
    model_config = ConfigDict(frozen=True)

    image: str
    container_name: str
    # Name of the container whose network namespace is joined; None creates one.
    network: Optional[str] = None
    command: List[str] = Field(default_factory=list)
    env_vars: Dict[str, str] = Field(default_factory=dict)
    secrets: Dict[str, str] = Field(default_factory=dict)
    ports: Dict[str, str] = Field(default_factory=dict)  # {host: container}
    log_options: RunLogOptions = Field(default_factory=RunLogOptions)
