"""
Models for the remote task descriptor: containers, ports, variables and secret references.
"""
from typing import List, Optional, Tuple
from pydantic import BaseModel, ConfigDict


class PortMapping(BaseModel):
    """
    A container port published on a host port.
    """
    model_config = ConfigDict(frozen=True)

    container_port: Optional[int] = None
    host_port: Optional[int] = None


class EnvironmentVariable(BaseModel):
    """
    A plain environment variable declared by the task descriptor.
    """
    model_config = ConfigDict(frozen=True)

    container: str
    name: str
    value: str


class SecretReference(BaseModel):
    """
    A secret declared by the task descriptor.

    `value_from` is an SSM parameter name/ARN or a Secrets Manager ARN; the
    value itself is fetched at run time.
    """
    model_config = ConfigDict(frozen=True)

    container: str
    name: str
    value_from: str


class ContainerSpec(BaseModel):
    """
    One container of the task descriptor.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    image: str
    port_mappings: Tuple[PortMapping, ...] = ()
    environment: Tuple[Tuple[str, str], ...] = ()
    secrets: Tuple[Tuple[str, str], ...] = ()  # (name, value_from)


class TaskDescriptor(BaseModel):
    """
    The remote definition of a workload's containers.
    Equivalent to an ECS task definition.
    """
    model_config = ConfigDict(frozen=True)

    family: str = ""
    containers: Tuple[ContainerSpec, ...] = ()

    def container_names(self) -> List[str]:
        return [c.name for c in self.containers]

    def environment_variables(self) -> List[EnvironmentVariable]:
        """
        Flattens every container's declared variables.
        """
        return [
            EnvironmentVariable(container=c.name, name=name, value=value)
            for c in self.containers
            for name, value in c.environment
        ]

    def secrets(self) -> List[SecretReference]:
        """
        Flattens every container's declared secret references.
        """
        return [
            SecretReference(container=c.name, name=name, value_from=value_from)
            for c in self.containers
            for name, value_from in c.secrets
        ]
