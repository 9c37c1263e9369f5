"""
Task descriptor providers: ECS or a local file.
"""
from typing import Protocol

from botocore.exceptions import ClientError

from ..MODELS.run_config import RunIdentity
from ..MODELS.task_descriptor import TaskDescriptor
from ..PARSERS.task_definition_parser import TaskDefinitionParser
from ..errors import ConfigurationError
from .sessions import RETRY_CONFIG


class TaskDescriptorProvider(Protocol):
    def get(self, identity: RunIdentity) -> TaskDescriptor: ...


class EcsTaskDescriptorProvider:
    """
    Reads the latest active task definition of a deployed workload.
    The family is `<app>-<env>-<workload>`.
    """
    def __init__(self, session):
        self.client = session.client("ecs", config=RETRY_CONFIG)
        self.parser = TaskDefinitionParser()

    def get(self, identity: RunIdentity) -> TaskDescriptor:
        try:
            resp = self.client.describe_task_definition(taskDefinition=identity.task_family)
        except ClientError as e:
            raise ConfigurationError(f"get task definition {identity.task_family!r}: {e}") from e
        return self.parser.parse_dict(resp["taskDefinition"])


class FileTaskDescriptorProvider:
    """
    Reads a task definition from a JSON or YAML file.
    """
    def __init__(self, path: str):
        self.path = path
        self.parser = TaskDefinitionParser()

    def get(self, identity: RunIdentity) -> TaskDescriptor:
        try:
            return self.parser.parse(self.path)
        except OSError as e:
            raise ConfigurationError(f"read task definition {self.path!r}: {e}") from e
