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
Parsers for ECS task definitions, from API responses or local JSON/YAML files.
"""
import yaml
from typing import Dict, Any, List
from ..MODELS.task_descriptor import TaskDescriptor, ContainerSpec, PortMapping
from ..errors import ConfigurationError


class TaskDefinitionParser:
    """
    Parser for ECS task definitions.
    """
    def parse(self, path: str) -> TaskDescriptor:
        """
        Parses a task definition from a path.

        :param path: Path to a JSON or YAML task definition.
        :return: Parsed descriptor.
        """
        with open(path, 'r') as f:
            content = f.read()
        return self.parse_from_string(content)

    def parse_from_string(self, content: str) -> TaskDescriptor:
        """
        Parses a task definition from a string.
        JSON is a subset of YAML, so both are accepted.

        :param content: Task definition document.
        :return: Parsed descriptor.
        """
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"parse task definition: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError("parse task definition: expected a mapping at the top level")
        # `aws ecs describe-task-definition` output wraps the definition
        if 'taskDefinition' in data:
            data = data['taskDefinition']
        return self.parse_dict(data)

    def parse_dict(self, data: Dict[str, Any]) -> TaskDescriptor:
        """
        Builds a descriptor from a task definition mapping as returned by boto3.

        :param data: The `taskDefinition` mapping.
        :return: Parsed descriptor.
        """
        containers = []
        seen = set()
        for spec in data.get('containerDefinitions') or []:
            container = self._parse_container(spec)
            if container.name in seen:
                raise ConfigurationError(f"task definition declares container {container.name!r} twice")
            seen.add(container.name)
            containers.append(container)

        return TaskDescriptor(
            family=data.get('family', ''),
            containers=tuple(containers),
        )

    def _parse_container(self, spec: Dict[str, Any]) -> ContainerSpec:
        """
        Parses a single container definition.

        :param spec: The container definition dictionary.
        :return: A ContainerSpec instance.
        """
        name = spec.get('name')
        if not name:
            raise ConfigurationError("task definition has a container without a name")

        ports = [
            PortMapping(
                container_port=p.get('containerPort'),
                host_port=p.get('hostPort'),
            )
            for p in spec.get('portMappings') or []
        ]
        environment = []
        for e in spec.get('environment') or []:
            if not e.get('name'):
                raise ConfigurationError(
                    f"container {name!r} has an environment variable without a name")
            environment.append((e['name'], str(e.get('value', ''))))

        secrets = []
        for s in spec.get('secrets') or []:
            if not s.get('name') or not s.get('valueFrom'):
                raise ConfigurationError(
                    f"container {name!r} has a secret without a name or valueFrom")
            secrets.append((s['name'], s['valueFrom']))

        return ContainerSpec(
            name=name,
            image=spec.get('image', ''),
            port_mappings=tuple(ports),
            environment=tuple(environment),
            secrets=tuple(secrets),
        )


def parse_task_definition(data: Dict[str, Any]) -> TaskDescriptor:
    """Shorthand for `TaskDefinitionParser().parse_dict`."""
    return TaskDefinitionParser().parse_dict(data)
