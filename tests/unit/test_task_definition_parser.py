import json

import pytest

from runlocal.PARSERS.task_definition_parser import TaskDefinitionParser
from runlocal.errors import ConfigurationError

TASK_DEFINITION = {
    "family": "shop-test-api",
    "containerDefinitions": [
        {
            "name": "web",
            "image": "123.dkr.ecr.us-west-2.amazonaws.com/shop/api:abc",
            "portMappings": [{"containerPort": 80, "hostPort": 80, "protocol": "tcp"}],
            "environment": [{"name": "LOG_LEVEL", "value": "debug"}],
            "secrets": [{"name": "DB_PASSWORD", "valueFrom": "/shop/test/db-password"}],
        },
        {
            "name": "firelens",
            "image": "public.ecr.aws/aws-observability/aws-for-fluent-bit:stable",
        },
    ],
}


def test_parse_dict():
    descriptor = TaskDefinitionParser().parse_dict(TASK_DEFINITION)
    assert descriptor.family == "shop-test-api"
    assert descriptor.container_names() == ["web", "firelens"]

    web = descriptor.containers[0]
    assert web.port_mappings[0].container_port == 80
    assert web.port_mappings[0].host_port == 80

    env = descriptor.environment_variables()
    assert [(e.container, e.name, e.value) for e in env] == [("web", "LOG_LEVEL", "debug")]

    secrets = descriptor.secrets()
    assert [(s.container, s.name, s.value_from) for s in secrets] == [
        ("web", "DB_PASSWORD", "/shop/test/db-password")]


def test_parse_describe_output_file(tmp_path):
    path = tmp_path / "taskdef.json"
    path.write_text(json.dumps({"taskDefinition": TASK_DEFINITION}))
    descriptor = TaskDefinitionParser().parse(str(path))
    assert descriptor.container_names() == ["web", "firelens"]


def test_parse_yaml_string():
    content = """
containerDefinitions:
  - name: worker
    image: busybox
    environment:
      - name: RETRIES
        value: 3
"""
    descriptor = TaskDefinitionParser().parse_from_string(content)
    assert descriptor.environment_variables()[0].value == "3"


def test_duplicate_container_raises():
    data = {"containerDefinitions": [{"name": "web", "image": "a"}, {"name": "web", "image": "b"}]}
    with pytest.raises(ConfigurationError):
        TaskDefinitionParser().parse_dict(data)


def test_not_a_mapping_raises():
    with pytest.raises(ConfigurationError):
        TaskDefinitionParser().parse_from_string("- just\n- a list\n")


def test_secret_without_value_from_raises():
    data = {"containerDefinitions": [
        {"name": "web", "image": "a", "secrets": [{"name": "DB_PASSWORD"}]},
    ]}
    with pytest.raises(ConfigurationError, match="'web'"):
        TaskDefinitionParser().parse_dict(data)


def test_environment_variable_without_name_raises():
    data = {"containerDefinitions": [
        {"name": "web", "image": "a", "environment": [{"value": "debug"}]},
    ]}
    with pytest.raises(ConfigurationError, match="without a name"):
        TaskDefinitionParser().parse_dict(data)
