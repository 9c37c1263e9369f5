"""
Builds the per-container environment from credentials, the task descriptor,
operator overrides and resolved secrets.
"""
from typing import Dict, Optional, Set

from ..MODELS.environment import ContainerEnvironment, Credentials, EnvVarValue
from ..MODELS.task_descriptor import TaskDescriptor
from ..RUNNERS.task_group import RunContext
from ..errors import ConfigurationError
from .secret_resolver import SecretResolver

CONTAINER_SEPARATOR = ":"
IDENTITY_VARIABLES = frozenset({
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_SESSION_TOKEN",
    "AWS_DEFAULT_REGION",
    "AWS_REGION",
})


class EnvironmentManager:
    """
    Manages the merging and resolution of environment variables from multiple sources.

    Precedence, lowest first: descriptor variables, credentials, then either
    an override or a secret. Descriptor variables never replace the injected
    credentials or region. Overrides always win and suppress the secret.
    """
    def __init__(self, resolver: SecretResolver):
        """
        Initializes the environment manager.

        :param resolver: Resolves the secret references that survive overrides.
        """
        self.resolver = resolver

    def build(self,
              descriptor: TaskDescriptor,
              credentials: Credentials,
              overrides: Optional[Dict[str, str]] = None,
              ctx: Optional[RunContext] = None) -> ContainerEnvironment:
        """
        Produces the environment of every container in the descriptor.

        :param descriptor: The workload's task descriptor.
        :param credentials: Credentials injected into every container.
        :param overrides: `KEY` or `container:KEY` -> value.
        :param ctx: Parent context for secret resolution.
        :return: container -> variable -> value.
        """
        env = self.credential_environment(descriptor, credentials)

        for var in descriptor.environment_variables():
            # The session's identity is not replaced by deployed values
            if var.name in IDENTITY_VARIABLES and var.name in env[var.container]:
                continue
            env[var.container][var.name] = EnvVarValue(value=var.value)

        self.apply_overrides(env, overrides or {})
        self.fill_secrets(env, descriptor, ctx)
        return env

    @staticmethod
    def credential_environment(descriptor: TaskDescriptor,
                               credentials: Credentials) -> ContainerEnvironment:
        """
        Seeds every container with the session's credentials and region.
        """
        env: ContainerEnvironment = {}
        for name in descriptor.container_names():
            env[name] = {
                "AWS_ACCESS_KEY_ID": EnvVarValue(value=credentials.access_key),
                "AWS_SECRET_ACCESS_KEY": EnvVarValue(value=credentials.secret_key),
                "AWS_SESSION_TOKEN": EnvVarValue(value=credentials.session_token),
            }
            if credentials.region:
                region = EnvVarValue(value=credentials.region)
                env[name]["AWS_DEFAULT_REGION"] = region
                env[name]["AWS_REGION"] = region
        return env

    @staticmethod
    def apply_overrides(env: ContainerEnvironment, overrides: Dict[str, str]):
        """
        Applies `KEY` overrides to every container and `container:KEY`
        overrides to one container. Container-scoped overrides are applied
        last so they win over a global override of the same key.

        :raises ConfigurationError: If an override targets an unknown container.
        """
        scoped = []
        for key, value in sorted(overrides.items()):
            if CONTAINER_SEPARATOR not in key:
                for container in env:
                    env[container][key] = EnvVarValue(value=value, is_override=True)
            else:
                scoped.append((key, value))

        for key, value in scoped:
            container, name = key.split(CONTAINER_SEPARATOR, 1)
            if container not in env:
                raise ConfigurationError(f"parse env overrides: {key!r} targets invalid container")
            env[container][name] = EnvVarValue(value=value, is_override=True)

    def fill_secrets(self,
                     env: ContainerEnvironment,
                     descriptor: TaskDescriptor,
                     ctx: Optional[RunContext] = None):
        """
        Resolves non-overridden secrets and stores them under their variable names.

        :raises ConfigurationError: If a secret collides with a variable.
        :raises SecretResolutionError: If any fetch fails.
        """
        needed: Set[str] = set()
        placeholders = []
        for secret in descriptor.secrets():
            current = env[secret.container].get(secret.name)
            if current is not None and current.is_override:
                continue
            if current is not None:
                raise ConfigurationError(
                    f"secret names must be unique, but an environment variable {secret.name!r} "
                    f"already exists in container {secret.container!r}")
            env[secret.container][secret.name] = EnvVarValue(value=secret.value_from, is_secret=True)
            placeholders.append(secret)
            needed.add(secret.value_from)

        values = self.resolver.resolve(needed, ctx)

        for secret in placeholders:
            env[secret.container][secret.name] = EnvVarValue(
                value=values[secret.value_from], is_secret=True)
