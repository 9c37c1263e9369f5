"""
Models for resolved container environments and the credentials injected into them.
"""
from typing import Dict, Optional, Tuple
from pydantic import BaseModel, ConfigDict


class EnvVarValue(BaseModel):
    """
    The resolved value of one environment variable for one container.
    """
    model_config = ConfigDict(frozen=True)

    value: str
    is_secret: bool = False
    is_override: bool = False


# container name -> variable name -> value
ContainerEnvironment = Dict[str, Dict[str, EnvVarValue]]


class Credentials(BaseModel):
    """
    IAM credentials and region of the operator's session.
    """
    model_config = ConfigDict(frozen=True)

    access_key: str
    secret_key: str
    session_token: str = ""
    region: Optional[str] = None


def split_environment(env: Dict[str, EnvVarValue]) -> Tuple[Dict[str, str], Dict[str, str]]:
    """
    Separates one container's variables into plain values and secret values.

    :param env: Variables of a single container.
    :return: (plain, secrets)
    """
    plain, secrets = {}, {}
    for key, var in env.items():
        if var.is_secret:
            secrets[key] = var.value
        else:
            plain[key] = var.value
    return plain, secrets
