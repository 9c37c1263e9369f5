"""
Secret getters for SSM Parameter Store and Secrets Manager.
"""
import base64
from typing import Protocol

from ..RUNNERS.task_group import RunContext
from ..errors import RunLocalError, SecretResolutionError
from .sessions import RETRY_CONFIG


class SecretGetter(Protocol):
    def get_value(self, ctx: RunContext, reference: str) -> str: ...


def _check_cancelled(ctx: RunContext, reference: str):
    """
    A boto3 call in flight cannot be interrupted; its result is discarded
    instead when the context was cancelled meanwhile.
    """
    if ctx is not None and ctx.cancelled():
        raise SecretResolutionError(reference, RunLocalError("cancelled"))


class SsmSecretGetter:
    """
    Reads SecureString (or plain) parameters by name or ARN.
    """
    def __init__(self, session):
        self.client = session.client("ssm", config=RETRY_CONFIG)

    def get_value(self, ctx: RunContext, reference: str) -> str:
        resp = self.client.get_parameter(Name=reference, WithDecryption=True)
        _check_cancelled(ctx, reference)
        return resp["Parameter"]["Value"]


class SecretsManagerGetter:
    """
    Reads the current value of a secret by ARN.
    """
    def __init__(self, session):
        self.client = session.client("secretsmanager", config=RETRY_CONFIG)

    def get_value(self, ctx: RunContext, reference: str) -> str:
        resp = self.client.get_secret_value(SecretId=reference)
        _check_cancelled(ctx, reference)
        if "SecretString" in resp:
            return resp["SecretString"]
        return base64.b64encode(resp["SecretBinary"]).decode()
