"""
boto3 session construction and credential extraction.
"""
from typing import Optional

import boto3
from botocore.config import Config

from ..MODELS.environment import Credentials
from ..errors import ConfigurationError

USER_AGENT_EXTRA = "runlocal"
ROLE_SESSION_NAME = "runlocal"
RETRY_CONFIG = Config(retries={"max_attempts": 6, "mode": "standard"}, user_agent_extra=USER_AGENT_EXTRA)


class SessionProvider:
    """
    Creates boto3 sessions for the operator and for the target environment.
    """
    def __init__(self, profile: Optional[str] = None, region: Optional[str] = None):
        self.profile = profile
        self.region = region
        self._default: Optional[boto3.session.Session] = None

    def default(self) -> boto3.session.Session:
        """
        The operator's own session, created once.
        """
        if self._default is None:
            self._default = boto3.session.Session(profile_name=self.profile, region_name=self.region)
        return self._default

    def default_with_region(self, region: Optional[str]) -> boto3.session.Session:
        """
        The operator's credentials, pinned to another region.
        """
        return boto3.session.Session(
            profile_name=self.profile,
            region_name=region or self.default().region_name,
        )

    def from_role(self, role_arn: str, region: Optional[str] = None) -> boto3.session.Session:
        """
        Assumes `role_arn` with the operator's credentials.
        """
        region = region or self.default().region_name
        sts = self.default().client("sts", region_name=region, config=RETRY_CONFIG)
        creds = sts.assume_role(RoleArn=role_arn, RoleSessionName=ROLE_SESSION_NAME)["Credentials"]
        return boto3.session.Session(
            aws_access_key_id=creds["AccessKeyId"],
            aws_secret_access_key=creds["SecretAccessKey"],
            aws_session_token=creds["SessionToken"],
            region_name=region,
        )


def session_credentials(session: boto3.session.Session) -> Credentials:
    """
    Extracts frozen credentials and region from a session.

    :raises ConfigurationError: If the session has no credentials.
    """
    creds = session.get_credentials()
    if creds is None:
        raise ConfigurationError("get IAM credentials: no credentials found for the current session")
    frozen = creds.get_frozen_credentials()
    return Credentials(
        access_key=frozen.access_key,
        secret_key=frozen.secret_key,
        session_token=frozen.token or "",
        region=session.region_name,
    )
