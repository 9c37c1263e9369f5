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
Concurrent, deduplicated resolution of secret references.
"""
import threading
from typing import Dict, Iterable, Optional

from botocore.utils import ArnParser, InvalidArnException

from ..AWS.secret_getters import SecretGetter
from ..RUNNERS.task_group import RunContext, TaskGroup
from ..errors import RunLocalError, SecretResolutionError

SSM_SERVICE = "ssm"
SECRETS_MANAGER_SERVICE = "secretsmanager"


class SecretResolver:
    """
    Fetches secret values from SSM Parameter Store or Secrets Manager.

    Each distinct reference is fetched exactly once, all fetches run
    concurrently, and the first failure cancels the rest. Resolution is
    all-or-nothing.
    """
    def __init__(self, ssm: SecretGetter, secrets_manager: SecretGetter):
        """
        :param ssm: Getter for parameter store references.
        :param secrets_manager: Getter for Secrets Manager ARNs.
        """
        self.ssm = ssm
        self.secrets_manager = secrets_manager
        self._arn_parser = ArnParser()

    def getter_for(self, reference: str) -> SecretGetter:
        """
        Picks the backing store for a reference.
        Anything that is not an ARN is treated as an SSM parameter name.

        :raises SecretResolutionError: For an ARN of any other service.
        """
        try:
            parsed = self._arn_parser.parse_arn(reference)
        except InvalidArnException:
            return self.ssm
        if parsed["service"] == SSM_SERVICE:
            return self.ssm
        if parsed["service"] == SECRETS_MANAGER_SERVICE:
            return self.secrets_manager
        raise SecretResolutionError(
            reference, RunLocalError("invalid ARN; not a SSM or Secrets Manager ARN"))

    def resolve(self,
                references: Iterable[str],
                ctx: Optional[RunContext] = None) -> Dict[str, str]:
        """
        Resolves every distinct reference.

        :param references: References, duplicates allowed.
        :param ctx: Parent context; cancelling it abandons the resolution.
        :return: reference -> value, for every distinct reference.
        :raises SecretResolutionError: On the first failed fetch.
        """
        unique = set(references)
        if not unique:
            return {}

        values: Dict[str, str] = {}
        lock = threading.Lock()

        def fetch(group_ctx: RunContext, reference: str):
            if group_ctx.cancelled():
                raise SecretResolutionError(reference, RunLocalError("cancelled"))
            getter = self.getter_for(reference)
            try:
                value = getter.get_value(group_ctx, reference)
            except SecretResolutionError:
                raise
            except Exception as e:
                raise SecretResolutionError(reference, e) from e
            with lock:
                values[reference] = value

        group = TaskGroup(ctx, name="secret")
        for reference in sorted(unique):
            group.go(fetch, reference)
        group.wait()
        return values
