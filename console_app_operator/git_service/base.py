# Copyright contributors to the Console Application Operator project. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import logging
from abc import ABC, abstractmethod
from typing import Optional, Tuple

import requests

from console_app_operator.common.rest_client import RestClient
from console_app_operator.models.status import ConditionReason

logger = logging.getLogger(__name__)

ProbeResult = Tuple[bool, ConditionReason]


class GitProvider(ABC):
    """One git hosting service able to answer whether owner/repo@ref can be read."""

    def __init__(self, api_host: str, timeout: Optional[int] = None) -> None:
        self.api_host = api_host
        self.timeout = timeout

    @abstractmethod
    def is_repo_reachable(self, owner: str, repo: str, ref: str, credential: Optional[str] = None) -> ProbeResult: ...

    def fetch(self, client: RestClient, endpoint: str, rate_limit_statuses=(403, 429)) -> ProbeResult:
        try:
            client.get(endpoint)
        except requests.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            logger.error(f"Unsuccessful response from {self.api_host}: {status_code}")
            if status_code == 404:
                return False, ConditionReason.RepoNotFound
            if status_code in rate_limit_statuses:
                return False, ConditionReason.RateLimitExceeded
            return False, ConditionReason.RepoNotReachable
        except requests.RequestException as e:
            logger.error(f"Unable to reach {self.api_host}: {e}")
            return False, ConditionReason.RepoNotReachable
        logger.info(f"Successfully reached {self.api_host}")
        return True, ConditionReason.Succeeded
