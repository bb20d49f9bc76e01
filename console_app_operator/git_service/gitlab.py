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
from typing import Optional
from urllib.parse import quote

from console_app_operator.common.rest_client import RestClient
from console_app_operator.git_service.base import GitProvider, ProbeResult
from console_app_operator.models.status import ConditionReason

logger = logging.getLogger(__name__)


class GitLabProvider(GitProvider):

    def is_repo_reachable(self, owner: str, repo: str, ref: str, credential: Optional[str] = None) -> ProbeResult:
        if not credential:
            logger.error("GitLab requires an access token, but no credential was provided")
            return False, ConditionReason.AccessTokenRequired

        client = RestClient(self.api_host, headers={"PRIVATE-TOKEN": credential}, timeout=self.timeout)
        project = quote(f"{owner}/{repo}", safe="")
        endpoint = f"/api/v4/projects/{project}/repository/commits/{quote(ref, safe='')}"
        return self.fetch(client, endpoint)
