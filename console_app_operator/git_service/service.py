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
import re
from enum import Enum
from typing import Dict, Optional, Tuple
from urllib.parse import urlparse

from console_app_operator.app.config import OperatorConfig
from console_app_operator.git_service.base import GitProvider, ProbeResult
from console_app_operator.git_service.github import GitHubProvider
from console_app_operator.git_service.gitlab import GitLabProvider
from console_app_operator.models.status import ConditionReason

logger = logging.getLogger(__name__)

DEFAULT_REF = "main"

# host, then owner and repository as the first two path segments
OWNER_REPO_PATTERN = re.compile(r"^(?:https?://)?(?:www\.)?[^/\s]+/([^/\s?#]+)/([^/\s?#]+)")


class GitHost(str, Enum):
    GitHub = "github"
    GitLab = "gitlab"
    Unknown = "unknown"


HOSTNAMES: Dict[str, GitHost] = {
    "github.com": GitHost.GitHub,
    "gitlab.com": GitHost.GitLab,
}


class InvalidGitURLError(Exception):
    pass


def _hostname(git_url: str) -> Optional[str]:
    url = git_url.strip()
    if not url or any(c.isspace() for c in url):
        return None
    if "://" not in url:
        url = f"https://{url}"
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return None
    if not hostname or "." not in hostname:
        return None
    return hostname


def is_valid_url(git_url: str) -> bool:
    return _hostname(git_url) is not None


def identify_git_host(git_url: str) -> GitHost:
    hostname = _hostname(git_url)
    if hostname is None:
        return GitHost.Unknown
    if hostname.startswith("www."):
        hostname = hostname[len("www.") :]
    return HOSTNAMES.get(hostname, GitHost.Unknown)


def get_owner_and_repo(git_url: str) -> Tuple[str, str]:
    matches = OWNER_REPO_PATTERN.match(git_url.strip())
    if not matches:
        raise InvalidGitURLError(ConditionReason.InvalidURL.value)
    owner, repo = matches.group(1), matches.group(2)
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not owner or not repo:
        raise InvalidGitURLError(ConditionReason.InvalidURL.value)
    return owner, repo


class GitService:
    """Classifies a source repository as reachable or not, with the reason.

    Stateless; each probe makes at most one call to the hosting service.
    """

    def __init__(self, config: Optional[OperatorConfig] = None, providers: Optional[Dict[GitHost, GitProvider]] = None) -> None:
        config = config if config else OperatorConfig()
        if providers is None:
            providers = {
                GitHost.GitHub: GitHubProvider(config.github_api_host, timeout=config.git_request_timeout),
                GitHost.GitLab: GitLabProvider(config.gitlab_api_host, timeout=config.git_request_timeout),
            }
        self.providers = providers

    def probe(self, git_url: str, ref: Optional[str] = None, credential: Optional[str] = None) -> ProbeResult:
        if not is_valid_url(git_url):
            logger.error(f"Invalid git URL: '{git_url}'")
            return False, ConditionReason.InvalidURL

        git_host = identify_git_host(git_url)
        provider = self.providers.get(git_host)
        if provider is None:
            logger.error(f"Unsupported git host for '{git_url}'")
            return False, ConditionReason.UnsupportedHostType

        try:
            owner, repo = get_owner_and_repo(git_url)
        except InvalidGitURLError:
            logger.error(f"Cannot get owner and repo from '{git_url}'")
            return False, ConditionReason.InvalidURL

        ref = ref if ref else DEFAULT_REF
        logger.info(f"Probe {git_host.value} repository '{owner}/{repo}' at '{ref}'")
        return provider.is_repo_reachable(owner, repo, ref, credential)
