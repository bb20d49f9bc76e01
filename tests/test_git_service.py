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

import pytest
import requests

from console_app_operator.app.config import OperatorConfig
from console_app_operator.common import rest_client
from console_app_operator.git_service.service import (
    GitHost,
    GitService,
    get_owner_and_repo,
    identify_git_host,
    is_valid_url,
)
from console_app_operator.models.status import ConditionReason


class Calls:
    def __init__(self):
        self.requests = []


def mock_requests_get(monkeypatch, status_code: int = 200, error: Exception = None) -> Calls:
    calls = Calls()

    def mock_get(url, headers=None, params=None, verify=True, timeout=None):
        calls.requests.append({"url": url, "headers": headers, "timeout": timeout})
        if error:
            raise error
        response = requests.Response()
        response.status_code = status_code
        response.url = url
        return response

    monkeypatch.setattr(rest_client.requests, "get", mock_get)
    return calls


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://github.com/a/b", GitHost.GitHub),
        ("https://www.github.com/a/b", GitHost.GitHub),
        ("http://github.com:443/a/b", GitHost.GitHub),
        ("github.com/a/b", GitHost.GitHub),
        ("https://gitlab.com/group/project.git", GitHost.GitLab),
        ("https://example.com/a/b", GitHost.Unknown),
        ("http://github.com.evil.com/a/b", GitHost.Unknown),
        ("not a url", GitHost.Unknown),
    ],
)
def test_identify_git_host(url, expected):
    assert identify_git_host(url) == expected


def test_owner_and_repo():
    assert get_owner_and_repo("https://github.com/example/hello-python.git") == ("example", "hello-python")
    assert get_owner_and_repo("github.com/example/hello-python/tree/main") == ("example", "hello-python")
    assert not is_valid_url("not a url")
    assert not is_valid_url("")


def test_probe_github_success(monkeypatch):
    calls = mock_requests_get(monkeypatch, 200)
    service = GitService(OperatorConfig(git_request_timeout=7))

    assert service.probe("https://github.com/example/hello-python.git", "release/1.0") == (True, ConditionReason.Succeeded)
    assert len(calls.requests) == 1
    request = calls.requests[0]
    assert request["url"] == "https://api.github.com/repos/example/hello-python/commits/release%2F1.0"
    assert "Authorization" not in request["headers"]
    assert request["timeout"] == 7


def test_probe_github_with_token_and_default_ref(monkeypatch):
    calls = mock_requests_get(monkeypatch, 200)
    reachable, reason = GitService().probe("https://github.com/example/private", None, "s3cr3t")

    assert reachable
    assert calls.requests[0]["url"].endswith("/commits/main")
    assert calls.requests[0]["headers"]["Authorization"] == "Bearer s3cr3t"


@pytest.mark.parametrize(
    "status_code, expected",
    [
        (404, ConditionReason.RepoNotFound),
        (403, ConditionReason.RateLimitExceeded),
        (429, ConditionReason.RateLimitExceeded),
        (500, ConditionReason.RepoNotReachable),
        (401, ConditionReason.RepoNotReachable),
    ],
)
def test_probe_http_errors(monkeypatch, status_code, expected):
    mock_requests_get(monkeypatch, status_code)
    assert GitService().probe("https://github.com/a/b", "main") == (False, expected)


def test_probe_transport_error(monkeypatch):
    mock_requests_get(monkeypatch, error=requests.ConnectionError("connection refused"))
    assert GitService().probe("https://github.com/a/b", "main") == (False, ConditionReason.RepoNotReachable)


def test_probe_without_network_call(monkeypatch):
    calls = mock_requests_get(monkeypatch, 200)
    service = GitService()

    assert service.probe("not a url", "main") == (False, ConditionReason.InvalidURL)
    assert service.probe("https://example.com/a/b", "main") == (False, ConditionReason.UnsupportedHostType)
    assert service.probe("https://github.com/only-owner", "main") == (False, ConditionReason.InvalidURL)
    assert service.probe("https://gitlab.com/group/project", "main") == (False, ConditionReason.AccessTokenRequired)
    assert len(calls.requests) == 0


def test_probe_gitlab_with_token(monkeypatch):
    calls = mock_requests_get(monkeypatch, 200)
    reachable, reason = GitService().probe("https://gitlab.com/group/project.git", "v1.2.0", "glpat-token")

    assert (reachable, reason) == (True, ConditionReason.Succeeded)
    request = calls.requests[0]
    assert request["url"] == "https://gitlab.com/api/v4/projects/group%2Fproject/repository/commits/v1.2.0"
    assert request["headers"]["PRIVATE-TOKEN"] == "glpat-token"
