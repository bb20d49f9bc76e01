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

import os
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BUILDER_IMAGE_NAMESPACE = "openshift"
DEFAULT_IMAGE_REGISTRY = "image-registry.openshift-image-registry.svc:5000"
DEFAULT_GIT_SECRET_KEY = "password"
DEFAULT_GITHUB_API_HOST = "api.github.com"
DEFAULT_GITLAB_API_HOST = "gitlab.com"

PROJECT_LOG_LEVEL = os.getenv("PROJECT_LOG_LEVEL", "")
ROOT_LOG_LEVEL = os.getenv("ROOT_LOG_LEVEL", "")


class OperatorConfig(BaseSettings):
    builder_image_namespace: str = Field(
        DEFAULT_BUILDER_IMAGE_NAMESPACE, description="Namespace holding the builder image streams referenced by applications."
    )
    image_registry: str = Field(DEFAULT_IMAGE_REGISTRY, description="Internal image registry host the workloads pull from.")
    git_secret_key: str = Field(DEFAULT_GIT_SECRET_KEY, description="Key inside the source secret that holds the git access token.")
    build_poll_interval: int = Field(30, description="Seconds between polls while no build exists yet or the latest build is running.")
    workload_poll_interval: int = Field(10, description="Seconds between polls while the workload rollout is in progress.")
    resource_poll_interval: int = Field(
        3, description="Seconds to wait after creating a resource, and between polls for service and route presence."
    )
    status_update_retries: int = Field(3, description="Attempts to write status when the store reports a conflict.")
    conflict_requeue_interval: int = Field(1, description="Seconds to wait before retrying a pass whose status writes kept conflicting.")
    git_request_timeout: Optional[int] = Field(10, description="Timeout in seconds for the git host API request.")
    git_recheck_every_pass: bool = Field(
        False, description="Re-probe the git repository on every pass instead of reusing the recorded reachability."
    )
    github_api_host: str = Field(DEFAULT_GITHUB_API_HOST, description="Host of the GitHub REST API.")
    gitlab_api_host: str = Field(DEFAULT_GITLAB_API_HOST, description="Host of the GitLab REST API.")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_prefix="CONSOLE_APP_")


def load_config(path: Optional[Union[str, Path]] = None) -> OperatorConfig:
    if not path:
        return OperatorConfig()
    with Path(path).open("r") as f:
        data = yaml.safe_load(f)
    return OperatorConfig.model_validate(data if data else {})
