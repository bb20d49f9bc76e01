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

from typing import Any, Dict, List, Optional, Tuple

from console_app_operator.git_service.service import GitService
from console_app_operator.models.application import API_VERSION, KIND
from console_app_operator.models.status import ConditionReason
from console_app_operator.store import API_VERSIONS, ResourceKind
from tests.fake_store import FakeCredentialStore, FakeObjectStore

NAMESPACE = "demo"
NAME = "myapp"
GIT_URL = "https://github.com/example/hello-python.git"
BUILDER_IMAGE = "python"
BUILDER_TAG = "3.9-ubi8"


def build_spec(
    import_strategy: str = "BuilderImage",
    image: str = BUILDER_IMAGE,
    tag: str = BUILDER_TAG,
    create_route: bool = True,
    secret: Optional[str] = None,
    git_url: str = GIT_URL,
) -> Dict[str, Any]:
    git = {"url": git_url, "reference": "main", "contextDir": "/app"}
    if secret:
        git["sourceSecretRef"] = secret
    return {
        "applicationName": "sample-app",
        "git": git,
        "importStrategy": import_strategy,
        "buildConfiguration": {
            "builderImage": {"image": image, "tag": tag},
            "buildOption": "BuildConfig",
            "env": [{"name": "PIP_INDEX_URL", "value": "https://pypi.example.com/simple"}],
        },
        "deploymentConfiguration": {
            "resourceType": "Deployment",
            "replicas": 2,
            "env": [{"name": "APP_MODE", "value": "production"}],
            "expose": {"targetPort": 8080, "createRoute": create_route},
        },
    }


def build_app(name: str = NAME, namespace: str = NAMESPACE, generation: int = 1, **kwargs) -> Dict[str, Any]:
    return {
        "apiVersion": API_VERSION,
        "kind": KIND,
        "metadata": {
            "name": name,
            "namespace": namespace,
            "uid": "0b6d2c2e-4d3b-4a0c-9c1f-5a1f6f0e9d11",
            "generation": generation,
            "labels": {"team": "payments"},
        },
        "spec": build_spec(**kwargs),
    }


def build_image_stream(name: str = BUILDER_IMAGE, namespace: str = "openshift", tags: Optional[List[str]] = None) -> Dict[str, Any]:
    tags = tags if tags is not None else [BUILDER_TAG, "latest"]
    return {
        "apiVersion": API_VERSIONS[ResourceKind.ImageStream],
        "kind": ResourceKind.ImageStream.value,
        "metadata": {"name": name, "namespace": namespace},
        "status": {"tags": [{"tag": x} for x in tags]},
    }


def new_stores(app: Optional[Dict[str, Any]] = None, with_builder_image: bool = True, secrets=None) -> Tuple[FakeObjectStore, FakeCredentialStore]:
    store = FakeObjectStore()
    store.add(app if app else build_app())
    if with_builder_image:
        store.add(build_image_stream())
    return store, FakeCredentialStore(secrets)


class RecordingGitService(GitService):
    """Answers every probe with a fixed result and records the calls."""

    def __init__(self, reachable: bool = True, reason: ConditionReason = ConditionReason.Succeeded):
        super().__init__(providers={})
        self.result = (reachable, reason)
        self.calls = []

    def probe(self, git_url: str, ref: Optional[str] = None, credential: Optional[str] = None):
        self.calls.append((git_url, ref, credential))
        return self.result
