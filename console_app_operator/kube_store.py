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

import base64
import logging
from typing import Any, Dict, List, Optional, Tuple

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException

from console_app_operator.store import (
    API_VERSIONS,
    AlreadyExistsError,
    ConflictError,
    CredentialStore,
    NotFoundError,
    ObjectRejectedError,
    ObjectStore,
    ResourceKind,
    StoreError,
)

logger = logging.getLogger(__name__)

REJECTED_STATUSES = [400, 403, 422]

PLURALS: Dict[ResourceKind, str] = {
    ResourceKind.ConsoleApplication: "consoleapplications",
    ResourceKind.ImageStream: "imagestreams",
    ResourceKind.BuildConfig: "buildconfigs",
    ResourceKind.Build: "builds",
    ResourceKind.Deployment: "deployments",
    ResourceKind.Route: "routes",
}


def load_kube_config():
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()


def group_version(kind: ResourceKind) -> Tuple[str, str]:
    group, _, version = API_VERSIONS[kind].rpartition("/")
    return group, version


def label_selector(labels: Optional[Dict[str, str]]) -> Optional[str]:
    if not labels:
        return None
    return ",".join([f"{k}={v}" for k, v in labels.items()])


def translate(e: ApiException, kind: str, name: Optional[str], on_conflict=ConflictError) -> StoreError:
    message = f"{e.status} {e.reason}"
    if e.status == 404:
        return NotFoundError(message, kind=kind, name=name)
    if e.status == 409:
        return on_conflict(message, kind=kind, name=name)
    if e.status in REJECTED_STATUSES:
        return ObjectRejectedError(message, kind=kind, name=name)
    return StoreError(message, kind=kind, name=name)


class KubernetesObjectStore(ObjectStore):
    """Object store over the cluster API.

    Grouped kinds (OpenShift, apps, the ConsoleApplication itself) go through
    CustomObjectsApi; the core Service kind goes through CoreV1Api and is
    serialized back to its wire form so callers only ever see plain dicts.
    """

    def __init__(self, api_client: Optional[client.ApiClient] = None) -> None:
        if api_client is None:
            load_kube_config()
            api_client = client.ApiClient()
        self.api_client = api_client
        self.custom_api = client.CustomObjectsApi(api_client)
        self.core_api = client.CoreV1Api(api_client)

    def _to_dict(self, obj) -> Dict[str, Any]:
        if isinstance(obj, dict):
            return obj
        return self.api_client.sanitize_for_serialization(obj)

    def get(self, kind: ResourceKind, namespace: str, name: str) -> Dict[str, Any]:
        try:
            if kind == ResourceKind.Service:
                obj = self.core_api.read_namespaced_service(name, namespace)
            else:
                group, version = group_version(kind)
                obj = self.custom_api.get_namespaced_custom_object(group, version, namespace, PLURALS[kind], name)
        except ApiException as e:
            raise translate(e, kind.value, name)
        return self._to_dict(obj)

    def list(self, kind: ResourceKind, namespace: str, labels: Optional[Dict[str, str]] = None) -> List[Dict[str, Any]]:
        selector = label_selector(labels)
        try:
            if kind == ResourceKind.Service:
                found = self.core_api.list_namespaced_service(namespace, label_selector=selector)
            else:
                group, version = group_version(kind)
                found = self.custom_api.list_namespaced_custom_object(group, version, namespace, PLURALS[kind], label_selector=selector)
        except ApiException as e:
            raise translate(e, kind.value, None)
        return self._to_dict(found).get("items") or []

    def create(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        kind = ResourceKind(obj.get("kind"))
        metadata = obj.get("metadata", {})
        namespace = metadata.get("namespace")
        try:
            if kind == ResourceKind.Service:
                created = self.core_api.create_namespaced_service(namespace, obj)
            else:
                group, version = group_version(kind)
                created = self.custom_api.create_namespaced_custom_object(group, version, namespace, PLURALS[kind], obj)
        except ApiException as e:
            raise translate(e, kind.value, metadata.get("name"), on_conflict=AlreadyExistsError)
        logger.debug(f"Created {kind.value} '{namespace}/{metadata.get('name')}'")
        return self._to_dict(created)

    def update_status(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        kind = ResourceKind(obj.get("kind"))
        metadata = obj.get("metadata", {})
        group, version = group_version(kind)
        try:
            updated = self.custom_api.replace_namespaced_custom_object_status(
                group, version, metadata.get("namespace"), PLURALS[kind], metadata.get("name"), obj
            )
        except ApiException as e:
            raise translate(e, kind.value, metadata.get("name"))
        return self._to_dict(updated)


class KubernetesCredentialStore(CredentialStore):

    def __init__(self, api_client: Optional[client.ApiClient] = None) -> None:
        if api_client is None:
            load_kube_config()
            api_client = client.ApiClient()
        self.core_api = client.CoreV1Api(api_client)

    def get(self, namespace: str, name: str) -> Dict[str, bytes]:
        try:
            secret = self.core_api.read_namespaced_secret(name, namespace)
        except ApiException as e:
            raise translate(e, ResourceKind.Secret.value, name)
        data = secret.data or {}
        return {k: base64.b64decode(v) for k, v in data.items() if v is not None}
