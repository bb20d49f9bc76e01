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

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional

from console_app_operator.models.application import API_VERSION, KIND


class ResourceKind(str, Enum):
    ConsoleApplication = KIND
    Secret = "Secret"
    ImageStream = "ImageStream"
    BuildConfig = "BuildConfig"
    Build = "Build"
    Deployment = "Deployment"
    Service = "Service"
    Route = "Route"


API_VERSIONS: Dict[ResourceKind, str] = {
    ResourceKind.ConsoleApplication: API_VERSION,
    ResourceKind.Secret: "v1",
    ResourceKind.ImageStream: "image.openshift.io/v1",
    ResourceKind.BuildConfig: "build.openshift.io/v1",
    ResourceKind.Build: "build.openshift.io/v1",
    ResourceKind.Deployment: "apps/v1",
    ResourceKind.Service: "v1",
    ResourceKind.Route: "route.openshift.io/v1",
}


class StoreError(Exception):

    def __init__(self, message: str, kind: Optional[str] = None, name: Optional[str] = None):
        self.message = message
        self.kind = kind
        self.name = name
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.kind and self.name:
            return f"{self.kind} '{self.name}': {self.message}"
        return self.message


class NotFoundError(StoreError):
    pass


class AlreadyExistsError(StoreError):
    pass


class ConflictError(StoreError):
    pass


class ObjectRejectedError(StoreError):
    """The store refused the object for a reason retrying will not fix (invalid, forbidden)."""


class ObjectStore(ABC):

    @abstractmethod
    def get(self, kind: ResourceKind, namespace: str, name: str) -> Dict[str, Any]:
        """Return the object or raise NotFoundError."""

    @abstractmethod
    def list(self, kind: ResourceKind, namespace: str, labels: Optional[Dict[str, str]] = None) -> List[Dict[str, Any]]: ...

    @abstractmethod
    def create(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        """Create the object; raise AlreadyExistsError, ObjectRejectedError or StoreError."""

    @abstractmethod
    def update_status(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        """Replace the status of the object; raise ConflictError when its resourceVersion is stale."""


class CredentialStore(ABC):

    @abstractmethod
    def get(self, namespace: str, name: str) -> Dict[str, bytes]:
        """Return the decoded data of the named secret or raise NotFoundError."""


def object_key(obj: Dict[str, Any]) -> str:
    metadata = obj.get("metadata", {})
    return f"{obj.get('kind')}/{metadata.get('namespace')}/{metadata.get('name')}"


def set_owner(child: Dict[str, Any], owner: Dict[str, Any]) -> Dict[str, Any]:
    """Tag the child with a controller reference so the store garbage-collects it with the owner."""
    owner_metadata = owner.get("metadata", {})
    reference = {
        "apiVersion": owner.get("apiVersion"),
        "kind": owner.get("kind"),
        "name": owner_metadata.get("name"),
        "uid": owner_metadata.get("uid"),
        "controller": True,
        "blockOwnerDeletion": True,
    }
    metadata = child.setdefault("metadata", {})
    references = [x for x in metadata.get("ownerReferences", []) if not x.get("controller")]
    references.append(reference)
    metadata["ownerReferences"] = references
    return child
