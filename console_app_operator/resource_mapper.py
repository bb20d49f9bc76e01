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

import json
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from console_app_operator.app.config import OperatorConfig
from console_app_operator.models.application import (
    BuildOption,
    ConsoleApplication,
    ImportStrategy,
)
from console_app_operator.models.status import ConditionReason, ConditionType
from console_app_operator.store import API_VERSIONS, ResourceKind

logger = logging.getLogger(__name__)

APP_LABEL = "app"
BUILD_CONFIG_LABEL = "openshift.io/build-config.name"
ANNOTATION_VCS_URI = "app.openshift.io/vcs-uri"
ANNOTATION_VCS_REF = "app.openshift.io/vcs-ref"
ANNOTATION_RESOLVE_NAMES = "alpha.image.policy.openshift.io/resolve-names"
ANNOTATION_IMAGE_TRIGGERS = "image.openshift.io/triggers"
ANNOTATION_HOST_GENERATED = "openshift.io/host.generated"


class RequirementsNotMetError(Exception):

    def __init__(self, message: str, reason: ConditionReason = ConditionReason.RequirementsNotMet):
        self.message = message
        self.reason = reason
        super().__init__(message)


class ResourceDescriptor(BaseModel):
    kind: ResourceKind
    name: str
    namespace: str
    manifest: Dict[str, Any] = Field(..., description="The object to create when the resource does not exist yet.")
    condition_type: ConditionType
    create_failed_reason: ConditionReason
    not_ready_reason: Optional[ConditionReason] = Field(None, description="Reason recorded while the resource is being materialized.")
    ready_reason: Optional[ConditionReason] = Field(None, description="Reason recorded once the resource is ready.")


class PrerequisiteCheck(BaseModel):
    kind: ResourceKind
    name: str
    namespace: str
    not_found_reason: ConditionReason
    check: Callable[[Dict[str, Any]], Tuple[bool, str]] = Field(..., description="Inspects the fetched object; returns (ok, message).")


class ResourceMapper:
    """Projects a ConsoleApplication spec onto the resources it requires, in creation order.

    The result is recomputed on every pass and never stored.
    """

    def __init__(self, app: ConsoleApplication, config: Optional[OperatorConfig] = None) -> None:
        self.app = app
        self.config = config if config else OperatorConfig()

    @property
    def is_builder_image_strategy(self) -> bool:
        return self.app.spec.importStrategy == ImportStrategy.BuilderImage

    def sanity_check(self):
        if self.is_builder_image_strategy:
            builder_image = self.app.spec.buildConfiguration.builderImage
            if not builder_image.image or not builder_image.tag:
                raise RequirementsNotMetError("Builder image and tag not provided")

    def required_prerequisites(self) -> List[PrerequisiteCheck]:
        self.sanity_check()
        prerequisites = []
        if self.is_builder_image_strategy:
            builder_image = self.app.spec.buildConfiguration.builderImage
            prerequisites.append(
                PrerequisiteCheck(
                    kind=ResourceKind.ImageStream,
                    name=builder_image.image,
                    namespace=self.config.builder_image_namespace,
                    not_found_reason=ConditionReason.ImageStreamNotFound,
                    check=lambda obj: check_image_stream_tag(obj, builder_image.tag),
                )
            )
        return prerequisites

    def map_resources(self) -> List[ResourceDescriptor]:
        self.sanity_check()
        app = self.app
        spec = app.spec
        resources: List[ResourceDescriptor] = []

        def describe(kind: ResourceKind, manifest: Dict[str, Any], **kwargs) -> ResourceDescriptor:
            return ResourceDescriptor(kind=kind, name=app.name, namespace=app.namespace, manifest=manifest, **kwargs)

        resources.append(
            describe(
                ResourceKind.ImageStream,
                new_image_stream(app),
                condition_type=ConditionType.BuildReady,
                create_failed_reason=ConditionReason.ImageStreamCreationFailed,
            )
        )

        if self.is_builder_image_strategy and spec.buildConfiguration.buildOption == BuildOption.BuildConfig:
            resources.append(
                describe(
                    ResourceKind.BuildConfig,
                    new_build_config(app, self.config),
                    condition_type=ConditionType.BuildReady,
                    create_failed_reason=ConditionReason.BuildConfigCreationFailed,
                    not_ready_reason=ConditionReason.BuildConfigCreated,
                )
            )

        resources.append(
            describe(
                ResourceKind.Deployment,
                new_deployment(app, self.config),
                condition_type=ConditionType.WorkloadReady,
                create_failed_reason=ConditionReason.WorkloadCreationFailed,
                not_ready_reason=ConditionReason.WorkloadNotReady,
                ready_reason=ConditionReason.WorkloadReady,
            )
        )

        resources.append(
            describe(
                ResourceKind.Service,
                new_service(app),
                condition_type=ConditionType.ServiceReady,
                create_failed_reason=ConditionReason.ServiceCreationFailed,
                not_ready_reason=ConditionReason.ServiceNotReady,
                ready_reason=ConditionReason.ServiceReady,
            )
        )

        if spec.deploymentConfiguration.expose.createRoute:
            resources.append(
                describe(
                    ResourceKind.Route,
                    new_route(app),
                    condition_type=ConditionType.RouteReady,
                    create_failed_reason=ConditionReason.RouteCreationFailed,
                    not_ready_reason=ConditionReason.RouteNotReady,
                    ready_reason=ConditionReason.RouteReady,
                )
            )

        logger.debug(f"Resources required for '{app.name}': {[x.kind.value for x in resources]}")
        return resources


def check_image_stream_tag(image_stream: Dict[str, Any], tag: str) -> Tuple[bool, str]:
    name = image_stream.get("metadata", {}).get("name")
    tags = (image_stream.get("status") or {}).get("tags") or []
    if any(x.get("tag") == tag for x in tags):
        return True, f"ImageStreamTag {name}:{tag} found"
    return False, f"ImageStreamTag {name}:{tag} not found"


def merge_maps(*maps: Optional[Dict[str, str]]) -> Dict[str, str]:
    merged: Dict[str, str] = {}
    for m in maps:
        if m:
            merged.update(m)
    return merged


def default_labels(app: ConsoleApplication) -> Dict[str, str]:
    labels = {
        APP_LABEL: app.name,
        "app.kubernetes.io/name": app.name,
        "app.kubernetes.io/instance": app.name,
        "app.kubernetes.io/component": app.name,
        "app.kubernetes.io/part-of": app.spec.applicationName or app.name,
    }
    builder_image = app.spec.buildConfiguration.builderImage
    if app.spec.importStrategy == ImportStrategy.BuilderImage and builder_image.image:
        labels["app.openshift.io/runtime"] = builder_image.image
    return labels


def default_annotations(app: ConsoleApplication) -> Dict[str, str]:
    return {
        ANNOTATION_VCS_URI: app.spec.git.url,
        ANNOTATION_VCS_REF: app.spec.git.reference or "",
    }


def new_metadata(app: ConsoleApplication, extra_annotations: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    return {
        "name": app.name,
        "namespace": app.namespace,
        "labels": merge_maps(default_labels(app), app.metadata.labels),
        "annotations": merge_maps(default_annotations(app), app.metadata.annotations, extra_annotations),
    }


def port_name(app: ConsoleApplication) -> str:
    return f"{app.spec.deploymentConfiguration.expose.targetPort}-tcp"


def env_list(env) -> List[Dict[str, str]]:
    return [{"name": x.name, "value": x.value or ""} for x in env]


def new_image_stream(app: ConsoleApplication) -> Dict[str, Any]:
    return {
        "apiVersion": API_VERSIONS[ResourceKind.ImageStream],
        "kind": ResourceKind.ImageStream.value,
        "metadata": {
            "name": app.name,
            "namespace": app.namespace,
            "labels": default_labels(app),
            "annotations": default_annotations(app),
        },
    }


def new_build_config(app: ConsoleApplication, config: OperatorConfig) -> Dict[str, Any]:
    git = app.spec.git
    builder_image = app.spec.buildConfiguration.builderImage
    source: Dict[str, Any] = {
        "type": "Git",
        "contextDir": git.contextDir,
        "git": {"uri": git.url, "ref": git.reference},
    }
    if git.sourceSecretRef:
        source["sourceSecret"] = {"name": git.sourceSecretRef}

    return {
        "apiVersion": API_VERSIONS[ResourceKind.BuildConfig],
        "kind": ResourceKind.BuildConfig.value,
        "metadata": new_metadata(app),
        "spec": {
            "source": source,
            "strategy": {
                "type": "Source",
                "sourceStrategy": {
                    "from": {
                        "kind": "ImageStreamTag",
                        "name": f"{builder_image.image}:{builder_image.tag}",
                        "namespace": config.builder_image_namespace,
                    },
                    "env": env_list(app.spec.buildConfiguration.env),
                },
            },
            "output": {"to": {"kind": "ImageStreamTag", "name": f"{app.name}:latest"}},
            "triggers": [
                {"type": "ConfigChange"},
                {"type": "ImageChange", "imageChange": {}},
                {"type": "Generic", "generic": {"secret": f"{app.name}-generic-webhook-secret"}},
            ],
        },
    }


def new_deployment(app: ConsoleApplication, config: OperatorConfig) -> Dict[str, Any]:
    deployment = app.spec.deploymentConfiguration
    image_triggers = [
        {
            "from": {"kind": "ImageStreamTag", "name": f"{app.name}:latest", "namespace": app.namespace},
            "fieldPath": f'spec.template.spec.containers[?(@.name=="{app.name}")].image',
            "pause": "false",
        }
    ]
    annotations = {
        ANNOTATION_RESOLVE_NAMES: "*",
        ANNOTATION_IMAGE_TRIGGERS: json.dumps(image_triggers),
    }
    return {
        "apiVersion": API_VERSIONS[ResourceKind.Deployment],
        "kind": ResourceKind.Deployment.value,
        "metadata": new_metadata(app, annotations),
        "spec": {
            "replicas": deployment.replicas,
            "selector": {"matchLabels": {APP_LABEL: app.name}},
            "template": {
                "metadata": {"labels": merge_maps(app.metadata.labels, {APP_LABEL: app.name})},
                "spec": {
                    "containers": [
                        {
                            "name": app.name,
                            "image": f"{config.image_registry}/{app.namespace}/{app.name}:latest",
                            "env": env_list(deployment.env),
                            "ports": [{"containerPort": deployment.expose.targetPort, "protocol": "TCP"}],
                        }
                    ]
                },
            },
        },
    }


def new_service(app: ConsoleApplication) -> Dict[str, Any]:
    target_port = app.spec.deploymentConfiguration.expose.targetPort
    return {
        "apiVersion": API_VERSIONS[ResourceKind.Service],
        "kind": ResourceKind.Service.value,
        "metadata": new_metadata(app),
        "spec": {
            "selector": {APP_LABEL: app.name},
            "ports": [{"name": port_name(app), "port": target_port, "targetPort": target_port, "protocol": "TCP"}],
        },
    }


def new_route(app: ConsoleApplication) -> Dict[str, Any]:
    return {
        "apiVersion": API_VERSIONS[ResourceKind.Route],
        "kind": ResourceKind.Route.value,
        "metadata": new_metadata(app, {ANNOTATION_HOST_GENERATED: "true"}),
        "spec": {
            "to": {"kind": ResourceKind.Service.value, "name": app.name},
            "port": {"targetPort": port_name(app)},
            "wildcardPolicy": "None",
            "tls": {"termination": "edge", "insecureEdgeTerminationPolicy": "Redirect"},
        },
    }
