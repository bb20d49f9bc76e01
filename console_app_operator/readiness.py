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
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from console_app_operator.app.utils import parse_timestamp
from console_app_operator.models.status import ConditionReason
from console_app_operator.resource_mapper import BUILD_CONFIG_LABEL, ResourceDescriptor
from console_app_operator.store import ObjectStore, ResourceKind

logger = logging.getLogger(__name__)

BUILD_PHASES_IN_PROGRESS = ["New", "Pending", "Running"]
BUILD_PHASE_COMPLETE = "Complete"


class ReadinessOutcome(str, Enum):
    Ready = "Ready"
    NotReady = "NotReadyRetryable"
    Failed = "Failed"


class PollClass(str, Enum):
    Build = "build"
    Workload = "workload"
    Resource = "resource"


class Readiness(BaseModel):
    outcome: ReadinessOutcome
    reason: Optional[str] = Field(None, description="Reason code to record; falls back to the descriptor's reason when unset.")
    message: str = ""

    @property
    def is_ready(self) -> bool:
        return self.outcome == ReadinessOutcome.Ready

    @property
    def is_failed(self) -> bool:
        return self.outcome == ReadinessOutcome.Failed


def classify_builds(builds: List[Dict[str, Any]]) -> Readiness:
    if len(builds) == 0:
        return Readiness(outcome=ReadinessOutcome.NotReady, reason=ConditionReason.BuildsNotFound.value, message="Builds not created yet")

    latest = sorted(builds, key=lambda x: parse_timestamp(x.get("metadata", {}).get("creationTimestamp")), reverse=True)[0]
    name = latest.get("metadata", {}).get("name")
    phase = (latest.get("status") or {}).get("phase") or ""
    logger.debug(f"Latest build '{name}' is in phase '{phase}'")

    if phase in BUILD_PHASES_IN_PROGRESS:
        return Readiness(outcome=ReadinessOutcome.NotReady, reason=phase, message=f"{name} in progress")
    if phase == BUILD_PHASE_COMPLETE:
        return Readiness(outcome=ReadinessOutcome.Ready, reason=phase, message=f"{name} has completed")
    return Readiness(outcome=ReadinessOutcome.Failed, reason=ConditionReason.BuildsFailed.value, message=f"Build Phase: {phase}")


def classify_workload(deployment: Dict[str, Any]) -> Readiness:
    conditions = (deployment.get("status") or {}).get("conditions") or []
    if len(conditions) == 0:
        return Readiness(outcome=ReadinessOutcome.NotReady, reason=ConditionReason.WorkloadNotReady.value, message="Deployment not created yet")

    statuses = {x.get("type"): x.get("status") for x in conditions}
    progressing = statuses.get("Progressing")
    available = statuses.get("Available")

    if progressing is None:
        return Readiness(outcome=ReadinessOutcome.NotReady, reason=ConditionReason.WorkloadNotReady.value, message="Deployment Not Ready")
    if progressing == "True":
        if available == "True":
            return Readiness(outcome=ReadinessOutcome.Ready, reason=ConditionReason.WorkloadReady.value, message="Deployment Ready")
        # Available False, Unknown or not reported yet
        return Readiness(outcome=ReadinessOutcome.NotReady, reason=ConditionReason.WorkloadNotReady.value, message="Deployment Not Ready")
    return Readiness(outcome=ReadinessOutcome.Failed, reason=ConditionReason.WorkloadCreationFailed.value, message="Deployment Progressing Failed")


def classify_presence(obj: Optional[Dict[str, Any]]) -> Readiness:
    if not obj:
        return Readiness(outcome=ReadinessOutcome.NotReady, message="Not created yet")
    kind = obj.get("kind", "Resource")
    return Readiness(outcome=ReadinessOutcome.Ready, message=f"{kind} Ready")


def check_build_config(store: ObjectStore, descriptor: ResourceDescriptor, obj: Dict[str, Any]) -> Readiness:
    builds = store.list(ResourceKind.Build, descriptor.namespace, labels={BUILD_CONFIG_LABEL: descriptor.name})
    return classify_builds(builds)


def check_deployment(store: ObjectStore, descriptor: ResourceDescriptor, obj: Dict[str, Any]) -> Readiness:
    return classify_workload(obj)


def check_presence(store: ObjectStore, descriptor: ResourceDescriptor, obj: Dict[str, Any]) -> Readiness:
    return classify_presence(obj)


ResourceCheck = Callable[[ObjectStore, ResourceDescriptor, Dict[str, Any]], Readiness]


class KindHandler(BaseModel):
    check: Optional[ResourceCheck] = Field(
        None, description="Readiness classifier; None means the kind carries no readiness of its own."
    )
    poll_class: PollClass = PollClass.Resource
    wait_after_create: bool = Field(True, description="End the pass with a delayed retry right after creating the resource.")


KIND_HANDLERS: Dict[ResourceKind, KindHandler] = {
    ResourceKind.ImageStream: KindHandler(check=None, wait_after_create=False),
    ResourceKind.BuildConfig: KindHandler(check=check_build_config, poll_class=PollClass.Build),
    ResourceKind.Deployment: KindHandler(check=check_deployment, poll_class=PollClass.Workload),
    ResourceKind.Service: KindHandler(check=check_presence),
    ResourceKind.Route: KindHandler(check=check_presence),
}


def get_handler(kind: ResourceKind) -> KindHandler:
    handler = KIND_HANDLERS.get(kind)
    if handler is None:
        raise ValueError(f"No readiness handler registered for kind '{kind}'")
    return handler


def route_url(route: Dict[str, Any]) -> Optional[str]:
    spec = route.get("spec") or {}
    host = spec.get("host")
    if not host:
        ingress = (route.get("status") or {}).get("ingress") or []
        host = ingress[0].get("host") if len(ingress) > 0 else None
    if not host:
        return None
    scheme = "https" if spec.get("tls") else "http"
    return f"{scheme}://{host}"

