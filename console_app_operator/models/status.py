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

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ConditionStatus(str, Enum):
    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


class ConditionType(str, Enum):
    Ready = "Ready"
    Progressing = "Progressing"
    GitRepoReachable = "GitRepoReachable"
    BuildReady = "BuildReady"
    WorkloadReady = "WorkloadReady"
    ServiceReady = "ServiceReady"
    RouteReady = "RouteReady"


class ConditionReason(str, Enum):
    # lifecycle
    Init = "Init"
    RequirementsNotMet = "RequirementsNotMet"
    RequirementsBeingMet = "RequirementsBeingMet"
    RequirementsMet = "RequirementsMet"
    AllResourcesReady = "AllResourcesReady"
    SecretResourceNotFound = "SecretResourceNotFound"

    # git repository probe
    Succeeded = "Succeeded"
    RepoNotFound = "RepoNotFound"
    RepoNotReachable = "RepoNotReachable"
    RateLimitExceeded = "RateLimitExceeded"
    UnsupportedHostType = "UnsupportedHostType"
    InvalidURL = "InvalidURL"
    AccessTokenRequired = "AccessTokenRequired"

    # image stream
    ImageStreamNotFound = "ImageStreamNotFound"
    ImageStreamCreationFailed = "ImageStreamCreationFailed"

    # build
    BuildConfigCreated = "BuildConfigCreated"
    BuildConfigCreationFailed = "BuildConfigCreationFailed"
    BuildsNotFound = "BuildsNotFound"
    BuildsFailed = "BuildsFailed"

    # workload
    WorkloadCreationFailed = "WorkloadCreationFailed"
    WorkloadNotReady = "WorkloadNotReady"
    WorkloadReady = "WorkloadReady"

    # service
    ServiceCreationFailed = "ServiceCreationFailed"
    ServiceNotReady = "ServiceNotReady"
    ServiceReady = "ServiceReady"

    # route
    RouteCreationFailed = "RouteCreationFailed"
    RouteNotReady = "RouteNotReady"
    RouteReady = "RouteReady"


class Condition(BaseModel):
    type: str = Field(..., description="The type of condition (e.g., 'Ready', 'Progressing', 'BuildReady').")
    status: ConditionStatus = Field(..., description='The status of the condition: "True", "False", or "Unknown".')
    reason: str = Field(..., description="A brief machine-readable explanation for the condition's status.")
    message: Optional[str] = Field(default=None, description="A human-readable message indicating details about the condition.")
    lastTransitionTime: datetime = Field(..., description="The last time the condition transitioned from one status to another.")
    observedGeneration: Optional[int] = Field(default=None, description="The generation of the spec the condition was set against.")


class Status(BaseModel):
    conditions: List[Condition] = Field(default_factory=list, description="List of conditions for the application.")
