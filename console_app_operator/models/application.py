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

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from console_app_operator.models.status import Status

API_GROUP = "apps.console.dev"
API_VERSION = f"{API_GROUP}/v1alpha1"
KIND = "ConsoleApplication"


class ImportStrategy(str, Enum):
    BuilderImage = "BuilderImage"
    Dockerfile = "Dockerfile"


class BuildOption(str, Enum):
    BuildConfig = "BuildConfig"


class WorkloadType(str, Enum):
    Deployment = "Deployment"


class EnvVar(BaseModel):
    name: str
    value: Optional[str] = ""


class ObjectMeta(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="The name of the object, unique within its namespace.")
    namespace: str = Field("default", description="The namespace the object lives in.")
    uid: Optional[str] = Field(None, description="Unique identifier assigned by the store.")
    generation: Optional[int] = Field(None, description="Sequence number of the spec, bumped by the store on every spec change.")
    resourceVersion: Optional[str] = Field(None, description="Opaque version used for optimistic concurrency.")
    labels: Optional[Dict[str, str]] = None
    annotations: Optional[Dict[str, str]] = None


class Git(BaseModel):
    url: str = Field(..., description="The git repository URL.")
    contextDir: Optional[str] = Field("/", description="The directory within the repository to use as the build context.")
    reference: Optional[str] = Field("main", description="The branch, tag, or commit.")
    sourceSecretRef: Optional[str] = Field(None, description="The name of the secret holding the git credentials.")


class BuilderImage(BaseModel):
    image: Optional[str] = Field("", description="The builder image stream name.")
    tag: Optional[str] = Field("", description="The builder image stream tag.")


class BuildConfiguration(BaseModel):
    builderImage: BuilderImage = Field(default_factory=BuilderImage)
    buildOption: Optional[BuildOption] = Field(BuildOption.BuildConfig, description="The build mechanism to use.")
    env: List[EnvVar] = Field(default_factory=list, description="Environment variables to set during the build.")


class Expose(BaseModel):
    targetPort: int = Field(8080, description="The port the application listens on.")
    createRoute: bool = Field(True, description="Set true to expose the application outside the cluster.")


class DeploymentConfiguration(BaseModel):
    resourceType: WorkloadType = Field(WorkloadType.Deployment, description="The kind of workload to run the application as.")
    replicas: Optional[int] = Field(1, description="The number of replicas of the workload.")
    env: List[EnvVar] = Field(default_factory=list, description="Environment variables to set on the running application.")
    expose: Expose = Field(default_factory=Expose)


class ConsoleApplicationSpec(BaseModel):
    applicationName: Optional[str] = Field("console-application", description="Groups the resources created for the application.")
    git: Git
    importStrategy: ImportStrategy
    buildConfiguration: BuildConfiguration = Field(default_factory=BuildConfiguration)
    deploymentConfiguration: DeploymentConfiguration = Field(default_factory=DeploymentConfiguration)


class ConsoleApplicationStatus(Status):
    applicationURL: Optional[str] = Field(None, description="The externally reachable URL of the application.")


class ConsoleApplication(BaseModel):
    apiVersion: str = API_VERSION
    kind: str = KIND
    metadata: ObjectMeta
    spec: ConsoleApplicationSpec
    status: ConsoleApplicationStatus = Field(default_factory=ConsoleApplicationStatus)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @classmethod
    def from_object(cls, obj: Dict[str, Any]) -> "ConsoleApplication":
        data = dict(obj)
        if not data.get("status"):
            data["status"] = {}
        return cls.model_validate(data)

    def to_object(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
