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

from console_app_operator.models.status import ConditionReason
from console_app_operator.readiness import (
    KIND_HANDLERS,
    PollClass,
    ReadinessOutcome,
    classify_builds,
    classify_presence,
    classify_workload,
    get_handler,
    route_url,
)
from console_app_operator.store import ResourceKind


def build(name, phase, created):
    return {"metadata": {"name": name, "creationTimestamp": created}, "status": {"phase": phase}}


def deployment(*conditions):
    return {"status": {"conditions": [{"type": x[0], "status": x[1]} for x in conditions]}}


def test_no_builds_yet():
    readiness = classify_builds([])
    assert readiness.outcome == ReadinessOutcome.NotReady
    assert readiness.reason == ConditionReason.BuildsNotFound.value


@pytest.mark.parametrize(
    "phase, outcome, reason",
    [
        ("New", ReadinessOutcome.NotReady, "New"),
        ("Pending", ReadinessOutcome.NotReady, "Pending"),
        ("Running", ReadinessOutcome.NotReady, "Running"),
        ("Complete", ReadinessOutcome.Ready, "Complete"),
        ("Failed", ReadinessOutcome.Failed, "BuildsFailed"),
        ("Error", ReadinessOutcome.Failed, "BuildsFailed"),
        ("Cancelled", ReadinessOutcome.Failed, "BuildsFailed"),
    ],
)
def test_build_phases(phase, outcome, reason):
    readiness = classify_builds([build("myapp-1", phase, "2024-10-01T00:00:00Z")])
    assert readiness.outcome == outcome
    assert readiness.reason == reason


def test_latest_build_wins():
    builds = [
        build("myapp-2", "Complete", "2024-10-01T00:10:00Z"),
        build("myapp-3", "Failed", "2024-10-01T00:20:00Z"),
        build("myapp-1", "Running", "2024-10-01T00:00:00Z"),
    ]
    readiness = classify_builds(builds)
    assert readiness.is_failed
    assert readiness.message == "Build Phase: Failed"

    builds.append(build("myapp-4", "Complete", "2024-10-01T00:30:00Z"))
    readiness = classify_builds(builds)
    assert readiness.is_ready
    assert readiness.message == "myapp-4 has completed"


@pytest.mark.parametrize(
    "obj, outcome, reason",
    [
        ({}, ReadinessOutcome.NotReady, "WorkloadNotReady"),
        ({"status": {}}, ReadinessOutcome.NotReady, "WorkloadNotReady"),
        (deployment(("Progressing", "True"), ("Available", "False")), ReadinessOutcome.NotReady, "WorkloadNotReady"),
        (deployment(("Progressing", "True")), ReadinessOutcome.NotReady, "WorkloadNotReady"),
        (deployment(("Available", "True")), ReadinessOutcome.NotReady, "WorkloadNotReady"),
        (deployment(("Progressing", "True"), ("Available", "True")), ReadinessOutcome.Ready, "WorkloadReady"),
        (deployment(("Progressing", "False"), ("Available", "False")), ReadinessOutcome.Failed, "WorkloadCreationFailed"),
        (deployment(("Progressing", "Unknown"), ("Available", "True")), ReadinessOutcome.Failed, "WorkloadCreationFailed"),
    ],
)
def test_workload(obj, outcome, reason):
    readiness = classify_workload(obj)
    assert readiness.outcome == outcome
    assert readiness.reason == reason


def test_presence():
    assert classify_presence(None).outcome == ReadinessOutcome.NotReady
    readiness = classify_presence({"kind": "Service", "metadata": {"name": "myapp"}})
    assert readiness.is_ready
    assert readiness.reason is None
    assert readiness.message == "Service Ready"


def test_route_url():
    assert route_url({"spec": {"host": "myapp.apps.example.com", "tls": {"termination": "edge"}}}) == "https://myapp.apps.example.com"
    assert route_url({"spec": {"host": "myapp.apps.example.com"}}) == "http://myapp.apps.example.com"
    assert route_url({"spec": {}, "status": {"ingress": [{"host": "generated.apps.example.com"}]}}) == "http://generated.apps.example.com"
    assert route_url({"spec": {}}) is None


def test_kind_handlers():
    assert set(KIND_HANDLERS.keys()) == {
        ResourceKind.ImageStream,
        ResourceKind.BuildConfig,
        ResourceKind.Deployment,
        ResourceKind.Service,
        ResourceKind.Route,
    }
    assert get_handler(ResourceKind.ImageStream).check is None
    assert not get_handler(ResourceKind.ImageStream).wait_after_create
    assert get_handler(ResourceKind.BuildConfig).poll_class == PollClass.Build
    assert get_handler(ResourceKind.Deployment).poll_class == PollClass.Workload
    assert get_handler(ResourceKind.Route).poll_class == PollClass.Resource
    with pytest.raises(ValueError):
        get_handler(ResourceKind.Secret)
