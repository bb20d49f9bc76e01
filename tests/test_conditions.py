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

from datetime import datetime, timezone

from console_app_operator import conditions as conditions_module
from console_app_operator.conditions import ConditionStore
from console_app_operator.models.application import ConsoleApplication
from console_app_operator.models.status import (
    ConditionReason,
    ConditionStatus,
    ConditionType,
)
from tests import fixtures


def build_store(generation=1) -> ConditionStore:
    app = ConsoleApplication.from_object(fixtures.build_app(generation=generation))
    return ConditionStore(app)


def freeze_time(monkeypatch, value: datetime):
    monkeypatch.setattr(conditions_module, "get_timestamp", lambda: value)


def test_set_then_get_returns_what_was_set():
    store = build_store()
    store.set_condition(ConditionType.BuildReady, ConditionStatus.UNKNOWN, ConditionReason.BuildConfigCreated, "BuildConfig Created")

    condition = store.get(ConditionType.BuildReady)
    assert condition.status == ConditionStatus.UNKNOWN
    assert condition.reason == "BuildConfigCreated"
    assert condition.message == "BuildConfig Created"
    assert condition.observedGeneration == 1
    assert store.dirty


def test_same_status_keeps_transition_time(monkeypatch):
    store = build_store()
    first = datetime(2024, 10, 1, tzinfo=timezone.utc)
    freeze_time(monkeypatch, first)
    store.set_condition(ConditionType.WorkloadReady, ConditionStatus.UNKNOWN, ConditionReason.WorkloadNotReady, "Deployment not created yet")
    store.dirty = False

    freeze_time(monkeypatch, datetime(2024, 10, 2, tzinfo=timezone.utc))
    store.set_condition(ConditionType.WorkloadReady, ConditionStatus.UNKNOWN, ConditionReason.WorkloadNotReady, "Deployment Not Ready")

    condition = store.get(ConditionType.WorkloadReady)
    assert condition.lastTransitionTime == first
    assert condition.message == "Deployment Not Ready"
    assert store.dirty


def test_identical_upsert_is_not_a_change():
    store = build_store()
    store.set_condition(ConditionType.ServiceReady, ConditionStatus.TRUE, ConditionReason.ServiceReady, "Service Ready")
    store.dirty = False

    store.set_condition(ConditionType.ServiceReady, ConditionStatus.TRUE, ConditionReason.ServiceReady, "Service Ready")
    assert not store.dirty
    assert len(store.conditions) == 1


def test_status_change_moves_transition_time(monkeypatch):
    store = build_store()
    freeze_time(monkeypatch, datetime(2024, 10, 1, tzinfo=timezone.utc))
    store.set_condition(ConditionType.RouteReady, ConditionStatus.UNKNOWN, ConditionReason.RouteNotReady)

    later = datetime(2024, 10, 3, tzinfo=timezone.utc)
    freeze_time(monkeypatch, later)
    store.set_condition(ConditionType.RouteReady, ConditionStatus.TRUE, ConditionReason.RouteReady)
    assert store.get(ConditionType.RouteReady).lastTransitionTime == later
    assert store.is_true(ConditionType.RouteReady)


def test_lifecycle_marks():
    store = build_store()
    assert store.needs_start()

    store.mark_started()
    assert store.get(ConditionType.Ready).status == ConditionStatus.UNKNOWN
    assert store.get(ConditionType.Ready).reason == "Init"
    assert store.is_true(ConditionType.Progressing)
    assert not store.needs_start()

    store.mark_failed(ConditionReason.BuildsFailed, "Build Phase: Failed")
    ready = store.get(ConditionType.Ready)
    assert ready.status == ConditionStatus.FALSE
    assert ready.reason == "BuildsFailed"
    assert ready.message == "Build Phase: Failed"
    assert store.get(ConditionType.Progressing).reason == "RequirementsNotMet"
    assert not store.needs_start()

    store.mark_succeeded()
    assert store.is_true(ConditionType.Ready)
    assert store.get(ConditionType.Progressing).status == ConditionStatus.FALSE
    assert store.get(ConditionType.Progressing).reason == "RequirementsMet"


def test_generation_change_needs_start():
    store = build_store(generation=1)
    store.mark_started()
    store.mark_failed(ConditionReason.RepoNotFound, "Git Repository Not Reachable: RepoNotFound")

    store.app.metadata.generation = 2
    assert store.needs_start()


def test_application_url():
    store = build_store()
    store.set_application_url(None)
    assert not store.dirty

    store.set_application_url("https://myapp-demo.apps.example.com")
    assert store.app.status.applicationURL == "https://myapp-demo.apps.example.com"
    assert store.dirty
