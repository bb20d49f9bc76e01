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

from prometheus_client import Counter, Gauge, Histogram

from console_app_operator.observer import EventData, Observer, ReconcileEvent

reconcile_total = Counter(
    "consoleapplication_reconcile_total",
    "Number of reconcile passes started per ConsoleApplication",
    ["namespace", "name"],
)
git_repo_reachable_duration = Histogram(
    "consoleapplication_git_repo_reachable_duration_seconds",
    "Time spent checking that the git repository is reachable",
    ["namespace", "name"],
)
crs_processing = Gauge(
    "consoleapplication_crs_processing_gauge",
    "Number of ConsoleApplications seen in the namespace at the start of the latest pass",
    ["namespace"],
)
crs_success_total = Counter(
    "consoleapplication_crs_success_total",
    "Number of passes that brought a ConsoleApplication to Ready",
    ["namespace"],
)
resources_created_total = Counter(
    "consoleapplication_resources_created_total",
    "Number of resources created on behalf of a ConsoleApplication",
    ["namespace", "name", "kind"],
)


def record_event(event_data: EventData):
    """Update the prometheus metrics from a reconcile event."""
    namespace = event_data.namespace or ""
    name = event_data.name or ""
    data = event_data.data
    if event_data.event == ReconcileEvent.Start.value:
        reconcile_total.labels(namespace=namespace, name=name).inc()
        if "processing" in data:
            crs_processing.labels(namespace=namespace).set(data["processing"])
    elif event_data.event == ReconcileEvent.GitProbe.value:
        git_repo_reachable_duration.labels(namespace=namespace, name=name).observe(data.get("duration", 0))
    elif event_data.event == ReconcileEvent.ResourceCreated.value:
        resources_created_total.labels(namespace=namespace, name=name, kind=data.get("kind", "")).inc()
    elif event_data.event == ReconcileEvent.Succeeded.value:
        crs_success_total.labels(namespace=namespace).inc()


def register_metrics(observer: Observer):
    if record_event not in observer.callbacks:
        observer.register(record_event)
