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

import copy
import logging
import time
from typing import Optional, Tuple, Union

from console_app_operator.app.config import OperatorConfig
from console_app_operator.conditions import ConditionStore
from console_app_operator.git_service.service import GitService
from console_app_operator.models.application import ConsoleApplication
from console_app_operator.models.status import (
    ConditionReason,
    ConditionStatus,
    ConditionType,
)
from console_app_operator.observer import DEFAULT_OBSERVER, Observer, ReconcileEvent
from console_app_operator.readiness import (
    KindHandler,
    PollClass,
    ReadinessOutcome,
    get_handler,
    route_url,
)
from console_app_operator.resource_mapper import (
    RequirementsNotMetError,
    ResourceDescriptor,
    ResourceMapper,
)
from console_app_operator.result import (
    ReconcileResult,
    no_requeue,
    requeue_after_seconds,
    requeue_on_error,
    requeue_with_error,
)
from console_app_operator.store import (
    AlreadyExistsError,
    ConflictError,
    CredentialStore,
    NotFoundError,
    ObjectRejectedError,
    ObjectStore,
    ResourceKind,
    StoreError,
    set_owner,
)

logger = logging.getLogger(__name__)

OUTCOME_STATUS = {
    ReadinessOutcome.Ready: ConditionStatus.TRUE,
    ReadinessOutcome.NotReady: ConditionStatus.UNKNOWN,
    ReadinessOutcome.Failed: ConditionStatus.FALSE,
}


class ConsoleApplicationReconciler:
    """Converges one ConsoleApplication into its dependent resources, one pass per call.

    A pass is re-entrant from the top: everything carried between passes lives
    in the object's persisted status conditions.
    """

    def __init__(
        self,
        store: ObjectStore,
        credentials: CredentialStore,
        git_service: Optional[GitService] = None,
        config: Optional[OperatorConfig] = None,
        observer: Optional[Observer] = None,
        _logger: Optional[logging.Logger] = None,
    ) -> None:
        self.store = store
        self.credentials = credentials
        self.config = config if config else OperatorConfig()
        self.git_service = git_service if git_service else GitService(self.config)
        self.observer = observer if observer else DEFAULT_OBSERVER
        self.logger = _logger if _logger else logger

    def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        logger = self.logger
        try:
            return self._reconcile(namespace, name)
        except NotFoundError:
            logger.info(f"ConsoleApplication '{namespace}/{name}' was deleted during the pass. Ignoring.")
            return no_requeue()
        except ConflictError as e:
            logger.warning(f"Status of '{namespace}/{name}' is still conflicting, retry shortly: {e}")
            return requeue_with_error(e, self.config.conflict_requeue_interval)
        except StoreError as e:
            logger.error(f"Store error while reconciling '{namespace}/{name}': {e}")
            self.observer.notify(ReconcileEvent.Error, {"error": str(e)}, namespace=namespace, name=name)
            return requeue_on_error(e)

    def _reconcile(self, namespace: str, name: str) -> ReconcileResult:
        logger = self.logger

        try:
            obj = self.store.get(ResourceKind.ConsoleApplication, namespace, name)
        except NotFoundError:
            logger.info(f"ConsoleApplication '{namespace}/{name}' not found. Ignoring since object must be deleted.")
            return no_requeue()

        app = ConsoleApplication.from_object(obj)
        conditions = ConditionStore(app)
        processing = len(self.store.list(ResourceKind.ConsoleApplication, namespace))
        self.observer.notify(
            ReconcileEvent.Start, {"generation": app.metadata.generation, "processing": processing}, namespace=namespace, name=name
        )

        if conditions.needs_start():
            logger.info(f"Start reconciling '{namespace}/{name}' at generation {app.metadata.generation}")
            conditions.mark_started()
            self._update_status(app, conditions)

        credential = None
        secret_name = app.spec.git.sourceSecretRef
        if secret_name:
            try:
                data = self.credentials.get(app.namespace, secret_name)
            except NotFoundError:
                return self._fail(app, conditions, ConditionReason.SecretResourceNotFound, f"Secret '{secret_name}' not found")
            value = data.get(self.config.git_secret_key)
            if value:
                # latin-1 maps every byte, and header values are sent back out as latin-1
                credential = value.decode("latin-1").strip() if isinstance(value, bytes) else str(value).strip()
            else:
                logger.warning(f"Secret '{secret_name}' has no key '{self.config.git_secret_key}', probing without credential")

        reachable, reason = self._check_git(app, conditions, credential)
        if not reachable:
            return self._fail(app, conditions, reason, f"Git Repository Not Reachable: {reason}")

        mapper = ResourceMapper(app, self.config)
        try:
            prerequisites = mapper.required_prerequisites()
        except RequirementsNotMetError as e:
            return self._fail(app, conditions, e.reason, e.message)

        for prerequisite in prerequisites:
            try:
                found = self.store.get(prerequisite.kind, prerequisite.namespace, prerequisite.name)
            except NotFoundError:
                message = f"{prerequisite.kind.value} {prerequisite.namespace}/{prerequisite.name} not found"
                return self._fail(app, conditions, prerequisite.not_found_reason, message)
            ok, message = prerequisite.check(found)
            if not ok:
                return self._fail(app, conditions, prerequisite.not_found_reason, message)

        try:
            descriptors = mapper.map_resources()
        except RequirementsNotMetError as e:
            return self._fail(app, conditions, e.reason, e.message)

        for descriptor in descriptors:
            result = self._converge(app, conditions, descriptor)
            if result is not None:
                return result

        conditions.mark_succeeded()
        self._update_status(app, conditions)
        logger.info(f"ConsoleApplication '{namespace}/{name}' is ready")
        self.observer.notify(ReconcileEvent.Succeeded, {"url": app.status.applicationURL}, namespace=namespace, name=name)
        return no_requeue()

    def _check_git(self, app: ConsoleApplication, conditions: ConditionStore, credential: Optional[str]) -> Tuple[bool, str]:
        logger = self.logger

        existing = conditions.get(ConditionType.GitRepoReachable)
        if existing and not self.config.git_recheck_every_pass and existing.observedGeneration == app.metadata.generation:
            logger.debug(f"Reuse git reachability of '{app.name}': {existing.status.value} ({existing.reason})")
            return existing.status == ConditionStatus.TRUE, existing.reason

        git = app.spec.git
        start = time.time()
        reachable, reason = self.git_service.probe(git.url, git.reference, credential)
        self.observer.notify(
            ReconcileEvent.GitProbe,
            {"url": git.url, "ref": git.reference, "reachable": reachable, "reason": reason, "duration": time.time() - start},
            namespace=app.namespace,
            name=app.name,
        )

        status = ConditionStatus.TRUE if reachable else ConditionStatus.FALSE
        conditions.set_condition(ConditionType.GitRepoReachable, status, reason, f"Git Repository Reachable: {status.value}")
        self._update_status(app, conditions)
        return reachable, reason.value

    def _converge(self, app: ConsoleApplication, conditions: ConditionStore, descriptor: ResourceDescriptor) -> Optional[ReconcileResult]:
        """Drive one resource; returns None to continue with the next one, or the result ending the pass."""
        logger = self.logger
        handler = get_handler(descriptor.kind)

        try:
            obj = self.store.get(descriptor.kind, descriptor.namespace, descriptor.name)
        except NotFoundError:
            return self._create(app, conditions, descriptor, handler)

        if handler.check is None:
            return None

        readiness = handler.check(self.store, descriptor, obj)
        logger.debug(f"{descriptor.kind.value} '{descriptor.name}' is {readiness.outcome.value}: {readiness.message}")

        if readiness.is_failed:
            reason = readiness.reason or descriptor.create_failed_reason.value
            conditions.set_condition(descriptor.condition_type, ConditionStatus.FALSE, reason, readiness.message)
            return self._fail(app, conditions, reason, readiness.message)

        if readiness.is_ready:
            reason = readiness.reason or _reason_value(descriptor.ready_reason)
        else:
            reason = readiness.reason or _reason_value(descriptor.not_ready_reason)
        if reason:
            conditions.set_condition(descriptor.condition_type, OUTCOME_STATUS[readiness.outcome], reason, readiness.message)

        if readiness.is_ready:
            if descriptor.kind == ResourceKind.Route:
                conditions.set_application_url(route_url(obj))
            self._update_status(app, conditions)
            return None

        self._update_status(app, conditions)
        return requeue_after_seconds(self._poll_interval(handler.poll_class))

    def _create(
        self, app: ConsoleApplication, conditions: ConditionStore, descriptor: ResourceDescriptor, handler: KindHandler
    ) -> Optional[ReconcileResult]:
        logger = self.logger
        kind = descriptor.kind.value

        manifest = set_owner(copy.deepcopy(descriptor.manifest), app.to_object())
        try:
            self.store.create(manifest)
            logger.info(f"{kind} '{descriptor.namespace}/{descriptor.name}' created")
        except AlreadyExistsError:
            logger.info(f"{kind} '{descriptor.namespace}/{descriptor.name}' already exists, continue as created")
        except ObjectRejectedError as e:
            message = f"Failed to create {kind}: {e.message}"
            logger.error(message)
            conditions.set_condition(descriptor.condition_type, ConditionStatus.FALSE, descriptor.create_failed_reason, message)
            return self._fail(app, conditions, descriptor.create_failed_reason, message)

        if descriptor.not_ready_reason:
            conditions.set_condition(descriptor.condition_type, ConditionStatus.UNKNOWN, descriptor.not_ready_reason, f"{kind} Created")
        self._update_status(app, conditions)
        self.observer.notify(ReconcileEvent.ResourceCreated, {"kind": kind}, namespace=descriptor.namespace, name=descriptor.name)

        if not handler.wait_after_create:
            return None
        interval = self.config.build_poll_interval if handler.poll_class == PollClass.Build else self.config.resource_poll_interval
        return requeue_after_seconds(interval)

    def _fail(self, app: ConsoleApplication, conditions: ConditionStore, reason: Union[ConditionReason, str], message: str) -> ReconcileResult:
        logger = self.logger
        logger.error(f"ConsoleApplication '{app.namespace}/{app.name}' failed: {_reason_value(reason)}: {message}")
        conditions.mark_failed(reason, message)
        self._update_status(app, conditions)
        self.observer.notify(
            ReconcileEvent.Failed, {"reason": _reason_value(reason), "message": message}, namespace=app.namespace, name=app.name
        )
        return no_requeue()

    def _poll_interval(self, poll_class: PollClass) -> int:
        if poll_class == PollClass.Build:
            return self.config.build_poll_interval
        if poll_class == PollClass.Workload:
            return self.config.workload_poll_interval
        return self.config.resource_poll_interval

    def _update_status(self, app: ConsoleApplication, conditions: ConditionStore):
        """Write the in-memory status back, re-fetching on optimistic-concurrency conflicts."""
        logger = self.logger
        if not conditions.dirty:
            return

        retries = max(self.config.status_update_retries, 1)
        for attempt in range(1, retries + 1):
            try:
                updated = self.store.update_status(app.to_object())
                app.metadata.resourceVersion = updated.get("metadata", {}).get("resourceVersion")
                conditions.dirty = False
                return
            except ConflictError as e:
                logger.warning(f"Conflict on status update of '{app.namespace}/{app.name}' ({attempt}/{retries}): {e}")
                if attempt == retries:
                    break
                latest = self.store.get(ResourceKind.ConsoleApplication, app.namespace, app.name)
                app.metadata.resourceVersion = latest.get("metadata", {}).get("resourceVersion")
        raise ConflictError(f"status update failed after {retries} attempts", kind=app.kind, name=app.name)


def _reason_value(reason: Union[ConditionReason, str, None]) -> Optional[str]:
    if isinstance(reason, ConditionReason):
        return reason.value
    return reason
