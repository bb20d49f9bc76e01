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
from typing import Optional, Union

from console_app_operator.app.utils import get_timestamp
from console_app_operator.models.application import ConsoleApplication
from console_app_operator.models.status import (
    Condition,
    ConditionReason,
    ConditionStatus,
    ConditionType,
)

logger = logging.getLogger(__name__)


def _value(x: Union[Enum, str, None]) -> Optional[str]:
    if isinstance(x, Enum):
        return x.value
    return x


class ConditionStore:
    """Upsert-by-type view over the status conditions of a ConsoleApplication.

    Mutates the application's in-memory status only; writing it back to the
    object store is the caller's job. ``dirty`` is set whenever an upsert
    actually changed something, so the caller can skip no-op writes.
    """

    def __init__(self, app: ConsoleApplication) -> None:
        self.app = app
        self.dirty = False

    @property
    def conditions(self):
        return self.app.status.conditions

    def get(self, type: Union[ConditionType, str]) -> Optional[Condition]:
        _type = _value(type)
        founds = [x for x in self.conditions if x.type == _type]
        return founds[0] if len(founds) > 0 else None

    def set_condition(
        self,
        type: Union[ConditionType, str],
        status: ConditionStatus,
        reason: Union[ConditionReason, str],
        message: Optional[str] = None,
    ) -> Condition:
        _type = _value(type)
        _reason = _value(reason)
        status = ConditionStatus(status)
        generation = self.app.metadata.generation

        current = self.get(_type)
        if current is None:
            condition = Condition(
                type=_type,
                status=status,
                reason=_reason,
                message=message,
                lastTransitionTime=get_timestamp(),
                observedGeneration=generation,
            )
            self.conditions.append(condition)
            self.dirty = True
            logger.debug(f"Condition '{_type}' added: {status.value} ({_reason})")
            return condition

        if current.status != status:
            current.status = status
            current.lastTransitionTime = get_timestamp()
            self.dirty = True
        if current.reason != _reason or current.message != message or current.observedGeneration != generation:
            current.reason = _reason
            current.message = message
            current.observedGeneration = generation
            self.dirty = True
        return current

    def is_true(self, type: Union[ConditionType, str]) -> bool:
        condition = self.get(type)
        return condition is not None and condition.status == ConditionStatus.TRUE

    def needs_start(self) -> bool:
        """True on the first-ever pass, or when the spec changed since progress was last recorded."""
        if len(self.conditions) == 0:
            return True
        progressing = self.get(ConditionType.Progressing)
        if progressing is None:
            return True
        return progressing.observedGeneration != self.app.metadata.generation

    def mark_started(self):
        self.set_condition(ConditionType.Ready, ConditionStatus.UNKNOWN, ConditionReason.Init, "Initializing ConsoleApplication")
        self.set_condition(
            ConditionType.Progressing, ConditionStatus.TRUE, ConditionReason.RequirementsBeingMet, "Requirements are being met"
        )

    def mark_failed(self, reason: Union[ConditionReason, str], message: str):
        self.set_condition(ConditionType.Ready, ConditionStatus.FALSE, reason, message)
        self.set_condition(
            ConditionType.Progressing, ConditionStatus.FALSE, ConditionReason.RequirementsNotMet, "Requirements are not met"
        )

    def mark_succeeded(self):
        self.set_condition(
            ConditionType.Ready, ConditionStatus.TRUE, ConditionReason.AllResourcesReady, "All resources are successfully created and ready"
        )
        self.set_condition(ConditionType.Progressing, ConditionStatus.FALSE, ConditionReason.RequirementsMet, "All requirements are met")

    def set_application_url(self, url: Optional[str]):
        if url and self.app.status.applicationURL != url:
            self.app.status.applicationURL = url
            self.dirty = True
