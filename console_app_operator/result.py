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

from datetime import timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReconcileResult(BaseModel):
    """What the dispatcher should do after a pass.

    ``requeue_after`` set means retry after that delay; ``requeue`` alone means
    retry with the dispatcher's default backoff; neither means stop.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    requeue: bool = False
    requeue_after: Optional[timedelta] = None
    error: Optional[Exception] = Field(None, description="Infrastructure error that ended the pass, if any.")

    @property
    def is_terminal(self) -> bool:
        return not self.requeue and self.requeue_after is None and self.error is None


def no_requeue() -> ReconcileResult:
    return ReconcileResult()


def requeue_after_seconds(seconds: int) -> ReconcileResult:
    return ReconcileResult(requeue=True, requeue_after=timedelta(seconds=seconds))


def requeue_on_error(error: Exception) -> ReconcileResult:
    return ReconcileResult(requeue=True, error=error)


def requeue_with_error(error: Exception, seconds: int) -> ReconcileResult:
    return ReconcileResult(requeue=True, requeue_after=timedelta(seconds=seconds), error=error)
