import json
import logging
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from console_app_operator.app.utils import get_timestamp

logger = logging.getLogger(__name__)


class ReconcileEvent(str, Enum):
    Start = "reconcile:start"
    GitProbe = "git:probe"
    ResourceCreated = "resource:created"
    Failed = "reconcile:failed"
    Succeeded = "reconcile:succeeded"
    Error = "reconcile:error"


class EventData(BaseModel):
    event: str
    timestamp: datetime = Field(default_factory=get_timestamp)
    namespace: Optional[str] = None
    name: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


EventCallback = Callable[[EventData], None]


class Observer:
    """Fan-out of reconcile events to registered callbacks.

    A failing callback is logged and skipped; it never affects the pass.
    """

    def __init__(self):
        self.callbacks: List[EventCallback] = []

    def register(self, callback: EventCallback):
        self.callbacks.append(callback)

    def notify(self, event: Union[ReconcileEvent, str], data: Optional[Dict[str, Any]] = None, namespace: Optional[str] = None, name: Optional[str] = None):
        _event = event.value if isinstance(event, ReconcileEvent) else event
        event_data = EventData(event=_event, namespace=namespace, name=name, data=data if data else {})
        for callback in self.callbacks:
            try:
                callback(event_data)
            except Exception as e:
                logger.warning(f"Callback {getattr(callback, '__name__', type(callback).__name__)} failed for event {_event}: {e}")


def custom_serializer(obj):
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, timedelta):
        return obj.total_seconds()
    if isinstance(obj, Enum):
        return obj.value
    raise TypeError(f"Type {type(obj)} not serializable")


def to_json(event_data: EventData) -> str:
    record = {"event": event_data.event, "timestamp": event_data.timestamp}
    if event_data.namespace:
        record["object"] = f"{event_data.namespace}/{event_data.name}"
    record.update(event_data.data)
    return json.dumps(record, default=custom_serializer)


def gen_json_logging_callback(logger: logging.Logger, level: int = logging.DEBUG) -> EventCallback:
    def json_logging(event_data: EventData):
        logger.log(level, to_json(event_data))

    return json_logging


DEFAULT_OBSERVER = Observer()
DEFAULT_OBSERVER.register(gen_json_logging_callback(logger))
