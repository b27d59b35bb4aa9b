"""
Live-update event frames
========================

Every SSE frame carries one JSON object: {"type", "data", "timestamp"}.
"""

from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel

from hackportal.store.records import utc_now_iso


class EventType(str, Enum):
    """All event types pushed to observers"""
    # Stream lifecycle
    CONNECTED = "connected"
    HEARTBEAT = "heartbeat"

    # Ledger mutations
    REGISTRATION = "registration"
    REGISTRATION_DELETE = "registration-delete"

    # Catalog mutations
    PROBLEM_STATEMENT_CREATE = "problem-statement-create"
    PROBLEM_STATEMENT_UPDATE = "problem-statement-update"
    PROBLEM_STATEMENT_DELETE = "problem-statement-delete"
    PROBLEM_STATEMENTS_IMPORT = "problem-statements-import"


class EventFrame(BaseModel):
    type: str
    data: Optional[Dict[str, Any]] = None
    timestamp: str

    @classmethod
    def build(cls, event_type: Union[EventType, str], data: Optional[Dict[str, Any]] = None) -> "EventFrame":
        return cls(
            type=event_type.value if isinstance(event_type, EventType) else str(event_type),
            data=data,
            timestamp=utc_now_iso()
        )

    def to_sse(self) -> str:
        """Format for Server-Sent Events"""
        return f"data: {self.model_dump_json()}\n\n"
