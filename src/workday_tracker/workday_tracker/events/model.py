from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..core.enums import ChangeEventType


@dataclass(frozen=True)
class ChangeEvent:
    """Cache-invalidation hint published after every committed mutation.

    Receivers should re-query the record instead of trusting ``payload``.
    """

    type: ChangeEventType
    user_id: str
    record_id: str
    timestamp: datetime
    payload: dict[str, Any] = field(default_factory=dict)
    source: Optional[str] = None
