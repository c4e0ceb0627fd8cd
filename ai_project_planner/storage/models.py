"""
Data models for storage layer.

Defines the quota event record.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class GenerationEvent:
    """Immutable record of one AI project generation by a user.

    Append-only events form the authoritative quota log. Expiry is
    computed from the timestamp; records are never modified or deleted.
    """
    user_id: str
    timestamp: datetime
    project_id: Optional[str] = None
