from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class MessageRecord:
    """In-memory representation of a row in the MESSAGE table.

    Attributes:
        id: Primary key (None for new records).
        conversation_id: Conversation the message belongs to.
        role: One of user, assistant or system.
        content: Message text (a completed transcript for voice turns).
        created_at: Unix timestamp (seconds) when the row was inserted.
    """

    id: Optional[int]
    conversation_id: str
    role: str
    content: str
    created_at: Optional[int] = None
