"""Async Data Access Layer for the MESSAGE table.

Provides MessageDAL with the append/list operations the conversation log
needs, on top of `utils.database_init.AsyncDatabaseInitializer`.
"""

from __future__ import annotations

import time
from typing import List, Sequence

from models.message_record import MessageRecord
from utils.database_init import AsyncDatabaseInitializer


class MessageDAL:
    """Data access layer for MESSAGE records.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`).
    """

    _COLUMNS = ("id", "conversation_id", "role", "content", "created_at")
    _COLUMN_LIST, _INSERT_COLUMNS = ", ".join(_COLUMNS), ", ".join(_COLUMNS[1:])

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_message(self, record: MessageRecord) -> MessageRecord:
        """Insert a MESSAGE row and return the record with its id and timestamp."""
        created_at = record.created_at or int(time.time())

        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"INSERT INTO MESSAGE ({self._INSERT_COLUMNS}) VALUES (?, ?, ?, ?)",
                (record.conversation_id, record.role, record.content, created_at),
            )
            await conn.commit()
            return MessageRecord(
                id=cur.lastrowid,
                conversation_id=record.conversation_id,
                role=record.role,
                content=record.content,
                created_at=created_at,
            )

    async def list_messages(self, conversation_id: str, limit: int = 200) -> List[MessageRecord]:
        """Return a conversation's messages in insertion order."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM MESSAGE WHERE conversation_id = ? ORDER BY id ASC LIMIT ?",
                (conversation_id, limit),
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> MessageRecord:
        return MessageRecord(
            id=row[0],
            conversation_id=row[1],
            role=row[2],
            content=row[3],
            created_at=row[4],
        )
