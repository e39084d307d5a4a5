from datetime import UTC, datetime
from uuid import uuid4

import aiosqlite


class ConversationRepository:
    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def create(self, user_id: str, agent_type: str, title: str | None) -> str:
        conversation_id = str(uuid4())
        now = datetime.now(UTC).isoformat()
        await self._db.execute(
            """
            INSERT INTO conversations (id, user_id, agent_type, title, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (conversation_id, user_id, agent_type, title, now, now),
        )
        await self._db.commit()
        return conversation_id

    async def get(self, conversation_id: str) -> dict | None:
        cursor = await self._db.execute(
            "SELECT id, user_id, agent_type, title, created_at FROM conversations WHERE id = ?",
            (conversation_id,),
        )
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def list_messages(self, conversation_id: str) -> list[dict]:
        cursor = await self._db.execute(
            """
            SELECT role, content, created_at
            FROM messages
            WHERE conversation_id = ?
            ORDER BY seq ASC
            """,
            (conversation_id,),
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def append_messages(self, conversation_id: str, messages: list[tuple[str, str]]) -> None:
        """Append ``(role, content)`` pairs after the conversation's last message."""
        cursor = await self._db.execute(
            "SELECT COALESCE(MAX(seq), 0) AS last_seq FROM messages WHERE conversation_id = ?",
            (conversation_id,),
        )
        row = await cursor.fetchone()
        seq = row["last_seq"] if row else 0
        now = datetime.now(UTC).isoformat()

        for role, content in messages:
            seq += 1
            await self._db.execute(
                """
                INSERT INTO messages (id, conversation_id, seq, role, content, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (str(uuid4()), conversation_id, seq, role, content, now),
            )
        await self._db.execute(
            "UPDATE conversations SET updated_at = ? WHERE id = ?",
            (now, conversation_id),
        )
        await self._db.commit()
