import json
from datetime import UTC, datetime
from uuid import uuid4

import aiosqlite


class InsightRepository:
    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def create(
        self,
        user_id: str,
        content: str,
        priority: str,
        data_snapshot: dict,
    ) -> dict:
        insight_id = str(uuid4())
        now = datetime.now(UTC).isoformat()
        await self._db.execute(
            """
            INSERT INTO insights (id, user_id, content, priority, data_snapshot, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (insight_id, user_id, content, priority, json.dumps(data_snapshot), now),
        )
        await self._db.commit()
        return {"id": insight_id, "content": content, "priority": priority, "created_at": now}

    async def list_recent(self, user_id: str, limit: int = 10) -> list[dict]:
        cursor = await self._db.execute(
            """
            SELECT id, content, priority, created_at
            FROM insights
            WHERE user_id = ?
            ORDER BY created_at DESC
            LIMIT ?
            """,
            (user_id, limit),
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

