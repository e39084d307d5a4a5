import json
from datetime import UTC, datetime

import aiosqlite


class OnboardingRepository:
    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def get(self, user_id: str) -> dict | None:
        cursor = await self._db.execute(
            """
            SELECT user_id, conversation_id, phase, gathered_context, questions_asked
            FROM onboarding_state
            WHERE user_id = ?
            """,
            (user_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return dict(row)

    async def get_phase(self, user_id: str) -> str | None:
        cursor = await self._db.execute(
            "SELECT phase FROM onboarding_state WHERE user_id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        return row["phase"] if row else None

    async def upsert(
        self,
        user_id: str,
        conversation_id: str | None,
        phase: str,
        gathered_context: dict,
        questions_asked: list[str],
    ) -> None:
        now = datetime.now(UTC).isoformat()
        await self._db.execute(
            """
            INSERT INTO onboarding_state (
                user_id, conversation_id, phase, gathered_context,
                questions_asked, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                conversation_id = COALESCE(excluded.conversation_id, onboarding_state.conversation_id),
                phase = excluded.phase,
                gathered_context = excluded.gathered_context,
                questions_asked = excluded.questions_asked,
                updated_at = excluded.updated_at
            """,
            (
                user_id,
                conversation_id,
                phase,
                json.dumps(gathered_context),
                json.dumps(questions_asked),
                now,
                now,
            ),
        )
        await self._db.commit()

    async def delete(self, user_id: str) -> None:
        await self._db.execute("DELETE FROM onboarding_state WHERE user_id = ?", (user_id,))
        await self._db.commit()
