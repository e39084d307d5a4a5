import json
from datetime import UTC, datetime

import aiosqlite

from household_finance.context.models import ContextField

_JSON_FIELDS = [
    ContextField.household_members,
    ContextField.deliberate_tradeoffs,
    ContextField.non_negotiables,
    ContextField.watch_patterns,
    ContextField.seasonal_patterns,
    ContextField.spending_targets,
]


class ContextRepository:
    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def get(self, user_id: str) -> dict | None:
        """Return the stored row with JSON columns decoded.

        Raises ``json.JSONDecodeError`` when a column holds malformed JSON.
        """
        cursor = await self._db.execute(
            "SELECT * FROM user_context WHERE user_id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None

        data = dict(row)
        for field in _JSON_FIELDS:
            raw = data.get(field)
            data[field] = json.loads(raw) if raw else None
        data["onboarding_complete"] = bool(data["onboarding_complete"])
        return data

    async def is_onboarding_complete(self, user_id: str) -> bool:
        cursor = await self._db.execute(
            "SELECT onboarding_complete FROM user_context WHERE user_id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        return bool(row["onboarding_complete"]) if row else False

    async def upsert(
        self,
        user_id: str,
        context: dict,
        onboarding_complete: bool | None = None,
    ) -> None:
        """Write every context column; ``onboarding_complete=None`` keeps the stored flag."""
        now = datetime.now(UTC).isoformat()
        values = [json.dumps(context[field]) for field in _JSON_FIELDS]
        complete_flag = int(bool(onboarding_complete))
        complete_source = (
            "excluded.onboarding_complete"
            if onboarding_complete is not None
            else "user_context.onboarding_complete"
        )

        await self._db.execute(
            f"""
            INSERT INTO user_context (
                user_id, {", ".join(_JSON_FIELDS)}, context_narrative,
                onboarding_complete, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                {", ".join(f"{field} = excluded.{field}" for field in _JSON_FIELDS)},
                context_narrative = excluded.context_narrative,
                onboarding_complete = {complete_source},
                updated_at = excluded.updated_at
            """,
            (
                user_id,
                *values,
                context.get("context_narrative", ""),
                complete_flag,
                now,
                now,
            ),
        )
        await self._db.commit()
