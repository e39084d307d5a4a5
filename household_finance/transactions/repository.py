from datetime import UTC, datetime
from uuid import uuid4

import aiosqlite
import structlog

from household_finance.transactions.schemas import TransactionFilter, TransactionRecord

logger = structlog.get_logger()

_TRANSACTION_COLUMNS = """
    id, date, time, description, amount, category, classification,
    merchant_normalised, needs_review
"""


class TransactionRepository:
    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def get_by_id(self, user_id: str, transaction_id: str) -> dict | None:
        cursor = await self._db.execute(
            f"SELECT {_TRANSACTION_COLUMNS} FROM transactions WHERE user_id = ? AND id = ?",
            (user_id, transaction_id),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return dict(row)

    async def list_filtered(self, user_id: str, filters: TransactionFilter) -> list[dict]:
        conditions: list[str] = ["user_id = ?"]
        params: list = [user_id]

        if filters.category is not None:
            conditions.append("category = ?")
            params.append(filters.category)
        if filters.classification is not None:
            conditions.append("classification = ?")
            params.append(str(filters.classification))
        if filters.merchant:
            conditions.append("LOWER(merchant_normalised) LIKE ?")
            params.append(f"%{filters.merchant.lower()}%")
        if filters.min_amount is not None:
            conditions.append("amount >= ?")
            params.append(filters.min_amount)
        if filters.max_amount is not None:
            conditions.append("amount <= ?")
            params.append(filters.max_amount)
        if filters.start_date is not None:
            conditions.append("date >= ?")
            params.append(filters.start_date)
        if filters.end_date is not None:
            conditions.append("date <= ?")
            params.append(filters.end_date)
        if filters.needs_review is not None:
            conditions.append("needs_review = ?")
            params.append(int(filters.needs_review))

        where_clause = " AND ".join(conditions)
        params.append(filters.limit)

        cursor = await self._db.execute(
            f"""
            SELECT {_TRANSACTION_COLUMNS}
            FROM transactions
            WHERE {where_clause}
            ORDER BY date DESC, time DESC
            LIMIT ?
            """,
            params,
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def list_spending(self, user_id: str, start_date: str, end_date: str) -> list[dict]:
        cursor = await self._db.execute(
            """
            SELECT amount, category, classification, merchant_normalised
            FROM transactions
            WHERE user_id = ? AND date >= ? AND date <= ? AND amount > 0
            """,
            (user_id, start_date, end_date),
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def list_since(self, user_id: str, start_date: str) -> list[dict]:
        cursor = await self._db.execute(
            """
            SELECT date, amount, category, classification, merchant_normalised
            FROM transactions
            WHERE user_id = ? AND date >= ?
            ORDER BY date DESC
            """,
            (user_id, start_date),
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def get_category_classification(self, category: str) -> str | None:
        cursor = await self._db.execute(
            "SELECT classification FROM categories WHERE name = ?",
            (category,),
        )
        row = await cursor.fetchone()
        return row["classification"] if row else None

    async def update_categorization(
        self,
        user_id: str,
        transaction_id: str,
        category: str,
        classification: str,
        notes: str | None,
    ) -> None:
        await self._db.execute(
            """
            UPDATE transactions
            SET category = ?, classification = ?, needs_review = 0,
                notes = ?, updated_at = ?
            WHERE user_id = ? AND id = ?
            """,
            (
                category,
                classification,
                notes,
                datetime.now(UTC).isoformat(),
                user_id,
                transaction_id,
            ),
        )
        await self._db.commit()

    async def upsert_merchant_mapping(
        self,
        user_id: str,
        merchant_pattern: str,
        category: str,
        classification: str,
        notes: str | None = None,
    ) -> None:
        await self._db.execute(
            """
            INSERT INTO merchant_mappings (
                id, user_id, merchant_pattern, category, classification, notes, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, merchant_pattern) DO UPDATE SET
                category = excluded.category,
                classification = excluded.classification,
                notes = excluded.notes
            """,
            (
                str(uuid4()),
                user_id,
                merchant_pattern,
                category,
                classification,
                notes,
                datetime.now(UTC).isoformat(),
            ),
        )
        await self._db.commit()

    async def get_merchant_mapping(self, user_id: str, merchant_pattern: str) -> dict | None:
        cursor = await self._db.execute(
            """
            SELECT merchant_pattern, category, classification, notes
            FROM merchant_mappings
            WHERE user_id = ? AND merchant_pattern = ?
            """,
            (user_id, merchant_pattern),
        )
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def insert_many(self, user_id: str, records: list[TransactionRecord]) -> int:
        inserted = 0
        for record in records:
            cursor = await self._db.execute(
                """
                INSERT OR IGNORE INTO transactions (
                    id, user_id, date, time, description, amount, source,
                    classification, category, merchant_normalised, needs_review
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    user_id,
                    record.date,
                    record.time,
                    record.description,
                    record.amount,
                    record.source,
                    str(record.classification) if record.classification else None,
                    record.category,
                    record.merchant_normalised,
                    int(record.needs_review),
                ),
            )
            inserted += cursor.rowcount
        await self._db.commit()
        logger.info("transactions_inserted", user_id=user_id, count=inserted)
        return inserted
