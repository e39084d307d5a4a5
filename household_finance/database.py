import aiosqlite
import structlog

from household_finance.config import settings

logger = structlog.get_logger()

_db: aiosqlite.Connection | None = None

DDL_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS categories (
        name TEXT PRIMARY KEY,
        classification TEXT NOT NULL
            CHECK (classification IN ('Essential', 'Discretionary', 'Non-Spending', 'Income')),
        display_order INTEGER
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS transactions (
        id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        date TEXT NOT NULL,
        time TEXT,
        description TEXT NOT NULL,
        amount REAL NOT NULL,
        source TEXT NOT NULL DEFAULT 'manual',
        classification TEXT
            CHECK (classification IN ('Essential', 'Discretionary', 'Non-Spending', 'Income')),
        category TEXT,
        merchant_normalised TEXT,
        needs_review INTEGER NOT NULL DEFAULT 0,
        notes TEXT,
        created_at TEXT NOT NULL DEFAULT (datetime('now')),
        updated_at TEXT NOT NULL DEFAULT (datetime('now')),
        PRIMARY KEY (user_id, id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_transactions_user_date ON transactions(user_id, date DESC)",
    """
    CREATE TABLE IF NOT EXISTS merchant_mappings (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        merchant_pattern TEXT NOT NULL,
        category TEXT NOT NULL,
        classification TEXT,
        notes TEXT,
        created_at TEXT NOT NULL,
        UNIQUE(user_id, merchant_pattern)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS conversations (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        agent_type TEXT NOT NULL CHECK (agent_type IN ('onboarding', 'chat')),
        title TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS messages (
        id TEXT PRIMARY KEY,
        conversation_id TEXT NOT NULL REFERENCES conversations(id) ON DELETE CASCADE,
        seq INTEGER NOT NULL,
        role TEXT NOT NULL CHECK (role IN ('user', 'assistant')),
        content TEXT NOT NULL,
        created_at TEXT NOT NULL,
        UNIQUE(conversation_id, seq)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_context (
        user_id TEXT PRIMARY KEY,
        household_members TEXT NOT NULL DEFAULT '[]',
        deliberate_tradeoffs TEXT NOT NULL DEFAULT '[]',
        non_negotiables TEXT NOT NULL DEFAULT '[]',
        watch_patterns TEXT NOT NULL DEFAULT '[]',
        seasonal_patterns TEXT NOT NULL DEFAULT '[]',
        spending_targets TEXT NOT NULL DEFAULT '{}',
        context_narrative TEXT,
        onboarding_complete INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS onboarding_state (
        user_id TEXT PRIMARY KEY,
        conversation_id TEXT,
        phase TEXT NOT NULL DEFAULT 'intro',
        gathered_context TEXT NOT NULL DEFAULT '{}',
        questions_asked TEXT NOT NULL DEFAULT '[]',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS insights (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        content TEXT NOT NULL,
        priority TEXT NOT NULL
            CHECK (priority IN ('alert', 'warning', 'watch', 'observation', 'affirmation')),
        data_snapshot TEXT,
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_insights_user_created ON insights(user_id, created_at DESC)",
]

SEED_CATEGORIES: list[tuple[str, str, int]] = [
    ("Groceries", "Essential", 1),
    ("Utilities", "Essential", 2),
    ("Insurance", "Essential", 3),
    ("Healthcare", "Essential", 4),
    ("Transport - Fuel", "Essential", 5),
    ("Transport - Tolls", "Essential", 6),
    ("Transport - Other", "Essential", 7),
    ("Mortgage", "Essential", 8),
    ("Loan Repayments", "Essential", 9),
    ("BNPL Instalments", "Essential", 10),
    ("BNPL Fees & Interest", "Essential", 11),
    ("Pets", "Essential", 12),
    ("Kids", "Essential", 13),
    ("Dining Out", "Discretionary", 20),
    ("Alcohol", "Discretionary", 21),
    ("Entertainment", "Discretionary", 22),
    ("Clothing & Personal", "Discretionary", 23),
    ("Gifts", "Discretionary", 24),
    ("Subscriptions - Media", "Discretionary", 25),
    ("Subscriptions - Software", "Discretionary", 26),
    ("Subscriptions - Food", "Discretionary", 27),
    ("Shopping - General", "Discretionary", 28),
    ("Shopping - Online", "Discretionary", 29),
    ("Home & Garden", "Discretionary", 30),
    ("Transfer - Internal", "Non-Spending", 40),
    ("Transfer - Family", "Non-Spending", 41),
    ("Income - Salary", "Income", 50),
    ("Income - Other", "Income", 51),
]


async def init_database(path: str | None = None) -> aiosqlite.Connection:
    global _db
    db_path = path or settings.db_path
    _db = await aiosqlite.connect(db_path)
    _db.row_factory = aiosqlite.Row
    await _db.execute("PRAGMA journal_mode=WAL")
    await _db.execute("PRAGMA foreign_keys=ON")

    for ddl in DDL_STATEMENTS:
        await _db.execute(ddl)
    await _db.executemany(
        "INSERT OR IGNORE INTO categories (name, classification, display_order) VALUES (?, ?, ?)",
        SEED_CATEGORIES,
    )
    await _db.commit()

    logger.info("database_initialized", path=db_path)
    return _db


async def close_database() -> None:
    global _db
    if _db is not None:
        await _db.close()
        _db = None
        logger.info("database_closed")


def get_db() -> aiosqlite.Connection:
    if _db is None:
        raise RuntimeError("Database not initialized. Call init_database() first.")
    return _db


async def check_health() -> None:
    db = get_db()
    cursor = await db.execute("SELECT 1")
    await cursor.close()
