"""SQLite schema for users and tasks (code-first approach)."""

import logging

import aiosqlite


logger = logging.getLogger(__name__)


# Central list of all collections, in dependency order
COLLECTIONS = ["users", "tasks"]

# tasks.created_by is a plain id: a signed token stays valid after its user is deleted
TABLE_SCHEMAS: dict[str, str] = {
    "users": """CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created TEXT NOT NULL,
        updated TEXT NOT NULL,
        name TEXT NOT NULL,
        email TEXT NOT NULL,
        password_hash TEXT NOT NULL,
        profile_image_url TEXT,
        role TEXT NOT NULL DEFAULT 'user' CHECK (role IN ('admin', 'user'))
    )""",
    "tasks": """CREATE TABLE IF NOT EXISTS tasks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created TEXT NOT NULL,
        updated TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        priority TEXT NOT NULL DEFAULT 'Medium' CHECK (priority IN ('Low', 'Medium', 'High')),
        due_date TEXT,
        assigned_to TEXT NOT NULL DEFAULT '[]',
        todo_checklist TEXT NOT NULL DEFAULT '[]',
        attachments TEXT NOT NULL DEFAULT '[]',
        status TEXT NOT NULL DEFAULT 'Pending' CHECK (status IN ('Pending', 'In Progress', 'Completed')),
        progress INTEGER NOT NULL DEFAULT 0 CHECK (progress BETWEEN 0 AND 100),
        created_by INTEGER
    )""",
}

INDEXES: list[str] = [
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_users_email ON users (email)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks (status)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_created ON tasks (created)",
]

# Columns holding JSON-encoded lists; decoded on read
JSON_COLUMNS: dict[str, frozenset[str]] = {
    "users": frozenset(),
    "tasks": frozenset({"assigned_to", "todo_checklist", "attachments"}),
}


async def create_schema(conn: aiosqlite.Connection) -> None:
    """Create all tables and indexes if they do not exist (idempotent)."""
    for collection in COLLECTIONS:
        await conn.execute(TABLE_SCHEMAS[collection])
    for index in INDEXES:
        await conn.execute(index)
    await conn.commit()
    logger.info("SQLite schema ready", extra={"collections": COLLECTIONS})
