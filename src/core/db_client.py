"""SQLite database client wrapper with CRUD operations."""

import asyncio
import json
import logging
import re
import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, ClassVar

import aiosqlite

from src.core import schema


logger = logging.getLogger(__name__)


class DatabaseError(RuntimeError):
    """Raised when a store operation fails."""


class RecordNotFoundError(KeyError):
    """Raised when a record id does not exist in a collection."""


class _DBState:
    """Process-wide database location, set by init_db()."""

    db_path: ClassVar[Path | None] = None


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for safe embedding in filter queries via json.dumps."""
    return json.dumps(str(value))[1:-1]


def now_iso() -> str:
    """Current UTC time in the ISO format used for created/updated columns."""
    return datetime.now(UTC).isoformat(timespec="microseconds").replace("+00:00", "Z")


def _convert_record(collection: str, record: dict[str, Any]) -> dict[str, Any]:
    """Convert integer ids to strings and decode JSON list columns."""
    fk_fields = {"id", "created_by"}
    json_columns = schema.JSON_COLUMNS.get(collection, frozenset())

    converted = record.copy()
    for key, value in converted.items():
        if isinstance(value, int) and (key in fk_fields or key.endswith("_id")):
            converted[key] = str(value)
        elif key in json_columns and isinstance(value, str):
            converted[key] = json.loads(value)
    return converted


def _encode_value(value: Any) -> Any:
    """Encode a Python value for storage in a SQLite column."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict | list):
        return json.dumps(value)
    return value


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    if db_path:
        return Path(db_path).resolve()
    if _DBState.db_path is None:
        msg = "Database path not configured. Call init_db() first."
        raise DatabaseError(msg)
    return _DBState.db_path


def _parse_value(value: str, *, is_like: bool = False) -> str | int | float | bool | None:
    """Parse a string value to the appropriate Python type for SQLite."""
    if is_like:
        return f"%{value}%"

    if value.isdigit():
        return int(value)
    if value.replace(".", "", 1).isdigit():
        return float(value)

    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False

    return value


def _get_sql_operator(op: str) -> str:
    """Map filter operator to SQL operator."""
    op_map = {
        "=": "=",
        "!=": "!=",
        ">": ">",
        "<": "<",
        ">=": ">=",
        "<=": "<=",
        "~": "LIKE",
        "?=": "CONTAINS",
    }
    sql_op = op_map.get(op)
    if not sql_op:
        msg = f"Unsupported operator: {op}"
        raise ValueError(msg)
    return sql_op


_COMPARISON = re.compile(
    r"""^(\w+)\s*(\?=|!=|>=|<=|=|>|<|~)\s*(?:"((?:[^"\\]|\\.)*)"|'((?:[^'\\]|\\.)*)')\s*$""",
)


def parse_comparison(comparison: str) -> tuple[str, str, str]:
    """Split ``field op "value"`` into field, operator and unescaped value.

    Double-quoted values carry the JSON escapes written by ``sanitize_param``;
    single-quoted values only escape with a backslash.
    """
    match = _COMPARISON.match(comparison.strip())
    if not match:
        msg = f"Invalid filter syntax: {comparison}"
        raise ValueError(msg)

    field, op, double_quoted, single_quoted = match.groups()
    if double_quoted is not None:
        return field, op, json.loads(f'"{double_quoted}"')
    return field, op, re.sub(r"\\(.)", r"\1", single_quoted)


def split_top_level(expression: str, separator: str) -> list[str]:
    """Split on ``separator`` where it is neither inside a quoted value nor inside parentheses."""
    parts = []
    current: list[str] = []
    paren_depth = 0
    quote: str | None = None
    escaped = False
    index = 0

    while index < len(expression):
        char = expression[index]
        if quote:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "(":
            paren_depth += 1
        elif char == ")":
            paren_depth -= 1
        elif paren_depth == 0 and expression.startswith(separator, index):
            parts.append("".join(current).strip())
            current = []
            index += len(separator)
            continue
        current.append(char)
        index += 1

    parts.append("".join(current).strip())
    return parts


def _parse_single_comparison(comparison: str) -> tuple[str, str | int | float | None]:
    """Parse a single comparison expression into a SQL condition and parameter.

    ``field ?= "value"`` matches rows whose JSON array column contains ``value``.
    """
    field, op, raw_value = parse_comparison(comparison)

    sql_op = _get_sql_operator(op)
    if sql_op == "CONTAINS":
        return f"EXISTS (SELECT 1 FROM json_each({field}) WHERE json_each.value = ?)", raw_value

    is_like = sql_op == "LIKE"
    value = _parse_value(raw_value, is_like=is_like)

    return f"{field} {sql_op} ?", value


def _parse_or_group(or_group: str) -> tuple[str, list[str | int | float | None]]:
    """Parse a parenthesized OR group into a SQL condition and parameters."""
    or_conditions = []
    or_params = []

    for part in split_top_level(or_group[1:-1], "||"):
        cond, value = _parse_single_comparison(part)
        or_conditions.append(cond)
        or_params.append(value)

    return f"({' OR '.join(or_conditions)})", or_params


def parse_filter(filter_query: str) -> tuple[str, list[str | int | float | None]]:
    """Parse filter syntax into a SQL WHERE clause and parameter list."""
    if not filter_query:
        return "", []

    conditions = []
    params = []

    for part in split_top_level(filter_query, "&&"):
        if part.startswith("(") and part.endswith(")"):
            cond, cond_params = _parse_or_group(part)
            conditions.append(cond)
            params.extend(cond_params)
        else:
            cond, value = _parse_single_comparison(part)
            conditions.append(cond)
            params.append(value)

    return " AND ".join(conditions), params


def parse_sort(sort: str) -> str:
    """Translate ``field`` / ``-field`` / ``field DESC`` into a safe ORDER BY clause."""
    default = "id ASC"
    if not sort:
        return default

    stripped = sort.strip()
    if stripped.startswith("-"):
        stripped = f"{stripped[1:]} DESC"

    sort_pattern = re.match(r"^([A-Za-z_][A-Za-z0-9_]*)\s*(ASC|DESC)?$", stripped, re.IGNORECASE)
    if not sort_pattern:
        logger.warning("Invalid sort parameter, using default", extra={"sort": sort})
        return default

    column = sort_pattern.group(1)
    direction = (sort_pattern.group(2) or "ASC").upper()
    if column == "id":
        return f"id {direction}"
    return f"{column} {direction}, id {direction}"


_db_connections: dict[tuple[int, int, str], aiosqlite.Connection] = {}
_db_lock = asyncio.Lock()


async def get_connection(*, db_path: str | None = None) -> aiosqlite.Connection:
    """Get or create a cached connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop = asyncio.get_running_loop()
    loop_id = id(loop)
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key in _db_connections:
        return _db_connections[cache_key]

    async with _db_lock:
        # Double-check after acquiring lock
        if cache_key in _db_connections:
            return _db_connections[cache_key]

        path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(str(path))
        await conn.execute("PRAGMA foreign_keys = ON")
        await conn.execute("PRAGMA journal_mode = WAL")

        _db_connections[cache_key] = conn

        logger.info(
            "Created new SQLite connection",
            extra={"db_path": str(path), "thread_id": thread_id, "loop_id": loop_id},
        )
        return conn


async def close_connection(*, db_path: str | None = None) -> None:
    """Close the cached SQLite connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop_id = id(asyncio.get_running_loop())
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    async with _db_lock:
        conn = _db_connections.pop(cache_key, None)
    if conn is None:
        return

    try:
        await conn.close()
        logger.info(
            "Closed SQLite connection",
            extra={"thread_id": thread_id, "loop_id": loop_id, "db_path": str(path)},
        )
    except Exception as e:
        logger.warning(
            "Error closing SQLite connection",
            extra={"error": str(e), "thread_id": thread_id, "loop_id": loop_id},
        )


async def init_db(*, db_path: str) -> None:
    """Record the database location and create the schema."""
    _DBState.db_path = Path(db_path).resolve()
    conn = await get_connection()
    await schema.create_schema(conn)


@asynccontextmanager
async def _store_operation(operation: str, collection: str, **context: Any) -> AsyncIterator[aiosqlite.Connection]:
    """Yield a connection for one CRUD call, translating failures into DatabaseError.

    RecordNotFoundError passes through unchanged.
    """
    try:
        _validate_collection_name(collection)
        yield await get_connection()
    except RecordNotFoundError:
        raise
    except aiosqlite.OperationalError as e:
        if "no such table" in str(e):
            logger.error("Table not found", extra={"collection": collection})
            msg = f"Table '{collection}' does not exist. Call init_db() first."
            raise DatabaseError(msg) from e
        logger.error(f"{operation}_failed", extra={"collection": collection, "error": str(e), **context})
        raise DatabaseError(f"{operation} failed on {collection}: {e}") from e
    except Exception as e:
        logger.error(f"{operation}_failed", extra={"collection": collection, "error": str(e), **context})
        raise DatabaseError(f"{operation} failed on {collection}: {e}") from e


def _row_to_record(collection: str, cursor: aiosqlite.Cursor, row: Any) -> dict[str, Any]:
    columns = [description[0] for description in cursor.description]
    return _convert_record(collection, dict(zip(columns, row, strict=True)))


def _require_numeric_id(collection: str, record_id: str) -> int:
    """Ids are integer primary keys; anything else cannot exist."""
    if not record_id.isdigit():
        raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")
    return int(record_id)


def _where(filter_query: str) -> tuple[str, list[Any]]:
    clause, params = parse_filter(filter_query)
    return (f"WHERE {clause}" if clause else ""), params


async def create_record(*, collection: str, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a new record and return it with its assigned id and timestamps."""
    async with _store_operation("create_record", collection) as conn:
        now = now_iso()
        row = {"created": now, "updated": now, **data}
        placeholders = ", ".join("?" for _ in row)
        query = f"INSERT INTO {collection} ({', '.join(row)}) VALUES ({placeholders})"  # noqa: S608 - collection is validated

        cursor = await conn.execute(query, [_encode_value(value) for value in row.values()])
        await conn.commit()
        record_id = str(cursor.lastrowid)

    logger.info("Created record", extra={"collection": collection, "record_id": record_id})
    return await get_record(collection=collection, record_id=record_id)


async def get_record(*, collection: str, record_id: str) -> dict[str, Any]:
    """Fetch a single record by ID, raising RecordNotFoundError if not found."""
    numeric_id = _require_numeric_id(collection, record_id)

    async with _store_operation("get_record", collection, record_id=record_id) as conn:
        cursor = await conn.execute(f"SELECT * FROM {collection} WHERE id = ?", (numeric_id,))  # noqa: S608 - collection is validated
        row = await cursor.fetchone()
        if row is None:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")
        return _row_to_record(collection, cursor, row)


async def update_record(*, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """Update a record by ID and return the updated record. ``updated`` is always refreshed."""
    if not data:
        raise ValueError("Empty update payload")
    numeric_id = _require_numeric_id(collection, record_id)

    async with _store_operation("update_record", collection, record_id=record_id) as conn:
        row = {**data, "updated": now_iso()}
        set_clause = ", ".join(f"{key} = ?" for key in row)
        values = [*(_encode_value(value) for value in row.values()), numeric_id]

        cursor = await conn.execute(f"UPDATE {collection} SET {set_clause} WHERE id = ?", values)  # noqa: S608 - collection is validated
        await conn.commit()
        if cursor.rowcount == 0:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")

    logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
    return await get_record(collection=collection, record_id=record_id)


async def delete_record(*, collection: str, record_id: str) -> None:
    """Delete a record by ID, raising RecordNotFoundError if not found."""
    numeric_id = _require_numeric_id(collection, record_id)

    async with _store_operation("delete_record", collection, record_id=record_id) as conn:
        cursor = await conn.execute(f"DELETE FROM {collection} WHERE id = ?", (numeric_id,))  # noqa: S608 - collection is validated
        await conn.commit()
        if cursor.rowcount == 0:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")

    logger.info("Deleted record", extra={"collection": collection, "record_id": record_id})


async def list_records(
    *,
    collection: str,
    page: int = 1,
    per_page: int = 50,
    filter_query: str = "",
    sort: str = "",
) -> list[dict[str, Any]]:
    """List records with optional filtering, sorting (``-field`` for descending), and pagination."""
    async with _store_operation("list_records", collection, filter_query=filter_query) as conn:
        where_clause, params = _where(filter_query)
        query = f"SELECT * FROM {collection} {where_clause} ORDER BY {parse_sort(sort)} LIMIT ? OFFSET ?"  # noqa: S608 - collection is validated

        cursor = await conn.execute(query, [*params, per_page, (page - 1) * per_page])
        records = [_row_to_record(collection, cursor, row) for row in await cursor.fetchall()]

    logger.debug("Listed records", extra={"collection": collection, "count": len(records)})
    return records


async def count_records(*, collection: str, filter_query: str = "") -> int:
    """Count records matching the filter."""
    async with _store_operation("count_records", collection, filter_query=filter_query) as conn:
        where_clause, params = _where(filter_query)
        cursor = await conn.execute(f"SELECT COUNT(*) FROM {collection} {where_clause}", params)  # noqa: S608 - collection is validated
        row = await cursor.fetchone()
        return int(row[0]) if row else 0


async def get_first_record(*, collection: str, filter_query: str) -> dict[str, Any] | None:
    """Return the first record (lowest id) matching the filter, or None."""
    records = await list_records(collection=collection, filter_query=filter_query, per_page=1)
    return records[0] if records else None


async def count_by_field(*, collection: str, field: str, filter_query: str = "") -> dict[str, int]:
    """Count records matching the filter, grouped by the value of ``field``."""
    async with _store_operation("count_by_field", collection, field=field, filter_query=filter_query) as conn:
        if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", field):
            raise ValueError(f"Invalid field name: {field}")
        where_clause, params = _where(filter_query)
        query = f"SELECT {field}, COUNT(*) FROM {collection} {where_clause} GROUP BY {field}"  # noqa: S608 - names are validated
        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()

    return {str(value): int(count) for value, count in rows if value is not None}


async def iter_records(
    *,
    collection: str,
    filter_query: str = "",
    sort: str = "",
    batch_size: int = 500,
) -> AsyncIterator[dict[str, Any]]:
    """Yield every record matching the filter, reading ``batch_size`` rows per query."""
    page = 1
    while True:
        batch = await list_records(
            collection=collection,
            page=page,
            per_page=batch_size,
            filter_query=filter_query,
            sort=sort,
        )
        for record in batch:
            yield record
        if len(batch) < batch_size:
            return
        page += 1
