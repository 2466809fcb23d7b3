"""SQLite database client wrapper with collection-style CRUD operations."""

import asyncio
import json
import logging
import re
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any

import aiosqlite

from src.core.config import constants, settings


logger = logging.getLogger(__name__)

# Columns holding JSON-encoded lists or objects
_JSON_FIELDS = {"subtasks", "assigned_workers", "completed_subtask_ids"}

_COMPARISON_RE = re.compile(r"""^(\w+)\s*(!=|>=|<=|=|>|<|~)\s*(['"])(.*)\3$""")
_SORT_RE = re.compile(r"^([+-]?)([A-Za-z_][A-Za-z0-9_]*)(?:\s+(ASC|DESC))?$", re.IGNORECASE)
_SQL_OPERATORS = {"=": "=", "!=": "!=", ">": ">", "<": "<", ">=": ">=", "<=": "<=", "~": "LIKE"}


class DatabaseError(Exception):
    """Raised when a storage operation fails."""


class RecordNotFoundError(DatabaseError, KeyError):
    """Raised when a record id does not exist in a collection."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Record not found"


class InvalidFilterError(ValueError):
    """Raised when a filter expression does not follow the filter grammar."""


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for safe embedding in filter expressions via json.dumps."""
    return json.dumps(str(value))[1:-1]


def _encode_value(value: Any) -> Any:
    """Convert a Python value into something SQLite can bind."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict | list | tuple | set):
        return json.dumps(list(value) if isinstance(value, tuple | set) else value)
    return value


def _decode_record(record: dict[str, Any]) -> dict[str, Any]:
    """Stringify id columns and decode JSON columns for Pydantic compatibility."""
    decoded = record.copy()
    for key, value in decoded.items():
        if isinstance(value, int) and (key == "id" or key.endswith("_id")):
            decoded[key] = str(value)
        elif key in _JSON_FIELDS and isinstance(value, str):
            decoded[key] = json.loads(value) if value else []
    return decoded


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    return Path(db_path or settings.sqlite_db_path).resolve()


def _parse_literal(raw: str, *, is_like: bool) -> str | int | float:
    """Parse a quoted filter literal to the matching SQLite type."""
    if is_like:
        escaped = raw.replace("%", "\\%").replace("_", "\\_")
        return f"%{escaped}%"
    if raw.isdigit():
        return int(raw)
    if raw.replace(".", "", 1).isdigit():
        return float(raw)
    return raw


def split_conditions(filter_query: str) -> list[str]:
    """Split a filter expression on `&&` that sits outside quoted values."""
    parts: list[str] = []
    current: list[str] = []
    quote: str | None = None
    escaped = False
    i = 0
    while i < len(filter_query):
        ch = filter_query[i]
        if quote:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif filter_query.startswith("&&", i):
            parts.append("".join(current))
            current = []
            i += 2
            continue
        current.append(ch)
        i += 1
    parts.append("".join(current))
    return parts


def parse_filter(filter_query: str) -> tuple[str, list[str | int | float]]:
    """Parse `field = "value" && other != "x"` syntax into a SQL WHERE clause and parameters."""
    if not filter_query.strip():
        return "", []

    conditions = []
    params: list[str | int | float] = []
    for part in split_conditions(filter_query):
        match = _COMPARISON_RE.match(part.strip())
        if not match:
            msg = f"Invalid filter syntax: {part.strip()}"
            raise InvalidFilterError(msg)
        field, op, _, raw = match.groups()
        sql_op = _SQL_OPERATORS[op]
        is_like = sql_op == "LIKE"
        conditions.append(f"{field} {sql_op} ? ESCAPE '\\'" if is_like else f"{field} {sql_op} ?")
        params.append(_parse_literal(raw, is_like=is_like))

    return " AND ".join(conditions), params


def parse_sort(sort: str) -> str:
    """Translate `+field`, `-field` or `field DESC` into a safe ORDER BY clause."""
    match = _SORT_RE.match(sort.strip()) if sort else None
    if not match:
        if sort:
            logger.warning("Invalid sort parameter, using default", extra={"sort": sort})
        return "id ASC"
    prefix, field, direction = match.groups()
    if direction:
        return f"{field} {direction.upper()}"
    return f"{field} {'DESC' if prefix == '-' else 'ASC'}"


_db_connections: dict[tuple[int, str], aiosqlite.Connection] = {}
_db_lock = asyncio.Lock()


async def get_connection(*, db_path: str | None = None) -> aiosqlite.Connection:
    """Get or create a cached connection for the running event loop and db path."""
    loop_id = id(asyncio.get_running_loop())
    path = get_db_path(db_path)
    cache_key = (loop_id, str(path))

    if cache_key in _db_connections:
        return _db_connections[cache_key]

    async with _db_lock:
        if cache_key in _db_connections:
            return _db_connections[cache_key]

        path.parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(str(path))
        await conn.execute("PRAGMA foreign_keys = ON")
        await conn.execute("PRAGMA journal_mode = WAL")
        _db_connections[cache_key] = conn

        logger.info("Created new SQLite connection", extra={"db_path": str(path), "loop_id": loop_id})
        return conn


async def close_connection(*, db_path: str | None = None) -> None:
    """Close the cached SQLite connection for the running event loop and db path."""
    cache_key = (id(asyncio.get_running_loop()), str(get_db_path(db_path)))

    async with _db_lock:
        conn = _db_connections.pop(cache_key, None)
        if conn is None:
            return
        try:
            await conn.close()
            logger.info("Closed SQLite connection", extra={"db_path": cache_key[1]})
        except (aiosqlite.Error, ValueError) as e:
            logger.warning("Error closing SQLite connection", extra={"error": str(e)})


async def init_db(*, db_path: str | None = None) -> None:
    """Create every table and index declared by registered modules."""
    from src.core.module_registry import get_all_indexes, get_all_table_schemas

    conn = await get_connection(db_path=db_path)
    for table_name, ddl in get_all_table_schemas().items():
        await conn.execute(ddl)
        logger.debug("Ensured table", extra={"table": table_name})
    for index_ddl in get_all_indexes():
        await conn.execute(index_ddl)
    await conn.commit()
    logger.info("Database schema initialized", extra={"db_path": str(get_db_path(db_path))})


def _row_to_record(cursor: aiosqlite.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    columns = [description[0] for description in cursor.description]
    return _decode_record(dict(zip(columns, row, strict=True)))


async def create_record(*, collection: str, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a new record and return it with its assigned id."""
    _validate_collection_name(collection)
    try:
        conn = await get_connection()
        columns = list(data.keys())
        values = [_encode_value(data[key]) for key in columns]
        placeholders = ", ".join("?" for _ in columns)

        query = f"INSERT INTO {collection} ({', '.join(columns)}) VALUES ({placeholders})"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, values)
        await conn.commit()
        record_id = cursor.lastrowid
    except aiosqlite.Error as e:
        logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to create record in {collection}: {e}"
        raise DatabaseError(msg) from e

    logger.info("Created record", extra={"collection": collection, "record_id": record_id})
    return await get_record(collection=collection, record_id=str(record_id))


async def get_record(*, collection: str, record_id: str) -> dict[str, Any]:
    """Fetch a single record by ID, raising RecordNotFoundError if not found."""
    _validate_collection_name(collection)
    if not str(record_id).isdigit():
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)

    try:
        conn = await get_connection()
        query = f"SELECT * FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (int(record_id),))
        row = await cursor.fetchone()
    except aiosqlite.Error as e:
        logger.error("get_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        msg = f"Failed to get record from {collection}: {e}"
        raise DatabaseError(msg) from e

    if row is None:
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)

    logger.debug("Retrieved record", extra={"collection": collection, "record_id": record_id})
    return _row_to_record(cursor, row)


async def update_record(*, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """Update a record by ID in a single statement and return the updated record."""
    if not data:
        msg = "Empty update payload"
        raise ValueError(msg)
    _validate_collection_name(collection)
    if not str(record_id).isdigit():
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)

    try:
        conn = await get_connection()
        set_clause = ", ".join(f"{key} = ?" for key in data)
        values = [_encode_value(val) for val in data.values()]
        values.append(int(record_id))

        query = f"UPDATE {collection} SET {set_clause}, updated = datetime('now') WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, values)
        await conn.commit()
    except aiosqlite.Error as e:
        logger.error("update_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        msg = f"Failed to update record in {collection}: {e}"
        raise DatabaseError(msg) from e

    if cursor.rowcount == 0:
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)

    logger.info("Updated record", extra={"collection": collection, "record_id": record_id})
    return await get_record(collection=collection, record_id=record_id)


async def delete_record(*, collection: str, record_id: str) -> None:
    """Delete a record by ID, raising RecordNotFoundError if not found."""
    _validate_collection_name(collection)
    if not str(record_id).isdigit():
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)

    try:
        conn = await get_connection()
        query = f"DELETE FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (int(record_id),))
        await conn.commit()
    except aiosqlite.Error as e:
        logger.error("delete_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        msg = f"Failed to delete record from {collection}: {e}"
        raise DatabaseError(msg) from e

    if cursor.rowcount == 0:
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg)

    logger.info("Deleted record", extra={"collection": collection, "record_id": record_id})


async def list_records(
    *,
    collection: str,
    page: int = 1,
    per_page: int = constants.DEFAULT_PER_PAGE_LIMIT,
    filter_query: str = "",
    sort: str = "",
) -> list[dict[str, Any]]:
    """List records with optional filtering, sorting, and pagination."""
    _validate_collection_name(collection)
    where_clause, params = parse_filter(filter_query)
    where_sql = f"WHERE {where_clause}" if where_clause else ""
    order_by = parse_sort(sort)
    offset = (page - 1) * per_page

    try:
        conn = await get_connection()
        query = f"SELECT * FROM {collection} {where_sql} ORDER BY {order_by} LIMIT ? OFFSET ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, [*params, per_page, offset])
        rows = await cursor.fetchall()
    except aiosqlite.Error as e:
        logger.error("list_records_failed", extra={"collection": collection, "error": str(e)})
        msg = f"Failed to list records from {collection}: {e}"
        raise DatabaseError(msg) from e

    records = [_row_to_record(cursor, row) for row in rows]
    logger.debug("Listed records", extra={"collection": collection, "count": len(records)})
    return records


async def get_first_record(*, collection: str, filter_query: str) -> dict[str, Any] | None:
    """Return the first record matching the filter, or None."""
    records = await list_records(collection=collection, filter_query=filter_query, per_page=1)
    return records[0] if records else None


async def list_all_records(*, collection: str, filter_query: str = "", sort: str = "") -> list[dict[str, Any]]:
    """Page through every record matching the filter."""
    records: list[dict[str, Any]] = []
    page = 1
    while True:
        batch = await list_records(
            collection=collection,
            page=page,
            per_page=constants.MAX_PER_PAGE_LIMIT,
            filter_query=filter_query,
            sort=sort,
        )
        records.extend(batch)
        if len(batch) < constants.MAX_PER_PAGE_LIMIT:
            return records
        page += 1
