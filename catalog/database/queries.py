from typing import Any, Dict, Optional

import asyncpg


async def insert_row(conn: asyncpg.Connection, table: str, values: Dict[str, Any]) -> asyncpg.Record:
    """INSERT the given columns and return the stored row"""
    columns = list(values)
    placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
    query = f"""
        INSERT INTO {table} ({', '.join(columns)})
        VALUES ({placeholders})
        RETURNING *
    """
    return await conn.fetchrow(query, *values.values())


async def update_row(conn: asyncpg.Connection, table: str, key: str, key_value: Any,
                     values: Dict[str, Any]) -> Optional[asyncpg.Record]:
    """UPDATE the given columns of one row and return it"""
    query_parts = []
    params = [key_value]
    param_count = 2

    for column, value in values.items():
        query_parts.append(f"{column} = ${param_count}")
        params.append(value)
        param_count += 1

    query_parts.append("updated_at = NOW()")
    query = f"""
        UPDATE {table}
        SET {', '.join(query_parts)}
        WHERE {key} = $1
        RETURNING *
    """
    return await conn.fetchrow(query, *params)


async def lock_row(conn: asyncpg.Connection, table: str, key: str, key_value: Any) -> Optional[asyncpg.Record]:
    """SELECT one row FOR UPDATE; the lock is held until the transaction ends"""
    return await conn.fetchrow(f"""
        SELECT *
        FROM {table}
        WHERE {key} = $1
        FOR UPDATE
    """, key_value)
