from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import aiosqlite

from errors import WatchlistEntryExists, WatchlistEntryNotFound
from models import WatchlistCreate, WatchlistEntry, WatchlistUpdate, WatchStatus

DB_PATH = Path("data/movietracker.db")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def init_db(db_path: Path = DB_PATH) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    async with aiosqlite.connect(db_path) as db:
        await db.execute(
            """
            CREATE TABLE IF NOT EXISTS watchlist (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id     INTEGER NOT NULL,
                movie_id    INTEGER NOT NULL,
                status      TEXT NOT NULL DEFAULT 'plan to watch',
                favorite    INTEGER NOT NULL DEFAULT 0,
                comments    TEXT,
                rating      INTEGER CHECK (rating IS NULL OR rating BETWEEN 1 AND 10),
                created_at  TEXT,
                updated_at  TEXT,
                UNIQUE (user_id, movie_id)
            )
            """
        )
        await db.commit()


async def add_entry(user_id: int, entry: WatchlistCreate, db_path: Path = DB_PATH) -> WatchlistEntry:
    now = _now()
    async with aiosqlite.connect(db_path) as db:
        try:
            await db.execute(
                """
                INSERT INTO watchlist
                    (user_id, movie_id, status, favorite, comments, rating, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    entry.movie_id,
                    entry.status.value,
                    int(entry.favorite),
                    entry.comments,
                    entry.rating,
                    now,
                    now,
                ),
            )
        except aiosqlite.IntegrityError as exc:
            raise WatchlistEntryExists(user_id, entry.movie_id) from exc
        await db.commit()
    return await _fetch_existing(user_id, entry.movie_id, db_path)


async def get_entry(user_id: int, movie_id: int, db_path: Path = DB_PATH) -> Optional[WatchlistEntry]:
    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        async with db.execute(
            "SELECT * FROM watchlist WHERE user_id = ? AND movie_id = ?",
            (user_id, movie_id),
        ) as cursor:
            row = await cursor.fetchone()
    return _row_to_entry(row) if row else None


async def get_entries(
    user_id: int,
    status: Optional[WatchStatus] = None,
    favorite: Optional[bool] = None,
    db_path: Path = DB_PATH,
) -> list[WatchlistEntry]:
    sql = "SELECT * FROM watchlist WHERE user_id = ?"
    args: list = [user_id]
    if status is not None:
        sql += " AND status = ?"
        args.append(status.value)
    if favorite is not None:
        sql += " AND favorite = ?"
        args.append(int(favorite))
    sql += " ORDER BY id"

    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        async with db.execute(sql, args) as cursor:
            rows = await cursor.fetchall()
    return [_row_to_entry(row) for row in rows]


async def update_entry(
    user_id: int, movie_id: int, update: WatchlistUpdate, db_path: Path = DB_PATH
) -> WatchlistEntry:
    """Apply only the fields present on ``update``; explicit nulls clear a column."""
    changes = update.changes()
    if "favorite" in changes:
        changes["favorite"] = int(changes["favorite"])
    changes["updated_at"] = _now()

    # Column names come from WatchlistUpdate's fields, never from user input.
    assignments = ", ".join(f"{column} = ?" for column in changes)
    async with aiosqlite.connect(db_path) as db:
        cursor = await db.execute(
            f"UPDATE watchlist SET {assignments} WHERE user_id = ? AND movie_id = ?",
            (*changes.values(), user_id, movie_id),
        )
        if cursor.rowcount == 0:
            raise WatchlistEntryNotFound(user_id, movie_id)
        await db.commit()
    return await _fetch_existing(user_id, movie_id, db_path)


async def remove_entry(user_id: int, movie_id: int, db_path: Path = DB_PATH) -> None:
    async with aiosqlite.connect(db_path) as db:
        cursor = await db.execute(
            "DELETE FROM watchlist WHERE user_id = ? AND movie_id = ?",
            (user_id, movie_id),
        )
        if cursor.rowcount == 0:
            raise WatchlistEntryNotFound(user_id, movie_id)
        await db.commit()


async def _fetch_existing(user_id: int, movie_id: int, db_path: Path) -> WatchlistEntry:
    entry = await get_entry(user_id, movie_id, db_path)
    if entry is None:
        raise WatchlistEntryNotFound(user_id, movie_id)
    return entry


def _row_to_entry(row: aiosqlite.Row) -> WatchlistEntry:
    return WatchlistEntry(
        id=row["id"],
        user_id=row["user_id"],
        movie_id=row["movie_id"],
        status=WatchStatus(row["status"]),
        favorite=bool(row["favorite"]),
        comments=row["comments"],
        rating=row["rating"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
