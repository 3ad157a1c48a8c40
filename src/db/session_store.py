from __future__ import annotations

import json
from datetime import datetime
from typing import Optional, Tuple

from api.models import User
from db.database import connect

CURRENT = "current"
ORIGINAL = "original"  # the session an impersonation started from


async def save_auth(slot: str, token: str, user: User) -> None:
    """Insert or replace the token/user pair stored under `slot`."""
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO auth(slot, token, user_json, saved_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(slot) DO UPDATE SET
                token = excluded.token,
                user_json = excluded.user_json,
                saved_at = excluded.saved_at;
            """,
            (slot, token, json.dumps(user.to_dict()), datetime.now().isoformat()),
        )
        await conn.commit()


async def load_auth(slot: str) -> Optional[Tuple[str, User]]:
    """Return (token, user) for `slot`, or None if nothing usable is stored."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT token, user_json FROM auth WHERE slot = ?;", (slot,)
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        return None
    try:
        user = User.from_dict(json.loads(row["user_json"]))
    except (ValueError, KeyError):
        # unreadable rows are treated as signed out
        return None
    return row["token"], user


async def clear_auth(slot: Optional[str] = None) -> None:
    """Forget one slot, or every slot when `slot` is None."""
    async with connect() as conn:
        if slot is None:
            await conn.execute("DELETE FROM auth;")
        else:
            await conn.execute("DELETE FROM auth WHERE slot = ?;", (slot,))
        await conn.commit()
