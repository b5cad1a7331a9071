"""Repo id allocation (``C-0001``, ``H-0001``, ``D-0001``).

Ids come from the ``id_counters`` row for the kind's prefix and are
claimed inside the caller's transaction, so a rolled-back create does
not burn an id.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import update

from refsweep.infrastructure.database.engine import SEQUENTIAL_PREFIXES
from refsweep.infrastructure.database.schema import id_counters

if TYPE_CHECKING:
    from sqlalchemy import Connection

ID_WIDTH = 4


def next_sequential_id(conn: Connection, type_prefix: str) -> str:
    """Claim and return the next repo id for *type_prefix*.

    Raises:
        ValueError: If *type_prefix* has no counter row.
    """
    if type_prefix not in SEQUENTIAL_PREFIXES:
        msg = f"Unknown repo id prefix {type_prefix!r}; known: {', '.join(SEQUENTIAL_PREFIXES)}"
        raise ValueError(msg)
    claimed = conn.execute(
        update(id_counters)
        .where(id_counters.c.type_prefix == type_prefix)
        .values(next_value=id_counters.c.next_value + 1)
        .returning(id_counters.c.next_value)
    ).scalar_one()
    return f"{type_prefix}{claimed - 1:0{ID_WIDTH}d}"
