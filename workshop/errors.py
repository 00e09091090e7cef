from __future__ import annotations


class DatabaseError(RuntimeError):
    """Any failure talking to the projects database.

    The underlying sqlite3 exception, when there is one, is kept as __cause__.
    """
