"""
Folder repository - ordered folders that group feeds.
"""

from .connection import DatabaseConnection
from .converters import row_to_folder
from .models import DBFolder


class FolderRepository:
    """Repository for folder operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def get_all(self, user_id: str) -> list[DBFolder]:
        """Get a user's folders ordered by position."""
        with self._db.conn() as conn:
            rows = conn.execute(
                "SELECT * FROM folders WHERE user_id = ? ORDER BY position ASC, id ASC",
                (user_id,)
            ).fetchall()
            return [row_to_folder(row) for row in rows]

    def get(self, user_id: str, folder_id: int) -> DBFolder | None:
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM folders WHERE id = ? AND user_id = ?", (folder_id, user_id)
            ).fetchone()
            return row_to_folder(row) if row else None

    def add(self, user_id: str, name: str) -> DBFolder:
        """Create a folder after the user's last one (position 0 when it is the first)."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT MAX(position) AS max_pos FROM folders WHERE user_id = ?", (user_id,)
            ).fetchone()
            position = row["max_pos"] + 1 if row["max_pos"] is not None else 0
            cursor = conn.execute(
                "INSERT INTO folders (user_id, name, position) VALUES (?, ?, ?)",
                (user_id, name, position)
            )
            folder_id = cursor.lastrowid
        return self.get(user_id, folder_id)

    def update(
        self,
        user_id: str,
        folder_id: int,
        name: str | None = None,
        position: int | None = None
    ) -> DBFolder | None:
        with self._db.conn() as conn:
            if name is not None:
                conn.execute(
                    "UPDATE folders SET name = ? WHERE id = ? AND user_id = ?",
                    (name, folder_id, user_id)
                )
            if position is not None:
                conn.execute(
                    "UPDATE folders SET position = ? WHERE id = ? AND user_id = ?",
                    (position, folder_id, user_id)
                )
        return self.get(user_id, folder_id)

    def delete(self, user_id: str, folder_id: int) -> bool:
        """Delete a folder. Its feeds become unfiled, never deleted."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                "DELETE FROM folders WHERE id = ? AND user_id = ?", (folder_id, user_id)
            )
            return cursor.rowcount > 0
