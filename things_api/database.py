"""Read-only access to checklist items in the Things3 SQLite store.

AppleScript does not expose checklist items, so they are read straight from
the database. Nothing is ever written here.
"""
import logging
import sqlite3
from pathlib import Path
from typing import List, Optional, Union

from utils.config import DEFAULT_DATABASE_PATH
from utils.logger import get_logger

from .data_models import ChecklistItem

# TMChecklistItem.status value for a ticked item.
COMPLETED_STATUS = 3

CHECKLIST_QUERY = 'SELECT uuid, title, status FROM TMChecklistItem WHERE task = ? ORDER BY "index"'


class ChecklistReader:
    def __init__(self, db_path: Union[str, Path, None] = None, logger: Optional[logging.Logger] = None):
        self.db_path = Path(db_path) if db_path else DEFAULT_DATABASE_PATH
        self.logger = logger or get_logger(__name__)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(f"{self.db_path.resolve().as_uri()}?mode=ro", uri=True)

    def get_checklist_items(self, todo_id: str) -> List[ChecklistItem]:
        """Checklist items of ``todo_id`` in display order; ``[]`` on any error."""
        if not self.db_path.exists():
            self.logger.debug("Things3 database not found at %s", self.db_path)
            return []
        try:
            conn = self._connect()
            try:
                rows = conn.execute(CHECKLIST_QUERY, (todo_id,)).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            self.logger.error("Could not read checklist items for %s: %s", todo_id, exc)
            return []
        return [
            ChecklistItem(id=uuid, title=title or "", completed=int(status or 0) == COMPLETED_STATUS)
            for uuid, title, status in rows
        ]
