"""Recovering the id of an item created through the URL scheme.

``things:///add`` and ``things:///json`` never report the id of what they
created. After activating a create URL we look the new item up by its exact
title: first a narrow search in the most likely place, then, after a longer
wait, a broad one. When several items share the title the first one found is
returned, which may be an older duplicate.
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from utils.config import ThingsConfig
from utils.logger import get_logger

from . import templates
from .apple_script_client import ChannelExecutor
from .data_models import UNKNOWN_ID, CreateResult
from .errors import ChannelError
from .payloads import ItemType

STAGE_NARROW = "narrow"
STAGE_BROAD = "broad"
STAGE_UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class RecoveryQuery:
    title: str
    item_type: ItemType = ItemType.TODO
    project_id: Optional[str] = None
    area_id: Optional[str] = None
    status: str = "open"


class CreationRecovery:
    """Runs a create URL and finds the id of the created item."""

    def __init__(
        self,
        executor: ChannelExecutor,
        config: Optional[ThingsConfig] = None,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.executor = executor
        self.config = config or executor.config
        self.logger = logger or get_logger(__name__)
        self.sleep = sleep

    def _search(self, script: str, title: str, title_key: str) -> List[str]:
        try:
            output = self.executor.run_script(script)
            records = json.loads(output) if output else []
        except (ChannelError, ValueError) as exc:
            self.logger.warning("Recovery search failed, treating as no match: %s", exc)
            return []
        if not isinstance(records, list):
            return []
        return [
            str(record["id"])
            for record in records
            if isinstance(record, dict) and record.get(title_key) == title and record.get("id")
        ]

    def _narrow_script(self, query: RecoveryQuery) -> str:
        if query.item_type is ItemType.PROJECT:
            return templates.list_projects(
                area_id=query.area_id,
                include_completed=False,
                search_text=query.title,
                limit=self.config.narrow_limit,
            )
        return templates.list_todos(
            status=query.status,
            search_text=query.title,
            limit=self.config.narrow_limit,
            project_id=query.project_id,
            area_id=query.area_id,
        )

    def _broad_script(self, query: RecoveryQuery) -> str:
        if query.item_type is ItemType.PROJECT:
            return templates.list_projects(include_completed=False, limit=self.config.broad_limit)
        return templates.list_todos(
            filter_name="inbox",
            status=query.status,
            limit=self.config.broad_limit,
        )

    def find(self, query: RecoveryQuery) -> CreateResult:
        """Search for ``query.title``; assumes the create URL was already opened."""
        title_key = "name" if query.item_type is ItemType.PROJECT else "title"

        self.sleep(self.config.search_delay)
        matches = self._search(self._narrow_script(query), query.title, title_key)
        if matches:
            if len(matches) > 1:
                self.logger.info("%d items titled %r, returning the first", len(matches), query.title)
            return CreateResult(True, matches[0], STAGE_NARROW)

        self.logger.debug("Narrow search found no %r, retrying broadly", query.title)
        self.sleep(self.config.search_retry_delay)
        matches = self._search(self._broad_script(query), query.title, title_key)
        if matches:
            return CreateResult(True, matches[0], STAGE_BROAD)

        self.logger.warning("Created %s %r but could not find its id", query.item_type.value, query.title)
        return CreateResult(True, UNKNOWN_ID, STAGE_UNRESOLVED)

    def create_and_recover(self, url: str, query: RecoveryQuery) -> CreateResult:
        """Open ``url`` once, then recover the new item's id.

        Only the lookup is retried; the create itself is never resent.
        """
        self.executor.activate(url)
        return self.find(query)
