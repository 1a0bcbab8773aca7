"""Tag add/remove emulation on top of Things3's whole-set tag replacement.

Things3 stores an item's tags as one comma-delimited ``tag names`` string and
only lets callers replace the whole set. Adding or removing individual tags
therefore means: read the current string, split it, edit the list, write the
full list back.
"""
from __future__ import annotations

import json
import logging
from typing import Callable, Dict, List, Optional, Sequence

from utils.logger import get_logger

from . import templates
from .apple_script_client import ChannelExecutor
from .data_models import BatchResult
from .errors import ChannelError, EncodingError
from .payloads import ItemType, PayloadEncoder, WriteIntent

TAG_DELIMITER = ","


def _trim(tag: str) -> str:
    # ASCII spaces only; other whitespace is part of the tag name.
    return tag.strip(" ")


def parse_tag_string(tag_names: Optional[str]) -> List[str]:
    """Split a ``tag names`` string into a list of tag names."""
    if not tag_names:
        return []
    return [t for t in (_trim(part) for part in tag_names.split(TAG_DELIMITER)) if t]


def add_tags(existing: Optional[Sequence[str]], to_add: Sequence[str]) -> List[str]:
    """Append ``to_add`` to ``existing``. Things3 de-duplicates on its side."""
    return list(existing or []) + [t for t in (_trim(tag) for tag in to_add) if t]


def remove_tags(existing: Optional[Sequence[str]], to_remove: Sequence[str]) -> Optional[List[str]]:
    """Remove every tag in ``to_remove`` from ``existing``.

    Returns ``None`` when none of the tags was present, so the caller can skip
    the write entirely.
    """
    original = [_trim(t) for t in (existing or [])]
    remaining = list(original)
    for tag in to_remove:
        target = _trim(tag)
        remaining = [t for t in remaining if t != target]
    if remaining == original:
        return None
    return remaining


class TagDeltaEmulator:
    """Applies tag additions/removals to a batch of to-dos or projects."""

    def __init__(
        self,
        executor: ChannelExecutor,
        encoder: PayloadEncoder,
        logger: Optional[logging.Logger] = None,
    ):
        self.executor = executor
        self.encoder = encoder
        self.logger = logger or get_logger(__name__)

    def _read_tags(self, item_id: str) -> Optional[Dict[str, object]]:
        output = self.executor.run_script(templates.get_tag_names(item_id))
        if not output or output == "null":
            return None
        return json.loads(output)

    def _apply(
        self,
        item_ids: Sequence[str],
        compute: Callable[[List[str]], Optional[List[str]]],
    ) -> BatchResult:
        result = BatchResult()
        intents: List[WriteIntent] = []

        for item_id in item_ids:
            try:
                current = self._read_tags(item_id)
            except (ChannelError, ValueError) as exc:
                self.logger.warning("Could not read tags of %s: %s", item_id, exc)
                result.failed_ids.append(item_id)
                continue
            if current is None:
                self.logger.info("No to-do or project found with id %s", item_id)
                result.failed_ids.append(item_id)
                continue

            new_tags = compute(parse_tag_string(str(current.get("tags") or "")))
            if new_tags is None:
                result.skipped_ids.append(item_id)
                continue

            item_type = ItemType.PROJECT if current.get("kind") == ItemType.PROJECT.value else ItemType.TODO
            try:
                intents.append(WriteIntent.tag_change(item_type, item_id, tags=new_tags))
            except EncodingError as exc:
                self.logger.warning("Skipping %s: %s", item_id, exc)
                result.failed_ids.append(item_id)

        if intents:
            self.executor.activate(self.encoder.json_url(intents))
            result.success_count = len(intents)
        return result

    def add(self, item_ids: Sequence[str], tags: Sequence[str]) -> BatchResult:
        return self._apply(item_ids, lambda current: add_tags(current, tags))

    def remove(self, item_ids: Sequence[str], tags: Sequence[str]) -> BatchResult:
        return self._apply(item_ids, lambda current: remove_tags(current, tags))
