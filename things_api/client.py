"""High level Things3 operations.

:class:`ThingsClient` wires the channel executor, the payload encoder, the
creation recovery protocol, the tag emulator and the checklist reader into one
object with an entity-oriented API. Reads go through AppleScript templates;
creates and updates go through the URL scheme.
"""
from __future__ import annotations

import functools
import json
import logging
import time
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from utils.config import ThingsConfig
from utils.logger import get_logger

from . import templates
from .apple_script_client import ChannelExecutor
from .data_models import (
    AreaItem,
    BatchResult,
    CreateResult,
    ProjectItem,
    TagItem,
    TodoItem,
    TodoSummary,
)
from .database import ChecklistReader
from .errors import ChannelError, EncodingError, ErrorType, Things3Error
from .payloads import BatchIntent, IntentKind, ItemType, PayloadEncoder, WriteIntent
from .recovery import CreationRecovery, RecoveryQuery
from .tags import TagDeltaEmulator

IdArg = Union[str, Sequence[str]]
ModelT = TypeVar("ModelT", bound=BaseModel)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


# Marks a keyword argument the caller did not pass; ``None`` means "clear".
UNSET: Any = _Unset()


def _as_list(ids: IdArg) -> List[str]:
    if isinstance(ids, str):
        return [ids]
    return [str(i) for i in ids]


def _given(**values: Any) -> Dict[str, Any]:
    """Drop keyword arguments that are :data:`UNSET`."""
    return {key: value for key, value in values.items() if value is not UNSET}


def _present(**values: Any) -> Dict[str, Any]:
    """Drop keyword arguments that are ``None`` (create intents have nothing to clear)."""
    return {key: value for key, value in values.items() if value is not None}


def _wrap_errors(func: Callable) -> Callable:
    """Re-raise Things3 errors as they are; wrap anything else as UNKNOWN."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Things3Error:
            raise
        except Exception as exc:
            raise Things3Error(ErrorType.UNKNOWN, f"{func.__name__} failed: {exc}") from exc

    return wrapper


class ThingsClient:
    def __init__(
        self,
        config: Optional[ThingsConfig] = None,
        executor: Optional[ChannelExecutor] = None,
        checklist_reader: Optional[ChecklistReader] = None,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
        today: Optional[Callable[[], date]] = None,
    ):
        self.config = config or ThingsConfig()
        self.logger = logger or get_logger(__name__)
        self.executor = executor or ChannelExecutor(self.config, logger=self.logger, sleep=sleep)
        self.encoder = PayloadEncoder(self.config.auth_token, today=today, logger=self.logger)
        self.recovery = CreationRecovery(self.executor, self.config, logger=self.logger, sleep=sleep)
        self.tag_emulator = TagDeltaEmulator(self.executor, self.encoder, logger=self.logger)
        self.checklist_reader = checklist_reader or ChecklistReader(self.config.database_path, logger=self.logger)
        self._launch_checked = False

    # -- plumbing ------------------------------------------------------------

    def _prepare(self) -> None:
        if not self._launch_checked:
            self.executor.ensure_running()
            self._launch_checked = True

    def _run_json(self, script: str) -> Any:
        self._prepare()
        output = self.executor.run_script(script)
        if not output or output == "null":
            return None
        try:
            return json.loads(output)
        except ValueError as exc:
            raise Things3Error(ErrorType.APPLESCRIPT_ERROR, "Script returned invalid JSON", output) from exc

    def _parse_list(self, model: Type[ModelT], script: str) -> List[ModelT]:
        records = self._run_json(script) or []
        items: List[ModelT] = []
        for record in records:
            try:
                items.append(model.model_validate(record))
            except ValidationError as exc:
                self.logger.warning("Skipping malformed %s record: %s", model.__name__, exc)
        return items

    def _run_count(self, script: str) -> int:
        output = self.executor.run_script(script)
        try:
            return int(output or 0)
        except ValueError:
            self.logger.warning("Unexpected script output: %r", output)
            return 0

    def _run_batch(self, ids: IdArg, build: Callable[[Sequence[str]], str]) -> BatchResult:
        """Run ``build([id])`` per id; a failing item never stops the batch."""
        self._prepare()
        result = BatchResult()
        for item_id in _as_list(ids):
            try:
                changed = self._run_count(build([item_id]))
            except ChannelError as exc:
                self.logger.error("Failed on %s: %s", item_id, exc)
                result.failed_ids.append(item_id)
                continue
            if changed:
                result.success_count += changed
            else:
                self.logger.info("Nothing changed for %s (not found or already in that state)", item_id)
                result.skipped_ids.append(item_id)
        return result

    def _ensure_intent_tags(self, intents: Sequence[WriteIntent]) -> None:
        names: List[str] = []
        for intent in intents:
            for key in ("tags", "add_tags"):
                value = intent.attributes.get(key)
                if value:
                    names.extend([value] if isinstance(value, str) else value)
        if names:
            self.ensure_tags_exist(names)

    def _write(self, intents: Sequence[WriteIntent]) -> BatchResult:
        """Send ``intents`` as one JSON document. The effect is not verified."""
        self._prepare()
        self._ensure_intent_tags(intents)
        self.executor.activate(self.encoder.json_url(intents))
        return BatchResult(success_count=len(intents))

    def _create(self, intent: WriteIntent, query: RecoveryQuery) -> CreateResult:
        self._prepare()
        self._ensure_intent_tags([intent])
        result = self.recovery.create_and_recover(self.encoder.url_for(intent), query)
        self.logger.info("Created %s %r -> %s", intent.item_type.value, query.title, result.id)
        return result

    # -- to-dos --------------------------------------------------------------

    @_wrap_errors
    def list_todos(
        self,
        filter_name: Optional[str] = None,
        status: Optional[str] = None,
        search_text: Optional[str] = None,
        limit: Optional[int] = None,
        case_sensitive: bool = False,
        project_id: Optional[str] = None,
        area_id: Optional[str] = None,
        offset: int = 0,
    ) -> List[TodoSummary]:
        """List to-dos; ``offset`` skips that many matches before ``limit`` applies."""
        if offset < 0:
            raise EncodingError("offset must not be negative", {"offset": offset})
        script = templates.list_todos(
            filter_name=filter_name,
            status=status,
            search_text=search_text,
            # The script stops after offset + limit matches; the skip happens here.
            limit=None if limit is None else offset + limit,
            case_sensitive=case_sensitive,
            project_id=project_id,
            area_id=area_id,
        )
        return self._parse_list(TodoSummary, script)[offset:]

    @_wrap_errors
    def get_todo(self, todo_id: str) -> Optional[TodoItem]:
        """A to-do with its checklist items, or ``None`` if it does not exist."""
        record = self._run_json(templates.get_todo_by_id(todo_id))
        if record is None:
            return None
        todo = TodoItem.model_validate(record)
        todo.checklist_items = self.checklist_reader.get_checklist_items(todo_id)
        return todo

    @_wrap_errors
    def create_todo(
        self,
        title: str,
        notes: Optional[str] = None,
        when: Optional[str] = None,
        deadline: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
        checklist_items: Optional[Sequence[str]] = None,
        project_id: Optional[str] = None,
        area_id: Optional[str] = None,
        heading: Optional[str] = None,
    ) -> CreateResult:
        intent = WriteIntent.create(
            ItemType.TODO,
            **_present(
                title=title,
                notes=notes,
                when=when,
                deadline=deadline,
                tags=list(tags) if tags else None,
                checklist_items=list(checklist_items) if checklist_items else None,
                list_id=project_id or area_id,
                heading=heading,
            ),
        )
        query = RecoveryQuery(title, ItemType.TODO, project_id=project_id, area_id=area_id)
        return self._create(intent, query)

    @_wrap_errors
    def update_todo(
        self,
        todo_id: str,
        title: Any = UNSET,
        notes: Any = UNSET,
        when: Any = UNSET,
        deadline: Any = UNSET,
        tags: Any = UNSET,
        checklist_items: Any = UNSET,
        list_id: Any = UNSET,
        heading: Any = UNSET,
    ) -> BatchResult:
        """Update a to-do. Omitted arguments are left alone; ``None`` clears."""
        changes = _given(
            title=title,
            notes=notes,
            when=when,
            deadline=deadline,
            tags=tags,
            checklist_items=checklist_items,
            list_id=list_id,
            heading=heading,
        )
        if not changes:
            raise EncodingError("Nothing to update", {"id": todo_id})
        return self._write([WriteIntent.update(ItemType.TODO, todo_id, **changes)])

    @_wrap_errors
    def complete_todos(self, todo_ids: IdArg) -> BatchResult:
        return self._run_batch(todo_ids, templates.complete_todos)

    @_wrap_errors
    def uncomplete_todos(self, todo_ids: IdArg) -> BatchResult:
        return self._run_batch(todo_ids, templates.uncomplete_todos)

    @_wrap_errors
    def cancel_todos(self, todo_ids: IdArg) -> BatchResult:
        return self._run_batch(todo_ids, templates.cancel_todos)

    @_wrap_errors
    def delete_todos(self, todo_ids: IdArg) -> BatchResult:
        return self._run_batch(todo_ids, templates.delete_todos)

    @_wrap_errors
    def add_checklist_items(self, todo_id: str, items: Sequence[str]) -> BatchResult:
        if not items:
            raise EncodingError("No checklist items given", {"id": todo_id})
        intent = WriteIntent.update(ItemType.TODO, todo_id, append_checklist_items=list(items))
        return self._write([intent])

    # -- projects ------------------------------------------------------------

    @_wrap_errors
    def list_projects(
        self,
        area_id: Optional[str] = None,
        include_completed: bool = True,
        search_text: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[ProjectItem]:
        script = templates.list_projects(
            area_id=area_id,
            include_completed=include_completed,
            search_text=search_text,
            limit=limit,
        )
        return self._parse_list(ProjectItem, script)

    @_wrap_errors
    def get_project(self, project_id: str) -> Optional[ProjectItem]:
        record = self._run_json(templates.get_project_by_id(project_id))
        return None if record is None else ProjectItem.model_validate(record)

    @_wrap_errors
    def create_project(
        self,
        title: str,
        notes: Optional[str] = None,
        when: Optional[str] = None,
        deadline: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
        area_id: Optional[str] = None,
        headings: Optional[Sequence[str]] = None,
    ) -> CreateResult:
        intent = WriteIntent.create(
            ItemType.PROJECT,
            **_present(
                title=title,
                notes=notes,
                when=when,
                deadline=deadline,
                tags=list(tags) if tags else None,
                area_id=area_id,
                headings=list(headings) if headings else None,
            ),
        )
        return self._create(intent, RecoveryQuery(title, ItemType.PROJECT, area_id=area_id))

    @_wrap_errors
    def update_project(
        self,
        project_id: str,
        title: Any = UNSET,
        notes: Any = UNSET,
        when: Any = UNSET,
        deadline: Any = UNSET,
        tags: Any = UNSET,
        area_id: Any = UNSET,
    ) -> BatchResult:
        changes = _given(title=title, notes=notes, when=when, deadline=deadline, tags=tags, area_id=area_id)
        if not changes:
            raise EncodingError("Nothing to update", {"id": project_id})
        return self._write([WriteIntent.update(ItemType.PROJECT, project_id, **changes)])

    @_wrap_errors
    def complete_project(self, project_id: str) -> BatchResult:
        return self._run_batch(project_id, lambda ids: templates.complete_project(ids[0]))

    @_wrap_errors
    def delete_projects(self, project_ids: IdArg) -> BatchResult:
        return self._run_batch(project_ids, templates.delete_projects)

    # -- areas ---------------------------------------------------------------

    @_wrap_errors
    def list_areas(self) -> List[AreaItem]:
        return self._parse_list(AreaItem, templates.list_areas())

    @_wrap_errors
    def create_area(self, name: str) -> CreateResult:
        if not name or not name.strip():
            raise EncodingError("Area name must not be empty")
        self._prepare()
        area_id = self.executor.run_script(templates.create_area(name))
        return CreateResult(True, area_id)

    @_wrap_errors
    def delete_areas(self, area_ids: IdArg) -> BatchResult:
        return self._run_batch(area_ids, templates.delete_areas)

    # -- tags ----------------------------------------------------------------

    @_wrap_errors
    def list_tags(self) -> List[TagItem]:
        return self._parse_list(TagItem, templates.list_tags())

    @_wrap_errors
    def create_tag(self, name: str, parent_tag_id: Optional[str] = None) -> CreateResult:
        if not name or not name.strip():
            raise EncodingError("Tag name must not be empty")
        self._prepare()
        tag_id = self.executor.run_script(templates.create_tag(name, parent_tag_id))
        return CreateResult(True, tag_id)

    @_wrap_errors
    def delete_tags(self, names: IdArg) -> BatchResult:
        return self._run_batch(names, templates.delete_tags)

    @_wrap_errors
    def ensure_tags_exist(self, tags: Sequence[str]) -> List[str]:
        """Create the tags Things3 does not have yet and return their names.

        The URL scheme silently drops tag names that do not exist, so every
        write carrying tags goes through here first. A tag that cannot be
        created is logged and skipped.
        """
        wanted: List[str] = []
        for tag in tags:
            name = tag.strip(" ")
            if name and name not in wanted:
                wanted.append(name)
        if not wanted:
            return []

        existing = {tag.name for tag in self.list_tags()}
        created: List[str] = []
        for name in wanted:
            if name in existing:
                continue
            try:
                self.executor.run_script(templates.create_tag(name))
            except ChannelError as exc:
                self.logger.warning("Could not create tag %r: %s", name, exc)
                continue
            self.logger.info("Created missing tag %r", name)
            created.append(name)
        return created

    @_wrap_errors
    def add_tags(self, item_ids: IdArg, tags: Sequence[str]) -> BatchResult:
        self._prepare()
        self.ensure_tags_exist(tags)
        return self.tag_emulator.add(_as_list(item_ids), list(tags))

    @_wrap_errors
    def remove_tags(self, item_ids: IdArg, tags: Sequence[str]) -> BatchResult:
        self._prepare()
        return self.tag_emulator.remove(_as_list(item_ids), list(tags))

    # -- bulk ----------------------------------------------------------------

    @_wrap_errors
    def bulk_move(
        self,
        todo_ids: IdArg,
        project_id: Optional[str] = None,
        area_id: Optional[str] = None,
    ) -> BatchResult:
        """Move to-dos to a project or area; with neither, to the Inbox."""
        batch = BatchIntent(IntentKind.MOVE, ItemType.TODO, _as_list(todo_ids), {"list_id": project_id or area_id})
        return self._write(batch.expand())

    @_wrap_errors
    def bulk_update_dates(self, todo_ids: IdArg, when: Any = UNSET, deadline: Any = UNSET) -> BatchResult:
        changes = _given(when=when, deadline=deadline)
        if not changes:
            raise EncodingError("Give a when date, a deadline, or both")
        batch = BatchIntent(IntentKind.UPDATE, ItemType.TODO, _as_list(todo_ids), changes)
        return self._write(batch.expand())

    # -- logbook and host ----------------------------------------------------

    @_wrap_errors
    def search_logbook(
        self,
        search_text: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        limit: Optional[int] = 100,
    ) -> List[TodoSummary]:
        script = templates.search_logbook(search_text, from_date, to_date, limit)
        return self._parse_list(TodoSummary, script)

    @_wrap_errors
    def version(self) -> str:
        return self.executor.version()

    @_wrap_errors
    def ensure_running(self) -> None:
        self.executor.ensure_running()
        self._launch_checked = True
