"""Write intents and their encoding for the Things3 URL scheme.

A :class:`WriteIntent` describes one pending mutation. Each attribute has
three states:

* key present with a value: set the attribute;
* key present with ``None``: clear the attribute;
* key absent: leave the attribute unchanged.

:class:`PayloadEncoder` renders intents into either a simple
``things:///add?...`` URL or a ``things:///json?data=...`` URL carrying one JSON
object per item. Absent attributes are left out of the payload so Things3
keeps the current value; cleared attributes are sent as the host's "clear"
value for their type.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence
from urllib.parse import quote, urlencode

from utils.logger import get_logger

from .dates import normalize_date
from .errors import EncodingError

URL_SCHEME = "things"


class Operation(str, Enum):
    ADD = "add"
    JSON = "json"


class ItemType(str, Enum):
    TODO = "to-do"
    PROJECT = "project"
    HEADING = "heading"
    CHECKLIST_ITEM = "checklist-item"


class IntentKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    STATUS_CHANGE = "status-change"
    MOVE = "move"
    TAG_CHANGE = "tag-change"


class AttributeType(str, Enum):
    TEXT = "text"
    DATE = "date"
    TAGS = "tags"
    CHECKLIST = "checklist"
    REFERENCE = "reference"
    FLAG = "flag"
    HEADINGS = "headings"


ATTRIBUTE_TYPES: Dict[str, AttributeType] = {
    "title": AttributeType.TEXT,
    "notes": AttributeType.TEXT,
    "heading": AttributeType.TEXT,
    "area": AttributeType.TEXT,
    "when": AttributeType.DATE,
    "deadline": AttributeType.DATE,
    "tags": AttributeType.TAGS,
    "add_tags": AttributeType.TAGS,
    "checklist_items": AttributeType.CHECKLIST,
    "append_checklist_items": AttributeType.CHECKLIST,
    "prepend_checklist_items": AttributeType.CHECKLIST,
    "list_id": AttributeType.REFERENCE,
    "area_id": AttributeType.REFERENCE,
    "completed": AttributeType.FLAG,
    "canceled": AttributeType.FLAG,
    "headings": AttributeType.HEADINGS,
}

# Attributes each intent kind may carry; None means any known attribute.
_ALLOWED_BY_KIND: Dict[IntentKind, Optional[frozenset]] = {
    IntentKind.CREATE: None,
    IntentKind.UPDATE: None,
    IntentKind.STATUS_CHANGE: frozenset({"completed", "canceled"}),
    IntentKind.MOVE: frozenset({"list_id", "area_id"}),
    IntentKind.TAG_CHANGE: frozenset({"tags", "add_tags"}),
}

AUTH_TOKEN_KEY = "auth-token"


def host_key(attribute: str) -> str:
    """``checklist_items`` -> ``checklist-items``."""
    return attribute.replace("_", "-")


@dataclass(frozen=True)
class WriteIntent:
    """One pending mutation of a single to-do or project."""

    kind: IntentKind
    item_type: ItemType
    attributes: Dict[str, Any] = field(default_factory=dict)
    target_id: Optional[str] = None

    @classmethod
    def create(cls, item_type: ItemType, **attributes: Any) -> "WriteIntent":
        return cls(IntentKind.CREATE, item_type, dict(attributes)).validated()

    @classmethod
    def update(cls, item_type: ItemType, target_id: str, **attributes: Any) -> "WriteIntent":
        return cls(IntentKind.UPDATE, item_type, dict(attributes), target_id).validated()

    @classmethod
    def status_change(cls, item_type: ItemType, target_id: str, **attributes: Any) -> "WriteIntent":
        return cls(IntentKind.STATUS_CHANGE, item_type, dict(attributes), target_id).validated()

    @classmethod
    def move(cls, item_type: ItemType, target_id: str, **attributes: Any) -> "WriteIntent":
        return cls(IntentKind.MOVE, item_type, dict(attributes), target_id).validated()

    @classmethod
    def tag_change(cls, item_type: ItemType, target_id: str, **attributes: Any) -> "WriteIntent":
        return cls(IntentKind.TAG_CHANGE, item_type, dict(attributes), target_id).validated()

    def validated(self) -> "WriteIntent":
        """Return ``self`` or raise :class:`EncodingError` if malformed."""
        if self.item_type not in (ItemType.TODO, ItemType.PROJECT):
            raise EncodingError(f"Unsupported item type for a write: {self.item_type.value}")

        if self.kind is IntentKind.CREATE:
            if self.target_id is not None:
                raise EncodingError("A create intent cannot target an existing item", {"id": self.target_id})
            title = self.attributes.get("title")
            if not isinstance(title, str) or not title.strip():
                raise EncodingError("A create intent needs a non-empty title")
        elif not self.target_id:
            raise EncodingError(f"A {self.kind.value} intent needs a target id")

        unknown = sorted(set(self.attributes) - set(ATTRIBUTE_TYPES))
        if unknown:
            raise EncodingError(f"Unknown attribute(s): {', '.join(unknown)}")

        allowed = _ALLOWED_BY_KIND[self.kind]
        if allowed is not None and not set(self.attributes) <= allowed:
            extra = sorted(set(self.attributes) - allowed)
            raise EncodingError(f"Attribute(s) not valid for {self.kind.value}: {', '.join(extra)}")

        if "headings" in self.attributes and (
            self.item_type is not ItemType.PROJECT or self.kind is not IntentKind.CREATE
        ):
            raise EncodingError("Headings can only be given when creating a project")
        return self


@dataclass(frozen=True)
class BatchIntent:
    """The same attribute payload applied to many items of one type."""

    kind: IntentKind
    item_type: ItemType
    target_ids: Sequence[str]
    attributes: Dict[str, Any] = field(default_factory=dict)

    def expand(self) -> List[WriteIntent]:
        """One validated intent per target. Raises on the first bad target."""
        return [
            WriteIntent(self.kind, self.item_type, dict(self.attributes), target_id).validated()
            for target_id in self.target_ids
        ]


class PayloadEncoder:
    """Renders :class:`WriteIntent` objects into Things3 URLs."""

    def __init__(
        self,
        auth_token: Optional[str] = None,
        today: Optional[Callable[[], date]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.auth_token = auth_token or None
        self.today = today or date.today
        self.logger = logger or get_logger(__name__)

    # -- attribute encoding -------------------------------------------------

    def _clear_value(self, attr_type: AttributeType, json_endpoint: bool) -> Any:
        if attr_type is AttributeType.FLAG:
            return False
        if attr_type in (AttributeType.TAGS, AttributeType.HEADINGS):
            return [] if json_endpoint else ""
        return ""

    def _encode_value(self, name: str, value: Any, json_endpoint: bool) -> Any:
        """Encode one attribute value; ``None`` result means "omit"."""
        attr_type = ATTRIBUTE_TYPES[name]
        if value is None:
            return self._clear_value(attr_type, json_endpoint)

        if attr_type is AttributeType.DATE:
            normalized = normalize_date(str(value), today=self.today())
            if normalized is None:
                self.logger.warning("Ignoring unparseable %s date: %r", name, value)
            return normalized
        if attr_type is AttributeType.TAGS:
            tags = [value] if isinstance(value, str) else [str(t) for t in value]
            return tags if json_endpoint else ",".join(tags)
        if attr_type is AttributeType.CHECKLIST:
            items = [value] if isinstance(value, str) else [str(i) for i in value]
            return "\n".join(items)
        if attr_type is AttributeType.FLAG:
            return bool(value)
        if attr_type is AttributeType.HEADINGS:
            return [
                {"type": ItemType.HEADING.value, "attributes": {"title": str(h)}}
                for h in value
            ]
        return str(value)

    def encode_attributes(self, intent: WriteIntent, json_endpoint: bool = True) -> Dict[str, Any]:
        """Host-keyed attributes for ``intent``; absent keys stay absent."""
        encoded: Dict[str, Any] = {}
        for name, value in intent.attributes.items():
            rendered = self._encode_value(name, value, json_endpoint)
            if rendered is not None:
                encoded[host_key(name)] = rendered
        return encoded

    # -- documents and URLs -------------------------------------------------

    def document(self, intent: WriteIntent) -> Dict[str, Any]:
        """The JSON object for one item of a ``things:///json`` command."""
        intent.validated()
        attributes = self.encode_attributes(intent, json_endpoint=True)
        if "headings" in intent.attributes:
            attributes["items"] = attributes.pop("headings")
        if self.auth_token:
            attributes[AUTH_TOKEN_KEY] = self.auth_token

        doc: Dict[str, Any] = {"type": intent.item_type.value}
        if intent.kind is not IntentKind.CREATE:
            doc["operation"] = "update"
            doc["id"] = intent.target_id
        doc["attributes"] = attributes
        return doc

    def json_url(self, intents: Iterable[WriteIntent]) -> str:
        """``things:///json?data=...`` for all ``intents``, in order."""
        documents = [self.document(intent) for intent in intents]
        if not documents:
            raise EncodingError("No items to encode")
        data = quote(json.dumps(documents, ensure_ascii=False, separators=(",", ":")), safe="")
        url = f"{URL_SCHEME}:///{Operation.JSON.value}?data={data}"
        if self.auth_token:
            url += f"&{AUTH_TOKEN_KEY}={quote(self.auth_token, safe='')}"
        return url

    def simple_url(self, operation: Operation, params: Dict[str, Any]) -> str:
        """``things:///<operation>?...``; spaces are encoded as ``%20``."""
        query: Dict[str, str] = {}
        if self.auth_token:
            query[AUTH_TOKEN_KEY] = self.auth_token
        for key, value in params.items():
            if value is None:
                continue
            if isinstance(value, bool):
                query[key] = "true" if value else "false"
            elif isinstance(value, (list, tuple)):
                query[key] = ",".join(str(v) for v in value)
            else:
                query[key] = str(value)
        base = f"{URL_SCHEME}:///{operation.value}"
        if not query:
            return base
        return f"{base}?{urlencode(query, quote_via=quote)}"

    def create_todo_url(self, intent: WriteIntent) -> str:
        """``things:///add`` URL for a to-do create intent."""
        intent.validated()
        if intent.kind is not IntentKind.CREATE or intent.item_type is not ItemType.TODO:
            raise EncodingError("create_todo_url needs a to-do create intent")
        return self.simple_url(Operation.ADD, self.encode_attributes(intent, json_endpoint=False))

    def url_for(self, intent: WriteIntent) -> str:
        """The URL Things3 should open to apply ``intent``."""
        if intent.kind is IntentKind.CREATE and intent.item_type is ItemType.TODO:
            return self.create_todo_url(intent)
        return self.json_url([intent])
