"""
Data models representing Things3 objects (to-dos, projects, areas, tags) and
the result values returned by write operations.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Returned in place of an id when a create could not be matched afterwards.
UNKNOWN_ID = "unknown"


class _HostModel(BaseModel):
    """Host JSON uses camelCase keys; extra keys are kept."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ChecklistItem(_HostModel):
    id: str
    title: str
    completed: bool = False


class TodoSummary(_HostModel):
    id: str
    title: str
    completed: bool = False


class TodoItem(TodoSummary):
    notes: Optional[str] = None
    when_date: Optional[str] = Field(None, alias="whenDate")
    deadline: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    project_id: Optional[str] = Field(None, alias="projectId")
    area_id: Optional[str] = Field(None, alias="areaId")
    checklist_items: List[ChecklistItem] = Field(default_factory=list, alias="checklistItems")


class Heading(_HostModel):
    id: str
    title: str


class ProjectItem(_HostModel):
    id: str
    name: str
    completed: bool = False
    area_id: Optional[str] = Field(None, alias="areaId")
    notes: Optional[str] = None
    when_date: Optional[str] = Field(None, alias="whenDate")
    deadline: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    headings: List[Heading] = Field(default_factory=list)


class AreaItem(_HostModel):
    id: str
    name: str
    visible: bool = True


class TagItem(_HostModel):
    id: str
    name: str
    parent_tag_id: Optional[str] = Field(None, alias="parentTagId")


@dataclass
class CreateResult:
    """Outcome of a create; ``id`` may be :data:`UNKNOWN_ID`."""

    success: bool
    id: str
    stage: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.id != UNKNOWN_ID

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "id": self.id}


@dataclass
class BatchResult:
    """Per-item outcome of a batch; never all-or-nothing."""

    success_count: int = 0
    failed_ids: List[str] = field(default_factory=list)
    skipped_ids: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.success_count > 0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success, "count": self.success_count}
        if self.failed_ids:
            data["failed"] = list(self.failed_ids)
        if self.skipped_ids:
            data["skipped"] = list(self.skipped_ids)
        return data
