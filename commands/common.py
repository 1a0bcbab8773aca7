"""
Helpers shared by the command handlers: client construction, argument
parsing and output.
"""
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel
from rich.console import Console

from things_api import ThingsClient
from things_api.errors import EncodingError
from things_api.tags import parse_tag_string
from utils.config import load_config

console = Console()


def get_client() -> ThingsClient:
    return ThingsClient(load_config())


def split_csv(value: Optional[str]) -> Optional[List[str]]:
    """``"a, b"`` -> ``["a", "b"]``; ``None`` stays ``None``."""
    if value is None:
        return None
    return parse_tag_string(value)


def to_jsonable(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def print_result(value: Any) -> None:
    console.print_json(data=to_jsonable(value))


def three_state_changes(
    values: Dict[str, Any],
    clear: Optional[Iterable[str]],
    allowed: Iterable[str],
) -> Dict[str, Any]:
    """Merge ``--x value`` options and ``--clear x`` flags into update kwargs.

    Options left at ``None`` are omitted; cleared fields map to ``None``.
    """
    allowed = set(allowed)
    changes = {key: value for key, value in values.items() if value is not None}
    for name in clear or []:
        key = name.replace("-", "_")
        if key not in allowed:
            raise EncodingError(f"Cannot clear '{name}'; choose from: {', '.join(sorted(allowed))}")
        if key in changes:
            raise EncodingError(f"'{name}' is both set and cleared")
        changes[key] = None
    return changes
