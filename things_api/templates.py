"""AppleScript templates for Things3.

Every function returns AppleScript source. Scripts that read data build
``NSMutableDictionary``/``NSMutableArray`` values and serialize them with
``NSJSONSerialization``, so the output is valid JSON whatever the item text
contains (quotes, newlines, unicode). On a serialization failure list scripts
return ``[]`` and single-item scripts return ``null``.

Scripts that change data return the number of items they changed.
"""
from datetime import date
from typing import List, Optional, Sequence

from .dates import parse_date_string
from .errors import EncodingError
from .utils import applescript_list, quote_applescript_string

APP_NAME = "Things3"

_HEADER = """use AppleScript version "2.4"
use framework "Foundation"
use scripting additions

"""

TODO_LISTS = {
    "inbox": "Inbox",
    "today": "Today",
    "upcoming": "Upcoming",
    "anytime": "Anytime",
    "someday": "Someday",
    "logbook": "Logbook",
}

STATUSES = {
    "open": "open",
    "completed": "completed",
    "cancelled": "canceled",
    "canceled": "canceled",
}


def _json_return(var: str, empty: str, indent: str = "  ") -> List[str]:
    lines = [
        "-- Convert to JSON",
        f"set jsonData to current application's NSJSONSerialization's dataWithJSONObject:{var} options:0 |error|:(missing value)",
        "if jsonData is missing value then",
        f'  return "{empty}"',
        "else",
        "  set jsonString to current application's NSString's alloc()'s initWithData:jsonData encoding:(current application's NSUTF8StringEncoding)",
        "  return jsonString as text",
        "end if",
    ]
    return [indent + line for line in lines]


def _status_keyword(status: Optional[str]) -> Optional[str]:
    if status is None:
        return None
    try:
        return STATUSES[status]
    except KeyError:
        raise EncodingError(f"Unknown status filter: {status}") from None


def _todo_source(filter_name: Optional[str], project_id: Optional[str], area_id: Optional[str]) -> str:
    if project_id:
        return f"to dos of project id {quote_applescript_string(project_id)}"
    if area_id:
        return f"to dos of area id {quote_applescript_string(area_id)}"
    if filter_name:
        try:
            return f'to dos of list "{TODO_LISTS[filter_name]}"'
        except KeyError:
            raise EncodingError(f"Unknown list filter: {filter_name}") from None
    return "to dos"


def _text_filter(var: str, fields: Sequence[str], text: str, case_sensitive: bool) -> List[str]:
    literal = quote_applescript_string(text)
    condition = " or ".join(f"{field} of {var} contains {literal}" for field in fields)
    block = "considering case" if case_sensitive else "ignoring case"
    return [
        "if shouldInclude then",
        f"  {block}",
        f"    if not ({condition}) then set shouldInclude to false",
        f"  end {block.split()[0]}",
        "end if",
    ]


def _date_lines(var: str, day: date, end_of_day: bool = False) -> List[str]:
    """Build an AppleScript date without going through locale-specific text."""
    seconds = 86399 if end_of_day else 0
    return [
        f"set {var} to current date",
        f"set day of {var} to 1",
        f"set year of {var} to {day.year}",
        f"set month of {var} to {day.month}",
        f"set day of {var} to {day.day}",
        f"set time of {var} to {seconds}",
    ]


def _indent(lines: Sequence[str], prefix: str) -> List[str]:
    return [prefix + line for line in lines]


# -- to-dos -----------------------------------------------------------------

def list_todos(
    filter_name: Optional[str] = None,
    status: Optional[str] = None,
    search_text: Optional[str] = None,
    limit: Optional[int] = None,
    case_sensitive: bool = False,
    project_id: Optional[str] = None,
    area_id: Optional[str] = None,
) -> str:
    """List to-dos as ``[{"id", "title", "completed"}, ...]``.

    The source list is a project or area when an id is given, else the
    built-in list named by ``filter_name``, else every to-do.
    """
    status_keyword = _status_keyword(status)
    lines = [
        f'tell application "{APP_NAME}"',
        f"  set todoList to {_todo_source(filter_name, project_id, area_id)}",
        "  set resultArray to current application's NSMutableArray's array()",
        "  set resultCount to 0",
        "  repeat with t in todoList",
    ]
    if limit is not None:
        lines.append(f"    if resultCount >= {int(limit)} then exit repeat")
    lines.append("    set shouldInclude to true")
    if status_keyword:
        lines.append(f"    if status of t is not {status_keyword} then set shouldInclude to false")
    if search_text:
        lines += _indent(_text_filter("t", ("name", "notes"), search_text, case_sensitive), "    ")
    lines += [
        "    if shouldInclude then",
        "      set todoDict to current application's NSMutableDictionary's dictionary()",
        '      todoDict\'s setObject:(id of t) forKey:"id"',
        '      todoDict\'s setObject:(name of t) forKey:"title"',
        '      todoDict\'s setObject:(status of t is completed) forKey:"completed"',
        "      resultArray's addObject:todoDict",
        "      set resultCount to resultCount + 1",
        "    end if",
        "  end repeat",
        "",
    ]
    lines += _json_return("resultArray", "[]")
    lines.append("end tell")
    return _HEADER + "\n".join(lines)


def get_todo_by_id(todo_id: str) -> str:
    """Full details of one to-do, or ``null``."""
    literal = quote_applescript_string(todo_id)
    return _HEADER + f"""tell application "{APP_NAME}"
  try
    set t to to do id {literal}

    -- Get tags
    set tagList to {{}}
    repeat with tg in tags of t
      set end of tagList to (name of tg as text)
    end repeat

    set todoDict to current application's NSMutableDictionary's dictionary()
    todoDict's setObject:(id of t) forKey:"id"
    todoDict's setObject:(name of t) forKey:"title"
    todoDict's setObject:(status of t is completed) forKey:"completed"

    if notes of t is not missing value and notes of t is not "" then
      todoDict's setObject:(notes of t) forKey:"notes"
    end if
    if activation date of t is not missing value then
      todoDict's setObject:(activation date of t as string) forKey:"whenDate"
    end if
    if due date of t is not missing value then
      todoDict's setObject:(due date of t as string) forKey:"deadline"
    end if

    set nsTagArray to current application's NSArray's arrayWithArray:tagList
    todoDict's setObject:nsTagArray forKey:"tags"

    if project of t is not missing value then
      todoDict's setObject:(id of project of t) forKey:"projectId"
    end if
    if area of t is not missing value then
      todoDict's setObject:(id of area of t) forKey:"areaId"
    end if

{chr(10).join(_json_return("todoDict", "null", "    "))}
  on error errMsg
    return "null"
  end try
end tell"""


def get_tag_names(item_id: str) -> str:
    """``{"kind": "to-do"|"project", "tags": "<tag names>"}`` or ``null``."""
    literal = quote_applescript_string(item_id)
    return _HEADER + f"""tell application "{APP_NAME}"
  set itemKind to missing value
  set tagNames to ""
  try
    set targetItem to to do id {literal}
    set tagNames to tag names of targetItem
    if class of targetItem is project then
      set itemKind to "project"
    else
      set itemKind to "to-do"
    end if
  end try
  if itemKind is missing value then
    try
      set targetItem to project id {literal}
      set tagNames to tag names of targetItem
      set itemKind to "project"
    end try
  end if
  if itemKind is missing value then return "null"
  if tagNames is missing value then set tagNames to ""

  set resultDict to current application's NSMutableDictionary's dictionary()
  resultDict's setObject:itemKind forKey:"kind"
  resultDict's setObject:tagNames forKey:"tags"
{chr(10).join(_json_return("resultDict", "null"))}
end tell"""


def _set_todo_status(ids: Sequence[str], from_status: str, to_status: str) -> str:
    return f"""tell application "{APP_NAME}"
  set changedCount to 0
  repeat with todoId in {applescript_list(ids)}
    try
      set t to to do id (todoId as text)
      if status of t is {from_status} then
        set status of t to {to_status}
        set changedCount to changedCount + 1
      end if
    end try
  end repeat
  return changedCount
end tell"""


def complete_todos(ids: Sequence[str]) -> str:
    return _set_todo_status(ids, "open", "completed")


def uncomplete_todos(ids: Sequence[str]) -> str:
    return _set_todo_status(ids, "completed", "open")


def cancel_todos(ids: Sequence[str]) -> str:
    return _set_todo_status(ids, "open", "canceled")


def _delete_by_reference(ids: Sequence[str], reference: str) -> str:
    return f"""tell application "{APP_NAME}"
  set deletedCount to 0
  repeat with itemKey in {applescript_list(ids)}
    try
      delete ({reference} (itemKey as text))
      set deletedCount to deletedCount + 1
    end try
  end repeat
  return deletedCount
end tell"""


def delete_todos(ids: Sequence[str]) -> str:
    return _delete_by_reference(ids, "to do id")


# -- projects ----------------------------------------------------------------

def list_projects(
    area_id: Optional[str] = None,
    include_completed: bool = True,
    search_text: Optional[str] = None,
    limit: Optional[int] = None,
) -> str:
    """List projects as ``[{"id", "name", "completed", "areaId"?}, ...]``."""
    source = "projects"
    if area_id:
        source = f"projects of area id {quote_applescript_string(area_id)}"
    lines = [
        f'tell application "{APP_NAME}"',
        f"  set projectList to {source}",
        "  set resultArray to current application's NSMutableArray's array()",
        "  set resultCount to 0",
        "  repeat with p in projectList",
    ]
    if limit is not None:
        lines.append(f"    if resultCount >= {int(limit)} then exit repeat")
    lines.append("    set shouldInclude to true")
    if not include_completed:
        lines.append("    if status of p is not open then set shouldInclude to false")
    if search_text:
        lines += _indent(_text_filter("p", ("name",), search_text, case_sensitive=False), "    ")
    lines += [
        "    if shouldInclude then",
        "      set projectDict to current application's NSMutableDictionary's dictionary()",
        '      projectDict\'s setObject:(id of p) forKey:"id"',
        '      projectDict\'s setObject:(name of p) forKey:"name"',
        '      projectDict\'s setObject:(status of p is completed) forKey:"completed"',
        "      set areaRef to area of p",
        "      if areaRef is not missing value then",
        '        projectDict\'s setObject:(id of areaRef) forKey:"areaId"',
        "      end if",
        "      resultArray's addObject:projectDict",
        "      set resultCount to resultCount + 1",
        "    end if",
        "  end repeat",
        "",
    ]
    lines += _json_return("resultArray", "[]")
    lines.append("end tell")
    return _HEADER + "\n".join(lines)


def get_project_by_id(project_id: str) -> str:
    """Full details of one project including its headings, or ``null``."""
    literal = quote_applescript_string(project_id)
    return _HEADER + f"""tell application "{APP_NAME}"
  try
    set p to project id {literal}

    set tagList to {{}}
    repeat with tg in tags of p
      set end of tagList to (name of tg as text)
    end repeat

    -- Headings show up as project-class items among the project's to dos
    set headingsList to current application's NSMutableArray's array()
    repeat with h in to dos of p
      if class of h is project then
        set headingDict to current application's NSMutableDictionary's dictionary()
        headingDict's setObject:(id of h) forKey:"id"
        headingDict's setObject:(name of h) forKey:"title"
        headingsList's addObject:headingDict
      end if
    end repeat

    set projectDict to current application's NSMutableDictionary's dictionary()
    projectDict's setObject:(id of p) forKey:"id"
    projectDict's setObject:(name of p) forKey:"name"
    projectDict's setObject:(status of p is completed) forKey:"completed"

    if notes of p is not missing value and notes of p is not "" then
      projectDict's setObject:(notes of p) forKey:"notes"
    end if
    if activation date of p is not missing value then
      projectDict's setObject:(activation date of p as string) forKey:"whenDate"
    end if
    if due date of p is not missing value then
      projectDict's setObject:(due date of p as string) forKey:"deadline"
    end if

    set nsTagArray to current application's NSArray's arrayWithArray:tagList
    projectDict's setObject:nsTagArray forKey:"tags"

    if area of p is not missing value then
      projectDict's setObject:(id of area of p) forKey:"areaId"
    end if
    projectDict's setObject:headingsList forKey:"headings"

{chr(10).join(_json_return("projectDict", "null", "    "))}
  on error errMsg
    return "null"
  end try
end tell"""


def complete_project(project_id: str) -> str:
    return f"""tell application "{APP_NAME}"
  try
    set p to project id {quote_applescript_string(project_id)}
    if status of p is open then
      set status of p to completed
      return 1
    end if
    return 0
  on error
    return 0
  end try
end tell"""


def delete_projects(ids: Sequence[str]) -> str:
    return _delete_by_reference(ids, "project id")


# -- areas -------------------------------------------------------------------

def list_areas() -> str:
    """List areas. Things3 has no hidden flag for areas, so ``visible`` is always true."""
    lines = [
        f'tell application "{APP_NAME}"',
        "  set resultArray to current application's NSMutableArray's array()",
        "  repeat with a in areas",
        "    set areaDict to current application's NSMutableDictionary's dictionary()",
        '    areaDict\'s setObject:(id of a) forKey:"id"',
        '    areaDict\'s setObject:(name of a) forKey:"name"',
        '    areaDict\'s setObject:true forKey:"visible"',
        "    resultArray's addObject:areaDict",
        "  end repeat",
        "",
    ]
    lines += _json_return("resultArray", "[]")
    lines.append("end tell")
    return _HEADER + "\n".join(lines)


def create_area(name: str) -> str:
    return f"""tell application "{APP_NAME}"
  set newArea to make new area with properties {{name:{quote_applescript_string(name)}}}
  return id of newArea
end tell"""


def delete_areas(ids: Sequence[str]) -> str:
    return _delete_by_reference(ids, "area id")


# -- tags --------------------------------------------------------------------

def list_tags() -> str:
    lines = [
        f'tell application "{APP_NAME}"',
        "  set resultArray to current application's NSMutableArray's array()",
        "  repeat with t in tags",
        "    set tagDict to current application's NSMutableDictionary's dictionary()",
        '    tagDict\'s setObject:(id of t) forKey:"id"',
        '    tagDict\'s setObject:(name of t) forKey:"name"',
        "    set parentRef to parent tag of t",
        "    if parentRef is not missing value then",
        '      tagDict\'s setObject:(id of parentRef) forKey:"parentTagId"',
        "    end if",
        "    resultArray's addObject:tagDict",
        "  end repeat",
        "",
    ]
    lines += _json_return("resultArray", "[]")
    lines.append("end tell")
    return _HEADER + "\n".join(lines)


def create_tag(name: str, parent_tag_id: Optional[str] = None) -> str:
    """Create a tag; a missing parent falls back to a top-level tag."""
    properties = f"{{name:{quote_applescript_string(name)}}}"
    if not parent_tag_id:
        return f"""tell application "{APP_NAME}"
  set newTag to make new tag with properties {properties}
  return id of newTag
end tell"""
    return f"""tell application "{APP_NAME}"
  try
    set parentTag to tag id {quote_applescript_string(parent_tag_id)}
    set newTag to make new tag with properties {properties} at parentTag
  on error
    set newTag to make new tag with properties {properties}
  end try
  return id of newTag
end tell"""


def delete_tags(names: Sequence[str]) -> str:
    return _delete_by_reference(names, "tag")


# -- logbook -----------------------------------------------------------------

def search_logbook(
    search_text: Optional[str] = None,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    limit: Optional[int] = None,
) -> str:
    """Search completed to-dos, optionally within a completion-date range."""
    start = parse_date_string(from_date) if from_date else None
    end = parse_date_string(to_date) if to_date else None
    if from_date and start is None:
        raise EncodingError(f"Could not parse from date: {from_date}")
    if to_date and end is None:
        raise EncodingError(f"Could not parse to date: {to_date}")

    lines = [f'tell application "{APP_NAME}"']
    if start:
        lines += _indent(_date_lines("fromDateObj", start.date()), "  ")
    if end:
        lines += _indent(_date_lines("toDateObj", end.date(), end_of_day=True), "  ")
    lines += [
        '  set logbookItems to to dos of list "Logbook"',
        "  set resultArray to current application's NSMutableArray's array()",
        "  set resultCount to 0",
        "  repeat with t in logbookItems",
        f"    if resultCount >= {int(limit or 100)} then exit repeat",
        "    set shouldInclude to true",
    ]
    if search_text:
        lines += _indent(_text_filter("t", ("name", "notes"), search_text, case_sensitive=False), "    ")
    if start or end:
        lines += [
            "    set completionDate to completion date of t",
            "    if completionDate is missing value then",
            "      set shouldInclude to false",
        ]
        if start:
            lines += [
                "    else if completionDate < fromDateObj then",
                "      set shouldInclude to false",
            ]
        if end:
            lines += [
                "    else if completionDate > toDateObj then",
                "      set shouldInclude to false",
            ]
        lines.append("    end if")
    lines += [
        "    if shouldInclude then",
        "      set todoDict to current application's NSMutableDictionary's dictionary()",
        '      todoDict\'s setObject:(id of t) forKey:"id"',
        '      todoDict\'s setObject:(name of t) forKey:"title"',
        '      todoDict\'s setObject:true forKey:"completed"',
        "      resultArray's addObject:todoDict",
        "      set resultCount to resultCount + 1",
        "    end if",
        "  end repeat",
        "",
    ]
    lines += _json_return("resultArray", "[]")
    lines.append("end tell")
    return _HEADER + "\n".join(lines)


# -- application -------------------------------------------------------------

def ensure_running() -> str:
    return f"""tell application "System Events"
  set isRunning to (count of (every process whose name is "{APP_NAME}")) > 0
end tell

if not isRunning then
  tell application "{APP_NAME}"
    activate
    delay 2 -- Wait for Things3 to fully launch
  end tell
end if

return "running\""""


def get_version() -> str:
    return f"""tell application "{APP_NAME}"
  return version
end tell"""
