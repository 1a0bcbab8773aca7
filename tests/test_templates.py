import pytest

from things_api import templates
from things_api.errors import EncodingError


class TestListTodos:
    def test_default_lists_every_todo(self):
        script = templates.list_todos()
        assert "set todoList to to dos\n" in script
        assert "NSJSONSerialization" in script
        assert 'return "[]"' in script
        assert "exit repeat" not in script

    def test_filter_keyword_selects_list(self):
        assert 'to dos of list "Inbox"' in templates.list_todos(filter_name="inbox")
        assert 'to dos of list "Logbook"' in templates.list_todos(filter_name="logbook")

    def test_project_id_wins_over_filter(self):
        script = templates.list_todos(filter_name="today", project_id="P1")
        assert 'to dos of project id "P1"' in script
        assert 'list "Today"' not in script

    def test_area_source(self):
        assert 'to dos of area id "A1"' in templates.list_todos(area_id="A1")

    def test_status_filter(self):
        assert "if status of t is not canceled then" in templates.list_todos(status="cancelled")
        assert "if status of t is not open then" in templates.list_todos(status="open")

    def test_search_is_case_insensitive_by_default(self):
        script = templates.list_todos(search_text="milk")
        assert "ignoring case" in script
        assert 'name of t contains "milk" or notes of t contains "milk"' in script

    def test_case_sensitive_search(self):
        script = templates.list_todos(search_text="Milk", case_sensitive=True)
        assert "considering case" in script
        assert "end considering" in script

    def test_search_text_is_escaped(self):
        script = templates.list_todos(search_text='say "hi"')
        assert 'contains "say \\"hi\\""' in script

    def test_limit(self):
        assert "if resultCount >= 5 then exit repeat" in templates.list_todos(limit=5)

    @pytest.mark.parametrize("kwargs", [{"filter_name": "later"}, {"status": "done"}])
    def test_unknown_keywords_rejected(self, kwargs):
        with pytest.raises(EncodingError):
            templates.list_todos(**kwargs)


def test_get_todo_by_id_escapes_id_and_returns_null_on_error():
    script = templates.get_todo_by_id('x"y')
    assert 'to do id "x\\"y"' in script
    assert 'return "null"' in script


def test_get_tag_names_checks_todo_then_project():
    script = templates.get_tag_names("T1")
    assert script.index('to do id "T1"') < script.index('project id "T1"')
    assert 'forKey:"kind"' in script


@pytest.mark.parametrize(
    "builder, before, after",
    [
        (templates.complete_todos, "open", "completed"),
        (templates.uncomplete_todos, "completed", "open"),
        (templates.cancel_todos, "open", "canceled"),
    ],
)
def test_status_toggles(builder, before, after):
    script = builder(["a", "b"])
    assert 'repeat with todoId in {"a", "b"}' in script
    assert f"if status of t is {before} then" in script
    assert f"set status of t to {after}" in script
    assert "return changedCount" in script


@pytest.mark.parametrize(
    "builder, reference",
    [
        (templates.delete_todos, "to do id"),
        (templates.delete_projects, "project id"),
        (templates.delete_areas, "area id"),
        (templates.delete_tags, "tag"),
    ],
)
def test_deletes_count_per_item(builder, reference):
    script = builder(["one"])
    assert f"delete ({reference} (itemKey as text))" in script
    assert "    try" in script
    assert "return deletedCount" in script


def test_list_projects_open_only_and_area():
    script = templates.list_projects(area_id="A1", include_completed=False, search_text="Trip", limit=3)
    assert 'projects of area id "A1"' in script
    assert "if status of p is not open then" in script
    assert 'name of p contains "Trip"' in script
    assert "if resultCount >= 3 then exit repeat" in script


def test_create_tag_with_parent_falls_back_to_top_level():
    script = templates.create_tag("Errands", parent_tag_id="TAG1")
    assert 'tag id "TAG1"' in script
    assert "at parentTag" in script
    assert script.count("make new tag") == 2
    assert "parentTag" not in templates.create_tag("Errands")


def test_create_area_returns_id():
    script = templates.create_area('Home "Base"')
    assert 'make new area with properties {name:"Home \\"Base\\""}' in script
    assert "return id of newArea" in script


class TestSearchLogbook:
    def test_date_range_is_built_from_components(self):
        script = templates.search_logbook(from_date="2025-06-01", to_date="2025-06-30")
        assert "set year of fromDateObj to 2025" in script
        assert "set month of fromDateObj to 6" in script
        assert "set day of toDateObj to 30" in script
        assert "set time of toDateObj to 86399" in script
        assert "completionDate < fromDateObj" in script
        assert "completionDate > toDateObj" in script

    def test_default_limit(self):
        assert "if resultCount >= 100 then exit repeat" in templates.search_logbook()

    def test_bad_date_rejected(self):
        with pytest.raises(EncodingError):
            templates.search_logbook(from_date="definitely-not-a-date-xyz")


def test_ensure_running_checks_system_events():
    script = templates.ensure_running()
    assert 'tell application "System Events"' in script
    assert 'process whose name is "Things3"' in script
