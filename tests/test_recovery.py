import json

from things_api.data_models import UNKNOWN_ID
from things_api.errors import ChannelTimeoutError
from things_api.payloads import ItemType
from things_api.recovery import STAGE_BROAD, STAGE_NARROW, STAGE_UNRESOLVED, CreationRecovery, RecoveryQuery
from tests.conftest import FakeExecutor, fast_config

URL = "things:///add?title=Buy%20milk"


def _todos(*pairs):
    return json.dumps([{"id": i, "title": t, "completed": False} for i, t in pairs])


def _recovery(responses, sleeps):
    executor = FakeExecutor(responses, config=fast_config(narrow_limit=10, broad_limit=50))
    return executor, CreationRecovery(executor, sleep=sleeps.append)


def test_single_match_in_narrow_search(sleeps):
    executor, recovery = _recovery([_todos(("A1", "Buy milk"), ("A2", "Buy milk and eggs"))], sleeps)

    result = recovery.create_and_recover(URL, RecoveryQuery("Buy milk"))

    assert (result.success, result.id, result.stage) == (True, "A1", STAGE_NARROW)
    assert executor.urls == [URL]
    assert sleeps == [0.5]
    assert 'contains "Buy milk"' in executor.scripts[0]
    assert "if resultCount >= 10 then exit repeat" in executor.scripts[0]


def test_duplicates_return_first_discovered(sleeps):
    executor, recovery = _recovery([_todos(("OLD", "Buy milk"), ("NEW", "Buy milk"))], sleeps)

    result = recovery.create_and_recover(URL, RecoveryQuery("Buy milk"))

    assert result.id == "OLD"


def test_narrow_search_uses_container_hint(sleeps):
    executor, recovery = _recovery([_todos(("A1", "Buy milk"))], sleeps)

    recovery.create_and_recover(URL, RecoveryQuery("Buy milk", project_id="P9"))

    assert 'to dos of project id "P9"' in executor.scripts[0]


def test_falls_back_to_broad_inbox_search(sleeps):
    executor, recovery = _recovery(["[]", _todos(("X", "Other"), ("B1", "Buy milk"))], sleeps)

    result = recovery.create_and_recover(URL, RecoveryQuery("Buy milk"))

    assert (result.id, result.stage) == ("B1", STAGE_BROAD)
    assert sleeps == [0.5, 1.0]
    assert 'to dos of list "Inbox"' in executor.scripts[1]
    assert "if resultCount >= 50 then exit repeat" in executor.scripts[1]


def test_unresolved_is_still_success(sleeps):
    executor, recovery = _recovery(["[]", "[]"], sleeps)

    result = recovery.create_and_recover(URL, RecoveryQuery("Buy milk"))

    assert result.success is True
    assert result.id == UNKNOWN_ID
    assert result.stage == STAGE_UNRESOLVED
    assert result.resolved is False
    # The create URL is never resent.
    assert executor.urls == [URL]


def test_search_errors_count_as_no_match(sleeps):
    executor, recovery = _recovery([ChannelTimeoutError("osascript", 30), "not json"], sleeps)

    result = recovery.create_and_recover(URL, RecoveryQuery("Buy milk"))

    assert result.id == UNKNOWN_ID


def test_project_recovery_matches_on_name(sleeps):
    projects = json.dumps([{"id": "P1", "name": "Trip", "completed": False}])
    executor, recovery = _recovery([projects], sleeps)

    result = recovery.create_and_recover("things:///json?data=x", RecoveryQuery("Trip", ItemType.PROJECT))

    assert result.id == "P1"
    assert "set projectList to projects" in executor.scripts[0]
