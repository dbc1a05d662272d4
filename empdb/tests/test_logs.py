import pytest

from empdb.db import DataSource
from empdb.errors import QueueError
from empdb.logs import TSQ, QueueResource, ensure_queue_schema, search_queue
from empdb.uow import ImplicitScope


def test_set_name_validates():
    q = TSQ()
    with pytest.raises(QueueError):
        q.set_name("")
    with pytest.raises(QueueError):
        q.set_name("X" * 17)
    q.set_name("DB2LOG")
    assert q.name == "DB2LOG"


def test_write_before_set_name():
    with pytest.raises(QueueError):
        TSQ().write_string("hello")


def test_write_rejects_non_string():
    with pytest.raises(QueueError):
        TSQ("DB2LOG").write_string(42)


def test_write_outside_scope_commits_immediately(queue_messages):
    TSQ("DB2LOG").write_string("standalone")
    assert queue_messages() == ["standalone"]


def test_write_outside_scope_uses_given_queue_path(tmp_path, queue_messages):
    other = str(tmp_path / "other_queue.db")
    ensure_queue_schema(other)
    TSQ("DB2LOG", queue_path=other).write_string("routed")
    total, items = search_queue("DB2LOG", page=1, size=10, queue_path=other)
    assert total == 1 and items[0]["message"] == "routed"
    assert queue_messages() == []


def test_write_inside_scope_waits_for_commit(ds, queue_messages):
    with ImplicitScope(ds) as scope:
        TSQ("DB2LOG").write_string("pending")
        assert queue_messages() == []
        scope.commit()
    assert queue_messages() == ["pending"]
    assert ds.stats.balanced


def test_write_inside_abandoned_scope_is_discarded(ds, queue_messages):
    with ImplicitScope(ds):
        TSQ("DB2LOG").write_string("lost")
    assert queue_messages() == []


def test_queue_resource_prepare_commit(tmp_queue_path, queue_messages):
    res = QueueResource(tmp_queue_path)
    res.append("DB2LOG", "one")
    res.append("DB2LOG", "two")
    res.prepare()
    assert queue_messages() == []
    res.commit()
    assert queue_messages() == ["one", "two"]
    assert res.pending == []


def test_queue_resource_rollback_after_prepare(tmp_queue_path, queue_messages):
    res = QueueResource(tmp_queue_path)
    res.append("DB2LOG", "one")
    res.prepare()
    res.rollback()
    assert queue_messages() == []


def test_queue_resource_without_writes_is_noop(tmp_queue_path):
    res = QueueResource(tmp_queue_path)
    res.prepare()
    res.commit()
    res.rollback()


def test_search_queue_newest_first_and_paged():
    q = TSQ("DB2LOG")
    for i in range(5):
        q.write_string(f"msg {i}")
    TSQ("OTHER").write_string("elsewhere")

    total, items = search_queue("DB2LOG", page=1, size=2)
    assert total == 5
    assert [r["message"] for r in items] == ["msg 4", "msg 3"]
    total, items = search_queue("DB2LOG", page=3, size=2)
    assert [r["message"] for r in items] == ["msg 0"]

    total_all, _ = search_queue(None, page=1, size=10)
    assert total_all == 6
