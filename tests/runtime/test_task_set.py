from __future__ import annotations

import pytest

from engine.runtime.dispatch import TaskDispatcher
from engine.runtime.entity_list import EntityList
from engine.runtime.task_set import TaskSet


def test_create_is_idempotent_by_name() -> None:
    owner: EntityList[TaskSet] = EntityList()
    a = TaskSet.create("physics", owner)
    b = TaskSet.create("physics", owner)
    assert a is b
    assert len(owner) == 1
    assert TaskSet.find_by_name("physics", owner) is a
    assert TaskSet.find_by_name("missing", owner) is None


def test_add_and_remove_task_chain(make_recorder) -> None:
    ts = TaskSet("chain")
    r1, r2 = make_recorder(), make_recorder()
    out = ts.add_task("a", r1).add_task("b", r2).remove_task("b").remove_task("never-added")
    assert out is ts
    assert ts.task_keys() == ["a"]

    ts.execute_tasks(0.5)
    assert r1.calls == [0.5]
    assert r2.count == 0


def test_add_task_overwrites_same_key(make_recorder) -> None:
    ts = TaskSet("overwrite")
    old, new = make_recorder(), make_recorder()
    ts.add_task("k", old).add_task("k", new)
    ts.execute_tasks(1.0)
    assert old.count == 0
    assert new.calls == [1.0]
    assert len(ts) == 1


def test_add_task_rejects_non_callable() -> None:
    with pytest.raises(TypeError):
        TaskSet("bad").add_task("k", 42)  # type: ignore[arg-type]


def test_failing_task_does_not_block_siblings(inline_dispatcher, errors, make_recorder) -> None:
    ts = TaskSet("isolation", inline_dispatcher)
    ok = make_recorder()

    def boom(_dt: float) -> None:
        raise RuntimeError("boom")

    ts.add_task("first", boom).add_task("second", ok)
    ts.execute_tasks(0.1)  # 例外は呼び出し元へ伝搬しない

    assert ok.calls == [0.1]
    assert len(errors) == 1
    label, err = errors[0]
    assert "isolation" in label
    assert isinstance(err.original, RuntimeError)


def test_task_may_mutate_its_own_set_while_running(make_recorder) -> None:
    ts = TaskSet("self-mutating")
    late = make_recorder()

    def once(_dt: float) -> None:
        ts.remove_task("once")
        ts.add_task("late", late)

    ts.add_task("once", once)
    ts.execute_tasks(0.1)  # スナップショット走査なので late はこの回には呼ばれない
    assert late.count == 0
    ts.execute_tasks(0.2)
    assert late.calls == [0.2]
    assert not ts.has_task("once")


def test_destroyed_set_ignores_further_calls(make_recorder) -> None:
    owner: EntityList[TaskSet] = EntityList()
    ts = TaskSet.create("doomed", owner)
    rec = make_recorder()
    ts.add_task("a", rec)

    ts.destroy(owner)
    assert not ts.alive
    assert ts not in owner

    assert ts.add_task("b", rec) is ts
    assert ts.remove_task("a") is ts
    ts.execute_tasks(1.0)
    assert rec.count == 0
    assert len(ts) == 0


def test_closed_dispatcher_drops_work(make_recorder) -> None:
    d = TaskDispatcher(max_workers=0)
    ts = TaskSet("closed", d)
    rec = make_recorder()
    ts.add_task("a", rec)
    d.close()
    d.close()  # 多重呼び出しに安全
    ts.execute_tasks(0.1)
    assert rec.count == 0
