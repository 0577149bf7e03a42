# tests/unit/test_executor.py
import asyncio
import os

import pytest

from filemanager.core.backup import BACKUP_DIR
from filemanager.core.executor import ActionExecutor
from filemanager.core.locks import PathLocks
from filemanager.core.models import ActionPlan, ConfigSettings, CreateAction, ValidatedPlan
from filemanager.core.validator import validate_plan


async def _run(project, *actions, settings=None, executor=None):
    settings = settings or ConfigSettings()
    validated = validate_plan(ActionPlan("s", list(actions)), project, settings)
    return await (executor or ActionExecutor()).run(validated, project, settings)


def _backups(folder):
    d = folder / BACKUP_DIR
    return sorted(d.iterdir()) if d.is_dir() else []


@pytest.mark.asyncio
async def test_create_writes_file_and_parent_dirs(project):
    result = await _run(project, {"action": "create", "filename": "src/app/main.py", "content": "print('hi')\n"})
    assert (project / "src" / "app" / "main.py").read_text() == "print('hi')\n"
    assert result.files_affected == [{"action": "Created", "filename": "src/app/main.py", "size": 12}]
    assert result.actions_count == 1
    assert _backups(project / "src" / "app") == []


@pytest.mark.asyncio
async def test_update_backs_up_previous_content(project):
    # a/b.txt: X -> Y, backup holds X
    folder = project / "a"
    folder.mkdir()
    (folder / "b.txt").write_text("X")

    result = await _run(project, {"action": "update", "filename": "a/b.txt", "content": "Y"})

    assert (folder / "b.txt").read_text() == "Y"
    backups = _backups(folder)
    assert len(backups) == 1
    assert backups[0].name.startswith("b.backup.") and backups[0].name.endswith(".txt")
    assert backups[0].read_text() == "X"
    assert result.files_affected == [{"action": "Updated", "filename": "a/b.txt", "size": 1}]


@pytest.mark.asyncio
async def test_update_of_missing_file_creates_it_without_backup(project):
    result = await _run(project, {"action": "update", "filename": "new.txt", "content": "hello"})
    assert (project / "new.txt").read_text() == "hello"
    assert _backups(project) == []
    assert result.files_affected[0]["action"] == "Updated"


@pytest.mark.asyncio
async def test_create_over_existing_file_never_backs_up(project):
    (project / "index.html").write_text("old")
    await _run(project, {"action": "create", "filename": "index.html", "content": "new"})
    assert (project / "index.html").read_text() == "new"
    assert _backups(project) == []


@pytest.mark.asyncio
async def test_auto_backup_off(project):
    (project / "a.txt").write_text("X")
    settings = ConfigSettings(auto_backup=False)
    await _run(project, {"action": "update", "filename": "a.txt", "content": "Y"},
               {"action": "delete", "filename": "a.txt"}, settings=settings)
    assert not (project / "a.txt").exists()
    assert _backups(project) == []


@pytest.mark.asyncio
async def test_delete_existing_file_backs_up_then_removes(project):
    # Scenario B
    (project / "old.html").write_text("<p>hi</p>")
    result = await _run(project, {"action": "delete", "filename": "old.html"})

    assert not (project / "old.html").exists()
    backups = _backups(project)
    assert len(backups) == 1 and backups[0].read_text() == "<p>hi</p>"
    assert result.files_affected == [{"action": "Deleted", "filename": "old.html"}]


@pytest.mark.asyncio
async def test_delete_missing_file_is_silent(project):
    result = await _run(project, {"action": "delete", "filename": "ghost.txt"})
    assert result.files_affected == []
    assert result.errors == []
    assert result.actions_count == 1
    assert not (project / BACKUP_DIR).exists()


@pytest.mark.asyncio
async def test_later_actions_see_earlier_ones(project):
    result = await _run(
        project,
        {"action": "create", "filename": "a.txt", "content": "one"},
        {"action": "update", "filename": "a.txt", "content": "two"},
        {"action": "delete", "filename": "a.txt"},
    )
    assert [e["action"] for e in result.files_affected] == ["Created", "Updated", "Deleted"]
    assert not (project / "a.txt").exists()
    assert sorted(p.read_text() for p in _backups(project)) == ["one", "two"]


@pytest.mark.asyncio
async def test_failed_action_does_not_stop_the_plan(project):
    # a regular file where a directory is needed
    (project / "blocker").write_text("file, not dir")
    result = await _run(
        project,
        {"action": "create", "filename": "first.txt", "content": "1"},
        {"action": "create", "filename": "blocker/inner.txt", "content": "2"},
        {"action": "create", "filename": "third.txt", "content": "3"},
    )
    assert [e["filename"] for e in result.files_affected] == ["first.txt", "third.txt"]
    assert len(result.errors) == 1
    assert result.errors[0]["filename"] == "blocker/inner.txt"
    assert result.errors[0]["action"] == "create"
    assert (project / "third.txt").read_text() == "3"


@pytest.mark.asyncio
async def test_files_affected_never_exceeds_valid_actions(project):
    (project / "blocker").write_text("x")
    result = await _run(
        project,
        {"action": "create", "filename": "ok.txt", "content": "1"},
        {"action": "delete", "filename": "missing.txt"},
        {"action": "create", "filename": "blocker/x.txt", "content": "2"},
        {"action": "teleport", "filename": "z.txt"},
    )
    assert result.actions_count == 4
    assert len(result.files_affected) <= 3
    assert result.files_affected == [{"action": "Created", "filename": "ok.txt", "size": 1}]
    for entry in result.files_affected:
        assert (project / entry["filename"]).exists()


@pytest.mark.asyncio
async def test_writes_are_exact_without_newline_translation(project):
    await _run(project, {"action": "create", "filename": "crlf.txt", "content": "a\r\nb\n"})
    assert (project / "crlf.txt").read_bytes() == b"a\r\nb\n"


@pytest.mark.asyncio
async def test_concurrent_updates_to_one_file_keep_every_backup(project):
    (project / "shared.txt").write_text("v0")
    executor = ActionExecutor()
    settings = ConfigSettings(max_backups=0)

    async def update(n):
        plan = validate_plan(ActionPlan("s", [{"action": "update", "filename": "shared.txt", "content": f"v{n}"}]),
                             project, settings)
        return await executor.run(plan, project, settings)

    await asyncio.gather(*(update(n) for n in range(1, 6)))

    backups = _backups(project)
    contents = sorted(p.read_text() for p in backups)
    final = (project / "shared.txt").read_text()
    # every pre-image except the final value was captured exactly once
    assert len(backups) == 5
    assert sorted(contents + [final]) == [f"v{n}" for n in range(6)]
    assert len(executor.locks) == 0


@pytest.mark.asyncio
async def test_path_locks_serialize_same_path(tmp_path):
    locks = PathLocks()
    order = []

    async def worker(name, delay):
        async with locks.hold(tmp_path / "f"):
            order.append(f"{name}-in")
            await asyncio.sleep(delay)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a", 0.02), worker("b", 0))
    assert order == ["a-in", "a-out", "b-in", "b-out"]
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_unencodable_content_is_reported_and_plan_continues(project):
    bad = CreateAction.model_construct(action="create", filename="a.txt", content="x\ud800")
    good = CreateAction(action="create", filename="b.txt", content="ok")
    plan = ValidatedPlan(summary="s", actions=[bad, good], rejected=[])

    result = await ActionExecutor().run(plan, project, ConfigSettings())

    assert [e["filename"] for e in result.errors] == ["a.txt"]
    assert [f["filename"] for f in result.files_affected] == ["b.txt"]
    assert (project / "b.txt").read_text() == "ok"
