"""Tests for Deno Deploy asset negotiation and environment reconciliation."""

from unittest.mock import MagicMock

from edgepush.push.assets import negotiate_and_deploy, reconcile_environment_variables, select_missing_files
from edgepush.push.parts import FileEntry


def _files(count):
    return {f"file{i}.txt": FileEntry.of(f"content {i}".encode()) for i in range(count)}


def test_only_missing_files_are_uploaded():
    files = _files(5)
    missing = [files["file1.txt"].git_sha1, files["file3.txt"].git_sha1]
    api = MagicMock()
    api.negotiate_assets.return_value = missing
    api.deploy.return_value = iter([{"type": "success"}])
    events = []

    count = negotiate_and_deploy(api, "proj1", "file:///src/app.ts", files, on_event=events.append)

    assert count == 2
    project_id, request, bodies = api.deploy.call_args.args
    assert project_id == "proj1"
    assert bodies == [b"content 1", b"content 3"]
    assert request["url"] == "file:///src/app.ts"
    assert request["production"] is True
    assert request["importMapUrl"] is None
    assert len(request["manifest"]["entries"]) == 5
    assert events == [{"type": "success"}]


def test_identical_content_uploaded_once():
    entry = FileEntry.of(b"same")
    files = {"a.txt": entry, "b.txt": entry}
    assert select_missing_files(files, [entry.git_sha1]) == [b"same"]


def test_nothing_missing_uploads_nothing():
    api = MagicMock()
    api.negotiate_assets.return_value = []
    api.deploy.return_value = iter([])

    assert negotiate_and_deploy(api, "proj1", "file:///src/app.ts", _files(3)) == 0
    assert api.deploy.call_args.args[2] == []


def test_env_vars_unchanged():
    api = MagicMock()
    project = {"id": "proj1", "envVars": ["A", "B"]}

    assert not reconcile_environment_variables(api, project, {"B": "2", "A": "1"})
    api.set_environment_variables.assert_not_called()


def test_env_vars_updated_when_names_differ():
    api = MagicMock()
    project = {"id": "proj1", "envVars": ["A"]}

    assert reconcile_environment_variables(api, project, {"A": "1", "B": "2"})
    api.set_environment_variables.assert_called_once_with("proj1", {"A": "1", "B": "2"})
