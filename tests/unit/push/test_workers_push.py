"""Tests for the Workers push pipeline using a mocked API and bundler."""

from unittest.mock import MagicMock, patch

import pytest

from edgepush.cloudflare.api import Migrations
from edgepush.config import EdgeConfig
from edgepush.errors import BadScriptNameError, BadScriptSpecError
from edgepush.push.bundler import BundleOutput
from edgepush.push.scripts import ScriptReference
from edgepush.push.workers import PushOptions, WorkersPusher, compute_migrations, push


def _bundler(code="export default {};\n"):
    return MagicMock(return_value=BundleOutput(code=code, backend="deno"))


@pytest.fixture
def api():
    api = MagicMock()
    api.list_durable_objects_namespaces.return_value = []
    api.create_durable_objects_namespace.return_value = {"id": "ns1", "name": "counter"}
    api.list_zones.return_value = [
        {"id": "z1", "name": "example.com", "paused": False, "status": "active", "type": "full"}
    ]
    api.get_workers_subdomain.return_value = "acme"
    api.get_worker_service_subdomain_enabled.return_value = False
    return api


@pytest.fixture
def script_ref(tmp_path):
    root = tmp_path / "worker.ts"
    root.write_text("export default {};\n")
    config = EdgeConfig.from_dict({"scripts": {"hello": {
        "path": str(root),
        "bindings": {"T": {"value": "hi"}, "COUNTER": {"doNamespace": "counter:Counter"}},
        "customDomains": ["api.example.com"],
        "workersDev": True,
        "compatibilityDate": "2024-01-01",
    }}})
    return ScriptReference("hello", str(root), config.scripts["hello"])


def test_compute_migrations():
    assert compute_migrations([]) is None
    assert compute_migrations(["A", "B"]) == Migrations(tag="delete-A-B", deleted_classes=["A", "B"])


def test_single_push(api, script_ref):
    pusher = WorkersPusher(script_ref, api, PushOptions(delete_classes=["Old"]), bundler=_bundler())

    pusher.build_and_put_script()

    api.put_script.assert_called_once()
    kwargs = api.put_script.call_args.kwargs
    assert kwargs["script_name"] == "hello"
    assert kwargs["is_module"] is True
    assert kwargs["compatibility_date"] == "2024-01-01"
    assert kwargs["migrations"] == Migrations(tag="delete-Old", deleted_classes=["Old"])
    assert {"type": "plain_text", "name": "T", "text": "hi"} in kwargs["bindings"]
    api.update_durable_objects_namespace.assert_called_once_with(
        "ns1", name="counter", script="hello", class_name="Counter"
    )
    api.put_workers_domain.assert_called_once()
    api.set_worker_service_subdomain_enabled.assert_called_once_with("hello", True)
    assert pusher.push_id is None
    assert pusher.push_number == 2


def test_watch_pushes_do_first_push_work_once(api, script_ref):
    pusher = WorkersPusher(script_ref, api, PushOptions(watch=True, delete_classes=["Old"]), bundler=_bundler())
    push_start = pusher.push_start
    assert pusher.push_id == f"{push_start}.1"

    pusher.build_and_put_script()
    pusher.build_and_put_script()
    pusher.build_and_put_script()

    assert api.put_script.call_count == 3
    migrations = [c.kwargs["migrations"] for c in api.put_script.call_args_list]
    assert migrations[0] is not None
    assert migrations[1:] == [None, None]
    assert api.put_workers_domain.call_count == 1
    assert api.get_worker_service_subdomain_enabled.call_count == 1
    assert pusher.push_id == f"{push_start}.4"


def test_push_id_reaches_bindings(api, tmp_path):
    root = tmp_path / "worker.ts"
    root.write_text("")
    config = EdgeConfig.from_dict({"scripts": {"hello": {
        "path": str(root), "bindings": {"BUILD": {"value": "${pushId}"}},
    }}})
    ref = ScriptReference("hello", str(root), config.scripts["hello"])
    pusher = WorkersPusher(ref, api, PushOptions(watch=True), bundler=_bundler())

    pusher.build_and_put_script()

    bindings = api.put_script.call_args.kwargs["bindings"]
    assert bindings == [{"type": "plain_text", "name": "BUILD", "text": f"{pusher.push_start}.1"}]


def test_workers_dev_unset_leaves_route_alone(api, tmp_path):
    root = tmp_path / "worker.ts"
    root.write_text("")
    pusher = WorkersPusher(ScriptReference("hello", str(root)), api, PushOptions(), bundler=_bundler())

    pusher.build_and_put_script()

    api.get_worker_service_subdomain_enabled.assert_not_called()
    api.set_worker_service_subdomain_enabled.assert_not_called()
    api.list_zones.assert_not_called()


def test_workers_dev_option_overrides_config(api, script_ref):
    api.get_worker_service_subdomain_enabled.return_value = True
    pusher = WorkersPusher(script_ref, api, PushOptions(workers_dev=False), bundler=_bundler())

    pusher.build_and_put_script()

    api.set_worker_service_subdomain_enabled.assert_called_once_with("hello", False)


def test_non_module_script_is_not_bundled(api, tmp_path):
    root = tmp_path / "worker.js"
    root.write_text("addEventListener('fetch', () => {});\n")
    bundler = _bundler()
    pusher = WorkersPusher(ScriptReference("worker", str(root)), api, PushOptions(), bundler=bundler)

    pusher.build_and_put_script()

    bundler.assert_not_called()
    kwargs = api.put_script.call_args.kwargs
    assert kwargs["is_module"] is False
    assert kwargs["script_contents"] == b"addEventListener('fetch', () => {});\n"


@pytest.mark.parametrize("name", ["Bad_Name", "", "a/b"])
def test_bad_name_fails_before_any_network_call(name, tmp_path):
    root = tmp_path / "worker.ts"
    root.write_text("")
    api_factory = MagicMock()

    with pytest.raises(BadScriptNameError):
        push(str(root), PushOptions(name=name), EdgeConfig(), api_factory=api_factory)

    api_factory.assert_not_called()


def test_push_starts_watcher(api, tmp_path):
    root = tmp_path / "worker.ts"
    root.write_text("")
    options = PushOptions(watch=True, account_id="acct", api_token="token")

    with patch("edgepush.push.workers.bundle", _bundler()), \
            patch("edgepush.push.workers.ModuleWatcher") as watcher_cls:
        pusher = push(str(root), options, EdgeConfig(), api_factory=lambda a, t: api)

    watcher_cls.assert_called_once()
    assert watcher_cls.call_args.args[0] == str(root)
    watcher_cls.return_value.run.assert_called_once()
    assert pusher.push_number == 2


def test_non_utf8_script_reports_file(api, tmp_path):
    root = tmp_path / "worker.js"
    root.write_bytes(b"\xff\xfe not utf-8")
    pusher = WorkersPusher(ScriptReference("worker", str(root)), api, PushOptions(), bundler=_bundler())

    with pytest.raises(BadScriptSpecError) as exc_info:
        pusher.build_and_put_script()

    assert str(root) in str(exc_info.value)
    api.put_script.assert_not_called()
