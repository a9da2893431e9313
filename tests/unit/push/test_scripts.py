"""Tests for script reference resolution."""

import pytest

from edgepush.config import EdgeConfig
from edgepush.errors import BadScriptNameError, BadScriptSpecError
from edgepush.push.scripts import resolve_script_reference, watch_target


@pytest.fixture
def config():
    return EdgeConfig.from_dict({"scripts": {"hello": {"path": "src/worker.ts"}}})


def test_config_script(config):
    ref = resolve_script_reference("hello", config)
    assert ref.script_name == "hello"
    assert ref.root_specifier == "src/worker.ts"
    assert ref.script is config.scripts["hello"]
    assert ref.is_module


def test_name_override(config):
    assert resolve_script_reference("hello", config, "hello-staging").script_name == "hello-staging"


def test_local_file(tmp_path, config):
    path = tmp_path / "my_worker.js"
    path.write_text("addEventListener('fetch', () => {});")
    ref = resolve_script_reference(str(path), config)
    assert ref.script_name == "my_worker"
    assert not ref.is_module


def test_missing_local_file(tmp_path, config):
    with pytest.raises(BadScriptSpecError):
        resolve_script_reference(str(tmp_path / "missing.ts"), config)


def test_https_url(config):
    ref = resolve_script_reference("https://example.com/workers/api.ts", config)
    assert ref.script_name == "api"
    assert watch_target(ref) == "https://example.com/workers/api.ts"


def test_https_url_must_be_typescript(config):
    with pytest.raises(BadScriptSpecError):
        resolve_script_reference("https://example.com/workers/api.js", config)


def test_unknown_spec(config):
    with pytest.raises(BadScriptSpecError):
        resolve_script_reference("not-configured", config)


@pytest.mark.parametrize("name", ["", "a/b", "Hello", "-hello", "hello.world", "a" * 64])
def test_bad_script_name(name, config):
    with pytest.raises(BadScriptNameError):
        resolve_script_reference("hello", config, name)
