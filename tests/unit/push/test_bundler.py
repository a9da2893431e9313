"""Tests for the external bundler wrapper."""

from unittest.mock import MagicMock, patch

import pytest

from edgepush.errors import BundleError
from edgepush.push.bundler import BundleOptions, bundle, parse_bundle_opts


def test_parse_bundle_opts():
    assert parse_bundle_opts(["backend=esbuild", "minify=true"]) == BundleOptions(backend="esbuild", minify=True)
    assert parse_bundle_opts(None) == BundleOptions()


@pytest.mark.parametrize("values", [["backend"], ["backend=webpack"], ["color=blue"]])
def test_parse_bundle_opts_rejects(values):
    with pytest.raises(BundleError):
        parse_bundle_opts(values)


@patch("edgepush.push.bundler.subprocess.run")
def test_bundle_with_esbuild(mock_run):
    mock_run.return_value = MagicMock(returncode=0, stdout="export default {};", stderr="")

    output = bundle("worker.ts", BundleOptions(backend="esbuild", minify=True))

    assert output.code == "export default {};"
    assert output.backend == "esbuild"
    cmd = mock_run.call_args.args[0]
    assert cmd[:3] == ["esbuild", "worker.ts", "--bundle"]
    assert "--format=esm" in cmd
    assert "--minify" in cmd


@patch("edgepush.push.bundler.subprocess.run")
def test_bundle_failure(mock_run):
    mock_run.return_value = MagicMock(returncode=1, stdout="", stderr="error: Module not found")

    with pytest.raises(BundleError) as exc_info:
        bundle("worker.ts", BundleOptions(backend="deno"))
    assert "Module not found" in str(exc_info.value)


@patch("edgepush.push.bundler.shutil.which", return_value=None)
def test_no_bundler_installed(mock_which):
    with pytest.raises(BundleError):
        bundle("worker.ts")


@patch("edgepush.push.bundler.subprocess.run")
@patch("edgepush.push.bundler.shutil.which", side_effect=lambda name: f"/usr/bin/{name}")
def test_esbuild_preferred_when_both_installed(mock_which, mock_run):
    mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")

    assert bundle("worker.ts", BundleOptions()).backend == "esbuild"
    assert mock_run.call_args.args[0][0] == "esbuild"


@patch("edgepush.push.bundler.subprocess.run")
@patch("edgepush.push.bundler.shutil.which", side_effect=lambda name: "/usr/bin/deno" if name == "deno" else None)
def test_deno_used_when_esbuild_missing(mock_which, mock_run):
    mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")

    assert bundle("worker.ts", BundleOptions()).backend == "deno"
