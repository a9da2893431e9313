"""Tests for the Deno Deploy API client."""

import json

import pytest
import responses

from edgepush.deno_deploy.api import API_BASE_URL, DenoDeployApi
from edgepush.errors import RemoteCallError


@pytest.fixture
def api():
    return DenoDeployApi("ddp_abcdefghijklmnopqrstuvwxyz")


@responses.activate
def test_list_projects(api):
    responses.add(responses.GET, f"{API_BASE_URL}/projects", json=[{"id": "p1", "name": "hello"}])

    assert api.list_projects() == [{"id": "p1", "name": "hello"}]
    assert responses.calls[0].request.headers["Authorization"] == "Bearer ddp_abcdefghijklmnopqrstuvwxyz"


@responses.activate
def test_http_error_raises(api):
    responses.add(responses.GET, f"{API_BASE_URL}/projects", json={"code": "unauthorized"}, status=401)

    with pytest.raises(RemoteCallError) as exc_info:
        api.list_projects()
    assert exc_info.value.status_code == 401


@responses.activate
def test_negotiate_assets(api):
    responses.add(responses.POST, f"{API_BASE_URL}/projects/p1/assets/negotiate", json=["abc"])

    manifest = {"entries": {"a.txt": {"kind": "file", "size": 1, "gitSha1": "abc"}}}
    assert api.negotiate_assets("p1", manifest) == ["abc"]
    assert json.loads(responses.calls[0].request.body) == manifest


@responses.activate
def test_deploy_streams_events(api):
    body = '{"type":"staticFile","currentBytes":1}\n\n{"type":"success"}\n'
    responses.add(responses.POST, f"{API_BASE_URL}/projects/p1/deployment_with_assets", body=body)

    events = list(api.deploy("p1", {"url": "file:///src/app.ts"}, [b"one", b"two"]))

    assert events == [{"type": "staticFile", "currentBytes": 1}, {"type": "success"}]
    request_body = responses.calls[0].request.body
    assert request_body.count(b'form-data; name="file";') == 2
    assert b'name="request"' in request_body


@responses.activate
def test_query_logs_params(api):
    responses.add(responses.GET, f"{API_BASE_URL}/projects/p1/deployments/d1/query_logs", json={"logs": []})

    assert api.query_logs("p1", "d1") == {"logs": []}
    assert "params=%7B%7D" in responses.calls[0].request.url
