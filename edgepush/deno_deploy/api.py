"""HTTP client for the Deno Deploy management API."""

import json
import logging
from typing import Any, Dict, Iterator, List, Optional

import requests
from requests.exceptions import ConnectionError, RequestException, Timeout

from ..errors import RemoteCallError
from ..utils.security import default_masker, get_secure_logger, mask_secrets

logger = get_secure_logger(__name__)

API_BASE_URL = "https://dash.deno.com/api"


class DenoDeployApi:
    """Deno Deploy client authenticated with a personal access token."""

    def __init__(self, access_token: str, base_url: str = API_BASE_URL, timeout: Optional[float] = 60.0):
        self.base_url = base_url.rstrip('/')
        self.default_timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': 'edgepush/0.1.0',
            'Authorization': f'Bearer {access_token}',
        })
        default_masker.register([access_token])

    def _send(self, method: str, path: str, stream: bool = False, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        description = f"{method} {url}"
        kwargs.setdefault('timeout', self.default_timeout)
        if logger.isEnabledFor(logging.DEBUG):
            headers = {**self.session.headers, **(kwargs.get('headers') or {})}
            logger.debug(f"Making {description} headers={default_masker.mask_headers(headers)}")
        try:
            response = self.session.request(method, url, stream=stream, **kwargs)
        except Timeout as e:
            raise RemoteCallError(f"{description} timed out: {mask_secrets(str(e))}")
        except ConnectionError as e:
            raise RemoteCallError(f"{description} connection error: {mask_secrets(str(e))}")
        except RequestException as e:
            raise RemoteCallError(f"{description} failed: {mask_secrets(str(e))}")

        if response.status_code >= 400:
            raise RemoteCallError(f"{description} failed", response.status_code, mask_secrets(response.text))
        return response

    def _json(self, method: str, path: str, **kwargs) -> Any:
        response = self._send(method, path, **kwargs)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise RemoteCallError(f"{method} {path} returned a non-JSON response", response.status_code,
                                  mask_secrets(response.text))

    def _ndjson(self, method: str, path: str, **kwargs) -> Iterator[Dict[str, Any]]:
        """Yield one decoded event per line of a newline-delimited JSON stream."""
        response = self._send(method, path, stream=True, **kwargs)
        try:
            for line in response.iter_lines(decode_unicode=True):
                if not line or not line.strip():
                    continue
                yield json.loads(line)
        finally:
            response.close()

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def list_projects(self) -> List[Dict[str, Any]]:
        return self._json('GET', '/projects') or []

    def set_environment_variables(self, project_id: str, variables: Dict[str, str]) -> None:
        self._json('PATCH', f'/projects/{project_id}/env', json=variables)

    def negotiate_assets(self, project_id: str, manifest: Dict[str, Any]) -> List[str]:
        """Return the git-sha1 hashes from manifest that the server does not have yet."""
        return self._json('POST', f'/projects/{project_id}/assets/negotiate', json=manifest) or []

    def deploy(self, project_id: str, request: Dict[str, Any], files: List[bytes]) -> Iterator[Dict[str, Any]]:
        """Create a deployment, yielding each progress event from the server."""
        multipart = [('request', (None, json.dumps(request), 'application/json'))]
        for body in files:
            multipart.append(('file', ('file', body, 'application/octet-stream')))
        return self._ndjson('POST', f'/projects/{project_id}/deployment_with_assets', files=multipart)

    def get_logs(self, project_id: str, deployment_id: str) -> Iterator[Dict[str, Any]]:
        """Stream live logs for a deployment."""
        return self._ndjson('GET', f'/projects/{project_id}/deployments/{deployment_id}/logs/',
                            headers={'Accept': 'application/x-ndjson'}, timeout=None)

    def query_logs(self, project_id: str, deployment_id: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._json('GET', f'/projects/{project_id}/deployments/{deployment_id}/query_logs',
                          params={'params': json.dumps(params or {})})
