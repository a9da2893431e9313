"""HTTP client for the Cloudflare v4 REST API (Workers, zones and D1)."""

import json
import logging
from typing import Any, Dict, List, NamedTuple, Optional

import requests
from requests.exceptions import ConnectionError, RequestException, Timeout

from ..errors import RemoteCallError
from ..utils.security import default_masker, get_secure_logger, mask_secrets

logger = get_secure_logger(__name__)

API_BASE_URL = "https://api.cloudflare.com/client/v4"


class Part(NamedTuple):
    """A named auxiliary blob uploaded alongside a worker script."""
    name: str
    value_bytes: Optional[bytes]
    content_type: str = "application/octet-stream"
    file_name: Optional[str] = None


class Migrations(NamedTuple):
    tag: str
    deleted_classes: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"tag": self.tag, "deleted_classes": list(self.deleted_classes)}


class CloudflareApi:
    """Cloudflare API client scoped to a single account."""

    def __init__(self, account_id: str, api_token: str, base_url: str = API_BASE_URL, timeout: Optional[float] = 60.0):
        self.account_id = account_id
        self.base_url = base_url.rstrip('/')
        self.default_timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': 'edgepush/0.1.0',
            'Authorization': f'Bearer {api_token}',
        })
        default_masker.register([api_token])

    def _account_url(self, path: str) -> str:
        return f"{self.base_url}/accounts/{self.account_id}{path}"

    def _request(self, method: str, url: str, raw: bool = False, **kwargs) -> Any:
        """Execute a request and unwrap the Cloudflare response envelope."""
        kwargs.setdefault('timeout', self.default_timeout)
        description = f"{method} {url}"
        if logger.isEnabledFor(logging.DEBUG):
            headers = {**self.session.headers, **(kwargs.get('headers') or {})}
            logger.debug(f"Making {description} headers={default_masker.mask_headers(headers)}")
        try:
            response = self.session.request(method, url, **kwargs)
        except Timeout as e:
            raise RemoteCallError(f"{description} timed out: {mask_secrets(str(e))}")
        except ConnectionError as e:
            raise RemoteCallError(f"{description} connection error: {mask_secrets(str(e))}")
        except RequestException as e:
            raise RemoteCallError(f"{description} failed: {mask_secrets(str(e))}")

        logger.debug(f"{description} -> {response.status_code}")

        if raw:
            if response.status_code >= 400:
                raise RemoteCallError(f"{description} failed", response.status_code, mask_secrets(response.text))
            return response.content

        try:
            envelope = response.json()
        except ValueError:
            raise RemoteCallError(f"{description} returned a non-JSON response", response.status_code, mask_secrets(response.text))

        if response.status_code >= 400 or not envelope.get('success', False):
            errors = envelope.get('errors') or []
            body = json.dumps(errors) if errors else response.text
            raise RemoteCallError(f"{description} failed", response.status_code, mask_secrets(body))

        return envelope.get('result')

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # Durable Objects namespaces

    def list_durable_objects_namespaces(self) -> List[Dict[str, Any]]:
        return self._request('GET', self._account_url('/workers/durable_objects/namespaces')) or []

    def create_durable_objects_namespace(self, name: str) -> Dict[str, Any]:
        return self._request('POST', self._account_url('/workers/durable_objects/namespaces'), json={'name': name})

    def update_durable_objects_namespace(self, namespace_id: str, name: Optional[str] = None,
                                         script: Optional[str] = None, class_name: Optional[str] = None) -> Dict[str, Any]:
        payload = {'id': namespace_id, 'name': name, 'script': script, 'class': class_name}
        return self._request('PUT', self._account_url(f'/workers/durable_objects/namespaces/{namespace_id}'),
                             json={k: v for k, v in payload.items() if v is not None})

    # Scripts

    def put_script(
        self,
        script_name: str,
        script_contents: bytes,
        bindings: List[Dict[str, Any]],
        parts: List[Part],
        is_module: bool,
        migrations: Optional[Migrations] = None,
        usage_model: Optional[str] = None,
        logpush: Optional[bool] = None,
        compatibility_date: Optional[str] = None,
        compatibility_flags: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """Upload a worker script with its bindings and parts as one multipart request."""
        metadata: Dict[str, Any] = {'bindings': bindings}
        if is_module:
            metadata['main_module'] = 'main'
        else:
            metadata['body_part'] = 'script'
        if migrations is not None:
            metadata['migrations'] = migrations.to_dict()
        if usage_model is not None:
            metadata['usage_model'] = usage_model
        if logpush is not None:
            metadata['logpush'] = logpush
        if compatibility_date is not None:
            metadata['compatibility_date'] = compatibility_date
        if compatibility_flags is not None:
            metadata['compatibility_flags'] = list(compatibility_flags)

        files = [('metadata', (None, json.dumps(metadata), 'application/json'))]
        if is_module:
            files.append(('main', ('main', script_contents, 'application/javascript+module')))
        else:
            files.append(('script', ('script', script_contents, 'application/javascript')))
        for part in parts:
            files.append((part.name, (part.file_name or part.name, part.value_bytes, part.content_type)))

        return self._request('PUT', self._account_url(f'/workers/scripts/{script_name}'), files=files)

    # Zones and domains

    def list_zones(self, per_page: int = 1000) -> List[Dict[str, Any]]:
        return self._request('GET', f"{self.base_url}/zones",
                             params={'account.id': self.account_id, 'per_page': per_page}) or []

    def put_workers_domain(self, hostname: str, zone_id: str, service: str, environment: str) -> Dict[str, Any]:
        payload = {'hostname': hostname, 'zone_id': zone_id, 'service': service, 'environment': environment}
        return self._request('PUT', self._account_url('/workers/domains'), json=payload)

    def get_workers_subdomain(self) -> str:
        return self._request('GET', self._account_url('/workers/subdomain'))['subdomain']

    def get_worker_service_subdomain_enabled(self, script_name: str, environment: str = 'production') -> bool:
        result = self._request('GET', self._account_url(f'/workers/services/{script_name}/environments/{environment}/subdomain'))
        return bool(result['enabled'])

    def set_worker_service_subdomain_enabled(self, script_name: str, enabled: bool, environment: str = 'production') -> None:
        self._request('POST', self._account_url(f'/workers/services/{script_name}/environments/{environment}/subdomain'),
                      json={'enabled': enabled})

    # D1

    def list_d1_databases(self) -> List[Dict[str, Any]]:
        return self._request('GET', self._account_url('/d1/database'), params={'per_page': 1000}) or []

    def create_d1_database(self, database_name: str, location: Optional[str] = None,
                           experimental_backend: Optional[bool] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {'name': database_name}
        if location:
            payload['primary_location_hint'] = location
        if experimental_backend:
            payload['experimental'] = True
        return self._request('POST', self._account_url('/d1/database'), json=payload)

    def delete_d1_database(self, database_uuid: str) -> None:
        self._request('DELETE', self._account_url(f'/d1/database/{database_uuid}'))

    def query_d1_database(self, database_uuid: str, sql: str, params: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        payload: Dict[str, Any] = {'sql': sql}
        if params:
            payload['params'] = list(params)
        return self._request('POST', self._account_url(f'/d1/database/{database_uuid}/query'), json=payload)

    def create_d1_backup(self, database_uuid: str) -> Dict[str, Any]:
        return self._request('POST', self._account_url(f'/d1/database/{database_uuid}/backup'))

    def list_d1_backups(self, database_uuid: str) -> List[Dict[str, Any]]:
        return self._request('GET', self._account_url(f'/d1/database/{database_uuid}/backup')) or []

    def restore_d1_backup(self, database_uuid: str, backup_uuid: str) -> None:
        self._request('POST', self._account_url(f'/d1/database/{database_uuid}/backup/{backup_uuid}/restore'))

    def download_d1_backup(self, database_uuid: str, backup_uuid: str) -> bytes:
        return self._request('GET', self._account_url(f'/d1/database/{database_uuid}/backup/{backup_uuid}/download'), raw=True)
