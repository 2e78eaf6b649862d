"""Pinata REST client: the remote content-addressed blob store.

The mirror only needs four calls: upload, unpin, list by name, fetch.
"""
import json
import logging

import requests

from typing import Dict, List, Protocol

from pinvault.utils.dataModels import RemoteEntry
from pinvault.utils.exceptions import RemoteStoreError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.pinata.cloud"
DEFAULT_GATEWAY_URL = "https://gateway.pinata.cloud/ipfs/"


class RemoteBlobStore(Protocol):
    def upload(self, data: bytes, filename: str) -> str: ...

    def unpin(self, content_id: str) -> None: ...

    def list(self, name_filter: str) -> List[RemoteEntry]: ...

    def fetch(self, content_id: str) -> bytes: ...


class PinataClient:
    def __init__(
        self,
        jwt: str | None = None,
        api_key: str | None = None,
        secret_key: str | None = None,
        api_url: str = DEFAULT_API_URL,
        gateway_url: str = DEFAULT_GATEWAY_URL,
        timeout: float | None = 60,
        session: requests.Session | None = None,
    ):
        if not jwt and not (api_key and secret_key):
            raise ValidationError("Pinata JWT or API key/secret pair is required")
        self.api_url = api_url.rstrip("/")
        self.gateway_url = gateway_url if gateway_url.endswith("/") else gateway_url + "/"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(self._auth_headers(jwt, api_key, secret_key))

    @staticmethod
    def _auth_headers(jwt, api_key, secret_key) -> Dict[str, str]:
        if jwt:
            return {"Authorization": f"Bearer {jwt}"}
        return {"pinata_api_key": api_key, "pinata_secret_api_key": secret_key}

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response
        except requests.exceptions.RequestException as e:
            raise RemoteStoreError(f"Pinata {method} {url} failed: {e}") from e

    def upload(self, data: bytes, filename: str) -> str:
        response = self._request(
            "POST",
            f"{self.api_url}/pinning/pinFileToIPFS",
            files={"file": (filename, data, "application/json")},
            data={"pinataMetadata": json.dumps({"name": filename})},
        )
        try:
            cid = response.json()["IpfsHash"]
        except (ValueError, KeyError, TypeError) as e:
            raise RemoteStoreError("Pinata upload response carried no IpfsHash") from e
        logger.info("Pinned %s as %s", filename, cid)
        return cid

    def unpin(self, content_id: str) -> None:
        self._request("DELETE", f"{self.api_url}/pinning/unpin/{content_id}")
        logger.info("Unpinned %s", content_id)

    def list(self, name_filter: str) -> List[RemoteEntry]:
        response = self._request(
            "GET",
            f"{self.api_url}/data/pinList",
            params={"status": "pinned", "metadata[name]": name_filter},
        )
        try:
            rows = response.json().get("rows") or []
        except (ValueError, AttributeError) as e:
            raise RemoteStoreError("Pinata pinList response is not JSON") from e
        entries = []
        for row in rows:
            name = (row.get("metadata") or {}).get("name") or ""
            # The API filter is a substring match; keep exact names only.
            if name != name_filter or not row.get("ipfs_pin_hash"):
                continue
            entries.append(RemoteEntry(filename=name, content_id=row["ipfs_pin_hash"], pinned_at=row.get("date_pinned") or ""))
        return entries

    def fetch(self, content_id: str) -> bytes:
        return self._request("GET", f"{self.gateway_url}{content_id}").content
