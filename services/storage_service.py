import logging
from typing import NamedTuple, Optional
from urllib.parse import quote, unquote, urlsplit

import httpx

from exceptions import StorageError
from models.classification import ImageData

logger = logging.getLogger(__name__)

class StorageLocator(NamedTuple):
    bucket_id: str
    object_path: str

def parse_storage_locator(image_url: str) -> Optional[StorageLocator]:
    """Extract bucket and object path from a `.../public/<bucket>/<path...>` URL.

    Returns None when the URL has no `public` segment followed by a bucket.
    """
    try:
        path = urlsplit(image_url).path
    except ValueError as e:
        logger.warning(f"Could not parse storage URL, will fallback to HTTP fetch: {str(e)}")
        return None

    parts = [unquote(part) for part in path.split("/") if part]
    if "public" not in parts:
        return None

    idx = parts.index("public")
    if idx + 1 >= len(parts):
        return None

    return StorageLocator(
        bucket_id=parts[idx + 1],
        object_path="/".join(parts[idx + 2:])
    )

class StorageClient:
    """Downloads objects from the storage REST API using the service credential."""

    def __init__(self, client: httpx.AsyncClient, base_url: str, service_key: str):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key

    def _object_url(self, bucket_id: str, object_path: str) -> str:
        return f"{self.base_url}/storage/v1/object/{quote(bucket_id)}/{quote(object_path)}"

    async def download(self, bucket_id: str, object_path: str) -> ImageData:
        headers = {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}"
        }
        try:
            response = await self.client.get(self._object_url(bucket_id, object_path), headers=headers)
        except httpx.HTTPError as e:
            raise StorageError(f"Storage request failed: {str(e)}") from e

        if response.status_code != 200:
            raise StorageError(_storage_error_message(response))

        return ImageData(
            content=response.content,
            content_type=response.headers.get("content-type", "")
        )

def _storage_error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"{response.status_code} {response.reason_phrase}"
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or str(body)
    return str(body)
