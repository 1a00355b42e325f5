import logging
from typing import Optional

import httpx

from exceptions import ImageFetchFailed, StorageError
from models.classification import ImageData
from services.storage_service import StorageClient, parse_storage_locator

logger = logging.getLogger(__name__)

async def download_from_storage(image_url: str, storage: Optional[StorageClient]) -> Optional[ImageData]:
    locator = parse_storage_locator(image_url)
    if locator is None or storage is None:
        return None

    logger.info(f'Attempting storage download from bucket "{locator.bucket_id}" path "{locator.object_path}"')
    try:
        return await storage.download(locator.bucket_id, locator.object_path)
    except StorageError as e:
        logger.warning(f"Storage download failed, will fallback to HTTP fetch: {str(e)}")
        return None

async def fetch_over_http(image_url: str, client: httpx.AsyncClient) -> ImageData:
    logger.info("Fetching image via HTTP...")
    response = await client.get(image_url, headers={"Cache-Control": "no-cache"})

    if not response.is_success:
        raise ImageFetchFailed(response.status_code, response.reason_phrase)

    return ImageData(
        content=response.content,
        content_type=response.headers.get("content-type", "")
    )

async def resolve_image(
    image_url: str,
    storage: Optional[StorageClient],
    client: httpx.AsyncClient
) -> ImageData:
    """Obtain image bytes, preferring the storage service over a direct fetch."""
    image = await download_from_storage(image_url, storage)

    if image is None:
        image = await fetch_over_http(image_url, client)

    logger.info(f"Image obtained successfully, size: {image.size} bytes, type: {image.content_type}")
    return image
