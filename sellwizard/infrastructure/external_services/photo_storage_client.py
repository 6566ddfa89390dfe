"""HTTP client for the public listing-photos storage bucket."""

import secrets
import string
import time
from uuid import UUID

import httpx
import structlog

from sellwizard.application.interfaces.market_services import PhotoStorage, PhotoStorageError
from sellwizard.config import settings
from sellwizard.domain.value_objects.item_draft import StagedPhoto

logger = structlog.get_logger(__name__)

_ALPHABET = string.ascii_lowercase + string.digits


def object_path(owner_id: UUID, photo: StagedPhoto) -> str:
    """``{owner}/item-{epoch_ms}-{rand4}.{ext}``"""
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(4))
    return f"{owner_id}/item-{int(time.time() * 1000)}-{suffix}.{photo.extension}"


class PhotoStorageClient(PhotoStorage):
    def __init__(
        self,
        api_url: str = settings.storage_api_url,
        public_url: str = settings.storage_public_url,
        bucket: str = settings.storage_bucket,
        api_key: str = settings.services_api_key,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._public_url = public_url.rstrip("/")
        self._bucket = bucket
        self._transport = transport
        self._headers = {"x-upsert": "true"}
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"

    async def upload(self, owner_id: UUID, photo: StagedPhoto) -> str:
        path = object_path(owner_id, photo)
        headers = {**self._headers, "Content-Type": photo.content_type}

        async with httpx.AsyncClient(
            timeout=settings.service_timeout_seconds, transport=self._transport
        ) as client:
            try:
                response = await client.post(
                    f"{self._api_url}/object/{self._bucket}/{path}",
                    content=photo.data,
                    headers=headers,
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                logger.error(
                    "photo_upload_rejected",
                    path=path,
                    status_code=exc.response.status_code,
                )
                raise PhotoStorageError(
                    f"Storage returned {exc.response.status_code} for {photo.filename}"
                ) from exc
            except httpx.RequestError as exc:
                logger.error("photo_storage_connection_failed", error=str(exc))
                raise PhotoStorageError(f"Failed to reach photo storage: {exc}") from exc

        logger.info("photo_uploaded", path=path, size=photo.size)
        return f"{self._public_url}/{self._bucket}/{path}"
