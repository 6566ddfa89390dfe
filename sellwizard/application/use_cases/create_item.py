from dataclasses import dataclass
from uuid import UUID

import structlog

from sellwizard.application.interfaces.event_publisher import EventPublisher
from sellwizard.application.interfaces.item_repository import ItemRepository
from sellwizard.application.interfaces.market_services import PhotoStorage, PhotoStorageError
from sellwizard.config import settings
from sellwizard.domain.entities.item_record import ItemRecord
from sellwizard.domain.enums.entry_method import EntryMethod
from sellwizard.domain.value_objects.item_draft import ItemDraft, StagedPhoto

logger = structlog.get_logger(__name__)


@dataclass
class CreateItemInput:
    owner_id: UUID
    entry_method: EntryMethod
    draft: ItemDraft
    # The record this session already created, if any
    existing_item: ItemRecord | None = None


@dataclass
class CreateItemOutput:
    item: ItemRecord
    created: bool
    skipped_photos: int = 0


class CreateItem:
    """
    Use case: turn the Add Item draft into the session's one ItemRecord.

    Idempotent per session. When the session already holds a record (the
    seller went back to step 1 and submitted again) nothing is written and
    the existing record is returned.
    """

    def __init__(
        self,
        item_repo: ItemRepository,
        photo_storage: PhotoStorage,
        event_publisher: EventPublisher,
        *,
        max_photos: int = settings.max_staged_photos,
        max_photo_bytes: int = settings.max_photo_bytes,
    ) -> None:
        self._item_repo = item_repo
        self._photo_storage = photo_storage
        self._event_publisher = event_publisher
        self._max_photos = max_photos
        self._max_photo_bytes = max_photo_bytes

    async def execute(self, input_data: CreateItemInput) -> CreateItemOutput:
        if input_data.existing_item is not None:
            logger.info("item_create_skipped_existing", item_id=str(input_data.existing_item.id))
            return CreateItemOutput(item=input_data.existing_item, created=False)

        draft = input_data.draft
        draft.validate()

        uploaded, skipped = await self._upload_photos(input_data.owner_id, draft.staged_photos)
        imported = [url for url in draft.imported_photo_urls if url.startswith("http")]
        photo_urls = list(dict.fromkeys([*uploaded, *imported]))

        item = ItemRecord.create_from_draft(
            owner_id=input_data.owner_id,
            draft=draft,
            entry_method=input_data.entry_method,
            photo_urls=photo_urls,
        )
        await self._item_repo.create(item)
        await self._event_publisher.publish_many(item.collect_events())

        logger.info(
            "item_created",
            item_id=str(item.id),
            owner_id=str(item.owner_id),
            source_type=item.source_type.value,
            photos=len(photo_urls),
        )
        return CreateItemOutput(item=item, created=True, skipped_photos=skipped)

    async def _upload_photos(
        self, owner_id: UUID, photos: tuple[StagedPhoto, ...]
    ) -> tuple[list[str], int]:
        urls: list[str] = []
        skipped = max(0, len(photos) - self._max_photos)

        for photo in photos[: self._max_photos]:
            if not photo.is_image or photo.size > self._max_photo_bytes:
                logger.warning(
                    "staged_photo_rejected",
                    filename=photo.filename,
                    content_type=photo.content_type,
                    size=photo.size,
                )
                skipped += 1
                continue
            try:
                urls.append(await self._photo_storage.upload(owner_id, photo))
            except PhotoStorageError as exc:
                logger.warning("photo_upload_failed", filename=photo.filename, error=str(exc))
                skipped += 1

        return urls, skipped
