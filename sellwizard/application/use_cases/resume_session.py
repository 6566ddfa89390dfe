from dataclasses import dataclass
from uuid import UUID

import structlog

from sellwizard.application.interfaces.continuation_store import ContinuationStore
from sellwizard.application.interfaces.item_repository import ItemRepository, RepositoryError
from sellwizard.domain.entities.item_record import ItemRecord
from sellwizard.domain.value_objects.continuation_token import ContinuationToken

logger = structlog.get_logger(__name__)


@dataclass
class ResumedSession:
    item: ItemRecord
    token: ContinuationToken


class ResumeSession:
    """
    Use case: pick up a session torn down by the photo studio hand-off.

    The token is consumed before anything else so a reload can never replay
    it. Every failure after that fails open: the caller just starts fresh.
    """

    def __init__(self, item_repo: ItemRepository, continuation_store: ContinuationStore) -> None:
        self._item_repo = item_repo
        self._store = continuation_store

    async def execute(self, owner_id: UUID) -> ResumedSession | None:
        try:
            token = await self._store.consume(owner_id)
        except RepositoryError as exc:
            logger.warning("continuation_consume_failed", owner_id=str(owner_id), error=str(exc))
            return None
        if token is None:
            return None

        logger.info("continuation_consumed", owner_id=str(owner_id), item_id=str(token.item_id))

        try:
            item = await self._item_repo.get_by_id(token.item_id)
        except RepositoryError as exc:
            logger.warning("continuation_item_fetch_failed", item_id=str(token.item_id), error=str(exc))
            return None

        if item is None:
            logger.warning("continuation_item_missing", item_id=str(token.item_id))
            return None
        if not item.is_owned_by(owner_id):
            logger.warning(
                "continuation_owner_mismatch",
                item_id=str(token.item_id),
                owner_id=str(owner_id),
            )
            return None

        return ResumedSession(item=item, token=token)
