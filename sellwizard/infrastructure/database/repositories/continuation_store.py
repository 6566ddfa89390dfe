from uuid import UUID

import structlog
from sqlalchemy import delete
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sellwizard.application.interfaces.continuation_store import ContinuationStore
from sellwizard.application.interfaces.item_repository import RepositoryError
from sellwizard.domain.enums.wizard_step import WizardStep
from sellwizard.domain.value_objects.continuation_token import ContinuationToken
from sellwizard.infrastructure.database.models import ContinuationTokenModel

logger = structlog.get_logger(__name__)


class SqlAlchemyContinuationStore(ContinuationStore):
    """Continuation tokens in ``wizard_continuations``, keyed by owner."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def save(self, owner_id: UUID, token: ContinuationToken) -> None:
        values = {
            "item_id": token.item_id,
            "step": int(token.step),
            "photo_edit_baseline": token.photo_edit_baseline,
        }
        statement = insert(ContinuationTokenModel).values(owner_id=owner_id, **values)
        statement = statement.on_conflict_do_update(index_elements=["owner_id"], set_=values)
        try:
            async with self._session_factory() as session, session.begin():
                await session.execute(statement)
        except SQLAlchemyError as exc:
            raise RepositoryError("Could not save continuation token") from exc
        logger.info("continuation_saved", owner_id=str(owner_id), item_id=str(token.item_id))

    async def consume(self, owner_id: UUID) -> ContinuationToken | None:
        # Read and delete in one statement so a second consumer sees nothing
        statement = (
            delete(ContinuationTokenModel)
            .where(ContinuationTokenModel.owner_id == owner_id)
            .returning(
                ContinuationTokenModel.item_id,
                ContinuationTokenModel.step,
                ContinuationTokenModel.photo_edit_baseline,
            )
        )
        try:
            async with self._session_factory() as session, session.begin():
                row = (await session.execute(statement)).one_or_none()
        except SQLAlchemyError as exc:
            raise RepositoryError("Could not consume continuation token") from exc

        if row is None:
            return None
        return ContinuationToken(
            item_id=row.item_id,
            step=WizardStep(row.step),
            photo_edit_baseline=row.photo_edit_baseline,
        )

    async def discard(self, owner_id: UUID) -> None:
        try:
            async with self._session_factory() as session, session.begin():
                await session.execute(
                    delete(ContinuationTokenModel).where(ContinuationTokenModel.owner_id == owner_id)
                )
        except SQLAlchemyError as exc:
            raise RepositoryError("Could not discard continuation token") from exc
