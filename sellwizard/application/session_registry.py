from collections.abc import Callable
from uuid import UUID

import structlog

from sellwizard.application.sell_wizard import SellWizard
from sellwizard.application.session import WizardSession

logger = structlog.get_logger(__name__)

WizardFactory = Callable[[WizardSession], SellWizard]


class SessionNotFoundError(Exception):
    def __init__(self, session_id: UUID) -> None:
        super().__init__(f"Wizard session {session_id} not found.")
        self.session_id = session_id


class WizardSessionRegistry:
    """
    In-process home of the mounted wizards.

    Wizard sessions are ephemeral: they live exactly as long as the seller
    has the flow open and are never persisted. Only the continuation token
    survives a teardown.
    """

    def __init__(self, factory: WizardFactory) -> None:
        self._factory = factory
        self._wizards: dict[UUID, SellWizard] = {}

    async def open(self, owner_id: UUID) -> SellWizard:
        """
        Mount a fresh wizard for ``owner_id``. Any wizard the owner still has
        open (typically the one left behind by the photo studio hand-off) is
        unmounted first, so its poller cannot outlive it.
        """
        await self._evict_owner(owner_id)
        wizard = self._factory(WizardSession(owner_id=owner_id))
        self._wizards[wizard.session.id] = wizard
        await wizard.mount()
        return wizard

    def get(self, session_id: UUID, owner_id: UUID) -> SellWizard:
        wizard = self._wizards.get(session_id)
        # A foreign owner gets the same answer as a missing session
        if wizard is None or wizard.session.owner_id != owner_id:
            raise SessionNotFoundError(session_id)
        return wizard

    async def close(self, session_id: UUID, owner_id: UUID) -> None:
        wizard = self.get(session_id, owner_id)
        del self._wizards[session_id]
        await wizard.unmount()

    async def close_all(self) -> None:
        wizards, self._wizards = list(self._wizards.values()), {}
        for wizard in wizards:
            await wizard.unmount()
        logger.info("wizard_sessions_closed", count=len(wizards))

    def __len__(self) -> int:
        return len(self._wizards)

    async def _evict_owner(self, owner_id: UUID) -> None:
        stale = [sid for sid, w in self._wizards.items() if w.session.owner_id == owner_id]
        for session_id in stale:
            wizard = self._wizards.pop(session_id)
            await wizard.unmount()
            logger.info("wizard_session_replaced", session_id=str(session_id), owner_id=str(owner_id))
