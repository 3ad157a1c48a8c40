from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

import db.session_store as store
from api.models import AuthResponse, Session
from core.roles import Capabilities, RoleGate
from utils.logger import get_logger

_logger = get_logger(__name__)


@dataclass
class GlobalState:
    """
    Centralized application state shared by screens.

    Fields:
      - session: the signed-in user, None when signed out
      - original_session: the SuperAdmin session while impersonating someone
    """

    session: Optional[Session] = None
    original_session: Optional[Session] = None

    _caps_cache: Optional[Tuple[Optional[Session], Capabilities]] = field(
        default=None, repr=False, compare=False
    )

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    @property
    def is_impersonating(self) -> bool:
        return self.original_session is not None

    @property
    def token(self) -> Optional[str]:
        return self.session.token if self.session else None

    @property
    def gate(self) -> RoleGate:
        return RoleGate(self.session)

    @property
    def capabilities(self) -> Capabilities:
        """
        Derived from the current session object; recomputed as soon as the
        session is replaced.
        """
        if self._caps_cache is None or self._caps_cache[0] is not self.session:
            self._caps_cache = (self.session, Capabilities.from_gate(self.gate))
        return self._caps_cache[1]

    async def restore(self) -> Optional[Session]:
        """Pick up the session left by the previous run, if any."""
        saved = await store.load_auth(store.CURRENT)
        if saved is None:
            return None
        token, user = saved
        self.session = Session.from_auth(token, user)
        original = await store.load_auth(store.ORIGINAL)
        if original is not None:
            self.original_session = Session.from_auth(*original)
        _logger.info(f"restored session for {self.session.email}")
        return self.session

    async def start_session(self, auth: AuthResponse) -> Session:
        await store.save_auth(store.CURRENT, auth.access_token, auth.user)
        self.session = Session.from_auth(auth.access_token, auth.user)
        return self.session

    async def end_session(self) -> None:
        """
        Sign out completely, impersonation included.
        """
        await store.clear_auth()
        self.session = None
        self.original_session = None

    async def start_impersonation(self, auth: AuthResponse) -> Session:
        if self.session is None:
            raise RuntimeError("cannot impersonate without a session")
        # keep the first original when hopping between impersonated users
        if self.original_session is None:
            saved = await store.load_auth(store.CURRENT)
            if saved is not None:
                await store.save_auth(store.ORIGINAL, *saved)
            self.original_session = self.session
        _logger.info(f"{self.original_session.email} impersonating {auth.user.email}")
        return await self.start_session(auth)

    async def stop_impersonation(self) -> Optional[Session]:
        saved = await store.load_auth(store.ORIGINAL)
        await store.clear_auth(store.ORIGINAL)
        self.original_session = None
        if saved is None:
            return self.session
        token, user = saved
        await store.save_auth(store.CURRENT, token, user)
        self.session = Session.from_auth(token, user)
        return self.session
