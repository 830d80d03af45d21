"""Redemption session persistence

Each session is one RedemptionState serialized under redemption:<session_id>
with a TTL. Every save refreshes the TTL, so an idle session expires and a
reset deletes it outright.
"""

import logging
import uuid
from typing import Optional, Tuple

from core.config.timing import SESSION_TTL
from core.error.exceptions import SystemException
from core.redemption.state import RedemptionState
from core.state.persistence.client import get_redis_client
from core.state.persistence.redis_operations import RedisAtomic
from core.utils.error_handler import ErrorHandler

logger = logging.getLogger(__name__)

KEY_PREFIX = "redemption:"


class RedemptionSessionStore:
    """Loads and saves redemption sessions in Redis"""

    def __init__(self, redis_client=None, ttl: int = SESSION_TTL):
        self.storage = RedisAtomic(redis_client if redis_client is not None else get_redis_client())
        self.ttl = ttl

    @staticmethod
    def key(session_id: str) -> str:
        return f"{KEY_PREFIX}{session_id}"

    def _raise(self, action: str, session_id: str, message: str) -> None:
        error = SystemException(
            message=message,
            code="STATE_ERROR",
            service="session_store",
            action=action
        )
        ErrorHandler.handle_system_error(
            code="STATE_ERROR",
            service="session_store",
            action=action,
            message=f"Session {session_id}: {message}",
            error=error
        )
        raise error

    def create(self, auth_phone: Optional[str] = None) -> Tuple[str, RedemptionState]:
        """Start a new session, optionally for an authenticated phone"""
        session_id = uuid.uuid4().hex
        state = RedemptionState(auth_phone=auth_phone or None)
        self.save(session_id, state)
        logger.info(f"Created redemption session {session_id}")
        return session_id, state

    def load(self, session_id: str) -> Optional[RedemptionState]:
        """Stored state, None when the session does not exist or expired

        Raises:
            SystemException: Redis failed or the stored document is unreadable
        """
        success, data, error = self.storage.execute_atomic(self.key(session_id), "get")
        if not success:
            self._raise("load", session_id, error or "Failed to load session")
        if data is None:
            return None
        try:
            return RedemptionState.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            self._raise("load", session_id, f"Corrupt session data: {str(e)}")

    def save(self, session_id: str, state: RedemptionState) -> None:
        """Store state and refresh the session TTL

        Raises:
            SystemException: Redis failed
        """
        success, _, error = self.storage.execute_atomic(
            self.key(session_id), "set", state.to_dict(), self.ttl
        )
        if not success:
            self._raise("save", session_id, error or "Failed to save session")
        logger.debug(f"Saved session {session_id} at step {state.step.value}")

    def delete(self, session_id: str) -> None:
        """Discard the session

        Raises:
            SystemException: Redis failed
        """
        success, _, error = self.storage.execute_atomic(self.key(session_id), "delete")
        if not success:
            self._raise("delete", session_id, error or "Failed to delete session")
        logger.info(f"Deleted redemption session {session_id}")
