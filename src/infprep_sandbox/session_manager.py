# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from infprep_sandbox.config import SandboxConfig
from infprep_sandbox.models import ExecutionResult, UserContext
from infprep_sandbox.patching import CodeBuffer
from infprep_sandbox.prompts import STARTER_CODE
from infprep_sandbox.tools import ToolDispatcher
from infprep_sandbox.utils.audit import AuditLogger


@dataclass
class EditorSession:
    """One editing session: the code buffer and what was last shown for it.

    ``lock`` is the serialization point for buffer mutations. Tool calls, direct
    edits, loads and runs all acquire it, so two tabs or agents sharing a
    session cannot interleave edits.
    """

    session_id: str
    owner_id: str
    buffer: CodeBuffer
    dispatcher: ToolDispatcher
    last_accessed: float
    problem_id: str | None = None
    last_result: ExecutionResult | None = None
    messages: list[dict[str, Any]] = field(default_factory=list)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    active: bool = True

    def touch(self) -> None:
        self.last_accessed = time.time()


class SessionManager:
    """Manages the lifecycle of editor sessions.

    Handles creation, ownership checks, and automatic cleanup of idle sessions.
    Uses a background reaper task to drop expired sessions.
    """

    def __init__(self, config: SandboxConfig | None = None):
        """Initializes the SessionManager.

        Args:
            config: Optional configuration object. If not provided, defaults are used.
        """
        self.config = config or SandboxConfig()
        self.audit = AuditLogger(enabled=self.config.enable_audit_logging)
        self.sessions: dict[str, EditorSession] = {}
        self._reaper_task: asyncio.Task[None] | None = None
        self._creation_lock = asyncio.Lock()

    async def get_or_create_session(self, session_id: str, context: UserContext) -> EditorSession:
        """Retrieve existing session or create a new one.

        New sessions start with the starter generator in their buffer. Updates
        the last_accessed timestamp for the session.

        Args:
            session_id: The unique identifier for the session.
            context: The authenticated user.

        Returns:
            EditorSession: The active session object.

        Raises:
            ValueError: If session_id is empty or context is missing.
            PermissionError: If session belongs to another user.
        """
        if not session_id:
            raise ValueError("Session ID is required")
        if not context:
            raise ValueError("UserContext is required")

        await self._start_reaper_if_needed()

        # Optimistic check
        if session_id in self.sessions:
            return self._claim(self.sessions[session_id], context)

        async with self._creation_lock:
            # Double-check inside lock
            if session_id in self.sessions:
                return self._claim(self.sessions[session_id], context)

            logger.info("Opening editor session", session_id=session_id, user_id=context.sub)
            buffer = CodeBuffer(STARTER_CODE)
            session = EditorSession(
                session_id=session_id,
                owner_id=context.sub,
                buffer=buffer,
                dispatcher=ToolDispatcher(
                    buffer,
                    require_unique_match=self.config.require_unique_match,
                    audit=self.audit,
                ),
                last_accessed=time.time(),
            )
            self.sessions[session_id] = session
            return session

    def get_session(self, session_id: str, context: UserContext) -> EditorSession | None:
        """Return the session if it exists, without creating one.

        Raises:
            PermissionError: If session belongs to another user.
        """
        session = self.sessions.get(session_id)
        if session is None:
            return None
        return self._claim(session, context)

    def _claim(self, session: EditorSession, context: UserContext) -> EditorSession:
        if session.owner_id != context.sub:
            logger.warning(f"Unauthorized access attempt to session {session.session_id} by {context.sub}")
            raise PermissionError("Session belongs to another user")
        session.touch()
        return session

    async def _start_reaper_if_needed(self) -> None:
        """Start the background reaper task if it is not already running."""
        if self._reaper_task is None or self._reaper_task.done():
            self._reaper_task = asyncio.create_task(self._reaper_loop())

    async def _reaper_loop(self) -> None:
        """Background task to drop sessions idle for longer than ``idle_timeout``."""
        logger.info("Session reaper started")
        try:
            while True:
                await asyncio.sleep(self.config.reaper_interval)
                self.reap_expired()
        except asyncio.CancelledError:
            logger.info("Session reaper cancelled")
            raise

    def reap_expired(self, now: float | None = None) -> list[str]:
        """Deactivate and forget expired sessions. Returns their ids."""
        now = time.time() if now is None else now
        # Create a list first to avoid modifying dict while iterating
        expired_ids = [
            sid for sid, session in self.sessions.items() if now - session.last_accessed > self.config.idle_timeout
        ]
        for sid in expired_ids:
            logger.info(f"Session {sid} expired. Closing.")
            session = self.sessions.pop(sid, None)
            if session:
                session.active = False
        return expired_ids

    async def shutdown(self) -> None:
        """Stop the reaper and close every session."""
        if self._reaper_task and not self._reaper_task.done():
            self._reaper_task.cancel()
            try:
                await self._reaper_task
            except asyncio.CancelledError:
                pass
            self._reaper_task = None

        logger.info(f"Shutting down SessionManager. Closing {len(self.sessions)} sessions.")

        # Snapshot items to allow modification/async issues
        sessions_to_close = list(self.sessions.values())
        self.sessions.clear()

        for session in sessions_to_close:
            async with session.lock:
                session.active = False
