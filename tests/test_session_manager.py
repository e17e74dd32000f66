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
from unittest.mock import patch

import pytest

from infprep_sandbox.config import SandboxConfig
from infprep_sandbox.models import ToolCall, UserContext
from infprep_sandbox.prompts import STARTER_CODE
from infprep_sandbox.session_manager import SessionManager


@pytest.mark.asyncio
async def test_session_creation(mock_user_context: UserContext) -> None:
    manager = SessionManager(SandboxConfig(enable_audit_logging=False))
    session_id = "test_session"

    session = await manager.get_or_create_session(session_id, mock_user_context)

    assert session_id in manager.sessions
    assert session.owner_id == "test-user"
    assert session.buffer.text == STARTER_CODE
    assert session.dispatcher.buffer is session.buffer
    assert session.problem_id is None
    assert session.active

    await manager.shutdown()


@pytest.mark.asyncio
async def test_session_creation_invalid_id(mock_user_context: UserContext) -> None:
    manager = SessionManager()
    with pytest.raises(ValueError, match="Session ID is required"):
        await manager.get_or_create_session("", mock_user_context)


@pytest.mark.asyncio
async def test_session_creation_invalid_context() -> None:
    manager = SessionManager()
    with pytest.raises(ValueError, match="UserContext is required"):
        await manager.get_or_create_session("sess", None)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_session_reuse(mock_user_context: UserContext) -> None:
    manager = SessionManager()

    session1 = await manager.get_or_create_session("test_session", mock_user_context)
    session2 = await manager.get_or_create_session("test_session", mock_user_context)

    assert session1 is session2
    await manager.shutdown()


@pytest.mark.asyncio
async def test_session_access_denied(mock_user_context: UserContext) -> None:
    manager = SessionManager()
    await manager.get_or_create_session("test_session", mock_user_context)

    other_context = UserContext(sub="other-user", email="other@example.com", permissions=[])

    with pytest.raises(PermissionError, match="Session belongs to another user"):
        await manager.get_or_create_session("test_session", other_context)

    await manager.shutdown()


@pytest.mark.asyncio
async def test_get_session_does_not_create(mock_user_context: UserContext) -> None:
    manager = SessionManager()

    assert manager.get_session("missing", mock_user_context) is None

    created = await manager.get_or_create_session("s", mock_user_context)

    assert manager.get_session("s", mock_user_context) is created
    with pytest.raises(PermissionError, match="Session belongs to another user"):
        manager.get_session("s", UserContext(sub="other-user"))
    await manager.shutdown()


@pytest.mark.asyncio
async def test_concurrent_creation_yields_one_session(mock_user_context: UserContext) -> None:
    manager = SessionManager()

    sessions = await asyncio.gather(
        *(manager.get_or_create_session("race_session", mock_user_context) for _ in range(5))
    )

    assert all(s is sessions[0] for s in sessions)
    assert len(manager.sessions) == 1
    await manager.shutdown()


@pytest.mark.asyncio
async def test_require_unique_match_reaches_dispatcher(mock_user_context: UserContext) -> None:
    manager = SessionManager(SandboxConfig(require_unique_match=True))
    session = await manager.get_or_create_session("s", mock_user_context)
    session.buffer.load("a\na\n")

    result = session.dispatcher.dispatch(
        ToolCall(id="c", name="update_problem_code", arguments={"old_code": "a", "new_code": "b"})
    )

    assert result.output.startswith("ERROR: old_code matches 2 locations")
    await manager.shutdown()


@pytest.mark.asyncio
async def test_reap_expired() -> None:
    manager = SessionManager(SandboxConfig(idle_timeout=100.0))
    context = UserContext(sub="u")

    with patch("infprep_sandbox.session_manager.time.time", return_value=1000.0):
        await manager.get_or_create_session("old", context)
    with patch("infprep_sandbox.session_manager.time.time", return_value=1090.0):
        await manager.get_or_create_session("fresh", context)
    session = manager.sessions["old"]

    assert manager.reap_expired(now=1150.0) == ["old"]
    assert not session.active
    assert list(manager.sessions) == ["fresh"]
    await manager.shutdown()


@pytest.mark.asyncio
async def test_reaper_loop(mock_user_context: UserContext) -> None:
    # Config: Check every 0.01s, expire after 100s
    config = SandboxConfig(idle_timeout=100.0, reaper_interval=0.01)
    manager = SessionManager(config)

    start_time = 1000.0

    with patch("infprep_sandbox.session_manager.time.time", return_value=start_time):
        session = await manager.get_or_create_session("expired_session", mock_user_context)

    assert "expired_session" in manager.sessions

    with patch("infprep_sandbox.session_manager.time.time", return_value=start_time + 150.0):
        # Wait for reaper to cycle
        await asyncio.sleep(0.05)

        assert "expired_session" not in manager.sessions
        assert not session.active

    await manager.shutdown()


@pytest.mark.asyncio
async def test_reaper_loop_propagates_cancellation() -> None:
    manager = SessionManager(SandboxConfig(reaper_interval=0.01))

    with patch("infprep_sandbox.session_manager.asyncio.sleep", side_effect=asyncio.CancelledError()):
        with pytest.raises(asyncio.CancelledError):
            await manager._reaper_loop()


@pytest.mark.asyncio
async def test_shutdown(mock_user_context: UserContext) -> None:
    manager = SessionManager()
    s1 = await manager.get_or_create_session("s1", mock_user_context)
    s2 = await manager.get_or_create_session("s2", mock_user_context)

    assert len(manager.sessions) == 2
    assert manager._reaper_task is not None

    await manager.shutdown()

    assert len(manager.sessions) == 0
    assert manager._reaper_task is None
    assert not s1.active and not s2.active


@pytest.mark.asyncio
async def test_zero_idle_timeout(mock_user_context: UserContext) -> None:
    """Verify behavior when idle_timeout is 0 (immediate expiration)."""
    config = SandboxConfig(idle_timeout=0.0, reaper_interval=0.01)
    manager = SessionManager(config)

    with patch("infprep_sandbox.session_manager.time.time", return_value=1000.0):
        await manager.get_or_create_session("immediate_expire", mock_user_context)

    assert "immediate_expire" in manager.sessions

    with patch("infprep_sandbox.session_manager.time.time", return_value=1000.0001):
        await asyncio.sleep(0.05)  # Wait for reaper

        assert "immediate_expire" not in manager.sessions

    await manager.shutdown()
