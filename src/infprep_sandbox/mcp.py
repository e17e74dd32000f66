# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

from contextlib import asynccontextmanager
from typing import AsyncIterator

from loguru import logger

from infprep_sandbox.agent import AgentReply, ChatModel, CodeAgent, OpenAIChatModel
from infprep_sandbox.config import SandboxConfig
from infprep_sandbox.models import (
    ExecutionResult,
    Problem,
    ProblemUpdate,
    Source,
    ToolCall,
    ToolResult,
    UserContext,
)
from infprep_sandbox.problems import ProblemStore, get_problem_store
from infprep_sandbox.prompts import GENERATOR_TAIL, build_system_prompt
from infprep_sandbox.sandbox import SandboxAsync
from infprep_sandbox.session_manager import EditorSession, SessionManager


class ProblemEditorMCP:
    """
    MCP-compliant server logic for the problem editor.
    Exposes session-keyed operations for runs, patch tools and the assistant.
    """

    def __init__(
        self,
        config: SandboxConfig | None = None,
        sandbox: SandboxAsync | None = None,
        store: ProblemStore | None = None,
        model: ChatModel | None = None,
    ):
        self.config = config or SandboxConfig()
        self.sandbox = sandbox or SandboxAsync(self.config)
        self.store: ProblemStore = store or get_problem_store(self.config.problems_path)
        self.sessions = SessionManager(self.config)
        self._model = model
        self._models: dict[str, ChatModel] = {}

    @property
    def model(self) -> ChatModel:
        if self._model is None:
            self._model = OpenAIChatModel(
                model=self.config.model,
                api_key=self.config.openai_api_key,
                base_url=self.config.openai_base_url,
            )
        return self._model

    def model_for(self, name: str | None) -> ChatModel:
        """Resolve a per-message model choice. ``None`` means the configured default.

        Raises:
            ValueError: If the name is not one of ``available_models``.
        """
        if name is None or name == self.config.model:
            return self.model
        if name not in self.config.available_models:
            raise ValueError(f"Unknown model '{name}'. Available: {', '.join(self.config.available_models)}")
        if name not in self._models:
            self._models[name] = OpenAIChatModel(
                model=name,
                api_key=self.config.openai_api_key,
                base_url=self.config.openai_base_url,
            )
        return self._models[name]

    @asynccontextmanager
    async def _locked_session(self, session_id: str, context: UserContext) -> AsyncIterator[EditorSession]:
        """Yield the session with its lock held. Retries if it was reaped meanwhile."""
        while True:
            session = await self.sessions.get_or_create_session(session_id, context)
            async with session.lock:
                if not session.active:
                    logger.warning(f"Session {session_id} inactive/reaped. Retrying creation.")
                    continue
                yield session
                session.touch()
                return

    async def execute_code(self, code: str, timeout_ms: float | None = None) -> ExecutionResult:
        """Run raw code, outside of any session."""
        return await self.sandbox.execute(code, timeout_ms)

    async def run_code(self, session_id: str, context: UserContext, tail: str = GENERATOR_TAIL) -> ExecutionResult:
        """Run the session's buffer followed by ``tail``; the result replaces the previous one."""
        async with self._locked_session(session_id, context) as session:
            code = session.buffer.text or ""

        result = await self.sandbox.run_generator(code, tail)

        current = self.sessions.get_session(session_id, context)
        if current is None:
            logger.warning(f"Session {session_id} expired during the run; result not stored")
            return result
        async with current.lock:
            if current.active:
                current.last_result = result
        return result

    async def read_code(self, session_id: str, context: UserContext) -> str | None:
        async with self._locked_session(session_id, context) as session:
            return session.buffer.text

    async def set_code(self, session_id: str, context: UserContext, code: str) -> None:
        """Direct user edit: replace the whole buffer."""
        async with self._locked_session(session_id, context) as session:
            session.buffer.load(code)

    async def call_tool(self, session_id: str, context: UserContext, call: ToolCall) -> ToolResult:
        async with self._locked_session(session_id, context) as session:
            return session.dispatcher.dispatch(call)

    async def chat(
        self, session_id: str, context: UserContext, message: str, model: str | None = None
    ) -> AgentReply:
        """Send a user message to the assistant, letting it edit the session buffer.

        Raises:
            ValueError: If ``model`` is not one of ``available_models``.
        """
        chat_model = self.model_for(model)
        async with self._locked_session(session_id, context) as session:
            agent = CodeAgent(
                chat_model,
                session.dispatcher,
                max_steps=self.config.max_agent_steps,
                system_prompt=build_system_prompt(self.config.allowed_modules),
            )
            reply = await agent.run([*session.messages, {"role": "user", "content": message}])
            session.messages = reply.messages
            logger.info(
                "Assistant turn finished",
                session_id=session_id,
                steps=reply.steps,
                tool_calls=len(reply.tool_results),
                exhausted=reply.exhausted,
            )
            return reply

    async def load_problem(self, session_id: str, context: UserContext, problem_id: str) -> Problem:
        """Replace the session buffer with a stored problem's code.

        Raises:
            NotFoundError: If the problem is absent or owned by someone else.
        """
        problem = await self.store.load(problem_id, context)
        async with self._locked_session(session_id, context) as session:
            session.buffer.load(problem.code)
            session.problem_id = problem.id
            session.last_result = None
            session.messages = []
        return problem

    async def save_problem(self, session_id: str, context: UserContext) -> Problem:
        """Persist the session buffer to the problem it was loaded from.

        Raises:
            ValueError: If no problem is bound to the session.
            NotFoundError: If the problem is absent or owned by someone else.
        """
        async with self._locked_session(session_id, context) as session:
            if session.problem_id is None:
                raise ValueError("No problem is loaded in this session")
            return await self.store.save(session.problem_id, session.buffer.text or "", context)

    async def create_problem(
        self, session_id: str, context: UserContext, update: ProblemUpdate | None = None
    ) -> Problem:
        """Store the session buffer as a new problem and bind the session to it."""
        async with self._locked_session(session_id, context) as session:
            problem = await self.store.create(session.buffer.text or "", context, update)
            session.problem_id = problem.id
            return problem

    async def list_sources(self) -> list[Source]:
        return await self.store.list_sources()

    async def create_source(self, name: str) -> Source:
        """Add a source to the shared catalog; an existing name returns the existing entry."""
        return await self.store.create_source(name)

    async def shutdown(self) -> None:
        await self.sessions.shutdown()
