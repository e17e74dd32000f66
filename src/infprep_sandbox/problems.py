# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

import os
from pathlib import Path
from typing import Protocol
from uuid import uuid4

import aiofiles  # type: ignore[import-untyped]
import anyio
from loguru import logger
from pydantic import BaseModel, Field

from infprep_sandbox.exceptions import NotFoundError
from infprep_sandbox.models import Problem, ProblemUpdate, Source, UserContext


class ProblemStore(Protocol):
    """Persistence boundary for problem generators.

    Every problem operation is scoped to the calling principal: records that do
    not exist and records owned by someone else are indistinguishable and raise
    NotFoundError. The source catalog is shared by all users.
    """

    async def create(self, code: str, context: UserContext, update: ProblemUpdate | None = None) -> Problem:
        ...

    async def load(self, problem_id: str, context: UserContext) -> Problem:
        ...

    async def list_problems(self, context: UserContext) -> list[Problem]:
        ...

    async def save(self, problem_id: str, code: str, context: UserContext) -> Problem:
        ...

    async def update(self, problem_id: str, update: ProblemUpdate, context: UserContext) -> Problem:
        ...

    async def delete(self, problem_id: str, context: UserContext) -> None:
        ...

    async def list_sources(self) -> list[Source]:
        ...

    async def create_source(self, name: str) -> Source:
        ...


def _apply_update(problem: Problem, update: ProblemUpdate) -> Problem:
    return Problem.model_validate({**problem.model_dump(), **update.model_dump(exclude_unset=True)})


class InMemoryProblemStore:
    """Dict-backed ProblemStore, for tests and local development."""

    def __init__(self) -> None:
        self.problems: dict[str, Problem] = {}
        self.sources: dict[int, Source] = {}

    def _owned(self, problem_id: str, context: UserContext) -> Problem:
        problem = self.problems.get(problem_id)
        if problem is None or problem.owner_id != context.sub:
            raise NotFoundError(f"Problem {problem_id} not found")
        return problem

    def _check_source(self, update: ProblemUpdate | None) -> None:
        if update is not None and update.source is not None and update.source.source_id not in self.sources:
            raise NotFoundError(f"Source {update.source.source_id} not found")

    async def create(self, code: str, context: UserContext, update: ProblemUpdate | None = None) -> Problem:
        self._check_source(update)
        problem = Problem(id=uuid4().hex, owner_id=context.sub, code=code)
        if update is not None:
            problem = _apply_update(problem, update)
        self.problems[problem.id] = problem
        logger.info(f"Created problem {problem.id}", user_id=context.sub)
        return problem

    async def load(self, problem_id: str, context: UserContext) -> Problem:
        return self._owned(problem_id, context)

    async def list_problems(self, context: UserContext) -> list[Problem]:
        owned = [p for p in self.problems.values() if p.owner_id == context.sub]
        return sorted(owned, key=lambda p: p.created_at, reverse=True)

    async def save(self, problem_id: str, code: str, context: UserContext) -> Problem:
        problem = self._owned(problem_id, context).model_copy(update={"code": code})
        self.problems[problem_id] = problem
        return problem

    async def update(self, problem_id: str, update: ProblemUpdate, context: UserContext) -> Problem:
        current = self._owned(problem_id, context)
        self._check_source(update)
        problem = _apply_update(current, update)
        self.problems[problem_id] = problem
        return problem

    async def delete(self, problem_id: str, context: UserContext) -> None:
        self._owned(problem_id, context)
        del self.problems[problem_id]

    async def list_sources(self) -> list[Source]:
        return sorted(self.sources.values(), key=lambda s: s.name)

    async def create_source(self, name: str) -> Source:
        """Add a source, or return the existing one with the same name.

        Raises:
            ValueError: If the name is blank.
        """
        name = name.strip()
        if not name:
            raise ValueError("Source name is required")
        for source in self.sources.values():
            if source.name == name:
                return source
        source = Source(id=max(self.sources, default=0) + 1, name=name)
        self.sources[source.id] = source
        logger.info(f"Created source {source.id}: {source.name}")
        return source


class _StoreDocument(BaseModel):
    problems: dict[str, Problem] = Field(default_factory=dict)
    sources: dict[int, Source] = Field(default_factory=dict)


_Snapshot = tuple[dict[str, Problem], dict[int, Source]]


class JsonFileProblemStore(InMemoryProblemStore):
    """ProblemStore persisted as a single JSON document.

    The document is read on first use and rewritten after every mutation via a
    temporary file and an atomic rename, so a failed write leaves the previous
    state on disk.
    """

    def __init__(self, path: str | Path):
        super().__init__()
        self.path = Path(path)
        self._loaded = False
        self._lock = anyio.Lock()

    async def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        if await anyio.Path(self.path).exists():
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                content = await f.read()
            if content.strip():
                document = _StoreDocument.model_validate_json(content)
                self.problems = document.problems
                self.sources = document.sources
        self._loaded = True

    async def _flush(self) -> None:
        await anyio.Path(self.path.parent).mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        payload = _StoreDocument(problems=self.problems, sources=self.sources).model_dump_json(indent=2)
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(payload)
        os.replace(tmp_path, self.path)

    def _snapshot(self) -> _Snapshot:
        return dict(self.problems), dict(self.sources)

    async def create(self, code: str, context: UserContext, update: ProblemUpdate | None = None) -> Problem:
        async with self._lock:
            await self._ensure_loaded()
            snapshot = self._snapshot()
            problem = await super().create(code, context, update)
            await self._commit(snapshot)
            return problem

    async def load(self, problem_id: str, context: UserContext) -> Problem:
        async with self._lock:
            await self._ensure_loaded()
            return await super().load(problem_id, context)

    async def list_problems(self, context: UserContext) -> list[Problem]:
        async with self._lock:
            await self._ensure_loaded()
            return await super().list_problems(context)

    async def save(self, problem_id: str, code: str, context: UserContext) -> Problem:
        async with self._lock:
            await self._ensure_loaded()
            snapshot = self._snapshot()
            problem = await super().save(problem_id, code, context)
            await self._commit(snapshot)
            return problem

    async def update(self, problem_id: str, update: ProblemUpdate, context: UserContext) -> Problem:
        async with self._lock:
            await self._ensure_loaded()
            snapshot = self._snapshot()
            problem = await super().update(problem_id, update, context)
            await self._commit(snapshot)
            return problem

    async def delete(self, problem_id: str, context: UserContext) -> None:
        async with self._lock:
            await self._ensure_loaded()
            snapshot = self._snapshot()
            await super().delete(problem_id, context)
            await self._commit(snapshot)

    async def list_sources(self) -> list[Source]:
        async with self._lock:
            await self._ensure_loaded()
            return await super().list_sources()

    async def create_source(self, name: str) -> Source:
        async with self._lock:
            await self._ensure_loaded()
            snapshot = self._snapshot()
            source = await super().create_source(name)
            if source.id not in snapshot[1]:
                await self._commit(snapshot)
            return source

    async def _commit(self, snapshot: _Snapshot) -> None:
        """Flush to disk; on failure restore the in-memory state and re-raise."""
        try:
            await self._flush()
        except OSError:
            logger.error(f"Failed to write problem store {self.path}")
            self.problems, self.sources = snapshot
            raise


def get_problem_store(path: str | None) -> InMemoryProblemStore:
    """File-backed store when a path is configured, in-memory otherwise."""
    if path:
        return JsonFileProblemStore(path)
    return InMemoryProblemStore()
