# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/infprep_sandbox

"""Step-bounded conversation loop between the model and the patch tools."""

import json
from typing import Any, Protocol

import httpx
from loguru import logger
from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from infprep_sandbox.models import ToolCall, ToolResult
from infprep_sandbox.prompts import SYSTEM_PROMPT
from infprep_sandbox.tools import ToolDispatcher

Message = dict[str, Any]


class ModelTurn(BaseModel):
    """One model response: free text and zero or more tool-call requests."""

    text: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)


class ChatModel(Protocol):
    """The language model, treated as a black box."""

    async def complete(self, messages: list[Message], tools: list[dict[str, Any]]) -> ModelTurn:
        ...


class AgentReply(BaseModel):
    """Outcome of one user message.

    Attributes:
        text: The model's final text (or its last text when the budget ran out).
        steps: Number of model calls made.
        tool_results: Every tool answer, in dispatch order.
        exhausted: True when the loop stopped because of the step budget.
        messages: The conversation without the system prompt, including this exchange.
    """

    text: str
    steps: int
    tool_results: list[ToolResult] = Field(default_factory=list)
    exhausted: bool = False
    messages: list[Message] = Field(default_factory=list)


def _parse_arguments(raw: str | None) -> Any:
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _assistant_message(turn: ModelTurn) -> Message:
    message: Message = {"role": "assistant", "content": turn.text or None}
    if turn.tool_calls:
        message["tool_calls"] = [
            {
                "id": call.id,
                "type": "function",
                "function": {
                    "name": call.name,
                    "arguments": call.arguments if isinstance(call.arguments, str) else json.dumps(call.arguments),
                },
            }
            for call in turn.tool_calls
        ]
    return message


class OpenAIChatModel:
    """ChatModel backed by the OpenAI chat completions API with function tools."""

    def __init__(
        self,
        model: str = "gpt-4.1",
        api_key: str | None = None,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.model = model
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, http_client=http_client)

    async def complete(self, messages: list[Message], tools: list[dict[str, Any]]) -> ModelTurn:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,  # type: ignore[arg-type]
            tools=tools,  # type: ignore[arg-type]
        )
        message = response.choices[0].message
        calls = [
            ToolCall(id=call.id, name=call.function.name, arguments=_parse_arguments(call.function.arguments))
            for call in message.tool_calls or []
            if call.type == "function"
        ]
        return ModelTurn(text=message.content or "", tool_calls=calls)


class CodeAgent:
    """Drives the model until it answers without tool calls or runs out of steps.

    A step is one model call. Each requested tool call is dispatched in order
    and answered exactly once with a ``tool`` message carrying its call id.
    """

    def __init__(
        self,
        model: ChatModel,
        dispatcher: ToolDispatcher,
        max_steps: int = 50,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        self.model = model
        self.dispatcher = dispatcher
        self.max_steps = max_steps
        self.system_prompt = system_prompt

    async def run(self, messages: list[Message]) -> AgentReply:
        """Continue the conversation in ``messages`` (which ends with the user's turn)."""
        conversation = list(messages)
        tools = self.dispatcher.catalog()
        results: list[ToolResult] = []
        text = ""

        for step in range(1, self.max_steps + 1):
            turn = await self.model.complete([{"role": "system", "content": self.system_prompt}, *conversation], tools)
            conversation.append(_assistant_message(turn))
            if turn.text:
                text = turn.text

            if not turn.tool_calls:
                return AgentReply(text=turn.text, steps=step, tool_results=results, messages=conversation)

            for call in turn.tool_calls:
                result = self.dispatcher.dispatch(call)
                results.append(result)
                conversation.append({"role": "tool", "tool_call_id": call.id, "content": result.output})

        logger.warning(f"Assistant stopped after exhausting its budget of {self.max_steps} steps")
        return AgentReply(
            text=text,
            steps=self.max_steps,
            tool_results=results,
            exhausted=True,
            messages=conversation,
        )
