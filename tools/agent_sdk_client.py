"""Claude Agent SDK wrapper: tool-calling completions and streamed text."""

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional

from claude_agent_sdk import (
    query,
    create_sdk_mcp_server,
    tool,
    ClaudeAgentOptions,
    AssistantMessage,
    ResultMessage,
    TextBlock,
    ToolUseBlock,
)
from claude_agent_sdk.types import StreamEvent

from config.exceptions import LLMError, LLMTimeoutError
from config.settings import Settings
from models.session_config import SessionConfig

logger = logging.getLogger(__name__)

# Allow launching Agent SDK even when running inside a Claude Code session.
# The SDK checks for this env var and refuses to start if set.
os.environ.pop("CLAUDECODE", None)

_TOOL_SERVER = "session-tools"
_MCP_PREFIX = f"mcp__{_TOOL_SERVER}__"


@dataclass
class ToolSpec:
    """A tool the model may call, described by a JSON schema."""
    name: str
    description: str
    input_schema: dict


@dataclass
class ToolCall:
    """A structured action requested by the model."""
    id: str
    name: str
    arguments: dict = field(default_factory=dict)


@dataclass
class Completion:
    """Result of one non-streaming completion: text, tool calls, or both."""
    text: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)


async def _acknowledge(args):
    # Tool calls are applied by the calling agent, not inside the SDK loop.
    return {"content": [{"type": "text", "text": "recorded"}]}


def _declare(spec: ToolSpec):
    return tool(spec.name, spec.description, spec.input_schema)(_acknowledge)


def _plain_tool_name(name: str) -> str:
    if name.startswith(_MCP_PREFIX):
        return name[len(_MCP_PREFIX):]
    return name


class AgentSDKClient:
    """Completion Client built on claude_agent_sdk.query().

    Stateless apart from a call counter. Credentials come from the owning
    session's config and are passed to the SDK subprocess via ``env``.
    """

    def __init__(self, settings: Optional[Settings] = None, config: Optional[SessionConfig] = None):
        self.settings = settings or Settings()
        self.config = config or SessionConfig()
        self.total_calls = 0

    def _options(self, system_prompt: str, model: str, **extra) -> ClaudeAgentOptions:
        options_kwargs = {
            "system_prompt": system_prompt,
            "model": model,
            "max_turns": 1,
        }
        env = self.config.env()
        if env:
            options_kwargs["env"] = env
        options_kwargs.update(extra)
        return ClaudeAgentOptions(**options_kwargs)

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        tools: Optional[list[ToolSpec]] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Completion:
        """Run one completion and return its text and tool calls.

        The model is offered ``tools`` but never forced to use them.

        Args:
            system_prompt: System message guiding the model's behavior.
            user_prompt: User message content.
            tools: Tool definitions exposed to the model.
            model: Per-role default. A model set in the session config wins.
            timeout: Seconds before the call fails. Defaults to settings.

        Returns:
            Completion with concatenated text and any tool calls.

        Raises:
            LLMTimeoutError: If the call exceeds ``timeout``.
            LLMError: If the query fails.
        """
        model = self.config.model or model or self.settings.llm_model_interview
        timeout = timeout or self.settings.completion_timeout_seconds
        self.total_calls += 1

        extra = {}
        if tools:
            server = create_sdk_mcp_server(
                name=_TOOL_SERVER,
                version="1.0.0",
                tools=[_declare(spec) for spec in tools],
            )
            extra["mcp_servers"] = {_TOOL_SERVER: server}
            extra["allowed_tools"] = [f"{_MCP_PREFIX}{spec.name}" for spec in tools]

        logger.debug(
            "AgentSDK completion: model=%s, tools=%s, timeout=%ss",
            model, [t.name for t in tools or []], timeout,
        )
        options = self._options(system_prompt, model, **extra)
        try:
            completion = await asyncio.wait_for(self._collect(user_prompt, options), timeout)
        except asyncio.TimeoutError as e:
            logger.warning("AgentSDK completion timed out after %ss", timeout)
            raise LLMTimeoutError(timeout) from e

        logger.debug(
            "AgentSDK completion result: %d chars, %d tool calls",
            len(completion.text), len(completion.tool_calls),
        )
        return completion

    async def _collect(self, user_prompt: str, options: ClaudeAgentOptions) -> Completion:
        parts: list[str] = []
        calls: list[ToolCall] = []
        result_text = ""
        try:
            # No early break or return: query() uses anyio cancel scopes and
            # runs until it ends or the calling task is cancelled.
            async for message in query(prompt=user_prompt, options=options):
                if isinstance(message, AssistantMessage):
                    for block in message.content:
                        if isinstance(block, ToolUseBlock):
                            calls.append(ToolCall(
                                id=block.id,
                                name=_plain_tool_name(block.name),
                                arguments=block.input or {},
                            ))
                        elif isinstance(block, TextBlock) and block.text:
                            parts.append(block.text)
                elif isinstance(message, ResultMessage):
                    result_text = message.result or ""
        except Exception as e:
            raise LLMError(f"Agent SDK query failed: {e}") from e

        text = "".join(parts) or ("" if calls else result_text)
        return Completion(text=text.strip(), tool_calls=calls)

    async def stream(
        self,
        system_prompt: str,
        user_prompt: str,
        model: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """Yield text fragments as the model produces them.

        No timeout is applied; the caller cancels the consuming task to
        abort. If the backend does not emit partial events, whole text
        blocks are yielded instead.

        Raises:
            LLMError: If the query fails.
        """
        model = self.config.model or model or self.settings.llm_model_writing
        self.total_calls += 1
        logger.debug("AgentSDK stream: model=%s", model)

        options = self._options(system_prompt, model, include_partial_messages=True)
        streamed = False
        total = 0
        try:
            async for message in query(prompt=user_prompt, options=options):
                if isinstance(message, StreamEvent):
                    event = message.event or {}
                    if event.get("type") != "content_block_delta":
                        continue
                    delta = event.get("delta") or {}
                    text = delta.get("text") if delta.get("type") == "text_delta" else None
                    if text:
                        streamed = True
                        total += len(text)
                        yield text
                elif isinstance(message, AssistantMessage) and not streamed:
                    for block in message.content:
                        if isinstance(block, TextBlock) and block.text:
                            total += len(block.text)
                            yield block.text
        except Exception as e:
            raise LLMError(f"Agent SDK stream failed: {e}") from e

        logger.debug("AgentSDK stream finished: %d chars", total)

    def get_usage_summary(self) -> dict:
        """Return call count statistics."""
        return {"total_calls": self.total_calls}
