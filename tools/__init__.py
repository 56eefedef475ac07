"""Tools package: Agent SDK client, tool-call parsing, and text helpers."""

from tools.agent_sdk_client import AgentSDKClient, Completion, ToolCall, ToolSpec
from tools.llm_client import coerce_tool_arguments, parse_json_response
from tools.text_utils import join_sections, join_with_space, keep_tail

__all__ = [
    "AgentSDKClient",
    "Completion",
    "ToolCall",
    "ToolSpec",
    "coerce_tool_arguments",
    "parse_json_response",
    "join_sections",
    "join_with_space",
    "keep_tail",
]
