"""Outline Expander: appends new planned chapters to a book's outline."""

import logging

from agents.base_agent import BaseAgent
from config.exceptions import OutlineError
from models.book import Outline
from tools.agent_sdk_client import ToolSpec
from tools.llm_client import coerce_tool_arguments

logger = logging.getLogger(__name__)

APPEND_CHAPTERS = ToolSpec(
    name="append_chapters",
    description="Append new chapters to the end of the memoir outline.",
    input_schema={
        "type": "object",
        "properties": {
            "new_chapters": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "title": {"type": "string"},
                        "summary": {"type": "string"},
                    },
                    "required": ["title", "summary"],
                },
            },
        },
        "required": ["new_chapters"],
    },
)


def _chapter_drafts(raw) -> list[tuple[str, str]]:
    """Keep (title, summary) pairs from a tool payload; untitled items are dropped."""
    if not isinstance(raw, list):
        return []
    drafts = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        title = str(item.get("title") or "").strip()
        if title:
            drafts.append((title, str(item.get("summary") or "").strip()))
    return drafts


class OutlineExpander(BaseAgent):
    """Plans previously unplanned chapters on the author's request."""

    prompt_name = "outline"

    async def expand(self, outline: Outline, instruction: str = "") -> Outline:
        """Ask the model for new chapters and return the grown outline.

        Existing chapters are never touched; new ones are numbered from
        ``outline.next_index``. The input outline is not modified.

        Raises:
            OutlineError: If the model returns no usable chapters.
            LLMError: If the completion call fails.
        """
        chapters = "\n".join(
            f"{c.index}. {c.title}: {c.summary}" for c in outline.chapters
        ) or "(no chapters yet)"
        user_prompt = self._render(
            "Expansion Instructions",
            book_title=outline.title or "Untitled",
            chapters=chapters,
            instruction=instruction.strip() or "Continue the life story where the outline ends.",
        )

        completion = await self.llm.complete(
            system_prompt=self._render("System Prompt"),
            user_prompt=user_prompt,
            tools=[APPEND_CHAPTERS],
            model=self.settings.llm_model_outline,
        )

        drafts = []
        for call in completion.tool_calls:
            if call.name == APPEND_CHAPTERS.name:
                args = coerce_tool_arguments(call.name, call.arguments)
                drafts.extend(_chapter_drafts(args.get("new_chapters")))
        if not drafts:
            raise OutlineError(
                "Outline expansion returned no new chapters",
                {"tool_calls": len(completion.tool_calls)},
            )

        expanded = outline.appended(drafts)
        logger.info(
            "Outline expanded from %d to %d chapters",
            len(outline.chapters), len(expanded.chapters),
        )
        return expanded
