"""Interview Agent: turns the subject's answers into notes, one user turn at a time."""

import logging
from enum import Enum
from typing import Optional

from agents.base_agent import BaseAgent
from config.exceptions import LLMError, NoteNotFoundError, ToolCallError
from models.book import ChapterPlan
from models.enums import Role
from models.note import Turn
from tools.agent_sdk_client import ToolCall, ToolSpec
from tools.llm_client import coerce_tool_arguments

logger = logging.getLogger(__name__)

# Shown when the model answers with neither text nor tool calls
_EMPTY_REPLY = "..."

CREATE_NOTE = ToolSpec(
    name="create_note",
    description="Save a new fact about the subject's life as a note card.",
    input_schema={
        "type": "object",
        "properties": {
            "content": {"type": "string", "description": "The fact, in one or two sentences."},
        },
        "required": ["content"],
    },
)

APPEND_TO_NOTE = ToolSpec(
    name="append_to_note",
    description="Add detail to an existing note card, addressed by its id.",
    input_schema={
        "type": "object",
        "properties": {
            "id": {"type": "string", "description": "Id of the note to extend."},
            "content": {"type": "string", "description": "Text to add to the note."},
        },
        "required": ["id", "content"],
    },
)

FINALIZE_INTERVIEW = ToolSpec(
    name="finalize_interview",
    description="End the interview for this chapter and start writing it.",
    input_schema={"type": "object", "properties": {}},
)

INTERVIEW_TOOLS = [CREATE_NOTE, APPEND_TO_NOTE, FINALIZE_INTERVIEW]


class InterviewOutcome(str, Enum):
    REPLIED = "reply"
    FINALIZED = "finalized"
    SILENT = "silent"


def _invalid(message: str) -> dict:
    return {"success": False, "error": "invalid_arguments", "message": message}


def execute_tool_call(notes, call: ToolCall) -> dict:
    """Apply one tool call to the notes and return the result shown to the model.

    Semantic failures (unknown note id, bad arguments, unknown tool) are
    returned as ``success: False`` results so the model can correct itself.
    """
    try:
        args = coerce_tool_arguments(call.name, call.arguments)
    except ToolCallError as e:
        return _invalid(e.message)

    if call.name == CREATE_NOTE.name:
        content = args.get("content")
        if not isinstance(content, str):
            return _invalid("'content' must be a string")
        note = notes.create(content)
        return {"success": True, "id": note.id}

    if call.name == APPEND_TO_NOTE.name:
        note_id, content = args.get("id"), args.get("content")
        if not isinstance(note_id, str) or not isinstance(content, str):
            return _invalid("'id' and 'content' must be strings")
        try:
            note = notes.append(note_id, content)
        except NoteNotFoundError:
            return {"success": False, "error": "not_found", "id": note_id}
        return {"success": True, "id": note.id}

    if call.name == FINALIZE_INTERVIEW.name:
        return {"success": True}

    return {"success": False, "error": "unknown_tool", "name": call.name}


class InterviewAgent(BaseAgent):
    """Runs the bounded tool-calling loop behind one user message."""

    prompt_name = "interviewer"

    def _system_prompt(self, index: int, chapter: Optional[ChapterPlan]) -> str:
        return self._render(
            "System Prompt",
            "Interview Rules",
            chapter_index=index,
            chapter_title=chapter.title if chapter else f"Chapter {index}",
            chapter_summary=(chapter.summary if chapter else "") or "(no summary)",
        )

    async def run_turn(self, session) -> InterviewOutcome:
        """Drive the loop until a reply, a finalize, an error or the iteration cap.

        ``session`` is the owning BookSession. All state changes go through it.
        """
        state = session.state
        system_prompt = self._system_prompt(state.current_chapter_index, state.current_chapter)
        background = session.context.load_background(state.user_id)
        preface = self._extract_section(self._template, "Context Instructions")

        for iteration in range(1, self.settings.interview_max_iterations + 1):
            context = session.context.assemble(background, state.notes, state.transcript)
            try:
                completion = await self.llm.complete(
                    system_prompt=system_prompt,
                    user_prompt=f"{preface}\n\n{context}",
                    tools=INTERVIEW_TOOLS,
                    model=self.settings.llm_model_interview,
                )
            except LLMError as e:
                logger.warning("Interview turn for %s ended on iteration %d: %s", state.book_id, iteration, e)
                await session.log(f"Interview error: {e}")
                return InterviewOutcome.SILENT

            if completion.tool_calls:
                if await self._apply_tool_calls(session, completion.tool_calls):
                    logger.info("Interview for chapter %d finalized", state.current_chapter_index)
                    await session.begin_writing()
                    return InterviewOutcome.FINALIZED
                continue

            await session.append_turn(Turn(role=Role.ASSISTANT, content=completion.text or _EMPTY_REPLY))
            return InterviewOutcome.REPLIED

        logger.info(
            "Interview loop for %s reached %d iterations without a reply",
            state.book_id, self.settings.interview_max_iterations,
        )
        return InterviewOutcome.SILENT

    async def _apply_tool_calls(self, session, calls: list[ToolCall]) -> bool:
        """Apply a batch of tool calls. Returns True if the batch finalized."""
        state = session.state
        finalize = False
        for call in calls:
            result = execute_tool_call(state.notes, call)
            logger.debug("Tool %s -> %s", call.name, result)
            if call.name == FINALIZE_INTERVIEW.name:
                finalize = True
            state.transcript.append(Turn(
                role=Role.ASSISTANT,
                tool_call={"id": call.id, "name": call.name, "arguments": call.arguments},
            ))
            state.transcript.append(Turn(
                role=Role.TOOL,
                tool_result={"id": call.id, "name": call.name, "response": result},
            ))

        session.persist("notes", "history")
        await session.sync_notes()
        return finalize
