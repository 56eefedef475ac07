"""BookSession: the single-writer actor that owns one book's interview and drafting state."""

import asyncio
import logging
import uuid
from typing import Any, Optional

from agents.interview_agent import InterviewAgent
from agents.outline_agent import OutlineExpander
from agents.writer_agent import WriterAgent
from config.exceptions import PhaseError, StorageError, InvalidMessageError, LifebookError
from config.settings import Settings
from models.book import ArchivedChapter, ChapterPlan, Outline
from models.database import Database
from models.document_store import DocumentStore
from models.enums import ChapterStatus, Phase, Role
from models.note import Turn
from models.session_config import SessionConfig
from models.session_storage import SessionStorage
from session import protocol
from session.broadcaster import Broadcaster, Viewer
from session.context import ContextAssembler
from session.protocol import InboundMessage
from session.state import STORAGE_KEYS, SessionState
from tools.agent_sdk_client import AgentSDKClient

logger = logging.getLogger(__name__)

# Applied as soon as they arrive, even while an agent loop or stream runs
BYPASS_TYPES = frozenset({
    protocol.PATCH_NOTE,
    protocol.DELETE_NOTE,
    protocol.UPDATE_NOTES,
    protocol.CANCEL_GENERATION,
})


def opening_message(index: int, chapter: ChapterPlan) -> str:
    """Greeting that introduces a chapter's plan at the start of its interview."""
    title = chapter.title or f"Chapter {index}"
    text = f"Hello! We are working on **Chapter {index}: {title}**."
    if chapter.summary:
        text += f" {chapter.summary}"
    if index == 1:
        return text + "\n\nTo begin, tell me about how this part of your life started?"
    return text + "\n\nReady to move on to this next phase?"


class BookSession:
    """Authoritative state and message loop for one book.

    Inbound messages are parsed in ``submit``. Note edits and cancellation
    are applied immediately; everything else goes through a queue drained
    by a single consumer task, so handlers never interleave with each
    other. The Writer runs as a separate task owned by the session and
    stopped only through ``cancel_generation``, ``retry_chapter`` or
    ``close``.
    """

    def __init__(
        self,
        book_id: str,
        storage: SessionStorage,
        db: Database,
        documents: DocumentStore,
        settings: Optional[Settings] = None,
        llm: Optional[AgentSDKClient] = None,
        interviewer: Optional[InterviewAgent] = None,
        writer: Optional[WriterAgent] = None,
        expander: Optional[OutlineExpander] = None,
    ):
        self.book_id = book_id
        self.settings = settings or Settings()
        self.storage = storage
        self.db = db
        self.context = ContextAssembler(db, documents, self.settings)
        self.state = SessionState(book_id=book_id)
        self.viewers = Broadcaster(book_id)

        self.llm = llm or AgentSDKClient(self.settings, self.state.config)
        self.interviewer = interviewer or InterviewAgent(self.llm, self.settings)
        self.writer = writer or WriterAgent(self.llm, self.settings)
        self.expander = expander or OutlineExpander(self.llm, self.settings)

        self.is_processing = False
        self._generation: Optional[asyncio.Task] = None
        self._inbox: asyncio.Queue = asyncio.Queue()
        self._consumer: Optional[asyncio.Task] = None

        self._handlers = {
            protocol.INIT: self._on_init,
            protocol.MESSAGE: self._on_message,
            protocol.PATCH_NOTE: self._on_patch_note,
            protocol.UPDATE_NOTES: self._on_update_notes,
            protocol.DELETE_NOTE: self._on_delete_note,
            protocol.RETRY_CHAPTER: self._on_retry_chapter,
            protocol.CANCEL_GENERATION: self._on_cancel_generation,
            protocol.NEXT_CHAPTER: self._on_next_chapter,
            protocol.EXPAND_OUTLINE: self._on_expand_outline,
        }

    # ---- Lifecycle ----

    def load(self):
        """Read all persisted state. Called once, before the first message."""
        data = self.storage.get_many(self.book_id, STORAGE_KEYS)
        self.state = SessionState.from_storage(self.book_id, data)
        self.llm.config = self.state.config
        if not data:
            self.persist("book_id", "phase", "current_chapter_index")
        self.refresh_outline()
        logger.info(
            "Session %s loaded: phase=%s, chapter=%d, %d turns, %d notes",
            self.book_id, self.state.phase.value, self.state.current_chapter_index,
            len(self.state.transcript), len(self.state.notes),
        )

    def configure(self, config: Optional[SessionConfig]):
        """Merge connection parameters supplied by a connecting viewer."""
        merged = self.state.config.merged(config)
        if merged != self.state.config:
            self.state.config = merged
            self.llm.config = merged
            self.persist("config")
            logger.info("Session %s credentials updated", self.book_id)

    async def close(self):
        await self._stop_generation()
        if self._consumer is not None:
            self._consumer.cancel()
            await asyncio.wait({self._consumer})
            self._consumer = None

    @property
    def is_generating(self) -> bool:
        return self._generation is not None and not self._generation.done()

    @property
    def is_busy(self) -> bool:
        return self.is_processing or self.is_generating or self.state.phase == Phase.WRITING

    def attach(self, viewer: Viewer):
        self.viewers.attach(viewer)

    def detach(self, viewer: Viewer):
        self.viewers.detach(viewer)

    # ---- Inbound ----

    async def submit(self, viewer: Viewer, raw: Any):
        """Accept one raw client message from ``viewer``."""
        try:
            msg = protocol.parse_inbound(raw)
        except InvalidMessageError as e:
            logger.debug("Rejected message for %s: %s", self.book_id, e)
            await self.viewers.send(viewer, protocol.error(type(e).__name__, str(e)))
            return

        if msg.type in BYPASS_TYPES:
            await self._dispatch(viewer, msg)
            return
        if msg.type == protocol.MESSAGE and self.is_busy:
            logger.info("Session %s busy, dropped user message", self.book_id)
            return

        if self._consumer is None or self._consumer.done():
            self._consumer = asyncio.create_task(self._consume(), name=f"session-{self.book_id}")
        await self._inbox.put((viewer, msg))

    async def drain(self):
        """Wait until every queued message has been handled."""
        await self._inbox.join()

    async def wait_for_generation(self):
        if self._generation is not None:
            await asyncio.wait({self._generation})

    async def _consume(self):
        while True:
            viewer, msg = await self._inbox.get()
            try:
                await self._dispatch(viewer, msg)
            finally:
                self._inbox.task_done()

    async def _dispatch(self, viewer: Viewer, msg: InboundMessage):
        try:
            await self._handlers[msg.type](viewer, msg)
        except LifebookError as e:
            logger.warning("Session %s: %s failed: %s", self.book_id, msg.type, e)
            await self.report(e)
        except Exception as e:
            logger.exception("Session %s: unexpected error handling %s", self.book_id, msg.type)
            await self.report(e)

    # ---- Outbound ----

    async def broadcast(self, message: dict):
        await self.viewers.broadcast(message)

    async def log(self, text: str):
        await self.broadcast(protocol.debug_log(text))

    async def report(self, exc: Exception):
        await self.broadcast(protocol.error(type(exc).__name__, str(exc)))
        await self.log(f"Error: {exc}")

    async def sync_notes(self):
        await self.broadcast(protocol.notes_sync(self.state.notes.to_payload()))

    async def send_draft(self, content: str, reset: bool):
        await self.broadcast(protocol.draft_chunk(content, reset))

    async def finish_draft(self):
        await self.broadcast(protocol.draft_complete())

    # ---- State helpers ----

    def persist(self, *keys: str):
        """Write the given state keys (all when none given) in one transaction."""
        self.storage.put_many(self.book_id, self.state.to_storage(*keys))

    def refresh_outline(self):
        """Re-read the outline (and, if unknown, the user id) from the book record."""
        try:
            book = self.db.get_book(self.book_id)
        except StorageError as e:
            logger.warning("Outline refresh for %s failed: %s", self.book_id, e)
            return
        if book is None:
            return
        changed = []
        if book.outline != self.state.outline:
            self.state.outline = book.outline
            changed.append("outline")
        if not self.state.user_id and book.user_id:
            self.state.user_id = book.user_id
            changed.append("user_id")
        if changed:
            self.persist(*changed)

    async def append_turn(self, turn: Turn, viewer: Optional[Viewer] = None) -> bool:
        """Append a visible assistant turn and broadcast it.

        A turn equal to the last one is not appended; the existing history
        is re-sent instead (to ``viewer`` only, when given).
        """
        if not self.state.transcript.append(turn):
            logger.debug("Duplicate turn suppressed for %s", self.book_id)
            resync = protocol.history(self.state.transcript.visible())
            if viewer is not None:
                await self.viewers.send(viewer, resync)
            else:
                await self.broadcast(resync)
            return False
        self.persist("history")
        await self.broadcast(protocol.response(turn.content or ""))
        return True

    async def greet_current_chapter(self, viewer: Optional[Viewer] = None) -> bool:
        chapter = self.state.current_chapter
        if chapter is None:
            return False
        text = opening_message(self.state.current_chapter_index, chapter)
        return await self.append_turn(Turn(role=Role.ASSISTANT, content=text), viewer)

    async def begin_writing(self):
        """Switch to writing and start streaming the current chapter."""
        self.state.phase = Phase.WRITING
        self.persist("phase")
        await self.broadcast(protocol.mode_sync(Phase.WRITING))
        self.start_generation()

    def start_generation(self) -> bool:
        """Launch the Writer, unless a cancel already left the writing phase.

        Callers broadcast before getting here, and ``cancel_generation``
        bypasses the queue, so it may have run during those awaits.
        """
        if self.state.phase != Phase.WRITING:
            logger.info("Session %s: writing cancelled before the stream started", self.book_id)
            return False
        task = asyncio.create_task(
            self.writer.write(self),
            name=f"write-{self.book_id}-{self.state.current_chapter_index}",
        )
        task.add_done_callback(self._on_generation_done)
        self._generation = task
        return True

    def _on_generation_done(self, task: asyncio.Task):
        if task.cancelled():
            logger.info("Generation for %s cancelled", self.book_id)
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Generation for %s failed: %s", self.book_id, exc, exc_info=exc)

    async def _stop_generation(self) -> bool:
        task = self._generation
        if task is None or task.done():
            return False
        task.cancel()
        await asyncio.wait({task})
        return True

    async def archive_chapter(self):
        """Record the draft as a finished chapter and move to the next one."""
        state = self.state
        index = state.current_chapter_index
        chapter = state.current_chapter
        self.db.archive_chapter(ArchivedChapter(
            id=str(uuid.uuid4()),
            book_id=self.book_id,
            chapter_index=index,
            title=chapter.title if chapter and chapter.title else f"Chapter {index}",
            content=state.current_draft,
            status=ChapterStatus.COMPLETED,
        ))
        state.archive_draft()
        self.persist("manuscript", "current_draft", "current_chapter_index", "history", "notes", "phase")
        logger.info("Session %s advanced to chapter %d", self.book_id, state.current_chapter_index)

    def snapshot(self) -> dict:
        """Non-secret status summary."""
        return {
            **self.state.summary(),
            "is_processing": self.is_processing,
            "is_generating": self.is_generating,
            "viewers": len(self.viewers),
        }

    # ---- Handlers ----

    async def _on_init(self, viewer: Viewer, msg: InboundMessage):
        self.refresh_outline()
        state = self.state
        send = self.viewers.send
        await send(viewer, protocol.outline_msg(state.outline))
        await send(viewer, protocol.notes_sync(state.notes.to_payload()))
        await send(viewer, protocol.mode_sync(state.phase))
        await send(viewer, protocol.chapter_index_sync(state.current_chapter_index))
        if state.full_text:
            await send(viewer, protocol.draft_chunk(state.full_text, reset=True))
        if state.phase == Phase.WRITING and state.current_draft and not self.is_generating:
            await send(viewer, protocol.draft_complete())

        if state.phase == Phase.INTERVIEW and len(state.transcript) == 0 and state.current_chapter:
            await self.greet_current_chapter(viewer)
            return
        await send(viewer, protocol.history(state.transcript.visible()))

    async def _on_message(self, viewer: Viewer, msg: InboundMessage):
        if self.is_busy:
            logger.info("Session %s busy, dropped queued user message", self.book_id)
            return
        self.is_processing = True
        try:
            self.state.transcript.append(Turn(role=Role.USER, content=msg.content))
            self.persist("history")
            outcome = await self.interviewer.run_turn(self)
            logger.debug("Interview turn for %s ended: %s", self.book_id, outcome.value)
        finally:
            self.is_processing = False

    async def _on_patch_note(self, viewer: Viewer, msg: InboundMessage):
        if self.state.notes.patch(msg.id, msg.content):
            self.persist("notes")
            await self.sync_notes()

    async def _on_update_notes(self, viewer: Viewer, msg: InboundMessage):
        if self.state.notes.merge(msg.notes):
            self.persist("notes")
        await self.sync_notes()

    async def _on_delete_note(self, viewer: Viewer, msg: InboundMessage):
        self.state.notes.delete(msg.id)
        self.persist("notes")
        await self.sync_notes()

    async def _on_cancel_generation(self, viewer: Viewer, msg: InboundMessage):
        if await self._stop_generation():
            logger.info("Session %s: generation cancelled by viewer", self.book_id)
        self.state.phase = Phase.INTERVIEW
        self.persist("phase", "current_draft")
        await self.broadcast(protocol.mode_sync(Phase.INTERVIEW))

    async def _on_retry_chapter(self, viewer: Viewer, msg: InboundMessage):
        if self.is_processing:
            raise PhaseError(msg.type, self.state.phase.value, "Wait for the interviewer to finish")
        await self._stop_generation()
        self.state.current_draft = ""
        self.state.phase = Phase.WRITING
        self.persist("current_draft", "phase")
        await self.broadcast(protocol.mode_sync(Phase.WRITING))
        await self.send_draft(self.state.manuscript_prefix, reset=True)
        self.start_generation()

    async def _on_next_chapter(self, viewer: Viewer, msg: InboundMessage):
        if self.is_processing or self.is_generating:
            raise PhaseError(msg.type, self.state.phase.value, "Wait for the current chapter to finish")
        if self.state.phase != Phase.WRITING or not self.state.current_draft:
            raise PhaseError(msg.type, self.state.phase.value, "Write the chapter before moving on")
        if self.state.current_chapter is None:
            raise PhaseError(msg.type, self.state.phase.value, "There is no chapter to archive")

        await self.archive_chapter()
        state = self.state
        await self.broadcast(protocol.chapter_index_sync(state.current_chapter_index))
        await self.sync_notes()
        await self.broadcast(protocol.mode_sync(state.phase))
        await self.broadcast(protocol.history([]))
        await self.greet_current_chapter()

    async def _on_expand_outline(self, viewer: Viewer, msg: InboundMessage):
        state = self.state
        if state.phase != Phase.INTERVIEW or self.is_processing or self.is_generating:
            raise PhaseError(msg.type, state.phase.value)
        self.refresh_outline()
        outline = state.outline or Outline()
        if state.current_chapter_index <= len(outline.chapters):
            raise PhaseError(msg.type, state.phase.value, "The outline still has chapters to write")

        await self.log("Expanding outline...")
        self.is_processing = True
        try:
            expanded = await self.expander.expand(outline, msg.instruction)
        finally:
            self.is_processing = False

        self.db.update_outline(self.book_id, expanded)
        added = len(expanded.chapters) - len(outline.chapters)
        state.outline = expanded
        state.reset_ephemeral()
        self.persist("outline", "history", "notes", "current_draft", "phase")

        await self.broadcast(protocol.outline_msg(expanded))
        await self.sync_notes()
        await self.broadcast(protocol.mode_sync(state.phase))
        await self.broadcast(protocol.history([]))
        await self.log(f"Added {added} new chapters.")
        await self.greet_current_chapter()
