"""Writer Agent: streams one memoir chapter from the interview material."""

import logging

from agents.base_agent import BaseAgent
from config.exceptions import LifebookError, StorageError

logger = logging.getLogger(__name__)


class WriterAgent(BaseAgent):
    """Generates the current chapter's draft as a single streamed completion."""

    prompt_name = "writer"

    def _prompts(self, index: int, title: str, summary: str, context: str) -> tuple[str, str]:
        values = {
            "chapter_index": index,
            "chapter_title": title,
            "chapter_summary": summary or "the period of life discussed in the interview",
        }
        system_prompt = self._render("System Prompt", "Writing Rules", **values)
        user_prompt = self._render("Writing Instructions", context=context, **values)
        return system_prompt, user_prompt

    async def write(self, session) -> str:
        """Stream the chapter into ``session.state.current_draft``.

        Every fragment is persisted and published as it arrives. The stream
        is closed out (draft persisted, completion signalled) on success,
        on backend failure and on cancellation alike; partial text is kept.

        Returns:
            The draft text produced so far.
        """
        state = session.state
        index = state.current_chapter_index
        chapter = state.current_chapter
        title = chapter.title if chapter and chapter.title else f"Chapter {index}"

        background = session.context.load_background(state.user_id)
        context = session.context.assemble(background, state.notes, state.transcript)
        system_prompt, user_prompt = self._prompts(index, title, chapter.summary if chapter else "", context)

        logger.info(f"Writing chapter {index}...")
        await session.log(f"Writing chapter {index}...")

        prefix = state.manuscript_prefix
        state.current_draft = ""
        fragments = 0
        try:
            async for fragment in self.llm.stream(
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                model=self.settings.llm_model_writing,
            ):
                state.current_draft += fragment
                session.persist("current_draft")
                if fragments == 0:
                    await session.send_draft(prefix + fragment, reset=True)
                else:
                    await session.send_draft(fragment, reset=False)
                fragments += 1
        except LifebookError as e:
            logger.error("Chapter %d generation failed after %d fragments: %s", index, fragments, e)
            await session.report(e)
        finally:
            if fragments == 0:
                await session.send_draft(prefix, reset=True)
            try:
                session.persist("current_draft")
            except StorageError as e:
                logger.error("Chapter %d draft could not be saved: %s", index, e)
            await session.finish_draft()

        logger.info(f"Chapter {index} written: {len(state.current_draft)} chars in {fragments} fragments")
        return state.current_draft
