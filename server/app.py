"""FastAPI application exposing one WebSocket channel per book session.

Endpoints:
    GET    /                                  health text
    GET    /api/sessions/{book_id}            session status snapshot
    WS     /api/session/{book_id}/connect     viewer channel (api_key, model, base_url query params)
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import PlainTextResponse

from config.settings import Settings, get_settings
from models.session_config import SessionConfig
from session.registry import SessionRegistry
from session.state import STORAGE_KEYS, SessionState

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, registry: Optional[SessionRegistry] = None) -> FastAPI:
    settings = settings or get_settings()
    registry = registry or SessionRegistry(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await registry.close_all()

    app = FastAPI(title="Lifebook Session Server", version="0.1.0", lifespan=lifespan)
    app.state.registry = registry

    @app.get("/", response_class=PlainTextResponse)
    async def health():
        return "lifebook session server"

    @app.get("/api/sessions/{book_id}")
    async def session_status(book_id: str):
        session = registry.get(book_id)
        if session is not None:
            return session.snapshot()
        data = registry.storage.get_many(book_id, STORAGE_KEYS)
        if not data:
            raise HTTPException(status_code=404, detail=f"No session for book {book_id}")
        return SessionState.from_storage(book_id, data).summary()

    @app.websocket("/api/session/{book_id}/connect")
    async def connect(
        websocket: WebSocket,
        book_id: str,
        api_key: str = "",
        model: str = "",
        base_url: str = "",
    ):
        await websocket.accept()
        config = SessionConfig(api_key=api_key, model=model, base_url=base_url)
        session = await registry.get_or_create(book_id, config)
        session.attach(websocket)
        try:
            while True:
                raw = await websocket.receive_text()
                await session.submit(websocket, raw)
        except WebSocketDisconnect:
            logger.debug("Viewer of %s disconnected", book_id)
        finally:
            session.detach(websocket)

    return app
