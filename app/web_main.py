from __future__ import annotations

import logging
from typing import Any, cast

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import ORJSONResponse, Response
from pydantic import BaseModel, Field

from adapters.filesystem.json_utils import parse_json_text
from adapters.layout.tree import TreeLayoutEngine
from app.config import AppSettings, load_settings
from app.sessions import ViewportSession, ViewportSessionStore
from domain.paths import display_path
from domain.ports.documents import DocumentParseError
from domain.services.pointer_events import PRIMARY_BUTTON, Pointer

logger = logging.getLogger(__name__)


class DocumentPayload(BaseModel):
    text: str = ""


class FormatPayload(BaseModel):
    minify: bool = False


class PointerPayload(BaseModel):
    x: float
    y: float
    button: int = PRIMARY_BUTTON
    node_id: str | None = Field(default=None)


class PointerMovePayload(BaseModel):
    x: float
    y: float


def create_app(settings: AppSettings) -> FastAPI:
    app = FastAPI(title=settings.server.title)
    layout_engine = TreeLayoutEngine(settings.layout.to_layout_config())
    app.state.settings = settings
    app.state.store = ViewportSessionStore(settings, layout_engine=layout_engine)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception("Unhandled error on %s %s.", request.method, request.url.path)
        return ORJSONResponse({"detail": "Internal Server Error"}, status_code=500)

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/layout")
    async def api_layout(request: Request) -> ORJSONResponse:
        body = await request.body()
        ensure_document_size(body, settings)
        try:
            document = parse_json_text(body)
        except DocumentParseError as exc:
            raise HTTPException(status_code=422, detail=f"Invalid JSON: {exc}") from exc
        return ORJSONResponse(layout_engine.build_layout(document).to_dict())

    @app.post("/api/sessions", status_code=201)
    def api_create_session(
        payload: DocumentPayload,
        store: ViewportSessionStore = Depends(get_store),
    ) -> ORJSONResponse:
        ensure_document_text(payload.text, settings)
        session = store.create(payload.text)
        with session.lock:
            return ORJSONResponse(session_state(session), status_code=201)

    @app.get("/api/sessions/{session_id}")
    def api_session(
        session_id: str,
        store: ViewportSessionStore = Depends(get_store),
    ) -> ORJSONResponse:
        session = find_session(store, session_id)
        with session.lock:
            return ORJSONResponse(session_state(session))

    @app.delete("/api/sessions/{session_id}", status_code=204)
    def api_delete_session(
        session_id: str,
        store: ViewportSessionStore = Depends(get_store),
    ) -> Response:
        if not store.delete(session_id):
            raise HTTPException(status_code=404, detail="Session not found")
        return Response(status_code=204)

    @app.put("/api/sessions/{session_id}/document")
    def api_update_document(
        session_id: str,
        payload: DocumentPayload,
        store: ViewportSessionStore = Depends(get_store),
    ) -> ORJSONResponse:
        ensure_document_text(payload.text, settings)
        session = find_session(store, session_id)
        with session.lock:
            session.source.update_text(payload.text)
            return ORJSONResponse(session_state(session))

    @app.post("/api/sessions/{session_id}/document/format")
    def api_format_document(
        session_id: str,
        payload: FormatPayload,
        store: ViewportSessionStore = Depends(get_store),
    ) -> ORJSONResponse:
        session = find_session(store, session_id)
        with session.lock:
            try:
                if payload.minify:
                    session.source.minify_text()
                else:
                    session.source.format_text()
            except DocumentParseError as exc:
                raise HTTPException(status_code=422, detail=f"Cannot format: {exc}") from exc
            return ORJSONResponse(session_state(session, include_text=True))

    @app.post("/api/sessions/{session_id}/pointer/down")
    def api_pointer_down(
        session_id: str,
        payload: PointerPayload,
        store: ViewportSessionStore = Depends(get_store),
    ) -> ORJSONResponse:
        session = find_session(store, session_id)
        pointer = Pointer(payload.x, payload.y, payload.button)
        with session.lock:
            controller = session.controller
            if payload.node_id is None:
                controller.pointer_down(pointer)
            else:
                if payload.node_id not in controller.node_ids:
                    raise HTTPException(status_code=404, detail="Node not found")
                controller.begin_drag(pointer, payload.node_id)
            return ORJSONResponse(session_state(session))

    @app.post("/api/sessions/{session_id}/pointer/move")
    def api_pointer_move(
        session_id: str,
        payload: PointerMovePayload,
        store: ViewportSessionStore = Depends(get_store),
    ) -> ORJSONResponse:
        session = find_session(store, session_id)
        with session.lock:
            session.controller.hub.dispatch_move(Pointer(payload.x, payload.y))
            return ORJSONResponse(session_state(session))

    @app.post("/api/sessions/{session_id}/pointer/up")
    def api_pointer_up(
        session_id: str,
        store: ViewportSessionStore = Depends(get_store),
    ) -> ORJSONResponse:
        session = find_session(store, session_id)
        with session.lock:
            session.controller.hub.dispatch_release()
            return ORJSONResponse(session_state(session))

    @app.post("/api/sessions/{session_id}/blur")
    def api_blur(
        session_id: str,
        store: ViewportSessionStore = Depends(get_store),
    ) -> ORJSONResponse:
        session = find_session(store, session_id)
        with session.lock:
            session.controller.hub.dispatch_blur()
            return ORJSONResponse(session_state(session))

    @app.get("/api/sessions/{session_id}/path")
    def api_copy_path(
        session_id: str,
        node_id: str = Query(default=""),
        field: str | None = Query(default=None),
        store: ViewportSessionStore = Depends(get_store),
    ) -> ORJSONResponse:
        session = find_session(store, session_id)
        with session.lock:
            try:
                path = session.controller.path_for(node_id, field)
            except KeyError as exc:
                raise HTTPException(status_code=404, detail=str(exc.args[0])) from exc
        return ORJSONResponse({"path": path, "display": display_path(path)})

    return app


def get_store(request: Request) -> ViewportSessionStore:
    return cast(ViewportSessionStore, request.app.state.store)


def find_session(store: ViewportSessionStore, session_id: str) -> ViewportSession:
    try:
        return store.get(session_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Session not found") from exc


def ensure_document_size(body: bytes, settings: AppSettings) -> None:
    limit = settings.server.max_document_bytes
    if len(body) > limit:
        logger.warning("Rejected document of %d bytes (limit %d).", len(body), limit)
        raise HTTPException(status_code=413, detail="Document too large")


def ensure_document_text(text: str, settings: AppSettings) -> None:
    try:
        body = text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise HTTPException(status_code=422, detail=f"Invalid document text: {exc.reason}") from exc
    ensure_document_size(body, settings)


def session_state(session: ViewportSession, include_text: bool = False) -> dict[str, Any]:
    controller = session.controller
    drag = controller.session
    state: dict[str, Any] = {
        "session_id": session.session_id,
        "error": session.source.error,
        "has_document": session.source.has_value,
        "dragging": None
        if drag is None
        else {"mode": "node" if drag.is_node_drag else "pan", "node_id": drag.target_id},
        "pending_rebuild": controller.has_pending_rebuild,
        "frame": controller.frame().to_dict(),
    }
    if include_text:
        state["text"] = session.source.text
    return state


app = create_app(load_settings())
