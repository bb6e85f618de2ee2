from __future__ import annotations

import logging
import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field

from adapters.filesystem.json_utils import OrjsonDocumentParser
from adapters.layout.tree import TreeLayoutEngine
from app.config import AppSettings
from domain.ports.documents import DocumentParser
from domain.ports.layout import LayoutEngine
from domain.services.document_source import DocumentSource
from domain.services.viewport import ViewportController

logger = logging.getLogger(__name__)


@dataclass
class ViewportSession:
    session_id: str
    source: DocumentSource
    controller: ViewportController
    lock: threading.Lock = field(default_factory=threading.Lock)


class ViewportSessionStore:
    def __init__(
        self,
        settings: AppSettings,
        parser: DocumentParser | None = None,
        layout_engine: LayoutEngine | None = None,
    ) -> None:
        self.settings = settings
        self.parser = parser or OrjsonDocumentParser()
        self.layout_engine = layout_engine or TreeLayoutEngine(settings.layout.to_layout_config())
        self._sessions: OrderedDict[str, ViewportSession] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, text: str = "") -> ViewportSession:
        controller = ViewportController(
            self.layout_engine,
            self.settings.render.to_render_config(),
            preserve_manual_positions=self.settings.viewport.preserve_manual_positions,
        )
        source = DocumentSource(self.parser)
        source.subscribe(controller.on_document_change)
        source.update_text(text)

        session = ViewportSession(session_id=uuid.uuid4().hex, source=source, controller=controller)
        with self._lock:
            self._sessions[session.session_id] = session
            while len(self._sessions) > self.settings.server.max_sessions:
                evicted_id, _ = self._sessions.popitem(last=False)
                logger.info("Evicted viewport session %s.", evicted_id)
        logger.info("Created viewport session %s.", session.session_id)
        return session

    def get(self, session_id: str) -> ViewportSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                msg = f"Session not found: {session_id}"
                raise KeyError(msg)
            self._sessions.move_to_end(session_id)
            return session

    def delete(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        with session.lock:
            session.controller.end_drag()
        logger.info("Closed viewport session %s.", session_id)
        return True
