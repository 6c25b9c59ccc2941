"""
utils/link_editor.py
────────────────────────────────────────────
Editor-Sitzungen für "Link erstellen" und "Link bearbeiten".

Jede Sitzung wird beim Öffnen des Dialogs an genau einen Link (bzw. an ein
neues Formular) gebunden und über ihre ID angesprochen. Speichern nutzt
immer den Zustand DIESER Sitzung, nie den zuletzt geöffneten Dialog.
────────────────────────────────────────────
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

from config import EDITOR_IDLE_TTL
from models.link import Link
from utils.api_client import BackendClient
from utils.errors import ValidationError
from utils.link_validation import short_url, validate_content_url, validate_link_id
from utils.qr_config import NEW_LINK_PREVIEW_SIZE
from utils.qr_engine import ExportArtifact, ExportPipeline, QRPreview
from utils.qr_resolver import ResolvedQRConfig, resolve_style
from utils.qr_save import EditorState, from_persisted, to_persisted
from utils.qr_sizing import EXPORT_DOMAIN

logger = logging.getLogger(__name__)

# Felder, die nicht zum QR-Stil gehören
FORM_FIELDS = ("content", "link_id", "new_link_id", "export_size")


@dataclass(frozen=True)
class SaveRequest:
    """Bound request: everything the save action sends, captured from one session."""

    linkid: Optional[str]
    content: str
    qrinfo: Dict[str, Any]
    newlinkid: Optional[str] = None
    is_edit: bool = False


@dataclass
class EditorSession:
    owner: str
    pipeline: ExportPipeline
    link: Optional[Link] = None
    content: str = ""
    link_id: str = ""
    new_link_id: str = ""
    export_size: int = EXPORT_DOMAIN.default
    state: EditorState = field(default_factory=lambda: EditorState(size=NEW_LINK_PREVIEW_SIZE))
    editor_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    preview: QRPreview = field(init=False)
    owner_expires_at: Optional[int] = None  # epoch-ms der Login-Session
    last_used: float = field(default=0.0, repr=False)

    def __post_init__(self) -> None:
        self.preview = QRPreview(self.pipeline)

    @property
    def is_edit(self) -> bool:
        return self.link is not None

    @property
    def data(self) -> str:
        """Payload of the QR code: the short link of the (future) link id."""
        return self._payload(self.link_id, self.new_link_id)

    def _payload(self, link_id: str, new_link_id: str) -> str:
        if self.is_edit:
            return short_url(new_link_id.strip() or self.link.id)
        link_id = link_id.strip()
        return short_url(link_id if link_id else "preview")

    def resolved(self) -> ResolvedQRConfig:
        return resolve_style(self.state.to_descriptor(), self.data)

    # ---------------------------------------------------------------
    # ✏️ Bearbeiten
    # ---------------------------------------------------------------
    async def refresh(self) -> None:
        await self.preview.update(self.resolved())

    async def update(self, changes: Mapping[str, Any]) -> None:
        form = {k: v for k, v in changes.items() if k in FORM_FIELDS}
        style = {k: v for k, v in changes.items() if k not in FORM_FIELDS}
        state = self.state.apply(style) if style else self.state
        export_size = self.export_size
        text = {"content": self.content, "link_id": self.link_id, "new_link_id": self.new_link_id}
        for key, value in form.items():
            if key == "export_size":
                export_size = EXPORT_DOMAIN.clamp(value)
            else:
                text[key] = "" if value is None else str(value)

        # erst neu zeichnen, dann übernehmen: bei RenderFailure bleibt alles beim Alten
        await self._repaint(state, text["link_id"], text["new_link_id"])
        self.state = state
        self.export_size = export_size
        for key, value in text.items():
            setattr(self, key, value)

    async def reset_appearance(self) -> None:
        state = EditorState(size=NEW_LINK_PREVIEW_SIZE)
        await self._repaint(state, self.link_id, self.new_link_id)
        self.state = state
        self.export_size = EXPORT_DOMAIN.default

    async def set_logo(self, source_uri: str) -> None:
        state = self.state.apply({"logo": source_uri})
        await self._repaint(state, self.link_id, self.new_link_id)
        self.state = state

    async def _repaint(self, state: EditorState, link_id: str, new_link_id: str) -> None:
        await self.preview.update(resolve_style(state.to_descriptor(), self._payload(link_id, new_link_id)))

    async def export(self, fmt: str = "png", size_px: Optional[Any] = None) -> ExportArtifact:
        return await self.preview.export(fmt, size_px)

    # ---------------------------------------------------------------
    # 💾 Speichern
    # ---------------------------------------------------------------
    def build_save_request(self) -> SaveRequest:
        content = validate_content_url(self.content)
        qrinfo = to_persisted(self.state)
        if self.is_edit:
            return SaveRequest(
                linkid=self.link.id,
                content=content,
                qrinfo=qrinfo,
                newlinkid=validate_link_id(self.new_link_id),
                is_edit=True,
            )
        return SaveRequest(linkid=validate_link_id(self.link_id), content=content, qrinfo=qrinfo)

    async def save(self, backend: BackendClient, token: str) -> Any:
        request = self.build_save_request()
        if request.is_edit:
            result = await backend.edit_link(
                token, request.linkid, content=request.content, newlinkid=request.newlinkid, qrinfo=request.qrinfo
            )
            logger.info(f"✏️ Link gespeichert ({request.linkid})")
        else:
            result = await backend.create_link(token, request.content, request.qrinfo, linkid=request.linkid)
            logger.info("✅ Link erstellt")
        return result

    def close(self) -> None:
        self.preview.detach()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "editor_id": self.editor_id,
            "mode": "edit" if self.is_edit else "create",
            "link_id": self.link.id if self.is_edit else self.link_id,
            "new_link_id": self.new_link_id,
            "content": self.content,
            "data": self.data,
            "export_size": self.export_size,
            "state": self.state.to_dict(),
        }


class EditorRegistry:
    """
    Offene Editor-Sitzungen, adressiert über ihre ID.

    Sitzungen, die länger als `idle_ttl` Sekunden unbenutzt sind oder deren
    Login-Session abgelaufen ist, werden bei `open`/`get` geschlossen.
    """

    def __init__(
        self,
        pipeline: ExportPipeline,
        idle_ttl: float = EDITOR_IDLE_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.pipeline = pipeline
        self.idle_ttl = idle_ttl
        self.clock = clock
        self._sessions: Dict[str, EditorSession] = {}

    async def open(
        self,
        owner: str,
        link: Optional[Link] = None,
        owner_expires_at: Optional[int] = None,
    ) -> EditorSession:
        self.evict_stale()
        if link is None:
            session = EditorSession(owner=owner, pipeline=self.pipeline)
        else:
            session = EditorSession(
                owner=owner,
                pipeline=self.pipeline,
                link=link,
                content=link.content,
                state=from_persisted(link.qrinfo or {}),
            )
        session.owner_expires_at = owner_expires_at
        await session.refresh()
        session.last_used = self.clock()
        self._sessions[session.editor_id] = session
        return session

    def get(self, editor_id: str, owner: str) -> Optional[EditorSession]:
        self.evict_stale()
        session = self._sessions.get(editor_id)
        if session is None or session.owner != owner:
            return None
        session.last_used = self.clock()
        return session

    def close(self, editor_id: str, owner: str) -> bool:
        session = self.get(editor_id, owner)
        if session is None:
            return False
        self._discard(session)
        return True

    def close_owner(self, owner: str) -> int:
        """Schließt alle Sitzungen eines Tokens (Logout, abgelaufene Session)."""
        sessions = [s for s in self._sessions.values() if s.owner == owner]
        for session in sessions:
            self._discard(session)
        return len(sessions)

    def evict_stale(self) -> int:
        now = self.clock()
        stale = [
            s
            for s in self._sessions.values()
            if now - s.last_used > self.idle_ttl
            or (s.owner_expires_at is not None and now * 1000 >= s.owner_expires_at)
        ]
        for session in stale:
            self._discard(session)
        if stale:
            logger.info(f"🧹 {len(stale)} Editor-Sitzung(en) verworfen")
        return len(stale)

    def _discard(self, session: EditorSession) -> None:
        self._sessions.pop(session.editor_id, None)
        session.close()

    def __len__(self) -> int:
        return len(self._sessions)


def require_link_id(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("linkid is required")
    return validate_link_id(value)
