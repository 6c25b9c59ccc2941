# =============================================================================
# ⚠️ utils/errors.py
# -----------------------------------------------------------------------------
# Fehlertypen des QR-Star Dashboards. Jeder Fehler trägt eine Nachricht,
# die unverändert im JSON-Envelope {error, message} angezeigt wird.
# =============================================================================

from __future__ import annotations

from typing import Optional, Tuple


class QRStarError(Exception):
    """Basis aller fachlichen Fehler."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(QRStarError):
    """Ungültige Eingabe (URL, Slug, Selbst-Aktion im Admin-Panel)."""

    status_code = 400


class SessionExpired(QRStarError):
    """Kein oder abgelaufenes Session-Token – erneuter Login nötig."""

    status_code = 401

    def __init__(self, message: str = "Session expired. Login again.") -> None:
        super().__init__(message)


class RemoteError(QRStarError):
    """Backend antwortete mit error:true, Nicht-2xx oder war nicht erreichbar."""

    status_code = 502

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class RenderFailure(QRStarError):
    """Die Rendering-Engine konnte Format oder Größe nicht erzeugen."""

    status_code = 422


class PartialListFailure(QRStarError):
    """
    Eine der beiden parallelen Admin-Listen konnte nicht geladen werden.
    Wird nicht geworfen, sondern als Teil der Admin-Übersicht zurückgegeben.
    """

    def __init__(self, message: str, failed: Tuple[str, ...]) -> None:
        super().__init__(message)
        self.failed = failed
