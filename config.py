# =============================================================================
# ⚙️ config.py
# -----------------------------------------------------------------------------
# Zentrale Konfiguration für das QR-Star Dashboard (.env + Umgebungsvariablen)
# =============================================================================

import os
from dotenv import load_dotenv

# 🔹 .env laden (z. B. aus .env-Datei im Projektverzeichnis)
load_dotenv()

# 🔹 Link-/User-Backend
BACKEND_URL: str = os.getenv("BACKEND_URL", "http://localhost:8080").rstrip("/")
BACKEND_TIMEOUT: float = float(os.getenv("BACKEND_TIMEOUT", "10"))

# 🔹 Basis der Kurzlinks, die im QR-Code landen (z. B. https://go.example.com)
SHORT_LINK_BASE_URL: str = os.getenv("SHORT_LINK_BASE_URL", BACKEND_URL).rstrip("/")

# 🔹 Session-Cookie
SESSION_SECRET: str = os.getenv("SESSION_SECRET", "qr-star-secret-key")
SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "qr_star_session")
SESSION_SAME_SITE: str = os.getenv("SESSION_SAME_SITE", "lax")
SESSION_HTTPS_ONLY: bool = os.getenv("SESSION_HTTPS_ONLY", "0") in {"1", "true", "yes"}

# 🔹 Logos
LOGO_FETCH_TIMEOUT: float = float(os.getenv("LOGO_FETCH_TIMEOUT", "10"))
MAX_LOGO_BYTES: int = int(os.getenv("MAX_LOGO_BYTES", str(5 * 1024 * 1024)))

# 🔹 Editor-Sitzungen (Sekunden ohne Zugriff bis zum Verwerfen)
EDITOR_IDLE_TTL: float = float(os.getenv("EDITOR_IDLE_TTL", "1800"))

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
