# =============================================================================
# 🌐 backend.py
# -----------------------------------------------------------------------------
# Verbindung zum Link-/User-Backend (httpx) für QR-Star
# =============================================================================

from typing import AsyncIterator

from utils.api_client import BackendClient


# 🔹 Dependency für FastAPI
async def get_backend() -> AsyncIterator[BackendClient]:
    """
    Erstellt einen Backend-Client pro Anfrage und schließt ihn automatisch.
    """
    client = BackendClient.create()
    try:
        yield client
    finally:
        await client.aclose()
