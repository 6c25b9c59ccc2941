# utils/__init__.py
# =============================================================================
# 🧰 QR-Star Hilfsmodule: Stil-Auflösung, Rendering, Export, Backend-Client
# =============================================================================
