# routes/__init__.py
# =============================================================================
# 🚀 QR-Star Dashboard-Routen
# =============================================================================
