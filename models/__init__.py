# =============================================================================
# 📦 models/__init__.py
# =============================================================================

from .link import Link, UserAccount
from .qr_style import (
    INHERIT,
    TRANSPARENT,
    ErrorCorrection,
    Explicit,
    InnerCornerShape,
    Inherited,
    LinearGradient,
    Logo,
    ModuleShape,
    OuterCornerShape,
    SolidColor,
    StyleDescriptor,
    TransparentColor,
)

__all__ = [
    "Link",
    "UserAccount",
    "INHERIT",
    "TRANSPARENT",
    "ErrorCorrection",
    "Explicit",
    "InnerCornerShape",
    "Inherited",
    "LinearGradient",
    "Logo",
    "ModuleShape",
    "OuterCornerShape",
    "SolidColor",
    "StyleDescriptor",
    "TransparentColor",
]
