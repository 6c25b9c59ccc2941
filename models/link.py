# =============================================================================
# 🔗 models/link.py
# Link- und Benutzer-Datensätze, wie sie das Backend liefert
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Link(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow", coerce_numbers_to_str=True)

    id: str
    content: str = ""
    qrinfo: Optional[Dict[str, Any]] = None
    clicks: int = 0
    created_at: Optional[Any] = Field(default=None, alias="createdAt")
    updated_at: Optional[Any] = Field(default=None, alias="updatedAt")


class UserAccount(BaseModel):
    model_config = ConfigDict(extra="allow")

    username: str = ""
    level: int = 0

    # =========================================================================
    # 🛡️ Stufen (nur für die Oberfläche, keine Sicherheitsgrenze)
    # =========================================================================
    @property
    def can_open_admin_panel(self) -> bool:
        return self.level >= 1

    @property
    def is_site_admin(self) -> bool:
        return self.level >= 2
