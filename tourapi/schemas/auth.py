# tourapi/schemas/auth.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class Caller(BaseModel):
    """Identidad explícita del que llama; se pasa a cada operación del núcleo."""
    model_config = ConfigDict(frozen=True)

    user_id: UUID
    role: str
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "Admin"

    @property
    def is_guide_or_admin(self) -> bool:
        return self.role in ("Admin", "Guide")
