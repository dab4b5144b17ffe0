"""FruitType — the produce categories a reception can carry.

``fruit_type`` is one of CAFÉ | CACAO | MIEL | COCOS; ``subtype`` refines it
(e.g. VERDE for wet green cacao, SECO for dried).  Only cacao verde gets a
laboratory-sample weight adjustment.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

FRUIT_TYPES = ("CAFÉ", "CACAO", "MIEL", "COCOS")


class FruitType(Base):
    __tablename__ = "fruit_types"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    fruit_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    subtype: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    @property
    def is_cacao_verde(self) -> bool:
        return (
            "CACAO" in (self.fruit_type or "").upper()
            and "VERDE" in (self.subtype or "").upper()
        )
