from datetime import datetime, timezone
from typing import Optional

import sqlalchemy as sa
from sqlmodel import SQLModel, Field

# Maior valor de uma coluna INTEGER (int4 no Postgres)
MAX_ID = 2**31 - 1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ImmutableBase(SQLModel):
    """Modelo base para registros nunca alterados (apenas id e created_at)."""

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=sa.DateTime(timezone=True),
        nullable=False,
    )


class BaseModel(ImmutableBase):
    """Modelo base com created_at e updated_at."""

    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_type=sa.DateTime(timezone=True),
        nullable=False,
    )
