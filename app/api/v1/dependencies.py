"""Presentation-layer dependency injection.

Read-only DB sessions for probes; the task tracker services themselves live
on app.state.services (built by the lifespan, see app.core.composition).
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.persistence.database import get_db

DbSession = Annotated[AsyncSession, Depends(get_db)]
