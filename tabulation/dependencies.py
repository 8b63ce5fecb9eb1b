"""
tabulation/dependencies.py
FastAPI dependencies shared by the route modules.
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tabulation.data_access.sql_store import SQLAlchemyStore
from tabulation.database import get_db


async def get_store(db: AsyncSession = Depends(get_db)) -> SQLAlchemyStore:
    """Store bound to the request's database session."""
    return SQLAlchemyStore(db)
