"""Shared plumbing for the read-only repositories.

Repositories are built once at process start with the session factory and
open one short-lived session per call. Driver and database failures surface
as RepositoryUnavailable; nothing is retried here.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clubbook.core.exceptions import RepositoryUnavailable

logger = logging.getLogger(__name__)


class SqlRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self.session_factory() as session:
                yield session
        except (SQLAlchemyError, OSError, TimeoutError) as exc:
            logger.exception("%s query failed", type(self).__name__)
            raise RepositoryUnavailable(
                "The booking database is temporarily unavailable. Try again shortly.",
                details={"repository": type(self).__name__},
            ) from exc
