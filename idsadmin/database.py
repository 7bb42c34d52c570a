"""
Storage contexts: one declarative base, engine and session factory per store.
"""

import importlib
import importlib.util
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from idsadmin.constants import STAGING_DATABASE_URL

# Identity entities get their base from the identity model; see idsadmin.identity.schemas.
ConfigurationBase = declarative_base()
PersistedGrantBase = declarative_base()
AdminLogBase = declarative_base()


def generate_uuid() -> str:
    return str(uuid.uuid4())


def _is_memory_url(url: str) -> bool:
    return url.startswith("sqlite") and (":memory:" in url or url.endswith("://"))


class DbContext:
    """
    A storage context: declarative base plus the engine/sessions bound to it.
    """

    def __init__(self, name: str, base, url: str, migrations_package: Optional[str] = None):
        self.name = name
        self.base = base
        self.url = url
        self.migrations_package = migrations_package
        self.engine: AsyncEngine = self._create_engine(url)
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False)

    @classmethod
    def in_memory(cls, name: str, base, migrations_package: Optional[str] = None) -> "DbContext":
        return cls(name, base, STAGING_DATABASE_URL, migrations_package=migrations_package)

    @staticmethod
    def _create_engine(url: str) -> AsyncEngine:
        if _is_memory_url(url):
            # One shared connection, otherwise every checkout sees an empty database.
            return create_async_engine(
                url,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        return create_async_engine(url, pool_pre_ping=True)

    @property
    def is_in_memory(self) -> bool:
        return _is_memory_url(self.url)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    def _migrations_module(self):
        if not self.migrations_package:
            return None
        module_name = f"{self.migrations_package}.migrations.{self.name}"
        try:
            spec = importlib.util.find_spec(module_name)
        except ModuleNotFoundError:
            return None
        if spec is None:
            return None
        return importlib.import_module(module_name)

    async def migrate(self) -> None:
        """
        Bring the schema up to date: run the context's migration module from
        the migrations package when one exists, otherwise create all tables.
        """
        module = self._migrations_module()
        async with self.engine.begin() as conn:
            if module is not None and hasattr(module, "upgrade"):
                logger.info(f"Applying {module.__name__} migrations to the {self.name} store")
                await conn.run_sync(module.upgrade)
            else:
                logger.info(f"Creating schema for the {self.name} store")
                await conn.run_sync(self.base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
