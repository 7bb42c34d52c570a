"""
Service layer for the configuration store (clients, resources) and persisted grants.
"""

from typing import Optional

from loguru import logger
from sqlalchemy import delete, func, select

from idsadmin.constants import DEFAULT_PAGE_SIZE
from idsadmin.database import DbContext
from idsadmin.exceptions import ConflictError, NotFoundError
from idsadmin.idp.schemas import (
    ApiResource,
    Client,
    ClientCreateRequest,
    ClientUpdateRequest,
    IdentityResource,
    PersistedGrant,
    ResourceCreateRequest,
    ResourceUpdateRequest,
)
from idsadmin.pagination import page_bounds, paginate, search_filter


class ClientService:
    def __init__(self, context: DbContext, page_size: int = DEFAULT_PAGE_SIZE):
        self.context = context
        self.page_size = page_size

    async def _get(self, session, client_id: str) -> Client:
        client = (
            await session.execute(select(Client).where(Client.client_id == client_id))
        ).scalar_one_or_none()
        if not client:
            raise NotFoundError(f"Client {client_id} does not exist", error_key="ClientDoesNotExist")
        return client

    async def _ensure_unique_name(self, session, name: str, exclude_id: Optional[str] = None):
        query = select(Client.id).where(func.lower(Client.name) == name.strip().lower())
        if exclude_id:
            query = query.where(Client.id != exclude_id)
        if (await session.execute(query)).first():
            raise ConflictError(
                "A client with this name already exists", error_key="ClientNameAlreadyExists"
            )

    async def get_clients(self, search: Optional[str] = None, page: int = 0, limit: Optional[int] = None):
        query = select(Client)
        if search and search.strip():
            query = query.where(
                search_filter(search, Client.name, Client.client_id, Client.description)
            )
        async with self.context.session() as session:
            return await paginate(session, query, Client.name, page, limit or self.page_size)

    async def get_client(self, client_id: str) -> Client:
        async with self.context.session() as session:
            return await self._get(session, client_id)

    async def create_client(self, args: ClientCreateRequest) -> tuple[Client, Optional[str]]:
        """Register a client; the plain secret is only ever returned here."""
        async with self.context.session() as session:
            await self._ensure_unique_name(session, args.name)
            client, client_secret = Client.create(args)
            session.add(client)
            await session.commit()
            await session.refresh(client)
        logger.info(f"Created client {client.name} ({client.client_id})")
        return client, client_secret

    async def update_client(self, client_id: str, args: ClientUpdateRequest) -> Client:
        async with self.context.session() as session:
            client = await self._get(session, client_id)
            updates = args.model_dump(exclude_unset=True, exclude_none=True)
            if "name" in updates:
                await self._ensure_unique_name(session, updates["name"], exclude_id=client.id)
            for key, value in updates.items():
                setattr(client, key, value)
            await session.commit()
            await session.refresh(client)
        logger.info(f"Updated client {client.name} ({client.client_id}): {', '.join(updates)}")
        return client

    async def delete_client(self, client_id: str) -> None:
        async with self.context.session() as session:
            client = await self._get(session, client_id)
            await session.delete(client)
            await session.commit()
        logger.info(f"Deleted client {client.name} ({client.client_id})")

    async def regenerate_secret(self, client_id: str) -> tuple[Client, str]:
        async with self.context.session() as session:
            client = await self._get(session, client_id)
            client_secret = client.regenerate_secret()
            client.confidential = True
            await session.commit()
            await session.refresh(client)
        logger.info(f"Regenerated secret of client {client.client_id}")
        return client, client_secret


class _ResourceService:
    entity = None
    label = "Resource"

    def __init__(self, context: DbContext, page_size: int = DEFAULT_PAGE_SIZE):
        self.context = context
        self.page_size = page_size

    async def _get(self, session, resource_id: int):
        resource = (
            await session.execute(select(self.entity).where(self.entity.id == resource_id))
        ).scalar_one_or_none()
        if not resource:
            raise NotFoundError(
                f"{self.label} {resource_id} does not exist",
                error_key=f"{self.entity.__name__}DoesNotExist",
            )
        return resource

    async def _ensure_unique_name(self, session, name: str):
        existing = (
            await session.execute(select(self.entity.id).where(self.entity.name == name))
        ).first()
        if existing:
            raise ConflictError(
                f"{self.label} {name} already exists",
                error_key=f"{self.entity.__name__}AlreadyExists",
            )

    def _values(self, args) -> dict:
        columns = self.entity.__table__.columns.keys()
        return {k: v for k, v in args.model_dump().items() if k in columns}

    async def list(self, search: Optional[str] = None, page: int = 0, limit: Optional[int] = None):
        query = select(self.entity)
        if search and search.strip():
            query = query.where(search_filter(search, self.entity.name, self.entity.display_name))
        async with self.context.session() as session:
            return await paginate(session, query, self.entity.name, page, limit or self.page_size)

    async def get(self, resource_id: int):
        async with self.context.session() as session:
            return await self._get(session, resource_id)

    async def create(self, args: ResourceCreateRequest):
        async with self.context.session() as session:
            await self._ensure_unique_name(session, args.name)
            resource = self.entity(**self._values(args))
            session.add(resource)
            await session.commit()
            await session.refresh(resource)
        logger.info(f"Created {self.label.lower()} {resource.name}")
        return resource

    async def update(self, resource_id: int, args: ResourceUpdateRequest):
        async with self.context.session() as session:
            resource = await self._get(session, resource_id)
            columns = self.entity.__table__.columns.keys()
            for key, value in args.model_dump(exclude_unset=True, exclude_none=True).items():
                if key in columns:
                    setattr(resource, key, value)
            await session.commit()
            await session.refresh(resource)
        return resource

    async def delete(self, resource_id: int) -> None:
        async with self.context.session() as session:
            resource = await self._get(session, resource_id)
            await session.delete(resource)
            await session.commit()
        logger.info(f"Deleted {self.label.lower()} {resource.name}")


class ApiResourceService(_ResourceService):
    entity = ApiResource
    label = "API resource"


class IdentityResourceService(_ResourceService):
    entity = IdentityResource
    label = "Identity resource"


class PersistedGrantService:
    def __init__(self, context: DbContext, page_size: int = DEFAULT_PAGE_SIZE):
        self.context = context
        self.page_size = page_size

    async def get_subjects(self, search: Optional[str] = None, page: int = 0, limit: Optional[int] = None):
        """
        Subjects that have persisted grants, with the number of grants each.
        """
        query = (
            select(PersistedGrant.subject_id, func.count().label("grant_count"))
            .where(PersistedGrant.subject_id.is_not(None))
            .group_by(PersistedGrant.subject_id)
        )
        if search and search.strip():
            query = query.where(search_filter(search, PersistedGrant.subject_id))
        page, limit = page_bounds(page, limit or self.page_size)
        async with self.context.session() as session:
            total = (
                await session.execute(select(func.count()).select_from(query.subquery()))
            ).scalar() or 0
            rows = (
                await session.execute(
                    query.order_by(PersistedGrant.subject_id).offset(page * limit).limit(limit)
                )
            ).all()
        return {
            "total": total,
            "page": page,
            "limit": limit,
            "items": [{"subject_id": row.subject_id, "grant_count": row.grant_count} for row in rows],
        }

    async def get_grants_by_subject(self, subject_id: str, page: int = 0, limit: Optional[int] = None):
        query = select(PersistedGrant).where(PersistedGrant.subject_id == subject_id)
        async with self.context.session() as session:
            return await paginate(
                session, query, PersistedGrant.creation_time.desc(), page, limit or self.page_size
            )

    async def get_grant(self, key: str) -> PersistedGrant:
        async with self.context.session() as session:
            grant = (
                await session.execute(select(PersistedGrant).where(PersistedGrant.key == key))
            ).scalar_one_or_none()
        if not grant:
            raise NotFoundError("Persisted grant does not exist", error_key="PersistedGrantDoesNotExist")
        return grant

    async def delete_grant(self, key: str) -> None:
        async with self.context.session() as session:
            result = await session.execute(delete(PersistedGrant).where(PersistedGrant.key == key))
            if not result.rowcount:
                raise NotFoundError(
                    "Persisted grant does not exist", error_key="PersistedGrantDoesNotExist"
                )
            await session.commit()
        logger.info("Deleted persisted grant")

    async def delete_grants_by_subject(self, subject_id: str) -> int:
        async with self.context.session() as session:
            result = await session.execute(
                delete(PersistedGrant).where(PersistedGrant.subject_id == subject_id)
            )
            await session.commit()
        logger.info(f"Deleted {result.rowcount} persisted grants of subject {subject_id}")
        return result.rowcount
