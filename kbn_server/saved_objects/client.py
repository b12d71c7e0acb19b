"""Saved objects client."""

from typing import Any, Optional, Union
import uuid

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from kbn_server.core.errors import ConflictError, KbnError, NotFoundError, wrap_error
from kbn_server.saved_objects.models import SavedObject, utcnow
from kbn_server.saved_objects.store import SavedObjectsStore

logger = structlog.get_logger(__name__)

# Request payloads may carry any JSON number
Version = Union[int, float]


def _not_found(type: str, id: str) -> NotFoundError:
    return NotFoundError(f"Saved object [{type}/{id}] not found")


def _conflict(type: str, id: str) -> ConflictError:
    return ConflictError(f"Saved object [{type}/{id}] conflict")


def _error_entry(type: str, id: str, error: KbnError) -> dict[str, Any]:
    return {
        "id": id,
        "type": type,
        "error": {"statusCode": error.status_code, "message": error.message},
    }


class SavedObjectsClient:
    """
    CRUD operations on saved objects.

    Bulk operations report objects that cannot be written or found as
    ``{id, type, error}`` entries in input order; only a storage failure
    fails the whole batch.
    """

    def __init__(self, store: SavedObjectsStore):
        self.store = store

    async def create(
        self,
        type: str,
        attributes: dict[str, Any],
        *,
        id: Optional[str] = None,
        overwrite: bool = False,
        migration_version: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Create one saved object.

        Raises:
            ConflictError: The object exists and ``overwrite`` is false
        """
        id = id or str(uuid.uuid4())
        async with self.store.transaction() as db:
            obj = await self._write(
                db,
                type=type,
                id=id,
                attributes=attributes,
                overwrite=overwrite,
                version=None,
                migration_version=migration_version,
            )
        logger.info("Saved object created", type=type, id=id, overwrite=overwrite)
        return obj.to_dict()

    async def bulk_create(
        self,
        objects: list[dict[str, Any]],
        *,
        overwrite: bool = False,
    ) -> dict[str, Any]:
        """
        Create many saved objects.

        Args:
            objects: Dicts with ``type``, ``attributes`` and optionally ``id``,
                ``version`` and ``migrationVersion``
            overwrite: Replace existing objects instead of reporting a conflict

        Returns:
            ``{"saved_objects": [...]}`` in input order
        """
        results: list[dict[str, Any]] = []
        async with self.store.transaction() as db:
            for item in objects:
                type = item["type"]
                id = item.get("id") or str(uuid.uuid4())
                try:
                    obj = await self._write(
                        db,
                        type=type,
                        id=id,
                        attributes=item["attributes"],
                        overwrite=overwrite,
                        version=item.get("version"),
                        migration_version=item.get("migrationVersion"),
                    )
                    results.append(obj.to_dict())
                except (KbnError, TypeError, ValueError) as e:
                    # Raised before anything is flushed, so the batch goes on
                    error = wrap_error(e)
                    if error.status_code >= 500:
                        logger.warning("Saved object not written", type=type, id=id, error=str(e))
                    results.append(_error_entry(type, id, error))

        logger.info(
            "Saved objects bulk created",
            count=len(objects),
            errors=sum(1 for r in results if "error" in r),
            overwrite=overwrite,
        )
        return {"saved_objects": results}

    async def get(self, type: str, id: str) -> dict[str, Any]:
        """
        Get one saved object.

        Raises:
            NotFoundError: No such object
        """
        async with self.store.transaction() as db:
            obj = await db.get(SavedObject, (type, id))
            if obj is None:
                raise _not_found(type, id)
            return obj.to_dict()

    async def bulk_get(self, objects: list[dict[str, str]]) -> dict[str, Any]:
        """Get many saved objects; missing ones become 404 error entries."""
        results: list[dict[str, Any]] = []
        async with self.store.transaction() as db:
            for item in objects:
                obj = await db.get(SavedObject, (item["type"], item["id"]))
                if obj is None:
                    results.append(
                        _error_entry(item["type"], item["id"], _not_found(item["type"], item["id"]))
                    )
                else:
                    results.append(obj.to_dict(item.get("fields")))
        return {"saved_objects": results}

    async def update(
        self,
        type: str,
        id: str,
        attributes: dict[str, Any],
        *,
        version: Optional[Version] = None,
    ) -> dict[str, Any]:
        """
        Shallow-merge ``attributes`` into an existing object.

        Raises:
            NotFoundError: No such object
            ConflictError: ``version`` is given and does not match
        """
        async with self.store.transaction() as db:
            obj = await db.get(SavedObject, (type, id))
            if obj is None:
                raise _not_found(type, id)
            if version is not None and version != obj.version:
                raise _conflict(type, id)

            obj.attributes = {**obj.attributes, **attributes}
            obj.version = obj.version + 1
            obj.updated_at = utcnow()
            await db.flush()

            logger.info("Saved object updated", type=type, id=id, version=obj.version)
            return {
                "id": obj.id,
                "type": obj.type,
                "updated_at": obj.to_dict()["updated_at"],
                "version": obj.version,
                "attributes": attributes,
            }

    async def delete(self, type: str, id: str) -> dict[str, Any]:
        """
        Delete one saved object.

        Raises:
            NotFoundError: No such object
        """
        async with self.store.transaction() as db:
            obj = await db.get(SavedObject, (type, id))
            if obj is None:
                raise _not_found(type, id)
            await db.delete(obj)

        logger.info("Saved object deleted", type=type, id=id)
        return {}

    async def find(
        self,
        *,
        type: Optional[list[str]] = None,
        search: Optional[str] = None,
        search_fields: Optional[list[str]] = None,
        fields: Optional[list[str]] = None,
        page: int = 1,
        per_page: int = 20,
        sort_field: Optional[str] = None,
        sort_order: str = "asc",
    ) -> dict[str, Any]:
        """
        Page through saved objects.

        Args:
            type: Restrict to these types
            search: Case-insensitive substring matched against ``search_fields``
            search_fields: Attributes searched, ``title`` by default
            fields: Attribute names to return
            page: 1-based page number
            per_page: Page size
            sort_field: Attribute to sort by (``type``/``id`` otherwise)
            sort_order: ``asc`` or ``desc``

        Returns:
            ``{page, per_page, total, saved_objects}``
        """
        stmt = select(SavedObject)
        if type:
            stmt = stmt.where(SavedObject.type.in_(type))
        stmt = stmt.order_by(SavedObject.type, SavedObject.id)

        async with self.store.transaction() as db:
            result = await db.execute(stmt)
            objects = list(result.scalars().all())

        if search:
            needle = search.rstrip("*").lower()
            searched = search_fields or ["title"]
            objects = [
                o for o in objects
                if any(needle in str(o.attributes.get(f, "")).lower() for f in searched)
            ]

        if sort_field:
            objects.sort(
                key=lambda o: str(o.attributes.get(sort_field, "")),
                reverse=sort_order == "desc",
            )

        total = len(objects)
        start = (page - 1) * per_page
        page_objects = objects[start:start + per_page]

        return {
            "page": page,
            "per_page": per_page,
            "total": total,
            "saved_objects": [o.to_dict(fields) for o in page_objects],
        }

    async def count(self, type: str) -> int:
        """Count objects of one type."""
        async with self.store.transaction() as db:
            result = await db.execute(
                select(func.count()).select_from(SavedObject).where(SavedObject.type == type)
            )
            return int(result.scalar_one())

    async def _write(
        self,
        db: AsyncSession,
        *,
        type: str,
        id: str,
        attributes: dict[str, Any],
        overwrite: bool,
        version: Optional[Version],
        migration_version: Optional[dict[str, Any]],
    ) -> SavedObject:
        existing = await db.get(SavedObject, (type, id))

        if existing is not None:
            if not overwrite:
                raise _conflict(type, id)
            if version is not None and version != existing.version:
                raise _conflict(type, id)
            existing.attributes = attributes
            existing.migration_version = migration_version
            existing.version = existing.version + 1
            existing.updated_at = utcnow()
            await db.flush()
            return existing

        if version is not None and overwrite:
            # Versioned overwrite of a missing object cannot match.
            raise _conflict(type, id)

        obj = SavedObject(type=type, id=id, version=1, updated_at=utcnow())
        obj.attributes = attributes
        obj.migration_version = migration_version
        db.add(obj)
        await db.flush()
        return obj
