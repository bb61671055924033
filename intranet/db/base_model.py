"""
Base model with the shared query helpers.

Every entity gets a UUID primary key plus created/updated timestamps.
List queries always go through `paginate` so page windows and totals
are computed the same way everywhere.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Sequence, Tuple, TypeVar

from sqlalchemy import DateTime, Select, select, func, desc, asc
from sqlalchemy.orm import Mapped, mapped_column, DeclarativeBase
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T", bound="BaseModel")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Base(DeclarativeBase):
    """Base class for all models"""

    pass


class BaseModel(Base):
    """
    Abstract base model with common fields and CRUD methods.

    Filters are plain equality keyword arguments (`filter_by`); anything
    richer is passed as SQLAlchemy criteria.
    """

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    # CREATE OPERATIONS

    @classmethod
    async def create(
        cls: type[T], db: AsyncSession, commit: bool = True, **kwargs
    ) -> T:
        """
        Create new instance and optionally commit.
        """
        instance = cls(**kwargs)
        db.add(instance)

        if commit:
            await db.commit()
            await db.refresh(instance)
        else:
            await db.flush()

        return instance

    # READ OPERATIONS

    @classmethod
    async def get_by_id(cls: type[T], db: AsyncSession, id: Any) -> Optional[T]:
        """
        Get single record by primary key.
        """
        return await db.get(cls, id)

    @classmethod
    async def get_many_by_ids(
        cls: type[T], db: AsyncSession, ids: Sequence[Any]
    ) -> Dict[uuid.UUID, T]:
        """
        Batch fetch by primary key; one IN query, keyed by id.
        """
        if not ids:
            return {}
        result = await db.execute(select(cls).where(cls.id.in_(set(ids))))
        return {row.id: row for row in result.scalars().all()}

    @classmethod
    async def find_one(
        cls: type[T],
        db: AsyncSession,
        *criteria,
        **kwargs,
    ) -> Optional[T]:
        """
        Get first matching record.
        """
        query = select(cls).where(*criteria)
        if kwargs:
            query = query.filter_by(**kwargs)
        result = await db.execute(query.limit(1))
        return result.scalars().first()

    @classmethod
    async def find_many(
        cls: type[T],
        db: AsyncSession,
        *criteria,
        limit: Optional[int] = None,
        offset: int = 0,
        order_by: Optional[Any] = None,
        **kwargs,
    ) -> List[T]:
        """
        Get matching records, newest first unless an ordering is given.
        """
        query = select(cls).where(*criteria)

        if kwargs:
            query = query.filter_by(**kwargs)

        if order_by is None:
            query = query.order_by(desc(cls.created_at))
        elif isinstance(order_by, (list, tuple)):
            query = query.order_by(*order_by)
        else:
            query = query.order_by(order_by)

        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        result = await db.execute(query)
        return list(result.scalars().all())

    @classmethod
    async def count(
        cls: type[T],
        db: AsyncSession,
        *criteria,
        **kwargs,
    ) -> int:
        """
        Count matching records.
        """
        query = select(func.count()).select_from(cls).where(*criteria)

        if kwargs:
            query = query.filter_by(**kwargs)

        result = await db.execute(query)
        return result.scalar_one()

    @classmethod
    async def exists(
        cls: type[T],
        db: AsyncSession,
        *criteria,
        **kwargs,
    ) -> bool:
        """
        Check if matching record exists.
        """
        query = select(cls.id).where(*criteria)

        if kwargs:
            query = query.filter_by(**kwargs)

        result = await db.execute(select(query.exists()))
        return bool(result.scalar())

    # UPDATE OPERATIONS

    def apply(self, values: Dict[str, Any]) -> None:
        """Copy a partial patch onto the instance."""
        for key, value in values.items():
            setattr(self, key, value)

    async def save(self: T, db: AsyncSession, commit: bool = True) -> T:
        """
        Save changes to existing instance.
        """
        self.updated_at = utcnow()
        db.add(self)

        if commit:
            await db.commit()
            await db.refresh(self)

        return self

    @classmethod
    async def update_many(
        cls: type[T],
        db: AsyncSession,
        filters: Dict[str, Any],
        updates: Dict[str, Any],
        commit: bool = True,
    ) -> int:
        """
        Bulk update matching records.
        """
        updates["updated_at"] = utcnow()

        query = select(cls).filter_by(**filters)
        result = await db.execute(query)
        instances = result.scalars().all()

        for instance in instances:
            for key, value in updates.items():
                setattr(instance, key, value)

        if commit:
            await db.commit()

        return len(instances)

    # DELETE OPERATIONS

    async def delete(self, db: AsyncSession, commit: bool = True) -> None:
        """
        Delete this instance.
        """
        await db.delete(self)

        if commit:
            await db.commit()

    @classmethod
    async def delete_many(
        cls: type[T], db: AsyncSession, *criteria, commit: bool = True, **kwargs
    ) -> int:
        """
        Bulk delete matching records, one ORM delete per row.
        """
        query = select(cls).where(*criteria)
        if kwargs:
            query = query.filter_by(**kwargs)

        result = await db.execute(query)
        instances = result.scalars().all()

        for instance in instances:
            await db.delete(instance)

        if commit:
            await db.commit()

        return len(instances)

    # PAGINATION HELPERS

    @classmethod
    def sort_clauses(cls, sort: Optional[str], default: str = "-created_at") -> list:
        """
        Translate "name,-created_at" into ORDER BY clauses.

        Unknown columns are ignored; an empty result falls back to `default`.
        """
        columns = cls.__table__.columns
        clauses = []
        for raw in (sort or "").split(","):
            field = raw.strip()
            if not field:
                continue
            descending = field.startswith("-")
            name = field.lstrip("-+")
            if name in columns:
                column = getattr(cls, name)
                clauses.append(desc(column) if descending else asc(column))
        if not clauses and default:
            return cls.sort_clauses(default, default="")
        return clauses

    @classmethod
    async def paginate(
        cls: type[T],
        db: AsyncSession,
        *criteria,
        page: int = 1,
        limit: int = 10,
        sort: Optional[str] = None,
        default_sort: str = "-created_at",
        statement: Optional[Select] = None,
        **kwargs,
    ) -> Tuple[List[T], int]:
        """
        Return one page of rows and the total match count.

        Window: offset = (page - 1) * limit.
        """
        page = max(page, 1)
        limit = max(limit, 1)

        query = statement if statement is not None else select(cls)
        query = query.where(*criteria)
        if kwargs:
            query = query.filter_by(**kwargs)

        count_query = select(func.count()).select_from(query.order_by(None).subquery())
        total = (await db.execute(count_query)).scalar_one()

        query = (
            query.order_by(*cls.sort_clauses(sort, default_sort))
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await db.execute(query)
        return list(result.scalars().all()), total
