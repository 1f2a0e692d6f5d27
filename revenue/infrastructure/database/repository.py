"""Generic repository over the configuration tables.

The repository speaks ORM instances; ``SqlConfigurationStore`` converts them
to and from the plain rows the registry engine works with.
"""

from collections.abc import Mapping
from datetime import date

from loguru import logger
from sqlalchemy import Select, or_, select
from sqlalchemy import delete as sql_delete
from sqlalchemy.ext.asyncio import AsyncSession

from revenue.infrastructure.database.base import ConfigurationModel


class ConfigurationRepository[T: ConfigurationModel]:
    """Async CRUD and interval queries for one configuration model.

    Args:
        session: The async SQLAlchemy session to use for operations.
        model_class: The configuration model this repository manages.

    Example:
        repo = ConfigurationRepository(session, RptTaxConfig)
        current = await repo.scan(as_of=date.today())
    """

    def __init__(self, session: AsyncSession, model_class: type[T]) -> None:
        self.session = session
        self.model_class = model_class

    def _where(
        self, stmt: Select[tuple[T]], match: Mapping[str, object]
    ) -> Select[tuple[T]]:
        for field, value in match.items():
            stmt = stmt.where(getattr(self.model_class, field) == value)
        return stmt

    async def get_by_id(self, entity_id: int) -> T | None:
        """Retrieve one row by primary key."""
        logger.debug("Fetching {} by ID: {}", self.model_class.__name__, entity_id)
        stmt = select(self.model_class).where(self.model_class.id == entity_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def scan(
        self,
        as_of: date | None = None,
        match: Mapping[str, object] | None = None,
    ) -> list[T]:
        """Rows equal to ``match`` whose validity interval contains ``as_of``.

        Args:
            as_of: Day the interval must contain; None keeps every row.
            match: Column values rows must equal.

        Returns:
            list[T]: Matching rows ordered by id.
        """
        model = self.model_class
        stmt = self._where(select(model), match or {})
        if as_of is not None:
            stmt = stmt.where(
                model.effective_date <= as_of,
                or_(model.expiration_date.is_(None), model.expiration_date >= as_of),
            )
        result = await self.session.execute(stmt.order_by(model.id))
        instances = list(result.scalars().all())

        logger.debug(
            "Scanned {} - {} row(s), as_of: {}, match: {}",
            model.__name__,
            len(instances),
            as_of,
            dict(match or {}),
        )
        return instances

    async def create(self, data: Mapping[str, object]) -> T:
        """Insert a row and return it with its id and timestamps."""
        obj = self.model_class(**data)
        self.session.add(obj)
        # Flush to get the ID without committing
        await self.session.flush()
        await self.session.refresh(obj)

        logger.debug(
            "Created {} instance with ID: {}", self.model_class.__name__, obj.id
        )
        return obj

    async def update(self, entity_id: int, data: Mapping[str, object]) -> T | None:
        """Overwrite the given columns of one row.

        Returns:
            T | None: The updated row, or None if the id is unknown.
        """
        instance = await self.get_by_id(entity_id)
        if instance is None:
            return None

        for key, value in data.items():
            setattr(instance, key, value)

        await self.session.flush()
        await self.session.refresh(instance)

        logger.debug(
            "Updated {} instance ID {} - fields: {}",
            self.model_class.__name__,
            entity_id,
            sorted(data),
        )
        return instance

    async def delete(self, entity_id: int) -> bool:
        """Delete one row; False when nothing matched."""
        stmt = sql_delete(self.model_class).where(self.model_class.id == entity_id)
        result = await self.session.execute(stmt)
        deleted = result.rowcount > 0

        logger.debug(
            "Delete {} instance ID {}: {}",
            self.model_class.__name__,
            entity_id,
            "removed" if deleted else "not found",
        )
        return deleted
