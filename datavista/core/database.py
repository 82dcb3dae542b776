# datavista/core/database.py
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Generic, List, Optional, Sequence, TypeVar

from sqlalchemy import event, func, inspect
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.future import select
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import delete, update

from datavista.core.exceptions import AppError
from datavista.models.model import Base

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Database:
    """Owns the async engine and hands out one transactional session per unit of work"""

    def __init__(self, url: str, echo: bool = False, pool_size: int = 20, max_overflow: int = 10):
        self.url = url
        backend = make_url(url).get_backend_name()

        if backend == "sqlite":
            # One shared connection so in-memory databases survive across sessions
            self.engine = create_async_engine(
                url,
                echo=echo,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        else:
            self.engine = create_async_engine(
                url,
                echo=echo,
                pool_pre_ping=True,
                pool_size=pool_size,
                max_overflow=max_overflow,
            )

        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings) -> "Database":
        return cls(
            settings.database_url,
            echo=settings.SQL_ECHO,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except AppError:
            await session.rollback()
            raise
        except Exception as e:
            await session.rollback()
            logger.error(f"DB session error: {str(e)}")
            raise
        finally:
            await session.close()

    async def init_db(self) -> None:
        async with self.engine.begin() as conn:
            existing_tables = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names()
            )
            missing = set(Base.metadata.tables) - set(existing_tables)

            if missing:
                await conn.run_sync(Base.metadata.create_all)
                logger.info(f"Tables created: {', '.join(sorted(missing))}")
            else:
                logger.info("Tables already exist")

        logger.info("Database ready")

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("Database connections closed")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Repository(Generic[T]):
    def __init__(self, model_class):
        self.model_class = model_class

    async def create(self, session: AsyncSession, obj_data: Dict[str, Any]) -> T:
        db_obj = self.model_class(**obj_data)
        session.add(db_obj)
        await session.flush()
        await session.refresh(db_obj)
        return db_obj

    async def find_unique(self, session: AsyncSession, **keys: Any) -> Optional[T]:
        result = await session.execute(
            select(self.model_class)
            .filter_by(**keys)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def get(self, session: AsyncSession, id_value: Any) -> Optional[T]:
        return await self.find_unique(session, id=id_value)

    async def find_many(
        self,
        session: AsyncSession,
        criteria: Sequence[Any] = (),
        order_by: Sequence[Any] = (),
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[T]:
        query = select(self.model_class)

        for criterion in criteria:
            query = query.where(criterion)

        if order_by:
            query = query.order_by(*order_by)

        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        result = await session.execute(query)
        return list(result.scalars().all())

    async def count(self, session: AsyncSession, criteria: Sequence[Any] = ()) -> int:
        query = select(func.count(self.model_class.id))

        for criterion in criteria:
            query = query.where(criterion)

        result = await session.execute(query)
        return result.scalar()

    async def exists(self, session: AsyncSession, **keys: Any) -> bool:
        criteria = [getattr(self.model_class, key) == value for key, value in keys.items()]
        return await self.count(session, criteria) > 0

    async def update(self, session: AsyncSession, id_value: Any, obj_data: Dict[str, Any]) -> Optional[T]:
        if obj_data:
            await session.execute(
                update(self.model_class)
                .where(self.model_class.id == id_value)
                .values(**obj_data)
            )

        return await self.get(session, id_value)

    async def delete(self, session: AsyncSession, id_value: Any) -> bool:
        result = await session.execute(
            delete(self.model_class)
            .where(self.model_class.id == id_value)
        )
        return result.rowcount > 0

    async def delete_where(self, session: AsyncSession, *criteria: Any) -> int:
        result = await session.execute(delete(self.model_class).where(*criteria))
        return result.rowcount

    async def upsert(self, session: AsyncSession, keys: Dict[str, Any], values: Dict[str, Any]) -> T:
        """Insert a row or overwrite ``values`` on the row matching the unique ``keys``."""
        dialect = session.get_bind().dialect.name
        table = self.model_class.__table__

        if dialect == "mysql":
            stmt = mysql.insert(table).values(**keys, **values)
            stmt = stmt.on_duplicate_key_update(**values)
        elif dialect in ("postgresql", "sqlite"):
            insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
            stmt = insert(table).values(**keys, **values)
            stmt = stmt.on_conflict_do_update(index_elements=list(keys), set_=values)
        else:
            raise NotImplementedError(f"Upsert is not supported for dialect '{dialect}'")

        await session.execute(stmt)
        return await self.find_unique(session, **keys)
