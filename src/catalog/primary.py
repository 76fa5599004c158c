"""Primary coffee store backed by a relational database.

This is the authoritative store for coffee records. It is reached through
SQLAlchemy, so any supported database works; SQLite is the local default and
PostgreSQL the production target.
"""

import logging
import threading
from contextlib import contextmanager, nullcontext
from typing import Any, Iterator, List, Mapping, Optional

from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.catalog.coffee import Coffee
from src.catalog.orm import Base, CoffeeRow
from src.catalog.repository import CoffeeRepository, CoffeeSearchFilters
from src.catalog.similarity import rank_by_sensory_profile
from src.config import DEFAULT_RECOMMENDATION_LIMIT, DEFAULT_STORE_TIMEOUT_SECONDS
from src.exceptions import NotFoundError, ValidationError

# Configure module logger
logger = logging.getLogger(__name__)


def create_store_engine(
    database_url: str,
    timeout_seconds: float = DEFAULT_STORE_TIMEOUT_SECONDS,
) -> Engine:
    """Create an engine that bounds how long each store call may wait.

    Args:
        database_url: SQLAlchemy database URL.
        timeout_seconds: Per-call timeout applied to connection checkout and,
            where the driver supports it, to statements.

    Returns:
        Configured SQLAlchemy engine.
    """
    engine_kwargs: dict = {"pool_pre_ping": True, "echo": False}

    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": timeout_seconds,
        }
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            # One shared connection, otherwise every session sees an empty database
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs["pool_timeout"] = timeout_seconds
        engine_kwargs["pool_recycle"] = 300
        if database_url.startswith("postgresql"):
            engine_kwargs["connect_args"] = {
                "options": f"-c statement_timeout={int(timeout_seconds * 1000)}"
            }

    logger.info(
        "Creating primary store engine",
        extra={"database": database_url.split("@")[-1], "timeout_s": timeout_seconds},
    )
    return create_engine(database_url, **engine_kwargs)


class PrimaryStoreAdapter(CoffeeRepository):
    """Relational implementation of the coffee repository."""

    store_name = "primary"

    def __init__(self, engine: Engine):
        self.engine = engine
        # SQLite ignores SELECT ... FOR UPDATE, so writers in this process queue here
        self._write_lock = threading.Lock() if engine.dialect.name == "sqlite" else None
        self._session_factory = sessionmaker(
            bind=engine, autoflush=False, expire_on_commit=False
        )

    @classmethod
    def from_url(
        cls,
        database_url: str,
        timeout_seconds: float = DEFAULT_STORE_TIMEOUT_SECONDS,
    ) -> "PrimaryStoreAdapter":
        return cls(create_store_engine(database_url, timeout_seconds))

    def init_schema(self) -> None:
        """Create the coffee tables if they do not exist."""
        Base.metadata.create_all(self.engine)
        logger.info("Primary store schema ready")

    @contextmanager
    def _session(self, locked: bool = False) -> Iterator[Session]:
        """Yield a session that commits on success and rolls back on error.

        Args:
            locked: Set for read-modify-write calls so they do not interleave.
        """
        guard = self._write_lock if locked and self._write_lock is not None else nullcontext()
        with guard:
            session = self._session_factory()
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    def _get_row(self, session: Session, coffee_id: str, for_update: bool = False) -> CoffeeRow:
        stmt = select(CoffeeRow).where(CoffeeRow.id == coffee_id)
        if for_update:
            stmt = stmt.with_for_update()
        row = session.scalars(stmt).first()
        if row is None:
            raise NotFoundError(coffee_id, store=self.store_name)
        return row

    def get_by_id(self, coffee_id: str) -> Optional[Coffee]:
        with self._session() as session:
            row = session.get(CoffeeRow, coffee_id)
            return row.to_entity() if row is not None else None

    def list_all(self) -> List[Coffee]:
        with self._session() as session:
            rows = session.scalars(select(CoffeeRow).order_by(CoffeeRow.created_at))
            return [row.to_entity() for row in rows]

    def create(self, coffee: Coffee) -> Coffee:
        with self._session() as session:
            if session.get(CoffeeRow, coffee.id) is not None:
                raise ValidationError(f"Coffee '{coffee.id}' already exists", field="id")
            row = CoffeeRow.from_entity(coffee)
            session.add(row)
            session.flush()
            logger.info("Created coffee", extra={"coffee_id": coffee.id, "store": self.store_name})
            return row.to_entity()

    def update(self, coffee_id: str, fields: Mapping[str, Any]) -> Coffee:
        with self._session(locked=True) as session:
            row = self._get_row(session, coffee_id, for_update=True)
            coffee = row.to_entity()
            coffee.apply_partial_update(fields)
            row.update_from(coffee)
            logger.info(
                "Updated coffee",
                extra={"coffee_id": coffee_id, "fields": sorted(fields), "store": self.store_name},
            )
            return coffee

    def delete(self, coffee_id: str) -> None:
        with self._session() as session:
            row = session.get(CoffeeRow, coffee_id)
            if row is None:
                logger.debug("Delete of absent coffee ignored", extra={"coffee_id": coffee_id})
                return
            session.delete(row)
            logger.info("Deleted coffee", extra={"coffee_id": coffee_id, "store": self.store_name})

    def upsert(self, coffee: Coffee) -> Coffee:
        with self._session() as session:
            row = session.get(CoffeeRow, coffee.id)
            if row is None:
                row = CoffeeRow.from_entity(coffee)
                session.add(row)
            else:
                row.update_from(coffee)
            session.flush()
            return row.to_entity()

    def find_by_name(self, name: str) -> Optional[Coffee]:
        with self._session() as session:
            row = session.scalars(
                select(CoffeeRow).where(CoffeeRow.name == name).limit(1)
            ).first()
            return row.to_entity() if row is not None else None

    def search(self, filters: CoffeeSearchFilters) -> List[Coffee]:
        stmt = select(CoffeeRow)

        if filters.roast_level is not None:
            stmt = stmt.where(CoffeeRow.roast_level == filters.roast_level)
        if filters.bean_type is not None:
            stmt = stmt.where(CoffeeRow.bean_type == filters.bean_type)
        if filters.origin is not None:
            stmt = stmt.where(CoffeeRow.origin == filters.origin)
        if filters.min_price is not None:
            stmt = stmt.where(CoffeeRow.price >= filters.min_price)
        if filters.max_price is not None:
            stmt = stmt.where(CoffeeRow.price <= filters.max_price)
        if filters.min_rating is not None:
            stmt = stmt.where(CoffeeRow.rating >= filters.min_rating)
        if filters.seller_id is not None:
            stmt = stmt.where(CoffeeRow.seller_id == filters.seller_id)
        if filters.is_available is not None:
            stmt = stmt.where(CoffeeRow.is_available == filters.is_available)

        with self._session() as session:
            rows = session.scalars(stmt.order_by(CoffeeRow.created_at))
            results = [row.to_entity() for row in rows]

        logger.debug(
            "Searched primary store",
            extra={"filters": str(filters.active()), "num_results": len(results)},
        )
        return results

    def find_by_seller_id(self, seller_id: str) -> List[Coffee]:
        with self._session() as session:
            rows = session.scalars(
                select(CoffeeRow)
                .where(CoffeeRow.seller_id == seller_id)
                .order_by(CoffeeRow.created_at)
            )
            return [row.to_entity() for row in rows]

    def adjust_stock(self, coffee_id: str, delta: int) -> Coffee:
        with self._session(locked=True) as session:
            row = self._get_row(session, coffee_id, for_update=True)
            coffee = row.to_entity()
            coffee.adjust_stock(delta)
            row.update_from(coffee)
            logger.info(
                "Adjusted stock",
                extra={"coffee_id": coffee_id, "delta": delta, "stock": coffee.stock},
            )
            return coffee

    def add_review(self, coffee_id: str, rating: float) -> Coffee:
        with self._session(locked=True) as session:
            row = self._get_row(session, coffee_id, for_update=True)
            coffee = row.to_entity()
            coffee.add_review(rating)
            row.update_from(coffee)
            logger.info(
                "Added review",
                extra={
                    "coffee_id": coffee_id,
                    "rating": coffee.rating,
                    "review_count": coffee.review_count,
                },
            )
            return coffee

    def find_top_rated(self, limit: int = DEFAULT_RECOMMENDATION_LIMIT) -> List[Coffee]:
        if limit <= 0:
            return []
        with self._session() as session:
            rows = session.scalars(
                select(CoffeeRow)
                .order_by(CoffeeRow.rating.desc(), CoffeeRow.review_count.desc())
                .limit(limit)
            )
            return [row.to_entity() for row in rows]

    def find_similar(
        self, reference_id: str, limit: int = DEFAULT_RECOMMENDATION_LIMIT
    ) -> List[Coffee]:
        if limit <= 0:
            return []
        with self._session() as session:
            reference_row = session.get(CoffeeRow, reference_id)
            if reference_row is None:
                logger.info(
                    "Similarity reference not in primary store",
                    extra={"coffee_id": reference_id},
                )
                return []
            reference = reference_row.to_entity()
            rows = session.scalars(
                select(CoffeeRow)
                .where(
                    CoffeeRow.roast_level == reference.roast_level,
                    CoffeeRow.bean_type == reference.bean_type,
                    CoffeeRow.id != reference.id,
                )
                .order_by(CoffeeRow.created_at)
            )
            candidates = [row.to_entity() for row in rows]

        return rank_by_sensory_profile(reference, candidates, limit)
