"""Cache coffee store.

A read-mostly document store that supplements the primary store. Each
document has its own document id (``_id``) next to the coffee's domain id;
lookups accept either and returned coffees always carry the domain id.

The cache is not authoritative for stock, so stock mutations are refused.
Its contents can be persisted to and restored from a joblib snapshot.
"""

import copy
import logging
import secrets
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import joblib

from src.catalog.coffee import Coffee
from src.catalog.repository import CoffeeRepository, CoffeeSearchFilters
from src.catalog.similarity import is_similar, rank_by_sensory_profile
from src.config import DEFAULT_RECOMMENDATION_LIMIT
from src.exceptions import NotFoundError, UnsupportedOperationError, ValidationError

# Configure module logger
logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1

Document = Dict[str, Any]


def new_document_id() -> str:
    """Return a 24-character hex document id."""
    return secrets.token_hex(12)


class CacheStoreAdapter(CoffeeRepository):
    """In-process document implementation of the coffee repository.

    Thread-safe: every operation holds the store lock.
    """

    store_name = "cache"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._documents: Dict[str, Document] = {}
        self._document_ids: Dict[str, str] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    # ------------------------------------------------------------------
    # Document helpers (callers hold the lock)
    # ------------------------------------------------------------------

    def _resolve(self, coffee_id: str) -> Optional[str]:
        if coffee_id in self._document_ids:
            return self._document_ids[coffee_id]
        if coffee_id in self._documents:
            return coffee_id
        return None

    def _store(self, coffee: Coffee, document_id: str) -> None:
        document = coffee.to_dict()
        document["_id"] = document_id
        self._documents[document_id] = document
        self._document_ids[coffee.id] = document_id

    @staticmethod
    def _to_entity(document: Document) -> Coffee:
        data = {key: copy.deepcopy(value) for key, value in document.items() if key != "_id"}
        return Coffee.from_dict(data)

    def _all(self) -> List[Coffee]:
        return [self._to_entity(document) for document in self._documents.values()]

    def document_id_for(self, coffee_id: str) -> Optional[str]:
        """Return the document id under which a coffee is cached."""
        with self._lock:
            return self._document_ids.get(coffee_id)

    # ------------------------------------------------------------------
    # Repository operations
    # ------------------------------------------------------------------

    def get_by_id(self, coffee_id: str) -> Optional[Coffee]:
        with self._lock:
            document_id = self._resolve(coffee_id)
            if document_id is None:
                return None
            return self._to_entity(self._documents[document_id])

    def list_all(self) -> List[Coffee]:
        with self._lock:
            return self._all()

    def create(self, coffee: Coffee) -> Coffee:
        with self._lock:
            if coffee.id in self._document_ids:
                raise ValidationError(f"Coffee '{coffee.id}' is already cached", field="id")
            document_id = new_document_id()
            self._store(coffee, document_id)
            logger.debug(
                "Cached coffee",
                extra={"coffee_id": coffee.id, "document_id": document_id},
            )
            return self._to_entity(self._documents[document_id])

    def update(self, coffee_id: str, fields: Mapping[str, Any]) -> Coffee:
        with self._lock:
            document_id = self._resolve(coffee_id)
            if document_id is None:
                raise NotFoundError(coffee_id, store=self.store_name)
            coffee = self._to_entity(self._documents[document_id])
            coffee.apply_partial_update(fields)
            self._store(coffee, document_id)
            return coffee

    def delete(self, coffee_id: str) -> None:
        with self._lock:
            document_id = self._resolve(coffee_id)
            if document_id is None:
                return
            document = self._documents.pop(document_id)
            self._document_ids.pop(document["id"], None)
            logger.debug("Evicted coffee", extra={"coffee_id": document["id"]})

    def upsert(self, coffee: Coffee) -> Coffee:
        with self._lock:
            document_id = self._document_ids.get(coffee.id) or new_document_id()
            self._store(coffee, document_id)
            return self._to_entity(self._documents[document_id])

    def find_by_name(self, name: str) -> Optional[Coffee]:
        with self._lock:
            for document in self._documents.values():
                if document["name"] == name:
                    return self._to_entity(document)
            return None

    def search(self, filters: CoffeeSearchFilters) -> List[Coffee]:
        with self._lock:
            return [coffee for coffee in self._all() if filters.matches(coffee)]

    def find_by_seller_id(self, seller_id: str) -> List[Coffee]:
        with self._lock:
            return [
                self._to_entity(document)
                for document in self._documents.values()
                if document["seller_id"] == seller_id
            ]

    def adjust_stock(self, coffee_id: str, delta: int) -> Coffee:
        raise UnsupportedOperationError("adjust_stock", self.store_name)

    def add_review(self, coffee_id: str, rating: float) -> Coffee:
        with self._lock:
            document_id = self._resolve(coffee_id)
            if document_id is None:
                raise NotFoundError(coffee_id, store=self.store_name)
            coffee = self._to_entity(self._documents[document_id])
            coffee.add_review(rating)
            self._store(coffee, document_id)
            return coffee

    def find_top_rated(self, limit: int = DEFAULT_RECOMMENDATION_LIMIT) -> List[Coffee]:
        if limit <= 0:
            return []
        with self._lock:
            coffees = self._all()
        coffees.sort(key=lambda coffee: (coffee.rating, coffee.review_count), reverse=True)
        return coffees[:limit]

    def find_similar(
        self, reference_id: str, limit: int = DEFAULT_RECOMMENDATION_LIMIT
    ) -> List[Coffee]:
        if limit <= 0:
            return []
        with self._lock:
            document_id = self._resolve(reference_id)
            if document_id is None:
                logger.info(
                    "Similarity reference not in cache store",
                    extra={"coffee_id": reference_id},
                )
                return []
            reference = self._to_entity(self._documents[document_id])
            candidates = [
                coffee for coffee in self._all() if is_similar(reference, coffee)
            ]
        return rank_by_sensory_profile(reference, candidates, limit)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def save_snapshot(self, path: Union[str, Path]) -> int:
        """Persist every cached document to a joblib file.

        Args:
            path: Destination file. Parent directories are created.

        Returns:
            Number of documents written.
        """
        snapshot_path = Path(path)
        snapshot_path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            documents = copy.deepcopy(list(self._documents.values()))
        joblib.dump({"version": SNAPSHOT_VERSION, "documents": documents}, snapshot_path)
        logger.info(
            "Saved cache snapshot",
            extra={"path": str(snapshot_path), "num_documents": len(documents)},
        )
        return len(documents)

    def load_snapshot(self, path: Union[str, Path]) -> int:
        """Replace the cache contents with a snapshot written by :meth:`save_snapshot`.

        Document ids are preserved.

        Returns:
            Number of documents loaded.

        Raises:
            FileNotFoundError: If the snapshot does not exist.
            ValueError: If the snapshot has an unknown format.
            ValidationError: If a cached coffee violates an invariant.
        """
        snapshot_path = Path(path)
        if not snapshot_path.exists():
            raise FileNotFoundError(f"Cache snapshot not found: {snapshot_path}")

        snapshot = joblib.load(snapshot_path)
        if not isinstance(snapshot, dict) or snapshot.get("version") != SNAPSHOT_VERSION:
            raise ValueError(f"Unsupported cache snapshot format in {snapshot_path}")

        # Rehydrate first so a bad document leaves the cache untouched
        loaded = [
            (document["_id"], self._to_entity(document))
            for document in snapshot["documents"]
        ]
        with self._lock:
            self._documents.clear()
            self._document_ids.clear()
            for document_id, coffee in loaded:
                self._store(coffee, document_id)

        logger.info(
            "Loaded cache snapshot",
            extra={"path": str(snapshot_path), "num_documents": len(loaded)},
        )
        return len(loaded)
