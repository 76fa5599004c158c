"""Repository contract shared by the coffee stores.

Both the primary (relational) store and the cache (document) store implement
:class:`CoffeeRepository`. Read operations behave identically across the two;
write support may differ, e.g. the cache store refuses stock mutations.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from src.catalog.coffee import BeanType, Coffee, RoastLevel, coerce_enum
from src.config import DEFAULT_RECOMMENDATION_LIMIT


@dataclass
class CoffeeSearchFilters:
    """Filters for :meth:`CoffeeRepository.search`.

    Only the filters that are set are applied, as a conjunction. There are no
    implicit defaults: an empty filter set matches every coffee.
    """

    roast_level: Optional[Union[RoastLevel, str]] = None
    bean_type: Optional[Union[BeanType, str]] = None
    origin: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_rating: Optional[float] = None
    seller_id: Optional[str] = None
    is_available: Optional[bool] = None

    def __post_init__(self) -> None:
        if self.roast_level is not None:
            self.roast_level = coerce_enum(RoastLevel, self.roast_level, "roast_level")
        if self.bean_type is not None:
            self.bean_type = coerce_enum(BeanType, self.bean_type, "bean_type")

    def active(self) -> Dict[str, Any]:
        """Return only the filters that are set."""
        return {key: value for key, value in asdict(self).items() if value is not None}

    def matches(self, coffee: Coffee) -> bool:
        """Check a coffee against every active filter."""
        if self.roast_level is not None and coffee.roast_level != self.roast_level:
            return False
        if self.bean_type is not None and coffee.bean_type != self.bean_type:
            return False
        if self.origin is not None and coffee.origin != self.origin:
            return False
        if self.min_price is not None and coffee.price < self.min_price:
            return False
        if self.max_price is not None and coffee.price > self.max_price:
            return False
        if self.min_rating is not None and coffee.rating < self.min_rating:
            return False
        if self.seller_id is not None and coffee.seller_id != self.seller_id:
            return False
        if self.is_available is not None and coffee.is_available != self.is_available:
            return False
        return True


class CoffeeRepository(ABC):
    """Storage operations over coffee records."""

    # Short store label used in logs and error messages
    store_name = "coffee"

    @abstractmethod
    def get_by_id(self, coffee_id: str) -> Optional[Coffee]:
        """Return the coffee with this id, or None."""

    @abstractmethod
    def list_all(self) -> List[Coffee]:
        """Return every coffee in the store."""

    @abstractmethod
    def create(self, coffee: Coffee) -> Coffee:
        """Store a new coffee.

        Raises:
            ValidationError: If a coffee with the same id already exists.
        """

    @abstractmethod
    def update(self, coffee_id: str, fields: Mapping[str, Any]) -> Coffee:
        """Apply a partial update and return the stored coffee.

        Raises:
            NotFoundError: If the coffee does not exist.
            ValidationError: If the update violates an invariant.
        """

    @abstractmethod
    def delete(self, coffee_id: str) -> None:
        """Delete a coffee. Deleting an absent id is not an error."""

    @abstractmethod
    def upsert(self, coffee: Coffee) -> Coffee:
        """Insert the coffee or replace the stored copy with the same id."""

    @abstractmethod
    def find_by_name(self, name: str) -> Optional[Coffee]:
        """Return the coffee whose name matches exactly, or None."""

    @abstractmethod
    def search(self, filters: CoffeeSearchFilters) -> List[Coffee]:
        """Return the coffees matching every active filter."""

    @abstractmethod
    def find_by_seller_id(self, seller_id: str) -> List[Coffee]:
        """Return every coffee of a seller."""

    @abstractmethod
    def adjust_stock(self, coffee_id: str, delta: int) -> Coffee:
        """Add ``delta`` units to the stock and return the stored coffee.

        Raises:
            NotFoundError: If the coffee does not exist.
            InsufficientStockError: If the stock would become negative.
            UnsupportedOperationError: If the store does not own stock.
        """

    @abstractmethod
    def add_review(self, coffee_id: str, rating: float) -> Coffee:
        """Fold a review rating into the stored coffee and return it.

        The read and the write happen as one step, so concurrent reviews
        of the same coffee are all counted.

        Raises:
            NotFoundError: If the coffee does not exist.
            ValidationError: If the rating is outside [1, 5].
        """

    @abstractmethod
    def find_top_rated(self, limit: int = DEFAULT_RECOMMENDATION_LIMIT) -> List[Coffee]:
        """Return up to ``limit`` coffees, best rated first."""

    @abstractmethod
    def find_similar(
        self, reference_id: str, limit: int = DEFAULT_RECOMMENDATION_LIMIT
    ) -> List[Coffee]:
        """Return up to ``limit`` coffees similar to the reference.

        Similar coffees share the reference's roast level and bean type; the
        reference itself is excluded. Matches are ordered by closeness of
        their sensory profile to the reference. An absent reference yields an
        empty list.
        """
