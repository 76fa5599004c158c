"""Coffee record entity.

A coffee record is a sellable coffee product with sensory attributes, price
and stock. The entity enforces its own invariants on construction and on
every mutation; a mutation that fails leaves the record untouched.
"""

import copy
import math
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar, Union

from src.exceptions import InsufficientStockError, ValidationError


SENSORY_MIN = 1
SENSORY_MAX = 5
SENSORY_FIELDS = ("acidity", "body", "sweetness", "bitterness", "aroma")

REVIEW_MIN = 1
REVIEW_MAX = 5
RATING_MAX = 5.0

# Fields a partial update may never touch
IMMUTABLE_FIELDS = frozenset({"id", "seller_id"})
READ_ONLY_FIELDS = frozenset(
    {"rating", "review_count", "created_at", "updated_at", "is_available"}
)
UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "description",
        "origin",
        "altitude",
        "price",
        "stock",
        "roast_level",
        "bean_type",
        "processing_method",
        "attributes",
        "harvest_date",
        "roast_date",
        "images",
    }
)


class RoastLevel(str, Enum):
    LIGHT = "LIGHT"
    MEDIUM = "MEDIUM"
    MEDIUM_DARK = "MEDIUM_DARK"
    DARK = "DARK"


class BeanType(str, Enum):
    ARABICA = "ARABICA"
    ROBUSTA = "ROBUSTA"
    BLEND = "BLEND"


class ProcessingMethod(str, Enum):
    WASHED = "WASHED"
    NATURAL = "NATURAL"
    HONEY = "HONEY"
    ANAEROBIC = "ANAEROBIC"


E = TypeVar("E", bound=Enum)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _round_rating(value: float) -> float:
    """Round a rating to one decimal place, halves rounding up."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def coerce_enum(enum_cls: Type[E], value: Any, field: str) -> E:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().upper())
        except ValueError:
            pass
    allowed = ", ".join(member.value for member in enum_cls)
    raise ValidationError(f"{field} must be one of: {allowed}; got {value!r}", field=field)


def _coerce_date(value: Any, field: str) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            pass
    raise ValidationError(f"{field} must be an ISO date, got {value!r}", field=field)


def _as_utc(value: datetime) -> datetime:
    # Some stores hand back naive datetimes; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _validate_score(field: str, value: Any) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer, got {value!r}", field=field)
    if not SENSORY_MIN <= value <= SENSORY_MAX:
        raise ValidationError(
            f"{field} must be between {SENSORY_MIN} and {SENSORY_MAX}, got {value}",
            field=field,
        )
    return value


@dataclass(frozen=True)
class SensoryProfile:
    """The five sensory scores of a coffee, each an integer from 1 to 5."""

    acidity: int
    body: int
    sweetness: int
    bitterness: int
    aroma: int

    def __post_init__(self) -> None:
        for field in SENSORY_FIELDS:
            _validate_score(field, getattr(self, field))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SensoryProfile":
        """Build a profile from a mapping holding exactly the five scores.

        Raises:
            ValidationError: If a score is missing, unknown or out of range.
        """
        if isinstance(data, SensoryProfile):
            return data
        if not isinstance(data, Mapping):
            raise ValidationError("attributes must be a mapping", field="attributes")
        missing = [field for field in SENSORY_FIELDS if field not in data]
        if missing:
            raise ValidationError(
                f"attributes missing sensory scores: {', '.join(missing)}",
                field="attributes",
            )
        unknown = sorted(set(data) - set(SENSORY_FIELDS))
        if unknown:
            raise ValidationError(
                f"attributes has unknown keys: {', '.join(unknown)}",
                field="attributes",
            )
        return cls(**{field: data[field] for field in SENSORY_FIELDS})

    def to_dict(self) -> Dict[str, int]:
        return {field: getattr(self, field) for field in SENSORY_FIELDS}

    def as_vector(self) -> List[int]:
        return [getattr(self, field) for field in SENSORY_FIELDS]


class Coffee:
    """A coffee product offered by a seller.

    Use :meth:`create` for a brand new record (mints id and timestamps) and
    :meth:`reconstruct` to rehydrate a stored record (preserves them).

    Invariants, checked on construction and on every mutation:
        - price > 0 and stock >= 0
        - every sensory score is within [1, 5]
        - ``is_available`` is ``stock > 0``
        - ``updated_at`` advances on each mutation; ``id`` and
          ``created_at`` never change
    """

    def __init__(
        self,
        *,
        id: str,
        name: str,
        description: str,
        price: float,
        stock: int,
        origin: str,
        roast_level: Union[RoastLevel, str],
        bean_type: Union[BeanType, str],
        processing_method: Union[ProcessingMethod, str],
        attributes: Union[SensoryProfile, Mapping[str, Any]],
        seller_id: str,
        created_at: datetime,
        updated_at: datetime,
        altitude: Optional[float] = None,
        harvest_date: Optional[date] = None,
        roast_date: Optional[date] = None,
        images: Optional[List[str]] = None,
        rating: float = 0.0,
        review_count: int = 0,
    ):
        if not isinstance(id, str) or not id:
            raise ValidationError("id must be a non-empty string", field="id")
        if not isinstance(seller_id, str) or not seller_id:
            raise ValidationError("seller_id must be a non-empty string", field="seller_id")

        self._id = id
        self._seller_id = seller_id
        self._created_at = _as_utc(created_at)

        self.name = self._check_name(name)
        self.description = self._check_text("description", description)
        self.origin = self._check_text("origin", origin)
        self.altitude = self._check_altitude(altitude)
        self.price = self._check_price(price)
        self.stock = self._check_stock(stock)
        self.roast_level = coerce_enum(RoastLevel, roast_level, "roast_level")
        self.bean_type = coerce_enum(BeanType, bean_type, "bean_type")
        self.processing_method = coerce_enum(
            ProcessingMethod, processing_method, "processing_method"
        )
        self.attributes = SensoryProfile.from_dict(attributes)
        self.harvest_date = _coerce_date(harvest_date, "harvest_date")
        self.roast_date = _coerce_date(roast_date, "roast_date")
        self.images = self._check_images(images)
        self.rating = self._check_rating(rating)
        self.review_count = self._check_review_count(review_count)
        self.updated_at = _as_utc(updated_at)

        if self.updated_at < self._created_at:
            raise ValidationError("updated_at cannot precede created_at", field="updated_at")

    # ------------------------------------------------------------------
    # Construction paths
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        *,
        name: str,
        description: str,
        price: float,
        stock: int,
        origin: str,
        roast_level: Union[RoastLevel, str],
        bean_type: Union[BeanType, str],
        processing_method: Union[ProcessingMethod, str],
        attributes: Union[SensoryProfile, Mapping[str, Any]],
        seller_id: str,
        altitude: Optional[float] = None,
        harvest_date: Optional[date] = None,
        roast_date: Optional[date] = None,
        images: Optional[List[str]] = None,
    ) -> "Coffee":
        """Create a new coffee with a fresh id, timestamps and no reviews.

        Raises:
            ValidationError: If any invariant is violated.
        """
        now = _utcnow()
        return cls(
            id=str(uuid.uuid4()),
            name=name,
            description=description,
            price=price,
            stock=stock,
            origin=origin,
            roast_level=roast_level,
            bean_type=bean_type,
            processing_method=processing_method,
            attributes=attributes,
            seller_id=seller_id,
            altitude=altitude,
            harvest_date=harvest_date,
            roast_date=roast_date,
            images=images,
            created_at=now,
            updated_at=now,
        )

    @classmethod
    def reconstruct(cls, **fields: Any) -> "Coffee":
        """Rehydrate a stored coffee, keeping its id, timestamps and reviews.

        ``is_available`` is ignored if present; it is always derived from
        the stock.

        Raises:
            ValidationError: If a required field is missing or any invariant
                is violated.
        """
        fields = dict(fields)
        fields.pop("is_available", None)
        try:
            return cls(**fields)
        except TypeError as e:
            raise ValidationError(f"Cannot reconstruct coffee: {e}") from e

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Coffee":
        """Rehydrate a coffee from a :meth:`to_dict` snapshot."""
        fields = dict(data)
        for key in ("created_at", "updated_at"):
            if isinstance(fields.get(key), str):
                fields[key] = datetime.fromisoformat(fields[key])
        return cls.reconstruct(**fields)

    # ------------------------------------------------------------------
    # Read-only identity
    # ------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def seller_id(self) -> str:
        return self._seller_id

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def is_available(self) -> bool:
        return self.stock > 0

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def adjust_stock(self, delta: int) -> None:
        """Add ``delta`` (possibly negative) units to the stock.

        Raises:
            ValidationError: If delta is not an integer.
            InsufficientStockError: If the stock would become negative.
        """
        if not isinstance(delta, int) or isinstance(delta, bool):
            raise ValidationError(f"stock delta must be an integer, got {delta!r}", field="stock")
        if self.stock + delta < 0:
            raise InsufficientStockError(self._id, self.stock, delta)
        self.stock += delta
        self._touch()

    def set_price(self, new_price: float) -> None:
        """Replace the price.

        Raises:
            ValidationError: If the price is not a positive number.
        """
        self.price = self._check_price(new_price)
        self._touch()

    def add_review(self, rating: Union[int, float]) -> None:
        """Fold a review rating into the running average.

        The average is kept to one decimal place.

        Raises:
            ValidationError: If the rating is outside [1, 5].
        """
        if not _is_number(rating) or not REVIEW_MIN <= rating <= REVIEW_MAX:
            raise ValidationError(
                f"review rating must be between {REVIEW_MIN} and {REVIEW_MAX}, got {rating!r}",
                field="rating",
            )
        new_count = self.review_count + 1
        total = self.rating * self.review_count + rating
        self.rating = _round_rating(total / new_count)
        self.review_count = new_count
        self._touch()

    def apply_partial_update(self, fields: Mapping[str, Any]) -> None:
        """Apply the provided fields and leave the others untouched.

        Price goes through :meth:`set_price`, stock through
        :meth:`adjust_stock` (as a delta against the current stock), and
        ``attributes`` replaces the whole sensory profile. The update is all
        or nothing: if any field is rejected, nothing changes.

        Raises:
            ValidationError: If ``id`` or ``seller_id`` is present, if a
                read-only or unknown field is present, or if a value violates
                an invariant.
            InsufficientStockError: If the new stock is negative.
        """
        keys = set(fields)
        immutable = sorted(keys & IMMUTABLE_FIELDS)
        if immutable:
            raise ValidationError(
                f"Cannot update immutable fields: {', '.join(immutable)}",
                field=immutable[0],
            )
        read_only = sorted(keys & READ_ONLY_FIELDS)
        if read_only:
            raise ValidationError(
                f"Cannot update read-only fields: {', '.join(read_only)}",
                field=read_only[0],
            )
        unknown = sorted(keys - UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(
                f"Unknown fields: {', '.join(unknown)}", field=unknown[0]
            )
        if not keys:
            return

        staged = copy.deepcopy(self)
        staged._apply_fields(fields)
        self.__dict__.update(staged.__dict__)

    def _apply_fields(self, fields: Mapping[str, Any]) -> None:
        for key, value in fields.items():
            if key == "price":
                self.set_price(value)
            elif key == "stock":
                new_stock = self._check_int("stock", value)
                self.adjust_stock(new_stock - self.stock)
            elif key == "attributes":
                self.attributes = SensoryProfile.from_dict(value)
            elif key == "name":
                self.name = self._check_name(value)
            elif key in ("description", "origin"):
                setattr(self, key, self._check_text(key, value))
            elif key == "altitude":
                self.altitude = self._check_altitude(value)
            elif key == "roast_level":
                self.roast_level = coerce_enum(RoastLevel, value, key)
            elif key == "bean_type":
                self.bean_type = coerce_enum(BeanType, value, key)
            elif key == "processing_method":
                self.processing_method = coerce_enum(ProcessingMethod, value, key)
            elif key in ("harvest_date", "roast_date"):
                setattr(self, key, _coerce_date(value, key))
            elif key == "images":
                self.images = self._check_images(value)
        self._touch()

    def _touch(self) -> None:
        now = _utcnow()
        # Clock resolution can repeat a timestamp; updated_at must still move
        if now <= self.updated_at:
            now = self.updated_at + timedelta(microseconds=1)
        self.updated_at = now

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_name(value: Any) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError("name must be a non-empty string", field="name")
        return value

    @staticmethod
    def _check_text(field: str, value: Any) -> str:
        if value is None:
            return ""
        if not isinstance(value, str):
            raise ValidationError(f"{field} must be a string", field=field)
        return value

    @staticmethod
    def _check_int(field: str, value: Any) -> int:
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValidationError(f"{field} must be an integer, got {value!r}", field=field)
        return value

    @staticmethod
    def _check_price(value: Any) -> float:
        if not _is_number(value) or not math.isfinite(value) or value <= 0:
            raise ValidationError(
                f"price must be a finite number greater than 0, got {value!r}", field="price"
            )
        return float(value)

    @classmethod
    def _check_stock(cls, value: Any) -> int:
        value = cls._check_int("stock", value)
        if value < 0:
            raise ValidationError(f"stock cannot be negative, got {value}", field="stock")
        return value

    @staticmethod
    def _check_altitude(value: Any) -> Optional[float]:
        if value is None:
            return None
        if not _is_number(value) or not math.isfinite(value) or value < 0:
            raise ValidationError(
                f"altitude must be a finite non-negative number, got {value!r}", field="altitude"
            )
        return float(value)

    @staticmethod
    def _check_images(value: Any) -> List[str]:
        if value is None:
            return []
        if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
            raise ValidationError("images must be a list of URLs", field="images")
        return list(value)

    @staticmethod
    def _check_rating(value: Any) -> float:
        if not _is_number(value) or not 0 <= value <= RATING_MAX:
            raise ValidationError(
                f"rating must be between 0 and {RATING_MAX}, got {value!r}", field="rating"
            )
        return _round_rating(value)

    @classmethod
    def _check_review_count(cls, value: Any) -> int:
        value = cls._check_int("review_count", value)
        if value < 0:
            raise ValidationError("review_count cannot be negative", field="review_count")
        return value

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Return a plain snapshot of every field."""
        return {
            "id": self._id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "stock": self.stock,
            "is_available": self.is_available,
            "origin": self.origin,
            "altitude": self.altitude,
            "roast_level": self.roast_level.value,
            "bean_type": self.bean_type.value,
            "processing_method": self.processing_method.value,
            "attributes": self.attributes.to_dict(),
            "images": list(self.images),
            "seller_id": self._seller_id,
            "harvest_date": self.harvest_date,
            "roast_date": self.roast_date,
            "rating": self.rating,
            "review_count": self.review_count,
            "created_at": self._created_at,
            "updated_at": self.updated_at,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Coffee):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return f"<Coffee(id='{self._id}', name='{self.name}')>"
