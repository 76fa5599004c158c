"""Request and response models for the coffee marketplace API.

Range and business-rule checks (price > 0, scores within 1-5, ...) are left
to the coffee entity so that they surface as 400 responses with the common
error envelope; these models only fix the shape of the payloads.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.catalog.coffee import BeanType, Coffee, ProcessingMethod, RoastLevel


class SensoryAttributes(BaseModel):
    """The five sensory scores of a coffee (1-5)."""

    acidity: int
    body: int
    sweetness: int
    bitterness: int
    aroma: int


class CoffeeCreate(BaseModel):
    """Payload for creating a coffee."""

    name: str = Field(..., description="Coffee name", examples=["Huila Supremo"])
    description: str = Field(default="", description="Free text description")
    price: float = Field(..., description="Unit price, greater than 0")
    stock: int = Field(..., description="Units in stock, not negative")
    origin: str = Field(..., description="Country or region", examples=["Colombia"])
    altitude: Optional[float] = Field(default=None, description="Growing altitude in metres")
    roast_level: RoastLevel
    bean_type: BeanType
    processing_method: ProcessingMethod
    attributes: SensoryAttributes
    seller_id: str = Field(..., description="Seller owning the coffee")
    harvest_date: Optional[date] = None
    roast_date: Optional[date] = None
    images: List[str] = Field(default_factory=list, description="Image URLs")


class CoffeeUpdate(BaseModel):
    """Partial update payload.

    Extra keys are passed through so the entity can reject attempts to
    change ``id``, ``seller_id`` or read-only fields.
    """

    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    stock: Optional[int] = None
    origin: Optional[str] = None
    altitude: Optional[float] = None
    roast_level: Optional[RoastLevel] = None
    bean_type: Optional[BeanType] = None
    processing_method: Optional[ProcessingMethod] = None
    attributes: Optional[SensoryAttributes] = None
    harvest_date: Optional[date] = None
    roast_date: Optional[date] = None
    images: Optional[List[str]] = None

    def to_fields(self) -> Dict[str, Any]:
        """Return only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


class StockAdjustment(BaseModel):
    delta: int = Field(..., description="Units to add (negative to remove)")


class ReviewCreate(BaseModel):
    rating: float = Field(..., description="Review rating from 1 to 5")


class CoffeeResponse(BaseModel):
    """Serialized coffee record."""

    id: str
    name: str
    description: str
    price: float
    stock: int
    is_available: bool
    origin: str
    altitude: Optional[float]
    roast_level: RoastLevel
    bean_type: BeanType
    processing_method: ProcessingMethod
    attributes: SensoryAttributes
    images: List[str]
    seller_id: str
    harvest_date: Optional[date]
    roast_date: Optional[date]
    rating: float
    review_count: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, coffee: Coffee) -> "CoffeeResponse":
        return cls(**coffee.to_dict())


class ErrorResponse(BaseModel):
    """Error envelope returned for every failed request."""

    message: str = Field(..., description="Generic description of the failure")
    error: str = Field(..., description="Underlying error text")
