"""SQLAlchemy table mapping for the primary coffee store."""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum as SQLEnum,
    Float,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base

from src.catalog.coffee import BeanType, Coffee, ProcessingMethod, RoastLevel

Base = declarative_base()


class CoffeeRow(Base):
    """Persisted coffee record."""

    __tablename__ = "coffees"

    id = Column(String(36), primary_key=True, comment="Domain id (UUID as string)")
    name = Column(String(200), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    price = Column(Float, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    is_available = Column(Boolean, nullable=False, default=False, index=True,
                          comment="Derived from stock; stored for filtering")
    origin = Column(String(200), nullable=False, default="", index=True)
    altitude = Column(Float, nullable=True)

    roast_level = Column(SQLEnum(RoastLevel), nullable=False)
    bean_type = Column(SQLEnum(BeanType), nullable=False)
    processing_method = Column(SQLEnum(ProcessingMethod), nullable=False)

    # Sensory scores, 1-5
    acidity = Column(Integer, nullable=False)
    body = Column(Integer, nullable=False)
    sweetness = Column(Integer, nullable=False)
    bitterness = Column(Integer, nullable=False)
    aroma = Column(Integer, nullable=False)

    images = Column(JSON, nullable=False, default=list)
    seller_id = Column(String(64), nullable=False, index=True)
    harvest_date = Column(Date, nullable=True)
    roast_date = Column(Date, nullable=True)

    rating = Column(Float, nullable=False, default=0.0)
    review_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_coffees_roast_bean", "roast_level", "bean_type"),
        Index("ix_coffees_rating", "rating"),
    )

    @classmethod
    def from_entity(cls, coffee: Coffee) -> "CoffeeRow":
        row = cls(id=coffee.id, seller_id=coffee.seller_id, created_at=coffee.created_at)
        row.update_from(coffee)
        return row

    def update_from(self, coffee: Coffee) -> None:
        """Copy every mutable field of the entity onto the row."""
        self.name = coffee.name
        self.description = coffee.description
        self.price = coffee.price
        self.stock = coffee.stock
        self.is_available = coffee.is_available
        self.origin = coffee.origin
        self.altitude = coffee.altitude
        self.roast_level = coffee.roast_level
        self.bean_type = coffee.bean_type
        self.processing_method = coffee.processing_method
        for field, score in coffee.attributes.to_dict().items():
            setattr(self, field, score)
        self.images = list(coffee.images)
        self.harvest_date = coffee.harvest_date
        self.roast_date = coffee.roast_date
        self.rating = coffee.rating
        self.review_count = coffee.review_count
        self.updated_at = coffee.updated_at

    def to_entity(self) -> Coffee:
        return Coffee.reconstruct(
            id=self.id,
            name=self.name,
            description=self.description,
            price=self.price,
            stock=self.stock,
            origin=self.origin,
            altitude=self.altitude,
            roast_level=self.roast_level,
            bean_type=self.bean_type,
            processing_method=self.processing_method,
            attributes={
                "acidity": self.acidity,
                "body": self.body,
                "sweetness": self.sweetness,
                "bitterness": self.bitterness,
                "aroma": self.aroma,
            },
            images=list(self.images or []),
            seller_id=self.seller_id,
            harvest_date=self.harvest_date,
            roast_date=self.roast_date,
            rating=self.rating,
            review_count=self.review_count,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def __repr__(self):
        return f"<CoffeeRow(id='{self.id}', name='{self.name}')>"
