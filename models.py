from datetime import date, datetime
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base


class DuplicatePolicy(str, Enum):
    reuse = "reuse"
    reject = "reject"


def name_key(name: str) -> str:
    return name.strip().casefold()


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class LookupMixin(TimestampMixin):
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    name_key: Mapped[str] = mapped_column(String(100), nullable=False)


class Category(Base, LookupMixin):
    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint("user_id", "name_key", name="uq_category_user_name_key"),
    )

    entries: Mapped[list["Entry"]] = relationship("Entry", back_populates="category")


class Store(Base, LookupMixin):
    __tablename__ = "stores"
    __table_args__ = (
        UniqueConstraint("user_id", "name_key", name="uq_store_user_name_key"),
    )

    entries: Mapped[list["Entry"]] = relationship("Entry", back_populates="store")


class Entry(Base, TimestampMixin):
    __tablename__ = "entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False, default=1)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)
    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id"), nullable=False
    )
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), nullable=False)

    category: Mapped["Category"] = relationship("Category", back_populates="entries")
    store: Mapped["Store"] = relationship("Store", back_populates="entries")

    __table_args__ = (
        Index("ix_entries_user_purchase_date", "user_id", "purchase_date"),
        CheckConstraint("price_cents > 0", name="ck_entries_price_positive"),
        CheckConstraint("quantity > 0", name="ck_entries_quantity_positive"),
    )
