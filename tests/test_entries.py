from datetime import date

import pytest
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from database import Base
from errors import (
    AuthenticationError,
    AuthorizationError,
    InvalidReferenceError,
    NotFoundError,
    ValidationError,
)
from models import Category, Entry, Store
from schemas import EntryIn, PurchaseIn
from services import (
    CategoryService,
    EntryQueryService,
    EntryService,
    PurchaseService,
    StoreService,
)


def make_session() -> Session:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    return Session(engine)


def lookups(session: Session, owner: str = "alice") -> tuple[Category, Store]:
    category = CategoryService(session, owner).resolve_or_create("Groceries")
    store = StoreService(session, owner).resolve_or_create("Corner Shop")
    return category, store


def entry_in(category: Category, store: Store, **overrides) -> EntryIn:
    data = {
        "name": "Apples",
        "quantity": 2,
        "price_cents": 149,
        "purchase_date": date(2024, 5, 4),
        "category_id": category.id,
        "store_id": store.id,
    }
    data.update(overrides)
    return EntryIn(**data)


def test_create_stamps_owner_and_trims_name() -> None:
    session = make_session()
    category, store = lookups(session)

    entry = EntryService(session, "alice").create(
        entry_in(category, store, name="  Apples  ")
    )

    assert entry.id is not None
    assert entry.user_id == "alice"
    assert entry.name == "Apples"
    assert entry.category_id == category.id
    assert entry.store_id == store.id


def test_create_rejects_blank_name() -> None:
    session = make_session()
    category, store = lookups(session)

    with pytest.raises(ValidationError):
        EntryService(session, "alice").create(entry_in(category, store, name="   "))
    assert session.scalars(select(Entry)).all() == []


@pytest.mark.parametrize(
    "field,value",
    [("price_cents", 0), ("price_cents", -5), ("quantity", 0), ("name", "")],
)
def test_entry_schema_rejects_invalid_values(field: str, value: object) -> None:
    data = {
        "name": "Apples",
        "quantity": 1,
        "price_cents": 100,
        "purchase_date": "2024-05-04",
        "category_id": 1,
        "store_id": 1,
    }
    data[field] = value
    with pytest.raises(SchemaValidationError):
        EntryIn(**data)


def test_entry_schema_parses_iso_dates() -> None:
    data = EntryIn(
        name="Bread",
        quantity=1,
        price_cents=250,
        purchase_date="2024-02-29",
        category_id=1,
        store_id=1,
    )
    assert data.purchase_date == date(2024, 2, 29)


def test_create_rejects_unknown_or_foreign_references() -> None:
    session = make_session()
    category, store = lookups(session)
    bob_category, bob_store = lookups(session, "bob")
    service = EntryService(session, "alice")

    with pytest.raises(InvalidReferenceError, match="Category"):
        service.create(entry_in(category, store, category_id=bob_category.id))
    with pytest.raises(InvalidReferenceError, match="Store"):
        service.create(entry_in(category, store, store_id=bob_store.id))
    with pytest.raises(InvalidReferenceError):
        service.create(entry_in(category, store, category_id=9999))
    assert session.scalars(select(Entry)).all() == []


def test_delete_by_non_owner_is_refused_and_entry_survives() -> None:
    session = make_session()
    category, store = lookups(session)
    entry = EntryService(session, "alice").create(entry_in(category, store))

    with pytest.raises(AuthorizationError):
        EntryService(session, "mallory").delete(entry.id)

    views = EntryQueryService(session, "alice").list_with_lookups()
    assert [v.id for v in views] == [entry.id]


def test_delete_by_owner_removes_entry_then_reports_not_found() -> None:
    session = make_session()
    category, store = lookups(session)
    service = EntryService(session, "alice")
    entry = service.create(entry_in(category, store))
    entry_id = entry.id

    service.delete(entry_id)

    assert EntryQueryService(session, "alice").list_with_lookups() == []
    with pytest.raises(NotFoundError):
        service.delete(entry_id)


def test_delete_unknown_id_is_not_found() -> None:
    session = make_session()
    with pytest.raises(NotFoundError):
        EntryService(session, "alice").delete(12345)


def test_list_raw_is_scoped_to_owner() -> None:
    session = make_session()
    category, store = lookups(session)
    bob_category, bob_store = lookups(session, "bob")
    EntryService(session, "alice").create(entry_in(category, store, name="Tea"))
    EntryService(session, "bob").create(entry_in(bob_category, bob_store, name="Jam"))

    assert [e.name for e in EntryService(session, "alice").list_raw()] == ["Tea"]
    assert [e.name for e in EntryService(session, "bob").list_raw()] == ["Jam"]


def test_entry_services_require_an_owner() -> None:
    session = make_session()
    with pytest.raises(AuthenticationError):
        EntryService(session, None)
    with pytest.raises(AuthenticationError):
        EntryQueryService(session, "")
    with pytest.raises(AuthenticationError):
        PurchaseService(session, None)


def test_purchase_resolves_existing_lookups_by_normalized_name() -> None:
    session = make_session()
    category, store = lookups(session)

    entry = PurchaseService(session, "alice").record(
        PurchaseIn(
            name="Milk",
            quantity=1,
            price_cents=119,
            purchase_date=date(2024, 6, 1),
            category=" groceries",
            store="CORNER SHOP ",
        )
    )

    assert entry.category_id == category.id
    assert entry.store_id == store.id
    assert len(CategoryService(session, "alice").list_all()) == 1
    assert len(StoreService(session, "alice").list_all()) == 1


def test_purchase_creates_missing_lookups() -> None:
    session = make_session()

    entry = PurchaseService(session, "alice").record(
        PurchaseIn(
            name="Sourdough",
            quantity=1,
            price_cents=450,
            purchase_date=date(2024, 6, 2),
            category="Bakery",
            store="Bäckerei",
        )
    )

    view = EntryQueryService(session, "alice").list_with_lookups()[0]
    assert view.id == entry.id
    assert view.category_name == "Bakery"
    assert view.store_name == "Bäckerei"


def test_purchase_with_blank_store_writes_nothing() -> None:
    session = make_session()

    with pytest.raises(ValidationError):
        PurchaseService(session, "alice").record(
            PurchaseIn(
                name="Sourdough",
                quantity=1,
                price_cents=450,
                purchase_date=date(2024, 6, 2),
                category="Bakery",
                store="   ",
            )
        )

    assert session.scalars(select(Category)).all() == []
    assert session.scalars(select(Store)).all() == []
    assert session.scalars(select(Entry)).all() == []
