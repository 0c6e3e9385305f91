from __future__ import annotations

import logging
from typing import Optional, Union

from rapidfuzz.distance import Levenshtein
from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from errors import (
    AuthenticationError,
    AuthorizationError,
    DuplicateError,
    InvalidReferenceError,
    NotFoundError,
    ValidationError,
)
from models import Category, DuplicatePolicy, Entry, Store, name_key
from money import format_currency, line_total_cents
from schemas import EntryIn, EntryListOut, EntryView, PurchaseIn


logger = logging.getLogger(__name__)

LookupRecord = Union[Category, Store]


def require_owner(user_id: Optional[str]) -> str:
    if user_id is None or not user_id.strip():
        raise AuthenticationError("Not authenticated")
    return user_id


class LookupService:
    """Per-owner lookup records (categories, stores) keyed by normalized name.

    A name is stored trimmed with its original casing; matching uses
    ``name_key`` (trimmed and case-folded). The ``(user_id, name_key)``
    unique constraint is what keeps two concurrent resolutions of the same
    name from both inserting: the loser's commit fails, it rolls back and
    reads the winner's row.

    ``resolve_or_create`` commits the session it was given, including any
    other pending changes in it, and a lost race rolls those back. Resolve
    lookups before adding rows that should be committed separately.
    """

    model: type[LookupRecord]
    label: str

    def __init__(
        self,
        session: Session,
        user_id: Optional[str],
        default_policy: Union[DuplicatePolicy, str] = DuplicatePolicy.reuse,
    ) -> None:
        self.session = session
        self.user_id = require_owner(user_id)
        self.default_policy = DuplicatePolicy(default_policy)

    def list_all(self) -> list[LookupRecord]:
        stmt = (
            select(self.model)
            .where(self.model.user_id == self.user_id)
            .order_by(self.model.name_key, self.model.id)
        )
        return list(self.session.scalars(stmt).all())

    def get(self, record_id: int) -> Optional[LookupRecord]:
        record = self.session.get(self.model, record_id)
        if not record or record.user_id != self.user_id:
            return None
        return record

    def _find(self, key: str) -> Optional[LookupRecord]:
        stmt = select(self.model).where(
            self.model.user_id == self.user_id, self.model.name_key == key
        )
        return self.session.scalar(stmt)

    def resolve_or_create(
        self,
        raw_name: str,
        policy: Union[DuplicatePolicy, str, None] = None,
    ) -> LookupRecord:
        policy = self.default_policy if policy is None else DuplicatePolicy(policy)
        clean_name = (raw_name or "").strip()
        if not clean_name:
            raise ValidationError(f"{self.label} name cannot be empty")
        if len(clean_name) > 100:
            raise ValidationError(f"{self.label} name is too long")
        key = name_key(clean_name)

        existing = self._find(key)
        if existing is None:
            record = self.model(user_id=self.user_id, name=clean_name, name_key=key)
            self.session.add(record)
            try:
                self.session.commit()
            except IntegrityError:
                self.session.rollback()
                existing = self._find(key)
                if existing is None:
                    raise
                logger.info(
                    f"{self.label.lower()}_resolve_race: user={self.user_id} "
                    f"key={key!r} winner_id={existing.id}"
                )
            else:
                logger.info(
                    f"{self.label.lower()}_created: user={self.user_id} "
                    f"id={record.id} name={clean_name!r}"
                )
                return record

        if policy == DuplicatePolicy.reject:
            raise DuplicateError(f'{self.label} "{existing.name}" already exists')
        return existing

    def suggest(self, query: str, limit: int = 10) -> list[LookupRecord]:
        records = self.list_all()
        key = name_key(query or "")
        if not key:
            return records[:limit]

        ranked: list[tuple[int, str, int, LookupRecord]] = []
        for record in records:
            if record.name_key == key:
                rank = 0
            elif record.name_key.startswith(key):
                rank = 1
            elif key in record.name_key:
                rank = 2
            elif Levenshtein.distance(key, record.name_key) <= 1:
                rank = 3
            else:
                continue
            ranked.append((rank, record.name_key, record.id, record))
        ranked.sort(key=lambda item: item[:3])
        return [item[3] for item in ranked[:limit]]


class CategoryService(LookupService):
    model = Category
    label = "Category"


class StoreService(LookupService):
    model = Store
    label = "Store"


class EntryService:
    def __init__(self, session: Session, user_id: Optional[str]) -> None:
        self.session = session
        self.user_id = require_owner(user_id)

    def create(self, data: EntryIn) -> Entry:
        clean_name = data.name.strip()
        if not clean_name:
            raise ValidationError("Entry name cannot be empty")
        category = CategoryService(self.session, self.user_id).get(data.category_id)
        if category is None:
            raise InvalidReferenceError("Category not found")
        store = StoreService(self.session, self.user_id).get(data.store_id)
        if store is None:
            raise InvalidReferenceError("Store not found")

        entry = Entry(
            user_id=self.user_id,
            name=clean_name,
            quantity=data.quantity,
            price_cents=data.price_cents,
            purchase_date=data.purchase_date,
            category_id=category.id,
            store_id=store.id,
        )
        self.session.add(entry)
        self.session.commit()
        self.session.refresh(entry)
        logger.info(f"entry_created: user={self.user_id} id={entry.id}")
        return entry

    def delete(self, entry_id: int) -> None:
        entry = self.session.get(Entry, entry_id)
        if not entry:
            raise NotFoundError("Entry not found")
        if entry.user_id != self.user_id:
            raise AuthorizationError("Not authorized to delete this entry")
        self.session.delete(entry)
        self.session.commit()
        logger.info(f"entry_deleted: user={self.user_id} id={entry_id}")

    def list_raw(self) -> list[Entry]:
        stmt = select(Entry).where(Entry.user_id == self.user_id)
        return list(self.session.scalars(stmt).all())


class PurchaseService:
    """Records a purchase typed into the entry form.

    Category and store arrive as free text and are resolved with the reuse
    policy, each committed before the entry row that references it.
    """

    def __init__(self, session: Session, user_id: Optional[str]) -> None:
        self.session = session
        self.user_id = require_owner(user_id)

    def record(self, data: PurchaseIn) -> Entry:
        if not data.name.strip():
            raise ValidationError("Entry name cannot be empty")
        if not data.category.strip():
            raise ValidationError("Category name cannot be empty")
        if not data.store.strip():
            raise ValidationError("Store name cannot be empty")

        category = CategoryService(self.session, self.user_id).resolve_or_create(
            data.category, DuplicatePolicy.reuse
        )
        store = StoreService(self.session, self.user_id).resolve_or_create(
            data.store, DuplicatePolicy.reuse
        )
        return EntryService(self.session, self.user_id).create(
            EntryIn(
                name=data.name,
                quantity=data.quantity,
                price_cents=data.price_cents,
                purchase_date=data.purchase_date,
                category_id=category.id,
                store_id=store.id,
            )
        )


class EntryQueryService:
    def __init__(self, session: Session, user_id: Optional[str]) -> None:
        self.session = session
        self.user_id = require_owner(user_id)

    def list_with_lookups(self) -> list[EntryView]:
        """Owner's entries, newest purchase first, with category and store names.

        Names come from outer joins limited to the same owner, so a reference
        that no longer resolves shows up as ``None`` instead of failing the read.
        """
        stmt = (
            select(
                Entry,
                Category.name.label("category_name"),
                Store.name.label("store_name"),
            )
            .outerjoin(
                Category,
                and_(
                    Category.id == Entry.category_id,
                    Category.user_id == Entry.user_id,
                ),
            )
            .outerjoin(
                Store,
                and_(Store.id == Entry.store_id, Store.user_id == Entry.user_id),
            )
            .where(Entry.user_id == self.user_id)
            .order_by(Entry.purchase_date.desc(), Entry.id.asc())
        )
        views: list[EntryView] = []
        for row in self.session.execute(stmt):
            entry = row.Entry
            views.append(
                EntryView(
                    id=entry.id,
                    name=entry.name,
                    quantity=entry.quantity,
                    price_cents=entry.price_cents,
                    purchase_date=entry.purchase_date,
                    category_id=entry.category_id,
                    store_id=entry.store_id,
                    category_name=row.category_name,
                    store_name=row.store_name,
                    total_cents=line_total_cents(entry.price_cents, entry.quantity),
                )
            )
        return views

    def summary(self) -> EntryListOut:
        items = self.list_with_lookups()
        total_cents = sum(item.total_cents for item in items)
        return EntryListOut(
            items=items,
            total_cents=total_cents,
            total_display=format_currency(total_cents),
        )
