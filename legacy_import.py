from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from models import DuplicatePolicy, Entry
from services import CategoryService, StoreService, require_owner


logger = logging.getLogger(__name__)

LEGACY_STORE_NAME = "Legacy Store"
UNCATEGORIZED_NAME = "Uncategorized"
MAX_LOOKUP_NAME_LENGTH = 100
MAX_ENTRY_NAME_LENGTH = 200

# Older revisions disagree on naming; each canonical column lists the
# spellings seen across them.
_COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id", "_id"),
    "name": ("name",),
    "price": ("price", "price_cents"),
    "quantity": ("quantity",),
    "category_id": ("category_id", "categoryId"),
    "store_id": ("store_id", "storeId"),
    "purchase_date": ("purchase_date", "purchaseDate"),
}


@dataclass(frozen=True)
class LegacyEntryRow:
    idx: int
    name: str
    price_cents: int
    quantity: float
    category_name: str
    store_name: str
    purchase_date: date


@dataclass
class LegacyPreview:
    entries_count: int
    categories_count: int
    stores_count: int
    missing_store_count: int
    missing_date_count: int
    rows: list[LegacyEntryRow] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class LegacyImportResult:
    imported: int
    skipped: int
    categories_used: int
    stores_used: int


def _connect_readonly(path: Path) -> sqlite3.Connection:
    uri = f"file:{path.resolve()}?mode=ro"
    con = sqlite3.connect(uri, uri=True)
    con.row_factory = sqlite3.Row
    con.execute("PRAGMA query_only=ON;")
    return con


def _tables(con: sqlite3.Connection) -> set[str]:
    cur = con.execute(
        "select name from sqlite_master where type='table' and name not like 'sqlite_%'"
    )
    return {r[0] for r in cur.fetchall()}


def _column_map(con: sqlite3.Connection, table: str) -> dict[str, str]:
    cur = con.execute(f"pragma table_info({table})")
    present = {row["name"] for row in cur.fetchall()}
    mapping: dict[str, str] = {}
    for canonical, spellings in _COLUMN_ALIASES.items():
        for spelling in spellings:
            if spelling in present:
                mapping[canonical] = spelling
                break
    return mapping


def _require_columns(table: str, mapping: dict[str, str], required: set[str]) -> None:
    missing = required - set(mapping)
    if missing:
        raise ValueError(
            f"Legacy DB table '{table}' missing columns: {', '.join(sorted(missing))}"
        )


def _names_by_id(con: sqlite3.Connection, table: str) -> dict[str, str]:
    mapping = _column_map(con, table)
    _require_columns(table, mapping, {"id", "name"})
    cur = con.execute(f"select {mapping['id']} as id, {mapping['name']} as name from {table}")
    return {str(r["id"]): str(r["name"]) for r in cur.fetchall() if r["name"] is not None}


def _clip(value: str, limit: int, label: str, warnings: list[str]) -> str:
    if len(value) <= limit:
        return value
    warnings.append(f"{label} longer than {limit} characters, truncated")
    return value[:limit].rstrip()


def _parse_legacy_date(value: object) -> Optional[date]:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


class LegacyImportService:
    """Imports entries from a SQLite copy of an older schema revision.

    Revisions before stores existed have no ``store_id`` at all, later ones
    allow it to be missing. Such rows are attached to a per-owner
    ``Legacy Store``; rows whose category no longer exists go to
    ``Uncategorized``.
    """

    def __init__(
        self, session: Session, user_id: Optional[str], today: Optional[date] = None
    ) -> None:
        self.session = session
        self.user_id = require_owner(user_id)
        self.today = today or date.today()

    def preview(self, legacy_db_path: Path) -> LegacyPreview:
        if not legacy_db_path.exists():
            raise ValueError("Legacy DB file not found")

        con = _connect_readonly(legacy_db_path)
        try:
            tables = _tables(con)
            missing = {"categories", "entries"} - tables
            if missing:
                raise ValueError(f"Legacy DB missing tables: {', '.join(sorted(missing))}")

            categories = _names_by_id(con, "categories")
            stores = _names_by_id(con, "stores") if "stores" in tables else {}

            mapping = _column_map(con, "entries")
            _require_columns(
                "entries", mapping, {"name", "price", "quantity", "category_id"}
            )
            selected = ", ".join(
                f"{column} as {canonical}" for canonical, column in mapping.items()
            )
            cur = con.execute(f"select {selected} from entries order by rowid")
            raw_rows = cur.fetchall()
        finally:
            con.close()

        preview = LegacyPreview(
            entries_count=len(raw_rows),
            categories_count=len(categories),
            stores_count=len(stores),
            missing_store_count=0,
            missing_date_count=0,
        )
        for idx, raw in enumerate(raw_rows, start=1):
            keys = raw.keys()
            name = str(raw["name"] or "").strip()
            if not name:
                preview.warnings.append(f"Row {idx}: empty name, skipped")
                continue
            try:
                price_cents = int(round(float(raw["price"])))
                quantity = float(raw["quantity"])
            except (TypeError, ValueError):
                preview.warnings.append(f"Row {idx}: invalid price or quantity, skipped")
                continue
            if price_cents <= 0 or quantity <= 0:
                preview.warnings.append(
                    f"Row {idx}: price and quantity must be positive, skipped"
                )
                continue
            name = _clip(
                name, MAX_ENTRY_NAME_LENGTH, f"Row {idx}: name", preview.warnings
            )

            category_name = categories.get(str(raw["category_id"]))
            if not category_name or not category_name.strip():
                preview.warnings.append(
                    f"Row {idx}: unknown category, filed under {UNCATEGORIZED_NAME}"
                )
                category_name = UNCATEGORIZED_NAME
            category_name = _clip(
                category_name.strip(),
                MAX_LOOKUP_NAME_LENGTH,
                f"Row {idx}: category name",
                preview.warnings,
            )

            store_ref = raw["store_id"] if "store_id" in keys else None
            store_name = stores.get(str(store_ref)) if store_ref is not None else None
            if not store_name or not store_name.strip():
                preview.missing_store_count += 1
                store_name = LEGACY_STORE_NAME
            store_name = _clip(
                store_name.strip(),
                MAX_LOOKUP_NAME_LENGTH,
                f"Row {idx}: store name",
                preview.warnings,
            )

            purchase_date = _parse_legacy_date(
                raw["purchase_date"] if "purchase_date" in keys else None
            )
            if purchase_date is None:
                preview.missing_date_count += 1
                purchase_date = self.today

            preview.rows.append(
                LegacyEntryRow(
                    idx=idx,
                    name=name,
                    price_cents=price_cents,
                    quantity=quantity,
                    category_name=category_name,
                    store_name=store_name,
                    purchase_date=purchase_date,
                )
            )

        if preview.missing_store_count:
            preview.warnings.append(
                f"{preview.missing_store_count} entr(y/ies) have no store and will use "
                f"'{LEGACY_STORE_NAME}'."
            )
        if preview.missing_date_count:
            preview.warnings.append(
                f"{preview.missing_date_count} entr(y/ies) have no purchase date and "
                f"will use {self.today.isoformat()}."
            )
        return preview

    def commit(self, legacy_db_path: Path) -> LegacyImportResult:
        preview = self.preview(legacy_db_path)
        categories = CategoryService(self.session, self.user_id)
        stores = StoreService(self.session, self.user_id)

        category_ids: dict[str, int] = {}
        store_ids: dict[str, int] = {}
        for row in preview.rows:
            if row.category_name not in category_ids:
                category_ids[row.category_name] = categories.resolve_or_create(
                    row.category_name, DuplicatePolicy.reuse
                ).id
            if row.store_name not in store_ids:
                store_ids[row.store_name] = stores.resolve_or_create(
                    row.store_name, DuplicatePolicy.reuse
                ).id

        for row in preview.rows:
            self.session.add(
                Entry(
                    user_id=self.user_id,
                    name=row.name,
                    quantity=row.quantity,
                    price_cents=row.price_cents,
                    purchase_date=row.purchase_date,
                    category_id=category_ids[row.category_name],
                    store_id=store_ids[row.store_name],
                )
            )
        self.session.commit()

        result = LegacyImportResult(
            imported=len(preview.rows),
            skipped=preview.entries_count - len(preview.rows),
            categories_used=len(set(category_ids.values())),
            stores_used=len(set(store_ids.values())),
        )
        logger.info(
            f"legacy_import: user={self.user_id} imported={result.imported} "
            f"skipped={result.skipped}"
        )
        return result


def main() -> None:
    import argparse

    from config import get_settings
    from database import Database

    parser = argparse.ArgumentParser(description="Import entries from a legacy DB")
    parser.add_argument("path", type=Path)
    parser.add_argument("owner")
    parser.add_argument("--dry-run", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=get_settings().log_level)
    db = Database(get_settings().database_url)
    try:
        with db.session_scope() as session:
            service = LegacyImportService(session, args.owner)
            if args.dry_run:
                preview = service.preview(args.path)
                print(f"{len(preview.rows)} of {preview.entries_count} entries importable")
                for warning in preview.warnings:
                    print(f"warning: {warning}")
                return
            result = service.commit(args.path)
            print(f"imported={result.imported} skipped={result.skipped}")
    finally:
        db.dispose()


if __name__ == "__main__":
    main()
