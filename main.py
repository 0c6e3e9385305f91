import logging
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response
from sqlalchemy.orm import Session

from auth import resolve_owner
from config import Settings, get_settings
from database import Database
from errors import (
    AuthenticationError,
    AuthorizationError,
    DuplicateError,
    LedgerError,
    NotFoundError,
)
from models import DuplicatePolicy
from schemas import (
    CreatedOut,
    EntryIn,
    EntryListOut,
    LookupIn,
    LookupOut,
    PurchaseIn,
)
from services import (
    CategoryService,
    EntryQueryService,
    EntryService,
    LookupService,
    PurchaseService,
    StoreService,
)


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _load_app_version() -> str:
    import tomllib

    try:
        with open("pyproject.toml", "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return "unknown"
    return str(data.get("project", {}).get("version", "unknown"))


APP_VERSION = _load_app_version()


def get_db(request: Request):
    db = request.app.state.db.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def app_settings(request: Request) -> Settings:
    return request.app.state.settings


def current_owner(request: Request) -> str:
    owner = resolve_owner(
        request.headers.get("Authorization"), request.app.state.settings
    )
    if not owner:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return owner


def status_for(exc: LedgerError) -> int:
    if isinstance(exc, AuthenticationError):
        return 401
    if isinstance(exc, AuthorizationError):
        return 403
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, DuplicateError):
        return 409
    return 400


def _list_lookups(
    service: LookupService, q: Optional[str], limit: Optional[int]
) -> list[LookupOut]:
    if limit is not None:
        limit = min(max(limit, 1), 100)
    if q:
        records = service.suggest(q, limit=limit or 10)
    else:
        records = service.list_all()[:limit]
    return [LookupOut.model_validate(record) for record in records]


def _resolve_lookup(service: LookupService, data: LookupIn) -> LookupOut:
    try:
        record = service.resolve_or_create(data.name, data.on_duplicate)
    except LedgerError as exc:
        raise HTTPException(status_code=status_for(exc), detail=str(exc)) from exc
    return LookupOut.model_validate(record)


@router.get("/health")
def health():
    return {"status": "ok", "version": APP_VERSION}


@router.get("/categories", response_model=list[LookupOut])
def list_categories(
    q: Optional[str] = None,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    owner: str = Depends(current_owner),
    settings: Settings = Depends(app_settings),
):
    service = CategoryService(db, owner, settings.duplicate_policy)
    return _list_lookups(service, q, limit)


@router.post("/categories", response_model=LookupOut)
def resolve_category(
    data: LookupIn,
    db: Session = Depends(get_db),
    owner: str = Depends(current_owner),
    settings: Settings = Depends(app_settings),
):
    return _resolve_lookup(CategoryService(db, owner, settings.duplicate_policy), data)


@router.get("/stores", response_model=list[LookupOut])
def list_stores(
    q: Optional[str] = None,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    owner: str = Depends(current_owner),
    settings: Settings = Depends(app_settings),
):
    service = StoreService(db, owner, settings.duplicate_policy)
    return _list_lookups(service, q, limit)


@router.post("/stores", response_model=LookupOut)
def resolve_store(
    data: LookupIn,
    db: Session = Depends(get_db),
    owner: str = Depends(current_owner),
    settings: Settings = Depends(app_settings),
):
    return _resolve_lookup(StoreService(db, owner, settings.duplicate_policy), data)


@router.get("/entries", response_model=EntryListOut)
def list_entries(db: Session = Depends(get_db), owner: str = Depends(current_owner)):
    return EntryQueryService(db, owner).summary()


@router.post("/entries", response_model=CreatedOut, status_code=201)
def create_entry(
    data: EntryIn, db: Session = Depends(get_db), owner: str = Depends(current_owner)
):
    try:
        entry = EntryService(db, owner).create(data)
    except LedgerError as exc:
        raise HTTPException(status_code=status_for(exc), detail=str(exc)) from exc
    return CreatedOut(id=entry.id)


@router.post("/purchases", response_model=CreatedOut, status_code=201)
def record_purchase(
    data: PurchaseIn, db: Session = Depends(get_db), owner: str = Depends(current_owner)
):
    try:
        entry = PurchaseService(db, owner).record(data)
    except LedgerError as exc:
        raise HTTPException(status_code=status_for(exc), detail=str(exc)) from exc
    return CreatedOut(id=entry.id)


@router.delete("/entries/{entry_id}", status_code=204)
def delete_entry(
    entry_id: int, db: Session = Depends(get_db), owner: str = Depends(current_owner)
):
    try:
        EntryService(db, owner).delete(entry_id)
    except LedgerError as exc:
        raise HTTPException(status_code=status_for(exc), detail=str(exc)) from exc
    return Response(status_code=204)


def create_app(
    settings: Optional[Settings] = None, database: Optional[Database] = None
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)
    default_policy = DuplicatePolicy(settings.duplicate_policy)
    app = FastAPI(title="Purchase Ledger", version=APP_VERSION)
    app.state.settings = settings
    app.state.db = database or Database(settings.database_url)
    app.include_router(router)

    @app.on_event("shutdown")
    def shutdown_event():
        app.state.db.dispose()

    logger.info(
        f"app_created: database={settings.database_url.split('://', 1)[0]} "
        f"duplicate_policy={default_policy.value}"
    )
    return app


def main():
    import uvicorn

    uvicorn.run("main:create_app", factory=True, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
