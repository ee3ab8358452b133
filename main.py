import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator

from config import settings
from core.reps.accounts import is_valid_account, normalize_account
from core.reps.errors import KnownListError, RepresentativeError, SourceTransportError
from core.reps.known_list import KnownListManager
from core.reps.models import Account, FullOverview, KnownEntry
from core.reps.orchestrator import ReputationSourceOrchestrator
from core.reps.session import RepresentativeSession
from core.reps.storage import KeyValueStore, MemoryKeyValueStore, PostgresKeyValueStore
from rep_sources import CreeperClient, LedgerRpcClient, NinjaClient

# -------------------------------------------------------------------
# Logging
# -------------------------------------------------------------------

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger("repwatch")

logger.info("Known list storage: %s", "POSTGRES" if settings.database_enabled else "MEMORY")
logger.info("Blocklisted representatives: %s", len(settings.blocklist))

# -------------------------------------------------------------------
# FastAPI App
# -------------------------------------------------------------------

app = FastAPI(
    title="Representative Health API",
    version="1.0.0",
    description="Delegated weight, uptime and trust classification of wallet representatives.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_ORIGIN],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------------------------------------------------------------------
# Models
# -------------------------------------------------------------------

class OverviewRequest(BaseModel):
    accounts: List[Account]


class KnownEntryRequest(BaseModel):
    id: str
    name: str
    trusted: bool = False
    warn: bool = False

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        v = normalize_account(v)
        if not is_valid_account(v):
            raise ValueError("Invalid representative address")
        return v

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Name is required")
        if len(v) > 100:
            raise ValueError("Name too long")
        return v

# -------------------------------------------------------------------
# Session
# -------------------------------------------------------------------

_store: Optional[KeyValueStore] = None
_session: Optional[RepresentativeSession] = None


def build_store() -> KeyValueStore:
    if settings.database_enabled:
        return PostgresKeyValueStore(
            settings.DATABASE_URL,
            min_conn=settings.DB_POOL_MIN,
            max_conn=settings.DB_POOL_MAX,
        )
    return MemoryKeyValueStore()


def build_session(store: KeyValueStore) -> RepresentativeSession:
    creeper = CreeperClient(settings.CREEPER_URL, timeout=settings.HTTP_TIMEOUT)
    orchestrator = ReputationSourceOrchestrator(
        LedgerRpcClient(settings.RPC_URL, timeout=settings.HTTP_TIMEOUT),
        NinjaClient(settings.NINJA_URL, timeout=settings.HTTP_TIMEOUT),
        creeper,
        max_workers=settings.MAX_FETCH_WORKERS,
        crawler_min_weight=settings.CREEPER_MIN_WEIGHT,
    )
    known_list = KnownListManager(
        store,
        crawler=creeper,
        store_key=settings.STORE_KEY,
        legacy_store_key=settings.LEGACY_STORE_KEY,
        min_weight=settings.CREEPER_MIN_WEIGHT,
    )
    return RepresentativeSession(
        orchestrator=orchestrator,
        known_list=known_list,
        blocklist=settings.blocklist,
    )


def get_session() -> RepresentativeSession:
    global _store, _session
    if _session is None:
        _store = build_store()
        _session = build_session(_store)
    return _session

# -------------------------------------------------------------------
# Startup / Shutdown
# -------------------------------------------------------------------

@app.on_event("startup")
def on_startup():
    logger.info("Representative API starting up...")
    session = get_session()
    if session.known_list.patch_prefix_data():
        logger.info("Known list ids migrated to the ban_ prefix")
    logger.info("Representative API startup complete")


@app.on_event("shutdown")
def on_shutdown():
    global _store, _session
    logger.info("Representative API shutting down...")
    if isinstance(_store, PostgresKeyValueStore):
        _store.close()
    _store = None
    _session = None

# -------------------------------------------------------------------
# Routes
# -------------------------------------------------------------------

@app.get("/")
def root():
    return {"status": "ok", "service": "Representative Health API", "version": "1.0.0"}


@app.get("/health")
def health():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "api": "operational",
            "database": "operational" if settings.database_enabled else "not_configured",
            "creeper": "configured" if settings.CREEPER_URL else "not_configured",
            "ninja": "configured" if settings.NINJA_URL else "not_configured",
        },
    }


@app.post("/representatives/overview", response_model=List[FullOverview])
def representatives_overview(payload: OverviewRequest):
    try:
        return get_session().get_overview(payload.accounts)
    except SourceTransportError as e:
        logger.warning("Overview failed: %s", e)
        raise HTTPException(status_code=503, detail="Ledger node unavailable. Please try again.")


@app.post("/representatives/changeable", response_model=List[FullOverview])
def representatives_changeable(payload: OverviewRequest):
    try:
        return get_session().detect_changeable(accounts=payload.accounts)
    except SourceTransportError as e:
        logger.warning("Change detection failed: %s", e)
        raise HTTPException(status_code=503, detail="Ledger node unavailable. Please try again.")


@app.get("/representatives/changeable", response_model=List[FullOverview])
def last_changeable():
    return get_session().changeable.value


@app.get("/representatives/known", response_model=List[KnownEntry])
def known_representatives(by_priority: bool = Query(False, alias="sorted")):
    known_list = get_session().known_list
    known_list.load()
    return known_list.sorted_by_priority() if by_priority else known_list.representatives


@app.post("/representatives/known", response_model=KnownEntry)
def save_known_representative(payload: KnownEntryRequest):
    known_list = get_session().known_list
    known_list.load()

    if known_list.name_exists(payload.name):
        existing = known_list.get(payload.id)
        if not existing or existing.name.lower() != payload.name.lower():
            raise HTTPException(status_code=409, detail="A representative with this name already exists")

    entry = KnownEntry(id=payload.id, name=payload.name, trusted=payload.trusted, warn=payload.warn)
    logger.info("Saving known representative %s (trusted=%s warn=%s)", entry.id, entry.trusted, entry.warn)
    return known_list.save(entry)


@app.delete("/representatives/known/{account_id}")
def delete_known_representative(account_id: str):
    known_list = get_session().known_list
    known_list.load()
    if not known_list.delete(account_id):
        raise HTTPException(status_code=404, detail="Representative not in known list")
    return {"deleted": account_id}


@app.post("/representatives/known/reset", response_model=List[KnownEntry])
def reset_known_representatives():
    known_list = get_session().known_list
    known_list.reset()
    return known_list.load()


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "status_code": exc.status_code, "path": str(request.url)},
    )


@app.exception_handler(KnownListError)
async def known_list_exception_handler(request: Request, exc: KnownListError):
    logger.error("Known list unreadable: %s", exc)
    return JSONResponse(status_code=500, content={"error": "Stored representative list is corrupted"})


@app.exception_handler(RepresentativeError)
async def representative_exception_handler(request: Request, exc: RepresentativeError):
    logger.exception("Representative error: %s", exc)
    return JSONResponse(status_code=502, content={"error": "Representative data unavailable"})


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})
