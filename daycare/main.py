import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from daycare import __version__
from daycare.allocation import PaymentAllocator
from daycare.database import close_all
from daycare.errors import DaycareError
from daycare.fees import FeeResolver
from daycare.registration import RegistrationService
from daycare.settings import Settings, settings as default_settings
from daycare.store import EntityStore, build_store
from schemas import (
    AllocationResult,
    Child,
    ChildCreate,
    ChildUpdate,
    FeeStructure,
    FeeStructureCreate,
    Guardian,
    GuardianCreate,
    Owner,
    OwnerCreate,
    Payment,
    PaymentCreate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _registration(request: Request) -> RegistrationService:
    return request.app.state.registration


def _allocator(request: Request) -> PaymentAllocator:
    return request.app.state.allocator


@router.get("/")
def root(request: Request):
    return {
        "message": "Daycare Records API running",
        "version": __version__,
        "store": request.app.state.store.backend,
    }


# ---------- Owner ----------
@router.post("/owner", response_model=Owner, status_code=status.HTTP_201_CREATED)
def create_owner(payload: OwnerCreate, request: Request):
    return _registration(request).create_owner(payload)


@router.get("/owner/{owner_id}", response_model=Owner)
def get_owner(owner_id: str, request: Request):
    return _registration(request).get_owner(owner_id)


# ---------- Guardians ----------
@router.post("/guardians", response_model=Guardian, status_code=status.HTTP_201_CREATED)
def create_guardian(payload: GuardianCreate, request: Request):
    return _registration(request).create_guardian(payload)


@router.get("/guardians", response_model=List[Guardian])
def list_guardians(request: Request):
    return _registration(request).list_guardians()


@router.get("/guardians/{guardian_id}", response_model=Guardian)
def get_guardian(guardian_id: str, request: Request):
    return _registration(request).get_guardian(guardian_id)


# ---------- Children ----------
@router.post("/children", response_model=Child, status_code=status.HTTP_201_CREATED)
def create_child(payload: ChildCreate, request: Request):
    return _registration(request).create_child(payload)


@router.get("/children", response_model=List[Child])
def list_children(request: Request):
    return _registration(request).list_children()


@router.get("/children/{child_id}", response_model=Child)
def get_child(child_id: str, request: Request):
    return _registration(request).get_child(child_id)


@router.put("/children/{child_id}", response_model=Child)
def update_child(child_id: str, payload: ChildUpdate, request: Request):
    return _registration(request).update_child(child_id, payload)


# ---------- Fee structure ----------
@router.post("/fee-structure", response_model=FeeStructure, status_code=status.HTTP_201_CREATED)
def create_fee_structure(payload: FeeStructureCreate, request: Request):
    return _registration(request).create_fee_structure(payload)


@router.get("/fee-structure/active", response_model=FeeStructure)
def get_active_fee_structure(request: Request):
    return _registration(request).active_fee_structure()


@router.get("/fee-structure/{fee_structure_id}", response_model=FeeStructure)
def get_fee_structure(fee_structure_id: str, request: Request):
    return _registration(request).get_fee_structure(fee_structure_id)


@router.post("/fee-structure/{fee_structure_id}/activate", response_model=FeeStructure)
def activate_fee_structure(fee_structure_id: str, request: Request):
    return _registration(request).activate_fee_structure(fee_structure_id)


# ---------- Payments ----------
@router.post("/payments", response_model=AllocationResult, status_code=status.HTTP_201_CREATED)
def create_payments(payload: PaymentCreate, request: Request):
    return _allocator(request).allocate(payload.guardian_id, payload.child_ids, payload.amount)


@router.get("/payments", response_model=List[Payment])
def list_payments(request: Request):
    return _registration(request).list_payments()


# ---------- Errors ----------
async def _daycare_error_handler(request: Request, exc: DaycareError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("%s %s rejected: %s (%s)", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "message": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    logger.warning("%s %s rejected: invalid body %s", request.method, request.url.path, errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"kind": "ValidationError", "message": "Missing or invalid fields", "errors": errors},
    )


@asynccontextmanager
async def _lifespan(app: FastAPI):
    yield
    close_all()


def create_app(settings: Optional[Settings] = None, store: Optional[EntityStore] = None) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(level=settings.LOG_LEVEL.upper())

    app = FastAPI(title="Daycare Records API", version=__version__, lifespan=_lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    store = store or build_store(settings)
    fees = FeeResolver(store)
    app.state.store = store
    app.state.registration = RegistrationService(store, fees)
    app.state.allocator = PaymentAllocator(store, fees)

    app.add_exception_handler(DaycareError, _daycare_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.include_router(router)

    logger.info("Daycare Records API ready (store: %s)", store.backend)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=default_settings.SERVICE_HOST, port=default_settings.PORT)
