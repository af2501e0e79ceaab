"""FastAPI application exposing the vessel console endpoints."""

from datetime import datetime
from typing import List, Optional

import logging
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.exceptions import HTTPException as StarletteHTTPException
from prometheus_client import Counter

from pydantic import BaseModel, ConfigDict, Field

from . import services
from .auth import TokenClaims, issue_token, verify_token
from .config import settings
from .database import init_db
from .errors import AuthError, DatabaseError, ValidationError
from .models.vessel import Vessel


app = FastAPI(title=settings.api_title)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
init_db()

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)

# Prometheus counter to track API requests by method, endpoint and status code
REQUEST_COUNTER = Counter(
    "api_requests_total",
    "Total API requests",
    ["method", "endpoint", "status"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log incoming requests and their outcomes while updating metrics."""
    logger.info("request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
        REQUEST_COUNTER.labels(
            method=request.method,
            endpoint=request.url.path,
            status=str(response.status_code),
        ).inc()
        logger.info(
            "response %s %s status %s",
            request.method,
            request.url.path,
            response.status_code,
        )
        return response
    except Exception:
        REQUEST_COUNTER.labels(
            method=request.method,
            endpoint=request.url.path,
            status="500",
        ).inc()
        logger.exception(
            "error handling %s %s", request.method, request.url.path
        )
        raise


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    message = "Missing or invalid field: " + ", ".join(fields) if fields else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class LoginRequest(CamelModel):
    """Request body for operator login."""

    handle: str = Field(..., alias="userHandle")
    password: str = Field(..., alias="userPassword")


class LoginResponse(CamelModel):
    success: bool = True
    token: str


class SaveUserRequest(CamelModel):
    """Request body for registering an operator."""

    handle: str = Field(..., min_length=1, alias="userHandle")
    name: str = Field(..., min_length=1, alias="userName")
    password: str = Field(..., min_length=1, alias="userPassword")
    password_confirm: Optional[str] = Field(None, alias="userPasswordConfirm")
    is_admin: bool = Field(False, alias="userIsAdmin")
    vessel_uuid: Optional[str] = Field(None, alias="userVesselUuid")


class VesselFields(CamelModel):
    """Descriptive vessel fields as sent by the setup form."""

    name: str = Field(..., min_length=1, alias="vesselName")
    flag_nation: Optional[str] = Field(None, alias="vesselFlagNation")
    port_of_registry: Optional[str] = Field(None, alias="vesselPortOfRegistry")
    build_details: Optional[str] = Field(None, alias="vesselBuildDetails")
    official_number: Optional[str] = Field(None, alias="vesselOfficialNumber")
    hull_id_number: Optional[str] = Field(None, alias="vesselHullIdentificationNumber")
    keel_offset: Optional[float] = Field(None, alias="vesselKeelOffset")
    waterline_offset: Optional[float] = Field(None, alias="vesselWaterlineOffset")


class SaveVesselRequest(VesselFields):
    vessel_uuid: Optional[str] = Field(None, alias="vesselUuid")


class VesselResponse(VesselFields):
    vessel_uuid: str = Field(..., alias="vesselUuid")
    setup_required: bool = Field(False, alias="setupRequired")


class ActiveVesselItem(BaseModel):
    uuid: str
    name: str


class InitStateResponse(CamelModel):
    user_required: bool = Field(..., alias="userRequired")
    vessel_required: bool = Field(..., alias="vesselRequired")
    is_logged_in: bool = Field(..., alias="isLoggedIn")


class SuccessResponse(BaseModel):
    success: bool = True


def _bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Optional[str]:
    return credentials.credentials if credentials else None


def get_current_claims(token: Optional[str] = Depends(_bearer_token)) -> TokenClaims:
    """Require a live bearer token."""
    if not token:
        raise AuthError("Not logged in")
    return verify_token(token, services.get_active_user)


def require_login_after_setup(token: Optional[str] = Depends(_bearer_token)) -> None:
    """Allow anonymous calls only while no active operator exists."""
    if services.count_active_users() == 0:
        return
    get_current_claims(token)


def serialize_vessel(vessel: Vessel) -> VesselResponse:
    return VesselResponse(
        vessel_uuid=vessel.uuid,
        name=vessel.name,
        flag_nation=vessel.flag_nation,
        port_of_registry=vessel.port_of_registry,
        build_details=vessel.build_details,
        official_number=vessel.official_number,
        hull_id_number=vessel.hull_id_number,
        keel_offset=vessel.keel_offset,
        waterline_offset=vessel.waterline_offset,
        setup_required=False,
    )


@app.get("/api/test-db")
def test_db():
    """Report database connectivity and the server clock."""
    try:
        services.check_database()
    except DatabaseError:
        return JSONResponse(
            status_code=500, content={"error": "Database connection failed"}
        )
    return {
        "status": "Online",
        "serverTime": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
    }


@app.get("/api/check-init", response_model=InitStateResponse)
def check_init(token: Optional[str] = Depends(_bearer_token)):
    """Return first-run requirements and whether the caller is logged in."""
    state = services.resolve_init_state(token)
    return InitStateResponse(
        user_required=state.user_required,
        vessel_required=state.vessel_required,
        is_logged_in=state.is_logged_in,
    )


@app.post("/api/login", response_model=LoginResponse)
def login(payload: LoginRequest):
    user = services.authenticate(payload.handle, payload.password)
    return LoginResponse(
        token=issue_token(user.uuid, user.handle, user.is_admin),
    )


@app.post(
    "/api/save-user",
    response_model=SuccessResponse,
    dependencies=[Depends(require_login_after_setup)],
)
def save_user(payload: SaveUserRequest):
    """Register a new operator."""
    if payload.password_confirm is not None and payload.password_confirm != payload.password:
        raise ValidationError("Security: Password Mismatch")
    services.create_user(
        payload.handle,
        payload.name,
        payload.password,
        is_admin=payload.is_admin,
        vessel_uuid=payload.vessel_uuid,
    )
    return SuccessResponse()


@app.get("/api/get-vessel")
def get_vessel():
    """Return the active vessel or signal that setup is required."""
    vessel = services.get_active_vessel()
    if vessel is None:
        return {"setupRequired": True}
    return serialize_vessel(vessel).model_dump(by_alias=True)


@app.post("/api/save-vessel", response_model=SuccessResponse)
def save_vessel(
    payload: SaveVesselRequest, token: Optional[str] = Depends(_bearer_token)
):
    """Create a vessel, or update one in place when ``vesselUuid`` is given."""
    if payload.vessel_uuid:
        # Editing an existing record needs an operator session.
        get_current_claims(token)
    fields = payload.model_dump(exclude={"vessel_uuid"}, exclude_unset=True)
    services.save_vessel(fields, vessel_uuid=payload.vessel_uuid)
    return SuccessResponse()


@app.get("/api/vessels/get-active", response_model=List[ActiveVesselItem])
def get_active_vessels():
    """List active vessels by name for operator assignment."""
    return [
        ActiveVesselItem(uuid=uuid, name=name)
        for uuid, name in services.list_active_vessels()
    ]
