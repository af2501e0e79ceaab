"""Service layer for operators, vessels and first-run state."""

import logging
from dataclasses import dataclass
from typing import Dict, List, NoReturn, Optional, Tuple

from prometheus_client import Counter
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .auth import hash_password, verify_password, verify_token
from .database import SessionLocal
from .errors import AuthError, DatabaseError, MuirgenError, ValidationError
from .models.user import User
from .models.vessel import Vessel


logger = logging.getLogger(__name__)

USER_CREATED_COUNTER = Counter("users_created_total", "Total operator accounts created")
VESSEL_SAVED_COUNTER = Counter("vessels_saved_total", "Total vessel records saved")
LOGIN_COUNTER = Counter("logins_total", "Login attempts by outcome", ["outcome"])

VESSEL_FIELDS = (
    "name",
    "flag_nation",
    "port_of_registry",
    "build_details",
    "official_number",
    "hull_id_number",
    "keel_offset",
    "waterline_offset",
)


@dataclass(frozen=True)
class InitState:
    """What the client must show before normal use."""

    user_required: bool
    vessel_required: bool
    is_logged_in: bool


def _handle_service_error(
    session: Session, exc: Exception, conflict_message: str = "Record already exists"
) -> NoReturn:
    """Rollback the transaction and raise the matching service error."""
    session.rollback()
    if isinstance(exc, MuirgenError):
        raise exc
    logger.exception("service layer error", exc_info=exc)
    if isinstance(exc, IntegrityError):
        raise ValidationError(conflict_message) from exc
    if isinstance(exc, SQLAlchemyError):
        raise DatabaseError() from exc
    raise exc


def check_database() -> None:
    """Round-trip a trivial query; raises :class:`DatabaseError` when offline."""
    session: Session = SessionLocal()
    try:
        session.execute(text("SELECT 1"))
    except Exception as exc:
        _handle_service_error(session, exc)
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Credential store
# ---------------------------------------------------------------------------


def _user_count(session: Session) -> int:
    return session.query(User).count()


def count_users() -> int:
    """Return how many users were ever created, active or not."""
    session: Session = SessionLocal()
    try:
        return _user_count(session)
    except Exception as exc:
        _handle_service_error(session, exc)
    finally:
        session.close()


def count_active_users() -> int:
    session: Session = SessionLocal()
    try:
        return session.query(User).filter(User.is_active.is_(True)).count()
    except Exception as exc:
        _handle_service_error(session, exc)
    finally:
        session.close()


def find_user_by_handle(handle: str) -> Optional[User]:
    """Return the active user with ``handle``, or ``None``."""
    session: Session = SessionLocal()
    try:
        return (
            session.query(User)
            .filter(User.handle == handle, User.is_active.is_(True))
            .first()
        )
    except Exception as exc:
        _handle_service_error(session, exc)
    finally:
        session.close()


def get_active_user(user_uuid: str) -> Optional[User]:
    session: Session = SessionLocal()
    try:
        return (
            session.query(User)
            .filter(User.uuid == user_uuid, User.is_active.is_(True))
            .first()
        )
    except Exception as exc:
        _handle_service_error(session, exc)
    finally:
        session.close()


def create_user(
    handle: str,
    name: str,
    password: str,
    is_admin: bool = False,
    vessel_uuid: Optional[str] = None,
) -> User:
    """Register an operator.

    The first user ever stored is always an administrator. Without an explicit
    ``vessel_uuid`` the user is assigned to the active vessel, if any.
    """
    if not handle or not name or not password:
        raise ValidationError("Handle, name and password are required")

    session: Session = SessionLocal()
    try:
        if _user_count(session) == 0:
            if not is_admin:
                logger.info("first operator %s promoted to administrator", handle)
            is_admin = True

        if vessel_uuid:
            vessel = (
                session.query(Vessel)
                .filter(Vessel.uuid == vessel_uuid, Vessel.is_active.is_(True))
                .first()
            )
            if vessel is None:
                raise ValidationError("Unknown vessel")
        else:
            vessel = _active_vessel_query(session).first()

        user = User(
            handle=handle,
            name=name,
            password_hash=hash_password(password),
            is_admin=is_admin,
            vessel_uuid=vessel.uuid if vessel else None,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        USER_CREATED_COUNTER.inc()
        logger.info("created operator %s admin=%s", user.handle, user.is_admin)
        return user
    except Exception as exc:
        _handle_service_error(session, exc, "Handle already registered")
    finally:
        session.close()


def deactivate_user(user_uuid: str) -> bool:
    """Soft-delete a user. Returns ``False`` when no such user exists."""
    session: Session = SessionLocal()
    try:
        user = session.get(User, user_uuid)
        if user is None:
            return False
        user.is_active = False
        session.commit()
        logger.info("deactivated operator %s", user.handle)
        return True
    except Exception as exc:
        _handle_service_error(session, exc)
    finally:
        session.close()


def authenticate(handle: str, password: str) -> User:
    """Return the active user matching the credentials.

    Unknown handles and wrong passwords raise the same :class:`AuthError`.
    """
    user = find_user_by_handle(handle)
    if user is None or not verify_password(password, user.password_hash):
        LOGIN_COUNTER.labels(outcome="denied").inc()
        logger.info("login denied")
        raise AuthError()
    LOGIN_COUNTER.labels(outcome="granted").inc()
    logger.info("login granted for %s", user.handle)
    return user


# ---------------------------------------------------------------------------
# Vessel registry
# ---------------------------------------------------------------------------


def _active_vessel_query(session: Session):
    # Earliest registration wins when several vessels are active.
    return (
        session.query(Vessel)
        .filter(Vessel.is_active.is_(True))
        .order_by(Vessel.created_at.asc(), Vessel.uuid.asc())
    )


def count_active_vessels() -> int:
    session: Session = SessionLocal()
    try:
        return session.query(Vessel).filter(Vessel.is_active.is_(True)).count()
    except Exception as exc:
        _handle_service_error(session, exc)
    finally:
        session.close()


def get_active_vessel() -> Optional[Vessel]:
    """Return the active vessel, or ``None`` when first-run setup is pending."""
    session: Session = SessionLocal()
    try:
        return _active_vessel_query(session).first()
    except Exception as exc:
        _handle_service_error(session, exc)
    finally:
        session.close()


def list_active_vessels() -> List[Tuple[str, str]]:
    """Return ``(uuid, name)`` for every active vessel, ordered by name."""
    session: Session = SessionLocal()
    try:
        rows = (
            session.query(Vessel.uuid, Vessel.name)
            .filter(Vessel.is_active.is_(True))
            .order_by(Vessel.name.asc())
            .all()
        )
        return [(row[0], row[1]) for row in rows]
    except Exception as exc:
        _handle_service_error(session, exc)
    finally:
        session.close()


def save_vessel(fields: Dict[str, object], vessel_uuid: Optional[str] = None) -> Vessel:
    """Insert a vessel, or upsert it by ``vessel_uuid`` when one is given.

    Parameters
    ----------
    fields: dict
        Column values keyed by the names in ``VESSEL_FIELDS``; unknown keys are
        ignored.
    vessel_uuid: str, optional
        Identifier of the vessel to update. A uuid with no matching row is
        inserted under that uuid, so repeating the call is idempotent.

    Returns
    -------
    Vessel
        The stored row.
    """
    values = {key: fields[key] for key in VESSEL_FIELDS if key in fields}
    session: Session = SessionLocal()
    try:
        vessel = session.get(Vessel, vessel_uuid) if vessel_uuid else None
        if vessel is None:
            if not values.get("name"):
                raise ValidationError("Vessel name is required")
            vessel = Vessel(**values)
            if vessel_uuid:
                vessel.uuid = vessel_uuid
            session.add(vessel)
        else:
            if "name" in values and not values["name"]:
                raise ValidationError("Vessel name is required")
            for key, value in values.items():
                setattr(vessel, key, value)
        session.commit()
        session.refresh(vessel)
        VESSEL_SAVED_COUNTER.inc()
        logger.info("saved vessel %s (%s)", vessel.name, vessel.uuid)
        return vessel
    except Exception as exc:
        _handle_service_error(session, exc)
    finally:
        session.close()


def deactivate_vessel(vessel_uuid: str) -> bool:
    session: Session = SessionLocal()
    try:
        vessel = session.get(Vessel, vessel_uuid)
        if vessel is None:
            return False
        vessel.is_active = False
        session.commit()
        logger.info("deactivated vessel %s", vessel.name)
        return True
    except Exception as exc:
        _handle_service_error(session, exc)
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Initialization state
# ---------------------------------------------------------------------------


def is_token_live(token: Optional[str]) -> bool:
    """Return whether ``token`` verifies and names a currently active user."""
    if not token:
        return False
    try:
        verify_token(token, get_active_user)
    except AuthError:
        return False
    return True


def resolve_init_state(token: Optional[str] = None) -> InitState:
    """Aggregate first-run requirements and the caller's login status.

    The two counts and the token check are separate reads; a concurrent setup
    may make the result stale immediately.
    """
    return InitState(
        user_required=count_active_users() == 0,
        vessel_required=count_active_vessels() == 0,
        is_logged_in=is_token_live(token),
    )
