from datetime import datetime, timedelta

import pytest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from muirgen import services
from muirgen.auth import issue_token
from muirgen.errors import AuthError, DatabaseError, ValidationError
from muirgen.models.vessel import Vessel


def _add_vessels(session_local, *names, start=datetime(2026, 1, 1)):
    session = session_local()
    rows = []
    for offset, name in enumerate(names):
        rows.append(Vessel(name=name, created_at=start + timedelta(minutes=offset)))
    session.add_all(rows)
    session.commit()
    uuids = [row.uuid for row in rows]
    session.close()
    return uuids


def test_first_user_is_always_admin(session_local):
    first = services.create_user("skipper", "Skipper", "pw", is_admin=False)
    second = services.create_user("deckhand", "Deckhand", "pw", is_admin=False)
    third = services.create_user("mate", "Mate", "pw", is_admin=True)
    assert first.is_admin is True
    assert second.is_admin is False
    assert third.is_admin is True
    assert services.count_users() == 3


def test_admin_promotion_counts_deactivated_users(session_local):
    first = services.create_user("skipper", "Skipper", "pw")
    services.deactivate_user(first.uuid)
    later = services.create_user("deckhand", "Deckhand", "pw", is_admin=False)
    assert later.is_admin is False


def test_duplicate_handle_is_a_validation_error(session_local):
    services.create_user("skipper", "Skipper", "pw")
    with pytest.raises(ValidationError) as exc:
        services.create_user("skipper", "Other", "pw")
    assert exc.value.message == "Handle already registered"


def test_password_is_stored_hashed(session_local):
    user = services.create_user("skipper", "Skipper", "plain-secret")
    assert user.password_hash != "plain-secret"
    assert user.password_hash.startswith("$2")


def test_find_by_handle_ignores_inactive_users(session_local):
    user = services.create_user("skipper", "Skipper", "pw")
    assert services.find_user_by_handle("skipper").uuid == user.uuid
    assert services.deactivate_user(user.uuid) is True
    assert services.find_user_by_handle("skipper") is None
    assert services.deactivate_user("missing") is False


def test_user_defaults_to_active_vessel(session_local):
    (vessel_uuid,) = _add_vessels(session_local, "Muirgen")
    user = services.create_user("skipper", "Skipper", "pw")
    assert user.vessel_uuid == vessel_uuid


def test_unknown_vessel_assignment_rejected(session_local):
    with pytest.raises(ValidationError):
        services.create_user("skipper", "Skipper", "pw", vessel_uuid="nope")
    assert services.count_users() == 0


def test_authenticate_denies_unknown_and_wrong_alike(session_local):
    services.create_user("skipper", "Skipper", "pw")
    with pytest.raises(AuthError) as wrong:
        services.authenticate("skipper", "bad")
    with pytest.raises(AuthError) as unknown:
        services.authenticate("nobody", "pw")
    assert wrong.value.message == unknown.value.message
    assert services.authenticate("skipper", "pw").handle == "skipper"


def test_resolve_fresh_install_ignores_token(session_local):
    token = issue_token("ghost", "ghost", True)
    state = services.resolve_init_state(token)
    assert state == services.InitState(
        user_required=True, vessel_required=True, is_logged_in=False
    )


def test_resolve_logged_in_then_deactivated(session_local):
    _add_vessels(session_local, "Muirgen")
    user = services.create_user("skipper", "Skipper", "pw")
    services.create_user("mate", "Mate", "pw")
    token = issue_token(user.uuid, user.handle, user.is_admin)

    state = services.resolve_init_state(token)
    assert state.is_logged_in is True
    assert state.user_required is False
    assert state.vessel_required is False

    services.deactivate_user(user.uuid)
    assert services.resolve_init_state(token).is_logged_in is False


def test_resolve_without_token(session_local):
    _add_vessels(session_local, "Muirgen")
    state = services.resolve_init_state(None)
    assert state.user_required is True
    assert state.vessel_required is False
    assert state.is_logged_in is False


def test_active_vessel_none_before_setup(session_local):
    assert services.get_active_vessel() is None


def test_active_vessel_is_earliest_registered(session_local):
    first, second = _add_vessels(session_local, "Zephyr", "Albatross")
    assert services.get_active_vessel().uuid == first
    services.deactivate_vessel(first)
    assert services.get_active_vessel().uuid == second


def test_list_active_vessels_sorted_by_name(session_local):
    uuids = _add_vessels(session_local, "Beta", "Alpha", "Gamma", "Delta")
    services.deactivate_vessel(uuids[3])
    names = [name for _, name in services.list_active_vessels()]
    assert names == ["Alpha", "Beta", "Gamma"]


def test_save_vessel_requires_name(session_local):
    with pytest.raises(ValidationError):
        services.save_vessel({"flag_nation": "Ireland"})


def test_save_vessel_upsert_by_uuid_is_idempotent(session_local):
    fields = {"name": "Muirgen", "official_number": "IRL-1", "keel_offset": 1.5}
    created = services.save_vessel(fields, vessel_uuid="fixed-uuid")
    again = services.save_vessel(fields, vessel_uuid="fixed-uuid")
    assert created.uuid == again.uuid == "fixed-uuid"
    assert services.count_active_vessels() == 1

    updated = services.save_vessel({"official_number": "IRL-2"}, vessel_uuid="fixed-uuid")
    assert updated.official_number == "IRL-2"
    assert updated.name == "Muirgen"
    assert updated.keel_offset == 1.5


def test_sql_failure_becomes_database_error(session_local):
    engine = session_local.kw["bind"]
    with engine.begin() as conn:
        conn.execute(text("DROP TABLE vessels"))
    with pytest.raises(DatabaseError) as exc:
        services.count_active_vessels()
    assert isinstance(exc.value.__cause__, SQLAlchemyError)
    assert exc.value.status_code == 500
