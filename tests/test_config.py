import pydantic
import pytest

from muirgen.config import Settings


def test_missing_signing_secret_refuses_to_load(monkeypatch):
    monkeypatch.delenv("JWT_SECRET", raising=False)
    with pytest.raises(pydantic.ValidationError):
        Settings(_env_file=None)


def test_blank_signing_secret_refuses_to_load(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "   ")
    with pytest.raises(pydantic.ValidationError):
        Settings(_env_file=None)


def test_defaults(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "s3cret")
    monkeypatch.delenv("TOKEN_EXPIRE_DAYS", raising=False)
    cfg = Settings(_env_file=None)
    assert cfg.token_expire_days == 30
    assert cfg.jwt_algorithm == "HS256"


def test_client_only_values_are_not_server_settings():
    assert "vessel_name_default" not in Settings.model_fields
