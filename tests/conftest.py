import os

import pytest

# The application module builds its cipher at import time.
os.environ["SECRET_KEY"] = "secretKey"
os.environ["SECRET_IV"] = "secretIV"
os.environ["ENCRYPTION_METHOD"] = "aes-256-cbc"
os.environ["ENVIRONMENT"] = "test"

from fastapi.testclient import TestClient  # noqa: E402

from cipher_service.main import create_app  # noqa: E402
from cipher_service.services.cipher import CipherCore  # noqa: E402
from cipher_service.settings import Settings, get_settings  # noqa: E402


@pytest.fixture
def settings_factory():
    def _make(**overrides: str) -> Settings:
        values = {
            "secret_key": "secretKey",
            "secret_iv": "secretIV",
            "encryption_method": "aes-256-cbc",
            "environment": "test",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(settings_factory) -> Settings:
    return settings_factory()


@pytest.fixture
def cipher_core(settings: Settings) -> CipherCore:
    return CipherCore.from_settings(settings)


@pytest.fixture
def client(settings: Settings) -> TestClient:
    return TestClient(create_app(settings))


@pytest.fixture
def fresh_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
