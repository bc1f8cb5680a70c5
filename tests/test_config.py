import pytest

from inventory_api.config import ConfigError, Settings


def test_defaults():
    settings = Settings.from_env({"INVENTORY_API_JWT_SECRET": "s3cret"})

    assert settings.jwt_secret == "s3cret"
    assert settings.jwt_algorithm == "HS256"
    assert settings.jwt_principal_claim == "id"
    assert settings.database_url is None
    assert settings.port == 8000
    assert settings.log_json is False


def test_values_are_parsed():
    settings = Settings.from_env(
        {
            "INVENTORY_API_JWT_SECRET": "s3cret",
            "INVENTORY_API_DATABASE_URL": "sqlite:///inventory.db",
            "INVENTORY_API_STORE_TIMEOUT_SECONDS": "2.5",
            "INVENTORY_API_UPDATE_MAX_RETRIES": "7",
            "INVENTORY_API_LOG_LEVEL": "debug",
            "INVENTORY_API_LOG_JSON": "yes",
            "INVENTORY_API_PORT": "9090",
            "UNRELATED": "ignored",
        }
    )

    assert settings.database_url == "sqlite:///inventory.db"
    assert settings.store_timeout_seconds == 2.5
    assert settings.update_max_retries == 7
    assert settings.log_level == "DEBUG"
    assert settings.log_json is True
    assert settings.port == 9090


@pytest.mark.parametrize("environ", [{}, {"INVENTORY_API_JWT_SECRET": "   "}])
def test_secret_is_required(environ):
    with pytest.raises(ConfigError):
        Settings.from_env(environ)


def test_bad_number():
    with pytest.raises(ConfigError):
        Settings.from_env({"INVENTORY_API_JWT_SECRET": "s", "INVENTORY_API_PORT": "http"})
