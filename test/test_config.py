from unittest.mock import MagicMock

import pytest

from datavista import main
from datavista.core.config import DEVELOPMENT_SECRET_KEY, ConfigurationError, Settings


def production_settings(**overrides):
    values = {
        "ENVIRONMENT": "production",
        "DATABASE_URL": None,
        "SECRET_KEY": None,
        "LOG_FILE": None,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.mark.parametrize("overrides", [
    {},
    {"DATABASE_URL": "sqlite+aiosqlite://"},
    {"SECRET_KEY": "prod-secret"},
])
def test_production_requires_database_url_and_secret(overrides):
    with pytest.raises(ConfigurationError):
        production_settings(**overrides).check_required()


def test_production_with_required_settings_passes():
    production_settings(DATABASE_URL="sqlite+aiosqlite://", SECRET_KEY="prod-secret").check_required()


def test_development_falls_back_to_development_secret():
    settings = Settings(ENVIRONMENT="development", SECRET_KEY=None, LOG_FILE=None)

    settings.check_required()

    assert settings.secret_key == DEVELOPMENT_SECRET_KEY
    assert settings.verbose_errors is True


def test_database_url_built_from_parts():
    settings = Settings(
        DATABASE_URL=None,
        DB_HOST="db",
        DB_PORT="3307",
        DB_USER="app",
        DB_PASSWORD="pw",
        DB_NAME="datavista",
        LOG_FILE=None,
    )
    assert settings.database_url == "mysql+aiomysql://app:pw@db:3307/datavista"


def test_run_exits_when_production_settings_missing(monkeypatch):
    """Test the server entrypoint exits with status 1 and never starts uvicorn"""
    server = MagicMock()
    monkeypatch.setattr(main, "get_settings", production_settings)
    monkeypatch.setattr(main, "configure_logging", MagicMock())
    monkeypatch.setattr(main.uvicorn, "run", server)

    with pytest.raises(SystemExit) as exc_info:
        main.run()

    assert exc_info.value.code == 1
    server.assert_not_called()


def test_run_starts_server_with_valid_settings(monkeypatch):
    server = MagicMock()
    settings = production_settings(DATABASE_URL="sqlite+aiosqlite://", SECRET_KEY="prod-secret", PORT=4100)
    monkeypatch.setattr(main, "get_settings", lambda: settings)
    monkeypatch.setattr(main, "configure_logging", MagicMock())
    monkeypatch.setattr(main.uvicorn, "run", server)

    main.run()

    server.assert_called_once()
    assert server.call_args.kwargs["port"] == 4100
    assert server.call_args.kwargs["reload"] is False


async def test_startup_fails_when_production_settings_missing(monkeypatch):
    monkeypatch.setattr(main, "configure_logging", MagicMock())
    app = main.create_app(production_settings())

    with pytest.raises(ConfigurationError):
        async with app.router.lifespan_context(app):
            pass


def test_create_app_configures_logging(monkeypatch, settings):
    """Test logging is set up by the app factory, which reload workers call"""
    configure_logging = MagicMock()
    monkeypatch.setattr(main, "configure_logging", configure_logging)

    main.create_app(settings)

    configure_logging.assert_called_once_with(settings)
