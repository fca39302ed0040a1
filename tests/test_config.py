import pytest

from auth_backend.core.config import Settings, get_settings, load_settings
from auth_backend.core.errors import (
    ConfigFileNotFoundError,
    ConfigParseError,
    ConfigurationError,
    FieldTypeError,
    MissingFieldError,
    UnsupportedEnvironment,
)
from conftest import write_yaml


LEAF_PATHS = [
    "application.port",
    "application.host",
    "application.base_url",
    "application.protocol",
    "debug",
    "database.username",
    "database.password",
    "database.port",
    "database.host",
    "database.database_name",
    "database.require_ssl",
    "redis.uri",
    "redis.pool_max_open",
    "redis.pool_max_idle",
    "redis.pool_timeout_seconds",
    "redis.pool_expire_seconds",
]


def test_loads_base_file(settings_dir):
    settings = load_settings(settings_dir, {})

    assert isinstance(settings, Settings)
    assert settings.application.port == 8000
    assert settings.database.database_name == "auth_backend"
    assert settings.redis.pool_max_open == 16
    assert settings.debug is False


def test_environment_file_overrides_base(settings_dir):
    write_yaml(settings_dir / "development.yaml", {"application": {"port": 9000}})

    settings = load_settings(settings_dir, {})

    assert settings.application.port == 9000
    assert settings.application.host == "127.0.0.1"


def test_environment_variable_overrides_files(settings_dir):
    write_yaml(settings_dir / "development.yaml", {"application": {"port": 9000}})

    settings = load_settings(settings_dir, {"APP_APPLICATION__PORT": "5001"})

    assert settings.application.port == 5001


def test_app_environment_selects_file(settings_dir):
    write_yaml(settings_dir / "development.yaml", {"debug": True})
    write_yaml(settings_dir / "production.yaml", {"database": {"require_ssl": True}})

    dev = load_settings(settings_dir, {})
    prod = load_settings(settings_dir, {"APP_ENVIRONMENT": "PRODUCTION"})

    assert dev.debug is True and dev.database.require_ssl is False
    assert prod.debug is False and prod.database.require_ssl is True


def test_environment_values_are_coerced(settings_dir):
    settings = load_settings(
        settings_dir,
        {
            "APP_DEBUG": "true",
            "APP_DATABASE__REQUIRE_SSL": "1",
            "APP_REDIS__POOL_TIMEOUT_SECONDS": "30",
            "APP_DATABASE__PASSWORD": "s3cr3t",
        },
    )

    assert settings.debug is True
    assert settings.database.require_ssl is True
    assert settings.redis.pool_timeout_seconds == 30
    assert settings.database.password == "s3cr3t"


def test_numeric_yaml_value_accepted_for_string_field(settings_dir, base_settings):
    base_settings["database"]["password"] = 12345
    write_yaml(settings_dir / "base.yaml", base_settings)

    assert load_settings(settings_dir, {}).database.password == "12345"


@pytest.mark.parametrize("path", LEAF_PATHS)
def test_missing_field_is_reported_by_path(settings_dir, base_settings, path):
    section, _, leaf = path.partition(".")
    if leaf:
        del base_settings[section][leaf]
    else:
        del base_settings[section]
    write_yaml(settings_dir / "base.yaml", base_settings)

    with pytest.raises(MissingFieldError) as excinfo:
        load_settings(settings_dir, {})
    assert excinfo.value.path == path


def test_missing_field_supplied_by_environment(settings_dir, base_settings):
    del base_settings["redis"]["uri"]
    write_yaml(settings_dir / "base.yaml", base_settings)

    settings = load_settings(settings_dir, {"APP_REDIS__URI": "redis://cache:6379"})

    assert settings.redis.uri == "redis://cache:6379"


def test_first_missing_field_in_declaration_order_is_reported(settings_dir, base_settings):
    del base_settings["redis"]["uri"]
    del base_settings["application"]["port"]
    write_yaml(settings_dir / "base.yaml", base_settings)

    with pytest.raises(MissingFieldError) as excinfo:
        load_settings(settings_dir, {})
    assert excinfo.value.path == "application.port"


@pytest.mark.parametrize(
    "environ, path",
    [
        ({"APP_APPLICATION__PORT": "not-a-port"}, "application.port"),
        ({"APP_APPLICATION__PORT": "70000"}, "application.port"),
        ({"APP_REDIS__POOL_MAX_OPEN": "-1"}, "redis.pool_max_open"),
        ({"APP_DEBUG": "maybe"}, "debug"),
    ],
)
def test_type_mismatch_names_field_and_source(settings_dir, environ, path):
    with pytest.raises(FieldTypeError) as excinfo:
        load_settings(settings_dir, environ)

    assert excinfo.value.path == path
    assert excinfo.value.source.startswith("environment")


def test_type_mismatch_in_file_names_file(settings_dir):
    write_yaml(settings_dir / "development.yaml", {"database": {"port": "five"}})

    with pytest.raises(FieldTypeError) as excinfo:
        load_settings(settings_dir, {})
    assert excinfo.value.source.endswith("development.yaml")


def test_missing_base_file(tmp_path):
    with pytest.raises(ConfigFileNotFoundError):
        load_settings(tmp_path, {})


def test_missing_environment_file(settings_dir):
    (settings_dir / "production.yaml").unlink()

    with pytest.raises(ConfigFileNotFoundError) as excinfo:
        load_settings(settings_dir, {"APP_ENVIRONMENT": "production"})
    assert excinfo.value.source.endswith("production.yaml")


def test_unsupported_environment(settings_dir):
    with pytest.raises(UnsupportedEnvironment):
        load_settings(settings_dir, {"APP_ENVIRONMENT": "staging"})


def test_errors_share_one_base(settings_dir):
    with pytest.raises(ConfigurationError):
        load_settings(settings_dir, {"APP_APPLICATION__PORT": "x"})


def test_loading_twice_is_idempotent(settings_dir):
    environ = {"APP_APPLICATION__PORT": "5001", "APP_ENVIRONMENT": "development"}

    first = load_settings(settings_dir, environ)
    second = load_settings(settings_dir, environ)

    assert first == second
    assert first is not second


def test_settings_are_frozen(settings_dir):
    settings = load_settings(settings_dir, {})

    with pytest.raises(Exception):
        settings.debug = True
    with pytest.raises(Exception):
        settings.application.port = 1


def test_password_hidden_from_repr(settings_dir):
    settings = load_settings(settings_dir, {})

    assert "password" not in repr(settings.database)


def test_public_url(settings_dir):
    settings = load_settings(settings_dir, {})
    assert settings.application.public_url == "http://localhost:8000"

    explicit = load_settings(settings_dir, {"APP_APPLICATION__BASE_URL": "https://auth.example.com"})
    assert explicit.application.public_url == "https://auth.example.com"


def test_get_settings_reads_os_environ_once(settings_dir, monkeypatch):
    monkeypatch.setenv("APP_APPLICATION__PORT", "7001")
    monkeypatch.delenv("APP_ENVIRONMENT", raising=False)
    get_settings.cache_clear()

    try:
        settings = get_settings(settings_dir)
        assert settings.application.port == 7001
        assert get_settings(settings_dir) is settings
    finally:
        get_settings.cache_clear()


def test_unsigned_pool_values_are_bounded_to_64_bits(settings_dir):
    largest = load_settings(settings_dir, {"APP_REDIS__POOL_EXPIRE_SECONDS": str(2**64 - 1)})
    assert largest.redis.pool_expire_seconds == 2**64 - 1

    with pytest.raises(FieldTypeError) as excinfo:
        load_settings(settings_dir, {"APP_REDIS__POOL_EXPIRE_SECONDS": str(2**64)})
    assert excinfo.value.path == "redis.pool_expire_seconds"


def test_unparseable_table_override_is_a_parse_error(settings_dir):
    with pytest.raises(ConfigParseError) as excinfo:
        load_settings(settings_dir, {"APP_APPLICATION": "not-json"})
    assert excinfo.value.source.startswith("environment")


def test_settings_can_be_built_directly(base_settings):
    settings = Settings(**base_settings)

    assert settings.application.port == 8000
    assert settings == Settings(**base_settings)
