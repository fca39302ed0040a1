import copy
from pathlib import Path

import pytest
import yaml


BASE_SETTINGS = {
    "application": {
        "port": 8000,
        "host": "127.0.0.1",
        "base_url": "localhost:8000",
        "protocol": "http",
    },
    "debug": False,
    "database": {
        "username": "postgres",
        "password": "password",
        "port": 5432,
        "host": "localhost",
        "database_name": "auth_backend",
        "require_ssl": False,
    },
    "redis": {
        "uri": "fakeredis://",
        "pool_max_open": 16,
        "pool_max_idle": 8,
        "pool_timeout_seconds": 1,
        "pool_expire_seconds": 60,
    },
}


def write_yaml(path: Path, data) -> Path:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


@pytest.fixture
def base_settings():
    return copy.deepcopy(BASE_SETTINGS)


@pytest.fixture
def settings_dir(tmp_path, base_settings):
    """A settings directory with a complete base file and empty environment files."""
    write_yaml(tmp_path / "base.yaml", base_settings)
    (tmp_path / "development.yaml").write_text("", encoding="utf-8")
    (tmp_path / "production.yaml").write_text("", encoding="utf-8")
    return tmp_path
