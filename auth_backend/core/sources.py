"""
Settings sources for the layered loader.

Thin subclasses of the pydantic-settings sources: settings files are
required rather than silently skipped, parse failures surface as
``ConfigParseError``, and the environment source reads an injected mapping
instead of ``os.environ``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Sequence

import yaml
from pydantic_settings import (
    BaseSettings,
    EnvSettingsSource,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    YamlConfigSettingsSource,
)

from auth_backend.core.errors import ConfigFileNotFoundError, ConfigParseError


def _parse_document(file_path: Path, read: Callable[[Path], Any]) -> dict[str, Any]:
    try:
        document = read(file_path)
    except (OSError, UnicodeDecodeError, ValueError, yaml.YAMLError) as exc:
        raise ConfigParseError(str(file_path), exc) from exc
    if not isinstance(document, Mapping):
        raise ConfigParseError(
            str(file_path), TypeError(f"expected a mapping at the document root, got {type(document).__name__}")
        )
    return dict(document)


def _require_file(path: Path) -> None:
    if not path.is_file():
        raise ConfigFileNotFoundError(str(path))


class YamlFileSource(YamlConfigSettingsSource):
    """A required YAML settings file. An empty file contributes nothing."""

    def __init__(self, settings_cls: type[BaseSettings], path: Path) -> None:
        self.name = str(path)
        _require_file(path)
        super().__init__(settings_cls, yaml_file=path, yaml_file_encoding="utf-8")

    def _read_file(self, file_path: Path) -> dict[str, Any]:
        return _parse_document(file_path, super()._read_file)


class JsonFileSource(JsonConfigSettingsSource):
    def __init__(self, settings_cls: type[BaseSettings], path: Path) -> None:
        self.name = str(path)
        _require_file(path)
        super().__init__(settings_cls, json_file=path, json_file_encoding="utf-8")

    def _read_file(self, file_path: Path) -> dict[str, Any]:
        return _parse_document(file_path, super()._read_file)


FILE_SOURCES: dict[str, type[PydanticBaseSettingsSource]] = {
    ".yaml": YamlFileSource,
    ".yml": YamlFileSource,
    ".json": JsonFileSource,
}


def file_source(settings_cls: type[BaseSettings], path: Path) -> PydanticBaseSettingsSource:
    """Pick the source class for ``path`` by its extension."""
    path = Path(path)
    source_cls = FILE_SOURCES.get(path.suffix.lower())
    if source_cls is None:
        raise ConfigParseError(str(path), ValueError(f"unsupported file extension {path.suffix!r}"))
    return source_cls(settings_cls, path)


class EnvironmentSource(EnvSettingsSource):
    """Overrides taken from an injected environment mapping.

    Prefix, nesting delimiter and case handling come from the settings
    class config, so ``APP_APPLICATION__PORT=5001`` becomes
    ``{"application": {"port": "5001"}}``.
    """

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        environ: Mapping[str, str],
        env_prefix: Optional[str] = None,
        env_nested_delimiter: Optional[str] = None,
    ) -> None:
        self.environ = environ
        super().__init__(
            settings_cls,
            env_prefix=env_prefix,
            env_nested_delimiter=env_nested_delimiter,
        )
        self.name = f"environment ({self.env_prefix.upper()}*)"

    def _load_env_vars(self) -> Mapping[str, Optional[str]]:
        if self.case_sensitive:
            return dict(self.environ)
        return {key.lower(): value for key, value in self.environ.items()}


def source_name(source: PydanticBaseSettingsSource) -> str:
    return getattr(source, "name", type(source).__name__)


def find_origin(sources: Sequence[PydanticBaseSettingsSource], loc: Sequence[Any]) -> Optional[str]:
    """Name of the highest-priority source that supplied ``loc``.

    ``sources`` is ordered lowest priority first.
    """
    for source in reversed(sources):
        node: Any = source()
        for part in loc:
            if not isinstance(node, Mapping) or part not in node:
                break
            node = node[part]
        else:
            return source_name(source)
    return None
