"""Configuration loading with pydantic-settings.

Sources, highest precedence first:
1. Direct kwargs
2. Environment variables (SCOPECOV__SECTION__KEY)
3. Project config: an explicit file, or the nearest .scopecov.yaml found
   walking up from the project directory (stopping at the repository root)
4. Global config (~/.config/scopecov/config.yaml)
5. Built-in defaults
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from scopecov.config.models import CollectorConfig, LoggingConfig, ScopeCovConfig
from scopecov.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/scopecov/config.yaml").expanduser()
REPO_CONFIG_NAME = ".scopecov.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top-level value must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def find_config_file(start: Path | None = None) -> Path | None:
    """Nearest .scopecov.yaml at or above ``start`` (default: cwd).

    The search stops at the first directory holding ``.git``, so a project
    never picks up the config of an enclosing checkout.
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / REPO_CONFIG_NAME
        if candidate.is_file():
            return candidate
        if (directory / ".git").exists():
            return None
    return None


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source over YAML files layered lowest precedence first."""

    def __init__(self, settings_cls: type[BaseSettings], layers: list[Path]) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        for path in layers:
            self._data = _deep_merge(self._data, _load_yaml(path))

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        value = self._data.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return self._data


def _settings_class(layers: list[Path]) -> type[BaseSettings]:
    """Settings class bound to one set of YAML layers."""

    class ScopeCovSettings(BaseSettings):
        """Env vars: SCOPECOV__LOGGING__LEVEL, SCOPECOV__COLLECTOR__PATHS, etc."""

        model_config = SettingsConfigDict(
            env_prefix="SCOPECOV__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        collector: CollectorConfig = CollectorConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # First wins
            return (init_settings, env_settings, _YamlSource(settings_cls, layers))

    return ScopeCovSettings


def load_config(
    repo_root: Path | None = None,
    config_file: Path | None = None,
    **kwargs: Any,
) -> ScopeCovConfig:
    """Load config: defaults < global yaml < project yaml < env vars < kwargs.

    Args:
        repo_root: Directory the project config search starts from.
            Defaults to cwd.
        config_file: Explicit project config file; disables the search.
        **kwargs: Override values (highest precedence).

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On a missing explicit config file, invalid YAML syntax
            or validation errors.
    """
    if config_file is not None:
        if not config_file.is_file():
            raise ConfigError.file_not_found(str(config_file))
        project_config: Path | None = config_file
    else:
        project_config = find_config_file(repo_root)

    layers = [GLOBAL_CONFIG_PATH]
    if project_config is not None:
        layers.append(project_config)

    try:
        settings = _settings_class(layers)(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return ScopeCovConfig.model_validate(settings.model_dump())
