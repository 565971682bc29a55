"""Prepper-backed configuration loader for the bulk translator."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Sequence

from dotenv import dotenv_values
from prepper import (
    Field,
    IoError,
    SchemaError,
    SchemaModel,
    ValidationError,
    model_validator,
)
from prepper.config import ConfigInstance
from prepper.loaders import _parse_file, _path_to_source, discover_file_paths
from prepper.merge import merge_layer
from prepper.provenance import ProvenanceRecorder

from .errors import ConfigurationError
from .logging_config import resolve_level

APP_NAME = "BulkTranslator"

DEFAULT_LANGUAGES = "en:English,fr:French,de:German,es:Spanish"


class BulkTranslatorConfig(SchemaModel):
    """Schema describing all supported configuration options."""

    BULK_TRANSLATOR_LANGUAGES: str = Field(
        default=DEFAULT_LANGUAGES,
        description="Available languages as comma-separated code:Name pairs.",
    )
    BULK_TRANSLATOR_STORE: str | None = Field(
        default=None,
        description="Default path of the JSON content store.",
    )
    BULK_TRANSLATOR_LOG_LEVEL: str = Field(default="WARNING")
    BULK_TRANSLATOR_RESTORE_ON_FAILURE: bool = Field(
        default=False,
        description="Restore an overwritten translation when saving its replacement fails.",
    )

    @model_validator(mode="before")
    def _normalise_log_level(data: Any) -> Any:
        if isinstance(data, dict):
            raw_value = data.get("BULK_TRANSLATOR_LOG_LEVEL")
            if isinstance(raw_value, str):
                data["BULK_TRANSLATOR_LOG_LEVEL"] = raw_value.strip().upper() or "WARNING"
        return data

    @property
    def languages(self) -> Dict[str, str]:
        return parse_language_catalog(self.BULK_TRANSLATOR_LANGUAGES)


def parse_language_catalog(raw: str) -> Dict[str, str]:
    """Parse ``"en:English,fr:French"`` into an ordered code to name mapping.

    A bare code is its own display name.
    """

    catalog: Dict[str, str] = {}
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        code, _, name = entry.partition(":")
        code = code.strip()
        if not code:
            raise ConfigurationError(
                f"Language entry '{entry}' is missing its code."
            )
        catalog[code] = name.strip() or code
    return catalog


@lru_cache(maxsize=1)
def _load_config_instance(app_dir: Path | None = None) -> ConfigInstance:
    """Load configuration layers once and cache the immutable instance."""

    base_dir = app_dir or Path.cwd()
    try:
        provenance = ProvenanceRecorder()
        combined = _load_discovered_yaml(app_dir=base_dir, provenance=provenance)
        _merge_env_sources(
            combined,
            provenance=provenance,
            app_dir=base_dir,
            schema=BulkTranslatorConfig,
        )

        model = BulkTranslatorConfig.validate(combined, provenance=provenance)
        _validate_settings(model)

        return ConfigInstance(
            model=model,
            provenance=provenance,
            env_prefix=None,
            schema_cls=BulkTranslatorConfig,
        )
    except IoError as exc:
        raise ConfigurationError(
            f"Configuration files could not be read: {exc}"
        ) from exc
    except SchemaError as exc:
        raise ConfigurationError(f"Configuration schema error: {exc}") from exc
    except ValidationError as exc:
        issues = _format_validation_errors(exc.to_dict())
        raise ConfigurationError(issues) from exc


def _load_discovered_yaml(
    *,
    app_dir: Path,
    provenance: ProvenanceRecorder,
) -> dict[str, Any]:
    """Load YAML configuration files using Prepper's discovery rules."""

    result: dict[str, Any] = {}
    discovered = discover_file_paths(
        APP_NAME,
        "yaml",
        app_dir=app_dir,
        extra_paths=None,
    )
    for path, label in discovered:
        parsed = _parse_file(path, "yaml")
        if not isinstance(parsed, Mapping):
            raise IoError(
                f"Invalid configuration file {path}: expected a mapping at the root."
            )
        source = _path_to_source(label, "yaml", path)
        merge_layer(result, parsed, provenance=provenance, source=source, layer="file")
    return result


def _merge_env_sources(
    target: dict[str, Any],
    *,
    provenance: ProvenanceRecorder,
    app_dir: Path,
    schema: type[SchemaModel],
) -> None:
    """Merge .env and process environment variables into the target mapping."""

    allowed = set(schema.__field_infos__.keys())

    def merge_values(values: Mapping[str, str], *, source_prefix: str) -> None:
        for key, value in sorted(values.items()):
            if value is None or key not in allowed:
                continue
            merge_layer(
                target,
                {key: value},
                provenance=provenance,
                source=f"env:{source_prefix}:{key}",
                layer="env",
            )

    dotenv_path = app_dir / ".env"
    if dotenv_path.exists():
        dotenv_content = dotenv_values(dotenv_path)
        merge_values(
            {k: v for k, v in dotenv_content.items() if v is not None},
            source_prefix=".env",
        )

    merge_values(
        {k: v for k, v in os.environ.items() if isinstance(v, str)},
        source_prefix="process",
    )


def _validate_settings(settings: BulkTranslatorConfig) -> None:
    errors: list[str] = []

    try:
        catalog = settings.languages
    except ConfigurationError as exc:
        errors.append(str(exc))
    else:
        if len(catalog) < 2:
            errors.append(
                "BULK_TRANSLATOR_LANGUAGES must list at least two languages."
            )

    try:
        resolve_level(settings.BULK_TRANSLATOR_LOG_LEVEL)
    except ValueError as exc:
        errors.append(f"BULK_TRANSLATOR_LOG_LEVEL: {exc}")

    if errors:
        bullet_list = "\n".join(f"- {message}" for message in errors)
        raise ConfigurationError(
            "Configuration validation errors detected:\n" + bullet_list
        )


def _format_validation_errors(entries: Sequence[dict[str, Any]]) -> str:
    details: list[str] = []
    for entry in entries:
        path = entry.get("path") or []
        if isinstance(path, (list, tuple)):
            location = ".".join(str(part) for part in path if part not in {None, ""})
        else:
            location = str(path)
        message = str(entry.get("message") or entry.get("msg") or "Invalid value")
        source = entry.get("source")
        origin = f" (source: {source})" if source else ""
        prefix = f"{location}: " if location else ""
        details.append(f"- {prefix}{message}{origin}")
    return "Configuration validation errors detected:\n" + "\n".join(details)


def get_config(app_dir: Path | None = None) -> ConfigInstance:
    """Return the immutable configuration instance."""

    return _load_config_instance(app_dir=app_dir)


def get_settings(app_dir: Path | None = None) -> BulkTranslatorConfig:
    """Return the validated schema model for typed access."""

    return get_config(app_dir=app_dir).model()


def reset_settings_cache() -> None:
    _load_config_instance.cache_clear()
