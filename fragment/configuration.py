"""Prepper-backed configuration loader for fragment."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping, Sequence

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

APP_NAME = "Fragment"

log = logging.getLogger(__name__)


class FragmentConfig(SchemaModel):
    """Schema describing all supported configuration options."""

    FRAGMENT_ENCODING: str = Field(
        default="cp932",
        description="Codec used for the game's Shift-JIS text.",
    )
    FRAGMENT_PADDING: Literal["null", "space"] = Field(
        default="null",
        description="Byte written into unused slot space after a shorter translation.",
    )
    FRAGMENT_HALT_ON_OVERSIZE: bool = Field(default=False)
    FRAGMENT_PATH_PREFIX: str = Field(
        default="",
        description="Prefix joining table file names to container paths, e.g. DATA/.",
    )
    FRAGMENT_TABLE_URL: str | None = Field(default=None)
    FRAGMENT_HTTP_TIMEOUT: float = Field(default=30.0)

    @model_validator(mode="before")
    def _normalise_padding(data: Any) -> Any:
        if isinstance(data, dict):
            raw_value = data.get("FRAGMENT_PADDING")
            if isinstance(raw_value, str):
                normalized = raw_value.strip().lower()
                synonyms = {
                    "0": "null",
                    "0x00": "null",
                    "nul": "null",
                    "0x20": "space",
                    " ": "space",
                }
                data["FRAGMENT_PADDING"] = synonyms.get(normalized, normalized)
        return data


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
            schema=FragmentConfig,
        )

        model = FragmentConfig.validate(combined, provenance=provenance)
        _validate_settings(model)

        instance = ConfigInstance(
            model=model,
            provenance=provenance,
            env_prefix=None,
            schema_cls=FragmentConfig,
        )
        return instance
    except IoError as exc:
        raise ConfigurationError(f"Could not read fragment settings: {exc}") from exc
    except SchemaError as exc:
        raise ConfigurationError(f"Invalid fragment settings schema: {exc}") from exc
    except ValidationError as exc:
        raise ConfigurationError(_format_validation_errors(exc.to_dict())) from exc


def _load_discovered_yaml(
    *,
    app_dir: Path,
    provenance: ProvenanceRecorder,
) -> dict[str, Any]:
    """Merge every discovered ``fragment.yaml`` layer, lowest priority first."""

    settings: dict[str, Any] = {}
    for path, label in discover_file_paths(APP_NAME, "yaml", app_dir=app_dir, extra_paths=None):
        layer = _parse_file(path, "yaml")
        if not isinstance(layer, Mapping):
            raise IoError(f"{path} must hold a mapping of FRAGMENT_* settings.")
        log.debug("Loaded fragment settings from %s", path)
        merge_layer(
            settings,
            layer,
            provenance=provenance,
            source=_path_to_source(label, "yaml", path),
            layer="file",
        )
    return settings


def _merge_env_sources(
    target: dict[str, Any],
    *,
    provenance: ProvenanceRecorder,
    app_dir: Path,
    schema: type[SchemaModel],
) -> None:
    """Overlay FRAGMENT_* values from ``.env`` and then the process environment."""

    known = set(schema.__field_infos__)

    def overlay(values: Mapping[str, str | None], origin: str) -> None:
        for key in sorted(known.intersection(values)):
            value = values[key]
            if value is None:
                continue
            merge_layer(
                target,
                {key: value},
                provenance=provenance,
                source=f"env:{origin}:{key}",
                layer="env",
            )

    dotenv_path = app_dir / ".env"
    if dotenv_path.is_file():
        overlay(dotenv_values(dotenv_path), ".env")
    overlay(dict(os.environ), "process")


def _validate_settings(settings: FragmentConfig) -> None:
    errors: list[str] = []

    try:
        "".encode(settings.FRAGMENT_ENCODING)
    except LookupError:
        errors.append(
            f"FRAGMENT_ENCODING names an unknown codec: {settings.FRAGMENT_ENCODING!r}."
        )

    if settings.FRAGMENT_HTTP_TIMEOUT <= 0:
        errors.append("FRAGMENT_HTTP_TIMEOUT must be a positive number of seconds.")

    url = settings.FRAGMENT_TABLE_URL
    if url and not url.lower().startswith(("http://", "https://")):
        errors.append("FRAGMENT_TABLE_URL must be an http:// or https:// URL.")

    if errors:
        bullet_list = "\n".join(f"- {message}" for message in errors)
        raise ConfigurationError(
            "Invalid fragment settings:\n" + bullet_list
        )


def _format_validation_errors(entries: Sequence[dict[str, Any]]) -> str:
    """One bullet per rejected FRAGMENT_* value, naming where it was set."""

    details: list[str] = []
    for entry in entries:
        path = entry.get("path") or []
        if isinstance(path, (list, tuple)):
            setting = ".".join(str(part) for part in path if part not in {None, ""})
        else:
            setting = str(path)
        reason = entry.get("message") or entry.get("msg") or "invalid value"
        line = f"- {setting or 'settings'}: {reason}"
        if entry.get("source"):
            line += f" (set in {entry['source']})"
        details.append(line)
    return "Invalid fragment settings:\n" + "\n".join(details)


def get_config(app_dir: Path | None = None) -> ConfigInstance:
    """Return the cached settings together with their provenance."""

    return _load_config_instance(app_dir=app_dir)


def get_settings(app_dir: Path | None = None) -> FragmentConfig:
    """Return the typed FRAGMENT_* settings for ``app_dir`` (default: cwd)."""

    return get_config(app_dir=app_dir).model()
