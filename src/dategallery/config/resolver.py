"""Configuration resolution helpers."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import GalleryConfig

ENV_PREFIX = "DATEGALLERY__"


def resolve_with_precedence(
    *,
    defaults: GalleryConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> GalleryConfig:
    """Merge configuration sources; later sources win (file, environment, CLI)."""
    merged = deepcopy(defaults.model_dump(mode="python"))
    for name, source in (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    ):
        if source is None:
            continue
        overrides = _normalize_mapping(source, source_name=name)
        merged = _deep_merge(merged, overrides)

    try:
        return GalleryConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def flatten_for_env(config: GalleryConfig) -> Dict[str, str]:
    """Flatten the config into `DATEGALLERY__SECTION__KEY` environment variable mappings."""
    flat: Dict[str, str] = {}

    def _recurse(prefix: list[str], value: Any) -> None:
        if isinstance(value, dict):
            for key, child in value.items():
                _recurse(prefix + [str(key)], child)
            return
        env_key = ENV_PREFIX + "__".join(part.upper() for part in prefix)
        if isinstance(value, list):
            rendered = yaml.safe_dump(value, default_flow_style=True).strip()
        else:
            rendered = "null" if value is None else str(value)
        flat[env_key] = rendered

    for top_key, child_value in config.model_dump(mode="python").items():
        _recurse([str(top_key)], child_value)

    return flat


def assign_dotted(target: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign ``value`` into ``target`` following ``path``, creating mappings as needed.

    Raises:
        ConfigError: If an intermediate segment already holds a scalar value.
    """
    node = target
    for segment in path[:-1]:
        existing = node.get(segment)
        if existing is None:
            existing = {}
            node[segment] = existing
        elif not isinstance(existing, dict):
            raise ConfigError(f"Cannot set {'.'.join(path)}: {segment} is not a section.")
        node = existing
    node[path[-1]] = value


def _normalize_mapping(source: Mapping[str, Any], *, source_name: str) -> dict[str, Any]:
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")

    result: dict[str, Any] = {}
    for key, value in dict(source).items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        path = key.split(".")
        if isinstance(value, MappingABC):
            value = _normalize_mapping(value, source_name=source_name)
            existing = _lookup(result, path)
            if isinstance(existing, dict):
                value = _deep_merge(existing, value)
        try:
            assign_dotted(result, path, value)
        except ConfigError as exc:
            raise ConfigError(
                f"{source_name.capitalize()} override for {key} conflicts with existing value."
            ) from exc
    return result


def _lookup(target: Mapping[str, Any], path: list[str]) -> Any:
    node: Any = target
    for segment in path:
        if not isinstance(node, MappingABC):
            return None
        node = node.get(segment)
    return node


def _deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = {key: deepcopy(value) for key, value in base.items()}
    for key, value in overrides.items():
        if isinstance(value, MappingABC) and isinstance(merged.get(key), MappingABC):
            merged[key] = _deep_merge(dict(merged[key]), value)  # type: ignore[arg-type]
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = ["ENV_PREFIX", "assign_dotted", "flatten_for_env", "resolve_with_precedence"]
