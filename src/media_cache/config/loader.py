from __future__ import annotations

import os
from pathlib import Path
from typing import Any, MutableMapping, Sequence, Type

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel

from media_cache.config.models import AppConfig, ConfigLoadRequest


def _read_yaml_config(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}

    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Top-level YAML must be a mapping, got: {type(data).__name__}")
    return data


def _load_dotenv_if_present(dotenv_path: Path) -> None:
    if not dotenv_path.exists():
        return
    load_dotenv(dotenv_path=dotenv_path, override=False)


def _env_var_name_to_segments(env_var_name: str, prefix: str) -> Sequence[str]:
    remainder = env_var_name[len(prefix) :]
    parts = [p for p in remainder.split("__") if p]
    if not parts:
        raise ValueError(f"Invalid environment variable override name: {env_var_name}")
    return [p.lower() for p in parts]


def _resolve_model_path(model: Type[BaseModel], path: Sequence[str]) -> None:
    """Raise KeyError unless `path` names a leaf field of `model`."""
    dotted = ".".join(path)
    current: Type[BaseModel] = model
    for index, segment in enumerate(path):
        field = current.model_fields.get(segment)
        if field is None:
            raise KeyError(f"Unknown configuration key path: {dotted}")
        annotation = field.annotation
        is_section = isinstance(annotation, type) and issubclass(annotation, BaseModel)
        is_last = index == len(path) - 1
        if is_last and is_section:
            raise TypeError(f"Configuration key path points to a section, not a value: {dotted}")
        if not is_last:
            if not is_section:
                raise TypeError(f"Configuration key path does not point to a mapping: {dotted}")
            current = annotation


def _get_parent_mapping(config: MutableMapping[str, Any], path: Sequence[str]) -> MutableMapping[str, Any]:
    cur: MutableMapping[str, Any] = config
    for segment in path[:-1]:
        next_value = cur.setdefault(segment, {})
        if not isinstance(next_value, dict):
            dotted = ".".join(path)
            raise TypeError(f"Configuration key path does not point to a mapping: {dotted}")
        cur = next_value
    return cur


def _apply_env_overrides(config: MutableMapping[str, Any], env_prefix: str) -> None:
    for name, value in os.environ.items():
        if not name.startswith(env_prefix):
            continue

        segments = _env_var_name_to_segments(name, env_prefix)
        _resolve_model_path(AppConfig, segments)
        parent = _get_parent_mapping(config, segments)

        # We allow overriding any value; Pydantic will handle type coercion/validation later.
        parent[segments[-1]] = value


class YamlConfigLoader:
    async def load(self, request: ConfigLoadRequest = ConfigLoadRequest()) -> AppConfig:
        config = _read_yaml_config(Path(request.yaml_path))

        if request.dotenv_path is not None:
            _load_dotenv_if_present(Path(request.dotenv_path))

        _apply_env_overrides(config, request.env_prefix)
        return AppConfig.model_validate(config)
