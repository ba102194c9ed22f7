"""Load and persist signage player settings from YAML files."""

from __future__ import annotations

import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Generic, Mapping, Optional, Type, TypeVar, Union

import yaml
from pydantic import BaseModel, ValidationError

from ..models.config import SignageSettings

T = TypeVar("T", bound=BaseModel)

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Base exception for loader errors."""


class ConfigValidationError(ConfigError):
    """Raised when the settings on disk do not match the schema."""

    def __init__(self, message: str, errors: Any) -> None:
        super().__init__(message)
        self.errors = errors


def deep_merge(base: Mapping[str, Any], update: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``update`` into ``base`` without mutating either."""

    merged: Dict[str, Any] = deepcopy(dict(base))
    for key, value in update.items():
        if key in merged and isinstance(merged[key], Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


class SettingsLoader(Generic[T]):
    """Read a YAML settings file on top of the schema defaults.

    A missing file yields the defaults; a file that is not a mapping or
    does not validate raises :class:`ConfigError`.
    """

    def __init__(self, path: Union[str, Path], model: Type[T] = SignageSettings) -> None:  # type: ignore[assignment]
        self.path = Path(path)
        self.model = model

    def load(self) -> T:
        defaults = self.model().model_dump()
        data: Dict[str, Any] = {}
        if self.path.exists():
            try:
                raw = yaml.safe_load(self.path.read_text(encoding="utf-8"))
            except yaml.YAMLError as exc:
                raise ConfigError(f"Could not parse settings file {self.path}: {exc}") from exc
            if raw is None:
                raw = {}
            if not isinstance(raw, Mapping):
                raise ConfigError(f"Settings file {self.path} must contain a YAML mapping")
            data = dict(raw)
        else:
            logger.debug("Settings file %s not found, using defaults", self.path)
        try:
            return self.model.model_validate(deep_merge(defaults, data))
        except ValidationError as exc:
            raise ConfigValidationError("Settings do not match the schema", exc.errors()) from exc

    def save(self, settings: T) -> None:
        payload = settings.model_dump()
        text = yaml.safe_dump(payload, allow_unicode=True, sort_keys=False)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(text, encoding="utf-8")


def load_settings(path: Optional[Union[str, Path]] = None) -> SignageSettings:
    if path is None:
        return SignageSettings()
    return SettingsLoader(path, SignageSettings).load()


__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "SettingsLoader",
    "deep_merge",
    "load_settings",
]
