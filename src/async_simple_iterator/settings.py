"""Iterator settings: defaults, merging and loading."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping, Optional, Tuple, Union

import yaml

from async_simple_iterator.errors.types import ConfigError
from async_simple_iterator.hooks import AFTER_EACH, BEFORE_EACH, ERROR

logger = logging.getLogger(__name__)

Hook = Callable[..., Any]

# Accepted mapping keys -> dataclass field names.
_KEY_ALIASES = {
    "settle": "settle",
    "context": "context",
    BEFORE_EACH: "before_each",
    "before_each": "before_each",
    AFTER_EACH: "after_each",
    "after_each": "after_each",
    ERROR: "error",
}

_HOOK_FIELDS: Tuple[Tuple[str, str], ...] = (
    (BEFORE_EACH, "before_each"),
    (AFTER_EACH, "after_each"),
    (ERROR, "error"),
)

_TRUE_STRINGS = ("1", "true", "yes", "on")
_FALSE_STRINGS = ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class IteratorSettings:
    """
    Resolved settings of an ``AsyncSimpleIterator``.

    Parameters
    ----------
    settle
        When True, errors reported by the work function reach the hooks but the
        traversal library receives ``(None, result)``.
    before_each, after_each, error
        Optional listeners registered on the matching channel when an iterator
        is wrapped.
    context
        Opaque value carried along for callers; never read by the decorator.
    """

    settle: bool = False
    before_each: Optional[Hook] = None
    after_each: Optional[Hook] = None
    error: Optional[Hook] = None
    context: Optional[Any] = None

    def hooks(self) -> Iterator[Tuple[str, Hook]]:
        """Yield ``(channel, listener)`` for every hook present, in channel order."""
        for channel, attr in _HOOK_FIELDS:
            listener = getattr(self, attr)
            if listener is not None:
                yield channel, listener

    def as_dict(self) -> dict[str, Any]:
        """Return the settings keyed the way hook channels are named."""
        return {
            "settle": self.settle,
            BEFORE_EACH: self.before_each,
            AFTER_EACH: self.after_each,
            ERROR: self.error,
            "context": self.context,
        }


SettingsSource = Union[None, Mapping[str, Any], IteratorSettings]


def _normalize(source: SettingsSource) -> dict[str, Any]:
    if source is None:
        return {}
    if isinstance(source, IteratorSettings):
        return {f.name: getattr(source, f.name) for f in fields(source)}
    if not isinstance(source, Mapping):
        logger.debug("Ignoring settings of type %s", type(source).__name__)
        return {}

    out: dict[str, Any] = {}
    for key, value in source.items():
        attr = _KEY_ALIASES.get(key)
        if attr is None:
            logger.debug("Ignoring unknown settings key %r", key)
            continue
        out[attr] = value
    return out


def coerce_settle(value: Any) -> bool:
    """Keep an actual bool; anything else (None, "true", 1, ...) becomes False."""
    return value if isinstance(value, bool) else False


def resolve_settings(
    existing: SettingsSource = None,
    incoming: SettingsSource = None,
    *,
    merge_context: bool = False,
) -> IteratorSettings:
    """
    Merge defaults, `existing` and `incoming` into one ``IteratorSettings``.

    Later sources win key by key; values are never merged recursively except
    ``context`` when `merge_context` is True (shallow, incoming keys win).
    A key present in `incoming` wins even when its value is None.

    Never raises: non-mapping sources are ignored, non-boolean ``settle``
    becomes False and a hook that is not callable is dropped.

    Usage example
    -------------
        settings = resolve_settings(current, {"settle": True, "error": on_error})
    """
    merged: dict[str, Any] = {"settle": False}
    merged.update(_normalize(existing))
    update = _normalize(incoming)

    if merge_context and "context" in update:
        old_ctx, new_ctx = merged.get("context"), update["context"]
        if isinstance(old_ctx, Mapping) and isinstance(new_ctx, Mapping):
            update["context"] = {**old_ctx, **new_ctx}
    merged.update(update)

    raw_settle = merged.get("settle")
    merged["settle"] = coerce_settle(raw_settle)
    if merged["settle"] is not raw_settle:
        logger.debug("Coerced non-boolean settle value %r to False", raw_settle)

    for channel, attr in _HOOK_FIELDS:
        listener = merged.get(attr)
        if listener is not None and not callable(listener):
            logger.debug("Dropping non-callable %s hook of type %s", channel, type(listener).__name__)
            merged[attr] = None

    return IteratorSettings(**merged)


def load_settings(root: Path) -> dict[str, Any]:
    """
    Load iterator settings from a YAML file in `root` if present.

    Search order:
    1) ``iterator.yaml``
    2) ``async_iterator.yaml``

    Only ``settle`` and ``context`` are read, from the ``iterator`` section or
    the top level when that section is absent. Hooks cannot come from files.
    """
    for filename in ("iterator.yaml", "async_iterator.yaml"):
        config_path = root / filename
        if not config_path.exists():
            continue
        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigError(f"Could not parse {config_path}: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, Mapping):
            raise ConfigError(f"{config_path} must contain a mapping, got {type(data).__name__}")

        section = data.get("iterator", data)
        if not isinstance(section, Mapping):
            raise ConfigError(f"'iterator' section of {config_path} must be a mapping")
        logger.debug("Loaded iterator settings from %s", config_path)
        return {key: section[key] for key in ("settle", "context") if key in section}
    return {}


def settings_from_env(
    prefix: str = "ASYNC_ITERATOR_",
    *,
    default: SettingsSource = None,
) -> IteratorSettings:
    """
    Resolve settings from `default` overridden by environment variables.

    Supported variables:
    - <PFX>SETTLE: "1"/"true"/"yes"/"on" or "0"/"false"/"no"/"off"

    Unrecognized values fall back to the default's ``settle``.
    """
    base = resolve_settings(default)
    raw = os.getenv(f"{prefix}SETTLE")
    if raw is None:
        return base

    value = raw.strip().lower()
    if value in _TRUE_STRINGS:
        settle = True
    elif value in _FALSE_STRINGS:
        settle = False
    else:
        logger.debug("Ignoring unrecognized %sSETTLE=%r", prefix, raw)
        settle = base.settle
    return resolve_settings(base, {"settle": settle})
