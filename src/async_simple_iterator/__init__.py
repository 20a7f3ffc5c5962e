"""
async_simple_iterator: hooks and settle mode for callback-style iterators.

A shared default instance ``base`` is exposed together with its bound
``wrap_iterator``/``on``/``off``/``once``/``emit``; build your own
``AsyncSimpleIterator`` when listeners must not be shared.
"""

from async_simple_iterator.errors import ConfigError, InvalidArgument, IteratorError, WorkError
from async_simple_iterator.hooks import AFTER_EACH, BEFORE_EACH, ERROR, HOOK_NAMES, HookBus
from async_simple_iterator.settings import (
    IteratorSettings,
    load_settings,
    resolve_settings,
    settings_from_env,
)
from async_simple_iterator.iterator import AsyncSimpleIterator
from async_simple_iterator.version import __version__

base = AsyncSimpleIterator()

wrap_iterator = base.wrap_iterator
on = base.on
off = base.off
once = base.once
emit = base.emit

__all__ = [
    "AsyncSimpleIterator",
    "base",
    "wrap_iterator",
    "on",
    "off",
    "once",
    "emit",
    "HookBus",
    "HOOK_NAMES",
    "BEFORE_EACH",
    "AFTER_EACH",
    "ERROR",
    "IteratorSettings",
    "resolve_settings",
    "load_settings",
    "settings_from_env",
    "IteratorError",
    "InvalidArgument",
    "ConfigError",
    "WorkError",
    "__version__",
]
