"""
Wrap a single-item work function with lifecycle hooks and settle-mode errors.

The decorated function keeps the calling convention of callback-style
traversal helpers: ``(value, key, completion)`` for keyed collections or
``(value, completion)`` for plain sequences, where ``completion`` is called as
``completion(error_or_none, result)``. The work function and the hooks are
called in the same form the decorated function was.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Optional

from async_simple_iterator.errors.types import InvalidArgument, IterationOutcome
from async_simple_iterator.hooks import AFTER_EACH, BEFORE_EACH, ERROR, HookBus, Listener
from async_simple_iterator.settings import IteratorSettings, SettingsSource, resolve_settings

logger = logging.getLogger(__name__)

Completion = Callable[..., Any]
WorkFn = Callable[..., Any]
DecoratedFn = Callable[..., None]
OutcomeListener = Callable[[IterationOutcome], Any]


class AsyncSimpleIterator:
    """
    Owner of hook listeners and settings for any number of wrapped iterators.

    Every iterator wrapped by the same instance shares its ``HookBus``; build
    separate instances to keep listeners apart.

    Usage example
    -------------
        base = AsyncSimpleIterator({"settle": True})
        base.on("error", lambda err, res, value, key, next: print(key, err))
        iterator = base.wrap_iterator(stat_file)

        for key, value in files.items():
            iterator(value, key, done)
    """

    def __init__(self, options: SettingsSource = None, *, bus: Optional[HookBus] = None) -> None:
        self.bus = bus if bus is not None else HookBus()
        self._outcome_listeners: list[OutcomeListener] = []
        self.settings = IteratorSettings()
        self.default_options(options)

    def default_options(self, options: SettingsSource = None, *, merge_context: bool = False) -> "AsyncSimpleIterator":
        """Merge `options` over the current settings and store the result."""
        self.settings = resolve_settings(self.settings, options, merge_context=merge_context)
        return self

    def on(self, name: str, listener: Listener) -> "AsyncSimpleIterator":
        self.bus.on(name, listener)
        return self

    def once(self, name: str, listener: Listener) -> "AsyncSimpleIterator":
        self.bus.once(name, listener)
        return self

    def off(self, name: Optional[str] = None, listener: Optional[Listener] = None) -> "AsyncSimpleIterator":
        self.bus.off(name, listener)
        return self

    def emit(self, name: str, *args: Any) -> bool:
        return self.bus.emit(name, *args)

    def add_outcome_listener(self, listener: OutcomeListener) -> "AsyncSimpleIterator":
        """
        Receive an ``IterationOutcome`` for every element any wrapped iterator finishes.

        Called after the error hooks and before the traversal's completion, with
        the settle value the finishing iterator was wrapped with.
        """
        if not callable(listener):
            raise InvalidArgument(f"Outcome listener must be callable, got {type(listener).__name__}")
        self._outcome_listeners.append(listener)
        return self

    def _finish(self, outcome: IterationOutcome) -> None:
        for listener in tuple(self._outcome_listeners):
            listener(outcome)

    def wrap_iterator(
        self,
        iterator: WorkFn,
        options: SettingsSource = None,
        *,
        merge_context: bool = False,
    ) -> DecoratedFn:
        """
        Return `iterator` decorated with this instance's hooks and settle policy.

        Hooks found in the resolved settings are added to the bus on every
        call, so wrapping twice with the same hook makes it fire twice.

        Emits
        -----
        beforeEach
            ``(value, key, completion)`` before the work function starts.
        afterEach
            ``(err, result, value, key, completion)`` once it completes.
        error
            Same arguments as afterEach, only when ``err`` is not None.

        When the decorated function is called as ``(value, completion)``, ``key``
        is left out of the work function call and of every hook call.

        Raises
        ------
        InvalidArgument
            If `iterator` is not callable. Nothing is registered in that case.
        """
        if not callable(iterator):
            raise InvalidArgument(
                f"async_simple_iterator: expect `iterator` to be callable, got {type(iterator).__name__}"
            )
        if options is not None:
            self.default_options(options, merge_context=merge_context)

        settings = self.settings
        for channel, listener in settings.hooks():
            self.on(channel, listener)

        logger.debug(
            "Wrapped %s (settle=%s)",
            getattr(iterator, "__qualname__", repr(iterator)),
            settings.settle,
        )
        return _decorate(self, iterator, settings)


def _decorate(owner: AsyncSimpleIterator, iterator: WorkFn, settings: IteratorSettings) -> DecoratedFn:
    settle = settings.settle

    @functools.wraps(iterator)
    def decorated(value: Any, *rest: Any) -> None:
        if len(rest) == 2:
            key, completion = rest
            keyed: tuple[Any, ...] = (key,)
        elif len(rest) == 1:
            key = None
            (completion,) = rest
            keyed = ()
        else:
            raise InvalidArgument(
                f"Wrapped iterator takes (value, completion) or (value, key, completion), got {1 + len(rest)} arguments"
            )
        log_extra = {"key": key if keyed else "-"}

        owner.emit(BEFORE_EACH, value, *keyed, completion)
        logger.debug("Iteration started", extra=log_extra)

        def inner_completion(err: Any = None, result: Any = None) -> None:
            owner.emit(AFTER_EACH, err, result, value, *keyed, completion)
            if err is None:
                logger.debug("Iteration finished", extra=log_extra)
                owner._finish(IterationOutcome(value, key, None, result, settle))
                completion(None, result)
                return

            owner.emit(ERROR, err, result, value, *keyed, completion)
            owner._finish(IterationOutcome(value, key, err, result, settle))
            if settle:
                logger.debug("Iteration failed, error settled: %r", err, extra=log_extra)
                completion(None, result)
            else:
                logger.debug("Iteration failed, error propagated: %r", err, extra=log_extra)
                completion(err, result)

        iterator(value, *keyed, inner_completion)

    return decorated
