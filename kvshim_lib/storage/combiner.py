"""A store that forwards every call to several other stores.

How the calls are forwarded, and when the combiner returns, is set per
operation with a strategy. Failures are raised as `CombinerError`, which
lists the errors of the individual stores. Work that a strategy continues
"in the background" runs on a thread pool owned by the combiner;
`close()` waits for it before closing the stores.
"""
from __future__ import annotations
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from kvshim_lib.errors import CombinerError, StoreError
from kvshim_lib.storage.base import MISS, Lookup, Store, check_key, check_key_and_value

logger = logging.getLogger(__name__)


class UpdateStrategy(Enum):
    """How `set` and `delete` are forwarded."""

    # One store after the other; the first error is raised and the rest skipped.
    SEQUENTIAL_WAIT_ALL = "sequential_wait_all"
    # All stores at once; returns when all are done, raises the errors collected.
    PARALLEL_WAIT_ALL = "parallel_wait_all"
    # Only the first store blocks. On success the others run in the background,
    # their errors ignored. On error the others are skipped.
    SEQUENTIAL_WAIT_FIRST = "sequential_wait_first"
    # Stores are tried in order until one succeeds; the remaining stores then
    # run in the background. Raises only if every store failed.
    SEQUENTIAL_WAIT_NO_ERROR = "sequential_wait_no_error"


class GetStrategy(Enum):
    """How `get` is forwarded."""

    # Asks every store; they must all agree on found/not found and on the value.
    SEQUENTIAL_WAIT_ALL = "sequential_wait_all"
    # Only asks the first store.
    SEQUENTIAL_WAIT_FIRST = "sequential_wait_first"
    # Returns the result of the first store that does not raise.
    SEQUENTIAL_WAIT_NO_ERROR = "sequential_wait_no_error"
    # Returns the first hit; errors and misses move on to the next store.
    # A miss everywhere is a miss. Raises only if every store failed.
    SEQUENTIAL_WAIT_VALUE = "sequential_wait_value"


class CloseStrategy(Enum):
    SEQUENTIAL_WAIT_ALL = "sequential_wait_all"
    PARALLEL_WAIT_ALL = "parallel_wait_all"


class CombinerOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    set_strategy: UpdateStrategy = UpdateStrategy.SEQUENTIAL_WAIT_ALL
    get_strategy: GetStrategy = GetStrategy.SEQUENTIAL_WAIT_ALL
    delete_strategy: UpdateStrategy = UpdateStrategy.SEQUENTIAL_WAIT_ALL
    close_strategy: CloseStrategy = CloseStrategy.SEQUENTIAL_WAIT_ALL


class Combiner(Store):
    def __init__(self, stores: Sequence[Store], options: Optional[CombinerOptions] = None) -> None:
        if len(stores) < 2:
            raise ValueError("combiner: at least 2 stores needed")
        self.stores: List[Store] = list(stores)
        self.options = options or CombinerOptions()
        self._executor = ThreadPoolExecutor(max_workers=os.cpu_count() or 1, thread_name_prefix="kvshim-combiner")
        self._background: list = []
        # Guards _background; set and delete may run on several threads.
        self._background_lock = threading.Lock()

    def set(self, key: str, value: Any) -> None:
        try:
            check_key_and_value(key, value)
        except StoreError as e:
            raise CombinerError([e]) from e
        self._update(self.options.set_strategy, lambda s: s.set(key, value))

    def delete(self, key: str) -> None:
        # An invalid key is raised as is, not as a CombinerError.
        check_key(key)
        self._update(self.options.delete_strategy, lambda s: s.delete(key))

    def _update(self, strategy: UpdateStrategy, op: Callable[[Store], None]) -> None:
        if strategy is UpdateStrategy.SEQUENTIAL_WAIT_ALL:
            for store in self.stores:
                try:
                    op(store)
                except Exception as e:
                    raise CombinerError([e]) from e
        elif strategy is UpdateStrategy.PARALLEL_WAIT_ALL:
            errors = self._parallel(op)
            if errors:
                raise CombinerError(errors)
        elif strategy is UpdateStrategy.SEQUENTIAL_WAIT_FIRST:
            try:
                op(self.stores[0])
            except Exception as e:
                raise CombinerError([e]) from e
            self._in_background(op, self.stores[1:])
        elif strategy is UpdateStrategy.SEQUENTIAL_WAIT_NO_ERROR:
            errors = []
            for i, store in enumerate(self.stores):
                try:
                    op(store)
                except Exception as e:
                    errors.append(e)
                    continue
                self._in_background(op, self.stores[i + 1:])
                return
            raise CombinerError(errors)
        else:
            raise CombinerError([NotImplementedError(f"combiner: unsupported strategy {strategy}")])

    def get(self, key: str, into: Any) -> Lookup:
        try:
            check_key_and_value(key, into)
        except StoreError as e:
            raise CombinerError([e]) from e

        strategy = self.options.get_strategy
        if strategy is GetStrategy.SEQUENTIAL_WAIT_ALL:
            first: Optional[Lookup] = None
            for store in self.stores:
                try:
                    result = store.get(key, into)
                except Exception as e:
                    raise CombinerError([e]) from e
                if first is None:
                    first = result
                elif result.found != first.found:
                    raise CombinerError([StoreError("combiner: value found in one store, but not in another")])
                elif result.found and result.value != first.value:
                    raise CombinerError([StoreError("combiner: values found in two stores are not equal")])
            return first if first is not None else MISS
        if strategy is GetStrategy.SEQUENTIAL_WAIT_FIRST:
            try:
                return self.stores[0].get(key, into)
            except Exception as e:
                raise CombinerError([e]) from e
        if strategy in (GetStrategy.SEQUENTIAL_WAIT_NO_ERROR, GetStrategy.SEQUENTIAL_WAIT_VALUE):
            errors = []
            for store in self.stores:
                try:
                    result = store.get(key, into)
                except Exception as e:
                    errors.append(e)
                    continue
                if result.found or strategy is GetStrategy.SEQUENTIAL_WAIT_NO_ERROR:
                    return result
            if len(errors) == len(self.stores):
                raise CombinerError(errors)
            return MISS
        raise CombinerError([NotImplementedError(f"combiner: unsupported strategy {strategy}")])

    def close(self) -> None:
        with self._background_lock:
            pending, self._background = self._background, []
        wait(pending)
        try:
            if self.options.close_strategy is CloseStrategy.PARALLEL_WAIT_ALL:
                errors = self._parallel(lambda s: s.close())
            else:
                errors = []
                for store in self.stores:
                    try:
                        store.close()
                    except Exception as e:
                        errors.append(e)
        finally:
            self._executor.shutdown(wait=True)
        if errors:
            raise CombinerError(errors)

    def _parallel(self, op: Callable[[Store], None]) -> List[BaseException]:
        futures = [self._executor.submit(op, s) for s in self.stores]
        wait(futures)
        return [f.exception() for f in futures if f.exception() is not None]

    def _in_background(self, op: Callable[[Store], None], stores: Sequence[Store]) -> None:
        if not stores:
            return

        def run() -> None:
            for store in stores:
                try:
                    op(store)
                except Exception:
                    logger.debug("Ignoring error of background combiner operation on %r", store, exc_info=True)

        with self._background_lock:
            self._background = [f for f in self._background if not f.done()]
            self._background.append(self._executor.submit(run))
