"""
JSON file persistence with a serialized write queue.

A ``JSONStore`` owns one document (a dict or a list) backed by one file. Reads
go straight to the in-memory document. Writes are submitted as *mutators*,
plain synchronous functions that receive the document and change it in place.
Mutators run strictly one at a time, in the order they were submitted, and the
whole document is written to disk (temp file + rename) before the caller is
released.

Known limitation: when the disk write fails the caller gets a
``PersistenceError`` but the in-memory document keeps the mutator's changes.
Memory and disk stay diverged until the next successful write.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Deque, Optional

logger = logging.getLogger(__name__)

Mutator = Callable[[Any], Any]


class StoreError(Exception):
    """Base class for store failures."""


class StartupError(StoreError):
    """The store could not be brought up; the process should not serve."""


class CorruptStoreError(StartupError):
    """The file was unusable and the default document could not be written."""


class PersistenceError(StoreError):
    """Writing the document to disk failed."""


def tmp_path_for(path: Path) -> Path:
    return path.with_name(path.name + ".tmp")


def dumps(document: Any) -> str:
    return json.dumps(document, ensure_ascii=False, indent=2)


def atomic_write_text(path: Path, text: str) -> None:
    """Write ``text`` next to ``path`` and rename it over the real file."""
    tmp = tmp_path_for(path)
    with tmp.open("w", encoding="utf-8") as f:
        f.write(text)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp, path)


def atomic_persist(path: Path, document: Any) -> None:
    atomic_write_text(path, dumps(document))


def _restore(document: Any, snapshot: Any) -> None:
    # in place, so references handed out by read_all() stay valid
    if isinstance(document, dict):
        document.clear()
        document.update(snapshot)
    elif isinstance(document, list):
        document[:] = snapshot


@dataclass
class _PendingMutation:
    mutator: Mutator
    future: asyncio.Future


class JSONStore:
    """Single-writer document store mirrored to one JSON file."""

    def __init__(self, path: Path | str, default_factory: Callable[[], Any]) -> None:
        self.path = Path(path)
        self._default_factory = default_factory
        self._document: Any = None
        self._queue: Deque[_PendingMutation] = deque()
        self._draining = False
        self._drain_task: Optional[asyncio.Task] = None

    # -------------------------------------- loading --------------------------------------
    def load(self) -> Any:
        """
        Read the file from disk, creating it with defaults when it is missing or
        unusable. The first call installs the in-memory document; every call
        returns an independent copy of what is on disk.
        """
        document = self._read_or_create()
        if self._document is None:
            self._document = document
            return copy.deepcopy(document)
        return document

    def _read_or_create(self) -> Any:
        default = self._default_factory()
        try:
            raw = self.path.read_text(encoding="utf-8")
            document = json.loads(raw)
        except FileNotFoundError:
            logger.info("%s not found; creating it with defaults", self.path)
        except (OSError, ValueError) as exc:
            logger.warning("Unreadable store %s (%s); starting fresh", self.path, exc)
        else:
            if isinstance(document, type(default)):
                return document
            logger.warning(
                "Store %s holds a %s instead of a %s; starting fresh",
                self.path,
                type(document).__name__,
                type(default).__name__,
            )
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            atomic_persist(self.path, default)
        except (OSError, TypeError, ValueError) as exc:
            raise CorruptStoreError(f"Could not initialise {self.path}: {exc}") from exc
        return default

    # -------------------------------------- reads --------------------------------------
    def read_all(self) -> Any:
        if self._document is None:
            raise StoreError(f"Store {self.path} used before load()")
        return self._document

    # -------------------------------------- writes --------------------------------------
    async def mutate(self, mutator: Mutator) -> Any:
        """
        Queue ``mutator`` and wait until it has been applied and written to disk.

        Returns whatever the mutator returned. If the mutator raises, the
        document is rolled back and the same exception is raised here. Disk
        failures surface as ``PersistenceError``.
        """
        self.read_all()
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._queue.append(_PendingMutation(mutator, future))
        if not self._draining:
            self._draining = True
            self._drain_task = loop.create_task(self._drain())
        # once admitted the mutation runs even if the caller goes away
        return await asyncio.shield(future)

    async def join(self) -> None:
        """Wait for every queued mutation to finish."""
        task = self._drain_task
        if task is not None and not task.done():
            await task

    async def _drain(self) -> None:
        try:
            while self._queue:
                await self._apply(self._queue.popleft())
        finally:
            self._draining = False

    async def _apply(self, pending: _PendingMutation) -> None:
        document = self._document
        snapshot = copy.deepcopy(document)
        try:
            result = pending.mutator(document)
            text = dumps(document)
        except Exception as exc:
            _restore(document, snapshot)
            logger.debug("Mutation on %s rejected: %r", self.path, exc)
            _settle(pending.future, error=exc)
            return
        try:
            await asyncio.to_thread(atomic_write_text, self.path, text)
        except OSError as exc:
            logger.error("Failed to persist %s: %s", self.path, exc)
            error = PersistenceError(f"Failed to persist {self.path.name}")
            error.__cause__ = exc
            _settle(pending.future, error=error)
            return
        _settle(pending.future, result=result)


def _settle(future: asyncio.Future, *, result: Any = None, error: Optional[BaseException] = None) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)
