#!/usr/bin/env python3
"""
Deletion Executor

Removes directory trees file by file so progress can be shown while it runs,
then sweeps the remaining directories with one recursive remove. Failures are
collected instead of raised: a job always runs over every selected path and
hands back how many files it actually removed together with any errors.

The progress counter is written only by the thread running the job and read
by the UI; each update is a single store of the running total.
"""

import errno
import logging
import os
import shutil
import stat
from dataclasses import dataclass
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

MAX_RECORDED_ERRORS = 10
MAX_DISPLAYED_ERRORS = 3


class ProgressCounter:
    """Shared count of files removed by the running job"""

    __slots__ = ("_value",)

    def __init__(self, value: int = 0):
        self._value = value

    def store(self, value: int):
        self._value = value

    def load(self) -> int:
        return self._value


class MultiDeleteError(Exception):
    """Bounded summary of the paths a batch failed to remove"""

    def __init__(self, messages: list[str], total: Optional[int] = None):
        self.messages = list(messages[:MAX_RECORDED_ERRORS])
        self.total = len(messages) if total is None else total
        super().__init__(self.summary())

    def summary(self) -> str:
        shown = self.messages[:MAX_DISPLAYED_ERRORS]
        text = "; ".join(shown)
        hidden = self.total - len(shown)
        if hidden > 0:
            text += f" (and {hidden} more)"
        return text

    def __str__(self):
        return self.summary()


@dataclass
class DeletionResult:
    """Outcome of one deletion job"""

    files_deleted: int = 0
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def partial(self) -> bool:
        return self.error is not None and self.files_deleted > 0


def _within(path: str, root: str) -> bool:
    return path == root or path.startswith(root + os.sep)


def _delete_tree(
    root: str,
    counter: Optional[ProgressCounter],
    base: int = 0,
    skip: tuple[str, ...] = (),
) -> tuple[int, Optional[OSError]]:
    """Remove *root*, publishing base + files removed so far to *counter*.

    Returns (files_removed, first_error). A root that no longer exists is not
    an error. Paths inside *skip* were handled by an earlier job and are
    neither removed again nor reported again; neither is the non-empty error
    of a directory that still holds one of them.
    """
    count = 0
    first_error: Optional[OSError] = None

    def record(error: OSError, path: Optional[str] = None):
        nonlocal first_error
        path = path or error.filename
        if isinstance(error, FileNotFoundError):
            logger.debug("already gone: %s", path)
            return
        if path and skip:
            path = os.fspath(path)
            if any(_within(path, done) for done in skip):
                return
            if error.errno == errno.ENOTEMPTY and any(_within(done, path) for done in skip):
                return
        if isinstance(error, PermissionError):
            logger.debug("permission denied, skipping: %s", path)
        else:
            logger.debug("could not remove %s: %s", path, error)
        if first_error is None:
            first_error = error

    def publish():
        if counter is not None:
            counter.store(base + count)

    try:
        root_stat = os.lstat(root)
    except FileNotFoundError:
        return 0, None
    except OSError as e:
        return 0, e

    if not stat.S_ISDIR(root_stat.st_mode):
        # A file or a symlink: remove the entry itself, never its target
        try:
            os.unlink(root)
        except OSError as e:
            record(e, root)
            return 0, first_error
        count = 1
        publish()
        return count, None

    # Unlisted directories are skipped by walk after reporting to onerror
    for dirpath, dirnames, filenames in os.walk(root, onerror=record, followlinks=False):
        if skip:
            dirnames[:] = [d for d in dirnames if os.path.join(dirpath, d) not in skip]
        for name in filenames:
            path = os.path.join(dirpath, name)
            try:
                os.unlink(path)
            except OSError as e:
                record(e, path)
                continue
            count += 1
            publish()

    # Sweep empty directories, symlinked dirs and anything the walk missed
    shutil.rmtree(root, onexc=lambda _func, path, exc: record(exc, path))

    return count, first_error


def delete_path(path: str, counter: Optional[ProgressCounter] = None) -> DeletionResult:
    """Delete a single file or directory tree"""
    count, error = _delete_tree(path, counter)
    return DeletionResult(files_deleted=count, error=error)


def _depth(path: str) -> int:
    return path.count(os.sep)


def delete_paths(paths: Iterable[str], counter: Optional[ProgressCounter] = None) -> DeletionResult:
    """Delete every path in *paths*, deepest first.

    Every path is attempted regardless of earlier failures. The counter holds
    the running total across the whole batch. A selected folder nested in
    another selected folder is reported once, by its own job.
    """
    unique = dict.fromkeys(os.path.normpath(p) for p in paths if p)
    ordered = sorted(unique, key=_depth, reverse=True)

    total = 0
    messages: list[str] = []
    seen: set[str] = set()
    done: list[str] = []

    for path in ordered:
        skip = tuple(d for d in done if _within(d, path))
        count, error = _delete_tree(path, counter, base=total, skip=skip)
        done.append(path)
        total += count
        if error is None:
            continue
        message = str(error)
        if message in seen:
            continue
        seen.add(message)
        if len(messages) < MAX_RECORDED_ERRORS:
            messages.append(message)

    result_error = MultiDeleteError(messages, total=len(seen)) if seen else None
    return DeletionResult(files_deleted=total, error=result_error)
