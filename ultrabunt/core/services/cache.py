"""
Installed-set cache — which (backend, backend_id) pairs are installed.

Bulk-listed backends (apt, snap, flatpak) are answered from an
in-memory set that ``rebuild()`` fills by listing each backend
concurrently. npm, cargo and custom records are always probed live.

Thread-safe: one re-entrant lock guards the set. ``rebuild()`` builds
the new set outside the lock and swaps it in whole, so readers never
see a half-built cache. Single-key writes made while a rebuild is
listing (``update_one``, ``probe_and_record``) are journalled and
re-applied on top of the new set.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor

from ultrabunt.adapters.base import BackendAdapter
from ultrabunt.adapters.registry import BackendRegistry
from ultrabunt.core.models.package import Backend, PackageRecord
from ultrabunt.core.services.custom_installers import CustomInstallerRegistry, InstallContext

logger = logging.getLogger(__name__)

CacheKey = tuple[Backend, str]
ContextFactory = Callable[[threading.Event | None], InstallContext]


class RefreshTask:
    """Handle on a background rebuild."""

    def __init__(self, future: Future, cancel: threading.Event):
        self._future = future
        self._cancel = cancel

    def cancel(self) -> None:
        """Ask the rebuild to stop; the previous cache stays in place."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def done(self) -> bool:
        return self._future.done()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the rebuild ends.

        Returns:
            True if the new set was swapped in, False if the rebuild was
            cancelled or did not finish within ``timeout``.
        """
        try:
            return bool(self._future.result(timeout=timeout))
        except TimeoutError:
            return False


class InstalledSetCache:
    """Process-wide installed-set cache."""

    def __init__(
        self,
        backends: BackendRegistry,
        installers: CustomInstallerRegistry,
        make_context: ContextFactory,
    ):
        self._backends = backends
        self._installers = installers
        self._make_context = make_context

        self._lock = threading.RLock()
        self._installed: set[CacheKey] = set()
        self._listed: frozenset[Backend] = frozenset()
        self._built_at: float | None = None
        # one journal per rebuild in flight: key -> installed
        self._journals: list[dict[CacheKey, bool]] = []

        self._refresh_lock = threading.Lock()
        self._refresh: RefreshTask | None = None
        self._executor: ThreadPoolExecutor | None = None

    # ── Rebuild ─────────────────────────────────────────────────

    def rebuild(
        self,
        backends: Iterable[Backend] | None = None,
        cancel: threading.Event | None = None,
    ) -> bool:
        """List every bulk-listed backend and swap in the new set.

        Args:
            backends: Restrict listing to these backends (default: all
                cached backends).
            cancel: When set before the swap, the new set is discarded.

        Returns:
            True if the new set was swapped in.
        """
        wanted = set(Backend.cached() if backends is None else backends) & set(Backend.cached())
        adapters = [a for a in self._backends.cached() if a.backend in wanted]
        start = time.monotonic()

        fresh: set[CacheKey] = set()
        listed: set[Backend] = set()
        journal: dict[CacheKey, bool] = {}
        with self._lock:
            self._journals.append(journal)
        try:
            if adapters:
                with ThreadPoolExecutor(max_workers=len(adapters), thread_name_prefix="cache-list") as pool:
                    futures = {pool.submit(_list_backend, a): a for a in adapters}
                    for future, adapter in futures.items():
                        ids, ok = future.result()
                        if ok:
                            listed.add(adapter.backend)
                        fresh.update((adapter.backend, i) for i in ids)
        except BaseException:
            with self._lock:
                self._journals.remove(journal)
            raise

        with self._lock:
            # journal detached under the swap lock
            self._journals.remove(journal)
            if cancel is not None and cancel.is_set():
                logger.info("Cache rebuild cancelled, keeping previous cache")
                return False
            for key, installed in journal.items():
                if installed:
                    fresh.add(key)
                else:
                    fresh.discard(key)
            self._installed = fresh
            self._listed = frozenset(listed)
            self._built_at = time.time()

        logger.info(
            "Package cache built: %d entries from %s in %dms",
            len(fresh),
            ", ".join(sorted(b.value for b in listed)) or "no backends",
            int((time.monotonic() - start) * 1000),
        )
        return True

    def start_background_refresh(self, backends: Iterable[Backend] | None = None) -> RefreshTask:
        """Rebuild in a worker thread; at most one runs at a time.

        A call while a refresh is in flight returns the running task.
        """
        with self._refresh_lock:
            if self._refresh is not None and not self._refresh.done():
                logger.debug("Background refresh already running")
                return self._refresh
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="cache-refresh")
            cancel = threading.Event()
            wanted = list(backends) if backends is not None else None
            future = self._executor.submit(self.rebuild, wanted, cancel)
            self._refresh = RefreshTask(future, cancel)
            logger.debug("Background refresh started")
            return self._refresh

    @property
    def current_refresh(self) -> RefreshTask | None:
        """The most recent background refresh, running or finished."""
        return self._refresh

    def shutdown(self) -> None:
        """Cancel any background refresh and stop the worker."""
        with self._refresh_lock:
            if self._refresh is not None:
                self._refresh.cancel()
            if self._executor is not None:
                self._executor.shutdown(wait=False)
                self._executor = None

    # ── Queries ─────────────────────────────────────────────────

    def is_installed(self, record: PackageRecord) -> bool:
        """Whether ``record`` is installed.

        Cached backends answer from the set. A miss on a backend that
        the last rebuild could not list falls back to a live probe,
        whose positive answer is written into the set.

        A miss on a backend that *was* listed is authoritative and runs
        no probe. Changes made outside ultrabunt show up after the next
        ``rebuild()``.
        """
        if record.backend is Backend.CUSTOM:
            return self._probe_custom(record)
        if not record.backend.is_cached:
            return self._probe_live(record)

        with self._lock:
            if record.cache_key in self._installed:
                return True
            if record.backend in self._listed:
                return False
        return self.probe_and_record(record)

    def cached(self, record: PackageRecord) -> bool:
        """Set membership only, no probing."""
        with self._lock:
            return record.cache_key in self._installed

    def contains(self, backend: Backend, backend_id: str) -> bool:
        with self._lock:
            return (backend, backend_id) in self._installed

    def probe_and_record(self, record: PackageRecord) -> bool:
        """Live probe; on a hit, insert the key into the set."""
        installed = self._probe_live(record)
        if installed and record.backend.is_cached:
            with self._lock:
                self._write(record.cache_key, True)
            logger.debug("Cache fill on read: %s (%s)", record.name, record.backend.value)
        return installed

    def update_one(self, record: PackageRecord) -> None:
        """Re-probe one record after a mutation and set/clear its key."""
        if not record.backend.is_cached:
            logger.debug("Not cached, skipping cache update for %s (%s)", record.name, record.backend.value)
            return
        installed = self._probe_live(record)
        with self._lock:
            self._write(record.cache_key, installed)
        logger.debug("Cache updated: %s installed=%s", record.name, installed)

    def status_map(self, records: Iterable[PackageRecord]) -> dict[str, bool]:
        """Installed flag per record name."""
        return {r.name: self.is_installed(r) for r in records}

    def snapshot(self) -> frozenset[CacheKey]:
        with self._lock:
            return frozenset(self._installed)

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._installed)

    @property
    def listed_backends(self) -> frozenset[Backend]:
        with self._lock:
            return self._listed

    @property
    def built_at(self) -> float | None:
        return self._built_at

    # ── Internals ───────────────────────────────────────────────

    def _write(self, key: CacheKey, installed: bool) -> None:
        """Set or clear one key. Caller holds the lock."""
        if installed:
            self._installed.add(key)
        else:
            self._installed.discard(key)
        for journal in self._journals:
            journal[key] = installed

    def _probe_live(self, record: PackageRecord) -> bool:
        adapter = self._backends.get(record.backend)
        if adapter is None:
            logger.debug("No adapter for %s, treating %s as not installed", record.backend.value, record.name)
            return False
        return adapter.probe_one(record.backend_id)

    def _probe_custom(self, record: PackageRecord) -> bool:
        installer = self._installers.get(record.name)
        if installer is None:
            logger.debug("No custom installer for %s", record.name)
            return False
        return installer.is_installed(self._make_context(None))


def _list_backend(adapter: BackendAdapter) -> tuple[set[str], bool]:
    """List one backend. Returns (ids, listed)."""
    ids = adapter.list_installed()
    if ids is None:
        logger.debug("%s could not be listed, misses will be probed", adapter.cli)
        return set(), False
    return ids, True
