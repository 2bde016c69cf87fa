from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from threading import Lock
from typing import Any

from . import PROG_NAME
from .log import logger
from .scanner import CandidateEntry, ScanMetrics, scan
from .usage import UsageStore


class IndexState(Enum):
	IDLE = "idle"
	SCANNING = "scanning"
	READY = "ready"


class IndexCache:
	"""Owns the current bundle snapshot and the serialized background lane.

	Scans and usage-store reads/writes all run on one worker thread in submission order.
	The snapshot is an immutable tuple swapped by reference, so ``snapshot()`` never blocks.
	"""

	def __init__(
		self,
		roots: Iterable[str],
		extension: str = ".app",
		usage: UsageStore | None = None,
		executor: ThreadPoolExecutor | None = None,
	) -> None:
		self.roots = tuple(roots)
		self.extension = extension
		self.usage = usage
		self.lane = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"{PROG_NAME}-lane")
		self._snapshot: tuple[CandidateEntry, ...] = ()
		self._lock = Lock()
		self._submitted = 0
		self._finished = 0
		self._applied = 0

	@property
	def state(self) -> IndexState:
		"""SCANNING while a submitted refresh is unfinished, READY once a scan has been applied."""
		with self._lock:
			if self._finished < self._submitted:
				return IndexState.SCANNING

			return IndexState.READY if self._applied else IndexState.IDLE

	def snapshot(self) -> tuple[CandidateEntry, ...]:
		return self._snapshot

	def refresh(self) -> "Future[ScanMetrics]":
		with self._lock:
			self._submitted += 1
			generation = self._submitted

		logger.debug(f"Index refresh #{generation} submitted for {len(self.roots)} roots")
		return self.lane.submit(self._refresh_job, generation)

	def _refresh_job(self, generation: int) -> ScanMetrics:
		try:
			if self.usage is not None:
				self.usage.load()

			metrics = scan(self.roots, self.extension)
		except Exception:
			logger.warning(f"Index refresh #{generation} failed, snapshot unchanged")
			with self._lock:
				self._finished = max(self._finished, generation)
			raise

		with self._lock:
			self._finished = max(self._finished, generation)
			# Completions only arrive out of order on an injected multi-worker executor.
			if generation > self._applied:
				self._snapshot = metrics.entries
				self._applied = generation
			else:
				logger.debug(f"Discarding stale scan #{generation} (applied #{self._applied})")

		logger.debug(f"Index refresh #{generation} finished: {metrics.describe()}")
		return metrics

	def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
		return self.lane.submit(fn, *args)

	def drain(self) -> None:
		"""Block until everything submitted so far, done-callbacks included, has run."""
		self.lane.submit(lambda: None).result()

	def close(self) -> None:
		self.lane.shutdown(wait=True)
