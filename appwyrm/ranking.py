from collections.abc import Callable, Iterable
from concurrent.futures import Future
from typing import Any, NamedTuple

from .calc import CalcResult, evaluate
from .fuzzy import match_score
from .fzf import FzfFilter
from .index import IndexCache
from .log import logger
from .scanner import CandidateEntry, ScanMetrics
from .usage import UsageStore

Dispatch = Callable[..., Any]


class RankedResult(NamedTuple):
	query: str
	entries: tuple[CandidateEntry, ...]
	calc: CalcResult | None
	selected: int

	@property
	def row_count(self) -> int:
		return len(self.entries) + (self.calc is not None)

	def row(self, index: int) -> CandidateEntry | CalcResult | None:
		if index < 0 or index >= self.row_count:
			return None

		if self.calc is not None:
			return self.calc if index == 0 else self.entries[index - 1]

		return self.entries[index]

	def selected_row(self) -> CandidateEntry | CalcResult | None:
		return self.row(self.selected)


EMPTY_RESULT = RankedResult("", (), None, -1)


# ========== SELECTION ==========
def clamp_selection(index: int, count: int) -> int:
	if count <= 0:
		return -1

	return max(0, min(count - 1, index))


def move_selection(current: int, count: int, delta: int) -> int:
	if count <= 0:
		return -1

	return clamp_selection(max(current, 0) + delta, count)


# ========== ORDERING ==========
def order_by_usage(entries: Iterable[CandidateEntry], boost: Callable[[str], float]) -> tuple[CandidateEntry, ...]:
	"""Boost descending, then case-insensitive name; stable for whatever ties remain."""
	return tuple(sorted(entries, key=lambda e: (-boost(e.path), e.name.lower())))


def rank_by_score(query: str, entries: Iterable[CandidateEntry]) -> tuple[CandidateEntry, ...]:
	scored = [(score, e) for e in entries if (score := match_score(query, e.name)) is not None]
	scored.sort(key=lambda t: (-t[0], t[1].name.lower()))
	return tuple(e for _, e in scored)


def _direct(fn: Callable[..., Any], *args: Any) -> None:
	fn(*args)


# ========== PIPELINE ==========
class RankingPipeline:
	"""Answers queries against the index snapshot and keeps the current result.

	Queries run synchronously on the caller's thread. ``show`` starts a background
	rescan whose completion is handed to ``dispatch`` and then re-ranks the last query
	through ``on_refreshed``.
	"""

	def __init__(
		self,
		index: IndexCache,
		usage: UsageStore,
		fzf: FzfFilter | None = None,
		*,
		fallback_on_empty: bool = False,
		dispatch: Dispatch = _direct,
		log_index: bool = False,
	) -> None:
		self.index = index
		self.usage = usage
		self.fzf = fzf
		self.fallback_on_empty = fallback_on_empty
		self.dispatch = dispatch
		self.log_index = log_index
		self.listeners: list[Callable[[RankedResult], None]] = []
		self._last_query = ""
		self._result = EMPTY_RESULT

	@property
	def last_query(self) -> str:
		return self._last_query

	@property
	def result(self) -> RankedResult:
		return self._result

	def _match(self, query: str, snapshot: tuple[CandidateEntry, ...]) -> tuple[CandidateEntry, ...]:
		if self.fzf is not None:
			found = self.fzf.filter(query, snapshot)
			if found:
				by_path = {e.path: e for e in snapshot}
				return tuple(by_path.get(e.path, e) for e in found)

			if found is not None and not self.fallback_on_empty:
				return ()

			logger.debug(f"External filter gave nothing usable for '{query}', using built-in scorer")

		return rank_by_score(query, snapshot)

	def rank(self, query: str) -> RankedResult:
		snapshot = self.index.snapshot()
		boost = self.usage.boosts()
		trimmed = query.strip()
		matches = self._match(trimmed, snapshot) if trimmed else snapshot
		entries = order_by_usage(matches, boost)
		calc = evaluate(trimmed)
		return RankedResult(query, entries, calc, clamp_selection(0, len(entries) + (calc is not None)))

	def update_query(self, query: str) -> RankedResult:
		self._last_query = query
		self._result = self.rank(query)
		return self._result

	def show(self, query: str | None = None) -> "Future[ScanMetrics]":
		"""Serve the current snapshot now and rescan in the background."""
		self.update_query(self._last_query if query is None else query)
		future = self.index.refresh()
		future.add_done_callback(lambda f: self.dispatch(self.on_refreshed, f))
		return future

	def on_refreshed(self, future: "Future[ScanMetrics]") -> RankedResult:
		try:
			metrics = future.result()
		except Exception:
			logger.exception("Index refresh failed, keeping previous snapshot")
			return self._result

		if self.log_index:
			logger.info(f"Index load: {metrics.describe()}")

		result = self.update_query(self._last_query)
		for listener in self.listeners:
			listener(result)

		return result

	def move_selection(self, delta: int) -> RankedResult:
		self._result = self._result._replace(selected=move_selection(self._result.selected, self._result.row_count, delta))
		return self._result

	def select(self, index: int) -> RankedResult:
		self._result = self._result._replace(selected=clamp_selection(index, self._result.row_count))
		return self._result

	def selected_row(self) -> CandidateEntry | CalcResult | None:
		return self._result.selected_row()

	def record_launch(self, path: str) -> Future:
		return self.index.submit(self.usage.bump, path)

	def reset(self) -> RankedResult:
		return self.update_query("")
