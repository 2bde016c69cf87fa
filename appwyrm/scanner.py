import os
from collections.abc import Iterable
from time import perf_counter
from typing import NamedTuple

from .log import logger


# ========== NAMED TUPLES ==========
class CandidateEntry(NamedTuple):
	name: str
	path: str


class RootMetrics(NamedTuple):
	root: str
	duration: float
	count: int


class ScanMetrics(NamedTuple):
	entries: tuple[CandidateEntry, ...]
	roots: tuple[RootMetrics, ...]
	total_duration: float

	def describe(self) -> str:
		per_root = ", ".join(f"{r.count} in {os.path.basename(r.root) or r.root}={r.duration:.3f}s" for r in self.roots)
		return f"total={self.total_duration:.3f}s count={len(self.entries)} [{per_root}]"


# ========== HELPER FUNCTIONS ==========
def canonical_path(path: str) -> str:
	return os.path.realpath(os.path.abspath(os.path.expanduser(path)))


def sort_key(entry: CandidateEntry) -> tuple[str, str]:
	return entry.name.lower(), entry.path


def _is_bundle(entry: os.DirEntry, extension: str) -> bool:
	if entry.name.startswith(".") or len(entry.name) <= len(extension) or not entry.name.endswith(extension):
		return False

	try:
		return entry.is_dir(follow_symlinks=True)
	except OSError:
		return False


def _scan_root(root: str, extension: str, seen: set[str], out: list[CandidateEntry]) -> int:
	count = 0
	with os.scandir(root) as it:
		for entry in it:
			if not _is_bundle(entry, extension):
				continue

			path = canonical_path(entry.path)
			if path in seen:
				logger.debug(f"Skipping duplicate bundle '{entry.path}' -> '{path}'")
				continue

			seen.add(path)
			out.append(CandidateEntry(entry.name[: -len(extension)], path))
			count += 1

	return count


# ========== SCANNER ==========
def scan(roots: Iterable[str], extension: str = ".app") -> ScanMetrics:
	"""Enumerate bundles directly under each root; first root wins on duplicates."""
	total_start = perf_counter()
	seen: set[str] = set()
	items: list[CandidateEntry] = []
	per_root: list[RootMetrics] = []
	for root in roots:
		root = os.path.expanduser(root)
		if not os.path.exists(root):
			continue

		start = perf_counter()
		try:
			count = _scan_root(root, extension, seen, items)
		except OSError as e:
			logger.debug(f"Skipping unreadable root '{root}': {e.__class__.__name__}")
			continue

		per_root.append(RootMetrics(root, perf_counter() - start, count))

	items.sort(key=sort_key)
	return ScanMetrics(tuple(items), tuple(per_root), perf_counter() - total_start)


def load(roots: Iterable[str], extension: str = ".app") -> tuple[CandidateEntry, ...]:
	return scan(roots, extension).entries
