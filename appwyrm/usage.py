import json
import os
import tempfile
from collections.abc import Callable
from contextlib import suppress
from math import log2
from time import time
from typing import NamedTuple

from .config import ensure_private_dir, verify_file_access
from .log import logger

USAGE_FILE_NAME = "usage.json"
# Seconds between the Unix epoch and 2001-01-01 UTC, the legacy timestamp origin.
LEGACY_EPOCH_OFFSET = 978307200.0

FREQUENCY_WEIGHT = 5.0
RECENCY_CEILING = 100.0
RECENCY_DECAY_PER_MINUTE = 0.5


class UsageRecord(NamedTuple):
	open_count: int
	last_opened_at: float


def compute_boost(record: UsageRecord | None, now: float) -> float:
	if record is None:
		return 0.0

	frequency = log2(record.open_count + 1.0) * FREQUENCY_WEIGHT
	minutes = (now - record.last_opened_at) / 60.0
	recency = max(0.0, RECENCY_CEILING - minutes * RECENCY_DECAY_PER_MINUTE)
	return frequency + recency


def _parse_records(raw: object) -> dict[str, UsageRecord]:
	records: dict[str, UsageRecord] = {}
	match raw:
		case {"records": dict(legacy)} if all(isinstance(v, dict) for v in legacy.values()):
			items, key, offset = legacy.items(), "lastOpened", LEGACY_EPOCH_OFFSET
		case dict():
			items, key, offset = raw.items(), "lastOpenedAt", 0.0
		case _:
			raise ValueError(f"usage data must be an object, got {type(raw).__name__}")

	for path, value in items:
		match value:
			case {"openCount": int(count), **rest} if (
				isinstance(path, str) and count >= 0 and not isinstance(count, bool)
				and isinstance(rest.get(key), (int, float)) and not isinstance(rest.get(key), bool)
			):
				records[path] = UsageRecord(count, float(rest[key]) + offset)
			case _:
				logger.debug(f"Dropping invalid usage record for '{path}': {value!r}")

	return records


class UsageStore:
	"""Per-path launch counts, persisted as one JSON file.

	The record mapping is replaced on every load and mutation, never edited in place, so
	``boost`` can be read from any thread while the background lane writes.
	"""

	def __init__(self, path: str, clock: Callable[[], float] = time) -> None:
		self.path = path
		self.clock = clock
		self._records: dict[str, UsageRecord] = {}

	def records(self) -> dict[str, UsageRecord]:
		return dict(self._records)

	def boost(self, path: str) -> float:
		return compute_boost(self._records.get(path), self.clock())

	def boosts(self) -> Callable[[str], float]:
		"""Return a boost function bound to one records snapshot and one instant."""
		records, now = self._records, self.clock()
		return lambda path: compute_boost(records.get(path), now)

	def load(self) -> None:
		try:
			fd = verify_file_access(self.path)
			with os.fdopen(fd, "rb") as f:
				raw = json.loads(f.read())

			self._records = _parse_records(raw)
			logger.debug(f"Usage loaded from '{self.path}' with {len(self._records)} records")
		except FileNotFoundError:
			logger.debug(f"No usage file at '{self.path}', starting empty")
			self._records = {}
		except PermissionError:
			logger.exception("Usage file permission error")
			self._records = {}
		except (json.JSONDecodeError, UnicodeDecodeError):
			logger.exception("Usage file corrupted")
			self._records = {}
		except (OSError, ValueError):
			logger.exception("Failed to load usage file")
			self._records = {}

	def save(self) -> None:
		directory = os.path.dirname(self.path) or "."
		serializable = {p: {"openCount": r.open_count, "lastOpenedAt": r.last_opened_at} for p, r in self._records.items()}
		try:
			ensure_private_dir(directory)
			fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".usage-", suffix=".json")
			try:
				with os.fdopen(fd, "w", encoding="utf-8") as f:
					json.dump(serializable, f, ensure_ascii=False)
					f.flush()
					os.fsync(f.fileno())

				os.replace(tmp_path, self.path)
			except BaseException:
				with suppress(OSError):
					os.unlink(tmp_path)
				raise

			logger.debug(f"Usage saved with {len(serializable)} records to '{self.path}'")
		except PermissionError:
			logger.exception(f"Usage save permission error for '{self.path}'")
		except (OSError, ValueError):
			logger.exception(f"Usage save failed to '{self.path}'")

	def bump(self, path: str) -> UsageRecord:
		self.load()
		now = self.clock()
		previous = self._records.get(path)
		record = UsageRecord((previous.open_count if previous else 0) + 1, now)
		self._records = {**self._records, path: record}
		self.save()
		logger.info(f"Recorded launch #{record.open_count} of '{path}'")
		return record
