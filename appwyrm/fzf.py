import subprocess
from collections.abc import Iterable

from .config import find_command
from .log import logger
from .scanner import CandidateEntry

FZF_ARGS = ("--delimiter", "\t", "--nth=1", "--with-nth=1,2", "--no-sort")
# fzf --filter exits 1 when nothing matched; anything else non-zero is a failure.
EXIT_NO_MATCH = 1


def _serialize(entries: Iterable[CandidateEntry]) -> bytes:
	lines = []
	for e in entries:
		line = f"{e.name}\t{e.path}"
		if line.count("\t") != 1 or "\n" in line or "\r" in line:
			continue

		try:
			lines.append(line.encode("utf-8"))
		except UnicodeEncodeError:
			logger.debug(f"Not sending undecodable path to external filter: {e.path!r}")

	return b"".join(line + b"\n" for line in lines)


def _parse(output: str) -> tuple[CandidateEntry, ...]:
	results = []
	for line in output.splitlines():
		name, sep, path = line.partition("\t")
		if not sep or not path:
			continue

		results.append(CandidateEntry(name, path))

	return tuple(results)


class FzfFilter:
	"""Delegates matching to an external ``fzf --filter`` process."""

	def __init__(self, executable: str, timeout: float = 1.0) -> None:
		self.executable = executable
		self.timeout = timeout

	@classmethod
	def detect(cls, candidates: Iterable[str], timeout: float = 1.0) -> "FzfFilter | None":
		candidates = tuple(candidates)
		if found := find_command(*candidates):
			logger.info(f"Using external filter: {found[0]}")
			return cls(found[0], timeout)

		logger.info(f"No external filter found (tried: {candidates}), using built-in scorer")
		return None

	def filter(self, query: str, entries: tuple[CandidateEntry, ...]) -> tuple[CandidateEntry, ...] | None:
		"""Matches in fzf's order; () when fzf found nothing, None when fzf is unusable."""
		if not query:
			return entries

		cmd = [self.executable, "--filter", query, *FZF_ARGS]
		try:
			res = subprocess.run(
				cmd,
				input=_serialize(entries),
				check=False,
				capture_output=True,
				timeout=self.timeout,
			)
		except subprocess.TimeoutExpired:
			logger.warning(f"External filter timeout after {self.timeout}s for query: '{query}'")
			return None
		except (OSError, ValueError, subprocess.SubprocessError) as e:
			logger.warning(f"External filter error for query '{query}': {e.__class__.__name__}")
			return None

		if res.returncode == EXIT_NO_MATCH:
			logger.debug(f"External filter found no matches for '{query}'")
			return ()

		if res.returncode != 0:
			logger.warning(f"External filter failed with exit code {res.returncode}: {cmd[0]}")
			logger.debug(f"External filter stderr: {res.stderr.decode(errors='ignore')[:200]}")
			return None

		try:
			output = res.stdout.decode("utf-8")
		except UnicodeDecodeError:
			logger.warning(f"External filter returned undecodable output for query: '{query}'")
			return None

		return _parse(output)
