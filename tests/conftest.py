import os
import stat

import pytest

from appwyrm.index import IndexCache
from appwyrm.ranking import RankingPipeline
from appwyrm.usage import UsageStore

T0 = 1_700_000_000.0


class FakeClock:
	def __init__(self, now: float = T0) -> None:
		self.now = now

	def __call__(self) -> float:
		return self.now

	def advance(self, seconds: float) -> None:
		self.now += seconds


class RecordingDispatch:
	"""Collects hand-offs instead of running them, so tests decide when the main loop ticks."""

	def __init__(self) -> None:
		self.calls = []

	def __call__(self, fn, *args) -> None:
		self.calls.append((fn, args))

	def run_pending(self) -> list:
		calls, self.calls = self.calls, []
		return [fn(*args) for fn, args in calls]


def make_app(root, name: str):
	path = root / name
	path.mkdir(parents=True)
	return path


@pytest.fixture
def clock():
	return FakeClock()


@pytest.fixture
def private_dir(tmp_path):
	path = tmp_path / "private"
	path.mkdir(mode=0o700)
	os.chmod(path, 0o700)
	return path


@pytest.fixture
def usage_store(private_dir, clock):
	return UsageStore(str(private_dir / "usage.json"), clock=clock)


@pytest.fixture
def apps_root(tmp_path):
	root = tmp_path / "Applications"
	root.mkdir()
	return root


@pytest.fixture
def fake_command(tmp_path):
	"""Write an executable /bin/sh script and return its path."""
	bin_dir = tmp_path / "bin"
	bin_dir.mkdir()

	def _make(body: str, name: str = "fzf") -> str:
		script = bin_dir / name
		script.write_text(f"#!/bin/sh\n{body}\n")
		script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
		return str(script)

	return _make


@pytest.fixture
def pipeline_factory(apps_root, usage_store):
	indexes = []

	def _make(fzf=None, **kwargs) -> RankingPipeline:
		index = IndexCache([str(apps_root)], usage=usage_store)
		indexes.append(index)
		kwargs.setdefault("dispatch", RecordingDispatch())
		return RankingPipeline(index, usage_store, fzf, **kwargs)

	yield _make
	for index in indexes:
		index.close()
