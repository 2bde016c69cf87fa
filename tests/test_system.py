import logging
import os

import pytest

from conftest import make_app

from appwyrm import system
from appwyrm.log import configure_logging, logger
from appwyrm.scanner import CandidateEntry, load


class PopenRecorder:
	def __init__(self) -> None:
		self.commands = []

	def __call__(self, cmd, **kwargs):
		self.commands.append(cmd)


@pytest.fixture
def popen(monkeypatch):
	recorder = PopenRecorder()
	monkeypatch.setattr(system.subprocess, "Popen", recorder)
	return recorder


def test_launch_bundle_spawns_opener_with_canonical_path(apps_root, popen):
	app = make_app(apps_root, "Foo.app")
	assert system.launch_bundle(["open", "-a"], str(apps_root / "x" / ".." / "Foo.app"))
	assert popen.commands == [["open", "-a", os.path.realpath(app)]]


@pytest.mark.parametrize("name", ["Missing.app", "file.app"])
def test_launch_bundle_refuses_missing_or_non_directories(apps_root, popen, name):
	(apps_root / "file.app").write_text("")
	assert not system.launch_bundle(["open", "-a"], str(apps_root / name))
	assert popen.commands == []


def test_launch_bundle_accepts_symlinked_bundle_without_extension(tmp_path, apps_root, popen):
	target = tmp_path / "Caskroom" / "foo" / "1.0"
	target.mkdir(parents=True)
	(apps_root / "Foo.app").symlink_to(target, target_is_directory=True)
	(entry,) = load([str(apps_root)])

	assert entry == CandidateEntry("Foo", os.path.realpath(target))
	assert system.launch_bundle(["open", "-a"], entry.path)
	assert popen.commands == [["open", "-a", os.path.realpath(target)]]


def test_launch_bundle_needs_an_opener(apps_root, popen):
	make_app(apps_root, "Foo.app")
	assert not system.launch_bundle([], str(apps_root / "Foo.app"))


def test_copy_to_clipboard_uses_configured_command(fake_command, tmp_path):
	out = tmp_path / "clip"
	exe = fake_command(f'cat > "{out}"', name="clip")
	assert system.copy_to_clipboard("1,234.5", [exe])
	assert out.read_text() == "1,234.5"


def test_copy_to_clipboard_rejects_nul():
	assert not system.copy_to_clipboard("a\x00b", None)


def test_validate_str():
	assert system.validate_str(b"/Applications/Foo.app") == "/Applications/Foo.app"
	assert system.validate_str("a\x00") is None


def test_configure_logging_requires_a_socket(tmp_path):
	with pytest.raises(RuntimeError):
		configure_logging([str(tmp_path / "no-such-socket")])


def test_syslog_levels_are_registered(caplog):
	assert logging.getLevelName("NOTICE") == 25
	with caplog.at_level(logging.DEBUG, logger=logger.name):
		logger.notice("hello %s", "world")
	assert caplog.records[-1].levelname == "NOTICE"
	assert caplog.records[-1].getMessage() == "hello world"
