import os
import subprocess
from shutil import which

from .log import logger
from .scanner import canonical_path

CLIPBOARD_PROVIDERS = (
	("wl-copy",),
	("xclip", "-selection", "clipboard", "-in"),
	("xsel", "--clipboard", "--input"),
	("pbcopy",),
)
CLIPBOARD_MAX = 8192


def validate_str(text: str | bytes) -> str | None:
	if isinstance(text, bytes):
		try:
			text = os.fsdecode(text)
		except (UnicodeDecodeError, ValueError):
			return None

	if "\x00" in text:
		return None

	return text


def spawn(cmd: list[str]) -> bool:
	try:
		subprocess.Popen(
			cmd,
			stdout=subprocess.DEVNULL,
			stderr=subprocess.DEVNULL,
			stdin=subprocess.DEVNULL,
			start_new_session=True,
		)
		logger.debug(f"Spawned process: {cmd}")
		return True
	except (OSError, ValueError, subprocess.SubprocessError):
		logger.warning(f"Failed to spawn process {cmd}")
		return False


def run_subprocess_input(cmd: list[str], text_input: str, timeout: float = 2.0) -> bool:
	try:
		subprocess.run(
			cmd,
			input=text_input.encode("utf-8", errors="surrogateescape"),
			check=True,
			capture_output=True,
			timeout=timeout,
		)
		logger.debug(f"Subprocess succeeded: {cmd[0]}")
		return True
	except subprocess.TimeoutExpired:
		# xclip keeps serving the selection until another client takes it.
		if os.path.basename(cmd[0]) == "xclip":
			logger.debug("Subprocess succeeded: xclip")
			return True

		logger.warning(f"Subprocess timeout after {timeout}s: {cmd}")
		return False
	except subprocess.CalledProcessError as e:
		logger.warning(f"Subprocess failed with exit code {e.returncode}: {cmd}")
		logger.debug(f"Subprocess stderr: {e.stderr.decode(errors='ignore')[:200]}")
		return False
	except (OSError, ValueError, UnicodeEncodeError):
		logger.warning(f"Subprocess error for {cmd}")
		return False


def copy_to_clipboard(text: str, configured_cmd: list[str] | None = None) -> bool:
	"""Copy text using the configured command, then the first provider that works."""
	if not validate_str(text):
		logger.warning("Invalid data for clipboard operation")
		return False

	data = text[:CLIPBOARD_MAX]
	if configured_cmd and run_subprocess_input(configured_cmd, data):
		return True

	for cmd in CLIPBOARD_PROVIDERS:
		if which(cmd[0]) and run_subprocess_input(list(cmd), data):
			logger.debug(f"Clipboard operation succeeded using fallback: {cmd[0]}")
			return True

	logger.warning("All clipboard operations failed")
	return False


def launch_bundle(opener: list[str], path: str) -> bool:
	"""Spawn the opener on an existing bundle directory.

	No extension check: the scanner keeps symlink targets, which need not end in one.
	"""
	if not opener:
		logger.warning(f"No opener configured, cannot launch '{path}'")
		return False

	try:
		safe_path = validate_str(canonical_path(path))
	except (OSError, ValueError):
		logger.warning(f"Failed to resolve path '{path}'")
		return False

	if not safe_path:
		logger.warning(f"Invalid bundle path received: {path!r}")
		return False

	if not os.path.isdir(safe_path):
		logger.warning(f"Not launching missing bundle at path: {safe_path}")
		return False

	logger.info(f"Launching '{safe_path}'")
	return spawn([*opener, safe_path])
