import os
from collections.abc import Callable
from functools import partial, singledispatch
from shlex import split as shlex_split
from shutil import which
from typing import Any, NamedTuple

from .log import logger

try:
	import tomllib
except ModuleNotFoundError:
	import tomli as tomllib

USER_UID = os.getuid()

DEFAULT_ROOTS = (
	"/Applications",
	"/System/Applications",
	"/System/Applications/Utilities",
	"~/Applications",
)
DEFAULT_EXTENSION = ".app"
DEFAULT_FZF = ("/opt/homebrew/bin/fzf", "/usr/local/bin/fzf", "/usr/bin/fzf", "fzf")
DEFAULT_OPENERS = [["open", "-a"], ["gio", "open"], "xdg-open"]


class Settings(NamedTuple):
	roots: tuple[str, ...]
	extension: str
	fzf: tuple[str, ...]
	fzf_timeout: float
	use_fzf: bool
	fallback_on_empty: bool
	min_len: int
	opener: list[str]
	clipboard_cmd: list[str]
	log_index: bool


# ========== HELPER FUNCTIONS - VALIDATION ==========
def _verify_access_impl(path: str, flags: int, mode: int | None = None, st_mode_mask: int = 0o177) -> int:
	fd = os.open(path, flags, *([] if mode is None else [mode]))
	st = os.fstat(fd)
	if st.st_uid != USER_UID or (st.st_mode & st_mode_mask):
		os.close(fd)
		b_path = os.path.basename(path)
		t_mode = f"{0o777 - st_mode_mask:#o}"[2:]
		msg = f"SECURITY VIOLATION: '{path}' has incorrect ownership or permissions\
\n(UID {st.st_uid} mode {st.st_mode & 0o777:#o}, expected UID {USER_UID} mode 0o{t_mode})\
, Do `chown $USER {b_path}` and `chmod {t_mode} {b_path}` in parent dir."
		raise PermissionError(msg)

	return fd


def verify_dir_access(path: str) -> None:
	os.close(_verify_access_impl(path, flags=os.O_RDONLY | os.O_DIRECTORY, st_mode_mask=0o077))


verify_file_access = partial(_verify_access_impl, flags=os.O_RDONLY | os.O_NOFOLLOW)


def ensure_private_dir(path: str) -> None:
	try:
		verify_dir_access(path)
	except FileNotFoundError:
		logger.info(f"Creating directory: {path}")
		os.makedirs(path, mode=0o700)


# ========== HELPER FUNCTIONS - CONFIGURATION ==========
def read_config(path: str) -> dict[str, Any]:
	try:
		verify_dir_access(os.path.dirname(path))
		fd = verify_file_access(path)
		with os.fdopen(fd, "rb") as f:
			data = tomllib.load(f)

		logger.info(f"Configuration loaded successfully from '{path}'")
		logger.debug(f"Config keys: {list(data.keys())}")
		return {**data, **data.get("settings", {})}
	except FileNotFoundError:
		logger.info(f"Config file not found at '{path}', using defaults")
		return {}
	except PermissionError:
		logger.exception(f"Permission error loading config from '{path}'")
		return {}
	except tomllib.TOMLDecodeError:
		logger.exception(f"Invalid TOML syntax in '{path}'")
		return {}
	except (OSError, ValueError):
		logger.exception(f"Failed to load config from '{path}'")
		return {}


def get_config_value(cfg: dict, key: str, default: Any, type_fn: Callable = str) -> Any:
	"""Extracts and validates configuration values."""
	try:
		value = type_fn(cfg.get(key, default))
		if value != default:
			logger.debug(f"Config override: {key} = {value}")

		return value
	except (TypeError, ValueError) as e:
		logger.warning(f"Invalid config value for '{key}': {cfg.get(key)}, using default: {default} ({e})")
		return default


def to_bool(value: Any) -> bool:
	if isinstance(value, bool):
		return value

	if isinstance(value, str) and value.strip().lower() in ("1", "true", "yes", "on"):
		return True

	if isinstance(value, str) and value.strip().lower() in ("0", "false", "no", "off", ""):
		return False

	raise ValueError(f"not a boolean: {value!r}")


def create_normalizer(h: Callable[[str], list]) -> Callable[[Any], list]:
	normalizer = singledispatch(lambda _: [])
	normalizer.register(list, list)
	normalizer.register(tuple, list)
	normalizer.register(str, h)
	return normalizer


normalize_shlex = create_normalizer(shlex_split)
normalize_list = create_normalizer(lambda v: [v])


def find_command(*candidates: str | list[str]) -> list[str] | None:
	for cmd in candidates:
		cmdx = normalize_list(cmd)
		if cmdx and (found := which(cmdx[0])):
			logger.debug(f"Found command '{cmd}' at: {found}")
			cmdx[0] = found
			return cmdx

	logger.debug(f"None of these commands found: {candidates}")
	return None


def get_command_list(cfg: dict, key: str, default: list) -> list:
	"""Obtains list of commands from config or searches for binaries."""
	val = cfg.get(key)
	if val is None:
		if default == []:
			logger.debug(f"No default commands provided for '{key}', skipping...")
			return []
		if found := find_command(*default):
			logger.debug(f"Using detected command for '{key}': {found}")
			return found

		logger.warning(f"No command found for '{key}' (tried: {default})")
		return []

	result = normalize_shlex(val)
	logger.debug(f"Using configured command for '{key}': {result}")
	return result


def _path_tuple(value: Any) -> tuple[str, ...]:
	items = normalize_list(value)
	if not all(isinstance(i, str) for i in items):
		raise TypeError(f"expected a list of paths, got {value!r}")

	return tuple(os.path.expanduser(i) for i in items)


def load_settings(cfg: dict[str, Any]) -> Settings:
	extension = get_config_value(cfg, "extension", DEFAULT_EXTENSION)
	if not extension.startswith("."):
		extension = f".{extension}"

	settings = Settings(
		roots=get_config_value(cfg, "roots", _path_tuple(DEFAULT_ROOTS), _path_tuple),
		extension=extension,
		fzf=get_config_value(cfg, "fzf", DEFAULT_FZF, _path_tuple),
		fzf_timeout=max(0.05, get_config_value(cfg, "fzf_timeout", 1.0, float)),
		use_fzf=get_config_value(cfg, "use_fzf", True, to_bool),
		fallback_on_empty=get_config_value(cfg, "fallback_on_empty", False, to_bool),
		min_len=max(0, get_config_value(cfg, "min_len", 0, int)),
		opener=get_command_list(cfg, "opener", DEFAULT_OPENERS),
		clipboard_cmd=get_command_list(cfg, "clipboard_cmd", []),
		log_index=get_config_value(cfg, "log_index", bool(os.getenv("APPWYRM_LOG_INDEX")), to_bool),
	)
	logger.debug(f"Settings: {settings._asdict()}")
	return settings
