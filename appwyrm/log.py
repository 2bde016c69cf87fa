import logging
import os
from logging.handlers import SysLogHandler

from . import PROG_NAME

LOG_LVL = "INFO"
SYSLOG_SOCKETS = ["/dev/log", "/var/run/syslog"]

# ========== SYSLOG LOGGING ==========
syslog_extension = (
	("EMERGENCY", 70, "emerg"),
	("ALERT", 60, "alert"),
	("NOTICE", 25, "notice"),
)

for level_name, level_value, _ in syslog_extension:
	setattr(logging, level_name, level_value)
	logging.addLevelName(level_value, level_name)
	setattr(
		logging.Logger,
		level_name.lower(),
		lambda self, msg, *args, lvl=level_value, **kws: (
			self._log(lvl, msg, args, **kws) if self.isEnabledFor(lvl) else None
		),
	)

logger = logging.getLogger(PROG_NAME)
log_level = os.getenv(f"{PROG_NAME.upper()}_LOG_LEVEL", LOG_LVL)
logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def configure_logging(sockets: list[str] | None = None) -> SysLogHandler:
	"""Attach the syslog handler; the runner refuses to start without one."""
	sockets = SYSLOG_SOCKETS if sockets is None else sockets
	if not (addr := next((p for p in sockets if os.path.exists(p)), None)):
		msg = f"No syslog socket found. Tried: {sockets}"
		raise RuntimeError(msg)

	handler = SysLogHandler(address=addr)
	handler.priority_map.update({i[0]: i[2] for i in syslog_extension})
	handler.setFormatter(
		logging.Formatter(f"{PROG_NAME}[%(process)d]: %(levelname)s - %(message)s"),
	)
	logger.addHandler(handler)
	logger.notice(
		f"{PROG_NAME.capitalize()} logging to {addr} (UID={os.getuid()}, log_lvl={logging.getLevelName(logger.level)})"
	)
	return handler
