import os
import signal
import sys
from typing import Any

from dbus.mainloop.glib import DBusGMainLoop
from gi.repository import GLib  # type: ignore[missing-module-attribute]

from . import PROG_NAME
from .config import Settings, load_settings, read_config
from .fzf import FzfFilter
from .index import IndexCache
from .log import configure_logging, logger
from .ranking import RankingPipeline
from .runner import DBUS_BUSNAME, Runner, dispatch_idle
from .usage import USAGE_FILE_NAME, UsageStore

# ========== CONFIGURATION AND PATHS ==========
CONFIG_FILE = os.path.join(GLib.get_user_config_dir(), PROG_NAME, "config.toml")
USAGE_FILE = os.path.join(GLib.get_user_cache_dir(), PROG_NAME, USAGE_FILE_NAME)


def build_pipeline() -> tuple[RankingPipeline, Settings]:
	settings = load_settings(read_config(CONFIG_FILE))
	usage = UsageStore(USAGE_FILE)
	index = IndexCache(settings.roots, settings.extension, usage)
	fzf = FzfFilter.detect(settings.fzf, settings.fzf_timeout) if settings.use_fzf else None
	pipeline = RankingPipeline(
		index,
		usage,
		fzf,
		fallback_on_empty=settings.fallback_on_empty,
		dispatch=dispatch_idle,
		log_index=settings.log_index,
	)
	return pipeline, settings


def main() -> int:
	configure_logging()
	logger.info(f"Starting {PROG_NAME.capitalize()}'s main loop")
	DBusGMainLoop(set_as_default=True)
	pipeline, settings = build_pipeline()
	try:
		Runner(pipeline, settings)
		logger.notice(f"{PROG_NAME.capitalize()} registered on DBus: {DBUS_BUSNAME}")
		pipeline.show()
		loop = GLib.MainLoop()

		def quit_handler(signum: int, *_: Any) -> None:
			logger.notice(f"Received {signal.Signals(signum).name}, shutting down gracefully")
			loop.quit()

		signal.signal(signal.SIGINT, quit_handler)
		signal.signal(signal.SIGTERM, quit_handler)
		loop.run()
	except KeyboardInterrupt:
		logger.info("Keyboard interrupt received")
	except Exception:
		logger.critical("Fatal error in main loop", exc_info=True)
		raise
	finally:
		pipeline.index.close()
		logger.notice(f"{PROG_NAME.capitalize()} stopped")

	return 0


if __name__ == "__main__":
	sys.exit(main())
