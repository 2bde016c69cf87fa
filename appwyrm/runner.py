from bisect import bisect_right
from collections.abc import Callable
from typing import Any

import dbus
import dbus.service
from gi.repository import GLib  # type: ignore[missing-module-attribute]

from . import PROG_NAME
from .config import Settings
from .log import logger
from .ranking import RankedResult, RankingPipeline
from .system import copy_to_clipboard, launch_bundle

DBUS_BUSNAME = f"org.kde.{PROG_NAME}"
IFACE_KRUNNER = "org.kde.krunner1"
MAX_TOTAL_RESULTS = 200
CALC_PREFIX = "calc:"
ICON_BUNDLE = "application-x-executable"
ICON_CALC = "accessories-calculator"

_CATEG_TH = [5, 20, 40, 60, 85]
_CATEG_MR = [0, 10, 30, 50, 70, 100]


def _call_once(fn: Callable[..., Any], args: tuple) -> bool:
	fn(*args)
	return False


def dispatch_idle(fn: Callable[..., Any], *args: Any) -> None:
	"""Run fn on the GLib main loop thread."""
	GLib.idle_add(_call_once, fn, args)


def build_dbus_response(result: RankedResult) -> list:
	"""Rows in KRunner format; relevance falls with position so KRunner keeps our order."""
	rows = []
	if result.calc is not None:
		rows.append((f"{CALC_PREFIX}{result.calc.display}", result.calc.display, ICON_CALC, result.calc.expression))

	rows.extend((e.path, e.name, ICON_BUNDLE, e.path) for e in result.entries)
	rows = rows[:MAX_TOTAL_RESULTS]
	n = len(rows)
	response = []
	for i, (match_id, text, icon, subtext) in enumerate(rows):
		relevance = 1.0 - i / (n + 1)
		response.append((match_id, text, icon, _CATEG_MR[bisect_right(_CATEG_TH, relevance * 100)], relevance, {"subtext": subtext}))

	return response


class Runner(dbus.service.Object):
	"""KRunner D-Bus front end over the ranking pipeline."""

	def __init__(self, pipeline: RankingPipeline, settings: Settings, bus: dbus.Bus | None = None) -> None:
		super().__init__(dbus.service.BusName(DBUS_BUSNAME, bus or dbus.SessionBus()), "/runner")
		self.pipeline = pipeline
		self.settings = settings
		self._visible = False
		pipeline.listeners.append(self._on_result_changed)

	def _accepts(self, query: str) -> bool:
		return len(query.strip()) >= self.settings.min_len

	def _on_result_changed(self, result: RankedResult) -> None:
		if self._visible and self._accepts(result.query):
			logger.debug(f"Index changed, re-emitting {result.row_count} rows for '{result.query}'")
			self.MatchesChanged(result.query, build_dbus_response(result))

	@dbus.service.signal(IFACE_KRUNNER, signature="sa(sssida{sv})")
	def MatchesChanged(self, query: str, results: list) -> None:  # type: ignore[unused-parameter]
		pass

	@dbus.service.method(IFACE_KRUNNER, in_signature="s", out_signature="a(sssida{sv})")
	def Match(self, query: str) -> list:
		if not self._visible:
			self._visible = True
			logger.debug("Runner shown, serving cached index and rescanning")
			self.pipeline.show(query)
			result = self.pipeline.result
		else:
			result = self.pipeline.update_query(query)

		if not self._accepts(query):
			return []

		logger.debug(f"Query '{query}' -> {result.row_count} rows")
		return build_dbus_response(result)

	@dbus.service.method(IFACE_KRUNNER, out_signature="a(sss)")
	def Actions(self) -> list:
		return [
			("open", "Launch", "system-run"),
			("copy", "Copy Path", "edit-copy"),
		]

	@dbus.service.method(IFACE_KRUNNER, in_signature="ss")
	def Run(self, data: str, action_id: str) -> None:
		action = action_id or "open"
		if data.startswith(CALC_PREFIX):
			copied = copy_to_clipboard(data[len(CALC_PREFIX):], self.settings.clipboard_cmd)
			logger.debug(f"Copy calculation to clipboard: {'success' if copied else 'failed'}")
			return

		match action:
			case "open":
				if launch_bundle(self.settings.opener, data):
					self.pipeline.record_launch(data)

			case "copy":
				copied = copy_to_clipboard(data, self.settings.clipboard_cmd)
				logger.debug(f"Copy path to clipboard: {'success' if copied else 'failed'}")

			case _:
				logger.warning(f"Unknown action requested: '{action}'")

	@dbus.service.method(IFACE_KRUNNER)
	def Teardown(self) -> None:
		self._visible = False
		logger.debug("Runner torn down")
