from __future__ import annotations

import json
import logging

from notifsync.obs import logging as obs_logging
from notifsync.settings import settings


def _record(msg: str = "notifications.loaded", level: int = logging.INFO, **extra) -> logging.LogRecord:
	record = logging.LogRecord("notifsync.test", level, __file__, 1, msg, None, None)
	for key, value in extra.items():
		setattr(record, key, value)
	return record


def test_json_formatter_includes_context_and_extra_fields():
	tokens = obs_logging.bind_context(account="did:plc:alice", cycle_id="abc123")
	try:
		payload = json.loads(obs_logging.JSONLogFormatter().format(_record(kind="refresh", records=20)))
	finally:
		obs_logging.reset_context(tokens)

	assert payload["msg"] == "notifications.loaded"
	assert payload["level"] == "info"
	assert payload["service"] == settings.service_name
	assert payload["account"] == "did:plc:alice"
	assert payload["cycle_id"] == "abc123"
	assert payload["kind"] == "refresh"
	assert payload["records"] == 20


def test_sensitive_fields_are_redacted_and_long_strings_truncated():
	formatter = obs_logging.JSONLogFormatter()
	payload = json.loads(formatter.format(_record(access_token="secret", error="x" * 400)))

	assert payload["access_token"] == "[redacted]"
	assert len(payload["error"]) == 257


def test_context_reset_restores_previous_values():
	tokens = obs_logging.bind_context(cycle_id="outer")
	inner = obs_logging.bind_context(cycle_id="inner")
	obs_logging.reset_context(inner)
	payload = json.loads(obs_logging.JSONLogFormatter().format(_record()))
	obs_logging.reset_context(tokens)

	assert payload["cycle_id"] == "outer"
	assert "cycle_id" not in json.loads(obs_logging.JSONLogFormatter().format(_record()))


def test_sampling_filter_keeps_warnings(monkeypatch):
	monkeypatch.setattr(settings, "obs_log_sampling_rate_info", 0.0)
	sampler = obs_logging.InfoSamplingFilter()

	assert sampler.filter(_record(level=logging.WARNING)) is True
	assert sampler.filter(_record(level=logging.DEBUG)) is True
	assert sampler.filter(_record(level=logging.INFO)) is False


def test_configure_logging_installs_json_handler():
	root = logging.getLogger()
	original_handlers = root.handlers[:]
	original_level = root.level
	try:
		logger = obs_logging.configure_logging()
		assert logger.name == "notifsync"
		assert len(root.handlers) == 1
		assert isinstance(root.handlers[0].formatter, obs_logging.JSONLogFormatter)
	finally:
		root.handlers[:] = original_handlers
		root.setLevel(original_level)


def test_obs_init_configures_once(monkeypatch):
	from notifsync import obs

	calls = []
	monkeypatch.setattr(obs, "_initialised", False)
	monkeypatch.setattr(obs_logging, "configure_logging", lambda: calls.append(1))

	assert obs.init().name == "notifsync"
	obs.init()
	assert calls == [1]


def test_obs_package_exposes_logging_submodule():
	import importlib

	from notifsync import obs

	submodule = importlib.import_module("notifsync.obs.logging")
	assert obs.logging is submodule
	assert obs_logging is submodule
	assert callable(obs_logging.bind_context)
