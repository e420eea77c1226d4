"""Observability package bootstrap."""

from __future__ import annotations

from notifsync.obs import logging as obs_logging

_initialised = False


def init():
	"""Install JSON logging once per process and return the package logger."""
	global _initialised
	if not _initialised:
		obs_logging.configure_logging()
		_initialised = True
	return obs_logging.get_logger()
