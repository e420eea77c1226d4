import sys
from pathlib import Path

import pytest

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from notifsync.obs import logging as obs_logging
from notifsync.settings import settings


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Keep retry/backoff and paging knobs stable across tests."""
	original = {
		"environment": settings.environment,
		"page_size": settings.page_size,
		"refresh_interval_seconds": settings.refresh_interval_seconds,
		"retry_max_attempts": settings.retry_max_attempts,
		"retry_initial_delay": settings.retry_initial_delay,
		"retry_backoff_multiplier": settings.retry_backoff_multiplier,
	}
	settings.environment = "dev"
	settings.page_size = 50
	settings.refresh_interval_seconds = 1200.0
	settings.retry_max_attempts = 3
	settings.retry_initial_delay = 1.0
	settings.retry_backoff_multiplier = 2.0
	try:
		yield
	finally:
		for key, value in original.items():
			setattr(settings, key, value)
		obs_logging.clear_context()
