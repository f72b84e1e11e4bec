"""Shared test fixtures: environment isolation.

Engine tests run entirely in-process: collaborators are in-memory fakes and
time is driven by a ``VirtualClock``.  Tests that need a real S3-compatible
endpoint are marked ``@pytest.mark.s3`` and skipped unless ``CIPHER_S3_*``
variables are set.
"""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

from cipherstudio.engine.settings import _get_settings_cached


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop ambient CIPHER_* configuration (except S3 test credentials)."""
    for key in list(os.environ):
        if key.startswith("CIPHER_") and not key.startswith("CIPHER_S3_"):
            monkeypatch.delenv(key)
    _get_settings_cached.cache_clear()
    yield
    _get_settings_cached.cache_clear()
