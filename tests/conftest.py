from __future__ import annotations

from types import SimpleNamespace

import pytest


@pytest.fixture
def settings():
    """Stand-in for the validated configuration model with default values."""

    return SimpleNamespace(
        FRAGMENT_ENCODING="cp932",
        FRAGMENT_PADDING="null",
        FRAGMENT_HALT_ON_OVERSIZE=False,
        FRAGMENT_PATH_PREFIX="",
        FRAGMENT_TABLE_URL=None,
        FRAGMENT_HTTP_TIMEOUT=30.0,
    )
