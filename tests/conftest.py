from __future__ import annotations

import pytest

from samples import STATIC_QRIS, tamper


@pytest.fixture
def static_qris() -> str:
    return STATIC_QRIS


@pytest.fixture
def tampered_qris() -> str:
    return tamper(STATIC_QRIS)
