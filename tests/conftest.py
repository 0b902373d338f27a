# ==================================================
# ================ TESTS: conftest =================
# ==================================================
from __future__ import annotations

from typing import Tuple

import numpy as np
import pytest

import utils.logger as logger_module


@pytest.fixture(scope="session", autouse=True)
def _log_dir(tmp_path_factory) -> None:
    """
    Send every log file produced by the suite to a temporary directory.
    Loggers are created lazily, so patching the default before the first test is enough.
    """
    logger_module.DEFAULT_LOG_DIR = tmp_path_factory.mktemp("logs")


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(123)


def make_np(shape: Tuple[int, ...], dtype: str = "float32", seed: int = 123) -> np.ndarray:
    """
    Deterministic random array in a range that suits `dtype`.
    """
    rng = np.random.default_rng(seed)
    kind = np.dtype(dtype).kind
    if kind == "f":
        return (rng.standard_normal(size=shape) * 100).astype(dtype)
    info = np.iinfo(dtype)
    low = max(int(info.min), -1000)
    high = min(int(info.max), 1000)
    return rng.integers(low, high, size=shape, endpoint=True).astype(dtype)
