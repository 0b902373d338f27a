# ==================================================
# ============= TESTS: add_datasets ================
# ==================================================
from __future__ import annotations

import numpy as np
import pytest

from conftest import make_np
from core.config import GlobalConfig, LayoutConfig
from core.errors import ShapeMismatch
from core.nd_array import NDArray
from operators.add_datasets import AddResults, add_datasets
from utils.decorators import TimerManager


def test_three_results_are_identical():
    a = NDArray(make_np((6, 4, 3), "uint16", seed=1), name="dataset 1")
    b = NDArray(make_np((5, 4, 3), "uint8", seed=2), name="dataset 2")
    results = add_datasets(a, b)

    assert isinstance(results, AddResults)
    expected = (a.data[:5].astype(np.float64) + b.data.astype(np.float64)).astype(np.float32)
    for r in results:
        assert r.name == "result"
        assert r.element_type == np.dtype("float32")
        assert r.extents == (5, 4, 3)
        np.testing.assert_array_equal(r.data, expected)


def test_scenario_from_two_float_images():
    a = np.array([[1, 2], [3, 4]], dtype=np.float32)
    b = np.array([[10, 20], [30, 40], [50, 60]], dtype=np.float32)
    result1, result2, result3 = add_datasets(a, b)
    for r in (result1, result2, result3):
        np.testing.assert_array_equal(r.data, [[11, 22], [33, 44]])


def test_rank_mismatch_is_rejected_before_combining():
    timer = TimerManager()
    with pytest.raises(ShapeMismatch, match="same number of dimensions"):
        add_datasets(np.zeros((2, 2)), np.zeros((2, 2, 2)), timer=timer)
    assert timer.stats == {}


def test_timings_are_collected_per_strategy():
    timer = TimerManager()
    add_datasets(make_np((4, 4)), make_np((4, 4), seed=7), timer=timer, global_cfg=GlobalConfig(n_jobs=2))
    assert set(timer.stats) == {"add_random_access", "add_serial", "add_parallel"}
    assert all(info["count"] == 1 for info in timer.stats.values())


def test_output_type_and_labels():
    a = make_np((3, 3, 2), "int16", seed=3)
    b = make_np((3, 3, 2), "int16", seed=4)
    results = add_datasets(a, b, "int32", layout_cfg=LayoutConfig(layout_name="XYC"))
    for r in results:
        assert r.element_type == np.dtype("int32")
        assert r.axis_labels == ("X", "Y", "Channel")
        np.testing.assert_array_equal(r.data, a.astype(np.int32) + b.astype(np.int32))


def test_verbose_run_returns_results():
    results = add_datasets(make_np((2, 2)), make_np((2, 2), seed=9), global_cfg=GlobalConfig(verbose=True, n_jobs=1))
    assert len(results) == 3
