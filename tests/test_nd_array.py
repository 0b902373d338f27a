# ==================================================
# ================ TESTS: NDArray ==================
# ==================================================
from __future__ import annotations

import numpy as np
import pytest
import torch

from core.config import LayoutConfig
from core.errors import OutOfRange, UnsupportedElementType
from core.layout_axes import default_axis_labels, get_layout_labels, infer_layout
from core.nd_array import NDArray, allocate


# ===================
# Construction
# ===================

def test_shape_and_default_labels():
    arr = NDArray(np.zeros((4, 3, 2), dtype=np.uint16))
    assert arr.rank() == 3
    assert arr.extents == (4, 3, 2)
    assert [arr.extent(i) for i in range(3)] == [4, 3, 2]
    assert arr.axis_labels == ("X", "Y", "Z")
    assert arr.axis_label(2) == "Z"
    assert arr.element_type == np.dtype("uint16")
    assert arr.name == "untitled"


def test_labels_from_layout_config():
    arr = NDArray(np.zeros((2, 2, 3)), layout_cfg=LayoutConfig(layout_name="xyc"))
    assert arr.axis_labels == ("X", "Y", "Channel")


def test_explicit_labels_win_and_are_opaque():
    arr = NDArray(np.zeros((2, 2)), axis_labels=("time", 7))
    assert arr.axis_labels == ("time", 7)


def test_label_count_must_match_rank():
    with pytest.raises(ValueError):
        NDArray(np.zeros((2, 2)), axis_labels=("X",))


def test_empty_axis_is_rejected():
    with pytest.raises(ValueError):
        NDArray(np.zeros((2, 0)))


def test_bool_storage_is_rejected():
    with pytest.raises(UnsupportedElementType):
        NDArray(np.zeros((2, 2), dtype=bool))


def test_from_torch_tensor():
    t = torch.arange(6, dtype=torch.float32).reshape(2, 3)
    arr = NDArray.from_array(t, name="tensor")
    assert arr.extents == (2, 3)
    assert arr.get((1, 2)) == 5.0
    assert arr.name == "tensor"
    assert torch.equal(arr.to_torch(), t)


def test_from_nested_lists_with_element_type():
    arr = NDArray.from_array([[1, 2], [3, 4]], element_type="float32")
    assert arr.element_type == np.dtype("float32")


# ===================
# Random access
# ===================

def test_get_and_set_round_trip_with_conversion():
    arr = allocate("uint8", (2, 3))
    arr.set((1, 2), 254.6)
    assert arr.get((1, 2)) == 255
    arr.set((0, 0), -3)
    assert arr.get((0, 0)) == 0


@pytest.mark.parametrize("coord", [(2, 0), (0, 3), (-1, 0), (0,), (0, 0, 0), (0.5, 0)])
def test_out_of_range_coordinates(coord):
    arr = NDArray(np.zeros((2, 3)))
    with pytest.raises(OutOfRange):
        arr.get(coord)
    with pytest.raises(IndexError):
        arr.set(coord, 1.0)


def test_data_view_is_read_only():
    arr = NDArray(np.zeros((2, 2)))
    with pytest.raises(ValueError):
        arr.data[0, 0] = 1.0


def test_region_is_leading_box_with_trailing_axes_at_zero():
    base = np.arange(24).reshape(2, 3, 4).astype(np.int32)
    arr = NDArray(base)
    np.testing.assert_array_equal(arr.region((2, 2)), base[:2, :2, 0])
    with pytest.raises(OutOfRange):
        arr.region((3, 1))


def test_rank_zero_dataset():
    arr = NDArray(np.array(5.0))
    assert arr.rank() == 0
    assert arr.extents == ()
    assert arr.get(()) == 5.0


# ===================
# Allocation
# ===================

def test_allocate_is_zero_filled_and_named_result():
    out = allocate("float32", (3, 2), ("X", "Y"))
    assert out.name == "result"
    assert out.element_type == np.dtype("float32")
    assert not out.data.any()


def test_allocate_validates_inputs():
    with pytest.raises(UnsupportedElementType):
        allocate("complex64", (2,))
    with pytest.raises(ValueError):
        allocate("float32", (2, 0))
    with pytest.raises(ValueError):
        allocate("float32", (2, 2), ("X",))


# ===================
# Layouts
# ===================

def test_default_labels_beyond_canonical_axes():
    assert default_axis_labels(7) == ("X", "Y", "Z", "Channel", "Time", "Unknown", "Unknown")


def test_named_layouts():
    assert get_layout_labels("xyzct") == ("X", "Y", "Z", "Channel", "Time")
    assert infer_layout(("X", "Y", "Time")) == "XYT"
    assert infer_layout(("Y", "X")) is None
    with pytest.raises(ValueError):
        get_layout_labels("QQ")


# ===================
# Interop edge cases
# ===================

def test_torch_dtype_without_numpy_counterpart_is_rejected():
    with pytest.raises(UnsupportedElementType):
        NDArray.from_array(torch.ones((2, 2), dtype=torch.bfloat16))


def test_big_endian_storage():
    base = np.array([[1, 2], [3, 4]], dtype=">u2")
    arr = NDArray(base)
    assert arr.get((1, 0)) == 3
    assert torch.equal(arr.to_torch(), torch.tensor([[1, 2], [3, 4]], dtype=torch.int64))


def test_to_numpy_copy_is_independent():
    arr = NDArray(np.arange(4.0).reshape(2, 2))
    copied = arr.to_numpy()
    copied[0, 0] = 99.0
    assert arr.get((0, 0)) == 0.0
    assert not arr.to_numpy(copy=False).flags.writeable
