# ==================================================
# ===============  MODULE: nd_array  ===============
# ==================================================
from __future__ import annotations

import operator
from typing import Any, Hashable, Optional, Sequence, Tuple, Union

import numpy as np
import torch

from core.config import LayoutConfig
from core.element_types import as_element_type, to_element_type
from core.errors import OutOfRange
from core.layout_axes import validate_axis_labels

# Public API
__all__ = ["NDArray", "allocate"]

ArrayLike = Union[np.ndarray, torch.Tensor]


# ==================================================
# =================== NDArray ======================
# ==================================================
class NDArray:
    """
    Rectangular N-dimensional numeric dataset with one semantic label per axis.

    Notes
    -----
    - Backed by a NumPy array; torch tensors are accepted through `from_array`.
    - `get` / `set` are bounds-checked and never wrap negative coordinates.
    - `data` is a read-only view; `set` is the only write path.
    """

    # ====[ INIT ]====
    def __init__(
        self,
        data: np.ndarray,
        axis_labels: Optional[Sequence[Hashable]] = None,
        name: str = "untitled",
        layout_cfg: Optional[LayoutConfig] = None,
    ) -> None:
        """
        Wrap a NumPy array.

        Parameters
        ----------
        data : np.ndarray
            Storage. Must have a supported real numeric dtype and no empty axis.
        axis_labels : sequence of hashable, optional
            One label per axis. Resolved from `layout_cfg` when omitted.
        name : str, default "untitled"
            Dataset title.
        layout_cfg : LayoutConfig, optional
            Source of default labels when `axis_labels` is None.
        """
        if not isinstance(data, np.ndarray):
            raise TypeError(f"NDArray expects a numpy.ndarray, got {type(data).__name__}.")
        as_element_type(data.dtype)
        if any(n <= 0 for n in data.shape):
            raise ValueError(f"All extents must be strictly positive, got {data.shape}.")

        self._data: np.ndarray = data
        if axis_labels is None:
            axis_labels = (layout_cfg or LayoutConfig()).resolve(data.ndim)
        self._axis_labels: Tuple[Hashable, ...] = validate_axis_labels(axis_labels, data.ndim)
        self.name: str = name

    # ====[ FACTORIES ]====
    @classmethod
    def from_array(
        cls,
        array: Union[ArrayLike, Sequence[Any]],
        axis_labels: Optional[Sequence[Hashable]] = None,
        name: str = "untitled",
        layout_cfg: Optional[LayoutConfig] = None,
        element_type: Optional[Any] = None,
    ) -> "NDArray":
        """
        Build an NDArray from a NumPy array, a torch tensor or nested sequences.

        Torch tensors are detached and moved to CPU. Nested sequences go through
        `np.asarray`, optionally with an explicit `element_type`.
        """
        if isinstance(array, NDArray):
            return array
        if torch.is_tensor(array):
            as_element_type(array.dtype)
            data = array.detach().cpu().numpy()
        else:
            data = np.asarray(array)
        if element_type is not None:
            data = data.astype(as_element_type(element_type), copy=False)
        return cls(data, axis_labels=axis_labels, name=name, layout_cfg=layout_cfg)

    # ====[ SHAPE & LABELS ]====
    def rank(self) -> int:
        """Number of dimensions."""
        return self._data.ndim

    def extent(self, axis: int) -> int:
        """Size along `axis`."""
        if not 0 <= axis < self._data.ndim:
            raise IndexError(f"Axis {axis} is out of range for a rank-{self._data.ndim} dataset.")
        return int(self._data.shape[axis])

    @property
    def extents(self) -> Tuple[int, ...]:
        return tuple(int(n) for n in self._data.shape)

    def axis_label(self, axis: int) -> Hashable:
        """Semantic label of `axis`."""
        if not 0 <= axis < self._data.ndim:
            raise IndexError(f"Axis {axis} is out of range for a rank-{self._data.ndim} dataset.")
        return self._axis_labels[axis]

    @property
    def axis_labels(self) -> Tuple[Hashable, ...]:
        return self._axis_labels

    @property
    def element_type(self) -> np.dtype:
        return self._data.dtype

    @property
    def data(self) -> np.ndarray:
        """Read-only view of the storage."""
        view = self._data.view()
        view.flags.writeable = False
        return view

    # ====[ RANDOM ACCESS ]====
    def _check_coord(self, coord: Sequence[int]) -> Tuple[int, ...]:
        try:
            index = tuple(operator.index(c) for c in coord)
        except TypeError as e:
            raise OutOfRange(tuple(coord), self.extents) from e
        if len(index) != self._data.ndim:
            raise OutOfRange(index, self.extents)
        for c, n in zip(index, self._data.shape):
            if not 0 <= c < n:
                raise OutOfRange(index, self.extents)
        return index

    def get(self, coord: Sequence[int]) -> Union[int, float]:
        """Return the element at `coord` as a Python scalar."""
        return self._data[self._check_coord(coord)].item()

    def set(self, coord: Sequence[int], value: Union[int, float]) -> None:
        """Write `value` at `coord`, converted to the element type."""
        index = self._check_coord(coord)
        self._data[index] = to_element_type(value, self._data.dtype)

    def region(self, extents: Sequence[int]) -> np.ndarray:
        """
        Read-only view of the leading box `[0, extents[i])` on the first
        `len(extents)` axes.
        """
        extents = tuple(extents)
        if len(extents) > self._data.ndim or any(
            not 0 < e <= n for e, n in zip(extents, self._data.shape)
        ):
            raise OutOfRange(tuple(e - 1 for e in extents), self.extents)
        index = tuple(slice(0, e) for e in extents) + (0,) * (self._data.ndim - len(extents))
        view = self._data[index]
        if isinstance(view, np.ndarray):
            view = view.view()
            view.flags.writeable = False
        return np.asarray(view)

    # ====[ EXPORT ]====
    def to_numpy(self, copy: bool = True) -> np.ndarray:
        return self._data.copy() if copy else self.data

    def to_torch(self) -> torch.Tensor:
        """Copy the storage into a CPU torch tensor (unsigned types above 8 bits are widened)."""
        data = self._data
        if not data.dtype.isnative:
            data = data.astype(data.dtype.newbyteorder("="))
        if data.dtype.kind == "u" and data.dtype.itemsize > 1:
            data = data.astype(np.int64 if data.dtype.itemsize < 8 else np.float64)
        return torch.from_numpy(data.copy())

    def __repr__(self) -> str:
        return (
            f"NDArray(name={self.name!r}, extents={self.extents}, "
            f"axis_labels={self._axis_labels}, element_type={self._data.dtype})"
        )


# ==================================================
# ================= Allocation =====================
# ==================================================
def allocate(
    element_type: Any,
    extents: Sequence[int],
    axis_labels: Optional[Sequence[Hashable]] = None,
    name: str = "result",
) -> NDArray:
    """
    Allocate a zero-filled dataset.

    Parameters
    ----------
    element_type : dtype-like
        Supported real numeric type (UnsupportedElementType otherwise).
    extents : sequence of int
        Strictly positive size per axis.
    axis_labels : sequence of hashable, optional
        One label per axis; canonical defaults when omitted.
    name : str, default "result"
        Dataset title.
    """
    dtype = as_element_type(element_type)
    extents = tuple(int(e) for e in extents)
    if any(e <= 0 for e in extents):
        raise ValueError(f"All extents must be strictly positive, got {extents}.")
    if axis_labels is not None:
        validate_axis_labels(axis_labels, len(extents))
    return NDArray(np.zeros(extents, dtype=dtype), axis_labels=axis_labels, name=name)
