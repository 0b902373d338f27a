# ==================================================
# ============  MODULE: element_types  =============
# ==================================================
from __future__ import annotations

from typing import Any, Dict, Tuple, Union

import numpy as np
import torch

from core.errors import UnsupportedElementType

__all__ = [
    "SUPPORTED_ELEMENT_TYPES",
    "ACCUMULATOR_TYPE",
    "as_element_type",
    "is_real_numeric",
    "element_type_for",
    "to_element_type",
]

# ====[ Supported element types ]====
SUPPORTED_ELEMENT_TYPES: Tuple[np.dtype, ...] = tuple(
    np.dtype(name)
    for name in (
        "uint8", "int8", "uint16", "int16", "uint32", "int32",
        "uint64", "int64", "float16", "float32", "float64",
    )
)

# Sums are always accumulated in double precision.
ACCUMULATOR_TYPE: np.dtype = np.dtype("float64")

_TORCH_TO_NUMPY: Dict[torch.dtype, np.dtype] = {
    torch.uint8: np.dtype("uint8"),
    torch.int8: np.dtype("int8"),
    torch.int16: np.dtype("int16"),
    torch.int32: np.dtype("int32"),
    torch.int64: np.dtype("int64"),
    torch.float16: np.dtype("float16"),
    torch.float32: np.dtype("float32"),
    torch.float64: np.dtype("float64"),
}

# (bits, signed, floating) -> dtype, mirrors the usual dataset bit-depth descriptors
_BIT_DEPTHS: Dict[Tuple[int, bool, bool], np.dtype] = {
    (8, False, False): np.dtype("uint8"),
    (8, True, False): np.dtype("int8"),
    (16, False, False): np.dtype("uint16"),
    (16, True, False): np.dtype("int16"),
    (32, False, False): np.dtype("uint32"),
    (32, True, False): np.dtype("int32"),
    (64, False, False): np.dtype("uint64"),
    (64, True, False): np.dtype("int64"),
    (16, True, True): np.dtype("float16"),
    (32, True, True): np.dtype("float32"),
    (64, True, True): np.dtype("float64"),
}

ElementTypeLike = Union[str, type, np.dtype, torch.dtype]


def is_real_numeric(element_type: Any) -> bool:
    """Return True if `element_type` resolves to one of SUPPORTED_ELEMENT_TYPES."""
    try:
        as_element_type(element_type)
    except UnsupportedElementType:
        return False
    return True


def as_element_type(element_type: ElementTypeLike) -> np.dtype:
    """
    Resolve a dtype-like (string, numpy type, numpy dtype or torch dtype) to a
    supported numpy dtype.

    Raises
    ------
    UnsupportedElementType
        If the type is not a real numeric type (bool, complex, object, ...).
    """
    if isinstance(element_type, torch.dtype):
        resolved = _TORCH_TO_NUMPY.get(element_type)
        if resolved is None:
            raise UnsupportedElementType(element_type)
        return resolved
    try:
        resolved = np.dtype(element_type)
    except TypeError as e:
        raise UnsupportedElementType(element_type) from e
    if resolved.kind not in "uif":
        raise UnsupportedElementType(element_type)
    # byte order is a storage detail: '>f4' and '<f4' are both float32
    resolved = resolved.newbyteorder("=")
    if resolved not in SUPPORTED_ELEMENT_TYPES:
        raise UnsupportedElementType(element_type)
    return resolved


def element_type_for(bits: int, signed: bool, floating: bool) -> np.dtype:
    """
    Map a (bits per pixel, signed, floating) descriptor to a numpy dtype.

    Floating types are always signed; `signed` is ignored when `floating` is True.
    """
    key = (int(bits), True if floating else bool(signed), bool(floating))
    if key not in _BIT_DEPTHS:
        raise UnsupportedElementType(
            key, f"No element type with bits={bits}, signed={signed}, floating={floating}."
        )
    return _BIT_DEPTHS[key]


def to_element_type(values: Any, element_type: ElementTypeLike) -> np.ndarray:
    """
    Convert accumulator values to `element_type`.

    Float targets are a plain (possibly lossy) cast. Integer targets round half
    away from zero and saturate at the type's range; NaN maps to 0.

    Parameters
    ----------
    values : array-like
        Values in any real type, usually float64 accumulator output.
    element_type : dtype-like
        Target element type.

    Returns
    -------
    np.ndarray
        Array (0-d for scalar input) of the target type.
    """
    dtype = as_element_type(element_type)
    values = np.asarray(values, dtype=ACCUMULATOR_TYPE)

    if dtype.kind == "f":
        with np.errstate(over="ignore"):
            return values.astype(dtype)

    info = np.iinfo(dtype)
    rounded = np.where(values >= 0, np.floor(values + 0.5), np.ceil(values - 0.5))
    rounded = np.nan_to_num(rounded, nan=0.0, posinf=np.inf, neginf=-np.inf)

    # float(info.max) may not be representable, so saturate through masks
    too_high = rounded >= float(info.max)
    too_low = rounded <= float(info.min)
    out = np.where(too_high | too_low, 0.0, rounded).astype(dtype)
    out[too_high] = info.max
    out[too_low] = info.min
    return out
