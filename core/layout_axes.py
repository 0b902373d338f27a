# ==================================================
# =============  MODULE: layout_axes  ==============
# ==================================================
from __future__ import annotations

from typing import Any, Dict, Hashable, List, Optional, Sequence, Tuple

__all__ = [
    "AXIS_TYPES",
    "UNKNOWN_AXIS",
    "FORMAT_LAYOUTS",
    "get_layout_labels",
    "list_available_layouts",
    "default_axis_labels",
    "validate_axis_labels",
    "infer_layout",
]

# ====[ AXIS TYPES ]====
# Canonical order used when no layout is given: spatial first, then channel, then time.
AXIS_TYPES: List[str] = ["X", "Y", "Z", "Channel", "Time"]
UNKNOWN_AXIS: str = "Unknown"

# ====[ FORMAT LAYOUTS ]====
FORMAT_LAYOUTS: Dict[str, Dict[str, Any]] = {
    "X": {
        "labels": ("X",),
        "description": "Single line profile",
    },
    "XY": {
        "labels": ("X", "Y"),
        "description": "Plain 2D image",
    },
    "XYC": {
        "labels": ("X", "Y", "Channel"),
        "description": "Multichannel 2D image",
    },
    "XYZ": {
        "labels": ("X", "Y", "Z"),
        "description": "3D volume",
    },
    "XYT": {
        "labels": ("X", "Y", "Time"),
        "description": "2D time series",
    },
    "XYZC": {
        "labels": ("X", "Y", "Z", "Channel"),
        "description": "Multichannel 3D volume",
    },
    "XYCT": {
        "labels": ("X", "Y", "Channel", "Time"),
        "description": "Multichannel 2D time series",
    },
    "XYZT": {
        "labels": ("X", "Y", "Z", "Time"),
        "description": "3D time series",
    },
    "XYZCT": {
        "labels": ("X", "Y", "Z", "Channel", "Time"),
        "description": "Multichannel 3D time series (hyperstack)",
    },
}


def list_available_layouts() -> List[str]:
    """Return the names of all known layouts."""
    return list(FORMAT_LAYOUTS.keys())


def get_layout_labels(name: str) -> Tuple[str, ...]:
    """
    Return the axis labels of a named layout.

    Raises
    ------
    ValueError
        If the layout is unknown.
    """
    key = name.upper() if isinstance(name, str) else name
    if key not in FORMAT_LAYOUTS:
        raise ValueError(
            f"Unknown layout '{name}'. Available layouts: {list_available_layouts()}"
        )
    return tuple(FORMAT_LAYOUTS[key]["labels"])


def default_axis_labels(rank: int) -> Tuple[str, ...]:
    """
    Default labels for a dataset of the given rank.

    Axes beyond the canonical X, Y, Z, Channel, Time are labelled 'Unknown'.
    """
    if rank < 0:
        raise ValueError(f"Rank must be non-negative, got {rank}.")
    return tuple(AXIS_TYPES[i] if i < len(AXIS_TYPES) else UNKNOWN_AXIS for i in range(rank))


def validate_axis_labels(labels: Sequence[Hashable], rank: int) -> Tuple[Hashable, ...]:
    """
    Check that there is exactly one hashable label per axis.

    Labels are opaque tags: any hashable value is accepted, duplicates included.
    """
    labels = tuple(labels)
    if len(labels) != rank:
        raise ValueError(f"Expected {rank} axis labels, got {len(labels)}: {labels}")
    for label in labels:
        try:
            hash(label)
        except TypeError as e:
            raise ValueError(f"Axis label {label!r} is not hashable.") from e
    return labels


def infer_layout(labels: Sequence[Hashable]) -> Optional[str]:
    """Return the name of the layout whose labels match exactly, or None."""
    labels = tuple(labels)
    for name, info in FORMAT_LAYOUTS.items():
        if info["labels"] == labels:
            return name
    return None

