# ==================================================
# ================  MODULE: config  ================
# ==================================================
from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Hashable, Optional, Sequence, Tuple, Union

import yaml

from core.layout_axes import default_axis_labels, get_layout_labels, validate_axis_labels

__all__ = [
    "LayoutConfig",
    "GlobalConfig",
    "CombinerConfig",
    "STRATEGIES",
]

STRATEGIES: Tuple[str, ...] = ("random_access", "serial", "parallel")


# ==================================================
# ===============  CLASS: LayoutConfig  ============
# ==================================================
@dataclass
class LayoutConfig:
    """
    Default axis labels for raw arrays wrapped without explicit labels.

    Attributes
    ----------
    layout_name : Optional[str]
        Named layout (e.g. "XY", "XYZCT"). Takes precedence over the defaults.
    axis_labels : Optional[Sequence[Hashable]]
        Explicit labels. Takes precedence over `layout_name`.
    """
    layout_name: Optional[str] = None
    axis_labels: Optional[Sequence[Hashable]] = None

    def update_config(self, **kwargs) -> "LayoutConfig":
        """Dynamically update layout configuration (in-place)."""
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)
            else:
                raise AttributeError(f"[LayoutConfig] Unknown config key: '{key}'")
        return self

    def resolve(self, rank: int) -> Tuple[Hashable, ...]:
        """
        Resolve the labels for a dataset of the given rank.

        Explicit labels win, then the named layout, then the canonical defaults.
        """
        if self.axis_labels is not None:
            return validate_axis_labels(self.axis_labels, rank)
        if self.layout_name is not None:
            return validate_axis_labels(get_layout_labels(self.layout_name), rank)
        return default_axis_labels(rank)


# ==================================================
# ===============  CLASS: GlobalConfig  ============
# ==================================================
@dataclass
class GlobalConfig:
    """
    Execution and logging settings shared by all operators.

    Attributes
    ----------
    backend : str, default "threading"
        joblib backend used by the parallel strategy ("threading", "loky", "sequential").
    n_jobs : int, default -1
        Number of parallel jobs (-1 means use all available cores).
    verbose : bool, default False
        Log debug details (shapes, chunking) when True.
    log_dir : Optional[str]
        Directory for log files. None uses the logger's default.
    """
    backend: str = "threading"
    n_jobs: int = -1
    verbose: bool = False
    log_dir: Optional[str] = None

    def update_config(self, **kwargs) -> "GlobalConfig":
        """Dynamically update configuration attributes (in-place)."""
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)
            else:
                raise AttributeError(f"[GlobalConfig] Unknown config key: '{key}'")
        return self

    def global_params(self) -> Dict[str, Any]:
        """Compact dictionary of global flags useful for logs/serialization."""
        return asdict(self)


# ==================================================
# ==============  CLASS: CombinerConfig  ===========
# ==================================================
@dataclass
class CombinerConfig:
    """
    Configuration of an element-wise combination.

    Attributes
    ----------
    strategy : str, default "serial"
        One of "random_access", "serial", "parallel".
    op : str, default "add"
        Name of a registered binary operation.
    out_type : str, default "float32"
        Element type of the output dataset.
    require_same_rank : bool, default True
        Reject inputs of different rank with ShapeMismatch.
    warn_on_truncation : bool, default True
        Log a warning when an input is clipped to the shared extents.
    chunk_size : Optional[int]
        Number of indices per parallel slab along the split axis (the
        outermost output axis with more than one cell). None gives one slab
        per job.
    """
    strategy: str = "serial"
    op: str = "add"
    out_type: str = "float32"
    require_same_rank: bool = True
    warn_on_truncation: bool = True
    chunk_size: Optional[int] = None

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        if self.strategy not in STRATEGIES:
            raise ValueError(f"[CombinerConfig] Unknown strategy '{self.strategy}'. Expected one of {STRATEGIES}.")
        if self.chunk_size is not None and int(self.chunk_size) <= 0:
            raise ValueError(f"[CombinerConfig] chunk_size must be positive, got {self.chunk_size}.")

    def update_config(self, **kwargs) -> "CombinerConfig":
        """Dynamically update configuration attributes (in-place)."""
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)
            else:
                raise AttributeError(f"[CombinerConfig] Unknown config key: '{key}'")
        self._validate()
        return self

    # ====[ YAML I/O ]====
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CombinerConfig":
        """Build a config from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise AttributeError(f"[CombinerConfig] Unknown config key(s): {sorted(unknown)}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "CombinerConfig":
        """Load a config from a YAML file (an empty file gives the defaults)."""
        with Path(path).open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise TypeError(f"[CombinerConfig] Expected a mapping in '{path}', got {type(data).__name__}.")
        return cls.from_dict(data)

    def to_yaml(self, path: Union[str, Path]) -> Path:
        """Write the config to a YAML file and return its path."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.safe_dump(asdict(self), f, sort_keys=False)
        return path
