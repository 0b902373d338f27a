# ==================================================
# ==============  MODULE: binary_ops  ==============
# ==================================================
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Union

import numpy as np

__all__ = ["BinaryScalarOp", "BINARY_OPS", "register_op", "get_op", "list_ops"]


# ==================================================
# ================ BinaryScalarOp ==================
# ==================================================
@dataclass(frozen=True)
class BinaryScalarOp:
    """
    Binary operation on two float64 values.

    `func` is either a NumPy ufunc (used as-is on scalars and arrays) or a plain
    Python callable on two floats, vectorised with `np.frompyfunc` for arrays.
    """
    name: str
    func: Callable[[float, float], float]

    def scalar(self, a: float, b: float) -> float:
        with np.errstate(divide="ignore", invalid="ignore"):
            return float(self.func(np.float64(a), np.float64(b)))

    def array(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        a = np.asarray(a, dtype=np.float64)
        b = np.asarray(b, dtype=np.float64)
        if isinstance(self.func, np.ufunc):
            with np.errstate(divide="ignore", invalid="ignore"):
                return np.asarray(self.func(a, b), dtype=np.float64)
        vectorised = np.frompyfunc(lambda x, y: self.scalar(x, y), 2, 1)
        return np.asarray(vectorised(a, b), dtype=np.float64)

    def __call__(self, a, b):
        if np.ndim(a) == 0 and np.ndim(b) == 0:
            return self.scalar(a, b)
        return self.array(a, b)


def _mean(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return (a + b) / 2.0


# ====[ Registry ]====
BINARY_OPS: Dict[str, BinaryScalarOp] = {
    "add": BinaryScalarOp("add", np.add),
    "subtract": BinaryScalarOp("subtract", np.subtract),
    "multiply": BinaryScalarOp("multiply", np.multiply),
    "divide": BinaryScalarOp("divide", np.divide),
    "min": BinaryScalarOp("min", np.minimum),
    "max": BinaryScalarOp("max", np.maximum),
    "mean": BinaryScalarOp("mean", _mean),
}


def register_op(name: str, func: Callable[[float, float], float], overwrite: bool = False) -> BinaryScalarOp:
    """Register a named binary operation and return it."""
    if name in BINARY_OPS and not overwrite:
        raise KeyError(f"Binary op '{name}' is already registered.")
    op = BinaryScalarOp(name, func)
    BINARY_OPS[name] = op
    return op


def list_ops() -> List[str]:
    return sorted(BINARY_OPS)


def get_op(op: Union[str, BinaryScalarOp, Callable[[float, float], float]]) -> BinaryScalarOp:
    """
    Resolve a name, a BinaryScalarOp or a callable to a BinaryScalarOp.

    Raises
    ------
    KeyError
        If a name is not registered.
    TypeError
        If `op` is neither a name nor callable.
    """
    if isinstance(op, BinaryScalarOp):
        return op
    if isinstance(op, str):
        if op not in BINARY_OPS:
            raise KeyError(f"Unknown binary op '{op}'. Available ops: {list_ops()}")
        return BINARY_OPS[op]
    if callable(op):
        return BinaryScalarOp(getattr(op, "__name__", "custom"), op)
    raise TypeError(f"Expected an op name or a callable, got {type(op).__name__}.")
