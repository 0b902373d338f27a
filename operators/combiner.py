# ==================================================
# ===============  MODULE: combiner  ===============
# ==================================================
from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple, Union

import numpy as np
import torch
from joblib import Parallel, delayed, effective_n_jobs

from core.config import CombinerConfig, GlobalConfig, LayoutConfig, STRATEGIES
from core.element_types import ACCUMULATOR_TYPE, as_element_type, to_element_type
from core.errors import ShapeMismatch
from core.nd_array import NDArray, allocate
from operators.binary_ops import BinaryScalarOp, get_op
from utils.decorators import TimerManager, timed_wrapper
from utils.logger import get_debug_logger, get_logger

# Public API
__all__ = [
    "NDArrayCombiner",
    "combine",
    "check_same_rank",
    "intersect_shapes",
]

ArrayLike = Union[NDArray, np.ndarray, torch.Tensor]
OpLike = Union[str, BinaryScalarOp, Callable[[float, float], float]]

# ==================================================
# ================== Utilities =====================
# ==================================================
def check_same_rank(a: NDArray, b: NDArray) -> None:
    """Raise ShapeMismatch unless both datasets have the same number of dimensions."""
    if a.rank() != b.rank():
        raise ShapeMismatch(
            f"Input datasets must have the same number of dimensions (got {a.rank()} and {b.rank()}).",
            rank_a=a.rank(),
            rank_b=b.rank(),
        )


def intersect_shapes(a: NDArray, b: NDArray) -> Tuple[Tuple[int, ...], Tuple[Hashable, ...]]:
    """
    Output extents and labels of a combination of `a` and `b`.

    The output covers the intersection of both bounding boxes: rank is the lower
    rank, each extent the smaller extent. Each label comes from `a` when `a`
    has that axis, else from `b`. Cells outside the intersection are dropped.
    """
    out_rank = min(a.rank(), b.rank())
    extents = tuple(min(a.extent(i), b.extent(i)) for i in range(out_rank))
    labels = tuple(a.axis_label(i) if a.rank() > i else b.axis_label(i) for i in range(out_rank))
    return extents, labels


def _operand_coord(coord: Tuple[int, ...], rank: int) -> Tuple[int, ...]:
    # Output coordinates address the operand directly; extra operand axes stay at 0.
    return coord + (0,) * (rank - len(coord))


def _combine_block(a: np.ndarray, b: np.ndarray, op: BinaryScalarOp, out_type: np.dtype) -> np.ndarray:
    """Per-cell formula shared by the vectorised strategies."""
    values = op.array(a.astype(ACCUMULATOR_TYPE), b.astype(ACCUMULATOR_TYPE))
    return to_element_type(values, out_type)


# ==================================================
# ================ NDArrayCombiner =================
# ==================================================
class NDArrayCombiner:
    """
    Element-wise binary combination of two ND datasets over their shared extents.

    Notes
    -----
    - Strategies: 'random_access' (explicit coordinate walk), 'serial'
      (one vectorised pass), 'parallel' (joblib over disjoint slabs).
      All three produce bit-identical outputs.
    - Values are combined in float64 and converted to the output type.
    - Inputs are never written; the output is a new dataset named "result".
    - Shape mismatches beyond rank are resolved by clipping to the smaller
      extent on each axis, which is logged as a warning.
    """

    # ====[ INIT ]====
    def __init__(
        self,
        *,
        combiner_cfg: Optional[CombinerConfig] = None,
        layout_cfg: Optional[LayoutConfig] = None,
        global_cfg: Optional[GlobalConfig] = None,
        op: Optional[OpLike] = None,
    ) -> None:
        """
        Parameters
        ----------
        combiner_cfg : CombinerConfig, optional
            Strategy, op, output type and rank/truncation policy.
        layout_cfg : LayoutConfig, optional
            Default axis labels for raw arrays.
        global_cfg : GlobalConfig, optional
            joblib backend, n_jobs, verbosity and log directory.
        op : str | BinaryScalarOp | callable, optional
            Overrides `combiner_cfg.op`.
        """
        self.combiner_cfg: CombinerConfig = combiner_cfg or CombinerConfig()
        self.layout_cfg: LayoutConfig = layout_cfg or LayoutConfig()
        self.global_cfg: GlobalConfig = global_cfg or GlobalConfig()

        # --- Combiner mirrors ---
        self.strategy: str = self.combiner_cfg.strategy
        self.op: BinaryScalarOp = get_op(op if op is not None else self.combiner_cfg.op)
        self.out_type: np.dtype = as_element_type(self.combiner_cfg.out_type)
        self.require_same_rank: bool = self.combiner_cfg.require_same_rank
        self.warn_on_truncation: bool = self.combiner_cfg.warn_on_truncation
        self.chunk_size: Optional[int] = self.combiner_cfg.chunk_size

        # --- Global mirrors ---
        self.backend: str = self.global_cfg.backend
        self.n_jobs: int = self.global_cfg.n_jobs
        self.verbose: bool = bool(self.global_cfg.verbose)

        self.logger: logging.Logger = get_logger(
            log_dir=self.global_cfg.log_dir,
            level=logging.DEBUG if self.verbose else logging.INFO,
        )
        self.debug_logger: logging.Logger = get_debug_logger(log_dir=self.global_cfg.log_dir)
        self.timer: TimerManager = TimerManager()

        self._strategies: Dict[str, Callable[..., NDArray]] = {
            "random_access": self._apply_random_access,
            "serial": self._apply_serial,
            "parallel": self._apply_parallel,
        }

    # ====[ CALLABLE ENTRY POINT ]====
    def __call__(
        self,
        a: ArrayLike,
        b: ArrayLike,
        op: Optional[OpLike] = None,
        *,
        strategy: Optional[str] = None,
        out_type: Optional[Any] = None,
    ) -> NDArray:
        """
        Combine `a` and `b` cell by cell.

        Parameters
        ----------
        a, b : NDArray | ndarray | Tensor
            Operands. Raw arrays are wrapped with the configured default labels.
        op : str | BinaryScalarOp | callable, optional
            Operation for this call. Defaults to the configured op.
        strategy : str, optional
            One of 'random_access', 'serial', 'parallel'.
        out_type : dtype-like, optional
            Output element type for this call.

        Returns
        -------
        NDArray
            New dataset with the intersected shape.

        Raises
        ------
        ShapeMismatch
            If ranks differ and `require_same_rank` is set.
        UnsupportedElementType
            If an operand or the output type is not real numeric.
        OutOfRange
            If an operand is addressed outside its extents.
        """
        a = self.as_ndarray(a)
        b = self.as_ndarray(b)
        as_element_type(a.element_type)
        as_element_type(b.element_type)

        if self.require_same_rank:
            check_same_rank(a, b)

        op_used = get_op(op) if op is not None else self.op
        out_dtype = as_element_type(out_type) if out_type is not None else self.out_type
        strategy_used = strategy or self.strategy
        if strategy_used not in self._strategies:
            raise ValueError(f"Unsupported combine strategy: '{strategy_used}'. Expected one of {STRATEGIES}.")

        out_extents, out_labels = intersect_shapes(a, b)
        self._report_truncation(a, b, out_extents)

        if self.verbose:
            self.debug_logger.debug(
                f"combine[{strategy_used}] op={op_used.name} a={a.extents} b={b.extents} "
                f"-> {out_extents} {out_dtype}"
            )

        runner = timed_wrapper(
            self._strategies[strategy_used],
            label=f"combine[{strategy_used}]",
            log=self.verbose,
            raise_exception=True,
            timer=self.timer,
            info_logger=self.logger,
        )
        return runner(a, b, op_used, out_extents, out_labels, out_dtype)

    # ====[ INPUT WRAPPING ]====
    def as_ndarray(self, x: ArrayLike) -> NDArray:
        """Wrap raw arrays with the configured default labels; NDArrays pass through."""
        if isinstance(x, NDArray):
            return x
        if isinstance(x, (np.ndarray, torch.Tensor)):
            return NDArray.from_array(x, layout_cfg=self.layout_cfg)
        raise TypeError(f"Unsupported operand type: {type(x).__name__}.")

    def _report_truncation(self, a: NDArray, b: NDArray, out_extents: Tuple[int, ...]) -> None:
        if not self.warn_on_truncation:
            return
        for name, arr in (("first", a), ("second", b)):
            if arr.rank() > len(out_extents) or any(
                arr.extent(i) > e for i, e in enumerate(out_extents)
            ):
                self.logger.warning(
                    f"The {name} dataset {arr.extents} is clipped to the shared extents {out_extents}."
                )

    # ====[ Random-access Strategy ]====
    def _apply_random_access(
        self,
        a: NDArray,
        b: NDArray,
        op: BinaryScalarOp,
        out_extents: Tuple[int, ...],
        out_labels: Tuple[Hashable, ...],
        out_type: np.dtype,
    ) -> NDArray:
        """
        Walk every output coordinate and read both operands at that same coordinate.
        """
        result = allocate(out_type, out_extents, out_labels, name="result")
        for coord in np.ndindex(*out_extents):
            va = a.get(_operand_coord(coord, a.rank()))
            vb = b.get(_operand_coord(coord, b.rank()))
            result.set(coord, op.scalar(va, vb))
        return result

    # ====[ Serial Strategy ]====
    def _apply_serial(
        self,
        a: NDArray,
        b: NDArray,
        op: BinaryScalarOp,
        out_extents: Tuple[int, ...],
        out_labels: Tuple[Hashable, ...],
        out_type: np.dtype,
    ) -> NDArray:
        """
        One vectorised pass over the shared region.
        """
        data = _combine_block(a.region(out_extents), b.region(out_extents), op, out_type)
        return NDArray(np.array(data, order="C"), axis_labels=out_labels, name="result")

    # ====[ Parallel Strategy ]====
    def _partition(self, out_extents: Tuple[int, ...]) -> Tuple[Optional[int], List[Tuple[int, int]]]:
        """
        Split the output into disjoint slabs along its outermost axis with more
        than one cell. Returns (axis, [(start, stop), ...]).
        """
        axis = next((i for i, n in enumerate(out_extents) if n > 1), None)
        if axis is None:
            return None, [(0, 1)]
        length = out_extents[axis]
        if self.chunk_size is not None:
            step = int(self.chunk_size)
        else:
            step = math.ceil(length / max(1, effective_n_jobs(self.n_jobs)))
        return axis, [(start, min(start + step, length)) for start in range(0, length, step)]

    def _apply_parallel(
        self,
        a: NDArray,
        b: NDArray,
        op: BinaryScalarOp,
        out_extents: Tuple[int, ...],
        out_labels: Tuple[Hashable, ...],
        out_type: np.dtype,
    ) -> NDArray:
        """
        Combine disjoint slabs concurrently, then assemble them in order.

        Workers return their block instead of writing shared memory, so any
        joblib backend works and no partial output is ever visible.
        """
        region_a = a.region(out_extents)
        region_b = b.region(out_extents)
        axis, bounds = self._partition(out_extents)

        if axis is None:
            slabs = [tuple()]
        else:
            slabs = [(slice(None),) * axis + (slice(start, stop),) for start, stop in bounds]

        if self.verbose:
            self.debug_logger.debug(
                f"combine[parallel] {len(slabs)} slab(s) along axis {axis}, "
                f"backend={self.backend}, n_jobs={self.n_jobs}"
            )

        blocks = Parallel(n_jobs=self.n_jobs, backend=self.backend)(
            delayed(_combine_block)(region_a[sl], region_b[sl], op, out_type) for sl in slabs
        )

        data = np.empty(out_extents, dtype=out_type)
        for sl, block in zip(slabs, blocks):
            data[sl] = block
        return NDArray(data, axis_labels=out_labels, name="result")


# ==================================================
# ============== Functional Interface ==============
# ==================================================
def combine(
    a: ArrayLike,
    b: ArrayLike,
    op: OpLike = "add",
    *,
    strategy: str = "serial",
    out_type: Any = "float32",
    require_same_rank: bool = True,
    global_cfg: Optional[GlobalConfig] = None,
    layout_cfg: Optional[LayoutConfig] = None,
) -> NDArray:
    """
    Combine two datasets element-wise with a one-off NDArrayCombiner.

    See `NDArrayCombiner.__call__` for the semantics and the raised errors.
    """
    combiner = NDArrayCombiner(
        combiner_cfg=CombinerConfig(
            strategy=strategy,
            out_type=str(as_element_type(out_type)),
            require_same_rank=require_same_rank,
        ),
        layout_cfg=layout_cfg,
        global_cfg=global_cfg,
        op=op,
    )
    return combiner(a, b)
