# ==================================================
# ============  MODULE: add_datasets  ==============
# ==================================================
from __future__ import annotations

import logging
from typing import Any, NamedTuple, Optional, Union

import numpy as np
import torch

from core.config import CombinerConfig, GlobalConfig, LayoutConfig
from core.element_types import as_element_type
from core.nd_array import NDArray
from operators.combiner import NDArrayCombiner, check_same_rank
from utils.decorators import TimerManager, log_exceptions, safe_timer
from utils.logger import get_logger

# Public API
__all__ = ["AddResults", "add_datasets", "HEADER"]

ArrayLike = Union[NDArray, np.ndarray, torch.Tensor]

HEADER: str = "This demonstration adds two datasets"


class AddResults(NamedTuple):
    """The same sum computed three ways."""
    result1: NDArray  # random access walk
    result2: NDArray  # serial
    result3: NDArray  # parallel


# ==================================================
# ================= add_datasets ===================
# ==================================================
@log_exceptions(raise_exception=True)
def add_datasets(
    a: ArrayLike,
    b: ArrayLike,
    out_type: Any = "float32",
    *,
    layout_cfg: Optional[LayoutConfig] = None,
    global_cfg: Optional[GlobalConfig] = None,
    timer: Optional[TimerManager] = None,
) -> AddResults:
    """
    Add two datasets pixel-wise with the random-access, serial and parallel strategies.

    Parameters
    ----------
    a, b : NDArray | ndarray | Tensor
        Datasets to add. They must have the same number of dimensions; extents
        may differ, in which case the sum covers their shared extents only.
    out_type : dtype-like, default "float32"
        Element type of the three results.
    layout_cfg : LayoutConfig, optional
        Default axis labels for raw arrays.
    global_cfg : GlobalConfig, optional
        Parallel backend, n_jobs, verbosity and log directory.
    timer : TimerManager, optional
        Collects the elapsed time of each strategy.

    Returns
    -------
    AddResults
        (result1, result2, result3), element-wise identical.

    Raises
    ------
    ShapeMismatch
        If the datasets do not have the same number of dimensions.
    """
    global_cfg = global_cfg or GlobalConfig()
    timer = timer or TimerManager()
    logger = get_logger(
        log_dir=global_cfg.log_dir,
        level=logging.DEBUG if global_cfg.verbose else logging.INFO,
    )
    logger.info(HEADER)

    combiner = NDArrayCombiner(
        combiner_cfg=CombinerConfig(op="add", out_type=str(as_element_type(out_type))),
        layout_cfg=layout_cfg,
        global_cfg=global_cfg,
    )
    a = combiner.as_ndarray(a)
    b = combiner.as_ndarray(b)
    check_same_rank(a, b)

    results = []
    for strategy in ("random_access", "serial", "parallel"):
        run = safe_timer(name=f"add_{strategy}", timer=timer, info_logger=logger)(combiner.__call__)
        results.append(run(a, b, strategy=strategy))

    if global_cfg.verbose:
        timer.to_log(logger, level=logging.DEBUG)
    return AddResults(*results)
