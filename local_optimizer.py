# local_optimizer.py

"""
Bounded, derivative-free local optimization of a scalar function of one variable.

``DissonanceCalculator.optimize`` only needs ``LocalOptimizer.optimize``:
given an objective, a start point, bounds and a direction it returns one
(argument, value) pair. The default implementation wraps SciPy's bounded
Nelder-Mead.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, Tuple

import numpy as np
from scipy.optimize import minimize

logger = logging.getLogger(__name__)

DEFAULT_XTOL = 1e-4

Objective = Callable[[float], float]


class LocalOptimizer(ABC):

    @abstractmethod
    def optimize(self, objective: Objective, start: float,
                 bounds: Tuple[float, float], maximize: bool = False) -> Tuple[float, float]:
        """Local optimum reached from ``start``, as (argument, objective value)."""


class NelderMeadOptimizer(LocalOptimizer):
    """scipy.optimize.minimize(method="Nelder-Mead") restricted to ``bounds``."""

    def __init__(self, xtol: float = DEFAULT_XTOL, ftol: float = 1e-9, max_iter: int = 200,
                 initial_step: float = 0.05):
        self.xtol = float(xtol)
        self.ftol = float(ftol)
        self.max_iter = int(max_iter)
        self.initial_step = float(initial_step)

    def optimize(self, objective: Objective, start: float,
                 bounds: Tuple[float, float], maximize: bool = False) -> Tuple[float, float]:
        lower, upper = bounds
        sign = -1.0 if maximize else 1.0
        x0 = min(max(float(start), lower), upper)

        # second vertex must lie inside the bounds, or the simplex collapses
        step = min(self.initial_step * abs(x0) or self.initial_step, (upper - lower) / 2)
        second = x0 + step if x0 + step <= upper else x0 - step

        result = minimize(
            lambda x: sign * objective(float(x[0])),
            np.array([x0]),
            method="Nelder-Mead",
            bounds=[(lower, upper)],
            options={
                "xatol": self.xtol,
                "fatol": self.ftol,
                "maxiter": self.max_iter,
                "initial_simplex": np.array([[x0], [second]]),
            },
        )
        if not result.success:
            logger.debug(f"Nelder-Mead from {start:.4f} stopped early: {result.message}")
        return float(result.x[0]), sign * float(result.fun)


__all__ = ['LocalOptimizer', 'NelderMeadOptimizer', 'DEFAULT_XTOL']
