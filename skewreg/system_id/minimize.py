"""
Nonlinear Conjugate-Gradient Minimizer

General-purpose unconstrained minimizer for smooth objectives with an
analytic gradient. Search directions follow Polak-Ribiere updates; each
direction is explored with a line search that extrapolates (cubic) until the
minimum is bracketed, then interpolates (quadratic or cubic) inside the
bracket until the Wolfe-Powell conditions hold:

    f(x + a s) <= f(x) + a RHO f'(x)^T s        (sufficient decrease)
    |f'(x + a s)^T s| <= -SIG f'(x)^T s          (curvature)

The objective is a callback

    evaluate_fn(z, *args) -> (f, g)

and nothing here knows what it computes.

Reference: C. E. Rasmussen, "minimize" (conjugate gradients with
Polak-Ribiere directions and Wolfe-Powell line searches).
"""

import logging
from typing import Callable, List, Tuple

import numpy as np


logger = logging.getLogger(__name__)

# Line search constants
INT = 0.1      # don't reevaluate within 0.1 of the limit of the current bracket
EXT = 3.0      # extrapolate at most 3 times the current step size
MAX = 20       # max function evaluations per line search
RATIO = 10.0   # max slope ratio when guessing the next initial step
SIG = 0.1      # curvature condition constant
RHO = SIG / 2  # sufficient decrease constant

_TINY = np.finfo(float).tiny
_EPS = np.finfo(float).eps


def _cubic_extrapolate(x1, f1, d1, x2, f2, d2) -> float:
    """Minimizer of the cubic through (x1, f1, d1) and (x2, f2, d2).

    May be nan, inf or negative; the caller clamps it.
    """
    x1, f1, d1, x2, f2, d2 = map(np.float64, (x1, f1, d1, x2, f2, d2))
    with np.errstate(all='ignore'):
        A = 6 * (f1 - f2) + 3 * (d2 + d1) * (x2 - x1)
        B = 3 * (f2 - f1) - (2 * d1 + d2) * (x2 - x1)
        return float(x1 - d1 * (x2 - x1) ** 2 / (B + np.sqrt(B * B - A * d1 * (x2 - x1))))


def _interpolate(x2, f2, d2, x4, f4, d4, f0) -> float:
    """Next trial point inside the bracket [x2, x4]."""
    x2, f2, d2, x4, f4, d4 = map(np.float64, (x2, f2, d2, x4, f4, d4))
    with np.errstate(all='ignore'):
        if f4 > f0:
            # quadratic fit through f2, d2 and f4
            x3 = x2 - (0.5 * d2 * (x4 - x2) ** 2) / (f4 - f2 - d2 * (x4 - x2))
        else:
            A = 6 * (f2 - f4) / (x4 - x2) + 3 * (d4 + d2)
            B = 3 * (f4 - f2) - (2 * d2 + d4) * (x4 - x2)
            x3 = x2 + (np.sqrt(B * B - A * d2 * (x4 - x2) ** 2) - B) / A
    if not np.isfinite(x3):
        x3 = (x2 + x4) / 2  # bisect
    return float(max(min(x3, x4 - INT * (x4 - x2)), x2 + INT * (x4 - x2)))


def minimize(
    z0: np.ndarray,
    evaluate_fn: Callable[..., Tuple[float, np.ndarray]],
    max_evals: int,
    *args,
    ftol: float = _EPS,
    red: float = 1.0
) -> Tuple[np.ndarray, List[float], int]:
    """Minimize a differentiable function with conjugate gradients.

    Args:
        z0: Starting point, shape (n,)
        evaluate_fn: Callback returning (f, g) at a point; extra args follow z
        max_evals: Budget of function/gradient evaluations, including the
            evaluation at z0
        *args: Passed through unchanged to every evaluate_fn call
        ftol: Stop once two accepted steps in a row each improve f by no
            more than ftol * (|f_old| + |f_new|); 0 disables the check
        red: Expected reduction of f in the first line search

    Returns:
        (z, f_trace, n_line_searches) where z is the best point evaluated,
        f_trace starts at f(z0), records every accepted line search and ends
        at f(z), and n_line_searches counts outer iterations
    """
    z = np.array(z0, dtype=float).ravel()
    n_params = z.size

    f0, df0 = evaluate_fn(z, *args)
    f0 = float(f0)
    df0 = np.asarray(df0, dtype=float).ravel()
    n_evals = 1

    f_trace = [f0]
    best_z, best_f = z.copy(), f0

    s = -df0                    # initial search direction is steepest descent
    d0 = float(-s @ s)          # slope along s
    x3 = red / (1 - d0)         # initial step

    n_line_searches = 0
    since_restart = 0
    ls_failed = False
    n_small_steps = 0
    x4 = f4 = d4 = 0.0
    reason = "evaluation budget exhausted"

    while n_evals < max_evals:
        if d0 == 0.0:
            reason = "gradient vanished"
            break

        n_line_searches += 1

        # best point seen along this line
        Z0, F0, dF0 = z.copy(), f0, df0.copy()
        budget = min(MAX, max_evals - n_evals)

        # extrapolate until the minimum is bracketed
        while True:
            x2, f2, d2 = 0.0, f0, d0
            f3, df3 = f0, df0
            success = False
            while not success and budget > 0:
                budget -= 1
                n_evals += 1
                f_try, df_try = evaluate_fn(z + x3 * s, *args)
                f_try = float(f_try)
                df_try = np.asarray(df_try, dtype=float).ravel()
                if np.isfinite(f_try) and np.all(np.isfinite(df_try)):
                    f3, df3 = f_try, df_try
                    success = True
                else:
                    x3 = (x2 + x3) / 2  # bisect and try again

            if f3 < F0:
                Z0, F0, dF0 = z + x3 * s, f3, df3
            d3 = float(df3 @ s)

            if d3 > SIG * d0 or f3 > f0 + x3 * RHO * d0 or budget == 0:
                break

            x1, f1, d1 = x2, f2, d2
            x2, f2, d2 = x3, f3, d3
            x3 = _cubic_extrapolate(x1, f1, d1, x2, f2, d2)
            if not np.isfinite(x3) or x3 < 0:
                x3 = x2 * EXT
            elif x3 > x2 * EXT:
                x3 = x2 * EXT
            elif x3 < x2 + INT * (x2 - x1):
                x3 = x2 + INT * (x2 - x1)

        # interpolate inside the bracket until the Wolfe-Powell conditions hold
        while (abs(d3) > -SIG * d0 or f3 > f0 + x3 * RHO * d0) and budget > 0:
            if d3 > 0 or f3 > f0 + x3 * RHO * d0:
                x4, f4, d4 = x3, f3, d3
            else:
                x2, f2, d2 = x3, f3, d3
            x3 = _interpolate(x2, f2, d2, x4, f4, d4, f0)

            f3, df3 = evaluate_fn(z + x3 * s, *args)
            f3 = float(f3)
            df3 = np.asarray(df3, dtype=float).ravel()
            budget -= 1
            n_evals += 1
            if f3 < F0:
                Z0, F0, dF0 = z + x3 * s, f3, df3
            d3 = float(df3 @ s)

        if F0 < best_f:
            best_z, best_f = np.array(Z0, dtype=float), F0

        if abs(d3) < -SIG * d0 and f3 < f0 + x3 * RHO * d0:
            # line search succeeded
            f_prev = f0
            z = z + x3 * s
            f0 = f3
            f_trace.append(f0)

            # Polak-Ribiere direction
            s = ((df3 @ df3 - df0 @ df3) / (df0 @ df0)) * s - df3
            df0 = df3
            d3, d0 = d0, float(df0 @ s)
            since_restart += 1
            if d0 > 0 or since_restart >= n_params:
                s = -df0
                d0 = float(-s @ s)
                since_restart = 0
            x3 = x3 * min(RATIO, d3 / (d0 - _TINY))
            ls_failed = False

            if f_prev - f0 <= ftol * (abs(f_prev) + abs(f0)):
                n_small_steps += 1
            else:
                n_small_steps = 0
            if n_small_steps >= 2:
                reason = "relative improvement below tolerance"
                break
        else:
            # restore the best point along the line and retry downhill
            z, f0, df0 = np.array(Z0, dtype=float), F0, dF0
            if ls_failed or n_evals >= max_evals:
                if ls_failed:
                    reason = "line search failed twice in a row"
                break
            s = -df0
            d0 = float(-s @ s)
            x3 = 1 / (1 - d0)
            since_restart = 0
            n_small_steps = 0
            ls_failed = True

    if best_f < f_trace[-1]:
        f_trace.append(best_f)

    logger.debug(
        f"minimize stopped ({reason}) after {n_line_searches} line searches, "
        f"{n_evals} evaluations, f = {best_f:.6g}"
    )
    return best_z, f_trace, n_line_searches
