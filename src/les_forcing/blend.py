"""
Smooth step used to ramp the fringe forcing on and off.
"""

import numpy as np


def fringe_blend(x: float) -> float:
    """
    C-infinity step from 0 to 1 over [0, 1].

    Returns 0 for x <= 0, 1 for x >= 1 and 1 / (1 + exp(1/(x-1) + 1/x))
    in between. All derivatives vanish at both ends, so the blend meets
    the constant branches without a kink.
    """
    if x <= 0.0:
        return 0.0
    if x >= 1.0:
        return 1.0
    arg = 1.0 / (x - 1.0) + 1.0 / x
    # exp overflows to inf next to x = 0, where the blend is 0 anyway
    with np.errstate(over="ignore"):
        return float(1.0 / (1.0 + np.exp(arg)))
