"""
Noise Field
===========
Deterministic 2D simplex noise used to drift the idle camera.

The field is a pure function of its inputs once the permutation table is
built, so two queries with the same (t, channel) always agree.
"""
from __future__ import annotations

from math import floor, sqrt
from typing import Optional

import numpy as np

_F2: float = 0.5 * (sqrt(3.0) - 1.0)
_G2: float = (3.0 - sqrt(3.0)) / 6.0

# First two components of the 12 edge gradients of a cube
_GRAD2: tuple[tuple[float, float], ...] = (
    (1.0, 1.0), (-1.0, 1.0), (1.0, -1.0), (-1.0, -1.0),
    (1.0, 0.0), (-1.0, 0.0), (1.0, 0.0), (-1.0, 0.0),
    (0.0, 1.0), (0.0, -1.0), (0.0, 1.0), (0.0, -1.0),
)


class NoiseField:
    def __init__(self, seed: Optional[int] = None) -> None:
        """
        Args:
            seed: Seed of the permutation table. None draws a fresh random table,
                  which keeps the drift different between runs.
        """
        rng = np.random.default_rng(seed)
        perm = rng.permutation(256).astype(np.int64)
        # Doubled so corner lookups never wrap
        self._perm: list[int] = np.concatenate([perm, perm]).tolist()

    def sample(self, t: float, channel: int) -> float:
        """
        Value of the stream `channel` at time `t`, in [-1, 1].

        Distinct channels are distinct rows of the same 2D field, which makes the
        streams look independent while staying continuous in `t`.
        """
        return self.noise2d(t, float(channel))

    def noise2d(self, x: float, y: float) -> float:
        # Skew input space to find the simplex cell
        s = (x + y) * _F2
        i = floor(x + s)
        j = floor(y + s)
        t = (i + j) * _G2
        x0 = x - (i - t)
        y0 = y - (j - t)

        # Lower or upper triangle of the skewed cell
        if x0 > y0:
            i1, j1 = 1, 0
        else:
            i1, j1 = 0, 1

        x1 = x0 - i1 + _G2
        y1 = y0 - j1 + _G2
        x2 = x0 - 1.0 + 2.0 * _G2
        y2 = y0 - 1.0 + 2.0 * _G2

        ii = i & 255
        jj = j & 255
        perm = self._perm
        gi0 = perm[ii + perm[jj]] % 12
        gi1 = perm[ii + i1 + perm[jj + j1]] % 12
        gi2 = perm[ii + 1 + perm[jj + 1]] % 12

        n = (
            self._corner(gi0, x0, y0)
            + self._corner(gi1, x1, y1)
            + self._corner(gi2, x2, y2)
        )
        # 70 scales the sum to roughly [-1, 1]; clip keeps the contract exact
        return float(min(1.0, max(-1.0, 70.0 * n)))

    @staticmethod
    def _corner(gi: int, x: float, y: float) -> float:
        t = 0.5 - x * x - y * y
        if t <= 0.0:
            return 0.0
        gx, gy = _GRAD2[gi]
        t *= t
        return t * t * (gx * x + gy * y)
