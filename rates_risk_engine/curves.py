from __future__ import annotations

import logging
import math
from bisect import bisect_right, insort
from typing import Dict, Iterable, List, Tuple

import numpy as np
import pandas as pd

from .utils import DAY_BASIS

logger = logging.getLogger(__name__)


class BumpGuard:
    """
    Handle for a temporary rate bump on a YieldCurve.

    The pre-bump rates are saved when the bump is applied and written back on
    release, so the curve is restored bit-for-bit. A tenor overwritten while the
    bump is live keeps the new rate, less `amount`. Release runs at most once;
    using the guard as a context manager releases it on every exit path.
    """

    def __init__(self, curve: "YieldCurve", saved: Dict[int, Tuple[float, float]], amount: float) -> None:
        self._curve = curve
        self._saved = saved
        self.amount = amount
        self.released = False

    @property
    def tenors(self) -> List[int]:
        return sorted(self._saved)

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        rates = self._curve._rates
        for tenor, (before, bumped) in self._saved.items():
            logger.debug("Unbump %s tenor %s by %s", self._curve.currency, tenor, self.amount)
            if rates[tenor] == bumped:
                rates[tenor] = before
            else:
                # rewritten under the bump
                rates[tenor] -= self.amount

    def __enter__(self) -> "BumpGuard":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class YieldCurve:
    """
    Piecewise-linear zero rate curve on whole-day tenors.

    - Rates are continuously compounded, ACT/360.
    - Below the first tenor the curve is anchored at (day 0, rate 0).
    - Beyond the last tenor the rate is held flat.
    """

    def __init__(self, currency: str = "") -> None:
        self.currency = currency
        self._rates: Dict[int, float] = {}
        self._tenors: List[int] = []

    def add_rate(self, tenor: int, rate: float) -> None:
        """Insert or overwrite the rate at `tenor` (last write wins)."""
        tenor = int(tenor)
        if tenor < 0:
            raise ValueError(f"Rate tenor cannot be negative: {tenor}")
        if tenor not in self._rates:
            insort(self._tenors, tenor)
        self._rates[tenor] = float(rate)

    def has_tenor(self, tenor: int) -> bool:
        return tenor in self._rates

    def tenors(self) -> List[int]:
        return list(self._tenors)

    def rate(self, tenor: int) -> float:
        return self._rates[tenor]

    def discount_factor(self, t: int) -> float:
        """
        DF(t) = exp(-r(t) * t / 360) with r(t) linear in rates between the
        tenors bracketing t.
        """
        if not self._tenors:
            raise ValueError(f"Curve {self.currency} has no rates")

        # first tenor strictly greater than t
        i = bisect_right(self._tenors, t)
        if i == 0:
            t_left, r_left = 0, 0.0
            t_right = self._tenors[0]
            r_right = self._rates[t_right]
        else:
            t_left = self._tenors[i - 1]
            r_left = self._rates[t_left]
            if i == len(self._tenors):
                # one day past the last point avoids a zero-width interval
                t_right, r_right = t_left + 1, r_left
            else:
                t_right = self._tenors[i]
                r_right = self._rates[t_right]

        r_eff = (r_left * (t_right - t) + r_right * (t - t_left)) / (t_right - t_left)
        return math.exp(-r_eff * t / DAY_BASIS)

    def discount_factors(self, ts: Iterable[int]) -> np.ndarray:
        return np.array([self.discount_factor(t) for t in ts], dtype=float)

    def bump_tenor(self, tenor: int, amount: float) -> BumpGuard:
        """
        Add `amount` to the rate at an existing tenor until the returned guard
        is released. Raises KeyError if the tenor is not on the curve.
        """
        if tenor not in self._rates:
            raise KeyError(f"Curve {self.currency} has no tenor {tenor}")

        before = self._rates[tenor]
        logger.debug("Bump %s tenor %s by %s", self.currency, tenor, amount)
        self._rates[tenor] = before + amount
        saved = {tenor: (before, self._rates[tenor])}
        return BumpGuard(self, saved, amount)

    def bump_curve(self, amount: float) -> BumpGuard:
        """Parallel bump of every tenor on the curve at the time of the call."""
        saved = {}
        logger.debug("Bump %s curve (%d tenors) by %s", self.currency, len(self._tenors), amount)
        for tenor in self._tenors:
            before = self._rates[tenor]
            self._rates[tenor] = before + amount
            saved[tenor] = (before, self._rates[tenor])
        return BumpGuard(self, saved, amount)


def curve_qc_report(curve: YieldCurve) -> pd.DataFrame:
    tenors = np.array(curve.tenors(), dtype=int)
    rates = np.array([curve.rate(t) for t in tenors], dtype=float)
    dfs = curve.discount_factors(tenors)

    return pd.DataFrame(
        {
            "tenor": tenors,
            "rate": rates,
            "df": dfs,
            "df_positive": dfs > 0,
            "df_monotone": np.r_[True, np.diff(dfs) <= 1e-10] if len(dfs) else np.array([], dtype=bool),
        }
    )
