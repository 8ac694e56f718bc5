from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

import pandas as pd

logger = logging.getLogger(__name__)


class CashflowLedger:
    """
    Notionals aggregated by absolute maturity date for one currency.

    Dates are integer day serials; `epoch_offset` converts them to tenors
    relative to the valuation date (effective = date - epoch_offset).
    """

    def __init__(self, epoch_offset: int, currency: str = "") -> None:
        self.currency = currency
        self._epoch_offset = int(epoch_offset)
        self._notionals: Dict[int, int] = {}

    @property
    def epoch_offset(self) -> int:
        return self._epoch_offset

    def set_epoch_offset(self, delta: int) -> None:
        """Only allowed before the first cash flow is booked."""
        delta = int(delta)
        if delta == self._epoch_offset:
            return
        if self._notionals:
            raise ValueError(
                f"Epoch offset of {self.currency} ledger is fixed at {self._epoch_offset}; cannot change to {delta}"
            )
        self._epoch_offset = delta

    def add_cashflow(self, date: int, notional: int) -> None:
        date = int(date)
        if int(notional) != notional:
            raise ValueError(f"Notional must be a whole amount, got {notional}")
        self._notionals[date] = self._notionals.get(date, 0) + int(notional)

    def maturities(self) -> List[int]:
        return sorted(self._notionals)

    def notional(self, date: int) -> int:
        return self._notionals[date]

    def __len__(self) -> int:
        return len(self._notionals)

    def present_value(self, discount_fn: Callable[[int], float]) -> float:
        total = 0.0
        for date in self.maturities():
            notional = self._notionals[date]
            eff = date - self._epoch_offset
            df = discount_fn(eff)
            logger.debug("%s cashflow tenor=%s notional=%s df=%s", self.currency, eff, notional, df)
            total += notional * df
        logger.debug("%s book value %s", self.currency, total)
        return total

    def cashflow_table(self, discount_fn: Optional[Callable[[int], float]] = None) -> pd.DataFrame:
        dates = self.maturities()
        out = pd.DataFrame(
            {
                "maturity": pd.Series(dates, dtype="int64"),
                "effective_tenor": pd.Series([d - self._epoch_offset for d in dates], dtype="int64"),
                "notional": pd.Series([self._notionals[d] for d in dates], dtype="int64"),
            }
        )
        if discount_fn is not None:
            out["df"] = out["effective_tenor"].map(discount_fn).astype(float)
            out["pv"] = out["notional"] * out["df"]
        return out
