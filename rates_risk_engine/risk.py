from __future__ import annotations

import logging
import threading
from functools import partial
from typing import Callable, Dict, List, Optional

from .cashflows import CashflowLedger
from .currencies import G5, USD, CurrencySet
from .curves import BumpGuard, YieldCurve
from .fx import FXTable

logger = logging.getLogger(__name__)

# Rate bump for central differences (absolute, 1bp).
EPS = 1e-4


class RiskEngine:
    """
    Per-currency curves, cash flow ledgers and FX spots, with DV01 queries.

    Every query is total over partial configuration: a missing curve, ledger,
    tenor or spot gives None (or an empty list) and a warning, never an
    exception. DV01 bumps the engine's own curve under a guard and holds the
    currency's lock, so no reader sees a bumped curve.
    """

    def __init__(self, epoch_offset: int, currencies: CurrencySet = G5, eps: float = EPS) -> None:
        if USD not in currencies:
            raise ValueError(f"Currency set {currencies.name} must contain {USD}")
        self.epoch_offset = int(epoch_offset)
        self.currencies = currencies
        self.eps = float(eps)

        self._curves: Dict[str, YieldCurve] = {}
        self._ledgers: Dict[str, CashflowLedger] = {}
        self.fx = FXTable()
        self._locks: Dict[str, threading.RLock] = {ccy: threading.RLock() for ccy in currencies}

    # ---------- ingestion ----------

    def _check_ccy(self, ccy: str) -> None:
        if not self.currencies.is_valid(ccy):
            raise ValueError(f"Unknown currency {ccy!r} for {self.currencies.name}")

    def add_rate(self, ccy: str, tenor: int, rate: float) -> None:
        self._check_ccy(ccy)
        with self._locks[ccy]:
            curve = self._curves.get(ccy)
            if curve is None:
                curve = YieldCurve(ccy)
            curve.add_rate(tenor, rate)
            self._curves[ccy] = curve

    def set_spot(self, ccy: str, spot: float) -> None:
        self._check_ccy(ccy)
        self.fx.set_spot(ccy, spot)

    def add_cashflow(self, ccy: str, date: int, notional: int) -> bool:
        """Book a cash flow; returns False if it falls before the valuation date."""
        self._check_ccy(ccy)
        tenor = int(date) - self.epoch_offset
        if tenor < 0:
            logger.warning("Skipping %s cashflow on %s: effective tenor %s is negative", ccy, date, tenor)
            return False
        logger.info("Booking %s cashflow tenor=%s notional=%s", ccy, tenor, notional)
        if ccy not in self._ledgers:
            self._ledgers[ccy] = CashflowLedger(self.epoch_offset, ccy)
        self._ledgers[ccy].add_cashflow(date, notional)
        return True

    # ---------- lookups ----------

    def curve(self, ccy: str) -> Optional[YieldCurve]:
        return self._curves.get(ccy)

    def ledger(self, ccy: str) -> Optional[CashflowLedger]:
        return self._ledgers.get(ccy)

    def _has_curve(self, ccy: str) -> bool:
        if ccy not in self._curves:
            logger.warning("No rates for %s", ccy)
            return False
        return True

    def _has_spot(self, ccy: str) -> bool:
        if not self.fx.has_spot(ccy):
            logger.warning("No spot for %s", ccy)
            return False
        return True

    # ---------- queries ----------

    def tenors(self, ccy: str) -> List[int]:
        if not self._has_curve(ccy):
            return []
        logger.info("Tenors for %s", ccy)
        return self._curves[ccy].tenors()

    def maturities(self, ccy: str) -> List[int]:
        if ccy not in self._ledgers:
            return []
        logger.info("Maturities for %s", ccy)
        return self._ledgers[ccy].maturities()

    def discount_factor(self, ccy: str, tenor: int) -> Optional[float]:
        if not self._has_curve(ccy):
            return None
        if tenor < 0:
            logger.warning("Tenor %s cannot be negative", tenor)
            return None
        logger.info("Discount factor for %s tenor %s", ccy, tenor)
        with self._locks[ccy]:
            return self._curves[ccy].discount_factor(tenor)

    def fx_spot(self, base: str, term: str) -> Optional[float]:
        if not self._has_spot(base) or not self._has_spot(term):
            return None
        logger.info("FX %s%s", base, term)
        return self.fx.cross(base, term)

    def present_value(self, ccy: str) -> Optional[float]:
        """Unbumped book value of the currency's ledger in local currency."""
        if not self._has_curve(ccy) or ccy not in self._ledgers:
            return None
        with self._locks[ccy]:
            return self._ledgers[ccy].present_value(self._curves[ccy].discount_factor)

    def shifted_value(self, ccy: str, amount: float, tenor: Optional[int] = None) -> Optional[float]:
        """
        Book value with the curve shifted by `amount`, at one tenor or in
        parallel when `tenor` is None. The curve is restored before returning.
        """
        if not self._has_curve(ccy) or ccy not in self._ledgers:
            return None
        curve = self._curves[ccy]
        if tenor is not None and not curve.has_tenor(tenor):
            logger.warning("Currency %s has no tenor %s", ccy, tenor)
            return None

        if tenor is None:
            bump = curve.bump_curve
        else:
            bump = partial(curve.bump_tenor, tenor)
        with self._locks[ccy]:
            return self._bumped_value(ccy, bump, amount)

    # ---------- sensitivities ----------

    def _bumped_value(self, ccy: str, bump: Callable[[float], BumpGuard], amount: float) -> float:
        ledger = self._ledgers.get(ccy)
        with bump(amount):
            if ledger is None:
                return 0.0
            return ledger.present_value(self._curves[ccy].discount_factor)

    def _central_dv01(self, ccy: str, bump: Callable[[float], BumpGuard]) -> float:
        value_up = self._bumped_value(ccy, bump, self.eps)
        value_down = self._bumped_value(ccy, bump, -self.eps)
        local = -(value_up - value_down) / 2
        return self.fx.cross(USD, ccy) * local

    def dv01_tenor(self, ccy: str, tenor: int) -> Optional[float]:
        """USD sensitivity of the ccy book to a bump of a single tenor."""
        if not self._has_curve(ccy):
            return None
        curve = self._curves[ccy]
        if not curve.has_tenor(tenor):
            logger.warning("Currency %s has no tenor %s", ccy, tenor)
            return None
        if not self._has_spot(ccy) or not self._has_spot(USD):
            return None

        logger.info("DV01 for %s tenor %s", ccy, tenor)
        with self._locks[ccy]:
            return self._central_dv01(ccy, partial(curve.bump_tenor, tenor))

    def dv01_curve(self, ccy: str) -> Optional[float]:
        """USD sensitivity of the ccy book to a parallel shift of its curve."""
        if not self._has_curve(ccy):
            return None
        if not self._has_spot(ccy) or not self._has_spot(USD):
            return None

        logger.info("DV01 for %s curve", ccy)
        curve = self._curves[ccy]
        with self._locks[ccy]:
            return self._central_dv01(ccy, curve.bump_curve)
