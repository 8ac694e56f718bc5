from __future__ import annotations

from typing import Dict

from .currencies import USD


class MissingQuote(KeyError):
    """Raised when a cross rate needs a spot that was never set."""

    def __init__(self, ccy: str) -> None:
        super().__init__(ccy)
        self.ccy = ccy

    def __str__(self) -> str:
        return f"No FX spot for {self.ccy}"


class FXTable:
    """
    Spot quotes stored as XXXUSD (USD value of one unit of XXX).

    USD is seeded at 1.0 and cannot be overwritten with anything else.
    """

    def __init__(self) -> None:
        self._spots: Dict[str, float] = {USD: 1.0}

    def set_spot(self, ccy: str, rate: float) -> None:
        rate = float(rate)
        if ccy == USD and rate != 1.0:
            raise ValueError(f"USD spot is fixed at 1.0, got {rate}")
        if not rate > 0.0:
            raise ValueError(f"FX spot for {ccy} must be positive, got {rate}")
        self._spots[ccy] = rate

    def has_spot(self, ccy: str) -> bool:
        return ccy in self._spots

    def spot(self, ccy: str) -> float:
        try:
            return self._spots[ccy]
        except KeyError:
            raise MissingQuote(ccy) from None

    def cross(self, base: str, term: str) -> float:
        """Units of `term` per unit of `base`."""
        return self.spot(base) / self.spot(term)
