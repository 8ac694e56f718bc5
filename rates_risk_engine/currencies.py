from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Tuple


@dataclass(frozen=True)
class CurrencySet:
    """
    Closed set of currency tokens with a string <-> token bijection.

    Tokens are the upper-case ISO codes themselves. A larger group (G10, EM...)
    is just another instance with a longer code list.
    """
    name: str
    codes: Tuple[str, ...]
    _index: Dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if len(set(self.codes)) != len(self.codes):
            raise ValueError(f"Duplicate currency codes in {self.name}: {self.codes}")
        object.__setattr__(self, "_index", {c: i for i, c in enumerate(self.codes)})

    def is_valid(self, ccy: str) -> bool:
        return ccy in self._index

    def resolve(self, text: str) -> Optional[str]:
        """Token for a currency string, or None if it is not in the set."""
        text = text.strip().upper()
        return text if text in self._index else None

    def name_of(self, ccy: str) -> str:
        if ccy not in self._index:
            raise ValueError(f"{ccy!r} is not a {self.name} currency")
        return ccy

    def __iter__(self) -> Iterator[str]:
        return iter(self.codes)

    def __len__(self) -> int:
        return len(self.codes)


USD = "USD"

G5 = CurrencySet("G5", ("EUR", "GBP", "USD", "CAD", "JPY"))
