from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Optional, Tuple

from .currencies import G5, CurrencySet
from .risk import RiskEngine
from .utils import parse_signed_hex32, tenor_to_days

logger = logging.getLogger(__name__)

# e.g. IR.2W.EUR 0.025
RATE_RE = re.compile(r"^IR\.(\d+[A-Z])\.([A-Z]{3})[ \t]+((?:\d+\.)?\d+)$")

# e.g. FX.SPOT.EUR 1.1213 (always XXXUSD)
FX_RE = re.compile(r"^FX\.SPOT\.([A-Z]{3})[ \t]+((?:\d+\.)?\d+)$")

# e.g. 1;0001e240;EUR;42980;  (id; hex notional; ccy; maturity serial)
TRADE_RE = re.compile(r"^(\d+);([a-f0-9]{8});([A-Z]{3});(\d{5});$")


def parse_rate_line(line: str, currencies: CurrencySet = G5) -> Optional[Tuple[str, int, float]]:
    """(ccy, tenor_days, rate) for a rate record, or None if it is rejected."""
    m = RATE_RE.match(line.strip())
    if m is None:
        return None

    label, ccy_str, rate = m.groups()
    try:
        tenor = tenor_to_days(label)
    except ValueError as exc:
        logger.warning("%s", exc)
        return None

    ccy = currencies.resolve(ccy_str)
    if ccy is None:
        logger.warning("Unrecognized currency str: %s", ccy_str)
        return None
    return ccy, tenor, float(rate)


def parse_fx_line(line: str, currencies: CurrencySet = G5) -> Optional[Tuple[str, float]]:
    m = FX_RE.match(line.strip())
    if m is None:
        return None

    ccy_str, spot = m.groups()
    ccy = currencies.resolve(ccy_str)
    if ccy is None:
        logger.warning("Unrecognized currency str: %s", ccy_str)
        return None
    return ccy, float(spot)


def parse_trade_line(line: str, currencies: CurrencySet = G5) -> Optional[Tuple[str, int, int]]:
    """(ccy, maturity_serial, notional) for a trade record."""
    m = TRADE_RE.match(line.strip())
    if m is None:
        return None

    _, hex_notional, ccy_str, date = m.groups()
    ccy = currencies.resolve(ccy_str)
    if ccy is None:
        logger.warning("Unrecognized currency str: %s", ccy_str)
        return None
    return ccy, int(date), parse_signed_hex32(hex_notional)


def _records(lines: Iterable[str]):
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        yield line


def load_rates(engine: RiskEngine, lines: Iterable[str]) -> int:
    """Feed IR and FX records into `engine`; returns the number accepted."""
    n = 0
    for line in _records(lines):
        if RATE_RE.match(line):
            rec = parse_rate_line(line, engine.currencies)
            if rec is not None:
                logger.info("Parsing rate data: %s", line)
                engine.add_rate(*rec)
                n += 1
            continue

        if FX_RE.match(line):
            rec_fx = parse_fx_line(line, engine.currencies)
            if rec_fx is not None:
                logger.info("Parsing FX data: %s", line)
                engine.set_spot(*rec_fx)
                n += 1
            continue

        logger.warning("Unrecognized line: %s", line)
    return n


def load_trades(engine: RiskEngine, lines: Iterable[str]) -> int:
    n = 0
    for line in _records(lines):
        rec = parse_trade_line(line, engine.currencies)
        if rec is None:
            if not TRADE_RE.match(line):
                logger.warning("Unrecognized line: %s", line)
            continue
        logger.info("Parsing trade data: %s", line)
        if engine.add_cashflow(*rec):
            n += 1
    return n


def load_engine(
    rate_lines: Iterable[str],
    trade_lines: Iterable[str],
    epoch_offset: int,
    currencies: CurrencySet = G5,
) -> RiskEngine:
    engine = RiskEngine(epoch_offset, currencies=currencies)
    load_rates(engine, rate_lines)
    load_trades(engine, trade_lines)
    return engine


def load_engine_from_files(
    rates_path,
    portfolio_path,
    epoch_offset: int,
    currencies: CurrencySet = G5,
) -> RiskEngine:
    rates_path, portfolio_path = Path(rates_path), Path(portfolio_path)
    for p in (rates_path, portfolio_path):
        if not p.is_file():
            raise FileNotFoundError(f"Could not read file at {p}")

    with rates_path.open() as fr, portfolio_path.open() as fp:
        return load_engine(fr, fp, epoch_offset, currencies)
