from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd

from .currencies import USD
from .risk import RiskEngine


def key_rate_dv01_report(engine: RiskEngine, ccy: str) -> pd.DataFrame:
    """
    Per-tenor DV01 (USD) next to the parallel DV01.

    Bucket DV01s sum to the parallel figure to first order; the residual is
    kept in `attrs["residual"]` for reconciliation.
    """
    tenors = engine.tenors(ccy)
    out = pd.DataFrame(
        {
            "tenor": pd.Series(tenors, dtype="int64"),
            "dv01": pd.Series([engine.dv01_tenor(ccy, t) for t in tenors], dtype=float),
        }
    )
    parallel = engine.dv01_curve(ccy) if tenors else None

    out.attrs["currency"] = ccy
    out.attrs["parallel_dv01"] = np.nan if parallel is None else parallel
    out.attrs["residual"] = out["dv01"].sum() - out.attrs["parallel_dv01"] if tenors else np.nan
    return out


def run_parallel_scenarios(
    engine: RiskEngine,
    ccy: str,
    shifts_bp: Sequence[float] = (-50, -25, 25, 50),
) -> pd.DataFrame:
    cols = ["shift_bp", "pv_base", "pv_shocked", "pnl_local", "pnl_usd"]
    base = engine.present_value(ccy)
    if base is None:
        return pd.DataFrame(columns=cols)

    fx_usd = engine.fx_spot(USD, ccy)

    rows = []
    for bp in shifts_bp:
        shocked = engine.shifted_value(ccy, bp / 10000.0)
        pnl = shocked - base
        rows.append(
            {
                "shift_bp": bp,
                "pv_base": base,
                "pv_shocked": shocked,
                "pnl_local": pnl,
                "pnl_usd": np.nan if fx_usd is None else fx_usd * pnl,
            }
        )

    return pd.DataFrame(rows, columns=cols)


def risk_summary(engine: RiskEngine) -> pd.DataFrame:
    """One row per currency with a curve or a ledger: local PV and parallel DV01."""
    rows = []
    for ccy in engine.currencies:
        if engine.curve(ccy) is None and engine.ledger(ccy) is None:
            continue
        pv = engine.present_value(ccy)
        dv01 = engine.dv01_curve(ccy)
        rows.append(
            {
                "currency": ccy,
                "n_tenors": len(engine.tenors(ccy)),
                "n_maturities": len(engine.maturities(ccy)),
                "pv_local": np.nan if pv is None else pv,
                "dv01_usd": np.nan if dv01 is None else dv01,
            }
        )

    return pd.DataFrame(rows, columns=["currency", "n_tenors", "n_maturities", "pv_local", "dv01_usd"])
