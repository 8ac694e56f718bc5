"""
Rates Risk Engine

Production-style modules:
- currencies: closed currency sets (G5 by default)
- curves: piecewise-linear yield curve + scoped bumps
- fx: spot table + cross rates
- cashflows: per-currency cash flow ledger + present value
- risk: RiskEngine (discount factors, PV, DV01 by tenor / parallel)
- scenarios: key-rate DV01 and parallel-shift reports
- ingest: rate / FX / trade record loaders
- utils: tenor labels, day counts, epoch serials
"""

