import logging
import math
import threading

import pytest

from rates_risk_engine.currencies import CurrencySet
from rates_risk_engine.risk import EPS, RiskEngine

EPOCH = 42940


def build_engine():
    engine = RiskEngine(epoch_offset=EPOCH)

    for tenor, rate in {20: 0.01, 30: 0.015, 45: 0.018}.items():
        engine.add_rate("EUR", tenor, rate)
    for tenor, rate in {30: 0.02, 90: 0.025, 360: 0.03, 720: 0.035}.items():
        engine.add_rate("USD", tenor, rate)
    engine.add_rate("GBP", 180, 0.045)

    engine.set_spot("EUR", 1.10)
    engine.set_spot("JPY", 150.0)
    engine.set_spot("GBP", 1.25)

    engine.add_cashflow("USD", EPOCH + 30, 1_000_000)
    engine.add_cashflow("USD", EPOCH + 360, -500_000)
    engine.add_cashflow("USD", EPOCH + 1000, 2_000_000)

    engine.add_cashflow("EUR", EPOCH + 25, 3_000_000)
    engine.add_cashflow("EUR", EPOCH + 40, 1_500_000)
    engine.add_cashflow("EUR", EPOCH + 40, 500_000)
    return engine


def snapshot(engine, ccy):
    curve = engine.curve(ccy)
    return (
        {t: curve.rate(t) for t in curve.tenors()},
        [curve.discount_factor(t) for t in range(0, 1200, 5)],
    )


@pytest.fixture(scope="module")
def engine():
    return build_engine()


@pytest.fixture
def fresh_engine():
    return build_engine()


def test_discount_factor_delegates_to_curve(engine):
    assert engine.discount_factor("EUR", 30) == pytest.approx(math.exp(-0.015 * 30 / 360), rel=1e-12)
    assert engine.discount_factor("EUR", 9999) == pytest.approx(math.exp(-0.018 * 9999 / 360), rel=1e-9)


def test_discount_factor_absent_without_curve(engine):
    assert engine.discount_factor("CAD", 30) is None
    assert engine.discount_factor("JPY", 30) is None


def test_discount_factor_absent_for_negative_tenor(engine):
    assert engine.discount_factor("USD", -1) is None


def test_absent_curve_is_logged(engine, caplog):
    with caplog.at_level(logging.WARNING, logger="rates_risk_engine.risk"):
        engine.discount_factor("CAD", 30)
    assert "No rates for CAD" in caplog.text


def test_tenors_and_maturities(engine):
    assert engine.tenors("USD") == [30, 90, 360, 720]
    assert engine.tenors("CAD") == []
    assert engine.maturities("EUR") == [EPOCH + 25, EPOCH + 40]
    assert engine.maturities("CAD") == []
    assert engine.maturities("GBP") == []


def test_fx_spot(engine):
    assert engine.fx_spot("EUR", "JPY") == 1.10 / 150.0
    assert engine.fx_spot("USD", "USD") == 1.0
    assert engine.fx_spot("USD", "CAD") is None


def test_present_value(engine):
    df = lambda t: engine.discount_factor("USD", t)  # noqa: E731
    expected = 1_000_000 * df(30) + -500_000 * df(360) + 2_000_000 * df(1000)
    assert engine.present_value("USD") == pytest.approx(expected, rel=1e-14)
    assert engine.present_value("GBP") is None
    assert engine.present_value("CAD") is None


def test_dv01_tenor_matches_central_difference(engine):
    # only the 360d flow sits on the 360d pillar's support
    n, r = -500_000, 0.03
    up = n * math.exp(-(r + EPS))
    down = n * math.exp(-(r - EPS))
    expected = -(up - down) / 2

    assert engine.dv01_tenor("USD", 360) == pytest.approx(expected, rel=1e-8)


def test_dv01_tenor_converted_with_fx(engine):
    curve = engine.curve("EUR")
    ledger = engine.ledger("EUR")

    with curve.bump_tenor(30, EPS):
        up = ledger.present_value(curve.discount_factor)
    with curve.bump_tenor(30, -EPS):
        down = ledger.present_value(curve.discount_factor)

    expected = (1.0 / 1.10) * -(up - down) / 2
    assert engine.dv01_tenor("EUR", 30) == pytest.approx(expected, rel=1e-12)


def test_dv01_curve_positive_for_long_book(engine):
    """Long cash flows lose value when rates rise, so -dPV/dr > 0."""
    assert engine.dv01_curve("EUR") > 0.0


def test_dv01_curve_close_to_analytic(engine):
    df = lambda t: engine.discount_factor("USD", t)  # noqa: E731
    analytic = sum(n * (t / 360) * df(t) for t, n in [(30, 1_000_000), (360, -500_000), (1000, 2_000_000)])
    assert engine.dv01_curve("USD") == pytest.approx(analytic, rel=1e-6)


def test_key_rates_sum_to_parallel(engine):
    total = sum(engine.dv01_tenor("USD", t) for t in engine.tenors("USD"))
    assert total == pytest.approx(engine.dv01_curve("USD"), rel=1e-6)


def test_dv01_absent_results(engine):
    assert engine.dv01_tenor("CAD", 30) is None, "no curve"
    assert engine.dv01_tenor("USD", 31) is None, "tenor not on curve"
    assert engine.dv01_curve("CAD") is None
    assert engine.dv01_curve("JPY") is None, "spot but no curve"


def test_dv01_requires_spot():
    engine = RiskEngine(epoch_offset=EPOCH)
    engine.add_rate("CAD", 30, 0.04)
    engine.add_cashflow("CAD", EPOCH + 30, 100)
    assert engine.dv01_curve("CAD") is None
    assert engine.dv01_tenor("CAD", 30) is None


def test_dv01_without_ledger_is_zero(engine):
    assert engine.dv01_curve("GBP") == 0.0
    assert engine.dv01_tenor("GBP", 180) == 0.0


def test_dv01_leaves_curve_untouched(fresh_engine):
    before = snapshot(fresh_engine, "USD")
    for tenor in fresh_engine.tenors("USD"):
        fresh_engine.dv01_tenor("USD", tenor)
    fresh_engine.dv01_curve("USD")
    assert snapshot(fresh_engine, "USD") == before


def test_dv01_restores_curve_on_failure(fresh_engine, monkeypatch):
    before = snapshot(fresh_engine, "USD")

    def boom(discount_fn):
        discount_fn(30)
        raise RuntimeError("ledger blew up")

    monkeypatch.setattr(fresh_engine.ledger("USD"), "present_value", boom)

    with pytest.raises(RuntimeError):
        fresh_engine.dv01_tenor("USD", 360)
    with pytest.raises(RuntimeError):
        fresh_engine.dv01_curve("USD")

    monkeypatch.undo()
    assert snapshot(fresh_engine, "USD") == before
    assert fresh_engine.dv01_curve("USD") is not None, "Engine stays usable after a failed DV01"


def test_shifted_value(fresh_engine):
    before = snapshot(fresh_engine, "USD")
    base = fresh_engine.present_value("USD")

    assert fresh_engine.shifted_value("USD", 0.0) == base
    assert fresh_engine.shifted_value("USD", 0.01) < base
    assert fresh_engine.shifted_value("USD", 0.01, tenor=90) is not None
    assert fresh_engine.shifted_value("USD", 0.01, tenor=91) is None
    assert fresh_engine.shifted_value("GBP", 0.01) is None
    assert snapshot(fresh_engine, "USD") == before


def test_ingestion_validation():
    engine = RiskEngine(epoch_offset=EPOCH)
    with pytest.raises(ValueError, match="Unknown currency"):
        engine.add_rate("CHF", 30, 0.01)
    with pytest.raises(ValueError, match="negative"):
        engine.add_rate("EUR", -5, 0.01)
    assert engine.add_cashflow("EUR", EPOCH - 1, 100) is False
    assert engine.maturities("EUR") == []


def test_custom_currency_set():
    g3 = CurrencySet("G3", ("USD", "EUR", "CHF"))
    engine = RiskEngine(epoch_offset=0, currencies=g3)
    engine.add_rate("CHF", 30, 0.01)
    assert engine.tenors("CHF") == [30]

    with pytest.raises(ValueError, match="must contain USD"):
        RiskEngine(epoch_offset=0, currencies=CurrencySet("EUX", ("EUR", "CHF")))


def test_readers_never_see_a_bumped_curve(fresh_engine):
    base = fresh_engine.discount_factor("USD", 200)
    seen = []
    done = threading.Event()

    def reader():
        while not done.is_set():
            seen.append(fresh_engine.discount_factor("USD", 200))

    thread = threading.Thread(target=reader)
    thread.start()
    try:
        for _ in range(300):
            fresh_engine.dv01_curve("USD")
            fresh_engine.dv01_tenor("USD", 360)
    finally:
        done.set()
        thread.join()

    assert seen, "Reader thread should have sampled the curve"
    assert all(v == base for v in seen), "A reader observed a bumped discount factor"
