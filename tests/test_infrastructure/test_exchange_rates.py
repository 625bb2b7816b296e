"""Tests for ExchangeRateService (HTTP layer mocked)"""
import pytest
import time
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from unittest.mock import Mock

import requests

from subtracker.infrastructure.exchange_rates import ExchangeRateService, FALLBACK_RATES


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _response(status_code=200, payload=None):
    resp = Mock()
    resp.status_code = status_code
    resp.json.return_value = payload if payload is not None else {}
    return resp


def _ok_payload(**rates):
    return {"result": "success", "base_code": "JPY", "conversion_rates": {"JPY": 1, **rates}}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session():
    s = Mock()
    s.get.return_value = _response(payload=_ok_payload(USD=0.0064, EUR=0.00625))
    return s


@pytest.fixture
def service(clock, session):
    return ExchangeRateService(api_key="test-key", ttl_seconds=1800, clock=clock, session=session)


class TestGetRates:
    def test_inverts_rates_against_jpy(self, service, session):
        rates = service.get_rates()
        assert rates["JPY"] == Decimal(1)
        assert rates["USD"] == Decimal("156.25")
        assert rates["EUR"] == Decimal("160")
        url = session.get.call_args[0][0]
        assert url == "https://v6.exchangerate-api.com/v6/test-key/latest/JPY"

    def test_cached_within_ttl(self, service, session, clock):
        service.get_rates()
        clock.now += 1799
        service.get_rates()
        assert session.get.call_count == 1

    def test_refetched_after_ttl(self, service, session, clock):
        service.get_rates()
        clock.now += 1800
        service.get_rates()
        assert session.get.call_count == 2

    def test_invalidate_forces_refetch(self, service, session):
        service.get_rates()
        service.invalidate()
        service.get_rates()
        assert session.get.call_count == 2

    def test_returned_table_is_a_copy(self, service):
        rates = service.get_rates()
        rates["USD"] = Decimal(0)
        assert service.get_rates()["USD"] == Decimal("156.25")

    def test_skips_bad_entries(self, service, session):
        session.get.return_value = _response(payload=_ok_payload(USD=0.0064, XXX=0, YYY="n/a"))
        rates = service.get_rates()
        assert "XXX" not in rates
        assert "YYY" not in rates


class TestFallback:
    @pytest.mark.parametrize("api_key", ["", None, "your_api_key_here"])
    def test_no_api_key_skips_http(self, api_key, session):
        service = ExchangeRateService(api_key=api_key, session=session)
        assert service.get_rates() == FALLBACK_RATES
        session.get.assert_not_called()

    def test_http_error(self, service, session, caplog):
        session.get.return_value = _response(status_code=503)
        assert service.get_rates() == FALLBACK_RATES
        assert "fallback" in caplog.text

    def test_api_error_result(self, service, session):
        session.get.return_value = _response(payload={"result": "error", "error-type": "invalid-key"})
        assert service.get_rates() == FALLBACK_RATES

    def test_network_failure(self, service, session):
        session.get.side_effect = requests.ConnectionError("boom")
        assert service.get_rates() == FALLBACK_RATES

    def test_fallback_not_cached(self, service, session):
        session.get.side_effect = [requests.Timeout("slow"), _response(payload=_ok_payload(USD=0.0064))]
        assert service.get_rates() == FALLBACK_RATES
        assert service.get_rates()["USD"] == Decimal("156.25")


def test_convert_to_jpy(service):
    assert service.convert_to_jpy(Decimal("10"), "USD") == Decimal("1562.50")
    assert service.convert_to_jpy(Decimal("10"), "SEK") == Decimal("10")


def test_concurrent_callers_share_one_fetch(service, session):
    ok = session.get.return_value

    def slow_get(*args, **kwargs):
        time.sleep(0.05)
        return ok

    session.get.side_effect = slow_get
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: service.get_rates(), range(8)))

    assert session.get.call_count == 1
    assert all(r["USD"] == Decimal("156.25") for r in results)
