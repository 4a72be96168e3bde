"""Tests for provider-to-provider escalation."""
import pytest

from fakes import FakeProvider
from price_tracker.db import AssetClass
from price_tracker.providers.core import (NetworkError, ParseError,
                                          ProviderClientError,
                                          RateLimitExceeded,
                                          RetriesExhaustedError,
                                          UnknownSymbolError)
from price_tracker.schemas import ResolvedQuote
from price_tracker.services import FallbackCoordinator

EQUITY = AssetClass.EQUITY


def exhausted(provider_id: str) -> RetriesExhaustedError:
    return RetriesExhaustedError(
        "4 attempts failed", attempts=4, last_error=NetworkError("down"), provider_id=provider_id
    )


class TestFallbackCoordinator:
    async def test_primary_answers_everything(self):
        primary = FakeProvider("polygon", {"AAPL": 190.0, "MSFT": 410.0})
        backup = FakeProvider("alpha_vantage", {"AAPL": 1.0})
        coordinator = FallbackCoordinator({EQUITY: [primary, backup]})

        results = await coordinator.fetch_quotes(EQUITY, ["AAPL", "MSFT"])

        assert results["AAPL"].quote.price == 190.0
        assert results["AAPL"].source_provider_id == "polygon"
        assert results["AAPL"].degraded is False
        assert backup.batches == []

    async def test_wholesale_failure_escalates_whole_batch(self):
        primary = FakeProvider("polygon", fail_with=exhausted("polygon"))
        backup = FakeProvider("alpha_vantage", {"AAPL": 189.0, "MSFT": 409.0})
        coordinator = FallbackCoordinator({EQUITY: [primary, backup]})

        results = await coordinator.fetch_quotes(EQUITY, ["AAPL", "MSFT"])

        assert backup.batches == [["AAPL", "MSFT"]]
        assert all(isinstance(r, ResolvedQuote) for r in results.values())
        assert all(r.degraded for r in results.values())
        assert results["MSFT"].source_provider_id == "alpha_vantage"

    async def test_only_escalating_symbols_move_on(self):
        primary = FakeProvider(
            "polygon",
            {"AAPL": 190.0},
            errors={
                "MSFT": exhausted("polygon"),
                "NOPE": UnknownSymbolError("unknown", provider_id="polygon"),
                "BAD": ParseError("garbled", provider_id="polygon"),
            },
        )
        backup = FakeProvider("alpha_vantage", {"MSFT": 409.0, "NOPE": 1.0, "BAD": 1.0})
        coordinator = FallbackCoordinator({EQUITY: [primary, backup]})

        results = await coordinator.fetch_quotes(EQUITY, ["AAPL", "MSFT", "NOPE", "BAD"])

        assert backup.batches == [["MSFT"]]
        assert results["MSFT"].degraded is True
        assert isinstance(results["NOPE"], UnknownSymbolError)
        assert isinstance(results["BAD"], ParseError)

    async def test_rate_limited_symbols_escalate(self):
        limited = RateLimitExceeded("budget", provider_id="alpha_vantage")
        first = FakeProvider("alpha_vantage", errors={"IBM": limited})
        last = FakeProvider("yahoo", {"IBM": 250.0})
        coordinator = FallbackCoordinator({EQUITY: [first, last]})

        results = await coordinator.fetch_quotes(EQUITY, ["IBM"])

        assert results["IBM"].source_provider_id == "yahoo"
        assert results["IBM"].degraded is True

    async def test_last_error_is_kept_when_chain_runs_out(self):
        primary = FakeProvider("polygon", errors={"AAPL": exhausted("polygon")})
        backup = FakeProvider("alpha_vantage", errors={"AAPL": exhausted("alpha_vantage")})
        coordinator = FallbackCoordinator({EQUITY: [primary, backup]})

        results = await coordinator.fetch_quotes(EQUITY, ["AAPL"])

        assert isinstance(results["AAPL"], RetriesExhaustedError)
        assert results["AAPL"].provider_id == "alpha_vantage"

    async def test_every_symbol_answered_once(self):
        primary = FakeProvider("polygon", {"AAPL": 190.0})
        coordinator = FallbackCoordinator({EQUITY: [primary]})

        results = await coordinator.fetch_quotes(EQUITY, ["AAPL", "ZZZ", "AAPL"])

        assert list(results) == ["AAPL", "ZZZ"]
        assert primary.batches == [["AAPL", "ZZZ"]]

    @pytest.mark.parametrize("chains", [{}, {EQUITY: []}])
    async def test_no_chain_fails_every_symbol(self, chains):
        coordinator = FallbackCoordinator(chains)

        results = await coordinator.fetch_quotes(EQUITY, ["AAPL", "MSFT"])

        assert set(results) == {"AAPL", "MSFT"}
        assert all(isinstance(r, ProviderClientError) for r in results.values())

    async def test_close_closes_shared_providers_once(self):
        shared = FakeProvider("gold_api")
        other = FakeProvider("metals_api")
        coordinator = FallbackCoordinator(
            {AssetClass.COMMODITY: [other, shared], EQUITY: [shared]}
        )

        await coordinator.close()

        assert shared.closed and other.closed
        assert coordinator.chain_for(AssetClass.CRYPTO) == []
