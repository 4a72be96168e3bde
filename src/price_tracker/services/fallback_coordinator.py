"""
Fallback coordinator: provider-to-provider escalation per asset class.

Each asset class has an ordered chain of providers. The coordinator asks
the first provider for the whole batch, then hands every symbol that is
still unresolved, and whose error says another provider may do better, to
the next one. It never retries a provider; that is the backoff executor's
job inside each client.
"""
import logging
from collections.abc import Mapping

from price_tracker.db.models import AssetClass
from price_tracker.providers.core import (ProviderClientError, ProviderError,
                                          QuoteProviderABC,
                                          error_from_exception)
from price_tracker.providers.core.utils import unique_symbols
from price_tracker.schemas import Quote, ResolvedQuote

logger = logging.getLogger(__name__)

CoordinatorResult = dict[str, ResolvedQuote | ProviderError]


class FallbackCoordinator:
    """Resolves symbols of one asset class through its ordered provider chain."""

    def __init__(self, chains: Mapping[AssetClass, list[QuoteProviderABC]]) -> None:
        self._chains = {AssetClass(k): list(v) for k, v in chains.items()}

    def chain_for(self, asset_class: AssetClass) -> list[QuoteProviderABC]:
        return list(self._chains.get(asset_class, []))

    async def fetch_quotes(self, asset_class: AssetClass, symbols: list[str]) -> CoordinatorResult:
        """Fetch quotes for ``symbols``, escalating down the chain.

        Args:
            asset_class: Selects the provider chain.
            symbols: Symbols to resolve; duplicates collapse to one entry.

        Returns:
            One entry per distinct symbol: a ResolvedQuote (``degraded`` when a
            non-primary provider answered) or the last ProviderError seen.
        """
        wanted = unique_symbols(symbols)
        chain = self._chains.get(asset_class)
        if not chain:
            error = ProviderClientError(f"No providers configured for asset class '{asset_class}'")
            return {symbol: error for symbol in wanted}

        results: CoordinatorResult = {}
        pending = list(wanted)

        for position, provider in enumerate(chain):
            if not pending:
                break
            degraded = position > 0
            if degraded:
                logger.info(
                    "Escalating %d %s symbol(s) to %s", len(pending), asset_class.value, provider.provider_id
                )

            try:
                batch = await provider.fetch_batch(pending)
            except Exception as exc:  # pylint: disable=broad-except
                error = error_from_exception(exc, provider.provider_id)
                logger.warning("%s batch failed wholesale: %s", provider.provider_id, error)
                for symbol in pending:
                    results[symbol] = error
                continue

            still_pending: list[str] = []
            for symbol in pending:
                outcome = batch.get(symbol)
                if isinstance(outcome, Quote):
                    results[symbol] = ResolvedQuote(
                        quote=outcome,
                        source_provider_id=provider.provider_id,
                        degraded=degraded,
                    )
                    continue
                if outcome is None:
                    outcome = ProviderError(
                        f"No result for {symbol}", provider_id=provider.provider_id, retryable=True
                    )
                results[symbol] = outcome
                if outcome.escalates:
                    still_pending.append(symbol)
            pending = still_pending

        for symbol, outcome in results.items():
            if isinstance(outcome, ProviderError):
                logger.warning("No quote for %s %s: %s", asset_class.value, symbol, outcome)

        return {symbol: results[symbol] for symbol in wanted}

    async def close(self) -> None:
        """Close every provider of every chain once."""
        seen: set[int] = set()
        for chain in self._chains.values():
            for provider in chain:
                if id(provider) in seen:
                    continue
                seen.add(id(provider))
                await provider.close()
