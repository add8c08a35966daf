"""Unit tests for DataAggregator provider resolution and fan-out."""

import asyncio
import logging
from types import SimpleNamespace

import pytest

from aggregator import DataAggregator, resolve_provider_flags
from models import ProviderName, ProviderResult, ResearchConfig, SearchHit
from providers import ExaProvider, PerplexityProvider, ScryProvider


def _secrets(**values):
    return lambda name: values.get(name)


class _FakeProvider:
    def __init__(self, provider, hits=(), cost=0.0, delay=0.0, raises=None):
        self.provider = provider
        self.name = provider.value
        self._hits = [SearchHit(url=url, title=url, provider=provider) for url in hits]
        self._cost = cost
        self._delay = delay
        self._raises = raises
        self.calls = []
        self.closed = False

    async def search(self, query, max_results):
        self.calls.append((query, max_results))
        await asyncio.sleep(self._delay)
        if self._raises:
            raise self._raises
        return ProviderResult(provider=self.provider, hits=self._hits, cost=self._cost)

    async def close(self):
        self.closed = True


def test_resolve_provider_flags_defaults_follow_credentials():
    flags = resolve_provider_flags(ResearchConfig(), _secrets(EXA_API_KEY="k"))

    assert flags == {
        ProviderName.EXA: True,
        ProviderName.PERPLEXITY: False,
        ProviderName.SCRY: True,
    }


def test_resolve_provider_flags_explicit_values_win():
    config = ResearchConfig(use_exa=False, use_perplexity=True, use_scry=False)

    flags = resolve_provider_flags(config, _secrets(EXA_API_KEY="k"))

    assert flags[ProviderName.EXA] is False
    assert flags[ProviderName.PERPLEXITY] is True
    assert flags[ProviderName.SCRY] is False


def test_from_config_only_builds_enabled_providers_in_merge_order():
    aggregator = DataAggregator.from_config(
        ResearchConfig(use_scry=True),
        _secrets(EXA_API_KEY="exa", OPENROUTER_API_KEY="or"),
    )

    assert [type(p) for p in aggregator.providers] == [ExaProvider, PerplexityProvider, ScryProvider]
    assert aggregator.provider_names == ["exa", "perplexity", "scry"]

    only_scry = DataAggregator.from_config(ResearchConfig(use_exa=False), _secrets())
    assert only_scry.provider_names == ["scry"]


def test_from_config_reads_source_timeout_from_settings(monkeypatch):
    monkeypatch.setattr(
        "aggregator.data_aggregator.get_research_settings",
        lambda: SimpleNamespace(source_timeout_sec=2.5),
    )

    from_settings = DataAggregator.from_config(ResearchConfig(use_exa=False), _secrets())
    explicit = DataAggregator.from_config(ResearchConfig(use_exa=False), _secrets(), source_timeout_sec=0.5)

    assert from_settings.source_timeout_sec == 2.5
    assert explicit.source_timeout_sec == 0.5


@pytest.mark.asyncio
async def test_aggregate_runs_providers_concurrently_and_keeps_order():
    slow = _FakeProvider(ProviderName.EXA, hits=["https://a.com"], delay=0.05)
    fast = _FakeProvider(ProviderName.PERPLEXITY, hits=["https://b.com"], cost=0.01)
    aggregator = DataAggregator([slow, fast])

    results = await aggregator.aggregate("query", 4)

    assert [r.provider for r in results] == [ProviderName.EXA, ProviderName.PERPLEXITY]
    assert slow.calls == [("query", 4)]
    assert fast.calls == [("query", 4)]


@pytest.mark.asyncio
async def test_aggregate_turns_unexpected_errors_into_empty_results(caplog):
    broken = _FakeProvider(ProviderName.SCRY, raises=RuntimeError("boom"))
    aggregator = DataAggregator([broken])

    with caplog.at_level(logging.WARNING):
        results = await aggregator.aggregate("query", 4)

    assert results[0].hits == []
    assert results[0].cost == 0.0
    assert "boom" in caplog.text


@pytest.mark.asyncio
async def test_aggregate_with_no_providers_returns_empty_list():
    assert await DataAggregator([]).aggregate("q", 3) == []


@pytest.mark.asyncio
async def test_close_closes_every_provider():
    providers = [_FakeProvider(ProviderName.EXA), _FakeProvider(ProviderName.SCRY)]

    async with DataAggregator(providers):
        pass

    assert all(p.closed for p in providers)


@pytest.mark.asyncio
async def test_source_timeout_cuts_off_hanging_provider(caplog):
    hanging = _FakeProvider(ProviderName.EXA, hits=["https://slow.com"], delay=5.0)
    fast = _FakeProvider(ProviderName.SCRY, hits=["https://fast.com"])
    aggregator = DataAggregator([hanging, fast], source_timeout_sec=0.05)

    with caplog.at_level(logging.WARNING):
        results = await asyncio.wait_for(aggregator.aggregate("query", 4), timeout=2.0)

    assert results[0].provider == ProviderName.EXA
    assert results[0].hits == []
    assert results[0].error == "timeout"
    assert [h.url for h in results[1].hits] == ["https://fast.com"]
    assert "timed out" in caplog.text
