from __future__ import annotations

import asyncio
from datetime import date

import pytest

from conftest import FakeClock, FakeSource, RecordingSleep, transport_error
from core.errors import ApiError, ErrorKind
from core.services.query_cache import CacheState, QueryClient
from core.services.resources import HolidayResources, HolidaysBrowser, countries_key, holidays_key


@pytest.fixture
async def queries(clock: FakeClock, sleep: RecordingSleep):
    async with QueryClient(clock=clock, sleep=sleep) as client:
        yield client


def test_keys() -> None:
    assert countries_key() == ("countries",)
    assert holidays_key("ca", 2024) == ("holidays", "CA", 2024)
    assert holidays_key("CA") == ("holidays", "CA", date.today().year)


async def test_holidays_without_year_uses_current_year(queries: QueryClient, holidays) -> None:
    source = FakeSource(holidays_results={"CA": [holidays]})
    resources = HolidayResources(source, queries)

    result = await resources.holidays("CA")

    year = date.today().year
    assert result.key == ("holidays", "CA", year)
    assert result.error is None
    assert result.data == holidays
    assert source.holidays_calls == [("CA", year)]


async def test_empty_result_is_not_an_error(queries: QueryClient) -> None:
    source = FakeSource(holidays_results={"CA": [[]]})
    resources = HolidayResources(source, queries)

    result = await resources.holidays("CA", 2026)

    assert result.data == []
    assert result.error is None
    assert result.state is CacheState.FRESH


async def test_empty_country_code_is_inert(queries: QueryClient) -> None:
    source = FakeSource()
    resources = HolidayResources(source, queries)

    result = await resources.holidays("")

    assert not result.enabled
    assert result.data is None
    assert result.error is None
    assert not result.is_loading
    assert source.holidays_calls == []
    assert (await result.refetch()).data is None


async def test_countries_refetch_after_terminal_error(queries: QueryClient, sleep: RecordingSleep, countries) -> None:
    source = FakeSource(countries_results=[transport_error()])
    resources = HolidayResources(source, queries)

    failed = await resources.countries()
    assert failed.error is not None
    assert failed.error.kind is ErrorKind.TRANSPORT
    assert source.countries_calls == 4

    source.countries_results = [countries]
    recovered = await failed.refetch()

    assert recovered.error is None
    assert recovered.data == countries


async def test_holidays_not_found_surfaces_without_retry(queries: QueryClient, sleep: RecordingSleep) -> None:
    source = FakeSource(holidays_results={"XX": [ApiError(ErrorKind.NOT_FOUND, "404", http_status=404)]})
    resources = HolidayResources(source, queries)

    result = await resources.holidays("XX", 2026)

    assert result.error is not None and result.error.kind is ErrorKind.NOT_FOUND
    assert len(source.holidays_calls) == 1
    assert sleep.delays == []


async def test_holidays_refetch_bypasses_freshness(queries: QueryClient, holidays) -> None:
    source = FakeSource(holidays_results={"DE": [holidays, holidays[:1]]})
    resources = HolidayResources(source, queries)

    first = await resources.holidays("DE", 2026)
    second = await first.refetch()

    assert len(source.holidays_calls) == 2
    assert second.data == holidays[:1]


async def test_country_name_from_cache(queries: QueryClient, countries) -> None:
    source = FakeSource(countries_results=[countries])
    resources = HolidayResources(source, queries)

    assert resources.country_name("DE") == "DE"
    await resources.countries()

    assert resources.country_name("DE") == "Germany"
    assert resources.country_name("DE", "de") == "Deutschland"
    assert resources.country_name("ZZ") == "ZZ"


async def test_switching_country_ignores_previous_response(queries: QueryClient, holidays) -> None:
    us_holidays = holidays[:1]
    ca_holidays = holidays[1:]
    source = FakeSource(holidays_results={"US": [us_holidays], "CA": [ca_holidays]})
    source.gates["US"] = asyncio.Event()
    browser = HolidaysBrowser(HolidayResources(source, queries), year=2026)

    pending_us = asyncio.create_task(browser.select("US"))
    await asyncio.sleep(0)
    ca = await browser.select("CA")

    assert browser.active_key == ("holidays", "CA", 2026)
    assert ca.data == ca_holidays

    source.gates["US"].set()
    late = await pending_us

    # The late US response lands in its own slot only.
    assert late.key == ("holidays", "CA", 2026)
    assert late.data == ca_holidays
    assert browser.current().data == ca_holidays
    assert queries.get_data(("holidays", "US", 2026)) == us_holidays


async def test_end_to_end_select_canada(queries: QueryClient, countries) -> None:
    source = FakeSource(countries_results=[countries], holidays_results={"CA": [[]]})
    resources = HolidayResources(source, queries)
    browser = HolidaysBrowser(resources)

    result = await browser.select("CA")

    assert result.error is None
    assert result.data == []
    assert browser.active_key == ("holidays", "CA", date.today().year)


async def test_browser_without_selection(queries: QueryClient) -> None:
    browser = HolidaysBrowser(HolidayResources(FakeSource(), queries))

    assert browser.active_key is None
    assert not browser.current().enabled
    assert not (await browser.select("")).enabled


async def test_disabled_key_carries_resolved_year(queries: QueryClient) -> None:
    resources = HolidayResources(FakeSource(), queries)

    assert (await resources.holidays("")).key == ("holidays", "", date.today().year)
    assert (await resources.holidays("  ", 2024)).key == ("holidays", "", 2024)


async def test_countries_without_retry_fails_on_first_attempt(
    queries: QueryClient, sleep: RecordingSleep, countries
) -> None:
    source = FakeSource(countries_results=[transport_error()])
    resources = HolidayResources(source, queries)

    result = await resources.countries(retry=False)

    assert result.error is not None
    assert source.countries_calls == 1
    assert sleep.delays == []

    source.countries_results = [countries]
    assert (await result.refetch()).data == countries
