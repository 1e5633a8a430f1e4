"""
Unit tests for batch quoting: routing, scheduling, failure isolation,
progress reporting and cancellation.
"""

import asyncio
import random
from types import SimpleNamespace

import pytest

from rateshop.db.database import settings
from rateshop.schemas.processing import (
    BatchOptions,
    ProcessingStatus,
    RoutingNetwork,
    SchedulingStrategy,
)
from rateshop.services.batch_orchestrator import CANCELLED_MESSAGE, BatchOrchestrator
from rateshop.services.errors import ConfigurationError, UpstreamError
from rateshop.services.file_parser import parse_shipment_file
from rateshop.services.pricing import PricingSettings
from rateshop.services.quote_session import QuoteSession
from rateshop.services.request_builders import QuoteMode


class StubProject44:
    """Answers each shipment with one quote whose total encodes its row."""

    def __init__(self, configured=True, fail_rows=(), jitter=0.0, quote_factory=None):
        self.credentials = SimpleNamespace(is_configured=configured)
        self.fail_rows = set(fail_rows)
        self.jitter = jitter
        self.quote_factory = quote_factory
        self.calls = []

    async def get_quotes(self, shipment, mode=QuoteMode.STANDARD, carrier_ids=()):
        self.calls.append((shipment.row_index, mode, tuple(carrier_ids)))
        if self.jitter:
            await asyncio.sleep(random.uniform(0, self.jitter))
        if shipment.row_index in self.fail_rows:
            raise UpstreamError(f"row {shipment.row_index} rejected", status_code=500)
        return [self.quote_factory(
            carrier=f"Carrier {mode.value}",
            total=100.0 + shipment.row_index,
            quote_id=1,
        )]


class StubFreshX:
    def __init__(self, quote_factory):
        self.quote_factory = quote_factory
        self.calls = []

    async def get_quotes(self, shipment):
        self.calls.append(shipment.row_index)
        return [self.quote_factory(carrier="Reefer Co", total=900.0, submitted_by="FreshX Reefer Network")]


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


class ProgressRecorder:
    def __init__(self):
        self.events = []

    def __call__(self, processed, total, message):
        self.events.append((processed, total))


def make_session(project44, freshx=None, price_quote=None):
    session = QuoteSession(project44=project44, freshx=freshx, pricing_settings=PricingSettings(15.0))
    if price_quote is not None:
        session.price_quote = price_quote
    return session


def make_orchestrator(session, strategy=SchedulingStrategy.PARALLEL, **options):
    sleep = SleepRecorder()
    orchestrator = BatchOrchestrator(session, BatchOptions(strategy=strategy, **options), sleep=sleep)
    return orchestrator, sleep


class TestOrderingAndIsolation:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("strategy", [SchedulingStrategy.PARALLEL, SchedulingStrategy.SEQUENTIAL])
    async def test_results_align_with_rows_under_random_latency(self, make_shipment, make_quote, strategy):
        project44 = StubProject44(jitter=0.02, quote_factory=make_quote)
        orchestrator, _ = make_orchestrator(make_session(project44), strategy, batch_size=4)
        shipments = [make_shipment(pallets=1 + i % 3) for i in range(10)]

        results = await orchestrator.process_all(shipments)

        assert [r.row_index for r in results] == list(range(10))
        for result in results:
            assert result.status == ProcessingStatus.SUCCESS
            assert result.quotes[0].carrier_total_rate == 100.0 + result.row_index

    @pytest.mark.asyncio
    async def test_one_failure_does_not_affect_others(self, make_shipment, make_quote):
        project44 = StubProject44(fail_rows={2}, quote_factory=make_quote)
        orchestrator, _ = make_orchestrator(make_session(project44))

        results = await orchestrator.process_all([make_shipment() for _ in range(5)])

        assert [r.status for r in results] == [
            ProcessingStatus.SUCCESS,
            ProcessingStatus.SUCCESS,
            ProcessingStatus.ERROR,
            ProcessingStatus.SUCCESS,
            ProcessingStatus.SUCCESS,
        ]
        assert "row 2 rejected" in results[2].error
        assert results[2].quotes == []

    @pytest.mark.asyncio
    async def test_parsed_file_with_blank_row_keeps_alignment(self, tmp_path, make_quote):
        path = tmp_path / "rfq.csv"
        path.write_text(
            "fromDate,fromZip,toZip,pallets,grossWeight\n"
            "2025-03-10,60601,30301,2,900\n"
            ",,,,\n"
            "2025-03-11,60601,30301,3,1200\n"
        )
        orchestrator, _ = make_orchestrator(make_session(StubProject44(quote_factory=make_quote)))

        results = await orchestrator.process_all(parse_shipment_file(str(path)))

        assert [r.row_index for r in results] == [0, 1]
        assert [r.original_data.pallets for r in results] == [2, 3]

    @pytest.mark.asyncio
    async def test_input_records_are_not_mutated(self, make_shipment, make_quote):
        orchestrator, _ = make_orchestrator(make_session(StubProject44(quote_factory=make_quote)))
        shipments = [make_shipment(), make_shipment()]

        await orchestrator.process_all(shipments)

        assert [s.row_index for s in shipments] == [None, None]

    @pytest.mark.asyncio
    async def test_duplicate_row_indexes_rejected(self, make_shipment, make_quote):
        orchestrator, _ = make_orchestrator(make_session(StubProject44(quote_factory=make_quote)))

        with pytest.raises(ValueError):
            await orchestrator.process_all([make_shipment(row_index=3), make_shipment(row_index=3)])


class TestProgress:

    @pytest.mark.asyncio
    async def test_progress_reaches_total_once(self, make_shipment, make_quote):
        progress = ProgressRecorder()
        orchestrator, _ = make_orchestrator(make_session(StubProject44(quote_factory=make_quote)), batch_size=2)

        await orchestrator.process_all([make_shipment() for _ in range(5)], progress=progress)

        assert [p for p, _ in progress.events] == [1, 2, 3, 4, 5]
        assert all(total == 5 for _, total in progress.events)

    @pytest.mark.asyncio
    async def test_progress_completes_when_every_shipment_fails(self, make_shipment, make_quote):
        progress = ProgressRecorder()
        project44 = StubProject44(fail_rows={0, 1, 2}, quote_factory=make_quote)
        orchestrator, _ = make_orchestrator(make_session(project44), SchedulingStrategy.SEQUENTIAL)

        results = await orchestrator.process_all([make_shipment() for _ in range(3)], progress=progress)

        assert all(r.status == ProcessingStatus.ERROR for r in results)
        assert progress.events[-1] == (3, 3)
        assert [p for p, _ in progress.events].count(3) == 1

    @pytest.mark.asyncio
    async def test_empty_batch_reports_zero(self, make_quote):
        progress = ProgressRecorder()
        orchestrator, _ = make_orchestrator(make_session(StubProject44(quote_factory=make_quote)))

        assert await orchestrator.process_all([], progress=progress) == []
        assert progress.events == [(0, 0)]

    @pytest.mark.asyncio
    async def test_broken_progress_callback_does_not_abort(self, make_shipment, make_quote):
        def explode(processed, total, message):
            raise RuntimeError("ui gone")

        orchestrator, _ = make_orchestrator(make_session(StubProject44(quote_factory=make_quote)))

        results = await orchestrator.process_all([make_shipment()], progress=explode)

        assert results[0].status == ProcessingStatus.SUCCESS


class TestScheduling:

    @pytest.mark.parametrize("configured, expected", [(3, 3), (0, 1), (25, 10)])
    def test_batch_size_defaults_to_configured_value(self, monkeypatch, configured, expected):
        monkeypatch.setattr(settings, "quote_batch_size", configured)

        assert BatchOptions().batch_size == expected
        assert BatchOptions(batch_size=7).batch_size == 7

    @pytest.mark.asyncio
    async def test_sequential_delay_only_between_shipments(self, make_shipment, make_quote):
        orchestrator, sleep = make_orchestrator(
            make_session(StubProject44(quote_factory=make_quote)),
            SchedulingStrategy.SEQUENTIAL,
            sequential_delay=0.1,
        )

        await orchestrator.process_all([make_shipment() for _ in range(3)])

        assert sleep.delays == [0.1, 0.1]

    @pytest.mark.asyncio
    async def test_parallel_chunks_by_batch_size(self, make_shipment, make_quote):
        orchestrator, sleep = make_orchestrator(
            make_session(StubProject44(quote_factory=make_quote)),
            batch_size=2,
            batch_delay=0.2,
        )

        await orchestrator.process_all([make_shipment() for _ in range(5)])

        assert sleep.delays == [0.2, 0.2]

    @pytest.mark.asyncio
    async def test_parallel_groups_processed_reefer_first(self, make_shipment, make_quote):
        project44 = StubProject44(quote_factory=make_quote)
        freshx = StubFreshX(make_quote)
        orchestrator, sleep = make_orchestrator(make_session(project44, freshx), batch_size=5)
        shipments = [
            make_shipment(),
            make_shipment(is_reefer=True, temperature="FROZEN"),
            make_shipment(pallets=12),
        ]

        results = await orchestrator.process_all(shipments)

        assert freshx.calls == [1]
        assert [r.routing_decision for r in results] == [
            RoutingNetwork.STANDARD, RoutingNetwork.REEFER, RoutingNetwork.DUAL,
        ]
        # three non-empty groups -> three chunks -> two inter-chunk delays
        assert len(sleep.delays) == 2


class TestRouting:

    @pytest.mark.asyncio
    async def test_dual_mode_requests_volume_and_standard(self, make_shipment, make_quote):
        project44 = StubProject44(quote_factory=make_quote)
        orchestrator, _ = make_orchestrator(
            make_session(project44), selected_carrier_ids=["ODFL_ACCT"]
        )

        result = (await orchestrator.process_all([make_shipment(pallets=10, gross_weight=16000)]))[0]

        assert sorted(mode.value for _, mode, _ in project44.calls) == ["standard", "volume"]
        assert all(ids == ("ODFL_ACCT",) for _, _, ids in project44.calls)
        assert [(q.quote_mode, q.quote_mode_label) for q in result.quotes] == [
            ("volume", "Volume LTL"),
            ("standard", "Standard LTL"),
        ]

    @pytest.mark.asyncio
    async def test_dual_mode_quote_ids_unique_across_modes(self, make_shipment, make_quote):
        orchestrator, _ = make_orchestrator(make_session(StubProject44(quote_factory=make_quote)))

        result = (await orchestrator.process_all([make_shipment(pallets=12)]))[0]

        assert [q.quote_id for q in result.quotes] == [1, 2]

    @pytest.mark.asyncio
    async def test_dual_mode_fails_when_either_mode_fails(self, make_shipment, make_quote):
        class HalfBroken(StubProject44):
            async def get_quotes(self, shipment, mode=QuoteMode.STANDARD, carrier_ids=()):
                if mode == QuoteMode.VOLUME:
                    raise UpstreamError("vltl down", status_code=503)
                return await super().get_quotes(shipment, mode, carrier_ids)

        orchestrator, _ = make_orchestrator(make_session(HalfBroken(quote_factory=make_quote)))

        result = (await orchestrator.process_all([make_shipment(pallets=20)]))[0]

        assert result.status == ProcessingStatus.ERROR
        assert "vltl down" in result.error

    @pytest.mark.asyncio
    async def test_standard_shipment_uses_standard_mode(self, make_shipment, make_quote):
        project44 = StubProject44(quote_factory=make_quote)
        orchestrator, _ = make_orchestrator(make_session(project44))

        await orchestrator.process_all([make_shipment()])

        assert project44.calls == [(0, QuoteMode.STANDARD, ())]

    @pytest.mark.asyncio
    async def test_reefer_without_freshx_errors_only_that_shipment(self, make_shipment, make_quote):
        orchestrator, _ = make_orchestrator(make_session(StubProject44(quote_factory=make_quote)))

        results = await orchestrator.process_all([
            make_shipment(is_reefer=True, temperature="CHILLED"),
            make_shipment(),
        ])

        assert results[0].status == ProcessingStatus.ERROR
        assert "FreshX" in results[0].error
        assert results[1].status == ProcessingStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_missing_credentials_abort_before_any_request(self, make_shipment, make_quote):
        project44 = StubProject44(configured=False, quote_factory=make_quote)
        orchestrator, _ = make_orchestrator(make_session(project44))

        with pytest.raises(ConfigurationError):
            await orchestrator.process_all([make_shipment()])
        assert project44.calls == []


class TestPricingAndCancellation:

    @pytest.mark.asyncio
    async def test_quotes_are_priced(self, make_shipment, make_quote):
        orchestrator, _ = make_orchestrator(make_session(StubProject44(quote_factory=make_quote)))

        quote = (await orchestrator.process_all([make_shipment()]))[0].quotes[0]

        assert quote.carrier_total_rate == 100.0
        assert quote.customer_price == 115.0
        assert quote.profit == 15.0

    @pytest.mark.asyncio
    async def test_pricing_failure_keeps_raw_quotes(self, make_shipment, make_quote):
        def broken_pricing(quote, settings, customer):
            raise ValueError("no margin configured")

        orchestrator, _ = make_orchestrator(
            make_session(StubProject44(quote_factory=make_quote), price_quote=broken_pricing)
        )

        result = (await orchestrator.process_all([make_shipment()]))[0]

        assert result.status == ProcessingStatus.SUCCESS_UNPRICED
        assert result.quotes[0].total == 100.0
        assert result.quotes[0].customer_price is None

    @pytest.mark.asyncio
    async def test_cancellation_marks_remaining_rows(self, make_shipment, make_quote):
        cancel = asyncio.Event()
        progress = ProgressRecorder()

        def cancel_after_first(processed, total, message):
            progress(processed, total, message)
            if processed == 1:
                cancel.set()

        orchestrator, _ = make_orchestrator(
            make_session(StubProject44(quote_factory=make_quote)), SchedulingStrategy.SEQUENTIAL
        )

        results = await orchestrator.process_all(
            [make_shipment() for _ in range(4)], progress=cancel_after_first, cancel_event=cancel
        )

        assert results[0].status == ProcessingStatus.SUCCESS
        assert all(r.error == CANCELLED_MESSAGE for r in results[1:])
        assert progress.events[-1] == (4, 4)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("strategy", [SchedulingStrategy.SEQUENTIAL, SchedulingStrategy.PARALLEL])
    async def test_cancel_during_delay_stops_next_dispatch(self, make_shipment, make_quote, strategy):
        cancel = asyncio.Event()
        project44 = StubProject44(quote_factory=make_quote)

        async def cancelling_sleep(seconds):
            cancel.set()

        options = BatchOptions(strategy=strategy, batch_size=1, sequential_delay=0.1, batch_delay=0.2)
        orchestrator = BatchOrchestrator(make_session(project44), options, sleep=cancelling_sleep)

        results = await orchestrator.process_all([make_shipment() for _ in range(3)], cancel_event=cancel)

        assert len(project44.calls) == 1
        assert [r.error for r in results] == [None, CANCELLED_MESSAGE, CANCELLED_MESSAGE]

    @pytest.mark.asyncio
    async def test_cancellation_between_parallel_chunks(self, make_shipment, make_quote):
        cancel = asyncio.Event()
        project44 = StubProject44(quote_factory=make_quote)
        orchestrator, _ = make_orchestrator(make_session(project44), batch_size=2)

        def stop(processed, total, message):
            if processed == 2:
                cancel.set()

        results = await orchestrator.process_all(
            [make_shipment() for _ in range(5)], progress=stop, cancel_event=cancel
        )

        assert len(project44.calls) == 2
        assert [r.status for r in results].count(ProcessingStatus.ERROR) == 3
