"""
Batch orchestrator - quotes a list of shipments against the carrier networks.

Two scheduling strategies:
- sequential: one shipment at a time in input order, short delay between
- parallel: shipments grouped by routing decision (reefer, standard, dual),
  each group processed in fixed-size chunks dispatched concurrently, with a
  delay between chunks

Each shipment is finalized exactly once. An upstream failure only marks its
own result as an error; the batch always runs to the end (or to the cancel
signal) and returns results ordered by row_index.
"""
import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from rateshop.schemas.processing import (
    BatchOptions,
    ProcessingResult,
    ProcessingStatus,
    RoutingDecision,
    RoutingNetwork,
    SchedulingStrategy,
)
from rateshop.schemas.quote import Quote
from rateshop.schemas.shipment import ShipmentRecord, assign_row_indexes
from rateshop.services.classifier import classify
from rateshop.services.errors import ConfigurationError
from rateshop.services.quote_session import QuoteSession
from rateshop.services.request_builders import QuoteMode

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Cancelled before quoting"

ProgressCallback = Callable[[int, int, str], None]

# Order in which routing groups are processed by the parallel strategy
PARALLEL_GROUP_ORDER = (RoutingNetwork.REEFER, RoutingNetwork.STANDARD, RoutingNetwork.DUAL)

DUAL_MODE_TAGS = (
    (QuoteMode.VOLUME, "volume", "Volume LTL"),
    (QuoteMode.STANDARD, "standard", "Standard LTL"),
)


class _Progress:
    def __init__(self, total: int, callback: Optional[ProgressCallback]):
        self.total = total
        self.processed = 0
        self.callback = callback

    def advance(self, message: str) -> None:
        self.processed += 1
        self._emit(message)

    def _emit(self, message: str) -> None:
        if self.callback is None:
            return
        try:
            self.callback(self.processed, self.total, message)
        except Exception as e:
            logger.warning("Progress callback failed: %s", e)


class BatchOrchestrator:
    def __init__(
        self,
        session: QuoteSession,
        options: Optional[BatchOptions] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.session = session
        self.options = options or BatchOptions()
        self.sleep = sleep

    async def process_all(
        self,
        shipments: Sequence[ShipmentRecord],
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[ProcessingResult]:
        """
        Quote every shipment and return one ProcessingResult per shipment.

        Raises:
            ConfigurationError: no Project44 credentials are configured.
            ValueError: two shipments carry the same row_index.
        """
        self.session.ensure_configured()

        records = assign_row_indexes([s.model_copy(deep=True) for s in shipments])
        tracker = _Progress(len(records), progress)
        if not records:
            tracker._emit("No shipments to process")
            return []

        results: Dict[int, ProcessingResult] = {}
        decisions: Dict[int, RoutingDecision] = {}
        for shipment in records:
            decision = classify(shipment)
            decisions[shipment.row_index] = decision
            results[shipment.row_index] = ProcessingResult(
                row_index=shipment.row_index,
                original_data=shipment,
                routing_decision=decision.network,
                routing_reason=decision.reason,
            )

        started = time.perf_counter()
        strategy = self.options.strategy
        logger.info(
            "Starting %s quoting: %d shipments, %d selected carriers",
            strategy.value, len(records), len(self.options.selected_carrier_ids),
        )

        if strategy == SchedulingStrategy.SEQUENTIAL:
            await self._run_sequential(records, decisions, results, tracker, cancel_event)
        else:
            await self._run_parallel(records, decisions, results, tracker, cancel_event)

        ordered = [results[index] for index in sorted(results)]
        failed = sum(1 for r in ordered if r.status == ProcessingStatus.ERROR)
        logger.info(
            "Quoting completed in %.2fs: %d shipments, %d failed",
            time.perf_counter() - started, len(ordered), failed,
        )
        return ordered

    async def _run_sequential(self, records, decisions, results, tracker, cancel_event) -> None:
        for position, shipment in enumerate(records):
            if position > 0 and self.options.sequential_delay and not _is_cancelled(cancel_event):
                await self.sleep(self.options.sequential_delay)
            # Checked after the delay so a cancel during it stops this shipment
            if _is_cancelled(cancel_event):
                self._cancel_remaining(records[position:], results, tracker)
                return
            await self._process_one(shipment, decisions[shipment.row_index], results, tracker)

    async def _run_parallel(self, records, decisions, results, tracker, cancel_event) -> None:
        groups: Dict[RoutingNetwork, List[ShipmentRecord]] = {network: [] for network in PARALLEL_GROUP_ORDER}
        for shipment in records:
            groups[decisions[shipment.row_index].network].append(shipment)

        size = self.options.batch_size
        chunks = []
        for network in PARALLEL_GROUP_ORDER:
            members = groups[network]
            if members:
                logger.info("Processing %d %s shipments in batches of %d", len(members), network.value, size)
            chunks.extend(members[i:i + size] for i in range(0, len(members), size))

        for position, chunk in enumerate(chunks):
            if position > 0 and self.options.batch_delay and not _is_cancelled(cancel_event):
                await self.sleep(self.options.batch_delay)
            if _is_cancelled(cancel_event):
                pending = [s for remaining in chunks[position:] for s in remaining]
                self._cancel_remaining(pending, results, tracker)
                return
            await asyncio.gather(*(
                self._process_one(shipment, decisions[shipment.row_index], results, tracker)
                for shipment in chunk
            ))

    def _cancel_remaining(self, pending, results, tracker) -> None:
        logger.info("Batch cancelled; %d shipments not quoted", len(pending))
        for shipment in pending:
            result = results[shipment.row_index]
            result.status = ProcessingStatus.ERROR
            result.error = CANCELLED_MESSAGE
            tracker.advance(f"Row {shipment.row_index}: cancelled")

    async def _process_one(self, shipment, decision, results, tracker) -> None:
        result = results[shipment.row_index]
        try:
            quotes = await self.quote_shipment(shipment, decision)
        except Exception as e:
            result.status = ProcessingStatus.ERROR
            result.error = str(e) or e.__class__.__name__
            logger.error("Row %s (%s) failed: %s", shipment.row_index, decision.network.value, result.error)
            tracker.advance(f"Row {shipment.row_index}: failed")
            return

        priced, all_priced = self._price_quotes(shipment, quotes)
        result.quotes = priced
        result.status = ProcessingStatus.SUCCESS if all_priced else ProcessingStatus.SUCCESS_UNPRICED
        logger.info("Row %s (%s) completed: %d quotes", shipment.row_index, decision.network.value, len(priced))
        tracker.advance(f"Row {shipment.row_index}: {len(priced)} quotes")

    async def quote_shipment(self, shipment: ShipmentRecord, decision: RoutingDecision) -> List[Quote]:
        carrier_ids = self.options.selected_carrier_ids
        project44 = self.session.project44

        if decision.network == RoutingNetwork.REEFER:
            if self.session.freshx is None:
                raise ConfigurationError("FreshX API key is not configured; reefer shipment cannot be quoted")
            return await self.session.freshx.get_quotes(shipment)

        if decision.network == RoutingNetwork.DUAL:
            responses = await asyncio.gather(*(
                project44.get_quotes(shipment, mode, carrier_ids) for mode, _, _ in DUAL_MODE_TAGS
            ))
            quotes: List[Quote] = []
            for (_, tag, label), mode_quotes in zip(DUAL_MODE_TAGS, responses):
                for quote in mode_quotes:
                    # quote_id restarts per mode upstream; renumber across the combined list
                    quotes.append(quote.model_copy(update={
                        "quote_id": len(quotes) + 1,
                        "quote_mode": tag,
                        "quote_mode_label": label,
                    }))
            return quotes

        return await project44.get_quotes(shipment, QuoteMode.STANDARD, carrier_ids)

    def _price_quotes(self, shipment: ShipmentRecord, quotes: List[Quote]):
        """Price every quote; on failure keep the raw quotes and report unpriced."""
        session = self.session
        try:
            priced = [session.price_quote(q, session.pricing_settings, session.customer) for q in quotes]
        except Exception as e:
            logger.error("Pricing failed for row %s; keeping unpriced quotes: %s", shipment.row_index, e)
            return quotes, False
        return priced, True


def _is_cancelled(cancel_event: Optional[asyncio.Event]) -> bool:
    return cancel_event is not None and cancel_event.is_set()
