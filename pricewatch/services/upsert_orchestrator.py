# pricewatch/services/upsert_orchestrator.py

"""Sequences lookups, reconciliation and writes for scraped products."""

import asyncio
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from pricewatch.config.logging_config import product_context
from pricewatch.config.settings import Settings
from pricewatch.models.product import Product
from pricewatch.models.upsert_result import ChangeReason, UpsertResponse
from pricewatch.services.notifier import UpsertNotifier
from pricewatch.services.reconciler import (
    ProductReconciler,
    load_category_vocabulary,
)
from pricewatch.storage.gateway import (
    GatewayError,
    LookupFailure,
    ProductGateway,
    WriteFailure,
)

logger = logging.getLogger("pricewatch.orchestrator")


@dataclass
class BatchSummary:
    """Per-classification tally for one batch of upserts."""

    total: int = 0
    counts: dict[UpsertResponse, int] = field(
        default_factory=lambda: dict[UpsertResponse, int]()
    )
    failed_ids: list[str] = field(
        default_factory=lambda: list[str]()
    )

    def record(self, product_id: str, response: UpsertResponse) -> None:
        """Count one outcome."""
        self.total += 1
        self.counts[response] = self.counts.get(response, 0) + 1
        if response is UpsertResponse.FAILED:
            self.failed_ids.append(product_id)

    def count(self, response: UpsertResponse) -> int:
        """Return how many products ended with *response*."""
        return self.counts.get(response, 0)


@contextmanager
def _gateway_call(
    failure: type[GatewayError], action: str,
) -> Iterator[None]:
    """Normalise any exception from a gateway call into *failure*."""
    try:
        yield
    except GatewayError:
        raise
    except Exception as exc:
        msg = f"{action} failed: {exc}"
        raise failure(msg) from exc


class UpsertOrchestrator:
    """Apply scraped products to storage through a :class:`ProductGateway`.

    Each :meth:`upsert` is independent: a failure aborts the remaining
    steps for that product only and is reported as ``FAILED``.  Writes
    are not transactional across base, history and category rows.
    """

    def __init__(
        self,
        gateway: ProductGateway,
        reconciler: ProductReconciler | None = None,
        notifier: UpsertNotifier | None = None,
    ) -> None:
        self.gateway = gateway
        self.reconciler = reconciler or ProductReconciler(
            load_category_vocabulary()
        )
        self.notifier = notifier or UpsertNotifier()

    # ── Single product ───────────────────────────────────

    def upsert(self, scraped: Product) -> UpsertResponse:
        """Insert or update *scraped* and return how it was applied.

        Never raises.  Gateway and reconciliation errors are reported
        to the notifier and collapse to ``UpsertResponse.FAILED``; any
        other error is logged and also returns ``FAILED``.  A notifier
        error after a successful write is logged and does not change
        the returned classification.
        """
        with product_context(scraped.id):
            try:
                response = self._apply(scraped)
            except (GatewayError, ValueError) as exc:
                self._notify("failed", scraped.id, exc)
                return UpsertResponse.FAILED
            except Exception:
                logger.exception("Unexpected error upserting %s", scraped.id)
                return UpsertResponse.FAILED
            logger.debug("Upserted %s: %s", scraped.id, response.value)
            return response

    def _notify(self, event: str, *args: object) -> None:
        """Deliver a notifier event; its errors never undo a write."""
        try:
            getattr(self.notifier, event)(*args)
        except Exception:
            logger.warning("Notifier %s event failed", event, exc_info=True)

    def _apply(self, scraped: Product) -> UpsertResponse:
        with _gateway_call(LookupFailure, f"lookup({scraped.id})"):
            stored = self.gateway.lookup(scraped.id)

        if stored is None:
            with _gateway_call(WriteFailure, f"insert({scraped.id})"):
                self.gateway.insert(scraped)
            self._notify("new_product", scraped.name, scraped.current_price)
            return UpsertResponse.NEW_PRODUCT

        with _gateway_call(LookupFailure, f"load({scraped.id})"):
            stored.category = self.gateway.load_categories(scraped.id)
            stored.price_history = self.gateway.load_price_history(
                scraped.id
            )

        result = self.reconciler.reconcile(scraped, stored)
        merged = result.product

        # Full-row rewrite even when up to date, to persist last_checked
        with _gateway_call(WriteFailure, f"update({scraped.id})"):
            self.gateway.update_base_fields(merged)

        if result.response is UpsertResponse.PRICE_CHANGED:
            new_sample = result.new_sample
            if new_sample is None:
                msg = f"Price change for {scraped.id} has no new sample"
                raise ValueError(msg)
            with _gateway_call(
                WriteFailure, f"append_price_history({scraped.id})",
            ):
                self.gateway.append_price_history(scraped.id, new_sample)
            self._notify(
                "price_changed",
                stored.name,
                stored.current_price,
                scraped.current_price,
            )

        if result.response in (
            UpsertResponse.INFO_CHANGED,
            UpsertResponse.PRICE_CHANGED,
        ):
            with _gateway_call(
                WriteFailure, f"replace_categories({scraped.id})",
            ):
                self.gateway.replace_categories(
                    scraped.id, list(merged.category or []),
                )

        if result.reason is ChangeReason.INVALID_CATEGORIES:
            self._notify(
                "categories_changed",
                scraped.name,
                stored.category,
                merged.category,
            )

        return result.response

    # ── Batches ──────────────────────────────────────────

    async def upsert_many(
        self,
        products: list[Product],
        concurrency: int | None = None,
    ) -> BatchSummary:
        """Upsert *products* in worker threads and tally the outcomes.

        Records have no required ordering; at most *concurrency*
        upserts run at once (``Settings.UPSERT_CONCURRENCY`` by default).
        """
        limit = asyncio.Semaphore(
            concurrency or Settings.UPSERT_CONCURRENCY
        )

        async def run_one(product: Product) -> UpsertResponse:
            async with limit:
                return await asyncio.to_thread(self.upsert, product)

        outcomes = await asyncio.gather(
            *(run_one(p) for p in products), return_exceptions=True,
        )

        summary = BatchSummary()
        for product, outcome in zip(products, outcomes):
            if isinstance(outcome, UpsertResponse):
                summary.record(product.id, outcome)
                continue
            logger.error(
                "Unexpected error upserting %s: %s",
                product.id,
                outcome,
                exc_info=outcome,
            )
            summary.record(product.id, UpsertResponse.FAILED)

        logger.info(
            "Batch upsert complete: %d products, %s",
            summary.total,
            ", ".join(
                f"{r.value}={n}" for r, n in summary.counts.items()
            ) or "nothing to do",
        )
        return summary
