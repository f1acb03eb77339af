# herbaltrace/services/traceability/traceability_services.py
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, List, Optional

from herbaltrace.constants.status_badges import badge_for
from herbaltrace.errors import MalformedToken, NotFound, StoreError
from herbaltrace.models.traceability.traceability_models import TraceGap, TraceResult
from herbaltrace.qr import token_codec
from herbaltrace.row_store import RowStore
from herbaltrace.services.relations import (
    AGGREGATOR,
    COLLECTOR_WITH_PROFILE,
    HERB,
    LAB,
    MANUFACTURER,
    PROCESSOR,
)

log = logging.getLogger(__name__)

# fields of a profile that may appear on a public trace
PUBLIC_PROFILE_FIELDS = ("id", "full_name", "role", "organization", "location")

BRANCH_ORDER = ("collections", "qualityTests", "processingSteps")


def _public_party(p: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not p:
        return p
    return {k: p.get(k) for k in PUBLIC_PROFILE_FIELDS}


class TraceabilityService:
    """
    Resolve a scanned QR token into a product's supply-chain history:
      - product            (by stored qr_code, with manufacturer)
      - batches            (product.batch_ids, with herb + aggregator)
      - collections        (events feeding those batches, with collector + herb)
      - qualityTests       (by batch_id, with lab)
      - processingSteps    (by batch_id, with processor)

    The last three are independent and read concurrently. A failed branch
    leaves a gap in the result instead of failing the whole scan.
    """

    def __init__(self, store: RowStore, max_workers: int = 3):
        self.store = store
        self.max_workers = max(1, max_workers)

    # -------------------------
    # Public API
    # -------------------------
    def resolve(self, token: str) -> TraceResult:
        token = (token or "").strip()
        try:
            token_codec.decode(token)
        except MalformedToken as e:
            # unparseable and unregistered tokens look the same to a consumer
            raise NotFound("This QR code is not registered in our system.") from e

        product = self.store.select_one("products", {"qr_code": token}, relations=(MANUFACTURER,))
        if not product:
            raise NotFound("This QR code is not registered in our system.")
        product["manufacturer"] = _public_party(product.get("manufacturer"))

        batches = self._get_batches(product.get("batch_ids") or [])

        result = TraceResult(product=product, batches=batches)
        if not batches:
            return result

        branches: Dict[str, Callable[[], List[Dict[str, Any]]]] = {
            "collections": lambda: self._get_collections(batches),
            "qualityTests": lambda: self._get_quality_tests(batches),
            "processingSteps": lambda: self._get_processing_steps(batches),
        }

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = {pool.submit(fn): name for name, fn in branches.items()}
            for fut in as_completed(futures):
                name = futures[fut]
                try:
                    setattr(result, name, fut.result())
                except StoreError as e:
                    log.warning("trace for product %s is missing %s: %s", product.get("id"), name, e.message)
                    result.gaps.append(TraceGap(section=name, kind=e.kind, message=e.message))

        result.gaps.sort(key=lambda g: BRANCH_ORDER.index(g.section))
        return result

    # -------------------------
    # Reads
    # -------------------------
    def _get_batches(self, batch_ids: List[str]) -> List[Dict[str, Any]]:
        if not batch_ids:
            return []
        rows = self.store.select("batches", in_filters={"id": batch_ids}, relations=(HERB, AGGREGATOR))

        # keep the order the product lists them in
        position = {bid: i for i, bid in enumerate(batch_ids)}
        rows.sort(key=lambda b: position.get(b.get("id"), len(position)))
        for b in rows:
            b["aggregator"] = _public_party(b.get("aggregator"))
            b["badge"] = badge_for(b.get("batch_status"))
        return rows

    def _get_collections(self, batches: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Batches that list their collection_event_ids are matched exactly; the
        rest are matched by herb.
        """
        event_ids: List[str] = []
        herb_ids: List[str] = []
        for b in batches:
            linked = b.get("collection_event_ids") or []
            if linked:
                event_ids.extend(linked)
            elif b.get("herb_id"):
                herb_ids.append(b["herb_id"])

        rows: List[Dict[str, Any]] = []
        relations = (COLLECTOR_WITH_PROFILE, HERB)
        if event_ids:
            rows.extend(self.store.select("collection_events", in_filters={"id": list(dict.fromkeys(event_ids))},
                                          relations=relations))
        if herb_ids:
            rows.extend(self.store.select("collection_events", in_filters={"herb_id": list(dict.fromkeys(herb_ids))},
                                          relations=relations))

        seen = set()
        out: List[Dict[str, Any]] = []
        for ev in rows:
            if ev.get("id") in seen:
                continue
            seen.add(ev.get("id"))

            collector = ev.get("collectors")
            if collector:
                ev["collectors"] = {
                    "id": collector.get("id"),
                    "collector_type": collector.get("collector_type"),
                    "verification_status": collector.get("verification_status"),
                    "profiles": _public_party(collector.get("profiles")),
                }
            herb = ev.get("herbs") or {}
            if herb.get("conservation_status"):
                herb["badge"] = badge_for(herb["conservation_status"])
            if ev.get("initial_condition"):
                ev["badge"] = badge_for(ev["initial_condition"])
            out.append(ev)

        out.sort(key=lambda e: e.get("collection_timestamp") or "", reverse=True)
        return out

    def _get_quality_tests(self, batches: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        rows = self.store.select(
            "quality_tests",
            in_filters={"batch_id": [b["id"] for b in batches]},
            relations=(LAB,),
            order_by="test_date",
            descending=True,
        )
        for t in rows:
            t["lab"] = _public_party(t.get("lab"))
            t["badge"] = badge_for(t.get("test_status"))
        return rows

    def _get_processing_steps(self, batches: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        rows = self.store.select(
            "processing_steps",
            in_filters={"batch_id": [b["id"] for b in batches]},
            relations=(PROCESSOR,),
            order_by="process_date",
        )
        for s in rows:
            s["processor"] = _public_party(s.get("processor"))
        return rows
