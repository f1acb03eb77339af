# herbaltrace/services/factory/factory_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from herbaltrace.constants import choices
from herbaltrace.constants.status_badges import badge_for
from herbaltrace.errors import DuplicateRow, Forbidden, NotFound, QRCollision, ValidationError
from herbaltrace.models.auth.auth_models import PortalContext
from herbaltrace.models.factory.factory_models import (
    ProcessingStepCreateModel,
    ProductCreateModel,
    StepCompleteModel,
)
from herbaltrace.models.forms import parse_form, require_fields
from herbaltrace.qr import token_codec
from herbaltrace.row_store import RowStore, new_id, utc_now_iso
from herbaltrace.services.relations import BATCH_WITH_HERB, HERB

log = logging.getLogger(__name__)

PRODUCT_CODE_PREFIX = "PROD_"


def new_product_code() -> str:
    # ObjectId: timestamp + random + counter, so codes are time-ordered and never repeat per process
    return f"{PRODUCT_CODE_PREFIX}{new_id()}"


class FactoryService:
    def __init__(self, store: RowStore):
        self.store = store

    # -------------------------
    # Reads
    # -------------------------
    def list_available_batches(self) -> List[Dict[str, Any]]:
        """Batches the lab has approved; nothing else is visible to processing."""
        batches = self.store.select(
            "batches",
            {"batch_status": "approved"},
            relations=(HERB,),
            order_by="creation_timestamp",
            descending=True,
        )
        for b in batches:
            b["badge"] = badge_for(b.get("batch_status"))
        return batches

    def list_steps(self, ctx: PortalContext) -> List[Dict[str, Any]]:
        return self.store.select(
            "processing_steps",
            {"processor_id": ctx.profile_id},
            relations=(BATCH_WITH_HERB,),
            order_by="process_date",
            descending=True,
        )

    def get_dashboard(self, ctx: PortalContext) -> Dict[str, Any]:
        self._require_factory(ctx)
        steps = self.list_steps(ctx)
        return {
            "ok": True,
            "availableBatches": self.list_available_batches(),
            "processingSteps": steps,
            "completedBatchIds": self._completed_batch_ids(steps),
            "products": self.store.select(
                "products", {"manufacturer_id": ctx.profile_id}, order_by="created_at", descending=True
            ),
            "options": {
                "product_types": list(choices.PRODUCT_TYPES),
                "unit_types": list(choices.UNIT_TYPES),
            },
        }

    # -------------------------
    # Processing steps
    # -------------------------
    def create_step(self, ctx: PortalContext, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        self._require_factory(ctx)
        require_fields(data, "batch_id", "process_type", "input_quantity_kg")
        form = parse_form(ProcessingStepCreateModel, data)

        batch = self.store.get("batches", form.batch_id)
        if not batch or batch.get("batch_status") != "approved":
            raise NotFound("Batch not available for processing")

        row = {
            **form.model_dump(),
            "processor_id": ctx.profile_id,
            "output_quantity_kg": None,
            "process_date": utc_now_iso(),
            "completion_date": None,
        }
        step = self.store.insert("processing_steps", row)
        log.info("processing step %s created on batch %s", step["id"], form.batch_id)
        return step

    def complete_step(self, ctx: PortalContext, step_id: str, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        self._require_factory(ctx)
        require_fields(data, "output_quantity_kg")
        form = parse_form(StepCompleteModel, data)

        step = self.store.get("processing_steps", step_id)
        if not step or step.get("processor_id") != ctx.profile_id:
            raise NotFound("Processing step not found")
        if step.get("completion_date"):
            raise ValidationError("Processing step is already completed")

        updated = self.store.update(
            "processing_steps",
            step_id,
            {"output_quantity_kg": form.output_quantity_kg, "completion_date": utc_now_iso()},
            guard={"processor_id": ctx.profile_id, "completion_date": None},
        )
        if updated is None:
            raise ValidationError("Processing step is already completed")
        return updated

    # -------------------------
    # Products
    # -------------------------
    def create_product(self, ctx: PortalContext, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        self._require_factory(ctx)
        require_fields(data, "product_name", "final_quantity")
        form = parse_form(ProductCreateModel, data)

        completed = self._completed_batch_ids(self.list_steps(ctx))
        requested = (data or {}).get("batch_ids")
        if requested:
            if not isinstance(requested, list):
                raise ValidationError("batch_ids must be a list")
            unknown = [b for b in requested if b not in completed]
            if unknown:
                raise ValidationError("Only batches with completed processing can go into a product", batch_ids=unknown)
            batch_ids = list(dict.fromkeys(requested))
        else:
            batch_ids = completed

        if not batch_ids:
            raise ValidationError("Complete at least one processing step before creating a product")

        product_code = new_product_code()
        qr_code = token_codec.encode({"type": "product", "productId": product_code, "batchIds": batch_ids})

        row = {
            "manufacturer_id": ctx.profile_id,
            "product_code": product_code,
            **form.model_dump(),
            "batch_ids": batch_ids,
            "qr_code": qr_code,
        }
        try:
            product = self.store.insert("products", row)
        except DuplicateRow as e:
            log.error("QR collision on product code %s", product_code)
            raise QRCollision("A product with this QR code already exists", product_code=product_code) from e

        log.info("product %s created from %d batches", product_code, len(batch_ids))
        return product

    @staticmethod
    def _completed_batch_ids(steps: List[Dict[str, Any]]) -> List[str]:
        # oldest first, so product batch order follows processing order
        done = sorted((s for s in steps if s.get("completion_date")), key=lambda s: s.get("completion_date") or "")
        return list(dict.fromkeys(s["batch_id"] for s in done if s.get("batch_id")))

    @staticmethod
    def _require_factory(ctx: PortalContext) -> None:
        if ctx.role != "factory":
            raise Forbidden("Only factories can use the factory portal")
