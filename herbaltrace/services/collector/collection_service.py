# herbaltrace/services/collector/collection_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from herbaltrace.constants import choices
from herbaltrace.constants.status_badges import badge_for
from herbaltrace.errors import Forbidden, NotFound, ValidationError
from herbaltrace.models.auth.auth_models import PortalContext
from herbaltrace.models.collector.collection_models import CollectionCreateModel
from herbaltrace.models.forms import parse_form, require_fields
from herbaltrace.row_store import RowStore, utc_now_iso
from herbaltrace.services.relations import HERB

log = logging.getLogger(__name__)


class CollectorService:
    def __init__(self, store: RowStore):
        self.store = store

    # -------------------------
    # Reads
    # -------------------------
    def get_collector(self, ctx: PortalContext) -> Optional[Dict[str, Any]]:
        return self.store.select_one("collectors", {"profile_id": ctx.profile_id})

    def get_dashboard(self, ctx: PortalContext) -> Dict[str, Any]:
        self._require_collector_role(ctx)

        collector = self.get_collector(ctx)
        herbs = self.store.select("herbs", order_by="botanical_name")

        events = []
        if collector:
            collector["badge"] = badge_for(collector.get("verification_status"))
            events = self.store.select(
                "collection_events",
                {"collector_id": collector["id"]},
                relations=(HERB,),
                order_by="collection_timestamp",
                descending=True,
            )

        return {
            "ok": True,
            "collector": collector,
            "herbs": herbs,
            "collectionEvents": events,
            "options": {
                "plant_parts": list(choices.PLANT_PARTS),
                "harvest_seasons": list(choices.HARVEST_SEASONS),
                "initial_conditions": list(choices.INITIAL_CONDITIONS),
            },
        }

    # -------------------------
    # Writes
    # -------------------------
    def create_collector_profile(self, ctx: PortalContext) -> Dict[str, Any]:
        self._require_collector_role(ctx)
        if self.get_collector(ctx):
            raise ValidationError("Collector profile already exists")

        row = {
            "profile_id": ctx.profile_id,
            "collector_type": "farmer" if ctx.role == "farmer" else "wild_collector",
            "verification_status": "pending",
            "aadhaar_id": ctx.profile.get("aadhaar_id"),
            "cooperative_id": ctx.profile.get("cooperative_group"),
        }
        collector = self.store.insert("collectors", row)
        log.info("collector %s created for profile %s", collector["id"], ctx.profile_id)
        return collector

    def record_collection(self, ctx: PortalContext, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        self._require_collector_role(ctx)

        # local checks first: nothing reaches the store with a half-filled form
        require_fields(data, "herb_id", "quantity_kg")
        if (data or {}).get("latitude") in (None, "") or (data or {}).get("longitude") in (None, ""):
            raise ValidationError("Location is not available. Please enable location services.")
        form = parse_form(CollectionCreateModel, data)

        collector = self.get_collector(ctx)
        if not collector:
            raise ValidationError("Create a collector profile before recording collections")

        if not self.store.get("herbs", form.herb_id):
            raise NotFound("Herb not found")

        row = {
            "collector_id": collector["id"],
            **form.model_dump(),
            "collection_timestamp": utc_now_iso(),
        }
        event = self.store.insert("collection_events", row)
        log.info("collection event %s recorded by collector %s", event["id"], collector["id"])
        return event

    @staticmethod
    def _require_collector_role(ctx: PortalContext) -> None:
        if not ctx.is_collector:
            raise Forbidden("Only farmers and wild collectors can use the collector portal")
