# herbaltrace/services/lab/quality_test_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from herbaltrace.constants import choices
from herbaltrace.constants.status_badges import badge_for
from herbaltrace.errors import Forbidden, NotFound, ValidationError
from herbaltrace.models.auth.auth_models import PortalContext
from herbaltrace.models.forms import parse_form
from herbaltrace.models.lab.quality_test_models import LabResultsModel
from herbaltrace.row_store import RowStore, utc_now_iso
from herbaltrace.services.relations import BATCH_WITH_HERB

log = logging.getLogger(__name__)


class QualityTestService:
    """
    Lab side of quality testing. A test is finalized exactly once:
    pending -> completed, with results and completion_date written together.
    """

    def __init__(self, store: RowStore):
        self.store = store

    def list_tests(self, ctx: PortalContext) -> List[Dict[str, Any]]:
        self._require_lab(ctx)
        tests = self.store.select(
            "quality_tests",
            {"lab_id": ctx.profile_id},
            relations=(BATCH_WITH_HERB,),
            order_by="test_date",
            descending=True,
        )
        for t in tests:
            t["badge"] = badge_for(t.get("test_status"))
        return tests

    def get_dashboard(self, ctx: PortalContext) -> Dict[str, Any]:
        tests = self.list_tests(ctx)
        return {
            "ok": True,
            "qualityTests": tests,
            "pendingCount": sum(1 for t in tests if t.get("test_status") == "pending"),
            "options": {"grades": dict(choices.LAB_GRADES)},
        }

    def submit_results(self, ctx: PortalContext, test_id: str, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        self._require_lab(ctx)
        results = parse_form(LabResultsModel, data).model_dump()

        test = self.store.get("quality_tests", test_id)
        if not test or test.get("lab_id") != ctx.profile_id:
            raise NotFound("Quality test not found")
        if test.get("test_status") != "pending":
            raise ValidationError("Test results have already been finalized")

        updated = self.store.update(
            "quality_tests",
            test_id,
            {
                "test_results": results,
                "test_status": "completed",
                "completion_date": utc_now_iso(),
            },
            guard={"test_status": "pending", "lab_id": ctx.profile_id},
        )
        if updated is None:
            # finalized by a concurrent request between the read and the write
            raise ValidationError("Test results have already been finalized")

        log.info("quality test %s completed by lab %s", test_id, ctx.profile_id)
        return updated

    @staticmethod
    def _require_lab(ctx: PortalContext) -> None:
        if ctx.role != "lab":
            raise Forbidden("Only labs can use the lab portal")
