# herbaltrace/services/admin/admin_service.py
from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Dict, Optional

from herbaltrace.constants import choices
from herbaltrace.constants.status_badges import badge_for
from herbaltrace.errors import Forbidden, NotFound
from herbaltrace.models.admin.admin_models import (
    ComplianceRuleCreateModel,
    HerbCreateModel,
    RuleActiveModel,
)
from herbaltrace.models.auth.auth_models import PortalContext
from herbaltrace.models.forms import parse_form, require_fields
from herbaltrace.row_store import RowStore
from herbaltrace.services.relations import HERB

log = logging.getLogger(__name__)


class AdminService:
    def __init__(self, store: RowStore):
        self.store = store

    def get_overview(self, ctx: PortalContext) -> Dict[str, Any]:
        self._require_admin(ctx)

        users = self.store.select("profiles", order_by="created_at", descending=True)
        herbs = self.store.select("herbs", order_by="created_at", descending=True)
        rules = self.store.select("compliance_rules", relations=(HERB,), order_by="created_at", descending=True)

        for h in herbs:
            if h.get("conservation_status"):
                h["badge"] = badge_for(h["conservation_status"])

        return {
            "ok": True,
            "users": users,
            "herbs": herbs,
            "complianceRules": rules,
            "stats": {
                "totalUsers": len(users),
                "totalHerbs": len(herbs),
                "totalRules": len(rules),
                "roleStats": dict(Counter(u.get("role") or "unknown" for u in users)),
            },
            "options": {
                "conservation_statuses": list(choices.CONSERVATION_STATUSES),
                "rule_types": list(choices.RULE_TYPES),
            },
        }

    def create_herb(self, ctx: PortalContext, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        self._require_admin(ctx)
        require_fields(data, "botanical_name", "local_name")
        form = parse_form(HerbCreateModel, data)

        herb = self.store.insert("herbs", form.model_dump())
        log.info("herb %s added (%s)", herb["id"], herb["botanical_name"])
        return herb

    def create_rule(self, ctx: PortalContext, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        self._require_admin(ctx)
        require_fields(data, "herb_id", "rule_type")
        form = parse_form(ComplianceRuleCreateModel, data)

        if not self.store.get("herbs", form.herb_id):
            raise NotFound("Herb not found")

        rule = self.store.insert("compliance_rules", form.model_dump())
        log.info("compliance rule %s (%s) added for herb %s", rule["id"], rule["rule_type"], rule["herb_id"])
        return rule

    def set_rule_active(self, ctx: PortalContext, rule_id: str, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        self._require_admin(ctx)
        form = parse_form(RuleActiveModel, data)

        rule = self.store.update("compliance_rules", rule_id, {"is_active": form.is_active})
        if rule is None:
            raise NotFound("Compliance rule not found")
        return rule

    @staticmethod
    def _require_admin(ctx: PortalContext) -> None:
        if ctx.role != "admin":
            raise Forbidden("Only admins can use the admin portal")
