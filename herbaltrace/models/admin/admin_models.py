# herbaltrace/models/admin/admin_models.py
from typing import Any, Dict, List, Optional

from pydantic import Field, ValidationInfo, field_validator

from herbaltrace.errors import MalformedJSON
from herbaltrace.models.forms import FormModel, parse_json_object, split_csv


class HerbCreateModel(FormModel):
    botanical_name: str = Field(..., min_length=1)
    local_name: str = Field(..., min_length=1)
    plant_family: Optional[str] = None
    conservation_status: Optional[str] = None

    # typed into the form as comma separated text
    approved_regions: Optional[List[str]] = None
    medicinal_properties: Optional[List[str]] = None
    harvest_season: Optional[List[str]] = None

    @field_validator("approved_regions", "medicinal_properties", "harvest_season", mode="before")
    @classmethod
    def _csv(cls, v: Any):
        return split_csv(v)

    @field_validator("plant_family", "conservation_status")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]):
        return v or None


class ComplianceRuleCreateModel(FormModel):
    herb_id: str = Field(..., min_length=1)
    rule_type: str = Field(..., min_length=1)
    rule_parameters: Dict[str, Any]
    is_active: bool = True

    @field_validator("rule_parameters", mode="before")
    @classmethod
    def _json_payload(cls, v: Any, info: ValidationInfo):
        parsed = parse_json_object(v, info.field_name, empty=None)
        if parsed is None:
            raise MalformedJSON("rule_parameters is required", field=info.field_name)
        return parsed


class RuleActiveModel(FormModel):
    is_active: bool
