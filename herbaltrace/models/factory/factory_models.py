# herbaltrace/models/factory/factory_models.py
from typing import Any, Dict, Optional

from pydantic import Field, ValidationInfo, field_validator

from herbaltrace.models.forms import FormModel, parse_json_object


class ProcessingStepCreateModel(FormModel):
    batch_id: str = Field(..., min_length=1)
    process_type: str = Field(..., min_length=1)
    input_quantity_kg: float = Field(..., gt=0)

    process_parameters: Dict[str, Any] = Field(default_factory=dict)
    process_conditions: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("process_parameters", "process_conditions", mode="before")
    @classmethod
    def _json_payload(cls, v: Any, info: ValidationInfo):
        return parse_json_object(v, info.field_name, empty={})


class StepCompleteModel(FormModel):
    output_quantity_kg: float = Field(..., ge=0)


class ProductCreateModel(FormModel):
    product_name: str = Field(..., min_length=1)
    product_type: Optional[str] = None
    final_quantity: int = Field(..., gt=0)
    unit_type: Optional[str] = None

    formulation_details: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("formulation_details", mode="before")
    @classmethod
    def _json_payload(cls, v: Any, info: ValidationInfo):
        return parse_json_object(v, info.field_name, empty={})
