# herbaltrace/models/collector/collection_models.py
from typing import Any, Dict, Optional

from pydantic import Field, ValidationInfo, field_validator

from herbaltrace.models.forms import FormModel, parse_json_object


class CollectionCreateModel(FormModel):
    herb_id: str = Field(..., min_length=1)
    quantity_kg: float = Field(..., gt=0)

    # GPS fix from the collector's device
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    plant_part: Optional[str] = None
    harvest_season: Optional[str] = None
    initial_condition: Optional[str] = None

    environmental_data: Optional[Dict[str, Any]] = None
    storage_conditions: Optional[Dict[str, Any]] = None

    @field_validator("environmental_data", "storage_conditions", mode="before")
    @classmethod
    def _json_payload(cls, v: Any, info: ValidationInfo):
        return parse_json_object(v, info.field_name, empty=None)
