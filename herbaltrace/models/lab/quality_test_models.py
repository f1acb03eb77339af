# herbaltrace/models/lab/quality_test_models.py
from typing import Optional

from herbaltrace.models.forms import FormModel


class LabResultsModel(FormModel):
    moisture_content: Optional[str] = ""
    pesticide_residue: Optional[str] = ""
    heavy_metals: Optional[str] = ""
    microbial_count: Optional[str] = ""
    dna_barcode: Optional[str] = ""
    overall_grade: Optional[str] = ""
    notes: Optional[str] = ""
