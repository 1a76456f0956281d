from typing import Any, Dict, Optional

from pydantic import Field

from roadmaster.schemas.dto.base_dto import CamelDTO


class WorkLogCreateDTO(CamelDTO):
    structure_id: str = Field(alias="structureId", min_length=1)
    component_id: str = Field(alias="componentId", min_length=1)
    quantity: float = Field(gt=0)

    boq_item_id: Optional[str] = Field(default=None, alias="boqItemId")
    date: Optional[str] = None
    rate: float = 0
    subcontractor_id: Optional[str] = Field(default=None, alias="subcontractorId")
    remarks: str = ""
    rfi_id: Optional[str] = Field(default=None, alias="rfiId")
    lab_test_id: Optional[str] = Field(default=None, alias="labTestId")

    def to_service_kwargs(self) -> Dict[str, Any]:
        return {
            "structure_id": self.structure_id,
            "component_id": self.component_id,
            "quantity": self.quantity,
            "boq_item_id": self.boq_item_id or None,
            "date": self.date,
            "rate": self.rate,
            "subcontractor_id": self.subcontractor_id,
            "remarks": self.remarks,
            "rfi_id": self.rfi_id,
            "lab_test_id": self.lab_test_id,
        }
