from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field

from roadmaster.schemas.dto.base_dto import CamelDTO


class StructureCreateDTO(CamelDTO):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = Field(min_length=1)
    location: str = Field(min_length=1)
    type: Optional[str] = None
    status: Optional[str] = None
    chainage: Optional[str] = None
    subcontractor_id: Optional[str] = Field(default=None, alias="subcontractorId")
    components: List[Dict[str, Any]] = Field(min_length=1)
