from typing import Optional

from pydantic import Field

from roadmaster.schemas.dto.base_dto import CamelDTO


class BOQItemCreateDTO(CamelDTO):
    description: str = Field(min_length=1)
    quantity: float = Field(ge=0)
    rate: float = Field(ge=0)

    item_no: Optional[str] = Field(default=None, alias="itemNo")
    unit: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
