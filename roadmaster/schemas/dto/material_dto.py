from typing import List, Optional

from pydantic import ConfigDict, Field

from roadmaster.schemas.dto.base_dto import CamelDTO


class MaterialSaveDTO(CamelDTO):
    # logistics / supplier fields pass through untouched
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = Field(min_length=1)
    unit: str = Field(min_length=1)
    quantity: float = Field(default=0, ge=0)
    available_quantity: Optional[float] = Field(default=None, alias="availableQuantity", ge=0)
    unit_cost: Optional[float] = Field(default=None, alias="unitCost", ge=0)
    reorder_level: Optional[float] = Field(default=None, alias="reorderLevel", ge=0)
    max_stock_level: Optional[float] = Field(default=None, alias="maxStockLevel")

    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    criticality: Optional[str] = None
    notes: Optional[str] = None
    tags: List[str] = []


class SupplierRateDTO(CamelDTO):
    supplier_id: str = Field(alias="supplierId", min_length=1)
    rate: float = Field(gt=0)
    effective_date: Optional[str] = Field(default=None, alias="effectiveDate")
    description: str = ""
