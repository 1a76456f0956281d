# roadmaster/services/resource_service.py
from typing import Any, Dict, List, Mapping, Optional

from roadmaster.db.enums import MaterialStatus
from roadmaster.logger import get_logger
from roadmaster.services.material_migration import LOGISTICS_FIELDS
from roadmaster.services.project_service import ProjectService
from roadmaster.services.record_normalizer import DEFAULT_REORDER_LEVEL
from roadmaster.utils.values import generate_id, num, to_number, today_iso

logger = get_logger(__name__)

SUPPLIER_FIELDS = ("supplierId", "supplierName", "supplierRate")

# owned by the work-log ledger
BOQ_LEDGER_FIELDS = ("completedQuantity",)


def material_status(available_quantity: Any, reorder_level: Any) -> str:
    '''Out of Stock at 0, Low Stock at or under the reorder level, otherwise Available.'''
    available = num(available_quantity)
    if available == 0:
        return MaterialStatus.OUT_OF_STOCK.value
    if available <= num(reorder_level, DEFAULT_REORDER_LEVEL):
        return MaterialStatus.LOW_STOCK.value
    return MaterialStatus.AVAILABLE.value


def _index_of(rows: List[Any], row_id: str) -> int:
    for index, row in enumerate(rows):
        if isinstance(row, Mapping) and row.get("id") == row_id:
            return index
    return -1


class ResourceService:
    """
    BOQ lines and the unified material register of a project.
    """

    def __init__(self, project_service: ProjectService):
        self.project_service = project_service

    # =========
    # BOQ
    # =========
    def add_boq_item(self, project_id: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        '''
        Append a BOQ line. amount = quantity * rate, progress starts at 0.

        :param project_id: project id
        :type project_id: str
        :param data: description, quantity and rate are required
        :type data: Mapping[str, Any]
        :return: the new BOQ item
        :rtype: Dict[str, Any]
        '''
        quantity = to_number(data.get("quantity"))
        rate = to_number(data.get("rate"))
        if not str(data.get("description") or "").strip() or quantity is None or rate is None:
            raise ValueError("BOQ item needs description, quantity and rate")

        project = self.project_service.load_project(project_id)
        boq = list(project.get("boq") or [])
        item = {
            "id": generate_id("boq", unique_suffix=True),
            "itemNo": data.get("itemNo") or f"ITEM-{len(boq) + 1}",
            "description": data["description"],
            "unit": data.get("unit") or "unit",
            "quantity": quantity,
            "rate": rate,
            "amount": quantity * rate,
            "location": data.get("location") or "N/A",
            "category": data.get("category") or "General",
            "completedQuantity": 0,
            "variationQuantity": 0,
        }
        self.project_service.on_project_update({**project, "boq": boq + [item]})
        logger.info("Project %s: BOQ item %s added", project_id, item["id"])
        return item

    def edit_boq_item(self, project_id: str, item_id: str, changes: Mapping[str, Any]) -> Dict[str, Any]:
        '''
        Edit a BOQ line and recompute its amount. completedQuantity only
        moves with work logs, so it is ignored here.
        '''
        project = self.project_service.load_project(project_id)
        boq = list(project.get("boq") or [])
        index = _index_of(boq, item_id)
        if index < 0:
            raise ValueError("BOQ item not found")

        changes = {k: v for k, v in changes.items() if k not in BOQ_LEDGER_FIELDS}
        item = {**boq[index], **changes, "id": item_id}
        for field in ("quantity", "rate", "variationQuantity"):
            if field in changes:
                item[field] = num(changes[field])
        item["amount"] = num(item.get("quantity")) * num(item.get("rate"))
        boq[index] = item
        self.project_service.on_project_update({**project, "boq": boq})
        return item

    def delete_boq_item(self, project_id: str, item_id: str) -> Dict[str, Any]:
        '''Drop a BOQ line. Work logs keep their boqItemId and are skipped later.'''
        project = self.project_service.load_project(project_id)
        boq = list(project.get("boq") or [])
        index = _index_of(boq, item_id)
        if index < 0:
            raise ValueError("BOQ item not found")
        del boq[index]
        logger.info("Project %s: BOQ item %s deleted", project_id, item_id)
        return self.project_service.on_project_update({**project, "boq": boq})

    # =========
    # Materials
    # =========
    def save_material(
        self,
        project_id: str,
        data: Mapping[str, Any],
        material_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        '''
        Create a material, or update `material_id` when given.
        totalValue, availableQuantity and status are derived on every write.

        :param project_id: project id
        :param data: material form; name and unit are required
        :param material_id: existing material to update
        :return: the stored material
        '''
        if not str(data.get("name") or "").strip() or not str(data.get("unit") or "").strip():
            raise ValueError("Material name and unit are required")

        project = self.project_service.load_project(project_id)
        materials = list(project.get("materials") or [])
        index = _index_of(materials, material_id) if material_id else -1
        if material_id and index < 0:
            raise ValueError("Material not found")
        existing: Mapping[str, Any] = materials[index] if index >= 0 else {}

        quantity = num(data.get("quantity"))
        unit_cost = num(data.get("unitCost"), num(existing.get("unitCost")))
        available = to_number(data.get("availableQuantity"))
        available = quantity if available is None else available
        reorder_level = num(data.get("reorderLevel")) or num(existing.get("reorderLevel")) or DEFAULT_REORDER_LEVEL

        material = {
            **existing,
            **dict(data),
            "id": material_id or generate_id("mat", unique_suffix=True),
            "quantity": quantity,
            "availableQuantity": available,
            "unitCost": unit_cost,
            "totalValue": quantity * unit_cost,
            "reorderLevel": reorder_level,
            "location": data.get("location") or existing.get("location") or "Warehouse",
            "criticality": data.get("criticality") or existing.get("criticality") or "Medium",
            "status": material_status(available, reorder_level),
            "lastUpdated": today_iso(),
            "rateHistory": list(existing.get("rateHistory") or data.get("rateHistory") or []),
        }
        for field in LOGISTICS_FIELDS + SUPPLIER_FIELDS:
            material.setdefault(field, None)

        if index >= 0:
            materials[index] = material
        else:
            materials.append(material)
        self.project_service.on_project_update({**project, "materials": materials})
        logger.info("Project %s: material %s saved (%s)", project_id, material["id"], material["status"])
        return material

    def delete_material(self, project_id: str, material_id: str) -> Dict[str, Any]:
        project = self.project_service.load_project(project_id)
        materials = list(project.get("materials") or [])
        index = _index_of(materials, material_id)
        if index < 0:
            raise ValueError("Material not found")
        del materials[index]
        return self.project_service.on_project_update({**project, "materials": materials})

    def record_supplier_rate(
        self,
        project_id: str,
        material_id: str,
        *,
        supplier_id: str,
        rate: Any,
        effective_date: Optional[str] = None,
        description: str = "",
    ) -> Dict[str, Any]:
        '''
        Append a rate to the material's history and make it the current
        supplier rate.

        :return: the updated material
        '''
        rate_value = to_number(rate)
        if not supplier_id or rate_value is None or rate_value <= 0:
            raise ValueError("Supplier and a positive rate are required")

        project = self.project_service.load_project(project_id)
        materials = list(project.get("materials") or [])
        index = _index_of(materials, material_id)
        if index < 0:
            raise ValueError("Material not found")

        entry = {
            "id": generate_id("rate", unique_suffix=True),
            "materialId": material_id,
            "supplierId": supplier_id,
            "rate": rate_value,
            "effectiveDate": effective_date or today_iso(),
            "description": description or "",
            "status": "Active",
        }
        material = {
            **materials[index],
            "rateHistory": list(materials[index].get("rateHistory") or []) + [entry],
            "supplierId": supplier_id,
            "supplierRate": rate_value,
            "lastUpdated": today_iso(),
        }
        materials[index] = material
        self.project_service.on_project_update({**project, "materials": materials})
        return material
