# roadmaster/services/material_migration.py
"""
Folds the two pre-unification material collections (supplier deliveries in
`agencyMaterials` and warehouse rows in `inventory`) into `materials`.
"""
from typing import Any, Dict, List, Mapping, Optional, Tuple

from roadmaster.db.enums import AgencyMaterialStatus, MaterialStatus
from roadmaster.logger import get_logger
from roadmaster.services.record_normalizer import DEFAULT_REORDER_LEVEL, UNNAMED_ITEM
from roadmaster.utils.values import first_number, first_present, first_text, generate_id, num, today_iso

logger = get_logger(__name__)

AGENCY_TAG = "migrated-from-agency"
INVENTORY_TAG = "migrated-from-inventory"
INVENTORY_NOTE = "Migrated from legacy inventory system"

LOGISTICS_FIELDS = (
    "orderedDate", "expectedDeliveryDate", "deliveryDate", "deliveryLocation",
    "transportMode", "driverName", "vehicleNumber", "deliveryCharges", "taxAmount",
    "batchNumber", "expiryDate", "qualityCertification", "supplierInvoiceRef",
)


def _records(project: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    '''Mapping entries of project[key]; anything else is dropped with a warning.'''
    values = project.get(key) or []
    if not isinstance(values, list):
        logger.warning("Project %s: %s is not a list, ignored", project.get("id"), key)
        return []
    records = []
    for index, value in enumerate(values):
        if isinstance(value, Mapping):
            records.append(value)
        else:
            logger.warning("Project %s: %s[%d] is not a record, skipped", project.get("id"), key, index)
    return records


def _agency_status(status: Any) -> str:
    if status == AgencyMaterialStatus.RECEIVED.value:
        return MaterialStatus.AVAILABLE.value
    if status in (AgencyMaterialStatus.ORDERED.value, AgencyMaterialStatus.IN_TRANSIT.value):
        return MaterialStatus.LOW_STOCK.value
    return MaterialStatus.OUT_OF_STOCK.value


def _inventory_status(quantity, reorder_level) -> str:
    if quantity == 0:
        return MaterialStatus.OUT_OF_STOCK.value
    if quantity <= reorder_level:
        return MaterialStatus.LOW_STOCK.value
    return MaterialStatus.AVAILABLE.value


def _agency_name(project: Mapping[str, Any], agency_id: Any) -> Optional[str]:
    if agency_id is None:
        return None
    for agency in _records(project, "agencies"):
        if agency.get("id") == agency_id:
            return agency.get("name")
    return None


def agency_material_to_material(agency_material: Mapping[str, Any], project: Mapping[str, Any]) -> Dict[str, Any]:
    '''
    Supplier delivery -> Material, keeping supplier and logistics data.

    :param agency_material: one entry of project["agencyMaterials"]
    :param project: owning project, used to resolve the supplier name
    :return: Material dict tagged "migrated-from-agency"
    '''
    quantity = num(agency_material.get("quantity"))
    rate = num(agency_material.get("rate"))
    agency_id = agency_material.get("agencyId")

    material: Dict[str, Any] = {
        "id": generate_id("mat", unique_suffix=True),
        "name": first_text(agency_material, ("materialName", "name")),
        "description": first_text(agency_material, ("remarks",)),
        "category": "Supplier Material",
        "unit": first_text(agency_material, ("unit",)),
        "quantity": quantity,
        "availableQuantity": quantity,
        "unitCost": rate,
        "totalValue": first_number(agency_material, ("totalAmount",), quantity * rate),
        "reorderLevel": DEFAULT_REORDER_LEVEL,
        "location": first_text(agency_material, ("deliveryLocation",), "Warehouse"),
        "lastUpdated": first_text(agency_material, ("receivedDate",)) or today_iso(),
        "status": _agency_status(agency_material.get("status")),
        "supplierId": agency_id,
        "supplierName": _agency_name(project, agency_id),
        "supplierRate": rate,
        "criticality": "Medium",
        "notes": first_text(agency_material, ("remarks",)),
        "rateHistory": [],
        "tags": [AGENCY_TAG],
    }
    for field in LOGISTICS_FIELDS:
        material[field] = first_present(agency_material, (field,))
    return material


def inventory_item_to_material(inventory_item: Mapping[str, Any]) -> Dict[str, Any]:
    '''
    Warehouse row -> Material. Legacy inventory carries no prices, so cost
    fields are zero and supplier/logistics fields are empty.
    '''
    quantity = num(inventory_item.get("quantity"))
    reorder_level = first_number(inventory_item, ("reorderLevel",), 0) or DEFAULT_REORDER_LEVEL

    material: Dict[str, Any] = {
        "id": generate_id("mat", unique_suffix=True),
        "name": first_text(inventory_item, ("itemName", "name"), UNNAMED_ITEM),
        "description": INVENTORY_NOTE,
        "category": "General Inventory",
        "unit": first_text(inventory_item, ("unit",)),
        "quantity": quantity,
        "availableQuantity": first_number(inventory_item, ("currentQuantity",), quantity),
        "unitCost": 0,
        "totalValue": 0,
        "reorderLevel": reorder_level,
        "location": first_text(inventory_item, ("location",), "Warehouse"),
        "lastUpdated": first_text(inventory_item, ("lastUpdated",)) or today_iso(),
        "status": _inventory_status(quantity, reorder_level),
        "supplierId": None,
        "supplierName": None,
        "supplierRate": None,
        "criticality": "Medium",
        "notes": INVENTORY_NOTE,
        "rateHistory": [],
        "tags": [INVENTORY_TAG],
    }
    for field in LOGISTICS_FIELDS:
        material[field] = None
    return material


def _dedupe_by_name_and_unit(materials: List[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    '''First occurrence of every (name, unit) pair wins.'''
    seen: set[Tuple[Any, Any]] = set()
    unique = []
    for material in materials:
        key = (material.get("name"), material.get("unit"))
        if key in seen:
            continue
        seen.add(key)
        unique.append(material)
    return unique


def migrate_material_data(project: Mapping[str, Any]) -> Dict[str, Any]:
    '''
    Merge agency materials and inventory items into project["materials"].

    Steps:
    1) existing materials, untouched
    2) agency materials mapped to Material
    3) inventory items mapped to Material
    4) concatenate 1 + 2 + 3 and keep the first (name, unit) occurrence, so
       existing beats agency beats inventory on collisions

    The input project is not modified; only `materials` differs in the result.
    '''
    existing = _records(project, "materials")
    from_agency = [
        agency_material_to_material(agency_material, project)
        for agency_material in _records(project, "agencyMaterials")
    ]
    from_inventory = [
        inventory_item_to_material(item)
        for item in _records(project, "inventory")
    ]

    merged = _dedupe_by_name_and_unit(existing + from_agency + from_inventory)

    logger.info(
        "Project %s: material migration kept %d of %d (existing=%d, agency=%d, inventory=%d)",
        project.get("id"), len(merged),
        len(existing) + len(from_agency) + len(from_inventory),
        len(existing), len(from_agency), len(from_inventory),
    )

    return {**project, "materials": merged}


def prepare_project_with_materials(project: Mapping[str, Any]) -> Mapping[str, Any]:
    '''
    Load-time hook: migrate only when the project has no materials yet.
    A project with at least one material is returned as-is.
    '''
    if project.get("materials"):
        return project
    return migrate_material_data(project)
