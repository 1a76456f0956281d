# roadmaster/services/record_normalizer.py
"""
Normalizers that lift legacy resource records into the unified shapes.

Every normalizer is total: it accepts anything, never raises, and falls back
to a default for each field it cannot read. Keys it does not know about are
copied onto the result after the canonical fields, so unknown data survives
the round trip.

auto_migrate_resource(), the normalize_* batch helpers and
validate_migration() are the public entry points for callers outside the
material migration.
"""
from typing import Any, Dict, Iterable, List, Mapping

from roadmaster.db.enums import RecordShape
from roadmaster.services.legacy_detector import classify_record
from roadmaster.utils.values import (
    first_number,
    first_present,
    first_text,
    generate_id,
    to_number,
    today_iso,
)

UNNAMED_MATERIAL = "Unnamed Material"
UNNAMED_ITEM = "Unnamed Item"
DEFAULT_REORDER_LEVEL = 10

BASE_RESOURCE_FIELDS = ("id", "name", "unit", "quantity", "location", "status", "lastUpdated")

MATERIAL_FIELDS = (
    "id", "name", "description", "category", "unit", "quantity", "availableQuantity",
    "unitCost", "totalValue", "reorderLevel", "maxStockLevel", "location",
    "lastUpdated", "status", "criticality", "leadTime", "notes", "tags", "rateHistory",
)

VEHICLE_FIELDS = (
    "id", "name", "description", "category", "unit", "quantity", "location",
    "status", "lastUpdated", "plateNumber", "type", "driver", "agencyId",
    "gpsLocation", "chainage", "geofenceStatus", "lastKnownLocation",
)

INVENTORY_FIELDS = (
    "id", "name", "itemName", "description", "category", "unit", "quantity",
    "reorderLevel", "location", "status", "lastUpdated", "requiredQuantity",
    "receivedQuantity", "currentQuantity",
)

AGENCY_MATERIAL_FIELDS = (
    "id", "name", "description", "category", "unit", "quantity", "location",
    "status", "lastUpdated", "agencyId", "materialName", "rate", "totalAmount",
    "receivedDate", "invoiceNumber", "remarks", "orderedDate", "expectedDeliveryDate",
    "deliveryLocation", "transportMode", "deliveryCharges", "taxAmount",
    "batchNumber", "expiryDate", "qualityCertification", "supplierInvoiceRef",
)

# optional agency fields copied verbatim when present
_AGENCY_PASSTHROUGH = (
    "agencyId", "invoiceNumber", "orderedDate", "expectedDeliveryDate",
    "deliveryLocation", "transportMode", "batchNumber", "expiryDate",
    "qualityCertification", "supplierInvoiceRef",
)


def _as_record(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _set_optional(result: Dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        result[key] = value


def _merge_extras(result: Dict[str, Any], legacy: Mapping[str, Any], canonical: Iterable[str]) -> Dict[str, Any]:
    canonical_keys = set(canonical)
    for key, value in legacy.items():
        if key in canonical_keys or key in result:
            continue
        result[key] = value
    return result


def normalize_material(legacy: Any) -> Dict[str, Any]:
    '''
    Legacy material -> Material.

    :param legacy: loosely-typed material record
    :return: canonical Material dict
    '''
    record = _as_record(legacy)

    quantity = first_number(record, ("quantity", "totalQuantity"), 0)
    unit_cost = first_number(record, ("unitCost", "unitPrice", "rate"), 0)
    supplied_total = to_number(record.get("totalValue"))

    result: Dict[str, Any] = {
        "id": first_text(record, ("id",)) or generate_id("mat"),
        "name": first_text(record, ("name", "itemName", "description"), UNNAMED_MATERIAL),
        "description": first_text(record, ("description", "remarks", "itemDescription")),
        "category": first_text(record, ("category", "type"), "General"),
        "unit": first_text(record, ("unit",), "unit"),
        "quantity": quantity,
        "availableQuantity": first_number(record, ("availableQuantity", "availableQty"), quantity),
        "unitCost": unit_cost,
        "totalValue": supplied_total if supplied_total is not None else quantity * unit_cost,
        "reorderLevel": first_number(record, ("reorderLevel",), DEFAULT_REORDER_LEVEL),
        "location": first_text(record, ("location",), "Warehouse"),
        "lastUpdated": first_text(record, ("lastUpdated",)) or today_iso(),
        "status": first_text(record, ("status",), "Available"),
        "criticality": first_text(record, ("criticality",), "Medium"),
        "notes": first_text(record, ("notes", "remarks")),
        "tags": list(record["tags"]) if isinstance(record.get("tags"), list) else [],
        "rateHistory": list(record["rateHistory"]) if isinstance(record.get("rateHistory"), list) else [],
    }
    _set_optional(result, "maxStockLevel", to_number(record.get("maxStockLevel")))
    _set_optional(result, "leadTime", to_number(record.get("leadTime")))

    return _merge_extras(result, record, MATERIAL_FIELDS)


def normalize_vehicle(legacy: Any) -> Dict[str, Any]:
    '''Legacy vehicle / fleet entry -> Vehicle.'''
    record = _as_record(legacy)

    plate_number = first_text(record, ("plateNumber",))
    vehicle_type = first_text(record, ("type",))
    fallback_name = f"{plate_number or 'Vehicle'} - {vehicle_type or 'Unknown'}"

    result: Dict[str, Any] = {
        "id": first_text(record, ("id",)) or generate_id("veh"),
        "name": first_text(record, ("name",), fallback_name),
        "description": first_text(record, ("description", "type")),
        "category": first_text(record, ("category", "type"), "Vehicle"),
        "unit": "unit",
        "quantity": first_number(record, ("quantity",), 1),
        "location": first_text(record, ("location",), "Site"),
        "status": first_text(record, ("status",), "Active"),
        "lastUpdated": first_text(record, ("lastUpdated",)) or today_iso(),
        "plateNumber": plate_number,
        "type": vehicle_type or "General",
        "driver": first_text(record, ("driver",)),
    }
    for key in ("agencyId", "gpsLocation", "chainage", "geofenceStatus", "lastKnownLocation"):
        _set_optional(result, key, record.get(key))

    return _merge_extras(result, record, VEHICLE_FIELDS)


def normalize_inventory_item(legacy: Any) -> Dict[str, Any]:
    '''Legacy inventory row -> InventoryItem, with `name` and `itemName` aligned.'''
    record = _as_record(legacy)

    name = first_text(record, ("name", "itemName", "description"), UNNAMED_ITEM)

    result: Dict[str, Any] = {
        "id": first_text(record, ("id",)) or generate_id("inv"),
        "name": name,
        "itemName": first_text(record, ("itemName", "name"), name),
        "description": first_text(record, ("description", "remarks", "itemDescription")),
        "category": first_text(record, ("category",), "General"),
        "unit": first_text(record, ("unit",), "unit"),
        "quantity": first_number(record, ("quantity", "totalQuantity"), 0),
        "reorderLevel": first_number(record, ("reorderLevel",), DEFAULT_REORDER_LEVEL),
        "location": first_text(record, ("location",), "Warehouse"),
        "status": first_text(record, ("status",), "Available"),
        "lastUpdated": first_text(record, ("lastUpdated",)) or today_iso(),
    }
    for key in ("requiredQuantity", "receivedQuantity", "currentQuantity"):
        _set_optional(result, key, to_number(record.get(key)))

    return _merge_extras(result, record, INVENTORY_FIELDS)


def normalize_agency_material(legacy: Any) -> Dict[str, Any]:
    '''Legacy supplier delivery -> AgencyMaterial.'''
    record = _as_record(legacy)

    quantity = first_number(record, ("quantity", "totalQuantity"), 0)
    rate = first_number(record, ("rate", "unitPrice", "unitCost"), 0)
    supplied_total = to_number(record.get("totalAmount"))

    result: Dict[str, Any] = {
        "id": first_text(record, ("id",)) or generate_id("mat"),
        "name": first_text(record, ("name", "materialName", "description"), UNNAMED_MATERIAL),
        "description": first_text(record, ("description", "remarks")),
        "category": first_text(record, ("category",), "Agency Material"),
        "unit": first_text(record, ("unit",), "unit"),
        "quantity": quantity,
        "location": first_text(record, ("location", "deliveryLocation"), "Vendor"),
        "status": first_text(record, ("status",), "Ordered"),
        "lastUpdated": first_text(record, ("lastUpdated",)) or today_iso(),
        "materialName": first_text(record, ("materialName", "name")),
        "rate": rate,
        "totalAmount": supplied_total if supplied_total is not None else quantity * rate,
        "receivedDate": first_text(record, ("receivedDate",)) or today_iso(),
        "remarks": first_text(record, ("remarks", "description")),
        "deliveryCharges": first_number(record, ("deliveryCharges",), 0),
        "taxAmount": first_number(record, ("taxAmount",), 0),
    }
    for key in _AGENCY_PASSTHROUGH:
        _set_optional(result, key, first_present(record, (key,)))

    return _merge_extras(result, record, AGENCY_MATERIAL_FIELDS)


_NORMALIZERS = {
    RecordShape.LEGACY_VEHICLE: normalize_vehicle,
    RecordShape.LEGACY_AGENCY_MATERIAL: normalize_agency_material,
    RecordShape.LEGACY_INVENTORY: normalize_inventory_item,
    RecordShape.LEGACY_MATERIAL: normalize_material,
}


def auto_migrate_resource(record: Any) -> Any:
    '''
    Normalize a record only if it is legacy; canonical records come back as
    the very same object.
    '''
    shape = classify_record(record)
    if shape is RecordShape.CANONICAL:
        return record
    return _NORMALIZERS[shape](record)


def _normalize_all(records: Any, normalizer) -> List[Dict[str, Any]]:
    if not isinstance(records, list):
        return []
    return [normalizer(record) for record in records]


def normalize_materials(records: Any) -> List[Dict[str, Any]]:
    return _normalize_all(records, normalize_material)


def normalize_vehicles(records: Any) -> List[Dict[str, Any]]:
    return _normalize_all(records, normalize_vehicle)


def normalize_inventory(records: Any) -> List[Dict[str, Any]]:
    return _normalize_all(records, normalize_inventory_item)


def normalize_agency_materials(records: Any) -> List[Dict[str, Any]]:
    return _normalize_all(records, normalize_agency_material)


def validate_migration(migrated: Any) -> bool:
    '''Every BaseResource field is present and not None.'''
    if not isinstance(migrated, Mapping):
        return False
    return all(migrated.get(field) is not None for field in BASE_RESOURCE_FIELDS)
