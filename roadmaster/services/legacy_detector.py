# roadmaster/services/legacy_detector.py
from typing import Any, Mapping

from roadmaster.db.enums import RecordShape

# Field names only ever written by the pre-unification resource screens.
LEGACY_INDICATORS = (
    "itemName",
    "totalQuantity",
    "availableQty",
    "unitPrice",
    "itemDescription",
)


def is_legacy_structure(record: Any) -> bool:
    '''
    Decide whether a resource record still uses the old field naming.

    A record is legacy when it carries at least one legacy-only field and has
    no `name` key. A `name` key always wins: {"itemName": .., "name": ..} is
    treated as canonical even with `totalQuantity` present.

    :param record: any value; non-mapping input is never legacy
    :return: True for legacy records
    :rtype: bool
    '''
    if not isinstance(record, Mapping) or not record:
        return False
    if "name" in record:
        return False
    return any(indicator in record for indicator in LEGACY_INDICATORS)


def classify_record(record: Any) -> RecordShape:
    '''
    Tag a resource record with the shape that should normalize it.

    Priority order for legacy records:
    1) plateNumber / driver        -> vehicle
    2) agencyId / materialName     -> agency material
    3) itemName and reorderLevel   -> inventory item
    4) anything else               -> material
    '''
    if not is_legacy_structure(record):
        return RecordShape.CANONICAL

    if "plateNumber" in record or "driver" in record:
        return RecordShape.LEGACY_VEHICLE
    if "agencyId" in record or "materialName" in record:
        return RecordShape.LEGACY_AGENCY_MATERIAL
    if "itemName" in record and "reorderLevel" in record:
        return RecordShape.LEGACY_INVENTORY
    return RecordShape.LEGACY_MATERIAL
