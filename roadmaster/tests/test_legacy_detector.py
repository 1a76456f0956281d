import pytest

from roadmaster.db.enums import RecordShape
from roadmaster.services.legacy_detector import classify_record, is_legacy_structure


@pytest.mark.parametrize("record", [
    {"itemName": "Cement"},
    {"totalQuantity": 4},
    {"availableQty": 1},
    {"unitPrice": 12.5},
    {"itemDescription": "OPC 53"},
])
def test_single_legacy_field_is_legacy(record):
    assert is_legacy_structure(record) is True


def test_name_key_always_means_canonical():
    assert is_legacy_structure({"name": "Cement", "itemName": "Cement", "totalQuantity": 3}) is False


@pytest.mark.parametrize("value", [None, {}, "itemName", 42, ["itemName"]])
def test_non_records_and_empty_records_are_not_legacy(value):
    assert is_legacy_structure(value) is False


def test_record_without_indicators_is_canonical():
    assert is_legacy_structure({"quantity": 3, "unit": "bag"}) is False
    assert classify_record({"materialName": "Sand"}) is RecordShape.CANONICAL


def test_vehicle_markers_win_over_everything():
    assert classify_record({"itemName": "JCB", "plateNumber": "KA-01"}) is RecordShape.LEGACY_VEHICLE
    assert classify_record({"unitPrice": 1, "driver": "Ravi", "agencyId": "ag-1"}) is RecordShape.LEGACY_VEHICLE


def test_agency_markers_win_over_inventory():
    record = {"itemName": "Sand", "reorderLevel": 5, "agencyId": "ag-1"}
    assert classify_record(record) is RecordShape.LEGACY_AGENCY_MATERIAL
    assert classify_record({"materialName": "Sand", "unitPrice": 50}) is RecordShape.LEGACY_AGENCY_MATERIAL


def test_inventory_needs_item_name_and_reorder_level():
    assert classify_record({"itemName": "Bitumen", "reorderLevel": 5}) is RecordShape.LEGACY_INVENTORY
    assert classify_record({"itemName": "Bitumen"}) is RecordShape.LEGACY_MATERIAL
    assert classify_record({"totalQuantity": 5, "reorderLevel": 5}) is RecordShape.LEGACY_MATERIAL
