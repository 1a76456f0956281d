# roadmaster/services/work_log_ledger.py
"""
Keeps the two denormalized progress counters in step:

- structures[].components[].completedQuantity
- boq[].completedQuantity

Both move by the same quantity inside one returned project document. Every
function copies the branches it changes and returns the input object itself
when the event is a no-op.
"""
from typing import Any, Dict, List, Mapping, Optional, Tuple

from roadmaster.db.enums import StructureStatus
from roadmaster.logger import get_logger
from roadmaster.services.rollup import component_log_total
from roadmaster.utils.values import generate_id, num, to_number, today_iso

logger = get_logger(__name__)


def _find(rows: Any, row_id: Any) -> Optional[Mapping[str, Any]]:
    if not row_id or not isinstance(rows, list):
        return None
    for row in rows:
        if isinstance(row, Mapping) and row.get("id") == row_id:
            return row
    return None


def _locate_component(
    project: Mapping[str, Any], structure_id: Any, component_id: Any
) -> Tuple[Optional[Mapping[str, Any]], Optional[Mapping[str, Any]]]:
    structure = _find(project.get("structures"), structure_id)
    if structure is None:
        return None, None
    return structure, _find(structure.get("components"), component_id)


def _replace_component(
    project: Mapping[str, Any],
    structure_id: str,
    component_id: str,
    new_component: Dict[str, Any],
    structure_changes: Optional[Dict[str, Any]] = None,
) -> List[Any]:
    structures = []
    for structure in project.get("structures") or []:
        if isinstance(structure, Mapping) and structure.get("id") == structure_id:
            components = [
                new_component if isinstance(c, Mapping) and c.get("id") == component_id else c
                for c in structure.get("components") or []
            ]
            structure = {**structure, **(structure_changes or {}), "components": components}
        structures.append(structure)
    return structures


def _shift_boq_item(boq: Any, boq_item_id: Any, delta: float) -> Optional[List[Any]]:
    '''New BOQ list with completedQuantity moved by delta (floored at 0), or None if the item is missing.'''
    if _find(boq, boq_item_id) is None:
        return None
    shifted = []
    for item in boq:
        if isinstance(item, Mapping) and item.get("id") == boq_item_id:
            item = {**item, "completedQuantity": max(0, num(item.get("completedQuantity")) + delta)}
        shifted.append(item)
    return shifted


def add_work_log(
    project: Mapping[str, Any],
    structure_id: str,
    component_id: str,
    quantity: Any,
    boq_item_id: Optional[str] = None,
    *,
    date: Optional[str] = None,
    rate: Any = None,
    subcontractor_id: Optional[str] = None,
    remarks: str = "",
    rfi_id: Optional[str] = None,
    lab_test_id: Optional[str] = None,
) -> Mapping[str, Any]:
    '''
    Record executed quantity against a structure component.

    Appends a StructureWorkLog, adds `quantity` to the component's
    completedQuantity and, when `boq_item_id` resolves, to the BOQ item's
    completedQuantity. Without `boq_item_id` the component's own boqItemId
    is credited. The structure is marked "In Progress".

    :param project: current project document
    :param structure_id: owning structure id
    :param component_id: component the work was done on
    :param quantity: executed quantity, must be a positive number
    :param boq_item_id: BOQ line to credit, optional
    :return: a new project document, or `project` itself when the quantity
        is missing/non-positive or the component cannot be found
    '''
    qty = to_number(quantity)
    if not qty or qty < 0:
        logger.info("Work log ignored: invalid quantity %r", quantity)
        return project

    structure, component = _locate_component(project, structure_id, component_id)
    if component is None:
        logger.info("Work log ignored: component %s/%s not found", structure_id, component_id)
        return project

    boq_item_id = boq_item_id or component.get("boqItemId") or None
    new_log: Dict[str, Any] = {
        "id": generate_id("wl", unique_suffix=True),
        "date": date or today_iso(),
        "quantity": qty,
        "rate": num(rate),
        "subcontractorId": subcontractor_id or component.get("subcontractorId") or "",
        "remarks": remarks or "",
        "rfiId": rfi_id or "",
        "boqItemId": boq_item_id or "",
        "labTestId": lab_test_id or "",
    }

    new_component = {
        **component,
        "completedQuantity": num(component.get("completedQuantity")) + qty,
        "workLogs": list(component.get("workLogs") or []) + [new_log],
    }

    updated: Dict[str, Any] = {
        **project,
        "structures": _replace_component(
            project, structure_id, component_id, new_component,
            structure_changes={"status": StructureStatus.IN_PROGRESS.value},
        ),
    }

    if boq_item_id:
        boq = _shift_boq_item(project.get("boq"), boq_item_id, qty)
        if boq is None:
            logger.info("Work log %s: BOQ item %s not found, BOQ untouched", new_log["id"], boq_item_id)
        else:
            updated["boq"] = boq

    logger.info(
        "Work log %s: +%s on %s/%s (boq=%s)",
        new_log["id"], qty, structure_id, component_id, boq_item_id or "-",
    )
    return updated


def delete_work_log(
    project: Mapping[str, Any],
    structure_id: str,
    component_id: str,
    log_id: str,
) -> Mapping[str, Any]:
    '''
    Remove a work log and take its quantity back off both counters.

    The log's quantity and boqItemId are read before removal. Counters never
    go below 0. A boqItemId that no longer resolves is skipped.

    :return: a new project document, or `project` itself when the log
        cannot be found
    '''
    structure, component = _locate_component(project, structure_id, component_id)
    work_log = _find(component.get("workLogs") if component else None, log_id)
    if work_log is None:
        logger.info("Work log delete ignored: %s/%s/%s not found", structure_id, component_id, log_id)
        return project

    qty = num(work_log.get("quantity"))

    new_component = {
        **component,
        "completedQuantity": max(0, num(component.get("completedQuantity")) - qty),
        "workLogs": [
            log for log in component.get("workLogs") or []
            if not (isinstance(log, Mapping) and log.get("id") == log_id)
        ],
    }

    updated: Dict[str, Any] = {
        **project,
        "structures": _replace_component(project, structure_id, component_id, new_component),
    }

    boq_item_id = work_log.get("boqItemId")
    if boq_item_id:
        boq = _shift_boq_item(project.get("boq"), boq_item_id, -qty)
        if boq is not None:
            updated["boq"] = boq

    logger.info("Work log %s: -%s on %s/%s", log_id, qty, structure_id, component_id)
    return updated


def find_ledger_drift(project: Mapping[str, Any]) -> List[Dict[str, Any]]:
    '''
    Components whose completedQuantity differs from the sum of their work logs.
    Read-only; used by tests and diagnostics.
    '''
    drift = []
    for structure in project.get("structures") or []:
        if not isinstance(structure, Mapping):
            continue
        for component in structure.get("components") or []:
            if not isinstance(component, Mapping):
                continue
            expected = component_log_total(component)
            recorded = num(component.get("completedQuantity"))
            if abs(expected - recorded) > 1e-9:
                drift.append({
                    "structureId": structure.get("id"),
                    "componentId": component.get("id"),
                    "recorded": recorded,
                    "expected": expected,
                })
    return drift
