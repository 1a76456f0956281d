# roadmaster/services/rollup.py
"""
Progress and stock rollups.

Nothing here is stored: every figure is recomputed from the project document
on each call, and stored `progress` fields are ignored.
"""
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Union

from roadmaster.db.enums import ProjectStatus, StockHealth
from roadmaster.utils.values import num

DateLike = Union[str, date, datetime, None]

WARNING_FACTOR = 1.5


@dataclass
class StockSummary:
    critical: int
    warning: int
    healthy: int


@dataclass
class MaterialStats:
    total_materials: int
    low_stock: int
    out_of_stock: int
    total_value: float


@dataclass
class FinancialStats:
    original_contract: float
    variations: float
    revised_contract: float
    total_billed: float
    total_sub_billed: float
    balance_to_bill: float
    payment_percentage: float


def _rows(values: Any) -> List[Mapping[str, Any]]:
    if not isinstance(values, list):
        return []
    return [value for value in values if isinstance(value, Mapping)]


def _round_half_up(value: float) -> int:
    # Math.round semantics: .5 goes up, unlike Python's banker's rounding
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def _clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


# =========
# Physical progress
# =========
def calculate_overall_progress(structure: Mapping[str, Any]) -> int:
    '''
    Physical progress of a structure in percent:
    sum(completedQuantity) / sum(totalQuantity) * 100, rounded.

    :return: 0 when there are no components or the summed target is 0
    :rtype: int
    '''
    components = _rows(structure.get("components"))
    if not components:
        return 0
    total_done = sum(num(c.get("completedQuantity")) for c in components)
    total_target = sum(num(c.get("totalQuantity")) for c in components)
    if total_target <= 0:
        return 0
    return _round_half_up(total_done / total_target * 100)


def calculate_component_progress(component: Mapping[str, Any]) -> float:
    '''Per-component percentage for progress bars, capped to [0, 100].'''
    total = num(component.get("totalQuantity"))
    if total <= 0:
        return 0.0
    return float(_clamp(num(component.get("completedQuantity")) / total * 100))


def component_log_total(component: Mapping[str, Any]) -> float:
    '''Sum of the component's work-log quantities (what completedQuantity should be).'''
    return sum(num(log.get("quantity")) for log in _rows(component.get("workLogs")))


# =========
# Financial progress
# =========
def calculate_boq_progress(boq: Any) -> int:
    '''
    Money-weighted BOQ completion:
    sum(completedQuantity * rate) / sum(quantity * rate) * 100, rounded.
    '''
    items = _rows(boq)
    total_value = sum(num(i.get("quantity")) * num(i.get("rate")) for i in items)
    if total_value == 0:
        return 0
    completed_value = sum(num(i.get("completedQuantity")) * num(i.get("rate")) for i in items)
    return _round_half_up(completed_value / total_value * 100)


def calculate_financial_stats(
    boq: Any,
    contract_bills: Any = None,
    subcontractor_bills: Any = None,
) -> FinancialStats:
    items = _rows(boq)
    original_contract = sum(num(i.get("quantity")) * num(i.get("rate")) for i in items)
    variations = sum(num(i.get("variationQuantity")) * num(i.get("rate")) for i in items)
    revised_contract = original_contract + variations
    total_billed = sum(num(b.get("totalAmount")) for b in _rows(contract_bills))
    total_sub_billed = sum(num(b.get("netAmount")) for b in _rows(subcontractor_bills))

    payment_percentage = 0.0
    if total_billed > 0 and revised_contract > 0:
        payment_percentage = total_billed / revised_contract * 100

    return FinancialStats(
        original_contract=original_contract,
        variations=variations,
        revised_contract=revised_contract,
        total_billed=total_billed,
        total_sub_billed=total_sub_billed,
        balance_to_bill=revised_contract - total_billed,
        payment_percentage=payment_percentage,
    )


# =========
# Schedule
# =========
def parse_date(value: DateLike) -> Optional[datetime]:
    '''
    ISO date/datetime string, date or datetime -> naive datetime; None if unusable.
    Aware values are converted to UTC first.
    '''
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return _naive_utc(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def calculate_time_progress(start: DateLike, end: DateLike, now: DateLike = None) -> int:
    '''
    Share of the schedule window already elapsed, in percent.

    :param start: planned start
    :param end: planned finish
    :param now: reference time, defaults to the current time
    :return: 0 if a date is missing or now < start, 100 if now > end,
        otherwise the rounded elapsed percentage
    '''
    start_at = parse_date(start)
    end_at = parse_date(end)
    if start_at is None or end_at is None:
        return 0
    current = parse_date(now) or _naive_utc(datetime.now(timezone.utc))

    if current < start_at:
        return 0
    if current > end_at:
        return 100
    span = (end_at - start_at).total_seconds()
    if span <= 0:
        # zero-length window and now == start == end
        return 100
    elapsed = (current - start_at).total_seconds()
    return _round_half_up(_clamp(elapsed / span * 100))


def classify_project_status(start: DateLike, end: DateLike, today: DateLike = None) -> ProjectStatus:
    '''Day-granular status: Draft without a start, then Completed/Upcoming/Active.'''
    start_at = parse_date(start)
    if start_at is None:
        return ProjectStatus.DRAFT
    end_at = parse_date(end)
    current = (parse_date(today) or datetime.now()).date()

    if end_at is not None and end_at.date() < current:
        return ProjectStatus.COMPLETED
    if start_at.date() > current:
        return ProjectStatus.UPCOMING
    return ProjectStatus.ACTIVE


# =========
# Stock
# =========
def classify_stock(quantity: Any, reorder_level: Any) -> StockHealth:
    '''
    critical: quantity <= reorder_level
    warning:  reorder_level < quantity <= reorder_level * 1.5
    healthy:  above that
    Boundaries fall into the more urgent bucket.
    '''
    quantity = num(quantity)
    reorder_level = num(reorder_level)
    if quantity <= reorder_level:
        return StockHealth.critical
    if quantity <= reorder_level * WARNING_FACTOR:
        return StockHealth.warning
    return StockHealth.healthy


def summarize_stock(inventory: Any) -> StockSummary:
    counts = {health: 0 for health in StockHealth}
    for item in _rows(inventory):
        counts[classify_stock(item.get("quantity"), item.get("reorderLevel"))] += 1
    return StockSummary(
        critical=counts[StockHealth.critical],
        warning=counts[StockHealth.warning],
        healthy=counts[StockHealth.healthy],
    )


def calculate_material_stats(materials: Any) -> MaterialStats:
    rows = _rows(materials)
    return MaterialStats(
        total_materials=len(rows),
        low_stock=sum(1 for m in rows if num(m.get("availableQuantity")) <= num(m.get("reorderLevel"))),
        out_of_stock=sum(1 for m in rows if num(m.get("availableQuantity")) == 0),
        total_value=sum(num(m.get("totalValue")) for m in rows),
    )


# =========
# Portfolio
# =========
def portfolio_averages(projects: Iterable[Mapping[str, Any]], now: DateLike = None) -> Mapping[str, int]:
    '''Average physical (BOQ) and time progress across projects, rounded.'''
    projects = [p for p in projects if isinstance(p, Mapping)]
    count = len(projects) or 1
    physical = sum(calculate_boq_progress(p.get("boq")) for p in projects)
    elapsed = sum(calculate_time_progress(p.get("startDate"), p.get("endDate"), now) for p in projects)
    return {
        "physical_progress": _round_half_up(physical / count),
        "time_progress": _round_half_up(elapsed / count),
    }
