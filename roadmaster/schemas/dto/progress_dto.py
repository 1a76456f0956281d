from typing import Any, List, Mapping, Optional

from pydantic import BaseModel

from roadmaster.services.rollup import (
    FinancialStats,
    MaterialStats,
    StockSummary,
    calculate_boq_progress,
    calculate_financial_stats,
    calculate_material_stats,
    calculate_overall_progress,
    calculate_time_progress,
    classify_project_status,
    summarize_stock,
)


class StockSummaryDTO(BaseModel):
    critical: int
    warning: int
    healthy: int

    @classmethod
    def from_domain_model(cls, summary: StockSummary) -> "StockSummaryDTO":
        return cls(critical=summary.critical, warning=summary.warning, healthy=summary.healthy)


class MaterialStatsDTO(BaseModel):
    total_materials: int
    low_stock: int
    out_of_stock: int
    total_value: float

    @classmethod
    def from_domain_model(cls, stats: MaterialStats) -> "MaterialStatsDTO":
        return cls(
            total_materials=stats.total_materials,
            low_stock=stats.low_stock,
            out_of_stock=stats.out_of_stock,
            total_value=float(stats.total_value),
        )


class FinancialSummaryDTO(BaseModel):
    original_contract: float
    variations: float
    revised_contract: float
    total_billed: float
    total_sub_billed: float
    balance_to_bill: float
    payment_percentage: float

    @classmethod
    def from_domain_model(cls, stats: FinancialStats) -> "FinancialSummaryDTO":
        return cls(
            original_contract=float(stats.original_contract),
            variations=float(stats.variations),
            revised_contract=float(stats.revised_contract),
            total_billed=float(stats.total_billed),
            total_sub_billed=float(stats.total_sub_billed),
            balance_to_bill=float(stats.balance_to_bill),
            payment_percentage=round(float(stats.payment_percentage), 2),
        )


class StructureProgressDTO(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    status: Optional[str] = None
    progress: int


class ProjectProgressDTO(BaseModel):
    project_id: str
    name: str
    status: str

    physical_progress: int
    time_progress: int

    structures: List[StructureProgressDTO]
    stock: StockSummaryDTO
    materials: MaterialStatsDTO
    financials: FinancialSummaryDTO

    @classmethod
    def from_project(cls, project: Mapping[str, Any], now: Any = None) -> "ProjectProgressDTO":
        start, end = project.get("startDate"), project.get("endDate")
        return cls(
            project_id=project["id"],
            name=project.get("name") or "",
            status=classify_project_status(start, end, now).value,
            physical_progress=calculate_boq_progress(project.get("boq")),
            time_progress=calculate_time_progress(start, end, now),
            structures=[
                StructureProgressDTO(
                    id=s.get("id"),
                    name=s.get("name"),
                    status=s.get("status"),
                    progress=calculate_overall_progress(s),
                )
                for s in project.get("structures") or []
                if isinstance(s, Mapping)
            ],
            stock=StockSummaryDTO.from_domain_model(summarize_stock(project.get("inventory"))),
            materials=MaterialStatsDTO.from_domain_model(calculate_material_stats(project.get("materials"))),
            financials=FinancialSummaryDTO.from_domain_model(
                calculate_financial_stats(
                    project.get("boq"),
                    project.get("contractBills"),
                    project.get("subcontractorBills"),
                )
            ),
        )
