# roadmaster/db/enums.py
import enum

# User related enums
class UserRole(enum.Enum):
    ADMIN = "Admin"
    PROJECT_MANAGER = "Project Manager"
    SITE_ENGINEER = "Site Engineer"
    LAB_TECHNICIAN = "Lab Technician"
    CONTRACTOR = "Contractor"
    SUBCONTRACTOR = "Subcontractor"
    SUPERVISOR = "Supervisor"


# Legacy record related enums
class RecordShape(enum.Enum):
    CANONICAL = "canonical"
    LEGACY_VEHICLE = "legacy_vehicle"
    LEGACY_AGENCY_MATERIAL = "legacy_agency_material"
    LEGACY_INVENTORY = "legacy_inventory"
    LEGACY_MATERIAL = "legacy_material"


# Stock related enums
class StockHealth(enum.Enum):
    critical = "critical"
    warning = "warning"
    healthy = "healthy"


class MaterialStatus(enum.Enum):
    AVAILABLE = "Available"
    LOW_STOCK = "Low Stock"
    OUT_OF_STOCK = "Out of Stock"
    DISCONTINUED = "Discontinued"


class AgencyMaterialStatus(enum.Enum):
    ORDERED = "Ordered"
    IN_TRANSIT = "In Transit"
    RECEIVED = "Received"


# Structure related enums
class StructureStatus(enum.Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


# Project related enums
class ProjectStatus(enum.Enum):
    DRAFT = "Draft"
    UPCOMING = "Upcoming"
    ACTIVE = "Active"
    COMPLETED = "Completed"
