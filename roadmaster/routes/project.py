# roadmaster/routes/project.py
from datetime import datetime
from types import SimpleNamespace

from flask import Blueprint, jsonify, request, send_file
from pydantic import ValidationError

from roadmaster.db.session import get_session
from roadmaster.logger import get_logger
from roadmaster.repositories.project_store import SqlAlchemyProjectStore
from roadmaster.schemas.dto.boq_item_dto import BOQItemCreateDTO
from roadmaster.schemas.dto.material_dto import MaterialSaveDTO, SupplierRateDTO
from roadmaster.schemas.dto.progress_dto import ProjectProgressDTO
from roadmaster.schemas.dto.structure_dto import StructureCreateDTO
from roadmaster.schemas.dto.work_log_dto import WorkLogCreateDTO
from roadmaster.services.construction_service import ConstructionService
from roadmaster.services.project_service import ProjectService
from roadmaster.services.report_service import ReportService
from roadmaster.services.resource_service import ResourceService
from roadmaster.services.rollup import portfolio_averages

logger = get_logger(__name__)

project_bp = Blueprint('project', __name__, url_prefix='/api/projects')

ROLE_HEADER = 'X-User-Role'
XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def _services(db):
    project_service = ProjectService(SqlAlchemyProjectStore(db))
    return SimpleNamespace(
        projects=project_service,
        construction=ConstructionService(project_service),
        resources=ResourceService(project_service),
        reports=ReportService(),
    )


def _payload():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def _role():
    return request.headers.get(ROLE_HEADER, '')


def _run(action):
    """
    Run one request against a fresh session: commit on success, roll back
    and translate service errors to JSON responses otherwise.
    """
    db = get_session()
    try:
        result = action(_services(db))
        db.commit()
        return result
    except ValidationError as e:
        db.rollback()
        return jsonify({'error': 'Invalid payload', 'details': e.errors(include_url=False, include_context=False)}), 400
    except PermissionError as e:
        db.rollback()
        return jsonify({'error': str(e)}), 403
    except ValueError as e:
        db.rollback()
        status = 404 if 'not found' in str(e).lower() else 400
        return jsonify({'error': str(e)}), status
    except Exception:
        db.rollback()
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        raise
    finally:
        db.close()


# =========
# Projects
# =========
@project_bp.route('/', methods=['GET'])
def list_projects():
    """Project list, optionally filtered by ?search= on name / code."""
    search = request.args.get('search', '').strip()
    return _run(lambda s: jsonify(s.projects.list_projects(search or None)))


@project_bp.route('/', methods=['POST'])
def create_project():
    return _run(lambda s: (jsonify(s.projects.create_project(_payload())), 201))


@project_bp.route('/portfolio', methods=['GET'])
def portfolio():
    """Average physical and time progress across all projects."""
    return _run(lambda s: jsonify(portfolio_averages(s.projects.list_projects())))


@project_bp.route('/<project_id>', methods=['GET'])
def get_project(project_id):
    return _run(lambda s: jsonify(s.projects.load_project(project_id)))


@project_bp.route('/<project_id>', methods=['PUT'])
def update_project(project_id):
    return _run(lambda s: jsonify(s.projects.update_project(project_id, _payload())))


@project_bp.route('/<project_id>', methods=['DELETE'])
def delete_project(project_id):
    def action(s):
        s.projects.delete_project(project_id)
        return jsonify({'deleted': project_id})
    return _run(action)


# =========
# Work logs
# =========
@project_bp.route('/<project_id>/work-logs', methods=['POST'])
def add_work_log(project_id):
    def action(s):
        dto = WorkLogCreateDTO.model_validate(_payload())
        project = s.construction.log_work(project_id=project_id, **dto.to_service_kwargs())
        return jsonify(project), 201
    return _run(action)


@project_bp.route(
    '/<project_id>/structures/<structure_id>/components/<component_id>/work-logs/<log_id>',
    methods=['DELETE'],
)
def delete_work_log(project_id, structure_id, component_id, log_id):
    return _run(lambda s: jsonify(s.construction.delete_work_log(
        project_id=project_id,
        structure_id=structure_id,
        component_id=component_id,
        log_id=log_id,
        role=_role(),
    )))


# =========
# Structures
# =========
@project_bp.route('/<project_id>/structures', methods=['POST'])
def add_structure(project_id):
    def action(s):
        dto = StructureCreateDTO.model_validate(_payload())
        return jsonify(s.construction.create_structure(project_id, dto.to_document())), 201
    return _run(action)


@project_bp.route('/<project_id>/structures/<structure_id>', methods=['PUT'])
def update_structure(project_id, structure_id):
    def action(s):
        dto = StructureCreateDTO.model_validate(_payload())
        return jsonify(s.construction.update_structure(project_id, structure_id, dto.to_document()))
    return _run(action)


@project_bp.route('/<project_id>/structures/<structure_id>', methods=['DELETE'])
def delete_structure(project_id, structure_id):
    return _run(lambda s: jsonify(s.construction.delete_structure(project_id, structure_id, _role())))


# =========
# BOQ
# =========
@project_bp.route('/<project_id>/boq', methods=['POST'])
def add_boq_item(project_id):
    def action(s):
        dto = BOQItemCreateDTO.model_validate(_payload())
        return jsonify(s.resources.add_boq_item(project_id, dto.to_document())), 201
    return _run(action)


@project_bp.route('/<project_id>/boq/<item_id>', methods=['PUT'])
def edit_boq_item(project_id, item_id):
    return _run(lambda s: jsonify(s.resources.edit_boq_item(project_id, item_id, _payload())))


@project_bp.route('/<project_id>/boq/<item_id>', methods=['DELETE'])
def delete_boq_item(project_id, item_id):
    return _run(lambda s: jsonify(s.resources.delete_boq_item(project_id, item_id)))


# =========
# Materials
# =========
@project_bp.route('/<project_id>/materials', methods=['POST'])
def create_material(project_id):
    def action(s):
        dto = MaterialSaveDTO.model_validate(_payload())
        return jsonify(s.resources.save_material(project_id, dto.to_document())), 201
    return _run(action)


@project_bp.route('/<project_id>/materials/<material_id>', methods=['PUT'])
def update_material(project_id, material_id):
    def action(s):
        dto = MaterialSaveDTO.model_validate(_payload())
        return jsonify(s.resources.save_material(project_id, dto.to_document(), material_id))
    return _run(action)


@project_bp.route('/<project_id>/materials/<material_id>', methods=['DELETE'])
def delete_material(project_id, material_id):
    return _run(lambda s: jsonify(s.resources.delete_material(project_id, material_id)))


@project_bp.route('/<project_id>/materials/<material_id>/rates', methods=['POST'])
def add_supplier_rate(project_id, material_id):
    def action(s):
        dto = SupplierRateDTO.model_validate(_payload())
        material = s.resources.record_supplier_rate(
            project_id,
            material_id,
            supplier_id=dto.supplier_id,
            rate=dto.rate,
            effective_date=dto.effective_date,
            description=dto.description,
        )
        return jsonify(material), 201
    return _run(action)


# =========
# Progress
# =========
@project_bp.route('/<project_id>/progress', methods=['GET'])
def progress_summary(project_id):
    def action(s):
        project = s.projects.load_project(project_id)
        return jsonify(ProjectProgressDTO.from_project(project).model_dump())
    return _run(action)


@project_bp.route('/<project_id>/report', methods=['GET'])
def export_report(project_id):
    """Progress report as an .xlsx download."""
    def action(s):
        project = s.projects.load_project(project_id)
        df = s.reports.generate_df_report(project)
        output = s.reports.export_xlsx(df)

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        filename = f"progress_report_{project.get('code') or project_id}_{timestamp}.xlsx"
        return send_file(
            output,
            mimetype=XLSX_MIMETYPE,
            as_attachment=True,
            download_name=filename,
        )
    return _run(action)
