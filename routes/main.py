from flask import Blueprint, current_app, render_template, send_from_directory

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def index():
    orchestrator = current_app.extensions['onboarding']
    return render_template(
        'index.html',
        steps=orchestrator.catalog.all(),
        employees=orchestrator.employees.list(),
        default_employee_key=orchestrator.default_employee_key
    )


@main_bp.route('/output/<path:filename>')
def output_file(filename):
    """Serve a generated PDF."""
    return send_from_directory(current_app.config['OUTPUT_DIR'], filename)
