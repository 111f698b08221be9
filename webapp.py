#!/usr/bin/env python3
"""
Flask web service for ADhuntX
Accepts directory export uploads and serves scored users, dashboard data and CSV downloads
"""

import io
import logging
from pathlib import Path
from datetime import datetime
from typing import List

from flask import Flask, request, send_file, jsonify
from werkzeug.utils import secure_filename

from core.errors import NoValidUsersError
from core.models import ProcessedUser
from core.pipeline import PipelineOrchestrator
from core.reporting import (
    SORT_KEYS, compute_metrics, filter_users, issue_summary, remediation_summary,
    risk_distribution, risk_matrix, sort_users,
)
from utils.config import Config
from utils.csv_utils import CSVHandler, TEMPLATE_FILENAME, report_filename
from utils.import_cache import LastImportCache
from utils.sample_data import generate_sample_csv

app = Flask(__name__)
app.secret_key = Config().secret_key

ALLOWED_EXTENSIONS = {'csv'}


class CurrentDataset:
    """The dataset every view reads; each import replaces it wholesale"""

    def __init__(self):
        self.users: List[ProcessedUser] = []
        self.source = None
        self.loaded_at = None

    def replace(self, users: List[ProcessedUser], source: str) -> None:
        self.users = list(users)
        self.source = source
        self.loaded_at = datetime.now()

    def reset(self) -> None:
        self.users = []
        self.source = None
        self.loaded_at = None


dataset = CurrentDataset()


def allowed_file(filename):
    """Check if file extension is allowed"""
    if '.' not in filename:
        return False

    extension = filename.rsplit('.', 1)[1].lower()
    return extension in ALLOWED_EXTENSIONS


def setup_logging():
    """Setup logging for the web application"""
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = log_dir / f"webapp_{timestamp}.log"

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_filename),
            logging.StreamHandler()
        ]
    )


def error_response(message, status=400):
    return jsonify({'success': False, 'error': message}), status


def import_text(text, source):
    """Run the pipeline and make the result the current dataset"""
    config = Config()
    pipeline = PipelineOrchestrator.from_policy(config.normalization_policy())
    users = pipeline.run(text)

    try:
        LastImportCache(config.cache_path, config.cache_limit).save(users)
    except OSError as e:
        app.logger.error(f"Could not cache import from {source}: {e}")

    dataset.replace(users, source)

    app.logger.info(f"Imported {len(users)} users from {source}")
    return jsonify({
        'success': True,
        'source': source,
        'metrics': compute_metrics(users).to_dict(),
    })


@app.route('/upload', methods=['POST'])
def upload_file():
    """Handle file upload and processing"""
    if 'file' not in request.files:
        return error_response('No file selected')

    file = request.files['file']
    if file.filename == '':
        return error_response('No file selected')

    if not allowed_file(file.filename):
        return error_response('Invalid file type. Allowed types: csv')

    config = Config()

    # Check file size
    file.seek(0, 2)  # Seek to end
    file_size = file.tell()
    file.seek(0)  # Reset to beginning

    if file_size > config.max_upload_bytes:
        return error_response(f'File too large. Maximum size: {config.max_upload_bytes // (1024 * 1024)}MB')

    filename = secure_filename(file.filename)
    try:
        return import_text(CSVHandler.decode_bytes(file.read()), filename)
    except NoValidUsersError as e:
        app.logger.warning(f"Import of {filename} failed: {e}")
        return error_response(NoValidUsersError.USER_MESSAGE)


@app.route('/sample', methods=['POST'])
def load_sample():
    """Replace the current dataset with the built-in sample"""
    return import_text(generate_sample_csv(), 'sample')


@app.route('/users')
def list_users():
    """Filtered and sorted view of the current dataset"""
    risk_level = request.args.get('risk_level', 'All')
    search = request.args.get('search', '')
    sort_key = request.args.get('sort', 'totalRiskScore')
    descending = request.args.get('order', 'desc').lower() != 'asc'

    if sort_key not in SORT_KEYS:
        return error_response(f'Unknown sort key: {sort_key}')

    users = sort_users(filter_users(dataset.users, risk_level, search), sort_key, descending)
    return jsonify({
        'total': len(users),
        'users': [user.to_dict() for user in users],
    })


@app.route('/users/<user_id>')
def user_detail(user_id):
    """Drill-down for a single user"""
    for user in dataset.users:
        if user.id == user_id:
            return jsonify(user.to_dict())
    return error_response('User not found', 404)


@app.route('/metrics')
def metrics():
    """Dashboard KPIs and chart data"""
    users = dataset.users
    return jsonify({
        'source': dataset.source,
        'metrics': compute_metrics(users).to_dict(),
        'riskDistribution': risk_distribution(users),
        'issues': issue_summary(users),
        'riskMatrix': risk_matrix(users),
        'remediation': remediation_summary(users),
    })


@app.route('/export')
def export_report():
    """Download the risk report for the current dataset"""
    if not dataset.users:
        return error_response('No data to export', 404)

    content = CSVHandler.export_users(dataset.users)
    return send_file(
        io.BytesIO(content.encode('utf-8')),
        mimetype='text/csv',
        as_attachment=True,
        download_name=report_filename(),
    )


@app.route('/template')
def download_template():
    """Download the empty input template"""
    return send_file(
        io.BytesIO(CSVHandler.template_csv().encode('utf-8')),
        mimetype='text/csv',
        as_attachment=True,
        download_name=TEMPLATE_FILENAME,
    )


@app.route('/last-import')
def last_import():
    """Sample of the most recent import kept in the cache"""
    config = Config()
    users = LastImportCache(config.cache_path, config.cache_limit).load()
    return jsonify({'total': len(users), 'users': users})


@app.route('/health')
def health_check():
    """Health check endpoint"""
    config = Config()
    config_valid = config.validate()

    return jsonify({
        'status': 'healthy' if config_valid else 'configuration_error',
        'config_valid': config_valid,
        'invalid_settings': config.get_invalid_vars(),
        'users_loaded': len(dataset.users),
    })


if __name__ == '__main__':
    setup_logging()

    config = Config()
    if not config.validate():
        app.logger.warning(f"Invalid settings, using defaults: {', '.join(config.get_invalid_vars())}")

    print(f"Starting ADhuntX web service on port {config.port}")
    print(f"Import cache: {config.cache_path}")

    app.run(host='0.0.0.0', port=config.port, debug=config.debug)
