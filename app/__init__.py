from flask import Flask
from flask_cors import CORS
import os

from paste_provenance import MatchPolicy, load_policy_from_env

from .audit_logger import ProvenanceAuditLogger
from .registry import DocumentRegistry


def create_app(test_config=None):
    app = Flask(__name__)
    CORS(app)  # Enable CORS for all routes

    app.config['SECRET_KEY'] = os.urandom(24).hex()
    app.config['AUDIT_LOGS_DIR'] = os.getenv('PROVENANCE_AUDIT_LOGS_DIR', 'app/audit_logs')
    app.config['MATCH_POLICY'] = None
    app.config['MAX_CONTENT_LENGTH'] = 2 * 1024 * 1024  # 2 MB limit for document payloads
    app.config['PROPAGATE_EXCEPTIONS'] = True

    if test_config:
        app.config.update(test_config)

    policy = app.config['MATCH_POLICY']
    if policy is None:
        policy = load_policy_from_env()
    elif not isinstance(policy, MatchPolicy):
        policy = MatchPolicy.from_mapping(policy)
    app.config['MATCH_POLICY'] = policy

    app.extensions['document_registry'] = DocumentRegistry(policy)
    app.extensions['audit_logger'] = (
        ProvenanceAuditLogger(app.config['AUDIT_LOGS_DIR']) if app.config['AUDIT_LOGS_DIR'] else None
    )

    from app.routes import main
    app.register_blueprint(main, url_prefix='/api')

    return app
