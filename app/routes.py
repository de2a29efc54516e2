import logging
from datetime import datetime
from functools import wraps

from flask import Blueprint, current_app, jsonify, request

from paste_provenance import MalformedInputError

main = Blueprint('main', __name__, url_prefix='/api')

logger = logging.getLogger(__name__)

# =============================================================================


def get_registry():
    return current_app.extensions['document_registry']


def audit(event_type, document_id, **details):
    audit_logger = current_app.extensions.get('audit_logger')
    if audit_logger is not None:
        audit_logger.log_event(event_type, document_id, **details)


def error_response(message, status):
    return jsonify({'success': False, 'error': message}), status


def with_document(view):
    """Look up the document session named in the URL, or answer 404"""
    @wraps(view)
    def wrapper(document_id, *args, **kwargs):
        session = get_registry().get(document_id)
        if session is None:
            return error_response(f'Document {document_id} not found', 404)
        return view(session, *args, **kwargs)
    return wrapper


def get_json_body():
    """Request JSON as a dict; a missing body is treated as empty"""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MalformedInputError("Request body must be a JSON object")
    return data


def parse_str(data, key, default=None, required=True):
    value = data.get(key, default)
    if value is None and not required:
        return None
    if not isinstance(value, str):
        raise MalformedInputError(f"Field '{key}' must be a string")
    return value


def parse_int(data, key, default=None):
    value = data.get(key, default)
    if value is None:
        raise MalformedInputError(f"Missing required field: {key}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise MalformedInputError(f"Field '{key}' must be an integer")


def parse_timestamp(value):
    if value is None:
        return None
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        raise MalformedInputError(f"Invalid timestamp: {value}")


@main.errorhandler(MalformedInputError)
def handle_malformed_input(e):
    return error_response(str(e), 400)


# =============================================================================
# Documents and the editing surface
# =============================================================================

@main.route('/documents', methods=['POST'])
def create_document():
    data = get_json_body()
    text = parse_str(data, 'text', default='')

    session = get_registry().create(text)
    return jsonify({
        'success': True,
        'document_id': session.document_id,
        'version': session.buffer.version,
    }), 201


@main.route('/documents/<document_id>', methods=['GET'])
@with_document
def get_document(session):
    return jsonify({
        'success': True,
        'document_id': session.document_id,
        **session.buffer.to_dict(),
        'paste_count': len(session.paste_log),
        'annotation_count': len(session.annotations),
    })


@main.route('/documents/<document_id>', methods=['DELETE'])
@with_document
def delete_document(session):
    registry = get_registry()
    with registry.lock_for(session.document_id):
        registry.remove(session.document_id)

    audit('document_deleted', session.document_id, paste_count=len(session.paste_log),
          annotation_count=len(session.annotations))
    return jsonify({'success': True, 'deleted': session.document_id})


@main.route('/documents/<document_id>/text', methods=['PUT'])
@with_document
def edit_document(session):
    data = get_json_body()
    text = parse_str(data, 'text')

    with get_registry().lock_for(session.document_id):
        buffer = session.on_edit(text)

    return jsonify({'success': True, 'version': buffer.version, 'length': len(buffer)})


@main.route('/documents/<document_id>/pastes', methods=['POST'])
@with_document
def record_paste(session):
    data = get_json_body()
    text = parse_str(data, 'text', default='')
    offset = parse_int(data, 'offset', default=0)
    timestamp = parse_timestamp(data.get('timestamp'))

    with get_registry().lock_for(session.document_id):
        event = session.on_paste(text, offset, timestamp=timestamp)

    if event is None:
        return jsonify({'success': True, 'skipped': True, 'reason': 'blank_paste'})

    audit('paste_recorded', session.document_id, paste_event_id=event.id,
          length=len(event.pasted_text), insertion_offset=event.insertion_offset,
          captured_at_version=event.captured_at_version)
    return jsonify({'success': True, 'skipped': False, 'event': event.to_dict()}), 201


@main.route('/documents/<document_id>/pastes/summary', methods=['GET'])
@with_document
def paste_summary(session):
    return jsonify({'success': True, **session.paste_summary().to_dict()})


# =============================================================================
# Reviewer annotations
# =============================================================================

@main.route('/documents/<document_id>/annotations', methods=['POST'])
@with_document
def create_annotation(session):
    data = get_json_body()
    start = parse_int(data, 'start')
    end = parse_int(data, 'end')
    body = parse_str(data, 'body', default='')
    anchor_text = parse_str(data, 'anchor_text', required=False)
    author = parse_str(data, 'author', required=False)

    with get_registry().lock_for(session.document_id):
        annotation = session.create_annotation(
            start, end, body,
            anchor_text=anchor_text,
            author=author or 'reviewer',
        )

    audit('annotation_created', session.document_id, annotation_id=annotation.id,
          start_offset=annotation.start_offset, end_offset=annotation.end_offset)
    return jsonify({'success': True, 'annotation': annotation.to_dict()}), 201


@main.route('/documents/<document_id>/annotations', methods=['GET'])
@with_document
def list_annotations(session):
    resolved = session.resolved_annotations()
    return jsonify({
        'success': True,
        'version': session.buffer.version,
        'annotations': [item.to_dict() for item in resolved],
        'orphaned_count': sum(1 for item in resolved if item.is_orphaned),
    })


@main.route('/documents/<document_id>/annotations/<annotation_id>', methods=['PATCH'])
@with_document
def edit_annotation(session, annotation_id):
    data = get_json_body()
    body = parse_str(data, 'body', default='')
    try:
        with get_registry().lock_for(session.document_id):
            annotation = session.edit_annotation(annotation_id, body)
    except KeyError:
        return error_response(f'Annotation {annotation_id} not found', 404)
    return jsonify({'success': True, 'annotation': annotation.to_dict()})


@main.route('/documents/<document_id>/annotations/<annotation_id>', methods=['DELETE'])
@with_document
def delete_annotation(session, annotation_id):
    with get_registry().lock_for(session.document_id):
        deleted = session.delete_annotation(annotation_id)
    if not deleted:
        return error_response(f'Annotation {annotation_id} not found', 404)

    audit('annotation_deleted', session.document_id, annotation_id=annotation_id)
    return jsonify({'success': True, 'deleted': annotation_id})


# =============================================================================
# Rendering surface queries
# =============================================================================

@main.route('/documents/<document_id>/matches', methods=['GET'])
@with_document
def get_matches(session):
    matches = session.get_matches()
    return jsonify({
        'success': True,
        'version': session.buffer.version,
        'matches': [match.to_dict() for match in matches],
    })


@main.route('/documents/<document_id>/segments', methods=['GET'])
@with_document
def get_segments(session):
    segments = session.get_render_segments()
    return jsonify({
        'success': True,
        'version': session.buffer.version,
        'segments': [segment.to_dict() for segment in segments],
    })


@main.route('/documents/<document_id>/verdict', methods=['GET'])
@with_document
def get_verdict(session):
    verdict = session.get_document_verdict()
    audit('verdict_computed', session.document_id, **verdict.to_dict())
    return jsonify({'success': True, 'verdict': verdict.to_dict()})


@main.route('/documents/<document_id>/render', methods=['GET'])
@with_document
def render_document(session):
    return jsonify({
        'success': True,
        'version': session.buffer.version,
        'html': session.render(),
    })


@main.route('/audit/stats', methods=['GET'])
def audit_stats():
    audit_logger = current_app.extensions.get('audit_logger')
    if audit_logger is None:
        return error_response('Audit logging is disabled', 404)
    return jsonify({'success': True, 'stats': audit_logger.get_stats(request.args.get('date'))})
