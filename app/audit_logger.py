"""
Provenance audit logging
Writes paste, annotation and verdict events as JSON lines, one file per day
"""

import json
import logging
import os
import threading
from datetime import datetime
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

AUDIT_EVENT_TYPES = {
    'paste_recorded', 'annotation_created', 'annotation_deleted', 'verdict_computed', 'document_deleted',
}


class ProvenanceAuditLogger:
    """
    Appends audit events for later review of flagged documents
    """

    def __init__(self, logs_dir: str):
        self.logs_dir = logs_dir
        os.makedirs(logs_dir, exist_ok=True)
        self._lock = threading.Lock()

        self.audit_logger = self._setup_audit_logging()

    def _log_path(self, date_str: str) -> str:
        return os.path.join(self.logs_dir, f"provenance_audit_{date_str}.jsonl")

    def _setup_audit_logging(self) -> logging.Logger:
        """Dedicated logger per logs directory so separate apps don't share a file"""
        audit_logger = logging.getLogger(f"provenance_audit.{os.path.abspath(self.logs_dir)}")
        audit_logger.setLevel(logging.INFO)
        audit_logger.propagate = False
        self._use_file_for(audit_logger, datetime.now().strftime('%Y%m%d'))
        return audit_logger

    def _use_file_for(self, audit_logger: logging.Logger, date_str: str):
        """Point the logger at the given day's file, closing any handler left on another day"""
        path = os.path.abspath(self._log_path(date_str))
        for handler in list(audit_logger.handlers):
            if isinstance(handler, logging.FileHandler) and handler.baseFilename != path:
                audit_logger.removeHandler(handler)
                handler.close()

        if not audit_logger.handlers:
            file_handler = logging.FileHandler(path, encoding='utf-8')
            file_handler.setLevel(logging.INFO)
            file_handler.setFormatter(logging.Formatter('%(message)s'))
            audit_logger.addHandler(file_handler)
            logger.debug(f"Audit events now written to {path}")

    def log_event(self, event_type: str, document_id: str, **details: Any) -> Dict[str, Any]:
        if event_type not in AUDIT_EVENT_TYPES:
            raise ValueError(f"Unknown audit event type: {event_type}")

        now = datetime.now()
        event = {
            'event_type': event_type,
            'document_id': document_id,
            'server_timestamp': now.timestamp(),
            'server_iso_timestamp': now.isoformat(),
            **details,
        }
        with self._lock:
            self._use_file_for(self.audit_logger, now.strftime('%Y%m%d'))
            self.audit_logger.info(json.dumps(event, ensure_ascii=False, default=str))
            for handler in self.audit_logger.handlers:
                handler.flush()
        return event

    def get_stats(self, date_str: Optional[str] = None) -> Dict[str, Any]:
        """Summarize a day's audit file"""
        if not date_str:
            date_str = datetime.now().strftime('%Y%m%d')

        log_file = self._log_path(date_str)
        stats = {
            'date': date_str,
            'total_events': 0,
            'event_types': {},
            'documents': 0,
            'flagged_verdicts': 0,
        }
        if not os.path.exists(log_file):
            return stats

        documents = set()
        with open(log_file, 'r', encoding='utf-8') as f:
            for line in f:
                if not line.strip():
                    continue
                try:
                    event = json.loads(line)
                except json.JSONDecodeError:
                    logger.warning(f"Skipping corrupt audit line in {log_file}")
                    continue

                stats['total_events'] += 1
                event_type = event.get('event_type', 'unknown')
                stats['event_types'][event_type] = stats['event_types'].get(event_type, 0) + 1
                if 'document_id' in event:
                    documents.add(event['document_id'])
                if event_type == 'verdict_computed' and event.get('flagged'):
                    stats['flagged_verdicts'] += 1

        stats['documents'] = len(documents)
        return stats
