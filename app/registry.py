"""
In-memory registry of document sessions
Persistence is handled by the storage layer outside this service.
"""

import logging
import threading
import uuid
from typing import Dict, Optional

from paste_provenance import DocumentSession, MatchPolicy

logger = logging.getLogger(__name__)


class DocumentRegistry:

    def __init__(self, policy: Optional[MatchPolicy] = None):
        self.policy = policy
        self._sessions: Dict[str, DocumentSession] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def create(self, text: str = '') -> DocumentSession:
        document_id = uuid.uuid4().hex[:12]
        session = DocumentSession(text, policy=self.policy, document_id=document_id)
        with self._registry_lock:
            self._sessions[document_id] = session
            self._locks[document_id] = threading.Lock()
        logger.info(f"Created document session {document_id}")
        return session

    def get(self, document_id: str) -> Optional[DocumentSession]:
        return self._sessions.get(document_id)

    def remove(self, document_id: str) -> bool:
        with self._registry_lock:
            session = self._sessions.pop(document_id, None)
            self._locks.pop(document_id, None)
        if session is not None:
            logger.info(f"Removed document session {document_id}")
        return session is not None

    def lock_for(self, document_id: str) -> threading.Lock:
        """Serializes writes (edits, pastes, annotations) to one document"""
        with self._registry_lock:
            # A session removed mid-request still gets a lock; its writes are discarded with it
            return self._locks.get(document_id) or threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)
