"""
Audit trail logging for clinical record changes.

Entries are written as JSON lines to a timestamped file by a background worker
so that the clinical operation that produced them never waits on, or fails
because of, the audit write. The acting user is always passed explicitly.
"""

import json
import logging
import queue
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

_STOP = object()


class AuditLogger:
    """
    Best-effort audit logger.

    `log_event` only enqueues; a daemon thread drains the queue to disk. Any
    failure, on either side of the queue, is reported as a warning on the
    `wardcare.audit` logger and swallowed.
    """

    def __init__(self, log_dir: Optional[str] = None):
        self.logger = logging.getLogger("wardcare.audit")

        self.log_dir = Path(log_dir) if log_dir is not None else Path("logs/audit")
        self.log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        self.log_file = self.log_dir / f"{timestamp}_audit.jsonl"

        self.event_count = 0
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._worker = threading.Thread(
            target=self._drain, name="wardcare-audit-writer", daemon=True
        )
        self._worker.start()

        self.logger.info(f"Audit logging initialized. Log file: {self.log_file}")

    def log_event(
        self,
        user_id: str,
        action: str,
        entity_type: str,
        entity_id: str,
        old_value: Optional[Dict[str, Any]] = None,
        new_value: Optional[Dict[str, Any]] = None,
    ) -> Optional[str]:
        """
        Queue an audit entry.

        Args:
            user_id: The user performing the action
            action: What was done (e.g. 'create', 'status_change', 'add_results')
            entity_type: Record type, e.g. 'investigation'
            entity_id: Id of the affected record
            old_value: Relevant fields before the change
            new_value: Relevant fields after the change

        Returns:
            The audit entry id, or None if the entry could not be queued
        """
        try:
            entry = {
                "id": str(uuid.uuid4()),
                "user_id": user_id,
                "action": action,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "old_value": old_value,
                "new_value": new_value,
                "timestamp": datetime.now().isoformat(),
            }
            self._queue.put_nowait(entry)
            self.event_count += 1
            return entry["id"]
        except Exception as e:
            self.logger.warning(f"Failed to queue audit event {action} on {entity_type}/{entity_id}: {e}")
            return None

    def _drain(self) -> None:
        while True:
            entry = self._queue.get()
            try:
                if entry is _STOP:
                    return
                self._write(entry)
            except Exception as e:
                self.logger.warning(f"Failed to write audit event: {e}")
            finally:
                self._queue.task_done()

    def _write(self, entry: Dict[str, Any]) -> None:
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, default=str) + "\n")

    def flush(self) -> None:
        """Block until every queued entry has been handled."""
        self._queue.join()

    def close(self) -> None:
        """Drain outstanding entries and stop the worker thread."""
        self._queue.put(_STOP)
        self._worker.join()

    def read_entries(self) -> List[Dict[str, Any]]:
        """Return the entries written so far by this logger."""
        if not self.log_file.exists():
            return []
        with open(self.log_file, "r", encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]


class NullAuditLogger:
    """Audit collaborator that records nothing."""

    def log_event(self, user_id: str, action: str, entity_type: str, entity_id: str,
                  old_value: Optional[Dict[str, Any]] = None,
                  new_value: Optional[Dict[str, Any]] = None) -> Optional[str]:
        return None

    def flush(self) -> None:
        pass

    def close(self) -> None:
        pass
