"""
Audit trail of a settlement run.

Every step the orchestrator takes is recorded as an AuditEntry and mirrored
to structlog. The trail travels with the plan and can be written out as JSON.
"""

import json
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import structlog

from ..config import get_settings
from ..models import AuditAction, AuditEntry

logger = structlog.get_logger()


class AuditTrail:
    """Ordered record of what one settlement run did."""

    def __init__(self, plan_id: str, entries: Optional[Iterable[AuditEntry]] = None):
        self.plan_id = plan_id
        self.entries: List[AuditEntry] = list(entries or [])

    def record(
        self,
        action: AuditAction,
        message: str,
        success: bool = True,
        error_message: Optional[str] = None,
        **details: Any,
    ) -> AuditEntry:
        """Append an entry and emit it as a log event."""
        entry = AuditEntry(
            action=action,
            message=message,
            details=details,
            success=success,
            error_message=error_message,
        )
        self.entries.append(entry)

        log = logger.info if success else logger.warning
        log(message, plan_id=self.plan_id, action=action.value, **details)
        return entry

    def failures(self) -> List[AuditEntry]:
        return [e for e in self.entries if not e.success]

    def summary(self) -> Dict[str, Any]:
        """Counts per action plus the messages of failed steps."""
        return {
            "total_entries": len(self.entries),
            "action_counts": dict(Counter(e.action.value for e in self.entries)),
            "failures": [e.error_message or e.message for e in self.failures()],
        }

    def export(self, output_path: Optional[Path] = None) -> Path:
        """Write the trail as JSON, by default under the reports directory."""
        if output_path is None:
            output_path = get_settings().reports_dir / f"audit_{self.plan_id}.json"
        output_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "plan_id": self.plan_id,
            "exported_at": datetime.utcnow().isoformat(),
            "summary": self.summary(),
            "entries": [
                {
                    "id": e.id,
                    "timestamp": e.timestamp.isoformat(),
                    "action": e.action.value,
                    "message": e.message,
                    "details": e.details,
                    "success": e.success,
                    "error_message": e.error_message,
                }
                for e in self.entries
            ],
        }

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        logger.info("Audit trail exported", path=str(output_path))
        return output_path
