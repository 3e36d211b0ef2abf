import sys
from loguru import logger
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from src.core.config import Settings


def configure_logging(settings: Settings):
    """Route loguru to stderr and, when configured, to a rotating JSON audit file."""
    logger.remove()  # Remove default handler
    logger.add(sys.stderr, level=settings.log_level)
    if settings.audit_file:
        log_path = Path(settings.audit_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            rotation=settings.log_rotation,
            serialize=True,
            level="INFO",
            format="{time} {level} {message}",
            filter=lambda record: record["extra"].get("audit", False),
        )


class AuditLogger:
    def __init__(self):
        self._logger = logger.bind(audit=True)

    def log_extraction(
        self,
        request_id: str,
        file_name: str,
        status: str,
        probe: Optional[str] = None,
        upstream_status: Optional[int] = None,
        entity_count: int = 0,
    ):
        # The credential is never part of an audit entry
        audit_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": request_id,
            "file_name": file_name,
            "status": status,
            "probe": probe,
            "upstream_status": upstream_status,
            "entity_count": entity_count,
        }
        self._logger.info(f"AUDIT | {json.dumps(audit_entry)}")


audit_logger = AuditLogger()
