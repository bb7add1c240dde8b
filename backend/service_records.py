"""
Ingestion rules for the three receive routes and the read routes.

Routes hand decoded bodies to `RecordService`, which decides what gets
stored and builds the envelope sent back. File access stays behind
`RecordRepo`; nothing here opens the collection file.

What happens here:
- tag typed payloads (`type`) and stamp their arrival (`receivedAt`)
- enforce the one required field of the legacy route (`timestamp`)
- shape the response envelopes returned by the routes
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from models import ClearResponse, DataResponse, HealthResponse, IngestResponse
from repo_records import Record, RecordRepo
from settings import settings

logger = logging.getLogger(__name__)

AUTOMATION = "automation"
ACCOUNT = "account"


def utc_now_iso() -> str:
    """Current UTC time as `2024-01-01T00:00:00.000Z`."""

    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_truthy(value: Any) -> bool:
    """Truthiness of a decoded JSON value as JavaScript clients see it.

    Empty strings, zero, `false` and `null` are falsy; every array and
    object is truthy, even an empty one.
    """

    if value is None or value is False:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value != ""
    return True


def tag_record(body: Dict[str, Any], record_type: str) -> Record:
    """Return a copy of `body` tagged with `type` and stamped with `receivedAt`."""

    record: Record = {"type": record_type}
    record.update(body)
    record["type"] = record_type
    record["receivedAt"] = utc_now_iso()
    return record


class RecordService:
    """Ingestion rules + response shaping.

    Example usage:
        repo = RecordRepo("/tmp/mdb_data.json")
        svc = RecordService(repo)
        svc.receive_automation({"phone": "+1555", "delay": 5})
    """

    def __init__(self, repo: RecordRepo, latest_limit: Optional[int] = None):
        self.repo = repo
        self.latest_limit = settings.latest_limit if latest_limit is None else latest_limit

    def _ack(self, record: Record, message: str) -> IngestResponse:
        count = self.repo.append(record)
        logger.info("Record saved, total entries: %d", count)
        return IngestResponse(message=message, dataCount=count, timestamp=utc_now_iso())

    def receive_automation(self, body: Dict[str, Any]) -> IngestResponse:
        logger.info(
            "Automation received: phone=%s delay=%s level=%s withdrawalAmount=%s",
            body.get("phone"),
            body.get("delay"),
            body.get("level"),
            body.get("withdrawalAmount"),
        )
        return self._ack(tag_record(body, AUTOMATION), "Automation data received and saved")

    def receive_account(self, body: Dict[str, Any]) -> IngestResponse:
        logger.info(
            "Account received: phone=%s withdrawalNumbers=%s",
            body.get("phone"),
            body.get("withdrawalNumbers"),
        )
        return self._ack(tag_record(body, ACCOUNT), "Account data received and saved")

    def receive_legacy(self, body: Dict[str, Any], client_ip: Optional[str] = None) -> IngestResponse:
        """Store `body` unmodified.

        Raises:
        - `ValueError` if `timestamp` is absent or falsy; nothing is stored
        """

        if not is_truthy(body.get("timestamp")):
            raise ValueError("Invalid data: missing timestamp")

        logger.info("Data received: timestamp=%s client=%s", body["timestamp"], client_ip)
        return self._ack(dict(body), "Data received and saved")

    def all_records(self) -> DataResponse:
        records = self.repo.load()
        return DataResponse(count=len(records), data=records)

    def latest_records(self) -> DataResponse:
        records = self.repo.latest(self.latest_limit)
        return DataResponse(count=len(records), data=records)

    def export_records(self) -> bytes:
        return self.repo.export()

    def clear_records(self) -> ClearResponse:
        self.repo.clear()
        logger.warning("All records deleted")
        return ClearResponse(message="All data has been deleted")

    def health(self) -> HealthResponse:
        return HealthResponse(server=settings.server_name, timestamp=utc_now_iso())
