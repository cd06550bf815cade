"""
Data quality checks.

``DataQualityMonitor`` runs independently of the load path over rows that
are already in the warehouse and raises alerts per source system.
``assess_data_quality`` summarizes an in-memory batch and is attached to
the execution log of each ETL run.
"""

from collections import Counter, defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union
import logging
import secrets
import string

from core.config import Settings, settings as default_settings
from core.exceptions import NotificationError
from ingestion.loaders.warehouse import Warehouse
from ingestion.transformers.validation import EMAIL_PATTERN, validate_record
from models.base import AlertSeverity
from monitoring.notifiers import Notifier, LoggingNotifier
from schemas.normalized import IDENTITY_KEY
from schemas.pipeline import Alert, QualityReport
from schemas.table_schemas import ALERTS_TABLE, DATA_QUALITY_ALERTS, EMPLOYEES_UNIFIED

logger = logging.getLogger(__name__)

_EMAIL_RE = EMAIL_PATTERN
_ALERT_ID_ALPHABET = string.ascii_lowercase + string.digits


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


class DataQualityMonitor:
    """
    Quality checks over ``employees_unified``.

    Thresholds (from settings):
    - Freshness: newest ``processed_at`` per source older than 24h -> warning
    - Completeness: share of rows with an employee_id below 80% -> error
    - Validity: share of rows with a well-formed email below 95% -> warning
    - Duplication: share of identity keys seen more than once above 5% -> warning
    """

    def __init__(
        self,
        warehouse: Warehouse,
        notifier: Optional[Notifier] = None,
        config: Optional[Settings] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.warehouse = warehouse
        self.notifier = notifier or LoggingNotifier()
        self.config = config or default_settings
        self.clock = clock
        self.table = self.config.WAREHOUSE_TABLE

    async def _window_rows(self) -> List[Dict[str, Any]]:
        since = self.clock() - timedelta(hours=self.config.QUALITY_WINDOW_HOURS)
        return await self.warehouse.fetch_rows(self.table, since=since)

    async def check_data_freshness(self) -> List[Alert]:
        latest = await self.warehouse.latest_by_group(self.table, "source_system", "processed_at")
        now = self.clock()
        alerts = []

        for source_system, processed_at in latest.items():
            if processed_at is None:
                continue
            hours_old = int((now - processed_at).total_seconds() // 3600)
            if hours_old > self.config.QUALITY_FRESHNESS_HOURS:
                alerts.append(Alert(
                    type="data_freshness",
                    severity=AlertSeverity.WARNING,
                    message=f"{source_system} data is {hours_old} hours old",
                    source_system=source_system,
                    metric_value=float(hours_old),
                ))

        return alerts

    def quality_alerts(self, rows: Sequence[Mapping[str, Any]]) -> List[Alert]:
        by_source: Dict[str, List[Mapping[str, Any]]] = defaultdict(list)
        for row in rows:
            by_source[row.get("source_system")].append(row)

        alerts = []
        for source_system, group in by_source.items():
            total = len(group)
            with_id = sum(1 for r in group if not _is_blank(r.get(IDENTITY_KEY)))
            valid_emails = sum(
                1 for r in group
                if isinstance(r.get("email"), str) and _EMAIL_RE.match(r["email"])
            )

            completeness = round(with_id / total * 100, 2)
            validity = round(valid_emails / total * 100, 2)

            if completeness < self.config.QUALITY_COMPLETENESS_MIN:
                alerts.append(Alert(
                    type="data_completeness",
                    severity=AlertSeverity.ERROR,
                    message=f"{source_system} employee ID completeness is {completeness}%",
                    source_system=source_system,
                    metric_value=completeness,
                ))

            if validity < self.config.QUALITY_VALIDITY_MIN:
                alerts.append(Alert(
                    type="data_validity",
                    severity=AlertSeverity.WARNING,
                    message=f"{source_system} email validity is {validity}%",
                    source_system=source_system,
                    metric_value=validity,
                ))

        return alerts

    def duplicate_alerts(self, rows: Sequence[Mapping[str, Any]]) -> List[Alert]:
        counts = Counter(
            r.get(IDENTITY_KEY) for r in rows if not _is_blank(r.get(IDENTITY_KEY))
        )
        if not counts:
            return []

        duplicated = sum(1 for n in counts.values() if n > 1)
        percentage = duplicated / len(counts) * 100

        if percentage > self.config.QUALITY_DUPLICATE_MAX:
            return [Alert(
                type="duplicate_records",
                severity=AlertSeverity.WARNING,
                message=f"{percentage:.2f}% of records are duplicates",
                metric_value=round(percentage, 2),
            )]
        return []

    async def run_all_checks(self) -> QualityReport:
        await self.warehouse.ensure_table(self.table, EMPLOYEES_UNIFIED)

        rows = await self._window_rows()
        alerts = await self.check_data_freshness()
        alerts.extend(self.quality_alerts(rows))
        alerts.extend(self.duplicate_alerts(rows))

        report = QualityReport(timestamp=self.clock(), alerts=alerts)
        logger.info(f"Data quality check finished with {report.alerts_count} alerts")

        if alerts:
            await self.send_alerts(alerts)

        return report

    async def send_alerts(self, alerts: List[Alert]) -> None:
        try:
            await self.notifier.send(alerts)
        except NotificationError as e:
            logger.error(str(e), extra={"error_context": e.to_dict()})

        await self.log_alerts(alerts)

    async def log_alerts(self, alerts: List[Alert]) -> None:
        """Append alerts to the alert history table; failures are only logged"""
        now = self.clock()
        rows = [
            {
                "alert_id": self._alert_id(now),
                "timestamp": now,
                "alert_type": alert.type,
                "severity": alert.severity,
                "message": alert.message,
                "source_system": alert.source_system,
                "metric_value": alert.metric_value,
            }
            for alert in alerts
        ]

        try:
            await self.warehouse.insert_rows(ALERTS_TABLE, DATA_QUALITY_ALERTS, rows)
        except Exception as e:
            logger.error(f"Error logging alerts: {e}")

    @staticmethod
    def _alert_id(now: datetime) -> str:
        suffix = "".join(secrets.choice(_ALERT_ID_ALPHABET) for _ in range(9))
        return f"alert_{int(now.timestamp() * 1000)}_{suffix}"


def assess_data_quality(records: Sequence[Union[Mapping[str, Any], Any]]) -> Dict[str, Any]:
    """
    Summarize a batch of records.

    Returns ``total_records``, ``field_completeness`` (percentage of
    non-null values for every field present in any record; model fields
    that were never set do not count as present),
    ``completeness_score`` (mean of field completeness), ``validity_score``
    (percentage passing validation) and ``duplicate_count``.
    """
    rows = [r.model_dump(exclude_unset=True) if hasattr(r, "model_dump") else dict(r) for r in records]
    total = len(rows)

    metrics: Dict[str, Any] = {
        "total_records": total,
        "field_completeness": {},
        "completeness_score": 0.0,
        "validity_score": 0.0,
        "duplicate_count": 0,
    }
    if not total:
        return metrics

    fields: List[str] = []
    for row in rows:
        for name in row:
            if name not in fields:
                fields.append(name)

    completeness = {
        name: sum(1 for row in rows if row.get(name) is not None) / total * 100
        for name in fields
    }
    metrics["field_completeness"] = completeness
    if completeness:
        metrics["completeness_score"] = sum(completeness.values()) / len(completeness)

    valid = sum(1 for row in rows if validate_record(row).is_valid)
    metrics["validity_score"] = valid / total * 100

    ids = [row.get(IDENTITY_KEY) for row in rows if row.get(IDENTITY_KEY)]
    metrics["duplicate_count"] = len(ids) - len(set(ids))

    return metrics
