"""
Data quality monitoring over loaded warehouse data.

Modules:
    quality: Freshness, completeness, validity and duplication checks
    notifiers: Alert delivery (Slack webhook, log)
"""

from monitoring.notifiers import LoggingNotifier, Notifier, SlackNotifier, build_notifier
from monitoring.quality import DataQualityMonitor, assess_data_quality

__all__ = [
    "DataQualityMonitor",
    "assess_data_quality",
    "Notifier",
    "SlackNotifier",
    "LoggingNotifier",
    "build_notifier",
]
