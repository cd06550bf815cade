"""
Connector registry.

``build_connector`` assembles the connector for a source from settings and
fails with ConfigurationError, before any request is made, when a
credential is missing.
"""

from typing import Optional

import httpx

from core.config import Settings, settings as default_settings
from core.exceptions import ConfigurationError
from ingestion.connectors.base import Connector, HTTPConnector
from ingestion.connectors.vendors import (
    GaroonConnector,
    GoogleSheetsConnector,
    JobCanConnector,
    PCACloudConnector,
    SmartHRConnector,
)
from models.base import SourceSystem

__all__ = [
    "Connector",
    "HTTPConnector",
    "GaroonConnector",
    "SmartHRConnector",
    "JobCanConnector",
    "PCACloudConnector",
    "GoogleSheetsConnector",
    "build_connector",
]


def _require(config: Settings, source: SourceSystem, *names: str) -> None:
    missing = [name for name in names if not getattr(config, name)]
    if missing:
        raise ConfigurationError(
            f"Missing credentials for {source.value}: {', '.join(missing)}",
            context={"source_system": source.value, "missing": missing}
        )


def build_connector(
    source: SourceSystem,
    config: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Connector:
    config = config or default_settings
    timeout = config.FETCH_TIMEOUT_SECONDS

    if source == SourceSystem.GAROON:
        _require(config, source, "GAROON_API_ENDPOINT", "GAROON_AUTH_TOKEN")
        return GaroonConnector(
            config.GAROON_API_ENDPOINT, config.GAROON_AUTH_TOKEN, timeout=timeout, client=client
        )

    if source == SourceSystem.SMARTHR:
        _require(config, source, "SMARTHR_BASE_URL", "SMARTHR_API_TOKEN")
        return SmartHRConnector(
            config.SMARTHR_BASE_URL, config.SMARTHR_API_TOKEN, timeout=timeout, client=client
        )

    if source == SourceSystem.JOBCAN:
        _require(config, source, "JOBCAN_BASE_URL", "JOBCAN_API_KEY")
        return JobCanConnector(
            config.JOBCAN_BASE_URL, config.JOBCAN_API_KEY, timeout=timeout, client=client
        )

    if source == SourceSystem.PCA:
        _require(config, source, "PCA_BASE_URL", "PCA_API_KEY")
        return PCACloudConnector(
            config.PCA_BASE_URL, config.PCA_API_KEY, timeout=timeout, client=client
        )

    if source == SourceSystem.SHEETS_HR:
        _require(config, source, "SHEETS_SPREADSHEET_ID", "SHEETS_API_KEY")
        return GoogleSheetsConnector(
            config.SHEETS_API_BASE,
            config.SHEETS_SPREADSHEET_ID,
            config.SHEETS_RANGE,
            config.SHEETS_API_KEY,
            timeout=timeout,
            client=client,
        )

    raise ConfigurationError(
        f"No connector registered for {source}",
        context={"source_system": str(source), "missing": "connector"}
    )
