# config/monitoring.py

import os

from prometheus_client import Counter, Histogram


def _env_flag(name, default):
    return os.environ.get(name, default).strip().lower() == "true"


class MonitoringConfig:
    """Logging and metrics settings shared by every environment"""

    APP_NAME = os.environ.get("APP_NAME", "Medinor API")
    APP_VERSION = os.environ.get("APP_VERSION", "1.0.0")

    # Prometheus exposition of the importer metrics
    MONITORING_ENABLED = _env_flag("MONITORING_ENABLED", "false")
    METRICS_ENDPOINT = os.environ.get("METRICS_ENDPOINT", "/metrics")

    # 'json' lines or plain 'text'
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_DIR = os.environ.get("LOG_DIR", "logs")
    LOG_FILE_MAX_BYTES = int(os.environ.get("LOG_FILE_MAX_BYTES", 10 * 1024 * 1024))
    LOG_FILE_BACKUP_COUNT = int(os.environ.get("LOG_FILE_BACKUP_COUNT", 10))
    ENABLE_CONSOLE_LOGGING = _env_flag("ENABLE_CONSOLE_LOGGING", "true")
    ENABLE_FILE_LOGGING = _env_flag("ENABLE_FILE_LOGGING", "true")


class DevelopmentMonitoringConfig(MonitoringConfig):
    LOG_LEVEL = "DEBUG"
    LOG_FORMAT = "text"
    ENABLE_CONSOLE_LOGGING = True
    ENABLE_FILE_LOGGING = True


class ProductionMonitoringConfig(MonitoringConfig):
    """JSON logs to file; the container runtime collects stdout separately."""

    LOG_LEVEL = "INFO"
    LOG_FORMAT = "json"
    ENABLE_CONSOLE_LOGGING = False
    ENABLE_FILE_LOGGING = True


class TestingMonitoringConfig(MonitoringConfig):
    MONITORING_ENABLED = False
    LOG_LEVEL = "WARNING"
    LOG_FORMAT = "text"
    ENABLE_CONSOLE_LOGGING = False
    ENABLE_FILE_LOGGING = False


class ImporterMonitoring:
    """Prometheus metric helpers for the bulk-import endpoints."""

    ANALYZE_COUNTER = Counter(
        "importer_analyze_requests_total",
        "Total importer analyze requests.",
        labelnames=("domain", "status"),
    )
    ANALYZE_LATENCY = Histogram(
        "importer_analyze_request_seconds",
        "Latency histogram for importer analyze requests.",
        labelnames=("domain", "status"),
        buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30),
    )
    DISPOSITION_COUNTER = Counter(
        "importer_records_classified_total",
        "Records classified by the analyze phase, by disposition.",
        labelnames=("domain", "disposition"),
    )

    COMMIT_COUNTER = Counter(
        "importer_commit_requests_total",
        "Total importer commit requests.",
        labelnames=("domain", "status"),
    )
    COMMIT_LATENCY = Histogram(
        "importer_commit_request_seconds",
        "Latency histogram for importer commit requests.",
        labelnames=("domain", "status"),
        buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30, 60),
    )
    COMMIT_RECORDS = Counter(
        "importer_commit_records_total",
        "Records handled by the commit phase, by outcome.",
        labelnames=("domain", "outcome"),
    )

    @classmethod
    def record_analyze(cls, *, domain: str, duration_seconds: float, status: str, counts=None):
        cls.ANALYZE_COUNTER.labels(domain=domain, status=status).inc()
        cls.ANALYZE_LATENCY.labels(domain=domain, status=status).observe(max(duration_seconds, 0.0))
        for disposition, count in (counts or {}).items():
            if count:
                cls.DISPOSITION_COUNTER.labels(domain=domain, disposition=disposition).inc(count)

    @classmethod
    def record_commit(
        cls,
        *,
        domain: str,
        duration_seconds: float,
        status: str,
        created: int = 0,
        duplicates: int = 0,
        invalid: int = 0,
    ):
        cls.COMMIT_COUNTER.labels(domain=domain, status=status).inc()
        cls.COMMIT_LATENCY.labels(domain=domain, status=status).observe(max(duration_seconds, 0.0))
        if created:
            cls.COMMIT_RECORDS.labels(domain=domain, outcome="created").inc(created)
        if duplicates:
            cls.COMMIT_RECORDS.labels(domain=domain, outcome="duplicate").inc(duplicates)
        if invalid:
            cls.COMMIT_RECORDS.labels(domain=domain, outcome="invalid").inc(invalid)
