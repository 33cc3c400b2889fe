"""Pydantic configuration models for the exporter."""

from pydantic import BaseModel, Field, field_validator
import re


class StoreConfig(BaseModel):
    """Bookmarks database location and the query yielding URLs."""
    path: str = "./bookmarks.db"
    query: str = "SELECT url FROM bookmarks"

    @field_validator('query')
    @classmethod
    def validate_query(cls, v: str) -> str:
        """Only read-only queries are accepted."""
        if not v.strip().lower().startswith('select'):
            raise ValueError('Store query must be a SELECT statement')
        return v


class ProbeConfig(BaseModel):
    """Outbound HTTP probe settings."""
    timeout_seconds: float = Field(default=5.0, gt=0)
    user_agent: str = "bookmarks-alive-exporter/1.0"
    follow_redirects: bool = True


class CollectionConfig(BaseModel):
    """Worker pool sizing and per-scrape deadline."""
    workers: int = Field(default=20, ge=1, le=1000)
    url_queue_size: int = Field(default=100, ge=1)
    result_queue_size: int = Field(default=1000, ge=1)
    deadline_seconds: float = Field(default=30.0, gt=0)
    serialize_runs: bool = False  # Overlapping scrapes race on the gauge store unless set


class ServerConfig(BaseModel):
    """HTTP listener settings."""
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    metrics_path: str = "/metrics"
    shutdown_timeout_seconds: float = Field(default=5.0, ge=0)

    @field_validator('metrics_path')
    @classmethod
    def validate_metrics_path(cls, v: str) -> str:
        """Route paths must be absolute."""
        if not v.startswith('/'):
            raise ValueError('metrics_path must start with /')
        return v


class MetricConfig(BaseModel):
    """Name and help text of the exported status gauge."""
    name: str = "bookmarks_alive_status"
    help: str = "HTTP status code of the bookmarked URL"

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Prometheus metric name syntax."""
        if not re.match(r'^[a-zA-Z_:][a-zA-Z0-9_:]*$', v):
            raise ValueError(f'Invalid metric name: {v}')
        return v


class LoggingConfig(BaseModel):
    """Log output settings."""
    level: str = "INFO"

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f'Unknown log level: {v}')
        return v


class ExporterConfig(BaseModel):
    """Root configuration model for the exporter."""
    store: StoreConfig = Field(default_factory=StoreConfig)
    probe: ProbeConfig = Field(default_factory=ProbeConfig)
    collection: CollectionConfig = Field(default_factory=CollectionConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    metric: MetricConfig = Field(default_factory=MetricConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
