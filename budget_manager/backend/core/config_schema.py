"""
Configuration Schemas.

Pydantic models defining the expected structure of each YAML config file.
Used by AppConfig to validate configuration at load time. If a YAML file
has missing keys, wrong types, or unknown fields, a clear ValidationError
is raised at startup instead of a cryptic KeyError deep in application code.

Each top-level class corresponds to one file in config/settings/:
    ApplicationSchema  → application.yaml
    GoogleSchema       → google.yaml
    TelegramSchema     → telegram.yaml
    LoggingSchema      → logging.yaml
    FeaturesSchema     → features.yaml
    SecuritySchema     → security.yaml
    ConcurrencySchema  → concurrency.yaml
    ResilienceSchema   → resilience.yaml
"""

from pydantic import BaseModel, ConfigDict


class _StrictBase(BaseModel):
    """Base with extra='forbid' so unknown YAML keys are caught immediately."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# application.yaml
# =============================================================================


class ServerSchema(_StrictBase):
    host: str
    port: int


class CorsSchema(_StrictBase):
    origins: list[str]


class PaginationSchema(_StrictBase):
    default_per_page: int
    max_per_page: int


class TimeoutsSchema(_StrictBase):
    external_api: int


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str
    environment: str
    debug: bool
    api_prefix: str
    frontend_url: str
    server: ServerSchema
    cors: CorsSchema
    pagination: PaginationSchema
    timeouts: TimeoutsSchema


# =============================================================================
# google.yaml
# =============================================================================


class OAuthSchema(_StrictBase):
    auth_uri: str
    token_uri: str
    userinfo_uri: str
    redirect_uri: str
    scopes: list[str]


class SpreadsheetSchema(_StrictBase):
    title_prefix: str
    sheet_rows: int
    sheet_columns: int


class GoogleSchema(_StrictBase):
    oauth: OAuthSchema
    spreadsheet: SpreadsheetSchema


# =============================================================================
# telegram.yaml
# =============================================================================


class BotCommandSchema(_StrictBase):
    command: str
    description: str


class TelegramSchema(_StrictBase):
    bot_username: str
    webhook_path: str
    webhook_url: str
    allowed_updates: list[str]
    commands: list[BotCommandSchema]


# =============================================================================
# logging.yaml
# =============================================================================


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool


class FileHandlerSchema(_StrictBase):
    enabled: bool
    path: str
    max_bytes: int
    backup_count: int


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_StrictBase):
    level: str
    format: str
    handlers: HandlersSchema


# =============================================================================
# features.yaml
# =============================================================================


class FeaturesSchema(_StrictBase):
    api_detailed_errors: bool
    api_request_logging: bool
    channel_telegram_enabled: bool
    goal_alerts_enabled: bool
    income_reconciliation_enabled: bool


# =============================================================================
# security.yaml
# =============================================================================


class JwtSchema(_StrictBase):
    algorithm: str
    session_expires_in: str
    audience: str


class ChannelRateLimitSchema(_StrictBase):
    messages_per_minute: int


class RateLimitingSchema(_StrictBase):
    telegram: ChannelRateLimitSchema
    notifications: ChannelRateLimitSchema


class SecuritySchema(_StrictBase):
    jwt: JwtSchema
    rate_limiting: RateLimitingSchema


# =============================================================================
# concurrency.yaml
# =============================================================================


class ThreadPoolSchema(_StrictBase):
    max_workers: int


class SemaphoresSchema(_StrictBase):
    google_api: int
    telegram_api: int


class ConcurrencySchema(_StrictBase):
    thread_pool: ThreadPoolSchema
    semaphores: SemaphoresSchema


# =============================================================================
# resilience.yaml
# =============================================================================


class CircuitBreakerSchema(_StrictBase):
    fail_max: int
    timeout_duration: int


class RetrySchema(_StrictBase):
    max_attempts: int
    backoff_multiplier: float
    backoff_max: float


class DependencyResilienceSchema(_StrictBase):
    circuit_breaker: CircuitBreakerSchema
    retry: RetrySchema


class ReadAfterWriteSchema(_StrictBase):
    retry_delay_seconds: float


class ResilienceSchema(_StrictBase):
    google_api: DependencyResilienceSchema
    read_after_write: ReadAfterWriteSchema
