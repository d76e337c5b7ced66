# kafka_admin/core/config.py
from functools import lru_cache
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Coordinator settings loaded from keyword arguments, environment variables
    (prefix ``KAFKA_ADMIN_``) and an optional ``.env`` file.

    Notes
    -----
    - ``bootstrap_servers`` is required; there is no sensible default endpoint.
    - ``operation_timeout_ms`` bounds both the control plane acknowledgment and
      the convergence wait of every mutation.
    - ``operation_sleep_ms`` is the fixed delay between convergence checks.
    - ``secure`` switches the transport to TLS (``SSL`` / ``SASL_SSL``).
    """
    model_config = SettingsConfigDict(
        env_prefix="KAFKA_ADMIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ---------- Kafka client/admin ----------
    bootstrap_servers: str = Field(..., min_length=1)
    client_id: str = "kafka-admin-coordinator"
    api_version: str | None = None

    # Client timeouts (ms)
    request_timeout_ms: int = Field(default=20_000, ge=1)

    # ---------- Convergence polling ----------
    operation_timeout_ms: int = Field(default=30_000, ge=0)
    operation_sleep_ms: int = Field(default=50, ge=0)

    # ---------- Security ----------
    secure: bool = False
    sasl_mechanism: str | None = None
    sasl_plain_username: str | None = None
    sasl_plain_password: str | None = None
    ssl_cafile: str | None = None

    # ---------- Logging ----------
    log_level: str = "INFO"

    # ---------- CORS ----------
    cors_allow_origins: list[str] | None = None

    @field_validator("bootstrap_servers")
    @classmethod
    def _strip_servers(cls, v: str) -> str:
        """Reject blank endpoints; the cluster cannot be reached without one."""
        v = v.strip()
        if not v:
            raise ValueError("bootstrap_servers cannot be blank")
        return v

    @property
    def security_protocol(self) -> str:
        if self.sasl_mechanism:
            return "SASL_SSL" if self.secure else "SASL_PLAINTEXT"
        return "SSL" if self.secure else "PLAINTEXT"

    def kafka_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``kafka.KafkaAdminClient``."""
        kw: dict[str, Any] = dict(
            bootstrap_servers=self.bootstrap_servers,
            client_id=self.client_id,
            request_timeout_ms=self.request_timeout_ms,
            security_protocol=self.security_protocol,
        )
        if self.api_version:
            kw["api_version"] = tuple(int(p) for p in self.api_version.split("."))
        if self.sasl_mechanism:
            kw.update(
                sasl_mechanism=self.sasl_mechanism,
                sasl_plain_username=self.sasl_plain_username,
                sasl_plain_password=self.sasl_plain_password,
            )
        if self.secure and self.ssl_cafile:
            kw.update(ssl_cafile=self.ssl_cafile)
        return kw


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()  # pragma: no cover
