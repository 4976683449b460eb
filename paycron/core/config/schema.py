"""paycron configuration schema — YAML + Pydantic + env override."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from paycron.core.cron.types import JobDefinition


class ConnectionConfig(BaseModel):
    """Everything needed to reach the payment node.

    Built once at startup and handed by value to every component; there is
    no process-wide client.
    """

    model_config = ConfigDict(frozen=True)

    server_url: str
    cert_path: str
    macaroon_path: str


# ════════════════════════════════════════════════════════════
# ROOT CONFIG (BaseSettings, env + .env support)
# ════════════════════════════════════════════════════════════


class Config(BaseSettings):
    """
    Root configuration.

    Priority: init kwargs (YAML) > env vars > .env > defaults

    Env override examples:
        PAYCRON_SERVER_URL=https://node.local:8080
        PAYCRON_MACAROON_PATH=/secrets/admin.macaroon
    """

    model_config = SettingsConfigDict(
        env_prefix="PAYCRON_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    server_url: str = "https://localhost:8080"
    cert_path: str = "~/.lnd/tls.cert"
    macaroon_path: str = "~/.lnd/data/chain/bitcoin/mainnet/admin.macaroon"
    jobs: list[JobDefinition] = Field(default_factory=list)

    # ── Computed properties ─────────────────────────────────

    @property
    def connection(self) -> ConnectionConfig:
        """Node connection bundle with ``~`` expanded in credential paths."""
        return ConnectionConfig(
            server_url=self.server_url,
            cert_path=str(Path(self.cert_path).expanduser()),
            macaroon_path=str(Path(self.macaroon_path).expanduser()),
        )
