from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, SecretStr, model_validator
from pathlib import Path
import os
import logging

from esdash.domain.models import DatasourceConfig

logger = logging.getLogger("esdash.config")

# Module-level repo root to avoid Pydantic private attr behavior on class underscores
REPO_ROOT = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    # Environment variables use the ESDASH_ prefix; an optional repo-local .env is loaded
    # relative to the repo root so starting the app from any CWD still finds it.
    model_config = SettingsConfigDict(
        env_prefix="ESDASH_",
        env_file=str(REPO_ROOT / "environments" / "sample.env"),
        env_file_encoding="utf-8",
        extra="forbid",  # surface unknown env vars as errors
    )

    ENV: str = "dev"  # dev|test|prod
    API_PREFIX: str = "/v1"
    LOG_LEVEL: str = "info"

    # Elasticsearch datasource used for dashboard storage
    ES_URL: str | None = None
    ES_INDEX: str = "grafana-dash"
    ES_NAME: str = "elasticsearch"
    # Base64 "user:password" credential sent as-is in the Authorization header
    ES_BASIC_AUTH: SecretStr | None = None
    GRAFANA_DB: bool = True
    ES_TIMEOUT_SECONDS: float = 30.0

    SEARCH_MAX_RESULTS: int = Field(
        default=20, ge=1, description="Maximum dashboards returned by a search"
    )

    # Temporary (shared snapshot) dashboards
    SAVE_TEMP: bool = True
    SAVE_TEMP_TTL: str = "30d"

    # Page location temp dashboard links are built on, e.g. "https://grafana.example.com/"
    # When unset the API falls back to the incoming request's base URL.
    PUBLIC_BASE_URL: str | None = None

    # Template variables applied to annotation queries (CSV of "name=value")
    TEMPLATE_VARIABLES: str | None = None

    @model_validator(mode="after")
    def _validate_ttl(self) -> "Settings":
        if self.SAVE_TEMP and not self.SAVE_TEMP_TTL.strip():
            raise ValueError("SAVE_TEMP_TTL is required when SAVE_TEMP is enabled")
        return self


def _resolve_env_files_from_override(repo_root: Path) -> str | tuple[str, ...] | None:
    """Resolve optional override for dotenv file(s) using ESDASH_ENV_FILE.

    Supports absolute or relative paths (relative to repo root) and
    comma-separated list for multiple env files (later items override earlier).
    """
    override = os.getenv("ESDASH_ENV_FILE")
    if not override:
        return None

    def to_abs(p: str) -> str:
        path = Path(p)
        if not path.is_absolute():
            path = repo_root / p
        return str(path)

    parts = [p.strip() for p in override.split(",") if p.strip()]
    if not parts:
        return None
    if len(parts) == 1:
        return to_abs(parts[0])
    return tuple(to_abs(p) for p in parts)


def _resolve_default_env_files(repo_root: Path) -> tuple[str, ...]:
    """Committed sample.env followed by any uncommitted local overlays present.

    Later files override earlier ones.
    """
    default_env = repo_root / "environments" / "sample.env"
    overlay_candidates = [
        repo_root / "environments" / "development.local.env",
        repo_root / "environments" / "local.env",
    ]
    return (str(default_env), *(str(p) for p in overlay_candidates if p.exists()))


_override_env_file = _resolve_env_files_from_override(REPO_ROOT)

settings: Settings
if _override_env_file:

    class _RuntimeSettings(Settings):
        model_config = SettingsConfigDict(
            env_prefix="ESDASH_",
            env_file=_override_env_file,  # type: ignore[arg-type]
            env_file_encoding="utf-8",
            extra="forbid",
        )

    settings = _RuntimeSettings()
else:
    # Secrets can live in an uncommitted local.env next to sample.env
    _default_env_files = _resolve_default_env_files(REPO_ROOT)

    if len(_default_env_files) > 1:

        class _AutoOverlaySettings(Settings):
            model_config = SettingsConfigDict(
                env_prefix="ESDASH_",
                env_file=_default_env_files,  # type: ignore[arg-type]
                env_file_encoding="utf-8",
                extra="forbid",
            )

        settings = _AutoOverlaySettings()
    else:
        settings = Settings()


def log_settings() -> None:
    """Log settings at startup. SecretStr fields are automatically masked."""
    logger.info("Configuration loaded: %s", settings)


def parse_template_variables(value: str | None) -> dict[str, str]:
    """Parse CSV variables like "env=prod,host=web-01".

    Entries without "=" or with an empty name are ignored. Later entries win.
    """
    if not value:
        return {}
    res: dict[str, str] = {}
    for part in (p.strip() for p in value.split(",")):
        if "=" not in part:
            continue
        name, val = part.split("=", 1)
        name = name.strip()
        if not name:
            continue
        res[name] = val.strip()
    return res


def build_datasource_config(s: Settings | None = None) -> DatasourceConfig:
    """Resolve the datasource configuration once from settings."""
    s = s or settings
    if not s.ES_URL:
        raise RuntimeError("ES_URL must be set to use the Elasticsearch datasource")
    return DatasourceConfig(
        url=s.ES_URL,
        index=s.ES_INDEX,
        name=s.ES_NAME,
        basic_auth=s.ES_BASIC_AUTH,
        grafana_db=s.GRAFANA_DB,
        search_max_results=s.SEARCH_MAX_RESULTS,
        save_temp=s.SAVE_TEMP,
        save_temp_ttl=s.SAVE_TEMP_TTL,
    )
