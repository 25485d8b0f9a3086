"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP) y servicios (cache/retry) lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "holidays-explorer"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "holidays-explorer"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "holidays-explorer"
    return Path.home() / ".config" / "holidays-explorer"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if key:
            data[key] = value.strip().strip('"').strip("'")
    return data


def write_user_env_vars(values: dict[str, str], env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# holidays-explorer user config (.env)"]
    for key in sorted(existing):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters/servicios.
    """

    model_config = SettingsConfigDict(
        env_prefix="HOLIDAYS_EXPLORER_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_base_url: str = Field(
        default="https://openholidaysapi.org",
        min_length=8,
        description="Base URL de la API de festivos (OpenHolidays compatible).",
    )
    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="holidays-explorer/0.1",
        min_length=1,
        description="User-Agent para las peticiones a la API.",
    )

    default_language: str = Field(
        default="en",
        min_length=1,
        description="Idioma preferido al elegir textos localizados.",
    )

    countries_stale_minutes: float = Field(
        default=30.0,
        gt=0,
        description="Minutos que la lista de países se considera fresca.",
    )
    holidays_stale_minutes: float = Field(
        default=15.0,
        gt=0,
        description="Minutos que un calendario de festivos se considera fresco.",
    )
    retry_base_delay_ms: int = Field(
        default=1000,
        ge=0,
        le=60_000,
        description="Delay base (ms) del backoff exponencial ante fallos transitorios.",
    )

    log_level: str = Field(
        default="WARNING",
        description="Nivel de logging por defecto (DEBUG/INFO/WARNING/ERROR).",
    )
