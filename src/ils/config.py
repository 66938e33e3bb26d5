from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import sys

from ils.domain.errors import ValidationError


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    db_path: Path
    logs_dir: Path


@dataclass(frozen=True)
class Settings:
    items_per_page: int = 6
    latest_orders_limit: int = 5
    best_selling_limit: int = 5
    busy_timeout_seconds: float = 5.0


def _windows_appdata() -> Path:
    return Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))


def _mac_app_support() -> Path:
    return Path.home() / "Library" / "Application Support"


def get_app_paths(app_name: str = "InventoryLedger") -> AppPaths:
    override = os.environ.get("ILS_HOME", "").strip()
    if override:
        base = Path(override)
    elif sys.platform.startswith("win"):
        base = _windows_appdata() / app_name
    elif sys.platform == "darwin":
        base = _mac_app_support() / app_name
    else:
        base = Path.home() / f".{app_name.lower()}"

    logs = base / "logs"
    db = base / "inventory.db"

    base.mkdir(parents=True, exist_ok=True)
    logs.mkdir(parents=True, exist_ok=True)

    return AppPaths(base_dir=base, db_path=db, logs_dir=logs)


def _env_number(name: str, cast, default, minimum):
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ValidationError(f"{name} must be a number, got {raw!r}.") from exc
    if value < minimum:
        raise ValidationError(f"{name} must be >= {minimum}, got {raw!r}.")
    return value


def load_settings() -> Settings:
    defaults = Settings()
    return Settings(
        items_per_page=_env_number("ILS_ITEMS_PER_PAGE", int, defaults.items_per_page, 1),
        latest_orders_limit=defaults.latest_orders_limit,
        best_selling_limit=defaults.best_selling_limit,
        busy_timeout_seconds=_env_number("ILS_BUSY_TIMEOUT", float, defaults.busy_timeout_seconds, 0),
    )
