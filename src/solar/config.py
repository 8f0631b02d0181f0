"""Process settings read from the environment (and a .env file, if present)."""

import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

DEFAULT_SYSTEM_ID = "2875024"
DEFAULT_ENLIGHTEN_URL = "https://enlighten.enphaseenergy.com/pv/public_systems"
DEFAULT_FORECAST_URL = "https://api.forecast.solar"
DEFAULT_HISTORY_START = "2022-06-01"
DEFAULT_DATASET_PATH = Path("public") / "data.json"
DEFAULT_DB_PATH = Path.home() / ".local" / "share" / "solar-value" / "cache.db"

# Site defaults (Colorado Front Range, 7.67 kW AC)
DEFAULT_LATITUDE = 39.8
DEFAULT_LONGITUDE = -105.08
DEFAULT_AZIMUTH = -15
DEFAULT_KWP = 7.67


@dataclass(frozen=True)
class Settings:
    system_id: str = DEFAULT_SYSTEM_ID
    enlighten_url: str = DEFAULT_ENLIGHTEN_URL
    proxy_url: str | None = None
    forecast_url: str = DEFAULT_FORECAST_URL
    forecast_api_key: str | None = None
    history_start: date = date.fromisoformat(DEFAULT_HISTORY_START)
    recent_days: int = 5  # days before today re-fetched with today
    timezone: str = "UTC"
    dataset_path: Path = DEFAULT_DATASET_PATH
    db_path: Path = DEFAULT_DB_PATH
    tariff_path: Path | None = None
    update_minutes: int = 15
    latitude: float = DEFAULT_LATITUDE
    longitude: float = DEFAULT_LONGITUDE
    azimuth: float = DEFAULT_AZIMUTH
    kwp: float = DEFAULT_KWP
    declination: float | None = None
    http_timeout: float = 30.0
    git_commit: bool = True

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def _optional_float(value: str | None) -> float | None:
    return float(value) if value not in (None, "") else None


def load_settings(env_file: Path | None = None) -> Settings:
    """Build settings from SOLAR_* environment variables."""
    load_dotenv(env_file)
    env = os.environ

    tariff_path = env.get("SOLAR_TARIFF_PATH")
    return Settings(
        system_id=env.get("SOLAR_SYSTEM_ID", DEFAULT_SYSTEM_ID),
        enlighten_url=env.get("SOLAR_ENLIGHTEN_URL", DEFAULT_ENLIGHTEN_URL),
        proxy_url=env.get("SOLAR_PROXY_URL") or None,
        forecast_url=env.get("SOLAR_FORECAST_URL", DEFAULT_FORECAST_URL),
        forecast_api_key=env.get("FORECAST_SOLAR_API_KEY") or None,
        history_start=date.fromisoformat(env.get("SOLAR_HISTORY_START", DEFAULT_HISTORY_START)),
        recent_days=int(env.get("SOLAR_RECENT_DAYS", "5")),
        timezone=env.get("SOLAR_TIMEZONE", "UTC"),
        dataset_path=Path(env.get("SOLAR_DATASET_PATH", str(DEFAULT_DATASET_PATH))),
        db_path=Path(env.get("SOLAR_DB_PATH", str(DEFAULT_DB_PATH))),
        tariff_path=Path(tariff_path) if tariff_path else None,
        update_minutes=int(env.get("SOLAR_UPDATE_MINUTES", "15")),
        latitude=float(env.get("SOLAR_LATITUDE", DEFAULT_LATITUDE)),
        longitude=float(env.get("SOLAR_LONGITUDE", DEFAULT_LONGITUDE)),
        azimuth=float(env.get("SOLAR_AZIMUTH", DEFAULT_AZIMUTH)),
        kwp=float(env.get("SOLAR_KWP", DEFAULT_KWP)),
        declination=_optional_float(env.get("SOLAR_DECLINATION")),
        http_timeout=float(env.get("SOLAR_HTTP_TIMEOUT", "30")),
        git_commit=env.get("SOLAR_GIT_COMMIT", "1") not in ("0", "false", "no"),
    )
