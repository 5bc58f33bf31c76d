"""Application settings and configuration."""
import os
from pathlib import Path
from typing import Dict
from dotenv import load_dotenv

from domain.errors import ConfigurationError

ENV_PATH = Path(__file__).resolve().parent / '.env'
load_dotenv(dotenv_path=ENV_PATH)


def _int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


class Settings:
    """
    Riot personal/production keys are limited per application to
    20 requests / 1 second AND 100 requests / 120 seconds. Both windows are
    enforced by one shared limiter, so every caller (batch jobs, on-demand
    refresh, registration) draws from the same budget.
    """

    RIOT_API_KEY: str = os.getenv('RIOT_API_KEY', '')

    # ── Rate limits ───────────────────────────────────────────────────────
    RATE_LIMIT_PER_1_SEC:       int = _int('RATE_LIMIT_PER_1_SEC', 20)
    RATE_LIMIT_PER_2_MIN:       int = _int('RATE_LIMIT_PER_2_MIN', 100)
    MAX_TOKEN_ACQUIRE_ATTEMPTS: int = _int('MAX_TOKEN_ACQUIRE_ATTEMPTS', 100)

    # ── HTTP ───────────────────────────────────────────────────────────────
    REQUEST_TIMEOUT:        int = _int('REQUEST_TIMEOUT', 10)
    MAX_REQUEST_ATTEMPTS:   int = _int('MAX_REQUEST_ATTEMPTS', 5)
    RETRY_AFTER_DEFAULT_MS: int = _int('RETRY_AFTER_DEFAULT_MS', 2000)

    # ── Decay tracking ─────────────────────────────────────────────────────
    # Ranked solo/duo ids looked at per account on every match-history pass.
    MATCH_HISTORY_COUNT:        int = _int('MATCH_HISTORY_COUNT', 20)
    MATCH_HISTORY_INTERVAL_MIN: int = _int('MATCH_HISTORY_INTERVAL_MIN', 30)

    # Local wall-clock time the daily decrement fires in each region.
    DECAY_RUN_TIME: str = os.getenv('DECAY_RUN_TIME', '00:00')
    DECAY_REGION_TIMEZONES: Dict[str, str] = {
        'NA1':  'America/Los_Angeles',
        'EUW1': 'Europe/London',
        'KR':   'Asia/Seoul',
    }

    # ── Paths ──────────────────────────────────────────────────────────────
    BASE_DIR: Path = Path(__file__).resolve().parent.parent
    DATA_DIR: Path = BASE_DIR / 'data'
    DB_DIR:   Path = DATA_DIR / 'db'
    LOG_DIR:  Path = DATA_DIR / 'logs'
    DB_PATH:  Path = Path(os.getenv('DECAY_DB_PATH', str(DB_DIR / 'decay.sqlite')))

    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')

    @classmethod
    def validate(cls) -> None:
        if not cls.RIOT_API_KEY:
            raise ConfigurationError("RIOT_API_KEY must be set in config/.env")

    @classmethod
    def decay_run_time(cls) -> tuple[int, int]:
        hour, _, minute = cls.DECAY_RUN_TIME.partition(':')
        try:
            return int(hour), int(minute or 0)
        except ValueError as exc:
            raise ConfigurationError(f"DECAY_RUN_TIME must look like HH:MM, got {cls.DECAY_RUN_TIME!r}") from exc

    @classmethod
    def create_directories(cls) -> None:
        cls.DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        cls.LOG_DIR.mkdir(parents=True, exist_ok=True)


settings = Settings()
