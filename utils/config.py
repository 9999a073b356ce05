"""
Configuration management for axiom.
Environment detection and .env loading shared by the orchestrator and the CLI.
"""

import os
import sys
from pathlib import Path
from typing import Callable, Optional, TypeVar

import dotenv

T = TypeVar('T')

VALID_ENVIRONMENTS = {'development', 'testing', 'production'}
TRUTHY_VALUES = {'1', 'true', 'yes', 'on'}
FALSY_VALUES = {'0', 'false', 'no', 'off'}


class Config:
    """
    Process-wide view of AXIOM_* settings.

    The first lookup loads `.env.<environment>` from the project root, or
    `.env` when no environment file exists. Variables already set in the
    process win over the plain `.env` file.
    """

    _environment: Optional[str] = None
    _dotenv_loaded: bool = False

    @classmethod
    def _detect_environment(cls) -> str:
        # AXIOM_ENV, then pytest, then development; reads os.environ only
        env = os.environ.get('AXIOM_ENV', '').strip().lower()
        if env:
            return env
        if os.environ.get('PYTEST_CURRENT_TEST') or 'pytest' in sys.argv[0]:
            return 'testing'
        return 'development'

    @classmethod
    def _load_dotenv(cls) -> None:
        if cls._dotenv_loaded:
            return

        root = cls.get_project_root()
        env_file = root / f'.env.{cls._detect_environment()}'
        if env_file.exists():
            dotenv.load_dotenv(env_file, override=True)
        elif (root / '.env').exists():
            dotenv.load_dotenv(root / '.env', override=False)

        cls._dotenv_loaded = True

    @classmethod
    def get_environment(cls) -> str:
        """Current environment name: development, testing or production."""
        if cls._environment is None:
            cls._load_dotenv()
            env = cls._detect_environment()
            if env not in VALID_ENVIRONMENTS:
                raise ValueError(f"Invalid environment '{env}'. Must be one of: {VALID_ENVIRONMENTS}")
            cls._environment = env
        return cls._environment

    @classmethod
    def set_environment(cls, env: str) -> None:
        if env not in VALID_ENVIRONMENTS:
            raise ValueError(f"Invalid environment '{env}'. Must be one of: {VALID_ENVIRONMENTS}")
        cls._environment = env

    @classmethod
    def reset(cls) -> None:
        """Forget the cached environment so the next lookup re-reads it."""
        cls._environment = None
        cls._dotenv_loaded = False

    @classmethod
    def get_env_var(cls, key: str, default: Optional[str] = None) -> Optional[str]:
        """Stripped value of `key`; blank or unset gives `default`."""
        cls._load_dotenv()
        value = os.environ.get(key)
        if value is None or not value.strip():
            return default
        return value.strip()

    @classmethod
    def _get_converted(cls, key: str, default: T, convert: Callable[[str], T], expected: str) -> T:
        value = cls.get_env_var(key)
        if value is None:
            return default
        try:
            return convert(value)
        except ValueError:
            raise ValueError(f"{key} must be {expected}, got {value!r}")

    @classmethod
    def get_int(cls, key: str, default: int) -> int:
        return cls._get_converted(key, default, int, "an integer")

    @classmethod
    def get_float(cls, key: str, default: float) -> float:
        return cls._get_converted(key, default, float, "a number")

    @classmethod
    def get_bool(cls, key: str, default: bool) -> bool:
        return cls._get_converted(key, default, _parse_bool, "a boolean")

    @classmethod
    def get_project_root(cls) -> Path:
        return Path(__file__).resolve().parent.parent


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in TRUTHY_VALUES:
        return True
    if lowered in FALSY_VALUES:
        return False
    raise ValueError(value)
