#!/usr/bin/env python3
"""
Configuration Management
=======================

Centralized configuration for the event feed job. Values come from the
environment, optionally loaded from a .env file at the project root.
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
from dotenv import load_dotenv

from .errors import ConfigError

# Load environment variables from .env file
project_root = Path(__file__).resolve().parent.parent
env_path = project_root / '.env'
load_dotenv(env_path)

DEFAULT_URL_TEMPLATE = "https://terplink.umd.edu/events?startDate={start_date}&endDate={end_date}"


def _env_bool(environ: Mapping[str, str], name: str, default: str) -> bool:
    return environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Pipeline configuration"""

    def __init__(self, environ: Optional[Mapping[str, str]] = None, **overrides):
        env = os.environ if environ is None else environ

        # Source page
        self.EVENTS_URL_TEMPLATE = env.get('EVENTS_URL_TEMPLATE', DEFAULT_URL_TEMPLATE)
        self.WINDOW_HOURS = int(env.get('WINDOW_HOURS', 48))

        # Browser
        self.HEADLESS = _env_bool(env, 'HEADLESS', 'true')
        self.NAVIGATION_TIMEOUT_MS = int(env.get('NAVIGATION_TIMEOUT_MS', 60000))
        self.CARD_WAIT_MS = int(env.get('CARD_WAIT_MS', 10000))
        self.AUTO_SCROLL = _env_bool(env, 'AUTO_SCROLL', 'true')

        # Batching / rate limits
        self.BATCH_SIZE = int(env.get('BATCH_SIZE', 3))
        self.MAX_PROMPT_CHARS = int(env.get('MAX_PROMPT_CHARS', 40000))
        self.BATCH_DELAY_MS = int(env.get('BATCH_DELAY_MS', 1500))

        # LLM Configuration
        self.LLM_PROVIDER = env.get('LLM_PROVIDER', 'claude').lower()
        self.CLAUDE_API_KEY = env.get('CLAUDE_API_KEY') or env.get('ANTHROPIC_API_KEY')
        self.CLAUDE_MODEL = env.get('CLAUDE_MODEL', 'claude-sonnet-4-20250514')
        self.GEMINI_API_KEY = env.get('GEMINI_API_KEY')
        self.GEMINI_MODEL = env.get('GEMINI_MODEL', 'gemini-1.5-flash')
        self.LLM_TIMEOUT = float(env.get('LLM_TIMEOUT', 60))
        self.LLM_MAX_TOKENS = int(env.get('LLM_MAX_TOKENS', 8192))

        # Output
        self.OUTPUT_PATH = env.get('OUTPUT_PATH', str(project_root / 'events' / 'events.json'))
        self.DEFAULT_LOCATION = env.get('DEFAULT_LOCATION', 'College Park, Maryland')
        self.KEEP_STALE_ON_EMPTY = _env_bool(env, 'KEEP_STALE_ON_EMPTY', 'false')

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise ConfigError(f"Unknown config key: {key}")
            setattr(self, key, value)

        if self.BATCH_SIZE < 1:
            raise ConfigError(f"BATCH_SIZE must be at least 1, got {self.BATCH_SIZE}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> 'Config':
        """Build from an environment mapping (os.environ when omitted)."""
        return cls(environ, **overrides)

    @property
    def batch_delay_seconds(self) -> float:
        return self.BATCH_DELAY_MS / 1000.0

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration as dictionary (credentials redacted)"""
        return {
            'events_url_template': self.EVENTS_URL_TEMPLATE,
            'window_hours': self.WINDOW_HOURS,
            'headless': self.HEADLESS,
            'batch_size': self.BATCH_SIZE,
            'max_prompt_chars': self.MAX_PROMPT_CHARS,
            'batch_delay_ms': self.BATCH_DELAY_MS,
            'llm_provider': self.LLM_PROVIDER,
            'llm_model': self.GEMINI_MODEL if self.LLM_PROVIDER == 'gemini' else self.CLAUDE_MODEL,
            'output_path': self.OUTPUT_PATH,
            'default_location': self.DEFAULT_LOCATION,
            'keep_stale_on_empty': self.KEEP_STALE_ON_EMPTY,
        }
