"""
config.py — Central settings for the Career Path generation pipeline
=====================================================================
All configuration is loaded from environment variables / .env file.
Copy .env.example → .env and fill in your values.

Live mode activates automatically when an OpenAI key (or an Azure OpenAI
endpoint + key pair) contains a real, non-placeholder value.  Otherwise the
agents run against the offline mock completion tier.

Each agent receives an explicit ``AgentConfig`` instead of reading the
environment itself, so agents can be built with fixture credentials in tests.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env into os.environ (no-op if already set, safe to call multiple times)
load_dotenv(override=False)


# ─── Helpers ────────────────────────────────────────────────────────────────

def _is_placeholder(value: str) -> bool:
    """Return True if the value looks like an unfilled template placeholder."""
    return not value or "<" in value or value.startswith("your-") or value == "PLACEHOLDER"


_DEFAULT_DB_PATH = Path(__file__).resolve().parent.parent.parent / "career_path_data.db"

# Lower temperature for factual research, higher for creative course copy.
AGENT_TEMPERATURES: dict[str, float] = {
    "researcher":           0.3,
    "planner":              0.4,
    "course_generator":     0.6,
    "assessment_generator": 0.5,
}


# ─── Per-agent model configuration ──────────────────────────────────────────

@dataclass(frozen=True)
class AgentConfig:
    model:       str
    temperature: float
    api_key:     str
    endpoint:    str = ""                     # set → Azure OpenAI, empty → api.openai.com
    api_version: str = "2024-12-01-preview"
    max_tokens:  int = 4000

    @property
    def is_configured(self) -> bool:
        """True when the key (and endpoint, for Azure) are real values."""
        if _is_placeholder(self.api_key):
            return False
        return not self.endpoint or not _is_placeholder(self.endpoint)

    @property
    def uses_azure(self) -> bool:
        return bool(self.endpoint) and not _is_placeholder(self.endpoint)


# ─── OpenAI / Azure OpenAI ──────────────────────────────────────────────────

@dataclass(frozen=True)
class OpenAIConfig:
    endpoint:    str
    api_key:     str
    deployment:  str
    api_version: str

    @property
    def is_configured(self) -> bool:
        """True when the key is real and the endpoint, if given, is too."""
        if _is_placeholder(self.api_key):
            return False
        return not self.endpoint or not _is_placeholder(self.endpoint)


# ─── Pipeline bounds ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PipelineConfig:
    max_courses_per_phase: int = 2
    max_assessed_skills:   int = 6
    questions_per_skill:   int = 12


# ─── Document store ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class StoreConfig:
    db_path: str


# ─── App-level settings ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class AppConfig:
    force_mock_mode: bool
    log_level:       str


# ─── Master settings object ──────────────────────────────────────────────────

@dataclass(frozen=True)
class Settings:
    openai:   OpenAIConfig
    pipeline: PipelineConfig
    store:    StoreConfig
    app:      AppConfig

    @property
    def live_mode(self) -> bool:
        """True when OpenAI creds are real and FORCE_MOCK_MODE is false."""
        return self.openai.is_configured and not self.app.force_mock_mode

    def agent_config(self, agent_name: str) -> AgentConfig:
        """Build the AgentConfig for one of the four pipeline agents."""
        return AgentConfig(
            model       = self.openai.deployment,
            temperature = AGENT_TEMPERATURES.get(agent_name, 0.4),
            api_key     = self.openai.api_key,
            endpoint    = self.openai.endpoint,
            api_version = self.openai.api_version,
        )

    def status_summary(self) -> dict[str, str]:
        """Return a dict of service → status badge for the CLI banner."""
        def badge(ok: bool) -> str:
            return "🟢 Live" if ok else "⚪ Mock"

        return {
            "OpenAI":         badge(self.live_mode),
            "Document store": self.store.db_path,
        }


def get_settings() -> Settings:
    """Load all configuration from environment variables."""
    _str  = lambda k, d="": os.getenv(k, d).strip()
    _int  = lambda k, d=0: int(os.getenv(k, str(d)) or d)
    _bool = lambda k, d=False: os.getenv(k, str(d)).lower() in ("1", "true", "yes")

    azure_endpoint = _str("AZURE_OPENAI_ENDPOINT").rstrip("/")
    azure_key      = _str("AZURE_OPENAI_API_KEY")
    # Azure takes precedence only when its endpoint is filled in.
    use_azure = bool(azure_endpoint) and not _is_placeholder(azure_endpoint)

    return Settings(
        openai=OpenAIConfig(
            endpoint    = azure_endpoint if use_azure else "",
            api_key     = azure_key if use_azure else _str("OPENAI_API_KEY"),
            deployment  = _str("AZURE_OPENAI_DEPLOYMENT" if use_azure else "OPENAI_MODEL", "gpt-4o"),
            api_version = _str("AZURE_OPENAI_API_VERSION", "2024-12-01-preview"),
        ),
        pipeline=PipelineConfig(
            max_courses_per_phase = _int("CAREER_MAX_COURSES_PER_PHASE", 2),
            max_assessed_skills   = _int("CAREER_MAX_ASSESSED_SKILLS", 6),
            questions_per_skill   = _int("CAREER_QUESTIONS_PER_SKILL", 12),
        ),
        store=StoreConfig(
            db_path = _str("CAREER_DB_PATH", str(_DEFAULT_DB_PATH)),
        ),
        app=AppConfig(
            force_mock_mode = _bool("FORCE_MOCK_MODE", False),
            log_level       = _str("LOG_LEVEL", "INFO").upper(),
        ),
    )
