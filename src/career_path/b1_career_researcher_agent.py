"""
Block 1: Career Researcher
==========================
First agent of the career path pipeline.

CareerResearcherAgent
    Sends a career title to the language model with a fixed instruction
    template and parses the structured research brief out of the reply:
    market data, entry requirements, AI-impact assessment, ordered skill
    domains and related careers.
    Returns: ResearchBrief

A failure here is fatal to the whole run; the orchestrator does not retry.
"""

from __future__ import annotations

import json
import logging
import textwrap
from datetime import datetime, timezone

import openai
from pydantic import ValidationError

from career_path.config import AgentConfig, get_settings
from career_path.llm import (
    CareerAgentError,
    ParseError,
    ResearchError,
    SupportsComplete,
    build_client,
    extract_json_object,
    raise_for_llm_error,
)
from career_path.models import ResearchBrief

logger = logging.getLogger(__name__)


# The exact JSON shape we expect back. Keeping it in one place makes prompt
# engineering maintainable.
_BRIEF_JSON_SCHEMA = {
    "career_title": "string",
    "overview": "Comprehensive 3-4 sentence overview of this career",
    "market_data": {
        "demand": "low | medium | high | very-high",
        "demand_trend": "declining | stable | growing | booming",
        "salary_range": {"min": 50000, "max": 150000, "median": 85000},
        "top_industries": ["Industry 1", "Industry 2", "Industry 3"],
        "top_locations": ["City 1", "City 2", "City 3"],
        "growth_outlook": "Detailed outlook explanation",
    },
    "entry_requirements": {
        "difficulty": "beginner-friendly | moderate | challenging | expert",
        "typical_backgrounds": ["Background 1", "Background 2"],
        "time_to_entry": "X-Y months",
        "certifications": [
            {"name": "Cert Name", "provider": "Provider",
             "importance": "essential | important | nice-to-have"},
        ],
    },
    "ai_impact": {
        "automation_risk": "very-low | low | medium | high",
        "risk_explanation": "Explanation of AI impact on this career",
        "future_proof_skills": ["Skill 1", "Skill 2"],
        "ai_augmentation": "How AI tools help professionals in this field",
    },
    "skill_domains": [
        {
            "name": "Skill Domain Name",
            "category": "foundation | core | advanced | soft-skill",
            "importance": "essential | important | nice-to-have",
            "dependencies": ["Prerequisite skill if any"],
            "estimated_time_to_learn": "X-Y weeks",
            "key_topics": ["Topic 1", "Topic 2", "Topic 3", "Topic 4", "Topic 5"],
        }
    ],
    "related_careers": ["Related Career 1", "Related Career 2", "Related Career 3"],
}

_BRIEF_SCHEMA_STR = json.dumps(_BRIEF_JSON_SCHEMA, indent=2)

MIN_SKILL_DOMAINS = 5


class CareerResearcherAgent:
    """
    Researches one career and returns a validated ResearchBrief.

    Usage::

        agent = CareerResearcherAgent(config)           # live OpenAI
        agent = CareerResearcherAgent(client=fake)      # tests / offline
        brief = agent.research("Data Analyst")
    """

    def __init__(
        self,
        config: AgentConfig | None = None,
        client: SupportsComplete | None = None,
    ) -> None:
        settings   = get_settings()
        self._cfg  = config or settings.agent_config("researcher")
        self._client = client or build_client(self._cfg, live=settings.live_mode)

    # ── Internal helpers ─────────────────────────────────────────────────────

    def _build_prompt(self, career_title: str) -> str:
        return textwrap.dedent(f"""
            You are an expert career advisor and labor market analyst.
            Research the career "{career_title}" comprehensively.

            Provide detailed, accurate, and current information about this career path.

            Return a JSON object with this EXACT structure:
        """).strip() + "\n" + _BRIEF_SCHEMA_STR + textwrap.dedent("""

            IMPORTANT:
            - Include 6-10 skill domains covering foundation, core, advanced, and soft skills
            - Each skill domain should have 5-8 key topics for course generation
            - Salary ranges should be realistic USD annual figures
            - Be specific and actionable, not generic
        """)

    # ── Public interface ──────────────────────────────────────────────────────

    def research(self, career_title: str) -> ResearchBrief:
        """
        Research *career_title* and return the brief.

        Raises:
            ValueError      – blank career title (no model call is made).
            ParseError      – no JSON object in the reply, or wrong shape.
            AuthError       – credentials rejected.
            RateLimitError  – quota exhausted.
            ResearchError   – anything else.
        """
        if not career_title or not career_title.strip():
            raise ValueError("career_title must be a non-empty career name")
        career_title = career_title.strip()

        logger.info("Researching career: %s", career_title)
        try:
            text = self._client.complete(self._build_prompt(career_title))
            data = extract_json_object(text, "research brief")
            # The caller's title wins over whatever the model echoed back.
            data["career_title"] = career_title
            data["generated_at"] = datetime.now(timezone.utc)
            try:
                brief = ResearchBrief.model_validate(data)
            except ValidationError as exc:
                raise ParseError(
                    f"Failed to parse research brief - unexpected shape: {exc.error_count()} errors"
                ) from exc
        except Exception as exc:
            logger.error("Error researching career %r: %s", career_title, exc)
            raise_for_llm_error(exc, ResearchError, f'Failed to research career "{career_title}"')

        if len(brief.skill_domains) < MIN_SKILL_DOMAINS:
            logger.warning(
                "Insufficient skill domains for %s: %d (expected ≥%d)",
                career_title, len(brief.skill_domains), MIN_SKILL_DOMAINS,
            )
        logger.info("Research complete: %d skill domains identified", len(brief.skill_domains))
        return brief

    def identify_related_careers(self, career_title: str, count: int = 5) -> list[str]:
        """
        List *count* careers sharing transferable skills with *career_title*.
        Never raises for model problems: falls back to seniority variants.
        """
        prompt = (
            f'List {count} careers closely related to "{career_title}" that share '
            "transferable skills.\n"
            'Return a JSON object: {"related_careers": ["Career 1", "Career 2", "Career 3"]}'
        )
        try:
            data = extract_json_object(self._client.complete(prompt), "related careers")
            careers = [str(c) for c in data.get("related_careers", []) if str(c).strip()]
            if careers:
                return careers[:count]
        except (CareerAgentError, openai.OpenAIError) as exc:
            logger.warning("Related careers lookup failed for %s: %s", career_title, exc)
        return [f"Senior {career_title}", f"Lead {career_title}", f"{career_title} Manager"]
