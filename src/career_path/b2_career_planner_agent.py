"""
Block 2: Career Planner
=======================
Turns a ResearchBrief into an ordered, multi-phase learning plan.

CareerPlannerAgent
    plan(brief)                   LLM call → DetailedLearningPlan
    refine_plan(plan, states)     local, pure personalisation (no network)

Phases come back as 4-6 ordered stages, each with 2-4 target skills, 2-4
course topics and 2-4 milestones.  The plan's total-duration text is turned
into an absolute completion date; unparseable text falls back to 6 months.
"""

from __future__ import annotations

import calendar
import logging
import re
import textwrap
from datetime import date
from typing import Optional

from pydantic import ValidationError

from career_path.config import AgentConfig, get_settings
from career_path.llm import (
    ParseError,
    PlanningError,
    SupportsComplete,
    build_client,
    extract_json_object,
    raise_for_llm_error,
)
from career_path.models import DetailedLearningPlan, ResearchBrief

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MONTHS = 6
PROFICIENCY_STEP        = 20     # refine_plan lifts targets to current + step
MAX_PROFICIENCY         = 100

_DURATION_RE = re.compile(r"(\d+)")


def parse_duration_months(text: Optional[str]) -> int:
    """First integer in a ``"X-Y months"`` string; 6 when there is none."""
    match = _DURATION_RE.search(text or "")
    return int(match.group(1)) if match else DEFAULT_DURATION_MONTHS


def add_months(start: date, months: int) -> date:
    """Calendar month arithmetic; the day is clamped to the target month."""
    month_index = start.month - 1 + months
    year  = start.year + month_index // 12
    month = month_index % 12 + 1
    day   = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _skill_domains_text(brief: ResearchBrief) -> str:
    return "\n".join(
        f"{i}. {s.name} ({s.category.value}, {s.importance.value}) - "
        f"Topics: {', '.join(s.key_topics)}"
        for i, s in enumerate(brief.skill_domains, start=1)
    )


class CareerPlannerAgent:
    """
    Block 2 — builds the phase-by-phase plan for a researched career.

    Usage::

        agent = CareerPlannerAgent()
        plan  = agent.plan(brief)
        mine  = agent.refine_plan(plan, {"sql-basics": 55})
    """

    def __init__(
        self,
        config: AgentConfig | None = None,
        client: SupportsComplete | None = None,
    ) -> None:
        settings     = get_settings()
        self._cfg    = config or settings.agent_config("planner")
        self._client = client or build_client(self._cfg, live=settings.live_mode)

    def _build_prompt(self, brief: ResearchBrief) -> str:
        return textwrap.dedent(f"""
            You are an expert curriculum designer and career coach. Create a
            comprehensive, structured learning plan for someone pursuing a career
            as a "{brief.career_title}".

            RESEARCH CONTEXT:
            {brief.overview}

            SKILL DOMAINS TO COVER:
        """).strip() + "\n" + _skill_domains_text(brief) + textwrap.dedent(f"""

            TIME TO CAREER ENTRY: {brief.entry_requirements.time_to_entry or "unknown"}

            Create a learning plan with 4-6 phases that:
            1. Start with foundation skills and prerequisites
            2. Progress through core competencies
            3. Build to advanced/specialized skills
            4. End with job-ready preparation

            Return a JSON object with this EXACT structure:
            {{
                "career_title": "{brief.career_title}",
                "total_duration": "X-Y months",
                "phases": [
                    {{
                        "order": 1,
                        "title": "Phase Title",
                        "description": "What this phase covers and why",
                        "estimated_duration": "X-Y weeks",
                        "target_skills": [
                            {{"skill_id": "unique-skill-id", "skill_name": "Skill Name", "target_proficiency": 70}}
                        ],
                        "course_topics": ["Topic for course 1", "Topic for course 2"],
                        "milestones": [
                            {{"id": "milestone-id", "title": "Milestone title",
                              "type": "course | project | assessment | certification",
                              "requirement": "What needs to be done"}}
                        ]
                    }}
                ]
            }}

            IMPORTANT:
            - Each phase should have 2-4 target skills
            - Each phase should have 2-4 course topics to generate courses for
            - Include 2-4 milestones per phase
            - Target proficiency should range from 50-90 depending on skill importance
            - Milestones should be specific and measurable
            - Ensure logical skill dependencies (foundation before advanced)
        """)

    # ── Public interface ──────────────────────────────────────────────────────

    def plan(self, brief: ResearchBrief) -> DetailedLearningPlan:
        """
        Create the detailed plan for *brief*.

        Raises ParseError / AuthError / RateLimitError, or PlanningError for
        anything else.  The orchestrator treats every one of them as fatal.
        """
        logger.info("Creating learning plan for: %s", brief.career_title)
        try:
            data = extract_json_object(
                self._client.complete(self._build_prompt(brief)), "learning plan"
            )
            phases = sorted(data.get("phases") or [], key=lambda p: p.get("order", 0))
            # Phases are strictly 1..N regardless of what the model numbered.
            for order, phase in enumerate(phases, start=1):
                phase["order"] = order

            total_duration = data.get("total_duration") or "6-9 months"
            months = parse_duration_months(total_duration)
            try:
                plan = DetailedLearningPlan.model_validate({
                    "career_title":         brief.career_title,
                    "total_duration":       total_duration,
                    "phases":               phases,
                    "estimated_completion": add_months(date.today(), months),
                })
            except ValidationError as exc:
                raise ParseError(
                    f"Failed to parse learning plan - unexpected shape: {exc.error_count()} errors"
                ) from exc
        except Exception as exc:
            logger.error("Error creating plan for %s: %s", brief.career_title, exc)
            raise_for_llm_error(
                exc, PlanningError, f"Failed to create learning plan for: {brief.career_title}"
            )

        logger.info("Plan created with %d phases", len(plan.phases))
        return plan

    def refine_plan(
        self,
        plan: DetailedLearningPlan,
        user_skill_states: dict[str, float],
    ) -> DetailedLearningPlan:
        """
        Personalise *plan* for a learner with existing skills.

        Each target becomes ``min(max(original, current + 20), 100)``; a skill
        the learner has no state for counts as 0.  Returns a new plan and
        leaves *plan* untouched.
        """
        logger.info("Refining plan for %s against %d skill states",
                    plan.career_title, len(user_skill_states))
        refined = plan.model_copy(deep=True)
        for phase in refined.phases:
            for skill in phase.target_skills:
                current = user_skill_states.get(skill.skill_id, 0) or 0
                adjusted = max(skill.target_proficiency, int(round(current)) + PROFICIENCY_STEP)
                skill.target_proficiency = min(adjusted, MAX_PROFICIENCY)
        return refined
