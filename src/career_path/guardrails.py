"""
guardrails.py – Validation layer around the career path agents
==============================================================
Implements input validation and output verification checks that wrap every
agent transition in the pipeline.

Guardrail levels
----------------
BLOCK   – Hard-stop: the pipeline (or the item) does not proceed.
WARN    – Soft-stop: the pipeline proceeds; the warning goes to the trace.
INFO    – Advisory: informational note logged in agent trace.

Guards implemented
------------------
Input guards (before CareerResearcherAgent):
  G-01  Career title is non-empty
  G-02  Career title is 2–120 characters and contains a letter
  G-03  No profanity or abusive phrases in the career title    [heuristic]

Research brief guards (after CareerResearcherAgent):
  G-04  At least 5 skill domains
  G-05  Every skill domain lists key topics

Learning plan guards (after CareerPlannerAgent):
  G-06  Plan has at least one phase
  G-07  Phase count within 4–6
  G-08  Phase orders are exactly 1..N
  G-09  Target proficiencies within [0, 100]

Assessment bank guards (after AssessmentGeneratorAgent):
  G-10  Every question has exactly 4 options
  G-11  Every correct-answer index points at an option
  G-12  Difficulty mix matches difficulty_split(question_count)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from career_path.b4_assessment_generator_agent import OPTIONS_PER_QUESTION, difficulty_split
from career_path.models import DetailedLearningPlan, ResearchBrief, SkillAssessmentBank


# ─── Enums & data models ─────────────────────────────────────────────────────

class GuardrailLevel(str, Enum):
    BLOCK = "BLOCK"
    WARN  = "WARN"
    INFO  = "INFO"


@dataclass
class GuardrailViolation:
    code:    str
    level:   GuardrailLevel
    message: str
    field:   str = ""   # which field triggered the violation


@dataclass
class GuardrailResult:
    passed:     bool
    violations: list[GuardrailViolation] = field(default_factory=list)

    @property
    def blocked(self) -> bool:
        return any(v.level == GuardrailLevel.BLOCK for v in self.violations)

    @property
    def warnings(self) -> list[GuardrailViolation]:
        return [v for v in self.violations if v.level == GuardrailLevel.WARN]

    @property
    def blocks(self) -> list[GuardrailViolation]:
        return [v for v in self.violations if v.level == GuardrailLevel.BLOCK]

    def summary(self) -> str:
        if not self.violations:
            return "✅ All guardrails passed."
        icons = {GuardrailLevel.BLOCK: "🚫", GuardrailLevel.WARN: "⚠️", GuardrailLevel.INFO: "ℹ️"}
        return "\n".join(f"{icons[v.level]} [{v.code}] {v.message}" for v in self.violations)


def _result(violations: list[GuardrailViolation]) -> GuardrailResult:
    return GuardrailResult(
        passed=not any(v.level == GuardrailLevel.BLOCK for v in violations),
        violations=violations,
    )


# ─── Constants ───────────────────────────────────────────────────────────────

MIN_TITLE_LENGTH  = 2
MAX_TITLE_LENGTH  = 120
MIN_SKILL_DOMAINS = 5
MIN_PHASES        = 4
MAX_PHASES        = 6

_HARMFUL_PATTERN = re.compile(
    r"\b(fuck|shit|bitch|cunt|asshole"
    r"|kill\s+myself|bomb\s*maker)\b",
    re.IGNORECASE,
)
_LETTER = re.compile(r"[^\W\d_]")


# ─── Stage guards ────────────────────────────────────────────────────────────

class InputGuardrails:
    """G-01 – G-03: Validates the career title before research."""

    def check(self, career_title: str | None) -> GuardrailResult:
        violations: list[GuardrailViolation] = []
        title = (career_title or "").strip()

        # G-01 Non-empty
        if not title:
            violations.append(GuardrailViolation(
                code="G-01", level=GuardrailLevel.BLOCK, field="career_title",
                message="Career title must not be empty.",
            ))
            return _result(violations)

        # G-02 Length and shape
        if not (MIN_TITLE_LENGTH <= len(title) <= MAX_TITLE_LENGTH) or not _LETTER.search(title):
            violations.append(GuardrailViolation(
                code="G-02", level=GuardrailLevel.BLOCK, field="career_title",
                message=(
                    f"Career title must be {MIN_TITLE_LENGTH}–{MAX_TITLE_LENGTH} characters "
                    f"and contain a letter (got {len(title)} characters)."
                ),
            ))

        # G-03 Harmful content
        if _HARMFUL_PATTERN.search(title):
            violations.append(GuardrailViolation(
                code="G-03", level=GuardrailLevel.BLOCK, field="career_title",
                message="Career title contains disallowed content.",
            ))

        return _result(violations)


class BriefGuardrails:
    """G-04 – G-05: Validates the ResearchBrief from CareerResearcherAgent."""

    def check(self, brief: ResearchBrief) -> GuardrailResult:
        violations: list[GuardrailViolation] = []

        # G-04 Domain count
        if len(brief.skill_domains) < MIN_SKILL_DOMAINS:
            violations.append(GuardrailViolation(
                code="G-04", level=GuardrailLevel.WARN, field="skill_domains",
                message=(
                    f"Brief has {len(brief.skill_domains)} skill domains; expected at least "
                    f"{MIN_SKILL_DOMAINS}."
                ),
            ))

        # G-05 Key topics present
        for domain in brief.skill_domains:
            if not domain.key_topics:
                violations.append(GuardrailViolation(
                    code="G-05", level=GuardrailLevel.WARN,
                    field=f"skill_domains[{domain.name}].key_topics",
                    message=f"Skill domain '{domain.name}' has no key topics.",
                ))

        return _result(violations)


class PlanGuardrails:
    """G-06 – G-09: Validates the DetailedLearningPlan from CareerPlannerAgent."""

    def check(self, plan: DetailedLearningPlan) -> GuardrailResult:
        violations: list[GuardrailViolation] = []

        # G-06 At least one phase
        if not plan.phases:
            violations.append(GuardrailViolation(
                code="G-06", level=GuardrailLevel.BLOCK, field="phases",
                message="Learning plan has no phases.",
            ))
            return _result(violations)

        # G-07 Phase count
        if not (MIN_PHASES <= len(plan.phases) <= MAX_PHASES):
            violations.append(GuardrailViolation(
                code="G-07", level=GuardrailLevel.WARN, field="phases",
                message=f"Plan has {len(plan.phases)} phases; expected {MIN_PHASES}–{MAX_PHASES}.",
            ))

        # G-08 Orders are 1..N
        orders = [p.order for p in plan.phases]
        if orders != list(range(1, len(orders) + 1)):
            violations.append(GuardrailViolation(
                code="G-08", level=GuardrailLevel.BLOCK, field="phases.order",
                message=f"Phase orders {orders} are not the sequence 1..{len(orders)}.",
            ))

        # G-09 Proficiency bounds
        for phase in plan.phases:
            for skill in phase.target_skills:
                if not (0 <= skill.target_proficiency <= 100):
                    violations.append(GuardrailViolation(
                        code="G-09", level=GuardrailLevel.WARN,
                        field=f"phases[{phase.order}].target_skills[{skill.skill_id}]",
                        message=(
                            f"Target proficiency {skill.target_proficiency} for "
                            f"'{skill.skill_id}' out of [0, 100] range."
                        ),
                    ))

        return _result(violations)


class BankGuardrails:
    """G-10 – G-12: Validates a SkillAssessmentBank before it is persisted."""

    def check(self, bank: SkillAssessmentBank) -> GuardrailResult:
        violations: list[GuardrailViolation] = []

        for q in bank.questions:
            # G-10 Exactly four options
            if len(q.options) != OPTIONS_PER_QUESTION:
                violations.append(GuardrailViolation(
                    code="G-10", level=GuardrailLevel.BLOCK, field=f"questions[{q.id}].options",
                    message=f"Question '{q.id}' has {len(q.options)} options; expected 4.",
                ))
            # G-11 Correct index in range
            if not (0 <= q.correct_answer < len(q.options)):
                violations.append(GuardrailViolation(
                    code="G-11", level=GuardrailLevel.BLOCK,
                    field=f"questions[{q.id}].correct_answer",
                    message=f"Question '{q.id}' correct answer {q.correct_answer} is out of range.",
                ))

        # G-12 Difficulty mix
        expected = difficulty_split(len(bank.questions))
        actual   = bank.difficulty_counts()
        if bank.questions and actual != expected:
            violations.append(GuardrailViolation(
                code="G-12", level=GuardrailLevel.WARN, field="questions.difficulty",
                message=f"Difficulty mix {actual} differs from target {expected}.",
            ))

        return _result(violations)


# ─── Pipeline facade ─────────────────────────────────────────────────────────

class GuardrailsPipeline:
    """
    Single entry-point that runs all applicable guardrails for a given pipeline stage.

    Usage::

        gp = GuardrailsPipeline()
        gp.check_input("Data Analyst")   # before research
        gp.check_brief(brief)            # after research
        gp.check_plan(plan)              # after planning
        gp.check_bank(bank)              # per assessment bank
    """

    def __init__(self):
        self.input_guard = InputGuardrails()
        self.brief_guard = BriefGuardrails()
        self.plan_guard  = PlanGuardrails()
        self.bank_guard  = BankGuardrails()

    def check_input(self, career_title: str | None) -> GuardrailResult:
        return self.input_guard.check(career_title)

    def check_brief(self, brief: ResearchBrief) -> GuardrailResult:
        return self.brief_guard.check(brief)

    def check_plan(self, plan: DetailedLearningPlan) -> GuardrailResult:
        return self.plan_guard.check(plan)

    def check_bank(self, bank: SkillAssessmentBank) -> GuardrailResult:
        return self.bank_guard.check(bank)

    def merge(self, *results: GuardrailResult) -> GuardrailResult:
        """Merge multiple GuardrailResult objects into one."""
        violations: list[GuardrailViolation] = []
        for r in results:
            violations.extend(r.violations)
        return _result(violations)
