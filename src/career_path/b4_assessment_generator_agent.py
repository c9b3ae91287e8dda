"""
b4_assessment_generator_agent.py — Skill Assessment Generator (Block 4)
=======================================================================
Builds one multiple-choice question bank per assessed skill domain and
scores a learner's answers against it.

---------------------------------------------------------------------------
Agent: AssessmentGeneratorAgent
---------------------------------------------------------------------------
  Input:   SkillDomain (+ career path id)
  Output:  SkillAssessmentBank  →  AssessmentResult (after the learner answers)

  Difficulty mix — requested from the model, checked by guardrail G-12:
    12 questions → 4 easy / 5 medium / 3 hard.
    Other counts keep the same proportions (easy 4/12, hard 3/12, medium
    takes the remainder).

  Normalisation of the model's questions:
    • options truncated to exactly 4 (fewer than 4 fails validation)
    • missing topic        → key_topics[idx % len(key_topics)]
    • missing explanation  → generic fallback sentence
    • missing id           → "q{idx+1}"
    • unknown difficulty   → "medium"
    • extra questions are dropped; too few is a ParseError

  Scoring (pure, no network):
    weights         easy = 1, medium = 1.5, hard = 2
    score           round-half-up(correct_weighted / total_weighted × 100)
    proficiency     ≥ 80 advanced, ≥ 50 intermediate, else beginner

---------------------------------------------------------------------------
Consumers
---------------------------------------------------------------------------
  orchestrator.py   — generate_assessment_bank() per assessed domain
  guardrails.py     — difficulty_split() for the G-12 mix check
"""

from __future__ import annotations

import logging
import math
import re
import textwrap
from datetime import datetime, timezone

from pydantic import ValidationError

from career_path.config import AgentConfig, get_settings
from career_path.llm import (
    AssessmentGenerationError,
    CareerAgentError,
    ParseError,
    SupportsComplete,
    build_client,
    extract_json_object,
    raise_for_llm_error,
)
from career_path.models import (
    AssessmentQuestion,
    AssessmentResult,
    Difficulty,
    DifficultyTally,
    ProficiencyLevel,
    ProficiencyResult,
    QuestionFeedback,
    SkillAssessmentBank,
    SkillDomain,
)

logger = logging.getLogger(__name__)

DEFAULT_QUESTION_COUNT = 12
OPTIONS_PER_QUESTION   = 4

DIFFICULTY_WEIGHTS: dict[Difficulty, float] = {
    Difficulty.EASY:   1.0,
    Difficulty.MEDIUM: 1.5,
    Difficulty.HARD:   2.0,
}

ADVANCED_THRESHOLD     = 80
INTERMEDIATE_THRESHOLD = 50

_FALLBACK_EXPLANATION = "This is the correct answer based on the topic concepts."


# ─── Pure helpers ────────────────────────────────────────────────────────────

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def difficulty_split(question_count: int) -> dict[str, int]:
    """Target easy / medium / hard counts for a bank of *question_count*."""
    easy = _round_half_up(question_count * 4 / 12)
    hard = _round_half_up(question_count * 3 / 12)
    medium = max(question_count - easy - hard, 0)
    return {
        Difficulty.EASY.value:   easy,
        Difficulty.MEDIUM.value: medium,
        Difficulty.HARD.value:   hard,
    }


def skill_slug(name: str) -> str:
    """``"Data Visualization"`` → ``"skill-data-visualization"``."""
    return "skill-" + re.sub(r"\s+", "-", name.strip().lower())


def calculate_proficiency(
    questions: list[AssessmentQuestion],
    answers: dict[str, int],
) -> ProficiencyResult:
    """
    Weighted score across difficulty tiers.

    *answers* maps question id → chosen option index; unanswered questions
    count as wrong.  An empty question list scores 0 (beginner).
    """
    by_difficulty = {d.value: DifficultyTally() for d in Difficulty}
    total_weighted   = 0.0
    correct_weighted = 0.0

    for q in questions:
        tally  = by_difficulty[q.difficulty.value]
        weight = DIFFICULTY_WEIGHTS[q.difficulty]
        tally.total    += 1
        total_weighted += weight
        if answers.get(q.id) == q.correct_answer:
            tally.correct    += 1
            correct_weighted += weight

    score = _round_half_up(correct_weighted / total_weighted * 100) if total_weighted else 0

    if score >= ADVANCED_THRESHOLD:
        level = ProficiencyLevel.ADVANCED
    elif score >= INTERMEDIATE_THRESHOLD:
        level = ProficiencyLevel.INTERMEDIATE
    else:
        level = ProficiencyLevel.BEGINNER

    return ProficiencyResult(score=score, by_difficulty=by_difficulty, proficiency_level=level)


def evaluate_bank(bank: SkillAssessmentBank, answers: dict[str, int]) -> AssessmentResult:
    """Score *answers* against *bank* and attach per-question feedback."""
    proficiency = calculate_proficiency(bank.questions, answers)

    question_feedback = [
        QuestionFeedback(
            question_id   = q.id,
            correct       = answers.get(q.id) == q.correct_answer,
            learner_index = answers.get(q.id),
            correct_index = q.correct_answer,
            explanation   = q.explanation,
        )
        for q in bank.questions
    ]
    correct = sum(1 for f in question_feedback if f.correct)

    if proficiency.proficiency_level == ProficiencyLevel.ADVANCED:
        feedback = f"Strong command of {bank.skill_name} — ready for advanced material."
    elif proficiency.proficiency_level == ProficiencyLevel.INTERMEDIATE:
        feedback = f"Solid grasp of {bank.skill_name} fundamentals; review the missed topics."
    else:
        feedback = f"Start with the foundation lessons for {bank.skill_name}."

    return AssessmentResult(
        skill_id          = bank.skill_id,
        skill_name        = bank.skill_name,
        total_questions   = len(bank.questions),
        correct_answers   = correct,
        score             = proficiency.score,
        by_difficulty     = proficiency.by_difficulty,
        proficiency_level = proficiency.proficiency_level,
        feedback          = feedback,
        question_feedback = question_feedback,
        completed_at      = datetime.now(timezone.utc),
    )


# ─── Agent ───────────────────────────────────────────────────────────────────

class AssessmentGeneratorAgent:
    """
    Block 4 — generates assessment banks with the language model.

    Usage::

        agent = AssessmentGeneratorAgent()
        bank  = agent.generate_assessment_bank(domain, "career-1")
        res   = evaluate_bank(bank, {"q1": 0, "q2": 3})
    """

    def __init__(
        self,
        config: AgentConfig | None = None,
        client: SupportsComplete | None = None,
    ) -> None:
        settings     = get_settings()
        self._cfg    = config or settings.agent_config("assessment_generator")
        self._client = client or build_client(self._cfg, live=settings.live_mode)

    def _build_prompt(self, domain: SkillDomain, question_count: int) -> str:
        split = difficulty_split(question_count)
        return textwrap.dedent(f"""
            You are an expert assessment designer. Create a comprehensive skill
            assessment for "{domain.name}".

            SKILL DOMAIN: {domain.name}
            CATEGORY: {domain.category.value}
            KEY TOPICS: {", ".join(domain.key_topics)}

            Generate exactly {question_count} multiple-choice questions with:
            - {split["easy"]} easy questions (fundamental concepts)
            - {split["medium"]} medium questions (application and understanding)
            - {split["hard"]} hard questions (advanced problem-solving)

            Return a JSON object with this EXACT structure:
            {{
                "questions": [
                    {{
                        "id": "q1",
                        "question": "Clear, well-formatted question text?",
                        "options": ["Option A", "Option B", "Option C", "Option D"],
                        "correct_answer": 0,
                        "difficulty": "easy | medium | hard",
                        "explanation": "Brief explanation of why this answer is correct",
                        "topic": "The specific topic this question covers"
                    }}
                ]
            }}

            IMPORTANT GUIDELINES:
            1. Questions should test real understanding, not just definitions
            2. Each question must have exactly 4 options
            3. correct_answer is the 0-indexed position of the correct option
            4. Cover different topics from the key topics list
            5. Explanations should be educational and helpful
            6. Avoid trick questions
        """).strip()

    def _normalise(self, raw: dict, idx: int, domain: SkillDomain) -> dict:
        topics = domain.key_topics or [domain.name]
        answer = raw.get("correct_answer", raw.get("correctAnswer"))
        return {
            "id":             raw.get("id") or f"q{idx + 1}",
            "question":       raw.get("question") or "",
            "options":        list(raw.get("options") or [])[:OPTIONS_PER_QUESTION],
            "correct_answer": answer,
            "difficulty":     raw.get("difficulty"),
            "explanation":    raw.get("explanation") or _FALLBACK_EXPLANATION,
            "topic":          raw.get("topic") or topics[idx % len(topics)],
        }

    # ── Public interface ──────────────────────────────────────────────────────

    def generate_assessment_bank(
        self,
        skill_domain: SkillDomain,
        career_path_id: str,
        question_count: int = DEFAULT_QUESTION_COUNT,
    ) -> SkillAssessmentBank:
        """
        Generate exactly *question_count* questions for *skill_domain*.

        Raises ParseError / AuthError / RateLimitError, or
        AssessmentGenerationError for anything else.
        """
        logger.info("Generating %d questions for: %s", question_count, skill_domain.name)
        try:
            data = extract_json_object(
                self._client.complete(self._build_prompt(skill_domain, question_count)),
                "assessment questions",
            )
            raw_questions = [q for q in data.get("questions") or [] if isinstance(q, dict)]
            if len(raw_questions) < question_count:
                raise ParseError(
                    f"Failed to parse assessment questions - got {len(raw_questions)}, "
                    f"expected {question_count}"
                )
            try:
                questions = [
                    AssessmentQuestion.model_validate(self._normalise(raw, idx, skill_domain))
                    for idx, raw in enumerate(raw_questions[:question_count])
                ]
            except ValidationError as exc:
                raise ParseError(
                    f"Failed to parse assessment questions - unexpected shape: {exc.error_count()} errors"
                ) from exc
        except Exception as exc:
            logger.error("Error generating assessment for %s: %s", skill_domain.name, exc)
            raise_for_llm_error(
                exc, AssessmentGenerationError,
                f"Failed to generate assessment for: {skill_domain.name}",
            )

        bank = SkillAssessmentBank(
            skill_id       = skill_slug(skill_domain.name),
            skill_name     = skill_domain.name,
            career_path_id = career_path_id,
            questions      = questions,
            question_count = len(questions),
            created_at     = datetime.now(timezone.utc),
        )
        logger.info("Generated %d questions for %s", bank.question_count, skill_domain.name)
        return bank

    def generate_batch_assessments(
        self,
        skill_domains: list[SkillDomain],
        career_path_id: str,
        questions_per_skill: int = DEFAULT_QUESTION_COUNT,
    ) -> list[SkillAssessmentBank]:
        """One bank per domain, in order; failed domains are logged and skipped."""
        logger.info("Generating assessments for %d skills", len(skill_domains))
        banks: list[SkillAssessmentBank] = []
        for domain in skill_domains:
            try:
                banks.append(
                    self.generate_assessment_bank(domain, career_path_id, questions_per_skill)
                )
            except CareerAgentError as exc:
                logger.warning("Assessment skipped for %s: %s", domain.name, exc)
        logger.info("Generated %d/%d assessment banks", len(banks), len(skill_domains))
        return banks
