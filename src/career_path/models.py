"""
Data models for the Career Path generation pipeline.

Pydantic models validate what the language model returns (research brief,
learning plan, assessment questions).  Plain dataclasses hold everything the
pipeline assembles itself (courses, banks, the career path aggregate and the
user-scoped learning plan).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


# ─── Enumerations ────────────────────────────────────────────────────────────

class SkillCategoryKind(str, Enum):
    FOUNDATION = "foundation"
    CORE       = "core"
    ADVANCED   = "advanced"
    SOFT_SKILL = "soft-skill"


class SkillImportance(str, Enum):
    ESSENTIAL    = "essential"
    IMPORTANT    = "important"
    NICE_TO_HAVE = "nice-to-have"


class Difficulty(str, Enum):
    """Question difficulty tier inside an assessment bank."""
    EASY   = "easy"
    MEDIUM = "medium"
    HARD   = "hard"


class CourseDifficulty(str, Enum):
    BEGINNER     = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED     = "advanced"


class ProficiencyLevel(str, Enum):
    BEGINNER     = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED     = "advanced"


class PhaseStatus(str, Enum):
    ACTIVE    = "active"
    LOCKED    = "locked"
    COMPLETED = "completed"


class GenerationPhase(str, Enum):
    """Orchestrator states, in the order they are entered."""
    INITIALIZING           = "initializing"
    RESEARCHING            = "researching"
    PLANNING               = "planning"
    GENERATING_COURSES     = "generating-courses"
    GENERATING_ASSESSMENTS = "generating-assessments"
    SAVING                 = "saving"
    COMPLETE               = "complete"
    ERROR                  = "error"


class EventType(str, Enum):
    PROGRESS        = "progress"
    COURSE_GENERATED = "course-generated"
    COMPLETE        = "complete"
    ERROR           = "error"


# ─── Research brief (Researcher output) ──────────────────────────────────────

class SkillDomain(BaseModel):
    """A named competency area. Identity is by name until assembly assigns ids."""
    name:                    str
    category:                SkillCategoryKind = SkillCategoryKind.CORE
    importance:              SkillImportance   = SkillImportance.IMPORTANT
    dependencies:            list[str] = Field(default_factory=list)
    estimated_time_to_learn: str       = "4-6 weeks"
    key_topics:              list[str] = Field(default_factory=list)

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> Any:
        if isinstance(value, str):
            norm = value.strip().lower().replace("_", "-").replace(" ", "-")
            if norm in {c.value for c in SkillCategoryKind}:
                return norm
            if norm in ("soft", "soft-skills"):
                return SkillCategoryKind.SOFT_SKILL.value
            return SkillCategoryKind.CORE.value
        return value

    @field_validator("importance", mode="before")
    @classmethod
    def _coerce_importance(cls, value: Any) -> Any:
        if isinstance(value, str):
            norm = value.strip().lower().replace("_", "-").replace(" ", "-")
            if norm in {i.value for i in SkillImportance}:
                return norm
            return SkillImportance.IMPORTANT.value
        return value


class SalaryRange(BaseModel):
    min:    int = 0
    max:    int = 0
    median: int = 0


class Certification(BaseModel):
    name:       str
    provider:   str = ""
    importance: SkillImportance = SkillImportance.NICE_TO_HAVE


class MarketData(BaseModel):
    demand:         str = "medium"      # low | medium | high | very-high
    demand_trend:   str = "stable"      # declining | stable | growing | booming
    salary_range:   SalaryRange = Field(default_factory=SalaryRange)
    top_industries: list[str] = Field(default_factory=list)
    top_locations:  list[str] = Field(default_factory=list)
    growth_outlook: str = ""


class EntryRequirements(BaseModel):
    difficulty:          str = "moderate"   # beginner-friendly | moderate | challenging | expert
    typical_backgrounds: list[str] = Field(default_factory=list)
    time_to_entry:       str = ""
    certifications:      list[Certification] = Field(default_factory=list)


class AIImpact(BaseModel):
    automation_risk:     str = "medium"     # very-low | low | medium | high
    risk_explanation:    str = ""
    future_proof_skills: list[str] = Field(default_factory=list)
    ai_augmentation:     str = ""


class ResearchBrief(BaseModel):
    """
    Structured research output of the Researcher.
    Produced once per run and consumed by the Planner and by skill-category
    assembly; never mutated after creation.
    """
    career_title:       str
    overview:           str = ""
    market_data:        MarketData        = Field(default_factory=MarketData)
    entry_requirements: EntryRequirements = Field(default_factory=EntryRequirements)
    ai_impact:          AIImpact          = Field(default_factory=AIImpact)
    skill_domains:      list[SkillDomain] = Field(default_factory=list)
    related_careers:    list[str]         = Field(default_factory=list)
    generated_at:       Optional[datetime] = None

    def domain_by_name(self, name: str) -> Optional[SkillDomain]:
        return next((d for d in self.skill_domains if d.name == name), None)

    def assessable_domains(self, limit: int = 6) -> list[SkillDomain]:
        """Essential and important domains, in brief order, capped at *limit*."""
        return [
            d for d in self.skill_domains
            if d.importance in (SkillImportance.ESSENTIAL, SkillImportance.IMPORTANT)
        ][:limit]


# ─── Learning plan (Planner output) ──────────────────────────────────────────

class TargetSkill(BaseModel):
    skill_id:           str
    skill_name:         str = ""
    target_proficiency: int = 70          # 0-100, range is checked by PlanGuardrails


class PlanMilestone(BaseModel):
    id:          str
    title:       str
    type:        str = "course"     # course | project | assessment | certification
    requirement: str = ""


class PhasePlan(BaseModel):
    order:              int
    title:              str
    description:        str = ""
    estimated_duration: str = ""
    target_skills:      list[TargetSkill]   = Field(default_factory=list)
    course_topics:      list[str]           = Field(default_factory=list)
    milestones:         list[PlanMilestone] = Field(default_factory=list)


class DetailedLearningPlan(BaseModel):
    career_title:          str
    total_duration:        str = "6-9 months"
    phases:                list[PhasePlan] = Field(default_factory=list)
    estimated_completion:  Optional[date] = None


# ─── Assessment questions ────────────────────────────────────────────────────

class AssessmentQuestion(BaseModel):
    """A single four-option multiple-choice question."""
    id:             str
    question:       str
    options:        list[str] = Field(min_length=4, max_length=4)
    correct_answer: int       = Field(ge=0, le=3)
    difficulty:     Difficulty = Difficulty.MEDIUM
    explanation:    str
    topic:          str

    @field_validator("difficulty", mode="before")
    @classmethod
    def _coerce_difficulty(cls, value: Any) -> Any:
        if isinstance(value, str) and value.lower() in {d.value for d in Difficulty}:
            return value.lower()
        if isinstance(value, Difficulty):
            return value
        return Difficulty.MEDIUM


# ─── Course generation ───────────────────────────────────────────────────────

@dataclass
class CourseGenerationRequest:
    career_title:    str
    skill_name:      str
    skill_topics:    list[str]
    difficulty:      CourseDifficulty
    target_audience: str


@dataclass
class CourseLesson:
    id:             str
    course_id:      str
    order:          int
    title:          str
    description:    str = ""
    estimated_time: str = "15 minutes"
    read_content:   dict = field(default_factory=dict)


@dataclass
class CareerCourse:
    id:             str
    career_path_id: str
    skill_id:       str
    skill_name:     str
    phase_order:    int
    title:          str
    description:    str
    difficulty:     CourseDifficulty
    estimated_time: str
    syllabus:       list[str] = field(default_factory=list)
    lesson_count:   int = 0
    lesson_ids:     list[str] = field(default_factory=list)
    order:          int = 0          # assigned by the caller, dense and 1-based
    created_at:     Optional[datetime] = None


# ─── Assessment banks & scoring ──────────────────────────────────────────────

@dataclass
class SkillAssessmentBank:
    skill_id:       str
    skill_name:     str
    career_path_id: str
    questions:      list[AssessmentQuestion] = field(default_factory=list)
    question_count: int = 0
    created_at:     Optional[datetime] = None

    @property
    def doc_id(self) -> str:
        """Store key; banks for the same skill in different career paths never collide."""
        return f"{self.career_path_id}-{self.skill_id}"

    def difficulty_counts(self) -> dict[str, int]:
        counts = {d.value: 0 for d in Difficulty}
        for q in self.questions:
            counts[q.difficulty.value] += 1
        return counts


@dataclass
class DifficultyTally:
    total:   int = 0
    correct: int = 0


@dataclass
class ProficiencyResult:
    score:             int
    by_difficulty:     dict[str, DifficultyTally]
    proficiency_level: ProficiencyLevel


@dataclass
class QuestionFeedback:
    """Per-question result after the learner answers."""
    question_id:    str
    correct:        bool
    learner_index:  Optional[int]
    correct_index:  int
    explanation:    str


@dataclass
class AssessmentResult:
    """Scored result after the learner submits answers for one skill bank."""
    skill_id:          str
    skill_name:        str
    total_questions:   int
    correct_answers:   int
    score:             int
    by_difficulty:     dict[str, DifficultyTally]
    proficiency_level: ProficiencyLevel
    feedback:          str = ""
    question_feedback: list[QuestionFeedback] = field(default_factory=list)
    completed_at:      Optional[datetime] = None


# ─── Career path aggregate ───────────────────────────────────────────────────

@dataclass
class Skill:
    id:                      str
    name:                    str
    importance:              SkillImportance
    dependencies:            list[str] = field(default_factory=list)
    preview_questions:       list[AssessmentQuestion] = field(default_factory=list)
    assessment_bank_id:      Optional[str] = None
    proficiency_levels:      dict[str, str] = field(default_factory=dict)
    platform_courses:        list[str] = field(default_factory=list)
    estimated_time_to_learn: str = ""
    linked_course_id:        Optional[str] = None


@dataclass
class SkillCategory:
    name:   str
    weight: int                      # % of total; all categories sum to 100
    skills: list[Skill] = field(default_factory=list)


@dataclass
class CareerPath:
    """The persisted, user-facing root entity."""
    id:                 str
    title:              str
    description:        str
    user_id:            str
    skill_categories:   list[SkillCategory]
    total_skill_count:  int
    course_ids:         list[str]
    market:             MarketData
    entry:              EntryRequirements
    ai_impact:          AIImpact
    related_careers:    list[str] = field(default_factory=list)
    source:             str = "ai-generated"
    generated_at:       Optional[datetime] = None


# ─── Personalised learning plan ──────────────────────────────────────────────

@dataclass
class Milestone:
    id:          str
    title:       str
    type:        str
    requirement: str
    completed:   bool = False


@dataclass
class LearningPhase:
    order:              int
    title:              str
    description:        str
    estimated_duration: str
    target_skills:      list[TargetSkill]
    course_ids:         list[str]
    recommended_courses: list[str]
    milestones:         list[Milestone]
    status:             PhaseStatus = PhaseStatus.LOCKED
    progress:           int = 0


@dataclass
class PersonalizedLearningPlan:
    id:                   str
    user_id:              str
    career_path_id:       str
    career_title:         str
    phases:               list[LearningPhase]
    estimated_completion: Optional[date] = None
    current_phase_index:  int = 0
    overall_progress:     int = 0
    adaptation_history:   list[dict] = field(default_factory=list)
    created_at:           Optional[datetime] = None
    last_adapted_at:      Optional[datetime] = None

    def active_phases(self) -> list[LearningPhase]:
        return [p for p in self.phases if p.status == PhaseStatus.ACTIVE]


# ─── Progress events ─────────────────────────────────────────────────────────

@dataclass
class ProgressEvent:
    """One callback payload; the wire shape of the streaming endpoint."""
    type:     EventType
    phase:    Optional[GenerationPhase] = None
    message:  str = ""
    progress: float = 0
    data:     Optional[dict] = None
    error:    Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type.value}
        if self.phase is not None:
            out["phase"] = self.phase.value
        if self.message:
            out["message"] = self.message
        out["progress"] = round(self.progress, 1)
        if self.data is not None:
            out["data"] = self.data
        if self.error is not None:
            out["error"] = self.error
        return out

    def to_sse(self) -> str:
        """Server-sent-event frame: ``data: {json}\\n\\n``."""
        return f"data: {json.dumps(self.to_dict(), default=str)}\n\n"


@dataclass
class OrchestrationResult:
    career_path:      CareerPath
    learning_plan:    PersonalizedLearningPlan
    courses:          list[CareerCourse]
    lessons:          list[CourseLesson]
    assessment_banks: list[SkillAssessmentBank]
    skipped_courses:     list[str] = field(default_factory=list)
    skipped_assessments: list[str] = field(default_factory=list)
    trace:            Any = None      # agent_trace.RunTrace
