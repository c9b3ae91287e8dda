"""
orchestrator.py — Career path generation pipeline
=================================================
Drives the four agents in strict sequence and persists the result in one
atomic batch.

State machine (each transition reported through ``on_progress``)::

    initializing (0)
      → researching (5 → 15)              fatal on failure
      → planning (20 → 30)                fatal on failure
      → generating-courses (35 → 60)      per-topic, skip on failure
      → generating-assessments (65 → 80)  per-domain, skip on failure
      → saving (85 / 90 / 95)             single WriteBatch.commit()
      → complete (100)

Any unrecovered exception emits one ``error`` event carrying the phase it
happened in, is logged, and is re-raised.  Nothing is written to the store
before the final commit, so a fatal error leaves no partial data behind.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from career_path.agent_trace import RunTrace
from career_path.b1_career_researcher_agent import CareerResearcherAgent
from career_path.b2_career_planner_agent import CareerPlannerAgent
from career_path.b3_course_generator_agent import CareerCourseGeneratorAgent
from career_path.b4_assessment_generator_agent import AssessmentGeneratorAgent, skill_slug
from career_path.config import Settings, get_settings
from career_path.database import SERVER_TIMESTAMP, ArrayUnion, DocumentStore, to_document
from career_path.guardrails import GuardrailsPipeline
from career_path.llm import CareerAgentError, PlanningError, build_client
from career_path.models import (
    CareerCourse,
    CareerPath,
    CourseDifficulty,
    CourseGenerationRequest,
    CourseLesson,
    DetailedLearningPlan,
    EventType,
    GenerationPhase,
    LearningPhase,
    Milestone,
    OrchestrationResult,
    PersonalizedLearningPlan,
    PhaseStatus,
    ProgressEvent,
    ResearchBrief,
    Skill,
    SkillAssessmentBank,
    SkillCategory,
    SkillCategoryKind,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]

# Category display name and base weight (%), in display order.
CATEGORY_LAYOUT: list[tuple[SkillCategoryKind, str, int]] = [
    (SkillCategoryKind.FOUNDATION, "Foundation",  30),
    (SkillCategoryKind.CORE,       "Core Skills", 40),
    (SkillCategoryKind.ADVANCED,   "Advanced",    20),
    (SkillCategoryKind.SOFT_SKILL, "Soft Skills", 10),
]

PREVIEW_QUESTIONS = 3


# ─── Assembly helpers ────────────────────────────────────────────────────────

def rescale_weights(weights: list[int], total: int = 100) -> list[int]:
    """
    Scale *weights* proportionally so they sum to exactly *total*.

    Largest Remainder Method: floor every share, then hand the leftover
    points to the largest fractional remainders (ties go to the earlier entry).
    """
    base = sum(weights)
    if not weights or base <= 0:
        return [0 for _ in weights]
    ideal  = [w * total / base for w in weights]
    floors = [int(x) for x in ideal]
    short  = total - sum(floors)
    remainders = sorted(
        ((ideal[i] - floors[i], -i) for i in range(len(ideal))),
        reverse=True,
    )
    for _, neg_i in remainders[:short]:
        floors[-neg_i] += 1
    return floors


def build_skill_categories(
    brief: ResearchBrief,
    banks: list[SkillAssessmentBank],
    courses: list[CareerCourse],
) -> list[SkillCategory]:
    """Group the brief's domains into weighted categories of linked skills."""
    grouped: dict[SkillCategoryKind, list[Skill]] = {kind: [] for kind, _, _ in CATEGORY_LAYOUT}

    for idx, domain in enumerate(brief.skill_domains):
        bank   = next((b for b in banks if b.skill_name == domain.name), None)
        course = next((c for c in courses if c.skill_name == domain.name), None)
        grouped[domain.category].append(Skill(
            id                      = f"skill-{idx}",
            name                    = domain.name,
            importance              = domain.importance,
            dependencies            = list(domain.dependencies),
            preview_questions       = list(bank.questions[:PREVIEW_QUESTIONS]) if bank else [],
            assessment_bank_id      = bank.doc_id if bank else None,
            proficiency_levels      = {
                "beginner":     f"Basic understanding of {domain.name}",
                "intermediate": f"Can apply {domain.name} concepts independently",
                "advanced":     f"Expert level, can teach {domain.name} to others",
            },
            platform_courses        = [course.id] if course else [],
            estimated_time_to_learn = domain.estimated_time_to_learn,
            linked_course_id        = course.id if course else None,
        ))

    present = [(kind, name, weight) for kind, name, weight in CATEGORY_LAYOUT if grouped[kind]]
    weights = rescale_weights([w for _, _, w in present])
    return [
        SkillCategory(name=name, weight=weight, skills=grouped[kind])
        for (kind, name, _), weight in zip(present, weights)
    ]


def build_learning_plan(
    plan: DetailedLearningPlan,
    career_path: CareerPath,
    courses: list[CareerCourse],
    user_id: str,
) -> PersonalizedLearningPlan:
    """User-scoped plan: first phase active, the rest locked, nothing completed."""
    now = datetime.now(timezone.utc)
    phases: list[LearningPhase] = []
    for idx, phase in enumerate(plan.phases):
        phase_courses = [c for c in courses if c.phase_order == phase.order]
        phases.append(LearningPhase(
            order               = phase.order,
            title               = phase.title,
            description         = phase.description,
            estimated_duration  = phase.estimated_duration,
            target_skills       = list(phase.target_skills),
            course_ids          = [c.id for c in phase_courses],
            recommended_courses = [c.title for c in phase_courses],
            milestones          = [
                Milestone(id=m.id, title=m.title, type=m.type, requirement=m.requirement)
                for m in phase.milestones
            ],
            status              = PhaseStatus.ACTIVE if idx == 0 else PhaseStatus.LOCKED,
            progress            = 0,
        ))

    return PersonalizedLearningPlan(
        id                   = f"plan-{int(time.time() * 1000)}",
        user_id              = user_id,
        career_path_id       = career_path.id,
        career_title         = career_path.title,
        phases               = phases,
        estimated_completion = plan.estimated_completion,
        current_phase_index  = 0,
        overall_progress     = 0,
        adaptation_history   = [],
        created_at           = now,
        last_adapted_at      = now,
    )


def _course_difficulty(phase_idx: int, phase_count: int) -> CourseDifficulty:
    if phase_idx == 0:
        return CourseDifficulty.BEGINNER
    if phase_idx == phase_count - 1:
        return CourseDifficulty.ADVANCED
    return CourseDifficulty.INTERMEDIATE


def _skill_topics(brief: ResearchBrief, topic: str) -> list[str]:
    """Key topics of the first domain mentioning the topic's first word."""
    words = topic.split()
    first = words[0] if words else topic
    for domain in brief.skill_domains:
        if any(first in t for t in domain.key_topics):
            return list(domain.key_topics)
    return [topic]


# ─── Orchestrator ────────────────────────────────────────────────────────────

class CareerOrchestrator:
    """
    Runs research → planning → courses → assessments → save.

    Usage::

        orch   = CareerOrchestrator()
        result = orch.generate_career_path("Data Analyst", "user-1", print)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[DocumentStore] = None,
        researcher: Optional[CareerResearcherAgent] = None,
        planner: Optional[CareerPlannerAgent] = None,
        course_generator: Optional[CareerCourseGeneratorAgent] = None,
        assessment_generator: Optional[AssessmentGeneratorAgent] = None,
        guardrails: Optional[GuardrailsPipeline] = None,
    ):
        self.settings = settings or get_settings()
        self._store   = store
        live = self.settings.live_mode

        def _agent(cls, name):
            cfg = self.settings.agent_config(name)
            return cls(config=cfg, client=build_client(cfg, live=live))

        self.researcher           = researcher or _agent(CareerResearcherAgent, "researcher")
        self.planner              = planner or _agent(CareerPlannerAgent, "planner")
        self.course_generator     = course_generator or _agent(CareerCourseGeneratorAgent, "course_generator")
        self.assessment_generator = assessment_generator or _agent(AssessmentGeneratorAgent, "assessment_generator")
        self.guardrails           = guardrails or GuardrailsPipeline()

    @property
    def store(self) -> DocumentStore:
        if self._store is None:
            self._store = DocumentStore(self.settings.store.db_path)
        return self._store

    @property
    def mode(self) -> str:
        if not self.settings.live_mode:
            return "mock"
        return "azure_openai" if self.settings.openai.endpoint else "openai"

    # ── Pipeline ─────────────────────────────────────────────────────────────

    def generate_career_path(
        self,
        career_title: str,
        user_id: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> OrchestrationResult:
        """
        Generate, assemble and persist a complete career path.

        Raises ValueError for a rejected title, and whatever CareerAgentError
        the researcher or planner raised; an ``error`` event precedes either.
        """
        emit = on_progress or (lambda event: None)
        current = GenerationPhase.INITIALIZING

        def progress(phase: GenerationPhase, message: str, pct: float) -> None:
            nonlocal current
            current = phase
            emit(ProgressEvent(type=EventType.PROGRESS, phase=phase, message=message, progress=pct))

        career_path_id = f"career-{int(time.time() * 1000)}"
        trace = RunTrace.start(str(career_title), user_id, self.mode)

        try:
            progress(GenerationPhase.INITIALIZING, "Starting career path generation...", 0)
            guard = self.guardrails.check_input(career_title)
            if guard.blocked:
                raise ValueError(guard.summary())
            career_title = career_title.strip()
            logger.info("Generating career path %s for %r (user=%s, mode=%s)",
                        career_path_id, career_title, user_id, self.mode)

            # ── Research ──────────────────────────────────────────────────────
            progress(GenerationPhase.RESEARCHING, f"Researching {career_title} career...", 5)
            t0 = trace.elapsed_ms()
            brief = self.researcher.research(career_title)
            brief_warnings = [v.message for v in self.guardrails.check_brief(brief).warnings]
            for message in brief_warnings:
                logger.warning("Research brief: %s", message)
            trace.record(
                "researcher", "Career Researcher", t0, "success",
                input_summary  = career_title,
                output_summary = f"{len(brief.skill_domains)} skill domains",
                decisions      = [f"Market demand: {brief.market_data.demand}"],
                warnings       = brief_warnings,
            )
            progress(GenerationPhase.RESEARCHING, "Market analysis complete", 15)

            # ── Planning ──────────────────────────────────────────────────────
            progress(GenerationPhase.PLANNING, "Creating personalized learning roadmap...", 20)
            t0 = trace.elapsed_ms()
            plan = self.planner.plan(brief)
            plan_check = self.guardrails.check_plan(plan)
            if plan_check.blocked:
                raise PlanningError(f"Learning plan rejected: {plan_check.summary()}")
            plan_warnings = [v.message for v in plan_check.warnings]
            for message in plan_warnings:
                logger.warning("Learning plan: %s", message)
            trace.record(
                "planner", "Career Planner", t0, "success",
                input_summary  = f"{len(brief.skill_domains)} skill domains",
                output_summary = f"{len(plan.phases)} phases, {plan.total_duration}",
                warnings       = plan_warnings,
            )
            progress(GenerationPhase.PLANNING, f"{len(plan.phases)}-phase learning plan ready", 30)

            # ── Courses ───────────────────────────────────────────────────────
            courses, lessons, skipped_courses = self._generate_courses(
                career_title, career_path_id, brief, plan, emit, progress, trace,
            )

            # ── Assessments ───────────────────────────────────────────────────
            banks, skipped_assessments = self._generate_assessments(
                career_path_id, brief, progress, trace,
            )

            # ── Assembly & save ───────────────────────────────────────────────
            progress(GenerationPhase.SAVING, "Finalizing your career path...", 85)
            career_path = CareerPath(
                id                = career_path_id,
                title             = career_title,
                description       = brief.overview,
                user_id           = user_id,
                skill_categories  = build_skill_categories(brief, banks, courses),
                total_skill_count = len(brief.skill_domains),
                course_ids        = [c.id for c in courses],
                market            = brief.market_data,
                entry             = brief.entry_requirements,
                ai_impact         = brief.ai_impact,
                related_careers   = list(brief.related_careers),
                generated_at      = datetime.now(timezone.utc),
            )
            learning_plan = build_learning_plan(plan, career_path, courses, user_id)

            progress(GenerationPhase.SAVING, "Saving your career path...", 90)
            # The persisted trace covers the agent stages; the store step exists
            # only once the commit has returned.
            trace.finish()
            t0 = trace.elapsed_ms()
            written = self._persist(career_path, learning_plan, courses, lessons, banks, trace)
            trace.record(
                "store", "Document Store", t0, "success",
                input_summary  = f"{len(courses)} courses, {len(lessons)} lessons, {len(banks)} banks",
                output_summary = f"{written} documents in a single atomic batch",
            )
            trace.finish()
            progress(GenerationPhase.SAVING, "All data saved", 95)

        except Exception as exc:
            logger.exception("Career path generation failed during %s", current.value)
            emit(ProgressEvent(
                type     = EventType.ERROR,
                phase    = current,
                message  = f"Career path generation failed during {current.value}",
                error    = str(exc) or exc.__class__.__name__,
                progress = 0,
            ))
            raise

        emit(ProgressEvent(
            type     = EventType.COMPLETE,
            phase    = GenerationPhase.COMPLETE,
            message  = "Career path generated successfully!",
            progress = 100,
            data     = {
                "career_path_id":      career_path_id,
                "course_count":        len(courses),
                "assessment_count":    len(banks),
                "skipped_courses":     len(skipped_courses),
                "skipped_assessments": len(skipped_assessments),
            },
        ))
        logger.info("Career path %s complete: %s", career_path_id, trace.to_summary())

        return OrchestrationResult(
            career_path         = career_path,
            learning_plan       = learning_plan,
            courses             = courses,
            lessons             = lessons,
            assessment_banks    = banks,
            skipped_courses     = skipped_courses,
            skipped_assessments = skipped_assessments,
            trace               = trace,
        )

    # ── Stage loops ──────────────────────────────────────────────────────────

    def _generate_courses(self, career_title, career_path_id, brief, plan, emit, progress, trace):
        progress(GenerationPhase.GENERATING_COURSES, "Generating AI-curated courses...", 35)
        t0 = trace.elapsed_ms()
        limit = self.settings.pipeline.max_courses_per_phase
        work = [
            (phase_idx, topic_idx, phase, topic)
            for phase_idx, phase in enumerate(plan.phases)
            for topic_idx, topic in enumerate(phase.course_topics[:limit])
        ]

        courses: list[CareerCourse] = []
        lessons: list[CourseLesson] = []
        skipped: list[str] = []
        for k, (phase_idx, topic_idx, phase, topic) in enumerate(work):
            pct = 35 + (k / len(work)) * 25
            progress(GenerationPhase.GENERATING_COURSES, f"Creating course: {topic}", pct)
            request = CourseGenerationRequest(
                career_title    = career_title,
                skill_name      = topic,
                skill_topics    = _skill_topics(brief, topic),
                difficulty      = _course_difficulty(phase_idx, len(plan.phases)),
                target_audience = f"Someone learning {career_title}",
            )
            try:
                course, course_lessons = self.course_generator.generate_course(
                    request, career_path_id, f"skill-{phase_idx}-{topic_idx}", phase.order,
                )
            except CareerAgentError as exc:
                logger.warning("Course generation failed for %s: %s", topic, exc)
                skipped.append(topic)
                continue
            course.order = len(courses) + 1
            courses.append(course)
            lessons.extend(course_lessons)
            emit(ProgressEvent(
                type     = EventType.COURSE_GENERATED,
                message  = f"Generated: {course.title}",
                progress = pct,
                data     = {"course_id": course.id, "title": course.title},
            ))

        trace.record(
            "course_generator", "Course Generator", t0,
            "partial" if skipped else "success",
            input_summary  = f"{len(work)} course topics",
            output_summary = f"{len(courses)} courses, {len(lessons)} lessons",
            warnings       = [f"Skipped course: {t}" for t in skipped],
        )
        progress(GenerationPhase.GENERATING_COURSES, f"{len(courses)} courses created", 60)
        return courses, lessons, skipped

    def _generate_assessments(self, career_path_id, brief, progress, trace):
        progress(GenerationPhase.GENERATING_ASSESSMENTS, "Creating skill assessments...", 65)
        t0 = trace.elapsed_ms()
        domains = brief.assessable_domains(self.settings.pipeline.max_assessed_skills)
        count   = self.settings.pipeline.questions_per_skill

        banks: list[SkillAssessmentBank] = []
        skipped: list[str] = []
        warnings: list[str] = []
        for i, domain in enumerate(domains):
            pct = 65 + (i / len(domains)) * 15
            progress(GenerationPhase.GENERATING_ASSESSMENTS, f"Assessment: {domain.name}", pct)
            if any(b.skill_id == skill_slug(domain.name) for b in banks):
                logger.warning("Duplicate skill domain %s, assessment not regenerated", domain.name)
                skipped.append(domain.name)
                continue
            try:
                bank = self.assessment_generator.generate_assessment_bank(domain, career_path_id, count)
            except CareerAgentError as exc:
                logger.warning("Assessment generation failed for %s: %s", domain.name, exc)
                skipped.append(domain.name)
                continue
            check = self.guardrails.check_bank(bank)
            if check.blocked:
                logger.warning("Assessment bank for %s rejected: %s", domain.name, check.summary())
                skipped.append(domain.name)
                continue
            warnings.extend(f"{domain.name}: {v.message}" for v in check.warnings)
            banks.append(bank)

        trace.record(
            "assessment_generator", "Assessment Generator", t0,
            "partial" if skipped else "success",
            input_summary  = f"{len(domains)} assessed skills × {count} questions",
            output_summary = f"{len(banks)} assessment banks",
            warnings       = warnings + [f"Skipped assessment: {n}" for n in skipped],
        )
        progress(GenerationPhase.GENERATING_ASSESSMENTS,
                 f"{len(banks)} skill assessments ready", 80)
        return banks, skipped

    # ── Persistence ──────────────────────────────────────────────────────────

    def _persist(
        self,
        career_path: CareerPath,
        learning_plan: PersonalizedLearningPlan,
        courses: list[CareerCourse],
        lessons: list[CourseLesson],
        banks: list[SkillAssessmentBank],
        trace: RunTrace,
    ) -> int:
        store = self.store
        batch = store.batch()

        batch.set(store.collection("careerPaths").doc(career_path.id), {
            **to_document(career_path),
            "generated_at": SERVER_TIMESTAMP,
            "saved_at":     SERVER_TIMESTAMP,
        })
        batch.set(store.collection("learningPlans").doc(learning_plan.id), {
            **to_document(learning_plan),
            "created_at":      SERVER_TIMESTAMP,
            "last_adapted_at": SERVER_TIMESTAMP,
        })
        for course in courses:
            batch.set(store.collection("careerCourses").doc(course.id), {
                **to_document(course), "created_at": SERVER_TIMESTAMP,
            })
        for lesson in lessons:
            batch.set(store.collection("careerCourseLessons").doc(lesson.id), lesson)
        for bank in banks:
            batch.set(store.collection("skillAssessmentBanks").doc(bank.doc_id), {
                **to_document(bank), "created_at": SERVER_TIMESTAMP,
            })
        batch.set(store.collection("generationTraces").doc(trace.run_id), trace.to_dict())
        batch.set(store.collection("userCareerProfiles").doc(learning_plan.user_id), {
            "user_id":                 learning_plan.user_id,
            "saved_career_ids":        ArrayUnion([career_path.id]),
            "active_career_path_id":   career_path.id,
            "active_learning_plan_id": learning_plan.id,
            "updated_at":              SERVER_TIMESTAMP,
        }, merge=True)

        return batch.commit()
