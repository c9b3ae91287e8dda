"""
Block 3: Career Course Generator
================================
Generates one course outline per skill topic.

CareerCourseGeneratorAgent
    generate_course(request, career_path_id, skill_id, phase_order)
        One model call → (CareerCourse, [CourseLesson, ...])
    generate_batch_courses(requests, career_path_id, skill_ids, phase_order)
        Sequential loop over requests.  A failed item is logged and skipped;
        the surviving courses get a dense 1-based ``order``.

Each course carries a 4-6 entry syllabus and the outline of its lessons.
Lesson ids are ``{course_id}-lesson-{n}`` and are written back onto the course
so the persisted records link up.
"""

from __future__ import annotations

import logging
import random
import string
import textwrap
import time
from datetime import datetime, timezone

from career_path.config import AgentConfig, get_settings
from career_path.llm import (
    CareerAgentError,
    CourseGenerationError,
    ParseError,
    SupportsComplete,
    build_client,
    extract_json_object,
    raise_for_llm_error,
)
from career_path.models import CareerCourse, CourseGenerationRequest, CourseLesson

logger = logging.getLogger(__name__)

MIN_SYLLABUS = 4
MAX_SYLLABUS = 6


def new_course_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"career-course-{int(time.time() * 1000)}-{suffix}"


class CareerCourseGeneratorAgent:
    """
    Block 3 — course outline generator.

    Usage::

        agent            = CareerCourseGeneratorAgent()
        course, lessons  = agent.generate_course(request, "career-1", "skill-0-0", 1)
    """

    def __init__(
        self,
        config: AgentConfig | None = None,
        client: SupportsComplete | None = None,
    ) -> None:
        settings     = get_settings()
        self._cfg    = config or settings.agent_config("course_generator")
        self._client = client or build_client(self._cfg, live=settings.live_mode)

    def _build_prompt(self, request: CourseGenerationRequest) -> str:
        return textwrap.dedent(f"""
            You are an expert course creator. Design a course for learning
            "{request.skill_name}" as part of a "{request.career_title}" career path.

            SKILL: {request.skill_name}
            TOPICS TO COVER: {", ".join(request.skill_topics)}
            DIFFICULTY: {request.difficulty.value}
            TARGET AUDIENCE: {request.target_audience}

            Create a course with {MIN_SYLLABUS}-{MAX_SYLLABUS} lessons covering these topics progressively.

            Return a JSON object with this EXACT structure:
            {{
                "course": {{
                    "title": "Engaging Course Title",
                    "description": "2-3 sentence course description",
                    "estimated_time": "X hours",
                    "syllabus": ["Lesson 1 topic", "Lesson 2 topic", "Lesson 3 topic", "Lesson 4 topic"]
                }},
                "lessons": [
                    {{
                        "order": 1,
                        "title": "Lesson Title",
                        "description": "Brief lesson description",
                        "estimated_time": "15-20 minutes",
                        "read_content": {{
                            "overview": "Introduction paragraph",
                            "sections": [
                                {{"heading": "Section Heading", "content": "Educational content", "key_points": ["Point 1"]}}
                            ],
                            "summary": "Summary paragraph"
                        }}
                    }}
                ]
            }}

            IMPORTANT:
            - The syllabus is ordered and has one entry per lesson
            - Content should be educational, not superficial
            - Include real-world examples and practical applications
        """).strip()

    # ── Public interface ──────────────────────────────────────────────────────

    def generate_course(
        self,
        request: CourseGenerationRequest,
        career_path_id: str,
        skill_id: str,
        phase_order: int,
    ) -> tuple[CareerCourse, list[CourseLesson]]:
        """
        Generate one course for *request*.  ``order`` is left at 0 for the
        caller to assign.

        Raises ParseError / AuthError / RateLimitError, or
        CourseGenerationError for anything else.
        """
        logger.info("Generating course for: %s", request.skill_name)
        try:
            data = extract_json_object(
                self._client.complete(self._build_prompt(request)), "course data"
            )
            meta = data.get("course")
            if not isinstance(meta, dict) or not meta.get("title"):
                raise ParseError("Failed to parse course data - missing course title")

            course_id = new_course_id()
            lessons: list[CourseLesson] = []
            for idx, raw in enumerate(data.get("lessons") or []):
                if not isinstance(raw, dict):
                    continue
                lessons.append(CourseLesson(
                    id             = f"{course_id}-lesson-{idx + 1}",
                    course_id      = course_id,
                    order          = raw.get("order") or idx + 1,
                    title          = raw.get("title") or f"Lesson {idx + 1}",
                    description    = raw.get("description", ""),
                    estimated_time = raw.get("estimated_time") or "15 minutes",
                    read_content   = raw.get("read_content") or {},
                ))

            syllabus = [str(s) for s in meta.get("syllabus") or [] if str(s).strip()]
            if not syllabus:
                syllabus = [lesson.title for lesson in lessons]
            syllabus = syllabus[:MAX_SYLLABUS]
            if len(syllabus) < MIN_SYLLABUS:
                logger.warning(
                    "Short syllabus for %s: %d entries (expected %d-%d)",
                    request.skill_name, len(syllabus), MIN_SYLLABUS, MAX_SYLLABUS,
                )
        except Exception as exc:
            logger.error("Error generating course for %s: %s", request.skill_name, exc)
            raise_for_llm_error(
                exc, CourseGenerationError, f"Failed to generate course for: {request.skill_name}"
            )

        course = CareerCourse(
            id             = course_id,
            career_path_id = career_path_id,
            skill_id       = skill_id,
            skill_name     = request.skill_name,
            phase_order    = phase_order,
            title          = meta["title"],
            description    = meta.get("description", ""),
            difficulty     = request.difficulty,
            estimated_time = meta.get("estimated_time") or "",
            syllabus       = syllabus,
            lesson_count   = len(lessons),
            lesson_ids     = [lesson.id for lesson in lessons],
            order          = 0,
            created_at     = datetime.now(timezone.utc),
        )
        logger.info("Generated course %r with %d lessons", course.title, len(lessons))
        return course, lessons

    def generate_batch_courses(
        self,
        requests: list[CourseGenerationRequest],
        career_path_id: str,
        skill_ids: list[str],
        phase_order: int,
    ) -> tuple[list[CareerCourse], list[CourseLesson]]:
        """
        Generate courses one request at a time.

        A failing request does not abort the batch: it is logged and skipped,
        and the remaining courses are numbered densely 1..M.
        """
        logger.info("Generating %d courses", len(requests))
        courses: list[CareerCourse] = []
        all_lessons: list[CourseLesson] = []

        for i, request in enumerate(requests):
            skill_id = skill_ids[i] if i < len(skill_ids) else f"skill-{i}"
            try:
                course, lessons = self.generate_course(request, career_path_id, skill_id, phase_order)
            except CareerAgentError as exc:
                logger.warning("Course skipped for %s: %s", request.skill_name, exc)
                continue
            course.order = len(courses) + 1
            courses.append(course)
            all_lessons.extend(lessons)

        logger.info("Generated %d/%d courses", len(courses), len(requests))
        return courses, all_lessons
