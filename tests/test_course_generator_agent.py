"""
Tests for Block 3 — CareerCourseGeneratorAgent.
"""
import re

import pytest

from factories import FakeCompletionClient, course_json, make_agent_config, wrap

from career_path.b3_course_generator_agent import CareerCourseGeneratorAgent
from career_path.llm import AuthError, CourseGenerationError, ParseError
from career_path.models import CourseDifficulty, CourseGenerationRequest


def _request(skill="SQL Joins", difficulty=CourseDifficulty.BEGINNER):
    return CourseGenerationRequest(
        career_title="Data Analyst",
        skill_name=skill,
        skill_topics=["Inner joins", "Outer joins"],
        difficulty=difficulty,
        target_audience="Someone learning Data Analyst",
    )


def _agent(*responses):
    client = FakeCompletionClient(*responses)
    return CareerCourseGeneratorAgent(config=make_agent_config(), client=client), client


class TestGenerateCourse:
    def test_builds_course_and_lessons(self):
        agent, _ = _agent(wrap(course_json(n_lessons=5)))
        course, lessons = agent.generate_course(_request(), "career-1", "skill-0-0", 1)
        assert course.title == "Mastering SQL"
        assert course.career_path_id == "career-1"
        assert course.skill_id == "skill-0-0"
        assert course.phase_order == 1
        assert course.difficulty == CourseDifficulty.BEGINNER
        assert course.order == 0
        assert course.lesson_count == 5
        assert len(lessons) == 5

    def test_course_id_format(self):
        agent, _ = _agent(wrap(course_json()))
        course, _ = agent.generate_course(_request(), "career-1", "skill-0-0", 1)
        assert re.fullmatch(r"career-course-\d+-[a-z0-9]{9}", course.id)

    def test_lesson_ids_link_back_to_course(self):
        agent, _ = _agent(wrap(course_json(n_lessons=4)))
        course, lessons = agent.generate_course(_request(), "career-1", "skill-0-0", 1)
        assert course.lesson_ids == [f"{course.id}-lesson-{n}" for n in range(1, 5)]
        assert all(l.course_id == course.id for l in lessons)

    def test_missing_syllabus_uses_lesson_titles(self):
        agent, _ = _agent(wrap(course_json(n_lessons=4, syllabus=[])))
        course, _ = agent.generate_course(_request(), "career-1", "skill-0-0", 1)
        assert course.syllabus == ["Lesson 1", "Lesson 2", "Lesson 3", "Lesson 4"]

    def test_long_syllabus_truncated_to_six(self):
        agent, _ = _agent(wrap(course_json(syllabus=[f"T{i}" for i in range(9)])))
        course, _ = agent.generate_course(_request(), "career-1", "skill-0-0", 1)
        assert len(course.syllabus) == 6

    def test_prompt_carries_request(self):
        agent, client = _agent(wrap(course_json()))
        agent.generate_course(_request(difficulty=CourseDifficulty.ADVANCED), "c", "s", 4)
        prompt = client.prompts[0]
        assert '"SQL Joins"' in prompt
        assert "Inner joins, Outer joins" in prompt
        assert "DIFFICULTY: advanced" in prompt

    def test_missing_course_title_is_parse_error(self):
        agent, _ = _agent(wrap({"lessons": []}))
        with pytest.raises(ParseError):
            agent.generate_course(_request(), "career-1", "skill-0-0", 1)

    def test_auth_failure_is_auth_error(self):
        agent, _ = _agent(RuntimeError("403 forbidden"))
        with pytest.raises(AuthError):
            agent.generate_course(_request(), "career-1", "skill-0-0", 1)

    def test_other_failure_is_course_generation_error(self):
        agent, _ = _agent(OSError("boom"))
        with pytest.raises(CourseGenerationError, match="Failed to generate course for: SQL Joins"):
            agent.generate_course(_request(), "career-1", "skill-0-0", 1)


class TestGenerateBatchCourses:
    def test_all_succeed_orders_one_to_n(self):
        agent, _ = _agent(*(wrap(course_json(title=f"Course {i}")) for i in range(3)))
        requests = [_request(f"Skill {i}") for i in range(3)]
        courses, lessons = agent.generate_batch_courses(requests, "career-1", ["a", "b", "c"], 1)
        assert [c.order for c in courses] == [1, 2, 3]
        assert [c.skill_id for c in courses] == ["a", "b", "c"]
        assert len(lessons) == 12

    def test_one_failure_gives_dense_order(self):
        agent, _ = _agent(
            wrap(course_json(title="Course 0")),
            "garbage, not json",
            wrap(course_json(title="Course 2")),
            wrap(course_json(title="Course 3")),
        )
        requests = [_request(f"Skill {i}") for i in range(4)]
        courses, _ = agent.generate_batch_courses(requests, "career-1", ["a", "b", "c", "d"], 1)
        assert len(courses) == 3
        assert [c.order for c in courses] == [1, 2, 3]
        assert [c.title for c in courses] == ["Course 0", "Course 2", "Course 3"]
        assert len({c.id for c in courses}) == 3

    def test_all_fail_returns_empty(self):
        agent, _ = _agent(RuntimeError("x"), RuntimeError("y"))
        courses, lessons = agent.generate_batch_courses(
            [_request(), _request()], "career-1", ["a", "b"], 1,
        )
        assert courses == [] and lessons == []

    def test_programming_errors_propagate(self):
        agent, _ = _agent(wrap(course_json()))
        with pytest.raises(AttributeError):
            agent.generate_batch_courses([None], "career-1", ["a"], 1)
