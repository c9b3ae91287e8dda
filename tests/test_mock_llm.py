"""
Tests for the offline mock tier: every agent runs end to end against
MockCompletionClient without credentials.
"""
from factories import make_agent_config

from career_path.b1_career_researcher_agent import CareerResearcherAgent
from career_path.b2_career_planner_agent import CareerPlannerAgent
from career_path.b3_course_generator_agent import CareerCourseGeneratorAgent
from career_path.b4_assessment_generator_agent import AssessmentGeneratorAgent
from career_path.config import get_settings
from career_path.llm import build_client, extract_json_object
from career_path.mock_llm import MockCompletionClient
from career_path.models import CourseDifficulty, CourseGenerationRequest


def _agent(cls):
    return cls(config=make_agent_config(), client=MockCompletionClient())


class TestMockResearch:
    def test_brief_has_six_domains(self):
        brief = _agent(CareerResearcherAgent).research("Nurse")
        assert brief.career_title == "Nurse"
        assert len(brief.skill_domains) == 6
        assert brief.skill_domains[0].name == "Nurse Fundamentals"
        assert len(brief.assessable_domains()) == 5

    def test_related_careers(self):
        careers = _agent(CareerResearcherAgent).identify_related_careers("Nurse", count=2)
        assert careers == ["Senior Nurse", "Nurse Lead"]


class TestMockPlan:
    def test_plan_uses_brief_skills(self):
        brief = _agent(CareerResearcherAgent).research("Nurse")
        plan = _agent(CareerPlannerAgent).plan(brief)
        assert [p.order for p in plan.phases] == [1, 2, 3, 4]
        assert plan.phases[0].course_topics == ["Nurse Fundamentals", "Technical Toolkit"]
        assert all(len(p.milestones) == 2 for p in plan.phases)


class TestMockCourse:
    def test_course_from_topics(self):
        request = CourseGenerationRequest(
            career_title="Nurse", skill_name="Triage", skill_topics=["Vitals", "Escalation"],
            difficulty=CourseDifficulty.BEGINNER, target_audience="Someone learning Nurse",
        )
        course, lessons = _agent(CareerCourseGeneratorAgent).generate_course(
            request, "career-1", "skill-0-0", 1,
        )
        assert course.title == "Mastering Triage"
        assert course.syllabus[:2] == ["Vitals", "Escalation"]
        assert 4 <= len(lessons) <= 5


class TestMockAssessment:
    def test_bank_follows_requested_split(self):
        brief = _agent(CareerResearcherAgent).research("Nurse")
        bank = _agent(AssessmentGeneratorAgent).generate_assessment_bank(
            brief.skill_domains[1], "career-1",
        )
        assert bank.question_count == 12
        assert bank.difficulty_counts() == {"easy": 4, "medium": 5, "hard": 3}
        assert bank.questions[0].topic == "Tool setup"


class TestMockClient:
    def test_unrecognised_prompt_returns_empty_object(self):
        assert extract_json_object(MockCompletionClient().complete("hello")) == {}

    def test_build_client_selects_mock_when_not_live(self):
        cfg = get_settings().agent_config("researcher")
        assert isinstance(build_client(cfg, live=False), MockCompletionClient)
