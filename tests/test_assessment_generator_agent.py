"""
Tests for Block 4 — AssessmentGeneratorAgent and proficiency scoring.
"""
import pytest

from factories import (
    FakeCompletionClient,
    make_agent_config,
    make_bank,
    make_domain,
    make_question,
    questions_json,
    wrap,
)

from career_path.b4_assessment_generator_agent import (
    AssessmentGeneratorAgent,
    calculate_proficiency,
    difficulty_split,
    evaluate_bank,
    skill_slug,
)
from career_path.llm import AssessmentGenerationError, ParseError
from career_path.models import Difficulty, ProficiencyLevel


def _agent(*responses):
    client = FakeCompletionClient(*responses)
    return AssessmentGeneratorAgent(config=make_agent_config(), client=client), client


class TestDifficultySplit:
    def test_twelve_is_four_five_three(self):
        assert difficulty_split(12) == {"easy": 4, "medium": 5, "hard": 3}

    @pytest.mark.parametrize("n", [1, 5, 8, 10, 15, 24])
    def test_split_sums_to_count(self, n):
        assert sum(difficulty_split(n).values()) == n

    def test_twenty_four_scales(self):
        assert difficulty_split(24) == {"easy": 8, "medium": 10, "hard": 6}


class TestSkillSlug:
    def test_lowercases_and_hyphenates(self):
        assert skill_slug("Data  Visualization") == "skill-data-visualization"


class TestGenerateAssessmentBank:
    def test_bank_has_requested_count_and_mix(self):
        agent, _ = _agent(wrap(questions_json(12)))
        bank = agent.generate_assessment_bank(make_domain(name="SQL Querying"), "career-1")
        assert bank.question_count == 12
        assert len(bank.questions) == 12
        assert bank.difficulty_counts() == {"easy": 4, "medium": 5, "hard": 3}
        assert bank.skill_id == "skill-sql-querying"
        assert bank.career_path_id == "career-1"

    def test_prompt_requests_split(self):
        agent, client = _agent(wrap(questions_json(12)))
        agent.generate_assessment_bank(make_domain(), "career-1")
        prompt = client.prompts[0]
        assert "- 4 easy questions" in prompt
        assert "- 5 medium questions" in prompt
        assert "- 3 hard questions" in prompt

    def test_extra_options_truncated_to_four(self):
        agent, _ = _agent(wrap(questions_json(12, n_options=6)))
        bank = agent.generate_assessment_bank(make_domain(), "career-1")
        assert all(len(q.options) == 4 for q in bank.questions)

    def test_too_few_options_fails(self):
        agent, _ = _agent(wrap(questions_json(12, n_options=3)))
        with pytest.raises(ParseError):
            agent.generate_assessment_bank(make_domain(), "career-1")

    def test_missing_topic_cycles_key_topics(self):
        payload = questions_json(12)
        for q in payload["questions"]:
            del q["topic"]
        agent, _ = _agent(wrap(payload))
        domain = make_domain(key_topics=["Joins", "Indexes", "Views"])
        bank = agent.generate_assessment_bank(domain, "career-1")
        assert [q.topic for q in bank.questions[:4]] == ["Joins", "Indexes", "Views", "Joins"]

    def test_missing_explanation_and_id_backfilled(self):
        payload = questions_json(12)
        del payload["questions"][0]["explanation"]
        del payload["questions"][2]["id"]
        agent, _ = _agent(wrap(payload))
        bank = agent.generate_assessment_bank(make_domain(), "career-1")
        assert bank.questions[0].explanation
        assert bank.questions[2].id == "q3"

    def test_unknown_difficulty_coerced_to_medium(self):
        agent, _ = _agent(wrap(questions_json(12, difficulty="impossible")))
        bank = agent.generate_assessment_bank(make_domain(), "career-1")
        assert all(q.difficulty == Difficulty.MEDIUM for q in bank.questions)

    def test_extra_questions_dropped(self):
        agent, _ = _agent(wrap(questions_json(15, split=(5, 6, 4))))
        bank = agent.generate_assessment_bank(make_domain(), "career-1", question_count=12)
        assert bank.question_count == 12

    def test_too_few_questions_is_parse_error(self):
        agent, _ = _agent(wrap(questions_json(9, split=(3, 3, 3))))
        with pytest.raises(ParseError):
            agent.generate_assessment_bank(make_domain(), "career-1")

    def test_correct_answer_out_of_range_fails(self):
        agent, _ = _agent(wrap(questions_json(12, correct_answer=7)))
        with pytest.raises(ParseError):
            agent.generate_assessment_bank(make_domain(), "career-1")

    def test_other_failure_is_assessment_error(self):
        agent, _ = _agent(ConnectionResetError("reset"))
        with pytest.raises(AssessmentGenerationError, match="Failed to generate assessment for"):
            agent.generate_assessment_bank(make_domain(name="Statistics"), "career-1")


class TestGenerateBatchAssessments:
    def test_skips_failed_domains(self):
        agent, _ = _agent(wrap(questions_json(12)), "not json", wrap(questions_json(12)))
        domains = [make_domain(name=n) for n in ("SQL", "Stats", "Python")]
        banks = agent.generate_batch_assessments(domains, "career-1")
        assert [b.skill_name for b in banks] == ["SQL", "Python"]


class TestCalculateProficiency:
    def test_all_correct_is_advanced(self, bank):
        answers = {q.id: q.correct_answer for q in bank.questions}
        result = calculate_proficiency(bank.questions, answers)
        assert result.score == 100
        assert result.proficiency_level == ProficiencyLevel.ADVANCED

    def test_none_answered_is_beginner(self, bank):
        result = calculate_proficiency(bank.questions, {})
        assert result.score == 0
        assert result.proficiency_level == ProficiencyLevel.BEGINNER

    def test_weights(self):
        # 1 easy right (1), 1 hard wrong (2): 1 / 3 → 33
        questions = [make_question("e", "easy"), make_question("h", "hard")]
        result = calculate_proficiency(questions, {"e": 0, "h": 3})
        assert result.score == 33
        assert result.by_difficulty["easy"].correct == 1
        assert result.by_difficulty["hard"].total == 1

    def test_exactly_eighty_is_advanced(self):
        questions = [make_question(f"q{i}", "easy") for i in range(5)]
        answers = {f"q{i}": 0 for i in range(4)}
        result = calculate_proficiency(questions, answers)
        assert result.score == 80
        assert result.proficiency_level == ProficiencyLevel.ADVANCED

    def test_exactly_fifty_is_intermediate(self):
        questions = [make_question("a", "hard"), make_question("b", "hard")]
        result = calculate_proficiency(questions, {"a": 0})
        assert result.score == 50
        assert result.proficiency_level == ProficiencyLevel.INTERMEDIATE

    def test_forty_nine_is_beginner(self):
        questions = [make_question(f"q{i}", "easy") for i in range(100)]
        answers = {f"q{i}": 0 for i in range(49)}
        result = calculate_proficiency(questions, answers)
        assert result.score == 49
        assert result.proficiency_level == ProficiencyLevel.BEGINNER

    def test_half_rounds_up(self):
        # 1 right of 8 easy = 12.5 → 13
        questions = [make_question(f"q{i}", "easy") for i in range(8)]
        result = calculate_proficiency(questions, {"q0": 0})
        assert result.score == 13

    def test_empty_questions_score_zero(self):
        result = calculate_proficiency([], {})
        assert result.score == 0
        assert result.proficiency_level == ProficiencyLevel.BEGINNER

    def test_pure_and_idempotent(self, bank):
        answers = {q.id: 0 for q in bank.questions}
        first = calculate_proficiency(bank.questions, answers)
        second = calculate_proficiency(bank.questions, answers)
        assert first == second
        assert answers == {q.id: 0 for q in bank.questions}


class TestEvaluateBank:
    def test_feedback_per_question(self):
        bank = make_bank()
        answers = {q.id: q.correct_answer for q in bank.questions[:6]}
        result = evaluate_bank(bank, answers)
        assert result.total_questions == 12
        assert result.correct_answers == 6
        assert len(result.question_feedback) == 12
        assert result.question_feedback[0].correct
        assert result.question_feedback[11].learner_index is None
        assert result.skill_name == bank.skill_name
        assert result.feedback
