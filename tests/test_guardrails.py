"""
Smoke tests for guardrails pipeline.
Run: python -m pytest tests/ -v
"""
import sys
import os

# Ensure src is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from factories import make_bank, make_brief, make_plan, make_question

from career_path.guardrails import (
    BankGuardrails,
    GuardrailLevel,
    GuardrailsPipeline,
    InputGuardrails,
    PlanGuardrails,
)
from career_path.models import DetailedLearningPlan


def _codes(result, level=None):
    return [v.code for v in result.violations if level is None or v.level == level]


class TestInputGuardrails:
    def setup_method(self):
        self.guard = InputGuardrails()

    def test_clean_title_passes(self):
        result = self.guard.check("Data Analyst")
        assert result.passed
        assert not result.violations

    def test_g01_empty_title_blocks(self):
        for title in ("", "   ", None):
            result = self.guard.check(title)
            assert result.blocked
            assert "G-01" in _codes(result)

    def test_g02_single_character_blocks(self):
        assert "G-02" in _codes(self.guard.check("X"), GuardrailLevel.BLOCK)

    def test_g02_too_long_blocks(self):
        assert "G-02" in _codes(self.guard.check("Analyst " * 20))

    def test_g02_digits_only_blocks(self):
        assert "G-02" in _codes(self.guard.check("12345"))

    def test_g03_harmful_keyword_blocks(self):
        for title in ("Bomb Maker", "fuck this job"):
            result = self.guard.check(title)
            assert result.blocked
            assert "G-03" in _codes(result)

    @pytest.mark.parametrize("title", [
        "Cybersecurity Analyst",
        "Malware Analyst",
        "Phishing Response Specialist",
        "Ransomware Incident Responder",
        "Explosive Ordnance Disposal Technician",
        "Counter-Terrorist Intelligence Officer",
        "Suicide Prevention Counselor",
        "Self-Harm Recovery Therapist",
    ])
    def test_g03_allows_real_occupations(self, title):
        result = self.guard.check(title)
        assert result.passed
        assert not result.violations


class TestBriefGuardrails:
    def test_g04_few_domains_warns(self):
        result = GuardrailsPipeline().check_brief(make_brief(n_domains=3))
        assert result.passed
        assert "G-04" in _codes(result, GuardrailLevel.WARN)

    def test_g05_domain_without_topics_warns(self):
        brief = make_brief()
        brief.skill_domains[0].key_topics = []
        result = GuardrailsPipeline().check_brief(brief)
        assert "G-05" in _codes(result, GuardrailLevel.WARN)

    def test_full_brief_passes(self):
        assert not GuardrailsPipeline().check_brief(make_brief()).violations


class TestPlanGuardrails:
    def setup_method(self):
        self.guard = PlanGuardrails()

    def test_four_phases_pass(self):
        assert not self.guard.check(make_plan(4)).violations

    def test_g06_no_phases_blocks(self):
        result = self.guard.check(DetailedLearningPlan(career_title="X", phases=[]))
        assert result.blocked
        assert "G-06" in _codes(result)

    def test_g07_phase_count_warns(self):
        result = self.guard.check(make_plan(2))
        assert result.passed
        assert "G-07" in _codes(result, GuardrailLevel.WARN)

    def test_g08_gap_in_orders_blocks(self):
        plan = make_plan(4)
        plan.phases[2].order = 7
        assert "G-08" in _codes(self.guard.check(plan), GuardrailLevel.BLOCK)

    def test_g09_out_of_range_proficiency_warns(self):
        plan = make_plan(4)
        plan.phases[0].target_skills[0].target_proficiency = 140
        assert "G-09" in _codes(self.guard.check(plan), GuardrailLevel.WARN)


class TestBankGuardrails:
    def setup_method(self):
        self.guard = BankGuardrails()

    def test_standard_bank_passes(self):
        assert not self.guard.check(make_bank()).violations

    def test_g10_wrong_option_count_blocks(self):
        bank = make_bank()
        bank.questions[0].options = ["A", "B", "C"]
        assert "G-10" in _codes(self.guard.check(bank), GuardrailLevel.BLOCK)

    def test_g11_correct_index_out_of_range_blocks(self):
        bank = make_bank()
        bank.questions[0].options = ["A", "B"]
        bank.questions[0].correct_answer = 3
        assert "G-11" in _codes(self.guard.check(bank), GuardrailLevel.BLOCK)

    def test_g12_mix_mismatch_warns(self):
        bank = make_bank(split=(6, 4, 2))
        result = self.guard.check(bank)
        assert result.passed
        assert "G-12" in _codes(result, GuardrailLevel.WARN)


class TestPipelineMerge:
    def test_merge_blocks_if_any_blocked(self):
        gp = GuardrailsPipeline()
        merged = gp.merge(gp.check_input("Data Analyst"), gp.check_input(""))
        assert merged.blocked
        assert not merged.passed

    def test_summary_lists_codes(self):
        result = GuardrailsPipeline().check_input("")
        assert "[G-01]" in result.summary()

    def test_summary_when_clean(self):
        assert "passed" in GuardrailsPipeline().check_input("Nurse").summary()

    def test_single_question_bank_g12(self):
        bank = make_bank()
        bank.questions = [make_question("only", "hard")]
        result = BankGuardrails().check(bank)
        assert "G-12" in _codes(result)
