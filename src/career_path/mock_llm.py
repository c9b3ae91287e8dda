"""
mock_llm.py — Offline completion tier
=====================================
Rule-based stand-in for the language model, used whenever
``Settings.live_mode`` is false (no credentials, or FORCE_MOCK_MODE=true).

``MockCompletionClient.complete()`` recognises which agent sent the prompt
from the agent's role sentence, pulls the quoted subject out of the prompt,
and returns deterministic JSON wrapped in a line of prose, so the shared
extraction path runs exactly as it does against a live model.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_CAREER_RE     = re.compile(r'Research the career "([^"]+)"')
_PLAN_RE       = re.compile(r'career\s+as\s+a\s+"([^"]+)"')
_COURSE_RE     = re.compile(r'learning\s+"([^"]+)"\s+as part of a\s+"([^"]+)"')
_TOPICS_RE     = re.compile(r"(?:TOPICS TO COVER|KEY TOPICS):\s*(.+)")
_ASSESS_RE     = re.compile(r'assessment\s+for\s+"([^"]+)"')
_COUNT_RE      = re.compile(r"Generate exactly (\d+)")
_SPLIT_RE      = re.compile(r"- (\d+) (easy|medium|hard) questions")
_RELATED_RE    = re.compile(r'List (\d+) careers closely related to "([^"]+)"')
_SKILL_LINE_RE = re.compile(r"^\d+\.\s+(.+?)\s+\(", re.MULTILINE)


# (name, category, importance, weeks, topics)
_DOMAIN_TEMPLATES: list[tuple[str, str, str, str, list[str]]] = [
    ("{t} Fundamentals", "foundation", "essential", "3-4 weeks",
     ["Core terminology", "Industry landscape", "Basic workflows", "Essential tools", "Professional ethics"]),
    ("Technical Toolkit", "core", "essential", "6-8 weeks",
     ["Tool setup", "Daily workflows", "Automation basics", "Troubleshooting", "Best practices"]),
    ("Applied Problem Solving", "core", "important", "4-6 weeks",
     ["Problem framing", "Structured analysis", "Case studies", "Trade-off evaluation", "Documentation"]),
    ("Advanced {t} Practice", "advanced", "important", "6-8 weeks",
     ["Advanced techniques", "Optimization", "System design", "Quality assurance", "Scaling work"]),
    ("Communication & Collaboration", "soft-skill", "important", "2-3 weeks",
     ["Stakeholder communication", "Presenting results", "Team collaboration", "Feedback", "Storytelling"]),
    ("Emerging Trends", "advanced", "nice-to-have", "2-4 weeks",
     ["AI-assisted tooling", "Industry trends", "Continuous learning", "Community involvement", "Portfolio building"]),
]


def _wrap(payload: dict[str, Any]) -> str:
    return "Here is the requested JSON:\n" + json.dumps(payload, indent=2)


def _research(title: str) -> dict[str, Any]:
    return {
        "career_title": title,
        "overview": (
            f"{title} professionals apply specialised knowledge to solve business problems. "
            "The role blends technical skill with communication and judgement. "
            "Demand is steady across most industries."
        ),
        "market_data": {
            "demand": "high",
            "demand_trend": "growing",
            "salary_range": {"min": 55000, "max": 130000, "median": 85000},
            "top_industries": ["Technology", "Finance", "Healthcare"],
            "top_locations": ["New York", "San Francisco", "Remote"],
            "growth_outlook": f"Employment for {title} roles is projected to grow faster than average.",
        },
        "entry_requirements": {
            "difficulty": "moderate",
            "typical_backgrounds": ["Bachelor's degree", "Bootcamp graduate", "Career changer"],
            "time_to_entry": "6-9 months",
            "certifications": [
                {"name": f"Certified {title}", "provider": "Industry Board", "importance": "important"},
            ],
        },
        "ai_impact": {
            "automation_risk": "low",
            "risk_explanation": "Routine tasks are automated, judgement-heavy work is not.",
            "future_proof_skills": ["Critical thinking", "Domain expertise", "Communication"],
            "ai_augmentation": "AI assistants speed up drafting, analysis and review.",
        },
        "skill_domains": [
            {
                "name": name.format(t=title),
                "category": category,
                "importance": importance,
                "dependencies": [] if i == 0 else [_DOMAIN_TEMPLATES[0][0].format(t=title)],
                "estimated_time_to_learn": weeks,
                "key_topics": topics,
            }
            for i, (name, category, importance, weeks, topics) in enumerate(_DOMAIN_TEMPLATES)
        ],
        "related_careers": [f"Senior {title}", f"{title} Lead", f"{title} Consultant"],
    }


def _plan(title: str, skills: list[str]) -> dict[str, Any]:
    skills = skills or [f"{title} Fundamentals"]
    stages = [
        ("Foundations", "2-4 weeks", 60),
        ("Core Competencies", "6-8 weeks", 70),
        ("Advanced Practice", "6-8 weeks", 75),
        ("Job-Ready Preparation", "3-4 weeks", 80),
    ]
    phases = []
    for i, (stage, duration, target) in enumerate(stages):
        picked = [skills[(2 * i + k) % len(skills)] for k in range(2)]
        phases.append({
            "order": i + 1,
            "title": f"{stage}",
            "description": f"{stage} for an aspiring {title}.",
            "estimated_duration": duration,
            "target_skills": [
                {"skill_id": re.sub(r"\W+", "-", s.lower()).strip("-"),
                 "skill_name": s, "target_proficiency": target}
                for s in picked
            ],
            "course_topics": picked,
            "milestones": [
                {"id": f"m{i + 1}-course", "title": f"Complete {stage} courses",
                 "type": "course", "requirement": "Finish every course in this phase"},
                {"id": f"m{i + 1}-project", "title": f"{stage} project",
                 "type": "project", "requirement": "Ship one portfolio project"},
            ],
        })
    return {"career_title": title, "total_duration": "6-9 months", "phases": phases}


def _course(skill: str, career: str, topics: list[str]) -> dict[str, Any]:
    syllabus = (topics + [f"{skill} in practice", f"{skill} review"])[:5]
    while len(syllabus) < 4:
        syllabus.append(f"{skill} part {len(syllabus) + 1}")
    return {
        "course": {
            "title": f"Mastering {skill}",
            "description": f"A practical course on {skill} for aspiring {career} professionals.",
            "estimated_time": f"{len(syllabus) * 2} hours",
            "syllabus": syllabus,
        },
        "lessons": [
            {
                "order": i + 1,
                "title": entry,
                "description": f"Lesson covering {entry}.",
                "estimated_time": "15-20 minutes",
                "read_content": {
                    "overview": f"An introduction to {entry}.",
                    "sections": [{"heading": entry, "content": f"{entry} explained with examples.",
                                  "key_points": [f"Why {entry} matters"]}],
                    "summary": f"You now understand the basics of {entry}.",
                },
            }
            for i, entry in enumerate(syllabus)
        ],
    }


def _assessment(skill: str, topics: list[str], split: dict[str, int]) -> dict[str, Any]:
    topics = topics or [skill]
    questions = []
    for difficulty in ("easy", "medium", "hard"):
        for _ in range(split.get(difficulty, 0)):
            n = len(questions)
            topic = topics[n % len(topics)]
            questions.append({
                "id": f"q{n + 1}",
                "question": f"Which statement about {topic} in {skill} is correct?",
                "options": [f"Correct statement {n + 1}", "Distractor A", "Distractor B", "Distractor C"],
                "correct_answer": 0,
                "difficulty": difficulty,
                "explanation": f"The first option describes {topic} accurately.",
                "topic": topic,
            })
    return {"questions": questions}


class MockCompletionClient:
    """Deterministic offline responses for the four pipeline agents."""

    model = "mock"

    def complete(self, prompt: str, system: str = "") -> str:
        if "labor market analyst" in prompt:
            m = _CAREER_RE.search(prompt)
            return _wrap(_research(m.group(1) if m else "Professional"))

        if "curriculum designer" in prompt:
            m = _PLAN_RE.search(prompt)
            return _wrap(_plan(m.group(1) if m else "Professional",
                               _SKILL_LINE_RE.findall(prompt)))

        if "course creator" in prompt:
            m = _COURSE_RE.search(prompt)
            t = _TOPICS_RE.search(prompt)
            topics = [s.strip() for s in t.group(1).split(",") if s.strip()] if t else []
            skill, career = (m.group(1), m.group(2)) if m else ("General Skills", "Professional")
            return _wrap(_course(skill, career, topics))

        if "assessment designer" in prompt:
            m = _ASSESS_RE.search(prompt)
            t = _TOPICS_RE.search(prompt)
            topics = [s.strip() for s in t.group(1).split(",") if s.strip()] if t else []
            split = {d: int(n) for n, d in _SPLIT_RE.findall(prompt)}
            if not split:
                c = _COUNT_RE.search(prompt)
                split = {"medium": int(c.group(1)) if c else 12}
            return _wrap(_assessment(m.group(1) if m else "General Skills", topics, split))

        m = _RELATED_RE.search(prompt)
        if m:
            count, title = int(m.group(1)), m.group(2)
            careers = [f"Senior {title}", f"{title} Lead", f"{title} Consultant",
                       f"{title} Manager", f"Principal {title}"]
            return _wrap({"related_careers": careers[:count]})

        logger.warning("Mock client received an unrecognised prompt (%d chars)", len(prompt))
        return _wrap({})
