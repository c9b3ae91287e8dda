"""
career_path — Career Path Generation Multi-Agent Pipeline
=========================================================
Package containing the agents, data models, configuration, guardrails and
persistence utilities that turn a career title into a complete career path:
market research, a phased learning plan, courses and skill assessments.

Module map
----------
  models.py                        Pydantic models (LLM output) and dataclasses
                                   (assembled records), enums, progress events.
  config.py                        Settings loaded from .env; per-agent AgentConfig.
  llm.py                           OpenAI completion client, JSON extraction,
                                   CareerAgentError taxonomy.
  mock_llm.py                      Offline completion tier (no credentials needed).
  database.py                      SQLite document store with atomic WriteBatch.
  guardrails.py                    12-rule validation pipeline (G-01..G-12).
  agent_trace.py                   Lightweight AgentStep / RunTrace audit log.

  b1_career_researcher_agent.py    Block 1: career research brief.
  b2_career_planner_agent.py       Block 2: phased learning plan + refine_plan.
  b3_course_generator_agent.py     Block 3: course outlines and lessons.
  b4_assessment_generator_agent.py Block 4: question banks + proficiency scoring.
  orchestrator.py                  State machine, assembly, single-batch persist.
  cli.py                           rich command-line demo (`career-path`).

Pipeline order
--------------
  GuardrailsPipeline [G-01..G-03] → B1 (CareerResearcherAgent)
  → GuardrailsPipeline [G-04..G-05]
  → B2 (CareerPlannerAgent) → GuardrailsPipeline [G-06..G-09]
  → B3 (CareerCourseGeneratorAgent)   sequential, per phase topic
  → B4 (AssessmentGeneratorAgent)     sequential, per assessed skill
    → GuardrailsPipeline [G-10..G-12] per bank
  → DocumentStore.batch().commit()
"""
__version__ = "0.1.0"
