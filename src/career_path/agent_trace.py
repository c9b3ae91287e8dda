"""
agent_trace.py — Lightweight audit log for career path generation runs
=====================================================================
Every pipeline stage emits an AgentStep record.  The orchestrator collects
the steps into a RunTrace, returns it with the result and persists it in the
same batch as the career path (``generationTraces/{run_id}``).

Data model
----------
  AgentStep      One stage's contribution: timing, status, decisions, warnings.
  RunTrace       Full trace for a single run; ordered list of AgentSteps.

Key fields
----------
  AgentStep.status          "success" | "partial" | "failed"
  AgentStep.start_ms        wall-clock ms relative to run start
  AgentStep.duration_ms     wall-clock ms for that stage
  AgentStep.decisions       human-readable list of choices the stage made
  AgentStep.warnings        non-fatal issues (guardrail WARNs, skipped items)
  RunTrace.mode             "mock" | "openai" | "azure_openai"
  RunTrace.total_ms         end-to-end pipeline wall time
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class AgentStep:
    """One stage's contribution inside a pipeline run."""
    agent_id:       str
    agent_name:     str
    start_ms:       float
    duration_ms:    float
    status:         str               # "success" | "partial" | "failed"
    input_summary:  str
    output_summary: str
    decisions:      list[str] = field(default_factory=list)
    warnings:       list[str] = field(default_factory=list)
    detail:         dict[str, Any] = field(default_factory=dict)


@dataclass
class RunTrace:
    """Full trace for a single generation run."""
    run_id:       str
    career_title: str
    user_id:      str
    timestamp:    str
    mode:         str
    total_ms:     float = 0.0
    steps:        list[AgentStep] = field(default_factory=list)
    _t0:          float = field(default_factory=time.perf_counter, repr=False)

    @classmethod
    def start(cls, career_title: str, user_id: str, mode: str) -> "RunTrace":
        return cls(
            run_id       = str(uuid.uuid4())[:8].upper(),
            career_title = career_title,
            user_id      = user_id,
            timestamp    = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
            mode         = mode,
        )

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._t0) * 1000

    def append(self, step: AgentStep) -> None:
        self.steps.append(step)

    def record(
        self,
        agent_id: str,
        agent_name: str,
        started_ms: float,
        status: str,
        input_summary: str,
        output_summary: str,
        decisions: list[str] | None = None,
        warnings: list[str] | None = None,
        **detail: Any,
    ) -> AgentStep:
        """Close a stage that began at *started_ms* and append it."""
        step = AgentStep(
            agent_id       = agent_id,
            agent_name     = agent_name,
            start_ms       = round(started_ms, 1),
            duration_ms    = round(self.elapsed_ms() - started_ms, 1),
            status         = status,
            input_summary  = input_summary,
            output_summary = output_summary,
            decisions      = list(decisions or []),
            warnings       = list(warnings or []),
            detail         = detail,
        )
        self.append(step)
        return step

    def finish(self) -> None:
        self.total_ms = round(self.elapsed_ms(), 1)

    @property
    def warning_count(self) -> int:
        return sum(len(s.warnings) for s in self.steps)

    def to_summary(self) -> str:
        """One line for the CLI footer."""
        statuses = ", ".join(f"{s.agent_id}={s.status}" for s in self.steps)
        return (
            f"Run {self.run_id} [{self.mode}] {self.total_ms:.0f} ms · "
            f"{len(self.steps)} steps ({statuses}) · {self.warning_count} warnings"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id":       self.run_id,
            "career_title": self.career_title,
            "user_id":      self.user_id,
            "timestamp":    self.timestamp,
            "mode":         self.mode,
            "total_ms":     self.total_ms,
            "steps": [
                {
                    "agent_id":       s.agent_id,
                    "agent_name":     s.agent_name,
                    "start_ms":       s.start_ms,
                    "duration_ms":    s.duration_ms,
                    "status":         s.status,
                    "input_summary":  s.input_summary,
                    "output_summary": s.output_summary,
                    "decisions":      s.decisions,
                    "warnings":       s.warnings,
                    "detail":         s.detail,
                }
                for s in self.steps
            ],
        }
