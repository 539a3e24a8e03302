"""Run orchestration for scheduled report slots."""

from Market_Pulse.pipeline.orchestrator import ReportRunner

__all__ = ["ReportRunner"]
