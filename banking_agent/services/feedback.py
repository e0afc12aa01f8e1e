"""
Feedback Recorder Service

Turns user feedback into telemetry: a correctness sample, a business event
and, for satisfaction surveys, the satisfaction metrics. Feedback never
changes accounts or transactions and is not stored.

Score normalization onto the [0, 1] correctness scale:
- satisfaction survey: score / 5 (4.5 -> 0.9)
- quick feedback: 1.0 when helpful, 0.0 otherwise
- issue report: always 0.0

Every operation returns a FeedbackAck and never raises; telemetry failures
are logged by the emitter and dropped.
"""

from typing import Any, Optional

from banking_agent.models.requests import IssueReport, QuickFeedback, SatisfactionFeedback
from banking_agent.models.responses import FeedbackAck
from banking_agent.observability.emitter import TelemetryEmitter
from banking_agent.observability.logging import get_logger
from banking_agent.observability.metrics import BankingMetrics

logger = get_logger(__name__)

MAX_SATISFACTION_SCORE = 5.0

SATISFACTION_EVENT = "user_satisfaction_submitted"
QUICK_FEEDBACK_EVENT = "quick_feedback_submitted"
ISSUE_EVENT = "issue_reported"


class FeedbackRecorder:
    """
    Records satisfaction surveys, quick feedback and issue reports.

    Args:
        emitter: Emits correctness samples and business events
        metrics: Metrics container (satisfaction counter and gauge)
    """

    def __init__(self, emitter: TelemetryEmitter, metrics: BankingMetrics) -> None:
        self._emitter = emitter
        self._metrics = metrics

    def record_satisfaction(self, feedback: SatisfactionFeedback) -> FeedbackAck:
        """
        Record a 1-5 satisfaction survey.

        The correctness sample carries score / 5; the satisfaction gauge
        carries the raw score.
        """
        normalized = feedback.satisfaction_score / MAX_SATISFACTION_SCORE
        self._emitter.record_correctness(
            feedback.llm_provider, feedback.intent, normalized, feedback.feedback
        )

        attributes: dict[str, Any] = {
            "provider": feedback.llm_provider,
            "intent": feedback.intent,
            "score": feedback.satisfaction_score,
            "helpful": feedback.was_helpful,
            "accurate": feedback.was_accurate,
        }
        if feedback.account_number:
            attributes["account"] = feedback.account_number
        if feedback.session_id:
            attributes["session"] = feedback.session_id
        self._emitter.record_business_event(SATISFACTION_EVENT, attributes)

        try:
            self._metrics.record_satisfaction(
                feedback.llm_provider, feedback.intent, feedback.satisfaction_score
            )
        except Exception as e:
            logger.warning("satisfaction_metric_failed", error=str(e))

        logger.info(
            "satisfaction_recorded",
            provider=feedback.llm_provider,
            intent=feedback.intent,
            score=feedback.satisfaction_score,
        )
        return FeedbackAck(message="Thank you for your feedback!", timestamp=feedback.timestamp)

    def record_quick_feedback(
        self,
        session_id: str,
        provider: str,
        intent: str,
        helpful: bool,
    ) -> FeedbackAck:
        """Record a thumbs up (1.0) or thumbs down (0.0)."""
        score = 1.0 if helpful else 0.0
        comment = "User found response helpful" if helpful else "User found response unhelpful"
        self._emitter.record_correctness(provider, intent, score, comment)
        self._emitter.record_business_event(
            QUICK_FEEDBACK_EVENT,
            {
                "provider": provider,
                "intent": intent,
                "helpful": helpful,
                "session": session_id,
            },
        )
        logger.info("quick_feedback_recorded", provider=provider, intent=intent, helpful=helpful)
        return FeedbackAck(message="Feedback recorded")

    def record_issue(
        self,
        session_id: str,
        provider: str,
        intent: str,
        issue_type: str,
        description: Optional[str] = None,
    ) -> FeedbackAck:
        """Record a reported problem as a zero correctness sample."""
        self._emitter.record_correctness(
            provider, intent, 0.0, f"Issue reported: {issue_type} - {description}"
        )
        self._emitter.record_business_event(
            ISSUE_EVENT,
            {
                "provider": provider,
                "intent": intent,
                "issue_type": issue_type,
                "session": session_id,
                "description": description,
            },
        )
        logger.info("issue_reported", provider=provider, intent=intent, issue_type=issue_type)
        return FeedbackAck(message="Issue reported. Thank you for helping us improve!")

    # =========================================================================
    # Model-based entry points
    # =========================================================================

    def submit_quick_feedback(self, feedback: QuickFeedback) -> FeedbackAck:
        return self.record_quick_feedback(
            feedback.session_id, feedback.llm_provider, feedback.intent, feedback.helpful
        )

    def submit_issue(self, report: IssueReport) -> FeedbackAck:
        return self.record_issue(
            report.session_id,
            report.llm_provider,
            report.intent,
            report.issue_type,
            report.description,
        )
