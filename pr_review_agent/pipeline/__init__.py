"""Pipeline stages for a review session.

Modules:
    session_supervisor: Agent session execution with SDK streaming
    outcome_reporter: Summary logging, audit persistence and exit codes
"""

from pr_review_agent.pipeline.outcome_reporter import (
    EXIT_FAILURE,
    EXIT_OK,
    EXIT_SESSION_ABORTED,
    DuplicateReportError,
    OutcomeReporter,
)
from pr_review_agent.pipeline.session_supervisor import (
    ClaudeSDKClientFactory,
    RuntimeStartError,
    SDKClientFactory,
    SDKClientProtocol,
    SessionAlreadyStartedError,
    SessionSupervisor,
    StreamFault,
)

__all__ = [
    "EXIT_FAILURE",
    "EXIT_OK",
    "EXIT_SESSION_ABORTED",
    "ClaudeSDKClientFactory",
    "DuplicateReportError",
    "OutcomeReporter",
    "RuntimeStartError",
    "SDKClientFactory",
    "SDKClientProtocol",
    "SessionAlreadyStartedError",
    "SessionSupervisor",
    "StreamFault",
]
