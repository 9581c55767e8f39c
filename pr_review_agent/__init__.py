"""pr-review-agent: autonomous pull request review with Claude Agent SDK."""

from .config import ConfigurationError, SessionLimits, SessionRequest, build_session_request
from .outcome import SessionOutcome, Verdict
from .pipeline.outcome_reporter import OutcomeReporter
from .pipeline.session_supervisor import SessionSupervisor

__version__ = "0.1.0"
__all__ = [
    "ConfigurationError",
    "OutcomeReporter",
    "SessionLimits",
    "SessionOutcome",
    "SessionRequest",
    "SessionSupervisor",
    "Verdict",
    "__version__",
    "build_session_request",
]
