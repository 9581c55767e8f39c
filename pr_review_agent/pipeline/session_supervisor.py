"""SessionSupervisor: review session execution pipeline stage.

Owns the lifecycle of one agent session:
- Creates the SDK client from the SessionRequest
- Drives the response stream through the EventClassifier in arrival order
- Enforces the optional wall-clock and idle watchdogs
- Derives exactly one SessionOutcome

The supervisor never retries. A session may already have posted comments
on the pull request, so a second attempt could duplicate them.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from claude_agent_sdk import ClaudeAgentOptions, ClaudeSDKClient

from pr_review_agent.classifier import EventClassifier
from pr_review_agent.event_sink import NullEventSink, ReviewEventSink
from pr_review_agent.events import (
    AssistantEvent,
    EventDecodeError,
    ResultSubtype,
    SessionEvent,
    SystemInitEvent,
    TextSegment,
    decode_event,
)
from pr_review_agent.outcome import (
    NOTE_EXECUTION_ERROR,
    NOTE_STREAM_ENDED,
    NOTE_TURN_LIMIT,
    AbortReason,
    SessionOutcome,
    Verdict,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from typing import Self

    from pr_review_agent.config import SessionRequest

logger = logging.getLogger(__name__)


class RuntimeStartError(Exception):
    """Raised when the agent runtime could not be started."""


class StreamFault(Exception):
    """Raised when the event stream breaks before a terminal result."""


class IdleTimeoutError(StreamFault):
    """Raised when the SDK response stream is idle for too long."""


class SessionAlreadyStartedError(Exception):
    """Raised when run() is called twice on the same supervisor."""


@runtime_checkable
class SDKClientProtocol(Protocol):
    """Protocol for SDK client interactions.

    The subset of ClaudeSDKClient used by SessionSupervisor, so tests can
    substitute fakes that make no API calls.
    """

    async def __aenter__(self) -> Self: ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None: ...

    async def query(self, prompt: str, session_id: str = "default") -> None: ...

    def receive_response(self) -> AsyncIterator[object]:
        """Yield SDK messages up to and including the ResultMessage."""
        ...


@runtime_checkable
class SDKClientFactory(Protocol):
    """Protocol for creating SDK clients."""

    def create(self, options: ClaudeAgentOptions) -> SDKClientProtocol: ...


class ClaudeSDKClientFactory:
    """Factory for real Claude Agent SDK clients."""

    def create(self, options: ClaudeAgentOptions) -> SDKClientProtocol:
        return ClaudeSDKClient(options=options)


_REQUEST_CHANGES_RE = re.compile(r"\b(request(ed|ing)?\s+changes|changes\s+requested)\b")
_APPROVE_RE = re.compile(r"\bapprov(e|ed|al|ing)\b")


def verdict_hint_from_text(text: str | None) -> Verdict:
    """Best-effort verdict from the agent's final text.

    Used only when no `gh pr review` call was observed.
    """
    lowered = (text or "").lower()
    if _REQUEST_CHANGES_RE.search(lowered):
        return Verdict.REQUEST_CHANGES
    if _APPROVE_RE.search(lowered):
        return Verdict.APPROVE
    return Verdict.COMMENT


def derive_outcome(
    classifier: EventClassifier,
    fault_reason: AbortReason | None = None,
    fault_note: str | None = None,
    fault_detail: str | None = None,
) -> SessionOutcome:
    """Map the classifier's final state to a SessionOutcome.

    A terminal result takes precedence over any fault raised after it
    (for example while disconnecting).
    """
    diagnostics = classifier.snapshot()
    result = classifier.result

    if result is not None:
        if result.subtype is ResultSubtype.SUCCESS:
            submitted = classifier.review_action is not None
            verdict = (
                classifier.review_action
                if classifier.review_action is not None
                else verdict_hint_from_text(result.result_text)
            )
            return SessionOutcome(
                verdict=verdict,
                summary_text=result.result_text or "",
                diagnostics=diagnostics,
                result=result,
                review_submitted=submitted,
            )
        if result.subtype is ResultSubtype.ERROR_MAX_TURNS:
            reason, note = AbortReason.TURN_LIMIT, NOTE_TURN_LIMIT
        elif result.subtype is ResultSubtype.ERROR_DURING_EXECUTION:
            reason, note = AbortReason.EXECUTION_ERROR, NOTE_EXECUTION_ERROR
        else:
            reason = AbortReason.UNEXPECTED_RESULT
            note = f"unexpected result subtype: {result.raw_subtype}"
        return SessionOutcome(
            verdict=Verdict.ABORTED,
            summary_text=note,
            diagnostics=diagnostics,
            abort_reason=reason,
            note=note,
            result=result,
            review_submitted=classifier.review_action is not None,
        )

    reason = fault_reason or AbortReason.STREAM_ENDED
    note = fault_note or NOTE_STREAM_ENDED
    summary = f"{note}: {fault_detail}" if fault_detail else note
    return SessionOutcome(
        verdict=Verdict.ABORTED,
        summary_text=summary,
        diagnostics=diagnostics,
        abort_reason=reason,
        note=note,
        review_submitted=classifier.review_action is not None,
    )


@dataclass
class SessionSupervisor:
    """Runs one review session to a single SessionOutcome.

    Usage:
        supervisor = SessionSupervisor(event_sink=ConsoleEventSink())
        outcome = await supervisor.run(request)

    Attributes:
        sdk_client_factory: Factory for SDK clients (injectable for testing).
        event_sink: Receives live events for presentation.
    """

    sdk_client_factory: SDKClientFactory = field(default_factory=ClaudeSDKClientFactory)
    event_sink: ReviewEventSink = field(default_factory=NullEventSink)
    _started: bool = field(default=False, init=False, repr=False)

    def build_options(self, request: SessionRequest) -> ClaudeAgentOptions:
        """Build SDK options for the request.

        The environment is copied here, before the session starts.
        """
        limits = request.limits
        return ClaudeAgentOptions(
            system_prompt=request.system_prompt,
            cwd=request.working_directory or os.getcwd(),
            env=dict(request.env),
            permission_mode=limits.permission_policy.sdk_mode,  # type: ignore[arg-type]
            max_turns=limits.max_turns,
            model=limits.model,
            allowed_tools=list(limits.allowed_tools),
        )

    async def run(self, request: SessionRequest) -> SessionOutcome:
        """Run the session for the given request.

        Returns:
            The SessionOutcome.

        Raises:
            SessionAlreadyStartedError: If this supervisor already ran.
            RuntimeStartError: If the client could not be created, connected,
                or sent the initial instructions.
        """
        if self._started:
            raise SessionAlreadyStartedError(
                "a supervisor runs at most one session; refusing to start another"
            )
        self._started = True

        limits = request.limits
        classifier = EventClassifier()
        self.event_sink.on_session_started(request.repository, request.pr_number)

        options = self.build_options(request)
        try:
            client = self.sdk_client_factory.create(options)
        except Exception as e:
            raise RuntimeStartError(f"failed to create agent runtime client: {e}") from e

        watchdog = asyncio.timeout(limits.timeout_seconds)
        try:
            async with watchdog:
                async with contextlib.AsyncExitStack() as stack:
                    try:
                        await stack.enter_async_context(client)
                        await client.query(request.instructions)
                    except Exception as e:
                        raise RuntimeStartError(
                            f"failed to start agent session: {e}"
                        ) from e
                    await self._consume(
                        client.receive_response(),
                        classifier,
                        limits.idle_timeout_seconds,
                    )
        except RuntimeStartError:
            raise
        except TimeoutError as e:
            if watchdog.expired():
                note = f"session timed out after {limits.timeout_seconds:g}s"
                return self._aborted(classifier, AbortReason.TIMEOUT, note)
            return self._stream_failed(classifier, e)
        except IdleTimeoutError as e:
            return self._aborted(classifier, AbortReason.TIMEOUT, str(e))
        except Exception as e:
            return self._stream_failed(classifier, e)

        if not classifier.terminated:
            return self._aborted(classifier, AbortReason.STREAM_ENDED, NOTE_STREAM_ENDED)

        outcome = derive_outcome(classifier)
        if not outcome.aborted and not outcome.review_submitted:
            self.event_sink.on_warning(
                "Session succeeded but no `gh pr review` submission was observed"
            )
        return outcome

    def _aborted(
        self,
        classifier: EventClassifier,
        reason: AbortReason,
        note: str,
        detail: str | None = None,
    ) -> SessionOutcome:
        outcome = derive_outcome(classifier, reason, note, detail)
        if outcome.result is None:
            self.event_sink.on_stream_fault(outcome.summary_text)
        return outcome

    def _stream_failed(
        self, classifier: EventClassifier, error: Exception
    ) -> SessionOutcome:
        logger.warning("Agent stream failed: %s", error, exc_info=True)
        detail = str(error) or type(error).__name__
        return self._aborted(
            classifier, AbortReason.STREAM_ENDED, NOTE_STREAM_ENDED, detail
        )

    async def _consume(
        self,
        stream: AsyncIterator[object],
        classifier: EventClassifier,
        idle_timeout_seconds: float | None,
    ) -> None:
        """Feed stream messages to the classifier until the terminal event.

        Returns when the terminal result is processed or the stream closes.
        """
        iterator = aiter(stream)
        while True:
            idle = asyncio.timeout(idle_timeout_seconds)
            try:
                async with idle:
                    message = await anext(iterator)
            except StopAsyncIteration:
                return
            except TimeoutError as exc:
                # Transport timeouts propagate as stream faults
                if not idle.expired():
                    raise
                raise IdleTimeoutError(
                    f"stream idle for {idle_timeout_seconds:g}s"
                ) from exc

            try:
                event = decode_event(message)
            except EventDecodeError as e:
                logger.warning("Skipping malformed %s: %s", type(message).__name__, e)
                classifier.record_skipped(e, type(message).__name__)
                self.event_sink.on_event_skipped(str(e))
                continue

            if event is None:
                continue
            self._emit(event)
            if classifier.process(event):
                return

    def _emit(self, event: SessionEvent) -> None:
        if isinstance(event, SystemInitEvent):
            self.event_sink.on_system_init(
                event.model,
                event.working_directory,
                sorted(event.tool_names),
                list(event.mcp_server_names),
            )
        elif isinstance(event, AssistantEvent):
            for segment in event.segments:
                if isinstance(segment, TextSegment):
                    self.event_sink.on_agent_text(segment.body)
                else:
                    self.event_sink.on_tool_use(segment.name, segment.input)
