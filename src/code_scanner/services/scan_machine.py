"""State machine driving the scan screen."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from code_scanner.domain.scanning import (
    CAMERA_FAILURE_MESSAGES,
    NOT_SIGNED_IN_MESSAGE,
    REJECTED_MESSAGE,
    TERMINAL_STATES,
    Accepted,
    AcceptedScan,
    CameraError,
    CameraFailed,
    CameraFailure,
    Decoded,
    Duplicate,
    Processing,
    Rejected,
    RetryCamera,
    ScanAnother,
    ScanEvent,
    Scanning,
    ScanState,
    SubmissionFailed,
    SubmissionSucceeded,
)
from code_scanner.errors import NotAuthenticatedError
from code_scanner.services.submissions import ScanSubmissionPipeline

logger = logging.getLogger(__name__)

_PERMISSION_NAMES = {"NotAllowedError", "PermissionDeniedError", "SecurityError"}
_NOT_FOUND_NAMES = {"NotFoundError", "DevicesNotFoundError", "OverconstrainedError"}


class CameraDevice(Protocol):
    """Camera that delivers decoded text while it is running."""

    def start(self) -> None:
        """Start capturing frames."""

    def stop(self) -> None:
        """Stop capturing and release the device."""

    def subscribe(
        self,
        on_decoded: Callable[[str], None],
        on_error: Callable[[BaseException | str], None],
    ) -> Callable[[], None]:
        """Register callbacks and return a function that unregisters them."""


def classify_camera_failure(error: BaseException | str) -> CameraFailure:
    """Map a camera error or browser error name to a failure reason."""
    name = error if isinstance(error, str) else type(error).__name__
    if isinstance(error, PermissionError) or name in _PERMISSION_NAMES:
        return CameraFailure.PERMISSION_DENIED
    if isinstance(error, FileNotFoundError) or name in _NOT_FOUND_NAMES:
        return CameraFailure.DEVICE_NOT_FOUND
    return CameraFailure.OTHER


def transition(state: ScanState, event: ScanEvent) -> ScanState:  # noqa: PLR0911
    """Return the next state; events that do not apply return ``state`` itself."""
    if isinstance(state, Scanning):
        if isinstance(event, Decoded):
            return Processing(code_value=event.text)
        if isinstance(event, CameraFailed):
            return CameraError(
                failure=event.failure,
                message=CAMERA_FAILURE_MESSAGES[event.failure],
            )
        return state

    if isinstance(state, Processing):
        if isinstance(event, SubmissionSucceeded):
            outcome = event.outcome
            if isinstance(outcome, AcceptedScan):
                return Accepted(
                    code_value=state.code_value,
                    message=outcome.message,
                    record=outcome.record,
                )
            return Duplicate(code_value=state.code_value, message=outcome.message)
        if isinstance(event, SubmissionFailed):
            message = (
                NOT_SIGNED_IN_MESSAGE
                if isinstance(event.error, NotAuthenticatedError)
                else REJECTED_MESSAGE
            )
            return Rejected(
                code_value=state.code_value, message=message, error=event.error
            )
        return state

    if isinstance(state, TERMINAL_STATES) and isinstance(event, ScanAnother):
        return Scanning()
    if isinstance(state, CameraError) and isinstance(event, RetryCamera):
        return Scanning()
    return state


@dataclass
class ScanStateMachine:
    """Owns one scan screen: camera gating and a single in-flight submission.

    Decoded events are only acted on in ``Scanning``; everything else is
    discarded, so at most one submission runs per scan. Callbacks must be
    delivered on the event loop thread.
    """

    camera: CameraDevice
    pipeline: ScanSubmissionPipeline
    listener: Callable[[ScanState], None] | None = None
    state: ScanState = field(default_factory=Scanning)
    _unsubscribe: Callable[[], None] | None = field(
        default=None, init=False, repr=False
    )
    _submission: asyncio.Task[None] | None = field(
        default=None, init=False, repr=False
    )
    _closed: bool = field(default=False, init=False, repr=False)

    @property
    def closed(self) -> bool:
        return self._closed

    def open(self) -> None:
        """Start the camera for the initial ``Scanning`` state."""
        if self._closed:
            raise RuntimeError("Scan state machine is closed")
        if isinstance(self.state, Scanning):
            self._enter_scanning()

    def close(self) -> None:
        """Stop the camera; late submission results are discarded."""
        if self._closed:
            return
        self._closed = True
        self._release_camera()

    async def settle(self) -> None:
        """Wait for the in-flight submission, if any, to finish."""
        if self._submission is not None:
            await self._submission

    def scan_another(self) -> ScanState:
        return self.dispatch(ScanAnother())

    def retry_camera(self) -> ScanState:
        return self.dispatch(RetryCamera())

    def dispatch(self, event: ScanEvent) -> ScanState:
        """Apply an event and run the side effects of the new state."""
        if self._closed:
            logger.debug("Ignoring %s on closed scanner", type(event).__name__)
            return self.state
        previous = self.state
        current = transition(previous, event)
        if current is previous:
            logger.debug(
                "Discarded %s while %s",
                type(event).__name__,
                type(previous).__name__,
            )
            return previous

        self.state = current
        self._notify(current)
        self._apply_effects(current)
        return self.state

    def _notify(self, current: ScanState) -> None:
        if self.listener is None:
            return
        try:
            self.listener(current)
        except Exception:  # noqa: BLE001
            logger.exception(
                "Scan state listener failed on %s", type(current).__name__
            )

    def _apply_effects(self, current: ScanState) -> None:
        if isinstance(current, Scanning):
            self._enter_scanning()
        elif isinstance(current, Processing):
            # The submission is scheduled even when the camera refuses to stop.
            self._stop_camera()
            loop = asyncio.get_running_loop()
            self._submission = loop.create_task(self._submit(current.code_value))
        elif isinstance(current, CameraError):
            self._release_camera()
        else:
            if isinstance(current, Rejected):
                logger.warning(
                    "Scan %r rejected", current.code_value, exc_info=current.error
                )
            self._drop_subscription()

    def _enter_scanning(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.camera.subscribe(
                self._on_decoded, self._on_camera_error
            )
        try:
            self.camera.start()
        except Exception as exc:  # noqa: BLE001
            self._on_camera_error(exc)

    def _release_camera(self) -> None:
        self._drop_subscription()
        self._stop_camera()

    def _stop_camera(self) -> None:
        try:
            self.camera.stop()
        except Exception:  # noqa: BLE001
            logger.warning("Camera failed to stop", exc_info=True)

    def _drop_subscription(self) -> None:
        if self._unsubscribe is not None:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            unsubscribe()

    def _on_decoded(self, text: str) -> None:
        self.dispatch(Decoded(text=text))

    def _on_camera_error(self, error: BaseException | str) -> None:
        failure = classify_camera_failure(error)
        logger.warning("Camera failure (%s): %s", failure, error)
        self.dispatch(CameraFailed(failure=failure))

    async def _submit(self, code_value: str) -> None:
        event: ScanEvent
        try:
            outcome = await self.pipeline.submit(code_value)
        except Exception as exc:  # noqa: BLE001
            event = SubmissionFailed(error=exc)
        else:
            event = SubmissionSucceeded(outcome=outcome)
        if self._closed:
            logger.debug("Discarding result for %r after close", code_value)
            return
        self.dispatch(event)
