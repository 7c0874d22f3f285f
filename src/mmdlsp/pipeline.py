"""
Debounced live validation for one open document.

State machine::

    IDLE --update--> PENDING --timer--> VALIDATING --> CLEAN | ERROR
      ^                 |  ^                               |
      +--blank update---+  +------------update------------+

    any state --teardown--> CLOSED

Every validation pass is tagged with a sequence number taken from a
monotonically increasing counter.  When a pass finishes, its outcome is applied
only if its number is still the highest issued; otherwise it is stale and
dropped.  The validator call itself is never cancelled, only its result.

The pipeline owns the document's marker set and is the only thing that
publishes it.  It runs on the asyncio event loop of the language server; no
locking is needed because every entry point runs on that single loop.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Callable

from mmdlsp.errors import ValidationError
from mmdlsp.validator import Validator

logger = logging.getLogger(__name__)

DEFAULT_DELAY = 0.5


class PipelineState(enum.Enum):
    IDLE = 'idle'
    PENDING = 'pending'
    VALIDATING = 'validating'
    CLEAN = 'clean'
    ERROR = 'error'
    CLOSED = 'closed'


class RenderStatus(str, enum.Enum):
    EMPTY = 'empty'      # nothing to draw
    VALID = 'valid'
    ERROR = 'error'


class Severity(enum.IntEnum):
    ERROR = 1
    WARNING = 2


@dataclass(frozen=True)
class Marker:
    severity: Severity
    message: str
    start_line: int      # 1-based
    start_col: int       # 1-based
    end_line: int
    end_col: int

    def to_dict(self) -> dict:
        return {
            'severity': int(self.severity),
            'message': self.message,
            'startLine': self.start_line,
            'startCol': self.start_col,
            'endLine': self.end_line,
            'endCol': self.end_col,
        }


def marker_for(exc: BaseException) -> Marker:
    """Turn a validator failure into the single marker that represents it.

    Errors without a location are anchored at line 1, column 1.
    """
    message = getattr(exc, 'message', None) or str(exc) or 'Syntax Error'
    span = getattr(exc, 'span', None)
    if span is None:
        return Marker(Severity.ERROR, message, 1, 1, 1, 1)
    return Marker(
        Severity.ERROR, message,
        span.first_line, span.first_col, span.last_line, span.last_col,
    )


PublishFn = Callable[[list[Marker]], None]
ReportFn = Callable[[RenderStatus, str | None], None]


class DiagnosticsPipeline:
    """Debounce edits, validate, and publish the resulting marker set.

    *publish* receives the complete marker list (empty or one marker) each
    time it changes.  *report* is told what the renderer should show.
    """

    def __init__(
        self,
        validator: Validator,
        publish: PublishFn,
        report: ReportFn | None = None,
        delay: float = DEFAULT_DELAY,
    ):
        self.validator = validator
        self.delay = delay
        self._publish = publish
        self._report = report
        self._text = ''
        self._timer: asyncio.TimerHandle | None = None
        self._issued = 0
        self._tasks: set[asyncio.Task] = set()
        self.state = PipelineState.IDLE
        self.markers: list[Marker] = []

    @property
    def issued(self) -> int:
        """Highest sequence number handed out so far."""
        return self._issued

    @property
    def closed(self) -> bool:
        return self.state is PipelineState.CLOSED

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def update(self, text: str) -> None:
        """Record a content change and (re)arm the debounce timer."""
        if self.closed:
            return
        self._cancel_timer()
        self._text = text
        if not text.strip():
            self._clear()
            return
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay, self._fire)
        self.state = PipelineState.PENDING
        logger.debug('pipeline: armed %.3fs timer', self.delay)

    async def flush(self, text: str | None = None) -> list[Marker]:
        """Validate now, skipping the debounce window.

        Returns the marker set once this pass has settled (which may be a newer
        pass's markers if this one went stale meanwhile).
        """
        task = self.validate_now(text)
        if task is not None:
            await task
        return list(self.markers)

    def validate_now(self, text: str | None = None) -> asyncio.Task | None:
        """Start a validation pass immediately; ``None`` if there is nothing to do."""
        if self.closed:
            return None
        self._cancel_timer()
        if text is not None:
            self._text = text
        if not self._text.strip():
            self._clear()
            return None
        return self._start()

    def teardown(self) -> None:
        """Stop for good: cancel the timer and ignore in-flight results."""
        self._cancel_timer()
        self.state = PipelineState.CLOSED
        logger.debug('pipeline: closed with %d validation(s) in flight', len(self._tasks))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _clear(self) -> None:
        # Blank buffers supersede whatever is still being validated.
        self._issued += 1
        self.state = PipelineState.IDLE
        self._apply([], RenderStatus.EMPTY, None)

    def _fire(self) -> None:
        self._timer = None
        self._start()

    def _start(self) -> asyncio.Task:
        self._issued += 1
        seq = self._issued
        self.state = PipelineState.VALIDATING
        task = asyncio.get_running_loop().create_task(self._validate(seq, self._text))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _validate(self, seq: int, text: str) -> None:
        logger.debug('pipeline: validation #%d started (%d chars)', seq, len(text))
        try:
            await self.validator.validate(text)
        except asyncio.CancelledError:
            raise
        except ValidationError as exc:
            self._settle(seq, marker_for(exc))
        except Exception as exc:
            logger.warning('pipeline: validator raised unexpectedly', exc_info=True)
            self._settle(seq, marker_for(exc))
        else:
            self._settle(seq, None)

    def _settle(self, seq: int, marker: Marker | None) -> None:
        if self.closed:
            logger.debug('pipeline: dropping result #%d after teardown', seq)
            return
        if seq != self._issued:
            logger.debug('pipeline: dropping stale result #%d (latest #%d)', seq, self._issued)
            return
        if marker is None:
            self._set_settled(PipelineState.CLEAN)
            self._apply([], RenderStatus.VALID, None)
        else:
            self._set_settled(PipelineState.ERROR)
            self._apply([marker], RenderStatus.ERROR, marker.message)

    def _set_settled(self, state: PipelineState) -> None:
        # A newer edit may already have re-armed the timer.
        if self._timer is None:
            self.state = state

    def _apply(self, markers: list[Marker], status: RenderStatus, message: str | None) -> None:
        self.markers = markers
        self._publish(list(markers))
        if self._report is not None:
            self._report(status, message)
