"""Training submission under a soft deadline."""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from functools import partial

from prism.core.client import PrismClient
from prism.core.config import DEFAULT_TRAINING_TIMEOUT
from prism.error_handling import ErrorResolver, OperationInProgressError, SessionError
from prism.workflow.directory import ResourceDirectory
from prism.workflow.models import Model, TrainingRequest

logger = logging.getLogger(__name__)


class TrainingStatus(Enum):
    """Training submission status."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    # Returned to a caller whose submission was superseded; never stored
    DISCARDED = "discarded"


@dataclass(frozen=True)
class TrainingOutcome:
    """State of one training submission."""

    status: TrainingStatus
    request_id: int = 0
    model: Model | None = None
    message: str = ""


def describe_timeout(seconds: float) -> str:
    if seconds >= 60 and seconds % 60 == 0:
        minutes = int(seconds // 60)
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    return f"{seconds:g} seconds"


class TrainingOrchestrator:
    """Submits training requests and reduces each to one terminal state.

    The remote call races a timer. When the timer wins the call is left
    running, because the backend offers no cancellation, and whatever it
    eventually returns is discarded. Each submission carries a monotonically
    increasing id and only the current id, while still SUBMITTING, may write
    the outcome.
    """

    def __init__(
        self,
        client: PrismClient,
        directory: ResourceDirectory | None = None,
        timeout: float = DEFAULT_TRAINING_TIMEOUT,
    ):
        """Initialize TrainingOrchestrator.

        Args:
            client: Backend client used for the train call
            directory: Refreshed after a successful training
            timeout: Soft deadline in seconds
        """
        self.client = client
        self.directory = directory
        self.timeout = timeout
        self._resolver = ErrorResolver("Training failed")
        self._request_id = 0
        self._in_flight: set[asyncio.Task] = set()
        self.outcome = TrainingOutcome(TrainingStatus.IDLE)

    @property
    def status(self) -> TrainingStatus:
        return self.outcome.status

    @property
    def is_submitting(self) -> bool:
        return self.outcome.status == TrainingStatus.SUBMITTING

    async def submit(self, request: TrainingRequest) -> TrainingOutcome:
        """Submit a training request.

        Args:
            request: Request to validate and send

        Returns:
            The terminal outcome of this submission, or a DISCARDED outcome
            if it was superseded by ``reset()`` while in flight

        Raises:
            ValidationError: If the request is incomplete; nothing is sent
            OperationInProgressError: If another submission is in flight
            SessionError: If the session ended during the call
        """
        request = request.validate()
        if self.is_submitting:
            raise OperationInProgressError("A training request is already in progress")

        self._request_id += 1
        request_id = self._request_id
        self.outcome = TrainingOutcome(TrainingStatus.SUBMITTING, request_id)
        logger.info(
            f"Submitting training #{request_id} for model '{request.model_name}' "
            f"on dataset {request.dataset_id}"
        )

        task = asyncio.ensure_future(self.client.train_model(request.to_dict()))
        self._in_flight.add(task)
        task.add_done_callback(partial(self._on_remote_settled, request_id))

        try:
            done, _ = await asyncio.wait({task}, timeout=self.timeout)
        except asyncio.CancelledError:
            # The remote call keeps running; only this caller gave up waiting
            if self._is_current(request_id):
                self.outcome = TrainingOutcome(TrainingStatus.IDLE, request_id)
            logger.info(f"Training #{request_id} abandoned by caller")
            raise

        if not done:
            message = (
                f"Training request timed out after {describe_timeout(self.timeout)}. "
                "Please try again."
            )
            logger.warning(f"Training #{request_id} timed out; late result will be ignored")
            return self._settle(
                TrainingOutcome(TrainingStatus.TIMED_OUT, request_id, message=message)
            )

        error = task.exception()
        if error is None:
            try:
                model = Model.from_dict(task.result())
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                error = e
            else:
                outcome = self._settle(
                    TrainingOutcome(
                        TrainingStatus.SUCCEEDED,
                        request_id,
                        model=model,
                        message="Model trained successfully!",
                    )
                )
                if outcome.status == TrainingStatus.SUCCEEDED and self.directory:
                    await self.directory.refresh()
                return outcome

        if isinstance(error, SessionError):
            if self._is_current(request_id):
                self.outcome = TrainingOutcome(TrainingStatus.IDLE, request_id)
            raise error

        message = self._resolver.report(error)
        return self._settle(
            TrainingOutcome(TrainingStatus.FAILED, request_id, message=message)
        )

    def reset(self) -> None:
        """Abandon any in-flight submission and return to IDLE."""
        self._request_id += 1
        self.outcome = TrainingOutcome(TrainingStatus.IDLE, self._request_id)

    def _is_current(self, request_id: int) -> bool:
        return request_id == self._request_id and self.is_submitting

    def _settle(self, outcome: TrainingOutcome) -> TrainingOutcome:
        if not self._is_current(outcome.request_id):
            logger.debug(
                f"Discarding {outcome.status.value} result of superseded "
                f"training #{outcome.request_id}"
            )
            return TrainingOutcome(
                TrainingStatus.DISCARDED, outcome.request_id, message=outcome.message
            )

        self.outcome = outcome
        logger.info(f"Training #{outcome.request_id} {outcome.status.value}")
        return outcome

    def _on_remote_settled(self, request_id: int, task: asyncio.Task) -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            return
        # Retrieve the exception so a late failure is not reported as unhandled
        error = task.exception()
        if not self._is_current(request_id):
            result = "failure" if error else "success"
            logger.debug(f"Ignoring late {result} from training #{request_id}")
