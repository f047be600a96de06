"""Two-step confirmation gate for destructive operations."""

import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Generic, TypeVar

from prism.core.client import PrismClient
from prism.error_handling import ErrorResolver, OperationInProgressError, SessionError
from prism.workflow.directory import ResourceDirectory
from prism.workflow.models import Dataset, Model

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConfirmationState(Enum):
    """Confirmation gate state."""

    IDLE = "idle"
    CONFIRM_PENDING = "confirm_pending"
    EXECUTING = "executing"


class ConfirmationResult:
    """Result of a confirmed (or cancelled) operation."""

    def __init__(self, confirmed: bool, success: bool = False, message: str = ""):
        self.confirmed = confirmed
        self.success = success
        self.message = message


class MutationConfirmer(Generic[T]):
    """Wraps a destructive action behind request/confirm/cancel.

    ``confirm()`` always returns the gate to IDLE, whether the action
    succeeds or fails. A success triggers a directory refresh; a failure is
    recorded in ``error`` and never leaves the gate pending.
    """

    def __init__(
        self,
        action: Callable[[T], Awaitable[Any]],
        directory: ResourceDirectory | None = None,
        success_message: str = "Deleted successfully!",
        failure_message: str = "Delete failed",
        describe: Callable[[T], str] = str,
    ):
        self._action = action
        self.directory = directory
        self.success_message = success_message
        self._resolver = ErrorResolver(failure_message)
        self._describe = describe

        self.state = ConfirmationState.IDLE
        self.target: T | None = None
        self.error: str | None = None
        self.success: str | None = None

    @property
    def prompt(self) -> str:
        """Question to show while confirmation is pending."""
        if self.target is None:
            return ""
        return (
            f'Are you sure you want to delete "{self._describe(self.target)}"? '
            "This action cannot be undone."
        )

    def request_delete(self, target: T) -> None:
        """Ask for confirmation before deleting ``target``."""
        if self.state == ConfirmationState.EXECUTING:
            raise OperationInProgressError("A delete is already in progress")
        self.target = target
        self.state = ConfirmationState.CONFIRM_PENDING

    def cancel(self) -> ConfirmationResult:
        """Return to IDLE without side effects."""
        if self.state == ConfirmationState.EXECUTING:
            raise OperationInProgressError("Cannot cancel a delete that is executing")
        self.target = None
        self.state = ConfirmationState.IDLE
        return ConfirmationResult(confirmed=False, message="Cancelled by user")

    async def confirm(self) -> ConfirmationResult:
        """Execute the pending action.

        Raises:
            OperationInProgressError: If nothing is pending confirmation
            SessionError: If the session ended during the action
        """
        if self.state != ConfirmationState.CONFIRM_PENDING:
            raise OperationInProgressError("There is no delete awaiting confirmation")

        target = self.target
        self.state = ConfirmationState.EXECUTING
        self.error = None
        self.success = None

        try:
            await self._action(target)
        except SessionError:
            self._close()
            raise
        except Exception as e:
            self.error = self._resolver.report(e)
            self._close()
            return ConfirmationResult(confirmed=True, success=False, message=self.error)

        self._close()
        self.success = self.success_message
        logger.info(f"Deleted {self._describe(target)}")
        if self.directory:
            await self.directory.refresh()
        return ConfirmationResult(confirmed=True, success=True, message=self.success)

    def _close(self) -> None:
        self.target = None
        self.state = ConfirmationState.IDLE


def dataset_deleter(
    client: PrismClient, directory: ResourceDirectory | None = None
) -> MutationConfirmer[Dataset]:
    """Confirmation gate for deleting datasets."""
    return MutationConfirmer(
        lambda dataset: client.delete_dataset(dataset.id),
        directory,
        success_message="Dataset deleted successfully!",
        failure_message="Delete failed",
        describe=lambda dataset: dataset.file_name,
    )


def model_deleter(
    client: PrismClient, directory: ResourceDirectory | None = None
) -> MutationConfirmer[Model]:
    """Confirmation gate for deleting models."""
    return MutationConfirmer(
        lambda model: client.delete_model(model.id),
        directory,
        success_message="Model deleted successfully!",
        failure_message="Failed to delete model",
        describe=lambda model: model.model_name,
    )
