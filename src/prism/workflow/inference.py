"""Paired prediction and explanation for one model and input."""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from prism.core.client import PrismClient
from prism.error_handling import ErrorResolver, PrismError, SessionError
from prism.utils.validation import ValidationError, is_blank
from prism.workflow.models import Explanation, Model, PredictionResult

logger = logging.getLogger(__name__)


class InferenceStatus(Enum):
    """Inference run status."""

    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    # Returned to a caller whose run was superseded; never stored
    DISCARDED = "discarded"


@dataclass(frozen=True)
class InferenceResult:
    """Outcome of one run. Prediction and explanation are set together or not at all."""

    status: InferenceStatus
    run_id: int = 0
    prediction: PredictionResult | None = None
    explanation: Explanation | None = None
    message: str = ""

    @classmethod
    def succeeded(
        cls, run_id: int, prediction: PredictionResult, explanation: Explanation
    ) -> "InferenceResult":
        return cls(
            InferenceStatus.SUCCEEDED,
            run_id,
            prediction=prediction,
            explanation=explanation,
            message="Prediction completed successfully!",
        )

    @classmethod
    def failed(cls, run_id: int, message: str) -> "InferenceResult":
        return cls(InferenceStatus.FAILED, run_id, message=message)


class InferenceOrchestrator:
    """Runs predict and explain concurrently and exposes them as one result."""

    def __init__(self, client: PrismClient):
        self.client = client
        self._resolver = ErrorResolver("Prediction failed")
        self._run_id = 0
        self._selection_id = 0
        self.model: Model | None = None
        self.input_data: dict[str, str] = {}
        self.result = InferenceResult(InferenceStatus.IDLE)
        self.error: str | None = None

    @property
    def is_running(self) -> bool:
        return self.result.status == InferenceStatus.RUNNING

    async def select_model(self, model_id: Any) -> Model:
        """Load a model's details and reset the input form to its features.

        Raises:
            PrismError: If the model could not be loaded; the message is also
                recorded in ``error``
        """
        self._selection_id += 1
        selection_id = self._selection_id
        self._run_id += 1
        self.result = InferenceResult(InferenceStatus.IDLE, self._run_id)
        self.model = None
        self.input_data = {}
        self.error = None

        try:
            model = Model.from_dict(await self.client.get_model(model_id))
        except SessionError:
            raise
        except Exception as e:
            message = self._resolver.report(e, "Failed to load model details")
            if selection_id == self._selection_id:
                self.error = message
            if isinstance(e, PrismError):
                raise
            raise PrismError(message, original_error=e) from e

        if selection_id == self._selection_id:
            self.model = model
            self.input_data = {feature: "" for feature in model.feature_names}
        return model

    def set_input(self, feature: str, value: Any) -> None:
        self.input_data = {**self.input_data, feature: "" if value is None else str(value)}

    async def run(
        self, model_id: Any = None, input_data: dict[str, Any] | None = None
    ) -> InferenceResult:
        """Predict and explain one input.

        Args:
            model_id: Model to query; defaults to the selected model
            input_data: Feature values; defaults to the form values

        Returns:
            The result of this run, or a DISCARDED result if a newer run
            started while this one was in flight

        Raises:
            ValidationError: If any declared feature has no value
            SessionError: If the session ended during either call
        """
        if model_id is None and self.model is not None:
            model_id = self.model.id
        if model_id is None:
            raise ValidationError("Please select a model", ["model"])
        model = self.model
        if model is None or str(model.id) != str(model_id):
            model = await self.select_model(model_id)

        values = dict(self.input_data if input_data is None else input_data)
        missing = [f for f in model.feature_names if is_blank(values.get(f))]
        if missing:
            raise ValidationError(
                f"Please fill in all required fields: {', '.join(missing)}",
                missing_fields=missing,
            )

        self._run_id += 1
        run_id = self._run_id
        self.result = InferenceResult(InferenceStatus.RUNNING, run_id)
        self.error = None
        payload = {f: values[f] for f in model.feature_names}

        prediction_payload, explanation_payload = await asyncio.gather(
            self.client.predict(model_id, payload),
            self.client.explain(model_id, payload),
            return_exceptions=True,
        )

        if run_id != self._run_id:
            logger.debug(f"Discarding result of superseded inference run #{run_id}")
            return InferenceResult(InferenceStatus.DISCARDED, run_id)

        failures = [
            p for p in (prediction_payload, explanation_payload) if isinstance(p, BaseException)
        ]
        for failure in failures:
            if isinstance(failure, SessionError) or not isinstance(failure, Exception):
                self.result = InferenceResult(InferenceStatus.IDLE, run_id)
                raise failure

        if not failures:
            try:
                result = InferenceResult.succeeded(
                    run_id,
                    PredictionResult.from_dict(prediction_payload),
                    Explanation.from_dict(explanation_payload),
                )
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                failures.append(e)

        if failures:
            self.error = self._resolver.report(failures[0])
            result = InferenceResult.failed(run_id, self.error)
            logger.info(f"Inference run #{run_id} failed")
        else:
            logger.info(f"Inference run #{run_id} succeeded for model {model_id}")

        self.result = result
        return result

    def clear(self) -> None:
        """Drop the selected model, inputs and any displayed result."""
        self._selection_id += 1
        self._run_id += 1
        self.model = None
        self.input_data = {}
        self.error = None
        self.result = InferenceResult(InferenceStatus.IDLE, self._run_id)
