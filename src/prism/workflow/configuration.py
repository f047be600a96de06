"""Target and feature selection for a pending training request."""

import logging
from typing import Any

from prism.core.client import PrismClient
from prism.error_handling import DatasetLookupError, ErrorResolver, SessionError
from prism.utils.validation import ValidationError
from prism.workflow.models import Dataset, ModelType, TrainingRequest

logger = logging.getLogger(__name__)


class ConfigurationBuilder:
    """Builds a TrainingRequest while keeping the target out of the features.

    Every mutator is a single transition: no caller can ever observe a state
    where the target variable is also a selected feature.
    """

    def __init__(self, client: PrismClient):
        self.client = client
        self._resolver = ErrorResolver("Failed to load dataset details")
        self._selection_id = 0

        self.selected_dataset_id: Any = None
        self.dataset: Dataset | None = None
        self.model_name = ""
        self.model_type = ModelType.CLASSIFICATION
        self.target_variable = ""
        self._feature_universe: tuple[str, ...] = ()
        self._feature_set: dict[str, None] = {}
        self.error: str | None = None

    @property
    def feature_universe(self) -> tuple[str, ...]:
        """Headers of the selected dataset."""
        return self._feature_universe

    @property
    def feature_set(self) -> tuple[str, ...]:
        """Selected features in the order they were chosen."""
        return tuple(self._feature_set)

    @property
    def available_features(self) -> list[str]:
        """Headers that may be chosen as features under the current target."""
        return [h for h in self._feature_universe if h != self.target_variable]

    async def select_dataset(self, dataset_id: Any) -> Dataset:
        """Select a dataset and load its headers.

        Args:
            dataset_id: ID of the dataset to select

        Returns:
            The loaded dataset

        Raises:
            DatasetLookupError: If the detail fetch fails. The selection is
                kept with an empty universe so the caller can retry.
            SessionError: If the session ended during the fetch
        """
        self._selection_id += 1
        selection_id = self._selection_id

        self.selected_dataset_id = dataset_id
        self.dataset = None
        self._feature_universe = ()
        self.target_variable = ""
        self._feature_set = {}
        self.error = None

        try:
            payload = await self.client.get_dataset(dataset_id)
            dataset = Dataset.from_dict(payload)
        except SessionError:
            raise
        except Exception as e:
            message = self._resolver.report(e)
            if selection_id == self._selection_id:
                self.error = message
            raise DatasetLookupError(dataset_id, message, e) from e

        if selection_id != self._selection_id:
            logger.debug(f"Discarding details for superseded dataset {dataset_id}")
            return dataset

        self.dataset = dataset
        self._feature_universe = tuple(dataset.headers)
        logger.info(
            f"Selected dataset {dataset_id} with {len(dataset.headers)} columns"
        )
        return dataset

    def set_model_name(self, name: str) -> None:
        self.model_name = name

    def set_model_type(self, model_type: "str | ModelType") -> None:
        self.model_type = ModelType.parse(model_type)

    def set_target(self, name: str) -> None:
        """Set the target variable, dropping it from the features in the same step.

        Raises:
            ValidationError: If a dataset is loaded and has no such column
        """
        if name:
            self._check_columns([name])
        self._feature_set = {f: None for f in self._feature_set if f != name}
        self.target_variable = name

    def toggle_feature(self, name: str) -> bool:
        """Add or remove a feature.

        Returns:
            Whether the feature is selected afterwards. Toggling the target
            variable is rejected and leaves the selection unchanged.

        Raises:
            ValidationError: If a dataset is loaded and has no such column
        """
        self._check_columns([name])
        if name == self.target_variable:
            logger.debug(f"Ignoring toggle of target variable '{name}'")
            return False

        if name in self._feature_set:
            self._feature_set = {f: None for f in self._feature_set if f != name}
            return False

        self._feature_set = {**self._feature_set, name: None}
        return True

    def select_features(self, names: list[str]) -> None:
        """Replace the feature selection, skipping the target variable.

        Raises:
            ValidationError: If a dataset is loaded and lacks any of the columns
        """
        self._check_columns(names)
        self._feature_set = {n: None for n in names if n != self.target_variable}

    def _check_columns(self, names: list[str]) -> None:
        # Without loaded headers there is nothing to check against
        if self.dataset is None:
            return
        unknown = [n for n in names if n not in self._feature_universe]
        if unknown:
            raise ValidationError(
                f"Unknown columns in dataset {self.selected_dataset_id}: {', '.join(unknown)}"
            )

    def build_request(self) -> TrainingRequest:
        """Build a validated TrainingRequest.

        Raises:
            ValidationError: Naming every missing field
        """
        request = TrainingRequest(
            dataset_id=self.selected_dataset_id,
            model_name=self.model_name,
            model_type=self.model_type,
            target_variable=self.target_variable,
            feature_names=list(self._feature_set),
        )
        try:
            return request.validate()
        except ValidationError as e:
            logger.debug(f"Training request incomplete: {e.missing_fields}")
            raise

    def clear_request(self) -> None:
        """Discard the in-progress request but keep the dataset selection."""
        self.model_name = ""
        self.target_variable = ""
        self._feature_set = {}
        self.error = None

    def reset(self) -> None:
        """Discard everything, including the dataset selection."""
        self._selection_id += 1
        self.selected_dataset_id = None
        self.dataset = None
        self._feature_universe = ()
        self.model_type = ModelType.CLASSIFICATION
        self.clear_request()
