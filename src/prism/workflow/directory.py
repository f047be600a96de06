"""Directory of the user's datasets and models."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from prism.core.client import PrismClient
from prism.error_handling import ErrorResolver, SessionError
from prism.workflow.models import Dataset, Model

logger = logging.getLogger(__name__)

T = TypeVar("T")


def coerce_records(payload: Any, parse: Callable[[dict[str, Any]], T], kind: str) -> list[T]:
    """Turn a list payload into records, degrading to an empty list.

    Args:
        payload: Raw response body
        parse: Converts one wire record
        kind: Record kind for log messages

    Returns:
        Parsed records; malformed entries are skipped
    """
    if not isinstance(payload, list):
        if payload is not None:
            logger.warning(f"Expected a list of {kind}, got {type(payload).__name__}")
        return []

    records = []
    for item in payload:
        try:
            records.append(parse(item))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Skipping malformed {kind} record: {e}")
    return records


class ResourceDirectory:
    """Owns the dataset and model lists.

    Both lists are only ever replaced together by ``refresh()``; nothing else
    patches them. On any fetch failure both become empty and a single
    aggregated error is recorded.
    """

    def __init__(self, client: PrismClient):
        self.client = client
        self._resolver = ErrorResolver()
        self._datasets: tuple[Dataset, ...] = ()
        self._models: tuple[Model, ...] = ()
        self._refresh_id = 0
        self.loading = False
        self.error: str | None = None

    @property
    def datasets(self) -> tuple[Dataset, ...]:
        return self._datasets

    @property
    def models(self) -> tuple[Model, ...]:
        return self._models

    def get_dataset(self, dataset_id: Any) -> Dataset | None:
        return next((d for d in self._datasets if str(d.id) == str(dataset_id)), None)

    def get_model(self, model_id: Any) -> Model | None:
        return next((m for m in self._models if str(m.id) == str(model_id)), None)

    async def refresh(self) -> bool:
        """Fetch datasets and models concurrently and replace both lists.

        Returns:
            True if both fetches succeeded

        Raises:
            SessionError: If the session ended during the fetch
        """
        self._refresh_id += 1
        refresh_id = self._refresh_id
        self.loading = True
        self.error = None

        datasets_payload, models_payload = await asyncio.gather(
            self.client.list_datasets(),
            self.client.list_models(),
            return_exceptions=True,
        )

        if refresh_id != self._refresh_id:
            logger.debug(f"Discarding superseded refresh #{refresh_id}")
            return False

        self.loading = False
        failures = [
            result
            for result in (datasets_payload, models_payload)
            if isinstance(result, BaseException)
        ]
        if failures:
            self._datasets = ()
            self._models = ()
            for failure in failures:
                if isinstance(failure, SessionError):
                    raise failure
            for failure in failures:
                if not isinstance(failure, Exception):
                    raise failure
            self.error = "Failed to load data: " + self._resolver.report(failures[0])
            return False

        self._datasets = tuple(coerce_records(datasets_payload, Dataset.from_dict, "dataset"))
        self._models = tuple(coerce_records(models_payload, Model.from_dict, "model"))
        logger.info(
            f"Loaded {len(self._datasets)} datasets and {len(self._models)} models"
        )
        return True
