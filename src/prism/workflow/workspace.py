"""Container wiring the workflow controllers around one client."""

from prism.core.client import PrismClient
from prism.core.config import DEFAULT_TRAINING_TIMEOUT
from prism.workflow.configuration import ConfigurationBuilder
from prism.workflow.confirmation import MutationConfirmer, dataset_deleter, model_deleter
from prism.workflow.directory import ResourceDirectory
from prism.workflow.inference import InferenceOrchestrator
from prism.workflow.models import Dataset, Model
from prism.workflow.training import TrainingOrchestrator, TrainingOutcome, TrainingStatus
from prism.workflow.upload import DatasetUploader


class Workspace:
    """Central container for the workflow controllers.

    All controllers share one client and one ResourceDirectory, which is the
    only state shared between them. Controllers are created lazily.
    """

    def __init__(
        self, client: PrismClient, training_timeout: float = DEFAULT_TRAINING_TIMEOUT
    ):
        """Initialize Workspace.

        Args:
            client: Backend client shared by all controllers
            training_timeout: Soft deadline for training submissions, in seconds
        """
        self.client = client
        self.training_timeout = training_timeout
        self.directory = ResourceDirectory(client)

        self._configuration = None
        self._training = None
        self._inference = None
        self._uploader = None
        self._dataset_deleter = None
        self._model_deleter = None

    @property
    def configuration(self) -> ConfigurationBuilder:
        if self._configuration is None:
            self._configuration = ConfigurationBuilder(self.client)
        return self._configuration

    @property
    def training(self) -> TrainingOrchestrator:
        if self._training is None:
            self._training = TrainingOrchestrator(
                self.client, self.directory, timeout=self.training_timeout
            )
        return self._training

    @property
    def inference(self) -> InferenceOrchestrator:
        if self._inference is None:
            self._inference = InferenceOrchestrator(self.client)
        return self._inference

    @property
    def uploader(self) -> DatasetUploader:
        if self._uploader is None:
            self._uploader = DatasetUploader(self.client, self.directory)
        return self._uploader

    @property
    def dataset_deleter(self) -> MutationConfirmer[Dataset]:
        if self._dataset_deleter is None:
            self._dataset_deleter = dataset_deleter(self.client, self.directory)
        return self._dataset_deleter

    @property
    def model_deleter(self) -> MutationConfirmer[Model]:
        if self._model_deleter is None:
            self._model_deleter = model_deleter(self.client, self.directory)
        return self._model_deleter

    async def train(self) -> TrainingOutcome:
        """Build the configured request and submit it.

        The in-progress request is cleared only when training succeeds.

        Raises:
            ValidationError: If the configuration is incomplete
        """
        request = self.configuration.build_request()
        outcome = await self.training.submit(request)
        if outcome.status == TrainingStatus.SUCCEEDED:
            self.configuration.clear_request()
        return outcome

    def leave_training(self) -> None:
        """Discard the in-progress configuration and any pending submission."""
        self.configuration.reset()
        self.training.reset()

    async def close(self) -> None:
        await self.client.close()
