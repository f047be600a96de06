"""Prism Workflow Module - dataset, training and inference controllers."""

from prism.workflow.models import (
    Dataset,
    Direction,
    Explanation,
    FeatureContribution,
    Model,
    ModelType,
    PredictionResult,
    TrainingRequest,
)

__all__ = [
    "ConfigurationBuilder",
    "Dataset",
    "DatasetUploader",
    "Direction",
    "Explanation",
    "FeatureContribution",
    "InferenceOrchestrator",
    "Model",
    "ModelType",
    "MutationConfirmer",
    "PredictionResult",
    "ResourceDirectory",
    "TrainingOrchestrator",
    "TrainingRequest",
    "Workspace",
]

_LAZY = {
    "ConfigurationBuilder": "prism.workflow.configuration",
    "DatasetUploader": "prism.workflow.upload",
    "InferenceOrchestrator": "prism.workflow.inference",
    "MutationConfirmer": "prism.workflow.confirmation",
    "ResourceDirectory": "prism.workflow.directory",
    "TrainingOrchestrator": "prism.workflow.training",
    "Workspace": "prism.workflow.workspace",
}


def __getattr__(name: str):
    """Lazy import for controllers so importing models stays cheap."""
    if name in _LAZY:
        import importlib

        return getattr(importlib.import_module(_LAZY[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
