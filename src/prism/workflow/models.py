"""Workflow data models and types."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from prism.utils.validation import ValidationError, is_blank, validate_model_name


class ModelType(Enum):
    """Kinds of model the backend can train."""

    CLASSIFICATION = "CLASSIFICATION"
    REGRESSION = "REGRESSION"

    @classmethod
    def parse(cls, value: "str | ModelType") -> "ModelType":
        if isinstance(value, ModelType):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError as e:
            raise ValidationError(
                f"Invalid model type: {value}. Must be 'classification' or 'regression'"
            ) from e


class Direction(Enum):
    """Sign of a feature's influence on a prediction."""

    POSITIVE = "positive"
    NEGATIVE = "negative"


def _parse_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
    if isinstance(value, list) and len(value) >= 3:
        # LocalDateTime serialized as [year, month, day, hour, minute, second, ...]
        try:
            return datetime(*[int(part) for part in value[:6]])
        except (TypeError, ValueError):
            return None
    return None


def _unique(names: Any) -> list[str]:
    seen: dict[str, None] = {}
    for name in names or []:
        seen.setdefault(str(name), None)
    return list(seen)


@dataclass
class Dataset:
    """An uploaded CSV dataset (created server-side)."""

    id: int
    file_name: str
    upload_date: datetime | None
    row_count: int
    headers: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Dataset":
        return cls(
            id=data["id"],
            file_name=data.get("fileName") or "",
            upload_date=_parse_datetime(data.get("uploadDate")),
            row_count=int(data.get("rowCount") or 0),
            headers=[str(h) for h in data.get("headers") or []],
        )


@dataclass(frozen=True)
class Model:
    """A trained model. Its feature names never change once trained."""

    id: int
    model_name: str
    model_type: ModelType
    target_variable: str
    feature_names: tuple[str, ...]
    accuracy: float | None = None
    training_date: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Model":
        target = data.get("targetVariable") or ""
        features = [f for f in _unique(data.get("featureNames")) if f != target]
        accuracy = data.get("accuracy")
        return cls(
            id=data["id"],
            model_name=data.get("modelName") or "",
            model_type=ModelType.parse(data.get("modelType") or "CLASSIFICATION"),
            target_variable=target,
            feature_names=tuple(features),
            accuracy=float(accuracy) if accuracy is not None else None,
            training_date=_parse_datetime(data.get("trainingDate")),
        )

    @property
    def accuracy_label(self) -> str:
        if self.accuracy is None:
            return "N/A"
        return f"{self.accuracy * 100:.2f}%"


@dataclass
class TrainingRequest:
    """Parameters for a training submission."""

    dataset_id: Any
    model_name: str
    model_type: ModelType
    target_variable: str
    feature_names: list[str] = field(default_factory=list)

    def validate(self) -> "TrainingRequest":
        """Check required fields and return the normalized request.

        Feature names are de-duplicated and the target variable is dropped
        from them before the emptiness check.

        Raises:
            ValidationError: Naming every missing field, or if the model
                name is longer than 100 characters
        """
        features = [
            name for name in _unique(self.feature_names) if name != self.target_variable
        ]

        missing = []
        if is_blank(self.dataset_id):
            missing.append("dataset")
        if is_blank(self.model_name):
            missing.append("model name")
        if is_blank(self.target_variable):
            missing.append("target variable")
        if not features:
            missing.append("features")

        if missing:
            raise ValidationError(
                f"Please fill in all required fields: {', '.join(missing)}",
                missing_fields=missing,
            )

        return replace(
            self,
            model_name=validate_model_name(self.model_name),
            model_type=ModelType.parse(self.model_type),
            feature_names=features,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "datasetId": self.dataset_id,
            "modelName": self.model_name,
            "modelType": ModelType.parse(self.model_type).value,
            "targetVariable": self.target_variable,
            "featureNames": list(self.feature_names),
        }


@dataclass
class PredictionResult:
    """Output of a remote predict call."""

    prediction: str
    confidence: float | None = None
    probabilities: dict[str, float] | None = None
    input_data: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PredictionResult":
        confidence = data.get("confidence")
        probabilities = data.get("probabilities")
        return cls(
            prediction=str(data.get("prediction", "")),
            confidence=float(confidence) if confidence is not None else None,
            probabilities=(
                {str(k): float(v) for k, v in probabilities.items()}
                if isinstance(probabilities, dict)
                else None
            ),
            input_data={str(k): str(v) for k, v in (data.get("inputData") or {}).items()},
        )


@dataclass
class FeatureContribution:
    """Signed influence of one feature on one prediction."""

    feature_name: str
    contribution: float
    direction: Direction

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FeatureContribution":
        contribution = float(data.get("contribution") or 0.0)
        direction = data.get("direction")
        if direction in (Direction.POSITIVE.value, Direction.NEGATIVE.value):
            parsed = Direction(direction)
        else:
            parsed = Direction.POSITIVE if contribution >= 0 else Direction.NEGATIVE
        return cls(
            feature_name=str(data.get("featureName", "")),
            contribution=contribution,
            direction=parsed,
        )


@dataclass
class Explanation:
    """Output of a remote explain call, paired with one PredictionResult."""

    explanation_text: str
    feature_contributions: list[FeatureContribution] = field(default_factory=list)
    input_data: dict[str, str] = field(default_factory=dict)
    prediction: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Explanation":
        prediction = data.get("prediction")
        return cls(
            explanation_text=data.get("explanationText") or "",
            feature_contributions=[
                FeatureContribution.from_dict(item)
                for item in data.get("featureContributions") or []
            ],
            input_data={str(k): str(v) for k, v in (data.get("inputData") or {}).items()},
            prediction=str(prediction) if prediction is not None else None,
        )
