"""Unit tests for CLI command handlers."""

from __future__ import annotations

import pytest

from prism.core.session import SessionStore
from prism.error_handling import ServerError
from prism.ui.cli import (
    handle_dataset_delete,
    handle_dataset_show,
    handle_dataset_upload,
    handle_datasets_list,
    handle_login,
    handle_register,
    handle_model_delete,
    handle_model_predict,
    handle_model_show,
    handle_model_train,
    handle_models_list,
)
from prism.workflow.workspace import Workspace

# ---------------------------------------------------------------------------
# Test doubles


class StubUI:
    def __init__(self, confirm_answer: bool = True):
        self.successes: list[str] = []
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.infos: list[str] = []
        self.tables: list[tuple[str, list[str], list[list[str]]]] = []
        self.kv_tables: list[tuple[str, list[list[str]]]] = []
        self.predictions: list[tuple] = []
        self.prompts: list[str] = []
        self.confirm_answer = confirm_answer

    def show_system_success(self, message: str) -> None:
        self.successes.append(message)

    def show_system_error(self, message: str) -> None:
        self.errors.append(message)

    def show_warning(self, message: str) -> None:
        self.warnings.append(message)

    def show_info(self, message: str) -> None:
        self.infos.append(message)

    def show_table(self, title: str, columns: list[str], rows: list[list[str]]) -> None:
        self.tables.append((title, columns, rows))

    def show_key_values(self, title: str, pairs: list[list[str]]) -> None:
        self.kv_tables.append((title, pairs))

    def show_prediction(self, prediction, explanation) -> None:
        self.predictions.append((prediction, explanation))

    def confirm(self, message: str) -> bool:
        self.prompts.append(message)
        return self.confirm_answer


LOANS = {
    "id": 7,
    "fileName": "loans.csv",
    "uploadDate": "2025-01-02T10:00:00",
    "rowCount": 120,
    "headers": ["age", "income", "approved"],
}

MODEL = {
    "id": 3,
    "modelName": "loan-approval",
    "modelType": "CLASSIFICATION",
    "targetVariable": "approved",
    "featureNames": ["age", "income"],
    "accuracy": 0.91,
    "trainingDate": "2025-01-03T09:30:00",
}


class StubClient:
    """In-memory backend with the PrismClient surface used by the handlers."""

    def __init__(self):
        self.session = SessionStore()
        self.datasets = {7: LOANS}
        self.models = {3: MODEL}
        self.trained: list[dict] = []
        self.uploaded: list = []
        self.deleted: list[tuple[str, int]] = []
        self.fail: dict[str, Exception] = {}
        self.registered: list[str] = []

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail:
            raise self.fail[name]

    async def login(self, username, password):
        self._maybe_fail("login")
        self.session.set("tok", username)
        return {"accessToken": "tok", "username": username}

    async def register(self, username, email, password):
        self._maybe_fail("register")
        self.registered.append(username)

    async def list_datasets(self):
        self._maybe_fail("list_datasets")
        return list(self.datasets.values())

    async def list_models(self):
        self._maybe_fail("list_models")
        return list(self.models.values())

    async def get_dataset(self, dataset_id):
        self._maybe_fail("get_dataset")
        try:
            return self.datasets[int(dataset_id)]
        except KeyError:
            raise ServerError(404, {"success": False, "message": "Dataset not found"})

    async def get_model(self, model_id):
        self._maybe_fail("get_model")
        try:
            return self.models[int(model_id)]
        except KeyError:
            raise ServerError(404, {"success": False, "message": "Model not found"})

    async def upload_dataset(self, path):
        self._maybe_fail("upload_dataset")
        self.uploaded.append(path)
        return {"id": 8, "fileName": path.name}

    async def train_model(self, payload):
        self._maybe_fail("train_model")
        self.trained.append(payload)
        return {**MODEL, "id": 4, "modelName": payload["modelName"]}

    async def predict(self, model_id, input_data):
        self._maybe_fail("predict")
        return {"prediction": "yes", "confidence": 0.8, "inputData": input_data}

    async def explain(self, model_id, input_data):
        self._maybe_fail("explain")
        return {
            "prediction": "yes",
            "explanationText": "Income matters most.",
            "featureContributions": [{"featureName": "income", "contribution": 0.4}],
        }

    async def delete_dataset(self, dataset_id):
        self._maybe_fail("delete_dataset")
        self.deleted.append(("dataset", dataset_id))
        self.datasets.pop(dataset_id, None)

    async def delete_model(self, model_id):
        self._maybe_fail("delete_model")
        self.deleted.append(("model", model_id))
        self.models.pop(model_id, None)

    async def close(self):
        pass


@pytest.fixture
def client():
    return StubClient()


@pytest.fixture
def workspace(client):
    return Workspace(client, training_timeout=5)


@pytest.fixture
def ui():
    return StubUI()


# ---------------------------------------------------------------------------
# Auth


@pytest.mark.asyncio
async def test_login_success(workspace, ui):
    assert await handle_login(workspace, ui, "ada", "secret") is True
    assert ui.successes == ["Signed in as ada"]


@pytest.mark.asyncio
async def test_login_failure_shows_server_message(workspace, client, ui):
    client.fail["login"] = ServerError(401, {"success": False, "message": "Invalid credentials"})

    assert await handle_login(workspace, ui, "ada", "wrong") is False
    assert ui.errors == ["Invalid credentials"]


@pytest.mark.asyncio
async def test_login_with_blank_password_never_calls_backend(workspace, client, ui):
    assert await handle_login(workspace, ui, "ada", "  ") is False
    assert ui.errors == ["Missing required login fields: password"]
    assert client.session.token is None


@pytest.mark.asyncio
async def test_register_requires_every_field(workspace, client, ui):
    assert await handle_register(workspace, ui, "ada", "", "") is False
    assert ui.errors == ["Missing required registration fields: email, password"]
    assert client.registered == []


@pytest.mark.asyncio
async def test_register_success(workspace, client, ui):
    assert await handle_register(workspace, ui, "ada", "ada@example.com", "secret") is True
    assert client.registered == ["ada"]


# ---------------------------------------------------------------------------
# Datasets


@pytest.mark.asyncio
async def test_datasets_list(workspace, ui):
    assert await handle_datasets_list(workspace, ui) is True

    title, columns, rows = ui.tables[0]
    assert title == "Datasets"
    assert rows == [["7", "loans.csv", "120", "2025-01-02", "age, income, approved"]]


@pytest.mark.asyncio
async def test_datasets_list_failure(workspace, client, ui):
    client.fail["list_models"] = ServerError(500, {"message": "Database unavailable"})

    assert await handle_datasets_list(workspace, ui) is False
    assert ui.errors == ["Failed to load data: Database unavailable"]
    assert ui.tables == []


@pytest.mark.asyncio
async def test_dataset_show_unknown_id(workspace, ui):
    assert await handle_dataset_show(workspace, ui, "99") is False
    assert ui.errors == ["Dataset not found"]


@pytest.mark.asyncio
async def test_dataset_upload(workspace, client, ui, tmp_path):
    path = tmp_path / "houses.csv"
    path.write_text("rooms,price\n3,250000\n")

    assert await handle_dataset_upload(workspace, ui, str(path)) is True
    assert client.uploaded == [path.resolve()]
    assert ui.successes == ["Dataset uploaded successfully!"]


@pytest.mark.asyncio
async def test_dataset_upload_rejects_non_csv(workspace, client, ui, tmp_path):
    path = tmp_path / "houses.json"
    path.write_text("{}")

    assert await handle_dataset_upload(workspace, ui, str(path)) is False
    assert ui.errors == ["Please select a CSV file"]
    assert client.uploaded == []


@pytest.mark.asyncio
async def test_dataset_delete_requires_confirmation(workspace, client):
    ui = StubUI(confirm_answer=False)

    assert await handle_dataset_delete(workspace, ui, "7") is True
    assert ui.prompts == [
        'Are you sure you want to delete "loans.csv"? This action cannot be undone.'
    ]
    assert client.deleted == []
    assert ui.infos == ["Cancelled"]


@pytest.mark.asyncio
async def test_dataset_delete_confirmed(workspace, client, ui):
    assert await handle_dataset_delete(workspace, ui, "7") is True
    assert client.deleted == [("dataset", 7)]
    assert ui.successes == ["Dataset deleted successfully!"]
    assert workspace.directory.datasets == ()


@pytest.mark.asyncio
async def test_dataset_delete_unknown_id(workspace, client, ui):
    assert await handle_dataset_delete(workspace, ui, "42", assume_yes=True) is False
    assert ui.errors == ["Dataset 42 not found"]
    assert client.deleted == []


# ---------------------------------------------------------------------------
# Models


@pytest.mark.asyncio
async def test_models_list(workspace, ui):
    assert await handle_models_list(workspace, ui) is True

    _, _, rows = ui.tables[0]
    assert rows == [
        ["3", "loan-approval", "classification", "approved", "91.00%", "2025-01-03"]
    ]


@pytest.mark.asyncio
async def test_model_show(workspace, ui):
    assert await handle_model_show(workspace, ui, "3") is True

    title, pairs = ui.kv_tables[0]
    assert title == "Model"
    assert ["Features", "age, income"] in pairs


@pytest.mark.asyncio
async def test_model_show_unknown_id(workspace, ui):
    assert await handle_model_show(workspace, ui, "99") is False
    assert ui.errors == ["Model not found"]


@pytest.mark.asyncio
async def test_model_train_defaults_to_all_other_columns(workspace, client, ui):
    ok = await handle_model_train(
        workspace, ui, 7, "churn", "classification", "approved", ()
    )

    assert ok is True
    assert client.trained == [
        {
            "datasetId": 7,
            "modelName": "churn",
            "modelType": "CLASSIFICATION",
            "targetVariable": "approved",
            "featureNames": ["age", "income"],
        }
    ]
    assert ui.successes == ["Model trained successfully!"]
    assert workspace.configuration.model_name == ""


@pytest.mark.asyncio
async def test_model_train_warns_when_target_listed_as_feature(workspace, client, ui):
    ok = await handle_model_train(
        workspace, ui, 7, "churn", "regression", "approved", ("age", "approved")
    )

    assert ok is True
    assert client.trained[0]["featureNames"] == ["age"]
    assert ui.warnings == ["Target variable 'approved' is not used as a feature"]


@pytest.mark.asyncio
async def test_model_train_rejects_unknown_columns(workspace, client, ui):
    ok = await handle_model_train(
        workspace, ui, 7, "churn", "classification", "approved", ("height",)
    )

    assert ok is False
    assert ui.errors == ["Unknown columns in dataset 7: height"]
    assert client.trained == []


@pytest.mark.asyncio
async def test_model_train_server_failure(workspace, client, ui):
    client.fail["train_model"] = ServerError(
        500, {"success": False, "message": None, "data": {"userMessage": "Too few rows"}}
    )

    ok = await handle_model_train(
        workspace, ui, 7, "churn", "classification", "approved", ()
    )

    assert ok is False
    assert ui.errors == ["Too few rows"]
    assert workspace.configuration.model_name == "churn"


@pytest.mark.asyncio
async def test_model_predict(workspace, ui):
    ok = await handle_model_predict(workspace, ui, "3", ("age=41", "income=52000"))

    assert ok is True
    prediction, explanation = ui.predictions[0]
    assert prediction.prediction == "yes"
    assert explanation.explanation_text == "Income matters most."


@pytest.mark.asyncio
async def test_model_predict_missing_feature(workspace, ui):
    assert await handle_model_predict(workspace, ui, "3", ("age=41",)) is False
    assert ui.errors == ["Please fill in all required fields: income"]
    assert ui.predictions == []


@pytest.mark.asyncio
async def test_model_predict_bad_assignment(workspace, ui):
    assert await handle_model_predict(workspace, ui, "3", ("age",)) is False
    assert "Expected name=value" in ui.errors[0]


@pytest.mark.asyncio
async def test_model_predict_explain_failure_shows_nothing(workspace, client, ui):
    client.fail["explain"] = ServerError(500, {"message": "SHAP failed"})

    ok = await handle_model_predict(workspace, ui, "3", ("age=41", "income=52000"))

    assert ok is False
    assert ui.errors == ["SHAP failed"]
    assert ui.predictions == []


@pytest.mark.asyncio
async def test_model_delete_failure_keeps_model(workspace, client, ui):
    client.fail["delete_model"] = ServerError(500, None)

    assert await handle_model_delete(workspace, ui, "3", assume_yes=True) is False
    assert ui.errors == ["Failed to delete model"]
    assert 3 in client.models


@pytest.mark.asyncio
async def test_model_train_rejects_unknown_target(workspace, client, ui):
    ok = await handle_model_train(
        workspace, ui, 7, "churn", "classification", "defaulted", ()
    )

    assert ok is False
    assert ui.errors == ["Unknown columns in dataset 7: defaulted"]
    assert client.trained == []
