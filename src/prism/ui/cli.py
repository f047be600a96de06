"""Command-line interface for Prism."""

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any

import click
from dotenv import load_dotenv

from prism.core import CallbackNavigator, PrismClient, SettingsManager, SettingsSessionStore
from prism.error_handling import PrismError, SessionError
from prism.ui.console import InteractiveInterface
from prism.utils.cli_parsing import OptionParsingError, parse_assignments
from prism.utils.validation import ValidationError, require_fields
from prism.workflow.confirmation import MutationConfirmer
from prism.workflow.inference import InferenceStatus
from prism.workflow.training import TrainingStatus
from prism.workflow.workspace import Workspace

# Load environment variables
load_dotenv()


def _format_date(value: Any) -> str:
    return value.strftime("%Y-%m-%d") if value else "-"


def build_workspace(settings_manager: SettingsManager, ui: InteractiveInterface) -> Workspace:
    """Create a workspace backed by the persisted session."""
    navigator = CallbackNavigator(
        lambda: ui.show_warning("Session expired. Run `prism login` to sign in again.")
    )
    client = PrismClient(
        settings_manager.get_api_url(),
        session=SettingsSessionStore(settings_manager),
        navigator=navigator,
        timeout=settings_manager.get_request_timeout(),
    )
    return Workspace(client, training_timeout=settings_manager.get_training_timeout())


def run_handler(handler: Callable[[Workspace, InteractiveInterface], Awaitable[bool]]) -> None:
    """Run an async handler against a fresh workspace and exit non-zero on failure."""
    ui = InteractiveInterface()
    workspace = build_workspace(SettingsManager(), ui)

    async def _run() -> bool:
        try:
            return await handler(workspace, ui)
        finally:
            await workspace.close()

    try:
        ok = asyncio.run(_run())
    except SessionError as e:
        ui.show_system_error(e.message)
        sys.exit(1)

    if not ok:
        sys.exit(1)


# Handlers


async def handle_login(workspace: Workspace, ui, username: str, password: str) -> bool:
    try:
        require_fields({"username": username, "password": password}, "login")
        await workspace.client.login(username, password)
    except ValidationError as e:
        ui.show_system_error(e.message)
        return False
    except PrismError as e:
        ui.show_system_error(e.get_user_message())
        return False
    ui.show_system_success(f"Signed in as {workspace.client.session.username}")
    return True


async def handle_register(
    workspace: Workspace, ui, username: str, email: str, password: str
) -> bool:
    try:
        require_fields(
            {"username": username, "email": email, "password": password}, "registration"
        )
        await workspace.client.register(username, email, password)
    except ValidationError as e:
        ui.show_system_error(e.message)
        return False
    except PrismError as e:
        ui.show_system_error(e.get_user_message())
        return False
    ui.show_system_success("User registered successfully! Run `prism login` to sign in.")
    return True


async def handle_datasets_list(workspace: Workspace, ui) -> bool:
    directory = workspace.directory
    await directory.refresh()
    if directory.error:
        ui.show_system_error(directory.error)
        return False

    rows = [
        [
            str(dataset.id),
            dataset.file_name,
            str(dataset.row_count),
            _format_date(dataset.upload_date),
            ", ".join(dataset.headers),
        ]
        for dataset in directory.datasets
    ]
    ui.show_table("Datasets", ["ID", "File", "Rows", "Uploaded", "Columns"], rows)
    return True


async def handle_dataset_show(workspace: Workspace, ui, dataset_id: str) -> bool:
    try:
        dataset = await workspace.configuration.select_dataset(dataset_id)
    except LookupError as e:
        ui.show_system_error(str(e))
        return False

    ui.show_key_values(
        "Dataset",
        [
            ["ID", str(dataset.id)],
            ["File", dataset.file_name],
            ["Rows", str(dataset.row_count)],
            ["Uploaded", _format_date(dataset.upload_date)],
            ["Columns", ", ".join(dataset.headers)],
        ],
    )
    return True


async def handle_dataset_upload(workspace: Workspace, ui, path: str) -> bool:
    uploader = workspace.uploader
    try:
        uploader.choose_file(path)
        ok = await uploader.upload()
    except ValidationError as e:
        ui.show_system_error(e.message)
        return False

    if not ok:
        ui.show_system_error(uploader.error)
        return False
    ui.show_system_success(uploader.success)
    return True


async def handle_models_list(workspace: Workspace, ui) -> bool:
    directory = workspace.directory
    await directory.refresh()
    if directory.error:
        ui.show_system_error(directory.error)
        return False

    rows = [
        [
            str(model.id),
            model.model_name,
            model.model_type.value.lower(),
            model.target_variable,
            model.accuracy_label,
            _format_date(model.training_date),
        ]
        for model in directory.models
    ]
    ui.show_table(
        "Models", ["ID", "Name", "Type", "Target", "Accuracy", "Trained"], rows
    )
    return True


async def handle_model_show(workspace: Workspace, ui, model_id: str) -> bool:
    try:
        model = await workspace.inference.select_model(model_id)
    except PrismError:
        ui.show_system_error(workspace.inference.error)
        return False

    ui.show_key_values(
        "Model",
        [
            ["ID", str(model.id)],
            ["Name", model.model_name],
            ["Type", model.model_type.value.lower()],
            ["Target", model.target_variable],
            ["Features", ", ".join(model.feature_names)],
            ["Accuracy", model.accuracy_label],
            ["Trained", _format_date(model.training_date)],
        ],
    )
    return True


async def handle_model_train(
    workspace: Workspace,
    ui,
    dataset_id: int,
    name: str,
    model_type: str,
    target: str,
    features: tuple[str, ...],
) -> bool:
    builder = workspace.configuration
    try:
        await builder.select_dataset(dataset_id)
    except LookupError as e:
        ui.show_system_error(str(e))
        return False

    try:
        builder.set_model_name(name)
        builder.set_model_type(model_type)
        builder.set_target(target)

        selected = features or tuple(builder.available_features)
        if target in selected:
            ui.show_warning(f"Target variable '{target}' is not used as a feature")
        builder.select_features(list(selected))

        ui.show_info(
            f"Training '{name}' on {len(builder.feature_set)} features; "
            "this can take a few minutes..."
        )
        outcome = await workspace.train()
    except ValidationError as e:
        ui.show_system_error(e.message)
        return False

    if outcome.status == TrainingStatus.SUCCEEDED:
        ui.show_system_success(outcome.message)
        model = outcome.model
        ui.show_key_values(
            "Trained Model",
            [
                ["ID", str(model.id)],
                ["Name", model.model_name],
                ["Target", model.target_variable],
                ["Accuracy", model.accuracy_label],
            ],
        )
        return True
    if outcome.status == TrainingStatus.TIMED_OUT:
        ui.show_warning(outcome.message)
        return False

    ui.show_system_error(outcome.message)
    return False


async def handle_model_predict(
    workspace: Workspace, ui, model_id: str, inputs: tuple[str, ...]
) -> bool:
    try:
        input_data = parse_assignments(inputs, command_name="models predict")
        result = await workspace.inference.run(model_id, input_data)
    except (OptionParsingError, ValidationError) as e:
        ui.show_system_error(getattr(e, "message", str(e)))
        return False
    except PrismError:
        ui.show_system_error(workspace.inference.error)
        return False

    if result.status != InferenceStatus.SUCCEEDED:
        ui.show_system_error(result.message)
        return False

    ui.show_prediction(result.prediction, result.explanation)
    return True


async def handle_delete(
    workspace: Workspace,
    ui,
    confirmer: MutationConfirmer,
    target: Any,
    assume_yes: bool = False,
) -> bool:
    """Delete a dataset or model through its confirmation gate."""
    if target is None:
        ui.show_system_error(workspace.directory.error or "Not found")
        return False

    confirmer.request_delete(target)
    if not assume_yes and not ui.confirm(confirmer.prompt):
        confirmer.cancel()
        ui.show_info("Cancelled")
        return True

    result = await confirmer.confirm()
    if not result.success:
        ui.show_system_error(result.message)
        return False
    ui.show_system_success(result.message)
    return True


async def handle_dataset_delete(
    workspace: Workspace, ui, dataset_id: str, assume_yes: bool = False
) -> bool:
    await workspace.directory.refresh()
    target = workspace.directory.get_dataset(dataset_id)
    if target is None and not workspace.directory.error:
        ui.show_system_error(f"Dataset {dataset_id} not found")
        return False
    return await handle_delete(
        workspace, ui, workspace.dataset_deleter, target, assume_yes
    )


async def handle_model_delete(
    workspace: Workspace, ui, model_id: str, assume_yes: bool = False
) -> bool:
    await workspace.directory.refresh()
    target = workspace.directory.get_model(model_id)
    if target is None and not workspace.directory.error:
        ui.show_system_error(f"Model {model_id} not found")
        return False
    return await handle_delete(workspace, ui, workspace.model_deleter, target, assume_yes)


# Commands


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """Prism - train models and explain their predictions from the terminal."""
    verbose = verbose or SettingsManager().get_verbose_mode()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option("-u", "--username", prompt=True, help="Account username")
@click.option("-p", "--password", prompt=True, hide_input=True, help="Account password")
def login(username: str, password: str):
    """Sign in and remember the session."""
    run_handler(lambda ws, ui: handle_login(ws, ui, username, password))


@cli.command()
@click.option("-u", "--username", prompt=True, help="Account username")
@click.option("-e", "--email", prompt=True, help="Account email")
@click.option(
    "-p",
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Account password",
)
def register(username: str, email: str, password: str):
    """Create a new account."""
    run_handler(lambda ws, ui: handle_register(ws, ui, username, email, password))


@cli.command()
def logout():
    """Forget the saved session."""
    SettingsSessionStore(SettingsManager()).clear()
    InteractiveInterface().show_system_success("Signed out")


@cli.command()
@click.option("--api-url", default=None, help="Backend base URL to save")
@click.option(
    "--training-timeout", type=float, default=None, help="Training deadline in seconds"
)
def config(api_url: str | None, training_timeout: float | None):
    """Show or update configuration."""
    ui = InteractiveInterface()
    settings_manager = SettingsManager()

    try:
        if api_url:
            settings_manager.update_user_setting("apiUrl", api_url)
            ui.show_system_success(f"API URL saved to {settings_manager.settings_file}")
        if training_timeout is not None:
            settings_manager.update_user_setting("trainingTimeout", training_timeout)
            ui.show_system_success(
                f"Training timeout saved to {settings_manager.settings_file}"
            )
    except ValidationError as e:
        ui.show_system_error(e.message)
        sys.exit(1)

    session = settings_manager.get_session()
    ui.show_key_values(
        "Configuration",
        [
            ["API URL", settings_manager.get_api_url()],
            ["Training timeout", f"{settings_manager.get_training_timeout():g}s"],
            ["Request timeout", f"{settings_manager.get_request_timeout():g}s"],
            ["Signed in as", session["username"] or "-"],
        ],
    )


@cli.group()
def datasets():
    """Manage datasets."""


@datasets.command("list")
def datasets_list():
    """List uploaded datasets."""
    run_handler(handle_datasets_list)


@datasets.command("show")
@click.argument("dataset_id")
def datasets_show(dataset_id: str):
    """Show a dataset and its columns."""
    run_handler(lambda ws, ui: handle_dataset_show(ws, ui, dataset_id))


@datasets.command("upload")
@click.argument("path", type=click.Path(dir_okay=False))
def datasets_upload(path: str):
    """Upload a CSV file."""
    run_handler(lambda ws, ui: handle_dataset_upload(ws, ui, path))


@datasets.command("delete")
@click.argument("dataset_id")
@click.option("-y", "--yes", "assume_yes", is_flag=True, help="Skip confirmation")
def datasets_delete(dataset_id: str, assume_yes: bool):
    """Delete a dataset."""
    run_handler(lambda ws, ui: handle_dataset_delete(ws, ui, dataset_id, assume_yes))


@cli.group()
def models():
    """Train, inspect and query models."""


@models.command("list")
def models_list():
    """List trained models."""
    run_handler(handle_models_list)


@models.command("show")
@click.argument("model_id")
def models_show(model_id: str):
    """Show a model and the features it expects."""
    run_handler(lambda ws, ui: handle_model_show(ws, ui, model_id))


@models.command("train")
@click.option("-d", "--dataset", "dataset_id", type=int, required=True, help="Dataset ID")
@click.option("-n", "--name", required=True, help="Model name")
@click.option(
    "-t",
    "--type",
    "model_type",
    type=click.Choice(["classification", "regression"], case_sensitive=False),
    default="classification",
    show_default=True,
)
@click.option("--target", required=True, help="Column to predict")
@click.option(
    "-f",
    "--feature",
    "features",
    multiple=True,
    help="Feature column (repeatable); defaults to every other column",
)
def models_train(
    dataset_id: int, name: str, model_type: str, target: str, features: tuple[str, ...]
):
    """Train a model on a dataset."""
    run_handler(
        lambda ws, ui: handle_model_train(
            ws, ui, dataset_id, name, model_type, target, features
        )
    )


@models.command("predict")
@click.argument("model_id")
@click.option(
    "-i", "--input", "inputs", multiple=True, help="Feature value as name=value"
)
def models_predict(model_id: str, inputs: tuple[str, ...]):
    """Predict one input and explain the prediction."""
    run_handler(lambda ws, ui: handle_model_predict(ws, ui, model_id, inputs))


@models.command("delete")
@click.argument("model_id")
@click.option("-y", "--yes", "assume_yes", is_flag=True, help="Skip confirmation")
def models_delete(model_id: str, assume_yes: bool):
    """Delete a model."""
    run_handler(lambda ws, ui: handle_model_delete(ws, ui, model_id, assume_yes))
