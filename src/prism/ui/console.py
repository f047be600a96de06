"""Terminal output for Prism CLI."""

from rich import box
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from prism.workflow.models import Direction, Explanation, PredictionResult


class InteractiveInterface:
    """Console facade: formats content and prints it with rich."""

    def __init__(self, console: Console | None = None):
        self._console = console or Console(soft_wrap=True)

    def show_system_error(self, message: str) -> None:
        self._console.print(f"❌ {message}", style="red", markup=False)

    def show_system_success(self, message: str) -> None:
        self._console.print(f"✓ {message}", markup=False)

    def show_warning(self, message: str) -> None:
        self._console.print(f"⚠️ {message}", style="yellow", markup=False)

    def show_info(self, message: str) -> None:
        self._console.print(message, markup=False)

    def show_table(self, title: str, columns: list[str], rows: list[list[str]]) -> None:
        table = Table(title=title, box=box.SIMPLE_HEAVY)
        for col in columns:
            table.add_column(col)

        if not rows:
            table.add_row(*(["-"] * len(columns)))
        else:
            for row in rows:
                table.add_row(*row)

        self._console.print(table)

    def show_key_values(self, title: str, pairs: list[list[str]]) -> None:
        table = Table(title=title, box=box.SIMPLE)
        table.add_column("Field", style="bold")
        table.add_column("Value")

        for pair in pairs:
            if len(pair) >= 2:
                table.add_row(pair[0], pair[1])

        self._console.print(table)

    def show_prediction(
        self, prediction: PredictionResult, explanation: Explanation
    ) -> None:
        """Render a prediction together with its explanation."""
        pairs = [["Prediction", prediction.prediction]]
        if prediction.confidence is not None:
            pairs.append(["Confidence", f"{prediction.confidence * 100:.2f}%"])
        for class_name, probability in (prediction.probabilities or {}).items():
            pairs.append([f"P({class_name})", f"{probability * 100:.1f}%"])
        self.show_key_values("Prediction Result", pairs)

        if explanation.explanation_text:
            self._console.print(explanation.explanation_text, markup=False)

        table = Table(title="Feature Contributions", box=box.SIMPLE_HEAVY)
        table.add_column("Feature")
        table.add_column("Contribution", justify="right")
        table.add_column("Direction")
        for contribution in explanation.feature_contributions:
            color = "green" if contribution.direction == Direction.POSITIVE else "red"
            table.add_row(
                contribution.feature_name,
                f"{contribution.contribution:.4f}",
                f"[{color}]{contribution.direction.value}[/{color}]",
            )
        self._console.print(table)

    def confirm(self, message: str, default: bool = False) -> bool:
        return Confirm.ask(message, default=default, console=self._console)
