def main() -> None:
    """Entry point for Prism CLI."""
    from prism.ui.cli import cli

    cli()
