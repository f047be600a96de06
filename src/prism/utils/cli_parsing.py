"""Command-line parsing utilities for Prism CLI."""


class OptionParsingError(Exception):
    """Raised when option parsing fails."""


def parse_assignments(
    args: list[str] | tuple[str, ...],
    command_name: str = "",
) -> dict[str, str]:
    """Parse ``name=value`` tokens into a dict.

    Args:
        args: Tokens such as ``("age=42", "income=51000")``
        command_name: Command name for better error messages

    Returns:
        Dict mapping each name to its value, in argument order.
        Example: {"age": "42", "income": "51000"}

    Raises:
        OptionParsingError: If parsing fails due to:
            - A token without ``=``
            - An empty name
            - The same name given twice
    """
    values: dict[str, str] = {}

    for token in args:
        if "=" not in token:
            raise OptionParsingError(
                f"Expected name=value but got '{token}'{_cmd_suffix(command_name)}"
            )

        name, value = token.split("=", 1)
        name = name.strip()
        if not name:
            raise OptionParsingError(
                f"Missing name in '{token}'{_cmd_suffix(command_name)}"
            )
        if name in values:
            raise OptionParsingError(
                f"'{name}' given more than once{_cmd_suffix(command_name)}"
            )

        values[name] = value.strip()

    return values


def _cmd_suffix(command_name: str) -> str:
    """Helper to format command name in error messages.

    Args:
        command_name: Name of the command

    Returns:
        Formatted suffix like " in models predict" or empty string
    """
    return f" in {command_name}" if command_name else ""
