"""
Utility functions and decorators for CLI argument handling.
"""

import argparse
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from enum import Enum, auto
from typing import Any

from courtsched.config.types import AppConfig


@dataclass
class CLIContext:
    """Context object for CLI command execution."""
    args: argparse.Namespace
    logger: logging.Logger
    config: AppConfig
    parser: argparse.ArgumentParser

class CommandCategory(Enum):
    """Categories for organizing commands."""
    LIST = auto()
    CHECK = auto()
    EXPORT = auto()

@dataclass
class CommandMetadata:
    """Metadata for command registration."""
    name: str
    help_text: str
    category: CommandCategory
    handler: Callable[[CLIContext], int]
    options: list[dict[str, Any]]

def _is_iso_date(value: str) -> bool:
    try:
        date.fromisoformat(value)
        return True
    except ValueError:
        return False

def _is_hhmm(value: str) -> bool:
    parts = value.split(':')
    return len(parts) == 2 and all(part.isdigit() for part in parts) and int(parts[0]) < 24 and int(parts[1]) < 60

class CLIOptionFactory:
    """Factory for creating common CLI options with consistent validation."""

    @staticmethod
    def create_format_option() -> dict[str, Any]:
        return {
            'name': '--format',
            'choices': ['text', 'json'],
            'default': 'text',
            'help': 'Output format: human-readable text or machine-readable JSON (default: text)'
        }

    @staticmethod
    def create_court_option() -> dict[str, Any]:
        return {
            'name': 'court',
            'help': 'Court identifier'
        }

    @staticmethod
    def create_date_option(name: str = '--date', required: bool = True) -> dict[str, Any]:
        return {
            'name': name,
            'required': required,
            'help': 'Date in YYYY-MM-DD format',
            'validator': _is_iso_date
        }

    @staticmethod
    def create_window_options() -> list[dict[str, Any]]:
        return [
            {
                'name': '--start',
                'required': True,
                'help': 'Start time in HH:MM format',
                'validator': _is_hhmm
            },
            {
                'name': '--end',
                'required': True,
                'help': 'End time in HH:MM format',
                'validator': _is_hhmm
            }
        ]

class CommandRegistry:
    """Registry for CLI commands with metadata."""

    _commands: dict[str, CommandMetadata] = {}
    _categories: dict[CommandCategory, list[str]] = {}

    @classmethod
    def clear(cls) -> None:
        """Clear all registered commands."""
        cls._commands.clear()
        cls._categories.clear()

    @classmethod
    def register(cls,
                name: str,
                help_text: str,
                category: CommandCategory,
                options: list[dict[str, Any]] | None = None) -> Callable[[Callable[[CLIContext], int]], Callable[[CLIContext], int]]:
        """Register a command handler."""
        def decorator(handler: Callable[[CLIContext], int]) -> Callable[[CLIContext], int]:
            cls._commands[name] = CommandMetadata(
                name=name,
                help_text=help_text,
                category=category,
                handler=handler,
                options=options or []
            )
            names = cls._categories.setdefault(category, [])
            if name not in names:
                names.append(name)
            return handler
        return decorator

    @classmethod
    def get_command(cls, name: str) -> CommandMetadata | None:
        """Get command metadata by name."""
        return cls._commands.get(name)

    @classmethod
    def get_category_commands(cls, category: CommandCategory) -> list[str]:
        """Get all commands in a category."""
        return cls._categories.get(category, [])

    @classmethod
    def commands(cls) -> list[CommandMetadata]:
        return list(cls._commands.values())

class ArgumentValidator:
    """Validator for CLI arguments."""

    @staticmethod
    def validate_option(option: dict[str, Any], value: Any) -> bool:
        """Validate a single option value."""
        if 'validator' not in option:
            return True

        try:
            return bool(option['validator'](value))
        except (TypeError, ValueError):
            return False

    @staticmethod
    def validate_args(args: argparse.Namespace, command: CommandMetadata) -> list[str]:
        """Validate all arguments for a command."""
        errors = []

        for option in command.options:
            value = getattr(args, option['name'].lstrip('-').replace('-', '_'), None)
            if value is not None and not ArgumentValidator.validate_option(option, value):
                errors.append(f"Invalid value for {option['name']}: {value}")

        return errors

def add_common_options(parser: argparse.ArgumentParser) -> None:
    """Add common global options to a parser."""
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging output'
    )
    parser.add_argument(
        '--log-file',
        help='Path to write log output (default: logs to stdout)'
    )
    parser.add_argument(
        '--config-dir',
        help='Directory holding config.yaml and courts.yaml'
    )

class CLIBuilder:
    """Builder for constructing CLI parsers with consistent formatting."""

    # Custom option fields that should not be passed to argparse
    _CUSTOM_FIELDS = {'validator'}

    def __init__(self, description: str):
        """Initialize CLI builder."""
        self.parser = argparse.ArgumentParser(prog='courtsched', description=description)
        add_common_options(self.parser)
        self.subparsers = self.parser.add_subparsers(dest='command')

    def add_command(self, command: CommandMetadata) -> None:
        """Add a command to the parser."""
        parser = self.subparsers.add_parser(command.name, help=command.help_text)

        for option in command.options:
            option_copy = option.copy()
            name = option_copy.pop('name')
            option_dict = {k: v for k, v in option_copy.items() if k not in self._CUSTOM_FIELDS}

            if not name.startswith('--'):
                # Positional arguments take neither dest nor required
                option_dict.pop('required', None)
            parser.add_argument(name, **option_dict)

        parser.set_defaults(func=command.handler)

    def build(self) -> argparse.ArgumentParser:
        """Build and return the parser."""
        return self.parser
