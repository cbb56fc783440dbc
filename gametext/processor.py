#!/usr/bin/env python3
"""
Command processor for batch string table work.

Runs an ordered list of commands against numbered StringTable slots
("file ids"). Commands come from a YAML script:

```yaml
commands:
  - action: load_csf
    path: data/english.csf
  - action: load_multi_str
    file_id: 1
    path: translations.multistr
    languages: [German, French]
  - action: merge_and_overwrite
    file_ids: [0, 1]
    languages: German
  - action: save_csf
    path: german.csf
```

or from the simple switches of the command line, which always run in the
order: set options, load, swap and set language, save.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .languages import LanguageID, Languages, language_for
from .options import GameTextOption, name_to_option
from .table import StringTable

logger = logging.getLogger(__name__)

DEFAULT_FILE_ID = 0

ALL_LANGUAGES = "all"


class ResultId(Enum):
    SUCCESS = "SUCCESS"
    INVALID_COMMAND_ACTION = "INVALID_COMMAND_ACTION"
    INVALID_COMMAND_ARGUMENT = "INVALID_COMMAND_ARGUMENT"
    INVALID_LANGUAGE_VALUE = "INVALID_LANGUAGE_VALUE"
    INVALID_OPTION_VALUE = "INVALID_OPTION_VALUE"
    INVALID_FILE_ID_ARGUMENT = "INVALID_FILE_ID_ARGUMENT"
    MISSING_FILE_PATH_ARGUMENT = "MISSING_FILE_PATH_ARGUMENT"
    MISSING_LANGUAGE_ARGUMENT = "MISSING_LANGUAGE_ARGUMENT"
    EXECUTION_ERROR = "EXECUTION_ERROR"


@dataclass
class ProcessorResult:
    """
    Outcome of parsing or executing commands.

    Attributes:
        id: Result kind, SUCCESS when nothing failed
        command_index: Index of the failing command
        error_text: Offending value or parser message
    """
    id: ResultId = ResultId.SUCCESS
    command_index: int = 0
    error_text: str = ""

    @property
    def success(self) -> bool:
        return self.id == ResultId.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        return {
            "result": self.id.value,
            "command_index": self.command_index,
            "error_text": self.error_text,
        }


class CommandError(Exception):
    """Invalid command description. Carries the result id to report."""

    def __init__(self, result_id: ResultId, error_text: str = ""):
        super().__init__(f"{result_id.value}: {error_text}")
        self.result_id = result_id
        self.error_text = error_text


class CommandAction(Enum):
    LOAD_CSF = "load_csf"
    LOAD_STR = "load_str"
    LOAD_MULTI_STR = "load_multi_str"
    SAVE_CSF = "save_csf"
    SAVE_STR = "save_str"
    SAVE_MULTI_STR = "save_multi_str"
    UNLOAD = "unload"
    RESET = "reset"
    MERGE_AND_OVERWRITE = "merge_and_overwrite"
    SET_OPTIONS = "set_options"
    SET_LANGUAGE = "set_language"
    SWAP_LANGUAGE_STRINGS = "swap_language_strings"
    SWAP_AND_SET_LANGUAGE = "swap_and_set_language"


COMMAND_ARGUMENTS = {"action", "file_id", "file_ids", "path", "languages", "options"}


# --- Commands ---

class Command(ABC):
    """A single step bound to the table it works on."""

    action: CommandAction

    def __init__(self, table: StringTable, command_index: int = 0):
        self.table = table
        self.command_index = command_index

    @abstractmethod
    def execute(self) -> bool:
        pass


class LoadCommand(Command):
    def __init__(self, table: StringTable, action: CommandAction, path: str, languages: Optional[Languages] = None):
        super().__init__(table)
        self.action = action
        self.path = path
        self.languages = languages

    def execute(self) -> bool:
        if self.action == CommandAction.LOAD_CSF:
            return self.table.load_csf(self.path)
        if self.action == CommandAction.LOAD_STR:
            return self.table.load_str(self.path)
        return self.table.load_multi_str(self.path, self.languages)


class SaveCommand(Command):
    def __init__(self, table: StringTable, action: CommandAction, path: str, languages: Optional[Languages] = None):
        super().__init__(table)
        self.action = action
        self.path = path
        self.languages = languages

    def execute(self) -> bool:
        if self.action == CommandAction.SAVE_CSF:
            return self.table.save_csf(self.path)
        if self.action == CommandAction.SAVE_STR:
            return self.table.save_str(self.path)
        return self.table.save_multi_str(self.path, self.languages)


class UnloadCommand(Command):
    action = CommandAction.UNLOAD

    def __init__(self, table: StringTable, languages: Optional[Languages] = None):
        super().__init__(table)
        self.languages = languages

    def execute(self) -> bool:
        self.table.unload(self.languages)
        return True


class ResetCommand(Command):
    action = CommandAction.RESET

    def execute(self) -> bool:
        self.table.reset()
        return True


class MergeAndOverwriteCommand(Command):
    action = CommandAction.MERGE_AND_OVERWRITE

    def __init__(self, table: StringTable, source: StringTable, languages: Optional[Languages] = None):
        super().__init__(table)
        self.source = source
        self.languages = languages

    def execute(self) -> bool:
        self.table.merge_and_overwrite(self.source, self.languages)
        return True


class SetOptionsCommand(Command):
    action = CommandAction.SET_OPTIONS

    def __init__(self, table: StringTable, options: GameTextOption):
        super().__init__(table)
        self.options = options

    def execute(self) -> bool:
        self.table.options = self.options
        return True


class SetLanguageCommand(Command):
    action = CommandAction.SET_LANGUAGE

    def __init__(self, table: StringTable, language: LanguageID):
        super().__init__(table)
        self.language = language

    def execute(self) -> bool:
        self.table.language = self.language
        return True


class SwapLanguageStringsCommand(Command):
    action = CommandAction.SWAP_LANGUAGE_STRINGS

    def __init__(self, table: StringTable, left: LanguageID, right: LanguageID):
        super().__init__(table)
        self.left = left
        self.right = right

    def execute(self) -> bool:
        self.table.swap_string_infos(self.left, self.right)
        return True


class SwapAndSetLanguageCommand(Command):
    action = CommandAction.SWAP_AND_SET_LANGUAGE

    def __init__(self, table: StringTable, language: LanguageID):
        super().__init__(table)
        self.language = language

    def execute(self) -> bool:
        self.table.swap_and_set_language(self.language)
        return True


# --- Argument parsing ---

def _split_values(value: Union[str, list, tuple]) -> list[str]:
    """Accept a list of names or a single 'A|B' string."""
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value]
    return [item.strip() for item in str(value).split('|') if item.strip()]


def parse_languages(value: Union[str, list, tuple]) -> list[LanguageID]:
    """
    Parse language names in the given order.

    Args:
        value: Display names as list or '|' separated string. 'All' selects every language.

    Returns:
        List of LanguageID without duplicates

    Raises:
        CommandError: If a name is unknown
    """
    result: list[LanguageID] = []
    for name in _split_values(value):
        if name.lower() == ALL_LANGUAGES:
            candidates = list(LanguageID)
        else:
            language = language_for(name)
            if language is None:
                raise CommandError(ResultId.INVALID_LANGUAGE_VALUE, name)
            candidates = [language]
        for language in candidates:
            if language not in result:
                result.append(language)
    return result


def parse_options(value: Union[str, list, tuple]) -> GameTextOption:
    """
    Parse option names into combined flags.

    Raises:
        CommandError: If a name is unknown
    """
    options = GameTextOption.NONE
    for name in _split_values(value):
        option = name_to_option(name)
        if option is None:
            raise CommandError(ResultId.INVALID_OPTION_VALUE, name)
        options |= option
    return options


def _parse_file_id(value: Any) -> int:
    if isinstance(value, bool):
        raise CommandError(ResultId.INVALID_FILE_ID_ARGUMENT, str(value))
    try:
        return int(value)
    except (TypeError, ValueError):
        raise CommandError(ResultId.INVALID_FILE_ID_ARGUMENT, str(value)) from None


def _parse_action(value: Any) -> CommandAction:
    try:
        return CommandAction(str(value).strip().lower())
    except ValueError:
        raise CommandError(ResultId.INVALID_COMMAND_ACTION, str(value)) from None


# --- Processor ---

class Processor:
    """
    Parses command descriptions and executes them in order.

    Parsing is all-or-nothing: a parse error keeps the previously parsed
    commands. Execution stops at the first command that fails.
    """

    def __init__(self, log: logging.Logger = None):
        self.log = log or logger
        self._file_map: dict[int, StringTable] = {}
        self._commands: list[Command] = []

    @property
    def commands(self) -> list[Command]:
        return list(self._commands)

    def get_table(self, file_id: int = DEFAULT_FILE_ID) -> Optional[StringTable]:
        return self._file_map.get(file_id)

    def tables(self) -> dict[int, StringTable]:
        return dict(self._file_map)

    def parse_commands(self, command_dicts: list[dict]) -> ProcessorResult:
        """
        Build commands from their dictionary form.

        Args:
            command_dicts: One dict per command with 'action' and its arguments

        Returns:
            ProcessorResult, SUCCESS if every command is valid
        """
        file_map = dict(self._file_map)
        commands: list[Command] = []

        for index, command_dict in enumerate(command_dicts):
            try:
                command = self._build_command(command_dict, file_map)
            except CommandError as e:
                self.log.error("Invalid command %d: %s", index, e)
                return ProcessorResult(e.result_id, index, e.error_text)
            command.command_index = index
            commands.append(command)

        self._file_map = file_map
        self._commands = commands
        return ProcessorResult()

    def parse_script(self, script_path: Union[str, Path]) -> ProcessorResult:
        """
        Parse a YAML command script.

        Args:
            script_path: Path to a YAML file with a top level 'commands' list

        Returns:
            ProcessorResult, INVALID_COMMAND_ACTION for unreadable scripts
        """
        try:
            with open(script_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, UnicodeDecodeError) as e:
            self.log.error("Cannot read script '%s': %s", script_path, e)
            return ProcessorResult(ResultId.INVALID_COMMAND_ACTION, 0, str(e))
        except yaml.YAMLError as e:
            self.log.error("Cannot parse script '%s': %s", script_path, e)
            return ProcessorResult(ResultId.INVALID_COMMAND_ACTION, 0, str(e))

        if not isinstance(data, dict) or not isinstance(data.get('commands'), list):
            return ProcessorResult(ResultId.INVALID_COMMAND_ACTION, 0, "script needs a 'commands' list")

        return self.parse_commands(data['commands'])

    def execute_commands(self) -> ProcessorResult:
        """Run parsed commands in order until one fails."""
        for command in self._commands:
            self.log.debug("Executing command %d: %s", command.command_index, command.action.value)
            if not command.execute():
                self.log.error("Command %d (%s) failed", command.command_index, command.action.value)
                return ProcessorResult(ResultId.EXECUTION_ERROR, command.command_index, command.action.value)
        return ProcessorResult()

    def _table(self, file_map: dict[int, StringTable], file_id: int) -> StringTable:
        if file_id not in file_map:
            # Tables created by commands start without options.
            file_map[file_id] = StringTable(options=GameTextOption.NONE, logger=self.log)
        return file_map[file_id]

    def _build_command(self, command_dict: Any, file_map: dict[int, StringTable]) -> Command:
        if not isinstance(command_dict, dict):
            raise CommandError(ResultId.INVALID_COMMAND_ACTION, str(command_dict))

        if 'action' not in command_dict:
            raise CommandError(ResultId.INVALID_COMMAND_ACTION, "missing action")

        action = _parse_action(command_dict['action'])

        for key in command_dict:
            if key not in COMMAND_ARGUMENTS:
                raise CommandError(ResultId.INVALID_COMMAND_ARGUMENT, str(key))

        path = command_dict.get('path')
        path = str(path) if path else None

        language_list = parse_languages(command_dict['languages']) if 'languages' in command_dict else []
        languages = Languages(language_list) if language_list else None

        options = parse_options(command_dict['options']) if 'options' in command_dict else GameTextOption.NONE

        if action == CommandAction.MERGE_AND_OVERWRITE:
            file_ids = command_dict.get('file_ids')
            if not isinstance(file_ids, (list, tuple)) or len(file_ids) != 2:
                raise CommandError(ResultId.INVALID_FILE_ID_ARGUMENT, str(file_ids))
            target_id, source_id = (_parse_file_id(file_id) for file_id in file_ids)
            if target_id == source_id:
                raise CommandError(ResultId.INVALID_FILE_ID_ARGUMENT, f"{target_id}, {source_id}")
            return MergeAndOverwriteCommand(
                self._table(file_map, target_id), self._table(file_map, source_id), languages)

        table = self._table(file_map, _parse_file_id(command_dict.get('file_id', DEFAULT_FILE_ID)))

        if action in (CommandAction.LOAD_CSF, CommandAction.LOAD_STR, CommandAction.LOAD_MULTI_STR,
                      CommandAction.SAVE_CSF, CommandAction.SAVE_STR, CommandAction.SAVE_MULTI_STR):
            if path is None:
                raise CommandError(ResultId.MISSING_FILE_PATH_ARGUMENT, action.value)
            multi = action in (CommandAction.LOAD_MULTI_STR, CommandAction.SAVE_MULTI_STR)
            if multi and languages is None:
                raise CommandError(ResultId.MISSING_LANGUAGE_ARGUMENT, action.value)
            command_class = LoadCommand if action.value.startswith('load') else SaveCommand
            return command_class(table, action, path, languages if multi else None)

        if action == CommandAction.UNLOAD:
            return UnloadCommand(table, languages)

        if action == CommandAction.RESET:
            return ResetCommand(table)

        if action == CommandAction.SET_OPTIONS:
            return SetOptionsCommand(table, options)

        if action == CommandAction.SWAP_LANGUAGE_STRINGS:
            if len(language_list) < 2:
                raise CommandError(ResultId.MISSING_LANGUAGE_ARGUMENT, action.value)
            return SwapLanguageStringsCommand(table, language_list[0], language_list[1])

        # SET_LANGUAGE and SWAP_AND_SET_LANGUAGE take a single language
        if not language_list:
            raise CommandError(ResultId.MISSING_LANGUAGE_ARGUMENT, action.value)
        if action == CommandAction.SET_LANGUAGE:
            return SetLanguageCommand(table, language_list[0])
        return SwapAndSetLanguageCommand(table, language_list[0])


def build_simple_commands(
    options: Optional[str] = None,
    load_csf: Optional[str] = None,
    load_str: Optional[str] = None,
    load_str_languages: Optional[str] = None,
    swap_and_set_language: Optional[str] = None,
    save_csf: Optional[str] = None,
    save_str: Optional[str] = None,
    save_str_languages: Optional[str] = None,
) -> list[dict]:
    """
    Translate simple switches into the fixed command sequence.

    The STR paths double as Multi STR paths when languages are given for
    them. When both CSF and STR paths are given, the STR one wins.

    Returns:
        Command dicts for Processor.parse_commands
    """
    commands: list[dict] = []

    if options is not None:
        commands.append({'action': CommandAction.SET_OPTIONS.value, 'options': options})

    if load_str_languages is not None:
        commands.append({'action': CommandAction.LOAD_MULTI_STR.value, 'path': load_str,
                         'languages': load_str_languages})
    elif load_str is not None:
        commands.append({'action': CommandAction.LOAD_STR.value, 'path': load_str})
    elif load_csf is not None:
        commands.append({'action': CommandAction.LOAD_CSF.value, 'path': load_csf})

    if swap_and_set_language is not None:
        commands.append({'action': CommandAction.SWAP_AND_SET_LANGUAGE.value, 'languages': swap_and_set_language})

    if save_str_languages is not None:
        commands.append({'action': CommandAction.SAVE_MULTI_STR.value, 'path': save_str,
                         'languages': save_str_languages})
    elif save_str is not None:
        commands.append({'action': CommandAction.SAVE_STR.value, 'path': save_str})
    elif save_csf is not None:
        commands.append({'action': CommandAction.SAVE_CSF.value, 'path': save_csf})

    return commands


def describe_tables(processor: Processor) -> dict[str, Any]:
    """Summaries of every table slot, keyed by file id."""
    return {str(file_id): table.summary() for file_id, table in sorted(processor.tables().items())}


__all__ = [
    'Processor',
    'ProcessorResult',
    'ResultId',
    'CommandAction',
    'CommandError',
    'build_simple_commands',
    'describe_tables',
    'parse_languages',
    'parse_options',
]
