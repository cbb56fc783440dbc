#!/usr/bin/env python3
"""
gametext - Game Text Table Compiler CLI

Converts, merges and rewrites CSF, STR and Multi STR string tables.

Commands:
- convert: Simple mode, one table through options, load, language swap, save
- run: Execute a YAML command script
- languages: List language names and codes
- formats: List supported file formats

All results are printed as JSON on stdout, diagnostics go to stderr.
"""

import argparse
import json
import logging
import sys
from typing import Any, Optional

from . import __version__
from .format_handlers import FormatRegistry
from .languages import list_languages
from .processor import Processor, ProcessorResult, build_simple_commands, describe_tables

logger = logging.getLogger(__name__)

EXIT_MISSING_ARGUMENTS = 1
EXIT_PARSE_ERROR = 2
EXIT_EXECUTION_ERROR = 3

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class ProcessorFailure(Exception):
    """Parse or execution failure with the exit code to report."""

    def __init__(self, exit_code: int, stage: str, result: ProcessorResult):
        super().__init__(f"{stage} failed: {result.id.value}")
        self.exit_code = exit_code
        self.stage = stage
        self.result = result

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": "error",
            "stage": self.stage,
            **self.result.to_dict(),
        }


def configure_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """Log to stderr, and additionally to log_file when given."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def run_processor(processor: Processor, parse_result: ProcessorResult) -> dict:
    """Execute parsed commands and build the success report."""
    if not parse_result.success:
        raise ProcessorFailure(EXIT_PARSE_ERROR, "parse", parse_result)

    execute_result = processor.execute_commands()
    if not execute_result.success:
        raise ProcessorFailure(EXIT_EXECUTION_ERROR, "execute", execute_result)

    return {
        "status": "success",
        "commands": [command.action.value for command in processor.commands],
        "tables": describe_tables(processor),
    }


def cmd_convert(args) -> dict:
    """Simple mode: set options, load, swap and set language, save."""
    commands = build_simple_commands(
        options=args.options,
        load_csf=args.load_csf,
        load_str=args.load_str,
        load_str_languages=args.load_str_languages,
        swap_and_set_language=args.swap_and_set_language,
        save_csf=args.save_csf,
        save_str=args.save_str,
        save_str_languages=args.save_str_languages,
    )

    processor = Processor()
    return run_processor(processor, processor.parse_commands(commands))


def cmd_run(args) -> dict:
    """Execute a YAML command script."""
    processor = Processor()
    return run_processor(processor, processor.parse_script(args.script))


def cmd_languages(args) -> dict:
    languages = list_languages()
    return {
        "languages": languages,
        "summary": f"{sum(1 for lang in languages if lang['usable'])} of {len(languages)} languages usable in Multi STR files",
    }


def cmd_formats(args) -> dict:
    formats = FormatRegistry.list_formats()
    return {
        "formats": formats,
        "summary": f"{len(formats)} formats supported: {', '.join(f['name'] for f in formats)}",
    }


def _has_convert_arguments(args) -> bool:
    return any(
        getattr(args, name) is not None
        for name in ("load_csf", "load_str", "load_str_languages", "save_csf", "save_str", "save_str_languages")
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gametext",
        description="gametext - Game Text Table Compiler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Supported Formats:
  csf       - Binary string table (one language)
  str       - Text string table (one language)
  multistr  - Text string table with language codes

Languages:
  All|English|German|French|Spanish|Italian|Japanese|Korean|Chinese|Brazilian|Polish|Unknown|Russian|Arabic

Options:
  None|Check_Buffer_Length_On_Load|Check_Buffer_Length_On_Save|
  Keep_Obsolete_Spaces_On_Load|Write_Extra_LF_On_STR_Save|Optimize_Memory_Size

Examples:
  # Convert CSF to STR
  gametext convert --load-csf generals.csf --save-str generals.str

  # Extract German and French from a Multi STR file (QUOTE the pipes!)
  gametext convert --load-str all.multistr --load-str-languages 'German|French' \\
      --save-str-languages 'German|French' --save-str subset.multistr

  # Compile a STR file as German CSF
  gametext convert --load-str german.str --swap-and-set-language German --save-csf german.csf

  # Run a command script
  gametext run --script build_languages.yaml
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug diagnostics")
    parser.add_argument("--log-file", help="Also write diagnostics to this file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # convert command
    convert_parser = subparsers.add_parser("convert", help="Load, convert and save one table")
    convert_parser.add_argument("--options", help="Options separated by '|'")
    convert_parser.add_argument("--load-csf", help="CSF file to load")
    convert_parser.add_argument("--load-str", help="STR or Multi STR file to load")
    convert_parser.add_argument("--load-str-languages",
                                help="Languages to load, reads --load-str as Multi STR")
    convert_parser.add_argument("--swap-and-set-language",
                                help="Move loaded strings to this language and make it active")
    convert_parser.add_argument("--save-csf", help="CSF file to save")
    convert_parser.add_argument("--save-str", help="STR or Multi STR file to save")
    convert_parser.add_argument("--save-str-languages",
                                help="Languages to save, writes --save-str as Multi STR")

    # run command
    run_parser = subparsers.add_parser("run", help="Execute a YAML command script")
    run_parser.add_argument("--script", "-s", required=True, help="YAML script with a 'commands' list")

    # languages command
    subparsers.add_parser("languages", help="List languages")

    # formats command
    subparsers.add_parser("formats", help="List supported formats")

    return parser


def main(argv: Optional[list[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command or (args.command == "convert" and not _has_convert_arguments(args)):
        parser.print_help()
        sys.exit(EXIT_MISSING_ARGUMENTS)

    configure_logging(args.verbose, args.log_file)

    try:
        if args.command == "convert":
            result = cmd_convert(args)
        elif args.command == "run":
            result = cmd_run(args)
        elif args.command == "languages":
            result = cmd_languages(args)
        elif args.command == "formats":
            result = cmd_formats(args)
        print(json.dumps(result, indent=2))
    except ProcessorFailure as e:
        logger.error("Game text compiler %s", e)
        print(json.dumps(e.to_dict()), file=sys.stderr)
        sys.exit(e.exit_code)
    except Exception as e:
        print(json.dumps({
            "status": "error",
            "error": str(e),
            "error_type": type(e).__name__,
        }), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
