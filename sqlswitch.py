#!/usr/bin/env python3
"""
SQL Switcher - Command Line Interface

Usage:
    python sqlswitch.py convert <input_file> --from <dialect> --to <dialect> [-o <output_file>] [--config <rules_file>] [--options <options_file>] [--report]
    python sqlswitch.py batch <input_dir> <output_dir> --from <dialect> --to <dialect> [--recursive]
    python sqlswitch.py interactive --from <dialect> --to <dialect>
    python sqlswitch.py inline "SQL statement" --from <dialect> --to <dialect>
    python sqlswitch.py init-config [--output <config_file>]
    python sqlswitch.py validate-config <config_file>
    python sqlswitch.py mappings --from <dialect> --to <dialect>
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from sqlswitcher import (
    ConversionOptions,
    Dialect,
    SqlConverterEngine,
    SqlSwitcherError,
    UnsupportedDialectError,
    WarningSeverity,
    build_default_registry,
    load_custom_rules,
    load_options,
    save_sample_config,
    validate_config,
)
from sqlswitcher.log import setup_logging

SQL_EXTENSIONS = {'.sql', '.ddl', '.pls', '.pks', '.pkb', '.prc', '.fnc', '.trg'}


def dialect_arg(value: str) -> Dialect:
    """argparse type for dialect names."""
    try:
        return Dialect.from_name(value)
    except UnsupportedDialectError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_engine(args) -> SqlConverterEngine:
    """Create the engine with the custom rules named on the command line."""
    config_file = getattr(args, 'config', None)
    custom_rules = load_custom_rules(config_file) if config_file else None
    return SqlConverterEngine(custom_rules=custom_rules)


def build_options(args) -> ConversionOptions:
    options_file = getattr(args, 'options', None)
    return load_options(options_file) if options_file else ConversionOptions()


def print_warnings(result, stream=sys.stderr):
    """Print diagnostics as SQL comments."""
    for warning in result.warnings:
        if warning.severity is WarningSeverity.INFO:
            continue
        print(f"-- {warning.severity.value}: {warning.message}", file=stream)
        if warning.suggestion:
            print(f"--   Suggestion: {warning.suggestion}", file=stream)


def fully_converted(result) -> bool:
    return result.success and result.failed_statements == 0


def convert_file(args):
    """Convert one SQL file."""
    input_path = Path(args.input_file)
    if not input_path.exists():
        print(f"Error: Input file '{input_path}' not found.", file=sys.stderr)
        return 1

    try:
        engine = build_engine(args)
        options = build_options(args)
    except SqlSwitcherError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    sql = input_path.read_text(encoding='utf-8')
    result = engine.convert(sql, args.source, args.target, options)

    if args.output:
        Path(args.output).write_text(result.converted_sql + "\n", encoding='utf-8')
        print(f"✓ {input_path} -> {args.output} "
              f"({result.total_statements - result.failed_statements}/{result.total_statements} statements)")
    else:
        print(result.converted_sql)

    if args.report:
        print(result.get_detailed_report(), file=sys.stderr)
    else:
        print_warnings(result)

    return 0 if fully_converted(result) else 1


def batch_convert(args):
    """Convert every SQL file in a directory."""
    input_dir = Path(args.input_dir)
    output_dir = Path(args.output_dir)

    if not input_dir.is_dir():
        print(f"Error: '{input_dir}' is not a directory.", file=sys.stderr)
        return 1

    try:
        engine = build_engine(args)
        options = build_options(args)
    except SqlSwitcherError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    candidates = input_dir.rglob('*') if args.recursive else input_dir.iterdir()
    sql_files = sorted(f for f in candidates if f.is_file() and f.suffix.lower() in SQL_EXTENSIONS)
    if not sql_files:
        print(f"No SQL files found in '{input_dir}'")
        return 0

    print(f"Batch conversion: {args.source.display_name} -> {args.target.display_name}")
    print(f"Input:  {input_dir}")
    print(f"Output: {output_dir}")
    print(f"Files:  {len(sql_files)}")
    print("-" * 60)

    converted_files = 0
    for sql_file in sql_files:
        relative = sql_file.relative_to(input_dir)
        out_path = output_dir / relative
        out_path.parent.mkdir(parents=True, exist_ok=True)

        result = engine.convert(sql_file.read_text(encoding='utf-8'), args.source, args.target, options)
        out_path.write_text(result.converted_sql + "\n", encoding='utf-8')

        if fully_converted(result):
            converted_files += 1
            status = "✓"
        else:
            status = "✗"
        print(f"  {status} {relative} "
              f"({result.total_statements - result.failed_statements}/{result.total_statements} statements, "
              f"{len(result.errors)} errors)")

    print("-" * 60)
    print(f"Converted {converted_files}/{len(sql_files)} files without failures")
    return 0 if converted_files == len(sql_files) else 1


def interactive_mode(args):
    """Read statements from stdin and convert them one at a time."""
    engine = SqlConverterEngine()
    print(f"Interactive Mode - {args.source.display_name} -> {args.target.display_name}")
    print("End each statement with ';' on its own line, 'quit' to exit")
    print("-" * 60)

    while True:
        lines: List[str] = []
        while True:
            try:
                line = input()
            except EOFError:
                print("\nGoodbye!")
                return 0
            if not lines and line.strip().lower() == 'quit':
                print("Goodbye!")
                return 0
            lines.append(line)
            if line.strip().endswith(';'):
                break

        result = engine.convert('\n'.join(lines), args.source, args.target)
        print(result.converted_sql)
        print_warnings(result, stream=sys.stdout)


def convert_inline(args):
    """Convert SQL passed on the command line."""
    try:
        engine = build_engine(args)
    except SqlSwitcherError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    result = engine.convert(args.sql, args.source, args.target)
    print(result.converted_sql)
    print_warnings(result)
    return 0 if fully_converted(result) else 1


def init_config(args):
    """Write a sample custom rules file."""
    output_path = Path(args.output)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        save_sample_config(str(output_path))
    except OSError as e:
        print(f"Error creating configuration file: {e}", file=sys.stderr)
        return 1
    print(f"✓ Configuration file created: {output_path}")
    print("Edit it to add your own in-house function conversions, then run:")
    print(f"  python sqlswitch.py convert input.sql --from oracle --to postgresql --config {output_path}")
    return 0


def validate_config_cmd(args):
    """Validate a custom rules file."""
    print(f"Validating configuration file: {args.config_file}")
    is_valid, errors = validate_config(args.config_file)
    if not is_valid:
        print("✗ Configuration is invalid!")
        for error in errors:
            print(f"  • {error}")
        return 1

    config = load_custom_rules(args.config_file)
    enabled = config.get_enabled_rules()
    print("✓ Configuration is valid!")
    print(f"  Total rules:    {len(config.rules)}")
    print(f"  Enabled rules:  {len(enabled)}")
    for rule in enabled:
        scope = ""
        if rule.source or rule.target:
            scope = f" ({rule.source.value if rule.source else '*'} -> {rule.target.value if rule.target else '*'})"
        print(f"  [{rule.priority:3d}] {rule.name}{scope}")
    return 0


def list_mappings(args):
    """Print the registered function and data type rules for a dialect pair."""
    registry = build_default_registry()
    function_rules = registry.function_rules_for(args.source, args.target)
    type_rules = registry.type_rules_for(args.source, args.target)

    print(f"{args.source.display_name} -> {args.target.display_name}")
    print(f"\n[FUNCTIONS] {len(function_rules)}")
    for rule in sorted(function_rules, key=lambda r: r.source_function):
        note = " (partial)" if rule.is_partial_support else ""
        print(f"  {rule.source_function:<16} -> {rule.target_function}{note}")
    print(f"\n[DATA TYPES] {len(type_rules)}")
    for rule in sorted(type_rules, key=lambda r: r.source_type):
        print(f"  {rule.source_type:<16} -> {rule.target_type}")
    return 0


def add_dialect_args(parser: argparse.ArgumentParser):
    parser.add_argument('--from', dest='source', type=dialect_arg, required=True,
                        help='Source dialect (mysql, postgresql, oracle, tibero)')
    parser.add_argument('--to', dest='target', type=dialect_arg, required=True,
                        help='Target dialect (mysql, postgresql, oracle, tibero)')


def main(argv: Optional[List[str]] = None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="SQL Switcher - convert SQL between MySQL, PostgreSQL, Oracle and Tibero",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Convert an Oracle script to PostgreSQL
  python sqlswitch.py convert schema.sql --from oracle --to postgresql -o schema_pg.sql

  # Convert with custom rules and options, printing a report
  python sqlswitch.py convert schema.sql --from oracle --to mysql --config rules.json --options options.json --report

  # Batch convert a directory
  python sqlswitch.py batch ./oracle ./mysql --from oracle --to mysql -r

  # Quick inline conversion
  python sqlswitch.py inline "SELECT * FROM t LIMIT 10" --from mysql --to oracle

  # List the built-in rules of a dialect pair
  python sqlswitch.py mappings --from mysql --to oracle
"""
    )
    parser.add_argument('--verbose', '-v', action='store_true', default=False,
                        help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    convert_parser = subparsers.add_parser('convert', help='Convert a SQL file')
    convert_parser.add_argument('input_file', help='Input SQL file')
    add_dialect_args(convert_parser)
    convert_parser.add_argument('--output', '-o', help='Output file path (prints to stdout if not specified)')
    convert_parser.add_argument('--config', '-c', help='Path to JSON file containing custom rules')
    convert_parser.add_argument('--options', help='Path to JSON file containing conversion options')
    convert_parser.add_argument('--report', action='store_true', default=False,
                                help='Print a detailed conversion report')
    convert_parser.set_defaults(func=convert_file)

    batch_parser = subparsers.add_parser('batch', help='Convert all SQL files in a directory')
    batch_parser.add_argument('input_dir', help='Input directory')
    batch_parser.add_argument('output_dir', help='Output directory')
    add_dialect_args(batch_parser)
    batch_parser.add_argument('--recursive', '-r', action='store_true', help='Process subdirectories')
    batch_parser.add_argument('--config', '-c', help='Path to JSON file containing custom rules')
    batch_parser.add_argument('--options', help='Path to JSON file containing conversion options')
    batch_parser.set_defaults(func=batch_convert)

    interactive_parser = subparsers.add_parser('interactive', help='Interactive conversion mode')
    add_dialect_args(interactive_parser)
    interactive_parser.set_defaults(func=interactive_mode)

    inline_parser = subparsers.add_parser('inline', help='Convert SQL given on the command line')
    inline_parser.add_argument('sql', help='SQL statement(s) to convert')
    add_dialect_args(inline_parser)
    inline_parser.add_argument('--config', '-c', help='Path to JSON file containing custom rules')
    inline_parser.set_defaults(func=convert_inline)

    init_config_parser = subparsers.add_parser('init-config', help='Generate a sample custom rules file')
    init_config_parser.add_argument('--output', '-o', default='custom_rules.json',
                                    help='Output path (default: custom_rules.json)')
    init_config_parser.set_defaults(func=init_config)

    validate_config_parser = subparsers.add_parser('validate-config', help='Validate a custom rules file')
    validate_config_parser.add_argument('config_file', help='Path to the configuration file to validate')
    validate_config_parser.set_defaults(func=validate_config_cmd)

    mappings_parser = subparsers.add_parser('mappings', help='List built-in rules for a dialect pair')
    add_dialect_args(mappings_parser)
    mappings_parser.set_defaults(func=list_mappings)

    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
