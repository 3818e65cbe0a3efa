"""
nvim-macros - command-line entry point.
Manages the macro file from a terminal.
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from nvim_macros import __version__
from nvim_macros.config import Config
from nvim_macros.errors import MacrosError
from nvim_macros.formatters import FORMATTERS, NO_FORMATTER
from nvim_macros.highlighting import highlight_content
from nvim_macros.keys import replace_termcodes
from nvim_macros.macros import MacroManager

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with its subcommands."""
    parser = argparse.ArgumentParser(
        prog="nvim-macros",
        description="nvim-macros - store and replay named Neovim macros",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  nvim-macros list                          List saved macros
  nvim-macros add greet --keys 'ihello<Esc>' Save a macro from key notation
  printf 'ihi\\033' | nvim-macros add hi --stdin
  nvim-macros show 0 --raw > keys.bin       Dump exact macro bytes
  nvim-macros delete 0                      Delete the first macro
        """
    )

    parser.add_argument('--version', action='version', version=f'nvim-macros {__version__}')
    parser.add_argument('--config-dir', type=str,
                        help='Custom configuration directory (default: ~/.nvim-macros)')
    parser.add_argument('--file', type=str, help='Macro file to use instead of the configured one')
    parser.add_argument('--formatter', choices=[NO_FORMATTER, *FORMATTERS],
                        help='External JSON formatter for this run')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')

    sub = parser.add_subparsers(dest='command', required=True)

    p_list = sub.add_parser('list', help='List saved macros')
    p_list.add_argument('--raw', action='store_true', help='Also print the encoded payload')
    p_list.add_argument('--plain', action='store_true', help='Disable highlighting')

    p_add = sub.add_parser('add', help='Save a macro')
    p_add.add_argument('name', help='Macro name')
    source = p_add.add_mutually_exclusive_group(required=True)
    source.add_argument('--keys', help="Keys in notation, e.g. 'ihello<Esc>'")
    source.add_argument('--stdin', action='store_true', help='Read raw key bytes from stdin')

    p_delete = sub.add_parser('delete', help='Delete a macro by index')
    p_delete.add_argument('index', type=int)

    p_show = sub.add_parser('show', help='Show one macro')
    p_show.add_argument('index', type=int)
    p_show.add_argument('--raw', action='store_true', help='Write the exact key bytes to stdout')
    p_show.add_argument('--register',
                        help='Register for the printed setreg command (default: default_macro_register)')

    p_search = sub.add_parser('search', help='Search macros by name or content')
    p_search.add_argument('query')
    p_search.add_argument('--fuzzy', action='store_true', help='Best fuzzy name match only')
    p_search.add_argument('--threshold', type=int, default=70, help='Fuzzy match threshold (0-100)')

    p_config = sub.add_parser('config', help='Show or change settings')
    p_config.add_argument('key', nargs='?')
    p_config.add_argument('value', nargs='?')

    return parser


def _format_line(index: int, name: str, content: str, highlight: bool) -> str:
    shown = highlight_content(content) if highlight else content
    return f"{index:>3}  {name} | {shown}"


def cmd_list(manager: MacroManager, args) -> int:
    macros = manager.list_macros()
    if not macros:
        print("No macros saved.")
        return 0
    highlight = not args.plain and sys.stdout.isatty()
    for index, macro in enumerate(macros):
        print(_format_line(index, macro.name, macro.content, highlight))
        if args.raw:
            print(f"     raw: {macro.raw}")
    return 0


def cmd_add(manager: MacroManager, args) -> int:
    if args.stdin:
        keys = sys.stdin.buffer.read()
    else:
        keys = replace_termcodes(args.keys)
    record = manager.save_macro(args.name, keys)
    print(f"Macro `{record.name}` saved.")
    return 0


def cmd_delete(manager: MacroManager, args) -> int:
    removed = manager.delete_macro(args.index)
    print(f"Macro `{removed.name}` deleted.")
    return 0


def cmd_show(manager: MacroManager, args) -> int:
    if args.raw:
        sys.stdout.buffer.write(manager.get_raw(args.index))
        sys.stdout.buffer.flush()
        return 0
    macro = manager.get(args.index)
    print(f"name:    {macro.name}")
    print(f"content: {macro.content}")
    print(f"raw:     {macro.raw}")
    print(f"load:    {manager.setreg_command(args.index, args.register)}")
    return 0


def cmd_search(manager: MacroManager, args) -> int:
    if args.fuzzy:
        match = manager.find_fuzzy(args.query, threshold=args.threshold)
        matches = [match] if match else []
    else:
        matches = manager.search(args.query)
    if not matches:
        print(f"No macros match `{args.query}`.")
        return 1
    for index, macro in matches:
        print(_format_line(index, macro.name, macro.content, False))
    return 0


def cmd_config(config: Config, args) -> int:
    if args.key is None:
        print(json.dumps(config.settings, indent=2))
    elif args.value is None:
        print(config.get(args.key))
    else:
        config.set(args.key, args.value)
        print(f"{args.key} = {config.get(args.key)}")
    return 0


COMMANDS = {
    'list': cmd_list,
    'add': cmd_add,
    'delete': cmd_delete,
    'show': cmd_show,
    'search': cmd_search,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for nvim-macros."""
    parser = build_parser()
    args = parser.parse_args(argv)

    debug = args.debug or bool(os.getenv('DEBUG'))
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format='[%(levelname)s] %(message)s',
    )

    try:
        config = Config(config_dir=args.config_dir)
        if args.command == 'config':
            return cmd_config(config, args)

        overrides = {}
        if args.file:
            overrides['json_file_path'] = args.file
        if args.formatter:
            overrides['json_formatter'] = args.formatter
        config.setup(overrides)
        if args.command == 'show' and not args.register:
            args.register = config.get('default_macro_register')

        manager = MacroManager(config=config.storage_config())
        return COMMANDS[args.command](manager, args)

    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130
    except MacrosError as e:
        print(f"[Error] {e}", file=sys.stderr)
        if debug:
            logger.exception("Command failed")
        return 1


if __name__ == '__main__':
    sys.exit(main())
