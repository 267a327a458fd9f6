#!/usr/bin/env python3
"""
codeprompt command line interface
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .config import FilterConfig
from .prompt_builder import build_prompt, parse_extension_patterns, select_files
from .tree_filter import HIDDEN_DOT_DIRECTORY, HIDDEN_EXTRA_PATTERN, TreeFilter
from .utils import configure_logging, get_logger

logger = get_logger(__name__)


class CodePromptCLI:
    """Command dispatcher for the codeprompt tool"""

    def build_parser(self) -> argparse.ArgumentParser:
        """Build the argument parser"""
        parser = argparse.ArgumentParser(
            prog='codeprompt',
            description='codeprompt - gitignore-aware file trees and prompts',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=self.get_usage_examples()
        )
        parser.add_argument('--log-level', default=None,
            help='Log level (TRACE, DEBUG, INFO, WARNING, ERROR)')
        parser.add_argument('--log-file', default=None,
            help='Also write logs to this file')
        parser.add_argument('--extra-pattern', action='append', default=[],
            metavar='PATTERN',
            help='Additional gitwildmatch exclusion pattern (repeatable)')

        subparsers = parser.add_subparsers(dest='command', help='Commands')

        # Tree command
        tree_parser = subparsers.add_parser('tree',
            help='Print the filtered directory tree')
        tree_parser.add_argument('root', nargs='?', default='.',
            help='Root directory (default: current directory)')

        # Files command
        files_parser = subparsers.add_parser('files',
            help='List visible files')
        files_parser.add_argument('root', nargs='?', default='.',
            help='Root directory (default: current directory)')
        files_parser.add_argument('--ext', default=None,
            help='Only files matching these ";" separated patterns')

        # Check command
        check_parser = subparsers.add_parser('check',
            help='Explain ignore verdicts for paths')
        check_parser.add_argument('root', help='Root directory')
        check_parser.add_argument('paths', nargs='+',
            help='Paths to check (absolute, or relative to root)')
        check_parser.add_argument('--dir', action='store_true',
            help='Treat the paths as directories')

        # Prompt command
        prompt_parser = subparsers.add_parser('prompt',
            help='Generate a prompt from visible files')
        prompt_parser.add_argument('root', nargs='?', default='.',
            help='Root directory (default: current directory)')
        prompt_parser.add_argument('--ext', default=None,
            help='Include files matching these ";" separated patterns')
        prompt_parser.add_argument('--system', default=None,
            help='System prompt text')
        prompt_parser.add_argument('--user', default=None,
            help='User prompt text')
        prompt_parser.add_argument('-o', '--output', default=None,
            help='Write the prompt to this file instead of stdout')

        return parser

    def parse_args(self, argv: Optional[List[str]] = None) -> argparse.Namespace:
        """Parse command line arguments"""
        return self.build_parser().parse_args(argv)

    def get_usage_examples(self) -> str:
        """Get usage examples for help text"""
        return """
Examples:
  codeprompt tree .                          # Show the filtered tree
  codeprompt files . --ext "*.py; *.md"      # List matching visible files
  codeprompt check . build/out.bin           # Explain why a path is ignored
  codeprompt prompt . --user "Review this" -o prompt.txt

Environment Variables:
  CODEPROMPT_LOG_LEVEL         Log level (default: WARNING)
  CODEPROMPT_LOG_FORMAT        Set to "json" for JSON logs
  CODEPROMPT_IGNORE_FILENAME   Ignore file name (default: .gitignore)
  CODEPROMPT_EXTRA_PATTERNS    Comma separated extra exclusion patterns
  CODEPROMPT_EXTENSIONS        Default ";" separated file patterns
"""

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Main entry point"""
        args = self.parse_args(argv)
        configure_logging(log_level=args.log_level, log_file=args.log_file)

        if not args.command:
            self.build_parser().print_help()
            return 0

        config = FilterConfig.from_env()
        config.extra_patterns.extend(args.extra_pattern)
        self.config = FilterConfig(**vars(config))

        handler = getattr(self, f'cmd_{args.command}', None)
        if handler is None:
            print(f"Error: Unknown command '{args.command}'", file=sys.stderr)
            return 1
        return handler(args)

    def _open_root(self, root: str) -> Optional[TreeFilter]:
        root_path = Path(root)
        if not root_path.is_dir():
            print(f"Error: not a directory: {root}", file=sys.stderr)
            return None
        tree_filter = TreeFilter(self.config)
        tree_filter.set_root(root_path)
        return tree_filter

    def _selected_files(self, tree_filter: TreeFilter, ext: Optional[str]) -> List[Path]:
        files = [entry.path for entry in tree_filter.iter_files()]
        if ext is None:
            return files
        return select_files(files, parse_extension_patterns(ext))

    # Command handlers
    def cmd_tree(self, args: argparse.Namespace) -> int:
        """Handle tree command"""
        tree_filter = self._open_root(args.root)
        if tree_filter is None:
            return 2
        print(tree_filter.render_tree())
        return 0

    def cmd_files(self, args: argparse.Namespace) -> int:
        """Handle files command"""
        tree_filter = self._open_root(args.root)
        if tree_filter is None:
            return 2
        for path in self._selected_files(tree_filter, args.ext):
            print(path.relative_to(tree_filter.root_path).as_posix())
        return 0

    def cmd_check(self, args: argparse.Namespace) -> int:
        """Handle check command"""
        tree_filter = self._open_root(args.root)
        if tree_filter is None:
            return 2

        evaluator = tree_filter.evaluator
        for raw_path in args.paths:
            path = Path(raw_path)
            if not path.is_absolute():
                path = tree_filter.root_path / path
            is_directory = args.dir or path.is_dir()

            hidden_by = tree_filter.hide_reason(path, is_directory)
            verdict = 'ignored' if hidden_by else 'visible'

            if hidden_by == HIDDEN_DOT_DIRECTORY:
                reason = 'dot directory'
            elif hidden_by == HIDDEN_EXTRA_PATTERN:
                reason = 'extra pattern'
            else:
                result = evaluator.explain(path, is_directory) if evaluator else None
                if result is not None and result.matched_rule is not None:
                    scope = result.matched_scope or '.'
                    reason = f"{result.matched_pattern} (from {scope}/{evaluator.ignore_filename})"
                else:
                    reason = 'no matching rule'
            print(f"{raw_path}: {verdict} - {reason}")
        return 0

    def cmd_prompt(self, args: argparse.Namespace) -> int:
        """Handle prompt command"""
        tree_filter = self._open_root(args.root)
        if tree_filter is None:
            return 2

        ext = args.ext if args.ext is not None else self.config.extensions
        files = self._selected_files(tree_filter, ext)
        prompt = build_prompt(files, system_prompt=args.system, user_prompt=args.user)

        if args.output:
            try:
                with open(args.output, 'w', encoding='utf-8', newline='') as f:
                    f.write(prompt)
            except OSError as e:
                print(f"Error writing output file: {e}", file=sys.stderr)
                return 3
            print(f"Wrote {len(files)} files, {len(prompt):,} characters to {args.output}",
                  file=sys.stderr)
        else:
            sys.stdout.write(prompt + '\n')
        return 0


def main():
    """Console script entry point"""
    cli = CodePromptCLI()
    sys.exit(cli.run())


if __name__ == '__main__':
    main()
