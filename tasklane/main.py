#!/usr/bin/env python3
"""
tasklane - ordering and data-reconciliation engine for a personal task manager.

Command-line entry point: export and import backups, preview imports, and
reorder or list tasks in the local data file.
"""

import argparse
import logging
import sys

from tasklane.core.config import load_config, get_default_config_path
from tasklane.core.models import ConflictResolution, DateBucket
from tasklane.commands import (
    ExportCommand,
    AnalyzeCommand,
    ImportCommand,
    ListCommand,
    ReorderCommand,
)
from tasklane.commands.importing import CATEGORY_FLAGS


def main(argv=None):
    """Main entry point for tasklane."""
    parser = argparse.ArgumentParser(
        description="Ordering and backup reconciliation for tasklane data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tasklane list                          # Grouped view of active tasks
  tasklane reorder TASK --over OTHER     # Move TASK onto OTHER's slot
  tasklane export -o backup.json         # Write a backup
  tasklane analyze backup.json           # Preview an import
  tasklane import backup.json            # Merge a backup (prompts on conflicts)
        """
    )

    default_config = get_default_config_path()

    parser.add_argument(
        '--config',
        help=f'Path to configuration file (default: {default_config})',
        default=None
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Verbose output'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Export command
    export_parser = subparsers.add_parser('export', help='Export all data as JSON')
    export_parser.add_argument(
        '--output', '-o',
        metavar='PATH',
        help='File to write (default: print to stdout)'
    )

    # Shared import arguments
    def add_import_arguments(sub):
        sub.add_argument('file', help='Backup file to import')
        sub.add_argument(
            '--replace-all',
            action='store_true',
            help='Clear included local collections before importing'
        )
        sub.add_argument(
            '--exclude',
            action='append',
            choices=CATEGORY_FLAGS,
            default=[],
            help='Category to leave out (repeatable)'
        )

    analyze_parser = subparsers.add_parser('analyze', help='Preview what an import would change')
    add_import_arguments(analyze_parser)

    import_parser = subparsers.add_parser('import', help='Import a backup')
    add_import_arguments(import_parser)
    import_parser.add_argument(
        '--strategy',
        choices=[resolution.value for resolution in ConflictResolution],
        help='Default conflict strategy (default: from config, keep-newer)'
    )
    import_parser.add_argument(
        '--yes', '-y',
        action='store_true',
        help='Do not prompt; settle every conflict with the default strategy'
    )

    # Reorder command
    reorder_parser = subparsers.add_parser('reorder', help='Move a task onto the slot of another')
    reorder_parser.add_argument('task_id', help='Task to move')
    reorder_parser.add_argument(
        '--over',
        required=True,
        metavar='TASK_ID',
        help='Task whose position the moved task takes'
    )
    reorder_parser.add_argument(
        '--view',
        default='all',
        help="View the move happens in: 'all', 'list-<name>' or 'tag-<name>'"
    )
    reorder_parser.add_argument(
        '--bucket',
        choices=[bucket.value for bucket in DateBucket],
        help='Date group to drop into (default: the group of --over)'
    )

    # List command
    list_parser = subparsers.add_parser('list', help='List active tasks')
    list_parser.add_argument(
        '--view',
        default='all',
        help="'all', 'list-<name>' or 'tag-<name>'"
    )

    args = parser.parse_args(argv)

    # Configure logging if verbose mode is enabled
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    # Show help if no command specified
    if not args.command:
        parser.print_help()
        return 1

    try:
        config = load_config(args.config)

        if args.verbose:
            actual_config_path = args.config if args.config else get_default_config_path()
            print(f"Using config: {actual_config_path}")

        if args.command == 'export':
            cmd = ExportCommand(config, verbose=args.verbose)
            success = cmd.run(output=args.output)

        elif args.command == 'analyze':
            cmd = AnalyzeCommand(config, verbose=args.verbose)
            success = cmd.run(args.file, replace_all=args.replace_all, exclude=args.exclude)

        elif args.command == 'import':
            cmd = ImportCommand(config, verbose=args.verbose)
            success = cmd.run(
                args.file,
                strategy=args.strategy,
                replace_all=args.replace_all,
                exclude=args.exclude,
                interactive=not args.yes,
            )

        elif args.command == 'reorder':
            cmd = ReorderCommand(config, verbose=args.verbose)
            success = cmd.run(args.task_id, args.over, view=args.view, bucket=args.bucket)

        elif args.command == 'list':
            cmd = ListCommand(config, verbose=args.verbose)
            success = cmd.run(view=args.view)

        else:
            print(f"Unknown command '{args.command}'.")
            return 1

        return 0 if success else 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        return 130
    except Exception as e:
        print(f"Error: {e}")
        if not args.verbose:
            print("Re-run with --verbose for more detail.")
        else:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
