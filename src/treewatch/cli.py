import argparse
import json
import logging
import sys
import textwrap
import tomllib
from functools import wraps

from . import Monitor, Processor, Settings
from .reconcile.engine import reconcile
from .reconcile.report import format_timestamp
from .report.writer import render_report, NO_CHANGES_MESSAGE
from .snapshot.baseline import BaselineStore
from .utils.profiling import profile_main


def needs_processor(func):
    """Decorator for commands that hash files.

    The decorated function will receive (processor, settings, args).
    The wrapper function takes (load_settings_fn, args), calls load_settings_fn and creates Processor.
    """
    @wraps(func)
    def wrapper(load_settings_fn, args):
        settings = load_settings_fn()
        with Processor(settings.concurrency) as processor:
            return func(processor, settings, args)
    return wrapper


def no_processor(func):
    """Decorator for commands that only read the configured baseline.

    The decorated function will receive (settings, args).
    The wrapper function takes (load_settings_fn, args) and calls load_settings_fn but doesn't create Processor.
    """
    @wraps(func)
    def wrapper(load_settings_fn, args):
        return func(load_settings_fn(), args)
    return wrapper


def no_settings(func):
    """Decorator for commands that don't need the settings.

    The decorated function will receive (args).
    The wrapper function takes (load_settings_fn, args) but doesn't call load_settings_fn or create Processor.
    """
    @wraps(func)
    def wrapper(load_settings_fn, args):
        return func(args)
    return wrapper


@profile_main
def treewatch_main():
    parser = argparse.ArgumentParser(
        prog='treewatch',
        description='Periodically inventory directory trees and report files added, removed, moved, changed or '
                    'duplicated since the previous scan.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent('''
            Examples:
              TREEWATCH_ROOTS="/srv/data;/home/shared" treewatch run
              treewatch --config settings.toml run --once
              treewatch diff old.json new.json
            ''').strip()
    )
    parser.add_argument(
        '--config',
        metavar='PATH',
        help='Path to a TOML settings file. If not provided, uses TREEWATCH_CONFIG or ~/.treewatch/settings.toml.')
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Log progress information to stderr')
    parser.add_argument(
        '--log-file',
        metavar='PATH',
        help='Path to log file for operation logging. If not provided, uses logging.path from the settings file or '
             'stderr.')
    parser.add_argument(
        '--log-level',
        metavar='LEVEL',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Defaults to INFO with --log-file or --verbose, '
             'WARNING otherwise.')
    subparsers = parser.add_subparsers(
        dest='command',
        required=True,
        title='Commands',
        description='Available commands',
        help='Use "treewatch COMMAND --help" for command-specific help'
    )

    parser_run = subparsers.add_parser(
        'run',
        help='Watch the configured roots until interrupted',
        description='Loads the baseline, scans the watched roots and reports changes immediately, then repeats after '
                    'every polling interval. Each cycle replaces the baseline with the new snapshot.')
    parser_run.add_argument(
        '--once',
        action='store_true',
        help='Run a single cycle and exit')
    parser_run.set_defaults(method=_run)

    parser_scan = subparsers.add_parser(
        'scan',
        help='Take a snapshot of the watched roots without reconciling',
        description='Scans and fingerprints the watched roots and prints the snapshot as JSON, or saves it in '
                    'baseline format with --output. The baseline is not modified.')
    parser_scan.add_argument(
        '--output',
        metavar='FILE',
        help='Save the snapshot to FILE instead of printing it')
    parser_scan.set_defaults(method=_scan)

    parser_diff = subparsers.add_parser(
        'diff',
        help='Reconcile two saved snapshots',
        description='Compares two snapshot files in baseline format and prints the change report. Files are not '
                    're-hashed; the stored hashes of CURRENT are trusted.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent('''
            Examples:
              treewatch scan --output monday.json
              treewatch scan --output tuesday.json
              treewatch diff monday.json tuesday.json
            ''').strip())
    parser_diff.add_argument(
        'previous',
        metavar='PREVIOUS',
        help='Snapshot file treated as the baseline')
    parser_diff.add_argument(
        'current',
        metavar='CURRENT',
        help='Snapshot file treated as the current scan')
    parser_diff.set_defaults(method=_diff)

    parser_inspect = subparsers.add_parser(
        'inspect',
        help='Display the records of the persisted baseline',
        description='Prints one line per baseline record: path, owner, creation time, modification time and content '
                    'hash, separated by tabs.')
    parser_inspect.set_defaults(method=_inspect)

    args = parser.parse_args()

    log_level = args.log_level
    if log_level is None:
        log_level = 'INFO' if args.log_file or args.verbose else 'WARNING'

    if args.log_file:
        logging.basicConfig(
            filename=args.log_file,
            level=getattr(logging, log_level),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
    elif args.verbose or args.log_level:
        logging.basicConfig(
            level=getattr(logging, log_level),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    def load_settings():
        return Settings(args.config)

    try:
        return args.method(load_settings, args)
    except (OSError, ValueError, tomllib.TOMLDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _excluded_paths(args):
    return [args.log_file] if args.log_file else []


@needs_processor
def _run(processor: Processor, settings: Settings, args):
    with Monitor(settings, processor, excluded_paths=_excluded_paths(args)) as monitor:
        if not args.log_file and not monitor.configure_logging_from_settings() and not logging.root.handlers:
            logging.basicConfig(
                level=logging.WARNING,
                format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )

        try:
            monitor.run_forever(max_cycles=1 if args.once else None)
        except KeyboardInterrupt:
            print("Interrupted", file=sys.stderr)
            sys.exit(130)


@needs_processor
def _scan(processor: Processor, settings: Settings, args):
    with Monitor(settings, processor, excluded_paths=_excluded_paths(args)) as monitor:
        snapshot = monitor.scan()

    if args.output:
        BaselineStore(args.output).save(snapshot)
    else:
        json.dump(snapshot.to_list(), sys.stdout, indent=2)
        print()


@no_settings
def _diff(args):
    snapshots = []
    for path in (args.previous, args.current):
        snapshot = BaselineStore(path).load()
        if snapshot is None:
            print(f"Error: cannot load snapshot {path}", file=sys.stderr)
            sys.exit(1)
        snapshots.append(snapshot)

    report = reconcile(*snapshots)
    lines = render_report(report)
    if not report.has_changes:
        print(NO_CHANGES_MESSAGE)
    for line in lines:
        print(line)


@no_processor
def _inspect(settings: Settings, args):
    snapshot = BaselineStore(settings.baseline_path).load()
    if snapshot is None:
        print(f"Error: no baseline at {settings.baseline_path}", file=sys.stderr)
        sys.exit(1)

    for record in snapshot:
        print('\t'.join([
            record.path,
            record.owner,
            format_timestamp(record.created_ns),
            format_timestamp(record.modified_ns),
            record.content_hash
        ]))


if __name__ == '__main__':
    treewatch_main()
