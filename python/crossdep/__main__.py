"""Main CLI entry point for crossdep."""

import argparse
import logging
import sys
from typing import Optional

from . import __version__
from .api_client import DepotClient
from .commands.downstream import show_downstream
from .commands.entities import build_test_entities
from .commands.upstream import show_upstream
from .config import Settings
from .exceptions import CrossDepError, NotFound
from .parsers import load_workspace_file
from .resolver import DependencyResolver

logger = logging.getLogger(__name__)

LOG_LEVELS = {'TRACE': logging.DEBUG, 'WARN': logging.WARNING}


def setup_logging(verbose: bool = False, log_level: Optional[str] = None):
    """Configure logging based on verbosity flags."""
    if log_level:
        level = LOG_LEVELS.get(log_level.upper()) or getattr(logging, log_level.upper(), logging.WARNING)
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s'
    )


def build_resolver(args) -> DependencyResolver:
    """Wire a resolver from a snapshot file or from the metadata service."""
    settings = Settings.from_env().with_overrides(
        depot_url=args.depot_url,
        timeout=args.timeout,
        retries=args.retries,
        max_workers=args.max_workers,
    )
    if args.workspace_file:
        provider, source = load_workspace_file(args.workspace_file)
        logger.info(f"Using workspace snapshot {args.workspace_file}")
        return DependencyResolver(provider, source, max_workers=settings.max_workers)

    logger.info(f"Using metadata service at {settings.depot_url}")
    return DependencyResolver(DepotClient(settings), max_workers=settings.max_workers)


def _close(resolver: DependencyResolver) -> None:
    close = getattr(resolver.provider, 'close', None)
    if close:
        close()


def handle_upstream(args) -> str:
    resolver = build_resolver(args)
    try:
        return show_upstream(resolver, args.project_version, args.transitive, args.output_format)
    finally:
        _close(resolver)


def handle_downstream(args) -> str:
    if not args.workspace_file:
        raise ValueError("downstream requires --workspace-file")
    resolver = build_resolver(args)
    try:
        return show_downstream(resolver, args.project_id)
    finally:
        _close(resolver)


def handle_test_entities(args) -> str:
    if args.revision is None and args.upstream_version is None and not args.workspace_file:
        raise ValueError("test-entities needs --version, or a --workspace-file for revisions")
    resolver = build_resolver(args)
    try:
        return build_test_entities(
            resolver,
            args.upstream,
            args.downstream,
            revision=args.revision,
            version=args.upstream_version,
            workspace=args.workspace,
            deps_only=args.deps_only,
            output_format=args.output_format,
        )
    finally:
        _close(resolver)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--workspace-file',
                        help='JSON snapshot of versions and projects (instead of the metadata service)')
    parser.add_argument('--depot-url', help='Metadata service base URL (env: CROSSDEP_DEPOT_URL)')
    parser.add_argument('--timeout', type=int, help='Request timeout in seconds')
    parser.add_argument('--retries', type=int, help='Transport retries per request')
    parser.add_argument('--max-workers', type=int, help='Concurrent entity fetches')
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')
    parser.add_argument('--loglevel',
                        choices=['TRACE', 'DEBUG', 'INFO', 'WARN', 'ERROR'],
                        help='Set log level')


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='crossdep',
        description='Cross-project dependency resolution for model testing'
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Subcommands')

    upstream_parser = subparsers.add_parser('upstream', help='List dependencies of a published version')
    upstream_parser.add_argument('project_version', help='group:artifact:version')
    upstream_parser.add_argument('--transitive', action='store_true',
                                 help='Include transitive dependencies')
    upstream_parser.add_argument('--format', dest='output_format', default='list',
                                 choices=['list', 'json', 'sbom'],
                                 help='Output format (list, json, sbom). Default: list')
    _add_common_arguments(upstream_parser)
    upstream_parser.set_defaults(func=handle_upstream)

    downstream_parser = subparsers.add_parser('downstream', help='Find projects depending on a project')
    downstream_parser.add_argument('project_id', help='group:artifact')
    _add_common_arguments(downstream_parser)
    downstream_parser.set_defaults(func=handle_downstream)

    entities_parser = subparsers.add_parser(
        'test-entities', help='Build entities for testing a downstream against upstream changes')
    entities_parser.add_argument('upstream', help='Upstream project id (group:artifact)')
    entities_parser.add_argument('downstream', help='Downstream project version (group:artifact:version)')
    ref_group = entities_parser.add_mutually_exclusive_group()
    ref_group.add_argument('--revision', help='Upstream revision id (default: current)')
    ref_group.add_argument('--version', dest='upstream_version', help='Published upstream version')
    entities_parser.add_argument('--workspace', help='Upstream workspace id')
    entities_parser.add_argument('--deps-only', action='store_true',
                                 help='Print the reconciled dependency set only')
    entities_parser.add_argument('--format', dest='output_format', default='paths',
                                 choices=['paths', 'json'],
                                 help='Output format (paths, json). Default: paths')
    _add_common_arguments(entities_parser)
    entities_parser.set_defaults(func=handle_test_entities)

    return parser


def main(argv=None):
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose, args.loglevel)

    try:
        output = args.func(args)
    except NotFound as e:
        print(f"Not found: {e}", file=sys.stderr)
        return 1
    except CrossDepError as e:
        logger.debug(f"{type(e).__name__}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    sys.stdout.write(output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
