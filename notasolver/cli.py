"""Command-line interface for NotaSolver.

Usage:
    notasolver serve --port 5000
    notasolver extract strokes.json --region 200 450 400 150
    notasolver solve strokes.json --region 200 450 400 150 --timeout 60

Stroke files use the submission format described in submission.py.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import DEFAULT_HOST, DEFAULT_PORT, ServiceConfig
from .domain.equation import EquationState
from .domain.geometry import Region
from .errors import ConfigurationError
from .submission import parse_submission


def _create_argument_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog='notasolver',
        description='Solve hand-drawn math expressions via OCR and a symbolic solver',
    )
    parser.add_argument('--log-level', default=None,
                        help='Log level (default: NOTASOLVER_LOG_LEVEL or INFO)')
    parser.add_argument('--log-file', default=None, help='Also log to this file')
    sub = parser.add_subparsers(dest='command', required=True)

    serve = sub.add_parser('serve', help='Run the HTTP API')
    serve.add_argument('--host', default=DEFAULT_HOST)
    serve.add_argument('--port', type=int, default=DEFAULT_PORT)

    for name, help_text in (('extract', 'Print the sub-paths inside the region'),
                            ('solve', 'Recognize and solve the strokes inside the region')):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument('strokes', help='Path to a stroke JSON file')
        cmd.add_argument('--region', nargs=4, type=float, metavar=('X', 'Y', 'W', 'H'),
                         help='Selection region (default: region in file, else the '
                              'default snipping rectangle)')
        if name == 'solve':
            cmd.add_argument('--timeout', type=float, default=120.0,
                             help='Seconds to wait for the result (default: 120)')
    return parser


def _load_submission(args):
    region = Region(*args.region) if args.region else None
    data = json.loads(Path(args.strokes).read_text(encoding='utf-8'))
    return parse_submission(data, region=region)


def _extract_command(args) -> int:
    from .analysis.region import StrokeRegionExtractor

    region, strokes = _load_submission(args)
    stroke_set = StrokeRegionExtractor().extract(strokes, region)
    print(json.dumps({'region': region.to_dict(), 'paths': stroke_set.to_list()}))
    return 0


def _solve_command(args, config: ServiceConfig) -> int:
    from .pipeline import EquationRequestPipeline

    config.require_credentials()
    region, strokes = _load_submission(args)
    pipeline = EquationRequestPipeline.from_config(config)
    request_id = pipeline.submit(region, strokes)
    result = pipeline.wait(request_id, timeout=args.timeout)
    if result is not None and not result.is_terminal:
        pipeline.cancel(request_id)
        result = pipeline.store.get(request_id)
        print(f"Timed out after {args.timeout:.0f}s", file=sys.stderr)

    print(json.dumps(result.to_dict(), indent=2))
    if result.error:
        print(f"ERROR: {result.error.display_message}", file=sys.stderr)
    return 0 if result.state is EquationState.DONE else 1


def _serve_command(args) -> int:
    from .web import app
    from . import routes  # noqa: F401 - registers routes

    app.run(host=args.host, port=args.port, threaded=True)
    return 0


def main(argv=None) -> int:
    """Entry point for the ``notasolver`` console script."""
    from .web import configure_logging

    parser = _create_argument_parser()
    args = parser.parse_args(argv)

    try:
        config = ServiceConfig.from_env()
        configure_logging(level=args.log_level or config.log_level, log_file=args.log_file)

        if args.command == 'serve':
            return _serve_command(args)
        if args.command == 'extract':
            return _extract_command(args)
        return _solve_command(args, config)
    except ConfigurationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    except (OSError, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2


if __name__ == '__main__':
    sys.exit(main())
