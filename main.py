import argparse
import signal
import sys

from certificate_maker import BatchProcessor, NameRecord, RenderConfig, analyze, format_profile
from certificate_maker.config import CONFIG
from certificate_maker.errors import (
    AnalysisError,
    CertificateMakerError,
    ConfigurationError,
    FatalSetupError,
    NameSourceError,
)
from certificate_maker.logger import get_logger, set_verbose
from utils.helpers import create_sample_csv, format_csv_report, inspect_csv

logger = get_logger(__name__) # Logger for main.py specific messages

EXIT_OK = 0
EXIT_ROW_FAILURES = 1
EXIT_FATAL = 2


def _add_render_options(parser):
    """Options shared by 'generate' and 'single'."""
    defaults = CONFIG['render']
    parser.add_argument("--template", required=True, help="Template image (PNG preferred, JPEG accepted)")
    parser.add_argument("--font", required=True, help="Font file (.ttf, .otf, .woff, .woff2)")
    parser.add_argument("--size", type=float, default=defaults['default_font_size'],
                        help=f"Font size in points (default {defaults['default_font_size']:g})")
    parser.add_argument("--color", default=defaults['default_color'],
                        help="Hex color (#RRGGBB / #RRGGBBAA) or a name like 'red' (default %(default)s)")
    parser.add_argument("--position", default=defaults['default_position'],
                        help="'center', 'x,y' (top-left) or 'center@x,y' (text centered on point)")
    parser.add_argument("--format", dest="output_format", default=None, choices=['png', 'jpg', 'jpeg'],
                        help="Output format (default: same as the template)")


def _build_config(args, output_dir=None, parallelism=1):
    return RenderConfig.from_options(
        font_path=args.font,
        font_size=args.size,
        color=args.color,
        position=args.position,
        output_dir=output_dir,
        parallelism=parallelism,
        output_format=args.output_format,
    )


# --- Command handlers ---

def cmd_generate(args):
    try:
        records = NameRecord.from_csv(args.csv)
        config = _build_config(args, output_dir=args.output_dir, parallelism=args.parallelism)
    except (NameSourceError, ConfigurationError, FatalSetupError) as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FATAL

    processor = BatchProcessor()

    def _handle_stop(signum, frame):
        logger.warning(f"Received signal {signum}.")
        processor.request_stop()

    previous_handler = signal.signal(signal.SIGTERM, _handle_stop)
    try:
        report = processor.run(config, args.template, records)
    except FatalSetupError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FATAL
    finally:
        signal.signal(signal.SIGTERM, previous_handler)

    print(report.summary())
    print(f"Certificates saved in: {config.output_dir}")
    return EXIT_OK if not report.failures else EXIT_ROW_FAILURES


def cmd_single(args):
    try:
        config = _build_config(args, output_dir=".")
        path = BatchProcessor(parallelism=1).render_one(config, args.template, args.text, args.output)
    except CertificateMakerError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FATAL
    print(f"Saved to: {path}")
    return EXIT_OK


def cmd_analyze(args):
    exit_code = EXIT_OK
    for path in args.paths:
        try:
            profile = analyze(path)
        except AnalysisError as e:
            print(f"Error: {e}", file=sys.stderr)
            exit_code = EXIT_ROW_FAILURES
            continue
        print(format_profile(profile))
        print()
    return exit_code


def cmd_sample_csv(args):
    try:
        path = create_sample_csv(args.path, CONFIG['samples']['names'])
    except OSError as e:
        print(f"Error creating sample CSV: {e}", file=sys.stderr)
        return EXIT_FATAL
    print(f"Sample CSV created: {path}")
    return EXIT_OK


def cmd_debug_csv(args):
    try:
        info = inspect_csv(args.path)
    except NameSourceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FATAL
    print(format_csv_report(info))
    if info['parse_error'] or info['name_column'] is None:
        return EXIT_ROW_FAILURES
    return EXIT_OK


def build_parser():
    parser = argparse.ArgumentParser(description="Render a name from each CSV row onto a certificate template")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command")

    generate_parser = subparsers.add_parser("generate", help="Generate one certificate per CSV row")
    generate_parser.add_argument("--csv", required=True, help="CSV file with a 'Name' column")
    _add_render_options(generate_parser)
    generate_parser.add_argument("--output-dir", default=CONFIG['render']['default_output_dir'],
                                 help="Directory for the generated images (default %(default)s)")
    generate_parser.add_argument("--parallelism", type=int, default=CONFIG['batch']['parallelism'],
                                 help="Number of worker threads (default %(default)s)")
    generate_parser.set_defaults(func=cmd_generate)

    single_parser = subparsers.add_parser("single", help="Add text to a single image")
    _add_render_options(single_parser)
    single_parser.add_argument("--text", required=True, help="Text to add")
    single_parser.add_argument("--output", required=True, help="Output image path")
    single_parser.set_defaults(func=cmd_single)

    analyze_parser = subparsers.add_parser("analyze", help="Analyze image or font files")
    analyze_parser.add_argument("paths", nargs="+", help="Image or font files")
    analyze_parser.set_defaults(func=cmd_analyze)

    sample_parser = subparsers.add_parser("sample-csv", help="Create a sample names CSV")
    sample_parser.add_argument("path", nargs="?", default=CONFIG['samples']['csv_path'],
                               help="Where to write the CSV (default %(default)s)")
    sample_parser.set_defaults(func=cmd_sample_csv)

    debug_csv_parser = subparsers.add_parser("debug-csv", help="Show how a CSV file is read")
    debug_csv_parser.add_argument("path", help="CSV file to inspect")
    debug_csv_parser.set_defaults(func=cmd_debug_csv)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        set_verbose(True)
    if not getattr(args, "func", None):
        parser.print_help()
        return EXIT_FATAL
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
