import sys
import shutil
import logging
import argparse
from .config import FlareSettings
from .core.archive import create_flare
from .collectors.providers import default_collaborators

logger = logging.getLogger("flare_agent")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="flare-agent", description="Collect a scrubbed diagnostic archive of the agent")
    parser.add_argument("--local", action="store_true", help="Do not contact the running agent")
    parser.add_argument("--out", default=None, help="Archive path (default: temp dir, timestamped)")
    parser.add_argument("--config", default=None, help="Agent configuration file")
    parser.add_argument("--log-file", default=None, help="Agent log file; its whole directory is collected")
    parser.add_argument("--keep-workspace", action="store_true", help="Leave the unzipped workspace on disk")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    overrides = {}
    if args.config:
        overrides["CONFIG_FILE"] = args.config
    if args.log_file:
        overrides["LOG_FILE"] = args.log_file
    settings = FlareSettings(**overrides)

    logger.info("Starting flare collection")
    try:
        path, report = create_flare(settings, default_collaborators(settings), local=args.local, archive_path=args.out)
    except OSError as e:
        logger.critical(f"Could not create the flare archive: {e}")
        return 1

    if not args.keep_workspace:
        shutil.rmtree(report.temp_dir, ignore_errors=True)

    for result in report.results:
        line = f"  {result.name:<24} {result.status.value}"
        if result.reason:
            line += f"  ({result.reason.splitlines()[0]})"
        print(line)
    print(f"Flare archive: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
