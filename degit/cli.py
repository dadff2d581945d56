import argparse
import sys

from degit.core import FetchError, default_destination, degit
from degit.errors import DestinationError
from degit.providers.hosts import is_valid_source, resolve
from degit.utils.filesystem import check_destination, is_valid_destination, setup_logging
from degit.utils.progress import NullProgress, TqdmProgress


def main():
    parser = argparse.ArgumentParser(
        prog="degit",
        description="Download the contents of a git repository without cloning it."
    )

    parser.add_argument(
        "source",
        type=is_valid_source,
        help="Source repository (e.g. owner/repo, gitlab:owner/repo or https://github.com/owner/repo.git)"
    )
    parser.add_argument(
        "dest",
        nargs="?",
        type=is_valid_destination,
        help="Download location (default: ./<project>)",
        default=None
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Increase log verbosity (repeatable)"
    )
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Do not show a progress bar"
    )

    args = parser.parse_args()
    setup_logging(args.verbose)

    repo = resolve(args.source)
    dest = args.dest
    if dest is None:
        dest = str(default_destination(repo))
        try:
            check_destination(dest)
        except DestinationError as e:
            parser.error(f"argument dest: {e}")
    print(f"Downloading {repo} to {dest}")

    progress = NullProgress() if args.quiet else TqdmProgress()
    try:
        result = degit(source=args.source, dest=dest, progress=progress)
    except FetchError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if result.skipped:
        print(f"Warning: {len(result.skipped)} entries could not be extracted", file=sys.stderr)
    print("Done.")


if __name__ == "__main__":
    main()
