"""targethash CLI: generate target hash snapshots and compare them."""

import argparse
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


def _read_seed_filepaths(path: Optional[Path]) -> List[str]:
    """One path per line; blank lines ignored."""
    if path is None:
        return []
    lines = path.read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip()]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main():
    """Main CLI entry point for targethash commands."""
    try:
        targethash_version = get_version("targethash")
    except PackageNotFoundError:
        targethash_version = "dev"

    parser = argparse.ArgumentParser(
        prog="targethash",
        description="targethash: Deterministic impacted-target detection for bazel workspaces"
    )
    parser.add_argument("--version", action="version", version=f"targethash {targethash_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parent_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log progress to stderr (overrides TARGETHASH_LOG_LEVEL)."
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # generate-hashes command
    hashes_parser = subparsers.add_parser(
        "generate-hashes",
        help="Compute the digest of every target and write the snapshot as JSON",
        parents=[parent_parser]
    )
    hashes_parser.add_argument(
        "output",
        type=Path,
        help="Path to write the snapshot JSON to"
    )
    hashes_parser.add_argument(
        "--workspace",
        "-w",
        type=Path,
        default=None,
        help="Path to the bazel workspace (required unless --query-file is given)"
    )
    hashes_parser.add_argument(
        "--query-file",
        type=Path,
        default=None,
        help="Saved `bazel query --output=streamed_jsonproto` output to read instead of running bazel"
    )
    hashes_parser.add_argument(
        "--seed-filepaths",
        type=Path,
        default=None,
        help="File listing seed file paths, one per line; their content is folded into every digest"
    )
    hashes_parser.add_argument(
        "--bazel-path",
        default=None,
        help="bazel executable (default: TARGETHASH_BAZEL_PATH or 'bazel')"
    )
    hashes_parser.add_argument(
        "--query-expression",
        default=None,
        help="Query expression (default: TARGETHASH_QUERY_EXPRESSION or '//...:all-targets')"
    )
    hashes_parser.add_argument(
        "--content-hashes",
        action="store_true",
        default=None,
        help="Fold on-disk source file content into source digests (needs --workspace)"
    )
    hashes_parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Fail when a generated file's generating rule is missing from the query result"
    )

    # get-impacted-targets command
    impacted_parser = subparsers.add_parser(
        "get-impacted-targets",
        help="List targets that are new or whose digest changed between two snapshots",
        parents=[parent_parser]
    )
    impacted_parser.add_argument(
        "--start",
        dest="start_hashes",
        type=Path,
        required=True,
        help="Snapshot JSON before the change"
    )
    impacted_parser.add_argument(
        "--end",
        dest="end_hashes",
        type=Path,
        required=True,
        help="Snapshot JSON after the change"
    )
    impacted_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Write the result to this file instead of stdout"
    )
    impacted_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit the full impact report as JSON instead of one target per line"
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Lazy imports: only load pydantic models and the kernel once a command runs
    from .config import load_settings

    try:
        settings = load_settings(
            bazel_path=getattr(args, "bazel_path", None),
            query_expression=getattr(args, "query_expression", None),
            content_hashes=getattr(args, "content_hashes", None),
            strict_generated_files=getattr(args, "strict", None),
            log_level="INFO" if args.verbose else None,
        )
    except ValueError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)
    _configure_logging(settings.log_level)

    if args.command == "generate-hashes":
        from .api import client_from_settings
        from .kernel.propagation import DigestError
        from .query import QueryError
        from ._internal.io.snapshot import write_snapshot

        try:
            workspace = args.workspace.resolve() if args.workspace else None
            client = client_from_settings(settings, workspace=workspace, query_file=args.query_file)
            seed_filepaths = _read_seed_filepaths(args.seed_filepaths)
            snapshot = client.hash_all_targets(seed_filepaths)
            output = write_snapshot(args.output, snapshot)
            logger.info("Wrote %d digests to %s", len(snapshot), output)

            if not args.quiet:
                print("[OK] Hashes generated")
                print(f"  Targets: {len(snapshot)}")
                print(f"  Seed files: {len(seed_filepaths)}")
                print(f"  Snapshot: {output}")
            sys.exit(0)
        except (OSError, ValueError, QueryError, DigestError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        except Exception as e:
            print(f"Unexpected error: {e}", file=sys.stderr)
            import traceback
            traceback.print_exc()
            sys.exit(1)
    elif args.command == "get-impacted-targets":
        from .api import diff_snapshots
        from ._internal.canonical_json import canonical_dumps
        from ._internal.io.snapshot import load_snapshot

        try:
            start = load_snapshot(args.start_hashes)
            end = load_snapshot(args.end_hashes)
            report = diff_snapshots(start, end)

            if args.json:
                content = canonical_dumps(report.model_dump(), indent=2) + "\n"
            else:
                content = "".join(f"{name}\n" for name in report.impacted_targets)

            if args.out is not None:
                args.out.parent.mkdir(parents=True, exist_ok=True)
                args.out.write_text(content, encoding="utf-8")
                if not args.quiet:
                    print("[OK] Impact analysis complete")
                    print(f"  Impacted: {report.counts['impacted']}")
                    print(f"  Report: {args.out}")
            else:
                sys.stdout.write(content)
            sys.exit(0)
        except (OSError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        except Exception as e:
            print(f"Unexpected error: {e}", file=sys.stderr)
            import traceback
            traceback.print_exc()
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
