import argparse
import logging
import sys

from tqdm import tqdm

from .config import VerifierSettings
from .exception_handler import ErrorHandler
from .matcher import VerificationStatus
from .orchestration import VerificationOrchestrator
from .runtime import RUNTIMES, runtime_factory
from .snippet import build_records
from .utils import load_raw_snippets


logger = logging.getLogger("snippet_verifier")


def build_parser(settings: VerifierSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snippet-verifier",
        description="Run documentation snippets and check their expected-output comments",
    )
    parser.add_argument(
        "manifest",
        help="Snippet manifest (.json/.jsonl), a directory of manifests, or a glob pattern",
    )
    parser.add_argument(
        "--runtime",
        choices=sorted(RUNTIMES),
        default=settings.runtime,
        help=f"Language runtime used to execute snippets (default: {settings.runtime})",
    )
    parser.add_argument(
        "--timeout-ms",
        type=int,
        default=settings.timeout_ms,
        help=f"Per-snippet time ceiling in milliseconds (default: {settings.timeout_ms})",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=settings.max_concurrency,
        help=f"Isolation groups verified in parallel (default: {settings.max_concurrency})",
    )
    parser.add_argument(
        "--node-binary",
        default=settings.node_binary,
        help=f"Node executable for the node runtime (default: {settings.node_binary})",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="Write the JSON report to this path (if not specified, prints to stdout)",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help=f"Logging level (default: {settings.log_level})",
    )
    return parser


def main(argv=None) -> int:
    settings = VerifierSettings.from_env()
    args = build_parser(settings).parse_args(argv)

    error_handler = ErrorHandler(log_level=args.log_level)

    if args.timeout_ms < 1 or args.concurrency < 1:
        print("Error: --timeout-ms and --concurrency must be positive", file=sys.stderr)
        return 1

    try:
        raw_snippets = load_raw_snippets(args.manifest)
        records = build_records(raw_snippets)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if not records:
        print("❌ No snippets found in manifest", file=sys.stderr)
        return 1

    options = {"node_binary": args.node_binary} if args.runtime == "node" else {}
    orchestrator = VerificationOrchestrator(
        runtime_factory(args.runtime, **options),
        timeout_ms=args.timeout_ms,
        max_concurrency=args.concurrency,
        error_handler=error_handler,
    )

    progress = tqdm(total=len(records), unit="snippet", file=sys.stderr)

    def on_snippet_complete(snippet_id: int, status: VerificationStatus, index: int, total: int) -> None:
        if status in (VerificationStatus.FAIL, VerificationStatus.TIMEOUT):
            tqdm.write(f"  ✗ snippet #{snippet_id}: {status.value}", file=sys.stderr)
        progress.update(1)

    try:
        report = orchestrator.run(records, on_snippet_complete=on_snippet_complete)
    except KeyboardInterrupt:
        print("\n⚠️ Verification interrupted", file=sys.stderr)
        return 1
    finally:
        progress.close()

    output_text = report.model_dump_json(indent=2)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as file_handle:
            file_handle.write(output_text)
        tqdm.write(f"✅ Report saved to: {args.output}", file=sys.stderr)
    else:
        print(output_text)

    summary = report.summary
    tqdm.write(
        f"{summary.passed} passed, {summary.failed} failed, {summary.skipped} skipped, "
        f"{summary.timeout} timed out, {summary.internal_error} internal errors",
        file=sys.stderr,
    )

    error_report = error_handler.format_error_report()
    if error_report:
        tqdm.write(error_report, file=sys.stderr)

    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
