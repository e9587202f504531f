from __future__ import annotations

"""
Command Line Interface (CLI) Application Controller.

Orchestrates the CLI lifecycle: logging bootstrap, configuration merging
(defaults, persisted settings, command-line overrides), dispatch to the
build pipeline, the client loader or the snapshot inspector, and result
rendering.
"""

import json
import os
import sys
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from blitzpack.core.loader.client import ClientLoader
from blitzpack.core.loader.local_runtime import LocalSandbox
from blitzpack.core.loader.runtime import BrowserFrame, ContentFrame
from blitzpack.core.pipeline.engine import run_pipeline
from blitzpack.core.pipeline.validator import validate_config
from blitzpack.core.snapshot.decoder import decode_snapshot, iter_entries
from blitzpack.core.snapshot.splitter import count_chunks, join_chunks
from blitzpack.domain.config import get_default_config, load_config, save_config
from blitzpack.domain.errors import BlitzpackError
from blitzpack.domain.snapshot_models import PipelineResult
from blitzpack.infra.fs import normalize_path
from blitzpack.infra.logging import LoggingConfig, configure_logging, get_logger
from blitzpack.interface.cli import args as cli_args

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130

# -----------------------------------------------------------------------------
# ENTRYPOINT ORCHESTRATOR
# -----------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    """
    Execute the main CLI application workflow.

    Args:
        argv: Optional list of command line arguments. Defaults to sys.argv.

    Returns:
        int: Process exit code (0 for success, non-zero for failure).
    """
    parser = cli_args.build_parser()
    args = parser.parse_args(argv)

    configure_logging(LoggingConfig.for_cli(debug=args.debug, log_file=args.log_file))

    if args.command == "build":
        return _run_build(args)
    if args.command == "load":
        return _run_load(args)
    if args.command == "inspect":
        return _run_inspect(args)

    raise AssertionError(f"Unhandled command: {args.command}")

# -----------------------------------------------------------------------------
# COMMANDS
# -----------------------------------------------------------------------------

def _run_build(args: Any) -> int:
    logger.debug("Build requested. Resolving configuration hierarchy...")
    base_conf = get_default_config() if args.use_defaults else load_config()
    raw_conf = _merge_config(base_conf, cli_args.args_to_overrides(args))

    clean_conf, warnings = validate_config(raw_conf, strict=False)
    for w in warnings:
        logger.warning(f"Configuration Constraint: {w}")

    if args.dump_config:
        print(json.dumps(clean_conf, ensure_ascii=False, indent=2))
        return EXIT_OK

    input_path = normalize_path(clean_conf["input_path"], os.getcwd())
    clean_conf["input_path"] = input_path
    if not os.path.isdir(input_path):
        msg = f"Input directory does not exist: {input_path}"
        logger.error(msg)
        print(f"ERROR: {msg}", file=sys.stderr)
        return EXIT_USAGE

    if args.save_config:
        save_config(clean_conf)

    logger.info(f"Targeting input directory: {input_path}")
    try:
        result = run_pipeline(clean_conf, dry_run=bool(args.dry_run))
    except KeyboardInterrupt:
        logger.warning("Interrupted by user.")
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.critical(f"Pipeline crashed: {e}", exc_info=True)
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_FAILURE

    if args.json_output:
        print(json.dumps(asdict(result), ensure_ascii=False, indent=2))
    else:
        _print_human_summary(result)

    return EXIT_OK if result.ok else EXIT_FAILURE


def _run_load(args: Any) -> int:
    config = cli_args.args_to_loader_config(args)
    runtime = LocalSandbox(args.dest, probe_ports=(config.server_port,))
    frame = BrowserFrame() if args.open_browser else ContentFrame()
    loader = ClientLoader(config, runtime, frame)

    try:
        process = loader.run()
    except BlitzpackError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_FAILURE

    if process is None:
        print(f"Mounted at: {runtime.resolve(config.mount_point)}")
        return EXIT_OK

    try:
        return process.wait()
    except KeyboardInterrupt:
        logger.warning("Interrupted by user. Stopping entry process.")
        process.kill()
        return EXIT_INTERRUPTED


def _run_inspect(args: Any) -> int:
    path = args.path
    try:
        if os.path.isfile(path) and args.chunk_count is None:
            with open(path, "rb") as f:
                data = f.read()
        else:
            count = args.chunk_count if args.chunk_count is not None else count_chunks(path)
            if count == 0:
                print(f"ERROR: No snapshot or chunks found at {path}", file=sys.stderr)
                return EXIT_USAGE
            data = join_chunks(path, count)
        decoded = decode_snapshot(data)
    except (OSError, BlitzpackError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_FAILURE

    total = 0
    for rel, content in iter_entries(decoded):
        if content is None:
            print(f"{rel}/")
        else:
            total += len(content)
            print(f"{rel} ({len(content)} bytes)")
    print(f"-- {len(data)} bytes encoded, {total} bytes of file content")
    return EXIT_OK

# -----------------------------------------------------------------------------
# CONFIGURATION MERGING
# -----------------------------------------------------------------------------

def _merge_config(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shallow merge of provided override values into the base configuration.

    Only known keys are merged; None means "not provided".
    """
    out = dict(base)
    for k, v in overrides.items():
        if k in base and v is not None:
            out[k] = v
    return out

# -----------------------------------------------------------------------------
# VIEW RENDERING (HUMAN READABLE)
# -----------------------------------------------------------------------------

def _print_human_summary(result: PipelineResult) -> None:
    """Render a PipelineResult as a terminal report."""
    if not result.ok:
        print(f"ERROR: {result.error}", file=sys.stderr)
        return

    if result.summary.get("dry_run"):
        print("Dry run (nothing written)")
    else:
        print("Snapshot built successfully")

    print(f"Input: {result.input_path}")
    print(f"Tree: {result.directories} directories, {result.files} files")
    print(f"Artifact: {result.artifact_path} ({result.total_size} bytes)")
    print(f"Chunks: {result.chunk_count} x <= {result.chunk_size} bytes")
    for path in result.chunk_paths:
        print(f"  - {path}")
    if result.manifest_path:
        print(f"Manifest: {result.manifest_path}")


if __name__ == "__main__":
    sys.exit(main())
