from __future__ import annotations

"""
CLI Argument Definition and Mapping.

Defines the command-line schema of the three subcommands (build, load,
inspect) and translates argparse namespaces into domain configuration.
"""

import argparse
from typing import Any, Dict

from blitzpack.core.loader.client import LoaderConfig
from blitzpack.core.pipeline.validator import parse_size
from blitzpack.domain.constants import (
    APP_VERSION,
    DEFAULT_ARTIFACT_NAME,
    DEFAULT_ENTRY_COMMAND,
    DEFAULT_ENTRY_PATH,
    DEFAULT_LOCALE,
    DEFAULT_MOUNT_POINT,
    DEFAULT_SERVER_PORT,
    SYMLINK_POLICIES,
)

# -----------------------------------------------------------------------------
# ARGUMENT DEFINITION
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """
    Construct the argument parser for the blitzpack CLI.

    Returns:
        argparse.ArgumentParser: Configured parser instance.
    """
    p = argparse.ArgumentParser(
        prog="blitzpack",
        description="Pack a directory into chunked snapshots and boot them in a sandboxed runtime.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--debug", action="store_true", help="Enable DEBUG logging.")
    common.add_argument("--log-file", dest="log_file", default=None, help="Also write logs to this file.")

    sub = p.add_subparsers(dest="command", required=True)

    # --- build ---
    b = sub.add_parser("build", parents=[common], help="Walk, encode and split a directory.")
    b.add_argument("-i", "--input", dest="input_path", default=None, help="Directory to pack.")
    b.add_argument("-o", "--output", dest="output_dir", default=None,
                   help="Directory receiving the chunks (default: the input directory).")
    b.add_argument("--name", dest="artifact_name", default=None,
                   help=f"Artifact base name (default: {DEFAULT_ARTIFACT_NAME}).")
    b.add_argument("--chunk-size", dest="chunk_size", type=parse_size, default=None,
                   help="Maximum chunk size, e.g. 4194304, 512k or 4MiB.")
    b.add_argument("--workers", dest="max_workers", type=int, default=None,
                   help="Concurrent filesystem operations during the walk.")
    b.add_argument("--symlinks", dest="symlink_policy", choices=SYMLINK_POLICIES, default=None,
                   help="Skip symbolic links or reject them.")
    b.add_argument("--no-manifest", action="store_true", help="Do not write the manifest sidecar.")
    b.add_argument("--overwrite", action="store_true", help="Replace a previous chunk set.")
    b.add_argument("--dry-run", action="store_true", help="Report the projected chunk set only.")
    b.add_argument("--use-defaults", action="store_true", help="Ignore the persisted configuration.")
    b.add_argument("--save-config", action="store_true", help="Persist the effective configuration.")
    b.add_argument("--dump-config", action="store_true", help="Print the effective configuration and exit.")
    b.add_argument("--json", dest="json_output", action="store_true", help="Print the result as JSON.")

    # --- load ---
    ld = sub.add_parser("load", parents=[common], help="Fetch chunks, mount and boot the entry process.")
    ld.add_argument("--base-url", required=True, help="URL serving the chunk files.")
    count = ld.add_mutually_exclusive_group(required=True)
    count.add_argument("--chunks", dest="chunk_count", type=int, help="Known chunk count.")
    count.add_argument("--manifest", action="store_true", help="Read the chunk count from the manifest.")
    ld.add_argument("--dest", default=".", help="Host directory used as the sandbox root.")
    ld.add_argument("--name", dest="artifact_name", default=DEFAULT_ARTIFACT_NAME)
    ld.add_argument("--mount", dest="mount_point", default=DEFAULT_MOUNT_POINT)
    ld.add_argument("--command", dest="entry_command", default=DEFAULT_ENTRY_COMMAND)
    ld.add_argument("--entry", dest="entry_path", default=DEFAULT_ENTRY_PATH)
    ld.add_argument("--port", dest="server_port", type=int, default=DEFAULT_SERVER_PORT)
    ld.add_argument("--page-url", dest="page_url", default=None,
                    help="Origin passed to the entry process (default: the base URL).")
    ld.add_argument("--locale", default=DEFAULT_LOCALE)
    ld.add_argument("--retries", dest="fetch_retries", type=int, default=2)
    ld.add_argument("--parallel", dest="parallel_fetches", type=int, default=1)
    ld.add_argument("--no-spawn", action="store_true", help="Stop after mounting.")
    ld.add_argument("--open", dest="open_browser", action="store_true",
                    help="Open the served URL in the system browser.")

    # --- inspect ---
    ins = sub.add_parser("inspect", parents=[common], help="List the contents of a snapshot.")
    ins.add_argument("path", help="Snapshot file, or artifact base path of a chunk set.")
    ins.add_argument("--chunks", dest="chunk_count", type=int, default=None,
                     help="Chunk count (default: count consecutive chunk files).")

    return p

# -----------------------------------------------------------------------------
# NAMESPACE MAPPING
# -----------------------------------------------------------------------------

def args_to_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Translate 'build' arguments into configuration overrides.

    None values mean "not provided" and are ignored by the merge.
    """
    return {
        "input_path": args.input_path,
        "output_dir": args.output_dir,
        "artifact_name": args.artifact_name,
        "chunk_size": args.chunk_size,
        "max_workers": args.max_workers,
        "symlink_policy": args.symlink_policy,
        "keep_manifest": False if args.no_manifest else None,
        "overwrite": True if args.overwrite else None,
    }


def args_to_loader_config(args: argparse.Namespace) -> LoaderConfig:
    """Translate 'load' arguments into a LoaderConfig."""
    return LoaderConfig(
        base_url=args.base_url,
        chunk_count=None if args.manifest else args.chunk_count,
        artifact_name=args.artifact_name,
        mount_point=args.mount_point,
        entry_command=args.entry_command,
        entry_path=args.entry_path,
        server_port=args.server_port,
        page_url=args.page_url or args.base_url,
        locale=args.locale,
        fetch_retries=args.fetch_retries,
        parallel_fetches=args.parallel_fetches,
        spawn=not args.no_spawn,
    )
