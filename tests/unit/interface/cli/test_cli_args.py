from __future__ import annotations

"""
Unit tests for CLI Argument Parsing.

Verifies:
1. Mapping of build flags to configuration keys.
2. Size parsing of --chunk-size.
3. Construction of the loader configuration.
"""

import pytest

from blitzpack.interface.cli.args import args_to_loader_config, args_to_overrides, build_parser


def parse_args(arg_list):
    """Helper to simulate CLI argument parsing."""
    return build_parser().parse_args(arg_list)


def test_build_flags_mapping():
    args = parse_args([
        "build",
        "-i", "/input/path",
        "-o", "/output/path",
        "--name", "app.bin",
        "--chunk-size", "512k",
        "--workers", "8",
        "--symlinks", "error",
        "--no-manifest",
        "--overwrite",
    ])

    overrides = args_to_overrides(args)

    assert overrides == {
        "input_path": "/input/path",
        "output_dir": "/output/path",
        "artifact_name": "app.bin",
        "chunk_size": 512 * 1024,
        "max_workers": 8,
        "symlink_policy": "error",
        "keep_manifest": False,
        "overwrite": True,
    }


def test_build_defaults_are_none():
    """Unset flags stay None so the merge keeps persisted values."""
    overrides = args_to_overrides(parse_args(["build"]))
    assert all(v is None for v in overrides.values())


def test_invalid_chunk_size_is_a_usage_error():
    with pytest.raises(SystemExit) as exc_info:
        parse_args(["build", "--chunk-size", "huge"])
    assert exc_info.value.code == 2


def test_subcommand_is_required():
    with pytest.raises(SystemExit):
        parse_args([])


def test_load_with_chunk_count():
    args = parse_args(["load", "--base-url", "http://cdn/app", "--chunks", "6", "--locale", "fr"])
    config = args_to_loader_config(args)

    assert config.chunk_count == 6
    assert config.base_url == "http://cdn/app"
    assert config.page_url == "http://cdn/app"
    assert config.locale == "fr"
    assert config.mount_point == "horizon"
    assert config.server_port == 9080
    assert config.spawn is True


def test_load_with_manifest_and_no_spawn():
    args = parse_args([
        "load", "--base-url", "http://cdn", "--manifest", "--no-spawn",
        "--page-url", "https://page", "--parallel", "4",
    ])
    config = args_to_loader_config(args)

    assert config.chunk_count is None
    assert config.spawn is False
    assert config.page_url == "https://page"
    assert config.parallel_fetches == 4


def test_load_requires_count_source():
    with pytest.raises(SystemExit):
        parse_args(["load", "--base-url", "http://cdn"])
    with pytest.raises(SystemExit):
        parse_args(["load", "--base-url", "http://cdn", "--chunks", "2", "--manifest"])


def test_common_flags_on_every_subcommand():
    args = parse_args(["inspect", "snap.bin", "--debug", "--log-file", "/tmp/x.log"])
    assert args.debug is True
    assert args.log_file == "/tmp/x.log"
    assert args.path == "snap.bin"
    assert args.chunk_count is None
