"""
cli — command-line interface for gltflink.

Entry points
────────────
  python -m gltflink   (via gltflink/__main__.py)
  gltflink             (via pyproject.toml [project.scripts])

Subcommands: inspect | tree | check
"""

from gltflink.cli.main import build_parser, cmd_check, cmd_inspect, cmd_tree, main

__all__ = ["build_parser", "cmd_check", "cmd_inspect", "cmd_tree", "main"]
