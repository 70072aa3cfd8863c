"""
CLI entry point for gltflink.

Usage
─────
  # Summarise a document after resolution
  gltflink inspect models/Box/glTF/Box.gltf

  # Look for buffers somewhere other than the document's directory
  gltflink inspect scene.gltf --search-path ./bin --search-path ./shared

  # Print the default scene's node hierarchy
  gltflink tree scene.gltf

  # Exit status only: 0 = clean, 1 = fatal error, 2 = short buffers padded
  gltflink check scene.gltf

Subcommands are implemented as standalone functions (cmd_inspect, cmd_tree,
cmd_check) so they can be unit-tested without invoking argparse.
"""

import argparse
import logging
import sys
from typing import Optional

from gltflink.buffers.sources import FileSystemSource
from gltflink.config import DEFAULT_SIZE_LIMIT, LoadConfig
from gltflink.document.loader import from_filename
from gltflink.exceptions import GltfLinkError
from gltflink.resolver.engine import resolve
from gltflink.resolver.models import ResolvedGraph

__all__ = ["build_parser", "cmd_inspect", "cmd_tree", "cmd_check", "main"]

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_WARNINGS = 2


# ── Argument parser ────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    """
    Build and return the top-level argument parser.

    Subcommands: inspect | tree | check
    """
    parser = argparse.ArgumentParser(
        prog="gltflink",
        description="Load and link glTF 2.0 documents",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable verbose debug logging",
    )
    parser.add_argument(
        "--max-size",
        type=int,
        default=DEFAULT_SIZE_LIMIT,
        dest="max_size",
        metavar="BYTES",
        help="Soft size limit for documents and buffer files (default: 1 GiB)",
    )

    sub = parser.add_subparsers(dest="subcommand")

    for name, help_text in (
        ("inspect", "Resolve a document and print a summary"),
        ("tree", "Resolve a document and print its scene hierarchy"),
        ("check", "Resolve a document and report problems via the exit status"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("path", metavar="FILE", help="Path to a .gltf document")
        cmd.add_argument(
            "--search-path",
            action="append",
            default=[],
            dest="search_paths",
            metavar="DIR",
            help="Directory to search for buffer files (repeatable; "
                 "default: the document's directory)",
        )

    tree = sub.choices["tree"]
    tree.add_argument(
        "--scene",
        type=int,
        default=None,
        metavar="INDEX",
        help="Scene to print (default: the document's default scene, else 0)",
    )

    return parser


# ── Helpers ───────────────────────────────────────────────────────────────────


def _count(items) -> str:
    return "-" if items is None else str(len(items))


def _load(path: str, search_paths: list[str],
          config: LoadConfig) -> tuple[ResolvedGraph, Optional[GltfLinkError]]:
    document = from_filename(path, config)
    return resolve(document, search_paths, source=FileSystemSource(config))


# ── Command implementations ───────────────────────────────────────────────────


def cmd_inspect(graph: ResolvedGraph, error: Optional[GltfLinkError]) -> None:
    """Print per-type entity counts, buffer sizes and any problems."""
    doc = graph.document
    print(f"asset      : glTF {doc.asset.version} {doc.asset.generator}".rstrip())
    for label, items in (
        ("buffers", graph.buffers),
        ("bufferViews", graph.buffer_views),
        ("accessors", graph.accessors),
        ("materials", graph.materials),
        ("cameras", graph.cameras),
        ("meshes", graph.meshes),
        ("nodes", graph.nodes),
        ("animations", graph.animations),
        ("scenes", graph.scenes),
    ):
        print(f"{label:<11}: {_count(items)}")
    if graph.scene is not None:
        print(f"scene      : {graph.scene}")

    for buf in graph.buffers or ():
        print(f"  {buf}: {len(buf.data)} bytes")

    for warning in graph.warnings:
        print(f"warning: {warning}")
    if error is not None and error.fatal:
        print(f"error: {error}")
    print("status     : " + ("complete" if graph.complete else "partial"))


def cmd_tree(graph: ResolvedGraph, scene_index: Optional[int] = None) -> None:
    """Print the node hierarchy of one scene, indented by depth."""
    scenes = graph.scenes or ()
    if scene_index is not None:
        if not 0 <= scene_index < len(scenes):
            raise ValueError(f"No scene with index {scene_index} ({len(scenes)} scenes)")
        scene = scenes[scene_index]
    else:
        scene = graph.scene or (scenes[0] if scenes else None)

    if scene is None:
        print("0 scenes found.")
        return

    print(str(scene))
    for node, depth in graph.walk(scene):
        extra = f"  mesh={node.mesh}" if node.mesh is not None else ""
        print(f"{'  ' * (depth + 1)}{node}{extra}")


def cmd_check(graph: ResolvedGraph, error: Optional[GltfLinkError]) -> int:
    """Return the exit status for a resolution result, printing problems to stderr."""
    if error is not None and error.fatal:
        print(f"Error: {error}", file=sys.stderr)
        return EXIT_FATAL
    for warning in graph.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    return EXIT_WARNINGS if graph.warnings else EXIT_OK


# ── Entry point ───────────────────────────────────────────────────────────────


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point. Returns exit code."""
    parser = build_parser()
    ns = parser.parse_args(argv)

    level = logging.DEBUG if ns.debug else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")

    if ns.subcommand is None:
        parser.print_help()
        return EXIT_OK

    config = LoadConfig(max_document_bytes=ns.max_size, max_buffer_bytes=ns.max_size)
    try:
        graph, error = _load(ns.path, ns.search_paths, config)
    except (GltfLinkError, OSError) as exc:
        logger.debug("load failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FATAL

    if ns.subcommand == "inspect":
        cmd_inspect(graph, error)
        return EXIT_FATAL if error is not None and error.fatal else EXIT_OK

    if ns.subcommand == "tree":
        if error is not None and error.fatal:
            print(f"Error: {error}", file=sys.stderr)
            return EXIT_FATAL
        try:
            cmd_tree(graph, ns.scene)
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return EXIT_FATAL
        return EXIT_OK

    if ns.subcommand == "check":
        return cmd_check(graph, error)

    parser.print_help()
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
