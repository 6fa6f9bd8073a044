#!/usr/bin/env python3
"""
GLTF Animation Diagnostic Tool

Loads a GLTF/GLB model and reports how its animations resolve:
- Channels that play back (target, interpolation, key range)
- Channels that are skipped, and why
- Sampled node values over a few frames

Usage:
    python debug_gltf_animation.py path/to/model.gltf [--frames 10] [--fps 30]
"""

import argparse
import logging
import sys
from pathlib import Path

import pygltflib

from animlib.animation import (
    PlaybackPolicy,
    create_animation_manager,
    resolve_document,
)
from animlib.loaders import document_from_gltf2


def report_channels(document):
    """Print resolved and skipped channels."""
    result = resolve_document(document)

    print(f"Schema version: {document.schema_version}")
    print(f"Resolved channels: {len(result.units)}")
    for unit in result.units:
        print(
            f"  node {unit.target.node!r} {unit.target.path.value}: "
            f"{unit.interpolation.value}, {len(unit)} keys, "
            f"{unit.start_time:.3f}s - {unit.end_time:.3f}s"
        )

    if result.diagnostics:
        print(f"Skipped channels: {len(result.diagnostics)}")
        for diagnostic in result.diagnostics:
            print(f"  {diagnostic}")

    return result


def play(document, frames: int, fps: float, policy: PlaybackPolicy):
    """Tick an animation manager and print the animated node values."""
    manager = create_animation_manager(document, policy)
    targets = sorted({managed.unit.target for managed in manager.animations},
                     key=lambda target: (str(target.node), target.path.value))

    for _ in range(frames):
        manager.tick(1.0 / fps)
        print(f"t={manager.current_time:.3f}s")
        for target in targets:
            node = document.get_node(target.node)
            value = getattr(node, target.path.value, None)
            print(f"  node {target.node!r} {target.path.value} = {value}")


def main():
    parser = argparse.ArgumentParser(description="Inspect the animations of a GLTF model.")
    parser.add_argument("model", help="Path to a .gltf or .glb file")
    parser.add_argument("--frames", type=int, default=5, help="Number of frames to play")
    parser.add_argument("--fps", type=float, default=30.0, help="Frames per second")
    parser.add_argument(
        "--policy",
        choices=[policy.value for policy in PlaybackPolicy],
        default=PlaybackPolicy.LOOP.value,
        help="Playback policy for times past the last key",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    filepath = Path(args.model)
    if not filepath.exists():
        print(f"ERROR: File not found: {filepath}")
        return 1

    gltf = pygltflib.GLTF2().load(str(filepath))
    document = document_from_gltf2(gltf)

    report_channels(document)
    play(document, args.frames, args.fps, PlaybackPolicy(args.policy))
    return 0


if __name__ == "__main__":
    sys.exit(main())
