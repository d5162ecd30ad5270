"""
aseview command line tool
Inspects Aseprite files and renders their frames.

Commands:
- info:   header, layers, frames, tags and decode anomalies
- render: one composited frame as PNG
- export: every frame as a lossless animated WebP

Supported color depths:
- ✓ 32 bpp RGBA
- ✓ 16 bpp grayscale + alpha
- ✓ 8 bpp indexed (palette)
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from tqdm import tqdm

from .config import Config
from .const import LayerFlags
from .errors import AsepriteError
from .viewer import AsepriteViewer


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def decode_flags(flags: Optional[int]) -> str:
    """
    Render layer flags as a comma separated list of names.

    Args:
        flags: Raw layer flags word

    Returns:
        e.g. "visible,editable" or "-" when no flag is set
    """
    if not flags:
        return '-'
    found = [flag.name.lower() for flag in LayerFlags if flags & flag]
    leftover = flags & ~sum(LayerFlags)
    if leftover:
        found.append(f'0x{leftover:x}')
    return ','.join(found)


def default_output_path(ase_path: str, suffix: str, output_dir: str = None) -> str:
    """Build an output path in Config.OUTPUT_DIR named after the input file."""
    if output_dir is None:
        output_dir = Config.OUTPUT_DIR
    os.makedirs(output_dir, exist_ok=True)
    base_name = os.path.splitext(os.path.basename(ase_path))[0]
    return os.path.join(output_dir, f'{base_name}{suffix}')


def open_viewer(ase_path: str, hidden_layers: List[int]) -> AsepriteViewer:
    viewer = AsepriteViewer.from_file(ase_path)
    for layer_index in hidden_layers:
        viewer.set_layer_visible(layer_index, False)
    return viewer


# ============================================================================
# COMMANDS
# ============================================================================

def print_info(args) -> int:
    viewer = AsepriteViewer.from_file(args.file)
    document = viewer.document

    print("=" * 70)
    print(f"File: {os.path.basename(args.file)}")
    print("=" * 70)
    print(f"  Canvas: {document.width}x{document.height} px "
          f"(pixel ratio {document.pixel_ratio[0]}:{document.pixel_ratio[1]})")
    print(f"  Color depth: {document.color_depth} bpp")
    print(f"  Frames: {len(document.frames)} ({document.total_duration_ms} ms total)")
    print(f"  File size: {document.file_size} bytes")
    if document.palette is not None:
        print(f"  Palette: {len(document.palette)} colors")
    if document.color_profile is not None:
        print(f"  Color profile: {document.color_profile.type.name}")

    print("\nLayers:")
    for layer, entry in zip(document.layers, viewer.list_layers()):
        indent = '  ' * layer.child_level
        print(f"  {indent}[{entry['index']}] {entry['name']} "
              f"({entry['type']}, opacity={entry['opacity']}, blend={entry['blend_mode']}) "
              f"[{decode_flags(layer.raw_flags)}]")

    print("\nFrames:")
    for frame in document.frames:
        print(f"  #{frame.index}: {frame.duration_ms} ms, {len(frame.cels)} cels")

    if document.tags:
        print("\nTags:")
        for tag in document.tags:
            print(f"  {tag.name}: frames {tag.from_frame}-{tag.to_frame} "
                  f"{tag.loop_direction.label} {tag.color}")

    if document.anomalies:
        print(f"\nDecode anomalies ({len(document.anomalies)}):")
        for anomaly in document.anomalies:
            print(f"  - {anomaly}")

    return 0


def render_frame(args) -> int:
    viewer = open_viewer(args.file, args.hide_layer)
    out_path = args.output or default_output_path(args.file, f'_{args.frame}.png')

    viewer.save_frame_png(args.frame, out_path, scale=args.scale)
    print(f"  [OK] Frame {args.frame} -> {out_path}")
    return 0


def export_animation(args) -> int:
    viewer = open_viewer(args.file, args.hide_layer)
    out_path = args.output or default_output_path(args.file, '.webp')

    frames = tqdm(range(viewer.total_frames), desc='Compositing', unit='frame')
    viewer.save_to_webp(out_path, scale=args.scale, frame_indexes=frames)
    print(f"  [OK] {viewer.total_frames} frames -> {out_path}")
    return 0


# ============================================================================
# ENTRY POINT
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='aseview', description='Inspect and render Aseprite files.')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    info = subparsers.add_parser('info', help='Show header, layers, frames and tags')
    info.add_argument('file', help='Aseprite file')
    info.set_defaults(handler=print_info)

    for name, handler, help_text in (
        ('render', render_frame, 'Render one frame to PNG'),
        ('export', export_animation, 'Export all frames to an animated WebP'),
    ):
        command = subparsers.add_parser(name, help=help_text)
        command.add_argument('file', help='Aseprite file')
        command.add_argument('-o', '--output', help='Output path (default: Config.OUTPUT_DIR)')
        command.add_argument('--scale', type=float, default=Config.DEFAULT_SCALE, help='Scale factor')
        command.add_argument('--hide-layer', type=int, action='append', default=[],
                             metavar='INDEX', help='Hide a layer (repeatable)')
        if name == 'render':
            command.add_argument('--frame', type=int, default=0, help='Frame index (0-based)')
        command.set_defaults(handler=handler)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else Config.LOG_LEVEL,
        format=Config.LOG_FORMAT,
    )

    try:
        return args.handler(args)
    except (AsepriteError, OSError, ValueError) as e:
        print(f"  [ERROR] {os.path.basename(args.file)}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
