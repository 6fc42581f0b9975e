#!/usr/bin/env python3
"""Render the demo SDF scene, as a still image or an animation.

Usage:
    python -m examples.render_demo_scene [options]

Options:
    --width WIDTH       Image width in pixels (default: 640)
    --height HEIGHT     Image height in pixels (default: 480)
    --aa AA             Sub-rays per pixel along each axis (default: 2)
    --time TIME         Time value of a still frame (default: 0.0)
    --frames N          Render an animation of N frames instead of a still
    --fps FPS           Animation frame rate (default: 12)
    --config PATH       Render a JSON configuration instead of the demo scene
    --output OUTPUT     Output file, .png for stills, .gif for animations
    --cpu               Force the CPU backend
    --quiet             Suppress progress output

Example:
    python -m examples.render_demo_scene --width 320 --height 240 --frames 24
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the demo SDF scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=640, help="Image width (default: 640)")
    parser.add_argument("--height", type=int, default=480, help="Image height (default: 480)")
    parser.add_argument("--aa", type=int, default=2, help="Sub-rays per axis (default: 2)")
    parser.add_argument("--time", type=float, default=0.0, help="Still frame time (default: 0)")
    parser.add_argument("--frames", type=int, default=0, help="Number of animation frames")
    parser.add_argument("--fps", type=float, default=12.0, help="Animation rate (default: 12)")
    parser.add_argument("--config", type=str, default=None, help="JSON configuration file")
    parser.add_argument("--output", type=str, default=None, help="Output file path")
    parser.add_argument("--cpu", action="store_true", help="Force the CPU backend")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args()


def render_demo(
    width: int = 640,
    height: int = 480,
    aa_size: int = 2,
    frame_time: float = 0.0,
    num_frames: int = 0,
    fps: float = 12.0,
    config_path: str | None = None,
    output_path: str | None = None,
    quiet: bool = False,
) -> Path:
    """Render a still or an animation and save it.

    Returns:
        Path to the saved file.
    """
    # Lazy imports to allow Taichi initialization first
    from sdfmarch.config import RenderSettings, load_config
    from sdfmarch.core.animation import AnimationRenderer, frame_times
    from sdfmarch.core.renderer import render_frame
    from sdfmarch.preview.export import save_gif, save_png
    from sdfmarch.scene.demo import create_demo_config

    if config_path is not None:
        config = load_config(config_path)
        config.render = RenderSettings(width=width, height=height, aa_size=aa_size)
    else:
        config = create_demo_config(width=width, height=height, aa_size=aa_size)

    start_time = time.time()

    if num_frames > 0:
        output_file = Path(output_path or "demo.gif")
        renderer = AnimationRenderer(config)

        def progress_callback(done: int, total: int, frame) -> None:
            if not quiet:
                elapsed = time.time() - start_time
                print(
                    f"\r  Frame {done}/{total} (t={frame.time:.2f}) - "
                    f"{done / elapsed if elapsed > 0 else 0:.1f} fps",
                    end="",
                    flush=True,
                )

        if not quiet:
            print(f"Rendering {num_frames} frames at {width}x{height}, aa={aa_size}...")
        frames = renderer.render(frame_times(num_frames, fps=fps), callback=progress_callback)
        if not quiet:
            print()
        save_gif(frames, output_file, fps=fps)
    else:
        output_file = Path(output_path or "demo.png")
        if not quiet:
            print(f"Rendering {width}x{height}, aa={aa_size}, t={frame_time}...")
        save_png(render_frame(config, frame_time), output_file)

    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {time.time() - start_time:.2f}s")
    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(level=logging.WARNING if args.quiet else logging.INFO)

    if args.cpu:
        ti.init(arch=ti.cpu)
    else:
        # Falls back to CPU when no GPU backend is available
        ti.init(arch=ti.gpu)

    try:
        render_demo(
            width=args.width,
            height=args.height,
            aa_size=args.aa,
            frame_time=args.time,
            num_frames=args.frames,
            fps=args.fps,
            config_path=args.config,
            output_path=args.output,
            quiet=args.quiet,
        )
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
