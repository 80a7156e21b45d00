#!/usr/bin/env python3
"""
HSV Inspector - Interactive Entry Point
Attaches to a shared memory ARGB frame and shows the HSV-adjusted mask live
"""

import sys
import time
import argparse
from typing import Optional, List

from hsv_inspector import Config, AdjustmentParameters, HSVPipeline
from frame_source import FrameSourceError, attach, take_snapshot
from inspector_window import InspectorWindow


class HSVInspector:
    """
    Interaction loop: WaitForInput -> Acquire -> Transform -> Present.
    One pass per loop iteration, no overlap between iterations.
    """

    def __init__(self, source, window, pipeline: HSVPipeline,
                 params: AdjustmentParameters, delay_ms: int = Config.WAIT_KEY_MS):
        self.source = source
        self.window = window
        self.pipeline = pipeline
        self.params = params
        self.delay_ms = delay_ms

        self.frame_count = 0
        self.last_status_time = time.time()

    def step(self) -> None:
        """Acquire one snapshot, transform it and hand both images to the window"""
        snapshot = take_snapshot(self.source, self.pipeline.frame_width,
                                 self.pipeline.frame_height)
        mask, filtered = self.pipeline.process(snapshot, self.params)
        self.window.show(mask, filtered)
        self.frame_count += 1

        if Config.VERBOSE and self.frame_count % Config.STATUS_INTERVAL == 0:
            self._print_status()

    def _print_status(self) -> None:
        now = time.time()
        elapsed = now - self.last_status_time
        fps = Config.STATUS_INTERVAL / elapsed if elapsed > 0 else 0
        print(f"Status: Frame {self.frame_count}, FPS: {fps:.1f}")
        self.last_status_time = now

    def run(self) -> int:
        """
        Loop until a quit key is pressed.

        Returns:
            Number of frames processed
        """
        while True:
            key = self.window.poll_key(self.delay_ms)
            if key in Config.QUIT_KEYS:
                break
            if key == Config.RESET_KEY:
                self.params.reset()
                self.window.sync_trackbars()
                print("Parameters reset to defaults")

            self.step()

        return self.frame_count


def print_usage(prog: str) -> None:
    print(f"{prog} attaches to a shared memory area containing an ARGB image "
          f"and transform it to HSV color space for inspection.", file=sys.stderr)
    print(f"Usage:   {prog} --name=<name of shared memory area> --width=<W> --height=<H> "
          f"[--delay=<ms>] [--verbose]", file=sys.stderr)
    print("         --name:    name of the shared memory area to attach", file=sys.stderr)
    print("         --width:   width of the frame", file=sys.stderr)
    print("         --height:  height of the frame", file=sys.stderr)
    print(f"         --delay:   input wait per frame in ms (default {Config.WAIT_KEY_MS})",
          file=sys.stderr)
    print("         --verbose: print frame rate status lines", file=sys.stderr)
    print(f"Example: {prog} --name=img.argb --width=640 --height=480", file=sys.stderr)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='HSV Inspector', add_help=False)
    parser.add_argument('--name', type=str, help='Name of the shared memory area')
    parser.add_argument('--width', type=int, help='Frame width in pixels')
    parser.add_argument('--height', type=int, help='Frame height in pixels')
    parser.add_argument('--delay', type=int, default=Config.WAIT_KEY_MS,
                        help='Input wait per frame in milliseconds')
    parser.add_argument('--verbose', action='store_true', help='Print frame rate status')
    # Unrecognized options are ignored
    args, _ = parser.parse_known_args(argv)
    return args


def print_parameters(params: AdjustmentParameters) -> None:
    """Print the tuned values so they can be copied into other tools"""
    print(f"Selected HSV range: lower={params.lower()}, upper={params.upper()}")
    print("Parameters: " + ", ".join(f"{field}={value}" for field, value in params.as_dict().items()))


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point"""
    prog = sys.argv[0] if sys.argv and sys.argv[0] else "main_inspector.py"
    args = parse_args(argv)

    if args.name is None or args.width is None or args.height is None:
        print_usage(prog)
        return 1
    if args.width <= 0 or args.height <= 0 or args.delay <= 0:
        print(f"{prog}: --width, --height and --delay must be positive", file=sys.stderr)
        print_usage(prog)
        return 1

    if args.verbose:
        Config.VERBOSE = True

    # Step 1: Attach to the producer's frame buffer
    try:
        source = attach(args.name, args.width, args.height)
    except FrameSourceError as e:
        print(f"{prog}: {e}", file=sys.stderr)
        return 0

    print(f"{prog}: Attached to shared memory '{source.name}' ({source.size()} bytes).",
          file=sys.stderr)

    params = AdjustmentParameters()
    window = None
    inspector = None

    try:
        # Step 2: Pipeline and window
        pipeline = HSVPipeline(args.width, args.height)
        window = InspectorWindow(params)
        inspector = HSVInspector(source, window, pipeline, params, delay_ms=args.delay)

        print("HSV Inspector started. Controls: 'q'/ESC=quit, 'r'=reset parameters")
        print(f"Frame size: {args.width}x{args.height}")

        # Step 3: Interactive loop
        inspector.run()
    except KeyboardInterrupt:
        print("\nInterrupted by user")
    finally:
        # Step 4: Cleanup
        if window is not None:
            print_parameters(params)
            window.close()
        source.close()
        frames = inspector.frame_count if inspector is not None else 0
        print(f"HSV Inspector stopped after {frames} frames")

    return 0


if __name__ == "__main__":
    sys.exit(main())
