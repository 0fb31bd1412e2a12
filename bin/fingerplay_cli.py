#!/usr/bin/env python
"""
Command-line interface for the fingerplay application.

This script provides a CLI wrapper around the run_fingerplay function, allowing its
main parameters to be controlled via command-line arguments.

Examples:
    # Run with default settings (sound on, hand marks drawn, mirrored video)
    python fingerplay_cli.py

    # Just the game, no sound
    python fingerplay_cli.py --no-sound

    # Print physics events (bounces, rim hits, scores) as they happen
    python fingerplay_cli.py --log-events

    # Step physics once per camera frame instead of at a fixed 60 Hz
    python fingerplay_cli.py --physics-timestep 0
"""

from fingerplay.__main__ import dispatched_fingerplay_cli

if __name__ == "__main__":
    dispatched_fingerplay_cli()
