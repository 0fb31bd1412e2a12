"""Run fingerplay with `python -m fingerplay` (see `bin/fingerplay_cli.py`)."""

import argh
from fingerplay.script_utils import fingerplay_cli


def dispatched_fingerplay_cli():
    argh.dispatch_command(fingerplay_cli)


if __name__ == "__main__":
    dispatched_fingerplay_cli()
