"""
Command-line entry point for Soundy.

Usage:
    soundy                              # boards in ./soundy_boards.json
    soundy --store ~/boards.json        # custom board file
    soundy --device 3 --verbose         # pick an output device, debug logging
"""

import argparse
import logging

from .audio import AudioEngine
from .constants import LOG_FILE, STORE_FILE
from .controller import BoardController
from .playback import PlaybackRegistry
from .shell import SoundyShell
from .store import BoardStore

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="soundy", description="Organize sound clips into boards and play them."
    )
    parser.add_argument("--store", default=STORE_FILE, help="board file (default: %(default)s)")
    parser.add_argument("--log-file", default=LOG_FILE, help="log file (default: %(default)s)")
    parser.add_argument("--device", type=int, default=None, help="output device index")
    parser.add_argument("--verbose", "-v", action="store_true", help="debug logging")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        filename=args.log_file,
        filemode="a",
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(name)s] %(message)s",
    )

    store = BoardStore(args.store)
    error = store.load()
    if error is not None:
        print(f"Warning: {error}. Starting with an empty '{store.current_board}'.")

    engine = AudioEngine(device=args.device)
    controller = BoardController(store, PlaybackRegistry(engine.load_clip))
    try:
        SoundyShell(controller).cmdloop()
    except KeyboardInterrupt:
        pass
    finally:
        engine.stop()
        logger.info("Exiting")
