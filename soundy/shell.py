"""
Text console for Soundy.

Each command maps onto one BoardController event. Sound commands act on the
current board; names containing spaces can be quoted.
"""

import cmd
import logging
import shlex
from typing import List, Optional

from .controller import BoardController
from .errors import PersistenceError, SoundyError

logger = logging.getLogger(__name__)


class SoundyShell(cmd.Cmd):
    """Interactive front end driving a BoardController."""

    intro = "Soundy - type 'help' for commands, 'quit' to exit."

    def __init__(self, controller: BoardController, stdin=None, stdout=None):
        super().__init__(stdin=stdin, stdout=stdout)
        if stdin is not None:
            self.use_rawinput = False
        self.controller = controller
        controller.subscribe(self._on_refresh)
        self._on_refresh(controller)

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    def _on_refresh(self, controller: BoardController):
        self.prompt = f"soundy [{controller.current_board}]> "

    def _say(self, text: str):
        self.stdout.write(text + "\n")

    def _args(self, line: str, count: int, usage: str) -> Optional[List[str]]:
        try:
            args = shlex.split(line)
        except ValueError as e:
            self._say(f"Error: {e}")
            return None
        if len(args) != count:
            self._say(f"Usage: {usage}")
            return None
        return args

    def _run(self, action, *args):
        """Call a controller event, reporting errors instead of raising."""
        try:
            return action(*args)
        except PersistenceError as e:
            self._say(f"Warning: {e}. Changes may not survive a restart.")
        except SoundyError as e:
            self._say(f"Error: {e}")
        return None

    def emptyline(self):
        return False

    # -------------------------------------------------------------------------
    # Boards
    # -------------------------------------------------------------------------

    def do_boards(self, line):
        """boards - list all boards"""
        store = self.controller.store
        for name in store.board_names():
            marker = "*" if name == store.current_board else " "
            self._say(f"{marker} {name} ({len(store.get_board(name).sounds)} sounds)")

    def do_use(self, line):
        """use BOARD - switch to another board"""
        args = self._args(line, 1, "use BOARD")
        if args:
            self._run(self.controller.on_select_board, args[0])

    def do_addboard(self, line):
        """addboard NAME - create an empty board"""
        args = self._args(line, 1, "addboard NAME")
        if args:
            self._run(self.controller.on_add_board, args[0])

    def do_delboard(self, line):
        """delboard NAME - delete a board and its sounds"""
        args = self._args(line, 1, "delboard NAME")
        if args:
            self._run(self.controller.on_delete_board, args[0])

    def do_renameboard(self, line):
        """renameboard OLD NEW - rename a board"""
        args = self._args(line, 2, "renameboard OLD NEW")
        if args:
            self._run(self.controller.on_rename_board, args[0], args[1])

    # -------------------------------------------------------------------------
    # Sounds
    # -------------------------------------------------------------------------

    def do_sounds(self, line):
        """sounds - list sounds on the current board"""
        controller = self.controller
        board = controller.current_board
        sounds = controller.current_sounds()
        if not sounds:
            self._say("(no sounds)")
        for idx, record in enumerate(sounds, start=1):
            if controller.registry.is_looping(board, record):
                state = " [looping]"
            elif controller.registry.is_playing(board, record):
                state = " [playing]"
            else:
                state = ""
            self._say(f"{idx:>3}. {record.name}{state}  ({record.path})")

    def do_add(self, line):
        """add NAME PATH - add a sound to the current board"""
        args = self._args(line, 2, "add NAME PATH")
        if args:
            self._run(self.controller.on_add_sound, args[0], args[1])

    def do_remove(self, line):
        """remove NAME - remove a sound from the current board"""
        args = self._args(line, 1, "remove NAME")
        if args:
            self._run(self.controller.on_delete_sound, self.controller.current_board, args[0])

    def do_edit(self, line):
        """edit NAME NEW_NAME PATH - replace a sound's name and file"""
        args = self._args(line, 3, "edit NAME NEW_NAME PATH")
        if args:
            self._run(self.controller.on_edit_sound, self.controller.current_board, *args)

    def do_move(self, line):
        """move NAME BOARD - move a sound to another board"""
        args = self._args(line, 2, "move NAME BOARD")
        if args:
            self._run(
                self.controller.on_move_sound, self.controller.current_board, args[0], args[1]
            )

    # -------------------------------------------------------------------------
    # Playback
    # -------------------------------------------------------------------------

    def do_play(self, line):
        """play NAME - play a sound once"""
        args = self._args(line, 1, "play NAME")
        if args:
            self._run(self.controller.on_play, self.controller.current_board, args[0])

    def do_loop(self, line):
        """loop NAME - start or stop looping a sound"""
        args = self._args(line, 1, "loop NAME")
        if not args:
            return
        looping = self._run(self.controller.on_toggle_loop, self.controller.current_board, args[0])
        if looping is not None:
            self._say(f"Loop {'on' if looping else 'off'}: {args[0]}")

    def do_stop(self, line):
        """stop NAME - stop a sound on the current board"""
        args = self._args(line, 1, "stop NAME")
        if args:
            self._run(self.controller.on_stop, self.controller.current_board, args[0])

    def do_stopall(self, line):
        """stopall - stop every sound on every board"""
        self.controller.on_stop_all()

    def do_status(self, line):
        """status - list everything currently playing"""
        active = self.controller.registry.active()
        if not active:
            self._say("Nothing playing")
        for board, name in active:
            looping = self.controller.registry.is_looping(board, name)
            self._say(f"{board} / {name}{' [looping]' if looping else ''}")

    def postloop(self):
        self.controller.unsubscribe(self._on_refresh)

    def do_quit(self, line):
        """quit - stop all sounds and exit"""
        self.controller.on_stop_all()
        return True

    do_EOF = do_quit
