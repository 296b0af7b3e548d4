#!/usr/bin/env python3
"""
🐧 PNGN imgcat - Terminal Session and Event Loop
================================================
Copyright (c) 2025 PNGN-Tec LLC

Terminal Handling
=================
- Raw keyboard input (POSIX termios), read on a daemon thread
- Alternate screen and hidden cursor through rich's Console
- Window size changes picked up from SIGWINCH
- Full repaint of every view; frames replace each other wholesale

Event Loop
==========
``Viewer`` owns one queue of events. Key presses, resizes and load
results are all posted there and processed one at a time on the main
thread:

    event -> transition() -> command -> execute -> view() -> paint

Loads run on ImageLoader daemon threads and come back as events, so
nothing blocks the loop except waiting for the next event.
"""

import logging
import os
import queue
import signal
import sys
import termios
import threading
import tty
from typing import Callable, Optional, TextIO, Tuple

from rich.console import Console

from config import ColorProfile, ViewerConfig
from imgcat_loader import ImageLoader
from imgcat_state import (
    Command, Event, Key, KeyPressed, LoadImage, Quit, SessionState, ViewportResized,
    decode_keys, transition, view,
)

# Configure logging
logger = logging.getLogger('imgcat_terminal')

CLEAR_SCREEN = "\x1b[H\x1b[2J"

# Seconds between checks for a pending resize
RESIZE_POLL_INTERVAL = 0.1


class TerminalSession:
    """
    Full-screen terminal session.

    Entering switches stdin to raw mode, enters the alternate screen and
    hides the cursor; exiting restores all three, also on exceptions.
    """

    def __init__(self, console: Optional[Console] = None, stdin: Optional[TextIO] = None):
        self.console = console or Console()
        self._stdin_fd = (stdin or sys.stdin).fileno()
        self._saved_mode = None
        self._saved_winch = None
        self._resized = False
        self._reader = None

    def __enter__(self) -> "TerminalSession":
        self._saved_mode = termios.tcgetattr(self._stdin_fd)
        tty.setraw(self._stdin_fd)
        self.console.set_alt_screen(True)
        self.console.show_cursor(False)
        self._saved_winch = signal.signal(signal.SIGWINCH, self._on_winch)
        logger.debug("Terminal session started")
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._saved_winch is not None:
            signal.signal(signal.SIGWINCH, self._saved_winch)
        self.console.show_cursor(True)
        self.console.set_alt_screen(False)
        if self._saved_mode is not None:
            termios.tcsetattr(self._stdin_fd, termios.TCSADRAIN, self._saved_mode)
        logger.debug("Terminal session restored")

    def _on_winch(self, signum, frame):
        # Only flag it; the event loop polls and posts the resize itself
        self._resized = True

    def size(self) -> Tuple[int, int]:
        """Current (columns, rows)."""
        dimensions = self.console.size
        return dimensions.width, dimensions.height

    def poll_resize(self) -> Optional[ViewportResized]:
        if not self._resized:
            return None
        self._resized = False
        return ViewportResized(*self.size())

    def paint(self, text: str):
        # Raw mode disables output post-processing, so newlines need \r
        out = self.console.file
        out.write(CLEAR_SCREEN + text.replace("\n", "\r\n"))
        out.flush()

    def start_input(self, post: Callable[[Event], None]):
        """Read keys on a daemon thread and post them as KeyPressed events."""
        self._reader = threading.Thread(
            target=self._read_keys,
            args=(post,),
            name="KeyReader",
            daemon=True
        )
        self._reader.start()

    def _read_keys(self, post: Callable[[Event], None]):
        while True:
            try:
                data = os.read(self._stdin_fd, 64)
            except OSError as e:
                logger.error(f"Keyboard read failed: {e}")
                data = b""
            if not data:
                # stdin closed: nothing can ever be pressed again
                post(KeyPressed(Key.QUIT))
                return
            for key in decode_keys(data):
                post(KeyPressed(key))


class Viewer:
    """
    Single-threaded event loop driving the navigation state machine.

    Args:
        references: Image references in display order
        profile: Terminal color profile detected at startup
        config: Viewer configuration
        screen: Object with size(), paint(), poll_resize() and start_input()
        loader: Background loader (created from profile/config if None)
    """

    def __init__(self, references, profile: ColorProfile, config: ViewerConfig,
                 screen, loader: Optional[ImageLoader] = None):
        self.config = config
        self.screen = screen
        self.events: "queue.Queue[Event]" = queue.Queue()
        self.state = SessionState.initial(references, config.rendering.footer_rows)
        self.loader = loader or ImageLoader(profile, config, self.post)

    def post(self, event: Event):
        self.events.put(event)

    def _execute(self, command: Optional[Command]) -> Optional[int]:
        if isinstance(command, Quit):
            return command.exit_code
        if isinstance(command, LoadImage):
            logger.debug(f"Request {command.request_id}: {command.reference} at {command.rows} rows")
            self.loader.submit(command)
        return None

    def step(self, event: Event) -> Optional[int]:
        """
        Process one event.

        Returns:
            Exit code when the viewer should stop, else None
        """
        self.state, command = transition(self.state, event)
        exit_code = self._execute(command)
        if exit_code is None:
            self.screen.paint(view(self.state, self.config.rendering.placeholder_suffix))
        return exit_code

    def _next_event(self) -> Event:
        while True:
            try:
                return self.events.get(timeout=RESIZE_POLL_INTERVAL)
            except queue.Empty:
                resized = self.screen.poll_resize()
                if resized is not None:
                    return resized

    def run(self) -> int:
        """Run until a Quit command; returns the process exit code."""
        self.screen.paint(view(self.state, self.config.rendering.placeholder_suffix))
        self.screen.start_input(self.post)
        self.post(ViewportResized(*self.screen.size()))

        while True:
            exit_code = self.step(self._next_event())
            if exit_code is not None:
                logger.info(f"Exiting with status {exit_code}")
                return exit_code

    def close(self):
        self.loader.shutdown(wait=False)
