#!/usr/bin/env python3
"""
🐧 PNGN imgcat - Navigation State Machine
=========================================
Copyright (c) 2025 PNGN-Tec LLC

Viewer State and Transitions
============================
The viewer is a pure function pair:

    transition(state, event) -> (state, command or None)
    view(state)              -> screen text

Neither touches the terminal, the network or the filesystem, so the
whole navigation behavior is testable with plain values.

Phases
======
- IDLE:       no viewport size yet
- LOADING:    a load for the selected reference is in flight
- DISPLAYING: the selected reference is on screen
- FAILED:     a load failed; any key exits with status 1

Stale Results
=============
Every load command carries a request id. Only the result matching the
most recent request is applied; results for requests the user has
navigated away from are dropped.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from config import RenderingConfig
from imgcat_errors import ImgcatError
from imgcat_raster import TerminalFrame
from imgcat_width import fit_width

# Configure logging
logger = logging.getLogger('imgcat_state')

QUIT_HINT = "q to quit"


# ============================================================================
# KEYS
# ============================================================================

class Key(Enum):
    """Keyboard input the viewer reacts to"""
    NEXT = "next"
    PREVIOUS = "previous"
    QUIT = "quit"
    OTHER = "other"


# Escape sequences first so ESC is not read as a lone key
KEY_SEQUENCES = (
    (b"\x1b[A", Key.PREVIOUS),
    (b"\x1bOA", Key.PREVIOUS),
    (b"\x1b[B", Key.NEXT),
    (b"\x1bOB", Key.NEXT),
    (b"\x03", Key.QUIT),
    (b"q", Key.QUIT),
    (b"j", Key.NEXT),
    (b"k", Key.PREVIOUS),
)


def decode_keys(data: bytes) -> List[Key]:
    """
    Split raw terminal input into keys.

    Unknown escape sequences are consumed whole (ESC, '[' or 'O', and
    everything up to the final byte) and reported as a single OTHER.
    """
    keys = []
    index = 0
    while index < len(data):
        for sequence, key in KEY_SEQUENCES:
            if data.startswith(sequence, index):
                keys.append(key)
                index += len(sequence)
                break
        else:
            if data[index:index + 1] == b"\x1b" and data[index + 1:index + 2] in (b"[", b"O"):
                end = index + 2
                while end < len(data) and not 0x40 <= data[end] <= 0x7e:
                    end += 1
                index = end + 1
            else:
                index += 1
            keys.append(Key.OTHER)
    return keys


# ============================================================================
# EVENTS AND COMMANDS
# ============================================================================

@dataclass(frozen=True)
class ViewportResized:
    width: int
    height: int


@dataclass(frozen=True)
class KeyPressed:
    key: Key


@dataclass(frozen=True)
class LoadSucceeded:
    request_id: int
    reference: str
    frame: TerminalFrame


@dataclass(frozen=True)
class LoadFailed:
    request_id: int
    reference: str
    error: Exception


Event = Union[ViewportResized, KeyPressed, LoadSucceeded, LoadFailed]


@dataclass(frozen=True)
class LoadImage:
    """Fetch, decode and rasterize ``reference`` into ``rows`` text rows."""
    request_id: int
    reference: str
    rows: int


@dataclass(frozen=True)
class Quit:
    exit_code: int = 0


Command = Union[LoadImage, Quit]


# ============================================================================
# SESSION STATE
# ============================================================================

class Phase(Enum):
    IDLE = "idle"
    LOADING = "loading"
    DISPLAYING = "displaying"
    FAILED = "failed"


@dataclass(frozen=True)
class SessionState:
    """
    Everything the viewer knows between events.

    Attributes:
        references: Image references, fixed for the session
        selected_index: Index into references, always valid
        phase: Current phase
        current_frame: Frame for the selected reference when DISPLAYING
        last_error: Failure shown when FAILED
        viewport_width: Terminal columns, once known
        viewport_height: Terminal rows, once known
        pending_request: Id of the load whose result will be applied
        request_counter: Last issued request id
    """
    references: Tuple[str, ...]
    selected_index: int = 0
    phase: Phase = Phase.IDLE
    current_frame: Optional[TerminalFrame] = None
    last_error: Optional[Exception] = None
    viewport_width: Optional[int] = None
    viewport_height: Optional[int] = None
    pending_request: Optional[int] = None
    request_counter: int = 0
    footer_rows: int = RenderingConfig.footer_rows

    def __post_init__(self):
        if not self.references:
            raise ValueError("At least one image reference is required")
        if not 0 <= self.selected_index < len(self.references):
            raise ValueError(f"Selected index {self.selected_index} out of range")

    @classmethod
    def initial(cls, references: Sequence[str], footer_rows: int = RenderingConfig.footer_rows) -> "SessionState":
        return cls(references=tuple(references), footer_rows=footer_rows)

    @property
    def active_reference(self) -> str:
        return self.references[self.selected_index]

    @property
    def image_rows(self) -> int:
        """Text rows left for the image under the footer."""
        return max(1, (self.viewport_height or 0) - self.footer_rows)


# ============================================================================
# TRANSITIONS
# ============================================================================

def _issue_load(state: SessionState) -> Tuple[SessionState, Command]:
    request_id = state.request_counter + 1
    state = replace(
        state,
        phase=Phase.LOADING,
        current_frame=None,
        pending_request=request_id,
        request_counter=request_id,
    )
    return state, LoadImage(request_id, state.active_reference, state.image_rows)


def _select(state: SessionState, step: int) -> Tuple[SessionState, Optional[Command]]:
    count = len(state.references)
    state = replace(state, selected_index=(state.selected_index + step + count) % count)
    if state.viewport_height is None:
        return state, None
    return _issue_load(state)


def transition(state: SessionState, event: Event) -> Tuple[SessionState, Optional[Command]]:
    """
    Apply one event to the session.

    Args:
        state: Current state
        event: Event to process

    Returns:
        (new state, command to execute or None)
    """
    if state.phase is Phase.FAILED:
        if isinstance(event, KeyPressed):
            return state, Quit(1)
        return state, None

    if isinstance(event, ViewportResized):
        state = replace(state, viewport_width=event.width, viewport_height=event.height)
        return _issue_load(state)

    if isinstance(event, KeyPressed):
        if event.key is Key.QUIT:
            return state, Quit(0)
        if event.key is Key.NEXT:
            return _select(state, 1)
        if event.key is Key.PREVIOUS:
            return _select(state, -1)
        return state, None

    if isinstance(event, (LoadSucceeded, LoadFailed)):
        if event.request_id != state.pending_request:
            logger.debug(f"Dropping stale result for {event.reference} (request {event.request_id})")
            return state, None

        if isinstance(event, LoadFailed):
            return replace(state, phase=Phase.FAILED, last_error=event.error,
                           current_frame=None, pending_request=None), None

        return replace(state, phase=Phase.DISPLAYING, current_frame=event.frame,
                       pending_request=None), None

    raise TypeError(f"Unknown event: {event!r}")


# ============================================================================
# RENDERING
# ============================================================================

def describe_error(error: Exception) -> str:
    """Error text shown to the user, verbatim from the exception."""
    if isinstance(error, ImgcatError):
        return str(error)
    return f"{type(error).__name__}: {error}"


def view(state: SessionState, placeholder_suffix: str = RenderingConfig.placeholder_suffix) -> str:
    """
    Screen text for the current state.

    Args:
        state: Current state
        placeholder_suffix: Decoration after the loading message

    Returns:
        Text to paint, rows separated by newlines
    """
    width = state.viewport_width

    if state.phase is Phase.FAILED:
        return f"couldn't load image(s): {describe_error(state.last_error)}\n\npress any key to exit"

    if state.phase is Phase.DISPLAYING and state.current_frame is not None:
        footer = f"{QUIT_HINT} | {state.active_reference}"
        if width is not None:
            footer = fit_width(footer, width)
        return f"{state.current_frame.text}\n{footer}"

    placeholder = f"loading {state.active_reference} {placeholder_suffix}"
    if width is not None:
        placeholder = fit_width(placeholder, width)
    return placeholder
