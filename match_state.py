"""
match_state.py
Game state for Color Match: the palette, frame geometry and the store that
owns every transition of a round.

The store does no drawing and no layout math. Callers hand it fully resolved
frames and points and read back immutable RoundState snapshots.
"""
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, FrozenSet, List, Optional, Sequence, Tuple

log = logging.getLogger(__name__)

Color = Tuple[int, int, int, int]  # RGBA
Point = Tuple[float, float]
Offset = Tuple[float, float]

# ---------------- Configuration ----------------
ZERO_OFFSET: Offset = (0.0, 0.0)
NEUTRAL_COLOR: Color = (142, 142, 147, 77)  # gray at 30% opacity

SHAKE_OFFSET = 20.0  # horizontal screen displacement
SHAKE_PULSES = 2
SHAKE_STEP_MS = 50


# ---------------- Geometry ----------------
@dataclass(frozen=True)
class Frame:
    """Axis-aligned screen rectangle with float coordinates."""
    x: float
    y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.x

    @property
    def top(self) -> float:
        return self.y

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def offset_by(self, dx: float, dy: float) -> 'Frame':
        return Frame(self.x + dx, self.y + dy, self.width, self.height)

    def contains(self, point: Point) -> bool:
        """True if the point lies inside; the right and bottom edges are outside."""
        if self.is_empty:
            return False
        px, py = point
        return self.left <= px < self.right and self.top <= py < self.bottom

    def intersects(self, other: 'Frame') -> bool:
        """True only for a positive-area overlap. Shared edges do not count."""
        if self.is_empty or other.is_empty:
            return False
        return (self.left < other.right and other.left < self.right
                and self.top < other.bottom and other.top < self.bottom)


ZERO_FRAME = Frame(0.0, 0.0, 0.0, 0.0)


# ---------------- Palette ----------------
@dataclass(frozen=True)
class ColorOption:
    """A draggable palette entry. Names are unique, so they alone identify it."""
    name: str
    display_color: Color = field(compare=False)


PALETTE: Tuple[ColorOption, ...] = (
    ColorOption("red", (242, 89, 89, 255)),
    ColorOption("yellow", (255, 217, 77, 255)),
    ColorOption("green", (77, 204, 128, 255)),
)


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


def random_name(palette: Sequence[ColorOption], rng: random.Random) -> str:
    return rng.choice(list(palette)).name


# ---------------- Round state ----------------
@dataclass(frozen=True)
class RoundState:
    target_text: str
    current_target_color: Color = NEUTRAL_COLOR
    used_colors: FrozenSet[ColorOption] = frozenset()
    dragged_color: Optional[ColorOption] = None
    drag_offset: Offset = ZERO_OFFSET
    target_frame: Frame = ZERO_FRAME
    highlight_color: Optional[Color] = None
    shake_offset: float = 0.0

    def is_used(self, color: ColorOption) -> bool:
        return color in self.used_colors


class DropOutcome(Enum):
    MISS = "miss"
    CORRECT = "correct"
    WRONG = "wrong"


class Transition(Enum):
    """How the renderer should move from the previous snapshot to the new one."""
    NONE = "none"
    SPRING = "spring"
    SHAKE = "shake"  # 50 ms linear


Listener = Callable[[RoundState, Transition], None]


# ---------------- Shake ----------------
class ShakeSequence:
    """Timed shake writes, relative to the tick the sequence started on.

    Two pulses to SHAKE_OFFSET one step apart, then back to 0 a step later.
    """

    def __init__(self, started_at: int):
        self.started_at = started_at
        self.steps: List[Tuple[int, float]] = [
            (i * SHAKE_STEP_MS, SHAKE_OFFSET) for i in range(SHAKE_PULSES)
        ]
        self.steps.append((SHAKE_PULSES * SHAKE_STEP_MS, 0.0))
        self._next = 0
        self.cancelled = False

    @property
    def done(self) -> bool:
        return self.cancelled or self._next >= len(self.steps)

    def cancel(self) -> None:
        self.cancelled = True

    def due(self, now: int) -> List[float]:
        """Pop the offsets whose delay has elapsed by `now`, in order."""
        out: List[float] = []
        while not self.done:
            delay, value = self.steps[self._next]
            if now - self.started_at < delay:
                break
            out.append(value)
            self._next += 1
        return out


# ---------------- Store ----------------
class GameStore:
    """Owns the RoundState of one play session and is its only writer.

    Listeners registered with subscribe() are told about every transition.
    Shake steps are delivered by update(), which the game loop calls once per
    frame.
    """

    def __init__(
        self,
        palette: Sequence[ColorOption] = PALETTE,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        if not palette:
            raise ValueError('palette must contain at least one color')
        self.palette: Tuple[ColorOption, ...] = tuple(palette)
        self.rng = rng or random.Random()
        self.clock = clock or monotonic_ms
        self._listeners: List[Listener] = []
        self._shake: Optional[ShakeSequence] = None
        self._state = RoundState(target_text=random_name(self.palette, self.rng))

    @property
    def state(self) -> RoundState:
        return self._state

    @property
    def shake(self) -> Optional[ShakeSequence]:
        return self._shake

    @property
    def is_round_complete(self) -> bool:
        return all(c in self._state.used_colors for c in self.palette)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, transition: Transition = Transition.NONE, **changes) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            listener(self._state, transition)

    # ---------- layout sync ----------
    def set_target_frame(self, frame: Frame) -> None:
        if frame != self._state.target_frame:
            self._publish(target_frame=frame)

    # ---------- drag ----------
    def begin_or_continue_drag(self, color: ColorOption, translation: Offset, moving_center: Point) -> None:
        hovering = self._state.target_frame.contains(moving_center)
        self._publish(
            dragged_color=color,
            drag_offset=(float(translation[0]), float(translation[1])),
            highlight_color=color.display_color if hovering else None,
        )

    def end_drag(self, color: ColorOption, final_frame: Frame) -> DropOutcome:
        s = self._state
        if not final_frame.intersects(s.target_frame):
            log.debug("drop %s missed the target", color.name)
            self._publish(
                Transition.SPRING,
                drag_offset=ZERO_OFFSET,
                dragged_color=None,
                highlight_color=None,
            )
            return DropOutcome.MISS

        if color.name == s.target_text:
            log.debug("drop %s matched %r", color.name, s.target_text)
            self._publish(
                Transition.SPRING,
                current_target_color=color.display_color,
                dragged_color=None,
                drag_offset=ZERO_OFFSET,
                used_colors=s.used_colors | {color},
                highlight_color=None,
            )
            return DropOutcome.CORRECT

        log.debug("drop %s does not match %r", color.name, s.target_text)
        self._publish(drag_offset=ZERO_OFFSET, dragged_color=None, highlight_color=None)
        self._start_shake()
        return DropOutcome.WRONG

    # ---------- shake ----------
    def _start_shake(self) -> None:
        if self._shake is not None and not self._shake.done:
            log.debug("replacing in-flight shake started at %d", self._shake.started_at)
            self._shake.cancel()
        self._shake = ShakeSequence(self.clock())

    def update(self, now: Optional[int] = None) -> None:
        """Apply any shake writes that have come due."""
        if self._shake is None:
            return
        if now is None:
            now = self.clock()
        for value in self._shake.due(now):
            self._publish(Transition.SHAKE, shake_offset=value)
        if self._shake.done:
            self._shake = None

    # ---------- reset ----------
    def reset_game(self) -> None:
        if self._shake is not None:
            self._shake.cancel()
            self._shake = None
        target = random_name(self.palette, self.rng)
        log.debug("new round, target %r", target)
        self._publish(
            drag_offset=ZERO_OFFSET,
            dragged_color=None,
            highlight_color=None,
            current_target_color=NEUTRAL_COLOR,
            target_text=target,
            shake_offset=0.0,
            used_colors=frozenset(),
        )
