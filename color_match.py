"""
color_match.py
Color Match: drag a colored square onto the square that names its color.

A correct drop retires the square and paints the target, a wrong one shakes
the screen, and a drop outside the target sends the square back home.

Controls:
 - Drag a square (mouse or touch) onto the target.
 - Restart button or R : Restart
 - Q or window close : Quit
"""

import argparse
import logging
import math
import random
import sys

import pygame

from match_state import (
    PALETTE,
    ZERO_OFFSET,
    Frame,
    GameStore,
    Transition,
)

log = logging.getLogger(__name__)

# ----------------------------
# Configuration
# ----------------------------
WINDOW_WIDTH = 420
WINDOW_HEIGHT = 760
FPS = 60
PADDING = 16
TITLE_HEIGHT = 32
ROW_GAP = 12  # between title and the square row
MAX_SQUARE = 100
MAX_TARGET = 160
BUTTON_WIDTH = 132
BUTTON_HEIGHT = 52

SQUARE_RADIUS = 12
TARGET_RADIUS = 16
HIGHLIGHT_WIDTH = 8
MIN_TEXT_SCALE = 0.5

# Animation & timing
SPRING_MS = 500  # target recolor and snap-back
SHAKE_MS = 50    # each shake write eases over one step
SPRING_RESPONSE = 0.55  # seconds
SPRING_DAMPING = 0.825

WINDOW_BG = (255, 255, 255)
TITLE_COLOR = (142, 142, 147)
TEXT_COLOR = (0, 0, 0)
BUTTON_COLOR = (0, 122, 255)
BUTTON_TEXT = (255, 255, 255)
SHADOW_COLOR = (0, 0, 0, 38)
BUTTON_SHADOW = (0, 122, 255, 77)

TITLE = "Match colors to words"
DONE_TITLE = "All colors matched!"

# mouse events SDL also emits for touch input
TOUCH_MIRRORED = (pygame.MOUSEBUTTONDOWN, pygame.MOUSEMOTION, pygame.MOUSEBUTTONUP)


# ----------------------------
# Utilities
# ----------------------------
def clamp(n, a, b):
    return max(a, min(b, n))


def lerp(a, b, k):
    if isinstance(a, tuple):
        return tuple(lerp(x, y, k) for x, y in zip(a, b))
    return a + (b - a) * k


def linear(t):
    return t


def spring(t):
    # Damped spring over SPRING_MS; t is normalized time in [0, 1]
    if t >= 1:
        return 1.0
    secs = t * SPRING_MS / 1000.0
    w0 = 2 * math.pi / SPRING_RESPONSE
    wd = w0 * math.sqrt(1 - SPRING_DAMPING ** 2)
    decay = math.exp(-SPRING_DAMPING * w0 * secs)
    return 1 - decay * (math.cos(wd * secs) + (SPRING_DAMPING * w0 / wd) * math.sin(wd * secs))


def to_rect(frame):
    return pygame.Rect(round(frame.x), round(frame.y), round(frame.width), round(frame.height))


class Tween:
    """Interpolates a number or a tuple of numbers from start to end."""

    def __init__(self, start, end, started_at, duration, easing=linear):
        self.start = start
        self.end = end
        self.started_at = started_at
        self.duration = duration
        self.easing = easing

    def progress(self, now):
        if self.duration <= 0:
            return 1.0
        return clamp((now - self.started_at) / self.duration, 0.0, 1.0)

    def done(self, now):
        return self.progress(now) >= 1.0

    def value(self, now):
        return lerp(self.start, self.end, self.easing(self.progress(now)))


# ----------------------------
# Layout
# ----------------------------
class Layout:
    """Screen frames for one window size."""

    def __init__(self, width, height, squares, target, button):
        self.width = width
        self.height = height
        self.squares = squares  # color name -> rest frame
        self.target = target
        self.button = button


def compute_layout(width, height, palette=PALETTE):
    inner = width - 2 * PADDING
    size = min(MAX_SQUARE, inner / 4)
    spacing = inner * 0.05
    row_w = len(palette) * size + (len(palette) - 1) * spacing
    row_x = PADDING + (inner - row_w) / 2
    row_y = PADDING + TITLE_HEIGHT + ROW_GAP
    squares = {}
    for i, color in enumerate(palette):
        squares[color.name] = Frame(row_x + i * (size + spacing), row_y, size, size)

    button = Frame((width - BUTTON_WIDTH) / 2, height - PADDING - BUTTON_HEIGHT,
                   BUTTON_WIDTH, BUTTON_HEIGHT)

    # target sits centered in the space between the row and the button
    t = min(MAX_TARGET, inner * 0.4)
    gap_top = row_y + size
    gap_mid = (gap_top + button.top) / 2
    target = Frame((width - t) / 2, gap_mid - t / 2, t, t)
    return Layout(width, height, squares, target, button)


# ----------------------------
# Game class
# ----------------------------
class ColorMatchGame:
    def __init__(self, width=WINDOW_WIDTH, height=WINDOW_HEIGHT, seed=None, fps=FPS, store=None, ticks=None):
        pygame.init()
        pygame.display.set_caption("Color Match")
        self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)
        self.clock = pygame.time.Clock()
        self.fps = fps
        self.ticks = ticks or pygame.time.get_ticks
        self.store = store or GameStore(rng=random.Random(seed), clock=self.ticks)
        self.font_title = pygame.font.SysFont("Arial", 20, bold=True)
        self.font_target = pygame.font.SysFont("Arial", 36, bold=True)
        self.font_button = pygame.font.SysFont("Arial", 22, bold=True)
        self.running = True

        # renderer-side view of the store
        self.view = self.store.state
        self.drag = None  # armed or active drag: color, start pos, moved
        self.snap_backs = {}  # color name -> Tween back to rest
        self.shake_tween = None
        self.target_color_tween = None
        self.store.subscribe(self.on_state)

        self.apply_layout(width, height)
        log.info("window %dx%d, target %r", width, height, self.view.target_text)

    def apply_layout(self, width, height):
        self.layout = compute_layout(width, height, self.store.palette)
        self.store.set_target_frame(self.layout.target)

    def resize(self, width, height):
        log.info("resized to %dx%d", width, height)
        self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)
        self.apply_layout(width, height)

    # ---------- store notifications ----------
    def on_state(self, state, transition):
        now = self.ticks()
        prev = self.view
        if transition is Transition.SPRING:
            if state.current_target_color != prev.current_target_color:
                self.target_color_tween = Tween(self.target_color(now), state.current_target_color,
                                                now, SPRING_MS, spring)
            dropped = prev.dragged_color
            if dropped is not None and state.dragged_color is None and not state.is_used(dropped):
                self.snap_backs[dropped.name] = Tween(prev.drag_offset, ZERO_OFFSET, now, SPRING_MS, spring)
        elif transition is Transition.SHAKE:
            self.shake_tween = Tween(self.shake_x(now), state.shake_offset, now, SHAKE_MS)
        else:
            if state.shake_offset != prev.shake_offset:
                self.shake_tween = None
            if state.current_target_color != prev.current_target_color:
                self.target_color_tween = None
        self.view = state

    def title_text(self):
        return DONE_TITLE if self.store.is_round_complete else TITLE

    def shake_x(self, now):
        if self.shake_tween is not None:
            return self.shake_tween.value(now)
        return self.view.shake_offset

    def target_color(self, now):
        if self.target_color_tween is not None:
            # the spring overshoots, so channels can leave 0..255 near the end
            return tuple(int(clamp(round(v), 0, 255)) for v in self.target_color_tween.value(now))
        return self.view.current_target_color

    def square_offset(self, color, now):
        if self.view.dragged_color == color:
            return self.view.drag_offset
        tween = self.snap_backs.get(color.name)
        if tween is not None:
            if tween.done(now):
                del self.snap_backs[color.name]
            else:
                return tween.value(now)
        return ZERO_OFFSET

    # ---------- input ----------
    def square_at(self, pos):
        for color in self.store.palette:
            if self.view.is_used(color):
                continue
            if self.layout.squares[color.name].contains(pos):
                return color
        return None

    def handle_press(self, pos):
        if self.layout.button.contains(pos):
            self.drag = None
            self.store.reset_game()
            return
        color = self.square_at(pos)
        if color is not None:
            self.drag = {'color': color, 'start': pos, 'moved': False}

    def handle_motion(self, pos):
        if self.drag is None:
            return
        color = self.drag['color']
        dx = pos[0] - self.drag['start'][0]
        dy = pos[1] - self.drag['start'][1]
        self.drag['moved'] = True
        self.snap_backs.pop(color.name, None)
        cx, cy = self.layout.squares[color.name].center
        self.store.begin_or_continue_drag(color, (dx, dy), (cx + dx, cy + dy))

    def handle_release(self, pos):
        drag, self.drag = self.drag, None
        if drag is None or not drag['moved']:
            return None
        color = drag['color']
        dx, dy = self.store.state.drag_offset
        final = self.layout.squares[color.name].offset_by(dx, dy)
        return self.store.end_drag(color, final)

    def finger_pos(self, ev):
        # Touch positions are normalized (0..1) window coords
        w, h = self.screen.get_size()
        return (ev.x * w, ev.y * h)

    def handle_event(self, ev):
        if ev.type == pygame.QUIT:
            self.running = False
        elif ev.type in TOUCH_MIRRORED and getattr(ev, 'touch', False):
            # SDL mirrors touches as mouse events; the FINGER* events handle them
            return
        elif ev.type == pygame.MOUSEBUTTONDOWN and ev.button == 1:
            self.handle_press(ev.pos)
        elif ev.type == pygame.MOUSEMOTION:
            self.handle_motion(ev.pos)
        elif ev.type == pygame.MOUSEBUTTONUP and ev.button == 1:
            self.handle_release(ev.pos)
        elif ev.type == pygame.FINGERDOWN:
            self.handle_press(self.finger_pos(ev))
        elif ev.type == pygame.FINGERMOTION:
            self.handle_motion(self.finger_pos(ev))
        elif ev.type == pygame.FINGERUP:
            self.handle_release(self.finger_pos(ev))
        elif ev.type == pygame.VIDEORESIZE:
            self.resize(ev.w, ev.h)
        elif ev.type == pygame.KEYDOWN:
            if ev.key == pygame.K_q:
                self.running = False
            elif ev.key == pygame.K_r:
                self.drag = None
                self.store.reset_game()

    # ---------- drawing ----------
    def draw_rounded(self, color, rect, radius, shadow=SHADOW_COLOR):
        if shadow is not None:
            s = pygame.Surface(rect.inflate(8, 8).size, pygame.SRCALPHA)
            pygame.draw.rect(s, shadow, s.get_rect().inflate(-4, -4), border_radius=radius + 2)
            self.screen.blit(s, (rect.x - 4, rect.y - 2))
        if len(color) == 4 and color[3] < 255:
            s = pygame.Surface(rect.size, pygame.SRCALPHA)
            pygame.draw.rect(s, color, s.get_rect(), border_radius=radius)
            self.screen.blit(s, rect.topleft)
        else:
            pygame.draw.rect(self.screen, color[:3], rect, border_radius=radius)

    def draw_target(self, shake_x, now):
        rect = to_rect(self.layout.target.offset_by(shake_x, 0))
        self.draw_rounded(self.target_color(now), rect, TARGET_RADIUS)
        if self.view.highlight_color is not None:
            pygame.draw.rect(self.screen, self.view.highlight_color[:3], rect.inflate(HIGHLIGHT_WIDTH, HIGHLIGHT_WIDTH),
                             width=HIGHLIGHT_WIDTH, border_radius=TARGET_RADIUS + HIGHLIGHT_WIDTH // 2)

        txt = self.font_target.render(self.view.target_text, True, TEXT_COLOR)
        tw, th = txt.get_size()
        if tw > rect.width:
            scale = max(MIN_TEXT_SCALE, rect.width / tw)
            txt = pygame.transform.smoothscale(txt, (int(tw * scale), int(th * scale)))
            tw, th = txt.get_size()
        self.screen.blit(txt, (rect.centerx - tw // 2, rect.centery - th // 2), area=pygame.Rect(0, 0, rect.width, th))

    def draw_squares(self, shake_x, now):
        on_top = None
        for color in self.store.palette:
            if self.view.is_used(color):
                continue
            if self.view.dragged_color == color:
                on_top = color
                continue
            dx, dy = self.square_offset(color, now)
            rect = to_rect(self.layout.squares[color.name].offset_by(dx + shake_x, dy))
            self.draw_rounded(color.display_color, rect, SQUARE_RADIUS)
        # the dragged square renders over everything else
        if on_top is not None:
            dx, dy = self.square_offset(on_top, now)
            rect = to_rect(self.layout.squares[on_top.name].offset_by(dx + shake_x, dy))
            self.draw_rounded(on_top.display_color, rect, SQUARE_RADIUS)

    def draw_button(self, shake_x):
        rect = to_rect(self.layout.button.offset_by(shake_x, 0))
        self.draw_rounded(BUTTON_COLOR, rect, 12, shadow=BUTTON_SHADOW)
        label = self.font_button.render("Restart", True, BUTTON_TEXT)
        self.screen.blit(label, (rect.centerx - label.get_width() // 2, rect.centery - label.get_height() // 2))

    def draw(self):
        now = self.ticks()
        shake_x = self.shake_x(now)
        self.screen.fill(WINDOW_BG)
        title = self.font_title.render(self.title_text(), True, TITLE_COLOR)
        self.screen.blit(title, (int((self.layout.width - title.get_width()) / 2 + shake_x), PADDING))
        self.draw_target(shake_x, now)
        self.draw_squares(shake_x, now)
        self.draw_button(shake_x)
        pygame.display.flip()

    def mainloop(self):
        while self.running:
            self.clock.tick(self.fps)
            for ev in pygame.event.get():
                self.handle_event(ev)
            self.store.update()
            self.draw()
        pygame.quit()


def main(argv=None):
    parser = argparse.ArgumentParser(description='Color Match: drag each color onto its name')
    parser.add_argument('--width', type=int, default=WINDOW_WIDTH, help='Window width in pixels')
    parser.add_argument('--height', type=int, default=WINDOW_HEIGHT, help='Window height in pixels')
    parser.add_argument('--fps', type=int, default=FPS, help='Frame rate cap')
    parser.add_argument('--seed', type=int, default=None, help='RNG seed for target names')
    parser.add_argument('--debug', action='store_true', help='Log every drop and shake')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    game = ColorMatchGame(width=args.width, height=args.height, seed=args.seed, fps=args.fps)
    game.mainloop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
