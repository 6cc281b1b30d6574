"""SDL2 window and Skia raster backend for the browsing shell.

This is the only module that touches pixels or the event loop. Each
frame it takes a :class:`~pbrowse.snapshot.RenderSnapshot`, asks the
:class:`~pbrowse.chrome.Chrome` for a display list, rasterizes that with
Skia and blits the result into an SDL window. SDL events are translated
into input actions and posted to the :class:`~pbrowse.shell.Shell`,
which is drained once per frame.

Run it with ``python -m pbrowse [URL]`` or the ``pbrowse`` script.
"""

from __future__ import annotations

import ctypes
import logging
import os
import sys
from typing import Any, Optional

import sdl2
import skia

from .actions import Backspace, Click, CloseCurrentTab, OpenTab, Scroll, Submit, TextChar, ToggleFocus
from .chrome import (
    HEIGHT,
    SCROLL_STEP,
    WIDTH,
    Chrome,
    ClipRect,
    DrawLine,
    DrawOutline,
    DrawRect,
    DrawText,
    Rect,
)
from .history import HistoryLog
from .networking import fetch
from .session import Session, load_start_page
from .shell import Shell
from .snapshot import snapshot

logger = logging.getLogger(__name__)

FONT_SIZE = 10
FRAME_DELAY_MS = 16

FONTS = {}


def get_font(size: int) -> skia.Font:
    if size not in FONTS:
        typeface = skia.Typeface("Courier New", skia.FontStyle.Normal())
        FONTS[size] = skia.Font(typeface, size)
    return FONTS[size]


def parse_color(color: str) -> int:
    if color.startswith("#") and len(color) == 7:
        r = int(color[1:3], 16)
        g = int(color[3:5], 16)
        b = int(color[5:7], 16)
        return skia.Color(r, g, b)
    return skia.ColorBLACK


def to_skia_rect(rect: Rect) -> skia.Rect:
    return skia.Rect.MakeLTRB(rect.left, rect.top, rect.right, rect.bottom)


def printable(text: str) -> str:
    # Page text is kept verbatim; control characters would draw as boxes
    return "".join(" " if c in "\r\n\t" else c for c in text)


class Window:
    """An SDL window showing one session, driven through a shell."""

    def __init__(self, shell: Shell) -> None:
        self.shell = shell
        self.font = get_font(FONT_SIZE)
        metrics = self.font.getMetrics()
        # Skia draws text at the baseline; chrome coordinates are top-left
        self.baseline = -metrics.fAscent
        self.chrome = Chrome(measure=self.font.measureText)
        self.shell.hit_test = self.chrome.hit_test

        self.sdl_window = sdl2.SDL_CreateWindow(b"PBrowse",
            sdl2.SDL_WINDOWPOS_CENTERED, sdl2.SDL_WINDOWPOS_CENTERED,
            WIDTH, HEIGHT, sdl2.SDL_WINDOW_SHOWN)
        self.root_surface = skia.Surface.MakeRaster(
            skia.ImageInfo.Make(
            WIDTH, HEIGHT,
            ct=skia.kRGBA_8888_ColorType,
            at=skia.kUnpremul_AlphaType))

        if sdl2.SDL_BYTEORDER == sdl2.SDL_BIG_ENDIAN:
            self.RED_MASK = 0xff000000
            self.GREEN_MASK = 0x00ff0000
            self.BLUE_MASK = 0x0000ff00
            self.ALPHA_MASK = 0x000000ff
        else:
            self.RED_MASK = 0x000000ff
            self.GREEN_MASK = 0x0000ff00
            self.BLUE_MASK = 0x00ff0000
            self.ALPHA_MASK = 0xff000000

    # Event handlers
    def handle_click(self, e: Any) -> None:
        # Hit-tested by the shell, after earlier queued actions have run
        self.shell.post(Click(e.x, e.y))

    def handle_key(self, keysym: Any) -> None:
        sym = keysym.sym
        ctrl = keysym.mod & (sdl2.KMOD_CTRL | sdl2.KMOD_GUI)
        if ctrl and sym == sdl2.SDLK_t:
            self.shell.post(OpenTab())
        elif ctrl and sym == sdl2.SDLK_w:
            self.shell.post(CloseCurrentTab())
        elif sym == sdl2.SDLK_BACKSPACE:
            self.shell.post(Backspace())
        elif sym == sdl2.SDLK_TAB:
            self.shell.post(ToggleFocus())
        elif sym == sdl2.SDLK_RETURN:
            self.shell.post(Submit())
        elif sym == sdl2.SDLK_DOWN:
            self.shell.post(Scroll(SCROLL_STEP))
        elif sym == sdl2.SDLK_UP:
            self.shell.post(Scroll(-SCROLL_STEP))

    def handle_text(self, raw: bytes) -> None:
        text = raw.decode("utf8", errors="replace")
        if text:
            self.shell.post(TextChar(text))

    def handle_wheel(self, dy: int) -> None:
        # SDL: positive y = wheel up
        if dy:
            self.shell.post(Scroll(-dy * SCROLL_STEP))

    # Painting
    def execute(self, cmd: Any, canvas: skia.Canvas) -> None:
        if isinstance(cmd, DrawText):
            paint = skia.Paint(Color=parse_color(cmd.color), AntiAlias=True)
            canvas.drawString(printable(cmd.text), cmd.x, cmd.y + self.baseline, self.font, paint)
        elif isinstance(cmd, DrawRect):
            canvas.drawRect(to_skia_rect(cmd.rect), skia.Paint(Color=parse_color(cmd.color)))
        elif isinstance(cmd, DrawOutline):
            paint = skia.Paint(
                Color=parse_color(cmd.color),
                StrokeWidth=cmd.thickness,
                Style=skia.Paint.kStroke_Style,
            )
            canvas.drawRect(to_skia_rect(cmd.rect), paint)
        elif isinstance(cmd, DrawLine):
            path = skia.Path().moveTo(cmd.x1, cmd.y1).lineTo(cmd.x2, cmd.y2)
            paint = skia.Paint(
                Color=parse_color(cmd.color),
                StrokeWidth=cmd.thickness,
                Style=skia.Paint.kStroke_Style,
            )
            canvas.drawPath(path, paint)
        elif isinstance(cmd, ClipRect):
            # Clips nest via save/restore; None pops the last one
            if cmd.rect is None:
                canvas.restore()
            else:
                canvas.save()
                canvas.clipRect(to_skia_rect(cmd.rect))

    def draw(self) -> None:
        canvas = self.root_surface.getCanvas()
        canvas.clear(skia.ColorBLACK)
        for cmd in self.chrome.paint(snapshot(self.shell.session)):
            self.execute(cmd, canvas)

        # This makes an image interface to the Skia surface, but
        # doesn't actually copy anything yet.
        skia_image = self.root_surface.makeImageSnapshot()
        skia_bytes = skia_image.tobytes()

        depth = 32 # Bits per pixel
        pitch = 4 * WIDTH # Bytes per row
        sdl_surface = sdl2.SDL_CreateRGBSurfaceFrom(
            skia_bytes, WIDTH, HEIGHT, depth, pitch,
            self.RED_MASK, self.GREEN_MASK,
            self.BLUE_MASK, self.ALPHA_MASK)

        rect = sdl2.SDL_Rect(0, 0, WIDTH, HEIGHT)
        window_surface = sdl2.SDL_GetWindowSurface(self.sdl_window)
        # SDL_BlitSurface is what actually does the copy.
        sdl2.SDL_BlitSurface(sdl_surface, rect, window_surface, rect)
        sdl2.SDL_UpdateWindowSurface(self.sdl_window)
        sdl2.SDL_FreeSurface(sdl_surface)

    def handle_quit(self) -> None:
        self.shell.shutdown()
        sdl2.SDL_DestroyWindow(self.sdl_window)


def mainloop(window: Window) -> None:
    event = sdl2.SDL_Event()
    sdl2.SDL_StartTextInput()
    while True:
        while sdl2.SDL_PollEvent(ctypes.byref(event)) != 0:
            if event.type == sdl2.SDL_QUIT:
                sdl2.SDL_StopTextInput()
                window.handle_quit()
                return
            elif event.type == sdl2.SDL_MOUSEBUTTONDOWN:
                window.handle_click(event.button)
            elif event.type == sdl2.SDL_KEYDOWN:
                window.handle_key(event.key.keysym)
            elif event.type == sdl2.SDL_MOUSEWHEEL:
                window.handle_wheel(event.wheel.y)
            elif event.type == sdl2.SDL_TEXTINPUT:
                window.handle_text(event.text.text)
        window.shell.process_pending()
        window.draw()
        sdl2.SDL_Delay(FRAME_DELAY_MS)


def main(argv: Optional[list] = None) -> None:
    """Entry point for ``python -m pbrowse [URL]``."""
    argv = sys.argv[1:] if argv is None else argv
    logging.basicConfig(
        level=os.environ.get("PBROWSE_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    start_url, start_page = load_start_page(fetch)
    session = Session(start_page, fetcher=fetch, start_url=start_url, history=HistoryLog())
    shell = Shell(session)
    if argv:
        session.url_buffer = argv[0]
        shell.post(Submit())
    sdl2.SDL_Init(sdl2.SDL_INIT_VIDEO | sdl2.SDL_INIT_EVENTS)
    try:
        mainloop(Window(shell))
    finally:
        sdl2.SDL_Quit()


if __name__ == "__main__":
    main()
