# render/renderer.py
import pygame, logging
from typing import Iterable, Optional
from notes.model import Note, PLAYHEAD
from config import DisplayConfig

STATUS_H = 36
BTN_PAD_X = 12
BTN_GAP = 10
WHITE_SET = {0, 2, 4, 5, 7, 9, 11}
KEY_COUNT = 128
BUTTONS = ["LOAD MIDI", "PLAY/PAUSE", "RESET", "SPEED -", "SPEED +", "SLOW", "QUIT"]

class Renderer:
    def __init__(self, cfg: DisplayConfig):
        pygame.init()
        self.cfg = cfg
        self.fullscreen = False
        self._windowed_size = (cfg.window_w, cfg.window_h)
        self.screen = pygame.display.set_mode((cfg.window_w, cfg.window_h), pygame.RESIZABLE)
        pygame.display.set_caption("black midi viewer")
        self.font = pygame.font.SysFont("consolas", 18)
        self.font_small = pygame.font.SysFont("consolas", 14)
        self.clock = pygame.time.Clock()
        self.button_rects = {}

        self.marquee_offset = 0.0
        self.marquee_speed = 80.0
        self.marquee_gap = 48
        self._last_tick_ms = pygame.time.get_ticks()

    # ------- lane geometry -------
    @property
    def lane_top(self) -> int:
        return STATUS_H

    @property
    def lane_bottom(self) -> int:
        return self.cfg.window_h - self.cfg.piano_h

    def lane_rect(self, note: Note, time_s: float, time_window: float) -> pygame.Rect:
        """Screen rect of a note; normalized lane y runs from bottom (0) to top (1)."""
        lane_h = self.lane_bottom - self.lane_top
        y = note.y_position(time_s, time_window)
        h = note.height(time_window)
        x = note.x_position() * self.cfg.window_w
        w = max(1.0, note.width() * self.cfg.window_w - 1)
        top = self.lane_bottom - (y + h) * lane_h
        return pygame.Rect(int(x), int(top), int(w), max(1, int(h * lane_h)))

    def resize(self):
        if not self.fullscreen:
            self.screen = pygame.display.set_mode((self.cfg.window_w, self.cfg.window_h), pygame.RESIZABLE)

    def toggle_fullscreen(self):
        self.fullscreen = not self.fullscreen
        if self.fullscreen:
            self._windowed_size = (self.cfg.window_w, self.cfg.window_h)
            self.screen = pygame.display.set_mode((0, 0), pygame.FULLSCREEN)
            self.cfg.window_w, self.cfg.window_h = self.screen.get_size()
        else:
            self.cfg.window_w, self.cfg.window_h = self._windowed_size
            self.resize()
        logging.debug("Fullscreen: %s", self.fullscreen)

    def tick(self, fps=60) -> float:
        return self.clock.tick(fps) / 1000.0

    def begin_frame(self):
        self.screen.fill(self.cfg.background_color)

    def end_frame(self):
        pygame.display.flip()

    def draw_status_bar(self, right_info_text: str = "", song_title: str = ""):
        now = pygame.time.get_ticks()
        dt = (now - self._last_tick_ms) / 1000.0
        self._last_tick_ms = now
        self.marquee_offset = (self.marquee_offset + self.marquee_speed * dt) % 1_000_000

        pygame.draw.rect(self.screen, (24, 24, 28), (0, 0, self.cfg.window_w, STATUS_H))
        pygame.draw.line(self.screen, (60, 60, 66), (0, STATUS_H), (self.cfg.window_w, STATUS_H), 1)

        x = 10; self.button_rects.clear()
        for label in BUTTONS:
            surf = self.font_small.render(label, True, (220, 220, 230))
            rect = surf.get_rect(); rect.topleft = (x + BTN_PAD_X, (STATUS_H - rect.height)//2)
            box = pygame.Rect(x, 4, rect.width + BTN_PAD_X*2, STATUS_H - 8)
            pygame.draw.rect(self.screen, (40, 40, 46), box, border_radius=6)
            pygame.draw.rect(self.screen, (75, 75, 85), box, 1, border_radius=6)
            self.screen.blit(surf, rect)
            self.button_rects[label] = box
            x += box.width + BTN_GAP
        buttons_end_x = x

        right_w = 0
        if right_info_text:
            right = self.font_small.render(right_info_text, True, (180, 180, 190))
            right_w = right.get_width()
            self.screen.blit(right, (self.cfg.window_w - right_w - 10, (STATUS_H - right.get_height())//2))

        # 歌名跑馬燈
        area_x = buttons_end_x + 6
        area_w = max(0, self.cfg.window_w - right_w - 20 - area_x)
        if area_w > 50 and song_title:
            area_rect = pygame.Rect(area_x, 4, area_w, STATUS_H - 8)
            pygame.draw.rect(self.screen, (34, 34, 40), area_rect, border_radius=6)
            pygame.draw.rect(self.screen, (70, 70, 80), area_rect, 1, border_radius=6)
            text = song_title + "   •   "
            surf = self.font_small.render(text, True, (220, 220, 230))
            tw = surf.get_width()
            if tw > 0:
                scroll = self.marquee_offset % (tw + self.marquee_gap)
                clip_prev = self.screen.get_clip()
                self.screen.set_clip(area_rect)
                x_draw = area_rect.x - scroll
                while x_draw < area_rect.right:
                    self.screen.blit(surf, (x_draw, (STATUS_H - surf.get_height())//2))
                    x_draw += tw + self.marquee_gap
                self.screen.set_clip(clip_prev)

    def button_at(self, pos) -> Optional[str]:
        for label, rect in self.button_rects.items():
            if rect.collidepoint(pos):
                return label
        return None

    # ------- piano -------
    def draw_keyboard(self, highlight: Optional[set] = None):
        highlight = highlight or set()
        w, h, ph = self.cfg.window_w, self.cfg.window_h, self.cfg.piano_h
        pygame.draw.rect(self.screen, (28, 28, 32), (0, h - ph, w, ph))
        key_w = w / KEY_COUNT

        # 白鍵全高、黑鍵 60%
        for p in range(KEY_COUNT):
            x = p * key_w
            if (p % 12) in WHITE_SET:
                fill = (230, 230, 230) if p not in highlight else (255, 240, 170)
                rect = (x, h - ph, key_w, ph)
            else:
                fill = (18, 18, 20) if p not in highlight else (255, 200, 120)
                rect = (x, h - ph, key_w, ph * 0.6)
            pygame.draw.rect(self.screen, fill, rect)
            pygame.draw.rect(self.screen, (60, 60, 66), rect, 1)

        lane_h = self.lane_bottom - self.lane_top
        hit_y = self.lane_bottom - PLAYHEAD * lane_h
        pygame.draw.line(self.screen, (90, 90, 90), (0, hit_y), (w, hit_y), 2)

    # ------- notes -------
    def draw_notes(self, notes: Iterable[Note], time_s: float, time_window: float):
        clip_prev = self.screen.get_clip()
        self.screen.set_clip(pygame.Rect(0, self.lane_top, self.cfg.window_w, self.lane_bottom - self.lane_top))
        for n in notes:
            try:
                rect = self.lane_rect(n, time_s, time_window)
                r, g, b, _ = n.color()
            except (ValueError, ZeroDivisionError):
                logging.error("單一音符繪製失敗，跳過該音符：%r", n, exc_info=True)
                continue
            pygame.draw.rect(self.screen, (int(r * 255), int(g * 255), int(b * 255)), rect)
        self.screen.set_clip(clip_prev)

    def hud(self, t: float, total: float, speed: float, fps: float, note_count: int):
        surf = self.font.render(
            f"t={t:6.2f}/{total:.2f}s  speed={speed:.1f}x  fps={fps:.0f}  notes={note_count}",
            True, (200, 200, 210)
        )
        self.screen.blit(surf, (10, STATUS_H + 6))
