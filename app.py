# app.py
import os
import logging
import pygame
from typing import List, Optional
from config import AppConfig, effective_fps
from notes.model import Note, visible_notes
from render.renderer import Renderer, STATUS_H
from timeline.player import Player
from input.actions import InputAction, action_for_event, apply_action, resize_display
from midi.errors import ParseError
from midi.parser import MidiParser
from utils.crashlog import log_exception

BUTTON_ACTIONS = {
    "LOAD MIDI": InputAction.OPEN_FILE,
    "PLAY/PAUSE": InputAction.TOGGLE_PLAYBACK,
    "RESET": InputAction.RESET,
    "SPEED -": InputAction.DECREASE_SPEED,
    "SPEED +": InputAction.INCREASE_SPEED,
    "SLOW": InputAction.TOGGLE_SLOW_MODE,
    "QUIT": InputAction.QUIT,
}

def pick_file_dialog(title: str, patterns: list[tuple[str, str]]) -> Optional[str]:
    try:
        import tkinter as tk
        from tkinter import filedialog
        root = tk.Tk(); root.withdraw()
        file = filedialog.askopenfilename(title=title, filetypes=patterns)
        root.update(); root.destroy()
        return file or None
    except Exception:
        logging.warning("File dialog unavailable", exc_info=True)
        return None

class App:
    def __init__(self, cfg: AppConfig, notes: Optional[List[Note]] = None):
        self.cfg = cfg
        self.renderer = Renderer(cfg.display)
        self.player = Player(cfg.performance.playback_speed)
        self.parser = MidiParser.from_config(cfg.parse)

        self.current_midi: Optional[str] = None
        self._set_notes(notes or [])

        # UI 訊息（toast）
        self._msg = ""
        self._msg_time = 0.0

    def _set_notes(self, notes: List[Note]):
        self.notes: List[Note] = sorted(notes, key=lambda n: n.start_time)
        self.note_starts: List[float] = [n.start_time for n in self.notes]
        self.max_duration = max((n.duration for n in self.notes), default=0.0)
        self.total = MidiParser.get_duration(self.notes)

    # ---------- UI 訊息 ----------
    def _toast(self, msg: str, secs: float = 4.0):
        self._msg = msg
        self._msg_time = max(self._msg_time, secs)

    # ---------- Loading ----------
    def load_midi(self, path: str) -> bool:
        try:
            notes = self.parser.parse_file(path)
        except ParseError as e:
            log_exception("load_midi", e)
            logging.error("Failed to load %s: %s", path, e)
            self._toast(f"Failed to load MIDI ({e.kind})", 6.0)
            return False
        self._set_notes(notes)
        self.current_midi = path
        self.player.reset()
        self._toast(f"Loaded {len(notes)} notes ✓", 2.0)
        return True

    def load_midi_interactive(self) -> bool:
        self.player.pause()
        path = pick_file_dialog("Select a MIDI file", [("MIDI files", "*.mid *.midi"), ("All files", "*.*")])
        if not path:
            return False
        return self.load_midi(path)

    def handle(self, action: InputAction) -> bool:
        """Returns False when the app should quit."""
        if action is InputAction.QUIT:
            return False
        if action is InputAction.OPEN_FILE:
            self.load_midi_interactive()
        elif action is InputAction.TOGGLE_FULLSCREEN:
            self.renderer.toggle_fullscreen()
        else:
            apply_action(action, self.player, self.cfg.performance)
        return True

    # ---------- Main loop ----------
    def run(self):
        running = True
        while running:
            dt = self.renderer.tick(effective_fps(self.cfg.display, self.cfg.performance))
            for e in pygame.event.get():
                action = action_for_event(e)
                if action is not None:
                    running = self.handle(action) and running
                elif e.type == pygame.DROPFILE:
                    self.load_midi(e.file)
                elif e.type == pygame.VIDEORESIZE and not self.renderer.fullscreen:
                    resize_display(self.cfg.display, e.w, e.h)
                    self.renderer.resize()
                elif e.type == pygame.MOUSEBUTTONDOWN and e.button == 1 and e.pos[1] <= STATUS_H:
                    label = self.renderer.button_at(e.pos)
                    if label in BUTTON_ACTIONS:
                        running = self.handle(BUTTON_ACTIONS[label]) and running
            if not running: break

            if self._msg_time > 0:
                self._msg_time -= dt
                if self._msg_time <= 0:
                    self._msg_time = 0
                    self._msg = ""

            self.player.update(dt)
            if self.total and self.player.current_time > self.total + 1.0:
                self.player.pause()

            # ----- Render -----
            perf = self.cfg.performance
            window = self.cfg.display.time_window
            self.renderer.begin_frame()
            right_fields = [
                f"PLAY: {'ON' if self.player.is_playing else 'OFF'}",
                f"SPEED: {self.player.playback_speed:.1f}x",
                f"SLOW: {'ON' if perf.slow_mode else 'OFF'}",
            ]
            if self._msg: right_fields.append(self._msg)
            song_title = os.path.basename(self.current_midi) if self.current_midi else ""
            self.renderer.draw_status_bar(right_info_text="  |  ".join(right_fields), song_title=song_title)

            t = self.player.current_time
            shown = visible_notes(self.notes, self.note_starts, t, window, self.max_duration)
            self.renderer.draw_notes(shown, t, window)
            self.renderer.draw_keyboard(highlight=self.player.sounding(self.notes, self.note_starts, self.max_duration))
            if perf.show_hud:
                self.renderer.hud(t, self.total, self.player.playback_speed,
                                  self.renderer.clock.get_fps(), len(shown))
            self.renderer.end_frame()
        pygame.quit()
