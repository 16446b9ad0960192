# ========================= input/actions.py =========================
import logging
from enum import Enum
from typing import Dict, Optional

import pygame

from config import DisplayConfig, PerformanceConfig
from render.renderer import STATUS_H
from timeline.player import Player

SLOW_MODE_FPS = 30
MIN_WINDOW = (320, 240)
MIN_LANE_H = 60

class InputAction(Enum):
    TOGGLE_PLAYBACK = "toggle_playback"
    INCREASE_SPEED = "increase_speed"
    DECREASE_SPEED = "decrease_speed"
    TOGGLE_SLOW_MODE = "toggle_slow_mode"
    TOGGLE_HUD = "toggle_hud"
    TOGGLE_FULLSCREEN = "toggle_fullscreen"
    RESET = "reset"
    OPEN_FILE = "open_file"
    QUIT = "quit"

KEY_BINDINGS: Dict[int, InputAction] = {
    pygame.K_SPACE: InputAction.TOGGLE_PLAYBACK,
    pygame.K_UP: InputAction.INCREASE_SPEED,
    pygame.K_DOWN: InputAction.DECREASE_SPEED,
    pygame.K_s: InputAction.TOGGLE_SLOW_MODE,
    pygame.K_p: InputAction.TOGGLE_HUD,
    pygame.K_r: InputAction.RESET,
    pygame.K_o: InputAction.OPEN_FILE,
    pygame.K_F11: InputAction.TOGGLE_FULLSCREEN,
    pygame.K_q: InputAction.QUIT,
    pygame.K_ESCAPE: InputAction.QUIT,
}

def action_for_event(e) -> Optional[InputAction]:
    """Map a pygame event to an action; None for anything unbound."""
    if e.type == pygame.QUIT:
        return InputAction.QUIT
    if e.type == pygame.KEYDOWN:
        return KEY_BINDINGS.get(e.key)
    return None

def apply_action(action: InputAction, player: Player, perf: PerformanceConfig):
    """Apply a playback/state action. OPEN_FILE, QUIT and TOGGLE_FULLSCREEN are left to the caller."""
    if action is InputAction.TOGGLE_PLAYBACK:
        player.toggle_playback()
        logging.debug("Playback: %s", "Playing" if player.is_playing else "Paused")
    elif action is InputAction.INCREASE_SPEED:
        player.increase_speed()
        perf.playback_speed = player.playback_speed
        logging.debug("Speed: %.1fx", player.playback_speed)
    elif action is InputAction.DECREASE_SPEED:
        player.decrease_speed()
        perf.playback_speed = player.playback_speed
        logging.debug("Speed: %.1fx", player.playback_speed)
    elif action is InputAction.TOGGLE_SLOW_MODE:
        perf.slow_mode = not perf.slow_mode
        perf.frame_lock = SLOW_MODE_FPS if perf.slow_mode else None
        logging.debug("Slow mode: %s", "Enabled" if perf.slow_mode else "Disabled")
    elif action is InputAction.TOGGLE_HUD:
        perf.show_hud = not perf.show_hud
    elif action is InputAction.RESET:
        player.reset()
        logging.debug("Playback reset to start")

def resize_display(display: DisplayConfig, w: int, h: int) -> DisplayConfig:
    """Record a window resize; the note lane keeps at least MIN_LANE_H pixels."""
    display.window_w = max(MIN_WINDOW[0], int(w))
    display.window_h = max(MIN_WINDOW[1], STATUS_H + display.piano_h + MIN_LANE_H, int(h))
    return display
