# visualization.py
"""
Handles the visualization of the simulation using Pygame.

The Visualizer is a pure consumer: it draws the Snapshot published by the
Simulation after each tick, the per-kind status bar and the completion
overlay, and reports window events (quit, resize) back to the main loop.
"""
import logging
from typing import Dict, List, Optional, Tuple

import pygame

from constants import (
    BACKGROUND_COLOR, DEFAULT_WINDOW_SIZE, FULLSCREEN, KIND_COLORS,
    OVERLAY_ALPHA, OVERLAY_FONT_SIZE, OVERLAY_TEXT, PARTICLE_SIZE,
    STATUS_COLOR_AT_RISK, STATUS_COLOR_CRITICAL, STATUS_COLOR_EXTINCT,
    STATUS_COLOR_HEALTHY, STATUS_COLOR_THRIVING, STATUS_FONT_SIZE,
    STATUS_LINE_SPACING, STATUS_MARGIN, STATUS_PADDING, STATUS_PANEL_ALPHA,
    STATUS_PANEL_COLOR, TEXT_COLOR, WINDOW_TITLE
)
from particle import Kind
from simulation import Snapshot

# --- Data Contracts ---
#
# class Visualizer:
#   - __init__(self, vis_params: Optional[dict] = None, particle_size: int = PARTICLE_SIZE):
#     - Inputs:
#       - vis_params: The "visualization" section of config.json.
#         - "fullscreen": bool
#         - "window_width", "window_height": int
#         - "kind_colors": Optional mapping of kind name to RGB list.
#     - Side Effects: Initializes Pygame and creates a display surface.
#
#   - draw(self, snapshot: Snapshot) -> bool:
#     - Outputs:
#       - bool: False if the user has quit, True otherwise.
#     - Side Effects: Renders particles and UI to the screen, handles Pygame
#       events. A window resize is recorded and handed out by take_resize().
#
# count_color(count: int) -> Tuple[int, int, int]
# status_rows(counts: Dict[Kind, int]) -> List[Tuple[Kind, int, color]]
#   - Rows sorted by count, largest first. Ties keep Kind order.


def count_color(count: int) -> Tuple[int, int, int]:
    """Maps a population count to its status bar color."""
    if count == 0:
        return STATUS_COLOR_EXTINCT
    if count > 10:
        return STATUS_COLOR_THRIVING
    if count >= 5:
        return STATUS_COLOR_HEALTHY
    if count >= 2:
        return STATUS_COLOR_AT_RISK
    return STATUS_COLOR_CRITICAL


def status_rows(counts: Dict[Kind, int]) -> List[Tuple[Kind, int, Tuple[int, int, int]]]:
    rows = [(kind, counts.get(kind, 0)) for kind in Kind]
    rows.sort(key=lambda row: row[1], reverse=True)
    return [(kind, count, count_color(count)) for kind, count in rows]


def resolve_kind_colors(config_colors: Optional[dict]) -> Dict[Kind, pygame.Color]:
    """Builds the kind palette from config, falling back to KIND_COLORS per entry."""
    colors = {kind: pygame.Color(KIND_COLORS[kind.name.lower()]) for kind in Kind}
    if not config_colors:
        logging.info("No kind colors found in config. Using default palette.")
        return colors

    for name, rgb in config_colors.items():
        try:
            kind = Kind[name.upper()]
        except KeyError:
            logging.warning(f"Ignoring color for unknown kind '{name}'.")
            continue
        try:
            colors[kind] = pygame.Color(rgb)
        except (ValueError, TypeError) as e:
            logging.error(f"Could not parse color for '{name}' due to invalid format: {e}. Using default.")
    return colors


class Visualizer:
    """
    Renders the particle snapshot, the status bar and the completion overlay.
    """
    def __init__(self, vis_params: Optional[dict] = None, particle_size: int = PARTICLE_SIZE):
        """
        Initializes Pygame and the display window.
        """
        vis_params = vis_params if vis_params is not None else {}
        pygame.init()
        pygame.font.init()

        if vis_params.get('fullscreen', FULLSCREEN):
            display_info = pygame.display.Info()
            width, height = display_info.current_w, display_info.current_h
            self.screen = pygame.display.set_mode((width, height), pygame.FULLSCREEN)
        else:
            width = vis_params.get('window_width', DEFAULT_WINDOW_SIZE[0])
            height = vis_params.get('window_height', DEFAULT_WINDOW_SIZE[1])
            self.screen = pygame.display.set_mode((width, height), pygame.RESIZABLE)

        self.width = width
        self.height = height
        self._resize_request: Optional[Tuple[int, int]] = None

        pygame.display.set_caption(WINDOW_TITLE)

        self.particle_size = int(particle_size)
        self.colors = resolve_kind_colors(vis_params.get('kind_colors'))

        # Pre-render one glyph per kind
        self.glyphs = self._pre_render_glyphs()

        self.font_status = pygame.font.Font(None, STATUS_FONT_SIZE + 6)
        self.font_overlay = pygame.font.Font(None, OVERLAY_FONT_SIZE + 16)

        logging.info(f"Visualizer initialized with Pygame display ({width}x{height}).")

    def _pre_render_glyphs(self) -> Dict[Kind, pygame.Surface]:
        """
        Pre-renders the glyph surface for each kind.
        """
        logging.debug("Pre-rendering kind glyph surfaces...")
        s = self.particle_size
        glyphs = {}
        for kind in Kind:
            surf = pygame.Surface((s, s), pygame.SRCALPHA)
            color = self.colors[kind]
            if kind is Kind.ROCK:
                pygame.draw.ellipse(surf, color, pygame.Rect(s * 0.15, s * 0.05, s * 0.7, s * 0.9))
            elif kind is Kind.PAPER:
                fold = s * 0.3
                outline = [(s * 0.2, s * 0.05), (s * 0.8 - fold, s * 0.05),
                           (s * 0.8, s * 0.05 + fold), (s * 0.8, s * 0.95), (s * 0.2, s * 0.95)]
                pygame.draw.polygon(surf, color, outline, 2)
                for row in (0.5, 0.65, 0.8):
                    pygame.draw.line(surf, color, (s * 0.32, s * row), (s * 0.68, s * row), 1)
            else:
                handle_radius = max(2, int(s * 0.14))
                pygame.draw.circle(surf, color, (int(s * 0.25), int(s * 0.78)), handle_radius, 2)
                pygame.draw.circle(surf, color, (int(s * 0.75), int(s * 0.78)), handle_radius, 2)
                pygame.draw.line(surf, color, (s * 0.33, s * 0.68), (s * 0.8, s * 0.08), 2)
                pygame.draw.line(surf, color, (s * 0.67, s * 0.68), (s * 0.2, s * 0.08), 2)
            glyphs[kind] = surf
        logging.debug(f"Finished pre-rendering {len(glyphs)} glyph surfaces.")
        return glyphs

    def take_resize(self) -> Optional[Tuple[int, int]]:
        """Returns and clears the most recent window size change, if any."""
        size, self._resize_request = self._resize_request, None
        return size

    def _handle_events(self) -> bool:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down visualizer.")
                return False

            if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                logging.info("ESC key pressed. Shutting down visualizer.")
                return False

            if event.type == pygame.VIDEORESIZE:
                new_size = (event.w, event.h)
                if new_size != (self.width, self.height):
                    self.width, self.height = new_size
                    self.screen = pygame.display.get_surface()
                    self._resize_request = new_size
                    logging.info(f"Window resized to {event.w}x{event.h}.")
        return True

    def _draw_status_bar(self, counts: Dict[Kind, int]):
        """Renders the per-kind counts in the top-right corner."""
        lines = []
        for kind, count, color in status_rows(counts):
            lines.append((self.font_status.render(f"{kind.label}: {count}", True, color), count))

        line_height = self.font_status.get_linesize()
        panel_width = max(surf.get_width() for surf, _ in lines) + 2 * STATUS_PADDING
        panel_height = len(lines) * line_height + (len(lines) - 1) * STATUS_LINE_SPACING + 2 * STATUS_PADDING

        panel = pygame.Surface((panel_width, panel_height), pygame.SRCALPHA)
        panel.fill((*STATUS_PANEL_COLOR, STATUS_PANEL_ALPHA))
        panel_x = self.width - panel_width - STATUS_MARGIN
        panel_y = STATUS_MARGIN
        self.screen.blit(panel, (panel_x, panel_y))

        y = panel_y + STATUS_PADDING
        for surf, count in lines:
            rect = self.screen.blit(surf, (panel_x + STATUS_PADDING, y))
            if count == 0:
                # Extinct kinds are struck through
                pygame.draw.line(self.screen, STATUS_COLOR_EXTINCT, rect.midleft, rect.midright, 2)
            y += line_height + STATUS_LINE_SPACING

    def _draw_overlay(self):
        overlay = pygame.Surface((self.width, self.height), pygame.SRCALPHA)
        overlay.fill((*BACKGROUND_COLOR, OVERLAY_ALPHA))
        self.screen.blit(overlay, (0, 0))

        text_surf = self.font_overlay.render(OVERLAY_TEXT, True, TEXT_COLOR)
        text_rect = text_surf.get_rect(center=(self.width // 2, self.height // 2))
        self.screen.blit(text_surf, text_rect)

    def draw(self, snapshot: Snapshot) -> bool:
        """
        Draws all particles and UI, and handles events.

        Returns:
            bool: False if the simulation should exit, True otherwise.
        """
        if not self._handle_events():
            return False

        self.screen.fill(BACKGROUND_COLOR)
        for particle in snapshot.particles:
            self.screen.blit(self.glyphs[particle.kind], (int(particle.x), int(particle.y)))

        self._draw_status_bar(snapshot.counts)
        if snapshot.complete:
            self._draw_overlay()

        pygame.display.flip()
        return True

    def close(self):
        """Shuts down Pygame."""
        pygame.font.quit()
        pygame.quit()
