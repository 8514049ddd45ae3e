"""
OpenCV viewer for the animated scene: projected particles, pickable objects,
the palm cursor and a status bar.
"""

import logging
import cv2
import numpy as np

from core.types import GestureMode, InteractionState
from modules.animation.scene import AnimatedScene

logger = logging.getLogger(__name__)


def rgb_to_bgr255(colors: np.ndarray) -> np.ndarray:
    """Float RGB in [0, 1] -> uint8 BGR for OpenCV."""
    return (np.clip(colors[..., ::-1], 0.0, 1.0) * 255).astype(np.uint8)


class SceneViewer:
    """Renders an AnimatedScene into a BGR canvas."""

    def __init__(self, config: dict):
        self._window_name = config.get("window_name", "Gesture Particle Field")
        self._width = config.get("width", 960)
        self._height = config.get("height", 720)
        self._show_preview = config.get("show_camera_preview", True)
        self._preview_width = config.get("preview_width", 200)
        self._background = tuple(config.get("background", [12, 8, 8]))
        self._point_size = config.get("point_size", 1)

        colors = config.get("colors", {})
        self._color_text = tuple(colors.get("text", [255, 255, 255]))
        self._color_cursor = tuple(colors.get("cursor", [255, 255, 255]))
        self._color_hover = tuple(colors.get("hover", [0, 255, 255]))
        self._color_opened = tuple(colors.get("opened", [90, 90, 90]))
        self._color_rotating = tuple(colors.get("rotating", [255, 160, 0]))

        # Status bar
        bar_cfg = config.get("status_bar", {})
        self._bar_opacity = bar_cfg.get("opacity", 0.6)
        self._bar_height = bar_cfg.get("height", 56)

        self._window_open = False

    @property
    def size(self) -> tuple:
        return (self._width, self._height)

    def render(self, scene: AnimatedScene, state: InteractionState, status: dict = None,
               preview: np.ndarray = None) -> np.ndarray:
        """Draw one frame.

        Args:
            scene: Scene already stepped for this frame
            state: Snapshot the scene was stepped with
            status: optional extra values for the bar (fps, latency_ms, gesture_fps)
            preview: optional BGR camera frame shown in the corner

        Returns:
            BGR canvas of the configured size
        """
        canvas = np.empty((self._height, self._width, 3), dtype=np.uint8)
        canvas[:] = self._background

        camera = scene.camera
        camera.set_aspect(self._width, self._height)

        self._draw_particles(canvas, scene)
        if scene.pickables is not None:
            self._draw_pickables(canvas, scene)
            if state.mode is GestureMode.SCALE:
                self._draw_cursor(canvas, scene)

        if self._show_preview and preview is not None:
            self._draw_preview(canvas, preview)

        self._draw_status_bar(canvas, state, status or {})
        if scene.pickables is not None:
            self._draw_gift_counter(canvas, scene)
        return canvas

    def _draw_particles(self, canvas, scene):
        field = scene.field
        pixels, depth, visible = scene.camera.project(
            field.world_positions(), self._width, self._height)
        if not visible.any():
            return

        # far to near so closer points win
        idx = np.flatnonzero(visible)
        idx = idx[np.argsort(-depth[idx])]
        bgr = rgb_to_bgr255(field.colors[idx])
        px = pixels[idx]

        if self._point_size <= 1:
            canvas[px[:, 1], px[:, 0]] = bgr
        else:
            for (x, y), color in zip(px, bgr):
                cv2.circle(canvas, (int(x), int(y)), self._point_size,
                           tuple(int(c) for c in color), -1)

    def _draw_pickables(self, canvas, scene):
        pickables = scene.pickables
        if not pickables.objects:
            return
        world = pickables.world_positions(scene.field.orientation_tuple)
        pixels, depth, visible = scene.camera.project(world, self._width, self._height)

        for obj, (x, y), d, vis in zip(pickables.objects, pixels, depth, visible):
            if not vis:
                continue
            radius = max(3, int(60.0 / max(d, 1e-3)))
            center = (int(x), int(y))
            if obj.opened:
                cv2.circle(canvas, center, radius, self._color_opened, 1)
                continue
            color = tuple(int(c) for c in rgb_to_bgr255(obj.color))
            cv2.rectangle(canvas, (center[0] - radius, center[1] - radius),
                          (center[0] + radius, center[1] + radius), color, -1)
            if obj.hovered:
                cv2.rectangle(canvas, (center[0] - radius - 3, center[1] - radius - 3),
                              (center[0] + radius + 3, center[1] + radius + 3),
                              self._color_hover, 2)

    def _draw_cursor(self, canvas, scene):
        cursor = scene.pickables.last_cursor.reshape(1, 3)
        pixels, _, visible = scene.camera.project(cursor, self._width, self._height)
        if visible[0]:
            x, y = int(pixels[0, 0]), int(pixels[0, 1])
            cv2.circle(canvas, (x, y), 10, self._color_cursor, 1)
            cv2.circle(canvas, (x, y), 2, self._color_cursor, -1)

    def _draw_preview(self, canvas, preview):
        h, w = preview.shape[:2]
        pw = self._preview_width
        ph = int(h * pw / max(w, 1))
        if ph <= 0 or ph > self._height - self._bar_height:
            return
        # mirrored to match the cursor
        small = cv2.flip(cv2.resize(preview, (pw, ph)), 1)
        y0 = self._height - ph - 10
        x0 = self._width - pw - 10
        canvas[y0:y0 + ph, x0:x0 + pw] = small
        cv2.rectangle(canvas, (x0, y0), (x0 + pw, y0 + ph), (200, 200, 200), 1)

    def _draw_status_bar(self, canvas, state, status):
        """Mode, scale, rotation and loop timing across the top."""
        w = self._width
        overlay = canvas.copy()
        cv2.rectangle(overlay, (0, 0), (w, self._bar_height), (20, 20, 20), -1)
        cv2.addWeighted(overlay, self._bar_opacity, canvas, 1 - self._bar_opacity, 0, canvas)

        info = state.to_overlay_dict()
        mode_text = f"Mode: {info['mode']}"
        if info["is_fist"]:
            mode_text += " (fist)"
        mode_color = self._color_rotating if state.mode.is_rotation else self._color_text
        cv2.putText(canvas, mode_text, (15, 24),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, mode_color, 2)
        rx, ry, rz = info["rotation"]
        cv2.putText(canvas, f"Scale {info['scale']:.2f}  Rot {rx:+.2f} {ry:+.2f} {rz:+.2f}",
                    (15, 46), cv2.FONT_HERSHEY_SIMPLEX, 0.45, self._color_text, 1)

        fps = status.get("fps")
        if fps is not None:
            cv2.putText(canvas, f"FPS: {fps:.1f}", (w - 170, 24),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.6, self._color_text, 2)
        latency = status.get("latency_ms")
        if latency is not None:
            cv2.putText(canvas, f"Gesture: {latency:.1f}ms", (w - 170, 46),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.45, self._color_text, 1)

        if not info["hand_present"]:
            text = "No hand detected"
            size = cv2.getTextSize(text, cv2.FONT_HERSHEY_SIMPLEX, 0.6, 1)[0]
            cv2.putText(canvas, text, ((w - size[0]) // 2, 36),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 165, 255), 1)

    def _draw_gift_counter(self, canvas, scene):
        pickables = scene.pickables
        text = f"Opened {pickables.opened_count}/{len(pickables.objects)}"
        cv2.putText(canvas, text, (15, self._height - 15),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, self._color_text, 1)

    # =========================================================================
    # Window
    # =========================================================================

    def show(self, canvas: np.ndarray) -> int:
        """Display the canvas; returns the pressed key (or -1)."""
        if not self._window_open:
            cv2.namedWindow(self._window_name, cv2.WINDOW_AUTOSIZE)
            self._window_open = True
        cv2.imshow(self._window_name, canvas)
        return cv2.waitKey(1) & 0xFF

    def close(self):
        if self._window_open:
            cv2.destroyWindow(self._window_name)
            self._window_open = False
