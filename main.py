#!/usr/bin/env python3
"""
Gesture Particle Field
Main application entry point.

Two loops share one snapshot store:
    - gesture loop (daemon thread): camera -> MediaPipe -> GestureEngine
    - render loop (main thread): AnimatedScene -> SceneViewer

Usage:
    python main.py                        # Nebula scene
    python main.py --scene gifts          # Cone of particles with pickable gifts
    python main.py --particles 4000       # Lighter field
    python main.py --headless-ticks 300   # No window, render 300 frames and exit
"""

import sys
import os
import time
import signal
import argparse
import logging

import cv2

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)

from modules.utils.config import Config
from modules.utils.logger import setup_logging, InteractionLogger
from modules.capture.camera_manager import CameraManager
from modules.detection.hand_detector import HandDetector
from modules.recognition.gesture_engine import GestureEngine
from modules.recognition.scene_behaviors import create_behavior
from modules.animation.scene import build_scene, SCENE_VARIANTS
from modules.visualization.viewer import SceneViewer

from core.events import EventBus, Events
from core.pipeline import GesturePipeline
from core.snapshot import SnapshotStore

logger = logging.getLogger(__name__)


def compose_preview(frame, detector, show_landmarks=True):
    """Camera preview for the corner inset, with the hand skeleton drawn on a copy."""
    if frame is None:
        return None
    if not show_landmarks:
        return frame
    return detector.draw_landmarks(frame.copy())


class GestureParticleApp:
    """Wires the gesture side and the render side around a SnapshotStore."""

    def __init__(self, config: Config, variant: str = "nebula"):
        self._config = config
        self._variant = variant
        self._running = False

        self._bus = EventBus()
        self._store = SnapshotStore()

        # Gesture side
        gesture_cfg = config.gesture
        self._behavior = create_behavior(variant, gesture_cfg)
        self._engine = GestureEngine(gesture_cfg, self._behavior, self._store, self._bus)
        self._camera = CameraManager(config.camera)
        self._detector = HandDetector(config.mediapipe)
        self._pipeline = GesturePipeline(
            camera=self._camera,
            detector=self._detector,
            engine=self._engine,
            event_bus=self._bus,
            config=config.get_section("system"),
        )

        # Render side
        self._scene = build_scene(
            variant, self._store,
            particles_cfg=config.particles,
            pickables_cfg=config.pickables,
            view_cfg=config.view,
            seed=config.get("scene.seed"),
            event_bus=self._bus,
        )
        self._viewer = SceneViewer(config.visualization)
        self._target_frame_time = 1.0 / max(config.get("visualization.target_fps", 60), 1)

        self._interaction_log = InteractionLogger(self._bus).attach()
        self._bus.subscribe(Events.PROVIDER_FAILED, self._on_provider_failed)

        logger.info("GestureParticleApp initialized (scene=%s)", variant)

    def _on_provider_failed(self, stage="", error="", **_):
        logger.warning("Gesture input unavailable (%s%s); the scene keeps its last state",
                       stage, f": {error}" if error else "")

    def start(self, headless_ticks: int = 0) -> bool:
        """Start the gesture loop and run the render loop until quit."""
        self._pipeline.start_async()
        self._running = True
        self._bus.emit(Events.SYSTEM_STARTED, scene=self._variant)

        try:
            if headless_ticks > 0:
                self._run_headless(headless_ticks)
            else:
                self._run_render_loop()
        finally:
            self._shutdown()
        return not self._pipeline.failed

    def _run_render_loop(self):
        """Main-thread render loop."""
        fps = 0.0
        show_window = self._config.get("visualization.enabled", True)
        show_landmarks = self._config.get("visualization.show_landmarks", True)

        while self._running:
            frame_start = time.perf_counter()
            state = self._scene.step()

            if show_window:
                canvas = self._viewer.render(
                    self._scene, state,
                    status={"fps": fps, "latency_ms": self._pipeline.latency_ms},
                    preview=compose_preview(self._camera.last_frame, self._detector,
                                            show_landmarks),
                )
                key = self._viewer.show(canvas)
                if key == ord("q"):
                    self._running = False
                elif key == ord("r"):
                    logger.info("Scene stats: %d frames, %d bursts, %d snapshots rendered",
                                self._scene.frames, self._scene.bursts,
                                self._scene.snapshots_seen)

            elapsed = time.perf_counter() - frame_start
            if elapsed < self._target_frame_time:
                time.sleep(self._target_frame_time - elapsed)
            frame_time = time.perf_counter() - frame_start
            if frame_time > 0:
                fps = fps * 0.9 + (1.0 / frame_time) * 0.1

    def _run_headless(self, ticks: int):
        """Render loop without a window, for smoke runs."""
        logger.info("=== HEADLESS MODE (%d frames) ===", ticks)
        for i in range(ticks):
            if not self._running:
                break
            self._scene.step(self._target_frame_time)
            time.sleep(self._target_frame_time)
            if i % 100 == 0:
                logger.info("Frame %d/%d (gesture frames: %d, mode: %s)",
                            i, ticks, self._pipeline.frame_count,
                            self._store.latest().mode.value)

    def _shutdown(self):
        """Stop the gesture loop and close windows."""
        logger.info("Shutting down...")
        self._running = False
        self._pipeline.stop()
        self._viewer.close()
        cv2.destroyAllWindows()
        self._bus.emit(Events.SYSTEM_SHUTDOWN)

        logger.info("Frames rendered: %d | gesture frames: %d (hand %.0f%%) | bursts: %d",
                    self._scene.frames, self._pipeline.frame_count,
                    self._pipeline.detection_rate, self._scene.bursts)
        if self._scene.pickables is not None:
            logger.info("Gifts opened: %d/%d", self._scene.pickables.opened_count,
                        len(self._scene.pickables.objects))
        logger.info("Shutdown complete.")

    def handle_signal(self, signum, frame):
        """Handle SIGINT/SIGTERM for graceful shutdown."""
        logger.info("Signal %d received, shutting down...", signum)
        self._running = False


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Gesture Particle Field - hand-controlled particle scene"
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to config.yaml"
    )
    parser.add_argument(
        "--scene", choices=sorted(SCENE_VARIANTS), default=None,
        help="Scene variant (overrides scene.variant)"
    )
    parser.add_argument(
        "--camera", type=int, default=None,
        help="Camera device ID"
    )
    parser.add_argument(
        "--particles", type=int, default=None,
        help="Particle count"
    )
    parser.add_argument(
        "--headless-ticks", type=int, default=0,
        help="Render this many frames without a window, then exit"
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    # Load configuration
    config = Config()
    config.load(config_path=args.config)

    # Command-line overrides
    if args.camera is not None:
        config.set("camera.device_id", args.camera)
    if args.particles is not None:
        config.set("particles.count", args.particles)
    if args.scene is not None:
        config.set("scene.variant", args.scene)

    # Setup logging
    log_cfg = config.get_section("logging")
    setup_logging(
        level=log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )

    variant = config.get("scene.variant", "nebula")
    logger.info("=" * 60)
    logger.info("  GESTURE PARTICLE FIELD")
    logger.info("  Version: %s", config.get("system.version", "1.0.0"))
    logger.info("  Scene: %s", variant)
    logger.info("=" * 60)

    app = GestureParticleApp(config, variant=variant)

    # Register signal handlers
    signal.signal(signal.SIGINT, app.handle_signal)
    signal.signal(signal.SIGTERM, app.handle_signal)

    return 0 if app.start(headless_ticks=args.headless_ticks) else 1


if __name__ == "__main__":
    sys.exit(main())
