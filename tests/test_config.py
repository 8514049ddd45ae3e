"""
Tests for configuration loading and the interaction logger
===========================================================
"""

import logging

import pytest

from core.events import EventBus, Events
from modules.utils.config import Config
from modules.utils.logger import InteractionLogger, setup_logging


class TestConfig:

    def test_defaults_without_file(self, tmp_path):
        config = Config().load(str(tmp_path / "missing.yaml"))
        assert config.get("gesture.lock_threshold") == 4
        assert config.get("particles.count") == 12000
        assert config.get("scene.variant") == "nebula"

    def test_bundled_config_loads(self):
        config = Config().load()
        assert config.gesture["extension_margin"] == pytest.approx(1.2)
        assert config.view["camera_position"] == [0.0, 0.0, 15.0]
        assert config.pickables["hit_radius"] == pytest.approx(1.2)

    def test_file_overrides_merge(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("gesture:\n  lock_threshold: 2\nscene:\n  variant: gifts\n")
        config = Config().load(str(path))
        assert config.get("gesture.lock_threshold") == 2
        # untouched keys in the same section survive
        assert config.get("gesture.rotation_speed") == pytest.approx(3.5)
        assert config.scene["variant"] == "gifts"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert Config().load(str(path)).get("camera.width") == 640

    def test_validation_warns(self, tmp_path, caplog):
        path = tmp_path / "config.yaml"
        path.write_text("gesture:\n  lock_threshold: many\n")
        with caplog.at_level(logging.WARNING):
            Config().load(str(path))
        assert any("lock_threshold" in r.message for r in caplog.records)

    def test_get_default(self):
        assert Config().get("no.such.key", "fallback") == "fallback"
        assert Config().get_section("nothing") == {}

    def test_set_override(self):
        config = Config()
        config.set("particles.count", 500)
        config.set("extra.value", 1)
        assert config.particles["count"] == 500
        assert config.get("extra.value") == 1

    def test_singleton_and_reset(self):
        first = Config()
        first.set("camera.device_id", 3)
        assert Config() is first
        Config.reset()
        assert Config().get("camera.device_id") == 0


class TestInteractionLogger:

    @pytest.fixture
    def bus(self):
        return EventBus()

    def test_records_events(self, bus):
        log = InteractionLogger(bus).attach()
        bus.emit(Events.MODE_CHANGED, previous="IDLE", current="SCALE")
        bus.emit(Events.COLOR_BURST, count=1)
        bus.emit(Events.OBJECT_OPENED, object_id=3, remaining=4)
        bus.emit(Events.HAND_LOST, mode="SCALE")

        assert log.count("mode") == 1
        assert log.count("burst") == 1
        assert log.get_history(kind="opened")[0]["object_id"] == 3
        assert log.get_history(last_n=1)[0]["present"] is False

    def test_detach(self, bus):
        log = InteractionLogger(bus).attach()
        log.detach()
        bus.emit(Events.COLOR_BURST, count=1)
        assert log.get_history() == []
        assert bus.listener_count == 0

    def test_history_is_bounded(self, bus):
        log = InteractionLogger(bus, max_history=10).attach()
        for _ in range(25):
            bus.emit(Events.HAND_DETECTED, mode="IDLE")
        bus.emit(Events.COLOR_BURST, count=1)

        history = log.get_history()
        assert len(history) == 10
        assert history[-1]["event"] == "burst"
        assert log.count("hand") == 9
        assert log.get_history(last_n=2)[0]["event"] == "hand"

    def test_setup_logging_file(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        root = setup_logging(level="DEBUG", log_file=str(log_file))
        try:
            assert root.level == logging.DEBUG
            assert len(root.handlers) == 2
            assert log_file.parent.exists()
        finally:
            for handler in list(root.handlers):
                if isinstance(handler, logging.FileHandler):
                    handler.close()
                    root.removeHandler(handler)
