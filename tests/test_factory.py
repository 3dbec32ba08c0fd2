"""
Tests for the notification factory and data models.
"""

from toastline.core.config import NotificationConfig
from toastline.notifications.factory import NotificationFactory, generate_id
from toastline.notifications.models import (
    Notification,
    NotificationAction,
    NotificationFlags,
    NotificationKind,
    NotificationSummary,
)


class TestNotificationFactory:
    """Test option resolution."""

    def setup_method(self):
        self.config = NotificationConfig()
        self.factory = NotificationFactory(clock=lambda: 1_700_000_000.5)

    def test_defaults(self):
        notification = self.factory.create({"message": "hello"}, self.config)

        assert notification.kind == NotificationKind.DEFAULT
        assert notification.title == "Notification"
        assert notification.duration == 5000
        assert notification.created_at == 1_700_000_000_500
        assert notification.actions == []
        assert notification.data == {}
        assert notification.is_valid

    def test_type_alias_for_kind(self):
        notification = self.factory.create({"message": "x", "type": "warning"}, self.config)
        assert notification.kind == NotificationKind.WARNING
        assert notification.icon == "⚠"

    def test_unknown_kind(self):
        notification = self.factory.create({"message": "x", "kind": "fatal"}, self.config)
        assert notification.kind == NotificationKind.DEFAULT
        assert "unknown kind 'fatal'" in notification.validation_errors

    def test_explicit_zero_duration_is_kept(self):
        notification = self.factory.create({"message": "x", "duration": 0}, self.config)
        assert notification.duration == 0
        assert notification.is_valid

    def test_invalid_duration(self):
        for bad in (-1, "soon", True):
            notification = self.factory.create({"message": "x", "duration": bad}, self.config)
            assert notification.duration == 5000
            assert not notification.is_valid

    def test_non_finite_duration(self):
        for bad in (float("nan"), float("inf"), float("-inf")):
            notification = self.factory.create({"message": "x", "duration": bad}, self.config)
            assert notification.duration == 5000
            assert not notification.is_valid

    def test_large_integer_duration(self):
        notification = self.factory.create({"message": "x", "duration": 10 ** 12}, self.config)
        assert notification.duration == 10 ** 12
        assert notification.is_valid

    def test_unknown_position(self):
        notification = self.factory.create({"message": "x", "position": "middle"}, self.config)
        assert notification.position is None
        assert not notification.is_valid

    def test_actions(self):
        notification = self.factory.create(
            {"message": "x", "actions": [{"id": "undo", "label": "Undo", "isPrimary": True}, {"label": "View"}, 42]},
            self.config,
        )

        assert [a.id for a in notification.actions] == ["undo", "action-1"]
        assert notification.actions[0].is_primary is True
        assert "ignored action #2" in notification.validation_errors

    def test_actions_must_be_a_list(self):
        notification = self.factory.create({"message": "x", "actions": "undo"}, self.config)
        assert notification.actions == []
        assert "actions must be a list" in notification.validation_errors

    def test_flags_from_options(self):
        notification = self.factory.create(
            {"message": "x", "autoClose": False, "config": {"sound": True}, "enable_progress": False},
            self.config,
        )

        assert notification.config.overrides() == {
            "auto_close": False,
            "progress": False,
            "sound": True,
        }

    def test_ids_are_unique(self):
        ids = {self.factory.create({"message": "x"}, self.config).id for _ in range(200)}
        assert len(ids) == 200

    def test_clock_never_goes_backwards(self):
        times = iter([10.0, 9.0, 11.0])
        factory = NotificationFactory(clock=lambda: next(times))
        assert [factory.now_ms() for _ in range(3)] == [10000, 10000, 11000]

    def test_generate_id_format(self):
        notification_id = generate_id(1234)
        prefix, timestamp, suffix = notification_id.split("-")
        assert prefix == "notification"
        assert timestamp == "1234"
        assert len(suffix) == 9


class TestModels:
    """Test model helpers."""

    def test_flags_follow_config(self):
        flags = NotificationFlags(sound=True)
        config = NotificationConfig(enable_click_to_close=False)

        assert flags.enabled("sound", config) is True
        assert flags.enabled("click_to_close", config) is False
        assert flags.resolve(config)["auto_close"] is True

    def test_to_dict_resolves_against_config(self):
        notification = Notification(
            id="n1",
            message="hello",
            actions=[NotificationAction(id="a", label="A", handler=print)],
        )
        config = NotificationConfig(position="bottom-left")

        data = notification.to_dict(config)

        assert data["position"] == "bottom-left"
        assert data["config"]["auto_close"] is True
        assert data["actions"] == [{"id": "a", "label": "A", "is_primary": False, "icon": None}]
        assert notification.to_dict()["config"] == {}

    def test_summary_layout(self):
        notification = Notification(
            id="n1", kind=NotificationKind.ERROR, title="Error", message="boom",
            created_at=42, data={"audit": 7},
        )

        stored = notification.summary().to_json_dict()

        assert stored == {
            "id": "n1",
            "kind": "error",
            "title": "Error",
            "message": "boom",
            "createdAt": 42,
            "data": {"audit": 7},
        }
        assert NotificationSummary.model_validate(stored).created_at == 42
