"""Integration tests for tick-machine."""
import logging

from tick_machine import ActionRegistry, Event, Service, create_machine, create_service


class Player:
    """Subject driven by the media player machine."""

    def __init__(self) -> None:
        self.log: list[str] = []
        self.volume = 5


def _player_config(player: Player) -> dict:
    def louder():
        player.volume += 1

    return {
        "initial": "stopped",
        "states": {
            "stopped": {
                "entry": "rewind",
                "on": {"PLAY": {"target": "playing", "actions": "announce"}},
            },
            "playing": {
                "entry": lambda: player.log.append("spin up"),
                "exit": lambda: player.log.append("spin down"),
                "on": {
                    "PAUSE": "paused",
                    "STOP": "stopped",
                    "VOLUME_UP": {"actions": [louder, "announce"]},
                },
            },
            "paused": {
                "on": {"PLAY": "playing", "STOP": "stopped"},
            },
        },
    }


class TestMediaPlayer:
    """End-to-end flows combining machine, registry and service."""

    def test_full_session(self):
        """Play, adjust volume, pause, resume and stop."""
        # Arrange
        player = Player()
        registry = ActionRegistry()
        registry.register("rewind", lambda: player.log.append("rewind"))
        registry.register("announce", lambda: player.log.append("announce"))
        service = Service(create_machine(_player_config(player)), registry)
        history = []
        service.subscribe(lambda state: history.append(state.value))

        # Act
        service.start()
        service.send("PLAY")
        service.send(Event("VOLUME_UP"))
        service.send("VOLUME_UP")
        service.send("PAUSE")
        service.send("VOLUME_UP")  # ignored while paused
        service.send("PLAY")
        service.send("STOP")

        # Assert
        assert history == ["playing", "playing", "playing", "paused", "playing", "stopped"]
        assert player.volume == 7
        assert player.log == [
            "rewind",
            "announce", "spin up",
            "announce", "announce",
            "spin down",
            "spin up",
            "spin down", "rewind",
        ]

    def test_many_services_one_machine(self):
        """A machine is shared read-only; each service tracks its own subject."""
        player = Player()
        machine = create_machine(_player_config(player))
        actions = {"rewind": lambda: None, "announce": lambda: None}
        services = [create_service(machine, {"actions": actions}) for _ in range(3)]
        for service in services:
            service.start()
        services[0].send("PLAY")
        services[1].send("PLAY")
        services[1].send("PAUSE")
        assert [s.state.value for s in services] == ["playing", "paused", "stopped"]

    def test_debug_logging(self, caplog):
        """Transitions and ignored events are logged at DEBUG."""
        caplog.set_level(logging.DEBUG, logger="tick_machine")
        player = Player()
        service = create_service(
            create_machine(_player_config(player)),
            {"actions": {"rewind": lambda: None, "announce": lambda: None}},
        )
        service.start()
        service.send("PLAY")
        service.send("BOGUS")
        service.stop()

        messages = [r.getMessage() for r in caplog.records]
        assert "service started in 'stopped'" in messages
        assert "'stopped' --PLAY--> 'playing'" in messages
        assert "ignored event 'BOGUS' in state 'playing'" in messages
        assert "service stopped in 'playing'" in messages
