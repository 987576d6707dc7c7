"""Traffic light -- a small machine driven by a service.

Demonstrates:
- Declaring states with shorthand and explicit transitions
- Entry/exit actions given as callables and as names
- Internal transitions that run actions without leaving the state
- Subscribing to snapshots and unsubscribing

Run: python examples/traffic_light.py
"""

import logging

from tick_machine import create_machine, create_service

CONFIG = {
    "initial": "green",
    "states": {
        "green": {
            "entry": "announce",
            "on": {"TIMER": "yellow"},
        },
        "yellow": {
            "on": {"TIMER": {"target": "red", "actions": "honk"}},
        },
        "red": {
            "exit": lambda: print("  (red light ends)"),
            "on": {
                "TIMER": "green",
                # Pedestrians may press the button; the light stays red.
                "BUTTON": {"actions": ["honk", "announce"]},
            },
        },
    },
}


def main() -> None:
    logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    print("=== Traffic light ===\n")

    machine = create_machine(CONFIG)
    service = create_service(machine, {
        "actions": {
            "announce": lambda: print(f"  now {service.state.value}"),
            "honk": lambda: print("  honk"),
        },
    })
    subscription = service.subscribe(
        lambda state: print(f"  -> {state.value} (actions={state.actions!r})")
    )

    service.start()
    for event in ["TIMER", "TIMER", "BUTTON", "TIMER"]:
        print(f"send {event}")
        service.send(event)

    subscription.unsubscribe()
    service.send("TIMER")
    service.stop()
    print(f"\nDone. Stopped in {service.state.value}.")


if __name__ == "__main__":
    main()
