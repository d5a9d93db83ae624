from pythonosc import udp_client
from osc.mapping import OSC_ADDRESSES, USE_STRING_VALUES, VALUE_CODES
from state.schema import SessionState


class OSCSender:
    """
    Publishes timer status as OSC messages (to a stream deck, a lighting
    rig, a second screen...).

    Each field maps to one OSC address (see mapping.py). `send_state()`
    only sends the fields that changed since the previous call.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 7000):
        self.host = host
        self.port = port
        self._client = udp_client.SimpleUDPClient(host, port)
        self._last: dict[str, object] = {}
        print(f"[OSCSender] Ready — sending to {host}:{port}")

    def send_change(self, field: str, value) -> None:
        """
        Send one OSC message.

        Args:
            field: a key of OSC_ADDRESSES, e.g. "remaining_seconds"
            value: int, bool or string value for the field
        """
        address = OSC_ADDRESSES.get(field)
        if address is None:
            print(f"[OSCSender] Warning: no OSC address defined for field '{field}'")
            return

        if isinstance(value, bool):
            osc_value = int(value)
        elif isinstance(value, str) and field == "phase" and not USE_STRING_VALUES:
            osc_value = VALUE_CODES.get(value, 0)
        else:
            osc_value = value
        self._client.send_message(address, osc_value)

    def send_state(self, state: SessionState) -> list[str]:
        """Send every field whose value differs from the last send. Returns the fields sent."""
        current = {
            "remaining_seconds": state.remaining_seconds,
            "display":           state.display,
            "timer_active":      state.timer_active,
            "phase":             state.phase.value,
        }
        sent = []
        for field, value in current.items():
            if field in self._last and self._last[field] == value:
                continue
            self.send_change(field, value)
            self._last[field] = value
            sent.append(field)
        return sent

    def send_all(self, state: SessionState) -> None:
        """Broadcast every field regardless of history (e.g. on startup)."""
        self._last.clear()
        self.send_state(state)
