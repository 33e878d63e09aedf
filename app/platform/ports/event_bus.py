from typing import Protocol, runtime_checkable

@runtime_checkable
class EventBusPort(Protocol):
    """Where schedule and booking events go once the outbox relay picks them up.

    Consumers (booking UIs, notification workers) use these events to drop
    cached availability for the affected doctor.
    """

    async def publish(self, topic: str, key: str, value: dict, headers: dict | None = None) -> None: ...
