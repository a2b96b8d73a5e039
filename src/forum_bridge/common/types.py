"""Transport-level result types."""

from dataclasses import dataclass

__all__ = [
    "ProduceResult",
]


@dataclass(frozen=True)
class ProduceResult:
    """Confirmation of a published message."""

    topic: str
    partition: int
    offset: int
