from dataclasses import dataclass


@dataclass(frozen=True)
class Actor:
    """The signed-in user issuing a read or write."""
    id: str
    role: str
    plant: str
    name: str = ""

    @property
    def display_name(self) -> str:
        return self.name or self.id
