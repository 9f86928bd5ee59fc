from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class Identity:
    user_id: int
    role: str


class IdentityResolver(Protocol):
    def resolve(self, credential: str) -> Optional[Identity]:
        ...
