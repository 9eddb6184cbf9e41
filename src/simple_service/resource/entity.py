from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Resource:
    """A named resource; `id` is assigned by the store on creation."""

    id: Optional[int] = None
    name: str = ""
