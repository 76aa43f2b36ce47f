from dataclasses import dataclass
from typing import Optional


@dataclass
class User:
    """An authenticated user. Every budget and template belongs to one."""

    id: int
    email: str
    name: Optional[str] = None
