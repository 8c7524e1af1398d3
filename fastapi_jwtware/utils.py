import time
import uuid
from collections.abc import Callable
from typing import TypeAlias

Clock: TypeAlias = Callable[[], int]
IdGenerator: TypeAlias = Callable[[], str]


def utc_seconds() -> int:
    return int(time.time())


def new_unique_id() -> str:
    return str(uuid.uuid4())
