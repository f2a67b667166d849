from .base import Backend
from .in_process import InProcessBackend
from .out_of_process import OutOfProcessBackend

__all__ = ["Backend", "InProcessBackend", "OutOfProcessBackend"]
