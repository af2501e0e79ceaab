from .user import User
from .vessel import Vessel

__all__ = ["User", "Vessel"]
