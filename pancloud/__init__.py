from .config import PanConfig
from .errors import PanError
from .user import PanUser

__all__ = ["PanConfig", "PanError", "PanUser"]
