from .settings import Settings, settings
from .fbr_config import FbrConfig

__all__ = ['Settings', 'settings', 'FbrConfig']
