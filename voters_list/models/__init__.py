# voters_list/models/__init__.py
# Central import surface for SQLModel table registration.
# Keeping these imports ensures init_db() sees all models and creates tables.

from .monitor import Monitor, MonitorSession
from .voter import Voter

__all__ = [
    "Monitor",
    "MonitorSession",
    "Voter",
]
