# protocol/__init__.py

from .api_client import MachineApiClient
from .endpoints import EXPECTED_SERIES

__all__ = [
    "MachineApiClient",
    "EXPECTED_SERIES"]
