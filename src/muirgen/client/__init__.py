"""Console front end for the vessel API."""

from .api import ApiClient, InitInfo
from .state import ConsoleController, ViewState, select_view
from .storage import TokenStore

__all__ = ["ApiClient", "ConsoleController", "InitInfo", "TokenStore", "ViewState", "select_view"]
