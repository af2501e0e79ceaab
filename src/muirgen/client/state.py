# muirgen/client/state.py

"""View selection and session handling for the console front end."""

import enum
import logging
import threading
from typing import Callable, Dict, Optional

from ..errors import DatabaseError, MuirgenError
from .api import ApiClient, InitInfo
from .storage import TokenStore

logger = logging.getLogger(__name__)

LOGOUT_DELAY_SECONDS = 2.0


class ViewState(enum.Enum):
    VESSEL_SETUP_REQUIRED = "VesselSetupRequired"
    USER_SETUP_REQUIRED = "UserSetupRequired"
    LOGIN_REQUIRED = "LoginRequired"
    AWAITING_VESSEL_FETCH = "AwaitingVesselFetch"
    READY = "Ready"
    LOGGING_OUT = "LoggingOut"


def select_view(
    user_required: bool,
    vessel_required: bool,
    is_logged_in: bool,
    vessel_loaded: bool,
    logging_out: bool,
) -> ViewState:
    """Pick the single view to render; earlier checks take priority."""
    if logging_out:
        return ViewState.LOGGING_OUT
    if vessel_required:
        return ViewState.VESSEL_SETUP_REQUIRED
    if user_required:
        return ViewState.USER_SETUP_REQUIRED
    if not is_logged_in:
        return ViewState.LOGIN_REQUIRED
    if not vessel_loaded:
        return ViewState.AWAITING_VESSEL_FETCH
    return ViewState.READY


class ConsoleController:
    """
    Client-side session state.

    ``refresh`` is safe to call from a polling thread. Login, logout and the
    setup forms bump the session epoch, so any refresh that started earlier
    drops its result; refreshes started during the logout window return
    immediately.
    """

    def __init__(
        self,
        api: ApiClient,
        store: TokenStore,
        logout_delay: float = LOGOUT_DELAY_SECONDS,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self.api = api
        self.store = store
        self.logout_delay = logout_delay
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._epoch = 0
        self._logout_timer = None

        self.status: Dict[str, str] = {"status": "Connecting...", "serverTime": ""}
        self.init_info = InitInfo(user_required=False, vessel_required=False, is_logged_in=False)
        self.vessel: Optional[Dict[str, object]] = None
        self.logging_out = False
        self.message = ""

    @property
    def view(self) -> ViewState:
        with self._lock:
            return select_view(
                self.init_info.user_required,
                self.init_info.vessel_required,
                self.init_info.is_logged_in,
                self.vessel is not None,
                self.logging_out,
            )

    # -------------------------------
    # Refresh
    # -------------------------------

    def refresh(self) -> bool:
        """Fetch status and init info (plus the vessel once logged in).

        Returns ``False`` when the result was discarded or the API is offline.
        """
        with self._lock:
            if self.logging_out:
                return False
            epoch = self._epoch
        token = self.store.load()

        try:
            status = self.api.test_db()
        except DatabaseError:
            status = {"status": "Offline", "serverTime": ""}

        try:
            init_info = self.api.check_init(token)
            vessel = None
            if init_info.is_logged_in and not init_info.vessel_required:
                vessel = self.api.get_vessel(token)
        except MuirgenError as exc:
            logger.warning("refresh failed: %s", exc.message)
            with self._lock:
                if epoch == self._epoch:
                    self.status = {"status": "Offline", "serverTime": ""}
            return False

        with self._lock:
            if self.logging_out or epoch != self._epoch:
                logger.debug("discarding stale refresh")
                return False
            self.status = status
            self.init_info = init_info
            self.vessel = vessel

        if token and not init_info.is_logged_in and self.store.load() == token:
            # Expired or revoked; no use presenting it again.
            self.store.clear()
        return True

    def poll(self, interval: float, stop: threading.Event) -> None:
        """Refresh every ``interval`` seconds until ``stop`` is set."""
        self.refresh()
        while not stop.wait(interval):
            self.refresh()

    # -------------------------------
    # Session
    # -------------------------------

    def login(self, handle: str, password: str) -> bool:
        try:
            token = self.api.login(handle, password)
        except MuirgenError as exc:
            self.message = exc.message
            return False
        self.store.save(token)
        self._begin_epoch()
        self.message = "ACCESS GRANTED"
        self.refresh()
        return True

    def _begin_epoch(self) -> None:
        # Results of refreshes issued before this point are stale.
        with self._lock:
            self._epoch += 1

    def logout(self) -> None:
        """Drop the session now and show the closing notice for the delay."""
        with self._lock:
            self.store.clear()
            self._epoch += 1
            self.vessel = None
            self.init_info = InitInfo(
                user_required=self.init_info.user_required,
                vessel_required=self.init_info.vessel_required,
                is_logged_in=False,
            )
            self.logging_out = True
            self.message = "SESSION CLOSED"
            timer = self._timer_factory(self.logout_delay, self._finish_logout)
            timer.daemon = True
            self._logout_timer = timer
        timer.start()

    def _finish_logout(self) -> None:
        with self._lock:
            self.logging_out = False
            self.message = ""
            self._logout_timer = None

    # -------------------------------
    # First-run setup
    # -------------------------------

    def setup_vessel(self, fields: Dict[str, object]) -> bool:
        try:
            self.api.save_vessel(fields, token=self.store.load())
        except MuirgenError as exc:
            self.message = exc.message
            return False
        self._begin_epoch()
        self.message = "Vessel Registered."
        self.refresh()
        return True

    def setup_user(
        self,
        handle: str,
        name: str,
        password: str,
        password_confirm: str,
        is_admin: bool = False,
        vessel_uuid: Optional[str] = None,
    ) -> bool:
        if password != password_confirm:
            self.message = "Security: Password Mismatch"
            return False
        try:
            self.api.save_user(
                handle,
                name,
                password,
                is_admin=is_admin,
                vessel_uuid=vessel_uuid,
                token=self.store.load(),
            )
        except MuirgenError as exc:
            self.message = exc.message
            return False
        self._begin_epoch()
        self.message = "Registration Successful."
        self.refresh()
        return True
