# muirgen/client/console.py

import argparse
import getpass
import logging
import os
import threading
import time

from dotenv import load_dotenv

from .api import DEFAULT_API_URL, ApiClient
from .state import ConsoleController, ViewState
from .storage import TokenStore

load_dotenv()

logger = logging.getLogger(__name__)

VESSEL_NAME_DEFAULT = os.getenv("VESSEL_NAME_DEFAULT", "Muirgen")


# -------------------------------
# Rendering
# -------------------------------

def render(controller: ConsoleController) -> str:
    """Text panel for the controller's current view."""
    view = controller.view
    status = controller.status
    lines = [f"Core Database: {status.get('status', 'Connecting...')}"]

    if view is ViewState.LOGGING_OUT:
        lines.append("SESSION CLOSED")
    elif view is ViewState.VESSEL_SETUP_REQUIRED:
        lines.append("Setup: Vessel Registration")
    elif view is ViewState.USER_SETUP_REQUIRED:
        lines.append("Security: User Registration")
    elif view is ViewState.LOGIN_REQUIRED:
        lines.append("Operator Authentication")
    elif view is ViewState.AWAITING_VESSEL_FETCH:
        lines.append(f"Vessel: {VESSEL_NAME_DEFAULT} (Loading...)")
    else:
        vessel = controller.vessel or {}
        lines.append(f"Date/Time: {status.get('serverTime') or 'Loading...'}")
        lines.append(f"Vessel: {vessel.get('vesselName', VESSEL_NAME_DEFAULT)}")
        lines.append(f"Official Number: {vessel.get('vesselOfficialNumber') or '-'}")

    if controller.message and view is not ViewState.LOGGING_OUT:
        lines.append(f"[{controller.message}]")
    return "\n".join(lines)


# -------------------------------
# Prompts
# -------------------------------

def _ask(label: str, default: str = "") -> str:
    value = input(f"{label}: ").strip()
    return value or default


def _ask_float(label: str):
    raw = _ask(label)
    try:
        return float(raw) if raw else None
    except ValueError:
        print(f"Ignoring non-numeric {label.lower()}")
        return None


def _vessel_form(controller: ConsoleController) -> None:
    fields = {
        "vesselName": _ask("Vessel Name", VESSEL_NAME_DEFAULT),
        "vesselFlagNation": _ask("Flag Nation"),
        "vesselPortOfRegistry": _ask("Port of Registry"),
        "vesselBuildDetails": _ask("Build Details"),
        "vesselOfficialNumber": _ask("Official Number"),
        "vesselHullIdentificationNumber": _ask("Hull ID Number"),
        "vesselKeelOffset": _ask_float("Keel Offset"),
        "vesselWaterlineOffset": _ask_float("Waterline Offset"),
    }
    controller.setup_vessel({k: v for k, v in fields.items() if v not in (None, "")})


def _user_form(controller: ConsoleController) -> None:
    vessel_uuid = None
    vessels = controller.api.get_active_vessels()
    if len(vessels) > 1:
        for i, vessel in enumerate(vessels, 1):
            print(f"  {i}. {vessel['name']}")
        choice = _ask("Assign to vessel #", "1")
        if choice.isdigit() and 1 <= int(choice) <= len(vessels):
            vessel_uuid = vessels[int(choice) - 1]["uuid"]
    controller.setup_user(
        _ask("Operator Handle"),
        _ask("Full Name"),
        getpass.getpass("Password: "),
        getpass.getpass("Re-enter PW: "),
        is_admin=_ask("Administrator (y/N)").lower().startswith("y"),
        vessel_uuid=vessel_uuid,
    )


def _login_form(controller: ConsoleController) -> None:
    controller.login(_ask("Handle"), getpass.getpass("Access Code: "))


def _ready_prompt(controller: ConsoleController) -> bool:
    cmd = _ask("[r]efresh, [l]ogout, [q]uit", "r").lower()
    if cmd.startswith("q"):
        return False
    if cmd.startswith("l"):
        controller.logout()
    return True


# -------------------------------
# Entry point
# -------------------------------

def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Muirgen vessel console")
    parser.add_argument("--api-url", default=os.getenv("MUIRGEN_API_URL", DEFAULT_API_URL))
    parser.add_argument("--poll", type=float, default=1.0, help="refresh interval in seconds, 0 disables")
    args = parser.parse_args(argv)

    logging.basicConfig(level=os.getenv("LOG_LEVEL", "WARNING").upper())

    controller = ConsoleController(ApiClient(args.api_url), TokenStore())
    stop = threading.Event()
    if args.poll > 0:
        threading.Thread(target=controller.poll, args=(args.poll, stop), daemon=True).start()
    else:
        controller.refresh()

    forms = {
        ViewState.VESSEL_SETUP_REQUIRED: _vessel_form,
        ViewState.USER_SETUP_REQUIRED: _user_form,
        ViewState.LOGIN_REQUIRED: _login_form,
    }
    try:
        while True:
            print()
            print(render(controller))
            view = controller.view
            if view is ViewState.LOGGING_OUT:
                time.sleep(controller.logout_delay)
                controller.refresh()
            elif view is ViewState.AWAITING_VESSEL_FETCH:
                time.sleep(0.5)
                controller.refresh()
            elif view in forms:
                forms[view](controller)
            elif not _ready_prompt(controller):
                break
            else:
                controller.refresh()
    except (KeyboardInterrupt, EOFError):
        print()
    finally:
        stop.set()


if __name__ == "__main__":
    main()
