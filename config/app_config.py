"""Centralised application settings (dotenv + env overrides)."""
from __future__ import annotations
import os
from pathlib import Path
from dotenv import load_dotenv

ROOT = Path(__file__).parents[1]
load_dotenv(ROOT / ".env", override=False)


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class settings:                            # pylint: disable=too-few-public-methods
    DEVICE_PRODUCT_KEY  = os.getenv("DEVICE_PRODUCT_KEY", "")
    DEVICE_NAME         = os.getenv("DEVICE_NAME", "device-001")
    DEVICE_VERSION      = os.getenv("DEVICE_VERSION", "1.0.0")

    REGISTER_URL        = os.getenv("REGISTER_URL", "http://localhost:8088/v1/devices/registration")
    LOGIN_URL           = os.getenv("LOGIN_URL", "http://localhost:8088/v1/devices/authentication")
    TOPIC_POST_PROPERTY = os.getenv("TOPIC_POST_PROPERTY", "s/1")
    TOPIC_POST_EVENT    = os.getenv("TOPIC_POST_EVENT", "s/2")
    TOPIC_ON_COMMAND    = os.getenv("TOPIC_ON_COMMAND", "c")

    STORAGE_PATH        = os.getenv("STORAGE_PATH", str(ROOT / "identity.json"))
    HTTP_TIMEOUT        = float(os.getenv("HTTP_TIMEOUT", 10))

    AUTO_REREGISTER             = _flag("AUTO_REREGISTER")
    AUTO_RELOGIN                = _flag("AUTO_RELOGIN", "true")
    AUTO_REINIT_SESSION         = _flag("AUTO_REINIT_SESSION", "true")
    REREGISTER_INTERVAL         = float(os.getenv("REREGISTER_INTERVAL", 5))
    RELOGIN_INTERVAL            = float(os.getenv("RELOGIN_INTERVAL", 5))
    REINIT_SESSION_INTERVAL     = float(os.getenv("REINIT_SESSION_INTERVAL", 5))

    LOG_LEVEL           = os.getenv("LOG_LEVEL", "INFO").upper()
