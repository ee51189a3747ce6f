#!/usr/bin/env python3
import logging, signal, sys, threading
from config.logging_config import configure
from config.app_config import settings
from device_agent import Command, Device, JSONFileStorage, RetryPolicy, Topics
from device_agent.core.exceptions import DeviceAgentError, LifecycleCancelled
from device_agent.services.http_client import RequestsHTTPClient

logger = logging.getLogger("device_agent.main")


def build_device() -> Device:
    topics = Topics(
        register=settings.REGISTER_URL,
        login=settings.LOGIN_URL,
        post_property=settings.TOPIC_POST_PROPERTY,
        post_event=settings.TOPIC_POST_EVENT,
        on_command=settings.TOPIC_ON_COMMAND,
    )
    policy = RetryPolicy(
        auto_reregister=settings.AUTO_REREGISTER,
        auto_relogin=settings.AUTO_RELOGIN,
        auto_reinit_session=settings.AUTO_REINIT_SESSION,
        reregister_interval=settings.REREGISTER_INTERVAL,
        relogin_interval=settings.RELOGIN_INTERVAL,
        reinit_session_interval=settings.REINIT_SESSION_INTERVAL,
    )
    return Device(
        settings.DEVICE_PRODUCT_KEY,
        settings.DEVICE_NAME,
        settings.DEVICE_VERSION,
        topics=topics,
        storage=JSONFileStorage(settings.STORAGE_PATH),
        http_client=RequestsHTTPClient(timeout=settings.HTTP_TIMEOUT),
        retry_policy=policy,
    )


def log_command(params):
    logger.info(f"Command received: {params}")


def main():
    configure()
    device = build_device()
    stop = threading.Event()

    def _shutdown(signum, frame):
        logger.info(f"Received signal {signum}, shutting down gracefully...")
        stop.set()
        device.cancel()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        device.load_device_info()
        device.auto_init()
        device.on_command(Command(id=0, callback=log_command))
    except LifecycleCancelled:
        return 0
    except DeviceAgentError as e:
        logger.error(f"Device start-up failed: {e}")
        return 1

    # keep process alive
    stop.wait()
    device.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
