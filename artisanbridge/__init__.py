"""Artisan Bridge package initialisation."""

__version__ = "0.1.0"

import logging
import sys

logger = logging.getLogger(__name__)


def _check_dependencies():
    """Verify the MQTT client stack is recent enough to run the bridge."""
    try:
        import paho.mqtt.client as mqtt

        # aiomqtt 2.x drives paho-mqtt through CallbackAPIVersion.VERSION2.
        # paho-mqtt 1.x lacks it and fails later with attribute errors.
        if not hasattr(mqtt, "CallbackAPIVersion"):
            logger.critical(
                "FATAL: Incompatible paho-mqtt version detected. "
                "This bridge requires paho-mqtt 2.x with CallbackAPIVersion support."
            )
            sys.exit(1)

    except ImportError:
        # If imports are missing entirely, Python will raise ImportError naturally later.
        pass


_check_dependencies()
