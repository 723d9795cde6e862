import json
import logging
import ssl
import threading
from typing import Any, Iterable, Optional
import paho.mqtt.client as mqtt
from fastapi import Request
from campus_library.config import settings

logger = logging.getLogger(__name__)


def user_room(user_id: int) -> str:
    return f"user_{user_id}"


def post_comments_room(post_id: int) -> str:
    return f"post_comments_{post_id}"


def post_reactions_room(post_id: int) -> str:
    return f"post_reactions_{post_id}"


class RealtimeNotifier:
    """Pushes events to room-scoped MQTT topics.

    Topics look like ``<prefix>/<room>/<event>``; clients subscribe to the rooms
    they care about (their own user room, the post they have open, ...).
    Delivery is fire-and-forget at QoS 0: a client that is not connected
    misses the event and is expected to re-fetch.
    """

    def __init__(self, client: Optional[mqtt.Client] = None, topic_prefix: Optional[str] = None):
        self.client = client
        self.topic_prefix = topic_prefix or settings.realtime_topic_prefix
        self.is_connected = False
        self._lock = threading.Lock()

    def on_connect(self, client, userdata, flags, reason_code, properties=None):
        """Callback when MQTT client connects to broker."""
        if reason_code == 0:
            self.is_connected = True
            logger.info(f"Realtime notifier connected to {settings.mqtt_broker}:{settings.mqtt_port}")
        else:
            logger.error(f"Realtime notifier connection failed with code {reason_code}")
            self.is_connected = False

    def on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        """Callback when MQTT client disconnects from broker."""
        self.is_connected = False
        if reason_code != 0:
            logger.warning(f"Realtime notifier disconnected unexpectedly (rc={reason_code})")
        else:
            logger.info("Realtime notifier disconnected")

    def _setup_tls(self):
        context = ssl.create_default_context(cafile=settings.mqtt_ca_cert)
        if settings.mqtt_tls_insecure:
            logger.warning("MQTT TLS certificate verification disabled")
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        self.client.tls_set_context(context)

    def connect(self):
        """Connect to the broker and start the network loop in the background."""
        with self._lock:
            if self.client is None:
                self.client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2)
            self.client.on_connect = self.on_connect
            self.client.on_disconnect = self.on_disconnect

            if settings.mqtt_use_tls:
                self._setup_tls()
            if settings.mqtt_username and settings.mqtt_password:
                self.client.username_pw_set(settings.mqtt_username, settings.mqtt_password)

            protocol = "TLS" if settings.mqtt_use_tls else "TCP"
            logger.info(f"Connecting to MQTT broker at {settings.mqtt_broker}:{settings.mqtt_port} over {protocol}")
            try:
                self.client.connect(settings.mqtt_broker, settings.mqtt_port, keepalive=60)
            except OSError as conn_error:
                # The loop keeps retrying; pushes are dropped until the broker is reachable
                logger.warning(f"Initial MQTT connection failed: {conn_error}. The notifier will retry automatically.")
            self.client.loop_start()

    def disconnect(self):
        """Disconnect from MQTT broker."""
        with self._lock:
            if self.client:
                self.client.loop_stop()
                self.client.disconnect()
                self.is_connected = False

    def topic(self, room: str, event: str) -> str:
        return f"{self.topic_prefix}/{room}/{event}"

    def emit(self, room: str, event: str, payload: Any = None):
        """Publish one event to one room. Failures are logged and dropped."""
        if self.client is None:
            logger.debug(f"Realtime notifier has no client; dropping {event} for {room}")
            return
        topic = self.topic(room, event)
        try:
            result = self.client.publish(topic, json.dumps(payload, default=str), qos=0)
            if result.rc != mqtt.MQTT_ERR_SUCCESS:
                logger.warning(f"Publish to {topic} failed (rc={result.rc})")
        except (ValueError, OSError) as e:
            logger.warning(f"Publish to {topic} failed: {e}")

    def emit_to_many(self, rooms: Iterable[str], event: str, payload: Any = None):
        for room in rooms:
            self.emit(room, event, payload)


def get_notifier(request: Request) -> RealtimeNotifier:
    """FastAPI dependency returning the notifier built during application startup."""
    notifier = getattr(request.app.state, "notifier", None)
    if notifier is None:
        raise RuntimeError("Realtime notifier used before application startup created it")
    return notifier
