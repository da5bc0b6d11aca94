"""Config Change Listening

Long polling of ``POST /v1/cs/configs/listener`` on a daemon thread.

Each watched config is sent as ``dataId^2group^2md5[^2tenant]^1`` in the
``Listening-Configs`` form field; the server holds the request for up to
``Long-Pulling-Timeout`` ms and answers with the URL-encoded keys whose md5
no longer matches. Changed configs are re-read and dispatched as
ConfigChangedEvent objects.
"""

import hashlib
import logging
import threading
from dataclasses import dataclass, field
from typing import Optional, Callable, Dict, List, Tuple, TYPE_CHECKING
from urllib.parse import unquote_plus

import requests

from .constants import DEFAULT_NAMESPACE_ID, ConfigChangeType
from .models.config import ConfigChangedEvent
from .utils.errors import NacosError

if TYPE_CHECKING:
    from .config_client import ConfigClient

logger = logging.getLogger(__name__)

LISTENER_ENDPOINT = "/v1/cs/configs/listener"

LISTENING_CONFIGS_PARAMETER = "Listening-Configs"

LONG_POLLING_TIMEOUT_HEADER = "Long-Pulling-Timeout"

WORD_SEPARATOR = "\x02"

LINE_SEPARATOR = "\x01"

ConfigChangedListener = Callable[[ConfigChangedEvent], None]

ConfigKey = Tuple[str, str, str]


def content_md5(content: Optional[str]) -> str:
    """MD5 hex digest the server compares against, empty for a missing config."""
    if content is None:
        return ""
    return hashlib.md5(content.encode("utf-8")).hexdigest()


def build_listening_configs(watches: Dict[ConfigKey, "_Watch"]) -> str:
    """Render the ``Listening-Configs`` value for the watched keys."""
    lines = []
    for (namespace_id, group, data_id), watch in watches.items():
        words = [data_id, group, watch.md5]
        if namespace_id and namespace_id != DEFAULT_NAMESPACE_ID:
            words.append(namespace_id)
        lines.append(WORD_SEPARATOR.join(words) + LINE_SEPARATOR)
    return "".join(lines)


def parse_changed_keys(body: Optional[str]) -> List[ConfigKey]:
    """Parse the long polling response into ``(namespace_id, group, data_id)`` keys."""
    if not body:
        return []
    keys = []
    for line in unquote_plus(body).split(LINE_SEPARATOR):
        if not line.strip():
            continue
        words = line.split(WORD_SEPARATOR)
        if len(words) < 2:
            logger.warning(f"Ignoring malformed changed config line: {line!r}")
            continue
        data_id, group = words[0], words[1]
        namespace_id = words[2] if len(words) > 2 and words[2] else DEFAULT_NAMESPACE_ID
        keys.append((namespace_id, group, data_id))
    return keys


@dataclass
class _Watch:
    content: Optional[str]
    md5: str
    listeners: List[ConfigChangedListener] = field(default_factory=list)


class ConfigListenerManager:
    """Keeps the watched configs and runs the long polling thread.

    The thread starts with the first listener and stops when the last one is
    removed or ``stop()`` is called.
    """

    def __init__(self, config_client: "ConfigClient", retry_interval: float = 2.0):
        self.config_client = config_client
        self.retry_interval = retry_interval
        self._watches: Dict[ConfigKey, _Watch] = {}
        self._lock = threading.RLock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def long_polling_timeout(self) -> float:
        return self.config_client.config.long_polling_timeout

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def watched_keys(self) -> List[ConfigKey]:
        with self._lock:
            return list(self._watches)

    def add_listener(self, namespace_id: str, group: str, data_id: str, listener: ConfigChangedListener) -> None:
        key = (namespace_id, group, data_id)
        with self._lock:
            watch = self._watches.get(key)
            if watch is not None:
                if listener not in watch.listeners:
                    watch.listeners.append(listener)
        if watch is not None:
            # the thread may have been stopped by close() or died since the key was added
            self.start()
            return

        # seed with the current content so existing state doesn't fire an event
        content = self.config_client.get_config_content(data_id, group=group, namespace_id=namespace_id)

        with self._lock:
            watch = self._watches.setdefault(key, _Watch(content=content, md5=content_md5(content)))
            if listener not in watch.listeners:
                watch.listeners.append(listener)
        logger.info(f"Listening to config {data_id} (group: {group}, namespace: {namespace_id})")
        self.start()

    def remove_listener(self, namespace_id: str, group: str, data_id: str, listener: ConfigChangedListener) -> None:
        key = (namespace_id, group, data_id)
        with self._lock:
            watch = self._watches.get(key)
            if watch is None:
                return
            if listener in watch.listeners:
                watch.listeners.remove(listener)
            if not watch.listeners:
                del self._watches[key]
                logger.info(f"Stopped listening to config {data_id} (group: {group}, namespace: {namespace_id})")
            empty = not self._watches
        if empty:
            self.stop(timeout=0)

    def poll_once(self) -> List[ConfigChangedEvent]:
        """Run one long polling round and dispatch the resulting events.

        Returns:
            The events dispatched in this round
        """
        with self._lock:
            if not self._watches:
                return []
            listening_configs = build_listening_configs(self._watches)

        timeout_ms = int(self.long_polling_timeout * 1000)
        body = self.config_client._execute(
            "POST",
            LISTENER_ENDPOINT,
            data={LISTENING_CONFIGS_PARAMETER: listening_configs},
            headers={LONG_POLLING_TIMEOUT_HEADER: str(timeout_ms)},
            # the server holds the request; leave room for the read timeout on top
            timeout=self.long_polling_timeout + self.config_client.config.read_timeout,
        )

        events = []
        for key in parse_changed_keys(body):
            event = self._refresh(key)
            if event is not None:
                events.append(event)
        return events

    def _refresh(self, key: ConfigKey) -> Optional[ConfigChangedEvent]:
        namespace_id, group, data_id = key
        with self._lock:
            if key not in self._watches:
                return None

        content = self.config_client.get_config_content(data_id, group=group, namespace_id=namespace_id)
        md5 = content_md5(content)

        with self._lock:
            watch = self._watches.get(key)
            if watch is None or watch.md5 == md5:
                return None
            previous_content = watch.content
            watch.content = content
            watch.md5 = md5
            listeners = list(watch.listeners)

        if content is None:
            change_type = ConfigChangeType.DELETED
        elif previous_content is None:
            change_type = ConfigChangeType.CREATED
        else:
            change_type = ConfigChangeType.MODIFIED

        event = ConfigChangedEvent(
            namespace_id=namespace_id,
            group=group,
            data_id=data_id,
            content=content,
            previous_content=previous_content,
            type=change_type,
        )
        logger.info(f"Config {data_id} (group: {group}, namespace: {namespace_id}) {change_type.value.lower()}")
        self._dispatch(event, listeners)
        return event

    @staticmethod
    def _dispatch(event: ConfigChangedEvent, listeners: List[ConfigChangedListener]) -> None:
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                # one failing listener must not starve the others
                logger.exception(f"Config listener {listener!r} failed for {event.data_id}")

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                name="nacos-config-listener",
                daemon=True,
            )
            self._thread.start()
        logger.info("Config listener thread started")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the polling thread.

        Args:
            timeout: Seconds to wait for the thread to finish, None waits
                for the in-flight poll, 0 doesn't wait
        """
        with self._lock:
            thread = self._thread
            self._stop_event.set()
            self._thread = None
        if thread is None:
            return
        if thread is not threading.current_thread() and timeout != 0:
            thread.join(timeout)
        logger.info("Config listener thread stopped")

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            if not self.watched_keys():
                stop_event.wait(self.retry_interval)
                continue
            try:
                self.poll_once()
            except (NacosError, requests.RequestException) as e:
                logger.warning(f"Config long polling failed: {e}, retrying in {self.retry_interval}s")
                stop_event.wait(self.retry_interval)
            except Exception:
                logger.exception(f"Unexpected error in config long polling, retrying in {self.retry_interval}s")
                stop_event.wait(self.retry_interval)
