"""
Polling client for a D-Link DSP smart socket
============================================

Keeps a cached snapshot of the socket's readings and state. Reads return the
snapshot immediately and, when it has gone stale, schedule a single refresh
on a background worker.

"""

import copy
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from dlink_dsp.client.main import HNAPClient
from dlink_dsp.models import SocketConfiguration

logger = logging.getLogger("dlink-dsp")

ACTION_ON = "on"
ACTION_OFF = "off"
ACTION_TOGGLE = "toggle"

DEFAULT_REFRESH_INTERVAL = 10.0


class DlinkDspClient:
    """
    Stale-while-refresh wrapper around HNAPClient.

    Examples:
        >>> with DlinkDspClient("Desk lamp", "192.168.0.60", "admin", "123456") as socket:
        ...     socket.initialize()
        ...     socket.execute_action("toggle")
        ...     print(socket.get_configuration().consumption)
    """

    def __init__(
        self,
        name: str,
        host: str,
        username: str,
        password: str,
        port: int = 80,
        use_https: bool = False,
        read_only: bool = False,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        client: Optional[HNAPClient] = None,
    ):
        self.name = name
        self.refresh_interval = refresh_interval
        self.client = client or HNAPClient(
            host,
            password,
            username=username,
            port=port,
            use_https=use_https,
            read_only=read_only,
        )

        self._configuration = SocketConfiguration(name=name, host=host, is_read_only=read_only)
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="dlink-dsp-refresh")
        self._pending: Optional[Future] = None
        self._closed = False

    def initialize(self) -> bool:
        """Log in and take the first snapshot. Returns the login outcome."""
        logged_in = self.client.login()
        if not logged_in:
            logger.warning(f"⚠️ {self.name}: login failed, readings will be retried on refresh")
        self.refresh()
        return logged_in

    def refresh(self) -> SocketConfiguration:
        """Read consumption, total consumption, temperature and state into a new snapshot."""
        consumption = self.client.get_power_consumption()
        total_consumption = self.client.get_total_power_consumption()
        temperature = self.client.get_temperature()
        is_on = self.client.get_state()

        with self._lock:
            self._configuration.consumption = consumption
            self._configuration.total_consumption = total_consumption
            self._configuration.temperature = temperature
            self._configuration.is_on = is_on
            self._configuration.last_refresh = time.monotonic()
            snapshot = copy.copy(self._configuration)

        logger.debug(
            f"📊 {self.name}: {consumption} W, {total_consumption} kWh, {temperature} °C, on={is_on}"
        )
        return snapshot

    def get_configuration(self, refresh_interval: Optional[float] = None) -> SocketConfiguration:
        """
        Return a copy of the current snapshot without waiting for the network.

        Args:
            refresh_interval: Maximum snapshot age in seconds before a
                background refresh is scheduled (defaults to the client's)
        """
        interval = self.refresh_interval if refresh_interval is None else refresh_interval

        with self._lock:
            snapshot = copy.copy(self._configuration)
            last_refresh = self._configuration.last_refresh
            stale = last_refresh is None or time.monotonic() - last_refresh >= interval
            if stale and not self._closed and (self._pending is None or self._pending.done()):
                self._pending = self._executor.submit(self._background_refresh)

        return snapshot

    def _background_refresh(self) -> None:
        try:
            self.refresh()
        except Exception as e:
            logger.error(f"❌ {self.name}: background refresh failed: {e}")

    def execute_action(self, action: str) -> bool:
        """
        Run a named action: "on", "off" or "toggle".

        Returns:
            True if the action is recognised, False otherwise
        """
        if action == ACTION_ON:
            self.turn_on()
        elif action == ACTION_OFF:
            self.turn_off()
        elif action == ACTION_TOGGLE:
            with self._lock:
                is_on = self._configuration.is_on
            if is_on:
                self.turn_off()
            else:
                self.turn_on()
        else:
            logger.warning(f"⚠️ {self.name}: unknown action {action!r}")
            return False
        return True

    def turn_on(self) -> bool:
        return self._switch(True)

    def turn_off(self) -> bool:
        return self._switch(False)

    def _switch(self, on: bool) -> bool:
        confirmed = self.client.turn_on() if on else self.client.turn_off()
        if confirmed:
            with self._lock:
                self._configuration.is_on = on
            logger.info(f"💡 {self.name} switched {'on' if on else 'off'}")
        return confirmed

    def close(self) -> None:
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=True)
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


__all__ = ["ACTION_OFF", "ACTION_ON", "ACTION_TOGGLE", "DlinkDspClient"]
