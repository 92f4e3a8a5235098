"""
Main D-Link DSP HNAP Client
===========================

This module contains the client for controlling a D-Link DSP smart socket
over HNAP. Every operation goes through the authenticated RPC engine and
returns a parsed value, or None when the socket did not answer.

"""

import logging
from typing import Any, Callable, Optional, Union

from dlink_dsp.crypto import aes_encrypt128
from dlink_dsp.exceptions import DlinkConfigurationError
from dlink_dsp.instrumentation import PerformanceInstrumentation
from dlink_dsp.models import Credentials, RpcCall

from .auth import AuthSession
from .engine import AuthenticatedRpcEngine
from .error_handler import ErrorAnalyzer
from .http import create_hnap_session
from .parameters import (
    MODULE_ALL,
    MODULE_POWER_METER,
    MODULE_SOCKET,
    MODULE_THERMOMETER,
    RADIO_24GHZ,
    ap_client_parameters,
    control_parameters,
    group_parameters,
    module_parameters,
    power_warning_parameters,
    radio_parameters,
    temperature_settings_parameters,
)
from .soap import SoapTransport

logger = logging.getLogger("dlink-dsp")

RESULT_OK = "OK"


class HNAPClient:
    """
    HNAP client for one D-Link DSP smart socket.

    Holds a single authentication session. Calls are serialised, so one
    client may be shared between threads, but every call waits for any
    re-login in progress.

    Examples:
        >>> with HNAPClient("192.168.0.60", password="123456") as client:
        ...     client.login()
        ...     client.turn_on()
        ...     print(client.get_power_consumption())
    """

    def __init__(
        self,
        host: str,
        password: str,
        username: str = "admin",
        port: int = 80,
        use_https: bool = False,
        read_only: bool = False,
        timeout: Union[tuple, float] = (3, 12),
        verify_ssl: bool = False,
        capture_errors: bool = True,
        enable_instrumentation: bool = True,
    ):
        """
        Initialize the client. No network traffic happens until the first call.

        Args:
            host: Socket hostname or IP address
            password: Device PIN
            username: Login username (default: "admin")
            port: Web service port (default: 80)
            use_https: Use HTTPS instead of HTTP (default: False)
            read_only: Refuse every state-changing operation (default: False)
            timeout: (connect_timeout, read_timeout) in seconds (default: (3, 12))
            verify_ssl: Verify the device certificate over HTTPS (default: False)
            capture_errors: Keep details of failed requests (default: True)
            enable_instrumentation: Record request timings (default: True)

        Raises:
            DlinkConfigurationError: If host, port or timeout is invalid
        """
        self._validate(host, port, timeout)

        self.credentials = Credentials(
            username=username,
            password=password,
            host=host,
            port=port,
            use_https=use_https,
        )
        self.read_only = read_only
        self.timeout = timeout

        self.instrumentation = PerformanceInstrumentation() if enable_instrumentation else None
        self.error_analyzer = ErrorAnalyzer(capture_errors=capture_errors)

        self.session = create_hnap_session(verify_ssl=verify_ssl)
        self.transport = SoapTransport(
            self.session,
            self.credentials,
            timeout=timeout,
            instrumentation=self.instrumentation,
            error_analyzer=self.error_analyzer,
        )
        self.auth = AuthSession(self.credentials, self.transport, instrumentation=self.instrumentation)
        self.engine = AuthenticatedRpcEngine(self.auth, self.transport, instrumentation=self.instrumentation)
        self.parser = self.transport.parser

        logger.info(f"🔌 HNAPClient initialized for {self.credentials.uri}")
        if read_only:
            logger.info("🔒 Read-only mode: state-changing operations are disabled")

    @staticmethod
    def _validate(host: str, port: int, timeout: Union[tuple, float]) -> None:
        if not host:
            raise DlinkConfigurationError("Host must not be empty", details={"parameter": "host"})

        if not isinstance(port, int) or isinstance(port, bool) or not 1 <= port <= 65535:
            raise DlinkConfigurationError(
                "Port must be between 1 and 65535",
                details={"parameter": "port", "value": port, "valid_range": "1-65535"},
            )

        timeouts = timeout if isinstance(timeout, tuple) else (timeout,)
        if not timeouts or any(t is None or t <= 0 for t in timeouts):
            raise DlinkConfigurationError(
                "Timeouts must be greater than 0",
                details={"parameter": "timeout", "value": timeout},
            )

    @property
    def host(self) -> str:
        return self.credentials.host

    @property
    def authenticated(self) -> bool:
        return self.auth.authenticated

    def login(self) -> bool:
        """
        Log in to the socket, replacing any previous session.

        Returns:
            True if the socket accepted the credentials
        """
        return self.engine.login()

    def call(self, method: str, response_element: str, body: str = "") -> Optional[str]:
        """
        Invoke an HNAP method and return the text of ``response_element``.

        Re-logs in and retries once if the socket answers with nothing or
        "ERROR".

        Args:
            method: HNAP method name, e.g. "GetSocketSettings"
            response_element: Local name of the element to extract
            body: XML fragment placed inside the method element

        Returns:
            The element text, or None if no value could be obtained
        """
        return self.engine.call(RpcCall(method, response_element, body)).value

    def _call_factory(self, make_call: Callable[[], RpcCall]) -> Optional[str]:
        return self.engine.call_factory(make_call).value

    def _refuse_if_read_only(self, operation: str) -> bool:
        if self.read_only:
            logger.warning(f"🔒 {operation} refused: client is read-only")
            return True
        return False

    # Socket control

    def turn_on(self) -> bool:
        """Switch the relay on. Returns True if the socket answered OK."""
        return self._set_socket_state(True)

    def turn_off(self) -> bool:
        """Switch the relay off. Returns True if the socket answered OK."""
        return self._set_socket_state(False)

    def _set_socket_state(self, status: bool) -> bool:
        if self._refuse_if_read_only("SetSocketSettings"):
            return False

        result = self.call(
            "SetSocketSettings",
            "SetSocketSettingsResult",
            control_parameters(MODULE_SOCKET, status),
        )
        return result == RESULT_OK

    def get_state(self) -> Optional[bool]:
        """Relay state: True when on, False when off or on error, None when unknown."""
        response = self.call("GetSocketSettings", "OPStatus", module_parameters(MODULE_SOCKET))
        return self.parser.parse_state(response)

    # Readings

    def get_power_consumption(self) -> Optional[float]:
        """Current power draw in watts."""
        response = self.call(
            "GetCurrentPowerConsumption", "CurrentConsumption", module_parameters(MODULE_POWER_METER)
        )
        return self.parser.parse_float(response)

    def get_total_power_consumption(self) -> Optional[float]:
        """Accumulated consumption in kWh."""
        response = self.call("GetPMWarningThreshold", "TotalConsumption", module_parameters(MODULE_POWER_METER))
        return self.parser.parse_float(response)

    def get_temperature(self) -> Optional[float]:
        """Internal temperature in degrees Celsius."""
        response = self.call(
            "GetCurrentTemperature", "CurrentTemperature", module_parameters(MODULE_THERMOMETER)
        )
        return self.parser.parse_float(response)

    # Settings

    def get_ap_client_settings(self) -> Optional[str]:
        return self.call(
            "GetAPClientSettings", "GetAPClientSettingsResult", radio_parameters(RADIO_24GHZ)
        )

    def set_ap_client_settings(
        self,
        ssid: str = "My_Network",
        mac_address: str = "XX:XX:XX:XX:XX:XX",
        password: str = "password",
        enabled: bool = True,
        radio_id: str = RADIO_24GHZ,
        channel_width: int = 0,
    ) -> Optional[str]:
        """
        Join the socket to a wireless network.

        The passphrase is obfuscated with the session private key, so the
        body is rebuilt if a re-login replaces the key before the retry.
        """
        if self._refuse_if_read_only("SetAPClientSettings"):
            return None

        if self.auth.private_key is None and not self.login():
            logger.error("❌ SetAPClientSettings needs a session key and login failed")
            return None

        def make_call() -> RpcCall:
            return RpcCall(
                "SetAPClientSettings",
                "SetAPClientSettingsResult",
                ap_client_parameters(
                    aes_encrypt128(password, self.auth.private_key),
                    ssid=ssid,
                    mac_address=mac_address,
                    enabled=enabled,
                    radio_id=radio_id,
                    channel_width=channel_width,
                ),
            )

        return self._call_factory(make_call)

    def set_power_warning(
        self,
        threshold: int = 28,
        percentage: int = 70,
        periodic_type: str = "Weekly",
        start_time: int = 1,
    ) -> Optional[str]:
        if self._refuse_if_read_only("SetPMWarningThreshold"):
            return None

        return self.call(
            "SetPMWarningThreshold",
            "SetPMWarningThresholdResult",
            power_warning_parameters(threshold, percentage, periodic_type, start_time),
        )

    def get_power_warning(self) -> Optional[str]:
        return self.call(
            "GetPMWarningThreshold", "GetPMWarningThresholdResult", module_parameters(MODULE_POWER_METER)
        )

    def get_temperature_settings(self) -> Optional[str]:
        return self.call(
            "GetTempMonitorSettings", "GetTempMonitorSettingsResult", module_parameters(MODULE_THERMOMETER)
        )

    def set_temperature_settings(
        self,
        nick_name: str = "TemperatureMonitor 3",
        description: str = "Temperature Monitor 3",
        upper_bound: str = "80",
        lower_bound: str = "Not Available",
        op_status: bool = True,
    ) -> Optional[str]:
        if self._refuse_if_read_only("SetTempMonitorSettings"):
            return None

        return self.call(
            "SetTempMonitorSettings",
            "SetTempMonitorSettingsResult",
            temperature_settings_parameters(
                MODULE_THERMOMETER, nick_name, description, upper_bound, lower_bound, op_status
            ),
        )

    # Wireless

    def get_site_survey(self) -> Optional[str]:
        return self.call("GetSiteSurvey", "GetSiteSurveyResult", radio_parameters(RADIO_24GHZ))

    def trigger_wireless_site_survey(self) -> Optional[str]:
        if self._refuse_if_read_only("SetTriggerWirelessSiteSurvey"):
            return None

        return self.call(
            "SetTriggerWirelessSiteSurvey",
            "SetTriggerWirelessSiteSurveyResult",
            radio_parameters(RADIO_24GHZ),
        )

    def get_wlan_radios(self) -> Optional[str]:
        return self.call("GetWLanRadios", "GetWLanRadiosResult")

    def get_internet_settings(self) -> Optional[str]:
        return self.call("GetInternetSettings", "GetInternetSettingsResult")

    # Modules and schedules

    def get_latest_detection(self) -> Optional[str]:
        return self.call("GetLatestDetection", "GetLatestDetectionResult", module_parameters(MODULE_POWER_METER))

    def get_module_schedule(self) -> Optional[str]:
        return self.call("GetModuleSchedule", "GetModuleScheduleResult", module_parameters(MODULE_ALL))

    def get_module_enabled(self) -> Optional[str]:
        return self.call("GetModuleEnabled", "GetModuleEnabledResult", module_parameters(MODULE_ALL))

    def get_module_group(self) -> Optional[str]:
        return self.call("GetModuleGroup", "GetModuleGroupResult", group_parameters(MODULE_ALL))

    def get_schedule_settings(self) -> Optional[str]:
        return self.call("GetScheduleSettings", "GetScheduleSettingsResult")

    # Device

    def is_device_ready(self) -> Optional[str]:
        return self.call("IsDeviceReady", "IsDeviceReadyResult")

    def reboot(self) -> Optional[str]:
        if self._refuse_if_read_only("Reboot"):
            return None
        return self.call("Reboot", "RebootResult")

    def set_factory_default(self) -> Optional[str]:
        if self._refuse_if_read_only("SetFactoryDefault"):
            return None
        return self.call("SetFactoryDefault", "SetFactoryDefaultResult")

    def set_trigger_adic(self) -> Optional[str]:
        if self._refuse_if_read_only("SettriggerADIC"):
            return None
        return self.call("SettriggerADIC", "SettriggerADICResult")

    # Diagnostics

    def get_performance_metrics(self) -> dict[str, Any]:
        """Timing summary, or a note when instrumentation is disabled."""
        if not self.instrumentation:
            return {"error": "Performance instrumentation not enabled"}
        return self.instrumentation.get_performance_summary()

    def get_error_analysis(self) -> dict[str, Any]:
        return self.error_analyzer.get_error_analysis()

    def close(self) -> None:
        """Release the HTTP session."""
        total_errors = len(self.error_analyzer.error_captures)
        if total_errors:
            logger.info(f"📊 Session captured {total_errors} failed request(s)")

        if self.instrumentation:
            summary = self.instrumentation.get_performance_summary()
            session_metrics = summary.get("session_metrics", {})
            if session_metrics:
                logger.info(
                    f"📊 Session performance: {session_metrics['total_operations']} operations in "
                    f"{session_metrics['total_session_time']:.2f}s"
                )

        if self.session:
            self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


__all__ = ["HNAPClient"]
