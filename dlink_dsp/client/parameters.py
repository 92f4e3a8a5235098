"""
Request parameter builders for D-Link DSP Client
================================================

Each function returns the XML fragment placed inside the method element of
the SOAP body.

Booleans are rendered as capitalised "True"/"False". Lowercase literals
have not been verified against the firmware, so do not change format_bool()
without testing on a device.

"""

from xml.sax.saxutils import escape as _xml_escape

BOOLEAN_LITERALS = {True: "True", False: "False"}

RADIO_24GHZ = "RADIO_2.4GHz"

# Module identifiers on the DSP-W215
MODULE_ALL = 0
MODULE_SOCKET = 1
MODULE_POWER_METER = 2
MODULE_THERMOMETER = 3


def escape(value) -> str:
    """Render a field value as XML text."""
    return _xml_escape(str(value))


def format_bool(value: bool) -> str:
    """Render a boolean field value."""
    return BOOLEAN_LITERALS[bool(value)]


def module_parameters(module: int) -> str:
    return f"<ModuleID>{module}</ModuleID>"


def radio_parameters(radio: str) -> str:
    return f"<RadioID>{escape(radio)}</RadioID>"


def group_parameters(group: int) -> str:
    return f"<ModuleGroupID>{group}</ModuleGroupID>"


def control_parameters(
    module: int,
    status: bool,
    nick_name: str = "Socket 1",
    description: str = "Socket 1",
    controller: int = 1,
) -> str:
    """Fields of SetSocketSettings."""
    return (
        f"{module_parameters(module)}"
        f"<NickName>{escape(nick_name)}</NickName>"
        f"<Description>{escape(description)}</Description>"
        f"<OPStatus>{format_bool(status)}</OPStatus>"
        f"<Controller>{controller}</Controller>"
    )


def ap_client_parameters(
    encrypted_key: str,
    ssid: str = "My_Network",
    mac_address: str = "XX:XX:XX:XX:XX:XX",
    enabled: bool = True,
    radio_id: str = RADIO_24GHZ,
    channel_width: int = 0,
) -> str:
    """
    Fields of SetAPClientSettings.

    Args:
        encrypted_key: Wi-Fi passphrase already obfuscated with aes_encrypt128()
        ssid: Network to join
        mac_address: MAC address of the access point
        enabled: Whether the client mode is enabled
        radio_id: Radio to use
        channel_width: Channel width, 0 for automatic
    """
    return (
        f"<Enabled>{format_bool(enabled)}</Enabled>"
        f"<RadioID>{escape(radio_id)}</RadioID>"
        f"<SSID>{escape(ssid)}</SSID>"
        f"<MacAddress>{escape(mac_address)}</MacAddress>"
        f"<ChannelWidth>{channel_width}</ChannelWidth>"
        "<SupportedSecurity>"
        "<SecurityInfo>"
        "<SecurityType>WPA2-PSK</SecurityType>"
        "<Encryptions>"
        "<string>AES</string>"
        "</Encryptions>"
        "</SecurityInfo>"
        "</SupportedSecurity>"
        f"<Key>{encrypted_key}</Key>"
    )


def temperature_settings_parameters(
    module: int,
    nick_name: str = "TemperatureMonitor 3",
    description: str = "Temperature Monitor 3",
    upper_bound: str = "80",
    lower_bound: str = "Not Available",
    op_status: bool = True,
) -> str:
    """Fields of SetTempMonitorSettings."""
    return (
        f"{module_parameters(module)}"
        f"<NickName>{escape(nick_name)}</NickName>"
        f"<Description>{escape(description)}</Description>"
        f"<UpperBound>{escape(upper_bound)}</UpperBound>"
        f"<LowerBound>{escape(lower_bound)}</LowerBound>"
        f"<OPStatus>{format_bool(op_status)}</OPStatus>"
    )


def power_warning_parameters(
    threshold: int = 28,
    percentage: int = 70,
    periodic_type: str = "Weekly",
    start_time: int = 1,
) -> str:
    """Fields of SetPMWarningThreshold."""
    return (
        f"<Threshold>{threshold}</Threshold>"
        f"<Percentage>{percentage}</Percentage>"
        f"<PeriodicType>{escape(periodic_type)}</PeriodicType>"
        f"<StartTime>{start_time}</StartTime>"
    )
