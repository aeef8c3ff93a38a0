"""Defaults and variable-name suffixes for timestamp recording."""

DEFAULT_NTP_SERVER = "pool.ntp.org"
"""NTP server targeted when --ntp-server is not given."""

DEFAULT_DESTINATION_TIMEZONE = "Eastern Standard Time"
"""Organizational time zone that captured times are normalized into."""

DEFAULT_FINAL_TIMEZONE = "UTC"
"""Time zone of the stored absolute instant."""

DEFAULT_SERVICES = ("W32Time",)
"""Services that must be running around a time sync."""

DEFAULT_SETTLE_SECONDS = 15.0
"""Pause after a successful sync so the clock and services settle."""

DEFAULT_NTP_TIMEOUT = 5.0
"""Seconds to wait for the NTP reachability probe."""

DEFAULT_VARIABLE_PREFIX = ""

DEFAULT_REGISTRY_KEY = "HKLM:\\SOFTWARE\\OSDTimestamp"
"""Key used by the registry variable store."""

LOG_FILE_NAME = "osdtimestamp.log"

PREFIX_SEPARATORS = ("_", "-", ".", ":")

# Variable name suffixes, written as <prefix><suffix>
SUFFIX_ORIGINAL_TIMEZONE = "OSDOriginalTimeZoneID"
SUFFIX_DESTINATION_TIMEZONE = "OSDDestinationTimeZoneID"
SUFFIX_CONVERSION_TIMEZONE = "OSDConversionTimeZoneID"
SUFFIX_START_TIME = "OSDStartTime"
SUFFIX_END_TIME = "OSDEndTime"
SUFFIX_TOTAL_TIME = "OSDTotalTime"

ENV_LOG_DIR = "OSDTIMESTAMP_LOG_DIR"
ENV_NTP_SERVER = "OSDTIMESTAMP_NTP_SERVER"
