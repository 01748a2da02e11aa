"""Constants for the hybrid location resolver."""

IP_GEOLOCATION_URL = "https://ipapi.co/json/"
IP_ACCURACY_METERS = 10_000.0

FALLBACK_TIMEOUT = 15.0

CONF_PLATFORM = "platform"
CONF_FALLBACK_TIMEOUT = "fallback_timeout"
CONF_IP_ENDPOINT = "ip_endpoint"

SOURCE_GPS_HIGH_ACCURACY = "GPS_HIGH_ACCURACY"
SOURCE_GPS_STANDARD = "GPS_STANDARD"
SOURCE_NETWORK = "NETWORK"
SOURCE_IP_GEOLOCATION = "IP_GEOLOCATION"

# W3C geolocation error codes reported by the device failure callback
ERROR_PERMISSION_DENIED = 1
ERROR_POSITION_UNAVAILABLE = 2
ERROR_TIMEOUT = 3
