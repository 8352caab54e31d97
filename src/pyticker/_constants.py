"""Internal constants shared across the library."""

USER_AGENT = "pyticker/1"

COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"
COINGECKO_PRO_BASE_URL = "https://pro-api.coingecko.com/api/v3"
BINANCE_BASE_URL = "https://api.binance.com"
KRAKEN_BASE_URL = "https://api.kraken.com"
COINBASE_BASE_URL = "https://api.exchange.coinbase.com"
OPEN_METEO_BASE_URL = "https://api.open-meteo.com"

OPEN_METEO_CURRENT_FIELDS = "temperature_2m,relative_humidity_2m,wind_speed_10m,weather_code"

# ------------------------------------------------------------------
# Blink timing (milliseconds)
# ------------------------------------------------------------------

BLINK_PERIOD_SLOW_MS = 1000
BLINK_PERIOD_FAST_MS = 250
BLINK_PERIOD_STROBE_MS = 50

SOS_SHORT_MS = 200
SOS_LONG_MS = 600
SOS_GAP_MS = 200
SOS_LETTER_GAP_MS = 600
SOS_PAUSE_MS = 2000

#: A gap longer than this since the last SOS step restarts the sequence.
SOS_RESYNC_MS = 2 * SOS_PAUSE_MS
