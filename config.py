"""Configuration for the Bridge Arbitrage Scanner"""

# ============================================================
# OPERATION MODE
# ============================================================
# Options:
# - "live": Fetch the real order book snapshot from the exchange REST API
# - "simulation": Generate synthetic snapshots (for testing when network is blocked)
MODE = "live"

# Exchange REST endpoint returning every order book in one response
ORDERBOOK_API_URL = "https://apiv2.nobitex.ir/v3/orderbook/all"
EXCHANGE_NAME = "Nobitex"

# Currencies
LOCAL_CURRENCY = "IRT"
BRIDGE_CURRENCY = "USDT"
# Bridge tickers recognized when parsing symbols (e.g. BTCUSDT)
BRIDGE_CURRENCIES = ("USDT",)

# Fee per trade, in percent (0.35 = 0.35%)
TRADING_FEE_PCT = 0.35

# Cross-pair search settings
CROSS_CANDIDATE_CAP = 60          # top-K sellers and top-K buyers kept before the cross product
CROSS_MAX_RESULTS = 200           # cross-pair results kept after sorting
CROSS_DISCARD_BELOW_NET_PCT = -5.0  # candidates below this net % are dropped early

# Scanner settings
SCAN_INTERVAL = 60  # seconds
OUTPUT_DIR = "docs/data"
TIMELINE_TOP_N = 20
SNAPSHOT_UNPROFITABLE_LIMIT = 50
HISTORY_LIMIT = 100

# Fetch retry settings
REQUEST_TIMEOUT = 15  # seconds
MAX_FETCH_ATTEMPTS = 3
RETRY_DELAY = 2  # seconds

# Reporting
REPORT_TIMEZONE = "Asia/Tehran"
SLEEP_HOURS = (0, 6)  # [start, end) local hours considered "sleep time"

# Web server settings
WEB_HOST = "0.0.0.0"
WEB_PORT = 8000
