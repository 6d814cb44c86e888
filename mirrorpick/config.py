"""Constants and configuration for mirrorpick."""

# Default measurement settings
DEFAULT_RUNS = 3
DEFAULT_PACE_S = 3.0  # Pause between runs, not after the last one
DEFAULT_TIMEOUT = 45.0  # Per-probe ceiling in seconds
DEFAULT_THRESHOLD_PERCENT = 2.0
DEFAULT_BACKEND = "http"

# Extra headroom on top of the backend's own timeout before a probe is abandoned
PROBE_TIMEOUT_GRACE_S = 5.0

# Visual completion is approximated as the page load event plus this settle
# delay. It is a policy constant, not a measured quantity.
RENDER_SETTLE_MS = 500

# Within the hedge threshold the leader is picked with this probability,
# otherwise the runner-up.
HEDGE_PROBABILITY = 0.9

# User agent for probe requests
USER_AGENT = "mirrorpick/0.1.0"

# Metric display names
METRIC_LABELS = {
    "latency": "Latency",
    "ttr": "TTR",
}

# Latency color thresholds (milliseconds)
METRIC_THRESHOLDS = {
    "latency": {"fast": 150.0, "medium": 400.0},
    "ttr": {"fast": 1500.0, "medium": 4000.0},
}

# Regional mirrors probed when no endpoints are given
DEFAULT_ENDPOINTS = [
    "https://www.flashscore.co.ke",
    "https://www.flashscore.co.za",
    "https://www.flashscore.com",
    "https://www.flashscore.info",
    "https://www.flashscore.com.au",
    "https://www.flashscore.com.ng",
    "https://www.flashscore.ca",
    "https://www.flashscore.in",
    "https://www.flashscore.ae",
    "https://www.flashscore.co.uk",
]
