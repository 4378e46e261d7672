"""Configuration file for selectors and settings"""

import os

from dotenv import load_dotenv

load_dotenv()

# Deliveroo listing selectors
SELECTORS = {
    "restaurant_name": ".css-11vv3pc",
    "view_all_text": r"view all.*restaurants",
    "view_all_exact": r"view all\s+\d+\s+available restaurants",
    "view_all_text_node": r"^\s*view all\b.*restaurants\s*$",
    "accept_button": r"accept all|accept|agree|allow",
    "dialog_button": r"ok|close|got it",
    "accept_cookies": '[aria-label*="accept cookies" i], [id*="accept"]',
    "ok_button": 'button:has-text("OK")',
    "consent_iframe": 'iframe[title*="consent" i], iframe[id*="sp_message_iframe" i]',
    "consent_iframe_button": 'button, [role="button"]',
    "consent_iframe_text": r"accept|agree|ok",
}

# Timing settings (in milliseconds)
TIMING = {
    "page_load_timeout": 30000,
    "overlay_visible_timeout": 1500,
    "overlay_click_timeout": 3000,
    "overlay_settle": 250,
    "view_all_visible_timeout": 1200,
    "trial_click_timeout": 2000,
    "click_timeout": 4000,
    "networkidle_timeout": 10000,
    "expand_settle": 800,
    "reveal_scroll_delay": 200,
    "scroll_delay": 350,
    "text_timeout": 1500,
}

# Scrolling behaviour of the listing scraper
SCROLLING = {
    "viewport_fraction": 0.95,
    "reveal_scrolls": 8,
    "post_click_scrolls": 6,
    "max_scrolls": 120,
    "stable_cycles": 3,
}

# Distance matrix settings
MATRIX = {
    "tile": 50,
    "pause_ms": 300,
    "profile": "driving-car",
    "request_timeout": 120,
    "output": "data/exports/matrix.csv",
}

# Google Places settings (Dublin bias)
PLACES = {
    "text_search_url": "https://places.googleapis.com/v1/places:searchText",
    "details_url": "https://places.googleapis.com/v1/places/{place_id}",
    "center": (53.3478, -6.2597),
    "radius_m": 5000,
    "region_code": "IE",
    "included_type": "restaurant",
    "pause_ms": 150,
    "max_distance_km": 12,
    "request_timeout": 30,
}

STORE_PATH = "data/index.json"

# Environment
DELIVEROO_BASE_URL = os.getenv("DELIVEROO_BASE_URL")
GOOGLE_MAPS_API_KEY = os.getenv("GOOGLE_MAPS_API_KEY")
OPEN_ROUTE_SERVICE_API_KEY = os.getenv("OPEN_ROUTE_SERVICE_API_KEY")
ORS_BASE_URL = os.getenv("ORS_BASE_URL", "http://localhost:8080/ors/v2")

# User agents for rotation
USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
]
