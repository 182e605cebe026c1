# frontend/config.py
# Streamlit client settings: where the tracker API lives and how long to wait for it

import os

ENV = os.environ.get("ENV", "local").lower()
if ENV not in ("local", "staging", "production"):
    ENV = "local"

IS_DEV = ENV == "local"
ENABLE_DEBUG_UI = IS_DEV

LOCAL_API_URL = "http://127.0.0.1:8000"

REQUEST_TIMEOUT_SECONDS = float(os.environ.get("REQUEST_TIMEOUT_SECONDS", "10"))


def get_api_base_url(env: str = ENV) -> str:
    """
    Resolve the tracker API base URL from BACKEND_URL.

    Local runs fall back to LOCAL_API_URL. Hosted environments must name an
    HTTPS backend that is not a loopback host.

    Raises:
        RuntimeError: BACKEND_URL unset outside local
        ValueError: BACKEND_URL not allowed for a hosted environment
    """
    url = os.environ.get("BACKEND_URL", "").strip().rstrip("/")
    if not url:
        if env == "local":
            return LOCAL_API_URL
        raise RuntimeError(f"BACKEND_URL must be set when ENV={env}")

    if env != "local":
        if not url.startswith("https://"):
            raise ValueError(f"BACKEND_URL must use https when ENV={env}: {url}")
        if "localhost" in url or "127.0.0.1" in url:
            raise ValueError(f"BACKEND_URL cannot point at a loopback host when ENV={env}: {url}")
    return url
