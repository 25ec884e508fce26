"""
Media Motion service configuration.
"""
import os

# Service settings
SERVICE_NAME = "mediamotion"
SERVICE_VERSION = "1.0.0"
SERVICE_PORT = int(os.getenv("PORT", 6008))

# Media probe
FFPROBE_PATH = os.getenv("FFPROBE_PATH", "ffprobe")
MEDIA_PROBE_BACKEND = os.getenv("MEDIA_PROBE_BACKEND", "ffprobe")  # "ffprobe" or "http"
MEDIA_INFO_URL = os.getenv("MEDIA_INFO_URL", "http://localhost:3000/api/media-info")
PROBE_TIMEOUT_SECONDS = float(os.getenv("PROBE_TIMEOUT_SECONDS", 30))

# Composition defaults (used when the root config leaves a value out)
DEFAULT_WIDTH = int(os.getenv("DEFAULT_WIDTH", 1920))
DEFAULT_HEIGHT = int(os.getenv("DEFAULT_HEIGHT", 1080))
DEFAULT_FPS = int(os.getenv("DEFAULT_FPS", 30))
DEFAULT_DURATION_SECONDS = float(os.getenv("DEFAULT_DURATION_SECONDS", 20))
