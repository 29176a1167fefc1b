"""Application settings and configuration helpers."""
from __future__ import annotations

import os
from functools import lru_cache
from typing import List
from dotenv import load_dotenv, find_dotenv


class Settings:
    """Runtime configuration loaded from environment variables.

    Defaults are suitable for local development. Production should set
    explicit values via environment variables and Secret Manager.
    """

    APP_NAME: str = "SpeedRender API"
    API_PREFIX: str = "/api"

    # CORS
    CORS_ORIGINS: List[str]

    # Render service (RunPod serverless endpoint)
    RENDER_API_URL: str
    RENDER_API_TOKEN: str
    RENDER_HTTP_TIMEOUT: float

    # Polling
    POLL_INTERVAL_SECONDS: float
    POLL_MAX_ATTEMPTS: int

    # GCP
    GCS_BUCKET: str
    STORAGE_PUBLIC_BASE_URL: str
    GCP_PROJECT: str
    FIRESTORE_DATABASE_ID: str
    PROJECTS_COLLECTION: str

    # Render defaults
    PROMPT: str
    NEG_PROMPT: str
    SEED: int
    STEPS: int
    CFG_SCALE: float
    DENOISING_STRENGTH: float
    IMAGE_CFG_SCALE: float
    DEFAULT_MODEL: str
    DEFAULT_SAMPLER: str
    DEFAULT_SCHEDULER: str
    DEFAULT_WIDTH: int
    DEFAULT_HEIGHT: int

    def __init__(self) -> None:
        # Load .env once (supports parent directories)
        load_dotenv(find_dotenv(), override=False)
        self.CORS_ORIGINS = self._get_list("CORS_ORIGINS", default="*")

        self.RENDER_API_URL = os.getenv("RENDER_API_URL", "").rstrip("/")  # e.g., https://api.runpod.ai/v2/<endpoint-id>
        self.RENDER_API_TOKEN = os.getenv("RENDER_API_TOKEN", "")
        self.RENDER_HTTP_TIMEOUT = float(os.getenv("RENDER_HTTP_TIMEOUT", "30"))

        # Fixed per process; a request cannot change its own poll budget
        self.POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "5"))
        self.POLL_MAX_ATTEMPTS = int(os.getenv("POLL_MAX_ATTEMPTS", "20"))

        self.GCS_BUCKET = os.getenv("GCS_BUCKET", "speedrender_images")
        self.STORAGE_PUBLIC_BASE_URL = os.getenv(
            "STORAGE_PUBLIC_BASE_URL",
            f"https://storage.googleapis.com/{self.GCS_BUCKET}",
        ).rstrip("/")
        self.GCP_PROJECT = os.getenv("GCP_PROJECT", os.getenv("GOOGLE_CLOUD_PROJECT", ""))
        self.FIRESTORE_DATABASE_ID = os.getenv("FIRESTORE_DATABASE_ID", "(default)")
        self.PROJECTS_COLLECTION = os.getenv("PROJECTS_COLLECTION", "projects")

        self.PROMPT = os.getenv("PROMPT", "photorealistic architectural render, high detail")
        self.NEG_PROMPT = os.getenv("NEG_PROMPT", "blurry, distorted, low quality")
        self.SEED = int(os.getenv("SEED", "-1"))
        self.STEPS = int(os.getenv("STEPS", "30"))
        self.CFG_SCALE = float(os.getenv("CFG_SCALE", "7"))
        self.DENOISING_STRENGTH = float(os.getenv("DENOISING_STRENGTH", "0.5"))
        self.IMAGE_CFG_SCALE = float(os.getenv("IMAGE_CFG_SCALE", "1.5"))
        self.DEFAULT_MODEL = os.getenv("DEFAULT_MODEL", "model_indoor.safetensors")
        self.DEFAULT_SAMPLER = os.getenv("DEFAULT_SAMPLER", "DPM adaptive")
        self.DEFAULT_SCHEDULER = os.getenv("DEFAULT_SCHEDULER", "Karras")
        self.DEFAULT_WIDTH = int(os.getenv("DEFAULT_WIDTH", "1280"))
        self.DEFAULT_HEIGHT = int(os.getenv("DEFAULT_HEIGHT", "720"))

    @staticmethod
    def _get_list(name: str, default: str = "") -> List[str]:
        raw = os.getenv(name, default)
        return [item.strip() for item in raw.split(",") if item.strip()] or ["*"]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
