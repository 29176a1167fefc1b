"""Render job payload construction.

Caller overrides fall back to configured defaults through a single defaulting
step (`RenderParameters.resolve`), so the submitted job is always fully
specified even when the caller sends only the required fields.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..config import Settings
from ..models import RenderRequest

ENDPOINT = "img2img"
CLIP_SKIP = 10
REFINER_SWITCH_AT = 10
RESIZE_MODE = "auto"

CONTROLNET_UNITS = (
    {
        "enabled": True,
        "control_type": "all",
        "control_weight": 1,
        "start_step": 0,
        "end_step": 1,
        "control_mode": "balanced",
    },
)


@dataclass(frozen=True)
class RenderDefaults:
    prompt: str
    negative_prompt: str
    seed: int
    steps: int
    cfg_scale: float
    denoising_strength: float
    image_cfg_scale: float
    model: str = "model_indoor.safetensors"
    sampler_name: str = "DPM adaptive"
    schedule_type: str = "Karras"
    width: int = 1280
    height: int = 720

    @classmethod
    def from_settings(cls, settings: Settings) -> "RenderDefaults":
        return cls(
            prompt=settings.PROMPT,
            negative_prompt=settings.NEG_PROMPT,
            seed=settings.SEED,
            steps=settings.STEPS,
            cfg_scale=settings.CFG_SCALE,
            denoising_strength=settings.DENOISING_STRENGTH,
            image_cfg_scale=settings.IMAGE_CFG_SCALE,
            model=settings.DEFAULT_MODEL,
            sampler_name=settings.DEFAULT_SAMPLER,
            schedule_type=settings.DEFAULT_SCHEDULER,
            width=settings.DEFAULT_WIDTH,
            height=settings.DEFAULT_HEIGHT,
        )


def _pick(override: Optional[Any], default: Any) -> Any:
    # Blank strings count as "not supplied"
    if override is None or (isinstance(override, str) and not override.strip()):
        return default
    return override


@dataclass(frozen=True)
class RenderParameters:
    """Fully resolved rendering parameters for one job."""

    model: str
    prompt: str
    negative_prompt: str
    seed: int
    sampler_name: str
    schedule_type: str
    steps: int
    cfg_scale: float
    width: int
    height: int
    denoising_strength: float
    image_cfg_scale: float

    @classmethod
    def resolve(cls, request: RenderRequest, defaults: RenderDefaults) -> "RenderParameters":
        return cls(
            model=_pick(request.model, defaults.model),
            prompt=defaults.prompt,
            negative_prompt=_pick(request.neg, defaults.negative_prompt),
            seed=_pick(request.seed, defaults.seed),
            sampler_name=_pick(request.sampler_name, defaults.sampler_name),
            schedule_type=defaults.schedule_type,
            steps=_pick(request.steps, defaults.steps),
            cfg_scale=_pick(request.cfg_scale, defaults.cfg_scale),
            width=_pick(request.width, defaults.width),
            height=_pick(request.height, defaults.height),
            denoising_strength=defaults.denoising_strength,
            image_cfg_scale=defaults.image_cfg_scale,
        )


def build_job_payload(image_b64: str, params: RenderParameters) -> Dict[str, Any]:
    """Return the JSON body for POST /run."""
    return {
        "input": {
            "endpoint": ENDPOINT,
            "model": params.model,
            "init_images": [image_b64],
            "prompt": params.prompt,
            "negative_prompt": params.negative_prompt,
            "seed": params.seed,
            "sampler_name": params.sampler_name,
            "schedule_type": params.schedule_type,
            "steps": params.steps,
            "cfg_scale": params.cfg_scale,
            "width": params.width,
            "height": params.height,
            "denoising_strength": params.denoising_strength,
            "clip_skip": CLIP_SKIP,
            "image_cfg_scale": params.image_cfg_scale,
            "controlnet_units": [dict(unit) for unit in CONTROLNET_UNITS],
            "refiner_switch_at": REFINER_SWITCH_AT,
            "resize": RESIZE_MODE,
        }
    }
