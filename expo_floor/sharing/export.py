"""
Floor plan export.

``json`` is produced locally.  ``pdf`` and ``png`` are delegated to an
external rasterizer over HTTP: the plan, its shapes and one set of text
overlays per booth (number on a status-coloured box, a status dot, the
company name) are POSTed and the response body is the file.
"""

import logging
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from expo_floor import config
from expo_floor.core.constants import (
    OVERLAY_COMPANY_FONT_SIZE,
    OVERLAY_COMPANY_MAX_CHARS,
    OVERLAY_COMPANY_OFFSET_Y,
    OVERLAY_DOT_FONT_SIZE,
    OVERLAY_LABEL_FONT_SIZE,
    STATUS_COLORS,
)
from expo_floor.core.errors import RenderFailure, RenderTimeout, ValidationError
from expo_floor.domain.enums import BoothStatus, ExportFormat
from expo_floor.domain.models import BoothShape, FloorPlan, describe_shape, dump_plan, dump_shape
from expo_floor.metrics import record_render

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    content: bytes
    media_type: str
    filename: str


@dataclass
class RenderRequest:
    format: str
    floor_plan_id: Optional[int]
    name: str
    background_image_ref: Optional[str]
    grid_size: int
    scale: float
    shapes: List[dict] = field(default_factory=list)
    overlays: List[dict] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": self.format,
            "floorPlanId": self.floor_plan_id,
            "name": self.name,
            "backgroundImageRef": self.background_image_ref,
            "gridSize": self.grid_size,
            "scale": self.scale,
            "shapes": self.shapes,
            "overlays": self.overlays,
        }


def booth_overlays(booth: BoothShape) -> List[dict]:
    """Text overlays the rasterizer draws for one booth."""
    status = (booth.metadata.status or BoothStatus.AVAILABLE).value
    color = STATUS_COLORS.get(status, "gray")
    x, y = round(booth.x), round(booth.y)

    overlays = [{
        "text": describe_shape(booth) or "",
        "fontSize": OVERLAY_LABEL_FONT_SIZE,
        "color": "white",
        "background": color,
        "border": {"width": 2, "color": color},
        "x": x,
        "y": y,
        "width": round(booth.width),
        "height": round(booth.height),
    }]
    if status != BoothStatus.AVAILABLE.value:
        cx, cy = booth.center
        overlays.append({
            "text": "●",
            "fontSize": OVERLAY_DOT_FONT_SIZE,
            "color": color,
            "x": round(cx),
            "y": round(cy),
        })
    if booth.metadata.company_name:
        overlays.append({
            "text": booth.metadata.company_name[:OVERLAY_COMPANY_MAX_CHARS],
            "fontSize": OVERLAY_COMPANY_FONT_SIZE,
            "color": "black",
            "background": "white",
            "x": x,
            "y": y + OVERLAY_COMPANY_OFFSET_Y,
        })
    return overlays


def build_render_request(plan: FloorPlan, fmt: ExportFormat) -> RenderRequest:
    overlays: List[dict] = []
    for booth in plan.booths():
        overlays.extend(booth_overlays(booth))
    return RenderRequest(
        format=fmt.value,
        floor_plan_id=plan.id,
        name=plan.name,
        background_image_ref=plan.background_image_ref,
        grid_size=plan.grid_size,
        scale=plan.scale,
        shapes=[dump_shape(s, include_transient=False) for s in plan.shapes],
        overlays=overlays,
    )


class RenderClient:
    """Async client for the rasterizer.

    Timeouts surface as ``RenderTimeout``; transport errors and non-2xx
    replies as ``RenderFailure``.  Details are logged, never returned.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (config.RENDERER_URL if base_url is None else base_url).rstrip("/")
        self.timeout = config.RENDER_TIMEOUT_SECONDS if timeout is None else timeout
        self._transport = transport

    async def render(self, request: RenderRequest) -> bytes:
        if not self.base_url:
            record_render("failed")
            logger.error("Export to %s requested but RENDERER_URL is not set", request.format)
            raise RenderFailure("Export renderer is not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(f"{self.base_url}/render", json=request.to_dict())
        except httpx.TimeoutException as exc:
            record_render("timeout")
            logger.warning("Render of floor plan %s timed out: %s", request.floor_plan_id, exc)
            raise RenderTimeout("Export renderer timed out") from exc
        except httpx.HTTPError as exc:
            record_render("failed")
            logger.error("Render of floor plan %s failed: %s", request.floor_plan_id, exc)
            raise RenderFailure("Export renderer failed") from exc

        if not resp.is_success:
            record_render("failed")
            logger.error(
                "Renderer returned HTTP %d for floor plan %s: %s",
                resp.status_code, request.floor_plan_id, resp.text[:200],
            )
            raise RenderFailure("Export renderer failed")

        record_render("ok")
        return resp.content


def _coerce_format(fmt: Any) -> ExportFormat:
    if isinstance(fmt, ExportFormat):
        return fmt
    try:
        return ExportFormat(str(fmt).lower())
    except ValueError:
        raise ValidationError(
            f"Unsupported export format '{fmt}'. Expected one of: json, pdf, png"
        ) from None


def _filename(plan: FloorPlan, fmt: ExportFormat) -> str:
    stem = "".join(c if c.isalnum() or c in "-_" else "-" for c in plan.name).strip("-")
    return f"{stem or 'floor-plan'}-{plan.id}.{fmt.value}"


async def export_floor_plan(
    plan: FloorPlan,
    fmt: Any,
    renderer: Optional[RenderClient] = None,
) -> ExportResult:
    """Export ``plan`` as json, pdf or png."""
    fmt = _coerce_format(fmt)
    if fmt == ExportFormat.JSON:
        content = json.dumps(dump_plan(plan, include_transient=False)).encode()
    else:
        renderer = renderer or RenderClient()
        content = await renderer.render(build_render_request(plan, fmt))
    return ExportResult(content=content, media_type=fmt.media_type, filename=_filename(plan, fmt))
