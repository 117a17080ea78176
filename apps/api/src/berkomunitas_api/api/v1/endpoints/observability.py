"""Observability endpoints for the redemption pipeline and Prometheus metrics."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from berkomunitas_api.api.dependencies.security import require_admin_api_key
from berkomunitas_api.observability.rewards import get_rewards_store


router = APIRouter(prefix="/observability", tags=["Observability"])


@router.get(
    "/rewards",
    dependencies=[Depends(require_admin_api_key)],
    summary="Reward redemption observability snapshot",
)
async def get_rewards_snapshot() -> dict[str, object]:
    """Retrieve aggregated redemption metrics (requires admin API key)."""
    return get_rewards_store().snapshot().as_dict()


def _format_metric(name: str, description: str, value: int | float, labels: dict[str, str] | None = None) -> list[str]:
    label_fragment = ""
    if labels:
        formatted = ",".join(f'{key}="{val}"' for key, val in sorted(labels.items()))
        label_fragment = f"{{{formatted}}}"
    return [
        f"# HELP {name} {description}",
        f"# TYPE {name} gauge",
        f"{name}{label_fragment} {value}",
    ]


@router.get(
    "/prometheus",
    dependencies=[Depends(require_admin_api_key)],
    summary="Prometheus-formatted observability metrics",
    response_class=PlainTextResponse,
)
async def get_prometheus_metrics() -> PlainTextResponse:
    snapshot = get_rewards_store().snapshot()

    lines: list[str] = []

    redemptions = snapshot.redemptions
    lines.extend(
        _format_metric(
            "berkomunitas_rewards_redemptions_total",
            "Committed reward redemptions",
            redemptions.get("committed", 0),
        )
    )
    lines.extend(
        _format_metric(
            "berkomunitas_rewards_redeemed_units_total",
            "Reward units reserved by committed redemptions",
            redemptions.get("units", 0),
        )
    )
    lines.extend(
        _format_metric(
            "berkomunitas_rewards_coins_spent_total",
            "Coins debited by committed redemptions",
            redemptions.get("coins", 0),
        )
    )

    for code, value in snapshot.rejections.items():
        lines.extend(
            _format_metric(
                "berkomunitas_rewards_redemption_rejections_total",
                "Redemption attempts rejected grouped by error code",
                value,
                labels={"code": code},
            )
        )

    for edge, value in snapshot.transitions.items():
        from_status, _, to_status = edge.partition("->")
        lines.extend(
            _format_metric(
                "berkomunitas_rewards_status_transitions_total",
                "Redemption status transitions grouped by edge",
                value,
                labels={"from_status": from_status, "to_status": to_status},
            )
        )

    lines.extend(
        _format_metric(
            "berkomunitas_rewards_refunds_total",
            "Refunds issued for cancelled or rejected redemptions",
            snapshot.refunds.get("count", 0),
        )
    )
    lines.extend(
        _format_metric(
            "berkomunitas_rewards_refunded_coins_total",
            "Coins returned by refunds",
            snapshot.refunds.get("coins", 0),
        )
    )

    body = "\n".join(lines) + "\n"
    return PlainTextResponse(content=body, media_type="text/plain; version=0.0.4")
