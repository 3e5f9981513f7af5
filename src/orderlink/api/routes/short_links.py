"""Short-code redemption: GET /r/{code}.

Never raises past this boundary: redirect, or a themed terminal page.
"""

from __future__ import annotations

from html import escape

from fastapi import APIRouter
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from orderlink.api.deps import get_bridge
from orderlink.domain.redemption import Redemption, redeem
from orderlink.infra.settings import DEFAULT_BRAND_NAME
from orderlink.observability.correlation import get_correlation_id
from orderlink.observability.logging import get_logger
from orderlink.observability.redaction import safe_log_context

router = APIRouter(tags=["short-links"])

logger = get_logger(__name__)

_PAGES: dict[str, tuple[str, str]] = {
    "unknown": (
        "Link not found",
        "This ordering link does not exist or was already used. "
        'Send "JOIN" on WhatsApp to get a new one.',
    ),
    "expired": (
        "Link expired",
        'This ordering link has expired. Send "JOIN" on WhatsApp to get a fresh one.',
    ),
    "error": (
        "Something went wrong",
        "We could not open this link. Please try again in a moment.",
    ),
}

_PAGE_TEMPLATE = """<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title} · {brand}</title>
<style>
body {{ font-family: system-ui, sans-serif; background: #f6f7f2; color: #1f2a1c;
       display: flex; min-height: 100vh; align-items: center; justify-content: center; margin: 0; }}
main {{ background: #fff; border-radius: 12px; padding: 2rem; max-width: 24rem;
       box-shadow: 0 2px 12px rgba(0, 0, 0, .08); text-align: center; }}
h1 {{ color: #2f7d32; font-size: 1.4rem; }}
</style>
</head>
<body>
<main>
<h1>{title}</h1>
<p>{message}</p>
<small>{brand}</small>
</main>
</body>
</html>
"""


def render_terminal_page(state: str, brand: str, status_code: int) -> HTMLResponse:
    title, message = _PAGES.get(state, _PAGES["error"])
    html = _PAGE_TEMPLATE.format(
        title=escape(title),
        message=escape(message),
        brand=escape(brand),
    )
    return HTMLResponse(content=html, status_code=status_code)


@router.get("/r/{code}")
def redirect_short_link(code: str) -> Response:
    """302 to the portal for a live code; 404/410/500 themed page otherwise."""
    brand = DEFAULT_BRAND_NAME
    try:
        bridge = get_bridge()
        brand = bridge.settings.brand_name
        result = redeem(bridge.registry, code, bridge.settings.portal_base_url)
    except Exception as e:
        logger.exception(
            "short link redirect failed",
            extra={"extra_fields": safe_log_context(error_type=type(e).__name__)},
        )
        result = Redemption(state="error")

    if result.state == "valid" and result.location:
        return RedirectResponse(url=result.location, status_code=302)

    logger.info(
        "short link not redeemed",
        extra={
            "extra_fields": safe_log_context(
                correlationId=get_correlation_id(),
                state=result.state,
            )
        },
    )
    return render_terminal_page(result.state, brand, result.status_code)
