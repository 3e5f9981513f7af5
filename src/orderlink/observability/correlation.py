"""Request correlation ids.

One id per HTTP request, held in a ContextVar so log records emitted from
threadpool work (inbound handling, repository calls) carry it too. A caller
may supply its own id in X-Correlation-ID; it is echoed on the response.
"""

import re
import uuid
from contextvars import ContextVar, Token

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Inbound ids end up in every log line: short, plain tokens only
_ACCEPTED_ID = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def accept_or_generate(header_value: str | None) -> str:
    """Use the caller's id when it is a plain token, else a fresh one."""
    if header_value and _ACCEPTED_ID.match(header_value):
        return header_value
    return generate_correlation_id()


def get_correlation_id() -> str:
    return correlation_id_var.get()


def set_correlation_id(cid: str) -> Token[str]:
    return correlation_id_var.set(cid)


def reset_correlation_id(token: Token[str]) -> None:
    correlation_id_var.reset(token)
