"""Verify a credential with the configured secret and print its claims.

Usage:
    JWT_SECRET=... uv run python scripts/debug_verify_token.py <token>

Exit codes: 0 valid, 1 usage/config error, 2 invalid or expired.
The secret itself is never printed.
"""

from __future__ import annotations

import json
import sys


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: uv run python scripts/debug_verify_token.py <token>")
        sys.exit(1)

    token = sys.argv[1].strip()

    from orderlink.domain.credentials import CredentialError, CredentialSigner, decode_unverified
    from orderlink.infra.settings import load_settings

    try:
        settings = load_settings()
    except RuntimeError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    signer = CredentialSigner(
        settings.jwt_secret,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
    )

    try:
        signer.verify(token)
    except CredentialError as e:
        print(json.dumps({"ok": False, "error": {"name": type(e).__name__, "message": str(e)}}, indent=2))
        sys.exit(2)

    print(json.dumps({"ok": True, "payload": decode_unverified(token)}, indent=2))


if __name__ == "__main__":
    main()
