import hashlib
import hmac
import secrets


# ── OTP codes ─────────────────────────────────────────────────────────
def generate_otp_code() -> str:
    """Uniformly random 6 digit code, leading zeros allowed."""
    return f"{secrets.randbelow(1_000_000):06d}"


def hash_otp_code(code: str) -> str:
    """
    Codes are stored as SHA-256 digests so a leaked table does not leak
    live codes. The digest is deterministic, so lookups can still match on it.
    """
    return hashlib.sha256(code.strip().encode("utf-8")).hexdigest()


# ── Admin shared secret ───────────────────────────────────────────────
def admin_key_matches(expected: str, provided: str | None) -> bool:
    """Timing-safe comparison of the x-admin-key header against the secret."""
    if not provided:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))
