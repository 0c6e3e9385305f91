import sys
from typing import Optional

from itsdangerous import BadData, URLSafeTimedSerializer

from config import Settings, get_settings


def _serializer(settings: Settings) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(settings.auth_secret, salt="ledger-identity")


def issue_token(subject: str, settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    subject = subject.strip()
    if not subject:
        raise ValueError("Subject cannot be empty")
    return _serializer(settings).dumps({"sub": subject})


def read_token(token: str, settings: Optional[Settings] = None) -> Optional[str]:
    """Return the subject carried by ``token``, or None if it is invalid or expired."""
    settings = settings or get_settings()
    try:
        data = _serializer(settings).loads(
            token, max_age=settings.token_max_age_hours * 3600
        )
    except BadData:
        return None
    subject = data.get("sub") if isinstance(data, dict) else None
    if not isinstance(subject, str) or not subject:
        return None
    return subject


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        return None
    return value.strip()


def resolve_owner(authorization: Optional[str], settings: Settings) -> Optional[str]:
    token = bearer_token(authorization)
    if token:
        subject = read_token(token, settings)
        if subject:
            return subject
    return settings.single_tenant_owner


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("usage: python auth.py <subject>", file=sys.stderr)
        sys.exit(2)
    print(issue_token(sys.argv[1]))
