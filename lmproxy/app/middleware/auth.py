from dataclasses import dataclass

from fastapi import Request

from lmproxy.app.core.config import settings
from lmproxy.app.exceptions import CredentialsMissingError

ACCOUNT_HEADER = "X-LM-Account"
TOKEN_HEADER = "X-LM-Bearer-Token"


@dataclass(frozen=True)
class LMCredentials:
    account: str
    bearer_token: str


def require_lm_credentials(request: Request) -> LMCredentials:
    """Resolve the LogicMonitor credentials for this request.

    Per-request headers win; the process-wide LM_ACCOUNT / LM_BEARER_TOKEN
    settings are the fallback.

    Args:
        request: The incoming request

    Returns:
        The account and bearer token to call LogicMonitor with

    Raises:
        CredentialsMissingError: 400 if either value is unavailable
    """
    account = (request.headers.get(ACCOUNT_HEADER) or settings.lm_account).strip()
    token = (request.headers.get(TOKEN_HEADER) or settings.lm_bearer_token).strip()

    if not account or not token:
        raise CredentialsMissingError()

    return LMCredentials(account=account, bearer_token=token)
