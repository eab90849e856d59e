"""Redirect decisions for one parsed response.

Each response moves the call from ``SENT`` to either ``FOLLOW`` (with the
next request to send) or ``TERMINATE`` (the response is final). The client
drives these steps in a loop, so the number of hops is bounded by
``max_redirects`` without any recursion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .config import HttpClientConfig
from .methods import SAFE_METHODS, Method
from .models import ExecutionState, ParsedResponse, RequestSpec
from .urls import resolve_url

logger = logging.getLogger(__name__)

STRICT_REDIRECT_CODES = frozenset({301, 302, 307, 308})


class RedirectState(Enum):
    SENT = "sent"
    FOLLOW = "follow"
    TERMINATE = "terminate"


@dataclass(frozen=True)
class RedirectStep:
    state: RedirectState
    request: RequestSpec | None = None


def has_budget(config: HttpClientConfig, state: ExecutionState) -> bool:
    if config.max_redirects <= 0:
        return False
    return state.redirects_followed < config.max_redirects


def rewrites_to_get(status_code: int, config: HttpClientConfig) -> bool:
    """Return True when the redirect is sent without its body.

    303 always drops the body. 301/302 (and any lower code carrying a
    location) drop it unless strict redirects are enabled.
    """
    if status_code == 303:
        return True
    return status_code <= 302 and not config.strict_redirects


def next_step(
    response: ParsedResponse,
    request: RequestSpec,
    config: HttpClientConfig,
    state: ExecutionState,
) -> RedirectStep:
    """Decide whether ``response`` ends the call or leads to another hop."""
    location = (response.header("location") or "").strip()
    if not location or not has_budget(config, state):
        return RedirectStep(RedirectState.TERMINATE)

    next_url = resolve_url(location, request.url)
    method = request.method
    body = request.body
    if rewrites_to_get(response.status_code, config):
        if method not in SAFE_METHODS:
            method = Method.GET
        body = None

    logger.debug(
        "Following %s redirect %d/%d: %s %s -> %s %s",
        response.status_code,
        state.redirects_followed + 1,
        config.max_redirects,
        request.method.value,
        request.url,
        method.value,
        next_url,
    )
    return RedirectStep(
        RedirectState.FOLLOW,
        request.with_redirect(next_url, method, body),
    )
