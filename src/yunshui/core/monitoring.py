"""
GlitchTip Error Monitoring Utilities

Helper functions for error tracking and context management.
"""

import logging
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from yunshui.core.logger import setup_logger

logger = setup_logger(__name__)


def init_monitoring(dsn: str, environment: str) -> None:
    """Initialize sentry-sdk against a GlitchTip DSN."""
    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            LoggingIntegration(
                level=None,  # Capture all log levels as breadcrumbs
                event_level=logging.ERROR,  # Send ERROR logs as events
            ),
        ],
        traces_sample_rate=0.1,
        send_default_pii=False,
    )
    logger.info("GlitchTip error monitoring initialized")


def set_status_context(
    track: str,
    order_id: Optional[str] = None,
    project_id: Optional[str] = None,
    **extra_tags
) -> None:
    """
    Set status-pipeline context for error tracking.

    Args:
        track: Status track being posted (ORDER, PICKUP, DELIVERY, CHECK)
        order_id: Order the post was addressed to
        project_id: Project resolved for the order
        **extra_tags: Additional tags to add
    """
    sentry_sdk.set_tag("status.track", track)
    if order_id:
        sentry_sdk.set_tag("status.order_id", order_id)
    if project_id:
        sentry_sdk.set_tag("status.project_id", project_id)

    for key, value in extra_tags.items():
        sentry_sdk.set_tag(key, value)

    context_data = {
        "track": track,
        "order_id": order_id,
        "project_id": project_id,
    }
    context_data.update(extra_tags)
    sentry_sdk.set_context("status", context_data)


def capture_exception(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Capture an exception and send to GlitchTip.

    Args:
        error: The exception to capture
        context: Additional context data
    """
    with sentry_sdk.new_scope() as scope:
        if context:
            scope.set_context("custom", context)
        sentry_sdk.capture_exception(error)
