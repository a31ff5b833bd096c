"""
ErrorHandler: turns backend exceptions into operator-facing messages.

Usage:
    from cms.errors.handler import ErrorHandler

    error_handler = ErrorHandler()

    try:
        await backend.publish_unpublished_entry("blog", "hello.md")
    except CmsError as e:
        for line in error_handler.handle(e, context="publish").cli_lines():
            click.echo(line, err=True)
"""

import logging
from dataclasses import replace

from cms.errors.catalog import ERROR_PATTERNS, GENERIC_ERROR
from cms.errors.exceptions import CmsError
from cms.errors.models import ErrorSeverity, FriendlyError

logger = logging.getLogger("cms.errors")

_LOG_LEVELS = {
    ErrorSeverity.CRITICAL: logging.ERROR,
    ErrorSeverity.CONFIG: logging.WARNING,
    ErrorSeverity.INFO: logging.INFO,
}


class ErrorHandler:
    """Matches errors against the catalog, first pattern wins."""

    def handle(self, error: Exception, context: str = "") -> FriendlyError:
        """
        Match an exception, including the error it was raised from.

        Adapters chain botocore errors with `raise ... from`, and the S3 or
        Cognito error code usually lives only on that cause.
        """
        text = str(error)
        if error.__cause__ is not None:
            text = f"{text} ({error.__cause__})"
        key = error.key if isinstance(error, CmsError) else None
        return self._resolve(text, context, key)

    def handle_string(self, error_message: str, context: str = "") -> FriendlyError:
        """Match raw error text, e.g. from a log line."""
        return self._resolve(error_message, context, None)

    def _resolve(self, text: str, context: str, key) -> FriendlyError:
        template = next(
            (t for pattern, t in ERROR_PATTERNS if pattern.search(text)),
            None,
        )
        friendly = replace(template or GENERIC_ERROR, original_error=text)

        tag = friendly.error_code if template is not None else "UNMATCHED"
        where = f"[{context}:{key}] " if key else (f"[{context}] " if context else "")
        logger.log(_LOG_LEVELS[friendly.severity], f"{where}{tag}: {text}")
        return friendly
