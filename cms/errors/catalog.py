"""
Known failures of the bucket, the identity pools and the stored data,
matched by regex against the raw error text (including the chained
botocore error). Patterns are tried in order; the first match wins, so
specific S3 codes sit above the generic 403 pattern.

New entries need a test in tests/test_errors.py.
"""

import re

from cms.errors.models import ErrorSeverity, FriendlyError

ERROR_PATTERNS: list[tuple[re.Pattern, FriendlyError]] = [
    # ── S3 ────────────────────────────────────────────────────────────────

    (
        re.compile(r"NoSuchBucket", re.IGNORECASE),
        FriendlyError(
            message=(
                "The content bucket doesn't exist. Check the bucket name in the "
                "backend section of config.yml (or CMS_S3_BUCKET) and make sure "
                "the bucket was created in the configured region."
            ),
            severity=ErrorSeverity.CRITICAL,
            error_code="S3_NO_SUCH_BUCKET",
            action="Verify the bucket name and region",
            admin_required=True,
        ),
    ),
    (
        re.compile(r"ExpiredToken|token.*expired", re.IGNORECASE),
        FriendlyError(
            message=(
                "The storage credentials have expired. Log in again to get a "
                "fresh set of credentials."
            ),
            severity=ErrorSeverity.CONFIG,
            error_code="S3_EXPIRED_TOKEN",
            action="Log in again",
        ),
    ),
    (
        re.compile(r"InvalidAccessKeyId|SignatureDoesNotMatch", re.IGNORECASE),
        FriendlyError(
            message=(
                "The storage credentials were rejected. If you use static keys, "
                "check AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY in the .env file."
            ),
            severity=ErrorSeverity.CONFIG,
            error_code="S3_BAD_CREDENTIALS",
            action="Check the storage access keys",
            admin_required=True,
        ),
    ),
    (
        re.compile(r"AccessDenied|\(403\)|Forbidden", re.IGNORECASE),
        FriendlyError(
            message=(
                "You don't have permission to do that in the content bucket. "
                "The identity pool's authenticated role needs s3:GetObject, "
                "s3:PutObject, s3:DeleteObject and s3:ListBucket on the bucket."
            ),
            severity=ErrorSeverity.CONFIG,
            error_code="S3_ACCESS_DENIED",
            action="Grant the authenticated role access to the bucket",
            admin_required=True,
        ),
    ),
    (
        re.compile(r"SlowDown|RequestLimitExceeded|Throttl", re.IGNORECASE),
        FriendlyError(
            message=(
                "The storage service is asking us to slow down. Try again in a "
                "moment. If this keeps happening on large collections, lower "
                "max_concurrency in the backend config."
            ),
            severity=ErrorSeverity.INFO,
            error_code="S3_THROTTLED",
            action="Retry in a moment",
        ),
    ),
    (
        re.compile(r"EndpointConnectionError|Could not connect", re.IGNORECASE),
        FriendlyError(
            message=(
                "I can't reach the storage service. Check the network connection "
                "and, for S3-compatible stores, the endpoint_url setting."
            ),
            severity=ErrorSeverity.INFO,
            error_code="S3_UNREACHABLE",
            action="Check connectivity and endpoint_url",
        ),
    ),

    # ── Cognito ───────────────────────────────────────────────────────────

    (
        re.compile(r"NotAuthorizedException|Incorrect username or password", re.IGNORECASE),
        FriendlyError(
            message="The email or password is incorrect, or the session was revoked.",
            severity=ErrorSeverity.CONFIG,
            error_code="COGNITO_NOT_AUTHORIZED",
            action="Log in again",
        ),
    ),
    (
        re.compile(r"UserNotFoundException", re.IGNORECASE),
        FriendlyError(
            message="There is no user with that email in the user pool.",
            severity=ErrorSeverity.CONFIG,
            error_code="COGNITO_USER_NOT_FOUND",
            action="Check the email or invite the user",
            admin_required=True,
        ),
    ),
    (
        re.compile(r"ResourceNotFoundException.*(pool|identity)", re.IGNORECASE),
        FriendlyError(
            message=(
                "The user pool or identity pool can't be found. Check user_pool_id "
                "and identity_pool_id in the backend config."
            ),
            severity=ErrorSeverity.CRITICAL,
            error_code="COGNITO_POOL_MISSING",
            action="Verify pool ids",
            admin_required=True,
        ),
    ),

    # ── Local invariants ──────────────────────────────────────────────────

    (
        re.compile(r"Missing required setting", re.IGNORECASE),
        FriendlyError(
            message=(
                "The backend configuration is incomplete. Check the backend "
                "section of config.yml or the CMS_* environment variables."
            ),
            severity=ErrorSeverity.CONFIG,
            error_code="CONFIG_INCOMPLETE",
            action="Fill in the missing setting",
            admin_required=True,
        ),
    ),
    (
        re.compile(r"Missing required metadata field|is not of the form", re.IGNORECASE),
        FriendlyError(
            message=(
                "A stored entry is missing its workflow metadata. It may predate "
                "the current key layout. Run `cms-admin migrate-legacy` for the "
                "collection, then try again."
            ),
            severity=ErrorSeverity.CONFIG,
            error_code="METADATA_MISSING",
            action="Run cms-admin migrate-legacy",
            admin_required=True,
        ),
    ),
    (
        re.compile(r"exceeded the listing limit", re.IGNORECASE),
        FriendlyError(
            message=(
                "This folder holds more objects than the configured listing "
                "limit. Raise max_listing_keys or split the collection."
            ),
            severity=ErrorSeverity.CONFIG,
            error_code="LISTING_LIMIT",
            action="Raise max_listing_keys",
            admin_required=True,
        ),
    ),
]


# Pre-built generic fallback
GENERIC_ERROR = FriendlyError(
    message=(
        "Something unexpected went wrong. The details were logged. "
        "Try again, and run `cms-admin reconcile` if an entry looks stuck "
        "between draft and published."
    ),
    severity=ErrorSeverity.INFO,
    error_code="UNKNOWN",
    action="Retry or run cms-admin reconcile",
)
