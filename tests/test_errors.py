"""
Error catalog tests.

Each known failure maps to its friendly error; anything else falls back
to the generic message.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from cms.errors.catalog import ERROR_PATTERNS
from cms.errors.exceptions import (
    AuthError, ConfigurationError, ListingLimitError, MissingMetadataError,
    MalformedKeyError, TransientStoreError,
)
from cms.errors.handler import ErrorHandler
from cms.errors.models import ErrorSeverity


@pytest.fixture
def handler():
    return ErrorHandler()


@pytest.mark.parametrize("message,code", [
    ("An error occurred (NoSuchBucket) when calling the ListObjectsV2 operation", "S3_NO_SUCH_BUCKET"),
    ("An error occurred (ExpiredToken) when calling the GetObject operation", "S3_EXPIRED_TOKEN"),
    ("An error occurred (SignatureDoesNotMatch) when calling the PutObject operation", "S3_BAD_CREDENTIALS"),
    ("An error occurred (AccessDenied) when calling the PutObject operation", "S3_ACCESS_DENIED"),
    ("An error occurred (SlowDown) when calling the GetObject operation", "S3_THROTTLED"),
    ('Could not connect to the endpoint URL: "http://localhost:9000/site"', "S3_UNREACHABLE"),
    ("An error occurred (NotAuthorizedException) when calling the InitiateAuth operation", "COGNITO_NOT_AUTHORIZED"),
    ("An error occurred (UserNotFoundException) when calling the InitiateAuth operation", "COGNITO_USER_NOT_FOUND"),
    ("ResourceNotFoundException: Identity pool eu-west-1:x not found", "COGNITO_POOL_MISSING"),
])
def test_store_and_identity_errors(handler, message, code):
    assert handler.handle_string(message).error_code == code


def test_missing_metadata(handler):
    friendly = handler.handle(MissingMetadataError("status", key="unpublished/blog/x"))
    assert friendly.error_code == "METADATA_MISSING"
    assert "migrate-legacy" in friendly.action


def test_legacy_key_layout(handler):
    error = MalformedKeyError("Key 'unpublished/a/b/c' is not of the form unpublished/{collection}/{slug}")
    assert handler.handle(error).error_code == "METADATA_MISSING"


def test_missing_setting(handler):
    friendly = handler.handle(ConfigurationError("Missing required setting 'bucket'"))
    assert friendly.error_code == "CONFIG_INCOMPLETE"
    assert friendly.admin_required


def test_listing_limit(handler):
    error = ListingLimitError("Listing under 'media/' exceeded the listing limit of 10 keys")
    assert handler.handle(error).error_code == "LISTING_LIMIT"


def test_chained_cause_is_matched(handler):
    """The service error code usually lives on the wrapped botocore error."""
    try:
        try:
            raise RuntimeError("An error occurred (AccessDenied) when calling the GetObject operation")
        except RuntimeError as inner:
            raise AuthError("Access denied for 'published/blog/x'") from inner
    except AuthError as e:
        friendly = handler.handle(e, context="get")

    assert friendly.error_code == "S3_ACCESS_DENIED"
    assert "AccessDenied" in friendly.original_error


def test_unmatched_falls_back(handler):
    friendly = handler.handle(TransientStoreError("something odd"), context="publish")
    assert friendly.error_code == "UNKNOWN"
    assert friendly.original_error == "something odd"


def test_critical_errors_log_at_error(handler, caplog):
    handler.handle_string("NoSuchBucket", context="list")
    assert any(r.levelname == "ERROR" and "S3_NO_SUCH_BUCKET" in r.getMessage() for r in caplog.records)


def test_catalog_templates_are_complete():
    for pattern, template in ERROR_PATTERNS:
        assert template.message
        assert template.error_code
        assert template.action
        assert isinstance(template.severity, ErrorSeverity)


def test_to_dict_hides_original_error(handler):
    data = handler.handle_string("AccessDenied secret-detail").to_dict()
    assert "secret-detail" not in str(data)
    assert data["error_code"] == "S3_ACCESS_DENIED"


def test_object_key_is_logged(handler, caplog):
    handler.handle(MissingMetadataError("status", key="unpublished/blog/x"), context="unpublished")
    assert "[unpublished:unpublished/blog/x] METADATA_MISSING" in caplog.text


def test_cli_lines(handler):
    friendly = handler.handle_string("SlowDown")
    assert friendly.retryable
    assert friendly.cli_lines() == [f"Error: {friendly.message}", "Next step: Retry in a moment"]
