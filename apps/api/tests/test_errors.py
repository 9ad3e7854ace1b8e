"""Tests for job action error classification."""
import httpx
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from sqlalchemy.exc import OperationalError

from printshop.core.errors import (
    JobNotFoundError,
    NetworkError,
    PermissionDeniedError,
    UnknownError,
    classify_error,
)
from printshop.schemas.error import Diagnosis, ErrorReport


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "nope"}}, "PutObject")


def test_action_errors_pass_through():
    error = JobNotFoundError()
    assert classify_error(error) is error


@pytest.mark.parametrize(
    "exc, expected",
    [
        (_client_error("AccessDenied"), PermissionDeniedError),
        (_client_error("InvalidAccessKeyId"), PermissionDeniedError),
        (EndpointConnectionError(endpoint_url="https://s3.test"), NetworkError),
        (httpx.ConnectError("refused"), NetworkError),
        (OperationalError("SELECT 1", {}, Exception("down")), NetworkError),
        (PermissionError("read-only"), PermissionDeniedError),
        (ConnectionResetError("reset"), NetworkError),
        (RuntimeError("boom"), UnknownError),
    ],
)
def test_classify_error(exc, expected):
    assert isinstance(classify_error(exc), expected)


def test_other_storage_errors_carry_their_code():
    error = classify_error(_client_error("NoSuchBucket"))

    assert isinstance(error, UnknownError)
    assert error.code == "NoSuchBucket"
    assert "NoSuchBucket" in error.description


def test_unknown_error_code_is_exception_type():
    assert classify_error(KeyError("x")).code == "KeyError"


def test_error_report_from_error():
    report = ErrorReport.from_error(
        PermissionDeniedError(code="AccessDenied"),
        Diagnosis(diagnosis="Bucket policy", suggestion="Grant s3:PutObject"),
    )

    assert report.kind == "permission_denied"
    assert report.title == "Permission error"
    assert report.code == "AccessDenied"
    assert report.diagnosis.suggestion == "Grant s3:PutObject"
