import pytest

from image_derivatives.core.exceptions import (
    ClassificationUndefined,
    DerivativesPipelineError,
    NotificationError,
    PublishError,
    PublishVerifyError,
    RenderError,
)


@pytest.mark.parametrize(
    "error_cls", [ClassificationUndefined, RenderError, PublishError, NotificationError]
)
def test_version_errors_share_base(error_cls) -> None:
    error = error_cls("failed", version_name="thumbnail")

    assert isinstance(error, DerivativesPipelineError)
    assert error.version_name == "thumbnail"
    assert str(error) == "failed"


def test_verify_error_is_publish_error() -> None:
    with pytest.raises(PublishError):
        raise PublishVerifyError("size mismatch")


def test_notification_error_status() -> None:
    error = NotificationError("rejected", version_name="medium", status_code=401)

    assert error.status_code == 401
    assert NotificationError("down").status_code is None
