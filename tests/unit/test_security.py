import pytest

from ddsprovider.app.utils.security import generate_client_token, redact_params


def test_client_token_is_unique_and_bounded():
    first = generate_client_token("CreateDBInstance")
    second = generate_client_token("CreateDBInstance")

    assert first.startswith("TF-CreateDBInstance-")
    assert first != second
    assert len(generate_client_token("A" * 80)) == 64


def test_client_token_requires_action():
    with pytest.raises(ValueError):
        generate_client_token("")


def test_redact_params():
    redacted = redact_params(
        {"AccountPassword": "Secr3t", "CiphertextBlob": "blob", "DBInstanceId": "dds-1", "Plaintext": ""}
    )

    assert redacted == {
        "AccountPassword": "***",
        "CiphertextBlob": "***",
        "DBInstanceId": "dds-1",
        "Plaintext": "",
    }
