import re

import pytest

from mwcontainers.services.credentials import generate_password


def test_generated_password_is_eight_alphanumeric_characters():
    for _ in range(200):
        assert re.fullmatch(r"[A-Za-z0-9]{8}", generate_password())


def test_generated_passwords_differ():
    assert len({generate_password() for _ in range(20)}) > 1


def test_generate_password_rejects_non_positive_length():
    with pytest.raises(ValueError):
        generate_password(0)
