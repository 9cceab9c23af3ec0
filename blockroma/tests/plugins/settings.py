import pytest
from typing import Any


@pytest.fixture
def override_settings(mocker):
    def inner(name: str, value: Any) -> None:
        mocker.patch(f'blockroma.settings.{name}', value)

    return inner
