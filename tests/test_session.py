import pytest

from pinvault.utils.exceptions import ValidationError
from pinvault.utils.session import current_secret, login, logout


def test_login_logout(store):
    assert current_secret(store) is None
    assert login(store, "  my-key  ") == "my-key"
    assert current_secret(store) == "my-key"
    logout(store)
    logout(store)
    assert current_secret(store) is None


def test_empty_secret_rejected(store):
    with pytest.raises(ValidationError):
        login(store, "   ")
