from flashboard.identity import DeviceIdentity
from flashboard.utils import is_device_id


def test_provisions_and_persists_token(tmp_path):
    path = tmp_path / "nested" / "device_id"
    token = DeviceIdentity(path).device_id()

    assert is_device_id(token)
    assert path.read_text(encoding="utf-8").strip() == token
    assert DeviceIdentity(path).device_id() == token


def test_replaces_corrupt_token(tmp_path):
    path = tmp_path / "device_id"
    path.write_text("garbage", encoding="utf-8")

    token = DeviceIdentity(path).device_id()
    assert is_device_id(token)
    assert path.read_text(encoding="utf-8").strip() == token


def test_token_is_cached_per_instance(tmp_path):
    identity = DeviceIdentity(tmp_path / "device_id")
    first = identity.device_id()
    (tmp_path / "device_id").unlink()
    assert identity.device_id() == first
