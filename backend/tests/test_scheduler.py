from pennywise.config import Settings
from pennywise.scheduler import local_now


def test_local_now_uses_configured_timezone():
    now = local_now(Settings(timezone="Asia/Taipei"))

    assert now.utcoffset().total_seconds() == 8 * 3600


def test_unknown_timezone_falls_back_to_utc():
    now = local_now(Settings(timezone="Mars/Olympus_Mons"))

    assert now.utcoffset().total_seconds() == 0
