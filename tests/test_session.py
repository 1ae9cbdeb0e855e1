from pathlib import Path

import pytest

from pgwsim.cdr import CdrManager
from pgwsim.session import SessionManager


class RecordingCdr:
    def __init__(self):
        self.records = []

    def add_record(self, imsi, action):
        self.records.append((imsi, action))


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def cdr():
    return RecordingCdr()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def manager(cdr, clock):
    return SessionManager(cdr, 1, ["123456789012345"], clock=clock)


def test_create_session_writes_to_cdr(manager, cdr):
    assert manager.create_session("123456789012344") is True
    assert cdr.records == [("123456789012344", "created")]


def test_second_create_prolongs(manager, cdr):
    assert manager.create_session("123456789012344") is True
    assert manager.create_session("123456789012344") is True
    assert manager.session_exists("123456789012344") is True
    assert cdr.records == [
        ("123456789012344", "created"),
        ("123456789012344", "prolonged"),
    ]


def test_blacklisted_is_rejected(manager, cdr):
    assert manager.create_session("123456789012345") is False
    assert cdr.records == [("123456789012345", "rejected_blacklist")]
    assert manager.session_exists("123456789012345") is False


@pytest.mark.parametrize("imsi", ["", "12a45", "1234567890123456"])
def test_invalid_imsi_rejected_without_record(manager, cdr, imsi):
    assert manager.create_session(imsi) is False
    assert cdr.records == []


def test_short_numeric_imsi_accepted(manager):
    assert manager.create_session("12345") is True
    assert manager.session_exists("12345") is True


def test_is_blacklisted_drops_invalid_entries(cdr):
    manager = SessionManager(cdr, 1, ["abc", "123456789012345", ""])
    assert manager.is_blacklisted("123456789012345") is True
    assert manager.is_blacklisted("abc") is False
    assert manager.is_blacklisted("") is False


def test_session_exists_only_after_create(manager):
    assert manager.session_exists("001010000000001") is False
    manager.create_session("001010000000001")
    assert manager.session_exists("001010000000001") is True


def test_cleanup_expires_sessions(manager, cdr, clock):
    manager.create_session("001010000000001")
    clock.now = 100.5
    manager.cleanup_expired_sessions()
    assert manager.session_exists("001010000000001") is True
    clock.now = 101.0
    manager.cleanup_expired_sessions()
    assert manager.session_exists("001010000000001") is False
    assert cdr.records[-1] == ("001010000000001", "expired")


def test_prolonged_session_survives_first_deadline(manager, cdr, clock):
    manager.create_session("001010000000001")
    clock.now = 100.5
    manager.create_session("001010000000001")
    clock.now = 101.0
    manager.cleanup_expired_sessions()
    assert manager.session_exists("001010000000001") is True
    clock.now = 101.5
    manager.cleanup_expired_sessions()
    assert manager.session_exists("001010000000001") is False
    assert [action for _, action in cdr.records].count("expired") == 1


def test_graceful_shutdown_throttles(cdr, clock):
    sleeps = []
    manager = SessionManager(cdr, 60, [], clock=clock, sleep=sleeps.append)
    imsis = [f"00101000000000{i}" for i in range(5)]
    for imsi in imsis:
        manager.create_session(imsi)
    cdr.records.clear()

    manager.graceful_shutdown(2)

    assert sleeps == [1.0, 1.0, 1.0]
    assert cdr.records == [(imsi, "graceful_removal") for imsi in imsis]
    assert not any(manager.session_exists(imsi) for imsi in imsis)


def test_graceful_shutdown_zero_rate_removes_all_at_once(cdr, clock):
    sleeps = []
    manager = SessionManager(cdr, 60, [], clock=clock, sleep=sleeps.append)
    manager.create_session("001010000000001")
    manager.create_session("001010000000002")
    manager.graceful_shutdown(0)
    assert sleeps == []
    assert manager.session_exists("001010000000001") is False
    assert manager.session_exists("001010000000002") is False


def test_missing_cdr_manager_still_creates_sessions(clock):
    manager = SessionManager(None, 1, [], clock=clock)
    assert manager.create_session("001010000000001") is True
    assert manager.session_exists("001010000000001") is True


def test_records_reach_cdr_file(tmp_path: Path):
    path = tmp_path / "cdr.csv"
    with CdrManager(path) as cdr_manager:
        manager = SessionManager(cdr_manager, 1, ["123456789012345"])
        manager.create_session("123456789012344")
        manager.create_session("123456789012345")
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0].endswith(",123456789012344,created")
    assert lines[1].endswith(",123456789012345,rejected_blacklist")