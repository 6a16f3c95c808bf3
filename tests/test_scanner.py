from phoneshop.services.scanner import ScanDeduplicator, ScanRegistry, bill_item_name


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


class TestScanDeduplicator:
    def test_repeat_within_cooldown_is_dropped(self):
        clock = FakeClock()
        dedup = ScanDeduplicator(cooldown_seconds=3, clock=clock)
        assert dedup.accept("SN1") is True
        clock.now += 2.9
        assert dedup.accept("SN1") is False

    def test_repeat_after_cooldown_is_accepted(self):
        clock = FakeClock()
        dedup = ScanDeduplicator(cooldown_seconds=3, clock=clock)
        dedup.accept("SN1")
        clock.now += 3
        assert dedup.accept("SN1") is True

    def test_different_payload_is_accepted_immediately(self):
        clock = FakeClock()
        dedup = ScanDeduplicator(cooldown_seconds=3, clock=clock)
        dedup.accept("SN1")
        assert dedup.accept("SN2") is True
        assert dedup.accept("SN1") is True

    def test_reset_forgets_last_payload(self):
        dedup = ScanDeduplicator(cooldown_seconds=3, clock=FakeClock())
        dedup.accept("SN1")
        dedup.reset()
        assert dedup.accept("SN1") is True


def test_registry_keeps_users_apart():
    registry = ScanRegistry(clock=FakeClock())
    assert registry.for_user(1).accept("SN1") is True
    assert registry.for_user(2).accept("SN1") is True
    assert registry.for_user(1).accept("SN1") is False
    registry.reset(1)
    assert registry.for_user(1).accept("SN1") is True


def test_bill_item_name():
    assert bill_item_name("Redmi 13C", "SN1", "Black") == "Redmi 13C - SN1 (Black)"
    assert bill_item_name("Redmi 13C", "SN1", None) == "Redmi 13C - SN1"
