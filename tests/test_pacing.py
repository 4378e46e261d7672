import pytest

from pacing import FixedDelay, NoDelay


async def test_fixed_delay_sleeps_each_wait():
    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)

    pacer = FixedDelay(0.3, sleep=fake_sleep)
    await pacer.wait()
    await pacer.wait()

    assert slept == [0.3, 0.3]
    assert pacer.waits == 2


def test_from_ms():
    assert FixedDelay.from_ms(150).seconds == 0.15


def test_negative_delay_rejected():
    with pytest.raises(ValueError):
        FixedDelay(-1)


async def test_no_delay_counts_without_sleeping():
    pacer = NoDelay()
    await pacer.wait()

    assert pacer.seconds == 0
    assert pacer.waits == 1


async def test_no_delay_from_ms_never_sleeps():
    pacer = NoDelay.from_ms(300)
    await pacer.wait()

    assert isinstance(pacer, NoDelay)
    assert pacer.seconds == 0
