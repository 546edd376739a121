# tests/sim/test_rider_rng.py
import numpy as np

from rider_sim.sim.rng import RNGRegistry, stream_key


def test_named_streams_are_deterministic():
    a1 = RNGRegistry(123, scenario="A").stream("spawn").random(5)
    a2 = RNGRegistry(123, scenario="A").stream("spawn").random(5)
    assert np.allclose(a1, a2)


def test_stream_is_cached_per_registry():
    reg = RNGRegistry(123)
    assert reg.stream("spawn") is reg.stream("spawn")
    assert reg.substream("cruise", "R_1") is reg.substream("cruise", "R_1")


def test_streams_are_independent():
    reg = RNGRegistry(123)
    a = reg.stream("spawn").random(5)
    b = reg.stream("respawn").random(5)
    assert not np.allclose(a, b)


def test_scenarios_are_disjoint():
    a = RNGRegistry(123, scenario="rush-hour").stream("spawn").random(10)
    b = RNGRegistry(123, scenario="night").stream("spawn").random(10)
    assert not np.allclose(a, b)


def test_rider_substreams_are_order_invariant():
    reg = RNGRegistry(123)
    g1 = reg.substream("cruise", "R_1")
    g2 = reg.substream("cruise", "R_2")
    # asking for R_2 first yields the same draws for each rider
    reg2 = RNGRegistry(123)
    g2b = reg2.substream("cruise", "R_2")
    g1b = reg2.substream("cruise", "R_1")
    assert np.allclose(g1.random(3), g1b.random(3))
    assert np.allclose(g2.random(3), g2b.random(3))


def test_stream_keys_are_u32_words():
    k = stream_key("cruise", "R_7", 7)
    assert len(k) == 3
    assert all(0 <= w <= 0xFFFFFFFF for w in k)
    assert k == stream_key("cruise", "R_7", "7")
    assert stream_key("cruise", "R_7") != stream_key("cruise", "R_8")
