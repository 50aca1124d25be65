import pytest

from docindex.core.observability.metrics import snapshot_named
from docindex.core.producers import FragmentProducer
from docindex.core.registry import (
    Environment,
    EnvironmentUnavailable,
    RegistryStateError,
    thaw_view,
)


def _snapshot(env, channel="implementors"):
    return thaw_view(env.registry(channel).snapshot())


def test_delivery_before_registry_is_queued(env):
    p = FragmentProducer.from_raw("a.js", {"lib1": ["d1", "d2"]})

    assert p.deliver(env) == "queued"
    assert env.handle("implementors").pending_count == 1
    assert env.registry("implementors") is None


def test_pending_then_live_delivery_scenario(env):
    a = FragmentProducer.from_raw("a.js", {"lib1": ["d1", "d2"]})
    b = FragmentProducer.from_raw("b.js", {"lib2": ["d3"]})

    assert a.deliver(env) == "queued"
    env.handle("implementors").install()
    assert b.deliver(env) == "merged"

    assert _snapshot(env) == {"lib1": ["d1", "d2"], "lib2": ["d3"]}
    assert env.handle("implementors").pending_count == 0


def test_shared_key_from_two_producers(env):
    env.handle("implementors").install()
    FragmentProducer.from_raw("a.js", {"lib1": ["d1"]}).deliver(env)
    FragmentProducer.from_raw("c.js", {"lib1": ["d2"]}).deliver(env)

    assert _snapshot(env) == {"lib1": ["d1", "d2"]}


def test_result_independent_of_registry_timing():
    raws = [{"lib1": ["d1"]}, {"lib2": ["d2"]}, {"lib1": ["d3"]}]

    early = Environment()
    for i, raw in enumerate(raws):
        FragmentProducer.from_raw(f"f{i}", raw).deliver(early)
    early.handle("implementors").install()

    late = Environment()
    late.handle("implementors").install()
    for i, raw in enumerate(raws):
        FragmentProducer.from_raw(f"f{i}", raw).deliver(late)

    mixed = Environment()
    FragmentProducer.from_raw("f0", raws[0]).deliver(mixed)
    mixed.handle("implementors").install()
    for i, raw in enumerate(raws[1:], start=1):
        FragmentProducer.from_raw(f"f{i}", raw).deliver(mixed)

    expected = {"lib1": ["d1", "d3"], "lib2": ["d2"]}
    assert _snapshot(early) == expected
    assert _snapshot(late) == expected
    assert _snapshot(mixed) == expected


def test_producer_delivers_at_most_once(env):
    env.handle("implementors").install()
    p = FragmentProducer.from_raw("a.js", {"lib1": ["d1"]})

    assert p.deliver(env) == "merged"
    assert p.deliver(env) == "refused"

    assert _snapshot(env) == {"lib1": ["d1"]}
    assert snapshot_named().get("deliveries_refused") == 1


def test_same_mapping_from_two_producers_is_not_deduplicated(env):
    env.handle("implementors").install()
    raw = {"lib1": ["d1"]}
    FragmentProducer.from_raw("a.js", raw).deliver(env)
    FragmentProducer.from_raw("a-copy.js", raw).deliver(env)

    assert _snapshot(env) == {"lib1": ["d1", "d1"]}


def test_missing_environment_raises():
    p = FragmentProducer.from_raw("a.js", {"lib1": ["d1"]})
    with pytest.raises(EnvironmentUnavailable):
        p.deliver(None)
    assert not p.delivered


def test_closed_environment_fails_one_producer_not_others(env):
    env.handle("implementors").install()
    ok = FragmentProducer.from_raw("ok.js", {"lib1": ["d1"]})
    ok.deliver(env)

    other = Environment()
    other.handle("implementors").install()
    other.close()

    failing = FragmentProducer.from_raw("bad.js", {"lib2": ["d2"]})
    with pytest.raises(EnvironmentUnavailable) as exc:
        failing.deliver(other)
    assert exc.value.channel == "implementors"

    late = FragmentProducer.from_raw("late.js", {"lib1": ["d3"]})
    assert late.deliver(env) == "merged"
    assert _snapshot(env) == {"lib1": ["d1", "d3"]}
    assert snapshot_named().get("deliveries_unavailable") == 1


def test_failed_producer_can_deliver_once_environment_is_reachable(env):
    p = FragmentProducer.from_raw("a.js", {"lib1": ["d1"]})
    with pytest.raises(EnvironmentUnavailable):
        p.deliver(None)

    assert p.deliver(env) == "queued"


def test_channels_are_independent(env):
    FragmentProducer.from_raw("s.js", {"fn": [["run", "Runs."]]}, channel="sidebar").deliver(env)
    FragmentProducer.from_raw("i.js", {"lib1": ["d1"]}).deliver(env)

    env.handle("sidebar").install()

    assert thaw_view(env.registry("sidebar").snapshot()) == {"fn": [["run", "Runs."]]}
    assert env.registry("implementors") is None
    assert env.handle("implementors").pending_count == 1


def test_handle_accepts_one_registry(env):
    h = env.handle("implementors")
    h.install()
    with pytest.raises(RegistryStateError):
        h.install()


def test_producer_mapping_is_immutable():
    raw = {"lib1": ["d1"]}
    p = FragmentProducer.from_raw("a.js", raw)
    raw["lib1"].append("d2")
    raw["lib2"] = ["x"]

    assert list(p.mapping.keys()) == ["lib1"]
    assert len(p.mapping["lib1"]) == 1
    with pytest.raises(TypeError):
        p.mapping["lib3"] = ()
