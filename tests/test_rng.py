from mazeforge.core.rng import SeededRNG


def test_same_seed_same_stream():
    a, b = SeededRNG(17), SeededRNG(17)
    assert [a.below(100) for _ in range(20)] == [b.below(100) for _ in range(20)]
    assert a.next_float() == b.next_float()


def test_zero_is_a_real_seed():
    rng = SeededRNG(0)
    assert rng.seed == 0
    assert SeededRNG(0).range(0.0, 1.0) == rng.range(0.0, 1.0)


def test_missing_seed_is_drawn_and_recorded():
    rng = SeededRNG()
    assert isinstance(rng.seed, int)
    assert 0 <= rng.seed < 2**32

    replay = SeededRNG(rng.seed)
    assert [rng.next_float() for _ in range(5)] == [replay.next_float() for _ in range(5)]


def test_choice():
    rng = SeededRNG(1)
    assert rng.choice([]) is None
    assert rng.choice(["only"]) == "only"
    assert all(rng.choice("abc") in "abc" for _ in range(10))
