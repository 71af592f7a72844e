import pytest

from epub_tailor.progress import STAGES, MonotonicProgress, global_progress, stage_range


def test_stage_ranges_tile_the_scale():
    ranges = [stage_range(i) for i in range(len(STAGES))]

    assert ranges == [(0, 25), (25, 50), (50, 75), (75, 90), (90, 100)]
    assert [name for name, _ in STAGES] == ["unpack", "template", "resize", "quantize", "repack"]


@pytest.mark.parametrize("stage,local,expected", [
    (0, 0, 0),
    (0, 100, 25),
    (2, 50, 62.5),
    (3, 100, 90),
    (4, 50, 95),
    (4, 100, 100),
    (1, -10, 25),
    (1, 250, 50),
])
def test_global_progress(stage, local, expected):
    assert global_progress(stage, local) == pytest.approx(expected)


def test_global_progress_is_monotonic_across_stages():
    values = [global_progress(s, p) for s in range(len(STAGES)) for p in range(0, 101, 5)]

    assert values == sorted(values)


def test_unknown_stage_is_rejected():
    with pytest.raises(IndexError):
        global_progress(5, 10)


def test_monotonic_progress_drops_regressions():
    seen = []
    progress = MonotonicProgress(seen.append)

    for value in [10, 5, 10, 30, 20, 120]:
        progress.update(value)
    progress.finish()

    assert seen == [10, 30, 100]
    assert progress.value == 100
