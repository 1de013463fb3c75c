import io
import math

import pytest

from rescale.progress import ProgressEstimator, estimate_ratio


@pytest.mark.parametrize(
    "original_size, output_length, expected",
    [
        (1000, 500, 0.5),
        (1000, 1000, 1.0),
        (1000, 5000, 1.0),  # 上限は 1.0
        (0, 500, 1.0),  # メタデータなし → 出力サイズで割る
        (None, 500, 1.0),
        ("1000", 500, 1.0),  # 数値でないものは 0 扱い
        (True, 500, 1.0),
        (math.nan, 500, 1.0),
        (-10, 500, 1.0),
        (0, 0, 1.0),  # 分母 0
        (None, 0, 1.0),
        (2000, 0, 0.0),
    ],
)
def test_estimate_ratio(original_size, output_length, expected):
    ratio = estimate_ratio(original_size, output_length)
    assert 0.0 <= ratio <= 1.0
    assert ratio == pytest.approx(expected)


def test_report_emits_estimate_then_completion():
    stream = io.StringIO()
    with ProgressEstimator("Resizing image a.png to 640x480...", file=stream) as progress:
        progress.reset()
        ratio = progress.report(4000, 1000)

    assert ratio == pytest.approx(0.25)
    assert progress.history == [0.0, 0.25, 1.0]
    assert progress.current == 1.0
    output = stream.getvalue()
    assert "Resizing image a.png to 640x480..." in output
    assert "100/100" in output


def test_update_clamps_ratio():
    progress = ProgressEstimator("clamp", disable=True)
    progress.update(1.7)
    progress.update(-0.3)
    assert progress.history == [1.0, 0.0]
    progress.close()


def test_render_failure_is_not_fatal(log_messages):
    class BrokenBar:
        n = 0

        def refresh(self):
            raise RuntimeError("terminal gone")

        def close(self):
            raise RuntimeError("terminal gone")

    progress = ProgressEstimator("broken", disable=True)
    progress._bar = BrokenBar()

    progress.reset()
    progress.report(None, 10)
    progress.close()

    assert progress.history == [0.0, 1.0, 1.0]
    assert any(m.startswith("WARNING|Failed to render progress") for m in log_messages)
    assert any(m.startswith("WARNING|Failed to close progress bar") for m in log_messages)


def test_close_is_idempotent():
    progress = ProgressEstimator("twice", disable=True)
    progress.close()
    progress.close()
    progress.complete()
    assert progress.current == 1.0
