import os

import numpy as np
import pytest

from neuronfun import plotting
from neuronfun.colorize import (
    Color, ColorKey, ColorPredictor, ColorSelector, QUADRANTS, RGB_VENN_DIAGRAM,
)
from neuronfun.nnetwork.core.errors import InvalidConfiguration


def test_color_bitmask():
    assert Color.from_flags(False, False) is Color.NONE
    assert Color.from_flags(True, False) is Color.RED
    assert Color.from_flags(False, True) is Color.BLUE
    assert Color.from_flags(True, True) is Color.BOTH
    assert [int(c) for c in Color] == [0, 1, 2, 3]
    assert Color.BLUE.flags == (False, True)


def test_quadrant_key():
    assert QUADRANTS.color((-0.5, 0.5)) is Color.RED
    assert QUADRANTS.color((0.5, -0.5)) is Color.BLUE
    assert QUADRANTS.color((-0.5, -0.5)) is Color.BOTH
    assert QUADRANTS.color((0.5, 0.5)) is Color.NONE
    assert QUADRANTS.palette_size == 4
    assert QUADRANTS.one_hot((-0.5, -0.5)).copy_values().tolist() == [0, 0, 0, 1]


def test_rgb_key():
    assert RGB_VENN_DIAGRAM.index((0.0, 0.0)) == 7
    assert RGB_VENN_DIAGRAM.index((0.9, 0.9)) == 0
    assert RGB_VENN_DIAGRAM.intensities((0.0, 0.0)).copy_values().tolist() == [1, 1, 1]
    assert RGB_VENN_DIAGRAM.palette_size == 8
    with pytest.raises(InvalidConfiguration):
        RGB_VENN_DIAGRAM.color((0.0, 0.0))


def test_key_checks_flag_count():
    with pytest.raises(InvalidConfiguration):
        ColorKey(lambda coords: (True,), 2).flags((0.0, 0.0))
    with pytest.raises(InvalidConfiguration):
        ColorKey(lambda coords: (), 0)


def test_color_predictor():
    predictor = ColorPredictor(QUADRANTS, 1, 6, rng=np.random.default_rng(0))
    assert isinstance(predictor.predict((0.2, -0.3)), Color)
    assert predictor.probabilities((0.2, -0.3)).sum() == pytest.approx(1.0)

    losses = predictor.train(3, 5, 0.1)
    assert len(losses) == 3

    points = [(-0.5, 0.5), (0.5, -0.5), (0.5, 0.5)]
    assert 0.0 <= predictor.accuracy(points) <= 1.0
    assert predictor.accuracy([]) == 0.0


def test_color_predictor_fixed_batch_training():
    predictor = ColorPredictor(QUADRANTS, 1, 6, rng=np.random.default_rng(1))
    batch = predictor.batch(20, (-1.0, 1.0), (-1.0, 1.0))
    assert batch[0][0].shape == (2, 1)
    assert batch[0][1].shape == (4, 1)
    losses = [predictor.network.train(batch, 0.1).value_at(0) for _ in range(30)]
    assert losses[-1] < losses[0]


def test_sampling_arguments():
    predictor = ColorPredictor(QUADRANTS, 0, 4)
    with pytest.raises(InvalidConfiguration):
        predictor.batch(5, (1.0, -1.0), (-1.0, 1.0))
    with pytest.raises(InvalidConfiguration):
        predictor.batch(0, (-1.0, 1.0), (-1.0, 1.0))


def test_color_selector(tmp_path):
    selector = ColorSelector(RGB_VENN_DIAGRAM, 1, 6, rng=np.random.default_rng(2))
    out = selector.predict((0.1, 0.1))
    assert out.shape == (3,)
    assert np.all((out > 0) & (out < 1))

    history = selector.train(5, 4, (0.1, 0.01))
    assert len(history) == 5
    assert history[0][0] == pytest.approx(0.1)
    assert history[-1][0] == pytest.approx(0.01)

    path = selector.export_parameters(str(tmp_path / "rgb.param"))
    other = ColorSelector(RGB_VENN_DIAGRAM, 1, 6, rng=np.random.default_rng(3))
    other.import_parameters(path)
    np.testing.assert_array_equal(other.predict((0.1, 0.1)), selector.predict((0.1, 0.1)))


def test_plots(tmp_path):
    predictor = ColorPredictor(QUADRANTS, 0, 4, rng=np.random.default_rng(4))
    Z = plotting.plot_palette_predictions(predictor, resolution=4,
                                          save_path=str(tmp_path / "palette.png"))
    assert Z.shape == (4, 4)
    assert set(np.unique(Z)) <= {0, 1, 2, 3}

    selector = ColorSelector(RGB_VENN_DIAGRAM, 0, 4, rng=np.random.default_rng(5))
    img = plotting.plot_rgb_predictions(selector, resolution=4,
                                        save_path=str(tmp_path / "rgb.png"))
    assert img.shape == (4, 4, 3)

    plotting.plot_training_history([(0.1, 1.0), (0.05, 0.5)], str(tmp_path / "history.png"))
    plotting.plot_losses([1.0, 0.5, 0.25], str(tmp_path / "losses.png"))
    for name in ("palette.png", "rgb.png", "history.png", "losses.png"):
        assert os.path.exists(tmp_path / name)
