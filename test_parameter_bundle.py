import os

import numpy as np
import pytest

from neuronfun.nnetwork.core.errors import (
    BundleIOError, BundleNotFoundError, BundleParseError, BundleTruncatedError,
    InvalidConfiguration, LayerNameWarning, ShapeMismatch, is_recoverable,
)
from neuronfun.nnetwork.core.node import Node
from neuronfun.nnetwork.mlp.layers import FunctionLayer, Linear
from neuronfun.nnetwork.mlp.parameter_bundle import ParameterBundle
from neuronfun.nnetwork.ops import tanh


def make_layers(w_vals, b_vals):
    return [
        Linear.from_nodes(Node.filled((3, 2), w_vals), Node.col_vector(b_vals), "Layer A"),
        FunctionLayer(tanh, "Tanh"),
    ]


def test_parameter_bundle_transfer():
    src = make_layers([1., 2., 3., 4., 5., 6.], [7., 8., 9.])
    dst = make_layers([0.] * 6, [0.] * 3)
    bundle = ParameterBundle.capture(src)
    bundle.apply(dst)
    assert ParameterBundle.capture(dst) == bundle
    assert dst[0].weight.copy_values().tolist() == [1, 2, 3, 4, 5, 6]
    assert dst[0].bias.copy_values().tolist() == [7, 8, 9]


def test_apply_capture_is_a_no_op():
    layers = make_layers(list(np.linspace(-1, 1, 6)), [0.1, 0.2, 0.3])
    before = ParameterBundle.capture(layers)
    before.apply(layers)
    assert ParameterBundle.capture(layers) == before


def test_text_format():
    layers = [
        Linear.from_nodes(Node.filled((1, 2), [1.0, 0.5]), Node.scalar(0.1), "L"),
        FunctionLayer(tanh, "Tanh"),
    ]
    text = ParameterBundle.capture(layers).to_text()
    assert text == "Layer 0: L\nParameter: 0\n1.0\n0.5\nParameter: 1\n0.1\nLayer 1: Tanh\n"


def test_file_round_trip_is_bit_exact(tmp_path):
    rng = np.random.default_rng(0)
    w = list(rng.normal(size=6))
    w[0] = 1 / 3
    w[1] = 1e-300
    w[2] = -0.0
    layers = make_layers(w, [0.1, 2.5e10, -7.123456789012345])
    bundle = ParameterBundle.capture(layers)
    path = bundle.export_parameters(str(tmp_path / "params.txt"))
    assert path == str(tmp_path / "params.txt")
    loaded = ParameterBundle.import_parameters(path)
    assert loaded == bundle

    dst = make_layers([0.] * 6, [0.] * 3)
    loaded.apply(dst)
    np.testing.assert_array_equal(dst[0].weight.values, layers[0].weight.values)
    assert np.signbit(dst[0].weight.value_at(2))


def test_export_never_overwrites(tmp_path):
    bundle = ParameterBundle.capture(make_layers([1.] * 6, [2.] * 3))
    target = str(tmp_path / "out.param")
    first = bundle.export_parameters(target)
    second = bundle.export_parameters(target)
    third = bundle.export_parameters(target)
    assert (first, second, third) == (target, target + ".0", target + ".1")
    for p in (first, second, third):
        assert ParameterBundle.import_parameters(p) == bundle


def test_export_into_missing_directory(tmp_path):
    bundle = ParameterBundle.capture(make_layers([1.] * 6, [2.] * 3))
    with pytest.raises(BundleIOError) as excinfo:
        bundle.export_parameters(str(tmp_path / "no" / "such" / "dir.param"))
    assert not is_recoverable(excinfo.value)


def test_name_mismatch_only_warns():
    bundle = ParameterBundle.capture(make_layers([1.] * 6, [2.] * 3))
    dst = [
        Linear.from_nodes(Node.zeros((3, 2)), Node.zeros((3, 1)), "Other name"),
        FunctionLayer(tanh, "Tanh"),
    ]
    with pytest.warns(LayerNameWarning):
        bundle.apply(dst)
    assert dst[0].weight.copy_values().tolist() == [1.] * 6


def test_apply_mismatches():
    bundle = ParameterBundle.capture(make_layers([1.] * 6, [2.] * 3))
    with pytest.raises(InvalidConfiguration):
        bundle.apply(make_layers([1.] * 6, [2.] * 3)[:1])
    with pytest.raises(InvalidConfiguration):
        bundle.apply([Linear.from_nodes(Node.zeros((3, 2)), None, "Layer A"), FunctionLayer(tanh, "Tanh")])
    with pytest.raises(ShapeMismatch):
        bundle.apply([Linear.from_nodes(Node.zeros((2, 2)), Node.zeros((2, 1)), "Layer A"),
                      FunctionLayer(tanh, "Tanh")])


def write(tmp_path, text, name="p.param"):
    path = tmp_path / name
    with open(path, "w", encoding="utf-8", newline="") as fh:
        fh.write(text)
    return str(path)


def test_import_missing_file(tmp_path):
    with pytest.raises(BundleNotFoundError) as excinfo:
        ParameterBundle.import_parameters(str(tmp_path / "absent.param"))
    assert is_recoverable(excinfo.value)
    assert isinstance(excinfo.value, OSError)


@pytest.mark.parametrize("text", [
    "",
    "Layer 0: A\nParameter: 0\n1.0",
    "Layer 0: A\nParameter: 0\n",
    "Layer 0: A\nParameter: 0\nParameter: 1\n1.0\n",
])
def test_import_truncated(tmp_path, text):
    with pytest.raises(BundleTruncatedError) as excinfo:
        ParameterBundle.import_parameters(write(tmp_path, text))
    assert is_recoverable(excinfo.value)


@pytest.mark.parametrize("text", [
    "Layer 0: A\nParameter: 0\nabc\n",
    "Layer 1: A\nParameter: 0\n1.0\n",
    "1.0\n",
    "Layer 0: A\n1.0\n",
    "Layerx: A\n",
    "Layer 0: A\nParameter: 1\n1.0\n",
    "Parameter: 0\n1.0\n",
])
def test_import_parse_errors(tmp_path, text):
    with pytest.raises(BundleParseError) as excinfo:
        ParameterBundle.import_parameters(write(tmp_path, text))
    assert not is_recoverable(excinfo.value)
    assert excinfo.value.path == os.path.join(str(tmp_path), "p.param")


def test_parse_error_reports_line(tmp_path):
    with pytest.raises(BundleParseError) as excinfo:
        ParameterBundle.import_parameters(write(tmp_path, "Layer 0: A\nParameter: 0\n1.0\nnope\n"))
    assert excinfo.value.line_no == 4


def test_layers_without_parameters_round_trip():
    bundle = ParameterBundle.from_text("Layer 0: Tanh\nLayer 1: SoftMax\n")
    assert bundle.data == [("Tanh", []), ("SoftMax", [])]
    assert len(bundle) == 2


def make_network(rng, hidden=4):
    from neuronfun.nnetwork.mlp.multilayer import MultiLayer
    from neuronfun.nnetwork.ops import softmax
    return MultiLayer([
        Linear(hidden, 2, name="In", rng=rng),
        FunctionLayer(tanh, "Tanh"),
        Linear(3, hidden, name="Out", rng=rng),
        FunctionLayer(softmax, "SoftMax"),
    ])


@pytest.mark.parametrize("n_lines", [1, 5, 10, 11, 15, 16, 17, 25, 34])
def test_file_cut_at_a_line_boundary_is_truncated(tmp_path, n_lines):
    src = make_network(np.random.default_rng(0))
    path = src.export_parameters(str(tmp_path / "full.param"))
    with open(path, encoding="utf-8") as fh:
        lines = fh.readlines()
    assert len(lines) == 35
    cut = write(tmp_path, "".join(lines[:n_lines]), "cut.param")

    dst = make_network(np.random.default_rng(1))
    before = dst.get_parameter_bundle()
    with pytest.raises(BundleTruncatedError) as excinfo:
        dst.import_parameters(cut)
    assert is_recoverable(excinfo.value)
    assert dst.get_parameter_bundle() == before


def test_larger_network_is_a_mismatch_not_a_truncation(tmp_path):
    path = make_network(np.random.default_rng(0)).export_parameters(str(tmp_path / "p.param"))
    with pytest.raises(ShapeMismatch):
        make_network(np.random.default_rng(1), hidden=5).import_parameters(path)


def test_layer_names_with_line_breaks_are_rejected():
    layers = [Linear.from_nodes(Node.zeros((1, 1)), None, "two\nlines")]
    with pytest.raises(InvalidConfiguration):
        ParameterBundle.capture(layers)
    with pytest.raises(InvalidConfiguration):
        ParameterBundle([("a\nb", [[1.0]])])
