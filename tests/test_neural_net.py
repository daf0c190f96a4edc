import numpy as np
import pytest

from evosim.neural_net import NeuralNet, relu


def _tiny_net():
    return NeuralNet([np.array([[1.0, -1.0]])], [np.array([0.5])])


def test_random_topology():
    rng = np.random.default_rng(1)
    net = NeuralNet.random([8, 10, 10, 9], -50.0, 50.0, rng)

    assert net.layer_sizes == [8, 10, 10, 9]
    assert net.num_inputs == 8
    assert net.num_outputs == 9
    assert net.num_parameters == 8 * 10 + 10 + 10 * 10 + 10 + 10 * 9 + 9
    for w, b in zip(net.weights, net.biases):
        assert w.min() >= -50.0 and w.max() <= 50.0
        assert b.min() >= -50.0 and b.max() <= 50.0


def test_evaluate_applies_relu():
    net = _tiny_net()
    net.set_input(0, 2.0)
    net.set_input(1, 1.0)
    assert net.evaluate()[0] == pytest.approx(1.5)

    net.set_input(0, 0.0)
    net.set_input(1, 3.0)
    assert net.evaluate()[0] == 0.0


def test_relu():
    assert list(relu(np.array([-1.0, 0.0, 2.5]))) == [0.0, 0.0, 2.5]


def test_argmax_ties_go_to_lowest_index():
    net = NeuralNet([np.zeros((4, 2))], [np.array([0.0, 3.0, 3.0, 1.0])])
    net.evaluate()
    assert net.argmax_output() == 1

    flat = NeuralNet([np.zeros((3, 2))], [np.zeros(3)])
    flat.evaluate()
    assert flat.argmax_output() == 0


def test_set_input_out_of_range():
    net = _tiny_net()
    with pytest.raises(IndexError):
        net.set_input(2, 1.0)


def test_mismatched_layers_rejected():
    with pytest.raises(ValueError):
        NeuralNet([np.zeros((3, 2)), np.zeros((2, 4))], [np.zeros(3), np.zeros(2)])
    with pytest.raises(ValueError):
        NeuralNet([np.zeros((3, 2))], [np.zeros(2)])


def test_mutate_counts_replacements():
    rng = np.random.default_rng(5)
    net = NeuralNet.random([3, 4, 2], -1.0, 1.0, rng)
    before = [w.copy() for w in net.weights]

    assert net.mutate(0.0, -1.0, 1.0, rng) == 0
    assert all(np.array_equal(a, b) for a, b in zip(before, net.weights))

    assert net.mutate(1.0, -1.0, 1.0, rng) == net.num_parameters


def test_copy_is_independent():
    net = _tiny_net()
    clone = net.copy()
    clone.weights[0][0, 0] = 99.0
    assert net.weights[0][0, 0] == 1.0


def test_dict_restores_weights_and_activations():
    net = NeuralNet.random([3, 4, 2], -1.0, 1.0, np.random.default_rng(2))
    net.set_input(1, 0.25)
    net.evaluate()

    restored = NeuralNet.from_dict(net.to_dict())

    for a, b in zip(net.weights + net.biases + net.activations,
                    restored.weights + restored.biases + restored.activations):
        assert np.array_equal(a, b)
