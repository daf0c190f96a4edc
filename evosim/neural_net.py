"""
Dense Feed-Forward Network

A small, generic neural network used as the decision core of a creature:
- Layers of weight matrices and bias vectors
- ReLU activation on every layer
- Uniform random initialization from a fixed range
- Per-scalar overwrite mutation (no gradients, no crossover)

The network has no knowledge of creatures; the Brain wrapper maps its input
and output slots to sensors and actions.
"""

from typing import List, Optional, Sequence

import numpy as np


def relu(x: np.ndarray) -> np.ndarray:
    return np.maximum(x, 0.0)


class NeuralNet:
    """
    Feed-forward network with `len(layer_sizes) - 1` weight layers.

    weights[l] has shape (layer_sizes[l+1], layer_sizes[l]) and maps the
    activations of layer l onto layer l+1. biases[l] belongs to layer l+1.
    """

    def __init__(self,
                 weights: Sequence[np.ndarray],
                 biases: Sequence[np.ndarray]):
        if len(weights) != len(biases) or not weights:
            raise ValueError("Network needs one bias vector per weight matrix")

        self.weights: List[np.ndarray] = [np.array(w, dtype=np.float64) for w in weights]
        self.biases: List[np.ndarray] = [np.array(b, dtype=np.float64) for b in biases]

        for l, (w, b) in enumerate(zip(self.weights, self.biases)):
            if w.ndim != 2 or b.ndim != 1 or w.shape[0] != b.shape[0]:
                raise ValueError(f"Layer {l}: weight {w.shape} and bias {b.shape} do not match")
            if l > 0 and w.shape[1] != self.weights[l - 1].shape[0]:
                raise ValueError(
                    f"Layer {l}: expects {w.shape[1]} inputs but previous layer has "
                    f"{self.weights[l - 1].shape[0]} neurons"
                )

        # Last computed activations of every layer (index 0 = inputs)
        self.activations: List[np.ndarray] = [np.zeros(self.weights[0].shape[1])]
        self.activations += [np.zeros(b.shape[0]) for b in self.biases]

    @classmethod
    def random(cls,
               layer_sizes: Sequence[int],
               low: float,
               high: float,
               rng: np.random.Generator) -> 'NeuralNet':
        """Create a network with every weight and bias drawn from U[low, high]."""
        if len(layer_sizes) < 2 or any(n < 1 for n in layer_sizes):
            raise ValueError(f"Invalid layer sizes: {list(layer_sizes)}")

        weights, biases = [], []
        for n_in, n_out in zip(layer_sizes[:-1], layer_sizes[1:]):
            weights.append(rng.uniform(low, high, size=(n_out, n_in)))
            biases.append(rng.uniform(low, high, size=n_out))
        return cls(weights, biases)

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------

    @property
    def layer_sizes(self) -> List[int]:
        return [self.weights[0].shape[1]] + [b.shape[0] for b in self.biases]

    @property
    def num_inputs(self) -> int:
        return self.weights[0].shape[1]

    @property
    def num_outputs(self) -> int:
        return self.biases[-1].shape[0]

    @property
    def num_parameters(self) -> int:
        return sum(w.size + b.size for w, b in zip(self.weights, self.biases))

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def set_input(self, index: int, value: float):
        if not 0 <= index < self.num_inputs:
            raise IndexError(f"Input neuron {index} out of range (0..{self.num_inputs - 1})")
        self.activations[0][index] = value

    @property
    def inputs(self) -> np.ndarray:
        return self.activations[0]

    @property
    def outputs(self) -> np.ndarray:
        return self.activations[-1]

    def evaluate(self) -> np.ndarray:
        """Feed the current inputs forward and return the output activations."""
        a = self.activations[0]
        for l, (w, b) in enumerate(zip(self.weights, self.biases)):
            a = relu(w @ a + b)
            self.activations[l + 1] = a
        return a

    def argmax_output(self) -> int:
        """
        Index of the output neuron with the largest activation.

        Ties go to the lowest index (np.argmax returns the first maximum).
        """
        return int(np.argmax(self.activations[-1]))

    # ------------------------------------------------------------------
    # Inheritance
    # ------------------------------------------------------------------

    def copy(self) -> 'NeuralNet':
        net = NeuralNet([w.copy() for w in self.weights], [b.copy() for b in self.biases])
        net.activations = [a.copy() for a in self.activations]
        return net

    def mutate(self,
               mutation_prob: float,
               low: float,
               high: float,
               rng: np.random.Generator) -> int:
        """
        Overwrite scalars in place.

        Every weight and bias independently has `mutation_prob` chance of being
        replaced by a fresh sample from U[low, high]. Returns the number of
        scalars replaced.
        """
        replaced = 0
        for params in self.weights + self.biases:
            mask = rng.random(params.shape) < mutation_prob
            fresh = rng.uniform(low, high, size=params.shape)
            params[mask] = fresh[mask]
            replaced += int(mask.sum())
        return replaced

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            'weights': [w.tolist() for w in self.weights],
            'biases': [b.tolist() for b in self.biases],
            'activations': [a.tolist() for a in self.activations],
        }

    @classmethod
    def from_dict(cls, d: dict) -> 'NeuralNet':
        net = cls([np.array(w, dtype=np.float64) for w in d['weights']],
                  [np.array(b, dtype=np.float64) for b in d['biases']])
        activations: Optional[list] = d.get('activations')
        if activations is not None:
            restored = [np.array(a, dtype=np.float64) for a in activations]
            if [a.shape for a in restored] != [a.shape for a in net.activations]:
                raise ValueError("Stored activations do not match the network shape")
            net.activations = restored
        return net

    def __repr__(self) -> str:
        return f"NeuralNet(layers={self.layer_sizes}, parameters={self.num_parameters})"


__all__ = ['NeuralNet', 'relu']
