import numpy as np
import pytest

import engine.model
from engine.config import TrainingParameters
from engine.errors import ConfigurationError
from engine.model import NetworkTrainer
from engine.preprocessing import normalize
from layers.dense import Dense
from optimizers import StagedSGD


def separable_dataset():
    """Two all-zero rows labelled 0 and two all-one rows labelled 1"""
    features = np.array([[0.0] * 9, [0.0] * 9, [1.0] * 9, [1.0] * 9])
    labels = np.array([0.0, 0.0, 1.0, 1.0])
    return features, labels


@pytest.mark.parametrize("hidden_layers,neurons", [(1, 4), (2, 32), (4, 7)])
def test_layer_shapes(hidden_layers, neurons):
    params = TrainingParameters(epochs=10, hidden_layers=hidden_layers,
                                neurons_per_layer=neurons, learning_rate=0.1)
    trainer = NetworkTrainer(9, params)

    assert len(trainer.layers) == hidden_layers + 1
    expected = [(9, neurons)] + [(neurons, neurons)] * (hidden_layers - 1) + [(neurons, 1)]
    assert [layer.weights.shape for layer in trainer.layers] == expected
    assert [layer.biases.shape for layer in trainer.layers] == \
        [(1, neurons)] * hidden_layers + [(1, 1)]
    assert all(np.all(layer.biases == 0) for layer in trainer.layers)


@pytest.mark.parametrize("hidden_layers,neurons", [(0, 4), (2, 0)])
def test_bad_architecture_rejected_before_allocation(monkeypatch, hidden_layers, neurons):
    created = []
    monkeypatch.setattr(engine.model, 'Dense', lambda *a, **kw: created.append(a))
    params = TrainingParameters(epochs=10, hidden_layers=hidden_layers,
                                neurons_per_layer=neurons, learning_rate=0.1)

    with pytest.raises(ConfigurationError):
        NetworkTrainer(9, params)
    assert created == []


@pytest.mark.parametrize("epochs,learning_rate", [
    (0, 0.1), (10, 0.0), (10, -1.0), (2.5, 0.1), (True, 0.1),
    (10, float("nan")), (10, float("inf")), (10, "0.5"),
])
def test_bad_schedule_rejected(epochs, learning_rate):
    params = TrainingParameters(epochs=epochs, hidden_layers=1,
                                neurons_per_layer=4, learning_rate=learning_rate)
    with pytest.raises(ConfigurationError):
        NetworkTrainer(9, params)


def test_forward_output_is_probability_column():
    np.random.seed(3)
    trainer = NetworkTrainer(9, TrainingParameters(epochs=5, hidden_layers=2,
                                                   neurons_per_layer=8, learning_rate=0.1))
    output = trainer.forward(np.random.randn(30, 9) * 10)

    assert output.shape == (30, 1)
    assert np.all((output > 0) & (output < 1))


def test_backward_matches_numerical_gradient():
    np.random.seed(4)
    X = np.random.randn(6, 3)
    y = np.array([[0.0], [1.0], [1.0], [0.0], [1.0], [0.0]])
    trainer = NetworkTrainer(3, TrainingParameters(epochs=1, hidden_layers=2,
                                                   neurons_per_layer=5, learning_rate=0.1))

    def loss():
        p = np.clip(trainer.forward(X), 1e-12, 1 - 1e-12)
        return -np.mean(y * np.log(p) + (1 - y) * np.log(1 - p))

    dW, db = trainer.backward(X, y, trainer.forward(X))

    eps = 1e-6
    for l, layer in enumerate(trainer.layers):
        for params, grads in ((layer.weights, dW[l]), (layer.biases, db[l])):
            assert grads.shape == params.shape
            i, j = 0, params.shape[1] - 1
            original = params[i, j]
            params[i, j] = original + eps
            plus = loss()
            params[i, j] = original - eps
            minus = loss()
            params[i, j] = original
            assert grads[i, j] == pytest.approx((plus - minus) / (2 * eps), abs=1e-5)


def test_staged_learning_rate():
    optimizer = StagedSGD(learning_rate=0.2, total_epochs=100)
    rates = [optimizer.rate_for_epoch(e) for e in range(100)]

    assert set(rates) <= {0.2, 0.2 * 0.5, 0.2 * 0.1}
    assert all(a >= b for a, b in zip(rates, rates[1:]))
    assert rates[9] == 0.2
    assert rates[10] == 0.2 * 0.5
    assert rates[49] == 0.2 * 0.5
    assert rates[50] == 0.2 * 0.1
    assert rates[99] == 0.2 * 0.1


def test_training_records_rate_per_epoch():
    np.random.seed(5)
    X = np.random.randn(20, 9)
    y = np.random.randint(0, 2, 20).astype(float)
    trainer = NetworkTrainer(9, TrainingParameters(epochs=20, hidden_layers=1,
                                                   neurons_per_layer=4, learning_rate=1.0))
    trainer.train(X, y, verbose=False)

    assert trainer.learning_rate_history == \
        [1.0] * 2 + [0.5] * 8 + [0.1] * 10


def test_accuracy_stays_in_unit_interval():
    np.random.seed(6)
    X = np.random.randn(64, 9)
    y = np.random.randint(0, 2, 64).astype(float)
    trainer = NetworkTrainer(9, TrainingParameters(epochs=30, hidden_layers=3,
                                                   neurons_per_layer=16, learning_rate=2.0))
    reported = []

    trainer.train(X, y, on_epoch=reported.append, verbose=False)

    assert len(reported) == 30
    assert all(0.0 <= a <= 1.0 for a in reported)
    assert reported == trainer.accuracy_history


def test_compute_accuracy_thresholds_at_half():
    trainer = NetworkTrainer(9, TrainingParameters(epochs=1, hidden_layers=1,
                                                   neurons_per_layer=2, learning_rate=0.1))
    y_true = np.array([1.0, 0.0, 1.0, 0.0])
    y_pred = np.array([[0.5], [0.49], [0.2], [0.9]])

    assert trainer.compute_accuracy(y_true, y_pred) == 0.5


def test_learns_separable_problem():
    np.random.seed(42)
    features, labels = separable_dataset()
    params = TrainingParameters(epochs=50, hidden_layers=1, neurons_per_layer=4, learning_rate=0.5)
    trainer = NetworkTrainer(9, params)
    reported = []

    final_accuracy = trainer.train(normalize(features), labels, on_epoch=reported.append, verbose=False)

    assert len(reported) == 50
    assert final_accuracy == 1.0
    assert reported[-1] == 1.0
    assert trainer.epoch_count == 50


def test_failed_progress_send_aborts_run():
    np.random.seed(7)
    features, labels = separable_dataset()
    trainer = NetworkTrainer(9, TrainingParameters(epochs=50, hidden_layers=1,
                                                   neurons_per_layer=4, learning_rate=0.5))
    sent = []

    def send(accuracy):
        if len(sent) == 3:
            raise RuntimeError("receiver gone")
        sent.append(accuracy)

    with pytest.raises(RuntimeError):
        trainer.train(normalize(features), labels, on_epoch=send, verbose=False)
    assert trainer.epoch_count == 4


def test_predict_returns_flat_probabilities():
    np.random.seed(8)
    trainer = NetworkTrainer(9, TrainingParameters(epochs=1, hidden_layers=2,
                                                   neurons_per_layer=4, learning_rate=0.1))
    X = np.random.randn(5, 9)

    probabilities = trainer.predict(X)

    assert probabilities.shape == (5,)
    np.testing.assert_allclose(probabilities, trainer.forward(X).ravel())
    assert trainer.predict(X[0]).shape == (1,)


@pytest.mark.parametrize("hidden_layers,neurons", [(1.5, 4), (1, 4.0), (False, 4), ("2", 4)])
def test_non_integer_architecture_rejected(hidden_layers, neurons):
    params = TrainingParameters(epochs=10, hidden_layers=hidden_layers,
                                neurons_per_layer=neurons, learning_rate=0.1)
    with pytest.raises(ConfigurationError):
        NetworkTrainer(9, params)


def test_numpy_integers_accepted():
    params = TrainingParameters(epochs=np.int64(3), hidden_layers=np.int32(1),
                                neurons_per_layer=np.int64(2), learning_rate=np.float64(0.1))
    trainer = NetworkTrainer(9, params)
    assert len(trainer.layers) == 2


def test_dense_layer_forward_and_shape():
    np.random.seed(9)
    layer = Dense(3, 2)
    X = np.ones((4, 3))

    assert layer.shape == (3, 2)
    np.testing.assert_allclose(layer.forward(X), X @ layer.weights + layer.biases)
    assert not hasattr(layer, 'get_parameters')
