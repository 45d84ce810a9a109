import argparse
import signal
import sys
import threading
import time

from engine.channels import Channel, ParameterChannel, PredictionRequest, ProgressChannel
from engine.config import TrainingParameters, WorkerConfig
from engine.data_loader import N_FEATURES
from engine.errors import ChannelError, ConfigurationError, DataError
from engine.logger import log_training
from engine.monitor import ProgressMonitor
from engine.visualization import plot_accuracy_history
from engine.worker import TrainingWorker


def parse_args(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description='Train a neural network to predict water potability')

    # Data
    parser.add_argument('--data', type=str, default='data/water_potability.csv',
                       help='Path to the water potability CSV (default: data/water_potability.csv)')

    # Training parameters
    parser.add_argument('--epochs', type=int, default=2000, help='Number of training epochs (default: 2000)')
    parser.add_argument('--hidden-layers', type=int, default=2, help='Number of hidden layers (default: 2)')
    parser.add_argument('--neurons', type=int, default=32, help='Neurons per hidden layer (default: 32)')
    parser.add_argument('--learning-rate', type=float, default=0.5, help='Initial learning rate (default: 0.5)')
    parser.add_argument('--runs', type=int, default=1, help='Number of training runs to request (default: 1)')

    # Worker options
    parser.add_argument('--log-interval', type=int, default=100, help='Log progress every N epochs (default: 100)')
    parser.add_argument('--poll-timeout', type=float, default=0.1,
                       help='Seconds the idle worker waits for parameters per poll (default: 0.1)')
    parser.add_argument('--progress-capacity', type=int, default=10000,
                       help='Progress values buffered before the oldest is dropped (default: 10000)')
    parser.add_argument('--log-file', type=str, default=None, help='Append log lines to this file')

    # Output
    parser.add_argument('--plot', type=str, default=None, help='Save the accuracy chart of the last run here')
    parser.add_argument('--predict', type=str, default=None,
                       help=f'Comma-separated list of {N_FEATURES} water measurements to classify after training')

    args = parser.parse_args(argv)

    try:
        TrainingParameters.from_args(args).validate()
    except ConfigurationError as e:
        parser.error(str(e))
    if args.runs < 1:
        parser.error("Runs must be at least 1")
    if args.predict is not None:
        try:
            args.predict = tuple(float(v) for v in args.predict.split(','))
        except ValueError:
            parser.error("--predict expects numeric values")
        if len(args.predict) != N_FEATURES:
            parser.error(f"--predict expects {N_FEATURES} values, got {len(args.predict)}")

    return args


def wait_for_run(monitor: ProgressMonitor, stop_event: threading.Event,
                 report_every: float = 5.0) -> None:
    """Poll progress until the run finishes, reporting periodically"""
    last_report = time.time()
    while not stop_event.is_set():
        monitor.poll()
        if monitor.is_complete() or monitor.disconnected:
            break
        if time.time() - last_report >= report_every:
            print(monitor.status())
            last_report = time.time()
        time.sleep(0.05)


def main(argv=None) -> int:
    args = parse_args(argv)
    config = WorkerConfig.from_args(args)
    params = TrainingParameters.from_args(args)

    parameter_channel = ParameterChannel()
    progress_channel = ProgressChannel(capacity=config.progress_capacity)
    result_channel = Channel(name='prediction result channel')
    monitor = ProgressMonitor(progress_channel)
    worker = TrainingWorker(config, parameter_channel, progress_channel, result_channel)

    try:
        worker.start()
    except DataError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    stop_event = threading.Event()

    # Closing the parameter channel is the worker's shutdown signal
    def handle_signal(sig, frame):
        print("\nInterrupted. Stopping training worker...")
        stop_event.set()
        parameter_channel.close()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        for run in range(args.runs):
            if stop_event.is_set():
                break
            monitor.expect_run(params.epochs)
            parameter_channel.send(params)
            wait_for_run(monitor, stop_event)
            print(monitor.status())

        if args.plot and monitor.accuracies:
            plot_accuracy_history(monitor.accuracies, save_path=args.plot)
            log_training(f"Training plot saved to {args.plot}", config.log_file)

        if args.predict is not None and not stop_event.is_set():
            parameter_channel.send(PredictionRequest(features=args.predict))
            result = None
            deadline = time.time() + 10.0
            while result is None and time.time() < deadline:
                result = result_channel.receive(timeout=0.1)
            print(result.describe() if result is not None else "No prediction received")
    except ChannelError as e:
        print(f"Worker unavailable: {e}", file=sys.stderr)
    finally:
        parameter_channel.close()
        progress_channel.close()
        worker.join()

    return 0


if __name__ == "__main__":
    sys.exit(main())
