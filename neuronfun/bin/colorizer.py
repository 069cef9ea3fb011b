# bin/colorizer.py
"""
Train a colorize model on points of the unit square and plot its predictions.

    neuronfun-colorizer --mode palette --cycles 1000
    neuronfun-colorizer --mode rgb --learning-rate 0.1 --learning-rate-end 0.01
"""

import argparse
import logging
import sys

from ..colorize import ColorPredictor, ColorSelector, QUADRANTS, RGB_VENN_DIAGRAM
from ..config import ColorizerConfig
from ..nnetwork.core.errors import BundleIOError, NeuronError, is_recoverable
from ..nnetwork.core.rng import seed
from .. import plotting

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parse command line arguments."""
    d = ColorizerConfig()
    parser = argparse.ArgumentParser(
        description='Learn a coloring of the plane with a small neural network',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('--mode', choices=['palette', 'rgb'], default=d.mode,
                        help="'palette': softmax over four colors; 'rgb': sigmoid per channel")
    parser.add_argument('--hidden-layers', type=int, default=d.n_hidden_layers,
                        help='Number of hidden layers')
    parser.add_argument('--layer-size', type=int, default=d.layer_size,
                        help='Width of the hidden layers')
    parser.add_argument('--regularization', type=float, default=d.regularization,
                        help='L2 coefficient (omit to disable)')
    parser.add_argument('--cycles', type=int, default=d.cycles,
                        help='Training cycles')
    parser.add_argument('--batch-size', type=int, default=d.batch_size,
                        help='Sampled points per cycle')
    parser.add_argument('--learning-rate', type=float, default=d.learning_rate,
                        help='Learning rate (start of the schedule in rgb mode)')
    parser.add_argument('--learning-rate-end', type=float, default=d.learning_rate_end,
                        help='End of the log-spaced schedule (rgb mode)')
    parser.add_argument('--seed', type=int, default=d.seed,
                        help='Random seed')
    parser.add_argument('--import-parameters', dest='parameter_file', default=d.parameter_file,
                        help='Parameter file to start from')
    parser.add_argument('--export-parameters', dest='export_file', default=d.export_file,
                        help='Write the trained parameters here')
    parser.add_argument('--plot', dest='plot_path', default=d.plot_path,
                        help='Prediction figure')
    parser.add_argument('--history-plot', dest='history_plot_path', default=d.history_plot_path,
                        help='Loss history figure')
    parser.add_argument('--resolution', type=int, default=d.resolution,
                        help='Grid points per axis in the prediction figure')
    parser.add_argument('--quiet', action='store_true',
                        help='Do not print per cycle progress')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')
    return parser.parse_args(argv)


def config_from_args(args) -> ColorizerConfig:
    return ColorizerConfig(
        mode=args.mode,
        n_hidden_layers=args.hidden_layers,
        layer_size=args.layer_size,
        regularization=args.regularization,
        cycles=args.cycles,
        batch_size=args.batch_size,
        learning_rate=args.learning_rate,
        learning_rate_end=args.learning_rate_end,
        seed=args.seed,
        parameter_file=args.parameter_file,
        export_file=args.export_file,
        plot_path=args.plot_path,
        history_plot_path=args.history_plot_path,
        resolution=args.resolution,
        verbose=not args.quiet,
    ).validate()


def import_or_keep_random(model, path):
    """Load parameters from `path`; keep the random ones when the file is missing or truncated."""
    try:
        model.import_parameters(path)
        logger.info("Successful parameter import from %s", path)
    except BundleIOError as err:
        if not is_recoverable(err):
            raise
        logger.warning("Parameter import failed (%s), using randomly initialized parameters instead", err)


def run(config: ColorizerConfig):
    if config.seed is not None:
        seed(config.seed)

    if config.mode == 'palette':
        model = ColorPredictor(QUADRANTS, config.n_hidden_layers, config.layer_size,
                               config.regularization)
    else:
        model = ColorSelector(RGB_VENN_DIAGRAM, config.n_hidden_layers, config.layer_size,
                              config.regularization)

    if config.parameter_file:
        import_or_keep_random(model, config.parameter_file)

    if config.mode == 'palette':
        losses = model.train(config.cycles, config.batch_size, config.learning_rate,
                             config.x_range, config.y_range, config.verbose)
        history = [(config.learning_rate, loss) for loss in losses]
    else:
        history = model.train(config.cycles, config.batch_size,
                              (config.learning_rate, config.learning_rate_end),
                              config.x_range, config.y_range, config.verbose)
    print(f"Trained network with {model.network.parameter_count()} parameters for "
          f"{config.cycles} cycles achieving a loss of: {history[-1][1]:.3e}")

    if config.export_file:
        filename = model.export_parameters(config.export_file)
        print(f"Exported parameters to: {filename}")

    if config.plot_path:
        if config.mode == 'palette':
            plotting.plot_palette_predictions(model, config.x_range, config.y_range,
                                              config.resolution, config.plot_path)
        else:
            plotting.plot_rgb_predictions(model, config.x_range, config.y_range,
                                          config.resolution, config.plot_path)
    if config.history_plot_path:
        plotting.plot_training_history(history, config.history_plot_path)
    return model, history


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    try:
        run(config_from_args(args))
    except NeuronError as err:
        logger.error("%s", err)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
