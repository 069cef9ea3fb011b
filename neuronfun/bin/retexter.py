# bin/retexter.py
"""
Train the character level text generator on a file of lines (one name per
line, for instance) and print a few generated continuations.
"""

import argparse
import logging
import sys

from ..config import RetexterConfig
from ..nnetwork.core.errors import BundleIOError, NeuronError, is_recoverable
from ..nnetwork.core.rng import seed
from ..retext import CharSet, ReText
from .. import plotting

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parse command line arguments."""
    d = RetexterConfig()
    parser = argparse.ArgumentParser(
        description='Character level text generation with a small neural network',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('data_path', nargs='?', default=d.data_path,
                        help='Text file, one sample per line')
    parser.add_argument('--training-ratio', type=float, default=d.training_ratio,
                        help='Share of the lines used for training')
    parser.add_argument('--keep-case', action='store_true',
                        help='Do not lowercase the text')
    parser.add_argument('--block-size', type=int, default=d.block_size,
                        help='Characters of context per prediction')
    parser.add_argument('--embed-dim', type=int, default=d.embed_dim,
                        help='Embedding dimension (0 disables the embedding)')
    parser.add_argument('--hidden-layers', type=int, default=d.n_hidden_layers,
                        help='Number of hidden layers')
    parser.add_argument('--layer-size', type=int, default=d.layer_size,
                        help='Width of the hidden layers')
    parser.add_argument('--regularization', type=float, default=d.regularization,
                        help='L2 coefficient (omit to disable)')
    parser.add_argument('--cycles', type=int, default=d.cycles,
                        help='Training cycles')
    parser.add_argument('--learning-rate', type=float, default=d.learning_rate,
                        help='Learning rate')
    parser.add_argument('--batch-size', type=int, default=d.batch_size,
                        help='Training pairs per cycle')
    parser.add_argument('--seed', type=int, default=d.seed,
                        help='Random seed')
    parser.add_argument('--prediction-seed', default=d.prediction_seed,
                        help='Text to continue')
    parser.add_argument('--prediction-length', type=int, default=d.prediction_length,
                        help='Maximum number of generated characters')
    parser.add_argument('--predictions', dest='n_predictions', type=int, default=d.n_predictions,
                        help='Number of generated samples')
    parser.add_argument('--import-parameters', dest='parameter_file', default=d.parameter_file,
                        help='Parameter file to start from')
    parser.add_argument('--export-parameters', dest='export_file', default=d.export_file,
                        help='Write the trained parameters here')
    parser.add_argument('--loss-plot', dest='loss_plot_path', default=d.loss_plot_path,
                        help='Loss history figure')
    parser.add_argument('--quiet', action='store_true',
                        help='Do not print per cycle progress')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level')
    return parser.parse_args(argv)


def config_from_args(args) -> RetexterConfig:
    return RetexterConfig(
        data_path=args.data_path,
        training_ratio=args.training_ratio,
        lowercase=not args.keep_case,
        block_size=args.block_size,
        embed_dim=args.embed_dim or None,
        n_hidden_layers=args.hidden_layers,
        layer_size=args.layer_size,
        regularization=args.regularization,
        cycles=args.cycles,
        learning_rate=args.learning_rate,
        batch_size=args.batch_size,
        seed=args.seed,
        prediction_seed=args.prediction_seed,
        prediction_length=args.prediction_length,
        n_predictions=args.n_predictions,
        parameter_file=args.parameter_file,
        export_file=args.export_file,
        loss_plot_path=args.loss_plot_path,
        verbose=not args.quiet,
    ).validate()


def run(config: RetexterConfig):
    if config.seed is not None:
        seed(config.seed)

    data = CharSet.from_file(config.data_path, config.training_ratio, config.lowercase)
    retext = ReText(data, config.block_size, config.embed_dim, config.n_hidden_layers,
                    config.layer_size, config.regularization)
    text_no_training = retext.predict(config.prediction_seed, config.prediction_length)

    if config.parameter_file:
        try:
            retext.import_parameters(config.parameter_file)
        except BundleIOError as err:
            if not is_recoverable(err):
                raise
            logger.warning("Parameter import failed (%s), using randomly initialized parameters instead", err)

    losses = retext.train(config.cycles, config.learning_rate, config.batch_size, config.verbose)

    if config.export_file:
        filename = retext.export_parameters(config.export_file)
        print(f"Exported parameters to: {filename}")
    if config.loss_plot_path:
        plotting.plot_losses(losses, config.loss_plot_path)

    print(f"No training: {text_no_training}")
    print("With training:")
    samples = [retext.predict(config.prediction_seed, config.prediction_length)
               for _ in range(config.n_predictions)]
    for s in samples:
        print(s)
    return retext, losses, samples


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    try:
        run(config_from_args(args))
    except (NeuronError, OSError) as err:
        logger.error("%s", err)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
