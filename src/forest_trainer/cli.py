"""
Command line entry point for forest training.

Usage:
    forest-trainer --data-path ./data/top10_combined_df.csv --output-path ./models/rf.pkl
    forest-trainer --config train.json --n-estimators 300
    python -m forest_trainer.cli --target ALM --start-feature Weight --end-feature Height
"""

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from .config import TrainingConfig, load_config, parse_max_features
from .errors import ConfigurationError
from .pipeline import run_pipeline

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Train a random forest regression model from a CSV file')
    parser.add_argument('--config', type=str, default=None,
                        help='JSON configuration file; flags override its values')
    parser.add_argument('--data-path', type=str, default=None,
                        help='Path to training data CSV')
    parser.add_argument('--output-path', type=str, default=None,
                        help='File to save the trained model to')
    parser.add_argument('--target', type=str, default=None,
                        help='Target column name')
    parser.add_argument('--start-feature', type=str, default=None,
                        help='First feature column (inclusive)')
    parser.add_argument('--end-feature', type=str, default=None,
                        help='Last feature column (inclusive)')
    parser.add_argument('--no-metadata', action='store_true',
                        help='Do not write the JSON metadata file')

    rf = parser.add_argument_group('random forest options')
    rf.add_argument('--seed', type=int, default=None)
    rf.add_argument('--max-features', type=parse_max_features, default=None,
                    help="Features per split: int, fraction, 'sqrt' or 'log2'")
    rf.add_argument('--replacement', dest='replacement', action='store_true', default=None,
                    help='Bootstrap-sample rows with replacement')
    rf.add_argument('--no-replacement', dest='replacement', action='store_false')
    rf.add_argument('--n-estimators', type=int, default=None)
    rf.add_argument('--max-depth', type=int, default=None)
    rf.add_argument('--min-num-samples', type=int, default=None,
                    help='Minimum samples per leaf')

    parser.add_argument('--log-level', type=str, default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    return parser


def build_config(args: argparse.Namespace) -> TrainingConfig:
    """Combine defaults, the optional config file and command line flags."""
    config = load_config(args.config) if args.config else TrainingConfig()

    hyperparameters = config.hyperparameters
    rf_overrides = {
        'seed': args.seed,
        'max_features': args.max_features,
        'replacement': args.replacement,
        'n_estimators': args.n_estimators,
        'max_depth': args.max_depth,
        'min_num_samples': args.min_num_samples,
    }
    rf_overrides = {k: v for k, v in rf_overrides.items() if v is not None}
    if rf_overrides:
        hyperparameters = replace(hyperparameters, **rf_overrides)

    return config.with_overrides(
        source=args.data_path,
        destination=args.output_path,
        target_column=args.target,
        start_feature_column=args.start_feature,
        end_feature_column=args.end_feature,
        write_metadata=False if args.no_metadata else None,
        hyperparameters=hyperparameters,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the training pipeline."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print(f"\nError: {e}", file=sys.stderr)
        return 1

    result = run_pipeline(config)

    if not result.ok:
        print(f"\nError: {result.describe()}", file=sys.stderr)
        return 1

    # Print summary
    print("\n" + "=" * 50)
    print("Training Complete")
    print("=" * 50)
    print(f"Model Version: {result.model.model_version}")
    print(f"Training Samples: {result.n_samples} ({result.dropped_rows} rows dropped)")
    print(f"Features ({len(result.feature_names)}): {', '.join(result.feature_names)}")
    print("\nMetrics (training set):")
    print(f"  R2 Score: {result.metrics['r2']:.4f}")
    print(f"  MAE: {result.metrics['mae']:.4f}")
    print("\nSaved Files:")
    print(f"  model: {result.model_path}")
    if result.metadata_path:
        print(f"  metadata: {result.metadata_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
