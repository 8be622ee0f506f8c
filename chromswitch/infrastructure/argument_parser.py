"""
Command line argument parsing and validation for the chromatin switch pipeline.
"""

import argparse
import os
from typing import List, Optional, Sequence, Tuple, Union

from chromswitch.domain.errors import ConfigError
from chromswitch.domain.models import STRATEGIES, SwitchConfig
from chromswitch.infrastructure.logger import Logger


class ArgumentParser:
    """Command line argument parsing and validation"""

    def __init__(self):
        self.logger = Logger()
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create and configure the argument parser"""
        parser = argparse.ArgumentParser(
            description="Detect chromatin state switches between two conditions"
        )

        # Required arguments
        parser.add_argument(
            "-r", "--regions",
            type=str,
            required=True,
            help="BED file of query regions; extra columns are copied to the output",
        )
        parser.add_argument(
            "-m", "--metadata",
            type=str,
            required=True,
            help="Tab-separated sample metadata with 'Sample', 'Condition' and 'Path' columns",
        )
        parser.add_argument(
            "-o", "--output",
            type=str,
            required=True,
            help="Output file for the per-region results",
        )

        # Preprocessing
        parser.add_argument(
            "--filter",
            action="store_true",
            help="Filter peaks on attribute thresholds before anything else",
        )
        parser.add_argument(
            "--filter_attributes",
            type=str,
            default="",
            help="Comma-separated peak attributes to filter on (e.g. 'qValue,signalValue')",
        )
        parser.add_argument(
            "--filter_thresholds",
            type=str,
            default="",
            help="Comma-separated minimum values, one per filter attribute",
        )
        parser.add_argument(
            "--no_normalize",
            action="store_true",
            help="Skip genome-wide normalization of peak attributes",
        )
        parser.add_argument(
            "--normalize_attributes",
            type=str,
            default="",
            help="Comma-separated peak attributes to normalize per sample",
        )
        parser.add_argument(
            "--tail_fraction",
            type=float,
            default=0.01,
            help="Fraction of extreme values bounded when normalizing (default: 0.01)",
        )

        # Feature matrix
        parser.add_argument(
            "-s", "--strategy",
            type=str,
            choices=STRATEGIES,
            default="summary",
            help="Feature matrix strategy (default: summary)",
        )
        parser.add_argument(
            "--stat_attributes",
            type=str,
            default="",
            help="Comma-separated peak attributes summarized by mean, median and max",
        )
        parser.add_argument(
            "--use_fraction",
            action="store_true",
            help="Add the fraction of the region covered by peaks as a feature",
        )
        parser.add_argument(
            "--use_count",
            action="store_true",
            help="Add the number of peaks in the region as a feature",
        )
        parser.add_argument(
            "--no_reduce",
            action="store_true",
            help="Binary strategy: do not merge nearby peaks within a sample",
        )
        parser.add_argument(
            "--gap",
            type=int,
            default=300,
            help="Binary strategy: merge peaks closer than this many bp (default: 300)",
        )
        parser.add_argument(
            "-p", "--p",
            type=float,
            default=0.4,
            help="Binary strategy: reciprocal overlap for two peaks to be the same (default: 0.4)",
        )
        parser.add_argument(
            "--include_feature_count",
            action="store_true",
            help="Binary strategy: add the number of unique peaks as a feature",
        )

        # Clustering and output
        parser.add_argument(
            "--fixed_k",
            action="store_true",
            help="Always cut the dendrogram into 2 clusters instead of choosing k by silhouette",
        )
        parser.add_argument(
            "--distance_metric",
            type=str,
            default="euclidean",
            help="Distance metric between samples (default: euclidean)",
        )
        parser.add_argument(
            "--linkage_method",
            type=str,
            default="complete",
            help="Hierarchical clustering linkage (default: complete)",
        )
        parser.add_argument(
            "--report_metrics",
            action="store_true",
            help="Report every validation metric, not only the consensus score",
        )
        parser.add_argument(
            "-j", "--n_jobs",
            type=int,
            default=1,
            help="Number of parallel workers over regions (default: 1)",
        )
        parser.add_argument(
            "--log_file",
            type=str,
            required=False,
            help="Also write the log to this file",
        )

        return parser

    def parse_arguments(
        self, argv: Optional[Sequence[str]] = None
    ) -> Tuple[SwitchConfig, argparse.Namespace]:
        """Parse command line arguments and return the SwitchConfig and file paths"""
        args = self.parser.parse_args(argv)

        config = SwitchConfig(
            filter=args.filter,
            filter_attributes=self._parse_list(args.filter_attributes),
            filter_thresholds=[
                self._parse_number(value)
                for value in self._parse_list(args.filter_thresholds)
            ],
            normalize=not args.no_normalize,
            normalize_attributes=self._parse_list(args.normalize_attributes),
            tail_fraction=args.tail_fraction,
            strategy=args.strategy,
            stat_attributes=self._parse_list(args.stat_attributes),
            use_fraction=args.use_fraction,
            use_count=args.use_count,
            reduce=not args.no_reduce,
            gap=args.gap,
            p=args.p,
            include_feature_count=args.include_feature_count,
            optimal_clusters=not args.fixed_k,
            distance_metric=args.distance_metric,
            linkage_method=args.linkage_method,
            report_metrics=args.report_metrics,
            n_jobs=args.n_jobs,
        )

        # Validate configuration
        if not self.validate_config(config, args):
            raise ConfigError("Invalid configuration")

        return config, args

    @staticmethod
    def _parse_list(values_input: Union[str, List[str], None]) -> List[str]:
        """Parse comma-separated values from string or list input"""
        if not values_input:
            return []

        if isinstance(values_input, str):
            # Strip quotes and split by comma
            values_input = values_input.strip('"').strip("'")
            values = [v.strip().strip('"').strip("'") for v in values_input.split(",")]
        else:
            values = [v.strip().strip('"').strip("'") for v in values_input]

        return [v for v in values if v]

    @staticmethod
    def _parse_number(value: str) -> float:
        try:
            return float(value)
        except ValueError:
            raise ConfigError(f"Threshold '{value}' is not a number")

    def validate_config(self, config: SwitchConfig, args: argparse.Namespace) -> bool:
        """Validate the configuration and input files"""
        for label, path in (("Regions", args.regions), ("Metadata", args.metadata)):
            if not os.path.exists(path):
                self.logger.log_error(
                    FileNotFoundError(f"{label} file not found: {path}"),
                    "Configuration validation",
                )
                return False

        try:
            config.validate()
        except ConfigError as e:
            self.logger.log_error(e, "Configuration validation")
            return False

        if config.normalize and not config.normalize_attributes:
            self.logger.log_warning(
                "Normalization enabled but no attributes given, peaks will not be normalized"
            )

        self.logger.log_success("Configuration validation passed")
        return True
