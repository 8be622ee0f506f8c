"""
Chromatin Switch Pipeline - Main Entry Point

This module serves as the command line entry point with zero business logic.
All processing is delegated to specialized services.
"""

import sys
from typing import Optional, Sequence

from chromswitch.application.switch_detection_service import SwitchDetectionService
from chromswitch.infrastructure.argument_parser import ArgumentParser
from chromswitch.infrastructure.data.data_loader import PeakDataLoader
from chromswitch.infrastructure.data.data_saver import ResultSaver
from chromswitch.infrastructure.logger import Logger


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point - no business logic"""
    logger = Logger()

    try:
        logger.log_step("Starting", "Chromatin switch detection")

        # Parse and validate arguments
        logger.log_step("Parsing", "Command line arguments")
        config, args = ArgumentParser().parse_arguments(argv)
        if args.log_file:
            logger = Logger(log_file=args.log_file)

        # Load inputs
        logger.log_step("Loading", "Regions, metadata and peaks")
        regions, sample_set, metadata = PeakDataLoader().load_all(
            args.metadata, args.regions
        )

        # Initialize and run processing service
        logger.log_step("Processing", "Query regions")
        results = SwitchDetectionService(config).process(regions, sample_set, metadata)

        ResultSaver().save_results(results, args.output, config.report_metrics)

        logger.log_success("Processing completed successfully")
        return 0

    except KeyboardInterrupt:
        logger.log_warning("Processing interrupted by user")
        return 130

    except Exception as e:
        logger.log_error(e, "Main execution")
        return 1


if __name__ == "__main__":
    sys.exit(main())
