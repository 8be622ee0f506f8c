"""
Data saving functionality for the chromatin switch pipeline.
"""

import os
from typing import Sequence

import pandas as pd

from chromswitch.domain.models import RegionResult
from chromswitch.infrastructure.logger import Logger


class ResultSaver:
    """Responsible for saving the per-region result table"""

    def __init__(self):
        self.logger = Logger()

    def save_table(self, df: pd.DataFrame, file_path: str) -> None:
        """
        Save a table as tab-separated text, writing NaN as ``NA``.

        Args:
            df: Table to save
            file_path: Output file path
        """
        try:
            # Ensure directory exists
            directory = os.path.dirname(file_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            df.to_csv(file_path, sep="\t", index=False, na_rep="NA", float_format="%.8g")
            self.logger.log_save(file_path)

        except Exception as e:
            self.logger.log_error(e, f"Saving table to {file_path}")
            raise

    def save_results(
        self,
        results: Sequence[RegionResult],
        file_path: str,
        report_metrics: bool = False,
    ) -> pd.DataFrame:
        """
        Save one row per region, in the order the regions were given.

        Args:
            results: Region results
            file_path: Output file path
            report_metrics: Include the full metric breakdown

        Returns:
            pd.DataFrame: The saved table
        """
        df = pd.DataFrame([result.to_record(report_metrics) for result in results])
        self.save_table(df, file_path)
        self.logger.log_matrix_shape("Result table", df.shape)
        return df
