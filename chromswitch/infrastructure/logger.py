"""
Centralized logging for the chromatin switch pipeline.
"""

import logging
from typing import Optional

LOGGER_NAME = "chromswitch"


class Logger:
    """Centralized logging for the chromatin switch pipeline"""

    def __init__(self, log_file: Optional[str] = None, level: Optional[int] = None):
        """Attach handlers once; later instances share the configured logger"""
        self.logger = logging.getLogger(LOGGER_NAME)
        if level is not None:
            self.logger.setLevel(level)
        elif self.logger.level == logging.NOTSET:
            self.logger.setLevel(logging.INFO)

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

        if not any(
            type(handler) is logging.StreamHandler for handler in self.logger.handlers
        ):
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

        # File handler (if specified)
        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

    def log_step(self, step: str, details: str) -> None:
        """Log a processing step with details"""
        self.logger.info(f"🔍 {step}: {details}")

    def log_debug(self, step: str, details: str) -> None:
        """Log per-region chatter that is too noisy for INFO"""
        self.logger.debug(f"{step}: {details}")

    def log_error(self, error: Exception, context: str) -> None:
        """Log an error with context"""
        self.logger.error(f"❌ Error in {context}: {str(error)}", exc_info=error)

    def log_warning(self, warning: str) -> None:
        """Log a warning message"""
        self.logger.warning(f"⚠️ {warning}")

    def log_success(self, message: str) -> None:
        """Log a success message"""
        self.logger.info(f"✅ {message}")

    def log_save(self, file_path: str) -> None:
        """Log a file save operation"""
        self.logger.info(f"💾 Saved to: {file_path}")

    def log_matrix_shape(self, matrix_name: str, shape: tuple) -> None:
        """Log matrix shape information"""
        self.logger.info(f"📊 {matrix_name} shape: {shape}")

    def log_threshold(self, threshold_name: str, value: float) -> None:
        """Log threshold information"""
        self.logger.info(f"🎯 {threshold_name}: {value:.4f}")

    def log_statistics(self, stat_name: str, value: float) -> None:
        """Log statistical values"""
        self.logger.info(f"📈 {stat_name}: {value:.6f}")
