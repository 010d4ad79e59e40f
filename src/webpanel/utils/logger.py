# src/webpanel/utils/logger.py
"""
Logging system for the web panel
Provides structured provisioning logs with file rotation and different log levels
"""

import logging
import logging.handlers
import os
import sys
import json  # For structured logging
from datetime import datetime


class Logger:
    """Panel logging system with file rotation"""

    def __init__(self, log_level=logging.INFO, log_dir="/var/log/webpanel", name="webpanel"):
        self.log_dir = log_dir
        self.log_level = log_level
        self.name = name

        # Create log directory
        os.makedirs(log_dir, mode=0o755, exist_ok=True)

        self.logger = self._setup_logger()

    def _setup_logger(self):
        """Setup the main logger with handlers"""
        logger = logging.getLogger(self.name)
        logger.setLevel(self.log_level)

        # Clear existing handlers
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

        detailed_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
        )

        simple_formatter = logging.Formatter(
            "%(asctime)s - %(levelname)s - %(message)s"
        )

        # Console handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(simple_formatter)
        logger.addHandler(console_handler)

        # File handler with rotation
        try:
            file_handler = logging.handlers.RotatingFileHandler(
                filename=os.path.join(self.log_dir, "panel.log"),
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(detailed_formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Could not setup file logging: {e}")

        # Error file handler
        try:
            error_handler = logging.handlers.RotatingFileHandler(
                filename=os.path.join(self.log_dir, "panel_error.log"),
                maxBytes=5 * 1024 * 1024,  # 5MB
                backupCount=3,
            )
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(detailed_formatter)
            logger.addHandler(error_handler)
        except OSError as e:
            logger.warning(f"Could not setup error file logging: {e}")

        return logger

    def debug(self, message, **kwargs):
        """Log debug message"""
        self.logger.debug(message, stacklevel=2, **kwargs)

    def info(self, message, **kwargs):
        """Log info message"""
        self.logger.info(message, stacklevel=2, **kwargs)

    def warning(self, message, **kwargs):
        """Log warning message"""
        self.logger.warning(message, stacklevel=2, **kwargs)

    def error(self, message, **kwargs):
        """Log error message"""
        self.logger.error(message, stacklevel=2, **kwargs)

    def log_provisioning(self, resource, action, status, message="", details=""):
        """Log a provisioning action (site, mail domain, mailbox) with structured data"""
        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "resource": resource,
            "action": action,
            "status": status,
            "message": message,
            "details": details,
        }

        if status == "failed":
            self.logger.error(f"PROVISIONING: {json.dumps(log_entry)}")
        else:
            self.logger.info(f"PROVISIONING: {json.dumps(log_entry)}")

    def log_step(self, resource, step, status, error=None):
        """Log the outcome of a single provisioning step"""
        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "resource": resource,
            "step": step,
            "status": status,
            "error": error,
        }

        if status == "ok":
            self.logger.debug(f"STEP: {json.dumps(log_entry)}")
        else:
            self.logger.warning(f"STEP: {json.dumps(log_entry)}")
