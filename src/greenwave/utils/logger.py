"""
Logging Module
Provides consistent logging across the project
"""

import sys
import logging
from pathlib import Path
from typing import Optional, Sequence

from colorama import init, Fore, Style

init()


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for different log levels"""
    
    COLORS = {
        'DEBUG': Fore.CYAN,
        'INFO': Fore.GREEN,
        'WARNING': Fore.YELLOW,
        'ERROR': Fore.RED,
        'CRITICAL': Fore.RED + Style.BRIGHT,
    }
    RESET = Style.RESET_ALL
    
    def __init__(self, fmt: str = None, datefmt: str = None):
        super().__init__(fmt, datefmt)
    
    def format(self, record):
        # Color a copy so file handlers sharing the record stay plain
        record = logging.makeLogRecord(record.__dict__)
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.RESET}"
        
        return super().format(record)


def setup_logger(
    name: str = "greenwave",
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    console: bool = True
) -> logging.Logger:
    """
    Set up a logger with consistent formatting
    
    Args:
        name: Logger name
        level: Logging level
        log_file: Path to log file (optional)
        console: Whether to output to console
    
    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    
    # Clear existing handlers
    logger.handlers.clear()
    
    # Log format
    log_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"
    
    # Console handler
    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_formatter = ColoredFormatter(log_format, date_format)
        console_handler.setFormatter(console_formatter)
        logger.addHandler(console_handler)
    
    # File handler
    if log_file:
        # Create log directory if it doesn't exist
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_formatter = logging.Formatter(log_format, date_format)
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)
    
    return logger


def get_logger(name: str = "greenwave") -> logging.Logger:
    """Get an existing logger by name"""
    return logging.getLogger(name)


def format_candidate(candidate) -> str:
    """Render a phase matrix as one row of 1/0 digits per intersection"""
    rows = ["".join("1" if bit else "0" for bit in row) for row in candidate]
    return "[" + " ".join(rows) + "]"


class SearchLogger:
    """
    Specialized logger for search progress
    Reports improvements of the best-ever value and the final result
    """
    
    def __init__(self, name: str = "greenwave.search", silent: bool = False):
        self.logger = get_logger(name)
        self.silent = silent
    
    def log_improvement(
        self,
        iteration: int,
        candidate,
        score: float,
        mean: float = None
    ):
        """Log a new best-ever candidate"""
        if self.silent:
            return
        
        msg = (
            f"Iteration {iteration:6d} | "
            f"Best: {score:10.4f} | "
            f"Candidate: {format_candidate(candidate)}"
        )
        
        if mean is not None:
            msg += f" | Mean: {mean:10.4f}"
        
        self.logger.info(msg)
    
    def log_final(self, candidate, score: float, mean: float = None):
        """Log the final best candidate (never silenced)"""
        msg = f"Final candidate: {format_candidate(candidate)} | Score: {score:.4f}"
        if mean is not None:
            msg += f" | Mean: {mean:.4f}"
        self.logger.info(msg)
    
    def log_trace(self, states: Sequence[Sequence]):
        """Log every per-timestep state vector of a diagnostic replay"""
        self.logger.info(f"\n{'='*60}")
        self.logger.info("FINAL SIMULATION")
        self.logger.info(f"{'='*60}")
        
        for t, state in enumerate(states):
            self.logger.info(f"Step {t}:")
            for index, cell in enumerate(state):
                self.logger.info(f"  [{index}] {cell}")
        
        self.logger.info(f"{'='*60}\n")
    
    def log_benchmark(self, runs: int, mean_best: float):
        """Log benchmark summary"""
        self.logger.info(
            f"Mean of best individual over {runs} runs: {mean_best:.4f}"
        )
