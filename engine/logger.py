import datetime
from typing import Optional


def log_training(message: str, log_file: Optional[str] = None) -> None:
    """Log training progress to console and, if configured, to file"""
    timestamp = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    log_message = f"[{timestamp}] {message}"

    print(log_message)
    if log_file:
        with open(log_file, 'a') as f:
            f.write(log_message + '\n')
