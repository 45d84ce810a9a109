class PotabilityError(Exception):
    """Base class for training engine errors"""


class DataError(PotabilityError):
    """Dataset file missing, unreadable, or without a single usable row"""


class ConfigurationError(PotabilityError):
    """Invalid hyperparameters for a training run"""


class ChannelError(PotabilityError):
    """The peer of a channel has disconnected"""
