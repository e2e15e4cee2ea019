"""Data availability committee node: sequence signing, off-chain data handling and L1 synchronisation."""

__version__ = "0.1.0"