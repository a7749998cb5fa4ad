"""Ambient building blocks: config, logging, time, signals, small utilities."""
