"""Adaptive testing and subject recommendation engine."""
