"""Synthetic data generators."""

from bank_lending.generators.customer import CustomerGenerator

__all__ = ["CustomerGenerator"]
