"""Pb-210 forward model."""

from .activity import PB210_LAMBDA, UNIT_FACTORS, activity_density, modelled_activity

__all__ = ["PB210_LAMBDA", "UNIT_FACTORS", "activity_density", "modelled_activity"]
