"""In this module you can find helpers for visualizing what models have learned."""
from .image import plot_filters
