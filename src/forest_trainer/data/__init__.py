# Data Module
"""
CSV loading and feature extraction for forest training.
"""

from .features import FeatureSet, extract_features
from .loader import Dataset, load_dataset
