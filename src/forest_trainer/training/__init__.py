# Training Module
"""
Random forest training behind a small trainer interface.
"""

from .train_model import ForestModel, ModelMetrics, RandomForestTrainer, train_model
