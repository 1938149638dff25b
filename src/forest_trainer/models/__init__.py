# Models Module
"""
Saving and loading trained forest models.
"""

from .model_persister import load_model, remove_metadata, save_metadata, save_model
